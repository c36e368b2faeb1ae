"""Image blob storage used for product pictures and custom profile photos."""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional, Protocol
from urllib import error as urllib_error, parse as urllib_parse, request as urllib_request

from ..errors import ExternalProviderError

logger = logging.getLogger(__name__)

OBJECT_NAMESPACE = "produtos"
_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


@dataclass(frozen=True)
class StoredBlob:
    url: str
    path: str


class BlobStore(Protocol):
    """Opaque object storage that hands back a public URL for stored bytes."""

    def put(self, data: bytes, content_type: str, path_hint: str) -> StoredBlob:
        ...

    def delete(self, url_or_path: str) -> None:
        ...


def sanitize_filename(filename: str) -> str:
    cleaned = _UNSAFE_FILENAME_CHARS.sub("_", filename or "")
    return cleaned or "upload"


def build_object_path(user_id: str, filename: str, *, now: Optional[datetime] = None) -> str:
    """Group objects by owner and upload time to avoid name collisions."""

    moment = now or datetime.now(timezone.utc)
    timestamp = int(moment.timestamp() * 1000)
    return f"{OBJECT_NAMESPACE}/{user_id}/{timestamp}_{sanitize_filename(filename)}"


def release_blobs(store: BlobStore, urls: Iterable[Optional[str]]) -> int:
    """Delete each URL best-effort; failures are logged and never raised.

    Returns the number of deletions that succeeded.
    """

    released = 0
    for url in urls:
        if not url:
            continue
        try:
            store.delete(url)
        except Exception as exc:
            logger.warning(
                "Failed to release blob",
                extra={"blob_url": url, "error": str(exc)},
            )
            continue
        released += 1
    return released


class LocalBlobStore:
    """Filesystem store for development and tests."""

    def __init__(self, root: str, *, base_url: str = "/uploads") -> None:
        self._root = Path(root)
        self._base_url = base_url.rstrip("/")

    def _object_path(self, url_or_path: str) -> Optional[str]:
        prefix = f"{self._base_url}/"
        if url_or_path.startswith(prefix):
            return url_or_path[len(prefix):]
        if "://" in url_or_path:
            return None
        return url_or_path.lstrip("/")

    def _resolve(self, object_path: str) -> Path:
        target = (self._root / object_path).resolve()
        if self._root.resolve() not in target.parents:
            raise ValueError(f"Object path escapes the storage root: {object_path!r}")
        return target

    def put(self, data: bytes, content_type: str, path_hint: str) -> StoredBlob:
        target = self._resolve(path_hint)
        target.parent.mkdir(parents=True, exist_ok=True)
        if target.exists():
            raise ExternalProviderError("blob_store", f"Object {path_hint!r} already exists.")
        target.write_bytes(data)
        return StoredBlob(url=f"{self._base_url}/{path_hint}", path=path_hint)

    def delete(self, url_or_path: str) -> None:
        object_path = self._object_path(url_or_path)
        if object_path is None:
            logger.warning("Ignoring blob outside the local store: %s", url_or_path)
            return
        self._resolve(object_path).unlink(missing_ok=True)


class SupabaseBlobStore:
    """Supabase Storage object API over plain HTTP."""

    def __init__(self, *, base_url: str, service_key: str, bucket: str, timeout: float = 10.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._service_key = service_key
        self._bucket = bucket
        self._timeout = timeout

    @property
    def public_prefix(self) -> str:
        return f"{self._base_url}/storage/v1/object/public/{self._bucket}/"

    def _headers(self, content_type: str) -> dict:
        return {
            "Authorization": f"Bearer {self._service_key}",
            "apikey": self._service_key,
            "Content-Type": content_type,
        }

    def _object_path(self, url_or_path: str) -> Optional[str]:
        if url_or_path.startswith(self.public_prefix):
            return urllib_parse.unquote(url_or_path[len(self.public_prefix):])
        if "://" in url_or_path:
            return None
        return url_or_path.lstrip("/")

    def _send(self, req: urllib_request.Request) -> bytes:
        try:
            with urllib_request.urlopen(req, timeout=self._timeout) as response:
                return response.read()
        except (urllib_error.URLError, urllib_error.HTTPError) as exc:
            logger.error(
                "Blob storage request failed",
                extra={"blob_method": req.get_method(), "blob_url": req.full_url, "error": str(exc)},
            )
            raise ExternalProviderError("blob_store", "Image storage is unavailable.") from exc

    def put(self, data: bytes, content_type: str, path_hint: str) -> StoredBlob:
        quoted = urllib_parse.quote(path_hint)
        req = urllib_request.Request(
            f"{self._base_url}/storage/v1/object/{self._bucket}/{quoted}",
            data=data,
            method="POST",
            headers={**self._headers(content_type), "Cache-Control": "3600", "x-upsert": "false"},
        )
        self._send(req)
        return StoredBlob(url=f"{self.public_prefix}{quoted}", path=path_hint)

    def delete(self, url_or_path: str) -> None:
        object_path = self._object_path(url_or_path)
        if object_path is None:
            logger.warning("Could not extract an object path from %s", url_or_path)
            return
        req = urllib_request.Request(
            f"{self._base_url}/storage/v1/object/{self._bucket}",
            data=json.dumps({"prefixes": [object_path]}).encode("utf-8"),
            method="DELETE",
            headers=self._headers("application/json"),
        )
        self._send(req)


__all__ = [
    "BlobStore",
    "LocalBlobStore",
    "OBJECT_NAMESPACE",
    "StoredBlob",
    "SupabaseBlobStore",
    "build_object_path",
    "release_blobs",
    "sanitize_filename",
]
