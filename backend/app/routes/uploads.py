"""Image upload endpoint storing files in the configured blob store."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, UploadFile
from starlette.concurrency import run_in_threadpool

from ..errors import ValidationError
from ..identity import Identity
from ..schemas.uploads import UploadResponse
from ..services.identity import get_current_identity
from ..services.storefront import get_blob_store
from ..storage import BlobStore, build_object_path

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024

router = APIRouter(prefix="/api", tags=["uploads"])


@router.post("/upload", response_model=UploadResponse)
async def upload_image(
    file: UploadFile = File(...),
    *,
    identity: Identity = Depends(get_current_identity),
    blob_store: BlobStore = Depends(get_blob_store),
) -> UploadResponse:
    content_type = file.content_type or ""
    if not content_type.startswith("image/"):
        raise ValidationError("Only image files are allowed.", field="file")
    data = await file.read(MAX_UPLOAD_BYTES + 1)
    if not data:
        raise ValidationError("The uploaded file is empty.", field="file")
    if len(data) > MAX_UPLOAD_BYTES:
        raise ValidationError("File is too large (maximum 10MB).", field="file")

    path = build_object_path(identity.user_id, file.filename or "upload")
    stored = await run_in_threadpool(blob_store.put, data, content_type, path)
    logger.info("Stored upload %s (%d bytes) for %s", stored.path, len(data), identity.user_id)
    return UploadResponse(url=stored.url, path=stored.path)
