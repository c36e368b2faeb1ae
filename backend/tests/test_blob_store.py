from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest

from backend.app.errors import ExternalProviderError
from backend.app.storage import LocalBlobStore, SupabaseBlobStore, build_object_path, release_blobs


class FlakyBlobStore:
    def __init__(self, failing: set) -> None:
        self.failing = failing
        self.deleted = []

    def put(self, data, content_type, path_hint):
        raise NotImplementedError

    def delete(self, url_or_path: str) -> None:
        if url_or_path in self.failing:
            raise RuntimeError("boom")
        self.deleted.append(url_or_path)


def test_build_object_path_groups_by_owner() -> None:
    moment = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    path = build_object_path("u1", "my photo (1).png", now=moment)

    assert path == f"produtos/u1/{int(moment.timestamp() * 1000)}_my_photo__1_.png"


def test_local_store_round_trip(tmp_path) -> None:
    store = LocalBlobStore(str(tmp_path))

    stored = store.put(b"\x89PNG", "image/png", "produtos/u1/1_a.png")

    assert stored.url == "/uploads/produtos/u1/1_a.png"
    assert (tmp_path / "produtos/u1/1_a.png").read_bytes() == b"\x89PNG"

    store.delete(stored.url)

    assert not (tmp_path / "produtos/u1/1_a.png").exists()


def test_local_store_refuses_to_overwrite(tmp_path) -> None:
    store = LocalBlobStore(str(tmp_path))
    store.put(b"a", "image/png", "produtos/u1/1_a.png")

    with pytest.raises(ExternalProviderError):
        store.put(b"b", "image/png", "produtos/u1/1_a.png")


def test_local_store_rejects_escaping_paths(tmp_path) -> None:
    store = LocalBlobStore(str(tmp_path / "root"))

    with pytest.raises(ValueError):
        store.put(b"a", "image/png", "../outside.png")


def test_local_store_delete_of_missing_object_is_quiet(tmp_path) -> None:
    LocalBlobStore(str(tmp_path)).delete("/uploads/produtos/u1/never.png")


def test_release_blobs_logs_and_continues(caplog: pytest.LogCaptureFixture) -> None:
    store = FlakyBlobStore(failing={"https://cdn.test/b.png"})

    with caplog.at_level(logging.WARNING):
        released = release_blobs(
            store, ["https://cdn.test/a.png", "https://cdn.test/b.png", None, "https://cdn.test/c.png"]
        )

    assert released == 2
    assert store.deleted == ["https://cdn.test/a.png", "https://cdn.test/c.png"]
    assert "Failed to release blob" in caplog.text


def test_supabase_store_maps_public_url_to_object_path(monkeypatch) -> None:
    store = SupabaseBlobStore(base_url="https://proj.supabase.co", service_key="key", bucket="produtos")
    sent = []

    def fake_send(req):
        sent.append(req)
        return b"{}"

    monkeypatch.setattr(store, "_send", fake_send)

    store.delete("https://proj.supabase.co/storage/v1/object/public/produtos/produtos/u1/1_a.png")

    assert len(sent) == 1
    assert sent[0].get_method() == "DELETE"
    assert sent[0].full_url == "https://proj.supabase.co/storage/v1/object/produtos"
    assert b"produtos/u1/1_a.png" in sent[0].data


def test_supabase_store_put_returns_public_url(monkeypatch) -> None:
    store = SupabaseBlobStore(base_url="https://proj.supabase.co", service_key="key", bucket="produtos")
    monkeypatch.setattr(store, "_send", lambda req: b"{}")

    stored = store.put(b"a", "image/png", "produtos/u1/1_a.png")

    assert stored.url == "https://proj.supabase.co/storage/v1/object/public/produtos/produtos/u1/1_a.png"
    assert stored.path == "produtos/u1/1_a.png"
