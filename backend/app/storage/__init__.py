"""Blob storage backends."""
from .blob_store import (
    BlobStore,
    LocalBlobStore,
    StoredBlob,
    SupabaseBlobStore,
    build_object_path,
    release_blobs,
)

__all__ = [
    "BlobStore",
    "LocalBlobStore",
    "StoredBlob",
    "SupabaseBlobStore",
    "build_object_path",
    "release_blobs",
]
