"""Application wiring for profile, catalog and public-page services."""
from __future__ import annotations

from backend import app_context

from ..catalogs import CatalogService
from ..profiles import ProfileService
from ..public import PublicResolver
from ..storage import BlobStore


def get_blob_store() -> BlobStore:
    return app_context.get_blob_store()


def get_profile_service() -> ProfileService:
    return ProfileService(
        profiles=app_context.get_profile_repository(),
        blob_store=app_context.get_blob_store(),
    )


def get_catalog_service() -> CatalogService:
    return CatalogService(
        catalogs=app_context.get_catalog_repository(),
        profiles=app_context.get_profile_repository(),
        blob_store=app_context.get_blob_store(),
    )


def get_public_resolver() -> PublicResolver:
    return PublicResolver(
        reader=app_context.get_public_reader(),
        default_country_code=app_context.get_config().default_country_code,
    )


__all__ = ["get_blob_store", "get_catalog_service", "get_profile_service", "get_public_resolver"]
