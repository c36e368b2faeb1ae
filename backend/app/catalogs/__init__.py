"""Catalogs and products owned by sellers."""
from .models import (
    MAX_PRODUCT_IMAGES,
    Catalog,
    CatalogCreate,
    CatalogUpdate,
    Product,
    ProductCreate,
    ProductUpdate,
    normalize_images,
)
from .repository import (
    CatalogRepository,
    InMemoryCatalogRepository,
    InMemoryPublicCatalogReader,
    PostgresCatalogRepository,
    PostgresPublicCatalogReader,
    PublicCatalogReader,
)
from .service import CatalogService
from .slugs import generate_slug, resolve_slug

__all__ = [
    "MAX_PRODUCT_IMAGES",
    "Catalog",
    "CatalogCreate",
    "CatalogRepository",
    "CatalogService",
    "CatalogUpdate",
    "InMemoryCatalogRepository",
    "InMemoryPublicCatalogReader",
    "PostgresCatalogRepository",
    "PostgresPublicCatalogReader",
    "Product",
    "ProductCreate",
    "ProductUpdate",
    "PublicCatalogReader",
    "generate_slug",
    "normalize_images",
    "resolve_slug",
]
