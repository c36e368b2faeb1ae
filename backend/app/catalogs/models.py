"""Domain models for catalogs and their products."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

MAX_PRODUCT_IMAGES = 3


def normalize_images(images: Optional[Iterable[Optional[str]]]) -> Tuple[str, ...]:
    """Drop blank entries and keep at most :data:`MAX_PRODUCT_IMAGES` URLs in order."""

    cleaned = [url.strip() for url in images or () if url and url.strip()]
    return tuple(cleaned[:MAX_PRODUCT_IMAGES])


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Catalog(BaseModel):
    id: str
    owner_id: str
    slug: str
    name: str
    description: Optional[str] = None
    is_public: bool = True
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    model_config = ConfigDict(frozen=True)


class Product(BaseModel):
    """A catalog item; ``image_url`` mirrors the first entry of ``images``."""

    id: str
    catalog_id: str
    slug: str
    name: str
    description: Optional[str] = None
    price: Optional[Decimal] = None
    images: Tuple[str, ...] = ()
    image_url: Optional[str] = None
    external_url: Optional[str] = None
    visible: bool = True
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    model_config = ConfigDict(frozen=True)


class CatalogCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    slug: Optional[str] = None
    description: Optional[str] = None
    is_public: bool = True

    model_config = ConfigDict(frozen=True)


class CatalogUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    slug: Optional[str] = None
    description: Optional[str] = None
    is_public: Optional[bool] = None

    model_config = ConfigDict(frozen=True)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=160)
    slug: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    images: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    external_url: Optional[str] = None
    visible: bool = True

    model_config = ConfigDict(frozen=True)

    def resolved_images(self) -> Tuple[str, ...]:
        # Older clients send a single ``image_url`` instead of ``images``.
        if self.images:
            return normalize_images(self.images)
        return normalize_images([self.image_url])


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=160)
    slug: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    images: Optional[List[str]] = None
    image_url: Optional[str] = None
    external_url: Optional[str] = None
    visible: Optional[bool] = None

    model_config = ConfigDict(frozen=True)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


# Columns accepted by the catalog store's update operations.
CATALOG_FIELDS = frozenset({"slug", "name", "description", "is_public"})
PRODUCT_FIELDS = frozenset(
    {"slug", "name", "description", "price", "images", "image_url", "external_url", "visible"}
)


__all__ = [
    "CATALOG_FIELDS",
    "Catalog",
    "CatalogCreate",
    "CatalogUpdate",
    "MAX_PRODUCT_IMAGES",
    "PRODUCT_FIELDS",
    "Product",
    "ProductCreate",
    "ProductUpdate",
    "normalize_images",
]
