"""API schemas for catalog and product endpoints."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..catalogs import (
    Catalog,
    CatalogCreate,
    CatalogUpdate,
    Product,
    ProductCreate,
    ProductUpdate,
)


class CatalogCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    slug: Optional[str] = None
    description: Optional[str] = None
    is_public: bool = Field(alias="isPublic", default=True)

    model_config = ConfigDict(populate_by_name=True)

    def to_domain(self) -> CatalogCreate:
        return CatalogCreate(**self.model_dump(exclude_unset=True))


class CatalogUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    slug: Optional[str] = None
    description: Optional[str] = None
    is_public: Optional[bool] = Field(alias="isPublic", default=None)

    model_config = ConfigDict(populate_by_name=True)

    def to_domain(self) -> CatalogUpdate:
        return CatalogUpdate(**self.model_dump(exclude_unset=True))


class CatalogResponse(BaseModel):
    id: str
    slug: str
    name: str
    description: Optional[str] = None
    is_public: bool = Field(alias="isPublic")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_catalog(cls, catalog: Catalog) -> "CatalogResponse":
        return cls(
            id=catalog.id,
            slug=catalog.slug,
            name=catalog.name,
            description=catalog.description,
            is_public=catalog.is_public,
            created_at=catalog.created_at,
            updated_at=catalog.updated_at,
        )


class CatalogListResponse(BaseModel):
    catalogs: List[CatalogResponse]


class ProductCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=160)
    slug: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    images: List[str] = Field(default_factory=list)
    image_url: Optional[str] = Field(alias="imageUrl", default=None)
    external_url: Optional[str] = Field(alias="externalUrl", default=None)
    visible: bool = True

    model_config = ConfigDict(populate_by_name=True)

    def to_domain(self) -> ProductCreate:
        return ProductCreate(**self.model_dump(exclude_unset=True))


class ProductUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=160)
    slug: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    images: Optional[List[str]] = None
    image_url: Optional[str] = Field(alias="imageUrl", default=None)
    external_url: Optional[str] = Field(alias="externalUrl", default=None)
    visible: Optional[bool] = None

    model_config = ConfigDict(populate_by_name=True)

    def to_domain(self) -> ProductUpdate:
        return ProductUpdate(**self.model_dump(exclude_unset=True))


class ProductResponse(BaseModel):
    id: str
    catalog_id: str = Field(alias="catalogId")
    slug: str
    name: str
    description: Optional[str] = None
    price: Optional[Decimal] = None
    images: List[str]
    image_url: Optional[str] = Field(alias="imageUrl", default=None)
    external_url: Optional[str] = Field(alias="externalUrl", default=None)
    visible: bool
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_product(cls, product: Product) -> "ProductResponse":
        return cls(
            id=product.id,
            catalog_id=product.catalog_id,
            slug=product.slug,
            name=product.name,
            description=product.description,
            price=product.price,
            images=list(product.images),
            image_url=product.image_url,
            external_url=product.external_url,
            visible=product.visible,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )


class ProductListResponse(BaseModel):
    products: List[ProductResponse]


class ProductCountsRequest(BaseModel):
    catalog_ids: List[str] = Field(alias="catalogIds")

    model_config = ConfigDict(populate_by_name=True)


class ProductCountsResponse(BaseModel):
    counts: Dict[str, int]
