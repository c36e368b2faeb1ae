"""API schemas for the anonymous public pages."""
from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..public import PublicCatalog, PublicCatalogView, PublicProduct, PublicProfileView, PublicSeller


class PublicSellerResponse(BaseModel):
    username: str
    store_name: Optional[str] = Field(alias="storeName", default=None)
    display_name: Optional[str] = Field(alias="displayName", default=None)
    avatar_url: Optional[str] = Field(alias="avatarUrl", default=None)
    contact_number: Optional[str] = Field(alias="contactNumber", default=None)

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_view(cls, seller: PublicSeller) -> "PublicSellerResponse":
        return cls(
            username=seller.username,
            store_name=seller.store_name,
            display_name=seller.display_name,
            avatar_url=seller.avatar_url,
            contact_number=seller.contact_number,
        )


class PublicCatalogResponse(BaseModel):
    id: str
    slug: str
    name: str
    description: Optional[str] = None
    is_public: bool = Field(alias="isPublic")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_view(cls, catalog: PublicCatalog) -> "PublicCatalogResponse":
        return cls(
            id=catalog.id,
            slug=catalog.slug,
            name=catalog.name,
            description=catalog.description,
            is_public=catalog.is_public,
        )


class PublicProductResponse(BaseModel):
    id: str
    slug: str
    name: str
    description: Optional[str] = None
    price: Optional[Decimal] = None
    images: List[str]
    image_url: Optional[str] = Field(alias="imageUrl", default=None)
    external_url: Optional[str] = Field(alias="externalUrl", default=None)
    contact_url: Optional[str] = Field(alias="contactUrl", default=None)

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_view(cls, product: PublicProduct) -> "PublicProductResponse":
        return cls(
            id=product.id,
            slug=product.slug,
            name=product.name,
            description=product.description,
            price=product.price,
            images=list(product.images),
            image_url=product.image_url,
            external_url=product.external_url,
            contact_url=product.contact_url,
        )


class PublicCatalogPageResponse(BaseModel):
    catalog: PublicCatalogResponse
    products: List[PublicProductResponse]
    seller: PublicSellerResponse

    @classmethod
    def from_view(cls, view: PublicCatalogView) -> "PublicCatalogPageResponse":
        return cls(
            catalog=PublicCatalogResponse.from_view(view.catalog),
            products=[PublicProductResponse.from_view(p) for p in view.products],
            seller=PublicSellerResponse.from_view(view.seller),
        )


class PublicProfilePageResponse(BaseModel):
    seller: PublicSellerResponse
    catalogs: List[PublicCatalogResponse]

    @classmethod
    def from_view(cls, view: PublicProfileView) -> "PublicProfilePageResponse":
        return cls(
            seller=PublicSellerResponse.from_view(view.seller),
            catalogs=[PublicCatalogResponse.from_view(c) for c in view.catalogs],
        )
