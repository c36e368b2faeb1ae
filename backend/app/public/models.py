"""Views served to anonymous visitors; billing fields never appear here."""
from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict


class ProductSort(str, Enum):
    NEWEST = "newest"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"


class PublicSeller(BaseModel):
    user_id: str
    username: str
    store_name: Optional[str] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    contact_number: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class PublicCatalog(BaseModel):
    id: str
    slug: str
    name: str
    description: Optional[str] = None
    is_public: bool

    model_config = ConfigDict(frozen=True)


class PublicProduct(BaseModel):
    id: str
    slug: str
    name: str
    description: Optional[str] = None
    price: Optional[Decimal] = None
    images: Tuple[str, ...] = ()
    image_url: Optional[str] = None
    external_url: Optional[str] = None
    contact_url: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class PublicCatalogView(BaseModel):
    catalog: PublicCatalog
    products: List[PublicProduct]
    seller: PublicSeller

    model_config = ConfigDict(frozen=True)


class PublicProfileView(BaseModel):
    """Seller plus every catalog; anonymous callers must drop private ones."""

    seller: PublicSeller
    catalogs: List[PublicCatalog]

    model_config = ConfigDict(frozen=True)

    def only_public(self) -> "PublicProfileView":
        return self.model_copy(update={"catalogs": [c for c in self.catalogs if c.is_public]})


__all__ = [
    "ProductSort",
    "PublicCatalog",
    "PublicCatalogView",
    "PublicProduct",
    "PublicProfileView",
    "PublicSeller",
]
