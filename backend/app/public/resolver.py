"""Anonymous read path from ``/{username}/{catalog_slug}`` to a filtered view."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from ..catalogs.models import Catalog, Product
from ..catalogs.repository import PublicCatalogReader
from ..errors import NotFound
from ..profiles.models import UserProfile
from .contact import build_whatsapp_link
from .models import (
    ProductSort,
    PublicCatalog,
    PublicCatalogView,
    PublicProduct,
    PublicProfileView,
    PublicSeller,
)


def sort_products(products: List[Product], sort: ProductSort) -> List[Product]:
    """Order by price when asked; unpriced products always go last."""

    if sort is ProductSort.NEWEST:
        return list(products)
    priced = [p for p in products if p.price is not None]
    unpriced = [p for p in products if p.price is None]
    priced.sort(key=lambda p: p.price or Decimal(0), reverse=sort is ProductSort.PRICE_DESC)
    return priced + unpriced


def _seller_view(profile: UserProfile) -> PublicSeller:
    return PublicSeller(
        user_id=profile.id,
        username=profile.username or "",
        store_name=profile.store_name,
        display_name=profile.display_name,
        avatar_url=profile.avatar_url,
        contact_number=profile.contact_number,
    )


def _catalog_view(catalog: Catalog) -> PublicCatalog:
    return PublicCatalog(
        id=catalog.id,
        slug=catalog.slug,
        name=catalog.name,
        description=catalog.description,
        is_public=catalog.is_public,
    )


@dataclass
class PublicResolver:
    reader: PublicCatalogReader
    default_country_code: str = "55"

    def _product_view(self, product: Product, profile: UserProfile) -> PublicProduct:
        return PublicProduct(
            id=product.id,
            slug=product.slug,
            name=product.name,
            description=product.description,
            price=product.price,
            images=product.images,
            image_url=product.image_url,
            external_url=product.external_url,
            contact_url=build_whatsapp_link(
                profile.contact_number,
                profile.message_template,
                product.name,
                country_code=self.default_country_code,
            ),
        )

    def _load_profile(self, username: str, resource: str) -> UserProfile:
        user_id = self.reader.resolve_username((username or "").strip())
        if user_id is None:
            raise NotFound(resource)
        profile = self.reader.get_profile(user_id)
        if profile is None:
            raise NotFound(resource)
        return profile

    def resolve_public_catalog(
        self,
        username: str,
        catalog_slug: str,
        *,
        sort: Optional[ProductSort] = None,
    ) -> PublicCatalogView:
        # Missing and private catalogs raise the same error.
        profile = self._load_profile(username, "catalog")
        catalog = self.reader.get_catalog_by_slug(profile.id, (catalog_slug or "").strip().lower())
        if catalog is None or not catalog.is_public:
            raise NotFound("catalog")

        products = [p for p in self.reader.list_products(catalog.id) if p.visible]
        products = sort_products(products, sort or ProductSort.NEWEST)
        return PublicCatalogView(
            catalog=_catalog_view(catalog),
            products=[self._product_view(p, profile) for p in products],
            seller=_seller_view(profile),
        )

    def resolve_public_profile(self, username: str) -> PublicProfileView:
        """Return the seller with all of their catalogs, public or not."""

        profile = self._load_profile(username, "profile")
        catalogs = self.reader.list_catalogs(profile.id)
        return PublicProfileView(
            seller=_seller_view(profile),
            catalogs=[_catalog_view(c) for c in catalogs],
        )


__all__ = ["PublicResolver", "sort_products"]
