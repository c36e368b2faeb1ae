"""Owner-facing catalog and product use cases with plan quota enforcement."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Protocol

from ..errors import NotFound, ValidationError
from ..feature_gates import assert_quota, check_catalog_quota, check_product_quota
from ..profiles.models import UserProfile
from ..profiles.validation import clean_optional_text
from ..storage.blob_store import BlobStore, release_blobs
from .models import (
    Catalog,
    CatalogCreate,
    CatalogUpdate,
    Product,
    ProductCreate,
    ProductUpdate,
    normalize_images,
)
from .repository import CatalogRepository
from .slugs import resolve_slug

logger = logging.getLogger(__name__)


def _required_name(raw: str) -> str:
    name = (raw or "").strip()
    if not name:
        raise ValidationError("Name is required.", field="name")
    return name


class ProfileLookup(Protocol):
    def get(self, user_id: str) -> Optional[UserProfile]:
        ...


@dataclass
class CatalogService:
    """Every operation is scoped to ``owner_id``; foreign ids read as missing."""

    catalogs: CatalogRepository
    profiles: ProfileLookup
    blob_store: BlobStore

    def _profile(self, owner_id: str) -> UserProfile:
        profile = self.profiles.get(owner_id)
        if profile is None:
            raise NotFound("profile")
        return profile

    # Catalogs -----------------------------------------------------------

    def list_catalogs(self, owner_id: str) -> List[Catalog]:
        return self.catalogs.list_catalogs(owner_id)

    def get_catalog(self, owner_id: str, catalog_id: str) -> Catalog:
        catalog = self.catalogs.get_catalog(owner_id, catalog_id)
        if catalog is None:
            raise NotFound("catalog")
        return catalog

    def create_catalog(self, owner_id: str, draft: CatalogCreate) -> Catalog:
        profile = self._profile(owner_id)
        # Advisory check; two concurrent creates may both pass.
        assert_quota(check_catalog_quota(profile, self.catalogs.count_catalogs(owner_id)))
        fields = {
            "slug": resolve_slug(draft.slug, draft.name),
            "name": _required_name(draft.name),
            "description": clean_optional_text(draft.description),
            "is_public": draft.is_public,
        }
        catalog = self.catalogs.create_catalog(owner_id, fields)
        logger.info("Catalog %s created for %s", catalog.id, owner_id)
        return catalog

    def update_catalog(self, owner_id: str, catalog_id: str, update: CatalogUpdate) -> Catalog:
        changes = update.changes()
        fields: Dict[str, object] = {}
        if changes.get("name") is not None:
            fields["name"] = _required_name(changes["name"])
        if "slug" in changes and changes["slug"] is not None:
            fields["slug"] = resolve_slug(changes["slug"], None)
        if "description" in changes:
            fields["description"] = clean_optional_text(changes["description"])
        if changes.get("is_public") is not None:
            fields["is_public"] = changes["is_public"]
        if not fields:
            return self.get_catalog(owner_id, catalog_id)
        catalog = self.catalogs.update_catalog(owner_id, catalog_id, fields)
        if catalog is None:
            raise NotFound("catalog")
        return catalog

    def delete_catalog(self, owner_id: str, catalog_id: str) -> None:
        self.get_catalog(owner_id, catalog_id)
        removed = self.catalogs.delete_catalog(owner_id, catalog_id)
        release_blobs(self.blob_store, [url for product in removed for url in product.images])
        logger.info("Catalog %s deleted with %d products", catalog_id, len(removed))

    def product_counts(self, owner_id: str, catalog_ids: Iterable[str]) -> Dict[str, int]:
        return self.catalogs.product_counts(owner_id, list(catalog_ids))

    # Products -----------------------------------------------------------

    def list_products(self, owner_id: str, catalog_id: str) -> List[Product]:
        catalog = self.get_catalog(owner_id, catalog_id)
        return self.catalogs.list_products(catalog.id)

    def get_product(self, owner_id: str, catalog_id: str, product_id: str) -> Product:
        catalog = self.get_catalog(owner_id, catalog_id)
        product = self.catalogs.get_product(catalog.id, product_id)
        if product is None:
            raise NotFound("product")
        return product

    def create_product(self, owner_id: str, catalog_id: str, draft: ProductCreate) -> Product:
        catalog = self.get_catalog(owner_id, catalog_id)
        profile = self._profile(owner_id)
        assert_quota(check_product_quota(profile, self.catalogs.count_products(catalog.id)))
        fields = {
            "slug": resolve_slug(draft.slug, draft.name),
            "name": _required_name(draft.name),
            "description": clean_optional_text(draft.description),
            "price": draft.price,
            "images": list(draft.resolved_images()),
            "external_url": clean_optional_text(draft.external_url),
            "visible": draft.visible,
        }
        return self.catalogs.create_product(catalog.id, fields)

    def update_product(
        self, owner_id: str, catalog_id: str, product_id: str, update: ProductUpdate
    ) -> Product:
        current = self.get_product(owner_id, catalog_id, product_id)
        changes = update.changes()
        fields: Dict[str, object] = {}
        if changes.get("name") is not None:
            fields["name"] = _required_name(changes["name"])
        if changes.get("slug") is not None:
            fields["slug"] = resolve_slug(changes["slug"], None)
        if "description" in changes:
            fields["description"] = clean_optional_text(changes["description"])
        if "price" in changes:
            fields["price"] = changes["price"]
        if "external_url" in changes:
            fields["external_url"] = clean_optional_text(changes["external_url"])
        if changes.get("visible") is not None:
            fields["visible"] = changes["visible"]

        orphaned: List[str] = []
        if "images" in changes or "image_url" in changes:
            if changes.get("images") is not None:
                images = normalize_images(changes["images"])
            else:
                images = normalize_images([changes.get("image_url")])
            fields["images"] = list(images)
            # Diff against the stored set before it is overwritten.
            orphaned = [url for url in current.images if url not in images]

        if not fields:
            return current
        product = self.catalogs.update_product(current.catalog_id, product_id, fields)
        if product is None:
            raise NotFound("product")
        release_blobs(self.blob_store, orphaned)
        return product

    def delete_product(self, owner_id: str, catalog_id: str, product_id: str) -> None:
        current = self.get_product(owner_id, catalog_id, product_id)
        removed = self.catalogs.delete_product(current.catalog_id, product_id)
        if removed is None:
            raise NotFound("product")
        release_blobs(self.blob_store, removed.images)


__all__ = ["CatalogService", "ProfileLookup"]
