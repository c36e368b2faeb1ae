"""Anonymous routes backing the public ``/{username}/{catalogSlug}`` pages."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..identity import Identity
from ..public import ProductSort, PublicResolver
from ..schemas.public import PublicCatalogPageResponse, PublicProfilePageResponse
from ..services.identity import get_optional_identity
from ..services.storefront import get_public_resolver

router = APIRouter(prefix="/api/public", tags=["public"])


# Declared before the two-segment route so ``/user/...`` is not read as a username.
@router.get("/user/{username}", response_model=PublicProfilePageResponse)
def read_public_profile(
    username: str,
    *,
    identity: Optional[Identity] = Depends(get_optional_identity),
    resolver: PublicResolver = Depends(get_public_resolver),
) -> PublicProfilePageResponse:
    view = resolver.resolve_public_profile(username)
    if identity is None or identity.user_id != view.seller.user_id:
        view = view.only_public()
    return PublicProfilePageResponse.from_view(view)


@router.get("/{username}/{catalog_slug}", response_model=PublicCatalogPageResponse)
def read_public_catalog(
    username: str,
    catalog_slug: str,
    sort: Optional[ProductSort] = Query(None),
    *,
    resolver: PublicResolver = Depends(get_public_resolver),
) -> PublicCatalogPageResponse:
    view = resolver.resolve_public_catalog(username, catalog_slug, sort=sort)
    return PublicCatalogPageResponse.from_view(view)
