"""API routes for catalog and product management by their owner."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from ..catalogs import CatalogService
from ..identity import Identity
from ..schemas.catalogs import (
    CatalogCreateRequest,
    CatalogListResponse,
    CatalogResponse,
    CatalogUpdateRequest,
    ProductCountsRequest,
    ProductCountsResponse,
    ProductCreateRequest,
    ProductListResponse,
    ProductResponse,
    ProductUpdateRequest,
)
from ..services.identity import get_current_identity
from ..services.storefront import get_catalog_service

router = APIRouter(prefix="/api/catalogs", tags=["catalogs"])


@router.get("", response_model=CatalogListResponse)
def list_catalogs(
    *,
    identity: Identity = Depends(get_current_identity),
    service: CatalogService = Depends(get_catalog_service),
) -> CatalogListResponse:
    catalogs = service.list_catalogs(identity.user_id)
    return CatalogListResponse(catalogs=[CatalogResponse.from_catalog(c) for c in catalogs])


@router.post("", response_model=CatalogResponse, status_code=status.HTTP_201_CREATED)
def create_catalog(
    payload: CatalogCreateRequest,
    *,
    identity: Identity = Depends(get_current_identity),
    service: CatalogService = Depends(get_catalog_service),
) -> CatalogResponse:
    catalog = service.create_catalog(identity.user_id, payload.to_domain())
    return CatalogResponse.from_catalog(catalog)


@router.post("/product-counts", response_model=ProductCountsResponse)
def product_counts(
    payload: ProductCountsRequest,
    *,
    identity: Identity = Depends(get_current_identity),
    service: CatalogService = Depends(get_catalog_service),
) -> ProductCountsResponse:
    return ProductCountsResponse(counts=service.product_counts(identity.user_id, payload.catalog_ids))


@router.get("/{catalog_id}", response_model=CatalogResponse)
def get_catalog(
    catalog_id: str,
    *,
    identity: Identity = Depends(get_current_identity),
    service: CatalogService = Depends(get_catalog_service),
) -> CatalogResponse:
    return CatalogResponse.from_catalog(service.get_catalog(identity.user_id, catalog_id))


@router.patch("/{catalog_id}", response_model=CatalogResponse)
def update_catalog(
    catalog_id: str,
    payload: CatalogUpdateRequest,
    *,
    identity: Identity = Depends(get_current_identity),
    service: CatalogService = Depends(get_catalog_service),
) -> CatalogResponse:
    catalog = service.update_catalog(identity.user_id, catalog_id, payload.to_domain())
    return CatalogResponse.from_catalog(catalog)


@router.delete("/{catalog_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_catalog(
    catalog_id: str,
    *,
    identity: Identity = Depends(get_current_identity),
    service: CatalogService = Depends(get_catalog_service),
) -> Response:
    service.delete_catalog(identity.user_id, catalog_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{catalog_id}/products", response_model=ProductListResponse)
def list_products(
    catalog_id: str,
    *,
    identity: Identity = Depends(get_current_identity),
    service: CatalogService = Depends(get_catalog_service),
) -> ProductListResponse:
    products = service.list_products(identity.user_id, catalog_id)
    return ProductListResponse(products=[ProductResponse.from_product(p) for p in products])


@router.post("/{catalog_id}/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    catalog_id: str,
    payload: ProductCreateRequest,
    *,
    identity: Identity = Depends(get_current_identity),
    service: CatalogService = Depends(get_catalog_service),
) -> ProductResponse:
    product = service.create_product(identity.user_id, catalog_id, payload.to_domain())
    return ProductResponse.from_product(product)


@router.get("/{catalog_id}/products/{product_id}", response_model=ProductResponse)
def get_product(
    catalog_id: str,
    product_id: str,
    *,
    identity: Identity = Depends(get_current_identity),
    service: CatalogService = Depends(get_catalog_service),
) -> ProductResponse:
    return ProductResponse.from_product(service.get_product(identity.user_id, catalog_id, product_id))


@router.patch("/{catalog_id}/products/{product_id}", response_model=ProductResponse)
def update_product(
    catalog_id: str,
    product_id: str,
    payload: ProductUpdateRequest,
    *,
    identity: Identity = Depends(get_current_identity),
    service: CatalogService = Depends(get_catalog_service),
) -> ProductResponse:
    product = service.update_product(identity.user_id, catalog_id, product_id, payload.to_domain())
    return ProductResponse.from_product(product)


@router.delete("/{catalog_id}/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    catalog_id: str,
    product_id: str,
    *,
    identity: Identity = Depends(get_current_identity),
    service: CatalogService = Depends(get_catalog_service),
) -> Response:
    service.delete_product(identity.user_id, catalog_id, product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
