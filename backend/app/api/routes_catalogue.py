from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.adapters.data_store import SqlDataStore
from app.adapters.identity import Identity
from app.api.deps import get_identity, get_store
from app.api.errors import http_error
from app.schemas.catalogue_schema import CategoryOut, ProductOut, ProductPage
from app.services.catalogue_service import CatalogueService
from app.services.errors import CartError

router = APIRouter(tags=["catalogue"])


def _catalogue(
    store: SqlDataStore = Depends(get_store),
    identity: Optional[Identity] = Depends(get_identity),
) -> CatalogueService:
    return CatalogueService(store, identity)


@router.get("/api/categories", response_model=List[CategoryOut], summary="List categories")
def list_categories(svc: CatalogueService = Depends(_catalogue)):
    try:
        return svc.list_categories()
    except CartError as e:
        raise http_error(e)


@router.get(
    "/api/categories/{category_id}/products",
    response_model=List[ProductOut],
    summary="Products in a category",
)
def products_by_category(category_id: str, svc: CatalogueService = Depends(_catalogue)):
    try:
        return svc.products_by_category(category_id)
    except CartError as e:
        raise http_error(e)


@router.get("/api/products", response_model=ProductPage, summary="List products")
def list_products(
    q: Optional[str] = Query(None, description="search term"),
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=200),
    svc: CatalogueService = Depends(_catalogue),
):
    try:
        return svc.list_products(q=q, page=page, size=size)
    except CartError as e:
        raise http_error(e)


@router.get("/api/products/featured", response_model=List[ProductOut], summary="Featured products")
def featured_products(
    limit: Optional[int] = Query(None, ge=1, le=50),
    svc: CatalogueService = Depends(_catalogue),
):
    try:
        return svc.featured_products(limit)
    except CartError as e:
        raise http_error(e)


@router.get("/api/products/{product_id}", response_model=ProductOut, summary="Get product")
def get_product(product_id: str, svc: CatalogueService = Depends(_catalogue)):
    try:
        return svc.get_product(product_id)
    except CartError as e:
        raise http_error(e)
