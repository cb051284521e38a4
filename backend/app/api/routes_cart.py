from fastapi import APIRouter, Depends

from app.adapters.data_store import SqlDataStore
from app.adapters.identity import Identity
from app.api.deps import get_store, require_identity
from app.api.errors import http_error
from app.schemas.cart_schema import AddItemIn, CartOut, UpdateQuantityIn
from app.services.cart_service import CartService
from app.services.errors import CartError

router = APIRouter(prefix="/api/cart", tags=["cart"])


def _loaded_cart(
    store: SqlDataStore = Depends(get_store),
    identity: Identity = Depends(require_identity),
) -> CartService:
    svc = CartService(store, identity)
    try:
        svc.load_cart()
    except CartError as e:
        raise http_error(e)
    return svc


@router.get("", response_model=CartOut, summary="Get cart")
def get_cart(svc: CartService = Depends(_loaded_cart)):
    return svc.state.snapshot()


@router.post("/items", response_model=CartOut, summary="Add item to cart")
def add_item(payload: AddItemIn, svc: CartService = Depends(_loaded_cart)):
    try:
        svc.add_to_cart(payload.product_id, payload.quantity)
    except CartError as e:
        raise http_error(e)
    return svc.state.snapshot()


@router.patch("/items/{product_id}", response_model=CartOut, summary="Change item quantity")
def update_item(product_id: str, payload: UpdateQuantityIn, svc: CartService = Depends(_loaded_cart)):
    try:
        svc.update_quantity(product_id, payload.quantity)
    except CartError as e:
        raise http_error(e)
    return svc.state.snapshot()


@router.delete("/items/{product_id}", response_model=CartOut, summary="Remove item")
def remove_item(product_id: str, svc: CartService = Depends(_loaded_cart)):
    try:
        svc.remove_from_cart(product_id)
    except CartError as e:
        raise http_error(e)
    return svc.state.snapshot()


@router.delete("", response_model=CartOut, summary="Empty the cart")
def clear_cart(svc: CartService = Depends(_loaded_cart)):
    try:
        svc.clear_cart()
    except CartError as e:
        raise http_error(e)
    return svc.state.snapshot()
