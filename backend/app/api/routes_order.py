from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.adapters.data_store import SqlDataStore
from app.adapters.identity import Identity
from app.api.deps import get_store, require_identity
from app.api.errors import http_error
from app.schemas.order_schema import CheckoutOut, OrderDetailOut, OrderOut, OrderSummaryOut
from app.services.cart_service import CartService
from app.services.checkout_service import CheckoutService
from app.services.errors import CartError
from app.services.order_service import OrderService

router = APIRouter(tags=["orders"])


def _orders(
    store: SqlDataStore = Depends(get_store),
    identity: Identity = Depends(require_identity),
) -> OrderService:
    return OrderService(store, identity)


@router.post(
    "",
    response_model=CheckoutOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create order from the cart (checkout)",
)
def checkout(
    store: SqlDataStore = Depends(get_store),
    identity: Identity = Depends(require_identity),
):
    cart = CartService(store, identity)
    try:
        cart.load_cart()
        order_id = CheckoutService(cart).checkout()
    except CartError as e:
        raise http_error(e)
    return CheckoutOut(order_id=order_id)


@router.get("", response_model=List[OrderOut], summary="Order history")
def list_orders(
    limit: Optional[int] = Query(None, ge=1, le=100),
    svc: OrderService = Depends(_orders),
):
    try:
        return svc.list_orders(limit)
    except CartError as e:
        raise http_error(e)


@router.get("/summary", response_model=OrderSummaryOut, summary="Order counts by status")
def order_summary(svc: OrderService = Depends(_orders)):
    try:
        return svc.order_summary()
    except CartError as e:
        raise http_error(e)


@router.get("/{order_id}", response_model=OrderDetailOut, summary="Order with its lines")
def get_order(order_id: str, svc: OrderService = Depends(_orders)):
    try:
        return svc.get_order(order_id)
    except CartError as e:
        raise http_error(e)
