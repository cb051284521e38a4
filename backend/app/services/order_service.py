import logging
from typing import Dict, List, Optional

from app.adapters.data_store import SqlDataStore
from app.adapters.errors import StoreError
from app.adapters.identity import Identity
from app.config import settings
from app.models.order import OrderStatus
from app.repositories.order_repo import OrderRepository
from app.schemas.order_schema import (
    OrderDetailOut,
    OrderLineOut,
    OrderOut,
    OrderSummaryOut,
)
from app.services.errors import LoadError, NotAuthenticatedError, NotFoundError

log = logging.getLogger(__name__)


class OrderService:
    """
    Read side of the order history shown on the profile screen.

    An order only counts once its items exist. A checkout still between its
    first and second write (or one being rolled back) is therefore never
    listed.
    """

    def __init__(self, store: SqlDataStore, identity: Optional[Identity]):
        if identity is None:
            raise NotAuthenticatedError("sign in to see your orders")
        self.identity = identity
        self.repo = OrderRepository(store, identity)

    def _committed(self) -> List[Dict]:
        try:
            orders = self.repo.recent()
            with_items = self.repo.orders_with_items([o["id"] for o in orders])
        except StoreError as e:
            log.error("loading orders for user %s failed: %s", self.identity.id, e)
            raise LoadError("could not load orders") from e
        return [o for o in orders if o["id"] in with_items]

    def list_orders(self, limit: Optional[int] = None) -> List[OrderOut]:
        limit = limit or settings.ORDER_HISTORY_LIMIT
        return [OrderOut.model_validate(o) for o in self._committed()[:limit]]

    def get_order(self, order_id: str) -> OrderDetailOut:
        try:
            order = self.repo.get_order(order_id)
            items = self.repo.list_items(order_id) if order else []
        except StoreError as e:
            raise LoadError("could not load the order") from e
        if not order or not items:
            raise NotFoundError(f"Order {order_id} not found")
        return OrderDetailOut(
            **OrderOut.model_validate(order).model_dump(),
            lines=[OrderLineOut.model_validate(i) for i in items],
        )

    def order_summary(self) -> OrderSummaryOut:
        orders = self._committed()
        return OrderSummaryOut(
            total=len(orders),
            pending=sum(1 for o in orders if o["status"] == OrderStatus.PENDING),
            delivered=sum(1 for o in orders if o["status"] == OrderStatus.DELIVERED),
        )
