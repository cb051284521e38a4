import logging
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Tuple

from app.schemas.cart_schema import CartLine, CartOut

log = logging.getLogger(__name__)

Listener = Callable[["CartState"], None]


class CartState:
    """
    Observable container for the current user's cart.

    Lines are kept in an immutable tuple and totals are derived from them on
    every read, so they can never drift from the lines. Listeners are called
    after each change with the state itself.
    """

    def __init__(self):
        self._items: Tuple[CartLine, ...] = ()
        self._loading = False
        self._listeners: List[Listener] = []

    @property
    def items(self) -> Tuple[CartLine, ...]:
        return self._items

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def total_items(self) -> int:
        return sum(line.quantity for line in self._items)

    @property
    def total_price(self) -> Decimal:
        return sum((line.line_total for line in self._items), Decimal("0.00"))

    def is_empty(self) -> bool:
        return not self._items

    def line_for(self, product_id: str) -> Optional[CartLine]:
        return next((line for line in self._items if line.product_id == product_id), None)

    def snapshot(self) -> CartOut:
        return CartOut(
            items=list(self._items),
            total_items=self.total_items,
            total_price=self.total_price,
            loading=self._loading,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # mutators are only called by CartService after the store confirmed a write
    def replace(self, lines: Iterable[CartLine]):
        self._items = tuple(lines)
        self._notify()

    def upsert(self, line: CartLine):
        if self.line_for(line.product_id) is None:
            self._items = self._items + (line,)
        else:
            self._items = tuple(
                line if existing.product_id == line.product_id else existing
                for existing in self._items
            )
        self._notify()

    def drop(self, product_id: str):
        kept = tuple(line for line in self._items if line.product_id != product_id)
        if len(kept) != len(self._items):
            self._items = kept
            self._notify()

    def set_loading(self, loading: bool):
        if loading != self._loading:
            self._loading = loading
            self._notify()

    def _notify(self):
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                log.exception("cart listener %r failed", listener)
