import logging
from typing import Optional

from filelock import Timeout

from app.adapters.data_store import SqlDataStore
from app.adapters.errors import StoreError
from app.adapters.identity import Identity
from app.repositories.order_repo import OrderRepository
from app.services.cart_service import CartService
from app.services.errors import CartError, CheckoutError, EmptyCartError

log = logging.getLogger(__name__)


class CheckoutService:
    """
    Turns the current cart into an order.

    The store has no multi-call transactions, so checkout runs as a saga:

      1. insert the order (status pending, total = cart total)
      2. insert one order item per cart line with the price frozen from the cart
      3. clear the cart

    If step 2 or 3 fails the order items and the order row are deleted again
    and the cart is left as it was. Nothing is retried; the caller decides
    whether to try again.
    """

    def __init__(self, cart: CartService, store: Optional[SqlDataStore] = None):
        self.cart = cart
        self.store = store or cart.store
        # the cart clears itself through these, so they must be the same instance
        self.locks = cart.locks

    def checkout(self) -> str:
        identity = self.cart.identity
        if identity is None:
            raise CheckoutError("sign in to place an order")

        with self.locks.checkout_slot(identity.id) as acquired:
            if not acquired:
                raise CheckoutError("a checkout is already in progress for this account")
            # hold the cart lock so no mutation slips in between snapshot and clear
            cart_lock = self.locks.for_user(identity.id)
            try:
                cart_lock.acquire()
            except Timeout as e:
                raise CheckoutError("the cart is busy, try again") from e
            try:
                return self._place_order(identity)
            finally:
                cart_lock.release()

    def _place_order(self, identity: Identity) -> str:
        lines = list(self.cart.items)
        if not lines:
            raise EmptyCartError("Cart is empty")
        total = self.cart.total_price
        orders = OrderRepository(self.store, identity)

        # 1) order header
        try:
            order = orders.create_order(total)
        except StoreError as e:
            log.error("checkout for user %s: order insert failed: %s", identity.id, e)
            raise CheckoutError("could not create the order") from e
        order_id = order["id"]
        log.info("checkout for user %s: order %s created, total %s", identity.id, order_id, total)

        # 2) order items, prices frozen from the cart snapshot
        try:
            orders.create_items(
                order_id,
                [
                    {
                        "product_id": line.product_id,
                        "quantity": line.quantity,
                        "price": line.product.price,
                    }
                    for line in lines
                ],
            )
        except StoreError as e:
            self._roll_back(orders, order_id, e)

        # 3) empty the cart only once the items are safely stored
        try:
            self.cart.clear_cart()
        except CartError as e:
            self._roll_back(orders, order_id, e)

        log.info("checkout for user %s: order %s placed with %d line(s)", identity.id, order_id, len(lines))
        return order_id

    def _roll_back(self, orders: OrderRepository, order_id: str, cause: Exception):
        log.warning("checkout: rolling back order %s after failure: %s", order_id, cause)
        try:
            orders.delete_items(order_id)
            orders.delete_order(order_id)
        except StoreError as e:
            log.error("checkout: rollback of order %s failed, order left behind: %s", order_id, e)
            raise CheckoutError(
                f"checkout failed and order {order_id} could not be rolled back",
                order_id=order_id,
                inconsistent=True,
            ) from e
        raise CheckoutError("checkout failed, no order was placed") from cause
