import logging
from contextlib import contextmanager
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from filelock import Timeout

from app.adapters.data_store import SqlDataStore
from app.adapters.errors import StoreConflict, StoreError
from app.adapters.identity import Identity
from app.repositories.cart_repo import CartRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.cart_schema import CartLine
from app.schemas.catalogue_schema import ProductOut
from app.services.cart_state import CartState
from app.services.errors import (
    CartSyncError,
    InvalidQuantityError,
    LoadError,
    NotAuthenticatedError,
    NotFoundError,
    ProductNotFoundError,
)
from app.utils.session_locks import SessionLocks, session_locks

log = logging.getLogger(__name__)


def _is_quantity(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class CartService:
    """
    The signed-in user's cart, kept in step with the cart_items table.

    Every mutation writes to the store first and then updates `state` from
    the row the store handed back. If the write fails the local state is not
    touched and the error goes to the caller; nothing is retried here.
    """

    def __init__(
        self,
        store: SqlDataStore,
        identity: Optional[Identity],
        locks: Optional[SessionLocks] = None,
    ):
        self.store = store
        self.identity = identity
        self.locks = locks or session_locks
        self.state = CartState()
        self.products = ProductRepository(store, identity)

    # ---- read-only view ----
    @property
    def items(self) -> Tuple[CartLine, ...]:
        return self.state.items

    @property
    def total_items(self) -> int:
        return self.state.total_items

    @property
    def total_price(self) -> Decimal:
        return self.state.total_price

    @property
    def loading(self) -> bool:
        return self.state.loading

    # ---- helpers ----
    def _repo(self) -> CartRepository:
        if self.identity is None:
            raise NotAuthenticatedError("sign in to change the cart")
        return CartRepository(self.store, self.identity)

    @contextmanager
    def _serialized(self):
        lock = self.locks.for_user(self.identity.id)
        try:
            lock.acquire()
        except Timeout as e:
            log.warning("cart lock for user %s still held after %ss", self.identity.id, lock.timeout)
            raise CartSyncError("the cart is busy, try again") from e
        try:
            yield
        finally:
            lock.release()

    @staticmethod
    def _line(row: Dict, product: ProductOut) -> CartLine:
        return CartLine(
            id=row["id"],
            user_id=row["user_id"],
            product_id=row["product_id"],
            quantity=row["quantity"],
            product=product,
        )

    # ---- operations ----
    def load_cart(self) -> List[CartLine]:
        """Replace the local cart with whatever the store holds right now."""
        if self.identity is None:
            raise LoadError("cannot load a cart without a signed-in user")
        repo = CartRepository(self.store, self.identity)

        self.state.set_loading(True)
        try:
            rows = repo.list_rows()
            products = {
                p.id: p for p in self.products.get_many([r["product_id"] for r in rows])
            }
        except StoreError as e:
            log.error("loading cart for user %s failed: %s", self.identity.id, e)
            raise LoadError("could not load the cart") from e
        finally:
            self.state.set_loading(False)

        lines = [self._line(r, products[r["product_id"]]) for r in rows if r["product_id"] in products]
        self.state.replace(lines)
        log.debug("loaded %d cart line(s) for user %s", len(lines), self.identity.id)
        return lines

    def add_to_cart(self, product_id: str, quantity: int = 1) -> CartLine:
        if not _is_quantity(quantity) or quantity <= 0:
            raise InvalidQuantityError("Quantity must be a positive integer")
        repo = self._repo()

        with self._serialized():
            try:
                product = self.products.get(product_id)
                if product is None:
                    raise ProductNotFoundError(f"Product {product_id} not found")
                row = repo.increment_quantity(product_id, quantity)
                if row is None:
                    try:
                        row = repo.insert_row(product_id, quantity)
                    except StoreConflict:
                        # another worker created the line first
                        row = repo.increment_quantity(product_id, quantity)
                        if row is None:
                            raise
            except StoreError as e:
                log.error("add_to_cart %s x%d failed: %s", product_id, quantity, e)
                raise CartSyncError("could not add the item to the cart") from e

            line = self._line(row, product)
            self.state.upsert(line)

        log.info("user %s cart: %s now x%d", self.identity.id, product_id, line.quantity)
        return line

    def update_quantity(self, product_id: str, new_quantity: int) -> Optional[CartLine]:
        if not _is_quantity(new_quantity):
            raise InvalidQuantityError("Quantity must be an integer")
        if new_quantity <= 0:
            self.remove_from_cart(product_id)
            return None
        repo = self._repo()

        with self._serialized():
            try:
                product = self.products.get(product_id)
                if product is None:
                    raise ProductNotFoundError(f"Product {product_id} not found")
                row = repo.set_quantity(product_id, new_quantity)
                if row is None:
                    raise NotFoundError(f"Product {product_id} is not in the cart")
            except StoreError as e:
                log.error("update_quantity %s -> %d failed: %s", product_id, new_quantity, e)
                raise CartSyncError("could not update the cart") from e

            line = self._line(row, product)
            self.state.upsert(line)
        return line

    def remove_from_cart(self, product_id: str) -> None:
        repo = self._repo()
        with self._serialized():
            try:
                deleted = repo.delete_row(product_id)
            except StoreError as e:
                log.error("remove_from_cart %s failed: %s", product_id, e)
                raise CartSyncError("could not remove the item from the cart") from e
            self.state.drop(product_id)
        if deleted:
            log.info("user %s cart: removed %s", self.identity.id, product_id)

    def clear_cart(self) -> None:
        repo = self._repo()
        with self._serialized():
            try:
                deleted = repo.delete_all()
            except StoreError as e:
                log.error("clear_cart for user %s failed: %s", self.identity.id, e)
                raise CartSyncError("could not clear the cart") from e
            self.state.replace([])
        log.info("user %s cart cleared (%d line(s))", self.identity.id, deleted)
