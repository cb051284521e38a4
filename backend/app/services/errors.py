from typing import Optional


class CartError(Exception):
    """Base class for failures surfaced by the cart and checkout services."""
    pass


class LoadError(CartError):
    """A read failed: the store was unreachable or no identity was present."""
    pass


class InvalidQuantityError(CartError, ValueError):
    pass


class NotFoundError(CartError, LookupError):
    pass


class ProductNotFoundError(NotFoundError):
    pass


class NotAuthenticatedError(CartError, PermissionError):
    pass


class CartSyncError(CartError):
    """A cart mutation could not be persisted; local state was left as it was."""
    pass


class CheckoutError(CartError):
    """
    Checkout did not complete. When `inconsistent` is set the rollback of a
    partially written order also failed and `order_id` names the leftover row.
    """

    def __init__(self, message: str, order_id: Optional[str] = None, inconsistent: bool = False):
        super().__init__(message)
        self.order_id = order_id
        self.inconsistent = inconsistent


class EmptyCartError(CheckoutError):
    pass
