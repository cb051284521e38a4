import logging

from fastapi import HTTPException

from app.services.errors import (
    CartError,
    CartSyncError,
    CheckoutError,
    EmptyCartError,
    InvalidQuantityError,
    LoadError,
    NotAuthenticatedError,
    NotFoundError,
)

log = logging.getLogger(__name__)


def http_error(e: CartError) -> HTTPException:
    """Translate a service failure into the response the app shows the shopper."""
    if isinstance(e, (EmptyCartError, InvalidQuantityError)):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, NotAuthenticatedError):
        return HTTPException(status_code=401, detail=str(e))
    if isinstance(e, CheckoutError):
        if e.inconsistent:
            log.critical("order %s left inconsistent after failed checkout", e.order_id)
            return HTTPException(status_code=500, detail=str(e))
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, (LoadError, CartSyncError)):
        return HTTPException(status_code=503, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))
