from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from app.adapters.data_store import SqlDataStore
from app.adapters.identity import HeaderIdentityProvider, Identity
from app.db import engine

_store: Optional[SqlDataStore] = None


def get_store() -> SqlDataStore:
    global _store
    if _store is None:
        _store = SqlDataStore(engine)
    return _store


def get_identity(request: Request) -> Optional[Identity]:
    return HeaderIdentityProvider(request.headers).current_user()


def require_identity(identity: Optional[Identity] = Depends(get_identity)) -> Identity:
    if identity is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return identity
