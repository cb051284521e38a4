from fastapi import APIRouter, Depends

from app.adapters.data_store import SqlDataStore
from app.api.deps import get_store

router = APIRouter()


@router.get("/health", tags=["health"])
def health(store: SqlDataStore = Depends(get_store)):
    db_ok = store.ping()
    return {
        "status": "ok" if db_ok else "degraded",
        "db": db_ok,
    }
