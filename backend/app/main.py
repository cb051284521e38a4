from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.health import router as health_router
from app.api.routes_cart import router as cart_router
from app.api.routes_catalogue import router as catalogue_router
from app.api.routes_order import router as order_router
from app.config import settings
from app.db import init_db
from app.utils.logging import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    configure_logging(settings.LOG_LEVEL)
    init_db(reset=settings.RESET_DB, seed=settings.SEED_CATALOGUE)
    yield


app = FastAPI(title="Mundo Kids Storefront - Backend", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router, prefix="/api", tags=["health"])

app.include_router(catalogue_router, tags=["catalogue"])

app.include_router(cart_router, tags=["cart"])

app.include_router(order_router, prefix="/api/orders", tags=["orders"])
