from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.adapters.data_store import SqlDataStore
from app.adapters.errors import StoreUnavailable
from app.adapters.identity import Identity
from app.api.deps import get_store
from app.db import init_db
from app.main import app
from app.models.category import Category, ColorTheme
from app.models.product import Product
from app.services.cart_service import CartService
from app.utils.session_locks import SessionLocks

ALICE = Identity(id="user-alice", email="alice@example.com")
BOB = Identity(id="user-bob", email="bob@example.com")


class FailingStore(SqlDataStore):
    """
    Store that records every write and raises StoreUnavailable for the
    (operation, table) pairs listed in `fail_on`.
    """

    def __init__(self, bind, fail_on=()):
        super().__init__(bind)
        self.fail_on = set(fail_on)
        self.writes = []

    def _maybe_fail(self, operation, table):
        if (operation, table) in self.fail_on:
            raise StoreUnavailable(f"injected failure: {operation} {table}")

    def select(self, table, identity, *args, **kwargs):
        self._maybe_fail("select", table)
        return super().select(table, identity, *args, **kwargs)

    def insert(self, table, rows, identity):
        self.writes.append(("insert", table))
        self._maybe_fail("insert", table)
        return super().insert(table, rows, identity)

    def update(self, table, patch, identity, filters=None, increments=None):
        self.writes.append(("update", table))
        self._maybe_fail("update", table)
        return super().update(table, patch, identity, filters=filters, increments=increments)

    def delete(self, table, identity, filters=None):
        self.writes.append(("delete", table))
        self._maybe_fail("delete", table)
        return super().delete(table, identity, filters=filters)


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    init_db(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db_session(engine):
    Session = sessionmaker(bind=engine, autoflush=False)
    s = Session()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def catalogue(db_session):
    """Two categories and three products with known prices."""
    girls = Category(name="Meninas", color_theme=ColorTheme.PINK)
    toys = Category(name="Brinquedos", color_theme=ColorTheme.NEUTRAL)
    db_session.add_all([girls, toys])
    db_session.flush()
    a = Product(name="Product A", description="Vestido rosa", price=Decimal("10.00"),
                category_id=girls.id, stock_quantity=15, age_range="3-8 anos")
    b = Product(name="Product B", description="Boneca fashion", price=Decimal("5.50"),
                category_id=toys.id, stock_quantity=10, age_range="3-10 anos")
    c = Product(name="Product C", description="Carrinho azul", price=Decimal("3.00"),
                category_id=toys.id, stock_quantity=0, age_range="5-12 anos")
    db_session.add_all([a, b, c])
    db_session.flush()
    ids = {"A": a.id, "B": b.id, "C": c.id, "girls": girls.id, "toys": toys.id}
    db_session.commit()
    return ids


@pytest.fixture
def store(engine):
    return SqlDataStore(engine)


@pytest.fixture
def failing_store(engine):
    def make(*fail_on):
        return FailingStore(engine, fail_on=fail_on)

    return make


@pytest.fixture
def locks(tmp_path):
    return SessionLocks(lock_dir=str(tmp_path / "locks"))


@pytest.fixture
def cart(store, locks):
    return CartService(store, ALICE, locks=locks)


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
