import threading
import time

import pytest
from filelock import Timeout
from sqlalchemy import create_engine

from app.adapters.data_store import SqlDataStore
from app.db import init_db
from app.services.cart_service import CartService
from app.services.checkout_service import CheckoutService
from app.services.errors import CartSyncError, CheckoutError
from app.utils.session_locks import SessionLocks
from conftest import ALICE


class SlowStore(SqlDataStore):
    """Store that sleeps before the writes listed in `slow_on` to widen race windows."""

    def __init__(self, bind, slow_on=(), delay=0.2):
        super().__init__(bind)
        self.slow_on = set(slow_on)
        self.delay = delay

    def _pause(self, operation, table):
        if (operation, table) in self.slow_on:
            time.sleep(self.delay)

    def insert(self, table, rows, identity):
        self._pause("insert", table)
        return super().insert(table, rows, identity)

    def update(self, table, patch, identity, filters=None, increments=None):
        self._pause("update", table)
        return super().update(table, patch, identity, filters=filters, increments=increments)


def _run_together(*targets):
    """Start every target at the same moment and collect what each raised."""
    barrier = threading.Barrier(len(targets))
    errors = []

    def wrap(fn):
        def run():
            barrier.wait()
            try:
                fn()
            except Exception as e:
                errors.append(e)

        return run

    threads = [threading.Thread(target=wrap(fn)) for fn in targets]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    assert not any(t.is_alive() for t in threads)
    return errors


@pytest.fixture
def file_engine(tmp_path):
    # a file database so several connections really write at the same time
    eng = create_engine(
        f"sqlite:///{tmp_path / 'shop.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
        future=True,
    )
    init_db(bind=eng, seed=True)
    yield eng
    eng.dispose()


@pytest.fixture
def product_id(file_engine):
    rows = SqlDataStore(file_engine).select("products", None, order_by="name", limit=1)
    return rows[0]["id"]


def _quantity(store, product_id):
    rows = store.select("cart_items", ALICE, filters={"user_id": ALICE.id, "product_id": product_id})
    return rows[0]["quantity"]


def test_concurrent_adds_are_all_counted(store, locks, catalogue):
    CartService(store, ALICE, locks=locks).add_to_cart(catalogue["A"], 1)
    sessions = [CartService(store, ALICE, locks=locks) for _ in range(8)]

    errors = _run_together(*[lambda s=s: s.add_to_cart(catalogue["A"], 1) for s in sessions])

    assert errors == []
    assert _quantity(store, catalogue["A"]) == 9


def test_separate_workers_do_not_lose_increments(file_engine, product_id, tmp_path):
    store = SlowStore(file_engine, slow_on={("update", "cart_items")})
    CartService(store, ALICE, locks=SessionLocks(str(tmp_path / "w0"))).add_to_cart(product_id, 1)

    # each worker has its own lock directory, so nothing but the store orders them
    first = CartService(store, ALICE, locks=SessionLocks(str(tmp_path / "w1")))
    second = CartService(store, ALICE, locks=SessionLocks(str(tmp_path / "w2")))
    errors = _run_together(
        lambda: first.add_to_cart(product_id, 1),
        lambda: second.add_to_cart(product_id, 1),
    )

    assert errors == []
    assert _quantity(store, product_id) == 3


def test_first_add_from_two_workers_makes_one_line(file_engine, product_id, tmp_path):
    store = SlowStore(file_engine, slow_on={("insert", "cart_items")})
    first = CartService(store, ALICE, locks=SessionLocks(str(tmp_path / "w1")))
    second = CartService(store, ALICE, locks=SessionLocks(str(tmp_path / "w2")))

    errors = _run_together(
        lambda: first.add_to_cart(product_id, 2),
        lambda: second.add_to_cart(product_id, 3),
    )

    assert errors == []
    rows = store.select("cart_items", ALICE, filters={"user_id": ALICE.id})
    assert [r["quantity"] for r in rows] == [5]


def test_workers_sharing_a_lock_dir_queue_behind_each_other(store, catalogue, tmp_path):
    lock_dir = str(tmp_path / "shared")
    worker_one = SessionLocks(lock_dir)
    worker_two = SessionLocks(lock_dir, timeout=0.1)
    busy = CartService(store, ALICE, locks=worker_two)

    with worker_one.for_user(ALICE.id):
        errors = _run_together(lambda: busy.add_to_cart(catalogue["A"], 1))
    assert len(errors) == 1
    assert isinstance(errors[0], CartSyncError)
    assert busy.items == ()

    # released, the second worker gets through
    assert busy.add_to_cart(catalogue["A"], 1).quantity == 1


def test_user_lock_is_reentrant_for_its_holder(locks):
    lock = locks.for_user(ALICE.id)
    with lock:
        with locks.for_user(ALICE.id):
            assert lock.is_locked
    assert not lock.is_locked


def test_user_lock_blocks_other_threads(locks, tmp_path):
    other = SessionLocks(str(tmp_path / "locks"), timeout=0.1)
    with locks.for_user(ALICE.id):
        errors = _run_together(lambda: other.for_user(ALICE.id).acquire())
    assert len(errors) == 1
    assert isinstance(errors[0], Timeout)


def test_checkout_slot_held_by_another_worker(tmp_path):
    lock_dir = str(tmp_path / "shared")
    worker_one = SessionLocks(lock_dir)
    worker_two = SessionLocks(lock_dir)
    holding = threading.Event()
    done = threading.Event()

    def hold():
        with worker_one.checkout_slot(ALICE.id) as acquired:
            assert acquired
            holding.set()
            done.wait(timeout=10)

    t = threading.Thread(target=hold)
    t.start()
    try:
        assert holding.wait(timeout=10)
        with worker_two.checkout_slot(ALICE.id) as acquired:
            assert acquired is False
    finally:
        done.set()
        t.join(timeout=10)

    with worker_two.checkout_slot(ALICE.id) as acquired:
        assert acquired is True


def test_simultaneous_checkouts_place_one_order(engine, catalogue, locks):
    store = SlowStore(engine, slow_on={("insert", "orders")}, delay=0.3)
    phone = CartService(store, ALICE, locks=locks)
    phone.add_to_cart(catalogue["A"], 2)
    tablet = CartService(store, ALICE, locks=locks)
    tablet.load_cart()

    placed = []
    errors = _run_together(
        lambda: placed.append(CheckoutService(phone).checkout()),
        lambda: placed.append(CheckoutService(tablet).checkout()),
    )

    assert len(placed) == 1
    assert len(errors) == 1
    assert isinstance(errors[0], CheckoutError)
    assert "in progress" in str(errors[0])
    orders = store.select("orders", ALICE, filters={"user_id": ALICE.id})
    assert [o["id"] for o in orders] == placed
