from decimal import Decimal

import pytest

from app.adapters.errors import AccessDenied, StoreConflict, StoreError
from conftest import ALICE, BOB


def _add(store, identity, product_id, qty=1):
    return store.insert(
        "cart_items", {"user_id": identity.id, "product_id": product_id, "quantity": qty}, identity
    )[0]


def test_insert_returns_created_rows(store, catalogue):
    row = _add(store, ALICE, catalogue["A"], 2)
    assert row["id"]
    assert row["quantity"] == 2
    assert row["created_at"] is not None


def test_cart_rows_are_private(store, catalogue):
    _add(store, ALICE, catalogue["A"])
    assert store.select("cart_items", BOB) == []
    # even when Bob asks for Alice's rows by name
    assert store.select("cart_items", BOB, filters={"user_id": ALICE.id}) == []
    assert store.update("cart_items", {"quantity": 9}, BOB, filters={"user_id": ALICE.id}) == []
    assert store.delete("cart_items", BOB, filters={"user_id": ALICE.id}) == 0
    assert store.select("cart_items", ALICE)[0]["quantity"] == 1


def test_cannot_write_rows_for_someone_else(store, catalogue):
    with pytest.raises(AccessDenied):
        store.insert("cart_items", {"user_id": ALICE.id, "product_id": catalogue["A"]}, BOB)
    _add(store, BOB, catalogue["A"])
    with pytest.raises(AccessDenied):
        store.update("cart_items", {"user_id": ALICE.id}, BOB)


def test_increment_adds_in_the_update(store, catalogue):
    _add(store, ALICE, catalogue["A"], 2)
    _add(store, BOB, catalogue["A"], 5)

    rows = store.update(
        "cart_items", {}, ALICE, filters={"product_id": catalogue["A"]}, increments={"quantity": 3}
    )
    assert [r["quantity"] for r in rows] == [5]
    assert store.select("cart_items", BOB)[0]["quantity"] == 5


def test_increment_cannot_touch_the_owner_column(store, catalogue):
    _add(store, ALICE, catalogue["A"])
    with pytest.raises(AccessDenied):
        store.update("cart_items", {}, ALICE, increments={"user_id": 1})


def test_update_needs_something_to_change(store, catalogue):
    _add(store, ALICE, catalogue["A"])
    with pytest.raises(StoreError):
        store.update("cart_items", {}, ALICE)


def test_anonymous_cannot_touch_owned_tables(store, catalogue):
    with pytest.raises(AccessDenied):
        store.select("cart_items", None)
    with pytest.raises(AccessDenied):
        store.select("orders", None)


def test_catalogue_is_public_and_read_only(store, catalogue):
    assert len(store.select("products", None)) == 3
    assert len(store.select("categories", ALICE)) == 2
    with pytest.raises(AccessDenied):
        store.update("products", {"price": Decimal("0.01")}, ALICE)
    with pytest.raises(AccessDenied):
        store.insert("categories", {"name": "X", "color_theme": "blue"}, ALICE)


def test_orders_cannot_be_updated_by_shopper(store, catalogue):
    order = store.insert("orders", {"user_id": ALICE.id, "total_amount": Decimal("1.00")}, ALICE)[0]
    assert order["status"] == "pending"
    with pytest.raises(AccessDenied):
        store.update("orders", {"status": "delivered"}, ALICE, filters={"id": order["id"]})


def test_order_items_follow_order_ownership(store, catalogue):
    order = store.insert("orders", {"user_id": ALICE.id, "total_amount": Decimal("10.00")}, ALICE)[0]
    line = {"order_id": order["id"], "product_id": catalogue["A"], "quantity": 1, "price": Decimal("10.00")}

    with pytest.raises(AccessDenied):
        store.insert("order_items", line, BOB)
    store.insert("order_items", line, ALICE)

    assert len(store.select("order_items", ALICE)) == 1
    assert store.select("order_items", BOB) == []


def test_unique_cart_line_per_product(store, catalogue):
    _add(store, ALICE, catalogue["A"])
    with pytest.raises(StoreConflict):
        _add(store, ALICE, catalogue["A"])


def test_unknown_table_and_column(store):
    with pytest.raises(StoreError):
        store.select("invoices", ALICE)
    with pytest.raises(StoreError):
        store.select("products", ALICE, order_by="sku")


def test_select_ordering_limit_and_search(store, catalogue):
    rows = store.select("products", None, order_by="price", descending=True, limit=2)
    assert [r["name"] for r in rows] == ["Product A", "Product B"]

    found = store.select("products", None, search="BONECA", search_columns=("name", "description"))
    assert [r["name"] for r in found] == ["Product B"]
    assert store.count("products", None, search="carrinho", search_columns=("description",)) == 1


def test_ping(store):
    assert store.ping() is True
