import pytest

from app.db import SAMPLE_PRODUCTS, seed_catalogue
from app.services.catalogue_service import CatalogueService
from app.services.errors import NotFoundError


def test_list_categories_by_name(store, catalogue):
    categories = CatalogueService(store).list_categories()
    assert [c.name for c in categories] == ["Brinquedos", "Meninas"]
    assert categories[1].color_theme == "pink"


def test_products_by_category(store, catalogue):
    products = CatalogueService(store).products_by_category(catalogue["toys"])
    assert [p.name for p in products] == ["Product B", "Product C"]


def test_products_by_unknown_category(store, catalogue):
    with pytest.raises(NotFoundError):
        CatalogueService(store).products_by_category("nope")


def test_featured_products_are_limited(store, catalogue):
    featured = CatalogueService(store).featured_products(limit=2)
    assert len(featured) == 2
    assert {p.id for p in featured} <= {catalogue["A"], catalogue["B"], catalogue["C"]}


def test_search_and_paging(store, catalogue):
    svc = CatalogueService(store)
    page = svc.list_products(q="product", page=1, size=2)
    assert page.total == 3
    assert [p.name for p in page.items] == ["Product A", "Product B"]

    page2 = svc.list_products(q="product", page=2, size=2)
    assert [p.name for p in page2.items] == ["Product C"]


def test_get_product(store, catalogue):
    svc = CatalogueService(store)
    assert svc.get_product(catalogue["C"]).stock_quantity == 0
    with pytest.raises(NotFoundError):
        svc.get_product("missing")


def test_seed_catalogue_once(db_session):
    assert seed_catalogue(db_session) == len(SAMPLE_PRODUCTS)
    assert seed_catalogue(db_session) == 0


def test_list_products_over_http(client, catalogue):
    res = client.get("/api/products")
    assert res.status_code == 200
    body = res.json()
    assert body["total"] == 3
    assert "Product A" in [p["name"] for p in body["items"]]


def test_catalogue_routes(client, catalogue):
    assert len(client.get("/api/categories").json()) == 2
    assert len(client.get("/api/products/featured?limit=1").json()) == 1
    res = client.get(f"/api/categories/{catalogue['girls']}/products")
    assert [p["name"] for p in res.json()] == ["Product A"]
    assert client.get(f"/api/products/{catalogue['B']}").json()["age_range"] == "3-10 anos"
    assert client.get("/api/products/missing").status_code == 404
