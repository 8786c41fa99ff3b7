from collections.abc import Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from client import CatalogClientError
from server import app, get_client


class FakeCatalog:
    """Stands in for CatalogClient; serves payloads from memory."""

    def __init__(self, products: dict[str, dict[str, Any]], page: list[dict[str, Any]] | None = None) -> None:
        self.products = products
        self.page = page or []
        self.filters: dict[str, Any] = {}
        self.fail_with: CatalogClientError | None = None

    async def list_products(self, **filters: Any) -> dict[str, Any]:
        self.filters = filters
        if self.fail_with is not None:
            raise self.fail_with
        return {"data": self.page, "meta": {"page": filters.get("page"), "total": len(self.page)}}

    async def get_product(self, product_id: str) -> dict[str, Any]:
        if self.fail_with is not None:
            raise self.fail_with
        if product_id not in self.products:
            raise CatalogClientError("Product not found", 404)
        return self.products[product_id]

    async def fetch_detail(self, product_id: str) -> dict[str, Any]:
        return await self.get_product(product_id)

    async def aclose(self) -> None:
        pass


@pytest.fixture
def catalog(payload: dict[str, Any]) -> FakeCatalog:
    mug = {"id": 102, "name_en": "Mug", "price": "8.00", "quantity": 3, "primary_image": "https://cdn.example.com/mug.jpg"}
    listed_tee = {"id": 101, "name_en": "Classic Cotton Tee", "price": "20.00", "variant_ids": [1001, 1002, 1003, 1004]}
    return FakeCatalog(
        products={"101": payload, "102": mug, "666": {"name_en": "ghost"}},
        page=[listed_tee, mug],
    )


@pytest.fixture
def api(catalog: FakeCatalog) -> Iterator[TestClient]:
    app.dependency_overrides[get_client] = lambda: catalog
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_listing_expands_variants(api: TestClient, catalog: FakeCatalog) -> None:
    resp = api.get("/api/products", params={"page": 2, "limit": 5, "category": "7"})

    assert resp.status_code == 200
    body = resp.json()
    assert [c["default_variant_id"] for c in body["data"]] == ["1001", "1003", "1004", None]
    assert body["data"][0]["price"] == {"price": 15.0, "currency": "JOD", "compare_at_price": 20.0}
    assert body["data"][0]["discount_percent"] == 25
    assert body["data"][3]["name"] == "Mug"
    assert body["meta"] == {"page": 2, "total": 2}
    assert catalog.filters == {"page": 2, "limit": 5, "category": "7"}


def test_listing_upstream_failure_is_bad_gateway(api: TestClient, catalog: FakeCatalog) -> None:
    catalog.fail_with = CatalogClientError("HTTP Error: 503", 503)
    assert api.get("/api/products").status_code == 502


def test_listing_rejects_bad_paging(api: TestClient) -> None:
    assert api.get("/api/products", params={"limit": 0}).status_code == 422


def test_product_detail_seeds_first_in_stock_variant(api: TestClient) -> None:
    resp = api.get("/api/products/101")

    assert resp.status_code == 200
    body = resp.json()
    assert body["product"]["slug"] == "classic-cotton-tee-101"
    assert body["selection"] == {"Color": "Black", "Size": "M"}
    assert body["matched_variant"]["id"] == "1001"
    assert body["image_urls"][0] == "https://cdn.example.com/black.jpg"
    assert body["disabled"]["Size"] == {"M": False, "L": False, "XL": True}


def test_product_detail_deep_link_and_locale(api: TestClient) -> None:
    body = api.get("/api/products/101", params={"variant": "1003", "locale": "ar"}).json()

    assert body["product"]["name"] == "تيشيرت قطني"
    assert body["selection"] == {"اللون": "أبيض", "المقاس": "وسط"}
    assert body["image_urls"][0] == "https://cdn.example.com/white.jpg"


def test_product_without_variants(api: TestClient) -> None:
    body = api.get("/api/products/102").json()
    assert body["selection"] == {}
    assert body["matched_variant"] is None
    assert body["image_urls"] == ["https://cdn.example.com/mug.jpg"]


@pytest.mark.parametrize("product_id", ["999", "666"])
def test_unknown_or_invalid_product_is_not_found(api: TestClient, product_id: str) -> None:
    assert api.get(f"/api/products/{product_id}").status_code == 404


def test_selection_change_falls_back_to_in_stock_variant(api: TestClient) -> None:
    resp = api.post(
        "/api/products/101/selection",
        json={"selection": {"Color": "Black", "Size": "M"}, "attribute": "Size", "value": "L"},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["selection"] == {"Color": "White", "Size": "L"}
    assert body["matched_variant"]["id"] == "1004"
    assert body["image_urls"][0] == "https://cdn.example.com/white.jpg"


def test_selection_change_to_unavailable_value(api: TestClient) -> None:
    body = api.post(
        "/api/products/101/selection",
        json={"selection": {"Color": "Black", "Size": "M"}, "attribute": "Size", "value": "XL"},
    ).json()

    assert body["selection"] == {"Color": "Black", "Size": "XL"}
    assert body["matched_variant"] is None
    # the Black value image still leads the gallery
    assert body["image_urls"][0] == "https://cdn.example.com/black.jpg"
