import asyncio
from collections.abc import Callable
from typing import Any

import httpx
import pytest

import client as client_module
from client import CatalogClient, CatalogClientError, build_query, unwrap_envelope
from config import Settings

BASE_URL = "http://catalog.test/api"


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch: pytest.MonkeyPatch) -> list[int]:
    attempts: list[int] = []

    async def fake_sleep(attempt: int) -> None:
        attempts.append(attempt)

    monkeypatch.setattr(client_module, "_sleep_with_backoff", fake_sleep)
    return attempts


def _run(handler: Callable[[httpx.Request], httpx.Response], call: Callable[[CatalogClient], Any]) -> Any:
    async def go() -> Any:
        async with CatalogClient(
            BASE_URL, settings=Settings(max_retries=3), transport=httpx.MockTransport(handler)
        ) as catalog:
            return await call(catalog)

    return asyncio.run(go())


def test_build_query_drops_empty_and_lowercases_booleans() -> None:
    assert build_query({"page": 1, "in_stock": True, "q": None, "brand": "", "sort": "price"}) == {
        "page": "1",
        "in_stock": "true",
        "sort": "price",
    }


@pytest.mark.parametrize(
    ("body", "expected"),
    [
        ({"data": {"id": 1}}, {"id": 1}),
        ({"data": [1], "meta": {"page": 1}}, {"data": [1], "meta": {"page": 1}}),
        ({"id": 1}, {"id": 1}),
        ([1, 2], [1, 2]),
    ],
)
def test_unwrap_envelope(body: Any, expected: Any) -> None:
    assert unwrap_envelope(body) == expected


def test_get_product_unwraps_envelope() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json={"data": {"id": 5, "name_en": "Lamp"}})

    product = _run(handler, lambda c: c.get_product(5))

    assert product == {"id": 5, "name_en": "Lamp"}
    assert seen == ["http://catalog.test/api/products/5"]


def test_get_product_by_slug_path() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/products/slug/desk-lamp-5"
        return httpx.Response(200, json={"data": {"id": 5}})

    assert _run(handler, lambda c: c.get_product_by_slug("desk-lamp-5")) == {"id": 5}


def test_list_products_sends_filters_and_keeps_meta() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert dict(request.url.params) == {"page": "2", "limit": "10", "in_stock": "true"}
        return httpx.Response(200, json={"data": [{"id": 1}], "meta": {"total": 11}})

    page = _run(handler, lambda c: c.list_products(page=2, limit=10, in_stock=True, brand=None))

    assert page == {"data": [{"id": 1}], "meta": {"total": 11}}


def test_list_products_accepts_bare_list() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": [{"id": 1}]})

    assert _run(handler, lambda c: c.list_products()) == {"data": [{"id": 1}], "meta": {}}


def test_client_error_is_not_retried(no_backoff: list[int]) -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(404, json={"message": "Product not found"})

    with pytest.raises(CatalogClientError) as excinfo:
        _run(handler, lambda c: c.get_product(9))

    assert calls == 1
    assert no_backoff == []
    assert excinfo.value.status_code == 404
    assert str(excinfo.value) == "Product not found"


def test_server_error_is_retried_then_raised(no_backoff: list[int]) -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(503, text="unavailable")

    with pytest.raises(CatalogClientError) as excinfo:
        _run(handler, lambda c: c.get_product(9))

    assert calls == 3
    assert no_backoff == [1, 2]
    assert excinfo.value.status_code == 503


def test_transient_failure_recovers() -> None:
    responses = [httpx.Response(500), httpx.Response(200, json={"data": {"id": 3}})]

    def handler(request: httpx.Request) -> httpx.Response:
        return responses.pop(0)

    assert _run(handler, lambda c: c.fetch_detail("3")) == {"id": 3}


def test_transport_errors_are_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(CatalogClientError) as excinfo:
        _run(handler, lambda c: c.get_product(1))

    assert excinfo.value.status_code is None
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


def test_non_json_success_decodes_to_empty() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>", headers={"content-type": "text/html"})

    assert _run(handler, lambda c: c.get_product(1)) == {}


def test_token_is_sent_as_bearer() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["authorization"] == "Bearer secret"
        return httpx.Response(204)

    async def go() -> Any:
        async with CatalogClient(
            BASE_URL, settings=Settings(), token="secret", transport=httpx.MockTransport(handler)
        ) as catalog:
            return await catalog.get_product(1)

    assert asyncio.run(go()) == {}
