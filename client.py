"""Asynchronous catalog API client with retry/backoff helpers."""

import asyncio
import logging
import random
from collections.abc import Mapping
from typing import Any

import httpx

from config import Settings, get_settings

logger = logging.getLogger(__name__)

BACKOFF_FACTOR = 0.5
BACKOFF_JITTER = 0.25

_DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


class CatalogClientError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def build_query(filters: Mapping[str, Any]) -> dict[str, str]:
    """Keep only filters with a value; booleans go out lowercase."""
    params: dict[str, str] = {}
    for key, value in filters.items():
        if value is None or value == "":
            continue
        params[key] = str(value).lower() if isinstance(value, bool) else str(value)
    return params


def unwrap_envelope(body: Any) -> Any:
    """``{"data": ...}`` unwraps; paginated ``{"data", "meta"}`` stays whole."""
    if isinstance(body, Mapping) and "data" in body and "meta" not in body:
        return body["data"]
    return body


async def _sleep_with_backoff(attempt: int) -> None:
    delay = BACKOFF_FACTOR * (2 ** (attempt - 1))
    await asyncio.sleep(delay + random.uniform(0, BACKOFF_JITTER))


class CatalogClient:
    """Thin wrapper over ``httpx.AsyncClient`` for the catalog endpoints."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        settings: Settings | None = None,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = settings or get_settings()
        headers = dict(_DEFAULT_HEADERS)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.max_retries = max(settings.max_retries, 1)
        self._client = httpx.AsyncClient(
            base_url=(base_url or settings.api_url).rstrip("/"),
            headers=headers,
            timeout=settings.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "CatalogClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, path: str, params: Mapping[str, str] | None = None) -> Any:
        last_error: Exception | None = None
        for attempt in range(1, self.max_retries + 1):
            try:
                resp = await self._client.get(path, params=params)
            except httpx.TransportError as exc:
                logger.warning("GET %s failed (attempt %d/%d): %s", path, attempt, self.max_retries, exc)
                last_error = exc
            else:
                if resp.status_code >= 500:
                    logger.warning(
                        "GET %s returned %d (attempt %d/%d)", path, resp.status_code, attempt, self.max_retries
                    )
                    last_error = CatalogClientError(f"HTTP Error: {resp.status_code}", resp.status_code)
                else:
                    return self._decode(resp)
            if attempt < self.max_retries:
                await _sleep_with_backoff(attempt)
        if isinstance(last_error, CatalogClientError):
            raise last_error
        raise CatalogClientError(f"GET {path} failed: {last_error}") from last_error

    @staticmethod
    def _decode(resp: httpx.Response) -> Any:
        if resp.status_code >= 400:
            message = f"HTTP Error: {resp.status_code}"
            try:
                body = resp.json()
            except ValueError:
                body = None
            if isinstance(body, Mapping) and body.get("message"):
                message = str(body["message"])
            raise CatalogClientError(message, resp.status_code)
        if resp.status_code == 204 or "application/json" not in resp.headers.get("content-type", ""):
            return {}
        try:
            return unwrap_envelope(resp.json())
        except ValueError as exc:
            raise CatalogClientError(f"Invalid JSON from {resp.url}: {exc}", resp.status_code) from exc

    async def get_product(self, product_id: int | str) -> dict[str, Any]:
        data = await self._request(f"/products/{product_id}")
        return dict(data) if isinstance(data, Mapping) else {}

    async def get_product_by_slug(self, slug: str) -> dict[str, Any]:
        data = await self._request(f"/products/slug/{slug}")
        return dict(data) if isinstance(data, Mapping) else {}

    async def list_products(self, **filters: Any) -> dict[str, Any]:
        """One page of products: ``{"data": [...], "meta": {...}}``."""
        body = await self._request("/products", params=build_query(filters))
        if isinstance(body, list):
            return {"data": body, "meta": {}}
        if not isinstance(body, Mapping):
            return {"data": [], "meta": {}}
        data = body.get("data")
        return {
            "data": list(data) if isinstance(data, list) else [],
            "meta": dict(body.get("meta") or {}),
        }

    async def fetch_detail(self, product_id: str) -> dict[str, Any]:
        """Detail-fetch capability for listing expansion and cart enrichment."""
        return await self.get_product(product_id)
