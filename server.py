"""
FastAPI storefront backend for the product catalog.

Proxies the upstream catalog API and serves normalized view models:
- GET  /api/products                       → listing cards (one per in-stock variant)
- GET  /api/products/{product_id}          → full product detail with initial selection
- POST /api/products/{product_id}/selection → next option selection
"""

import logging
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel

from client import CatalogClient, CatalogClientError
from config import get_settings
from listing import expand_for_listing
from media import selection_images
from models import Product, Variant, normalize_locale
from normalizer import InvalidPayloadError, normalize_product, normalize_products
from selection import disabled_options, initial_selection, select_option

logger = logging.getLogger("server")

# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class ListingPage(BaseModel):
    """Listing cards for one upstream page."""

    data: list[Product]
    meta: dict[str, Any] = {}


class ProductDetail(BaseModel):
    """Full payload for the product detail page."""

    product: Product
    selection: dict[str, str]
    matched_variant: Variant | None
    image_urls: list[str]
    disabled: dict[str, dict[str, bool]]


class SelectionRequest(BaseModel):
    selection: dict[str, str] = {}
    attribute: str
    value: str


class SelectionResponse(BaseModel):
    selection: dict[str, str]
    matched_variant: Variant | None
    image_urls: list[str]
    disabled: dict[str, dict[str, bool]]


# ---------------------------------------------------------------------------
# Upstream access
# ---------------------------------------------------------------------------


def get_client(request: Request) -> CatalogClient:
    client = getattr(request.app.state, "client", None)
    if client is None:
        client = CatalogClient()
        request.app.state.client = client
    return client


def _upstream_error(exc: CatalogClientError) -> HTTPException:
    if exc.status_code == 404:
        return HTTPException(status_code=404, detail="Product not found")
    logger.warning("Upstream catalog request failed: %s", exc)
    return HTTPException(status_code=502, detail="Catalog service unavailable")


async def _load_product(client: CatalogClient, product_id: str, locale: str) -> Product:
    try:
        raw = await client.get_product(product_id)
    except CatalogClientError as exc:
        raise _upstream_error(exc) from exc
    try:
        return normalize_product(raw, locale)
    except InvalidPayloadError as exc:
        raise HTTPException(status_code=404, detail="Product not found") from exc


# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Storefront Catalog API",
    default_response_class=ORJSONResponse,
)

app.add_middleware(GZipMiddleware, minimum_size=500)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().allowed_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
    max_age=86400,
)


@app.on_event("shutdown")
async def shutdown() -> None:
    client = getattr(app.state, "client", None)
    if client is not None:
        await client.aclose()


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/api/products", response_model=ListingPage)
async def list_products(
    request: Request,
    locale: str = "en",
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    client: CatalogClient = Depends(get_client),
):
    """Return listing cards, expanding variant products into one card per variant."""
    locale = normalize_locale(locale)
    reserved = {"locale", "page", "limit"}
    filters = {k: v for k, v in request.query_params.items() if k not in reserved}
    try:
        body = await client.list_products(page=page, limit=limit, **filters)
    except CatalogClientError as exc:
        raise _upstream_error(exc) from exc

    products = normalize_products(body["data"], locale)
    cards = await expand_for_listing(
        products,
        client.fetch_detail,
        locale=locale,
        timeout=get_settings().fetch_timeout,
    )
    return ListingPage(data=cards, meta=body["meta"])


@app.get("/api/products/{product_id}", response_model=ProductDetail)
async def get_product(
    product_id: str,
    locale: str = "en",
    variant: str | None = None,
    client: CatalogClient = Depends(get_client),
):
    """Return full product detail, seeding the selection from ``variant`` if given."""
    product = await _load_product(client, product_id, normalize_locale(locale))
    initial = initial_selection(product, variant)
    return ProductDetail(
        product=product,
        selection=initial.selection,
        matched_variant=initial.matched_variant,
        image_urls=selection_images(product, initial.selection, initial.matched_variant),
        disabled=disabled_options(product),
    )


@app.post("/api/products/{product_id}/selection", response_model=SelectionResponse)
async def change_selection(
    product_id: str,
    body: SelectionRequest,
    locale: str = "en",
    client: CatalogClient = Depends(get_client),
):
    """Apply one option change and return the next selection."""
    product = await _load_product(client, product_id, normalize_locale(locale))
    result = select_option(product, body.selection, body.attribute, body.value)
    return SelectionResponse(
        selection=result.selection,
        matched_variant=result.matched_variant,
        image_urls=selection_images(product, result.selection, result.matched_variant),
        disabled=disabled_options(product),
    )
