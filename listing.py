"""
Listing expansion: one display card per in-stock variant.

List endpoints often reference variants by id only. Those products get
their detail fetched (concurrently, once per product id per call) and
normalized before expansion. A product whose fetch fails, or that has no
in-stock variant, is emitted once in its base form.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

from config import Settings
from media import front_load, representative_image
from models import DisplayCard, Product, RawCatalogPayload, Variant
from normalizer import normalize_product

logger = logging.getLogger(__name__)

DetailFetch = Callable[[str], Awaitable[RawCatalogPayload | Mapping[str, Any]]]


def to_display_card(base: Product, variant: Variant, media_source: Product | None = None) -> DisplayCard:
    """Override price, stock and lead image of ``base`` with one variant's."""
    image = representative_image(media_source or base, variant)
    images = front_load(image, base.images) if image else list(base.images)
    return DisplayCard.model_validate(
        {
            **dict(base),
            "has_variants": True,
            "default_variant_id": variant.id,
            "price": variant.price,
            "stock": variant.stock,
            "images": images,
        }
    )


def expand_product(base: Product, detail: Product | None = None) -> list[Product]:
    source = detail if detail is not None and detail.variants else base
    in_stock = [v for v in source.variants if v.in_stock]
    if not in_stock:
        return [base]
    return [to_display_card(base, v, media_source=source) for v in in_stock]


def _needs_detail(product: Product) -> bool:
    return not product.variants and bool(product.variant_ids or product.has_variants)


async def fetch_detail_product(
    product_id: str,
    detail_fetch: DetailFetch,
    locale: str,
    timeout: float | None,
    settings: Settings | None,
) -> Product | None:
    """Fetch and normalize one product detail; None on any failure."""
    try:
        if timeout is not None:
            raw = await asyncio.wait_for(detail_fetch(product_id), timeout)
        else:
            raw = await detail_fetch(product_id)
        return normalize_product(raw, locale, settings=settings)
    except asyncio.TimeoutError:
        logger.warning("Detail fetch for product %s timed out after %ss", product_id, timeout)
    except Exception as exc:
        logger.warning("Detail fetch for product %s failed: %s", product_id, exc)
    return None


async def expand_for_listing(
    products: Sequence[Product],
    detail_fetch: DetailFetch | None = None,
    *,
    locale: str = "en",
    timeout: float | None = None,
    settings: Settings | None = None,
) -> list[Product]:
    """Expand a page of base products into listing cards, in input order."""
    pending: list[str] = []
    if detail_fetch is not None:
        for product in products:
            if _needs_detail(product) and product.id not in pending:
                pending.append(product.id)

    details: dict[str, Product | None] = {}
    if pending:
        logger.info("Fetching details for %d of %d listed products", len(pending), len(products))
        results = await asyncio.gather(
            *[fetch_detail_product(pid, detail_fetch, locale, timeout, settings) for pid in pending]
        )
        details = dict(zip(pending, results))

    cards: list[Product] = []
    for product in products:
        cards.extend(expand_product(product, details.get(product.id)))
    return cards
