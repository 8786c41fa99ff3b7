"""
Cart line helpers: variant images and effective unit prices.

Cart storage lives elsewhere; these functions only derive display data
for lines the caller already holds.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict

from config import Settings
from listing import DetailFetch, fetch_detail_product
from media import representative_image
from models import Product
from pricing import effective_amount

logger = logging.getLogger(__name__)


class LinePricing(BaseModel):
    model_config = ConfigDict(frozen=True)

    price: Any = None
    sale_price: Any = None


class CartLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    product_id: str
    variant_id: str | None = None
    quantity: int = 1
    name: str = ""
    image: str | None = None
    product: LinePricing = LinePricing()
    variant: LinePricing | None = None  # only for variant lines


def effective_unit_price(line: CartLine) -> float:
    pricing = line.variant if line.variant is not None else line.product
    return effective_amount(pricing.price, pricing.sale_price)


def cart_total(lines: Sequence[CartLine]) -> float:
    return sum(effective_unit_price(line) * line.quantity for line in lines)


def _with_variant_image(line: CartLine, detail: Product | None) -> CartLine:
    if detail is None or line.variant_id is None:
        return line
    variant = detail.variant(line.variant_id)
    if variant is None:
        logger.debug("Cart line %s: variant %s not found on product %s", line.id, line.variant_id, detail.id)
        return line
    image = representative_image(detail, variant)
    if not image:
        return line
    return line.model_copy(update={"image": image})


async def enrich_cart_lines(
    lines: Sequence[CartLine],
    detail_fetch: DetailFetch,
    *,
    locale: str = "en",
    timeout: float | None = None,
    settings: Settings | None = None,
) -> list[CartLine]:
    """Give each variant line the image of its variant."""
    product_ids: list[str] = []
    for line in lines:
        if line.variant_id is not None and line.product_id not in product_ids:
            product_ids.append(line.product_id)
    if not product_ids:
        return list(lines)

    results = await asyncio.gather(
        *[fetch_detail_product(pid, detail_fetch, locale, timeout, settings) for pid in product_ids]
    )
    details = dict(zip(product_ids, results))
    return [_with_variant_image(line, details.get(line.product_id)) for line in lines]
