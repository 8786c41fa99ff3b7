"""
Price resolution for price groups.

A group's effective price is its sale price when ``0 < sale < price``,
otherwise its list price. The list price becomes the compare-at ("was")
price only when a sale applied. A product advertises the cheapest
effective price across all of its groups.
"""

import logging
import math
from collections.abc import Mapping
from typing import Any

from models import DEFAULT_CURRENCY, Price, PriceGroup

logger = logging.getLogger(__name__)


def parse_amount(value: Any) -> float | None:
    """Parse a money amount served as a number or numeric string."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        amount = float(value)
    elif isinstance(value, str):
        try:
            amount = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return amount if math.isfinite(amount) else None


def resolve_amounts(price: Any, sale_price: Any, currency: str = DEFAULT_CURRENCY) -> Price | None:
    """Apply the sale precedence rule to one price/sale pair.

    Returns None when the list price is missing or non-numeric.
    """
    list_price = parse_amount(price)
    if list_price is None:
        return None
    sale = parse_amount(sale_price)
    if sale is not None and 0 < sale < list_price:
        return Price(price=sale, currency=currency, compare_at_price=list_price)
    return Price(price=list_price, currency=currency)


def resolve_group(group: PriceGroup | None, currency: str = DEFAULT_CURRENCY) -> Price | None:
    if group is None:
        return None
    return resolve_amounts(group.price, group.sale_price, group.currency or currency)


def resolve_base_price(groups: Mapping[str, PriceGroup], currency: str = DEFAULT_CURRENCY) -> Price:
    """Pick the group with the lowest effective price.

    Groups with unusable amounts are skipped; ties keep the first group in
    payload order. With no usable group the price is 0 with no compare-at.
    """
    best: Price | None = None
    for group_id, group in groups.items():
        resolved = resolve_group(group, currency)
        if resolved is None:
            logger.debug("Skipping price group %s: unusable price %r", group_id, group.price)
            continue
        if best is None or resolved.price < best.price:
            best = resolved
    return best if best is not None else Price(price=0.0, currency=currency)


def effective_amount(price: Any, sale_price: Any) -> float:
    resolved = resolve_amounts(price, sale_price)
    return resolved.price if resolved is not None else 0.0

