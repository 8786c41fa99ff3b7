"""
Product normalization: raw catalog payload -> canonical Product.

Missing optional structures (attributes, price/media/weight groups,
variants) degrade to defaults. Only a payload without a product id is
rejected, with ``InvalidPayloadError``.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from attributes import AttributeCatalog, build_attributes
from config import Settings, get_settings
from media import product_images, value_images
from models import (
    EntityRef,
    Price,
    Product,
    RawCatalogPayload,
    Reference,
    Variant,
    normalize_locale,
)
from pricing import parse_amount, resolve_amounts, resolve_base_price
from variants import project_variant

logger = logging.getLogger(__name__)

NEW_PRODUCT_WINDOW = timedelta(days=30)

_UNCATEGORIZED = {"en": "Uncategorized", "ar": "غير مصنف"}

_SLUG_STRIP_RE = re.compile(r"[^\w\s-]", re.ASCII)
_SLUG_SPACE_RE = re.compile(r"\s+")
_SLUG_DASH_RE = re.compile(r"-+")


class InvalidPayloadError(ValueError):
    """The payload has no product identity and must be dropped."""


def slugify(text: str | None) -> str:
    if not text:
        return "item"
    slug = _SLUG_STRIP_RE.sub("", text.lower())
    slug = _SLUG_DASH_RE.sub("-", _SLUG_SPACE_RE.sub("-", slug.strip())).strip("-")
    return slug or "item"


def _reference(entity: EntityRef, locale: str, fallback_name: str, *, with_id_slug: bool) -> Reference:
    name = entity.name.resolve(locale) or fallback_name
    slug = slugify(entity.name.en)
    return Reference(
        id=entity.id,
        name=name,
        name_ar=entity.name.ar,
        slug=f"{slug}-{entity.id}" if with_id_slug else slug,
        logo=entity.logo,
    )


def _category(payload: RawCatalogPayload, locale: str) -> Reference:
    if payload.categories:
        return _reference(payload.categories[0], locale, "Category", with_id_slug=True)
    return Reference(id="0", name=_UNCATEGORIZED[normalize_locale(locale)], slug="uncategorized")


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def is_new_product(created_at: str | None, now: datetime | None = None) -> bool:
    created = _parse_timestamp(created_at)
    if created is None:
        return False
    now = now or datetime.now(timezone.utc)
    return created > now - NEW_PRODUCT_WINDOW


def _base_price(payload: RawCatalogPayload, currency: str) -> Price:
    if payload.price_groups:
        return resolve_base_price(payload.price_groups, currency)
    resolved = resolve_amounts(payload.price, payload.sale_price, currency)
    return resolved if resolved is not None else Price(price=0.0, currency=currency)


def normalize_product(
    raw: RawCatalogPayload | Mapping[str, Any],
    locale: str = "en",
    *,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> Product:
    """Build the canonical Product for one catalog payload."""
    settings = settings or get_settings()
    payload = raw if isinstance(raw, RawCatalogPayload) else RawCatalogPayload.from_api(raw)
    if payload.id is None:
        raise InvalidPayloadError("catalog payload has no product id")

    catalog = AttributeCatalog.build(payload.attributes, locale)
    images_by_value = value_images(payload)
    for attribute_id, attribute in payload.attributes.items():
        for value_id, value in attribute.values.items():
            if value.image:
                images_by_value[(attribute_id, value_id)] = value.image
    attributes = build_attributes(payload.attributes, catalog, images_by_value)

    price = _base_price(payload, settings.currency)

    variants: list[Variant] = []
    for raw_variant in payload.variants:
        variant = project_variant(
            raw_variant,
            payload,
            catalog,
            base_price=price,
            value_images=images_by_value,
        )
        if variant is not None:
            variants.append(variant)

    # A product with variant rows never reports its own scalar quantity
    if payload.variants:
        stock = sum(v.stock for v in variants)
    else:
        stock = payload.quantity or 0
    variant_ids = [v.id for v in variants] if variants else list(payload.variant_ids)

    name = payload.name.resolve(locale) or "Unnamed Product"
    rating = parse_amount(payload.average_rating)

    return Product(
        id=payload.id,
        name=name,
        name_ar=payload.name.ar,
        slug=f"{slugify(payload.name.en)}-{payload.id}",
        description=payload.short_description.resolve(locale),
        description_ar=payload.short_description.ar,
        long_description=payload.long_description.resolve(locale) or None,
        sku=payload.sku or "",
        price=price,
        images=product_images(payload, settings.placeholder_image),
        stock=stock,
        attributes=attributes,
        variants=variants,
        variant_ids=variant_ids,
        has_variants=bool(variants or variant_ids or payload.has_variants),
        category=_category(payload, locale),
        brand=_reference(payload.brand, locale, "Brand", with_id_slug=False) if payload.brand else None,
        vendor=_reference(payload.vendor, locale, "Vendor", with_id_slug=False) if payload.vendor else None,
        rating=rating if rating is not None else 0.0,
        review_count=payload.total_ratings,
        is_new=is_new_product(payload.created_at, now),
        created_at=payload.created_at,
        updated_at=payload.updated_at,
    )


def normalize_products(
    raws: Iterable[RawCatalogPayload | Mapping[str, Any]],
    locale: str = "en",
    *,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> list[Product]:
    """Normalize a page of payloads, dropping those without identity."""
    products: list[Product] = []
    for raw in raws:
        try:
            products.append(normalize_product(raw, locale, settings=settings, now=now))
        except InvalidPayloadError:
            logger.warning("Dropping catalog payload without product id")
    return products
