"""Projection of raw variant rows into canonical ``Variant`` records."""

import logging
from collections.abc import Mapping

from attributes import AttributeCatalog
from media import group_image
from models import Dimensions, Price, RawCatalogPayload, RawVariant, Variant
from pricing import resolve_group

logger = logging.getLogger(__name__)


def variant_sku(product_sku: str | None, raw: RawVariant) -> str:
    if product_sku and raw.sku:
        return f"{product_sku}-{raw.sku}"
    if raw.sku:
        return raw.sku
    if product_sku:
        return f"{product_sku}-{raw.id}"
    return raw.id


def variant_dimensions(payload: RawCatalogPayload, group_id: str | None) -> Dimensions | None:
    group = payload.weight_group(group_id)
    if group is None:
        return None
    return Dimensions(weight=group.weight, length=group.length, width=group.width, height=group.height)


def project_variant(
    raw: RawVariant,
    payload: RawCatalogPayload,
    catalog: AttributeCatalog,
    *,
    base_price: Price,
    value_images: Mapping[tuple[str, str], str] | None = None,
) -> Variant | None:
    """Build one Variant, or None when its attribute values do not resolve.

    A price group that does not resolve falls back to ``base_price``; an
    unresolvable media or weight group leaves that field empty.
    """
    attributes = catalog.resolve(raw.attribute_values)
    if attributes is None:
        logger.debug("Excluding variant %s of product %s: unresolved attribute value", raw.id, payload.id)
        return None

    price = resolve_group(payload.price_group(raw.price_group_id), base_price.currency)
    if price is None:
        logger.debug("Variant %s: price group %s unresolved, using base price", raw.id, raw.price_group_id)
        price = base_price

    image = raw.image or group_image(payload, raw.media_group_id)
    if not image and value_images:
        for attribute_id, attribute in payload.attributes.items():
            value_id = raw.attribute_values.get(attribute_id)
            if attribute.controls_media and value_id is not None:
                image = value_images.get((attribute_id, value_id))
                break

    return Variant(
        id=raw.id,
        attributes=attributes,
        price=price,
        stock=raw.quantity,
        image=image,
        dimensions=variant_dimensions(payload, raw.weight_group_id),
        sku=variant_sku(payload.sku, raw),
    )
