"""
Image resolution for products and variants.

Product gallery order: groups that contain a primary image come first,
inside each group the group-primary image comes first, and URLs are
deduplicated on first sight. A variant's representative image falls back
from its own image, to the image of its controls-media attribute value,
to the product's first image.
"""

import logging
from collections.abc import Iterable, Mapping

from models import MediaGroup, Product, RawCatalogPayload, Variant

logger = logging.getLogger(__name__)


def _dedup(urls: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for url in urls:
        if url and url not in seen:
            seen.add(url)
            result.append(url)
    return result


def ordered_media(groups: Iterable[MediaGroup]) -> list[str]:
    # sorted() is stable, so payload order survives inside each bucket
    ordered_groups = sorted(groups, key=lambda g: not g.has_primary)
    urls: list[str] = []
    for group in ordered_groups:
        items = sorted(group.media, key=lambda m: not m.is_group_primary)
        urls.extend(item.url for item in items)
    return _dedup(urls)


def group_image(payload: RawCatalogPayload, group_id: str | None) -> str | None:
    """First canonical image of one media group, if the group resolves."""
    group = payload.media_group(group_id)
    if group is None:
        return None
    images = ordered_media([group])
    return images[0] if images else None


def product_images(payload: RawCatalogPayload, placeholder: str) -> list[str]:
    """Canonical gallery; never empty."""
    images = ordered_media(payload.media_groups.values())
    if not images:
        images = _dedup(item.url for item in payload.media)
    if not images and payload.primary_image:
        images = [payload.primary_image]
    if not images:
        logger.debug("Product %s has no media, using placeholder", payload.id)
        images = [placeholder]
    return images


def value_images(payload: RawCatalogPayload) -> dict[tuple[str, str], str]:
    """Images for values of controls-media attributes.

    A value borrows the media group image of the first variant that uses it.
    """
    images: dict[tuple[str, str], str] = {}
    media_attribute_ids = [aid for aid, attr in payload.attributes.items() if attr.controls_media]
    if not media_attribute_ids:
        return images
    for variant in payload.variants:
        image = variant.image or group_image(payload, variant.media_group_id)
        if not image:
            continue
        for attribute_id in media_attribute_ids:
            value_id = variant.attribute_values.get(attribute_id)
            if value_id is not None:
                images.setdefault((attribute_id, value_id), image)
    return images


def attribute_value_image(product: Product, selection: Mapping[str, str]) -> str | None:
    """Image of the selected value of the controls-media attribute."""
    media_attribute = product.media_attribute
    if media_attribute is None:
        return None
    selected = selection.get(media_attribute.name)
    if not selected:
        return None
    value = media_attribute.find(selected)
    return value.image if value is not None else None


def representative_image(product: Product, variant: Variant) -> str | None:
    if variant.image:
        return variant.image
    image = attribute_value_image(product, variant.attributes)
    if image:
        return image
    return product.images[0] if product.images else None


def selection_images(product: Product, selection: Mapping[str, str], variant: Variant | None) -> list[str]:
    """Gallery for a detail page: the chosen image first, then the rest."""
    chosen = variant.image if variant is not None and variant.image else None
    chosen = chosen or attribute_value_image(product, selection)
    if not chosen:
        return list(product.images)
    return front_load(chosen, product.images)


def front_load(image: str, images: Iterable[str]) -> list[str]:
    return [image, *(url for url in images if url != image)]
