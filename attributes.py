"""
Attribute lookup tables.

Turns the grouped attribute definitions of a catalog payload into
id -> display-name tables and the canonical ``Attribute`` list shown by
option pickers.
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from models import Attribute, AttributeValue, RawAttribute, as_id

logger = logging.getLogger(__name__)

# Attribute names that mean "color" in either storefront language
_COLOR_NAME_RE = re.compile(r"(?i)(colou?r|shade|swatch|لون|ألوان|الوان|اللون)")


def is_color_attribute(attribute: RawAttribute) -> bool:
    """True for color-like attributes; only drives swatch rendering."""
    for name in (attribute.name.en, attribute.name.ar):
        if name and _COLOR_NAME_RE.search(name):
            return True
    return any(value.color_code for value in attribute.values.values())


@dataclass
class AttributeCatalog:
    names: dict[str, str] = field(default_factory=dict)
    values: dict[str, dict[str, str]] = field(default_factory=dict)
    color_flags: dict[str, bool] = field(default_factory=dict)

    @classmethod
    def build(cls, attributes: Mapping[str, RawAttribute], locale: str = "en") -> "AttributeCatalog":
        catalog = cls()
        for attribute_id, attribute in attributes.items():
            # Nameless attributes are keyed by id so variant mappings stay distinct
            catalog.names[attribute_id] = attribute.name.resolve(locale) or attribute_id
            catalog.values[attribute_id] = {
                value_id: value.name.resolve(locale) for value_id, value in attribute.values.items()
            }
            catalog.color_flags[attribute_id] = is_color_attribute(attribute)
        return catalog

    def attribute_name(self, attribute_id: object) -> str | None:
        key = as_id(attribute_id)
        return self.names.get(key) if key is not None else None

    def value_name(self, attribute_id: object, value_id: object) -> str | None:
        attr_key, value_key = as_id(attribute_id), as_id(value_id)
        if attr_key is None or value_key is None:
            return None
        return self.values.get(attr_key, {}).get(value_key)

    def is_color(self, attribute_id: object) -> bool:
        key = as_id(attribute_id)
        return bool(key is not None and self.color_flags.get(key))

    def resolve(self, attribute_values: Mapping[str, str]) -> dict[str, str] | None:
        """Map attribute-id -> value-id pairs to display names.

        Unknown attribute ids are dropped. A known attribute whose value id
        does not resolve makes the whole mapping unresolvable (``None``).
        """
        resolved: dict[str, str] = {}
        for attribute_id, value_id in attribute_values.items():
            name = self.attribute_name(attribute_id)
            if name is None:
                logger.debug("Dropping unknown attribute id %s", attribute_id)
                continue
            value = self.value_name(attribute_id, value_id)
            if value is None:
                return None
            resolved[name] = value
        return resolved


def build_attributes(
    attributes: Mapping[str, RawAttribute],
    catalog: AttributeCatalog,
    value_images: Mapping[tuple[str, str], str] | None = None,
) -> list[Attribute]:
    """Build the canonical attribute list in payload order.

    ``value_images`` maps (attribute id, value id) to an image for values
    that carry none of their own.
    """
    value_images = value_images or {}
    result: list[Attribute] = []
    for attribute_id, raw in attributes.items():
        values = [
            AttributeValue(
                id=value_id,
                value=catalog.values[attribute_id][value_id],
                meta=value.color_code,
                image=value.image or value_images.get((attribute_id, value_id)),
            )
            for value_id, value in raw.values.items()
        ]
        result.append(
            Attribute(
                id=attribute_id,
                name=catalog.names[attribute_id],
                values=values,
                controls_pricing=raw.controls_pricing,
                controls_media=raw.controls_media,
                controls_weight=raw.controls_weight,
                is_color=catalog.color_flags[attribute_id],
            )
        )
    return result
