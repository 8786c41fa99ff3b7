import math
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, computed_field, model_validator

Locale = Literal["en", "ar"]

DEFAULT_CURRENCY = "JOD"


def normalize_locale(locale: str | None) -> Locale:
    """Anything that is not Arabic renders as English."""
    return "ar" if locale == "ar" else "en"


# ---------------------------------------------------------------------------
# Lenient readers for loosely-shaped API data
# ---------------------------------------------------------------------------


def as_mapping(value: Any) -> dict[str, Any]:
    if isinstance(value, Mapping):
        return {str(k): v for k, v in value.items()}
    return {}


def as_list(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def as_text(value: Any) -> str | None:
    """Stringify scalars, treating blanks as missing."""
    if value is None or isinstance(value, (dict, list, tuple)):
        return None
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and not math.isfinite(value):
        return None
    text = str(value).strip()
    return text or None


def as_id(value: Any) -> str | None:
    if isinstance(value, bool):
        return None
    return as_text(value)


def as_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return int(number) if math.isfinite(number) else default


def extract_image_url(value: Any) -> str | None:
    """Image fields arrive either as a bare URL or as ``{"url": ...}``."""
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, Mapping):
        url = value.get("url")
        if isinstance(url, str) and url.strip():
            return url.strip()
    return None


# ---------------------------------------------------------------------------
# Localized text
# ---------------------------------------------------------------------------


class LocalizedText(BaseModel):
    """A pair of parallel English/Arabic strings."""

    model_config = ConfigDict(frozen=True)

    en: str | None = None
    ar: str | None = None

    def resolve(self, locale: str = "en") -> str:
        if normalize_locale(locale) == "ar":
            return self.ar or self.en or ""
        return self.en or self.ar or ""

    @classmethod
    def from_pair(cls, data: Mapping[str, Any], stem: str) -> "LocalizedText":
        """Read ``<stem>_en`` / ``<stem>_ar`` from an API object."""
        return cls(en=as_text(data.get(f"{stem}_en")), ar=as_text(data.get(f"{stem}_ar")))


# ---------------------------------------------------------------------------
# Raw catalog payload (as served by the catalog API)
# ---------------------------------------------------------------------------


class RawAttributeValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: LocalizedText
    color_code: str | None = None
    image: str | None = None

    @classmethod
    def from_api(cls, value_id: str, data: Any) -> "RawAttributeValue | None":
        if not isinstance(data, Mapping):
            return None
        return cls(
            id=value_id,
            name=LocalizedText.from_pair(data, "name"),
            color_code=as_text(data.get("color_code")),
            image=extract_image_url(data.get("image")),
        )


class RawAttribute(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: LocalizedText
    values: dict[str, RawAttributeValue] = {}
    controls_pricing: bool = False
    controls_media: bool = False
    controls_weight: bool = False

    def value(self, value_id: Any) -> RawAttributeValue | None:
        key = as_id(value_id)
        return self.values.get(key) if key is not None else None

    @classmethod
    def from_api(cls, attribute_id: str, data: Any) -> "RawAttribute | None":
        if not isinstance(data, Mapping):
            return None
        values: dict[str, RawAttributeValue] = {}
        for value_id, value_data in as_mapping(data.get("values")).items():
            value = RawAttributeValue.from_api(value_id, value_data)
            if value is not None:
                values[value_id] = value
        return cls(
            id=attribute_id,
            name=LocalizedText.from_pair(data, "name"),
            values=values,
            controls_pricing=bool(data.get("controls_pricing")),
            controls_media=bool(data.get("controls_media")),
            controls_weight=bool(data.get("controls_weight")),
        )


class PriceGroup(BaseModel):
    """One price tier. Amounts stay as served; parsing happens in pricing."""

    model_config = ConfigDict(frozen=True)

    price: Any = None
    sale_price: Any = None
    currency: str | None = None

    @classmethod
    def from_api(cls, data: Any) -> "PriceGroup | None":
        if not isinstance(data, Mapping):
            return None
        return cls(
            price=data.get("price"),
            sale_price=data.get("sale_price"),
            currency=as_text(data.get("currency")),
        )


class MediaItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    is_primary: bool = False
    is_group_primary: bool = False

    @classmethod
    def from_api(cls, data: Any) -> "MediaItem | None":
        if isinstance(data, str):
            url = extract_image_url(data)
            return cls(url=url) if url else None
        if not isinstance(data, Mapping):
            return None
        url = extract_image_url(data.get("url")) or extract_image_url(data.get("image"))
        if not url:
            return None
        return cls(
            url=url,
            is_primary=bool(data.get("is_primary")),
            is_group_primary=bool(data.get("is_group_primary")),
        )


def _media_items(value: Any) -> list[MediaItem]:
    items = (MediaItem.from_api(entry) for entry in as_list(value))
    return [item for item in items if item is not None]


class MediaGroup(BaseModel):
    model_config = ConfigDict(frozen=True)

    media: list[MediaItem] = []

    @property
    def has_primary(self) -> bool:
        return any(item.is_primary for item in self.media)

    @classmethod
    def from_api(cls, data: Any) -> "MediaGroup | None":
        if not isinstance(data, Mapping):
            return None
        return cls(media=_media_items(data.get("media")))


class WeightGroup(BaseModel):
    model_config = ConfigDict(frozen=True)

    weight: str | None = None
    length: str | None = None
    width: str | None = None
    height: str | None = None

    @classmethod
    def from_api(cls, data: Any) -> "WeightGroup | None":
        if not isinstance(data, Mapping):
            return None
        dimensions = as_mapping(data.get("dimensions"))
        return cls(
            weight=as_text(data.get("weight")),
            length=as_text(dimensions.get("length")),
            width=as_text(dimensions.get("width")),
            height=as_text(dimensions.get("height")),
        )


class RawVariant(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    sku: str | None = None
    quantity: int = 0
    price_group_id: str | None = None
    media_group_id: str | None = None
    weight_group_id: str | None = None
    attribute_values: dict[str, str] = {}
    image: str | None = None

    @classmethod
    def from_api(cls, data: Any) -> "RawVariant | None":
        if not isinstance(data, Mapping):
            return None
        variant_id = as_id(data.get("id"))
        if variant_id is None:
            return None

        attribute_values: dict[str, str] = {}
        for attribute_id, value_id in as_mapping(data.get("attribute_values")).items():
            value_key = as_id(value_id)
            if value_key is not None:
                attribute_values[attribute_id] = value_key

        quantity = data.get("quantity")
        if quantity is None:
            # Older payloads nest availability under a stock list
            stock = as_list(data.get("stock"))
            first = as_mapping(stock[0]) if stock else {}
            quantity = first.get("available", first.get("quantity"))

        return cls(
            id=variant_id,
            sku=as_text(data.get("sku")),
            quantity=max(as_int(quantity), 0),
            price_group_id=as_id(data.get("price_group_id")),
            media_group_id=as_id(data.get("media_group_id")),
            weight_group_id=as_id(data.get("weight_group_id")),
            attribute_values=attribute_values,
            image=extract_image_url(data.get("image")),
        )


class EntityRef(BaseModel):
    """Category, brand or vendor as embedded in a product payload."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: LocalizedText
    logo: str | None = None

    @classmethod
    def from_api(cls, data: Any) -> "EntityRef | None":
        if not isinstance(data, Mapping):
            return None
        entity_id = as_id(data.get("id"))
        if entity_id is None:
            return None
        return cls(
            id=entity_id,
            name=LocalizedText.from_pair(data, "name"),
            logo=extract_image_url(data.get("logo")),
        )


def _stock_quantity(data: Mapping[str, Any]) -> int | None:
    """Scalar product stock: ``quantity``, else a ``stock`` list or object."""
    if data.get("quantity") is not None:
        return max(as_int(data.get("quantity")), 0)
    stock = data.get("stock")
    if isinstance(stock, list):
        return sum(max(as_int(as_mapping(s).get("quantity")), 0) for s in stock)
    if isinstance(stock, Mapping):
        for key in ("total_quantity", "available", "quantity"):
            if stock.get(key) is not None:
                return max(as_int(stock.get(key)), 0)
    return None


class RawCatalogPayload(BaseModel):
    """Denormalized product as served by the catalog API.

    Group maps are keyed by string id. Use the ``*_group`` accessors rather
    than indexing the maps directly; they return ``None`` for unknown ids.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    name: LocalizedText = LocalizedText()
    short_description: LocalizedText = LocalizedText()
    long_description: LocalizedText = LocalizedText()
    slug: str | None = None
    sku: str | None = None
    quantity: int | None = None
    status: str | None = None
    average_rating: Any = None
    total_ratings: int = 0
    created_at: str | None = None
    updated_at: str | None = None

    vendor: EntityRef | None = None
    brand: EntityRef | None = None
    categories: list[EntityRef] = []

    attributes: dict[str, RawAttribute] = {}
    price_groups: dict[str, PriceGroup] = {}
    media_groups: dict[str, MediaGroup] = {}
    weight_groups: dict[str, WeightGroup] = {}
    variants: list[RawVariant] = []

    # List endpoints may only reference variants by id
    variant_ids: list[str] = []
    has_variants: bool = False

    # Flat fields from older payload shapes
    price: Any = None
    sale_price: Any = None
    media: list[MediaItem] = []
    primary_image: str | None = None

    def attribute(self, attribute_id: Any) -> RawAttribute | None:
        key = as_id(attribute_id)
        return self.attributes.get(key) if key is not None else None

    def price_group(self, group_id: Any) -> PriceGroup | None:
        key = as_id(group_id)
        return self.price_groups.get(key) if key is not None else None

    def media_group(self, group_id: Any) -> MediaGroup | None:
        key = as_id(group_id)
        return self.media_groups.get(key) if key is not None else None

    def weight_group(self, group_id: Any) -> WeightGroup | None:
        key = as_id(group_id)
        return self.weight_groups.get(key) if key is not None else None

    @classmethod
    def from_api(cls, data: Any) -> "RawCatalogPayload":
        """Build a payload from decoded JSON, dropping malformed optional parts."""
        data = as_mapping(data)

        attributes: dict[str, RawAttribute] = {}
        for attribute_id, attribute_data in as_mapping(data.get("attributes")).items():
            attribute = RawAttribute.from_api(attribute_id, attribute_data)
            if attribute is not None:
                attributes[attribute_id] = attribute

        price_groups = {
            gid: group
            for gid, raw in as_mapping(data.get("price_groups")).items()
            if (group := PriceGroup.from_api(raw)) is not None
        }
        media_groups = {
            gid: group
            for gid, raw in as_mapping(data.get("media_groups")).items()
            if (group := MediaGroup.from_api(raw)) is not None
        }
        weight_groups = {
            gid: group
            for gid, raw in as_mapping(data.get("weight_groups")).items()
            if (group := WeightGroup.from_api(raw)) is not None
        }
        variants = [
            variant
            for raw in as_list(data.get("variants"))
            if (variant := RawVariant.from_api(raw)) is not None
        ]

        variant_ids = [
            vid
            for raw in as_list(data.get("variant_ids", data.get("variantIds")))
            if (vid := as_id(raw)) is not None
        ]
        # A list endpoint may also send the variants as bare ids
        for raw in as_list(data.get("variants")):
            if not isinstance(raw, Mapping) and (vid := as_id(raw)) is not None:
                variant_ids.append(vid)

        categories = [
            ref for raw in as_list(data.get("categories")) if (ref := EntityRef.from_api(raw)) is not None
        ]
        if not categories and (single := EntityRef.from_api(data.get("category"))) is not None:
            categories = [single]

        return cls(
            id=as_id(data.get("id")),
            name=LocalizedText.from_pair(data, "name"),
            short_description=LocalizedText.from_pair(data, "short_description"),
            long_description=LocalizedText.from_pair(data, "long_description"),
            slug=as_text(data.get("slug")),
            sku=as_text(data.get("sku")),
            quantity=_stock_quantity(data),
            status=as_text(data.get("status")),
            average_rating=data.get("average_rating"),
            total_ratings=max(as_int(data.get("total_ratings")), 0),
            created_at=as_text(data.get("created_at")),
            updated_at=as_text(data.get("updated_at")),
            vendor=EntityRef.from_api(data.get("vendor")),
            brand=EntityRef.from_api(data.get("brand")),
            categories=categories,
            attributes=attributes,
            price_groups=price_groups,
            media_groups=media_groups,
            weight_groups=weight_groups,
            variants=variants,
            variant_ids=variant_ids,
            has_variants=bool(data.get("has_variants", data.get("hasVariants"))),
            price=data.get("price"),
            sale_price=data.get("sale_price"),
            media=_media_items(data.get("media")),
            primary_image=extract_image_url(data.get("primary_image")),
        )


# ---------------------------------------------------------------------------
# Canonical view models
# ---------------------------------------------------------------------------


class Price(BaseModel):
    model_config = ConfigDict(frozen=True)

    price: float
    currency: str = DEFAULT_CURRENCY
    # Original price when on sale; always strictly above ``price``
    compare_at_price: float | None = None

    @model_validator(mode="before")
    @classmethod
    def _drop_non_discount(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        price, compare_at = data.get("price"), data.get("compare_at_price")
        if price is None or compare_at is None:
            return data
        try:
            is_discount = float(compare_at) > float(price)
        except (TypeError, ValueError):
            return data
        return data if is_discount else {**data, "compare_at_price": None}


class AttributeValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    value: str  # display name in the requested locale
    meta: str | None = None  # swatch color code
    image: str | None = None


class Attribute(BaseModel):
    """A dimension along which a product varies (e.g. size, color)."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    values: list[AttributeValue] = []
    controls_pricing: bool = False
    controls_media: bool = False
    controls_weight: bool = False
    is_color: bool = False

    def find(self, value: str) -> AttributeValue | None:
        return next((v for v in self.values if v.value == value), None)


class Dimensions(BaseModel):
    model_config = ConfigDict(frozen=True)

    weight: str | None = None
    length: str | None = None
    width: str | None = None
    height: str | None = None


class Variant(BaseModel):
    """A specific purchasable configuration of a product."""

    model_config = ConfigDict(frozen=True)

    id: str
    attributes: dict[str, str] = {}  # e.g. {"Size": "M", "Color": "Black"}
    price: Price
    stock: int = 0
    image: str | None = None
    dimensions: Dimensions | None = None
    sku: str = ""

    @property
    def in_stock(self) -> bool:
        return self.stock > 0


class Reference(BaseModel):
    """Pass-through link to a category, brand or vendor."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    name_ar: str | None = None
    slug: str
    logo: str | None = None


class Product(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    name_ar: str | None = None
    slug: str
    description: str = ""
    description_ar: str | None = None
    long_description: str | None = None
    sku: str = ""
    price: Price
    images: list[str]
    stock: int = 0
    attributes: list[Attribute] = []
    variants: list[Variant] = []
    variant_ids: list[str] = []
    has_variants: bool = False
    default_variant_id: str | None = None
    category: Reference
    brand: Reference | None = None
    vendor: Reference | None = None
    rating: float = 0.0
    review_count: int = 0
    is_new: bool = False
    created_at: str | None = None
    updated_at: str | None = None

    @computed_field
    @property
    def discount_percent(self) -> int:
        compare_at = self.price.compare_at_price
        if compare_at is None or compare_at <= 0:
            return 0
        return round((compare_at - self.price.price) / compare_at * 100)

    def variant(self, variant_id: Any) -> Variant | None:
        key = as_id(variant_id)
        return next((v for v in self.variants if v.id == key), None)

    @property
    def media_attribute(self) -> Attribute | None:
        return next((a for a in self.attributes if a.controls_media), None)


class DisplayCard(Product):
    """Listing-only projection of one purchasable variant."""

    has_variants: Literal[True] = True
    default_variant_id: str


class SelectionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    selection: dict[str, str]
    matched_variant: Variant | None = None
