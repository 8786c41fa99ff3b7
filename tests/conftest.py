import copy
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import pytest

from config import Settings

NOW = datetime(2024, 3, 1, tzinfo=timezone.utc)

_TEE: dict[str, Any] = {
    "id": 101,
    "name_en": "Classic Cotton Tee",
    "name_ar": "تيشيرت قطني",
    "sku": "TEE",
    "short_description_en": "Everyday cotton t-shirt",
    "short_description_ar": "تيشيرت يومي",
    "long_description_en": "<p>Soft cotton.</p>",
    "average_rating": "4.5",
    "total_ratings": 12,
    "created_at": "2024-02-20T09:00:00Z",
    "updated_at": "2024-02-21T09:00:00Z",
    "categories": [{"id": 7, "name_en": "Men Clothing", "name_ar": "ملابس رجالية"}],
    "brand": {"id": 3, "name_en": "Basics", "name_ar": "بيسكس", "logo": "https://cdn.example.com/basics.png"},
    "vendor": {"id": 9, "name_en": "Main Store", "name_ar": "المتجر الرئيسي"},
    "attributes": {
        "1": {
            "name_en": "Color",
            "name_ar": "اللون",
            "controls_media": True,
            "values": {
                "11": {"name_en": "Black", "name_ar": "أسود", "color_code": "#000000"},
                "12": {"name_en": "White", "name_ar": "أبيض", "color_code": "#FFFFFF"},
            },
        },
        "2": {
            "name_en": "Size",
            "name_ar": "المقاس",
            "values": {
                "21": {"name_en": "M", "name_ar": "وسط", "color_code": None},
                "22": {"name_en": "L", "name_ar": "كبير", "color_code": None},
                "23": {"name_en": "XL", "name_ar": "كبير جدا", "color_code": None},
            },
        },
    },
    "price_groups": {
        "p1": {"price": "20.00", "sale_price": "15.00"},
        "p2": {"price": "18.00", "sale_price": None},
    },
    "media_groups": {
        "m1": {
            "media": [
                {"id": 1, "url": "https://cdn.example.com/black-back.jpg", "is_primary": False, "is_group_primary": False},
                {"id": 2, "url": "https://cdn.example.com/black.jpg", "is_primary": False, "is_group_primary": True},
            ]
        },
        "m2": {
            "media": [
                {"id": 3, "url": "https://cdn.example.com/white-side.jpg", "is_primary": False, "is_group_primary": False},
                {"id": 4, "url": "https://cdn.example.com/white.jpg", "is_primary": True, "is_group_primary": True},
            ]
        },
    },
    "weight_groups": {
        "w1": {"weight": "0.2", "dimensions": {"length": 30, "width": 20, "height": 2}},
    },
    "variants": [
        {
            "id": 1001, "sku": "BLK-M", "quantity": 4, "is_active": True,
            "price_group_id": "p1", "media_group_id": "m1", "weight_group_id": "w1",
            "attribute_values": {"1": 11, "2": 21},
        },
        {
            "id": 1002, "sku": "BLK-L", "quantity": 0, "is_active": True,
            "price_group_id": "p1", "media_group_id": "m1", "weight_group_id": "w1",
            "attribute_values": {"1": 11, "2": 22},
        },
        {
            "id": 1003, "sku": "WHT-M", "quantity": 2, "is_active": True,
            "price_group_id": "p2", "media_group_id": "m2", "weight_group_id": "w1",
            "attribute_values": {"1": 12, "2": 21},
        },
        {
            "id": 1004, "sku": "WHT-L", "quantity": 5, "is_active": True,
            "price_group_id": "p2", "media_group_id": "m2", "weight_group_id": "w1",
            "attribute_values": {"1": 12, "2": 22},
        },
    ],
}


@pytest.fixture
def make_payload() -> Callable[..., dict[str, Any]]:
    """Factory for a two-attribute t-shirt payload; keyword args override top-level keys."""

    def factory(**overrides: Any) -> dict[str, Any]:
        payload = copy.deepcopy(_TEE)
        payload.update(overrides)
        return payload

    return factory


@pytest.fixture
def payload(make_payload: Callable[..., dict[str, Any]]) -> dict[str, Any]:
    return make_payload()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def now() -> datetime:
    return NOW
