"""
Diagnostic: audit raw catalog payloads for dangling references.

Reports, without normalizing, which variants point at price/media/weight
groups or attribute values the payload does not define, and which groups
carry unusable data. Normalization tolerates all of these; the audit only
makes them visible.
"""

import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import orjson

from models import RawCatalogPayload, as_id, as_list
from pricing import parse_amount


@dataclass
class PayloadAudit:
    source: str = ""
    product_id: str | None = None
    issues: list[str] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not self.issues


def audit_payload(raw: Mapping[str, Any], source: str = "") -> PayloadAudit:
    payload = RawCatalogPayload.from_api(raw)
    audit = PayloadAudit(source=source, product_id=payload.id)

    if payload.id is None:
        audit.issues.append("missing product id")

    skipped = sum(
        1 for v in as_list(raw.get("variants")) if isinstance(v, Mapping) and as_id(v.get("id")) is None
    )
    if skipped > 0:
        audit.issues.append(f"{skipped} variant row(s) without an id")

    for group_id, group in payload.price_groups.items():
        if parse_amount(group.price) is None:
            audit.issues.append(f"price group {group_id}: non-numeric price {group.price!r}")
        if group.sale_price is not None and parse_amount(group.sale_price) is None:
            audit.issues.append(f"price group {group_id}: non-numeric sale price {group.sale_price!r}")

    for group_id, group in payload.media_groups.items():
        if not group.media:
            audit.issues.append(f"media group {group_id}: no media URLs")

    for variant in payload.variants:
        prefix = f"variant {variant.id}"
        if variant.price_group_id is not None and payload.price_group(variant.price_group_id) is None:
            audit.issues.append(f"{prefix}: unknown price group {variant.price_group_id}")
        if variant.media_group_id is not None and payload.media_group(variant.media_group_id) is None:
            audit.issues.append(f"{prefix}: unknown media group {variant.media_group_id}")
        if variant.weight_group_id is not None and payload.weight_group(variant.weight_group_id) is None:
            audit.issues.append(f"{prefix}: unknown weight group {variant.weight_group_id}")
        for attribute_id, value_id in variant.attribute_values.items():
            attribute = payload.attribute(attribute_id)
            if attribute is None:
                audit.issues.append(f"{prefix}: unknown attribute {attribute_id}")
            elif attribute.value(value_id) is None:
                audit.issues.append(f"{prefix}: unknown value {value_id} for attribute {attribute_id}")

    return audit


def load_payloads(filepath: Path) -> list[dict[str, Any]]:
    """A file holds one payload, a list of payloads, or a ``{"data": [...]}`` page."""
    body = orjson.loads(filepath.read_bytes())
    if isinstance(body, Mapping) and isinstance(body.get("data"), list):
        body = body["data"]
    payloads = [body] if isinstance(body, Mapping) else as_list(body)
    return [dict(p) for p in payloads if isinstance(p, Mapping)]


def diagnose_file(filepath: Path) -> list[PayloadAudit]:
    return [audit_payload(p, source=filepath.name) for p in load_payloads(filepath)]


if __name__ == "__main__":
    data_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else Path(__file__).parent / "data"
    for filepath in sorted(data_dir.glob("*.json")):
        for audit in diagnose_file(filepath):
            status = "OK" if audit.is_clean else f"{len(audit.issues)} issue(s)"
            print(f"{filepath.name:<30} product {audit.product_id or '?':<10} {status}")
            for issue in audit.issues:
                print(f"    - {issue}")
