"""
Catalog normalization runner.

Loads every catalog payload JSON file in the data directory, normalizes
each product, expands the batch into listing cards (detail fetches are
served from the loaded payloads), and prints a report.
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Any

import orjson

from config import get_settings
from diagnostics import PayloadAudit, audit_payload, load_payloads
from listing import expand_for_listing
from models import Product, as_id
from normalizer import InvalidPayloadError, normalize_product

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"
OUTPUT_FILE = Path(__file__).parent / "products.json"


def process_all(locale: str) -> tuple[list[Product], list[PayloadAudit], dict[str, dict[str, Any]], int]:
    """Normalize all payload files in the data directory.

    Returns (products, audits, payloads_by_id, failure_count).
    """
    json_files = sorted(DATA_DIR.glob("*.json"))
    logger.info(f"Found {len(json_files)} payload files to process")

    products: list[Product] = []
    audits: list[PayloadAudit] = []
    by_id: dict[str, dict[str, Any]] = {}
    failures = 0

    for filepath in json_files:
        try:
            payloads = load_payloads(filepath)
        except (OSError, orjson.JSONDecodeError) as exc:
            logger.error(f"Failed to read {filepath.name}: {exc}")
            failures += 1
            continue
        for payload in payloads:
            audits.append(audit_payload(payload, source=filepath.name))
            try:
                product = normalize_product(payload, locale)
            except InvalidPayloadError:
                logger.warning(f"  {filepath.name}: dropping payload without product id")
                failures += 1
                continue
            products.append(product)
            by_id[product.id] = payload

    return products, audits, by_id, failures


def print_report(
    products: list[Product],
    cards: list[Product],
    audits: list[PayloadAudit],
    failures: int,
    wall_clock: float,
) -> None:
    print(f"\n{'='*70}")
    print("NORMALIZATION REPORT")
    print(f"{'='*70}")

    print(f"\n── Reliability ──")
    print(f"  Payloads normalized: {len(products)}")
    print(f"  Payloads dropped:    {failures}")

    print(f"\n── Products ──")
    print(f"  {'Product':<32} {'Price':>10} {'Was':>10} {'Stock':>7} {'Variants':>9} {'Images':>7}")
    print(f"  {'-'*79}")
    for p in products:
        was = f"{p.price.compare_at_price:.2f}" if p.price.compare_at_price is not None else "-"
        print(f"  {p.name[:32]:<32} {p.price.price:>10.2f} {was:>10} {p.stock:>7} "
              f"{len(p.variants):>9} {len(p.images):>7}")

    print(f"\n── Listing ──")
    print(f"  Base products: {len(products)}")
    print(f"  Listing cards: {len(cards)}")
    print(f"  Variant cards: {sum(1 for c in cards if c.default_variant_id)}")

    print(f"\n── Reference audit ──")
    clean = [a for a in audits if a.is_clean]
    print(f"  Clean payloads: {len(clean)}/{len(audits)}")
    for audit in audits:
        if audit.is_clean:
            continue
        print(f"    {audit.source:<25} product {audit.product_id or '?'}")
        for issue in audit.issues:
            print(f"      - {issue}")

    print(f"\n── Timing ──")
    print(f"  Wall clock (total):  {wall_clock:.3f}s")
    print(f"\n{'='*70}")


async def main() -> None:
    settings = get_settings()
    t_wall_start = time.monotonic()

    products, audits, by_id, failures = process_all(settings.default_locale)

    async def local_detail(product_id: str) -> dict[str, Any]:
        payload = by_id.get(as_id(product_id) or "")
        if payload is None:
            raise LookupError(f"no payload for product {product_id}")
        return payload

    cards = await expand_for_listing(products, local_detail, locale=settings.default_locale)
    wall_clock = time.monotonic() - t_wall_start

    OUTPUT_FILE.write_bytes(orjson.dumps([c.model_dump() for c in cards], option=orjson.OPT_INDENT_2))
    logger.info(f"Wrote {len(cards)} listing cards to {OUTPUT_FILE}")

    print_report(products, cards, audits, failures, wall_clock)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(main())
