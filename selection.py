"""
Option selection over a normalized Product.

All functions are pure: they take the current selection and return a new
one. A selection may legitimately point at no in-stock variant (the user
explicitly chose an out-of-stock combination).
"""

from collections.abc import Mapping

from models import Product, SelectionResult, Variant


def find_variant(product: Product, selection: Mapping[str, str]) -> Variant | None:
    """Variant whose attributes exactly equal ``selection``, in any stock state."""
    target = dict(selection)
    return next((v for v in product.variants if v.attributes == target), None)


def initial_selection(product: Product, requested_variant_id: str | None = None) -> SelectionResult:
    """Seed the selection when a product page loads.

    A deep-linked variant wins when the product has it; otherwise the first
    in-stock variant, then the first variant, then nothing.
    """
    seed = product.variant(requested_variant_id) if requested_variant_id is not None else None
    if seed is None:
        seed = next((v for v in product.variants if v.in_stock), None)
    if seed is None and product.variants:
        seed = product.variants[0]
    if seed is None:
        return SelectionResult(selection={})
    return SelectionResult(selection=dict(seed.attributes), matched_variant=seed)


def select_option(
    product: Product,
    current: Mapping[str, str],
    attribute_name: str,
    value: str,
) -> SelectionResult:
    candidate = {**current, attribute_name: value}

    exact = find_variant(product, candidate)
    if exact is not None and exact.in_stock:
        return SelectionResult(selection=candidate, matched_variant=exact)

    in_stock = [v for v in product.variants if v.in_stock and v.attributes.get(attribute_name) == value]
    if in_stock:
        def overlap(variant: Variant) -> int:
            return sum(
                1
                for name, chosen in variant.attributes.items()
                if name != attribute_name and current.get(name) == chosen
            )

        # max() keeps the first variant among equal scores
        best = max(in_stock, key=overlap)
        return SelectionResult(selection=dict(best.attributes), matched_variant=best)

    return SelectionResult(selection=candidate)


def is_disabled(product: Product, attribute_name: str, value: str) -> bool:
    """True when no in-stock variant carries ``value`` for the attribute.

    Deliberately ignores the rest of the current selection.
    """
    return not any(v.in_stock and v.attributes.get(attribute_name) == value for v in product.variants)


def disabled_options(product: Product) -> dict[str, dict[str, bool]]:
    return {
        attribute.name: {value.value: is_disabled(product, attribute.name, value.value) for value in attribute.values}
        for attribute in product.attributes
    }
