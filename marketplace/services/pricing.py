"""Variant pricing normalizer.

Derives a product's canonical pricing fields from its variant records:
- price: what listings, cards and the cart show
- compare_at_price (mrp): the struck-through reference price
- stock: total sellable units
- discount: integer percent off compare_at_price

Selling unit decides which variant list is authoritative:
- weight: weight tiers (1 KG, 500 GM, ...). Entry-level (smallest grams) enabled tier sets
  the price; stock is the sum over enabled tiers.
- quantity: discrete variations. First variation sets the price; stock is the sum over all
  variations regardless of their status.

The other list is ignored, never merged. Runs before every product write; it is pure
computation, never raises for data conditions and is idempotent.
"""

from dataclasses import dataclass, field
from enum import Enum
import math


class SellingUnit(str, Enum):
    """How a product is sold."""

    WEIGHT = "weight"
    QUANTITY = "quantity"


class VariationStatus(str, Enum):
    """Per-variation purchasability (does not affect stock totals)."""

    AVAILABLE = "Available"
    SOLD_OUT = "Sold out"
    IN_STOCK = "In stock"


@dataclass
class WeightVariant:
    """A weight tier, e.g. 500 GM at 50.0."""

    label: str
    grams: int
    price: float
    mrp: float = 0
    stock: int = 0
    is_enabled: bool = True


@dataclass
class QuantityVariant:
    """A discrete variation, e.g. "Pack of 6"."""

    title: str
    price: float
    disc_price: float = 0
    stock: int = 0
    status: VariationStatus = VariationStatus.AVAILABLE
    id: str | None = None


@dataclass
class ProductDraft:
    """Variant-bearing part of a product plus the four derived fields."""

    selling_unit: SellingUnit = SellingUnit.QUANTITY
    weight_variants: list[WeightVariant] = field(default_factory=list)
    variations: list[QuantityVariant] = field(default_factory=list)
    price: float = 0
    compare_at_price: float | None = None
    stock: int = 0
    discount: int = 0


def round_half_up(value: float) -> int:
    """Round to nearest integer, halves away from zero for non-negative input."""
    return int(math.floor(value + 0.5))


def compute_discount(price: float, compare_at_price: float | None) -> int:
    """Discount percent of price against compare_at_price.

    Returns 0 when there is no compare price or it does not exceed price.
    """
    if compare_at_price is None or compare_at_price <= price:
        return 0
    return round_half_up(100 * (compare_at_price - price) / compare_at_price)


def enabled_weight_variants(variants: list[WeightVariant]) -> list[WeightVariant]:
    return [v for v in variants if v.is_enabled]


def entry_level_variant(variants: list[WeightVariant]) -> WeightVariant | None:
    """Enabled variant with the smallest grams; ties keep input order."""
    enabled = enabled_weight_variants(variants)
    if not enabled:
        return None
    # sorted() is stable
    return sorted(enabled, key=lambda v: v.grams)[0]


def total_stock(variants: list[WeightVariant] | list[QuantityVariant]) -> int:
    return sum(int(v.stock or 0) for v in variants)


def _normalize_weight(draft: ProductDraft) -> None:
    entry = entry_level_variant(draft.weight_variants)
    if entry is None:
        # Keep last-known derived fields; the write path rejects this state.
        return

    draft.price = entry.price
    if entry.mrp and entry.mrp > 0:
        draft.compare_at_price = entry.mrp
    draft.stock = total_stock(enabled_weight_variants(draft.weight_variants))


def _normalize_quantity(draft: ProductDraft) -> None:
    if not draft.variations:
        return

    draft.price = draft.variations[0].price
    draft.stock = total_stock(draft.variations)


def normalize(draft: ProductDraft) -> ProductDraft:
    """Derive price, compare_at_price, stock and discount from variants.

    Args:
        draft: Product draft; mutated in place.

    Returns:
        The same draft.
    """
    if draft.selling_unit == SellingUnit.WEIGHT:
        _normalize_weight(draft)
    else:
        _normalize_quantity(draft)

    draft.discount = compute_discount(draft.price, draft.compare_at_price)
    return draft
