"""Write-path validation for product variants.

Runs before normalization. The normalizer tolerates any variant state; this module is what
keeps invalid selling-unit states out of the database:
- weight mode needs at least one enabled weight variant, each enabled one priced above 0
- quantity mode needs at least one variation, and discPrice may not exceed price

Type and range checks (grams > 0, non-negative money/stock) are done by the request schemas.
"""

from marketplace.services.errors import CatalogError
from marketplace.services.pricing import (
    ProductDraft,
    QuantityVariant,
    SellingUnit,
    WeightVariant,
    enabled_weight_variants,
)


class ProductValidationError(CatalogError, ValueError):
    """Product payload violates a selling-unit rule."""

    code = "INVALID_PRODUCT"
    status_code = 400

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field

    @property
    def detail(self) -> dict:
        return {"field": self.field} if self.field else {}


def validate_weight_variants(variants: list[WeightVariant]) -> None:
    enabled = enabled_weight_variants(variants)
    if not enabled:
        raise ProductValidationError("Enable at least one weight variant", field="weightVariants")

    for variant in enabled:
        # A free enabled tier would pair price 0 with a stale compare price.
        if variant.price <= 0:
            raise ProductValidationError(
                f"Enabled weight variant {variant.label} must have a price greater than 0",
                field="weightVariants",
            )


def validate_variations(variations: list[QuantityVariant]) -> None:
    if not variations:
        raise ProductValidationError("Product must have at least one variation", field="variations")

    for variation in variations:
        if variation.disc_price > variation.price:
            raise ProductValidationError(
                f"Discounted price ({variation.disc_price}) cannot be greater than price "
                f"({variation.price}) for variation {variation.title}",
                field="variations",
            )


def validate_draft(draft: ProductDraft) -> None:
    """Check the authoritative variant list of a draft.

    Raises:
        ProductValidationError: On the first violated rule.
    """
    if draft.selling_unit == SellingUnit.WEIGHT:
        validate_weight_variants(draft.weight_variants)
    else:
        validate_variations(draft.variations)
