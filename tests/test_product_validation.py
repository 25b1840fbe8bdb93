import pytest

from marketplace.services.pricing import ProductDraft, QuantityVariant, SellingUnit, WeightVariant
from marketplace.services.product_validation import ProductValidationError, validate_draft


def test_weight_product_needs_an_enabled_variant():
    draft = ProductDraft(
        selling_unit=SellingUnit.WEIGHT,
        weight_variants=[WeightVariant(label="1 KG", grams=1000, price=40, is_enabled=False)],
    )
    with pytest.raises(ProductValidationError) as exc_info:
        validate_draft(draft)
    assert exc_info.value.field == "weightVariants"
    assert exc_info.value.code == "INVALID_PRODUCT"


def test_weight_product_without_variants_is_rejected():
    with pytest.raises(ProductValidationError):
        validate_draft(ProductDraft(selling_unit=SellingUnit.WEIGHT))


def test_enabled_free_weight_variant_is_rejected():
    draft = ProductDraft(
        selling_unit=SellingUnit.WEIGHT,
        weight_variants=[
            WeightVariant(label="500 GM", grams=500, price=0, mrp=30),
            WeightVariant(label="1 KG", grams=1000, price=55),
        ],
    )
    with pytest.raises(ProductValidationError, match="500 GM"):
        validate_draft(draft)


def test_disabled_free_weight_variant_is_allowed():
    draft = ProductDraft(
        selling_unit=SellingUnit.WEIGHT,
        weight_variants=[
            WeightVariant(label="250 GM", grams=250, price=0, is_enabled=False),
            WeightVariant(label="1 KG", grams=1000, price=55),
        ],
    )
    validate_draft(draft)


def test_quantity_product_needs_a_variation():
    with pytest.raises(ProductValidationError) as exc_info:
        validate_draft(ProductDraft(selling_unit=SellingUnit.QUANTITY))
    assert exc_info.value.field == "variations"
    assert exc_info.value.detail == {"field": "variations"}


def test_discounted_price_above_price_is_rejected():
    draft = ProductDraft(
        selling_unit=SellingUnit.QUANTITY,
        variations=[QuantityVariant(title="Jar", price=100, disc_price=120)],
    )
    with pytest.raises(ProductValidationError, match="cannot be greater than price"):
        validate_draft(draft)


def test_quantity_product_ignores_weight_variant_state():
    draft = ProductDraft(
        selling_unit=SellingUnit.QUANTITY,
        weight_variants=[WeightVariant(label="1 KG", grams=1000, price=0, is_enabled=True)],
        variations=[QuantityVariant(title="Jar", price=100, disc_price=90)],
    )
    validate_draft(draft)
