import pytest
from pydantic import ValidationError

from marketplace.schemas.product import (
    ProductCreateRequest,
    ProductUpdate,
    QuantityProductCreate,
    WeightProductCreate,
)


def test_selling_unit_defaults_to_quantity():
    body = ProductCreateRequest.model_validate({"name": "Chips", "variations": [{"title": "Pack", "price": 20}]})
    assert isinstance(body.root, QuantityProductCreate)
    assert body.root.variations[0].status == "Available"


def test_weight_payload_selects_weight_shape():
    body = ProductCreateRequest.model_validate(
        {
            "name": "Tomato",
            "sellingUnit": "weight",
            "weightVariants": [{"label": "1 KG", "grams": 1000, "price": 40, "isEnabled": False}],
        }
    )
    assert isinstance(body.root, WeightProductCreate)
    assert body.root.weight_variants[0].is_enabled is False


def test_weight_variant_grams_must_be_positive():
    with pytest.raises(ValidationError):
        ProductCreateRequest.model_validate(
            {
                "name": "Tomato",
                "sellingUnit": "weight",
                "weightVariants": [{"label": "0 GM", "grams": 0, "price": 40}],
            }
        )


def test_negative_stock_is_rejected():
    with pytest.raises(ValidationError):
        ProductCreateRequest.model_validate(
            {"name": "Chips", "variations": [{"title": "Pack", "price": 20, "stock": -1}]}
        )


def test_update_tracks_sent_fields():
    update = ProductUpdate.model_validate({"compareAtPrice": None, "name": "Milk"})
    assert update.model_fields_set == {"compare_at_price", "name"}
