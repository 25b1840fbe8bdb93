"""Schemas for product write (seller) and read (customer) endpoints.

Create payloads are a tagged union keyed on `sellingUnit`:
- "weight"   -> WeightProductCreate   (weightVariants)
- "quantity" -> QuantityProductCreate (variations); the default when sellingUnit is omitted
"""

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Discriminator, Field, RootModel, Tag

from marketplace.services.pricing import SellingUnit, VariationStatus


# ============================================================
# Variants
# ============================================================


class WeightVariantIn(BaseModel):
    """A weight tier as sent by the seller dashboard."""

    label: str = Field(min_length=1, max_length=50, examples=["500 GM"])
    grams: int = Field(gt=0)
    price: float = Field(ge=0)
    mrp: float = Field(default=0, ge=0)
    stock: int = Field(default=0, ge=0)
    is_enabled: bool = Field(alias="isEnabled", default=True)

    model_config = {"populate_by_name": True}


class VariationIn(BaseModel):
    """A quantity variation; `id` is assigned by the server when omitted."""

    id: str | None = None
    title: str = Field(min_length=1, max_length=100)
    price: float = Field(ge=0)
    disc_price: float = Field(alias="discPrice", default=0, ge=0)
    stock: int = Field(default=0, ge=0)
    status: VariationStatus = VariationStatus.AVAILABLE

    model_config = {"populate_by_name": True}


class WeightVariantOut(WeightVariantIn):
    pass


class VariationOut(VariationIn):
    id: str


# ============================================================
# Seller write path
# ============================================================


class ProductBase(BaseModel):
    """Fields shared by both selling units."""

    name: str = Field(min_length=1, max_length=200)
    category_id: int | None = Field(alias="categoryId", default=None)
    small_description: str | None = Field(alias="smallDescription", default=None, max_length=500)
    description: str | None = None
    main_image: str | None = Field(alias="mainImage", default=None)
    pack: str | None = Field(default=None, max_length=100)
    tags: list[str] = Field(default_factory=list)
    compare_at_price: float | None = Field(alias="compareAtPrice", default=None, ge=0)
    popular: bool = False
    deal_of_day: bool = Field(alias="dealOfDay", default=False)

    model_config = {"populate_by_name": True}


class WeightProductCreate(ProductBase):
    selling_unit: Literal["weight"] = Field(alias="sellingUnit")
    weight_variants: list[WeightVariantIn] = Field(alias="weightVariants", default_factory=list)


class QuantityProductCreate(ProductBase):
    selling_unit: Literal["quantity"] = Field(alias="sellingUnit", default="quantity")
    variations: list[VariationIn] = Field(default_factory=list)


def _selling_unit_tag(value: Any) -> str:
    if isinstance(value, dict):
        raw = value.get("sellingUnit", value.get("selling_unit", SellingUnit.QUANTITY.value))
    else:
        raw = getattr(value, "selling_unit", SellingUnit.QUANTITY.value)
    return raw.value if isinstance(raw, SellingUnit) else str(raw)


ProductCreate = Annotated[
    Union[
        Annotated[WeightProductCreate, Tag(SellingUnit.WEIGHT.value)],
        Annotated[QuantityProductCreate, Tag(SellingUnit.QUANTITY.value)],
    ],
    Discriminator(_selling_unit_tag),
]


class ProductCreateRequest(RootModel[ProductCreate]):
    """Request body for POST /v1/sellers/{sellerId}/products."""


class ProductUpdate(BaseModel):
    """Partial update; omitted fields keep their stored values."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    category_id: int | None = Field(alias="categoryId", default=None)
    small_description: str | None = Field(alias="smallDescription", default=None, max_length=500)
    description: str | None = None
    main_image: str | None = Field(alias="mainImage", default=None)
    pack: str | None = Field(default=None, max_length=100)
    tags: list[str] | None = None
    compare_at_price: float | None = Field(alias="compareAtPrice", default=None, ge=0)
    selling_unit: SellingUnit | None = Field(alias="sellingUnit", default=None)
    weight_variants: list[WeightVariantIn] | None = Field(alias="weightVariants", default=None)
    variations: list[VariationIn] | None = None

    model_config = {"populate_by_name": True}


class StockUpdate(BaseModel):
    """Stock change for one variation."""

    stock: int | None = Field(default=None, ge=0)
    status: VariationStatus | None = None


class BulkStockItem(BaseModel):
    product_id: int = Field(alias="productId")
    variation_id: str = Field(alias="variationId")
    stock: int = Field(ge=0)

    model_config = {"populate_by_name": True}


class BulkStockRequest(BaseModel):
    updates: list[BulkStockItem] = Field(min_length=1, max_length=500)


class BulkStockResult(BaseModel):
    product_id: int = Field(alias="productId")
    variation_id: str = Field(alias="variationId")
    success: bool
    message: str | None = None

    model_config = {"populate_by_name": True}


class BulkStockResponse(BaseModel):
    success: bool
    results: list[BulkStockResult]


class ProductFlagsUpdate(BaseModel):
    """Publish / merchandising flags."""

    publish: bool | None = None
    popular: bool | None = None
    deal_of_day: bool | None = Field(alias="dealOfDay", default=None)

    model_config = {"populate_by_name": True}


# ============================================================
# Read path
# ============================================================


class ProductOut(BaseModel):
    """Full product as stored, with derived pricing."""

    id: int
    seller_id: int = Field(alias="sellerId")
    category_id: int | None = Field(alias="categoryId", default=None)
    name: str
    small_description: str | None = Field(alias="smallDescription", default=None)
    description: str | None = None
    main_image: str | None = Field(alias="mainImage", default=None)
    pack: str | None = None
    tags: list[str] = Field(default_factory=list)
    selling_unit: SellingUnit = Field(alias="sellingUnit")
    weight_variants: list[WeightVariantOut] = Field(alias="weightVariants", default_factory=list)
    variations: list[VariationOut] = Field(default_factory=list)
    price: float
    compare_at_price: float | None = Field(alias="compareAtPrice", default=None)
    mrp: float | None = None
    disc_price: float = Field(alias="discPrice", default=0)
    stock: int
    discount: int = Field(ge=0, le=100)
    status: str
    publish: bool
    popular: bool = False
    deal_of_day: bool = Field(alias="dealOfDay", default=False)
    rating: float = 0
    reviews_count: int = Field(alias="reviewsCount", default=0)
    created_at: datetime | None = Field(alias="createdAt", default=None)
    updated_at: datetime | None = Field(alias="updatedAt", default=None)

    model_config = {"populate_by_name": True}


class CustomerProduct(ProductOut):
    """Product as shown to a customer, flagged by seller reachability."""

    is_available: bool = Field(alias="isAvailable")


class Pagination(BaseModel):
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total: int = Field(ge=0)
    pages: int = Field(ge=0)


class SellerProductList(BaseModel):
    success: bool = True
    data: list[ProductOut]
    pagination: Pagination


class ProductListResponse(BaseModel):
    """Response for GET /v1/products and /v1/products/nearby."""

    success: bool = True
    data: list[CustomerProduct]
    pagination: Pagination
    location_resolved: bool = Field(alias="locationResolved")
    message: str | None = None

    model_config = {"populate_by_name": True}


class ProductDetail(CustomerProduct):
    is_available_at_location: bool = Field(alias="isAvailableAtLocation")
    similar_products: list[CustomerProduct] = Field(alias="similarProducts", default_factory=list)


class ProductDetailResponse(BaseModel):
    success: bool = True
    data: ProductDetail


class ProductResponse(BaseModel):
    success: bool = True
    message: str | None = None
    data: ProductOut
