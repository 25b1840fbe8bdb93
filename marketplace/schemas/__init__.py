"""Pydantic schemas for API request/response validation."""

from marketplace.schemas.common import ErrorDetail, ErrorResponse
from marketplace.schemas.home import CategoryOut, CategorySection, HomeFeed, HomeResponse
from marketplace.schemas.product import (
    CustomerProduct,
    ProductCreateRequest,
    ProductDetail,
    ProductListResponse,
    ProductOut,
    ProductUpdate,
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "CategoryOut",
    "CategorySection",
    "HomeFeed",
    "HomeResponse",
    "CustomerProduct",
    "ProductCreateRequest",
    "ProductDetail",
    "ProductListResponse",
    "ProductOut",
    "ProductUpdate",
]
