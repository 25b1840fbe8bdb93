"""Domain errors raised by services and rendered by the API layer.

Each error carries a stable code and an HTTP status; `main.py` turns them into the
structured error format: { "error": { "code", "message", "detail" } }
"""

from typing import Any


class CatalogError(Exception):
    """Base class for expected, client-facing service errors."""

    code = "CATALOG_ERROR"
    status_code = 400

    @property
    def message(self) -> str:
        return str(self)

    @property
    def detail(self) -> dict[str, Any]:
        return {}


class SellerNotFoundError(CatalogError):
    code = "SELLER_NOT_FOUND"
    status_code = 404

    def __init__(self, seller_id: int) -> None:
        super().__init__(f"Seller {seller_id} not found")
        self.seller_id = seller_id

    @property
    def detail(self) -> dict[str, Any]:
        return {"seller_id": self.seller_id}


class ProductNotFoundError(CatalogError):
    code = "PRODUCT_NOT_FOUND"
    status_code = 404

    def __init__(self, product_id: int, variation_id: str | None = None) -> None:
        if variation_id is None:
            message = f"Product {product_id} not found"
        else:
            message = f"Variation {variation_id} of product {product_id} not found"
        super().__init__(message)
        self.product_id = product_id
        self.variation_id = variation_id

    @property
    def detail(self) -> dict[str, Any]:
        detail: dict[str, Any] = {"product_id": self.product_id}
        if self.variation_id is not None:
            detail["variation_id"] = self.variation_id
        return detail


class CategoryNotFoundError(CatalogError):
    code = "CATEGORY_NOT_FOUND"
    status_code = 404

    def __init__(self, category_id: int) -> None:
        super().__init__(f"Category {category_id} not found")
        self.category_id = category_id

    @property
    def detail(self) -> dict[str, Any]:
        return {"category_id": self.category_id}
