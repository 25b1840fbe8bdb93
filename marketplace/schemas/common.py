"""Error body shared by every endpoint.

{ "error": { "code": "PRODUCT_NOT_FOUND", "message": "...", "detail": {"product_id": 42} } }
"""

from pydantic import BaseModel

from marketplace.services.errors import CatalogError

# Keys identifying the offending entity or field, e.g. product_id, variation_id, field
ErrorContext = dict[str, str | int]


class ErrorDetail(BaseModel):
    code: str
    message: str
    detail: ErrorContext | None = None


class ErrorResponse(BaseModel):
    """Top-level error envelope."""

    error: ErrorDetail

    @classmethod
    def from_error(cls, exc: CatalogError) -> "ErrorResponse":
        """Render a service error; an empty detail becomes null."""
        return cls(error=ErrorDetail(code=exc.code, message=exc.message, detail=exc.detail or None))

    @classmethod
    def internal(cls, message: str = "Internal server error") -> "ErrorResponse":
        return cls(error=ErrorDetail(code="INTERNAL_ERROR", message=message))
