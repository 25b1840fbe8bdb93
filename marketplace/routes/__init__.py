"""API routes."""

from fastapi import APIRouter

from marketplace.routes import home, products, seller_products

api_router = APIRouter()

# Seller dashboard (product management)
api_router.include_router(
    seller_products.router,
    prefix="/v1/sellers/{seller_id}/products",
    tags=["seller-products"],
)

# Customer catalog
api_router.include_router(products.router, prefix="/v1/products", tags=["products"])

# Home feed
api_router.include_router(home.router, prefix="/v1", tags=["home"])
