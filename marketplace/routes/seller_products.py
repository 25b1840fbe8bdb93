"""Seller product endpoints.

POST   /v1/sellers/{seller_id}/products                                    - create
GET    /v1/sellers/{seller_id}/products                                    - list own products
GET    /v1/sellers/{seller_id}/products/{product_id}                       - get one
PATCH  /v1/sellers/{seller_id}/products/{product_id}                       - partial update
DELETE /v1/sellers/{seller_id}/products/{product_id}                       - delete
PATCH  /v1/sellers/{seller_id}/products/{product_id}/variations/{id}/stock - variation stock
POST   /v1/sellers/{seller_id}/products/stock/bulk                         - bulk stock
PATCH  /v1/sellers/{seller_id}/products/{product_id}/status                - publish/popular/deal flags

Seller identity comes from the path; authentication is handled upstream.
Service errors (CatalogError) are rendered by the app-level handler.
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.schemas.product import (
    BulkStockRequest,
    BulkStockResponse,
    Pagination,
    ProductCreateRequest,
    ProductFlagsUpdate,
    ProductResponse,
    ProductUpdate,
    SellerProductList,
    StockUpdate,
)
from marketplace.services.catalog import (
    SellerProductQuery,
    bulk_update_stock,
    create_product,
    delete_product,
    get_seller_product,
    list_seller_products,
    page_count,
    to_product_out,
    update_product,
    update_product_flags,
    update_variation_stock,
)
from marketplace.settings import get_settings
from marketplace.stores.postgres import get_session

router = APIRouter()


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_seller_product(
    seller_id: int,
    body: ProductCreateRequest,
    session: AsyncSession = Depends(get_session),
) -> ProductResponse:
    """Create a product; pricing fields are derived from its variants."""
    product = await create_product(session, seller_id, body.root)
    return ProductResponse(message="Product created successfully", data=to_product_out(product))


@router.get("", response_model=SellerProductList)
async def list_own_products(
    seller_id: int,
    search: str | None = Query(default=None, max_length=100),
    category_id: int | None = Query(default=None, alias="categoryId"),
    flag: Literal["published", "unpublished", "popular", "dealOfDay"] | None = Query(default=None),
    stock: Literal["inStock", "outOfStock"] | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1),
    sort_by: Literal["createdAt", "price", "stock", "name", "discount"] = Query(
        default="createdAt", alias="sortBy"
    ),
    sort_order: Literal["asc", "desc"] = Query(default="desc", alias="sortOrder"),
    session: AsyncSession = Depends(get_session),
) -> SellerProductList:
    """List the seller's products (all statuses) with dashboard filters."""
    limit = min(limit, get_settings().max_page_size)
    query = SellerProductQuery(
        search=search,
        category_id=category_id,
        flag=flag,
        stock=stock,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    products, total = await list_seller_products(session, seller_id, query)
    return SellerProductList(
        data=[to_product_out(p) for p in products],
        pagination=Pagination(page=page, limit=limit, total=total, pages=page_count(total, limit)),
    )


@router.post("/stock/bulk", response_model=BulkStockResponse)
async def bulk_stock(
    seller_id: int,
    body: BulkStockRequest,
    session: AsyncSession = Depends(get_session),
) -> BulkStockResponse:
    """Update many variation stocks at once; unknown entries are reported, not fatal."""
    results = await bulk_update_stock(session, seller_id, body.updates)
    return BulkStockResponse(success=all(r.success for r in results), results=results)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_own_product(
    seller_id: int,
    product_id: int,
    session: AsyncSession = Depends(get_session),
) -> ProductResponse:
    product = await get_seller_product(session, seller_id, product_id)
    return ProductResponse(data=to_product_out(product))


@router.patch("/{product_id}", response_model=ProductResponse)
async def update_own_product(
    seller_id: int,
    product_id: int,
    body: ProductUpdate,
    session: AsyncSession = Depends(get_session),
) -> ProductResponse:
    product = await update_product(session, seller_id, product_id, body)
    return ProductResponse(message="Product updated successfully", data=to_product_out(product))


@router.delete("/{product_id}")
async def delete_own_product(
    seller_id: int,
    product_id: int,
    session: AsyncSession = Depends(get_session),
) -> dict:
    await delete_product(session, seller_id, product_id)
    return {"success": True, "message": "Product deleted successfully"}


@router.patch("/{product_id}/variations/{variation_id}/stock", response_model=ProductResponse)
async def update_stock(
    seller_id: int,
    product_id: int,
    variation_id: str,
    body: StockUpdate,
    session: AsyncSession = Depends(get_session),
) -> ProductResponse:
    """Update one variation; product stock is recomputed from all variations."""
    product = await update_variation_stock(
        session,
        seller_id,
        product_id,
        variation_id,
        stock=body.stock,
        status=body.status,
    )
    return ProductResponse(message="Stock updated successfully", data=to_product_out(product))


@router.patch("/{product_id}/status", response_model=ProductResponse)
async def update_flags(
    seller_id: int,
    product_id: int,
    body: ProductFlagsUpdate,
    session: AsyncSession = Depends(get_session),
) -> ProductResponse:
    product = await update_product_flags(session, seller_id, product_id, body)
    return ProductResponse(message="Product status updated successfully", data=to_product_out(product))
