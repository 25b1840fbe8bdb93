"""Customer product endpoints.

GET /v1/products              - browse; every product flagged isAvailable (MARK policy)
GET /v1/products/nearby       - only products from sellers in range (STRICT policy)
GET /v1/products/{product_id} - detail with isAvailableAtLocation and similar products

All accept optional latitude/longitude. The in-range seller set is computed once per
request and reused for every product in the response.
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.schemas.product import (
    Pagination,
    ProductDetailResponse,
    ProductListResponse,
)
from marketplace.services.availability import AvailabilityPolicy
from marketplace.services.catalog import (
    ProductFilters,
    get_product_detail,
    list_products,
    page_count,
)
from marketplace.services.geo import GeoPoint, find_sellers_within_range, parse_location
from marketplace.settings import get_settings
from marketplace.stores.postgres import get_session
from marketplace.stores.redis import RedisCache, get_cache

router = APIRouter()

SortOption = Literal["price_asc", "price_desc", "discount", "popular", "newest"]


def get_location(
    latitude: str | None = Query(default=None, description="Customer latitude"),
    longitude: str | None = Query(default=None, description="Customer longitude"),
) -> GeoPoint | None:
    """Validated customer location; raises LocationError on partial or malformed input.

    Taken as raw strings so non-numeric values get the INVALID_LOCATION error body
    instead of a generic 422.
    """
    return parse_location(latitude, longitude)


async def nearby_sellers(
    session: AsyncSession,
    cache: RedisCache | None,
    point: GeoPoint | None,
) -> set[int]:
    return await find_sellers_within_range(
        session,
        point,
        cache=cache,
        cache_ttl=get_settings().seller_location_cache_ttl,
    )


def product_filters(
    category: str | None = Query(default=None, description="Category ID or slug"),
    search: str | None = Query(default=None, max_length=100),
    min_price: float | None = Query(default=None, alias="minPrice", ge=0),
    max_price: float | None = Query(default=None, alias="maxPrice", ge=0),
    min_discount: int | None = Query(default=None, alias="minDiscount", ge=0, le=100),
    sort: SortOption | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
) -> ProductFilters:
    settings = get_settings()
    return ProductFilters(
        category=category,
        search=search,
        min_price=min_price,
        max_price=max_price,
        min_discount=min_discount,
        sort=sort,
        page=page,
        limit=min(limit or settings.default_page_size, settings.max_page_size),
    )


async def _list(
    session: AsyncSession,
    cache: RedisCache | None,
    point: GeoPoint | None,
    filters: ProductFilters,
    policy: AvailabilityPolicy,
) -> ProductListResponse:
    nearby = await nearby_sellers(session, cache, point)
    result = await list_products(session, filters, point=point, nearby=nearby, policy=policy)
    return ProductListResponse(
        data=result.products,
        pagination=Pagination(
            page=filters.page,
            limit=filters.limit,
            total=result.total,
            pages=page_count(result.total, filters.limit),
        ),
        location_resolved=result.outcome.location_resolved,
        message=result.outcome.message,
    )


@router.get("", response_model=ProductListResponse)
async def browse_products(
    filters: ProductFilters = Depends(product_filters),
    point: GeoPoint | None = Depends(get_location),
    session: AsyncSession = Depends(get_session),
    cache: RedisCache | None = Depends(get_cache),
) -> ProductListResponse:
    """All visible products, each flagged with isAvailable for the given location."""
    return await _list(session, cache, point, filters, AvailabilityPolicy.MARK)


@router.get("/nearby", response_model=ProductListResponse)
async def nearby_products(
    filters: ProductFilters = Depends(product_filters),
    point: GeoPoint | None = Depends(get_location),
    session: AsyncSession = Depends(get_session),
    cache: RedisCache | None = Depends(get_cache),
) -> ProductListResponse:
    """Only products whose seller serves the given location.

    Without a location, or with no seller in range, returns an empty list and a message.
    """
    return await _list(session, cache, point, filters, AvailabilityPolicy.STRICT)


@router.get("/{product_id}", response_model=ProductDetailResponse)
async def product_detail(
    product_id: int,
    point: GeoPoint | None = Depends(get_location),
    session: AsyncSession = Depends(get_session),
    cache: RedisCache | None = Depends(get_cache),
) -> ProductDetailResponse:
    nearby = await nearby_sellers(session, cache, point)
    detail = await get_product_detail(
        session,
        product_id,
        point=point,
        nearby=nearby,
        similar_limit=get_settings().similar_products_limit,
    )
    return ProductDetailResponse(data=detail)
