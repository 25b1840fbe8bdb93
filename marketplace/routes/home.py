"""Home feed endpoint.

GET /v1/home - categories, category sections, deals of the day, popular products.

Routers are thin: call services for business logic.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.routes.products import get_location, nearby_sellers
from marketplace.schemas.home import HomeResponse
from marketplace.services.geo import GeoPoint
from marketplace.services.home import build_home_feed
from marketplace.settings import get_settings
from marketplace.stores.postgres import get_session
from marketplace.stores.redis import RedisCache, get_cache

router = APIRouter()


@router.get("/home", response_model=HomeResponse)
async def get_home(
    point: GeoPoint | None = Depends(get_location),
    session: AsyncSession = Depends(get_session),
    cache: RedisCache | None = Depends(get_cache),
) -> HomeResponse:
    """Home feed with every product flagged for the given location."""
    nearby = await nearby_sellers(session, cache, point)
    feed = await build_home_feed(
        session,
        nearby,
        per_category=get_settings().home_products_per_category,
        location_resolved=point is not None,
    )
    return HomeResponse(data=feed)
