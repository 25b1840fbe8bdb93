"""Geo-availability filter.

Answers one question: which sellers' service radius covers a customer location?

- Distance: haversine great-circle distance, Earth radius 6371 km
- Membership: distance <= service_radius_km (boundary included)
- No location means no seller is in range (never "all sellers")
- Sellers without latitude, longitude or radius have no service area

Input validation (NaN, out-of-range coordinates) happens in `parse_location`, before the
filter runs. Seller locations are read through `load_seller_locations`, optionally cached
in Redis for a short TTL.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass
import logging
import math

from redis.exceptions import RedisError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.models import Seller
from marketplace.services.errors import CatalogError
from marketplace.stores.redis import KEY_SELLER_LOCATIONS, RedisCache

EARTH_RADIUS_KM = 6371.0

logger = logging.getLogger("uvicorn.error")


class LocationError(CatalogError, ValueError):
    """Coordinates supplied by a client are malformed or incomplete."""

    code = "INVALID_LOCATION"
    status_code = 400


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float


@dataclass(frozen=True)
class SellerLocation:
    seller_id: int
    latitude: float | None
    longitude: float | None
    service_radius_km: float | None

    @property
    def has_service_area(self) -> bool:
        return (
            self.latitude is not None
            and self.longitude is not None
            and self.service_radius_km is not None
        )


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points in kilometres."""
    lat1, lng1, lat2, lng2 = map(math.radians, (a.lat, a.lng, b.lat, b.lng))
    dlat = lat2 - lat1
    dlng = lng2 - lng1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))


def sellers_within_range(
    point: GeoPoint | None,
    sellers: Iterable[SellerLocation],
) -> set[int]:
    """Seller IDs whose service radius covers `point`.

    Args:
        point: Validated customer location, or None when not provided.
        sellers: Seller locations to test.

    Returns:
        Set of seller IDs; empty when `point` is None.
    """
    if point is None:
        return set()

    in_range: set[int] = set()
    for seller in sellers:
        if not seller.has_service_area:
            continue
        distance = haversine_km(point, GeoPoint(seller.latitude, seller.longitude))
        if distance <= seller.service_radius_km:
            in_range.add(seller.seller_id)
    return in_range


def _coordinate(value: float | str | None, name: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        try:
            return float(value)
        except ValueError:
            raise LocationError(f"{name} must be a number, got {value!r}") from None
    return float(value)


def parse_location(
    latitude: float | str | None,
    longitude: float | str | None,
) -> GeoPoint | None:
    """Validate client coordinates.

    Accepts numbers or raw query strings. Both missing (or blank) -> None (no location).
    Anything else must be a complete, numeric, finite, in-range pair.

    Raises:
        LocationError: If only one coordinate is given, or a value is non-numeric,
            NaN/inf or out of range.
    """
    latitude = _coordinate(latitude, "Latitude")
    longitude = _coordinate(longitude, "Longitude")
    if latitude is None and longitude is None:
        return None
    if latitude is None or longitude is None:
        raise LocationError("Both latitude and longitude are required")
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise LocationError("Coordinates must be finite numbers")
    if abs(latitude) > 90:
        raise LocationError(f"Latitude out of range: {latitude}")
    if abs(longitude) > 180:
        raise LocationError(f"Longitude out of range: {longitude}")
    return GeoPoint(lat=latitude, lng=longitude)


async def load_seller_locations(
    session: AsyncSession,
    *,
    cache: RedisCache | None = None,
    cache_ttl: int = 0,
) -> list[SellerLocation]:
    """Load active sellers that registered a service area.

    Uses Redis when a cache is given and `cache_ttl` > 0; cache failures fall back to the DB.
    """
    use_cache = cache is not None and cache_ttl > 0

    if use_cache:
        cached = await _try_get_cached_locations(cache)
        if cached is not None:
            return cached

    result = await session.execute(
        select(Seller.id, Seller.latitude, Seller.longitude, Seller.service_radius_km)
        .where(Seller.is_active.is_(True))
        .where(Seller.latitude.is_not(None))
        .where(Seller.longitude.is_not(None))
        .where(Seller.service_radius_km.is_not(None))
    )
    locations = [
        SellerLocation(
            seller_id=row.id,
            latitude=row.latitude,
            longitude=row.longitude,
            service_radius_km=row.service_radius_km,
        )
        for row in result.all()
    ]

    if use_cache:
        await _try_set_cached_locations(cache, locations, cache_ttl)
    return locations


async def find_sellers_within_range(
    session: AsyncSession,
    point: GeoPoint | None,
    *,
    cache: RedisCache | None = None,
    cache_ttl: int = 0,
) -> set[int]:
    """Seller IDs in range of `point`, read from the database.

    Call once per request and reuse the set for every product in the response.
    """
    if point is None:
        return set()

    sellers = await load_seller_locations(session, cache=cache, cache_ttl=cache_ttl)
    nearby = sellers_within_range(point, sellers)
    logger.debug(f"[geo] {len(nearby)}/{len(sellers)} sellers in range of ({point.lat}, {point.lng})")
    return nearby


async def _try_get_cached_locations(cache: RedisCache) -> list[SellerLocation] | None:
    try:
        payload = await cache.get_json(KEY_SELLER_LOCATIONS)
    except (RedisError, ValueError):
        logger.warning("[geo] seller location cache read failed, falling back to DB")
        return None
    if not isinstance(payload, list):
        return None

    try:
        return [SellerLocation(**item) for item in payload]
    except TypeError:
        return None


async def _try_set_cached_locations(
    cache: RedisCache,
    locations: list[SellerLocation],
    ttl: int,
) -> None:
    try:
        await cache.set_json(KEY_SELLER_LOCATIONS, [asdict(loc) for loc in locations], ttl)
    except RedisError:
        logger.warning("[geo] seller location cache write failed")
