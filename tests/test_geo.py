import math
from types import SimpleNamespace

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from marketplace.services.geo import (
    GeoPoint,
    LocationError,
    SellerLocation,
    find_sellers_within_range,
    haversine_km,
    load_seller_locations,
    parse_location,
    sellers_within_range,
)

KORAMANGALA = GeoPoint(12.9352, 77.6245)
INDIRANAGAR = GeoPoint(12.9784, 77.6408)


def _seller(seller_id: int, point: GeoPoint | None, radius: float | None) -> SellerLocation:
    return SellerLocation(
        seller_id=seller_id,
        latitude=point.lat if point else None,
        longitude=point.lng if point else None,
        service_radius_km=radius,
    )


def test_haversine_known_distance():
    # One degree of latitude is ~111.19 km on a 6371 km sphere.
    assert haversine_km(GeoPoint(0, 0), GeoPoint(1, 0)) == pytest.approx(111.19, abs=0.01)
    assert haversine_km(KORAMANGALA, KORAMANGALA) == 0


def test_boundary_distance_is_included():
    distance = haversine_km(INDIRANAGAR, KORAMANGALA)
    sellers = [_seller(1, KORAMANGALA, distance)]
    assert sellers_within_range(INDIRANAGAR, sellers) == {1}


def test_just_beyond_radius_is_excluded():
    distance = haversine_km(INDIRANAGAR, KORAMANGALA)
    sellers = [_seller(1, KORAMANGALA, distance - 1e-6)]
    assert sellers_within_range(INDIRANAGAR, sellers) == set()


def test_no_location_returns_empty_set():
    sellers = [_seller(1, KORAMANGALA, 20000), _seller(2, INDIRANAGAR, 20000)]
    assert sellers_within_range(None, sellers) == set()


def test_sellers_without_service_area_are_skipped():
    sellers = [
        _seller(1, None, 10),
        SellerLocation(seller_id=2, latitude=KORAMANGALA.lat, longitude=KORAMANGALA.lng, service_radius_km=None),
        _seller(3, KORAMANGALA, 10),
    ]
    assert sellers_within_range(INDIRANAGAR, sellers) == {3}


def test_parse_location_both_missing_is_none():
    assert parse_location(None, None) is None


def test_parse_location_valid_pair():
    assert parse_location(12.9, 77.6) == GeoPoint(12.9, 77.6)


def test_parse_location_from_query_strings():
    assert parse_location(" 12.9", "77.6 ") == GeoPoint(12.9, 77.6)
    assert parse_location("", "  ") is None


@pytest.mark.parametrize(
    ("latitude", "longitude"),
    [
        (12.9, None),
        (None, 77.6),
        (math.nan, 77.6),
        (12.9, math.inf),
        (91, 0),
        (0, -180.5),
        ("abc", "77.6"),
        ("12.9", "east"),
        ("nan", "77.6"),
        ("12.9", ""),
    ],
)
def test_parse_location_rejects_bad_input(latitude, longitude):
    with pytest.raises(LocationError) as exc_info:
        parse_location(latitude, longitude)
    assert exc_info.value.code == "INVALID_LOCATION"
    assert exc_info.value.status_code == 400


class FakeResult:
    def __init__(self, rows):
        self._rows = rows

    def all(self):
        return self._rows


class FakeSession:
    def __init__(self, rows):
        self.rows = rows
        self.executed = 0

    async def execute(self, stmt):
        self.executed += 1
        return FakeResult(self.rows)


class FakeCache:
    def __init__(self, payload=None, fail=False):
        self.payload = payload
        self.fail = fail
        self.stored = None

    async def get_json(self, key):
        if self.fail:
            raise RedisConnectionError("down")
        return self.payload

    async def set_json(self, key, value, ttl):
        if self.fail:
            raise RedisConnectionError("down")
        self.stored = (key, value, ttl)


def _rows():
    return [
        SimpleNamespace(id=1, latitude=KORAMANGALA.lat, longitude=KORAMANGALA.lng, service_radius_km=5),
        SimpleNamespace(id=2, latitude=INDIRANAGAR.lat, longitude=INDIRANAGAR.lng, service_radius_km=1),
    ]


@pytest.mark.asyncio
async def test_find_sellers_within_range_from_db():
    session = FakeSession(_rows())
    # Koramangala to Indiranagar is ~5 km: only seller 1's radius reaches.
    nearby = await find_sellers_within_range(session, GeoPoint(12.9360, 77.6250))
    assert nearby == {1}
    assert session.executed == 1


@pytest.mark.asyncio
async def test_find_sellers_without_point_skips_db():
    session = FakeSession(_rows())
    assert await find_sellers_within_range(session, None) == set()
    assert session.executed == 0


@pytest.mark.asyncio
async def test_load_seller_locations_uses_cache_hit():
    session = FakeSession(_rows())
    cache = FakeCache(
        payload=[{"seller_id": 9, "latitude": 1.0, "longitude": 2.0, "service_radius_km": 3.0}]
    )
    locations = await load_seller_locations(session, cache=cache, cache_ttl=60)
    assert locations == [SellerLocation(seller_id=9, latitude=1.0, longitude=2.0, service_radius_km=3.0)]
    assert session.executed == 0


@pytest.mark.asyncio
async def test_load_seller_locations_fills_cache_on_miss():
    session = FakeSession(_rows())
    cache = FakeCache(payload=None)
    locations = await load_seller_locations(session, cache=cache, cache_ttl=60)
    assert [loc.seller_id for loc in locations] == [1, 2]
    key, value, ttl = cache.stored
    assert ttl == 60
    assert value[0]["seller_id"] == 1


@pytest.mark.asyncio
async def test_load_seller_locations_falls_back_when_redis_fails():
    session = FakeSession(_rows())
    locations = await load_seller_locations(session, cache=FakeCache(fail=True), cache_ttl=60)
    assert len(locations) == 2
    assert session.executed == 1


@pytest.mark.asyncio
async def test_load_seller_locations_ignores_cache_when_ttl_zero():
    session = FakeSession(_rows())
    cache = FakeCache(payload=[])
    await load_seller_locations(session, cache=cache, cache_ttl=0)
    assert session.executed == 1
    assert cache.stored is None
