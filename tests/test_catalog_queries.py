"""Read-path queries against a real (in-memory SQLite) database.

Products are created through the seller write path, so stored rows look exactly like
production ones.
"""

import json

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.models import Category, Product, Seller
from marketplace.schemas.product import QuantityProductCreate
from marketplace.services.availability import AvailabilityPolicy
from marketplace.services.catalog import (
    ProductFilters,
    SellerProductQuery,
    create_product,
    get_product_detail,
    list_products,
    list_seller_products,
    resolve_category_id,
    update_variation_stock,
)
from marketplace.services.errors import ProductNotFoundError
from marketplace.services.geo import GeoPoint
from marketplace.services.home import build_home_feed

MG_ROAD = GeoPoint(12.97, 77.59)
ALL_VISIBLE = {"Milk", "Bread", "Curd 100% natural", "Apple"}
DAIRY = {"Milk", "Bread", "Curd 100% natural"}


async def _add(
    session: AsyncSession,
    seller_id: int,
    name: str,
    *,
    price: float,
    category_id: int | None = None,
    **extra,
) -> Product:
    payload = QuantityProductCreate.model_validate(
        {
            "name": name,
            "categoryId": category_id,
            "variations": [{"title": "Pack", "price": price, "stock": 5}],
            **extra,
        }
    )
    return await create_product(session, seller_id, payload)


@pytest.fixture
async def catalog(db_session: AsyncSession) -> dict[str, Product]:
    """Two sellers, four categories (one inactive, one empty) and six products."""
    db_session.add_all(
        [
            Seller(id=1, store_name="Corner Store", latitude=12.97, longitude=77.59, service_radius_km=5),
            Seller(id=2, store_name="Farm Direct", latitude=13.2, longitude=77.7, service_radius_km=3),
            Category(id=1, name="Dairy & Bakery", slug="dairy-bakery", status="Active", order=1),
            Category(id=2, name="Fresh Fruits", slug="fruits", status="Active", order=2),
            Category(id=3, name="Snacks", slug="snacks", status="Inactive", order=3),
            Category(id=4, name="Frozen Food", slug="frozen", status="Active", order=4),
        ]
    )
    await db_session.flush()

    products = {
        "Milk": await _add(db_session, 1, "Milk", price=30, category_id=1, tags=["organic"], popular=True),
        "Bread": await _add(
            db_session, 2, "Bread", price=40, category_id=1, compareAtPrice=50, dealOfDay=True
        ),
        "Curd 100% natural": await _add(db_session, 1, "Curd 100% natural", price=25, category_id=1),
        "Apple": await _add(
            db_session, 2, "Apple", price=120, category_id=2, compareAtPrice=130, dealOfDay=True
        ),
        "Hidden Ghee": await _add(db_session, 1, "Hidden Ghee", price=300, category_id=2, popular=True),
        "Retired Butter": await _add(db_session, 1, "Retired Butter", price=55, category_id=2),
    }
    products["Hidden Ghee"].publish = False
    products["Retired Butter"].status = "Inactive"
    await db_session.flush()
    return products


def _names(items) -> list[str]:
    return [item.name for item in items]


# ============================================================
# Customer listing
# ============================================================


@pytest.mark.asyncio
async def test_mark_lists_visible_products_and_flags_each(db_session, catalog):
    result = await list_products(
        db_session, ProductFilters(), point=MG_ROAD, nearby={1}, policy=AvailabilityPolicy.MARK
    )

    assert result.total == 4
    assert set(_names(result.products)) == ALL_VISIBLE
    assert {p.name: p.is_available for p in result.products} == {
        "Milk": True,
        "Bread": False,
        "Curd 100% natural": True,
        "Apple": False,
    }
    assert result.outcome.location_resolved is True


@pytest.mark.asyncio
async def test_mark_without_location_flags_everything_unavailable(db_session, catalog):
    result = await list_products(
        db_session, ProductFilters(), point=None, nearby=set(), policy=AvailabilityPolicy.MARK
    )
    assert result.total == 4
    assert not any(p.is_available for p in result.products)


@pytest.mark.asyncio
async def test_strict_keeps_only_sellers_in_range(db_session, catalog):
    result = await list_products(
        db_session, ProductFilters(), point=MG_ROAD, nearby={1}, policy=AvailabilityPolicy.STRICT
    )
    assert result.total == 2
    assert set(_names(result.products)) == {"Milk", "Curd 100% natural"}
    assert all(p.is_available for p in result.products)


@pytest.mark.asyncio
async def test_strict_with_category(db_session, catalog):
    result = await list_products(
        db_session,
        ProductFilters(category="fresh-fruits"),
        point=MG_ROAD,
        nearby={2},
        policy=AvailabilityPolicy.STRICT,
    )
    assert _names(result.products) == ["Apple"]


@pytest.mark.parametrize(
    ("category", "expected"),
    [
        ("dairy-bakery", DAIRY),
        ("DAIRY-BAKERY", DAIRY),
        ("dairy-and-bakery", DAIRY),
        ("fruits", {"Apple"}),
        ("fresh-fruits", {"Apple"}),
        ("Fresh_Fruits", {"Apple"}),
        ("2", {"Apple"}),
        ("snacks", ALL_VISIBLE),
        ("no-such-aisle", ALL_VISIBLE),
    ],
)
@pytest.mark.asyncio
async def test_category_filter_resolution(db_session, catalog, category, expected):
    result = await list_products(
        db_session, ProductFilters(category=category), point=None, nearby=set()
    )
    assert set(_names(result.products)) == expected


@pytest.mark.asyncio
async def test_resolve_category_id_skips_inactive(db_session, catalog):
    assert await resolve_category_id(db_session, "dairy-and-bakery") == 1
    assert await resolve_category_id(db_session, " frozen ") == 4
    assert await resolve_category_id(db_session, "snacks") is None


@pytest.mark.parametrize(
    ("term", "expected"),
    [
        ("%", ["Curd 100% natural"]),
        ("_", []),
        ('"', []),
        ("organic", ["Milk"]),
        ("BREAD", ["Bread"]),
    ],
)
@pytest.mark.asyncio
async def test_search_matches_literal_text(db_session, catalog, term, expected):
    result = await list_products(db_session, ProductFilters(search=term), point=None, nearby=set())
    assert _names(result.products) == expected


@pytest.mark.asyncio
async def test_price_filter_and_sort(db_session, catalog):
    result = await list_products(
        db_session,
        ProductFilters(min_price=30, max_price=100, sort="price_desc"),
        point=None,
        nearby=set(),
    )
    assert _names(result.products) == ["Bread", "Milk"]


@pytest.mark.asyncio
async def test_min_discount_filter(db_session, catalog):
    result = await list_products(db_session, ProductFilters(min_discount=10), point=None, nearby=set())
    assert _names(result.products) == ["Bread"]
    assert result.products[0].discount == 20


@pytest.mark.asyncio
async def test_pagination_counts_all_matches(db_session, catalog):
    result = await list_products(
        db_session, ProductFilters(page=2, limit=3), point=None, nearby=set()
    )
    assert result.total == 4
    # newest first
    assert _names(result.products) == ["Milk"]


# ============================================================
# Product detail
# ============================================================


@pytest.mark.asyncio
async def test_detail_similar_limited_to_sellers_in_range(db_session, catalog):
    milk = catalog["Milk"]
    detail = await get_product_detail(db_session, milk.id, point=MG_ROAD, nearby={1})

    assert detail.is_available is True
    assert detail.is_available_at_location is True
    assert _names(detail.similar_products) == ["Curd 100% natural"]


@pytest.mark.asyncio
async def test_detail_without_location_suggests_whole_category(db_session, catalog):
    detail = await get_product_detail(db_session, catalog["Milk"].id, point=None, nearby=set())

    assert detail.is_available_at_location is False
    assert _names(detail.similar_products) == ["Curd 100% natural", "Bread"]
    assert not any(p.is_available for p in detail.similar_products)


@pytest.mark.asyncio
async def test_detail_with_no_seller_in_range_has_no_suggestions(db_session, catalog):
    detail = await get_product_detail(db_session, catalog["Milk"].id, point=MG_ROAD, nearby=set())
    assert detail.similar_products == []


@pytest.mark.asyncio
async def test_detail_similar_skips_hidden_products(db_session, catalog):
    detail = await get_product_detail(db_session, catalog["Apple"].id, point=None, nearby=set())
    assert detail.similar_products == []


@pytest.mark.parametrize("name", ["Hidden Ghee", "Retired Butter"])
@pytest.mark.asyncio
async def test_detail_of_invisible_product_is_not_found(db_session, catalog, name):
    with pytest.raises(ProductNotFoundError):
        await get_product_detail(db_session, catalog[name].id, point=None, nearby=set())


# ============================================================
# Home feed
# ============================================================


@pytest.mark.asyncio
async def test_home_feed_sections(db_session, catalog):
    feed = await build_home_feed(db_session, {1}, location_resolved=True)

    assert [c.slug for c in feed.categories] == ["dairy-bakery", "fruits", "frozen"]
    assert [s.slug for s in feed.category_hierarchy] == ["dairy-bakery", "fruits"]
    assert _names(feed.category_hierarchy[1].products) == ["Apple"]
    assert _names(feed.deals_of_day) == ["Bread", "Apple"]
    assert [p.is_available for p in feed.deals_of_day] == [False, False]
    assert _names(feed.popular) == ["Milk"]
    assert feed.popular[0].is_available is True
    assert feed.location_resolved is True


@pytest.mark.asyncio
async def test_home_feed_limits_products_per_category(db_session, catalog):
    feed = await build_home_feed(db_session, set(), per_category=1)
    assert [len(s.products) for s in feed.category_hierarchy] == [1, 1]


# ============================================================
# Seller dashboard listing
# ============================================================


@pytest.mark.asyncio
async def test_seller_list_is_scoped_to_seller(db_session, catalog):
    rows, total = await list_seller_products(
        db_session, 1, SellerProductQuery(sort_by="name", sort_order="asc")
    )
    assert total == 4
    assert _names(rows) == ["Curd 100% natural", "Hidden Ghee", "Milk", "Retired Butter"]


@pytest.mark.asyncio
async def test_seller_list_stock_filter(db_session, catalog):
    butter = catalog["Retired Butter"]
    variation_id = json.loads(butter.variations_json)[0]["id"]
    await update_variation_stock(db_session, 1, butter.id, variation_id, stock=0)

    out_of_stock, total = await list_seller_products(db_session, 1, SellerProductQuery(stock="outOfStock"))
    assert _names(out_of_stock) == ["Retired Butter"]
    assert total == 1

    in_stock, total = await list_seller_products(db_session, 1, SellerProductQuery(stock="inStock"))
    assert total == 3
    assert "Retired Butter" not in _names(in_stock)


@pytest.mark.parametrize(
    ("flag", "expected"),
    [
        ("unpublished", ["Hidden Ghee"]),
        ("popular", ["Hidden Ghee", "Milk"]),
        ("dealOfDay", []),
    ],
)
@pytest.mark.asyncio
async def test_seller_list_flag_filter(db_session, catalog, flag, expected):
    rows, _ = await list_seller_products(
        db_session, 1, SellerProductQuery(flag=flag, sort_by="name", sort_order="asc")
    )
    assert _names(rows) == expected


@pytest.mark.asyncio
async def test_seller_list_search_and_page(db_session, catalog):
    rows, total = await list_seller_products(db_session, 1, SellerProductQuery(search="100%"))
    assert _names(rows) == ["Curd 100% natural"]
    assert total == 1

    rows, total = await list_seller_products(db_session, 1, SellerProductQuery(page=2, limit=3))
    assert total == 4
    assert len(rows) == 1
