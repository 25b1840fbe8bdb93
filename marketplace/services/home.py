"""Home feed: categories with products, deals of the day and popular picks.

Every product is flagged with the same seller set, computed once by the route.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.models import Category, Product, ProductStatus
from marketplace.schemas.home import CategoryOut, CategorySection, HomeFeed
from marketplace.services.catalog import to_customer_product

logger = logging.getLogger("uvicorn.error")

SHELF_LIMIT = 10


def _visible_products():
    return (
        select(Product)
        .where(Product.status == ProductStatus.ACTIVE.value)
        .where(Product.publish.is_(True))
    )


async def build_home_feed(
    session: AsyncSession,
    nearby: set[int],
    *,
    per_category: int = 20,
    location_resolved: bool = False,
) -> HomeFeed:
    """Assemble the home feed.

    Categories without visible products are left out of the hierarchy but stay in
    `categories`.
    """
    result = await session.execute(
        select(Category).where(Category.status == "Active").order_by(Category.order, Category.id)
    )
    categories = list(result.scalars().all())

    hierarchy: list[CategorySection] = []
    for category in categories:
        rows = await session.execute(
            _visible_products()
            .where(Product.category_id == category.id)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .limit(per_category)
        )
        products = [to_customer_product(p, nearby) for p in rows.scalars().all()]
        if not products:
            continue
        hierarchy.append(
            CategorySection(
                id=category.id,
                name=category.name,
                slug=category.slug,
                image=category.image,
                products=products,
            )
        )

    deals = await session.execute(
        _visible_products()
        .where(Product.deal_of_day.is_(True))
        .order_by(Product.discount.desc(), Product.id.desc())
        .limit(SHELF_LIMIT)
    )
    popular = await session.execute(
        _visible_products()
        .where(Product.popular.is_(True))
        .order_by(Product.created_at.desc(), Product.id.desc())
        .limit(SHELF_LIMIT)
    )

    feed = HomeFeed(
        categories=[
            CategoryOut(id=c.id, name=c.name, slug=c.slug, image=c.image) for c in categories
        ],
        category_hierarchy=hierarchy,
        deals_of_day=[to_customer_product(p, nearby) for p in deals.scalars().all()],
        popular=[to_customer_product(p, nearby) for p in popular.scalars().all()],
        location_resolved=location_resolved,
    )
    logger.debug(
        f"[home] categories={len(categories)} sections={len(hierarchy)} "
        f"deals={len(feed.deals_of_day)} popular={len(feed.popular)} nearby={len(nearby)}"
    )
    return feed
