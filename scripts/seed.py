#!/usr/bin/env python3
"""Seed database with initial data.

Creates:
- Sellers with store location and delivery radius
- Product categories
- Sample products in both selling units (weight tiers and quantity variations)

Products go through the catalog service, so they are validated and their price, stock
and discount are derived exactly as for seller-created products.
Seed script is idempotent (skips rows that already exist).

Usage:
    python -m scripts.seed
"""

import asyncio
import os
import sys

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.models import Category, Product, Seller
from marketplace.schemas.product import ProductCreateRequest
from marketplace.services.catalog import create_product
from marketplace.settings import get_settings
from marketplace.stores.postgres import Database

load_dotenv()

# ============================================================
# Sellers (Bengaluru area)
# ============================================================

SELLERS = [
    {"store_name": "Fresh Basket Koramangala", "city": "Bengaluru", "latitude": 12.9352, "longitude": 77.6245, "service_radius_km": 5},
    {"store_name": "Green Grocer Indiranagar", "city": "Bengaluru", "latitude": 12.9784, "longitude": 77.6408, "service_radius_km": 3},
    {"store_name": "Daily Needs Whitefield", "city": "Bengaluru", "latitude": 12.9698, "longitude": 77.7500, "service_radius_km": 8},
    # Registered without a service area yet: never in range
    {"store_name": "Corner Store (setup pending)", "city": "Bengaluru", "latitude": None, "longitude": None, "service_radius_km": None},
]

# ============================================================
# Categories
# ============================================================

CATEGORIES = [
    {"name": "Fruits & Vegetables", "slug": "fruits-vegetables", "order": 1},
    {"name": "Dairy & Bakery", "slug": "dairy-bakery", "order": 2},
    {"name": "Staples", "slug": "staples", "order": 3},
    {"name": "Snacks", "slug": "snacks", "order": 4},
]

# ============================================================
# Sample Products (request payloads, as the seller dashboard sends them)
# ============================================================

SAMPLE_PRODUCTS = [
    {
        "seller": "Fresh Basket Koramangala",
        "category": "fruits-vegetables",
        "payload": {
            "name": "Tomato",
            "sellingUnit": "weight",
            "pack": "Loose",
            "tags": ["vegetable", "fresh"],
            "dealOfDay": True,
            "weightVariants": [
                {"label": "1 KG", "grams": 1000, "price": 40, "mrp": 50, "stock": 30},
                {"label": "500 GM", "grams": 500, "price": 22, "mrp": 25, "stock": 50},
                {"label": "250 GM", "grams": 250, "price": 12, "mrp": 0, "stock": 0, "isEnabled": False},
            ],
        },
    },
    {
        "seller": "Fresh Basket Koramangala",
        "category": "dairy-bakery",
        "payload": {
            "name": "Toned Milk",
            "pack": "500 ml",
            "popular": True,
            "compareAtPrice": 30,
            "variations": [
                {"title": "500 ml", "price": 27, "stock": 40},
                {"title": "1 L", "price": 52, "stock": 20},
            ],
        },
    },
    {
        "seller": "Green Grocer Indiranagar",
        "category": "fruits-vegetables",
        "payload": {
            "name": "Banana Robusta",
            "sellingUnit": "weight",
            "popular": True,
            "weightVariants": [
                {"label": "500 GM", "grams": 500, "price": 30, "mrp": 36, "stock": 12},
                {"label": "1 KG", "grams": 1000, "price": 56, "mrp": 70, "stock": 8},
            ],
        },
    },
    {
        "seller": "Daily Needs Whitefield",
        "category": "staples",
        "payload": {
            "name": "Basmati Rice",
            "sellingUnit": "weight",
            "weightVariants": [
                {"label": "5 KG", "grams": 5000, "price": 599, "mrp": 750, "stock": 10},
                {"label": "1 KG", "grams": 1000, "price": 135, "mrp": 160, "stock": 25},
            ],
        },
    },
    {
        "seller": "Daily Needs Whitefield",
        "category": "snacks",
        "payload": {
            "name": "Salted Potato Chips",
            "compareAtPrice": 50,
            "dealOfDay": True,
            "variations": [
                {"title": "Family pack", "price": 45, "discPrice": 40, "stock": 0, "status": "Sold out"},
                {"title": "Small pack", "price": 20, "stock": 60},
            ],
        },
    },
]


async def seed_database() -> None:
    """Main seed function."""
    settings = get_settings()
    db = Database(settings)

    async with db.session() as session:
        print("🌱 Seeding database...")

        # 1. Seed Sellers
        print("\n🏪 Creating Sellers...")
        seller_map = await seed_sellers(session)

        # 2. Seed Categories
        print("\n🗂️  Creating Categories...")
        category_map = await seed_categories(session)

        # 3. Seed Products
        print("\n🛒 Creating Products...")
        await seed_products(session, seller_map, category_map)

    print("\n✅ Database seeded successfully!")
    await db.close()


async def seed_sellers(session: AsyncSession) -> dict[str, int]:
    """Seed Sellers and return mapping of store_name -> id."""
    seller_map: dict[str, int] = {}

    for s in SELLERS:
        result = await session.execute(select(Seller).where(Seller.store_name == s["store_name"]))
        existing = result.scalar_one_or_none()

        if existing:
            print(f"  ⏭️  {s['store_name']} (exists)")
            seller_map[s["store_name"]] = existing.id
            continue

        seller = Seller(**s)
        session.add(seller)
        await session.flush()
        seller_map[s["store_name"]] = seller.id
        radius = f"{s['service_radius_km']} km" if s["service_radius_km"] is not None else "no service area"
        print(f"  ✅ {s['store_name']} ({radius})")

    return seller_map


async def seed_categories(session: AsyncSession) -> dict[str, int]:
    """Seed Categories and return mapping of slug -> id."""
    category_map: dict[str, int] = {}

    for c in CATEGORIES:
        result = await session.execute(select(Category).where(Category.slug == c["slug"]))
        existing = result.scalar_one_or_none()

        if existing:
            print(f"  ⏭️  {c['slug']} (exists)")
            category_map[c["slug"]] = existing.id
            continue

        category = Category(**c)
        session.add(category)
        await session.flush()
        category_map[c["slug"]] = category.id
        print(f"  ✅ {c['name']}")

    return category_map


async def seed_products(
    session: AsyncSession,
    seller_map: dict[str, int],
    category_map: dict[str, int],
) -> None:
    """Seed sample products through the catalog write path."""
    for product_def in SAMPLE_PRODUCTS:
        seller_id = seller_map.get(product_def["seller"])
        if not seller_id:
            print(f"  ⚠️  Seller not found: {product_def['seller']}")
            continue

        name = product_def["payload"]["name"]
        result = await session.execute(
            select(Product.id).where(Product.seller_id == seller_id).where(Product.name == name)
        )
        if result.scalar_one_or_none() is not None:
            print(f"  ⏭️  {name} @ {product_def['seller']} (exists)")
            continue

        payload = {**product_def["payload"], "categoryId": category_map.get(product_def["category"])}
        request = ProductCreateRequest.model_validate(payload)
        product = await create_product(session, seller_id, request.root)
        print(
            f"  ✅ {name} @ {product_def['seller']} "
            f"(₹{product.price}, mrp={product.compare_at_price}, {product.discount}% off, stock={product.stock})"
        )


if __name__ == "__main__":
    asyncio.run(seed_database())
