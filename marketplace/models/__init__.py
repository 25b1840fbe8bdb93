"""SQLAlchemy ORM models.

Models represent database tables:
- sellers: Stores with location and delivery radius
- categories: Product categories
- products: Products with variant lists and derived pricing
"""

from marketplace.models.seller import Seller
from marketplace.models.category import Category
from marketplace.models.product import Product, ProductStatus

__all__ = ["Seller", "Category", "Product", "ProductStatus"]
