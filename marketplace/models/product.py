"""Product model.

Holds the variant lists (JSON text) and the derived pricing fields computed from them by
`services.pricing.normalize` before every write:
- price, compare_at_price (exposed as mrp), stock, discount

Visibility is gated by status == Active and publish, independently of stock.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from marketplace.services.pricing import SellingUnit
from marketplace.stores.postgres import Base


class ProductStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    PENDING = "Pending"
    REJECTED = "Rejected"


class Product(Base):
    """Product listed by a single seller."""

    __tablename__ = "products"
    __table_args__ = (
        Index("ix_products_status_publish", "status", "publish"),
        Index("ix_products_category_status_publish", "category_id", "status", "publish"),
        Index("ix_products_seller_status", "seller_id", "status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # Relations
    seller_id: Mapped[int] = mapped_column(ForeignKey("sellers.id", ondelete="CASCADE"), index=True)
    category_id: Mapped[int | None] = mapped_column(ForeignKey("categories.id"), index=True)

    # Basic info
    name: Mapped[str] = mapped_column(String(200))
    small_description: Mapped[str | None] = mapped_column(String(500))
    description: Mapped[str | None] = mapped_column(Text)
    main_image: Mapped[str | None] = mapped_column(Text)
    pack: Mapped[str | None] = mapped_column(String(100))  # e.g. "1 kg", "6 x 200 ml"
    tags_json: Mapped[str | None] = mapped_column(Text)  # JSON array of strings
    tags_text: Mapped[str | None] = mapped_column(Text)  # tags joined by newlines, searched with LIKE

    # Selling unit + variants (JSON arrays)
    selling_unit: Mapped[str] = mapped_column(String(20), default=SellingUnit.QUANTITY.value)
    weight_variants_json: Mapped[str | None] = mapped_column(Text)
    variations_json: Mapped[str | None] = mapped_column(Text)

    # Derived pricing (see services.pricing)
    price: Mapped[float] = mapped_column(default=0, index=True)
    compare_at_price: Mapped[float | None] = mapped_column()
    disc_price: Mapped[float] = mapped_column(default=0)
    stock: Mapped[int] = mapped_column(default=0)
    discount: Mapped[int] = mapped_column(default=0, index=True)  # 0-100

    # Status flags
    status: Mapped[str] = mapped_column(String(20), default=ProductStatus.ACTIVE.value)
    publish: Mapped[bool] = mapped_column(default=True)
    popular: Mapped[bool] = mapped_column(default=False)
    deal_of_day: Mapped[bool] = mapped_column(default=False)

    # Ratings
    rating: Mapped[float] = mapped_column(default=0)
    reviews_count: Mapped[int] = mapped_column(default=0)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    @property
    def mrp(self) -> float | None:
        """Alias of compare_at_price used by storefront clients."""
        return self.compare_at_price

    def __repr__(self) -> str:
        return f"<Product {self.id} {self.name!r} {self.price:.2f}>"
