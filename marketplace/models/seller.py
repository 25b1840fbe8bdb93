"""Seller model.

A seller owns products and delivers within a service radius of its registered location.
Sellers without a complete location have no service area.
"""

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from marketplace.stores.postgres import Base


class Seller(Base):
    """Seller (store) with delivery area."""

    __tablename__ = "sellers"

    id: Mapped[int] = mapped_column(primary_key=True)

    store_name: Mapped[str] = mapped_column(String(200), index=True)
    city: Mapped[str | None] = mapped_column(String(100))
    address: Mapped[str | None] = mapped_column(String(500))

    # Location (WGS84) and delivery radius
    latitude: Mapped[float | None] = mapped_column()
    longitude: Mapped[float | None] = mapped_column()
    service_radius_km: Mapped[float | None] = mapped_column()

    is_active: Mapped[bool] = mapped_column(default=True, index=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Seller {self.id} {self.store_name}>"
