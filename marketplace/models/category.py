"""Category model.

Read-only collaborator: used for listing filters, similar products and the home feed.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from marketplace.stores.postgres import Base


class Category(Base):
    """Product category."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    slug: Mapped[str] = mapped_column(String(120), unique=True, index=True)
    image: Mapped[str | None] = mapped_column(String(500))
    status: Mapped[str] = mapped_column(String(20), default="Active", index=True)  # Active, Inactive
    order: Mapped[int] = mapped_column(default=0)

    def __repr__(self) -> str:
        return f"<Category {self.slug}>"
