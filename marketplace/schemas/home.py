"""Schemas for the home feed endpoint (/v1/home)."""

from pydantic import BaseModel, Field

from marketplace.schemas.product import CustomerProduct


class CategoryOut(BaseModel):
    id: int
    name: str
    slug: str
    image: str | None = None


class CategorySection(CategoryOut):
    """A category with its visible products."""

    products: list[CustomerProduct] = Field(default_factory=list)


class HomeFeed(BaseModel):
    categories: list[CategoryOut]
    category_hierarchy: list[CategorySection] = Field(alias="categoryHierarchy")
    deals_of_day: list[CustomerProduct] = Field(alias="dealsOfDay", default_factory=list)
    popular: list[CustomerProduct] = Field(default_factory=list)
    location_resolved: bool = Field(alias="locationResolved")

    model_config = {"populate_by_name": True}


class HomeResponse(BaseModel):
    success: bool = True
    data: HomeFeed
