"""Schemas describing catalog queries and their results."""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from storefront.models.product import CatalogModel, Product


class SortOption(str, Enum):
    """Supported catalog orderings. Relevance keeps the input order."""

    RELEVANCE = "relevance"
    PRICE_LOW = "price-low"
    PRICE_HIGH = "price-high"
    NEWEST = "newest"
    RATING = "rating"


class FilterSpec(CatalogModel):
    """Optional narrowing criteria, combined with logical AND."""

    category: str | None = None
    min_price: float | None = Field(None, ge=0)
    max_price: float | None = Field(None, ge=0)
    min_rating: float | None = Field(None, ge=0, le=5)
    in_stock: bool | None = None


class CatalogPage(CatalogModel):
    """One page of a filtered and sorted product listing."""

    items: list[Product] = Field(default_factory=list)
    page: int
    page_size: int
    total_items: int
    total_pages: int


class HomeSections(CatalogModel):
    """Product groupings shown on the storefront landing page."""

    best_sellers: list[Product] = Field(default_factory=list)
    featured: list[Product] = Field(default_factory=list)
