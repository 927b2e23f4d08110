"""Product catalog domain models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from storefront.services.formatting import format_rating

Badge = Literal["New", "Sale", "Limited"]


class CatalogModel(BaseModel):
    """Base model speaking camelCase on the wire and snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Variant(CatalogModel):
    """A purchasable configuration of a product with its own stock count."""

    id: str
    color: str | None = None
    size: str | None = None
    stock: int = Field(0, ge=0)


class Product(CatalogModel):
    """A catalog product as served by the data sources."""

    id: str = Field(..., description="Unique identifier of the product")
    slug: str = Field(..., description="URL-safe unique identifier")
    title: str
    images: list[str] = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    compare_at_price: float | None = Field(
        None,
        ge=0,
        description="Original price shown struck through when on sale",
    )
    rating: float = Field(0.0, ge=0.0, le=5.0)
    rating_count: int = Field(0, ge=0)
    badges: list[Badge] = Field(default_factory=list)
    category: str = Field(..., description="Free-text category label")
    description: str = ""
    specs: dict[str, str] = Field(default_factory=dict)
    variants: list[Variant] = Field(default_factory=list)

    @computed_field(alias="ratingDisplay")
    @property
    def rating_display(self) -> str:
        """Rating as shown next to the stars, e.g. ``4.6``."""
        return format_rating(self.rating)

    @property
    def primary_image(self) -> str:
        return self.images[0]

    @property
    def has_variants(self) -> bool:
        return bool(self.variants)

    @property
    def in_stock(self) -> bool:
        """Products without variants are always considered in stock."""
        if not self.variants:
            return True
        return any(variant.stock > 0 for variant in self.variants)

    @property
    def on_sale(self) -> bool:
        return self.compare_at_price is not None and self.compare_at_price > self.price

    def find_variant(self, variant_id: str) -> Variant | None:
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        return None


class Category(CatalogModel):
    """Represents a browsable category. Products reference it by name."""

    id: str
    name: str
    slug: str
    description: str | None = None
