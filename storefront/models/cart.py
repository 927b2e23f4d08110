"""Cart line items, persisted snapshots and API schemas."""

from __future__ import annotations

from pydantic import Field

from storefront.models.product import CatalogModel


class CartLineVariant(CatalogModel):
    """Variant descriptor captured on a cart line. Stock is not snapshotted."""

    id: str
    color: str | None = None
    size: str | None = None


class CartLine(CatalogModel):
    """One row in the cart, identified by product + variant."""

    id: str = Field(..., description="Composite line identity")
    product_id: str
    slug: str
    title: str
    image: str
    price: float = Field(..., ge=0, description="Unit price captured at add time")
    quantity: int = Field(..., ge=1)
    variant: CartLineVariant | None = None


class CartSnapshot(CatalogModel):
    """Serialized form of a cart stored in the durable slot."""

    items: list[CartLine] = Field(default_factory=list)
    version: int = 0


class CartView(CatalogModel):
    """Response body describing a cart and its derived totals."""

    cart_id: str
    items: list[CartLine] = Field(default_factory=list)
    subtotal: float
    item_count: int
    subtotal_display: str


class AddCartItemRequest(CatalogModel):
    """Incoming payload for POST /cart/items."""

    product_id: str = Field(..., min_length=1)
    variant_id: str | None = None
    quantity: int = Field(1, ge=1)


class UpdateCartItemRequest(CatalogModel):
    """Incoming payload for PATCH /cart/items/{line_id}.

    A quantity of zero or less removes the line.
    """

    quantity: int
