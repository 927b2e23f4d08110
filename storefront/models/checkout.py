"""Schemas used by the multi-step checkout flow."""

from __future__ import annotations

from typing import Literal

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from storefront.models.cart import CartLine
from storefront.models.product import CatalogModel

CheckoutStep = Literal["shipping", "payment", "success"]


class FormModel(CatalogModel):
    """Form payloads strip surrounding whitespace before validation."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class ShippingDetails(FormModel):
    """Shipping form submitted in step one."""

    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    phone: str | None = None
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip: str = Field(..., min_length=1)
    country: str = "United States"


class PaymentDetails(FormModel):
    """Payment form submitted in step two. Never persisted."""

    card_number: str = Field(..., min_length=1)
    expiry_date: str = Field(..., min_length=1)
    cvv: str = Field(..., min_length=1)
    card_name: str = Field(..., min_length=1)

    @property
    def card_last4(self) -> str:
        digits = "".join(ch for ch in self.card_number if ch.isdigit())
        return digits[-4:]


class OrderTotals(CatalogModel):
    """Subtotal, shipping and grand total for the current cart."""

    subtotal: float
    shipping: float
    total: float
    amount_to_free_shipping: float
    subtotal_display: str
    shipping_display: str
    total_display: str


class CheckoutState(CatalogModel):
    """Progress of a cart through the checkout steps."""

    cart_id: str
    step: CheckoutStep = "shipping"
    shipping: ShippingDetails | None = None
    order_id: str | None = None


class CheckoutView(CheckoutState):
    """Checkout state enriched with live totals."""

    totals: OrderTotals


class OrderConfirmation(CatalogModel):
    """Receipt returned once the payment step succeeds."""

    order_id: str
    cart_id: str
    items: list[CartLine]
    totals: OrderTotals
    shipping: ShippingDetails
    card_last4: str
    placed_at: str
