"""Two-step checkout flow: shipping, then (stubbed) payment."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends
from pydantic import ValidationError

from storefront.config import settings
from storefront.models.checkout import (
    CheckoutState,
    CheckoutView,
    OrderConfirmation,
    OrderTotals,
    PaymentDetails,
    ShippingDetails,
)
from storefront.services.cart.service import CartService, get_cart_service
from storefront.services.formatting import format_currency
from storefront.services.storage.redis_client import get_redis_client

logger = logging.getLogger(__name__)


class CheckoutError(Exception):
    """Base class for checkout requests that cannot proceed."""


class EmptyCartError(CheckoutError):
    pass


class CheckoutStepError(CheckoutError):
    pass


def compute_order_totals(
    subtotal: float,
    *,
    free_shipping_threshold: float | None = None,
    flat_shipping_fee: float | None = None,
) -> OrderTotals:
    """Shipping is free strictly above the threshold, otherwise a flat fee."""

    threshold = (
        settings.FREE_SHIPPING_THRESHOLD
        if free_shipping_threshold is None
        else free_shipping_threshold
    )
    fee = settings.FLAT_SHIPPING_FEE if flat_shipping_fee is None else flat_shipping_fee

    subtotal = round(subtotal, 2)
    shipping = 0.0 if subtotal > threshold else round(fee, 2)
    total = round(subtotal + shipping, 2)
    return OrderTotals(
        subtotal=subtotal,
        shipping=shipping,
        total=total,
        amount_to_free_shipping=round(max(0.0, threshold - subtotal), 2),
        subtotal_display=format_currency(subtotal),
        shipping_display="Free" if shipping == 0 else format_currency(shipping),
        total_display=format_currency(total),
    )


class CheckoutSessionStore:
    """Redis persistence for checkout progress and placed orders."""

    def __init__(self, client: redis.Redis):
        self._client = client
        self._ttl = settings.ORDER_TTL_SECONDS

    def _state_key(self, cart_id: str) -> str:
        return f"{settings.CHECKOUT_KEY_PREFIX}{cart_id}"

    def _order_key(self, order_id: str) -> str:
        return f"{settings.ORDER_KEY_PREFIX}{order_id}"

    async def fetch_state(self, cart_id: str) -> CheckoutState:
        """Return the stored progress, restarting it when the payload is unusable."""

        raw = await self._read(self._state_key(cart_id))
        if raw:
            try:
                return CheckoutState.model_validate_json(raw)
            except ValidationError as exc:
                logger.warning(
                    "Discarding unreadable checkout state for %s: %s",
                    cart_id,
                    exc.errors(include_url=False)[:1],
                )
        return CheckoutState(cart_id=cart_id)

    async def save_state(self, state: CheckoutState) -> None:
        await self._client.set(
            self._state_key(state.cart_id),
            state.model_dump_json(by_alias=True),
            ex=self._ttl,
        )

    async def save_order(self, order: OrderConfirmation) -> None:
        await self._client.set(
            self._order_key(order.order_id),
            order.model_dump_json(by_alias=True),
            ex=self._ttl,
        )

    async def fetch_order(self, order_id: str) -> OrderConfirmation | None:
        raw = await self._read(self._order_key(order_id))
        if not raw:
            return None
        try:
            return OrderConfirmation.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning(
                "Discarding unreadable order %s: %s",
                order_id,
                exc.errors(include_url=False)[:1],
            )
            return None

    async def _read(self, key: str) -> str | None:
        try:
            return await self._client.get(key)
        except UnicodeDecodeError as exc:
            logger.warning("Discarding undecodable payload at %s: %s", key, exc)
            return None


class CheckoutService:
    """Drives a cart through the shipping and payment steps."""

    def __init__(self, carts: CartService, sessions: CheckoutSessionStore) -> None:
        self._carts = carts
        self._sessions = sessions

    async def get_state(self, cart_id: str) -> CheckoutView:
        state = await self._sessions.fetch_state(cart_id)
        cart = await self._carts.get_cart(cart_id)
        return CheckoutView(
            **state.model_dump(),
            totals=compute_order_totals(cart.get_subtotal()),
        )

    async def submit_shipping(
        self, cart_id: str, shipping: ShippingDetails
    ) -> CheckoutView:
        cart = await self._carts.get_cart(cart_id)
        if not cart.lines:
            raise EmptyCartError("Cannot check out an empty cart")

        state = CheckoutState(cart_id=cart_id, step="payment", shipping=shipping)
        await self._sessions.save_state(state)
        logger.info("Checkout for cart %s moved to payment", cart_id)
        return CheckoutView(
            **state.model_dump(),
            totals=compute_order_totals(cart.get_subtotal()),
        )

    async def submit_payment(
        self, cart_id: str, payment: PaymentDetails
    ) -> OrderConfirmation:
        state = await self._sessions.fetch_state(cart_id)
        if state.step != "payment" or state.shipping is None:
            raise CheckoutStepError("Shipping details must be submitted first")

        cart = await self._carts.get_cart(cart_id)
        if not cart.lines:
            raise EmptyCartError("Cannot check out an empty cart")

        # Payment is not processed; the form is only validated.
        order = OrderConfirmation(
            order_id=str(uuid.uuid4()),
            cart_id=cart_id,
            items=cart.lines,
            totals=compute_order_totals(cart.get_subtotal()),
            shipping=state.shipping,
            card_last4=payment.card_last4,
            placed_at=datetime.now(UTC).isoformat(),
        )
        await self._sessions.save_order(order)
        await self._carts.clear(cart_id)
        await self._sessions.save_state(
            CheckoutState(
                cart_id=cart_id,
                step="success",
                shipping=state.shipping,
                order_id=order.order_id,
            )
        )

        logger.info(
            "Order placed",
            extra={
                "order_id": order.order_id,
                "cart_id": cart_id,
                "total": order.totals.total,
            },
        )
        return order

    async def fetch_order(self, order_id: str) -> OrderConfirmation | None:
        return await self._sessions.fetch_order(order_id)


def get_checkout_service(
    client: Annotated[redis.Redis, Depends(get_redis_client)],
    carts: Annotated[CartService, Depends(get_cart_service)],
) -> CheckoutService:
    return CheckoutService(carts, CheckoutSessionStore(client))


CheckoutServiceDependency = Annotated[CheckoutService, Depends(get_checkout_service)]
