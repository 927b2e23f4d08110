"""Tests for checkout totals and the two-step checkout flow."""

from __future__ import annotations

import pytest

from storefront.services.checkout import compute_order_totals
from storefront.services.formatting import format_currency, format_rating

HEADERS = {"X-Cart-Id": "checkout-session"}

SHIPPING = {
    "firstName": "Ada",
    "lastName": "Lovelace",
    "email": "ada@example.com",
    "address": "12 Analytical Way",
    "city": "London",
    "state": "LDN",
    "zip": "N1 9GU",
}

PAYMENT = {
    "cardNumber": "4242 4242 4242 4242",
    "expiryDate": "12/30",
    "cvv": "123",
    "cardName": "Ada Lovelace",
}


def test_shipping_charged_at_or_below_threshold():
    totals = compute_order_totals(100.0)

    assert totals.shipping == 10.0
    assert totals.total == 110.0
    assert totals.amount_to_free_shipping == 0.0


def test_free_shipping_above_threshold():
    totals = compute_order_totals(100.01)

    assert totals.shipping == 0.0
    assert totals.total == 100.01
    assert totals.shipping_display == "Free"


def test_amount_to_free_shipping():
    totals = compute_order_totals(64.5)

    assert totals.amount_to_free_shipping == 35.5
    assert totals.total_display == "$74.50"


def test_formatting_helpers():
    assert format_currency(1234.5) == "$1,234.50"
    assert format_currency(0) == "$0.00"
    assert format_currency(-5) == "-$5.00"
    assert format_rating(4.56) == "4.6"
    assert format_rating(4) == "4.0"


@pytest.mark.asyncio
async def test_shipping_requires_items(client):
    response = await client.post("/checkout/shipping", json=SHIPPING, headers=HEADERS)

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_shipping_form_validation(client):
    await client.post("/cart/items", json={"productId": "prod-011"}, headers=HEADERS)

    response = await client.post(
        "/checkout/shipping", json={**SHIPPING, "city": "   "}, headers=HEADERS
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_payment_before_shipping_is_rejected(client):
    await client.post("/cart/items", json={"productId": "prod-011"}, headers=HEADERS)

    response = await client.post("/checkout/payment", json=PAYMENT, headers=HEADERS)

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_full_checkout_flow(client):
    await client.post(
        "/cart/items", json={"productId": "prod-011", "quantity": 2}, headers=HEADERS
    )

    initial = (await client.get("/checkout", headers=HEADERS)).json()
    assert initial["step"] == "shipping"
    assert initial["totals"]["subtotal"] == 68.0
    assert initial["totals"]["shipping"] == 10.0

    shipping = await client.post("/checkout/shipping", json=SHIPPING, headers=HEADERS)
    assert shipping.status_code == 200
    assert shipping.json()["step"] == "payment"

    payment = await client.post("/checkout/payment", json=PAYMENT, headers=HEADERS)
    assert payment.status_code == 201
    order = payment.json()
    assert order["cardLast4"] == "4242"
    assert order["totals"]["total"] == 78.0
    assert order["items"][0]["quantity"] == 2
    assert "cardNumber" not in order

    cart = (await client.get("/cart", headers=HEADERS)).json()
    assert cart["items"] == []

    state = (await client.get("/checkout", headers=HEADERS)).json()
    assert state["step"] == "success"
    assert state["orderId"] == order["orderId"]

    stored = await client.get(f"/checkout/orders/{order['orderId']}")
    assert stored.status_code == 200
    assert stored.json()["shipping"]["city"] == "London"


@pytest.mark.asyncio
async def test_unknown_order_returns_404(client):
    response = await client.get("/checkout/orders/missing")

    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "raw",
    [
        "{not json",
        '{"cartId": "checkout-session", "step": "teleport"}',
    ],
)
async def test_corrupt_checkout_state_restarts_at_shipping(
    client, redis_client, raw, caplog
):
    await redis_client.set("checkout:checkout-session", raw)

    with caplog.at_level("WARNING"):
        response = await client.get("/checkout", headers=HEADERS)

    assert response.status_code == 200
    assert response.json()["step"] == "shipping"
    assert "Discarding unreadable checkout state" in caplog.text

    await client.post("/cart/items", json={"productId": "prod-011"}, headers=HEADERS)
    shipping = await client.post("/checkout/shipping", json=SHIPPING, headers=HEADERS)
    assert shipping.status_code == 200
    assert shipping.json()["step"] == "payment"


@pytest.mark.asyncio
async def test_corrupt_order_is_reported_missing(client, redis_client, caplog):
    await redis_client.set("order:broken", '{"orderId": "broken"}')

    with caplog.at_level("WARNING"):
        response = await client.get("/checkout/orders/broken")

    assert response.status_code == 404
    assert "Discarding unreadable order broken" in caplog.text
