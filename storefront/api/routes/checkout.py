"""Routes implementing the two-step checkout."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from storefront.api.routes.cart import CartIdHeader
from storefront.models.checkout import (
    CheckoutView,
    OrderConfirmation,
    PaymentDetails,
    ShippingDetails,
)
from storefront.services.checkout import (
    CheckoutServiceDependency,
    CheckoutStepError,
    EmptyCartError,
)

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.get("", response_model=CheckoutView)
async def get_checkout(
    service: CheckoutServiceDependency,
    cart_id: CartIdHeader = "default",
) -> CheckoutView:
    return await service.get_state(cart_id)


@router.post(
    "/shipping",
    response_model=CheckoutView,
    summary="Submit shipping details (step 1 of 2)",
)
async def submit_shipping(
    payload: ShippingDetails,
    service: CheckoutServiceDependency,
    cart_id: CartIdHeader = "default",
) -> CheckoutView:
    try:
        return await service.submit_shipping(cart_id, payload)
    except EmptyCartError as error:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(error),
        ) from error


@router.post(
    "/payment",
    response_model=OrderConfirmation,
    status_code=status.HTTP_201_CREATED,
    summary="Submit payment details and place the order (step 2 of 2)",
)
async def submit_payment(
    payload: PaymentDetails,
    service: CheckoutServiceDependency,
    cart_id: CartIdHeader = "default",
) -> OrderConfirmation:
    try:
        return await service.submit_payment(cart_id, payload)
    except (EmptyCartError, CheckoutStepError) as error:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(error),
        ) from error


@router.get("/orders/{order_id}", response_model=OrderConfirmation)
async def get_order(
    order_id: str, service: CheckoutServiceDependency
) -> OrderConfirmation:
    order = await service.fetch_order(order_id)
    if order is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Unknown order id",
        )
    return order
