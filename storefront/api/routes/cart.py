"""Routes exposing the persistent shopping cart."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Header, HTTPException, status

from storefront.models.cart import (
    AddCartItemRequest,
    CartView,
    UpdateCartItemRequest,
)
from storefront.services.cart.service import (
    CartServiceDependency,
    OutOfStockError,
    ProductNotFoundError,
    VariantNotFoundError,
    VariantRequiredError,
    build_cart_view,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cart", tags=["cart"])

CartIdHeader = Annotated[
    str,
    Header(alias="X-Cart-Id", min_length=1, description="Session key of the cart"),
]


@router.get("", response_model=CartView)
async def get_cart(
    service: CartServiceDependency,
    cart_id: CartIdHeader = "default",
) -> CartView:
    return build_cart_view(cart_id, await service.get_cart(cart_id))


@router.post(
    "/items",
    response_model=CartView,
    status_code=status.HTTP_201_CREATED,
    summary="Add a product (and optional variant) to the cart",
)
async def add_cart_item(
    payload: AddCartItemRequest,
    service: CartServiceDependency,
    cart_id: CartIdHeader = "default",
) -> CartView:
    try:
        engine = await service.add_item(
            cart_id,
            payload.product_id,
            payload.variant_id,
            payload.quantity,
        )
    except ProductNotFoundError as error:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(error),
        ) from error
    except (VariantRequiredError, VariantNotFoundError) as error:
        raise HTTPException(
            status_code=422,
            detail=str(error),
        ) from error
    except OutOfStockError as error:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(error),
        ) from error

    logger.info(
        "Added %d x %s to cart %s",
        payload.quantity,
        payload.product_id,
        cart_id,
    )
    return build_cart_view(cart_id, engine)


@router.patch("/items/{line_id}", response_model=CartView)
async def update_cart_item(
    line_id: str,
    payload: UpdateCartItemRequest,
    service: CartServiceDependency,
    cart_id: CartIdHeader = "default",
) -> CartView:
    """Set a line's quantity. Zero or negative quantities remove the line."""

    engine = await service.update_quantity(cart_id, line_id, payload.quantity)
    return build_cart_view(cart_id, engine)


@router.delete("/items/{line_id}", response_model=CartView)
async def remove_cart_item(
    line_id: str,
    service: CartServiceDependency,
    cart_id: CartIdHeader = "default",
) -> CartView:
    engine = await service.remove_item(cart_id, line_id)
    return build_cart_view(cart_id, engine)


@router.delete("", response_model=CartView)
async def clear_cart(
    service: CartServiceDependency,
    cart_id: CartIdHeader = "default",
) -> CartView:
    engine = await service.clear(cart_id)
    return build_cart_view(cart_id, engine)
