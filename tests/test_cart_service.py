"""Tests for cart orchestration on top of the Redis slot."""

from __future__ import annotations

import asyncio

import pytest

from storefront.services.cart.service import (
    CartService,
    OutOfStockError,
    ProductNotFoundError,
)
from storefront.services.cart.store import CartStore


@pytest.fixture()
def service(redis_client, small_catalog) -> CartService:
    return CartService(CartStore(redis_client), small_catalog)


@pytest.mark.asyncio
async def test_concurrent_adds_to_one_cart_are_all_kept(service):
    await asyncio.gather(
        *(service.add_item("shared", "p1", None, 1) for _ in range(5))
    )

    engine = await service.get_cart("shared")

    assert engine.get_item_count() == 5
    assert engine.get_line("p1").quantity == 5


@pytest.mark.asyncio
async def test_concurrent_mixed_mutations_keep_every_line(service):
    await service.add_item("mixed", "p1", None, 2)

    await asyncio.gather(
        service.add_item("mixed", "p2", "red", 1),
        service.add_item("mixed", "p1", None, 1),
        service.update_quantity("mixed", "p1", 7),
        service.add_item("mixed", "p2", "red", 2),
    )

    engine = await service.get_cart("mixed")
    assert engine.get_line("p2-red").quantity == 3
    assert engine.get_line("p1") is not None


@pytest.mark.asyncio
async def test_rejected_additions_leave_cart_untouched(service, redis_client):
    await service.add_item("strict", "p1")

    with pytest.raises(ProductNotFoundError):
        await service.add_item("strict", "missing")
    with pytest.raises(OutOfStockError):
        await service.add_item("strict", "p2", "red", 4)

    engine = await service.get_cart("strict")
    assert [line.id for line in engine.lines] == ["p1"]
    assert engine.version == 1
