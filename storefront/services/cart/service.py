"""Cart orchestration: load, mutate, persist."""

from __future__ import annotations

import logging
from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends

from storefront.models.cart import CartView
from storefront.services.cart.engine import CartEngine
from storefront.services.cart.store import CartStore
from storefront.services.catalog.sources import CatalogDependency, CatalogSource
from storefront.services.formatting import format_currency
from storefront.services.storage.redis_client import get_redis_client

logger = logging.getLogger(__name__)


class CartError(Exception):
    """Base class for rejected cart additions."""


class ProductNotFoundError(CartError):
    pass


class VariantRequiredError(CartError):
    pass


class VariantNotFoundError(CartError):
    pass


class OutOfStockError(CartError):
    pass


class CartService:
    """Applies one engine mutation per call and persists the result.

    Each mutation runs inside an optimistic Redis transaction on the cart
    slot, so concurrent requests for one cart never drop each other's writes.

    Stock and variant checks happen here, before the engine is touched; the
    engine itself accepts whatever it is given.
    """

    def __init__(self, store: CartStore, catalog: CatalogSource) -> None:
        self._store = store
        self._catalog = catalog

    async def get_cart(self, cart_id: str) -> CartEngine:
        return await self._store.load(cart_id)

    async def add_item(
        self,
        cart_id: str,
        product_id: str,
        variant_id: str | None = None,
        quantity: int = 1,
    ) -> CartEngine:
        product = await self._catalog.fetch_product_by_id(product_id)
        if product is None:
            raise ProductNotFoundError(f"Product {product_id} not found")

        variant = None
        if product.has_variants:
            if not variant_id:
                raise VariantRequiredError(
                    f"Product {product_id} requires a variant selection"
                )
            variant = product.find_variant(variant_id)
            if variant is None:
                raise VariantNotFoundError(
                    f"Variant {variant_id} not found on product {product_id}"
                )
            if variant.stock < quantity:
                raise OutOfStockError(
                    f"Only {variant.stock} left of variant {variant_id}"
                )
        elif variant_id:
            raise VariantNotFoundError(f"Product {product_id} has no variants")

        return await self._mutate(
            cart_id, lambda engine: engine.add_item(product, variant, quantity)
        )

    async def update_quantity(
        self, cart_id: str, line_id: str, quantity: int
    ) -> CartEngine:
        return await self._mutate(
            cart_id, lambda engine: engine.update_quantity(line_id, quantity)
        )

    async def remove_item(self, cart_id: str, line_id: str) -> CartEngine:
        return await self._mutate(cart_id, lambda engine: engine.remove_item(line_id))

    async def clear(self, cart_id: str) -> CartEngine:
        return await self._mutate(cart_id, lambda engine: engine.clear())

    async def _mutate(self, cart_id, mutation) -> CartEngine:
        def apply(engine: CartEngine) -> None:
            unsubscribe = engine.subscribe(
                lambda changed: logger.debug(
                    "Cart %s changed (version=%d, items=%d)",
                    cart_id,
                    changed.version,
                    changed.get_item_count(),
                )
            )
            try:
                mutation(engine)
            finally:
                unsubscribe()

        return await self._store.update(cart_id, apply)


def build_cart_view(cart_id: str, engine: CartEngine) -> CartView:
    subtotal = round(engine.get_subtotal(), 2)
    return CartView(
        cart_id=cart_id,
        items=engine.lines,
        subtotal=subtotal,
        item_count=engine.get_item_count(),
        subtotal_display=format_currency(subtotal),
    )


def get_cart_store(
    client: Annotated[redis.Redis, Depends(get_redis_client)],
) -> CartStore:
    return CartStore(client)


def get_cart_service(
    store: Annotated[CartStore, Depends(get_cart_store)],
    catalog: CatalogDependency,
) -> CartService:
    """FastAPI dependency factory."""

    return CartService(store, catalog)


CartServiceDependency = Annotated[CartService, Depends(get_cart_service)]
