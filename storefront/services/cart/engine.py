"""In-memory cart state with quantity merging and derived totals."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from storefront.models.cart import CartLine, CartLineVariant, CartSnapshot
from storefront.models.product import Product

logger = logging.getLogger(__name__)

CartListener = Callable[["CartEngine"], None]


class VariantLike(Protocol):
    id: str
    color: str | None
    size: str | None


def cart_line_id(product_id: str, variant_id: str | None = None) -> str:
    """Return the composite identity of a cart line."""

    return f"{product_id}-{variant_id}" if variant_id else product_id


class CartEngine:
    """Owns the ordered cart lines and notifies listeners on every change.

    All operations are total: unknown line ids are ignored and non-positive
    quantities remove the line instead of being rejected. Stock is not
    checked here; callers validate before adding.
    """

    def __init__(self, lines: list[CartLine] | None = None, version: int = 0) -> None:
        self._lines: list[CartLine] = list(lines or [])
        self._version = version
        self._listeners: list[CartListener] = []

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines)

    @property
    def version(self) -> int:
        return self._version

    def get_line(self, line_id: str) -> CartLine | None:
        for line in self._lines:
            if line.id == line_id:
                return line
        return None

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Register a change listener and return a callable that removes it."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def add_item(
        self,
        product: Product,
        variant: VariantLike | None = None,
        quantity: int = 1,
    ) -> None:
        if quantity < 1:
            logger.debug("Ignoring add of %s with quantity %d", product.id, quantity)
            return

        line_id = cart_line_id(product.id, variant.id if variant else None)
        existing = self.get_line(line_id)
        if existing is not None:
            existing.quantity += quantity
        else:
            self._lines.append(
                CartLine(
                    id=line_id,
                    product_id=product.id,
                    slug=product.slug,
                    title=product.title,
                    image=product.primary_image,
                    price=product.price,
                    quantity=quantity,
                    variant=(
                        CartLineVariant(
                            id=variant.id,
                            color=variant.color,
                            size=variant.size,
                        )
                        if variant
                        else None
                    ),
                )
            )
        self._changed()

    def remove_item(self, line_id: str) -> None:
        remaining = [line for line in self._lines if line.id != line_id]
        if len(remaining) == len(self._lines):
            return
        self._lines = remaining
        self._changed()

    def update_quantity(self, line_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove_item(line_id)
            return

        line = self.get_line(line_id)
        if line is None:
            return
        line.quantity = quantity
        self._changed()

    def clear(self) -> None:
        self._lines = []
        self._changed()

    def get_subtotal(self) -> float:
        return sum(line.price * line.quantity for line in self._lines)

    def get_item_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    def to_snapshot(self) -> CartSnapshot:
        return CartSnapshot(
            items=[line.model_copy(deep=True) for line in self._lines],
            version=self._version,
        )

    @classmethod
    def from_snapshot(cls, snapshot: CartSnapshot) -> CartEngine:
        return cls(lines=snapshot.items, version=snapshot.version)

    def _changed(self) -> None:
        self._version += 1
        for listener in list(self._listeners):
            listener(self)
