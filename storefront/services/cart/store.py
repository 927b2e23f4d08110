"""Redis-backed durable slot holding serialized carts."""

from __future__ import annotations

import logging
from collections.abc import Callable

import redis.asyncio as redis
from pydantic import ValidationError
from redis.exceptions import WatchError

from storefront.config import settings
from storefront.models.cart import CartSnapshot
from storefront.services.cart.engine import CartEngine

logger = logging.getLogger(__name__)


class CartConflictError(RuntimeError):
    """Raised when a cart keeps changing underneath a mutation."""


class CartStore:
    """Wrapper responsible for persisting cart snapshots in Redis."""

    def __init__(
        self,
        client: redis.Redis,
        namespace: str | None = None,
        ttl_seconds: int | None = None,
        max_attempts: int | None = None,
    ):
        self._client = client
        self._namespace = namespace or settings.CART_STORAGE_KEY
        self._ttl = settings.CART_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._max_attempts = max_attempts or settings.CART_WRITE_ATTEMPTS

    def _key(self, cart_id: str) -> str:
        return f"{self._namespace}:{cart_id}"

    async def load(self, cart_id: str) -> CartEngine:
        """Rebuild the cart from storage.

        Missing, undecodable or corrupt data yields an empty cart.
        """

        return self._decode(cart_id, await self._read(self._client, cart_id))

    async def save(self, cart_id: str, engine: CartEngine) -> None:
        await self._client.set(
            self._key(cart_id), self._encode(engine), ex=self._ttl or None
        )
        self._log_persisted(cart_id, engine)

    async def update(
        self, cart_id: str, mutation: Callable[[CartEngine], object]
    ) -> CartEngine:
        """Load, mutate and persist one cart atomically.

        The slot is WATCHed while the mutation runs. A concurrent write aborts
        the transaction and the mutation is replayed on the fresh state.
        """

        key = self._key(cart_id)
        async with self._client.pipeline(transaction=True) as pipe:
            for attempt in range(1, self._max_attempts + 1):
                try:
                    await pipe.watch(key)
                    engine = self._decode(cart_id, await self._read(pipe, cart_id))
                    mutation(engine)
                    pipe.multi()
                    pipe.set(key, self._encode(engine), ex=self._ttl or None)
                    await pipe.execute()
                except WatchError:
                    logger.debug(
                        "Cart %s changed during update, retrying (attempt %d)",
                        cart_id,
                        attempt,
                    )
                    continue
                self._log_persisted(cart_id, engine)
                return engine

        raise CartConflictError(
            f"Cart {cart_id} was modified concurrently too many times"
        )

    async def _read(self, reader, cart_id: str) -> str | None:
        try:
            return await reader.get(self._key(cart_id))
        except UnicodeDecodeError as exc:
            logger.warning(
                "Discarding undecodable cart payload for %s: %s", cart_id, exc
            )
            return None

    def _decode(self, cart_id: str, raw: str | None) -> CartEngine:
        if not raw:
            return CartEngine()

        try:
            snapshot = CartSnapshot.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning(
                "Discarding unreadable cart payload for %s: %s",
                cart_id,
                exc.errors(include_url=False)[:1],
            )
            return CartEngine()

        return CartEngine.from_snapshot(snapshot)

    @staticmethod
    def _encode(engine: CartEngine) -> str:
        return engine.to_snapshot().model_dump_json(by_alias=True)

    @staticmethod
    def _log_persisted(cart_id: str, engine: CartEngine) -> None:
        logger.debug(
            "Persisted cart %s (version=%d, lines=%d)",
            cart_id,
            engine.version,
            len(engine.lines),
        )
