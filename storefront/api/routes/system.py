"""System-level routes such as health checks."""

from __future__ import annotations

import logging
from typing import Annotated

import redis.asyncio as redis
from fastapi import APIRouter, Depends
from redis.exceptions import RedisError

from storefront.config import settings
from storefront.services.catalog.sources import CatalogDependency
from storefront.services.storage.redis_client import get_redis_client

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


@router.get("/")
async def read_root() -> dict[str, str]:
    """Greeting endpoint used by smoke tests."""

    return {"message": "Storefront API running"}


@router.get("/health")
async def health_check(
    client: Annotated[redis.Redis, Depends(get_redis_client)],
    catalog: CatalogDependency,
) -> dict[str, str]:
    """Health check with Redis connectivity and the active catalog backend."""

    try:
        await client.ping()
        redis_status = "connected"
    except (RedisError, OSError) as exc:
        logger.warning("Redis health check failed: %s", exc)
        redis_status = "disconnected"

    return {
        "status": "healthy",
        "redis": redis_status,
        "catalog": catalog.kind,
        "environment": settings.ENVIRONMENT,
    }
