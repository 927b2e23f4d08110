"""FastAPI application factory and bootstrap helpers."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.api.routes import include_api_routes
from storefront.config import settings
from storefront.services.cart.store import CartConflictError
from storefront.services.catalog.sources import close_catalog_source, get_catalog_source
from storefront.services.storage.redis_client import close_redis_client

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events."""
    catalog = get_catalog_source()
    logger.info("Serving catalog from %s source", catalog.kind)

    yield

    await close_catalog_source()
    await close_redis_client()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Storefront",
        description="Catalog browsing, persistent cart and checkout API",
        version="1.0.0",
        lifespan=lifespan,
    )

    _configure_cors(app)
    app.add_exception_handler(CartConflictError, _cart_conflict_handler)
    include_api_routes(app)

    return app


async def _cart_conflict_handler(
    request: Request, exc: CartConflictError
) -> JSONResponse:
    logger.warning("Giving up on contended cart update: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": str(exc)},
    )


def _configure_cors(app: FastAPI) -> None:
    """Allow broad access in non-production environments."""

    if settings.is_production:
        return

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
