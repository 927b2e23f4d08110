"""Pytest configuration and fixtures for the storefront service."""

from __future__ import annotations

import pytest
import pytest_asyncio
from fakeredis import aioredis as fakeredis
from httpx import ASGITransport, AsyncClient

from storefront.models.product import Category, Product, Variant
from storefront.services.catalog.sources import StaticCatalogSource, get_catalog_source
from storefront.services.storage.redis_client import get_redis_client


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "asyncio: marks tests as async tests")


def make_product(
    product_id: str,
    *,
    price: float = 10.0,
    rating: float = 4.0,
    category: str = "Audio",
    variants: list[Variant] | None = None,
    title: str | None = None,
    description: str = "",
) -> Product:
    """Build a minimal valid product for unit tests."""

    return Product(
        id=product_id,
        slug=f"slug-{product_id}",
        title=title or f"Product {product_id}",
        images=[f"https://images.example.com/{product_id}.jpg"],
        price=price,
        rating=rating,
        category=category,
        description=description,
        variants=variants or [],
    )


@pytest.fixture()
def static_catalog() -> StaticCatalogSource:
    """The bundled dataset."""
    return StaticCatalogSource()


@pytest.fixture()
def small_catalog() -> StaticCatalogSource:
    """A tiny in-memory catalog with one variant product."""
    return StaticCatalogSource(
        products=[
            make_product("p1", price=10.0),
            make_product(
                "p2",
                price=25.0,
                category="Apparel",
                variants=[
                    Variant(id="red", color="Red", size="M", stock=3),
                    Variant(id="blue", color="Blue", size="M", stock=0),
                ],
            ),
        ],
        categories=[
            Category(id="c1", name="Audio", slug="audio"),
            Category(id="c2", name="Apparel", slug="apparel"),
        ],
    )


@pytest_asyncio.fixture()
async def redis_client():
    """Provide a fake Redis client for each test."""
    from storefront.main import app

    client = fakeredis.FakeRedis(decode_responses=True)
    app.dependency_overrides[get_redis_client] = lambda: client
    try:
        yield client
    finally:
        await client.flushdb()
        await client.aclose()
        app.dependency_overrides.pop(get_redis_client, None)


@pytest_asyncio.fixture()
async def client(redis_client, static_catalog):
    """Return an HTTPX async client pointing at the FastAPI app."""
    from storefront.main import app

    app.dependency_overrides[get_catalog_source] = lambda: static_catalog
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as test_client:
        yield test_client
    app.dependency_overrides.pop(get_catalog_source, None)


@pytest.fixture()
def product_factory():
    """Expose ``make_product`` to tests."""
    return make_product
