"""Catalog data sources: remote Supabase, bundled static data, and fallback."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, Any, TypeVar

import httpx
from fastapi import Depends
from pydantic import ValidationError

from storefront.config import settings
from storefront.models.product import Category, Product
from storefront.services.catalog.query import matches_search

logger = logging.getLogger(__name__)

T = TypeVar("T")

DATA_DIRECTORY = Path(__file__).resolve().parent.parent.parent / "data"


class CatalogUnavailableError(RuntimeError):
    """Raised when the remote catalog cannot be reached or answers with an error."""


class CatalogSource(ABC):
    """Read-only access to products and categories."""

    kind: str = "abstract"

    @abstractmethod
    async def fetch_products(self) -> list[Product]:
        """Return every product in catalog order."""

    @abstractmethod
    async def fetch_product_by_id(self, product_id: str) -> Product | None:
        """Return the product with the given id, if any."""

    @abstractmethod
    async def fetch_product_by_slug(self, slug: str) -> Product | None:
        """Return the product with the given slug, if any."""

    @abstractmethod
    async def fetch_products_by_category(self, category: str) -> list[Product]:
        """Return products whose category matches a category slug or name."""

    @abstractmethod
    async def search_products(self, query: str) -> list[Product]:
        """Return products whose title, description or category contain ``query``."""

    @abstractmethod
    async def fetch_categories(self) -> list[Category]:
        """Return every category."""

    async def aclose(self) -> None:
        return None


def _resolve_category_name(category: str, categories: list[Category]) -> str:
    lowered = category.strip().lower()
    for entry in categories:
        if entry.slug.lower() == lowered:
            return entry.name
    return category.strip()


class StaticCatalogSource(CatalogSource):
    """Catalog served from the bundled JSON snapshot."""

    kind = "static"

    def __init__(
        self,
        products: list[Product] | None = None,
        categories: list[Category] | None = None,
    ) -> None:
        self._products = (
            products if products is not None else _load_products(DATA_DIRECTORY)
        )
        self._categories = (
            categories if categories is not None else _load_categories(DATA_DIRECTORY)
        )

    async def fetch_products(self) -> list[Product]:
        return list(self._products)

    async def fetch_product_by_id(self, product_id: str) -> Product | None:
        return next((p for p in self._products if p.id == product_id), None)

    async def fetch_product_by_slug(self, slug: str) -> Product | None:
        return next((p for p in self._products if p.slug == slug), None)

    async def fetch_products_by_category(self, category: str) -> list[Product]:
        name = _resolve_category_name(category, self._categories).lower()
        return [p for p in self._products if p.category.lower() == name]

    async def search_products(self, query: str) -> list[Product]:
        if not query.strip():
            return []
        return [p for p in self._products if matches_search(p, query)]

    async def fetch_categories(self) -> list[Category]:
        return list(self._categories)


def _load_products(directory: Path) -> list[Product]:
    raw = json.loads((directory / "products.json").read_text(encoding="utf-8"))
    return [Product.model_validate(item) for item in raw]


def _load_categories(directory: Path) -> list[Category]:
    raw = json.loads((directory / "categories.json").read_text(encoding="utf-8"))
    return [Category.model_validate(item) for item in raw]


class SupabaseCatalogSource(CatalogSource):
    """Catalog backed by the Supabase PostgREST API."""

    kind = "supabase"

    _PRODUCT_SELECT = "*,product_variants(*)"

    def __init__(
        self,
        *,
        url: str,
        api_key: str,
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not url:
            raise ValueError("Supabase URL is required to initialize catalog source")
        if not api_key:
            raise ValueError(
                "Supabase API key is required to initialize catalog source"
            )

        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._base_url = f"{url.rstrip('/')}/rest/v1"
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
        }

    async def fetch_products(self) -> list[Product]:
        rows = await self._get(
            "products", {"select": self._PRODUCT_SELECT, "order": "id.asc"}
        )
        return _rows_to_products(rows)

    async def fetch_product_by_id(self, product_id: str) -> Product | None:
        return await self._fetch_single_product({"id": f"eq.{product_id}"})

    async def fetch_product_by_slug(self, slug: str) -> Product | None:
        return await self._fetch_single_product({"slug": f"eq.{slug}"})

    async def fetch_products_by_category(self, category: str) -> list[Product]:
        name = _resolve_category_name(category, await self.fetch_categories())
        rows = await self._get(
            "products",
            {
                "select": self._PRODUCT_SELECT,
                "category": f"ilike.{name}",
                "order": "id.asc",
            },
        )
        return _rows_to_products(rows)

    async def search_products(self, query: str) -> list[Product]:
        term = query.strip()
        if not term:
            return []
        # PostgREST reserves commas and parentheses inside or=() filters.
        pattern = "".join(ch for ch in term if ch not in ",()")
        rows = await self._get(
            "products",
            {
                "select": self._PRODUCT_SELECT,
                "or": (
                    f"(title.ilike.*{pattern}*,"
                    f"description.ilike.*{pattern}*,"
                    f"category.ilike.*{pattern}*)"
                ),
                "order": "id.asc",
            },
        )
        return _rows_to_products(rows)

    async def fetch_categories(self) -> list[Category]:
        rows = await self._get("categories", {"select": "*", "order": "name.asc"})
        try:
            return [
                Category(
                    id=str(row["id"]),
                    name=row["name"],
                    slug=row["slug"],
                    description=row.get("description"),
                )
                for row in rows
            ]
        except (AttributeError, KeyError, TypeError, ValidationError) as exc:
            raise CatalogUnavailableError(
                f"Supabase returned a malformed category row: {exc}"
            ) from exc

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _fetch_single_product(self, filters: dict[str, str]) -> Product | None:
        rows = await self._get(
            "products", {"select": self._PRODUCT_SELECT, **filters, "limit": "1"}
        )
        if not rows:
            return None
        return _rows_to_products(rows[:1])[0]

    async def _get(self, table: str, params: dict[str, str]) -> list[dict[str, Any]]:
        try:
            response = await self._client.get(
                f"{self._base_url}/{table}",
                params=params,
                headers=self._headers,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise CatalogUnavailableError(
                f"Supabase request for {table} failed: {exc}"
            ) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise CatalogUnavailableError(
                f"Supabase returned invalid JSON for {table}"
            ) from exc
        if not isinstance(payload, list):
            raise CatalogUnavailableError(
                f"Unexpected Supabase payload for {table}: {type(payload).__name__}"
            )
        return payload


def _rows_to_products(rows: list[dict[str, Any]]) -> list[Product]:
    """Map PostgREST rows to products. A malformed row fails the whole response."""

    try:
        return [_row_to_product(row) for row in rows]
    except (AttributeError, KeyError, TypeError, ValidationError) as exc:
        raise CatalogUnavailableError(
            f"Supabase returned a malformed product row: {exc}"
        ) from exc


def _row_to_product(row: dict[str, Any]) -> Product:
    variants = sorted(
        row.get("product_variants") or [],
        key=lambda v: str(v.get("id", "")),
    )
    return Product(
        id=str(row["id"]),
        slug=row["slug"],
        title=row["title"],
        images=row.get("images") or [],
        price=row["price"],
        compare_at_price=row.get("compare_at_price"),
        rating=row.get("rating") or 0.0,
        rating_count=row.get("rating_count") or 0,
        badges=row.get("badges") or [],
        category=row["category"],
        description=row.get("description") or "",
        specs=row.get("specs") or {},
        variants=[
            {
                "id": str(v["id"]),
                "color": v.get("color"),
                "size": v.get("size"),
                "stock": v.get("stock") or 0,
            }
            for v in variants
        ],
    )


class FallbackCatalogSource(CatalogSource):
    """Tries the primary source and serves the fallback when it is unavailable."""

    def __init__(self, primary: CatalogSource, fallback: CatalogSource) -> None:
        self.primary = primary
        self.fallback = fallback
        self.kind = f"{primary.kind}+{fallback.kind}"

    async def _attempt(
        self,
        operation: str,
        primary_call: Callable[[], Awaitable[T]],
        fallback_call: Callable[[], Awaitable[T]],
    ) -> T:
        try:
            return await primary_call()
        except CatalogUnavailableError as exc:
            logger.warning(
                "Primary catalog unavailable for %s, serving fallback data: %s",
                operation,
                exc,
                extra={"operation": operation, "source": self.primary.kind},
            )
            return await fallback_call()

    async def fetch_products(self) -> list[Product]:
        return await self._attempt(
            "fetch_products",
            self.primary.fetch_products,
            self.fallback.fetch_products,
        )

    async def fetch_product_by_id(self, product_id: str) -> Product | None:
        return await self._attempt(
            "fetch_product_by_id",
            lambda: self.primary.fetch_product_by_id(product_id),
            lambda: self.fallback.fetch_product_by_id(product_id),
        )

    async def fetch_product_by_slug(self, slug: str) -> Product | None:
        return await self._attempt(
            "fetch_product_by_slug",
            lambda: self.primary.fetch_product_by_slug(slug),
            lambda: self.fallback.fetch_product_by_slug(slug),
        )

    async def fetch_products_by_category(self, category: str) -> list[Product]:
        return await self._attempt(
            "fetch_products_by_category",
            lambda: self.primary.fetch_products_by_category(category),
            lambda: self.fallback.fetch_products_by_category(category),
        )

    async def search_products(self, query: str) -> list[Product]:
        return await self._attempt(
            "search_products",
            lambda: self.primary.search_products(query),
            lambda: self.fallback.search_products(query),
        )

    async def fetch_categories(self) -> list[Category]:
        return await self._attempt(
            "fetch_categories",
            self.primary.fetch_categories,
            self.fallback.fetch_categories,
        )

    async def aclose(self) -> None:
        await self.primary.aclose()
        await self.fallback.aclose()


_catalog_source: CatalogSource | None = None


def _initialize_catalog_source() -> CatalogSource:
    static = StaticCatalogSource()
    if not settings.supabase_configured:
        logger.info("Supabase is not configured, serving the bundled catalog")
        return static

    return FallbackCatalogSource(
        SupabaseCatalogSource(
            url=settings.SUPABASE_URL,
            api_key=settings.SUPABASE_ANON_KEY,
            timeout=settings.SUPABASE_TIMEOUT_SECONDS,
        ),
        static,
    )


def get_catalog_source() -> CatalogSource:
    """FastAPI dependency returning the process-wide catalog source."""

    global _catalog_source
    if _catalog_source is None:
        _catalog_source = _initialize_catalog_source()
    return _catalog_source


async def close_catalog_source() -> None:
    global _catalog_source
    if _catalog_source is not None:
        await _catalog_source.aclose()
        _catalog_source = None


CatalogDependency = Annotated[CatalogSource, Depends(get_catalog_source)]
