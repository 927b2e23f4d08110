"""Stateful catalog view that discards superseded loads."""

from __future__ import annotations

import logging

from storefront.config import settings
from storefront.models.catalog import CatalogPage, FilterSpec, SortOption
from storefront.models.product import Product
from storefront.services.catalog.query import price_ceiling, query_catalog
from storefront.services.catalog.sources import CatalogSource

logger = logging.getLogger(__name__)


class CatalogBrowser:
    """Holds the browsing state of one catalog view.

    Every ``load`` takes a new generation number; a load that finishes after
    a newer one has started drops its results instead of overwriting state.
    Changing filters or sort always returns the view to page 1.
    """

    def __init__(self, source: CatalogSource, page_size: int | None = None) -> None:
        self._source = source
        self._generation = 0
        self.page_size = page_size or settings.CATALOG_PAGE_SIZE
        self.products: list[Product] = []
        self.loading = False
        self.category: str | None = None
        self.search: str | None = None
        self.filters = FilterSpec()
        self.sort = SortOption.RELEVANCE
        self.page = 1

    @property
    def generation(self) -> int:
        return self._generation

    async def load(
        self, *, category: str | None = None, search: str | None = None
    ) -> bool:
        """Fetch products for the given scope. Returns False if the result was stale."""

        self._generation += 1
        token = self._generation
        self.category = category
        self.search = search
        self.page = 1
        self.loading = True

        if search:
            products = await self._source.search_products(search)
        elif category:
            products = await self._source.fetch_products_by_category(category)
        else:
            products = await self._source.fetch_products()

        if token != self._generation:
            logger.debug(
                "Discarding stale catalog load (generation %d, current %d)",
                token,
                self._generation,
            )
            return False

        self.products = products
        self.loading = False
        return True

    def set_filters(self, filters: FilterSpec) -> None:
        self.filters = filters
        self.page = 1

    def set_sort(self, sort: SortOption | str) -> None:
        self.sort = SortOption(sort)
        self.page = 1

    def go_to_page(self, page: int) -> int:
        """Move to ``page``, clamped to the available range."""

        last = max(self.total_pages, 1)
        self.page = min(max(page, 1), last)
        return self.page

    @property
    def total_pages(self) -> int:
        return self.current_page().total_pages

    @property
    def price_ceiling(self) -> float:
        return price_ceiling(self.products)

    def current_page(self) -> CatalogPage:
        return query_catalog(
            self.products,
            self.filters,
            self.sort,
            page=self.page,
            page_size=self.page_size,
        )
