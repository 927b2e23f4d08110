"""Filter, sort and paginate pipeline over in-memory product collections.

Usage contract: whenever the filters or the sort option change, callers must
reset their current page to 1 before querying again. The pipeline itself is
stateless and does not enforce this (see ``CatalogBrowser`` for a caller that
does).
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from storefront.models.catalog import CatalogPage, FilterSpec, HomeSections, SortOption
from storefront.models.product import Product

BEST_SELLER_COUNT = 8
FEATURED_COUNT = 4
RELATED_LIMIT = 4
DEFAULT_PAGE_SIZE = 12
MIN_PRICE_CEILING = 1000.0


def apply_filters(products: Sequence[Product], filters: FilterSpec) -> list[Product]:
    """Return the products matching every populated filter, in input order."""

    result = list(products)
    if filters.min_price is not None:
        result = [p for p in result if p.price >= filters.min_price]
    if filters.max_price is not None:
        result = [p for p in result if p.price <= filters.max_price]
    if filters.min_rating is not None:
        result = [p for p in result if p.rating >= filters.min_rating]
    if filters.in_stock:
        result = [p for p in result if p.in_stock]
    return result


def sort_products(
    products: Sequence[Product], sort: SortOption | str = SortOption.RELEVANCE
) -> list[Product]:
    """Stable sort; products with equal keys keep their relative order."""

    option = SortOption(sort)
    if option is SortOption.PRICE_LOW:
        return sorted(products, key=lambda p: p.price)
    if option is SortOption.PRICE_HIGH:
        return sorted(products, key=lambda p: p.price, reverse=True)
    if option is SortOption.NEWEST:
        # Ids stand in for recency; there is no creation timestamp.
        return sorted(products, key=lambda p: p.id, reverse=True)
    if option is SortOption.RATING:
        return sorted(products, key=lambda p: p.rating, reverse=True)
    return list(products)


def total_pages(item_count: int, page_size: int) -> int:
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    return math.ceil(item_count / page_size)


def paginate(
    products: Sequence[Product], page: int, page_size: int
) -> tuple[list[Product], int]:
    """Return the 1-based ``page`` slice and the total page count.

    Pages outside ``1..total_pages`` yield an empty slice.
    """

    pages = total_pages(len(products), page_size)
    if page < 1 or page > pages:
        return [], pages
    start = (page - 1) * page_size
    return list(products[start : start + page_size]), pages


def query_catalog(
    products: Sequence[Product],
    filters: FilterSpec | None = None,
    sort: SortOption | str = SortOption.RELEVANCE,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> CatalogPage:
    """Run the full filter -> sort -> paginate pipeline."""

    filtered = apply_filters(products, filters or FilterSpec())
    ordered = sort_products(filtered, sort)
    items, pages = paginate(ordered, page, page_size)
    return CatalogPage(
        items=items,
        page=page,
        page_size=page_size,
        total_items=len(ordered),
        total_pages=pages,
    )


def matches_search(product: Product, query: str) -> bool:
    """Case-insensitive substring match on title, description or category."""

    needle = query.strip().lower()
    return (
        needle in product.title.lower()
        or needle in product.description.lower()
        or needle in product.category.lower()
    )


def related_products(
    product: Product, products: Sequence[Product], limit: int = RELATED_LIMIT
) -> list[Product]:
    related = [
        p for p in products if p.category == product.category and p.id != product.id
    ]
    return related[:limit]


def home_sections(products: Sequence[Product]) -> HomeSections:
    return HomeSections(
        best_sellers=list(products[:BEST_SELLER_COUNT]),
        featured=list(products[BEST_SELLER_COUNT : BEST_SELLER_COUNT + FEATURED_COUNT]),
    )


def price_ceiling(products: Sequence[Product]) -> float:
    """Upper bound for the price range control."""

    return max([p.price for p in products] + [MIN_PRICE_CEILING])
