"""Routes for browsing products and categories."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from storefront.config import settings
from storefront.models.catalog import CatalogPage, FilterSpec, HomeSections, SortOption
from storefront.models.product import Category, Product
from storefront.services.catalog.query import (
    home_sections,
    query_catalog,
    related_products,
)
from storefront.services.catalog.sources import CatalogDependency

logger = logging.getLogger(__name__)

router = APIRouter(tags=["catalog"])


@router.get(
    "/products",
    response_model=CatalogPage,
    summary="List products with filtering, sorting and pagination",
)
async def list_products(
    catalog: CatalogDependency,
    category: str | None = None,
    search: str | None = None,
    min_price: Annotated[float | None, Query(ge=0)] = None,
    max_price: Annotated[float | None, Query(ge=0)] = None,
    min_rating: Annotated[float | None, Query(ge=0, le=5)] = None,
    in_stock: bool | None = None,
    sort: SortOption = SortOption.RELEVANCE,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int | None, Query(ge=1)] = None,
) -> CatalogPage:
    """Clients must request page 1 again whenever filters or sort change."""

    size = min(page_size or settings.CATALOG_PAGE_SIZE, settings.CATALOG_MAX_PAGE_SIZE)

    if search and search.strip():
        products = await catalog.search_products(search)
    elif category:
        products = await catalog.fetch_products_by_category(category)
    else:
        products = await catalog.fetch_products()

    filters = FilterSpec(
        category=category,
        min_price=min_price,
        max_price=max_price,
        min_rating=min_rating,
        in_stock=in_stock,
    )
    return query_catalog(products, filters, sort, page=page, page_size=size)


@router.get("/products/{slug}", response_model=Product)
async def get_product(slug: str, catalog: CatalogDependency) -> Product:
    product = await catalog.fetch_product_by_slug(slug)
    if product is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )
    return product


@router.get("/products/{slug}/related", response_model=list[Product])
async def get_related_products(slug: str, catalog: CatalogDependency) -> list[Product]:
    product = await catalog.fetch_product_by_slug(slug)
    if product is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )
    return related_products(product, await catalog.fetch_products())


@router.get("/categories", response_model=list[Category])
async def list_categories(catalog: CatalogDependency) -> list[Category]:
    return await catalog.fetch_categories()


@router.get("/home", response_model=HomeSections)
async def get_home(catalog: CatalogDependency) -> HomeSections:
    """Best sellers and featured products for the landing page."""

    return home_sections(await catalog.fetch_products())
