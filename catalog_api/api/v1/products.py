"""
==============================================================================
Product Endpoints
==============================================================================

Product listing, lookup, writes and feature toggles.

Conditional GET:
---------------
    GET /products/{id}
        ──▶ ETag: "<sha256>"            Cache-Control: public, max-age=N
    GET /products/{id}  If-None-Match: "<sha256>"
        ──▶ 304 Not Modified (no body)

Write bodies are taken raw and handed to the services, which apply the
allow-list before anything touches a model.

==============================================================================
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Header, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from catalog_api.config import get_settings
from catalog_api.core.dependencies import (
    PaginationParams,
    get_db,
    get_product_cache,
    get_product_filters,
)
from catalog_api.schemas.product import (
    ProductListResponse,
    ProductSnapshot,
    ProductView,
)
from catalog_api.services.cache_service import ProductCache
from catalog_api.services.product_query_service import ProductFilters, ProductQueryService
from catalog_api.services.product_service import ProductService


# Module logger
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])


def etag_matches(if_none_match: Optional[str], etag: str) -> bool:
    """
    Check an If-None-Match header against a product etag.

    Accepts "*", weak validators (W/"...") and comma-separated lists.
    """
    if not if_none_match:
        return False

    for candidate in if_none_match.split(","):
        candidate = candidate.strip()
        if candidate == "*":
            return True
        if candidate.startswith("W/"):
            candidate = candidate[2:]
        if candidate.strip('"') == etag:
            return True

    return False


class ProductController:
    """Controller for product operations."""

    def __init__(self, db: Session, cache: ProductCache):
        self._queries = ProductQueryService(db, cache)
        self._service = ProductService(db, cache)
        self._settings = get_settings()

    def list_products(self, filters: ProductFilters, pagination: PaginationParams) -> ProductListResponse:
        """List products with filters and pagination."""
        views, meta = self._queries.list_products(filters, pagination.page, pagination.per_page)
        return ProductListResponse(products=views, pagination=meta)

    def show(self, product_id: int, if_none_match: Optional[str]) -> Response:
        """Get one product, honouring If-None-Match."""
        snapshot = self._queries.get_product(product_id)
        headers = {
            "ETag": f'"{snapshot.etag}"',
            "Cache-Control": f"public, max-age={self._settings.product_cache_max_age}",
        }

        if etag_matches(if_none_match, snapshot.etag):
            logger.debug(f"Product {product_id} not modified")
            return Response(status_code=304, headers=headers)

        return JSONResponse(content=snapshot.product.model_dump(mode="json"), headers=headers)

    def create(self, payload: Any) -> ProductSnapshot:
        return self._service.create(payload)

    def update(self, product_id: int, payload: Any) -> ProductSnapshot:
        return self._service.update(product_id, payload)

    def destroy(self, product_id: int) -> None:
        self._service.destroy(product_id)

    def toggle_featured(self, product_id: int, flag: bool) -> dict:
        return self._service.set_featured(product_id, flag).to_body()


@router.get("", response_model=ProductListResponse)
async def list_products(
    filters: ProductFilters = Depends(get_product_filters),
    pagination: PaginationParams = Depends(),
    db: Session = Depends(get_db),
    cache: ProductCache = Depends(get_product_cache)
):
    """
    List products.

    Filters by category_id when given; page and per_page are lenient
    (garbage falls back to the defaults, per_page is capped).
    """
    controller = ProductController(db, cache)
    return controller.list_products(filters, pagination)


@router.get("/{product_id}", response_model=ProductView)
async def get_product(
    product_id: int,
    if_none_match: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    cache: ProductCache = Depends(get_product_cache)
):
    """Get a product with its category name."""
    controller = ProductController(db, cache)
    return controller.show(product_id, if_none_match)


@router.post("", response_model=ProductView, status_code=201)
async def create_product(
    payload: Any = Body(None),
    db: Session = Depends(get_db),
    cache: ProductCache = Depends(get_product_cache)
):
    """Create a product from {"product": {...}}."""
    controller = ProductController(db, cache)
    return controller.create(payload).product


@router.patch("/{product_id}", response_model=ProductView)
@router.put("/{product_id}", response_model=ProductView)
async def update_product(
    product_id: int,
    payload: Any = Body(None),
    db: Session = Depends(get_db),
    cache: ProductCache = Depends(get_product_cache)
):
    """Partially update a product; absent fields stay unchanged."""
    controller = ProductController(db, cache)
    return controller.update(product_id, payload).product


@router.delete("/{product_id}", status_code=204)
async def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    cache: ProductCache = Depends(get_product_cache)
):
    """Delete a product."""
    controller = ProductController(db, cache)
    controller.destroy(product_id)
    return Response(status_code=204)


@router.patch("/{product_id}/feature")
async def feature_product(
    product_id: int,
    db: Session = Depends(get_db),
    cache: ProductCache = Depends(get_product_cache)
):
    """Mark a product as featured."""
    controller = ProductController(db, cache)
    return controller.toggle_featured(product_id, True)


@router.patch("/{product_id}/unfeature")
async def unfeature_product(
    product_id: int,
    db: Session = Depends(get_db),
    cache: ProductCache = Depends(get_product_cache)
):
    """Remove a product from the featured set."""
    controller = ProductController(db, cache)
    return controller.toggle_featured(product_id, False)
