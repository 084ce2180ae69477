"""
==============================================================================
Category Endpoints
==============================================================================

Category CRUD. Deleting a category that products still reference is
refused with CATEGORY_IN_USE.

==============================================================================
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Response
from sqlalchemy.orm import Session

from catalog_api.core.dependencies import get_db, get_product_cache
from catalog_api.schemas.category import (
    CategoryDetail,
    CategoryListResponse,
    CategoryWithProducts,
)
from catalog_api.services.cache_service import ProductCache
from catalog_api.services.category_service import CategoryService


router = APIRouter(prefix="/categories", tags=["Categories"])


class CategoryController:
    """Controller for category operations."""

    def __init__(self, db: Session, cache: ProductCache):
        self._service = CategoryService(db, cache)

    def list_all(self) -> CategoryListResponse:
        """List categories with product counts."""
        rows = self._service.list_categories()
        return CategoryListResponse(
            categories=[CategoryDetail.from_model(c, count) for c, count in rows]
        )

    def get(self, category_id: int) -> CategoryWithProducts:
        """Get category with its products."""
        category, products = self._service.get_with_products(category_id)
        return CategoryWithProducts.from_products(category, products)

    def create(self, payload: Any) -> CategoryDetail:
        """Create category."""
        category = self._service.create(payload)
        return CategoryDetail.from_model(category, 0)

    def update(self, category_id: int, payload: Any) -> CategoryDetail:
        """Update category."""
        category = self._service.update(category_id, payload)
        return CategoryDetail.from_model(category, self._service.count_products(category.id))

    def destroy(self, category_id: int) -> None:
        self._service.destroy(category_id)


@router.get("", response_model=CategoryListResponse)
async def list_categories(
    db: Session = Depends(get_db),
    cache: ProductCache = Depends(get_product_cache)
):
    """List all categories with products_count."""
    controller = CategoryController(db, cache)
    return controller.list_all()


@router.get("/{category_id}", response_model=CategoryWithProducts)
async def get_category(
    category_id: int,
    db: Session = Depends(get_db),
    cache: ProductCache = Depends(get_product_cache)
):
    """Get a category and its products."""
    controller = CategoryController(db, cache)
    return controller.get(category_id)


@router.post("", response_model=CategoryDetail, status_code=201)
async def create_category(
    payload: Any = Body(None),
    db: Session = Depends(get_db),
    cache: ProductCache = Depends(get_product_cache)
):
    """Create a category from {"category": {"name": ...}}."""
    controller = CategoryController(db, cache)
    return controller.create(payload)


@router.patch("/{category_id}", response_model=CategoryDetail)
@router.put("/{category_id}", response_model=CategoryDetail)
async def update_category(
    category_id: int,
    payload: Any = Body(None),
    db: Session = Depends(get_db),
    cache: ProductCache = Depends(get_product_cache)
):
    """Rename a category."""
    controller = CategoryController(db, cache)
    return controller.update(category_id, payload)


@router.delete("/{category_id}", status_code=204)
async def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    cache: ProductCache = Depends(get_product_cache)
):
    """Delete an unreferenced category."""
    controller = CategoryController(db, cache)
    controller.destroy(category_id)
    return Response(status_code=204)
