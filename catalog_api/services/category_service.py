"""
==============================================================================
Category Service Module
==============================================================================

Category CRUD with referential integrity.

This module implements:
- CategoryService: list/get/create/update/destroy
- Product counts in one grouped statement (no per-category query)
- Deletion refused while any product references the category
- Product cache invalidation when a category is renamed, since cached
  product views carry the category name

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from catalog_api.core import exceptions
from catalog_api.db.models import Category, Product, fits_integer_column
from catalog_api.schemas.category import CATEGORY_PERMITTED_FIELDS, CategoryAttributes
from catalog_api.services.cache_service import ProductCache, get_product_cache
from catalog_api.utils.params import ParameterFilter
from catalog_api.utils.validators import TAKEN, CategoryValidator


# Module logger
logger = logging.getLogger(__name__)


class CategoryService:
    """
    Service for category management.

    Example:
        >>> service = CategoryService(db_session)
        >>> category = service.create({"category": {"name": "Garden"}})
        >>> service.list_categories()
        [(Category(id=1, name='Garden'), 0)]
    """

    def __init__(self, db: Session, cache: Optional[ProductCache] = None) -> None:
        self._db = db
        self._cache = cache or get_product_cache()
        self._validator = CategoryValidator(db)

    def category_params(self, raw: Any) -> Dict[str, Any]:
        permitted = ParameterFilter(raw).require("category").permit(*CATEGORY_PERMITTED_FIELDS)
        return CategoryAttributes.parse(permitted)

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    def get_by_id(self, category_id: int) -> Category:
        """
        Get category by ID.

        Raises:
            AppException: CATEGORY_NOT_FOUND if category doesn't exist
        """
        if not fits_integer_column(category_id):
            raise exceptions.category_not_found(category_id)

        category = self._db.query(Category).filter(Category.id == category_id).first()

        if not category:
            logger.warning(f"Category not found: {category_id}")
            raise exceptions.category_not_found(category_id)

        return category

    def list_categories(self) -> List[Tuple[Category, int]]:
        """
        List all categories with their product counts.

        Returns:
            List of (Category, products_count) ordered by id
        """
        return (
            self._db.query(Category, func.count(Product.id))
            .outerjoin(Product, Product.category_id == Category.id)
            .group_by(Category.id)
            .order_by(Category.id.asc())
            .all()
        )

    def get_with_products(self, category_id: int) -> Tuple[Category, List[Product]]:
        """
        Get a category and its products (one products statement).

        Raises:
            AppException: CATEGORY_NOT_FOUND
        """
        category = self.get_by_id(category_id)
        products = (
            self._db.query(Product)
            .filter(Product.category_id == category.id)
            .order_by(Product.id.asc())
            .all()
        )
        return category, products

    def count_products(self, category_id: int) -> int:
        return self._db.query(func.count(Product.id)).filter(
            Product.category_id == category_id
        ).scalar()

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    def _save(self, category: Category) -> None:
        errors = self._validator.validate(category)
        if errors:
            self._db.rollback()
            logger.info(f"Category save rejected: {errors}")
            raise exceptions.validation_failed(errors)

        try:
            self._db.add(category)
            self._db.commit()
        except IntegrityError:
            # Lost a uniqueness race with a concurrent writer
            self._db.rollback()
            raise exceptions.validation_failed({"name": [TAKEN]})

    def create(self, raw: Any) -> Category:
        """
        Create a category.

        Raises:
            AppException: PARAMETER_MISSING, VALIDATION_ERROR
        """
        attributes = self.category_params(raw)

        category = Category(name=attributes.get("name"))
        self._save(category)

        logger.info(f"✅ Category created: {category.id} ({category.name})")
        return category

    def update(self, category_id: int, raw: Any) -> Category:
        """
        Update a category.

        A rename invalidates the cached views of every product in it.

        Raises:
            AppException: CATEGORY_NOT_FOUND, PARAMETER_MISSING, VALIDATION_ERROR
        """
        category = self.get_by_id(category_id)
        attributes = self.category_params(raw)

        renamed = "name" in attributes and attributes["name"] != category.name
        if "name" in attributes:
            category.name = attributes["name"]

        self._save(category)

        if renamed:
            product_ids = [
                product_id for (product_id,) in
                self._db.query(Product.id).filter(Product.category_id == category.id)
            ]
            self._cache.invalidate_many(product_ids)
            logger.info(
                f"✅ Category renamed: {category.id} ({category.name}), "
                f"{len(product_ids)} product views invalidated"
            )

        return category

    def destroy(self, category_id: int) -> None:
        """
        Delete a category that no product references.

        Raises:
            AppException: CATEGORY_NOT_FOUND, CATEGORY_IN_USE
        """
        category = self.get_by_id(category_id)

        products_count = self.count_products(category.id)
        if products_count:
            logger.warning(
                f"Category {category.id} deletion blocked: "
                f"{products_count} products reference it"
            )
            raise exceptions.category_in_use(category.id, products_count)

        try:
            self._db.delete(category)
            self._db.commit()
        except IntegrityError:
            # A product was attached between the check and the delete
            self._db.rollback()
            raise exceptions.category_in_use(category_id, self.count_products(category_id))

        logger.info(f"✅ Category deleted: {category_id}")
