"""
==============================================================================
Product Service Module
==============================================================================

Write side of the catalog: create, update, destroy and feature toggles.

Write Path:
----------
    raw body ──▶ ParameterFilter.require("product").permit(<allow-list>)
             ──▶ ProductAttributes.parse()      (type coercion)
             ──▶ apply to candidate Product     (allow-listed fields only)
             ──▶ ProductValidator.validate()    (invariants)
             ──▶ commit()
             ──▶ ProductCache.invalidate(id)    (logged, never raised)
             ──▶ response

Nothing is written when validation fails. is_admin is not in the
allow-list and is never read from client input.

Rows are loaded FOR UPDATE before mutation so concurrent writers to the
same product serialize on databases that support row locks; the last
commit wins.

==============================================================================
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from catalog_api.core import exceptions
from catalog_api.db.models import Category, Product, fits_integer_column
from catalog_api.schemas.product import (
    PRODUCT_PERMITTED_FIELDS,
    FeaturedProduct,
    FeatureResponse,
    ProductAttributes,
    ProductSnapshot,
)
from catalog_api.services.cache_service import ProductCache, get_product_cache
from catalog_api.utils.params import ParameterFilter
from catalog_api.utils.validators import MUST_EXIST, ProductValidator


# Module logger
logger = logging.getLogger(__name__)


class ProductService:
    """
    Service for product mutations.

    Every successful mutation invalidates the product's cache entry
    before returning.

    Example:
        >>> service = ProductService(db_session)
        >>> snapshot = service.create({"product": {"name": "Lamp", "price": 10, "stock_quantity": 3}})
        >>> service.update(snapshot.product.id, {"product": {"price": "12.50"}})
        >>> service.set_featured(snapshot.product.id, True)
        >>> service.destroy(snapshot.product.id)
    """

    def __init__(self, db: Session, cache: Optional[ProductCache] = None) -> None:
        """
        Initialize the product service.

        Args:
            db: SQLAlchemy database session
            cache: Optional ProductCache (uses the process-wide one if None)
        """
        self._db = db
        self._cache = cache or get_product_cache()
        self._validator = ProductValidator(db)

    # =========================================================================
    # STRONG PARAMETERS
    # =========================================================================

    def product_params(self, raw: Any) -> Dict[str, Any]:
        """
        Extract the allow-listed, type-coerced attributes from a raw body.

        Raises:
            AppException: PARAMETER_MISSING if "product" is absent/empty
            AppException: VALIDATION_ERROR if a value can't be coerced
        """
        permitted = ParameterFilter(raw).require("product").permit(*PRODUCT_PERMITTED_FIELDS)
        return ProductAttributes.parse(permitted)

    def _assign(self, product: Product, attributes: Dict[str, Any]) -> None:
        for field in PRODUCT_PERMITTED_FIELDS:
            if field in attributes:
                setattr(product, field, attributes[field])

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _get_for_update(self, product_id: int) -> Product:
        if not fits_integer_column(product_id):
            raise exceptions.product_not_found(product_id)

        product = (
            self._db.query(Product)
            .filter(Product.id == product_id)
            .with_for_update()
            .first()
        )

        if product is None:
            logger.warning(f"Product not found: {product_id}")
            raise exceptions.product_not_found(product_id)

        return product

    def _category_name(self, category_id: Optional[int]) -> Optional[str]:
        if category_id is None:
            return None
        row = self._db.query(Category.name).filter(Category.id == category_id).first()
        return row[0] if row else None

    def _commit(self) -> None:
        """Commit, mapping a lost category reference race to a 422."""
        try:
            self._db.commit()
        except IntegrityError:
            self._db.rollback()
            raise exceptions.validation_failed({"category_id": [MUST_EXIST]})

    def _snapshot(self, product: Product) -> ProductSnapshot:
        return ProductSnapshot.from_model(product, self._category_name(product.category_id))

    # =========================================================================
    # CREATE
    # =========================================================================

    def create(self, raw: Any) -> ProductSnapshot:
        """
        Create a product from a raw request body.

        Returns:
            Snapshot of the persisted product

        Raises:
            AppException: PARAMETER_MISSING, VALIDATION_ERROR
        """
        attributes = self.product_params(raw)

        product = Product(is_admin=False, is_featured=False)
        self._assign(product, attributes)

        errors = self._validator.validate(product)
        if errors:
            logger.info(f"Product creation rejected: {errors}")
            raise exceptions.validation_failed(errors)

        self._db.add(product)
        self._commit()

        self._cache.invalidate(product.id)

        logger.info(f"✅ Product created: {product.id} ({product.name})")
        return self._snapshot(product)

    # =========================================================================
    # UPDATE
    # =========================================================================

    def update(self, product_id: int, raw: Any) -> ProductSnapshot:
        """
        Apply a partial update from a raw request body.

        Fields absent from the body are left unchanged.

        Raises:
            AppException: PRODUCT_NOT_FOUND, PARAMETER_MISSING, VALIDATION_ERROR
        """
        product = self._get_for_update(product_id)
        attributes = self.product_params(raw)

        self._assign(product, attributes)

        errors = self._validator.validate(product, check_category="category_id" in attributes)
        if errors:
            # Discard the pending attribute changes
            self._db.rollback()
            logger.info(f"Product {product_id} update rejected: {errors}")
            raise exceptions.validation_failed(errors)

        self._commit()
        self._cache.invalidate(product.id)

        logger.info(f"✅ Product updated: {product.id} ({', '.join(sorted(attributes))})")
        return self._snapshot(product)

    # =========================================================================
    # DELETE
    # =========================================================================

    def destroy(self, product_id: int) -> None:
        """
        Delete a product.

        Raises:
            AppException: PRODUCT_NOT_FOUND
        """
        product = self._get_for_update(product_id)

        self._db.delete(product)
        self._db.commit()
        self._cache.invalidate(product_id)

        logger.info(f"✅ Product deleted: {product_id}")

    # =========================================================================
    # FEATURE TOGGLES
    # =========================================================================

    def set_featured(self, product_id: int, flag: bool) -> FeatureResponse:
        """
        Feature or unfeature a product.

        When the product is already in the requested state nothing is
        written and the cache is left alone; the response says so.

        Raises:
            AppException: PRODUCT_NOT_FOUND
        """
        product = self._get_for_update(product_id)

        if product.is_featured == flag:
            response = FeatureResponse(
                message="Product is already featured" if flag else "Product is not featured",
                product=FeaturedProduct(
                    id=product.id,
                    name=product.name,
                    is_featured=product.is_featured,
                ),
                changed=False,
            )
            # Release the row lock without writing
            self._db.rollback()
            return response

        product.is_featured = flag
        self._db.commit()
        self._cache.invalidate(product.id)

        logger.info(f"✅ Product {'featured' if flag else 'unfeatured'}: {product.id}")

        return FeatureResponse(
            message="Product successfully featured" if flag else "Product successfully unfeatured",
            product=FeaturedProduct(
                id=product.id,
                name=product.name,
                is_featured=product.is_featured,
                featured_at=datetime.utcnow() if flag else None,
            ),
        )
