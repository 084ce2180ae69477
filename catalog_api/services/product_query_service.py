"""
==============================================================================
Product Query Service Module
==============================================================================

Read side of the catalog: filtered, paginated product listings and
single-product lookups, both denormalized with the category name.

Statement Count:
----------------
A listing page costs at most three statements whatever its size:

    1. SELECT count(*) FROM products WHERE <filters>
    2. SELECT ... FROM products WHERE <filters> ORDER BY id LIMIT/OFFSET
    3. SELECT id, name FROM categories WHERE id IN (<distinct page ids>)

Step 3 is skipped when no product on the page has a category. Category
names are never loaded per row (the relationships are lazy="raise").

A single lookup is one statement (product LEFT OUTER JOIN category) and
is served from the ProductCache when a snapshot is present.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import false
from sqlalchemy.orm import Session

from catalog_api.config import get_settings
from catalog_api.core import exceptions
from catalog_api.db.models import Category, Product, fits_integer_column
from catalog_api.schemas.common import PaginationMeta
from catalog_api.schemas.product import ProductSnapshot, ProductView
from catalog_api.services.cache_service import ProductCache, get_product_cache


# Module logger
logger = logging.getLogger(__name__)


# LIMIT/OFFSET bind as signed 64-bit integers
MAX_OFFSET = 2 ** 63 - 1


def normalize_page(page, per_page: int = 1) -> int:
    """
    Coerce a raw page value; missing, non-numeric or < 1 becomes 1.

    Pages whose offset would not fit in OFFSET are clamped to the last
    addressable page, which is simply empty.
    """
    try:
        value = int(page)
    except (TypeError, ValueError):
        return 1
    if value < 1:
        return 1
    return min(value, MAX_OFFSET // per_page + 1)


def normalize_per_page(per_page) -> int:
    """Coerce a raw page size; falls back to the default and caps silently."""
    settings = get_settings()
    try:
        value = int(per_page)
    except (TypeError, ValueError):
        value = settings.default_per_page
    if value < 1:
        value = settings.default_per_page
    return min(value, settings.max_per_page)


class ProductFilters:
    """
    Listing filters parsed from raw query-string values.

    category_id: "" or None means no filter; a non-numeric value, or one
    outside the INTEGER range, can never equal an id and matches nothing.
    """

    def __init__(
        self,
        category_id: Optional[str] = None,
        featured: bool = False,
        published: bool = False,
        in_stock: bool = False
    ) -> None:
        self.category_id = category_id
        self.featured = featured
        self.published = published
        self.in_stock = in_stock

    def apply(self, query):
        raw = self.category_id.strip() if isinstance(self.category_id, str) else self.category_id
        if raw not in (None, ""):
            try:
                category_id = int(raw)
            except (TypeError, ValueError):
                category_id = None

            if category_id is not None and fits_integer_column(category_id):
                query = Product.by_category(query, category_id)
            else:
                logger.debug(f"Category filter {raw!r} can match no id")
                query = query.filter(false())

        if self.featured:
            query = Product.featured(query)
        if self.published:
            query = Product.published(query)
        if self.in_stock:
            query = Product.in_stock(query)

        return query

    def __repr__(self) -> str:
        return (
            f"ProductFilters(category_id={self.category_id!r}, "
            f"featured={self.featured}, published={self.published}, "
            f"in_stock={self.in_stock})"
        )


class ProductQueryService:
    """
    Service for product listings and lookups.

    Example:
        >>> service = ProductQueryService(db_session)
        >>> views, pagination = service.list_products(ProductFilters("1"), 1, 25)
        >>> snapshot = service.get_product(42)
    """

    def __init__(self, db: Session, cache: Optional[ProductCache] = None) -> None:
        self._db = db
        self._cache = cache or get_product_cache()

    # =========================================================================
    # LISTING
    # =========================================================================

    def list_products(
        self,
        filters: Optional[ProductFilters] = None,
        page=None,
        per_page=None
    ) -> Tuple[List[ProductView], PaginationMeta]:
        """
        List products with filters and pagination.

        Args:
            filters: Listing filters (None = everything)
            page: Raw page value (any type)
            per_page: Raw page size (any type)

        Returns:
            Tuple of (product views, pagination metadata)
        """
        filters = filters or ProductFilters()
        per_page = normalize_per_page(per_page)
        page = normalize_page(page, per_page)

        query = filters.apply(self._db.query(Product))

        total_count = query.order_by(None).count()
        products = (
            query.order_by(Product.id.asc())
            .offset((page - 1) * per_page)
            .limit(per_page)
            .all()
        )

        names = self.category_names_for(products)
        views = [ProductView.from_model(p, names.get(p.category_id)) for p in products]

        logger.debug(
            f"Listed {len(views)}/{total_count} products "
            f"(page={page}, per_page={per_page}, {filters!r})"
        )
        return views, PaginationMeta.create(page, per_page, total_count)

    def category_names_for(self, products: Iterable[Product]) -> Dict[int, str]:
        """
        Resolve category names for a batch of products in one statement.

        Dangling ids are simply absent from the mapping.
        """
        category_ids = {p.category_id for p in products if p.category_id is not None}
        if not category_ids:
            return {}

        rows = self._db.query(Category.id, Category.name).filter(
            Category.id.in_(category_ids)
        ).all()
        return {category_id: name for category_id, name in rows}

    # =========================================================================
    # SINGLE LOOKUP
    # =========================================================================

    def get_product(self, product_id: int) -> ProductSnapshot:
        """
        Get a product view and its freshness token.

        Raises:
            AppException: PRODUCT_NOT_FOUND if the id doesn't resolve
        """
        cached = self._cache.fetch(product_id)
        if cached is not None:
            logger.debug(f"Cache hit: product {product_id}")
            return cached

        snapshot = self.load_snapshot(product_id)
        self._cache.store(snapshot)
        return snapshot

    def load_snapshot(self, product_id: int) -> ProductSnapshot:
        """Build a snapshot straight from the store, bypassing the cache."""
        if not fits_integer_column(product_id):
            raise exceptions.product_not_found(product_id)

        row = (
            self._db.query(Product, Category.name)
            .outerjoin(Category, Product.category_id == Category.id)
            .filter(Product.id == product_id)
            .first()
        )

        if row is None:
            logger.warning(f"Product not found: {product_id}")
            raise exceptions.product_not_found(product_id)

        product, category_name = row
        return ProductSnapshot.from_model(product, category_name)
