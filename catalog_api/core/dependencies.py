"""
==============================================================================
FastAPI Dependencies Module
==============================================================================

Dependency injection for request handlers.

This module provides:
- get_db: Request-scoped database session
- get_product_cache: Process-wide product cache
- PaginationParams: Lenient page/per_page parsing
- get_product_filters: Listing filters from the query string

Query parameters are accepted as raw strings and normalized here instead
of being typed in the route signature: a garbage page or per_page falls
back to the defaults rather than failing the request.

Dependency Hierarchy:
--------------------
                    ┌─────────────────┐
                    │   get_db()      │
                    └────────┬────────┘
                             │
        ┌────────────────────┼────────────────────┐
        │                    │                    │
┌───────▼───────┐   ┌────────▼───────┐   ┌────────▼────────┐
│ Product query │   │ Product writes │   │    Categories   │
└───────┬───────┘   └────────┬───────┘   └────────┬────────┘
        └────────────────────┼────────────────────┘
                    ┌────────▼────────┐
                    │get_product_cache│
                    └─────────────────┘

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Query

from catalog_api.db.database import get_db
from catalog_api.services.cache_service import get_product_cache
from catalog_api.services.product_query_service import (
    ProductFilters,
    normalize_page,
    normalize_per_page,
)


# Module logger
logger = logging.getLogger(__name__)

TRUE_VALUES = {"1", "true", "t", "yes", "y", "on"}


def parse_flag(value: Optional[str]) -> bool:
    """Interpret a query-string flag; anything unrecognized is False."""
    if value is None:
        return False
    return value.strip().lower() in TRUE_VALUES


# =============================================================================
# PAGINATION DEPENDENCY
# =============================================================================

class PaginationParams:
    """
    Pagination parameters container.

    Attributes:
        page: Current page number (1-indexed)
        per_page: Items per page, capped at max_per_page
    """

    def __init__(
        self,
        page: Optional[str] = Query(None, description="Page number (1-indexed)"),
        per_page: Optional[str] = Query(None, description="Items per page (max 100)")
    ) -> None:
        self.per_page = normalize_per_page(per_page)
        self.page = normalize_page(page, self.per_page)

    def __repr__(self) -> str:
        return f"PaginationParams(page={self.page}, per_page={self.per_page})"


# =============================================================================
# FILTER DEPENDENCY
# =============================================================================

def get_product_filters(
    category_id: Optional[str] = Query(None, description="Filter by category ID"),
    featured: Optional[str] = Query(None, description="Only featured products"),
    published: Optional[str] = Query(None, description="Only published products"),
    in_stock: Optional[str] = Query(None, description="Only products with stock")
) -> ProductFilters:
    """FastAPI dependency building listing filters from the query string."""
    return ProductFilters(
        category_id=category_id,
        featured=parse_flag(featured),
        published=parse_flag(published),
        in_stock=parse_flag(in_stock),
    )


__all__ = [
    "get_db",
    "get_product_cache",
    "PaginationParams",
    "get_product_filters",
    "parse_flag",
]
