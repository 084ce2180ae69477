"""
==============================================================================
Services Package - Business Logic Layer
==============================================================================

Service classes implementing the catalog's business logic.

This package provides:
- ProductQueryService: Listings and lookups (batched category names)
- ProductService: Allow-listed product writes with cache invalidation
- CategoryService: Category CRUD with referential integrity
- ProductCache: Product view cache and its backends

Architecture Pattern: Service Layer
----------------------------------
    ┌─────────────────┐
    │   API Router    │
    └────────┬────────┘
             │
    ┌────────▼────────┐     ┌──────────────┐
    │    Service      │ ──▶ │ ProductCache │
    └────────┬────────┘     └──────────────┘
             │
    ┌────────▼────────┐
    │   ORM models    │
    └─────────────────┘

==============================================================================
"""

from .cache_service import (
    CacheBackend,
    MemoryCacheBackend,
    ProductCache,
    get_product_cache,
)
from .product_query_service import ProductFilters, ProductQueryService
from .product_service import ProductService
from .category_service import CategoryService

__all__ = [
    "CacheBackend",
    "MemoryCacheBackend",
    "ProductCache",
    "get_product_cache",
    "ProductFilters",
    "ProductQueryService",
    "ProductService",
    "CategoryService",
]
