"""
==============================================================================
Schemas Package - Pydantic Models
==============================================================================

Request and response schemas using Pydantic for validation.

This package provides:
- Common: Shared response schemas and pagination metadata
- Product: Attribute coercion, read views, feature toggle responses
- Category: Attribute coercion and category views

==============================================================================
"""

from .common import AttributesSchema, PaginationMeta
from .product import (
    PRODUCT_PERMITTED_FIELDS,
    ProductAttributes,
    ProductView,
    ProductSnapshot,
    ProductListResponse,
    FeaturedProduct,
    FeatureResponse,
)
from .category import (
    CATEGORY_PERMITTED_FIELDS,
    CategoryAttributes,
    CategoryDetail,
    CategoryWithProducts,
    CategoryListResponse,
)

__all__ = [
    # Common
    "AttributesSchema",
    "PaginationMeta",
    # Product
    "PRODUCT_PERMITTED_FIELDS",
    "ProductAttributes",
    "ProductView",
    "ProductSnapshot",
    "ProductListResponse",
    "FeaturedProduct",
    "FeatureResponse",
    # Category
    "CATEGORY_PERMITTED_FIELDS",
    "CategoryAttributes",
    "CategoryDetail",
    "CategoryWithProducts",
    "CategoryListResponse",
]
