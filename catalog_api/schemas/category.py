"""
==============================================================================
Category Schemas Module
==============================================================================

Request and response schemas for category management.

==============================================================================
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, field_validator

from catalog_api.db.models import Category
from catalog_api.schemas.common import AttributesSchema
from catalog_api.schemas.product import ProductView


CATEGORY_PERMITTED_FIELDS = ("name",)


class CategoryAttributes(AttributesSchema):
    """Type coercion for permitted category attributes."""
    name: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_whitespace(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v


class CategoryDetail(BaseModel):
    """Category with its product count."""
    id: int
    name: str
    products_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, category: Category, products_count: int = 0):
        return cls(
            id=category.id,
            name=category.name,
            products_count=products_count,
            created_at=category.created_at,
            updated_at=category.updated_at,
        )


class CategoryWithProducts(CategoryDetail):
    """Category detail including its products."""
    products: List[ProductView]

    @classmethod
    def from_products(cls, category: Category, products: list):
        return cls(
            id=category.id,
            name=category.name,
            products_count=len(products),
            created_at=category.created_at,
            updated_at=category.updated_at,
            products=[ProductView.from_model(p, category.name) for p in products],
        )


class CategoryListResponse(BaseModel):
    """List of categories."""
    categories: List[CategoryDetail]
