"""
==============================================================================
Product Schemas Module
==============================================================================

Request and response schemas for product operations.

Write payloads are allow-listed by ParameterFilter before they reach
ProductAttributes, which only coerces types. The schema has no is_admin
field, so even a bypassed allow-list could not carry it.

==============================================================================
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from catalog_api.db.models import PRICE_QUANTUM, Product
from catalog_api.schemas.common import AttributesSchema, PaginationMeta


# Fields a client may write. Everything else in a payload is dropped.
PRODUCT_PERMITTED_FIELDS = (
    "name",
    "description",
    "price",
    "stock_quantity",
    "category_id",
    "published_at",
    "is_featured",
)


def format_price(price: Optional[Decimal]) -> Optional[str]:
    """Render a price as a fixed two-decimal string."""
    if price is None:
        return None
    return format(Decimal(price).quantize(PRICE_QUANTUM), "f")


# =============================================================================
# WRITE SCHEMAS
# =============================================================================

class ProductAttributes(AttributesSchema):
    """
    Type coercion for permitted product attributes.

    All fields are optional: presence rules live in ProductValidator so
    partial updates can reuse this schema.
    """
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = None
    stock_quantity: Optional[int] = None
    category_id: Optional[int] = None
    published_at: Optional[datetime] = None
    is_featured: Optional[bool] = None

    @field_validator("price", "stock_quantity", "category_id", "published_at", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("name")
    @classmethod
    def strip_whitespace(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v

    @field_validator("price")
    @classmethod
    def quantize_price(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is None:
            return v
        try:
            return v.quantize(PRICE_QUANTUM)
        except InvalidOperation:
            raise ValueError("is out of range")

    @field_validator("published_at")
    @classmethod
    def to_naive_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # Stored without tzinfo; normalize so reloaded rows compare equal
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

    @field_validator("is_featured", mode="before")
    @classmethod
    def null_featured(cls, v: Any) -> Any:
        # The column is NOT NULL; an explicit null means "not featured"
        return False if v is None else v


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class ProductView(BaseModel):
    """Denormalized product read view (product + category name)."""
    id: int
    name: str
    description: Optional[str]
    price: str
    stock_quantity: int
    category_id: Optional[int]
    category_name: Optional[str]
    published_at: Optional[datetime]
    is_featured: bool
    is_admin: bool

    @classmethod
    def from_model(cls, product: Product, category_name: Optional[str]):
        return cls(
            id=product.id,
            name=product.name,
            description=product.description,
            price=format_price(product.price),
            stock_quantity=product.stock_quantity,
            category_id=product.category_id,
            category_name=category_name,
            published_at=product.published_at,
            is_featured=product.is_featured,
            is_admin=product.is_admin,
        )


class ProductSnapshot(BaseModel):
    """A read view together with its freshness token."""
    etag: str
    product: ProductView

    @classmethod
    def from_model(cls, product: Product, category_name: Optional[str]):
        return cls(
            etag=product.etag,
            product=ProductView.from_model(product, category_name),
        )


class ProductListResponse(BaseModel):
    """Paginated product listing."""
    products: List[ProductView]
    pagination: PaginationMeta


class FeaturedProduct(BaseModel):
    """Compact product shape returned by feature toggles."""
    id: int
    name: str
    is_featured: bool
    featured_at: Optional[datetime] = None


class FeatureResponse(BaseModel):
    """
    Feature toggle outcome.

    changed is False when the product was already in the requested state;
    it is not part of the response body.
    """
    message: str
    product: FeaturedProduct
    changed: bool = Field(default=True, exclude=True)

    def to_body(self) -> Dict[str, Any]:
        """Serialize, omitting featured_at unless the toggle set it."""
        return self.model_dump(mode="json", exclude_none=True)
