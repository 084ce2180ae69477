"""
==============================================================================
SQLAlchemy ORM Models Module
==============================================================================

ORM models for the catalog.

This module defines:
- Category: Named product grouping
- Product: Sellable item, optionally filed under one category

Database Schema:
---------------

    ┌─────────────────────────────────────────────────────────────────┐
    │                          categories                              │
    ├─────────────────────────────────────────────────────────────────┤
    │ id (INTEGER, PK, AUTO INCREMENT)                                │
    │ name (VARCHAR, UNIQUE, NOT NULL)                                │
    │ created_at (DATETIME)                                           │
    │ updated_at (DATETIME, AUTO UPDATE)                              │
    └─────────────────────────────────────────────────────────────────┘
                                    │
                                    │ 1:N (ON DELETE RESTRICT)
                                    ▼
    ┌─────────────────────────────────────────────────────────────────┐
    │                           products                               │
    ├─────────────────────────────────────────────────────────────────┤
    │ id (INTEGER, PK, AUTO INCREMENT)                                │
    │ name (VARCHAR, NOT NULL)                                        │
    │ description (TEXT, NULLABLE)                                    │
    │ price (NUMERIC(10,2), NOT NULL)                                 │
    │ stock_quantity (INTEGER, NOT NULL)                              │
    │ category_id (INTEGER, FK → categories.id, NULLABLE)             │
    │ published_at (DATETIME, NULLABLE)                               │
    │ is_featured (BOOLEAN, DEFAULT false)                            │
    │ is_admin (BOOLEAN, DEFAULT false)                               │
    │ created_at (DATETIME)                                           │
    │ updated_at (DATETIME, AUTO UPDATE)                              │
    └─────────────────────────────────────────────────────────────────┘

Both relationships use lazy="raise": category names are always resolved
by the query layer in one batched fetch, so an accidental per-row lazy
load fails loudly instead of silently issuing N extra queries.

=============================================================================
"""

from __future__ import annotations

import hashlib
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, Query, relationship

from catalog_api.db.database import Base


# Prices are stored with two decimal places
PRICE_QUANTUM = Decimal("0.01")

# Bounds of a SQL INTEGER column (ids, category_id, stock_quantity)
INTEGER_MIN = -(2 ** 31)
INTEGER_MAX = 2 ** 31 - 1


def fits_integer_column(value: int) -> bool:
    """Whether value can be bound against an INTEGER column at all."""
    return INTEGER_MIN <= value <= INTEGER_MAX


# =============================================================================
# CATEGORY MODEL
# =============================================================================

class Category(Base):
    """
    Product category.

    Attributes:
        id: Auto-increment primary key
        name: Unique display name (case-sensitive)
        created_at: Creation timestamp
        updated_at: Last modification timestamp

    Relationships:
        products: Products filed under this category
    """

    __tablename__ = "categories"

    id: int = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        doc="Unique category identifier"
    )

    name: str = Column(
        String(100),
        unique=True,
        nullable=False,
        index=True,
        doc="Unique category name"
    )

    created_at: datetime = Column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
        doc="Creation timestamp"
    )

    updated_at: datetime = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
        doc="Last modification timestamp"
    )

    # No cascade: the database refuses the delete while products remain
    products: Mapped[List["Product"]] = relationship(
        "Product",
        back_populates="category",
        lazy="raise",
        passive_deletes="all",
        doc="Products filed under this category"
    )

    def __repr__(self) -> str:
        return f"Category(id={self.id!r}, name={self.name!r})"


# =============================================================================
# PRODUCT MODEL
# =============================================================================

class Product(Base):
    """
    Catalog product.

    is_admin exists on the row but no write path accepts it from client
    input; it can only be changed by code that sets it explicitly.

    Attributes:
        id: Auto-increment primary key
        name: Display name
        description: Optional long text
        price: Non-negative decimal price
        stock_quantity: Non-negative units on hand
        category_id: Optional category reference
        published_at: Publication time, None while unpublished
        is_featured: Featured flag
        is_admin: Write-protected flag
        created_at: Creation timestamp
        updated_at: Last modification timestamp
    """

    __tablename__ = "products"

    # Fields that participate in the freshness token
    ETAG_FIELDS = (
        "name",
        "description",
        "price",
        "stock_quantity",
        "category_id",
        "published_at",
        "is_featured",
        "is_admin",
        "updated_at",
    )

    # =========================================================================
    # COLUMNS
    # =========================================================================

    id: int = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        doc="Unique product identifier"
    )

    name: str = Column(
        String(255),
        nullable=False,
        doc="Product display name"
    )

    description: Optional[str] = Column(
        Text,
        nullable=True,
        doc="Optional product description"
    )

    price: Decimal = Column(
        Numeric(10, 2),
        nullable=False,
        doc="Unit price, never negative"
    )

    stock_quantity: int = Column(
        Integer,
        nullable=False,
        default=0,
        doc="Units on hand, never negative"
    )

    category_id: Optional[int] = Column(
        Integer,
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
        doc="Optional category reference"
    )

    published_at: Optional[datetime] = Column(
        DateTime,
        nullable=True,
        doc="Publication timestamp (None = unpublished)"
    )

    is_featured: bool = Column(
        Boolean,
        default=False,
        nullable=False,
        doc="Featured on the storefront"
    )

    is_admin: bool = Column(
        Boolean,
        default=False,
        nullable=False,
        doc="Security-sensitive flag, never client-writable"
    )

    created_at: datetime = Column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
        doc="Creation timestamp"
    )

    updated_at: datetime = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
        doc="Last modification timestamp"
    )

    category: Mapped[Optional["Category"]] = relationship(
        "Category",
        back_populates="products",
        lazy="raise",
        doc="Owning category (never lazy loaded)"
    )

    # =========================================================================
    # SCOPES
    # =========================================================================

    @classmethod
    def by_category(cls, query: Query, category_id) -> Query:
        """Restrict to one category; None or "" leaves the query untouched."""
        if category_id is None or category_id == "":
            return query
        return query.filter(cls.category_id == category_id)

    @classmethod
    def featured(cls, query: Query) -> Query:
        return query.filter(cls.is_featured.is_(True))

    @classmethod
    def published(cls, query: Query) -> Query:
        return query.filter(cls.published_at.isnot(None))

    @classmethod
    def in_stock(cls, query: Query) -> Query:
        return query.filter(cls.stock_quantity > 0)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def is_published(self) -> bool:
        """Check if the product has a publication time."""
        return self.published_at is not None

    @property
    def etag(self) -> str:
        """
        Freshness token derived from the current row state.

        Any change to a mutable field (or a touch of updated_at) yields a
        different token.
        """
        digest = hashlib.sha256()
        digest.update(f"products/{self.id}".encode("utf-8"))
        for field in self.ETAG_FIELDS:
            value = getattr(self, field)
            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, Decimal):
                value = format(value.quantize(PRICE_QUANTUM), "f")
            digest.update(f"|{field}={value}".encode("utf-8"))
        return digest.hexdigest()

    def __repr__(self) -> str:
        return (
            f"Product(id={self.id!r}, "
            f"name={self.name!r}, "
            f"category_id={self.category_id!r})"
        )
