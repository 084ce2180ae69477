"""
==============================================================================
Validation Utilities Module
==============================================================================

Entity-level validation for catalog records.

Validators inspect a candidate model instance (new, or an existing row
with permitted changes applied) and return a mapping of field name to
human-readable messages. An empty mapping means the record may be saved.

Validation Rules for Products:
-----------------------------
- name: present and not blank
- price: present, >= 0, fits NUMERIC(10, 2)
- stock_quantity: present, >= 0, fits an INTEGER column
- category_id: when set on write, must reference an existing category

Validation Rules for Categories:
-------------------------------
- name: present, not blank, at most 100 characters, unique

==============================================================================
"""

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import Dict, List

from sqlalchemy.orm import Session

from catalog_api.db.models import INTEGER_MAX, Category, Product, fits_integer_column


BLANK = "can't be blank"
NON_NEGATIVE = "must be greater than or equal to 0"
TAKEN = "has already been taken"
MUST_EXIST = "must exist"

MAX_PRICE = Decimal("100000000")
MAX_STOCK_QUANTITY = INTEGER_MAX
MAX_CATEGORY_NAME_LENGTH = 100


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class ProductValidator:
    """
    Validator for Product records.

    Example:
        >>> errors = ProductValidator(session).validate(product)
        >>> errors
        {'price': ['must be greater than or equal to 0']}
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def validate(self, product: Product, check_category: bool = True) -> Dict[str, List[str]]:
        """
        Validate a candidate product.

        Args:
            product: Unsaved or modified Product
            check_category: Verify category_id resolves (skipped when the
                write did not touch category_id)

        Returns:
            Field -> list of messages (empty when valid)
        """
        errors: Dict[str, List[str]] = defaultdict(list)

        if _is_blank(product.name):
            errors["name"].append(BLANK)

        if product.price is None:
            errors["price"].append(BLANK)
        elif product.price < 0:
            errors["price"].append(NON_NEGATIVE)
        elif product.price >= MAX_PRICE:
            errors["price"].append(f"must be less than {MAX_PRICE}")

        if product.stock_quantity is None:
            errors["stock_quantity"].append(BLANK)
        elif product.stock_quantity < 0:
            errors["stock_quantity"].append(NON_NEGATIVE)
        elif product.stock_quantity > MAX_STOCK_QUANTITY:
            errors["stock_quantity"].append(f"must be less than or equal to {MAX_STOCK_QUANTITY}")

        if check_category and product.category_id is not None:
            exists = fits_integer_column(product.category_id) and (
                self._db.query(Category.id)
                .filter(Category.id == product.category_id)
                .first() is not None
            )
            if not exists:
                errors["category_id"].append(MUST_EXIST)

        return dict(errors)


class CategoryValidator:
    """Validator for Category records, including name uniqueness."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def validate(self, category: Category) -> Dict[str, List[str]]:
        errors: Dict[str, List[str]] = defaultdict(list)

        if _is_blank(category.name):
            errors["name"].append(BLANK)
            return dict(errors)

        if len(category.name) > MAX_CATEGORY_NAME_LENGTH:
            errors["name"].append(
                f"is too long (maximum is {MAX_CATEGORY_NAME_LENGTH} characters)"
            )

        query = self._db.query(Category.id).filter(Category.name == category.name)
        if category.id is not None:
            query = query.filter(Category.id != category.id)
        if query.first() is not None:
            errors["name"].append(TAKEN)

        return dict(errors)
