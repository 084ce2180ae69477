"""
==============================================================================
Utilities Package
==============================================================================

Utility classes for the application.

Modules:
--------
- params: Strong-parameter allow-listing of request bodies
- validators: Entity-level validation for products and categories

==============================================================================
"""

from .params import ParameterFilter
from .validators import CategoryValidator, ProductValidator

__all__ = [
    "ParameterFilter",
    "CategoryValidator",
    "ProductValidator",
]
