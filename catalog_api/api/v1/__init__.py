"""
==============================================================================
API v1 Endpoints
==============================================================================

Version 1 of the REST API.

Routers:
--------
- health: Health check endpoints
- products: Product listing, lookup, writes, feature toggles
- categories: Category management

==============================================================================
"""

from . import health, products, categories

__all__ = ["health", "products", "categories"]
