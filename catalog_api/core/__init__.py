"""
==============================================================================
Core Package
==============================================================================

Core utilities and infrastructure for the application.

Modules:
--------
- exceptions: AppException class and error factory functions
- dependencies: FastAPI dependency injection functions (import directly
  from catalog_api.core.dependencies; it pulls in the service layer)

Usage:
------
    from catalog_api.core import exceptions
    raise exceptions.product_not_found(42)

==============================================================================
"""

from .exceptions import (
    AppException,
    CacheUnavailable,
    register_exception_handlers,
)

__all__ = [
    "AppException",
    "CacheUnavailable",
    "register_exception_handlers",
]
