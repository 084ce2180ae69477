"""
Application Exception Handling

Single AppException class for all application errors with FastAPI integration.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class AppException(Exception):
    """
    Unified application exception for all error scenarios.

    Provides consistent error response format across the entire API.

    Usage:
        raise AppException("Product not found", "PRODUCT_NOT_FOUND", 404, {"product_id": 7})

    Error Codes:
        Lookup:
            - PRODUCT_NOT_FOUND (404)
            - CATEGORY_NOT_FOUND (404)

        Input:
            - PARAMETER_MISSING (400)
            - VALIDATION_ERROR (422)

        Integrity:
            - CATEGORY_IN_USE (422)
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize application exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (e.g., "PRODUCT_NOT_FOUND")
            status_code: HTTP status code (default: 400)
            details: Additional error context (optional)
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        error_dict = {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "timestamp": self.timestamp
            }
        }

        if self.details:
            error_dict["error"]["details"] = self.details

        return error_dict


class CacheUnavailable(Exception):
    """
    Raised by cache backends when the store cannot be reached.

    Never surfaced to API callers: the cache layer logs it and carries on.
    """


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    FastAPI exception handler for AppException.

    Converts AppException to consistent JSON error response.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    FastAPI handler for request parsing failures.

    A path id that does not parse as an integer is reported as an unknown
    id. Anything else becomes VALIDATION_ERROR.
    """
    errors: Dict[str, List[str]] = {}
    for error in exc.errors():
        loc = tuple(error.get("loc", ()))
        if loc == ("path", "product_id"):
            return await app_exception_handler(request, product_not_found(error.get("input")))
        if loc == ("path", "category_id"):
            return await app_exception_handler(request, category_not_found(error.get("input")))

        field = str(loc[-1]) if len(loc) > 1 and loc[0] != "body" else "base"
        errors.setdefault(field, []).append(error["msg"])

    return await app_exception_handler(request, validation_failed(errors))


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)


# ============================================
# CONVENIENCE FACTORY FUNCTIONS
# ============================================

def product_not_found(product_id: Optional[int] = None) -> AppException:
    """Create product not found exception."""
    details = {"product_id": product_id} if product_id is not None else {}
    return AppException("Product not found", "PRODUCT_NOT_FOUND", 404, details)


def category_not_found(category_id: Optional[int] = None) -> AppException:
    """Create category not found exception."""
    details = {"category_id": category_id} if category_id is not None else {}
    return AppException("Category not found", "CATEGORY_NOT_FOUND", 404, details)


def parameter_missing(param: str) -> AppException:
    """Create missing root parameter exception."""
    return AppException(
        f"param is missing or the value is empty: {param}",
        "PARAMETER_MISSING",
        400,
        {"param": param}
    )


def validation_failed(errors: Dict[str, List[str]]) -> AppException:
    """Create validation exception carrying field -> messages."""
    return AppException(
        "Validation failed",
        "VALIDATION_ERROR",
        422,
        errors
    )


def category_in_use(category_id: int, products_count: int) -> AppException:
    """Create referential integrity exception for category deletion."""
    return AppException(
        "Cannot delete category while products reference it",
        "CATEGORY_IN_USE",
        422,
        {"category_id": category_id, "products_count": products_count}
    )
