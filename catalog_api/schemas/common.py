"""
==============================================================================
Common Schemas Module
==============================================================================

Shared schemas used across all API endpoints.

==============================================================================
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from catalog_api.core import exceptions


class AttributesSchema(BaseModel):
    """
    Base for write schemas fed by ParameterFilter.permit().

    Fields are all optional; parse() returns only the keys the client sent.
    """
    model_config = ConfigDict(extra="ignore")

    @classmethod
    def parse(cls, permitted: Dict[str, Any]) -> Dict[str, Any]:
        """
        Coerce an allow-listed dict into typed attribute values.

        Raises:
            AppException: VALIDATION_ERROR with field -> messages
        """
        try:
            attributes = cls.model_validate(permitted)
        except ValidationError as e:
            errors: Dict[str, List[str]] = {}
            for error in e.errors():
                field = str(error["loc"][0]) if error["loc"] else "base"
                errors.setdefault(field, []).append(error["msg"])
            raise exceptions.validation_failed(errors)

        return attributes.model_dump(exclude_unset=True)


class PaginationMeta(BaseModel):
    """Page-object metadata returned next to every paginated list."""
    current_page: int = Field(ge=1)
    total_pages: int = Field(ge=0)
    total_count: int = Field(ge=0)
    per_page: int = Field(ge=1)
    next_page: Optional[int] = None
    prev_page: Optional[int] = None

    @classmethod
    def create(cls, page: int, per_page: int, total_count: int):
        """Factory method deriving page links from the totals."""
        total_pages = (total_count + per_page - 1) // per_page if total_count > 0 else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_count=total_count,
            per_page=per_page,
            next_page=page + 1 if page < total_pages else None,
            prev_page=page - 1 if page > 1 else None,
        )
