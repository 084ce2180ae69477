"""
==============================================================================
Strong Parameters Module
==============================================================================

Allow-listing of client-supplied request bodies.

Write endpoints never hand a raw request body to a model. They go
through ParameterFilter, which:

1. require(): extracts the resource root ({"product": {...}}) and fails
   with PARAMETER_MISSING when it is absent, empty, or not an object
2. permit(): copies only the named keys into a brand new dict

Keys that are not permitted are dropped, whatever their value or
position, and logged at DEBUG level.

Example:
--------
    >>> body = {"product": {"name": "Lamp", "is_admin": True}}
    >>> ParameterFilter(body).require("product").permit("name", "price")
    {'name': 'Lamp'}

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Mapping, Optional, Set

from catalog_api.core import exceptions


# Module logger
logger = logging.getLogger(__name__)


class ParameterFilter:
    """Wraps a raw request mapping and exposes only allow-listed keys."""

    def __init__(self, params: Any, root: Optional[str] = None) -> None:
        self._params = params if isinstance(params, Mapping) else {}
        self._root = root

    def require(self, key: str) -> "ParameterFilter":
        """
        Descend into a required nested object.

        Raises:
            AppException: PARAMETER_MISSING if the key is absent, empty,
                or does not hold an object
        """
        value = self._params.get(key)
        if not isinstance(value, Mapping) or not value:
            raise exceptions.parameter_missing(key)
        return ParameterFilter(value, root=key)

    def permit(self, *fields: str) -> Dict[str, Any]:
        """
        Return a new dict holding only the permitted keys that are present.

        Absent keys stay absent so partial updates leave other fields alone.
        """
        permitted = {field: self._params[field] for field in fields if field in self._params}

        unpermitted = self.unpermitted_keys(fields)
        if unpermitted:
            logger.debug(
                f"Unpermitted parameters for {self._root or 'request'}: "
                f"{', '.join(sorted(unpermitted))}"
            )

        return permitted

    def unpermitted_keys(self, fields: Iterable[str]) -> Set[str]:
        allowed = set(fields)
        return {str(key) for key in self._params if key not in allowed}
