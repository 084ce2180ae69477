"""
==============================================================================
Cache Service Module
==============================================================================

Product view cache with explicit write-path invalidation.

This module implements:
- CacheBackend: Interface every backend implements
- MemoryCacheBackend: Thread-safe process-local backend (default)
- ProductCache: Product-keyed facade used by the services

Consistency Rules:
-----------------
- Reads are cache-aside: miss → load from the store → populate
- Every successful product mutation deletes product_{id} before the
  response is produced; expiry is never relied on for freshness
- Backend failures raise CacheUnavailable; ProductCache logs them and
  carries on, so a broken cache degrades reads and never fails a write

    ┌──────────────┐  get / set   ┌──────────────┐
    │ ProductCache │ ───────────▶ │ CacheBackend │
    └──────┬───────┘              └──────────────┘
           │ invalidate(id)
    ┌──────▼───────┐
    │   Service    │ commit() then invalidate()
    └──────────────┘

==============================================================================
"""

from __future__ import annotations

import logging
import threading
import time
from functools import lru_cache
from typing import Any, Dict, Iterable, Optional, Tuple

from catalog_api.config import get_settings
from catalog_api.core.exceptions import CacheUnavailable
from catalog_api.schemas.product import ProductSnapshot


# Module logger
logger = logging.getLogger(__name__)


class CacheBackend:
    """
    Minimal key/value cache interface.

    Implementations raise CacheUnavailable when the store can't be used.
    """

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    def ping(self) -> bool:
        raise NotImplementedError


class MemoryCacheBackend(CacheBackend):
    """
    Process-local backend guarded by a lock.

    Entries carry an optional absolute expiry (monotonic clock).
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Tuple[Any, Optional[float]]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and expires_at <= time.monotonic():
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        expires_at = time.monotonic() + ttl if ttl else None
        with self._lock:
            self._entries[key] = (value, expires_at)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def ping(self) -> bool:
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class ProductCache:
    """
    Product-keyed cache facade.

    Stores ProductSnapshot objects under product_{id}. All backend errors
    are logged and swallowed here; callers never see CacheUnavailable.

    Example:
        >>> cache = ProductCache(MemoryCacheBackend())
        >>> cache.store(snapshot)
        >>> cache.fetch(snapshot.product.id)
        >>> cache.invalidate(snapshot.product.id)
    """

    KEY_PREFIX = "product_"

    def __init__(
        self,
        backend: CacheBackend,
        enabled: bool = True,
        ttl: Optional[int] = None
    ) -> None:
        self._backend = backend
        self._enabled = enabled
        self._ttl = ttl or None

    @classmethod
    def key_for(cls, product_id: int) -> str:
        return f"{cls.KEY_PREFIX}{product_id}"

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def backend(self) -> CacheBackend:
        return self._backend

    # =========================================================================
    # READ PATH
    # =========================================================================

    def fetch(self, product_id: int) -> Optional[ProductSnapshot]:
        """Return the cached snapshot, or None on miss/disabled/failure."""
        if not self._enabled:
            return None
        try:
            return self._backend.get(self.key_for(product_id))
        except CacheUnavailable as e:
            logger.warning(f"⚠️ Cache read failed for product {product_id}: {e}")
            return None

    def store(self, snapshot: ProductSnapshot) -> None:
        if not self._enabled:
            return
        try:
            self._backend.set(self.key_for(snapshot.product.id), snapshot, self._ttl)
        except CacheUnavailable as e:
            logger.warning(f"⚠️ Cache write failed for product {snapshot.product.id}: {e}")

    # =========================================================================
    # WRITE PATH
    # =========================================================================

    def invalidate(self, product_id: int) -> bool:
        """
        Delete the cached view of a product.

        Returns:
            True if the backend accepted the delete, False if it failed
            (the failure is logged, never raised)
        """
        if not self._enabled:
            return True
        try:
            self._backend.delete(self.key_for(product_id))
            logger.debug(f"Cache invalidated: {self.key_for(product_id)}")
            return True
        except CacheUnavailable as e:
            logger.warning(
                f"⚠️ Cache invalidation failed for product {product_id}, "
                f"reads may be stale until the entry is replaced: {e}"
            )
            return False

    def invalidate_many(self, product_ids: Iterable[int]) -> int:
        """Invalidate several products; returns how many succeeded."""
        return sum(1 for product_id in product_ids if self.invalidate(product_id))

    # =========================================================================
    # HEALTH
    # =========================================================================

    def status(self) -> str:
        if not self._enabled:
            return "disabled"
        try:
            return "healthy" if self._backend.ping() else "unhealthy"
        except CacheUnavailable:
            return "unhealthy"


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

@lru_cache(maxsize=1)
def get_product_cache() -> ProductCache:
    """
    FastAPI dependency returning the process-wide ProductCache.

    Tests override this dependency with a fresh cache per test.
    """
    settings = get_settings()
    return ProductCache(
        MemoryCacheBackend(),
        enabled=settings.cache_enabled,
        ttl=settings.cache_ttl_seconds,
    )
