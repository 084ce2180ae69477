"""
==============================================================================
Health Check Endpoints
==============================================================================

System health status endpoints for monitoring and orchestration.

==============================================================================
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from catalog_api.core.dependencies import get_db, get_product_cache
from catalog_api.services.cache_service import ProductCache


router = APIRouter(prefix="/health", tags=["Health"])


class HealthController:
    """Controller for health check operations."""

    def __init__(self, db: Session, cache: ProductCache):
        self._db = db
        self._cache = cache

    def check_database(self) -> str:
        """Check database connectivity."""
        try:
            self._db.execute(text("SELECT 1"))
            return "healthy"
        except SQLAlchemyError:
            return "unhealthy"

    def get_health(self) -> dict:
        """Get full health status."""
        db_status = self.check_database()
        cache_status = self._cache.status()

        # A cache outage only degrades reads
        overall = "healthy" if db_status == "healthy" and cache_status != "unhealthy" else "degraded"

        return {
            "status": overall,
            "components": {
                "api": "healthy",
                "database": db_status,
                "cache": cache_status
            }
        }


@router.get("")
async def health_check(
    db: Session = Depends(get_db),
    cache: ProductCache = Depends(get_product_cache)
):
    """
    Health check endpoint.

    Returns system status including API, database, and product cache.
    """
    controller = HealthController(db, cache)
    return controller.get_health()


@router.get("/ready")
async def readiness_check():
    """Readiness probe for container orchestration."""
    return {"ready": True}


@router.get("/live")
async def liveness_check():
    """Liveness probe for container orchestration."""
    return {"alive": True}
