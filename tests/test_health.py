"""
==============================================================================
Health and Application Tests
==============================================================================

Tests for health endpoints, the root redirect and settings.

Run with: pytest tests/test_health.py -v

==============================================================================
"""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError

from catalog_api.config.settings import Settings
from catalog_api.core.dependencies import get_product_cache
from catalog_api.core.exceptions import CacheUnavailable
from catalog_api.main import app
from catalog_api.services.cache_service import CacheBackend, ProductCache


class DownBackend(CacheBackend):
    def ping(self):
        raise CacheUnavailable("down")


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_health_check(self, client: TestClient):
        """Test main health endpoint."""
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"] == {"api": "healthy", "database": "healthy", "cache": "healthy"}

    def test_degraded_when_cache_down(self, client: TestClient):
        app.dependency_overrides[get_product_cache] = lambda: ProductCache(DownBackend())

        data = client.get("/api/v1/health").json()

        assert data["status"] == "degraded"
        assert data["components"]["cache"] == "unhealthy"

    def test_readiness_check(self, client: TestClient):
        """Test readiness probe."""
        response = client.get("/api/v1/health/ready")
        assert response.status_code == 200
        assert response.json() == {"ready": True}

    def test_liveness_check(self, client: TestClient):
        """Test liveness probe."""
        response = client.get("/api/v1/health/live")
        assert response.status_code == 200
        assert response.json() == {"alive": True}


class TestRoot:
    """Tests for the root endpoint."""

    def test_root_redirects_to_docs(self, client: TestClient):
        response = client.get("/", follow_redirects=False)
        assert response.status_code == 307
        assert response.headers["location"] == "/docs"


class TestSettings:
    """Tests for configuration parsing."""

    def test_unknown_env_falls_back_to_development(self):
        settings = Settings(app_env="staging-ish", database_url="sqlite://")
        assert settings.is_development is True

    def test_cors_origins_list(self):
        settings = Settings(cors_origins='["http://a.test", "http://b.test"]', database_url="sqlite://")
        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]

    def test_default_page_size_cannot_exceed_max(self):
        with pytest.raises(ValidationError):
            Settings(default_per_page=50, max_per_page=20, database_url="sqlite://")

    def test_memory_database_has_no_path(self):
        assert Settings(database_url="sqlite://").get_database_path() is None
        assert Settings(database_url="sqlite:///:memory:").get_database_path() is None

    def test_database_path(self):
        settings = Settings(database_url="sqlite:///./storage/db/test.db")
        assert settings.get_database_path() == Path("./storage/db/test.db")
        assert Settings(database_url="postgresql://db/catalog").get_database_path() is None

    def test_known_env_is_normalized(self):
        settings = Settings(app_env=" Production ", database_url="sqlite://")
        assert settings.is_production is True
