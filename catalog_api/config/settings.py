"""
==============================================================================
Catalog Settings Module
==============================================================================

Environment-driven configuration for the catalog service.

Values come from environment variables first, then a local .env file,
then the defaults below. get_settings() memoizes one Settings object per
process.

    Group         Keys
    ----------    ---------------------------------------------------
    runtime       app_name, app_env, debug, host, port, cors_origins
    storage       database_url, seed_sample_data
    listing       default_per_page, max_per_page
    caching       cache_enabled, cache_ttl_seconds, product_cache_max_age

==============================================================================
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Module logger
logger = logging.getLogger(__name__)

KNOWN_ENVIRONMENTS = ("development", "staging", "production")


class Settings(BaseSettings):
    """Catalog service configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    # =========================================================================
    # RUNTIME
    # =========================================================================
    app_name: str = "Catalog API"
    app_env: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    cors_origins: str = Field(
        default='["*"]',
        description="JSON array of allowed origins"
    )

    # =========================================================================
    # STORAGE
    # =========================================================================
    database_url: str = "sqlite:///./storage/db/catalog.db"
    seed_sample_data: bool = Field(
        default=False,
        description="Load the sample catalog into an empty database on startup"
    )

    # =========================================================================
    # LISTING
    # =========================================================================
    default_per_page: int = Field(default=25, ge=1)
    max_per_page: int = Field(default=100, ge=1, le=1000)

    # =========================================================================
    # CACHING
    # =========================================================================
    cache_enabled: bool = True
    cache_ttl_seconds: int = Field(
        default=3600,
        ge=0,
        description="Lifetime of a cached product view, 0 keeps it until invalidated"
    )
    product_cache_max_age: int = Field(
        default=3600,
        ge=0,
        description="max-age sent in Cache-Control on product reads"
    )

    # =========================================================================
    # VALIDATORS
    # =========================================================================
    @field_validator("app_env")
    @classmethod
    def normalize_app_env(cls, value: str) -> str:
        """Lower-case the environment; unknown names run as development."""
        normalized = value.lower().strip()
        if normalized in KNOWN_ENVIRONMENTS:
            return normalized

        logger.warning(f"⚠️ Unknown app_env {value!r}, running as development")
        return "development"

    @model_validator(mode="after")
    def check_page_sizes(self) -> "Settings":
        if self.default_per_page > self.max_per_page:
            raise ValueError(
                f"default_per_page ({self.default_per_page}) is larger than "
                f"max_per_page ({self.max_per_page})"
            )
        return self

    # =========================================================================
    # DERIVED VALUES
    # =========================================================================
    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def cors_origins_list(self) -> List[str]:
        """Decode cors_origins; anything but a JSON list allows every origin."""
        try:
            origins = json.loads(self.cors_origins)
        except json.JSONDecodeError:
            logger.warning(f"⚠️ cors_origins is not valid JSON: {self.cors_origins!r}")
            return ["*"]
        return origins if isinstance(origins, list) else ["*"]

    def get_database_path(self) -> Optional[Path]:
        """
        File backing a SQLite database_url.

        None for in-memory SQLite and for every other backend.
        """
        prefix = "sqlite:///"
        if not self.database_url.startswith(prefix):
            return None

        location = self.database_url[len(prefix):]
        if location in ("", ":memory:"):
            return None
        return Path(location)

    def ensure_directories(self) -> None:
        db_path = self.get_database_path()
        if db_path is not None:
            db_path.parent.mkdir(parents=True, exist_ok=True)

    def __repr__(self) -> str:
        return (
            f"Settings(app_name={self.app_name!r}, app_env={self.app_env!r}, "
            f"database_url={self.database_url!r}, cache_enabled={self.cache_enabled})"
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process and prepare the SQLite directory."""
    settings = Settings()
    settings.ensure_directories()

    if settings.debug:
        logger.info(f"Configuration loaded: {settings}")

    return settings
