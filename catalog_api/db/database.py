"""
==============================================================================
Catalog Database Module
==============================================================================

Engine and session lifecycle for the catalog store.

    get_database_manager() ──▶ DatabaseManager (one per process)
                                   │ engine        built on first use
                                   │ session_factory
                                   ▼
    get_db() ──────────────────▶ Session (one per request, closed after)

SQLite engines get check_same_thread disabled, a StaticPool when the
database lives in memory, and PRAGMA foreign_keys=ON on every connection
so the products -> categories reference is enforced by the store too.

==============================================================================
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Generator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from catalog_api.config import get_settings


# Module logger
logger = logging.getLogger(__name__)

# Declarative base shared by Category and Product
Base = declarative_base()


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """Install a connect hook switching on SQLite foreign key checks."""

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


class DatabaseManager:
    """
    Process-wide owner of the catalog engine and session factory.

    Constructing it again returns the same instance.
    """

    _instance: Optional[DatabaseManager] = None

    def __new__(cls) -> DatabaseManager:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if self._initialized:
            return

        self._settings = get_settings()
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        self._initialized = True

    # =========================================================================
    # ENGINE
    # =========================================================================

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    def _create_engine(self) -> Engine:
        url = self._settings.database_url
        echo = self._settings.debug

        if not url.startswith("sqlite"):
            logger.info(f"Connecting to {url} with a pooled engine")
            return create_engine(url, pool_pre_ping=True, pool_recycle=1800, echo=echo)

        options = {"connect_args": {"check_same_thread": False}, "echo": echo}
        if self._settings.get_database_path() is None:
            # Every session must share the one in-memory connection
            options["poolclass"] = StaticPool

        engine = create_engine(url, **options)
        enable_sqlite_foreign_keys(engine)
        logger.info(f"Connecting to SQLite at {url}")
        return engine

    # =========================================================================
    # SESSIONS
    # =========================================================================

    @property
    def session_factory(self) -> sessionmaker:
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                autoflush=False,
                expire_on_commit=False,
            )
        return self._session_factory

    def get_session(self) -> Session:
        """New session; the caller closes it."""
        return self.session_factory()

    # =========================================================================
    # SCHEMA AND CONNECTIVITY
    # =========================================================================

    def create_tables(self) -> None:
        """Create the categories and products tables if missing."""
        Base.metadata.create_all(bind=self.engine)

    def verify_connection(self) -> bool:
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error(f"Database connection failed: {e}")
            return False
        return True

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            logger.info("Database connections released")

    def __repr__(self) -> str:
        return f"DatabaseManager(url={self._settings.database_url!r})"


@lru_cache(maxsize=1)
def get_database_manager() -> DatabaseManager:
    return DatabaseManager()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency: one session per request, always closed."""
    session = get_database_manager().get_session()
    try:
        yield session
    finally:
        session.close()
