"""
==============================================================================
Database Initialization Module
==============================================================================

Database initialization and setup utilities.

Initialization Flow:
-------------------
1. Create all tables from ORM models
2. Optionally seed the sample catalog (empty database only)
3. Log initialization status

Usage:
------
    from catalog_api.db import init_db, DatabaseInitializer

    # Quick initialization
    init_db()

    # Or with more control
    initializer = DatabaseInitializer()
    initializer.create_tables()
    initializer.seed_sample_catalog()

==============================================================================
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from catalog_api.config import get_settings
from catalog_api.db.database import DatabaseManager
from catalog_api.db.models import Category, Product


# Module logger
logger = logging.getLogger(__name__)


SAMPLE_CATEGORIES = ("Electronics", "Books", "Clothing")

# (name, description, price, stock, category, featured, published)
SAMPLE_PRODUCTS = (
    ("Laptop Pro X", "15 inch laptop", "1299.99", 10, "Electronics", False, True),
    ("Wireless Headphones", "Noise cancelling", "199.99", 25, "Electronics", False, True),
    ("The Great Novel", "Bestselling fiction", "19.99", 100, "Books", False, True),
    ("Cotton T-Shirt", "Plain white tee", "14.99", 50, "Clothing", True, True),
    ("Gift Card", "Store credit", "25.00", 0, None, False, False),
)


class DatabaseInitializer:
    """
    Database initialization manager.

    Handles table creation and seeding of the sample catalog used for
    local development.

    Example:
        >>> initializer = DatabaseInitializer()
        >>> initializer.initialize()
    """

    def __init__(
        self,
        db_manager: Optional[DatabaseManager] = None,
        session: Optional[Session] = None
    ) -> None:
        """
        Initialize the database initializer.

        Args:
            db_manager: Optional DatabaseManager instance (creates new if None)
            session: Optional existing session (creates new if None)
        """
        self._db_manager = db_manager or DatabaseManager()
        self._settings = get_settings()
        self._session = session

    def _get_session(self) -> Session:
        if self._session is not None:
            return self._session
        return self._db_manager.get_session()

    # =========================================================================
    # TABLE OPERATIONS
    # =========================================================================

    def create_tables(self) -> None:
        """Create all database tables (idempotent)."""
        logger.info("Creating database tables...")
        self._db_manager.create_tables()
        logger.info("✅ Database tables created successfully")

    # =========================================================================
    # SAMPLE DATA
    # =========================================================================

    def seed_sample_catalog(self) -> int:
        """
        Seed a small catalog into an empty database.

        Not allowed in production. Does nothing if any category exists.

        Returns:
            Number of products created
        """
        if self._settings.is_production:
            logger.error("Cannot seed sample data in production!")
            raise RuntimeError("Sample data seeding not allowed in production")

        session = self._get_session()

        try:
            if session.query(Category.id).first() is not None:
                logger.info("Catalog already populated, skipping seed")
                return 0

            categories = {name: Category(name=name) for name in SAMPLE_CATEGORIES}
            session.add_all(categories.values())
            session.flush()

            now = datetime.utcnow()
            for name, description, price, stock, category, featured, published in SAMPLE_PRODUCTS:
                session.add(Product(
                    name=name,
                    description=description,
                    price=Decimal(price),
                    stock_quantity=stock,
                    category_id=categories[category].id if category else None,
                    is_featured=featured,
                    published_at=now if published else None,
                ))

            session.commit()
            logger.info(f"✅ Seeded {len(SAMPLE_PRODUCTS)} sample products")
            return len(SAMPLE_PRODUCTS)

        except Exception as e:
            session.rollback()
            logger.error(f"Failed to seed sample catalog: {e}")
            raise
        finally:
            if self._session is None:
                session.close()

    # =========================================================================
    # INITIALIZATION METHODS
    # =========================================================================

    def initialize(self) -> None:
        """
        Perform full database initialization.

        Creates tables, seeds the sample catalog when configured, and
        verifies the connection.
        """
        logger.info("Initializing database...")

        self.create_tables()

        if self._settings.seed_sample_data:
            self.seed_sample_catalog()

        if self._db_manager.verify_connection():
            logger.info("✅ Database connection verified")
        else:
            logger.warning("⚠️ Database connection check failed")


def init_db() -> None:
    """Initialize the database (convenience function)."""
    initializer = DatabaseInitializer()
    initializer.initialize()
