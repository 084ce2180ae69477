"""
==============================================================================
Database Package
==============================================================================

SQLAlchemy database infrastructure and ORM models.

Architecture:
------------
├── database.py   - DatabaseManager class, session factory
├── models.py     - Category and Product ORM models
└── init_db.py    - DatabaseInitializer for setup

Usage:
------
    from catalog_api.db import DatabaseManager, Category, Product

    session = DatabaseManager().get_session()
    try:
        categories = session.query(Category).all()
    finally:
        session.close()

==============================================================================
"""

from .database import DatabaseManager, Base, get_db
from .models import Category, Product
from .init_db import DatabaseInitializer, init_db

__all__ = [
    # Database management
    "DatabaseManager",
    "Base",
    "get_db",
    # Models
    "Category",
    "Product",
    # Initialization
    "DatabaseInitializer",
    "init_db",
]
