"""
==============================================================================
Pytest Configuration and Fixtures
==============================================================================

Provides test database, product cache, client and catalog fixtures.

==============================================================================
"""

import os

# Keep the application's own engine in memory during tests
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime
from decimal import Decimal
from typing import Callable, Generator, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from catalog_api.main import app
from catalog_api.db.database import Base, enable_sqlite_foreign_keys
from catalog_api.db.models import Category, Product
from catalog_api.core.dependencies import get_db, get_product_cache
from catalog_api.services.cache_service import MemoryCacheBackend, ProductCache


# ============================================================================
# DATABASE FIXTURES
# ============================================================================

# In-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def fk_db() -> Generator[Session, None, None]:
    """Fresh database on an engine that enforces foreign keys."""
    fk_engine = create_engine(
        SQLALCHEMY_TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(fk_engine)
    Base.metadata.create_all(bind=fk_engine)

    session = sessionmaker(autoflush=False, expire_on_commit=False, bind=fk_engine)()
    try:
        yield session
    finally:
        session.close()
        fk_engine.dispose()


@pytest.fixture
def statements() -> Generator[List[str], None, None]:
    """Record every SQL statement sent to the test engine."""
    recorded: List[str] = []

    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        recorded.append(statement)

    event.listen(engine, "before_cursor_execute", before_cursor_execute)
    yield recorded
    event.remove(engine, "before_cursor_execute", before_cursor_execute)


# ============================================================================
# CACHE FIXTURES
# ============================================================================

@pytest.fixture
def cache() -> ProductCache:
    """Fresh in-memory product cache per test."""
    return ProductCache(MemoryCacheBackend())


@pytest.fixture(scope="function")
def client(db: Session, cache: ProductCache) -> Generator[TestClient, None, None]:
    """Create test client with database and cache overrides."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_product_cache] = lambda: cache

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ============================================================================
# CATALOG FIXTURES
# ============================================================================

@pytest.fixture
def electronics(db: Session) -> Category:
    """Create the Electronics category."""
    category = Category(name="Electronics")
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@pytest.fixture
def books(db: Session) -> Category:
    """Create the Books category."""
    category = Category(name="Books")
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@pytest.fixture
def make_product(db: Session) -> Callable[..., Product]:
    """Factory persisting a product with sensible defaults."""
    def _make(**attributes) -> Product:
        values = {
            "name": "Widget",
            "description": None,
            "price": Decimal("10.00"),
            "stock_quantity": 5,
            "is_featured": False,
            "is_admin": False,
        }
        values.update(attributes)
        product = Product(**values)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def laptop(make_product, electronics: Category) -> Product:
    """Create a published laptop in Electronics."""
    return make_product(
        name="Laptop",
        description="14 inch",
        price=Decimal("1500.00"),
        stock_quantity=3,
        category_id=electronics.id,
        published_at=datetime(2024, 1, 15, 10, 30),
    )
