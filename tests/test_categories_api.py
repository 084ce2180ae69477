"""
==============================================================================
Category API Tests
==============================================================================

Tests for category CRUD and referential integrity.

Run with: pytest tests/test_categories_api.py -v

==============================================================================
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from catalog_api.db.models import Category, Product
from catalog_api.services.cache_service import ProductCache


class TestListCategories:
    """Tests for GET /api/v1/categories."""

    def test_list_with_counts(
        self, client: TestClient, make_product, electronics: Category, books: Category
    ):
        make_product(name="Phone", category_id=electronics.id)
        make_product(name="Tablet", category_id=electronics.id)

        response = client.get("/api/v1/categories")
        assert response.status_code == 200
        categories = response.json()["categories"]

        assert [(c["name"], c["products_count"]) for c in categories] == [
            ("Electronics", 2),
            ("Books", 0),
        ]
        assert "created_at" in categories[0]
        assert "updated_at" in categories[0]

    def test_counts_cost_one_statement(
        self, client: TestClient, statements, make_product, electronics: Category, books: Category
    ):
        for i in range(4):
            make_product(name=f"Item {i}", category_id=electronics.id if i % 2 else books.id)

        statements.clear()
        client.get("/api/v1/categories")

        assert len(statements) == 1


class TestGetCategory:
    """Tests for GET /api/v1/categories/{id}."""

    def test_get_with_products(self, client: TestClient, laptop: Product, electronics: Category):
        response = client.get(f"/api/v1/categories/{electronics.id}")
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Electronics"
        assert data["products_count"] == 1
        assert data["products"][0]["name"] == "Laptop"
        assert data["products"][0]["category_name"] == "Electronics"

    def test_not_found(self, client: TestClient):
        response = client.get("/api/v1/categories/999")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "CATEGORY_NOT_FOUND"

    @pytest.mark.parametrize("category_id", ["99999999999999999999", "abc"])
    def test_unusable_id_is_not_found(self, client: TestClient, category_id):
        response = client.get(f"/api/v1/categories/{category_id}")
        assert response.status_code == 404
        data = response.json()
        assert data["success"] is False
        assert data["error"]["code"] == "CATEGORY_NOT_FOUND"


class TestWriteCategories:
    """Tests for POST/PATCH/PUT /api/v1/categories."""

    def test_create(self, client: TestClient):
        response = client.post("/api/v1/categories", json={"category": {"name": "  Garden "}})
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Garden"
        assert data["products_count"] == 0

    def test_create_blank_name(self, client: TestClient):
        response = client.post("/api/v1/categories", json={"category": {"name": ""}})
        assert response.status_code == 422
        assert response.json()["error"]["details"]["name"] == ["can't be blank"]

    def test_create_duplicate_name(self, client: TestClient, electronics: Category):
        response = client.post("/api/v1/categories", json={"category": {"name": "Electronics"}})
        assert response.status_code == 422
        assert response.json()["error"]["details"]["name"] == ["has already been taken"]

    def test_create_missing_root(self, client: TestClient):
        response = client.post("/api/v1/categories", json={"name": "Garden"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "PARAMETER_MISSING"

    def test_rename(self, client: TestClient, electronics: Category):
        response = client.patch(
            f"/api/v1/categories/{electronics.id}", json={"category": {"name": "Gadgets"}}
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Gadgets"

    def test_rename_keeping_own_name(self, client: TestClient, electronics: Category):
        response = client.put(
            f"/api/v1/categories/{electronics.id}", json={"category": {"name": "Electronics"}}
        )
        assert response.status_code == 200

    def test_rename_refreshes_cached_product_views(
        self, client: TestClient, cache: ProductCache, laptop: Product, electronics: Category
    ):
        client.get(f"/api/v1/products/{laptop.id}")
        assert cache.fetch(laptop.id) is not None

        client.patch(f"/api/v1/categories/{electronics.id}", json={"category": {"name": "Gadgets"}})

        assert cache.fetch(laptop.id) is None
        assert client.get(f"/api/v1/products/{laptop.id}").json()["category_name"] == "Gadgets"

    def test_update_not_found(self, client: TestClient):
        response = client.patch("/api/v1/categories/999", json={"category": {"name": "X"}})
        assert response.status_code == 404

    def test_update_unusable_id(self, client: TestClient):
        response = client.patch("/api/v1/categories/abc", json={"category": {"name": "X"}})
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "CATEGORY_NOT_FOUND"


class TestDeleteCategory:
    """Tests for DELETE /api/v1/categories/{id}."""

    def test_delete_unreferenced(self, client: TestClient, db: Session, books: Category):
        response = client.delete(f"/api/v1/categories/{books.id}")
        assert response.status_code == 204
        assert db.query(Category).count() == 0

    def test_delete_referenced_is_refused(
        self, client: TestClient, db: Session, laptop: Product, electronics: Category
    ):
        response = client.delete(f"/api/v1/categories/{electronics.id}")
        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "CATEGORY_IN_USE"
        assert error["details"]["products_count"] == 1
        assert db.query(Category).count() == 1

    def test_delete_after_products_removed(
        self, client: TestClient, laptop: Product, electronics: Category
    ):
        client.delete(f"/api/v1/products/{laptop.id}")
        response = client.delete(f"/api/v1/categories/{electronics.id}")
        assert response.status_code == 204

    def test_delete_not_found(self, client: TestClient):
        response = client.delete("/api/v1/categories/999")
        assert response.status_code == 404

    def test_delete_beyond_integer_range(self, client: TestClient):
        response = client.delete("/api/v1/categories/99999999999999999999")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "CATEGORY_NOT_FOUND"
