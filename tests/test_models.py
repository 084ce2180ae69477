"""
==============================================================================
Model and Utility Tests
==============================================================================

Tests for product scopes, the etag, validators, strong parameters and
attribute coercion.

Run with: pytest tests/test_models.py -v

==============================================================================
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from catalog_api.core.exceptions import AppException
from catalog_api.db.models import Category, Product, fits_integer_column
from catalog_api.schemas.common import PaginationMeta
from catalog_api.schemas.product import ProductAttributes, format_price
from catalog_api.utils.params import ParameterFilter
from catalog_api.utils.validators import CategoryValidator, ProductValidator


class TestProductScopes:
    """Tests for the Product query scopes."""

    def test_by_category(self, db: Session, make_product, electronics: Category):
        make_product(name="In", category_id=electronics.id)
        make_product(name="Out")

        names = [p.name for p in Product.by_category(db.query(Product), electronics.id)]
        assert names == ["In"]

    def test_by_category_none_is_identity(self, db: Session, make_product):
        make_product(name="A")
        make_product(name="B")
        assert Product.by_category(db.query(Product), None).count() == 2
        assert Product.by_category(db.query(Product), "").count() == 2

    def test_published(self, db: Session, make_product):
        make_product(name="Draft")
        make_product(name="Live", published_at=datetime(2024, 1, 1))

        assert [p.name for p in Product.published(db.query(Product))] == ["Live"]

    def test_scopes_compose(self, db: Session, make_product):
        make_product(name="Featured, no stock", is_featured=True, stock_quantity=0)
        make_product(name="Featured, stocked", is_featured=True, stock_quantity=4)
        make_product(name="Plain, stocked", stock_quantity=4)

        query = Product.in_stock(Product.featured(db.query(Product)))
        assert [p.name for p in query] == ["Featured, stocked"]


@pytest.mark.parametrize("value,fits", [
    (0, True), (2 ** 31 - 1, True), (-(2 ** 31), True), (2 ** 31, False), (-(2 ** 31) - 1, False), (10 ** 20, False),
])
def test_fits_integer_column(value, fits):
    assert fits_integer_column(value) is fits


class TestProductEtag:
    """Tests for the freshness token."""

    def test_stable_for_same_state(self, laptop: Product):
        assert laptop.etag == laptop.etag
        assert len(laptop.etag) == 64

    def test_changes_with_any_mutable_field(self, laptop: Product):
        before = laptop.etag
        laptop.stock_quantity = 4
        assert laptop.etag != before

    def test_price_scale_does_not_matter(self, laptop: Product):
        laptop.price = Decimal("1500")
        first = laptop.etag
        laptop.price = Decimal("1500.00")
        assert laptop.etag == first

    def test_is_published(self, laptop: Product):
        assert laptop.is_published is True
        laptop.published_at = None
        assert laptop.is_published is False


class TestProductValidator:
    """Tests for ProductValidator."""

    def test_valid_product(self, db: Session, electronics: Category):
        product = Product(name="Phone", price=Decimal("1"), stock_quantity=0, category_id=electronics.id)
        assert ProductValidator(db).validate(product) == {}

    def test_missing_fields(self, db: Session):
        errors = ProductValidator(db).validate(Product())
        assert errors == {
            "name": ["can't be blank"],
            "price": ["can't be blank"],
            "stock_quantity": ["can't be blank"],
        }

    def test_price_upper_bound(self, db: Session):
        product = Product(name="Yacht", price=Decimal("100000000"), stock_quantity=1)
        assert ProductValidator(db).validate(product) == {"price": ["must be less than 100000000"]}

    def test_category_check_can_be_skipped(self, db: Session):
        product = Product(name="Orphan", price=Decimal("1"), stock_quantity=1, category_id=999)
        assert ProductValidator(db).validate(product, check_category=False) == {}
        assert ProductValidator(db).validate(product) == {"category_id": ["must exist"]}

    def test_stock_upper_bound(self, db: Session):
        product = Product(name="Bulk", price=Decimal("1"), stock_quantity=2 ** 31)
        assert ProductValidator(db).validate(product) == {
            "stock_quantity": ["must be less than or equal to 2147483647"]
        }

        product.stock_quantity = 2 ** 31 - 1
        assert ProductValidator(db).validate(product) == {}

    def test_category_beyond_integer_range_must_exist(self, db: Session):
        product = Product(name="Lost", price=Decimal("1"), stock_quantity=1, category_id=10 ** 20)
        assert ProductValidator(db).validate(product) == {"category_id": ["must exist"]}


class TestCategoryValidator:
    """Tests for CategoryValidator."""

    def test_too_long(self, db: Session):
        errors = CategoryValidator(db).validate(Category(name="x" * 101))
        assert errors == {"name": ["is too long (maximum is 100 characters)"]}

    def test_uniqueness_ignores_self(self, db: Session, electronics: Category):
        assert CategoryValidator(db).validate(electronics) == {}
        assert CategoryValidator(db).validate(Category(name="Electronics")) == {
            "name": ["has already been taken"]
        }


class TestParameterFilter:
    """Tests for strong parameters."""

    def test_permit_copies_only_allowed_keys(self):
        raw = {"product": {"name": "Lamp", "is_admin": True}}
        permitted = ParameterFilter(raw).require("product").permit("name", "price")

        assert permitted == {"name": "Lamp"}
        assert raw["product"] == {"name": "Lamp", "is_admin": True}

    def test_unpermitted_keys(self):
        params = ParameterFilter({"name": "Lamp", "is_admin": True, "id": 3}, root="product")
        assert params.unpermitted_keys(["name"]) == {"is_admin", "id"}

    @pytest.mark.parametrize("raw", [
        None,
        [],
        {},
        {"product": None},
        {"product": {}},
        {"product": "Lamp"},
        {"other": {"name": "Lamp"}},
    ])
    def test_require_rejects_missing_root(self, raw):
        with pytest.raises(AppException) as exc_info:
            ParameterFilter(raw).require("product")
        assert exc_info.value.code == "PARAMETER_MISSING"
        assert exc_info.value.status_code == 400


class TestProductAttributes:
    """Tests for attribute coercion."""

    def test_only_sent_keys_are_returned(self):
        assert ProductAttributes.parse({"stock_quantity": "3"}) == {"stock_quantity": 3}

    def test_blank_strings_become_none(self):
        attributes = ProductAttributes.parse({"price": "", "category_id": " "})
        assert attributes == {"price": None, "category_id": None}

    def test_aware_datetime_is_stored_as_utc(self):
        aware = datetime(2024, 5, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        attributes = ProductAttributes.parse({"published_at": aware.isoformat()})
        assert attributes["published_at"] == datetime(2024, 5, 1, 10, 0)

    def test_null_featured_means_false(self):
        assert ProductAttributes.parse({"is_featured": None}) == {"is_featured": False}

    def test_type_errors_are_reported_per_field(self):
        with pytest.raises(AppException) as exc_info:
            ProductAttributes.parse({"stock_quantity": "many", "category_id": "x"})
        assert exc_info.value.status_code == 422
        assert set(exc_info.value.details) == {"stock_quantity", "category_id"}

    def test_format_price(self):
        assert format_price(Decimal("5")) == "5.00"
        assert format_price(None) is None


class TestPaginationMeta:
    """Tests for page links."""

    def test_middle_page(self):
        meta = PaginationMeta.create(page=2, per_page=10, total_count=35)
        assert meta.total_pages == 4
        assert meta.next_page == 3
        assert meta.prev_page == 1

    def test_past_the_end(self):
        meta = PaginationMeta.create(page=9, per_page=10, total_count=35)
        assert meta.next_page is None
        assert meta.prev_page == 8


class TestDatabaseInitializer:
    """Tests for the sample catalog seed."""

    def test_seed_sample_catalog(self, db: Session):
        from catalog_api.db.init_db import DatabaseInitializer

        initializer = DatabaseInitializer(session=db)

        assert initializer.seed_sample_catalog() == 5
        assert db.query(Category).count() == 3
        assert db.query(Product).filter(Product.category_id.is_(None)).count() == 1

        # Populated catalogs are left alone
        assert initializer.seed_sample_catalog() == 0
