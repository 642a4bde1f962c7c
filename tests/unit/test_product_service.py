"""
Unit tests for ProductService.

Run: pytest tests/unit/test_product_service.py -v
"""

from decimal import Decimal

import pytest

from services.product_service import ProductService, get_product_service
from models.product import ProductCreate, ProductUpdate
from exceptions import (
    ProductNotFoundError,
    ProductSKUExistsError,
    ProductBarcodeExistsError,
    DatabaseError,
)
from tests.factories import ProductFactory


class TestProductServiceGetAll:
    """Tests for ProductService.get_all()"""

    def test_get_all_returns_products(self, mock_db, mock_supabase):
        # Arrange
        mock_supabase.set_table_data("products", ProductFactory.create_batch(3))
        service = ProductService()

        # Act
        products, total = service.get_all()

        # Assert
        assert len(products) == 3
        assert total == 3

    def test_get_all_empty_returns_empty_list(self, mock_db, mock_supabase):
        products, total = ProductService().get_all()

        assert products == []
        assert total == 0

    def test_get_all_with_pagination(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", ProductFactory.create_batch(5))

        products, total = ProductService().get_all(page=2, page_size=2)

        assert len(products) == 2
        assert total == 5

    def test_search_matches_name_sku_or_barcode(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [
            ProductFactory.create(name="Casco Bell", sku="C1"),
            ProductFactory.create(name="Luz", sku="CASCO-LUZ"),
            ProductFactory.create(name="Pedal", barcode="750CASCO"),
            ProductFactory.create(name="Cadena", sku="CAD-1"),
        ])

        products, total = ProductService().get_all(search="casco")

        assert total == 3
        assert {p.name for p in products} == {"Casco Bell", "Luz", "Pedal"}

    def test_inactive_excluded_by_default(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [
            ProductFactory.create(name="Activo"),
            ProductFactory.create(name="Inactivo", is_active=False),
        ])

        active, _ = ProductService().get_all()
        everything, _ = ProductService().get_all(active_only=False)

        assert [p.name for p in active] == ["Activo"]
        assert len(everything) == 2


class TestProductServiceLookups:
    """Tests for get_by_id, get_by_barcode, get_by_sku, find_existing"""

    def test_get_by_id_returns_product(self, mock_db, mock_supabase, sample_product_data):
        mock_supabase.set_table_data("products", [sample_product_data])

        product = ProductService().get_by_id("prod-uuid-1")

        assert product.name == "Casco de Seguridad"
        assert product.public_price == Decimal("49.99")

    def test_get_by_id_not_found_raises_error(self, mock_db, mock_supabase):
        with pytest.raises(ProductNotFoundError) as exc_info:
            ProductService().get_by_id("nonexistent-id")

        assert exc_info.value.status_code == 404
        assert exc_info.value.code == "PRODUCT_NOT_FOUND"

    def test_get_by_barcode_trims_input(self, mock_db, mock_supabase, sample_product_data):
        mock_supabase.set_table_data("products", [sample_product_data])

        product = ProductService().get_by_barcode(" 1234567890124 ")

        assert product is not None
        assert product.id == "prod-uuid-1"

    def test_get_by_sku_missing_returns_none(self, mock_db, mock_supabase):
        assert ProductService().get_by_sku("NOPE") is None

    def test_first_match_wins_on_duplicate_sku(self, mock_db, mock_supabase):
        first = ProductFactory.create(name="Primero", sku="DUP")
        second = ProductFactory.create(name="Segundo", sku="DUP")
        mock_supabase.set_table_data("products", [first, second])

        assert ProductService().get_by_sku("DUP").name == "Primero"

    def test_find_existing_without_identifiers_is_none(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [ProductFactory.create()])

        assert ProductService().find_existing(None, "") is None

    def test_database_failure_is_wrapped(self, mock_db, mock_supabase):
        mock_supabase.fail_when("products", "select")

        with pytest.raises(DatabaseError):
            ProductService().get_by_sku("C1")


class TestProductServiceCreate:
    """Tests for ProductService.create()"""

    def test_create_sets_price_and_estimated_cost(self, mock_db, mock_supabase):
        data = ProductCreate(
            name="Casco",
            sku="C1",
            public_price=Decimal("50"),
            wholesale_price=Decimal("40"),
        )

        product = ProductService().create(data)

        row = mock_supabase.rows("products")[0]
        assert product.id == row["id"]
        assert row["price"] == 50.0
        assert row["cost"] == 32.0
        assert row["is_active"] is True

    def test_explicit_cost_is_kept(self, mock_db, mock_supabase):
        data = ProductCreate(name="Casco", wholesale_price=Decimal("40"), cost=Decimal("35"))

        ProductService().create(data)

        assert mock_supabase.rows("products")[0]["cost"] == 35.0

    def test_variant_product_stock_is_zero(self, mock_db, mock_supabase):
        data = ProductCreate(name="Casco", stock_quantity=9, has_variants=True)

        product = ProductService().create(data)

        assert product.stock_quantity == 0

    def test_duplicate_sku_raises(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [ProductFactory.create(sku="C1")])

        with pytest.raises(ProductSKUExistsError) as exc_info:
            ProductService().create(ProductCreate(name="Otro", sku="C1"))

        assert exc_info.value.status_code == 409

    def test_duplicate_barcode_raises(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [ProductFactory.create(barcode="750")])

        with pytest.raises(ProductBarcodeExistsError):
            ProductService().create(ProductCreate(name="Otro", barcode="750"))

    def test_blank_identifiers_are_stored_as_null(self, mock_db, mock_supabase):
        ProductService().create(ProductCreate(name="Parche", sku="  ", barcode=""))

        row = mock_supabase.rows("products")[0]
        assert row["sku"] is None
        assert row["barcode"] is None


class TestProductServiceUpdate:
    """Tests for ProductService.update() and delete()"""

    def test_update_mirrors_public_price(self, mock_db, mock_supabase):
        existing = ProductFactory.create(name="Casco")
        mock_supabase.set_table_data("products", [existing])

        product = ProductService().update(existing["id"], ProductUpdate(public_price=Decimal("60")))

        assert product.public_price == Decimal("60")
        assert product.price == Decimal("60")

    def test_update_to_sku_of_other_product_raises(self, mock_db, mock_supabase):
        a = ProductFactory.create(sku="A")
        b = ProductFactory.create(sku="B")
        mock_supabase.set_table_data("products", [a, b])

        with pytest.raises(ProductSKUExistsError):
            ProductService().update(a["id"], ProductUpdate(sku="B"))

    def test_update_missing_product(self, mock_db, mock_supabase):
        with pytest.raises(ProductNotFoundError):
            ProductService().update("missing", ProductUpdate(name="x"))

    def test_delete_is_soft(self, mock_db, mock_supabase):
        existing = ProductFactory.create()
        mock_supabase.set_table_data("products", [existing])

        assert ProductService().delete(existing["id"]) is True
        assert mock_supabase.rows("products")[0]["is_active"] is False


class TestProductServiceReports:
    """Tests for get_low_stock() and get_categories_and_brands()"""

    def test_low_stock_includes_products_at_minimum(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [
            ProductFactory.create(name="Bajo", stock_quantity=1, min_stock=2),
            ProductFactory.create(name="Justo", stock_quantity=2, min_stock=2),
            ProductFactory.create(name="Bien", stock_quantity=9, min_stock=2),
            ProductFactory.create(name="Variantes", has_variants=True, min_stock=2),
        ])

        low = ProductService().get_low_stock()

        assert [p.name for p in low] == ["Bajo", "Justo"]

    def test_categories_and_brands_are_distinct_and_sorted(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [
            ProductFactory.create(category="Ruedas", brand="Shimano"),
            ProductFactory.create(category="Frenos", brand="Shimano"),
            ProductFactory.create(category="Ruedas", brand=""),
        ])

        result = ProductService().get_categories_and_brands()

        assert result == {"categories": ["Frenos", "Ruedas"], "brands": ["Shimano"]}


class TestGetProductService:
    """Tests for the singleton getter."""

    def test_returns_same_instance(self, mock_db):
        assert get_product_service() is get_product_service()
