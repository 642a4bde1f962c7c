"""
Unit tests for InventoryMovementService and VariantService.
"""

import pytest

from exceptions import ValidationError, ProductNotFoundError, VariantNotFoundError
from models.inventory_movement import StockAdjustment
from models.product import VariantCreate, VariantUpdate
from services.inventory_movement_service import InventoryMovementService
from services.variant_service import VariantService
from tests.factories import ProductFactory, VariantFactory


class TestAdjustStock:
    """Tests for InventoryMovementService.adjust_stock()"""

    def test_sets_stock_and_records_difference(self, mock_db, mock_supabase):
        # Arrange
        product = ProductFactory.create(stock_quantity=10)
        mock_supabase.set_table_data("products", [product])

        # Act
        updated = InventoryMovementService().adjust_stock(
            product["id"],
            StockAdjustment(new_quantity=7, reason="Conteo")
        )

        # Assert
        movements = mock_supabase.rows("inventory_movements")
        assert updated.stock_quantity == 7
        assert len(movements) == 1
        assert movements[0]["movement_type"] == "ajuste"
        assert movements[0]["quantity"] == -3
        assert movements[0]["reason"] == "Conteo"

    def test_no_change_records_nothing(self, mock_db, mock_supabase):
        product = ProductFactory.create(stock_quantity=4)
        mock_supabase.set_table_data("products", [product])

        InventoryMovementService().adjust_stock(product["id"], StockAdjustment(new_quantity=4))

        assert mock_supabase.rows("inventory_movements") == []

    def test_product_with_variants_is_rejected(self, mock_db, mock_supabase):
        product = ProductFactory.create(has_variants=True)
        mock_supabase.set_table_data("products", [product])

        with pytest.raises(ValidationError) as exc_info:
            InventoryMovementService().adjust_stock(product["id"], StockAdjustment(new_quantity=3))

        assert exc_info.value.code == "PRODUCT_HAS_VARIANTS"

    def test_missing_product(self, mock_db, mock_supabase):
        with pytest.raises(ProductNotFoundError):
            InventoryMovementService().adjust_stock("missing", StockAdjustment(new_quantity=1))


class TestMovementHistory:
    """Tests for InventoryMovementService.get_for_product()"""

    def test_most_recent_first(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("inventory_movements", [
            {"id": "m1", "product_id": "p1", "movement_type": "entrada", "quantity": 5,
             "created_at": "2025-01-01T10:00:00+00:00"},
            {"id": "m2", "product_id": "p1", "movement_type": "ajuste", "quantity": -1,
             "created_at": "2025-02-01T10:00:00+00:00"},
            {"id": "m3", "product_id": "p2", "movement_type": "entrada", "quantity": 1,
             "created_at": "2025-03-01T10:00:00+00:00"},
        ])

        movements = InventoryMovementService().get_for_product("p1")

        assert [m.id for m in movements] == ["m2", "m1"]


class TestVariantService:
    """Tests for VariantService."""

    def test_create_and_list(self, mock_db, mock_supabase):
        service = VariantService()

        service.create("p1", VariantCreate(name="Talla M", sku="M"))
        service.create("p1", VariantCreate(name="Talla L", sku="L"))
        service.create("p2", VariantCreate(name="Rojo"))

        assert [v.name for v in service.get_for_product("p1")] == ["Talla L", "Talla M"]

    def test_find_existing_prefers_barcode(self, mock_db, mock_supabase):
        by_barcode = VariantFactory.create("p1", barcode="111", sku="X")
        by_sku = VariantFactory.create("p2", sku="Y")
        mock_supabase.set_table_data("product_variants", [by_barcode, by_sku])

        found = VariantService().find_existing("111", "Y")

        assert found.id == by_barcode["id"]

    def test_update_and_deactivate(self, mock_db, mock_supabase):
        variant = VariantFactory.create("p1", stock_quantity=2)
        mock_supabase.set_table_data("product_variants", [variant])
        service = VariantService()

        updated = service.update(variant["id"], VariantUpdate(stock_quantity=6))
        service.deactivate(variant["id"])

        assert updated.stock_quantity == 6
        assert mock_supabase.rows("product_variants")[0]["is_active"] is False
        assert service.get_for_product("p1") == []

    def test_missing_variant(self, mock_db, mock_supabase):
        with pytest.raises(VariantNotFoundError):
            VariantService().get_by_id("missing")
