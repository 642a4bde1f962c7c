"""
Inventory movement service.

Movements are append-only; the current stock lives on the product row.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.inventory_movement import (
    MovementType,
    InventoryMovementCreate,
    InventoryMovementResponse,
    StockAdjustment,
)
from models.product import ProductResponse
from services.product_service import ProductService
from exceptions import DatabaseError, ValidationError

logger = structlog.get_logger(__name__)


class InventoryMovementService:
    """Records stock movements and manual adjustments."""

    def __init__(self, product_service: Optional[ProductService] = None):
        self.db = get_supabase_client()
        self.table = "inventory_movements"
        self.products = product_service or ProductService()

    def record(self, data: InventoryMovementCreate) -> InventoryMovementResponse:
        """Insert one movement row."""
        logger.info(
            "recording_movement",
            product_id=data.product_id,
            movement_type=data.movement_type.value,
            quantity=data.quantity
        )

        try:
            result = (
                self.db.table(self.table)
                .insert(data.model_dump(mode="json"))
                .execute()
            )
        except Exception as e:
            logger.error(
                "record_movement_failed",
                product_id=data.product_id,
                error=str(e)
            )
            raise DatabaseError("insert", str(e))

        return InventoryMovementResponse(**result.data[0])

    def get_for_product(
        self,
        product_id: str,
        limit: int = 50
    ) -> list[InventoryMovementResponse]:
        """Most recent movements first."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("product_id", product_id)
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            logger.error("get_movements_failed", product_id=product_id, error=str(e))
            raise DatabaseError("select", str(e))

        return [InventoryMovementResponse(**row) for row in result.data]

    def adjust_stock(
        self,
        product_id: str,
        adjustment: StockAdjustment
    ) -> ProductResponse:
        """
        Set a simple product's stock to a counted quantity.

        Records an "ajuste" movement with the difference. Products with
        variants keep stock on the variants and cannot be adjusted here.

        Raises:
            ProductNotFoundError: If product doesn't exist
            ValidationError: If the product has variants
        """
        product = self.products.get_by_id(product_id)

        if product.has_variants:
            raise ValidationError(
                "Stock of products with variants is adjusted per variant",
                code="PRODUCT_HAS_VARIANTS",
                details={"product_id": product_id}
            )

        delta = adjustment.new_quantity - product.stock_quantity
        if delta == 0:
            return product

        updated = self.products.set_stock(product_id, adjustment.new_quantity)

        self.record(InventoryMovementCreate(
            product_id=product_id,
            movement_type=MovementType.AJUSTE,
            quantity=delta,
            reason=adjustment.reason,
        ))

        logger.info(
            "stock_adjusted",
            product_id=product_id,
            previous=product.stock_quantity,
            new=adjustment.new_quantity
        )
        return updated


_movement_service: Optional[InventoryMovementService] = None

def get_inventory_movement_service() -> InventoryMovementService:
    """Get or create InventoryMovementService instance."""
    global _movement_service
    if _movement_service is None:
        _movement_service = InventoryMovementService()
    return _movement_service
