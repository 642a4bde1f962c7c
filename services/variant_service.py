"""
Variant service.

Variants (sizes, colors) live in "product_variants" and carry their own
identifiers, prices and stock. Barcode/SKU lookups are global: a variant
identifier is unique across all products.
"""

from decimal import Decimal
from typing import Optional
import structlog

from config import get_supabase_client
from models.product import VariantCreate, VariantUpdate, VariantResponse
from exceptions import VariantNotFoundError, DatabaseError

logger = structlog.get_logger(__name__)


class VariantService:
    """Variant CRUD and identifier lookups."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "product_variants"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_for_product(
        self,
        product_id: str,
        active_only: bool = True
    ) -> list[VariantResponse]:
        """Variants of one product, ordered by name."""
        try:
            query = self.db.table(self.table).select("*").eq("product_id", product_id)
            if active_only:
                query = query.eq("is_active", True)
            result = query.order("name").execute()
        except Exception as e:
            logger.error("get_variants_failed", product_id=product_id, error=str(e))
            raise DatabaseError("select", str(e))

        return [VariantResponse(**row) for row in result.data]

    def get_by_id(self, variant_id: str) -> VariantResponse:
        try:
            result = self.db.table(self.table).select("*").eq("id", variant_id).execute()
        except Exception as e:
            logger.error("get_variant_failed", variant_id=variant_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise VariantNotFoundError(variant_id)
        return VariantResponse(**result.data[0])

    def _get_one_by(self, column: str, value: str) -> Optional[VariantResponse]:
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq(column, value.strip())
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(
                "get_variant_by_field_failed",
                column=column,
                value=value,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        return VariantResponse(**result.data[0])

    def get_by_barcode(self, barcode: str) -> Optional[VariantResponse]:
        return self._get_one_by("barcode", barcode)

    def get_by_sku(self, sku: str) -> Optional[VariantResponse]:
        return self._get_one_by("sku", sku)

    def find_existing(
        self,
        barcode: Optional[str],
        sku: Optional[str]
    ) -> Optional[VariantResponse]:
        """Resolve variant identity: barcode first, then SKU."""
        existing = None
        if barcode and barcode.strip():
            existing = self.get_by_barcode(barcode)
        if existing is None and sku and sku.strip():
            existing = self.get_by_sku(sku)
        return existing

    # ===================
    # WRITE OPERATIONS
    # ===================

    @staticmethod
    def to_record(product_id: str, data: VariantCreate) -> dict:
        return {
            "product_id": product_id,
            "name": data.name,
            "sku": data.sku,
            "barcode": data.barcode,
            "public_price": float(data.public_price),
            "wholesale_price": float(data.wholesale_price),
            "stock_quantity": data.stock_quantity,
            "min_stock": data.min_stock,
        }

    def create(self, product_id: str, data: VariantCreate) -> VariantResponse:
        """Insert a variant under product_id."""
        logger.info("creating_variant", product_id=product_id, name=data.name)

        try:
            result = (
                self.db.table(self.table)
                .insert({**self.to_record(product_id, data), "is_active": True})
                .execute()
            )
        except Exception as e:
            logger.error("create_variant_failed", name=data.name, error=str(e))
            raise DatabaseError("insert", str(e))

        variant = VariantResponse(**result.data[0])
        logger.info("variant_created", variant_id=variant.id, product_id=product_id)
        return variant

    def overwrite(
        self,
        variant_id: str,
        product_id: str,
        data: VariantCreate
    ) -> VariantResponse:
        """
        Replace all mutable fields of a variant.

        The variant is re-parented to product_id if it belonged elsewhere.
        """
        logger.info("overwriting_variant", variant_id=variant_id, product_id=product_id)

        try:
            result = (
                self.db.table(self.table)
                .update(self.to_record(product_id, data))
                .eq("id", variant_id)
                .execute()
            )
        except Exception as e:
            logger.error("overwrite_variant_failed", variant_id=variant_id, error=str(e))
            raise DatabaseError("update", str(e))

        if not result.data:
            raise VariantNotFoundError(variant_id)
        return VariantResponse(**result.data[0])

    def update(self, variant_id: str, data: VariantUpdate) -> VariantResponse:
        """Partial update; only provided fields change."""
        existing = self.get_by_id(variant_id)

        update_data = {
            key: float(value) if isinstance(value, Decimal) else value
            for key, value in data.model_dump(exclude_none=True).items()
        }
        if not update_data:
            return existing

        try:
            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", variant_id)
                .execute()
            )
        except Exception as e:
            logger.error("update_variant_failed", variant_id=variant_id, error=str(e))
            raise DatabaseError("update", str(e))

        logger.info("variant_updated", variant_id=variant_id, fields=list(update_data.keys()))
        return VariantResponse(**result.data[0])

    def deactivate(self, variant_id: str) -> bool:
        """Soft delete a variant."""
        self.get_by_id(variant_id)

        try:
            self.db.table(self.table).update({"is_active": False}).eq("id", variant_id).execute()
        except Exception as e:
            logger.error("deactivate_variant_failed", variant_id=variant_id, error=str(e))
            raise DatabaseError("update", str(e))

        logger.info("variant_deactivated", variant_id=variant_id)
        return True


_variant_service: Optional[VariantService] = None

def get_variant_service() -> VariantService:
    """Get or create VariantService instance."""
    global _variant_service
    if _variant_service is None:
        _variant_service = VariantService()
    return _variant_service
