"""
Invoice service: turn parsed supplier invoice lines into stock.

Each confirmed line becomes a new simple product (SKU = supplier key)
plus one "entrada" inventory movement referencing the invoice folio.
Lines whose key already exists as a SKU are reported and skipped.
"""

from typing import Optional
import structlog

from config.settings import get_settings
from exceptions import AppError
from models.invoice import (
    InvoiceInfo,
    ExtractedProduct,
    InvoiceParseResponse,
    InvoiceSaveResult,
)
from models.inventory_movement import MovementType, InventoryMovementCreate
from models.product import ProductCreate
from parsers.invoice_text_parser import extract_pdf_text, parse_invoice_text
from services.product_service import ProductService
from services.inventory_movement_service import InventoryMovementService

logger = structlog.get_logger(__name__)


def _error_message(e: Exception) -> str:
    return e.message if isinstance(e, AppError) else str(e)


def min_stock_for(quantity: int) -> int:
    """Reorder point for a new product: 10% of the first delivery, at least 1."""
    return max(1, quantity // 10)


def product_from_invoice_item(item: ExtractedProduct) -> ProductCreate:
    return ProductCreate(
        name=item.suggested_name or item.description,
        description=item.description,
        sku=item.clave,
        category=item.suggested_category,
        brand=item.suggested_brand,
        cost=item.cost,
        public_price=item.selling_price,
        wholesale_price=item.selling_price,
        stock_quantity=item.quantity,
        min_stock=min_stock_for(item.quantity),
        has_variants=False,
    )


class InvoiceService:
    """Parse supplier invoices and save the selected lines."""

    def __init__(
        self,
        product_service: Optional[ProductService] = None,
        movement_service: Optional[InventoryMovementService] = None,
    ):
        self.products = product_service or ProductService()
        self.movements = movement_service or InventoryMovementService(self.products)

    def parse_text(self, text: str) -> InvoiceParseResponse:
        settings = get_settings()
        return parse_invoice_text(
            text,
            tax_rate=settings.invoice_tax_rate,
            markup=settings.invoice_markup,
            suppliers=settings.invoice_suppliers,
        )

    def parse_pdf(self, pdf_bytes: bytes) -> InvoiceParseResponse:
        """
        Raises:
            InvoiceParseError: If the PDF has no extractable text
        """
        return self.parse_text(extract_pdf_text(pdf_bytes))

    def save_products(
        self,
        invoice: InvoiceInfo,
        items: list[ExtractedProduct]
    ) -> InvoiceSaveResult:
        """
        Create products and stock-in movements for the selected lines.

        A failure on one line is recorded and the next line is processed.
        """
        logger.info(
            "invoice_save_started",
            folio=invoice.folio,
            supplier=invoice.supplier,
            items=len(items)
        )

        result = InvoiceSaveResult()

        for item in items:
            name = item.suggested_name or item.description
            try:
                if self.products.get_by_sku(item.clave):
                    result.errors.append(f"Product with key {item.clave} already exists")
                    continue

                product = self.products.create(product_from_invoice_item(item))

            except Exception as e:
                message = _error_message(e)
                logger.error(
                    "invoice_item_save_failed",
                    clave=item.clave,
                    error=str(e),
                    error_type=type(e).__name__
                )
                result.errors.append(f"Error saving {name}: {message}")
                continue

            # The product and its stock exist from here on
            result.saved += 1
            result.product_ids.append(product.id)

            try:
                self.movements.record(InventoryMovementCreate(
                    product_id=product.id,
                    movement_type=MovementType.ENTRADA,
                    quantity=item.quantity,
                    reason=f"Invoice entry {invoice.folio} - {invoice.supplier}",
                    reference_id=invoice.folio or None,
                ))
            except Exception as e:
                logger.error(
                    "invoice_entry_movement_failed",
                    product_id=product.id,
                    clave=item.clave,
                    error=str(e)
                )
                result.warnings.append(
                    f"Saved {name} but its stock entry was not recorded: {_error_message(e)}"
                )

        logger.info(
            "invoice_save_complete",
            folio=invoice.folio,
            saved=result.saved,
            errors=len(result.errors)
        )
        return result


_invoice_service: Optional[InvoiceService] = None

def get_invoice_service() -> InvoiceService:
    """Get or create InvoiceService instance."""
    global _invoice_service
    if _invoice_service is None:
        _invoice_service = InvoiceService()
    return _invoice_service
