"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    TimestampMixin,
    total_pages,
)
from models.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse,
    ProductWithVariants,
    VariantCreate,
    VariantUpdate,
    VariantResponse,
)
from models.catalog import ImportResult
from models.inventory_movement import (
    MovementType,
    InventoryMovementCreate,
    InventoryMovementResponse,
    StockAdjustment,
)
from models.invoice import (
    InvoiceInfo,
    ExtractedProduct,
    InvoiceParseResponse,
    InvoiceSaveRequest,
    InvoiceSaveResult,
)
from models.settings import (
    SettingDataType,
    SettingUpdate,
    SettingResponse,
    BusinessSettings,
)

__all__ = [
    # Base
    "BaseSchema",
    "TimestampMixin",
    "total_pages",

    # Products
    "ProductCreate",
    "ProductUpdate",
    "ProductResponse",
    "ProductListResponse",
    "ProductWithVariants",
    "VariantCreate",
    "VariantUpdate",
    "VariantResponse",

    # Catalog
    "ImportResult",

    # Inventory
    "MovementType",
    "InventoryMovementCreate",
    "InventoryMovementResponse",
    "StockAdjustment",

    # Invoices
    "InvoiceInfo",
    "ExtractedProduct",
    "InvoiceParseResponse",
    "InvoiceSaveRequest",
    "InvoiceSaveResult",

    # Settings
    "SettingDataType",
    "SettingUpdate",
    "SettingResponse",
    "BusinessSettings",
]
