"""
Business logic services.

Each service handles one domain area.
"""

from services.product_service import ProductService, get_product_service
from services.variant_service import VariantService, get_variant_service
from services.inventory_movement_service import (
    InventoryMovementService,
    get_inventory_movement_service,
)
from services.catalog_import_service import CatalogImportService, get_catalog_import_service
from services.catalog_export_service import CatalogExportService, get_catalog_export_service
from services.invoice_service import InvoiceService, get_invoice_service
from services.settings_service import SettingsService, get_settings_service

__all__ = [
    "ProductService",
    "get_product_service",
    "VariantService",
    "get_variant_service",
    "InventoryMovementService",
    "get_inventory_movement_service",
    "CatalogImportService",
    "get_catalog_import_service",
    "CatalogExportService",
    "get_catalog_export_service",
    "InvoiceService",
    "get_invoice_service",
    "SettingsService",
    "get_settings_service",
]
