"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DuplicateError,
    DatabaseError,

    # Products and variants
    ProductNotFoundError,
    ProductSKUExistsError,
    ProductBarcodeExistsError,
    VariantNotFoundError,

    # Catalog import
    CatalogParseError,

    # Invoices
    InvoiceParseError,

    # Settings
    SettingNotFoundError,
    InvalidSettingTypeError,
    InvalidSettingValueError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DuplicateError",
    "DatabaseError",

    # Products and variants
    "ProductNotFoundError",
    "ProductSKUExistsError",
    "ProductBarcodeExistsError",
    "VariantNotFoundError",

    # Catalog import
    "CatalogParseError",

    # Invoices
    "InvoiceParseError",

    # Settings
    "SettingNotFoundError",
    "InvalidSettingTypeError",
    "InvalidSettingValueError",
]
