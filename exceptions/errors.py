"""
Custom exception classes for the application.

Every error raised by services inherits from AppError so routes can turn
it into the standard error response.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        code: Error code (e.g., "PRODUCT_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DuplicateError(ConflictError):
    """Duplicate resource (409)."""

    def __init__(
        self,
        resource: str,
        field: str,
        value: str
    ):
        super().__init__(
            code=f"{resource.upper()}_{field.upper()}_EXISTS",
            message=f"{resource} with this {field} already exists",
            details={field: value}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# PRODUCT ERRORS
# ===================

class ProductNotFoundError(NotFoundError):
    """Product not found."""

    def __init__(self, product_id: str):
        super().__init__(
            resource="Product",
            identifier=product_id,
            code="PRODUCT_NOT_FOUND"
        )


class ProductSKUExistsError(DuplicateError):
    """Product SKU already exists."""

    def __init__(self, sku: str):
        super().__init__(
            resource="Product",
            field="sku",
            value=sku
        )


class ProductBarcodeExistsError(DuplicateError):
    """Product barcode already exists."""

    def __init__(self, barcode: str):
        super().__init__(
            resource="Product",
            field="barcode",
            value=barcode
        )


class VariantNotFoundError(NotFoundError):
    """Product variant not found."""

    def __init__(self, variant_id: str):
        super().__init__(
            resource="Variant",
            identifier=variant_id,
            code="VARIANT_NOT_FOUND"
        )


# ===================
# CATALOG IMPORT ERRORS
# ===================

class CatalogParseError(ValidationError):
    """Catalog CSV could not be read."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="CATALOG_PARSE_ERROR",
            message=message,
            details=details
        )


# ===================
# INVOICE ERRORS
# ===================

class InvoiceParseError(ValidationError):
    """Invoice document could not be read."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="INVOICE_PARSE_ERROR",
            message=message,
            details=details
        )


# ===================
# SETTINGS ERRORS
# ===================

class SettingNotFoundError(NotFoundError):
    """Setting not found."""

    def __init__(self, key: str):
        super().__init__(
            resource="Setting",
            identifier=key,
            code="SETTING_NOT_FOUND"
        )


class InvalidSettingTypeError(ValidationError):
    """Setting row has a data_type tag that cannot be decoded."""

    def __init__(self, key: str, data_type: Optional[str]):
        super().__init__(
            code="SETTING_INVALID_TYPE",
            message=f"Setting '{key}' has unknown data type '{data_type}'",
            details={"key": key, "data_type": data_type, "valid": ["boolean", "number", "string"]}
        )


class InvalidSettingValueError(ValidationError):
    """Setting value does not match its declared data_type."""

    def __init__(self, key: str, value: str, data_type: str):
        super().__init__(
            code="SETTING_INVALID_VALUE",
            message=f"Setting '{key}' value is not a valid {data_type}",
            details={"key": key, "value": value, "data_type": data_type}
        )
