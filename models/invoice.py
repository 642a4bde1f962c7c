"""
Supplier invoice schemas.

Invoices are read from PDF text; extracted lines become product
suggestions the user confirms before saving.
"""

from pydantic import Field
from decimal import Decimal

from models.base import BaseSchema


class InvoiceInfo(BaseSchema):
    """Header data found in the invoice text."""

    supplier: str = ""
    date: str = ""
    folio: str = ""
    total: Decimal = Decimal("0")


class ExtractedProduct(BaseSchema):
    """One invoice line with derived pricing and suggestions."""

    quantity: int = Field(..., gt=0)
    clave: str = Field(..., description="Supplier product key, stored as SKU")
    description: str
    unit_price_without_tax: Decimal
    cost: Decimal = Field(..., description="Unit price plus tax")
    selling_price: Decimal = Field(..., description="Cost plus markup")
    total: Decimal
    suggested_name: str
    suggested_category: str
    suggested_brand: str = ""


class InvoiceParseResponse(BaseSchema):
    """Result of extracting products from an invoice."""

    success: bool
    extracted_products: list[ExtractedProduct] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    invoice_info: InvoiceInfo = Field(default_factory=InvoiceInfo)


class InvoiceSaveRequest(BaseSchema):
    """Products the user selected from a parsed invoice."""

    invoice_info: InvoiceInfo
    products: list[ExtractedProduct] = Field(..., min_length=1)


class InvoiceSaveResult(BaseSchema):
    """Outcome of saving invoice products."""

    saved: int = 0
    product_ids: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
