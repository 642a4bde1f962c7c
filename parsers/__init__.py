"""
File and text parsers.

Catalog CSV rows and supplier invoice text.
"""

from parsers.catalog_csv_parser import (
    parse_catalog_csv,
    validate_rows,
    group_rows,
    CatalogParseResult,
    ProductGroup,
)
from parsers.invoice_text_parser import (
    parse_invoice_text,
    extract_pdf_text,
)

__all__ = [
    "parse_catalog_csv",
    "validate_rows",
    "group_rows",
    "CatalogParseResult",
    "ProductGroup",
    "parse_invoice_text",
    "extract_pdf_text",
]
