"""
Catalog export service: generate the catalog CSV and its template.

The export uses the same layout the importer reads: one row per product,
then one row per variant with the product columns left blank.
"""

from decimal import Decimal
from typing import Optional
import structlog

import pandas as pd

from models.product import ProductWithVariants, VariantResponse
from parsers.catalog_csv_parser import (
    CATALOG_COLUMNS,
    COL_NAME,
    COL_SKU,
    COL_BARCODE,
    COL_PUBLIC_PRICE,
    COL_WHOLESALE_PRICE,
    COL_CATEGORY,
    COL_BRAND,
    COL_HAS_VARIANTS,
    COL_VARIANT_NAME,
    COL_VARIANT_SKU,
    COL_VARIANT_BARCODE,
    COL_VARIANT_PUBLIC_PRICE,
    COL_VARIANT_WHOLESALE_PRICE,
    COL_VARIANT_STOCK,
    COL_VARIANT_MIN_STOCK,
    COL_STOCK,
    COL_MIN_STOCK,
    COL_DESCRIPTION,
)
from services.product_service import ProductService
from services.variant_service import VariantService

logger = structlog.get_logger(__name__)

# Spreadsheet apps need the BOM to read accents correctly
UTF8_BOM = "\ufeff"

TEMPLATE_FILENAME = "plantilla_productos.csv"

LINE_BREAKS = r"\s*[\r\n]+\s*"

TEMPLATE_ROWS = [
    {
        COL_NAME: "Bicicleta Mountain Bike",
        COL_SKU: "MTB-001",
        COL_BARCODE: "1234567890123",
        COL_PUBLIC_PRICE: "299.99",
        COL_WHOLESALE_PRICE: "199.99",
        COL_CATEGORY: "Bicicletas",
        COL_BRAND: "Trek",
        COL_HAS_VARIANTS: "NO",
        COL_STOCK: "10",
        COL_MIN_STOCK: "2",
        COL_DESCRIPTION: "Bicicleta de montaña con suspensión delantera",
    },
    {
        COL_NAME: "Casco de Seguridad",
        COL_SKU: "CASCO-001",
        COL_BARCODE: "1234567890124",
        COL_PUBLIC_PRICE: "49.99",
        COL_WHOLESALE_PRICE: "29.99",
        COL_CATEGORY: "Accesorios",
        COL_BRAND: "Bell",
        COL_HAS_VARIANTS: "SI",
        COL_STOCK: "0",
        COL_MIN_STOCK: "3",
        COL_DESCRIPTION: "Casco de seguridad para ciclismo con ventilación",
    },
    {
        COL_VARIANT_NAME: "Talla M",
        COL_VARIANT_SKU: "CASCO-M",
        COL_VARIANT_BARCODE: "1234567890125",
        COL_VARIANT_PUBLIC_PRICE: "49.99",
        COL_VARIANT_WHOLESALE_PRICE: "29.99",
        COL_VARIANT_STOCK: "8",
        COL_VARIANT_MIN_STOCK: "2",
    },
    {
        COL_VARIANT_NAME: "Talla L",
        COL_VARIANT_SKU: "CASCO-L",
        COL_VARIANT_BARCODE: "1234567890126",
        COL_VARIANT_PUBLIC_PRICE: "54.99",
        COL_VARIANT_WHOLESALE_PRICE: "34.99",
        COL_VARIANT_STOCK: "7",
        COL_VARIANT_MIN_STOCK: "1",
    },
]


def _fmt(value) -> str:
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def product_record(product: ProductWithVariants, has_variants: bool) -> dict[str, str]:
    """Product row; variant columns stay blank."""
    public_price = product.public_price or product.price or Decimal("0")
    return {
        COL_NAME: product.name,
        COL_SKU: product.sku or "",
        COL_BARCODE: product.barcode or "",
        COL_PUBLIC_PRICE: _fmt(public_price),
        COL_WHOLESALE_PRICE: _fmt(product.wholesale_price or Decimal("0")),
        COL_CATEGORY: product.category or "",
        COL_BRAND: product.brand or "",
        COL_HAS_VARIANTS: "SI" if has_variants else "NO",
        COL_STOCK: _fmt(product.stock_quantity),
        COL_MIN_STOCK: _fmt(product.min_stock),
        COL_DESCRIPTION: product.description or "",
    }


def variant_record(variant: VariantResponse) -> dict[str, str]:
    """Variant row; product columns stay blank."""
    return {
        COL_VARIANT_NAME: variant.name,
        COL_VARIANT_SKU: variant.sku or "",
        COL_VARIANT_BARCODE: variant.barcode or "",
        COL_VARIANT_PUBLIC_PRICE: _fmt(variant.public_price),
        COL_VARIANT_WHOLESALE_PRICE: _fmt(variant.wholesale_price),
        COL_VARIANT_STOCK: _fmt(variant.stock_quantity),
        COL_VARIANT_MIN_STOCK: _fmt(variant.min_stock),
    }


def render_csv(records: list[dict[str, str]]) -> str:
    """
    Render records in catalog column order, BOM-prefixed.

    The importer reads one record per physical line, so line breaks inside
    values are flattened to a single space.
    """
    frame = (
        pd.DataFrame(records, columns=CATALOG_COLUMNS)
        .fillna("")
        .replace(LINE_BREAKS, " ", regex=True)
    )
    return UTF8_BOM + frame.to_csv(index=False, lineterminator="\n")


def export_catalog_csv(products: list[ProductWithVariants]) -> str:
    """
    Render products (with their variants) as catalog CSV.

    A product flagged has_variants but without stored variants is written
    as a simple product.
    """
    records: list[dict[str, str]] = []

    for product in products:
        if product.has_variants and product.variants:
            records.append(product_record(product, has_variants=True))
            records.extend(variant_record(v) for v in product.variants)
        else:
            records.append(product_record(product, has_variants=False))

    return render_csv(records)


def build_template_csv() -> str:
    """Example catalog file for users filling in a new import."""
    return render_csv(TEMPLATE_ROWS)


class CatalogExportService:
    """Loads the active catalog and renders it as CSV."""

    def __init__(
        self,
        product_service: Optional[ProductService] = None,
        variant_service: Optional[VariantService] = None,
    ):
        self.products = product_service or ProductService()
        self.variants = variant_service or VariantService()

    def load_catalog(self) -> list[ProductWithVariants]:
        catalog = []
        for product in self.products.get_all_active():
            variants = self.variants.get_for_product(product.id) if product.has_variants else []
            catalog.append(ProductWithVariants(**product.model_dump(), variants=variants))
        return catalog

    def export_csv(self) -> str:
        catalog = self.load_catalog()
        content = export_catalog_csv(catalog)

        logger.info(
            "catalog_exported",
            products=len(catalog),
            variants=sum(len(p.variants) for p in catalog)
        )
        return content


_catalog_export_service: Optional[CatalogExportService] = None

def get_catalog_export_service() -> CatalogExportService:
    """Get or create CatalogExportService instance."""
    global _catalog_export_service
    if _catalog_export_service is None:
        _catalog_export_service = CatalogExportService()
    return _catalog_export_service
