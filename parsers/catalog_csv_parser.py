"""
Catalog CSV parser.

Reads the product/variant spreadsheet users export from (or fill in for)
the shop catalog. A product row is followed by zero or more variant rows;
the variant rows belong to the product above them.

    nombre,sku,codigo_barras,...,tiene_variantes,variante_nombre,...
    Casco de Seguridad,CASCO-001,1234567890124,...,SI,,...
    ,,,...,,Talla M,CASCO-M,...
    ,,,...,,Talla L,CASCO-L,...

Pipeline: parse_catalog_csv -> validate_rows -> group_rows.
"""

import csv
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Optional, Union
import structlog

from config.settings import IdentityPolicy
from exceptions import CatalogParseError
from models.product import (
    NAME_MAX_LENGTH,
    IDENTIFIER_MAX_LENGTH,
    LABEL_MAX_LENGTH,
    DESCRIPTION_MAX_LENGTH,
)
from utils.text_utils import fold_accents

logger = structlog.get_logger(__name__)


# ===================
# COLUMN LAYOUT
# ===================

COL_NAME = "nombre"
COL_SKU = "sku"
COL_BARCODE = "codigo_barras"
COL_PUBLIC_PRICE = "precio_publico"
COL_WHOLESALE_PRICE = "precio_puesto"
COL_CATEGORY = "categoria"
COL_BRAND = "marca"
COL_HAS_VARIANTS = "tiene_variantes"
COL_VARIANT_NAME = "variante_nombre"
COL_VARIANT_SKU = "variante_sku"
COL_VARIANT_BARCODE = "variante_codigo_barras"
COL_VARIANT_PUBLIC_PRICE = "variante_precio_publico"
COL_VARIANT_WHOLESALE_PRICE = "variante_precio_puesto"
COL_VARIANT_STOCK = "variante_stock"
COL_VARIANT_MIN_STOCK = "variante_stock_minimo"
COL_STOCK = "stock"
COL_MIN_STOCK = "stock_minimo"
COL_DESCRIPTION = "descripcion"

# Order used for export and the template file
CATALOG_COLUMNS = [
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
]

PRODUCT_COLUMNS = [
    COL_NAME, COL_SKU, COL_BARCODE, COL_PUBLIC_PRICE, COL_WHOLESALE_PRICE,
    COL_CATEGORY, COL_BRAND, COL_HAS_VARIANTS, COL_STOCK, COL_MIN_STOCK,
    COL_DESCRIPTION,
]

VARIANT_COLUMNS = [
    COL_VARIANT_NAME, COL_VARIANT_SKU, COL_VARIANT_BARCODE,
    COL_VARIANT_PUBLIC_PRICE, COL_VARIANT_WHOLESALE_PRICE,
    COL_VARIANT_STOCK, COL_VARIANT_MIN_STOCK,
]

# (column, label, whole number required)
PRODUCT_NUMERIC_FIELDS = [
    (COL_PUBLIC_PRICE, "Public price", False),
    (COL_WHOLESALE_PRICE, "Wholesale price", False),
    (COL_STOCK, "Stock", True),
    (COL_MIN_STOCK, "Minimum stock", True),
]

VARIANT_NUMERIC_FIELDS = [
    (COL_VARIANT_PUBLIC_PRICE, "Variant public price", False),
    (COL_VARIANT_WHOLESALE_PRICE, "Variant wholesale price", False),
    (COL_VARIANT_STOCK, "Variant stock", True),
    (COL_VARIANT_MIN_STOCK, "Variant minimum stock", True),
]

# (column, label, max length)
PRODUCT_TEXT_FIELDS = [
    (COL_NAME, "Name", NAME_MAX_LENGTH),
    (COL_SKU, "SKU", IDENTIFIER_MAX_LENGTH),
    (COL_BARCODE, "Barcode", IDENTIFIER_MAX_LENGTH),
    (COL_CATEGORY, "Category", LABEL_MAX_LENGTH),
    (COL_BRAND, "Brand", LABEL_MAX_LENGTH),
    (COL_DESCRIPTION, "Description", DESCRIPTION_MAX_LENGTH),
]

VARIANT_TEXT_FIELDS = [
    (COL_VARIANT_NAME, "Variant name", NAME_MAX_LENGTH),
    (COL_VARIANT_SKU, "Variant SKU", IDENTIFIER_MAX_LENGTH),
    (COL_VARIANT_BARCODE, "Variant barcode", IDENTIFIER_MAX_LENGTH),
]

AFFIRMATIVE_TOKENS = {"si", "yes"}


# ===================
# DATA CLASSES
# ===================

CatalogRow = dict[str, str]


@dataclass
class CatalogParseResult:
    """Rows read from a catalog CSV, in file order."""
    headers: list[str] = field(default_factory=list)
    rows: list[CatalogRow] = field(default_factory=list)
    skipped_rows: int = 0  # column count did not match the header

    @property
    def is_empty(self) -> bool:
        return not self.rows


@dataclass
class ProductGroup:
    """A product row and the variant rows that follow it."""
    product: CatalogRow
    variants: list[CatalogRow] = field(default_factory=list)

    @property
    def name(self) -> str:
        return cell(self.product, COL_NAME)

    @property
    def has_variants(self) -> bool:
        """Flag column says SI/yes, or the group carries variant rows."""
        flag = fold_accents(cell(self.product, COL_HAS_VARIANTS)).lower()
        return flag in AFFIRMATIVE_TOKENS or len(self.variants) > 0


# ===================
# CELL HELPERS
# ===================

def cell(row: CatalogRow, column: str) -> str:
    """Trimmed cell value; missing columns read as empty."""
    value = row.get(column)
    if value is None:
        return ""
    return str(value).strip()


def parse_number(value: str) -> Optional[Decimal]:
    """
    Parse a numeric cell.

    Returns None for text that is not a finite number.
    """
    try:
        number = Decimal(value.strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def number_or_zero(row: CatalogRow, column: str) -> Decimal:
    """Numeric cell value, 0 when empty (rows are validated beforehand)."""
    number = parse_number(cell(row, column))
    return number if number is not None else Decimal("0")


def int_or_zero(row: CatalogRow, column: str) -> int:
    return int(number_or_zero(row, column))


def is_product_row(row: CatalogRow) -> bool:
    return bool(cell(row, COL_NAME))


def is_variant_row(row: CatalogRow) -> bool:
    return bool(cell(row, COL_VARIANT_NAME)) and not is_product_row(row)


# ===================
# PARSING
# ===================

def _decode(content: Union[str, bytes]) -> str:
    if isinstance(content, bytes):
        try:
            return content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise CatalogParseError(
                "File must be UTF-8 encoded",
                details={"position": e.start}
            ) from e
    if content.startswith("\ufeff"):
        return content[1:]
    return content


def parse_catalog_csv(content: Union[str, bytes]) -> CatalogParseResult:
    """
    Parse catalog CSV text into row dictionaries.

    The first non-blank line is the header. Rows whose value count
    differs from the header are dropped and counted in skipped_rows.

    Args:
        content: File content (bytes are decoded as UTF-8, BOM removed)

    Returns:
        CatalogParseResult with rows keyed by header name

    Raises:
        CatalogParseError: If the file cannot be decoded or tokenized
    """
    text = _decode(content)
    lines = [line for line in text.splitlines() if line.strip()]

    if len(lines) < 2:
        logger.info("catalog_csv_empty", lines=len(lines))
        return CatalogParseResult()

    # Each physical line is one record; quoted fields do not span lines.
    try:
        records = list(csv.reader(lines, skipinitialspace=True))
    except csv.Error as e:
        raise CatalogParseError(f"Could not read CSV file: {e}") from e

    headers = [h.strip().replace('"', "") for h in records[0]]

    rows: list[CatalogRow] = []
    skipped = 0
    for values in records[1:]:
        if len(values) != len(headers):
            skipped += 1
            continue
        rows.append({
            header: value.strip()
            for header, value in zip(headers, values)
        })

    if skipped:
        logger.warning("catalog_csv_rows_skipped", skipped=skipped)

    logger.info(
        "catalog_csv_parsed",
        columns=len(headers),
        rows=len(rows),
        skipped=skipped
    )

    return CatalogParseResult(headers=headers, rows=rows, skipped_rows=skipped)


# ===================
# VALIDATION
# ===================

def _check_numeric(
    row: CatalogRow,
    line: int,
    fields: list[tuple[str, str, bool]]
) -> list[str]:
    errors = []
    for column, label, whole in fields:
        raw = cell(row, column)
        if not raw:
            continue
        number = parse_number(raw)
        if number is None:
            errors.append(f"Row {line}: {label} must be a number")
        elif number < 0:
            errors.append(f"Row {line}: {label} must not be negative")
        elif whole and number != number.to_integral_value():
            errors.append(f"Row {line}: {label} must be a whole number")
    return errors


def _check_lengths(
    row: CatalogRow,
    line: int,
    fields: list[tuple[str, str, int]]
) -> list[str]:
    return [
        f"Row {line}: {label} is longer than {limit} characters"
        for column, label, limit in fields
        if len(cell(row, column)) > limit
    ]


def validate_row(
    row: CatalogRow,
    index: int,
    identity_policy: IdentityPolicy = IdentityPolicy.ALLOW_ANONYMOUS
) -> list[str]:
    """
    Validate one parsed row.

    Args:
        row: Parsed row
        index: 0-based position among parsed rows
        identity_policy: Whether rows need a barcode or SKU

    Returns:
        List of error messages (empty if valid or blank row)
    """
    line = index + 2  # header is line 1

    if is_product_row(row):
        errors = _check_numeric(row, line, PRODUCT_NUMERIC_FIELDS)
        errors.extend(_check_lengths(row, line, PRODUCT_TEXT_FIELDS))
        if (identity_policy == IdentityPolicy.REQUIRE_IDENTIFIER
                and not cell(row, COL_BARCODE) and not cell(row, COL_SKU)):
            errors.append(f"Row {line}: Product needs a barcode or SKU")
        return errors

    if is_variant_row(row):
        errors = _check_numeric(row, line, VARIANT_NUMERIC_FIELDS)
        errors.extend(_check_lengths(row, line, VARIANT_TEXT_FIELDS))
        if (identity_policy == IdentityPolicy.REQUIRE_IDENTIFIER
                and not cell(row, COL_VARIANT_BARCODE) and not cell(row, COL_VARIANT_SKU)):
            errors.append(f"Row {line}: Variant needs a barcode or SKU")
        return errors

    return []


def validate_rows(
    rows: list[CatalogRow],
    identity_policy: IdentityPolicy = IdentityPolicy.ALLOW_ANONYMOUS
) -> list[str]:
    """Validate every row; the import only proceeds if this is empty."""
    errors: list[str] = []
    for index, row in enumerate(rows):
        errors.extend(validate_row(row, index, identity_policy))
    return errors


# ===================
# GROUPING
# ===================

def group_rows(rows: list[CatalogRow]) -> list[ProductGroup]:
    """
    Fold rows into product groups in file order.

    Variant rows before the first product row have no owner and are
    dropped. Blank rows are ignored.
    """
    groups: list[ProductGroup] = []
    current: Optional[ProductGroup] = None
    orphans = 0

    for row in rows:
        if is_product_row(row):
            current = ProductGroup(product=row)
            groups.append(current)
        elif is_variant_row(row):
            if current is None:
                orphans += 1
                continue
            current.variants.append(row)

    if orphans:
        logger.warning("catalog_orphan_variants_dropped", count=orphans)

    return groups
