"""
Supplier invoice text parser.

Extracts product lines from the text of a supplier invoice (Mexican CFDI
layout). Each line becomes a suggestion with cost (price plus IVA) and
selling price (cost plus markup) that the user confirms before saving.

Item lines look like:

    2 1001 CADENA 116 ESLABONES KMC 120.50 241.00
    quantity, key, description, unit price without tax, line total

Some PDFs split an item over three lines (quantity and key, description,
prices); those are stitched back together.
"""

import re
from decimal import Decimal, ROUND_HALF_UP
from io import BytesIO
from typing import Optional
import pdfplumber
import structlog

from exceptions import InvoiceParseError
from models.invoice import InvoiceInfo, ExtractedProduct, InvoiceParseResponse
from utils.text_utils import strip_standalone_numbers

logger = structlog.get_logger(__name__)

NO_PRODUCTS_MESSAGE = "No products could be extracted from the invoice"
FEW_PRODUCTS_MESSAGE = "Few products were found, check the invoice format"

CENT = Decimal("0.01")

FOLIO_PATTERN = re.compile(r'(?:Folio|FOLIO):\s*([A-Z]?\d+)', re.IGNORECASE)
DATE_PATTERN = re.compile(r'(\d{4}-\d{2}-\d{2}|\d{2}/\d{2}/\d{4})')
TOTAL_PATTERN = re.compile(r'Total[:\s]*(\d+\.?\d*)', re.IGNORECASE)

# quantity, key, description, unit price, line total
ITEM_PATTERNS = [
    re.compile(r'(\d+)\s+(\d+)\s+(.+?)\s+(\d+\.?\d*)\s+(\d+\.?\d*)'),
    re.compile(r'(\d+)\s+(\w+\d+)\s+(.+?)\s+(\d+\.?\d*)\s+(\d+\.?\d*)', re.ASCII),
    # SAT product code between quantity and key
    re.compile(r'(\d+)\s+\d+\s+(\d+)\s+(.+?)\s+(\d+\.?\d*)\s+(\d+\.?\d*)'),
]

SPLIT_KEY_LINE = re.compile(r'^\d+\s+\d+$')
SPLIT_DESCRIPTION_LINE = re.compile(r'^[A-Z\s]+')
SPLIT_PRICE_LINE = re.compile(r'^\d+\.?\d*\s+\d+\.?\d*$')

# First match wins, in this order
CATEGORY_KEYWORDS = [
    (("cambio", "tras", "desv"), "Transmisión"),
    (("palanc", "freno"), "Frenos"),
    (("llanta", "rin", "rueda"), "Ruedas"),
    (("cadena", "chain"), "Transmisión"),
    (("pedal",), "Pedales"),
    (("asiento", "silla"), "Asientos"),
    (("manubrio", "manillar"), "Dirección"),
    (("luz", "faro"), "Iluminación"),
    (("casco",), "Seguridad"),
]
DEFAULT_CATEGORY = "Repuestos"

BRAND_KEYWORDS = [
    (("shine", "shin"), "Shine"),
    (("shimano",), "Shimano"),
    (("sram",), "SRAM"),
    (("trek",), "Trek"),
    (("giant",), "Giant"),
    (("specialized",), "Specialized"),
]


# ===================
# PDF TEXT
# ===================

def extract_pdf_text(pdf_bytes: bytes) -> str:
    """
    Extract text from a native (non-scanned) PDF.

    Raises:
        InvoiceParseError: If the PDF cannot be opened or has no text
    """
    all_text = ""
    try:
        with pdfplumber.open(BytesIO(pdf_bytes)) as pdf:
            for page in pdf.pages:
                page_text = page.extract_text()
                if page_text:
                    all_text += page_text + "\n"
    except Exception as e:
        logger.error("invoice_pdf_read_failed", error=str(e))
        raise InvoiceParseError(f"Could not read PDF: {e}") from e

    if not all_text.strip():
        raise InvoiceParseError("No text could be extracted from the PDF")

    logger.info("invoice_pdf_text_extracted", chars=len(all_text))
    return all_text


# ===================
# SUGGESTIONS
# ===================

def suggest_category(description: str) -> str:
    desc = description.lower()
    for keywords, category in CATEGORY_KEYWORDS:
        if any(k in desc for k in keywords):
            return category
    return DEFAULT_CATEGORY


def suggest_brand(description: str) -> str:
    desc = description.lower()
    for keywords, brand in BRAND_KEYWORDS:
        if any(k in desc for k in keywords):
            return brand
    return ""


def suggest_name(description: str) -> str:
    """Description without standalone numbers ("CADENA 116 KMC" -> "CADENA KMC")."""
    return strip_standalone_numbers(description)


# ===================
# PARSING
# ===================

def _to_decimal(value) -> Decimal:
    return Decimal(str(value))


def build_item(
    quantity: int,
    clave: str,
    description: str,
    price: Decimal,
    total: Decimal,
    tax_rate: Decimal,
    markup: Decimal
) -> ExtractedProduct:
    """Price one invoice line: cost = price + tax, selling = cost + markup."""
    cost = price * (1 + tax_rate)
    selling_price = cost * (1 + markup)

    return ExtractedProduct(
        quantity=quantity,
        clave=clave,
        description=description,
        unit_price_without_tax=price,
        cost=cost.quantize(CENT, rounding=ROUND_HALF_UP),
        selling_price=selling_price.quantize(CENT, rounding=ROUND_HALF_UP),
        total=total,
        suggested_name=suggest_name(description),
        suggested_category=suggest_category(description),
        suggested_brand=suggest_brand(description),
    )


def parse_invoice_info(
    lines: list[str],
    suppliers: Optional[list[str]] = None
) -> InvoiceInfo:
    """
    Read supplier, folio, date and total from the invoice lines.

    When a field appears on several lines the last one wins.
    """
    info = InvoiceInfo()

    for line in lines:
        for supplier in suppliers or []:
            if not supplier.strip():
                continue
            # "HABROS" alone is enough for "HABROS BICICLETAS"
            if supplier in line or supplier.split()[0] in line:
                info.supplier = supplier

        folio = FOLIO_PATTERN.search(line)
        if folio:
            info.folio = folio.group(1)

        date = DATE_PATTERN.search(line)
        if date:
            info.date = date.group(1)

        total = TOTAL_PATTERN.search(line)
        if total:
            info.total = Decimal(total.group(1))

    return info


def parse_invoice_text(
    text: str,
    tax_rate: float = 0.16,
    markup: float = 0.35,
    suppliers: Optional[list[str]] = None
) -> InvoiceParseResponse:
    """
    Extract product lines from invoice text.

    Args:
        text: Plain text of the invoice
        tax_rate: Tax added to unit prices to get cost
        markup: Markup added to cost to get the selling price
        suppliers: Known supplier names to look for

    Returns:
        InvoiceParseResponse; success is False when nothing was extracted
    """
    lines = [line for line in text.split("\n") if line.strip()]
    rate = _to_decimal(tax_rate)
    margin = _to_decimal(markup)

    info = parse_invoice_info(lines, suppliers)
    products: list[ExtractedProduct] = []

    # Split-line state
    split_quantity = 0
    split_clave = ""
    split_description = ""

    for raw in lines:
        line = raw.strip()

        for pattern in ITEM_PATTERNS:
            match = pattern.search(line)
            if not match:
                continue

            quantity_text, clave, description, price_text, total_text = match.groups()
            quantity = int(quantity_text)
            description = description.strip()
            price = Decimal(price_text)

            if quantity > 0 and price > 0 and len(description) > 3:
                products.append(build_item(
                    quantity, clave, description, price, Decimal(total_text), rate, margin
                ))
            break

        if SPLIT_KEY_LINE.match(line):
            parts = line.split()
            split_quantity = int(parts[0])
            split_clave = parts[1]
        elif split_quantity > 0 and SPLIT_DESCRIPTION_LINE.match(line):
            split_description = line
        elif split_quantity > 0 and split_description and SPLIT_PRICE_LINE.match(line):
            price_text, total_text = line.split()[:2]
            price = Decimal(price_text)

            if price > 0 and len(split_description) > 3:
                products.append(build_item(
                    split_quantity,
                    split_clave,
                    split_description,
                    price,
                    Decimal(total_text),
                    rate,
                    margin
                ))

            split_quantity = 0
            split_clave = ""
            split_description = ""

    errors = [] if products else [NO_PRODUCTS_MESSAGE]
    warnings = [FEW_PRODUCTS_MESSAGE] if len(products) < 2 else []

    logger.info(
        "invoice_text_parsed",
        lines=len(lines),
        products=len(products),
        folio=info.folio,
        supplier=info.supplier
    )

    return InvoiceParseResponse(
        success=bool(products),
        extracted_products=products,
        errors=errors,
        warnings=warnings,
        invoice_info=info,
    )
