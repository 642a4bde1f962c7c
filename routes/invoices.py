"""
Supplier invoice API routes.

Parse returns suggestions only; nothing is stored until /save is called
with the lines the user confirmed.
"""

from fastapi import APIRouter, UploadFile, File
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
import structlog

from models.invoice import InvoiceParseResponse, InvoiceSaveRequest, InvoiceSaveResult
from services.invoice_service import get_invoice_service
from exceptions import AppError, InvoiceParseError

logger = structlog.get_logger(__name__)

router = APIRouter()


class InvoiceTextRequest(BaseModel):
    """Invoice text already extracted by the client."""

    text: str = Field(..., min_length=1)


def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(status_code=e.status_code, content=e.to_dict())
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


@router.post("/parse", response_model=InvoiceParseResponse)
async def parse_invoice_pdf(file: UploadFile = File(..., description="Supplier invoice PDF")):
    """
    Extract product lines from an invoice PDF.

    Raises:
        422: Not a PDF, empty, or no extractable text
    """
    logger.info("invoice_upload_received", filename=file.filename)

    try:
        if not file.filename or not file.filename.lower().endswith(".pdf"):
            raise InvoiceParseError("File must be a PDF", details={"filename": file.filename})

        pdf_bytes = await file.read()
        if not pdf_bytes:
            raise InvoiceParseError("Uploaded file is empty")

        return get_invoice_service().parse_pdf(pdf_bytes)

    except Exception as e:
        return handle_error(e)


@router.post("/parse-text", response_model=InvoiceParseResponse)
async def parse_invoice_text(data: InvoiceTextRequest):
    """Extract product lines from invoice text."""
    try:
        return get_invoice_service().parse_text(data.text)
    except Exception as e:
        return handle_error(e)


@router.post("/save", response_model=InvoiceSaveResult)
async def save_invoice_products(data: InvoiceSaveRequest):
    """
    Create products and stock-in movements for the confirmed lines.

    Lines that fail (existing key, database error) are listed in errors;
    the rest are saved.
    """
    try:
        return get_invoice_service().save_products(data.invoice_info, data.products)
    except Exception as e:
        return handle_error(e)
