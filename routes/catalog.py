"""
Catalog CSV API routes.

Import returns 200 with the summary even when rows fail validation; the
summary's errors list says why nothing was written.
"""

from datetime import date

from fastapi import APIRouter, UploadFile, File
from fastapi.responses import JSONResponse, Response
import structlog

from models.catalog import ImportResult
from services.catalog_import_service import get_catalog_import_service
from services.catalog_export_service import (
    get_catalog_export_service,
    build_template_csv,
    TEMPLATE_FILENAME,
)
from exceptions import AppError, CatalogParseError

logger = structlog.get_logger(__name__)

router = APIRouter()

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


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


def csv_download(content: str, filename: str) -> Response:
    return Response(
        content=content.encode("utf-8"),
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.post("/import", response_model=ImportResult)
async def import_catalog(file: UploadFile = File(..., description="Catalog CSV file")):
    """
    Create or update products and variants from a catalog CSV.

    Returns:
        ImportResult with success count, warnings and errors

    Raises:
        422: File is not a CSV or cannot be decoded
    """
    logger.info("catalog_upload_received", filename=file.filename)

    try:
        if not file.filename or not file.filename.lower().endswith(".csv"):
            raise CatalogParseError("File must be a CSV", details={"filename": file.filename})

        contents = await file.read()
        return get_catalog_import_service().import_csv(contents)

    except Exception as e:
        return handle_error(e)


@router.get("/export")
async def export_catalog():
    """Download every active product and its variants as CSV."""
    try:
        content = get_catalog_export_service().export_csv()
        return csv_download(content, f"productos_{date.today().isoformat()}.csv")
    except Exception as e:
        return handle_error(e)


@router.get("/template")
async def download_template():
    """Download an example catalog CSV."""
    return csv_download(build_template_csv(), TEMPLATE_FILENAME)
