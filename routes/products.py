"""
Product API routes.

Products, their variants, and stock adjustments. Errors use the AppError
JSON format: {"error": {code, message, details, timestamp}}.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.base import total_pages
from models.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse,
    VariantCreate,
    VariantUpdate,
    VariantResponse,
)
from models.inventory_movement import InventoryMovementResponse, StockAdjustment
from services.product_service import get_product_service
from services.variant_service import get_variant_service
from services.inventory_movement_service import get_inventory_movement_service
from exceptions import AppError, ProductNotFoundError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
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


# ===================
# PRODUCT ROUTES
# ===================

@router.get("", response_model=ProductListResponse)
async def list_products(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    search: Optional[str] = Query(None, description="Name, SKU or barcode contains"),
    category: Optional[str] = Query(None, description="Filter by category"),
    brand: Optional[str] = Query(None, description="Filter by brand"),
    include_inactive: bool = Query(False, description="Include inactive products")
):
    """
    List products with optional filters.

    Returns paginated list of products ordered by name.
    """
    try:
        service = get_product_service()

        products, total = service.get_all(
            page=page,
            page_size=page_size,
            search=search,
            category=category,
            brand=brand,
            active_only=not include_inactive
        )

        return ProductListResponse(
            data=products,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages(total, page_size)
        )

    except Exception as e:
        return handle_error(e)


@router.get("/low-stock", response_model=list[ProductResponse])
async def list_low_stock():
    """Active simple products at or below their minimum stock."""
    try:
        return get_product_service().get_low_stock()
    except Exception as e:
        return handle_error(e)


@router.get("/filters")
async def list_filters():
    """Distinct categories and brands for filter dropdowns."""
    try:
        return get_product_service().get_categories_and_brands()
    except Exception as e:
        return handle_error(e)


@router.get("/barcode/{barcode}", response_model=ProductResponse)
async def get_product_by_barcode(barcode: str):
    """
    Get a product by barcode (scanner lookup).

    Raises:
        404: Product not found
    """
    try:
        product = get_product_service().get_by_barcode(barcode)
        if not product:
            raise ProductNotFoundError(barcode)
        return product

    except Exception as e:
        return handle_error(e)


@router.get("/sku/{sku}", response_model=ProductResponse)
async def get_product_by_sku(sku: str):
    """
    Get a product by SKU.

    Raises:
        404: Product not found
    """
    try:
        product = get_product_service().get_by_sku(sku)
        if not product:
            raise ProductNotFoundError(sku)
        return product

    except Exception as e:
        return handle_error(e)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str):
    """
    Get a single product by ID.

    Raises:
        404: Product not found
    """
    try:
        return get_product_service().get_by_id(product_id)
    except Exception as e:
        return handle_error(e)


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(data: ProductCreate):
    """
    Create a new product.

    Raises:
        409: SKU or barcode already exists
        422: Validation error
    """
    try:
        return get_product_service().create(data)
    except Exception as e:
        return handle_error(e)


@router.patch("/{product_id}", response_model=ProductResponse)
async def update_product(product_id: str, data: ProductUpdate):
    """
    Update an existing product.

    Only provided fields are updated.

    Raises:
        404: Product not found
        409: New SKU or barcode already exists
    """
    try:
        return get_product_service().update(product_id, data)
    except Exception as e:
        return handle_error(e)


@router.delete("/{product_id}", status_code=204)
async def delete_product(product_id: str):
    """
    Delete a product (soft delete).

    Sets is_active=False rather than removing from database.

    Raises:
        404: Product not found
    """
    try:
        get_product_service().delete(product_id)
        return None  # 204 No Content
    except Exception as e:
        return handle_error(e)


# ===================
# VARIANT ROUTES
# ===================

@router.get("/{product_id}/variants", response_model=list[VariantResponse])
async def list_variants(
    product_id: str,
    include_inactive: bool = Query(False, description="Include inactive variants")
):
    try:
        get_product_service().get_by_id(product_id)
        return get_variant_service().get_for_product(
            product_id,
            active_only=not include_inactive
        )
    except Exception as e:
        return handle_error(e)


@router.post("/{product_id}/variants", response_model=VariantResponse, status_code=201)
async def create_variant(product_id: str, data: VariantCreate):
    """
    Add a variant to a product.

    Raises:
        404: Product not found
    """
    try:
        get_product_service().get_by_id(product_id)
        return get_variant_service().create(product_id, data)
    except Exception as e:
        return handle_error(e)


@router.patch("/variants/{variant_id}", response_model=VariantResponse)
async def update_variant(variant_id: str, data: VariantUpdate):
    try:
        return get_variant_service().update(variant_id, data)
    except Exception as e:
        return handle_error(e)


@router.delete("/variants/{variant_id}", status_code=204)
async def delete_variant(variant_id: str):
    """Soft delete a variant."""
    try:
        get_variant_service().deactivate(variant_id)
        return None
    except Exception as e:
        return handle_error(e)


# ===================
# STOCK ROUTES
# ===================

@router.get("/{product_id}/movements", response_model=list[InventoryMovementResponse])
async def list_movements(
    product_id: str,
    limit: int = Query(50, ge=1, le=500, description="Most recent movements")
):
    try:
        return get_inventory_movement_service().get_for_product(product_id, limit=limit)
    except Exception as e:
        return handle_error(e)


@router.post("/{product_id}/adjust-stock", response_model=ProductResponse)
async def adjust_stock(product_id: str, data: StockAdjustment):
    """
    Set a simple product's stock to a counted quantity.

    Records an "ajuste" movement with the difference.

    Raises:
        404: Product not found
        422: Product has variants
    """
    try:
        return get_inventory_movement_service().adjust_stock(product_id, data)
    except Exception as e:
        return handle_error(e)
