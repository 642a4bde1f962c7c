"""
Inventory movement schemas.

A movement is an append-only record of stock entering or leaving.
"""

from pydantic import Field
from typing import Optional
from enum import Enum

from models.base import BaseSchema, TimestampMixin


class MovementType(str, Enum):
    """Kinds of stock movement."""
    ENTRADA = "entrada"   # stock in
    SALIDA = "salida"     # stock out
    AJUSTE = "ajuste"     # manual adjustment


class InventoryMovementCreate(BaseSchema):
    """Record a stock movement for a product (or one of its variants)."""

    product_id: str
    variant_id: Optional[str] = None
    movement_type: MovementType
    quantity: int = Field(..., description="Units moved; positive for entrada/salida")
    reason: str = Field("", max_length=500)
    reference_id: Optional[str] = Field(None, max_length=100, description="Invoice folio, sale id...")


class InventoryMovementResponse(BaseSchema, TimestampMixin):
    """Stored movement row."""

    id: str
    product_id: str
    variant_id: Optional[str] = None
    movement_type: MovementType
    quantity: int
    reason: Optional[str] = ""
    reference_id: Optional[str] = None


class StockAdjustment(BaseSchema):
    """Set a product's stock to a counted quantity."""

    new_quantity: int = Field(..., ge=0)
    reason: str = Field("Ajuste manual", max_length=500)
