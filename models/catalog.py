"""
Catalog import/export schemas.
"""

from pydantic import Field

from models.base import BaseSchema


class ImportResult(BaseSchema):
    """
    Summary returned after a CSV catalog import.

    success counts product groups (product row + its variant rows) that
    were written without error. warnings lists what was created/updated,
    errors lists validation or persistence failures.
    """

    success: int = Field(0, ge=0, description="Product groups processed successfully")
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    skipped_rows: int = Field(0, ge=0, description="Rows dropped for a wrong column count")