"""
Settings schemas for validation and serialization.

Settings are key/value/data_type rows stored in the database and decoded
into BusinessSettings.
"""

from pydantic import Field
from typing import Optional
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum

from models.base import BaseSchema


class SettingDataType(str, Enum):
    """Declared type of a setting value."""
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"


class SettingUpdate(BaseSchema):
    """
    Update existing setting.

    Only value can be updated - key and data_type are immutable.
    """

    value: str = Field(
        ...,
        max_length=500,
        description="Setting value"
    )


class SettingResponse(BaseSchema):
    """Raw setting row."""

    id: Optional[str] = Field(None, description="Setting UUID")
    key: str = Field(..., description="Setting key (unique)")
    value: Optional[str] = Field(None, description="Setting value")
    data_type: Optional[str] = Field(None, description="boolean, number or string")
    description: Optional[str] = Field(None, description="Human-readable description")


class BusinessSettings(BaseSchema):
    """
    Typed business configuration.

    Defaults apply for keys absent from the settings table.
    """

    tax_enabled: bool = False
    tax_rate: float = 16
    business_name: str = "H2R ACCESORIOS PARA EL CICLISTA"
    business_address: str = ""
    business_phone: str = ""
    business_email: str = ""
    currency: str = "MXN"
    currency_symbol: str = "$"
    low_stock_threshold: float = 5
    quote_validity_days: float = 7

    def calculate_tax(self, amount: Decimal) -> Decimal:
        """Tax due on amount; zero when tax is disabled."""
        if not self.tax_enabled:
            return Decimal("0")
        tax = Decimal(str(amount)) * Decimal(str(self.tax_rate)) / Decimal("100")
        return tax.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    def format_currency(self, amount: Decimal) -> str:
        value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return f"{self.currency_symbol}{value}"
