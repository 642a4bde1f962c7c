"""
Product and variant schemas for validation and serialization.

Stock lives on variants for products with has_variants=True; the parent
stock_quantity is kept at 0 in that case.
"""

from pydantic import Field, field_validator
from typing import Optional
from decimal import Decimal

from models.base import BaseSchema, TimestampMixin
from utils.text_utils import clean_optional

# Column limits in the products and product_variants tables
NAME_MAX_LENGTH = 200
IDENTIFIER_MAX_LENGTH = 80
LABEL_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 2000


# ===================
# PRODUCTS
# ===================

class ProductCreate(BaseSchema):
    """
    Create a new product.

    Required: name
    Identity for imports is barcode first, then SKU.
    """

    name: str = Field(
        ...,
        min_length=1,
        max_length=NAME_MAX_LENGTH,
        description="Product name",
        examples=["Casco de Seguridad"]
    )
    description: str = Field("", max_length=DESCRIPTION_MAX_LENGTH)
    sku: Optional[str] = Field(None, max_length=IDENTIFIER_MAX_LENGTH, description="Stock keeping unit")
    barcode: Optional[str] = Field(None, max_length=IDENTIFIER_MAX_LENGTH, description="EAN/UPC barcode")
    public_price: Decimal = Field(Decimal("0"), ge=0, description="Retail price")
    wholesale_price: Decimal = Field(Decimal("0"), ge=0, description="Price for resellers (precio puesto)")
    cost: Optional[Decimal] = Field(None, ge=0, description="Unit cost (defaults to 80% of wholesale)")
    category: str = Field("", max_length=LABEL_MAX_LENGTH)
    brand: str = Field("", max_length=LABEL_MAX_LENGTH)
    stock_quantity: int = Field(0, ge=0)
    min_stock: int = Field(0, ge=0)
    has_variants: bool = False

    @field_validator("sku", "barcode")
    @classmethod
    def blank_identifier_is_none(cls, v: Optional[str]) -> Optional[str]:
        """Barcode and SKU are unique identifiers; empty means absent."""
        return clean_optional(v)


class ProductUpdate(BaseSchema):
    """
    Update existing product.

    All fields optional - only provided fields are updated.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=NAME_MAX_LENGTH)
    description: Optional[str] = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    sku: Optional[str] = Field(None, max_length=IDENTIFIER_MAX_LENGTH)
    barcode: Optional[str] = Field(None, max_length=IDENTIFIER_MAX_LENGTH)
    public_price: Optional[Decimal] = Field(None, ge=0)
    wholesale_price: Optional[Decimal] = Field(None, ge=0)
    cost: Optional[Decimal] = Field(None, ge=0)
    category: Optional[str] = Field(None, max_length=LABEL_MAX_LENGTH)
    brand: Optional[str] = Field(None, max_length=LABEL_MAX_LENGTH)
    stock_quantity: Optional[int] = Field(None, ge=0)
    min_stock: Optional[int] = Field(None, ge=0)
    has_variants: Optional[bool] = None
    is_active: Optional[bool] = None


class ProductResponse(BaseSchema, TimestampMixin):
    """Product row as stored in Supabase."""

    id: str = Field(..., description="Product UUID")
    name: str
    description: Optional[str] = ""
    sku: Optional[str] = None
    barcode: Optional[str] = None
    price: Optional[Decimal] = None
    cost: Optional[Decimal] = None
    public_price: Decimal = Decimal("0")
    wholesale_price: Decimal = Decimal("0")
    category: Optional[str] = ""
    brand: Optional[str] = ""
    stock_quantity: int = 0
    min_stock: int = 0
    has_variants: bool = False
    is_active: bool = True

    @property
    def is_low_stock(self) -> bool:
        return self.stock_quantity <= self.min_stock


class ProductListResponse(BaseSchema):
    """List of products with pagination."""

    data: list[ProductResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


# ===================
# VARIANTS
# ===================

class VariantCreate(BaseSchema):
    """Create a variant (size, color...) under a product."""

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH, examples=["Talla M"])
    sku: Optional[str] = Field(None, max_length=IDENTIFIER_MAX_LENGTH)
    barcode: Optional[str] = Field(None, max_length=IDENTIFIER_MAX_LENGTH)
    public_price: Decimal = Field(Decimal("0"), ge=0)
    wholesale_price: Decimal = Field(Decimal("0"), ge=0)
    stock_quantity: int = Field(0, ge=0)
    min_stock: int = Field(0, ge=0)

    @field_validator("sku", "barcode")
    @classmethod
    def blank_identifier_is_none(cls, v: Optional[str]) -> Optional[str]:
        """Barcode and SKU are unique identifiers; empty means absent."""
        return clean_optional(v)


class VariantUpdate(BaseSchema):
    """Partial variant update."""

    name: Optional[str] = Field(None, min_length=1, max_length=NAME_MAX_LENGTH)
    sku: Optional[str] = Field(None, max_length=IDENTIFIER_MAX_LENGTH)
    barcode: Optional[str] = Field(None, max_length=IDENTIFIER_MAX_LENGTH)
    public_price: Optional[Decimal] = Field(None, ge=0)
    wholesale_price: Optional[Decimal] = Field(None, ge=0)
    stock_quantity: Optional[int] = Field(None, ge=0)
    min_stock: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class VariantResponse(BaseSchema, TimestampMixin):
    """Variant row as stored in Supabase."""

    id: str
    product_id: str
    name: str
    sku: Optional[str] = None
    barcode: Optional[str] = None
    public_price: Decimal = Decimal("0")
    wholesale_price: Decimal = Decimal("0")
    stock_quantity: int = 0
    min_stock: int = 0
    is_active: bool = True


class ProductWithVariants(ProductResponse):
    """Product plus its variants, used by the catalog export."""

    variants: list[VariantResponse] = Field(default_factory=list)
