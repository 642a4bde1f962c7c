"""
Product service for business logic operations.

Products are rows of the Supabase "products" table. Deletion is a soft
delete (is_active=False) because sales and movements reference products.
"""

from decimal import Decimal
from typing import Optional
import structlog

from config import get_supabase_client
from models.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
)
from exceptions import (
    ProductNotFoundError,
    ProductSKUExistsError,
    ProductBarcodeExistsError,
    DatabaseError
)

logger = structlog.get_logger(__name__)

# Estimated unit cost when only the wholesale price is known
COST_FACTOR = Decimal("0.8")


class ProductService:
    """
    Product business logic.

    Handles CRUD operations and identifier lookups for products.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "products"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(
        self,
        page: int = 1,
        page_size: int = 20,
        search: Optional[str] = None,
        category: Optional[str] = None,
        brand: Optional[str] = None,
        active_only: bool = True
    ) -> tuple[list[ProductResponse], int]:
        """
        Get all products with optional filters.

        Args:
            page: Page number (1-indexed)
            page_size: Items per page
            search: Matches name, SKU or barcode (case-insensitive)
            category: Filter by category
            brand: Filter by brand
            active_only: Only return active products

        Returns:
            Tuple of (products list, total count)
        """
        logger.info(
            "getting_products",
            page=page,
            page_size=page_size,
            search=search,
            category=category,
            brand=brand
        )

        try:
            query = self.db.table(self.table).select("*", count="exact")

            if active_only:
                query = query.eq("is_active", True)
            if category:
                query = query.eq("category", category)
            if brand:
                query = query.eq("brand", brand)
            if search:
                term = search.replace(",", " ").strip()
                query = query.or_(
                    f"name.ilike.%{term}%,sku.ilike.%{term}%,barcode.ilike.%{term}%"
                )

            offset = (page - 1) * page_size
            query = query.range(offset, offset + page_size - 1)
            query = query.order("name")

            result = query.execute()

            products = [ProductResponse(**row) for row in result.data]
            total = result.count or 0

            logger.info(
                "products_retrieved",
                count=len(products),
                total=total
            )

            return products, total

        except Exception as e:
            logger.error("get_products_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def get_all_active(self) -> list[ProductResponse]:
        """Every active product, ordered by name (used by export)."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("is_active", True)
                .order("name")
                .execute()
            )
            return [ProductResponse(**row) for row in result.data]

        except Exception as e:
            logger.error("get_all_active_products_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def get_by_id(self, product_id: str) -> ProductResponse:
        """
        Get a single product by ID.

        Raises:
            ProductNotFoundError: If product doesn't exist
        """
        logger.debug("getting_product", product_id=product_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", product_id)
                .execute()
            )
        except Exception as e:
            logger.error(
                "get_product_failed",
                product_id=product_id,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        if not result.data:
            raise ProductNotFoundError(product_id)

        return ProductResponse(**result.data[0])

    def _get_one_by(self, column: str, value: str) -> Optional[ProductResponse]:
        """Read-one-by-unique-field. First match wins if the column has duplicates."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq(column, value)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(
                "get_product_by_field_failed",
                column=column,
                value=value,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        if not result.data:
            return None

        return ProductResponse(**result.data[0])

    def get_by_barcode(self, barcode: str) -> Optional[ProductResponse]:
        """Get a product by barcode, or None."""
        logger.debug("getting_product_by_barcode", barcode=barcode)
        return self._get_one_by("barcode", barcode.strip())

    def get_by_sku(self, sku: str) -> Optional[ProductResponse]:
        """Get a product by SKU, or None."""
        logger.debug("getting_product_by_sku", sku=sku)
        return self._get_one_by("sku", sku.strip())

    def find_existing(
        self,
        barcode: Optional[str],
        sku: Optional[str]
    ) -> Optional[ProductResponse]:
        """
        Resolve product identity: barcode first, then SKU.

        Returns None when neither identifier is given or nothing matches.
        """
        existing = None
        if barcode and barcode.strip():
            existing = self.get_by_barcode(barcode)
        if existing is None and sku and sku.strip():
            existing = self.get_by_sku(sku)
        return existing

    def get_low_stock(self) -> list[ProductResponse]:
        """
        Active simple products at or below their minimum stock.

        PostgREST cannot compare two columns, so filtering happens here.
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("is_active", True)
                .eq("has_variants", False)
                .order("stock_quantity")
                .execute()
            )
        except Exception as e:
            logger.error("get_low_stock_failed", error=str(e))
            raise DatabaseError("select", str(e))

        products = [ProductResponse(**row) for row in result.data]
        return [p for p in products if p.is_low_stock]

    def get_categories_and_brands(self) -> dict[str, list[str]]:
        """Distinct non-empty categories and brands of active products."""
        try:
            result = (
                self.db.table(self.table)
                .select("category,brand")
                .eq("is_active", True)
                .execute()
            )
        except Exception as e:
            logger.error("get_categories_failed", error=str(e))
            raise DatabaseError("select", str(e))

        categories = {row.get("category") for row in result.data if row.get("category")}
        brands = {row.get("brand") for row in result.data if row.get("brand")}
        return {"categories": sorted(categories), "brands": sorted(brands)}

    # ===================
    # WRITE OPERATIONS
    # ===================

    @staticmethod
    def to_record(data: ProductCreate) -> dict:
        """
        Build the column dict for insert/overwrite.

        price mirrors public_price for older screens; stock is forced to 0
        for products whose stock lives on variants.
        """
        cost = data.cost if data.cost is not None else data.wholesale_price * COST_FACTOR
        return {
            "name": data.name,
            "description": data.description,
            "barcode": data.barcode,
            "sku": data.sku,
            "price": float(data.public_price),
            "cost": float(cost),
            "public_price": float(data.public_price),
            "wholesale_price": float(data.wholesale_price),
            "category": data.category,
            "brand": data.brand,
            "stock_quantity": 0 if data.has_variants else data.stock_quantity,
            "min_stock": data.min_stock,
            "has_variants": data.has_variants,
        }

    def create(self, data: ProductCreate) -> ProductResponse:
        """
        Create a new product.

        Raises:
            ProductBarcodeExistsError: If barcode already exists
            ProductSKUExistsError: If SKU already exists
        """
        logger.info("creating_product", name=data.name, sku=data.sku, barcode=data.barcode)

        if data.barcode and self.get_by_barcode(data.barcode):
            raise ProductBarcodeExistsError(data.barcode)
        if data.sku and self.get_by_sku(data.sku):
            raise ProductSKUExistsError(data.sku)

        try:
            insert_data = {**self.to_record(data), "is_active": True}

            result = (
                self.db.table(self.table)
                .insert(insert_data)
                .execute()
            )

            product = ProductResponse(**result.data[0])

            logger.info(
                "product_created",
                product_id=product.id,
                name=product.name
            )

            return product

        except Exception as e:
            logger.error(
                "create_product_failed",
                name=data.name,
                error=str(e)
            )
            raise DatabaseError("insert", str(e))

    def overwrite(self, product_id: str, data: ProductCreate) -> ProductResponse:
        """
        Replace every mutable field of an existing product.

        Used by the catalog import when a row matches a stored product.
        """
        logger.info("overwriting_product", product_id=product_id)

        try:
            result = (
                self.db.table(self.table)
                .update(self.to_record(data))
                .eq("id", product_id)
                .execute()
            )
        except Exception as e:
            logger.error(
                "overwrite_product_failed",
                product_id=product_id,
                error=str(e)
            )
            raise DatabaseError("update", str(e))

        if not result.data:
            raise ProductNotFoundError(product_id)

        logger.info("product_updated", product_id=product_id)
        return ProductResponse(**result.data[0])

    def update(self, product_id: str, data: ProductUpdate) -> ProductResponse:
        """
        Update an existing product.

        Raises:
            ProductNotFoundError: If product doesn't exist
            ProductBarcodeExistsError: If the new barcode belongs to another product
            ProductSKUExistsError: If the new SKU belongs to another product
        """
        logger.info("updating_product", product_id=product_id)

        existing = self.get_by_id(product_id)

        if data.barcode and data.barcode != existing.barcode:
            other = self.get_by_barcode(data.barcode)
            if other and other.id != product_id:
                raise ProductBarcodeExistsError(data.barcode)
        if data.sku and data.sku != existing.sku:
            other = self.get_by_sku(data.sku)
            if other and other.id != product_id:
                raise ProductSKUExistsError(data.sku)

        update_data = {}
        for key, value in data.model_dump(exclude_none=True).items():
            update_data[key] = float(value) if isinstance(value, Decimal) else value

        if not update_data:
            return existing

        if "public_price" in update_data:
            update_data["price"] = update_data["public_price"]
        if update_data.get("has_variants", existing.has_variants):
            update_data["stock_quantity"] = 0

        try:
            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", product_id)
                .execute()
            )

            product = ProductResponse(**result.data[0])

            logger.info(
                "product_updated",
                product_id=product_id,
                fields=list(update_data.keys())
            )

            return product

        except Exception as e:
            logger.error(
                "update_product_failed",
                product_id=product_id,
                error=str(e)
            )
            raise DatabaseError("update", str(e))

    def set_stock(self, product_id: str, quantity: int) -> ProductResponse:
        """Write a new stock quantity (movements are recorded by the caller)."""
        try:
            result = (
                self.db.table(self.table)
                .update({"stock_quantity": quantity})
                .eq("id", product_id)
                .execute()
            )
        except Exception as e:
            logger.error("set_stock_failed", product_id=product_id, error=str(e))
            raise DatabaseError("update", str(e))

        if not result.data:
            raise ProductNotFoundError(product_id)
        return ProductResponse(**result.data[0])

    def delete(self, product_id: str) -> bool:
        """
        Soft delete a product (set is_active=False).

        Raises:
            ProductNotFoundError: If product doesn't exist
        """
        logger.info("deleting_product", product_id=product_id)

        self.get_by_id(product_id)

        try:
            self.db.table(self.table).update(
                {"is_active": False}
            ).eq("id", product_id).execute()

            logger.info("product_deleted", product_id=product_id)

            return True

        except Exception as e:
            logger.error(
                "delete_product_failed",
                product_id=product_id,
                error=str(e)
            )
            raise DatabaseError("update", str(e))


# Singleton instance for convenience
_product_service: Optional[ProductService] = None

def get_product_service() -> ProductService:
    """Get or create ProductService instance."""
    global _product_service
    if _product_service is None:
        _product_service = ProductService()
    return _product_service
