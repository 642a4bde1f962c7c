"""
Catalog import service.

Reconciles a catalog CSV against the stored products and variants:

1. Parse the file (rows with a wrong column count are dropped)
2. Validate every row; any error aborts the import with no writes
3. Group variant rows under the product row above them
4. For each group, create or update the product, then its variants

Identity is the barcode if present, else the SKU. Rows without either are
always created as new records unless the identity policy requires one.
Persistence failures are isolated per group: the error is recorded and
the next group is processed. There is no transaction around the import.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional, Union
import structlog

from config.settings import IdentityPolicy, get_settings
from exceptions import AppError
from models.catalog import ImportResult
from models.product import ProductCreate, VariantCreate
from parsers.catalog_csv_parser import (
    ProductGroup,
    CatalogRow,
    cell,
    int_or_zero,
    number_or_zero,
    parse_catalog_csv,
    validate_rows,
    group_rows,
    COL_NAME,
    COL_DESCRIPTION,
    COL_BARCODE,
    COL_SKU,
    COL_PUBLIC_PRICE,
    COL_WHOLESALE_PRICE,
    COL_CATEGORY,
    COL_BRAND,
    COL_STOCK,
    COL_MIN_STOCK,
    COL_VARIANT_NAME,
    COL_VARIANT_SKU,
    COL_VARIANT_BARCODE,
    COL_VARIANT_PUBLIC_PRICE,
    COL_VARIANT_WHOLESALE_PRICE,
    COL_VARIANT_STOCK,
    COL_VARIANT_MIN_STOCK,
)
from services.product_service import ProductService
from services.variant_service import VariantService

logger = structlog.get_logger(__name__)

EMPTY_FILE_MESSAGE = "The CSV file is empty or has an invalid format"


@dataclass
class GroupOutcome:
    """What happened to one product group."""
    warnings: list[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ===================
# ROW -> SCHEMA
# ===================

def product_from_row(group: ProductGroup) -> ProductCreate:
    """Build the product payload from a group's product row."""
    row = group.product
    has_variants = group.has_variants
    return ProductCreate(
        name=cell(row, COL_NAME),
        description=cell(row, COL_DESCRIPTION),
        barcode=cell(row, COL_BARCODE) or None,
        sku=cell(row, COL_SKU) or None,
        public_price=number_or_zero(row, COL_PUBLIC_PRICE),
        wholesale_price=number_or_zero(row, COL_WHOLESALE_PRICE),
        category=cell(row, COL_CATEGORY),
        brand=cell(row, COL_BRAND),
        stock_quantity=0 if has_variants else int_or_zero(row, COL_STOCK),
        min_stock=int_or_zero(row, COL_MIN_STOCK),
        has_variants=has_variants,
    )


def variant_from_row(row: CatalogRow) -> VariantCreate:
    """Build the variant payload from a variant row."""
    return VariantCreate(
        name=cell(row, COL_VARIANT_NAME),
        sku=cell(row, COL_VARIANT_SKU) or None,
        barcode=cell(row, COL_VARIANT_BARCODE) or None,
        public_price=number_or_zero(row, COL_VARIANT_PUBLIC_PRICE),
        wholesale_price=number_or_zero(row, COL_VARIANT_WHOLESALE_PRICE),
        stock_quantity=int_or_zero(row, COL_VARIANT_STOCK),
        min_stock=int_or_zero(row, COL_VARIANT_MIN_STOCK),
    )


def identity_keys(group: ProductGroup) -> set[str]:
    """Barcodes and SKUs a group looks up, tagged by table and column."""
    keys = set()
    for column in (COL_BARCODE, COL_SKU):
        value = cell(group.product, column)
        if value:
            keys.add(f"product:{column}:{value}")
    for row in group.variants:
        for column in (COL_VARIANT_BARCODE, COL_VARIANT_SKU):
            value = cell(row, column)
            if value:
                keys.add(f"variant:{column}:{value}")
    return keys


def chain_groups(groups: list[ProductGroup]) -> list[list[int]]:
    """
    Split groups into chains that can be reconciled independently.

    Groups sharing any barcode or SKU (directly or through another group)
    land in the same chain, in file order, so a later group sees the rows
    an earlier one created. Chains are ordered by their first group.

    Returns:
        Lists of indexes into groups
    """
    parent = list(range(len(groups)))

    def root(index: int) -> int:
        while parent[index] != index:
            parent[index] = parent[parent[index]]
            index = parent[index]
        return index

    first_seen: dict[str, int] = {}
    for index, group in enumerate(groups):
        for key in identity_keys(group):
            if key not in first_seen:
                first_seen[key] = index
                continue
            a, b = root(first_seen[key]), root(index)
            if a != b:
                parent[max(a, b)] = min(a, b)

    chains: dict[int, list[int]] = {}
    for index in range(len(groups)):
        chains.setdefault(root(index), []).append(index)
    return list(chains.values())


def _error_message(e: Exception) -> str:
    if isinstance(e, AppError):
        return e.message
    return str(e) or type(e).__name__


class CatalogImportService:
    """
    CSV catalog import.

    Groups are reconciled one at a time unless max_workers > 1, in which
    case a bounded thread pool is used. Groups that share a barcode or SKU
    run one after another on the same worker, and results are still
    reported in file order.
    """

    def __init__(
        self,
        product_service: Optional[ProductService] = None,
        variant_service: Optional[VariantService] = None,
        identity_policy: Optional[IdentityPolicy] = None,
        max_workers: Optional[int] = None,
    ):
        settings = get_settings()
        self.products = product_service or ProductService()
        self.variants = variant_service or VariantService()
        self.identity_policy = identity_policy or settings.import_identity_policy
        self.max_workers = max_workers or settings.import_max_workers

    def import_csv(self, content: Union[str, bytes]) -> ImportResult:
        """
        Import a catalog CSV.

        Args:
            content: Raw file content

        Returns:
            ImportResult with success count, warnings and errors

        Raises:
            CatalogParseError: If the file cannot be decoded
        """
        parsed = parse_catalog_csv(content)

        if parsed.is_empty:
            return ImportResult(errors=[EMPTY_FILE_MESSAGE], skipped_rows=parsed.skipped_rows)

        logger.info(
            "catalog_import_started",
            rows=len(parsed.rows),
            identity_policy=self.identity_policy.value,
            max_workers=self.max_workers
        )

        errors = validate_rows(parsed.rows, self.identity_policy)
        if errors:
            logger.warning("catalog_import_validation_failed", error_count=len(errors))
            return ImportResult(errors=errors, skipped_rows=parsed.skipped_rows)

        groups = group_rows(parsed.rows)
        outcomes = self._reconcile_all(groups)

        result = ImportResult(skipped_rows=parsed.skipped_rows)
        if parsed.skipped_rows:
            result.warnings.append(
                f"{parsed.skipped_rows} rows skipped: column count does not match the header"
            )
        for outcome in outcomes:
            result.warnings.extend(outcome.warnings)
            if outcome.ok:
                result.success += 1
            else:
                result.errors.append(outcome.error)

        logger.info(
            "catalog_import_complete",
            groups=len(groups),
            success=result.success,
            errors=len(result.errors)
        )
        return result

    def _reconcile_all(self, groups: list[ProductGroup]) -> list[GroupOutcome]:
        if self.max_workers <= 1 or len(groups) <= 1:
            return [self.reconcile_group(group) for group in groups]

        chains = chain_groups(groups)
        logger.info("catalog_import_parallel", chains=len(chains), workers=self.max_workers)

        def run_chain(chain: list[int]) -> list[tuple[int, GroupOutcome]]:
            return [(index, self.reconcile_group(groups[index])) for index in chain]

        outcomes: list[Optional[GroupOutcome]] = [None] * len(groups)
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            for results in pool.map(run_chain, chains):
                for index, outcome in results:
                    outcomes[index] = outcome
        return outcomes

    def reconcile_group(self, group: ProductGroup) -> GroupOutcome:
        """
        Create or update one product and its variants.

        Any failure stops this group and is returned as its error; writes
        already made for the group are kept.
        """
        outcome = GroupOutcome()

        try:
            data = product_from_row(group)
            existing = self.products.find_existing(data.barcode, data.sku)

            if existing:
                product = self.products.overwrite(existing.id, data)
                outcome.warnings.append(f"Product updated: {data.name}")
            else:
                product = self.products.create(data)
                outcome.warnings.append(f"Product created: {data.name}")

            for row in group.variants:
                variant_data = variant_from_row(row)
                existing_variant = self.variants.find_existing(
                    variant_data.barcode,
                    variant_data.sku
                )

                if existing_variant:
                    self.variants.overwrite(existing_variant.id, product.id, variant_data)
                    outcome.warnings.append(f"Variant updated: {variant_data.name}")
                else:
                    self.variants.create(product.id, variant_data)
                    outcome.warnings.append(f"Variant created: {variant_data.name}")

        except Exception as e:
            logger.error(
                "catalog_import_group_failed",
                product=group.name,
                error=str(e),
                error_type=type(e).__name__
            )
            outcome.error = f"Error in product {group.name}: {_error_message(e)}"

        return outcome


_catalog_import_service: Optional[CatalogImportService] = None

def get_catalog_import_service() -> CatalogImportService:
    """Get or create CatalogImportService instance."""
    global _catalog_import_service
    if _catalog_import_service is None:
        _catalog_import_service = CatalogImportService()
    return _catalog_import_service
