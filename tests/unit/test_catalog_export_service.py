"""
Tests for catalog CSV export and the template file.
"""

import csv
import io

import pytest

from models.product import ProductWithVariants, VariantResponse
from parsers.catalog_csv_parser import CATALOG_COLUMNS, parse_catalog_csv
from services.catalog_export_service import (
    export_catalog_csv,
    build_template_csv,
    CatalogExportService,
    UTF8_BOM,
)
from tests.factories import ProductFactory, VariantFactory


def _read(content: str) -> list[list[str]]:
    assert content.startswith(UTF8_BOM)
    return list(csv.reader(io.StringIO(content[len(UTF8_BOM):])))


def _helmet() -> ProductWithVariants:
    product = ProductFactory.create(
        name="Casco de Seguridad",
        sku="CASCO-001",
        barcode="1234567890124",
        public_price=49.99,
        wholesale_price=29.99,
        category="Accesorios",
        brand="Bell",
        has_variants=True,
        min_stock=3,
    )
    variants = [
        VariantFactory.create(product["id"], name="Talla M", sku="CASCO-M", stock_quantity=8),
        VariantFactory.create(product["id"], name="Talla L", sku="CASCO-L", stock_quantity=7),
    ]
    return ProductWithVariants(**product, variants=[VariantResponse(**v) for v in variants])


class TestExportCatalogCsv:
    """Tests for export_catalog_csv()"""

    def test_header_is_the_catalog_layout(self):
        rows = _read(export_catalog_csv([]))

        assert rows == [CATALOG_COLUMNS]

    def test_product_with_variants_gives_product_row_then_variant_rows(self):
        # Act
        rows = _read(export_catalog_csv([_helmet()]))

        # Assert
        header, product_row, *variant_rows = rows
        product = dict(zip(header, product_row))

        assert len(variant_rows) == 2
        assert product["nombre"] == "Casco de Seguridad"
        assert product["tiene_variantes"] == "SI"
        assert product["precio_publico"] == "49.99"
        assert product["variante_nombre"] == ""
        assert product["variante_sku"] == ""

        talla_m = dict(zip(header, variant_rows[0]))
        assert talla_m["variante_nombre"] == "Talla M"
        assert talla_m["variante_sku"] == "CASCO-M"
        assert talla_m["variante_stock"] == "8"
        assert talla_m["nombre"] == ""
        assert talla_m["sku"] == ""
        assert talla_m["tiene_variantes"] == ""

    def test_simple_product_row(self):
        product = ProductWithVariants(**ProductFactory.create(
            name="Luz LED", sku="LUZ-1", stock_quantity=4, min_stock=2
        ))

        header, row = _read(export_catalog_csv([product]))
        values = dict(zip(header, row))

        assert values["tiene_variantes"] == "NO"
        assert values["stock"] == "4"
        assert values["stock_minimo"] == "2"
        assert values["variante_nombre"] == ""

    def test_flagged_product_without_variants_exported_as_simple(self):
        product = ProductWithVariants(**ProductFactory.create(name="Casco", has_variants=True))

        header, row = _read(export_catalog_csv([product]))

        assert dict(zip(header, row))["tiene_variantes"] == "NO"

    def test_values_with_commas_and_quotes_are_quoted(self):
        product = ProductWithVariants(**ProductFactory.create(name='Casco "Aero", rojo'))

        content = export_catalog_csv([product])

        assert '"Casco ""Aero"", rojo"' in content

    def test_export_can_be_imported_back(self):
        content = export_catalog_csv([_helmet()])

        parsed = parse_catalog_csv(content)

        assert parsed.skipped_rows == 0
        assert len(parsed.rows) == 3
        assert parsed.rows[0]["nombre"] == "Casco de Seguridad"

    def test_line_breaks_are_flattened_so_the_row_survives_import(self):
        row = ProductFactory.create(name="Casco", sku="C1")
        row["description"] = "Ventilado\nTalla unica\r\n  ajustable"
        product = ProductWithVariants(**row)

        parsed = parse_catalog_csv(export_catalog_csv([product]))

        assert parsed.skipped_rows == 0
        assert len(parsed.rows) == 1
        assert parsed.rows[0]["descripcion"] == "Ventilado Talla unica ajustable"


class TestBuildTemplateCsv:
    """Tests for build_template_csv()"""

    def test_template_rows(self):
        header, *rows = _read(build_template_csv())

        assert header == CATALOG_COLUMNS
        assert len(rows) == 4
        assert dict(zip(header, rows[0]))["sku"] == "MTB-001"
        assert dict(zip(header, rows[1]))["tiene_variantes"] == "SI"
        assert [dict(zip(header, r))["variante_nombre"] for r in rows[2:]] == ["Talla M", "Talla L"]


class TestCatalogExportService:
    """Tests for CatalogExportService.export_csv()"""

    def test_loads_active_products_with_variants(self, mock_db, mock_supabase):
        # Arrange
        helmet = ProductFactory.create(name="Casco", sku="C1", has_variants=True)
        light = ProductFactory.create(name="Luz", sku="L1")
        retired = ProductFactory.create(name="Viejo", sku="V1", is_active=False)
        mock_supabase.set_table_data("products", [helmet, light, retired])
        mock_supabase.set_table_data("product_variants", [
            VariantFactory.create(helmet["id"], name="Talla M"),
            VariantFactory.create(helmet["id"], name="Talla S", is_active=False),
        ])

        # Act
        header, *rows = _read(CatalogExportService().export_csv())

        # Assert
        names = [dict(zip(header, r))["nombre"] for r in rows]
        assert names == ["Casco", "", "Luz"]
        assert dict(zip(header, rows[1]))["variante_nombre"] == "Talla M"

    @pytest.mark.parametrize("count", [0, 3])
    def test_row_count_matches_products(self, mock_db, mock_supabase, count):
        mock_supabase.set_table_data("products", ProductFactory.create_batch(count))

        rows = _read(CatalogExportService().export_csv())

        assert len(rows) == count + 1
