"""
Shared test fixtures.

The mock Supabase client keeps rows in memory and applies eq/ilike/or_
filters, inserts and updates, so repeated imports can be checked against
what was actually stored.
"""

import importlib
import os
import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings are loaded at import time and require these
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest
from unittest.mock import patch
from datetime import datetime, timezone
from typing import Callable, Generator, Optional
from uuid import uuid4

# ===================
# MOCK SUPABASE CLIENT
# ===================

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _ilike(value, pattern: str) -> bool:
    if value is None:
        return False
    needle = pattern.strip("%").lower()
    return needle in str(value).lower()


class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data=None, count: int = None):
        self.data = data if data is not None else []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """Chainable query; filters are applied on execute()."""

    def __init__(self, table: "MockSupabaseTable", operation: str = "select", payload=None):
        self._table = table
        self._operation = operation
        self._payload = payload
        self._filters: list[Callable[[dict], bool]] = []
        self._order: Optional[tuple[str, bool]] = None
        self._range: Optional[tuple[int, int]] = None
        self._limit: Optional[int] = None
        self._is_single = False

    def select(self, *args, **kwargs):
        return self

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self._filters.append(lambda row: row.get(column) != value)
        return self

    def ilike(self, column, pattern):
        self._filters.append(lambda row: _ilike(row.get(column), pattern))
        return self

    def or_(self, expression: str):
        """Supports "col.ilike.%term%,col2.ilike.%term%"."""
        clauses = []
        for part in expression.split(","):
            column, _, pattern = part.split(".", 2)
            clauses.append((column, pattern))
        self._filters.append(
            lambda row: any(_ilike(row.get(c), p) for c, p in clauses)
        )
        return self

    def single(self):
        self._is_single = True
        return self

    def order(self, column, desc: bool = False, **kwargs):
        self._order = (column, desc)
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def _matches(self, row: dict) -> bool:
        return all(f(row) for f in self._filters)

    def execute(self) -> MockSupabaseResponse:
        self._table.client.check_failure(self._table.name, self._operation, self._payload)
        rows = self._table.rows

        if self._operation == "insert":
            payload = self._payload if isinstance(self._payload, list) else [self._payload]
            inserted = []
            for item in payload:
                row = {"id": str(uuid4()), "created_at": _now(), "updated_at": _now(), **item}
                rows.append(row)
                inserted.append(dict(row))
            return MockSupabaseResponse(data=inserted)

        matched = [row for row in rows if self._matches(row)]

        if self._operation == "update":
            for row in matched:
                row.update(self._payload)
                row["updated_at"] = _now()
            return MockSupabaseResponse(data=[dict(r) for r in matched])

        if self._operation == "delete":
            self._table.rows[:] = [r for r in rows if not self._matches(r)]
            return MockSupabaseResponse(data=[dict(r) for r in matched])

        total = len(matched)
        if self._order:
            column, desc = self._order
            matched = sorted(
                matched,
                key=lambda r: (r.get(column) is None, r.get(column) if r.get(column) is not None else 0),
                reverse=desc
            )
        if self._range:
            start, end = self._range
            matched = matched[start:end + 1]
        if self._limit is not None:
            matched = matched[:self._limit]

        data = [dict(r) for r in matched]
        if self._is_single:
            return MockSupabaseResponse(data=data[0] if data else None, count=total)
        return MockSupabaseResponse(data=data, count=total)


class MockSupabaseTable:
    """One in-memory table."""

    def __init__(self, client: "MockSupabaseClient", name: str):
        self.client = client
        self.name = name

    @property
    def rows(self) -> list[dict]:
        return self.client.tables.setdefault(self.name, [])

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self, "select")

    def insert(self, data):
        return MockSupabaseQuery(self, "insert", data)

    def update(self, data):
        return MockSupabaseQuery(self, "update", data)

    def delete(self):
        return MockSupabaseQuery(self, "delete")


class MockSupabaseClient:
    """Mock Supabase client backed by dicts."""

    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self._failures: list[tuple[str, str, Callable]] = []

    def set_table_data(self, table_name: str, data: list):
        """Seed a table (rows are copied)."""
        self.tables[table_name] = [dict(row) for row in data]

    def rows(self, table_name: str) -> list[dict]:
        return self.tables.get(table_name, [])

    def fail_when(
        self,
        table_name: str,
        operation: str,
        predicate: Callable[[dict], bool] = lambda payload: True
    ):
        """Make matching writes raise, e.g. to test failure isolation."""
        self._failures.append((table_name, operation, predicate))

    def check_failure(self, table_name: str, operation: str, payload):
        for name, op, predicate in self._failures:
            if name == table_name and op == operation and predicate(payload or {}):
                raise RuntimeError(f"simulated {operation} failure on {table_name}")

    def table(self, name: str) -> MockSupabaseTable:
        return MockSupabaseTable(self, name)


# ===================
# FIXTURES
# ===================

PATCHED_MODULES = [
    "config.database",
    "services.product_service",
    "services.variant_service",
    "services.inventory_movement_service",
    "services.settings_service",
]

SINGLETONS = [
    ("services.product_service", "_product_service"),
    ("services.variant_service", "_variant_service"),
    ("services.inventory_movement_service", "_movement_service"),
    ("services.catalog_import_service", "_catalog_import_service"),
    ("services.catalog_export_service", "_catalog_export_service"),
    ("services.invoice_service", "_invoice_service"),
    ("services.settings_service", "_settings_service"),
]


@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("products", [
                {"id": "1", "name": "Casco", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase, monkeypatch) -> Generator:
    """
    Patch the database client with mock and reset service singletons.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [...])
            # Now any code using get_supabase_client() gets the mock
    """
    for module_name, attr in SINGLETONS:
        monkeypatch.setattr(importlib.import_module(module_name), attr, None)

    patchers = [
        patch(f"{module}.get_supabase_client", return_value=mock_supabase)
        for module in PATCHED_MODULES
    ]
    for p in patchers:
        p.start()
    yield mock_supabase
    for p in reversed(patchers):
        p.stop()


@pytest.fixture
def sample_product_data() -> dict:
    """Sample product row for testing."""
    return {
        "id": "prod-uuid-1",
        "name": "Casco de Seguridad",
        "description": "Casco para ciclismo",
        "sku": "CASCO-001",
        "barcode": "1234567890124",
        "price": 49.99,
        "cost": 23.99,
        "public_price": 49.99,
        "wholesale_price": 29.99,
        "category": "Accesorios",
        "brand": "Bell",
        "stock_quantity": 0,
        "min_stock": 3,
        "has_variants": True,
        "is_active": True,
        "created_at": "2025-03-01T10:00:00Z",
        "updated_at": "2025-03-01T10:00:00Z"
    }


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client_with_mock_db(mock_db):
    """
    Create FastAPI test client with mocked database.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [...])
            response = test_client_with_mock_db.get("/api/products")
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)
