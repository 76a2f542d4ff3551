"""
Shared test fixtures.

Services talk to Supabase through a chainable query builder; the mock
below mirrors that builder, returns the rows configured per table and
records every write so tests can assert on payloads.
"""

import os
import sys
from pathlib import Path

# Settings are loaded at import time and require these
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import pytest
from unittest.mock import MagicMock, patch
from datetime import datetime
from typing import Generator

from tests.factories import LineItemFactory, ProductFactory

# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods."""

    def __init__(self, table_name: str, client: "MockSupabaseClient", data: list = None, count: int = None):
        self._table_name = table_name
        self._client = client
        self._data = data or []
        self._count = count

    def _record(self, operation: str, payload) -> None:
        self._client.writes.append((self._table_name, operation, payload))

    def select(self, *args, **kwargs):
        return self

    def insert(self, data):
        # Simulate insert - add id and timestamps
        self._record("insert", data)
        rows = [data] if isinstance(data, dict) else data
        now = datetime.utcnow().isoformat() + "Z"
        self._data = [
            {"id": f"test-uuid-{index + 1}", "created_at": now, "updated_at": now, **row}
            for index, row in enumerate(rows)
        ]
        return self

    def upsert(self, data, **kwargs):
        self._record("upsert", data)
        now = datetime.utcnow().isoformat() + "Z"
        self._data = [{"id": "test-uuid-1", "created_at": now, **data}]
        return self

    def update(self, data):
        # Simulate update - merge with existing data
        self._record("update", data)
        updated = [{**row, **data} for row in self._data]
        self._data = updated if updated else [data]
        return self

    def delete(self):
        self._record("delete", None)
        return self

    def eq(self, column, value):
        return self

    def neq(self, column, value):
        return self

    def in_(self, column, values):
        return self

    def or_(self, filters):
        return self

    def ilike(self, column, pattern):
        return self

    def order(self, column, **kwargs):
        return self

    def range(self, start, end):
        return self

    def limit(self, count):
        return self

    def execute(self) -> MockSupabaseResponse:
        return MockSupabaseResponse(
            data=self._data,
            count=self._count if self._count is not None else len(self._data)
        )


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables = {}
        self.writes: list[tuple] = []

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Configure mock data for a table."""
        self._tables[table_name] = {"data": data, "count": count}

    def table(self, name: str) -> MockSupabaseQuery:
        """Get a fresh query over the table's configured rows."""
        config = self._tables.get(name, {"data": [], "count": None})
        return MockSupabaseQuery(name, self, [dict(row) for row in config["data"]], config["count"])

    def writes_to(self, table_name: str, operation: str) -> list:
        """Payloads written to a table with one operation, in order."""
        return [payload for table, op, payload in self.writes if table == table_name and op == operation]


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("products", [
                {"id": "1", "manufacturer_item_code": "NDL-18G", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [...])
            # Now any service built inside the test gets the mock
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase), \
            patch("services.product_service.get_supabase_client", return_value=mock_supabase), \
            patch("services.catalog_service.get_supabase_client", return_value=mock_supabase), \
            patch("services.upload_service.get_supabase_client", return_value=mock_supabase), \
            patch("services.approved_match_service.get_supabase_client", return_value=mock_supabase), \
            patch("services.approved_match_service.get_admin_client", return_value=None):
        yield mock_supabase


@pytest.fixture
def needle_product():
    """18G x 1" needle listed per box of 100."""
    return ProductFactory.create_model(
        id="prod-needle",
        manufacturer_item_code="NDL-18G",
        product_name="Hypodermic Needle 18G x 1\"",
        item_description="Regular bevel hypodermic needle",
        packing_list_description="100/BX 10BX/CS",
        unit_price=8.0,
        package_type="BX",
        manufacturer_name="Acme Medical",
    )


@pytest.fixture
def glove_product():
    """Medium nitrile glove listed per box of 100."""
    return ProductFactory.create_model(
        id="prod-glove",
        manufacturer_item_code="GLV-NIT-M",
        product_name="Nitrile Exam Glove, Medium",
        item_description="Powder-free nitrile exam glove",
        packing_list_description="100/BX 10BX/CS",
        unit_price=6.0,
        package_type="BX",
        manufacturer_name="Glove Co",
    )


@pytest.fixture
def mock_upload_service():
    """Upload service stand-in for services that only call through it."""
    service = MagicMock()
    service.get_items.return_value = []
    return service


@pytest.fixture
def sample_line_item():
    """Line item as it looks right after ingestion."""
    return LineItemFactory.create_model(
        id="item-1",
        item_number="1042",
        mfr_number="NDL-18G",
        description="NEEDLE HYPO 18GX1 REG BEVEL",
        uom="BX",
        ship_qty=4,
        cost_per_unit=12.0,
    )


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client():
    """
    Create FastAPI test client.

    The lifespan health check is skipped; routes are exercised with
    their service getters patched.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)
