"""
Pytest configuration and shared fixtures for the list engine tests.

Provides:
- anyio backend selection (tests are written as ``@pytest.mark.anyio`` coroutines)
- Sample record sets used across the stage and processor tests
- Engine settings and a processor bound to them
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]

# Add project root to path for imports
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402 (import after path setup)

from listdata.core.config import Settings  # noqa: E402
from listdata.engine.accessor import PathAccessor  # noqa: E402
from listdata.engine.processor import ListDataProcessor  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fruit_records() -> list[dict[str, Any]]:
    """Five records, three of them active."""
    return [
        {"id": 1, "name": "Apple", "active": True},
        {"id": 2, "name": "Banana", "active": False},
        {"id": 3, "name": "Cherry", "active": True},
        {"id": 4, "name": "Elm", "active": True},
        {"id": 5, "name": "Eel", "active": False},
    ]


@pytest.fixture
def product_records() -> list[dict[str, Any]]:
    """Heterogeneous product records with optional and nested fields."""
    return [
        {
            "id": 1,
            "name": "Apple",
            "price": 1.2,
            "active": True,
            "category": "fruit",
            "created_at": "2024-01-01T00:00:00Z",
            "supplier": {"country": "FR"},
        },
        {
            "id": 2,
            "name": "banana split",
            "price": 4.5,
            "active": False,
            "category": "dessert",
            "created_at": "2024-02-01T00:00:00Z",
            "supplier": None,
        },
        {
            "id": 3,
            "name": "Cherry",
            "price": "3",
            "active": True,
            "category": "fruit",
            "created_at": "2024-03-01T00:00:00Z",
            "supplier": {"country": "ES"},
        },
        {
            "id": 4,
            "name": "Date",
            "price": None,
            "active": True,
            "category": "Fruit",
        },
    ]


@pytest.fixture
def engine_settings() -> Settings:
    return Settings(
        default_page_size=20,
        max_page_size=100,
        metrics_enabled=True,
        cursor_tiebreaker_field="id",
    )


@pytest.fixture
def accessor() -> PathAccessor:
    return PathAccessor(timestamp_fields=["created_at"])


@pytest.fixture
def processor(accessor: PathAccessor, engine_settings: Settings) -> ListDataProcessor:
    return ListDataProcessor(accessor, settings=engine_settings)

