from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure tests always import the local src tree, not an older installed wheel.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

from dbdesk.core.models import ColumnDescriptor, TableDescriptor, TableSchema  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def users_table() -> TableDescriptor:
    return TableDescriptor(name="users", schema="public", table_type="BASE TABLE")


@pytest.fixture
def users_schema() -> TableSchema:
    return TableSchema(
        table_name="users",
        columns=(
            ColumnDescriptor(name="id", data_type="integer", nullable=False, is_primary_key=True),
            ColumnDescriptor(name="name", data_type="text", nullable=True),
        ),
    )
