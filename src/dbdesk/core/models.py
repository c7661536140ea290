"""Core domain models for tables, columns and schema snapshots.

These models describe remote tables in a simple, immutable form.
They are intentionally free of Databricks SDK types and UI/CLI concerns.
"""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_SCHEMA = "public"

_DELIMITERS = "`\"[]"


def strip_delimiters(identifier: str) -> str:
    """Remove backtick/quote/bracket delimiters from an identifier."""
    return "".join(ch for ch in identifier.strip() if ch not in _DELIMITERS)


@dataclass(frozen=True)
class TableDescriptor:
    """
    Represents a table (or view) known to a connection.

    Attributes:
        name: Bare table name.
        schema: Owning namespace, if the backend reports one.
        table_type: Table kind as reported by the backend (e.g. MANAGED, VIEW).
    """

    name: str
    schema: str | None = None
    table_type: str | None = None

    def display_name(self, default_schema: str = DEFAULT_SCHEMA) -> str:
        """
        Name shown to the user and inserted into SQL.

        Tables in the default namespace are shown bare, others as
        `schema.name`. Names that already carry a dot are kept as is.
        """
        if "." in self.name:
            return self.name
        if self.schema and self.schema.lower() != default_schema.lower():
            return f"{self.schema}.{self.name}"
        return self.name

    @property
    def qualified_name(self) -> str:
        """`schema.name` whenever a schema is known, regardless of default."""
        if self.schema and "." not in self.name:
            return f"{self.schema}.{self.name}"
        return self.name


@dataclass(frozen=True)
class ColumnDescriptor:
    """Lightweight representation of one table column."""

    name: str
    data_type: str
    nullable: bool = True
    is_primary_key: bool = False


@dataclass(frozen=True)
class TableSchema:
    """Column metadata snapshot for one table."""

    table_name: str
    columns: tuple[ColumnDescriptor, ...] = field(default_factory=tuple)

    @property
    def primary_keys(self) -> list[str]:
        return [c.name for c in self.columns if c.is_primary_key]

    def column(self, name: str) -> ColumnDescriptor | None:
        """Return a column by case-insensitive name."""
        want = name.lower()
        for col in self.columns:
            if col.name.lower() == want:
                return col
        return None


@dataclass(frozen=True)
class MutationResult:
    """Successful outcome of a remote row mutation."""

    affected_rows: int | None = None
