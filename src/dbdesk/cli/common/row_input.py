"""Translate `key=value` command-line input into typed row mappings.

Values are parsed according to the column types in the table schema, so
`--set id=7` yields an integer for a BIGINT column and a string for a
STRING column. `--null col` is the only way to write NULL.
"""

from typing import Any, Iterable

from dbdesk.core.models import TableSchema
from dbdesk.core.values import parse_cell_input


def parse_assignments(items: Iterable[str], *, option: str) -> dict[str, str]:
    """
    Split `key=value` strings into a mapping.

    Raises:
        ValueError: If an item has no `=` or an empty key.
    """
    out: dict[str, str] = {}
    for item in items:
        if "=" not in item:
            raise ValueError(f"Invalid {option} value: '{item}' (expected key=value)")
        key, value = item.split("=", 1)
        key = key.strip()
        if not key:
            raise ValueError(f"Invalid {option} value: '{item}' (empty column name)")
        out[key] = value
    return out


def typed_row(
    schema: TableSchema,
    assignments: dict[str, str],
    nulls: Iterable[str] = (),
) -> dict[str, Any]:
    """
    Parse textual assignments into plain values using the schema's column types.

    Raises:
        ValueError: On unknown columns, NULL for a NOT NULL column,
            or text that does not parse for the column type.
    """
    row: dict[str, Any] = {}
    for name, text in assignments.items():
        column = schema.column(name)
        if column is None:
            raise ValueError(f"Unknown column '{name}' in {schema.table_name}")
        row[column.name] = parse_cell_input(text, column.data_type).to_raw()

    for name in nulls:
        column = schema.column(name)
        if column is None:
            raise ValueError(f"Unknown column '{name}' in {schema.table_name}")
        if not column.nullable:
            raise ValueError(f"Column '{column.name}' is NOT NULL")
        row[column.name] = None
    return row


def missing_primary_key(schema: TableSchema, primary_key: dict[str, Any]) -> list[str]:
    """Return primary-key columns of the schema that the mapping does not cover."""
    return [c for c in schema.primary_keys if c not in primary_key]
