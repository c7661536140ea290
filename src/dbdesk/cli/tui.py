"""Terminal UI prompts for the interactive edit session."""

from __future__ import annotations

from typing import Any

import questionary

from dbdesk.cli.common.output import out
from dbdesk.cli.common.tui_style import QUESTIONARY_STYLE_SELECT
from dbdesk.core.ledger import PendingChange
from dbdesk.core.models import ColumnDescriptor, TableSchema
from dbdesk.core.values import CellValue, parse_cell_input

_MAX_VALUE_WIDTH = 40

KEEP = "keep"
SET_VALUE = "value"
SET_NULL = "null"


def _truncate(text: str, max_len: int) -> str:
    """Return text capped at max_len characters using an ASCII ellipsis."""
    if max_len <= 3 or len(text) <= max_len:
        return text[:max_len]
    return f"{text[: max_len - 3]}..."


def change_choice_title(change: PendingChange) -> str:
    """Format a staged change as `<type>  <table>  {k=v}  col=value, ...`."""
    key = ", ".join(
        f"{k}={CellValue.from_raw(v).display()}" for k, v in change.primary_key.items()
    )
    values = ", ".join(
        f"{k}={CellValue.from_raw(v).display()}" for k, v in (change.new_data or {}).items()
    )
    title = f"{change.type.value.ljust(6)}  {change.table_name}  {{{key}}}"
    if values:
        title += f"  {_truncate(values, _MAX_VALUE_WIDTH)}"
    return title


def column_choice_title(column: ColumnDescriptor) -> str:
    """Format a column as `name  type  [PK] [NULL]`."""
    flags = []
    if column.is_primary_key:
        flags.append("PK")
    if column.nullable:
        flags.append("NULL")
    suffix = f"  [{' '.join(flags)}]" if flags else ""
    return f"{column.name}  {column.data_type}{suffix}"


def prompt_cell_value(column: ColumnDescriptor, current: Any = None) -> CellValue | None:
    """
    Ask for a new value of one cell.

    Nullable columns offer an explicit "Set to NULL" choice; an empty text
    entry stays an empty string for text columns.

    Returns:
        The new CellValue, or None when the user keeps the current value.
    """
    mode = SET_VALUE
    if column.nullable:
        mode = out.select_one(
            f"{column.name} ({column.data_type})",
            [
                questionary.Choice("Enter value", value=SET_VALUE),
                questionary.Choice("Set to NULL", value=SET_NULL),
                questionary.Choice("Keep current", value=KEEP),
            ],
        )
    if mode in (None, KEEP):
        return None
    if mode == SET_NULL:
        return CellValue.null()

    default = "" if current is None else CellValue.from_raw(current).display()
    while True:
        text = out.ask_text(f"{column.name} ({column.data_type})", default=default)
        if text is None:
            return None
        try:
            return parse_cell_input(text, column.data_type)
        except ValueError as exc:
            out.warn(str(exc))


def prompt_primary_key(schema: TableSchema) -> dict[str, Any] | None:
    """Ask for every primary-key column of the table; None when cancelled."""
    key: dict[str, Any] = {}
    for name in schema.primary_keys:
        column = schema.column(name)
        while True:
            text = out.ask_text(f"Primary key {name} ({column.data_type})")
            if text is None:
                return None
            try:
                key[name] = parse_cell_input(text, column.data_type).to_raw()
                break
            except ValueError as exc:
                out.warn(str(exc))
    return key


def select_columns(schema: TableSchema, *, include_keys: bool) -> list[ColumnDescriptor]:
    """Checkbox prompt over the table's columns."""
    choices = [
        questionary.Choice(title=column_choice_title(c), value=c)
        for c in schema.columns
        if include_keys or not c.is_primary_key
    ]
    if not choices:
        return []
    return (
        questionary.checkbox(
            "Select columns:",
            choices=choices,
            style=QUESTIONARY_STYLE_SELECT,
        ).ask()
        or []
    )


def select_changes(changes: list[PendingChange]) -> list[PendingChange]:
    """Checkbox prompt over staged changes (used for discard)."""
    choices = [questionary.Choice(title=change_choice_title(c), value=c) for c in changes]
    if not choices:
        return []
    return (
        questionary.checkbox(
            "Select changes:",
            choices=choices,
            style=QUESTIONARY_STYLE_SELECT,
        ).ask()
        or []
    )
