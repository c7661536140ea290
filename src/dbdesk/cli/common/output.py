"""Output formatting utilities for the CLI."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import questionary
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

from dbdesk.cli.common.tui_style import (
    QUESTIONARY_STYLE_CONFIRM,
    QUESTIONARY_STYLE_SELECT,
)
from dbdesk.core.values import CellValue

_THEME = Theme(
    {
        "ok": "bold green",
        "warn": "yellow",
        "err": "bold red",
        "title": "bold cyan",
        "meta": "dim",
        "null": "italic magenta",
    }
)

console = Console(theme=_THEME)


def _cell(value: Any) -> str:
    """Render a raw cell value, keeping NULL visibly distinct from ''."""
    cv = CellValue.from_raw(value)
    if cv.is_null:
        return "[null]NULL[/]"
    if cv.payload == "":
        return "[meta]''[/]"
    return escape(cv.display())


@dataclass(frozen=True)
class Out:
    """Output formatter for CLI messages and tables."""

    def _q_try(self, fn, *args, **kwargs):
        """Call questionary prompts and drop unsupported kwargs on older versions."""
        try:
            return fn(*args, **kwargs)
        except TypeError:
            for k in ("pointer", "auto_enter"):
                kwargs.pop(k, None)
            return fn(*args, **kwargs)

    def _q(self, message: str) -> str:
        return f"[DBDESK] {message}"

    def info(self, msg: str) -> None:
        console.print(f"[title]›[/] {escape(msg)}")

    @contextmanager
    def status(self, msg: str):
        """Show a transient status spinner while work is in progress."""
        with console.status(msg, spinner="dots"):
            yield

    def success(self, msg: str) -> None:
        console.print(f"[ok]✓[/] {escape(msg)}")

    def warn(self, msg: str) -> None:
        console.print(f"[warn]⚠[/] {escape(msg)}")

    def error(self, msg: str) -> None:
        console.print(f"[err]✗[/] {escape(msg)}")

    def header(self, title: str) -> None:
        console.print(f"[title]{title}[/]")

    def kv(self, items: Mapping[str, Any]) -> None:
        for k, v in items.items():
            console.print(f"[meta]{escape(str(k))}[/]: {escape(str(v))}")

    def select_one(self, message: str, choices: list) -> Any:
        """
        Prompt the user to select a single item from a list.

        Returns:
            The selected value, or None if cancelled.
        """
        if not choices:
            return None

        prompt = self._q_try(
            questionary.select,
            self._q(message),
            choices=choices,
            style=QUESTIONARY_STYLE_SELECT,
            qmark="✦",
            instruction="Use ↑/↓ then Enter",
            pointer="❯",
        )
        return prompt.ask()

    def ask_text(self, message: str, *, default: str = "") -> str | None:
        """Free-text prompt; None when cancelled."""
        prompt = questionary.text(
            self._q(message), default=default, style=QUESTIONARY_STYLE_SELECT, qmark="✦"
        )
        return prompt.ask()

    def confirm(self, message: str, *, default: bool = False) -> bool:
        """
        Ask the user for confirmation using a standardized Questionary prompt.

        Args:
            message: Confirmation question shown to the user.
            default: Default answer if the user just presses enter.

        Returns:
            True if the user confirms, False otherwise.
        """
        console.print("[meta]Use y/n then Enter[/]")

        prompt = self._q_try(
            questionary.confirm,
            self._q(message),
            default=default,
            style=QUESTIONARY_STYLE_CONFIRM,
            qmark="✦",
            auto_enter=False,
            pointer="❯",
        )
        return bool(prompt.ask())

    def tables_table(self, tables: Iterable[Any], *, default_schema: str, title: str = "Tables") -> None:
        """Expects TableDescriptor-like objects with .name .schema .table_type."""
        t = Table(title=title, show_lines=False)
        t.add_column("Name", style="ok")
        t.add_column("Schema", style="meta")
        t.add_column("Type", style="meta")

        for item in tables:
            t.add_row(
                escape(item.display_name(default_schema)),
                escape(str(getattr(item, "schema", "") or "")),
                escape(str(getattr(item, "table_type", "") or "")),
            )

        console.print(t)

    def columns_table(self, schema: Any, title: str | None = None) -> None:
        """Render the columns of a TableSchema."""
        t = Table(title=title or schema.table_name, show_lines=False)
        t.add_column("Column", style="ok")
        t.add_column("Type")
        t.add_column("Nullable", style="meta")
        t.add_column("PK", style="meta")

        for c in schema.columns:
            t.add_row(
                escape(c.name),
                escape(c.data_type),
                "yes" if c.nullable else "no",
                "yes" if c.is_primary_key else "",
            )

        console.print(t)

    def candidates_table(self, candidates: Iterable[Any], title: str = "Completions") -> None:
        """Expects CompletionCandidate objects."""
        t = Table(title=title, show_lines=False)
        t.add_column("Label", style="ok")
        t.add_column("Kind", style="meta")
        t.add_column("Detail")
        t.add_column("Documentation", style="meta")

        for c in candidates:
            t.add_row(
                escape(c.label),
                c.kind.value,
                escape(c.detail or ""),
                escape(c.documentation or ""),
            )

        console.print(t)

    def pending_changes_table(self, changes: Iterable[Any], title: str = "Pending changes") -> None:
        """Render staged PendingChange objects with their before/after values."""
        t = Table(title=title, show_lines=True)
        t.add_column("Type", style="title", no_wrap=True)
        t.add_column("Table")
        t.add_column("Key", style="meta")
        t.add_column("Changes")

        for ch in changes:
            key = ", ".join(f"{escape(k)}={_cell(v)}" for k, v in ch.primary_key.items())
            if ch.type.value == "delete":
                detail = "[err]row removed[/]"
            elif ch.original_data:
                detail = "\n".join(
                    f"{escape(col)}: {_cell(before.to_raw())} → {_cell(after.to_raw())}"
                    for col, (before, after) in ch.changed_columns().items()
                )
            else:
                detail = "\n".join(
                    f"{escape(col)} = {_cell(v)}" for col, v in (ch.new_data or {}).items()
                )
            t.add_row(ch.type.value, escape(ch.table_name), key, detail)

        console.print(t)

    def commit_results_table(self, result: Any, title: str = "Commit results") -> None:
        """Render per-change outcomes of a CommitResult."""
        t = Table(title=title, show_lines=False)
        t.add_column("Type", style="meta")
        t.add_column("Table")
        t.add_column("Key", style="meta")
        t.add_column("Result")

        for o in result.outcomes:
            status = "[ok]OK[/]" if o.ok else f"[err]{o.status.value}[/] {escape(o.error or '')}"
            if o.ok and o.affected_rows is not None:
                status += f" [meta]({o.affected_rows} row(s))[/]"
            t.add_row(o.change.type.value, escape(o.change.table_name), escape(o.key), status)

        console.print(t)


out = Out()
