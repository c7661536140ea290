"""Commands for staging row edits and committing them."""

from __future__ import annotations

from typing import Any

import questionary
import typer

from dbdesk.cli.commands.browse import load_tables_or_exit, resolve_table_or_exit
from dbdesk.cli.common.context import DeskAppContext
from dbdesk.cli.common.exits import die, exit_for_commit, ok_exit, usage_error, warn_exit
from dbdesk.cli.common.options import DryRunOpt, NullOpt, PkOpt, SetOpt, YesOpt
from dbdesk.cli.common.output import out
from dbdesk.cli.common.row_input import missing_primary_key, parse_assignments, typed_row
from dbdesk.cli.tui import (
    prompt_cell_value,
    prompt_primary_key,
    select_changes,
    select_columns,
)
from dbdesk.core.commit import CommitResult, OutcomeStatus, commit_changes, commit_summary
from dbdesk.core.ledger import ChangeType, PendingChange
from dbdesk.core.models import TableSchema
from dbdesk.core.settings import CommitMode

_RESPONSE_GRACE_SECONDS = 30.0


def _load_schema_or_exit(appctx: DeskAppContext, table: str) -> tuple[str, TableSchema]:
    tables = load_tables_or_exit(appctx)
    descriptor = resolve_table_or_exit(appctx, tables, table)
    with out.status("Loading schema..."):
        schema = appctx.run(appctx.schemas.ensure(appctx.connection_id, descriptor))
    if schema is None:
        die(f"Schema for '{table}' is not available.")
    return appctx.schemas.cache_key(descriptor), schema


def insert_identity(schema: TableSchema, row: dict[str, Any]) -> dict[str, Any]:
    """Ledger identity of a new row: its primary-key values, else the row itself."""
    key = {c: row[c] for c in schema.primary_keys if c in row}
    return key or dict(row)


def client_wait_limit(commit_timeout: float | None) -> float | None:
    """
    How long the client waits for one mutation.

    The warehouse cancels a statement at `commit_timeout` itself; the client
    waits a little longer so that cancellation is what it normally observes.
    """
    if not commit_timeout:
        return None
    return commit_timeout + _RESPONSE_GRACE_SECONDS


def commit_and_report(appctx: DeskAppContext) -> CommitResult:
    """Commit the ledger and print per-change results plus the summary line."""
    ledger = appctx.state.ledger
    with out.status(f"Committing {len(ledger)} change(s)..."):
        result = appctx.run(
            commit_changes(
                ledger,
                appctx.backend,
                appctx.connection_id,
                timeout=client_wait_limit(appctx.state.settings.commit_timeout),
            )
        )
    if result.outcomes:
        out.commit_results_table(result)
    summary = commit_summary(result)
    if result.failed:
        out.warn(summary)
    else:
        out.success(summary)

    unsettled = [o for o in result.outcomes if o.status is OutcomeStatus.STILL_RUNNING]
    if unsettled:
        out.warn(
            f"{len(unsettled)} change(s) may still be applied remotely; "
            "check those rows before committing them again."
        )
    return result


def apply(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Table name (bare or schema.table)"),
    pk: list[str] = PkOpt,
    set_: list[str] = SetOpt,
    null: list[str] = NullOpt,
    delete: bool = typer.Option(False, "--delete", help="Delete the row"),
    insert: bool = typer.Option(False, "--insert", help="Insert a new row"),
    dry_run: bool = DryRunOpt,
    yes: bool = YesOpt,
):
    """Stage one row change and commit it."""
    appctx: DeskAppContext = ctx.obj
    if delete and insert:
        usage_error("--delete and --insert are mutually exclusive.")

    table_name, schema = _load_schema_or_exit(appctx, table)

    try:
        key = typed_row(schema, parse_assignments(pk, option="--pk"))
        values = typed_row(schema, parse_assignments(set_, option="--set"), null)
    except ValueError as exc:
        usage_error(str(exc))

    if insert:
        row = {**key, **values}
        if not row:
            usage_error("Nothing to insert; use --set/--null.")
        change = PendingChange(
            type=ChangeType.INSERT,
            table_name=table_name,
            primary_key=insert_identity(schema, row),
            new_data=row,
        )
    else:
        missing = missing_primary_key(schema, key)
        if not key or missing:
            usage_error(
                "Missing primary key column(s): "
                + ", ".join(missing or schema.primary_keys or ["<none defined>"])
            )
        if delete:
            change = PendingChange(type=ChangeType.DELETE, table_name=table_name, primary_key=key)
        else:
            if not values:
                usage_error("Nothing to update; use --set/--null.")
            change = PendingChange(
                type=ChangeType.UPDATE,
                table_name=table_name,
                primary_key=key,
                new_data=values,
            )

    ledger = appctx.state.ledger
    ledger.stage(change)
    out.pending_changes_table(ledger.entries())

    if dry_run:
        warn_exit("DRY RUN: no changes were committed.")

    if not yes and not out.confirm("Commit this change?"):
        ok_exit("Cancelled")

    exit_for_commit(commit_and_report(appctx))


def _stage_update(appctx: DeskAppContext, table_name: str, schema: TableSchema) -> bool:
    key = prompt_primary_key(schema)
    if not key:
        return False
    staged = False
    for column in select_columns(schema, include_keys=False):
        value = prompt_cell_value(column)
        if value is not None:
            appctx.state.ledger.stage_cell_edit(table_name, key, column.name, value)
            staged = True
    return staged


def _stage_insert(appctx: DeskAppContext, table_name: str, schema: TableSchema) -> bool:
    row: dict[str, Any] = {}
    for column in select_columns(schema, include_keys=True):
        value = prompt_cell_value(column)
        if value is not None:
            row[column.name] = value.to_raw()
    if not row:
        out.warn("No values entered.")
        return False
    appctx.state.ledger.stage(
        PendingChange(
            type=ChangeType.INSERT,
            table_name=table_name,
            primary_key=insert_identity(schema, row),
            new_data=row,
        )
    )
    return True


def _stage_delete(appctx: DeskAppContext, table_name: str, schema: TableSchema) -> bool:
    key = prompt_primary_key(schema)
    if not key:
        return False
    appctx.state.ledger.stage(
        PendingChange(type=ChangeType.DELETE, table_name=table_name, primary_key=key)
    )
    return True


def edit(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Table name (bare or schema.table)"),
):
    """Interactive session: stage row edits, review, discard and commit."""
    appctx: DeskAppContext = ctx.obj
    state = appctx.state
    ledger = state.ledger
    table_name, schema = _load_schema_or_exit(appctx, table)
    out.columns_table(schema, title=table_name)

    keyed = bool(schema.primary_keys)
    if not keyed:
        out.warn("Table has no primary key: only inserts can be staged.")

    stagers = {"update": _stage_update, "insert": _stage_insert, "delete": _stage_delete}

    while True:
        action = out.select_one(
            f"{table_name} | pending: {len(ledger)} | mode: {state.commit_mode.value}",
            [
                questionary.Choice("Update a row", value="update", disabled=None if keyed else "no primary key"),
                questionary.Choice("Insert a row", value="insert"),
                questionary.Choice("Delete a row", value="delete", disabled=None if keyed else "no primary key"),
                questionary.Choice("Review pending changes", value="review"),
                questionary.Choice("Discard changes", value="discard"),
                questionary.Choice("Commit", value="commit"),
                questionary.Choice("Toggle commit mode", value="mode"),
                questionary.Choice("Quit", value="quit"),
            ],
        )

        if action in (None, "quit"):
            if ledger.is_dirty and not out.confirm(
                f"Discard {len(ledger)} pending change(s) and quit?"
            ):
                continue
            break

        if action in stagers:
            if stagers[action](appctx, table_name, schema) and state.commit_mode is CommitMode.IMMEDIATE:
                commit_and_report(appctx)
        elif action == "review":
            if ledger.is_dirty:
                out.pending_changes_table(ledger.entries())
            else:
                out.info("No pending changes.")
        elif action == "discard":
            for change in select_changes(ledger.entries()):
                ledger.unstage(change.key)
        elif action == "commit":
            if ledger.is_dirty:
                commit_and_report(appctx)
            else:
                out.info("No pending changes.")
        elif action == "mode":
            state.commit_mode = (
                CommitMode.IMMEDIATE
                if state.commit_mode is CommitMode.STAGED
                else CommitMode.STAGED
            )

    appctx.close()
