"""Commands for browsing tables, schemas and SQL completions."""

from __future__ import annotations

import typer
from databricks.sdk.errors import DatabricksError, PermissionDenied

from dbdesk.cli.common.context import DeskAppContext
from dbdesk.cli.common.exits import die, exit_from_exc, usage_error, warn_exit
from dbdesk.cli.common.options import PrefixOpt, RefreshOpt
from dbdesk.cli.common.output import out
from dbdesk.core.completion import resolve_table
from dbdesk.core.models import TableDescriptor


def load_tables_or_exit(appctx: DeskAppContext) -> list[TableDescriptor]:
    """List tables of the connection and turn API errors into CLI exits."""
    try:
        with out.status("Loading tables..."):
            return appctx.list_tables()
    except PermissionDenied as exc:
        exit_from_exc(exc, message="No permission to list tables.")
    except DatabricksError as exc:
        exit_from_exc(exc, message=f"Could not list tables: {exc}")


def resolve_table_or_exit(
    appctx: DeskAppContext, tables: list[TableDescriptor], table: str
) -> TableDescriptor:
    """Resolve a table argument against the directory or exit with code 2."""
    found = resolve_table(table, tables, default_schema=appctx.schemas.default_schema)
    if found is None:
        usage_error(f"Table '{table}' not found or ambiguous; qualify it as schema.table.")
    return found


def tables_list(
    ctx: typer.Context,
    schema: str | None = typer.Option(None, "--schema", help="Only tables of this schema"),
):
    """List tables of the connection."""
    appctx: DeskAppContext = ctx.obj
    tables = load_tables_or_exit(appctx)

    if schema:
        tables = [t for t in tables if (t.schema or "").lower() == schema.lower()]

    if not tables:
        warn_exit("No tables found.")

    out.header("Tables")
    out.info(f"Connection: {appctx.connection_id} | Tables: {len(tables)}")
    out.tables_table(tables, default_schema=appctx.schemas.default_schema)


def schema_show(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Table name (bare or schema.table)"),
    refresh: bool = RefreshOpt,
):
    """Show the columns of one table."""
    appctx: DeskAppContext = ctx.obj
    tables = load_tables_or_exit(appctx)
    descriptor = resolve_table_or_exit(appctx, tables, table)

    with out.status("Loading schema..."):
        if refresh:
            schema = appctx.run(appctx.schemas.refresh(appctx.connection_id, descriptor))
        else:
            schema = appctx.run(appctx.schemas.ensure(appctx.connection_id, descriptor))

    if schema is None:
        die(f"Schema for '{table}' is not available.")

    out.kv(
        {
            "Table": descriptor.qualified_name,
            "Type": descriptor.table_type or "TABLE",
            "Primary key": ", ".join(schema.primary_keys) or "-",
        }
    )
    out.columns_table(schema, title=appctx.schemas.cache_key(descriptor))


def complete(
    ctx: typer.Context,
    sql: str = typer.Argument(..., help="SQL text"),
    cursor: int | None = typer.Option(
        None, "--cursor", help="Cursor offset in the text (default: end)"
    ),
    prefix: bool = PrefixOpt,
):
    """Show completion candidates for a cursor position in SQL text."""
    appctx: DeskAppContext = ctx.obj
    pos = len(sql) if cursor is None else cursor
    if pos < 0 or pos > len(sql):
        usage_error(f"--cursor must be between 0 and {len(sql)}.")
    before, after = sql[:pos], sql[pos:]

    tables = load_tables_or_exit(appctx)
    needed = appctx.resolver.tables_needed(before, tables, text_after_cursor=after)
    if needed:
        with out.status("Loading schemas..."):
            appctx.run(appctx.schemas.ensure_many(appctx.connection_id, needed))

    candidates = appctx.resolver.resolve(
        before,
        tables,
        appctx.schemas.lookup_for(appctx.connection_id),
        text_after_cursor=after,
        filter_prefix=prefix,
    )
    if not candidates:
        warn_exit("No completions.")

    out.candidates_table(candidates)
