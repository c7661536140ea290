"""Common CLI options for the CLI."""

import typer

ProfileOpt = typer.Option(
    None,
    "--profile",
    "-p",
    help="Databricks CLI profile (from ~/.databrickscfg)",
)

WarehouseOpt = typer.Option(
    ...,
    "--warehouse",
    "-w",
    envvar="DBDESK_WAREHOUSE",
    help="SQL warehouse name or id used to run statements",
)

CatalogOpt = typer.Option(
    ...,
    "--catalog",
    "-c",
    envvar="DBDESK_CATALOG",
    help="Catalog whose tables are browsed and edited",
)

VerboseOpt = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Log debug output",
)

RefreshOpt = typer.Option(
    False,
    "--refresh",
    help="Bypass the schema cache and fetch again",
)

PrefixOpt = typer.Option(
    False,
    "--prefix",
    help="Only show candidates starting with the word under the cursor",
)

PkOpt = typer.Option(
    [],
    "--pk",
    help="Primary key column (key=value). Repeatable.",
    show_default=False,
)

SetOpt = typer.Option(
    [],
    "--set",
    help="Column to write (key=value). Repeatable.",
    show_default=False,
)

NullOpt = typer.Option(
    [],
    "--null",
    help="Column to set to NULL. Repeatable.",
    show_default=False,
)

DryRunOpt = typer.Option(
    False,
    "--dry-run",
    help="Show the staged change, but don't commit anything",
)

YesOpt = typer.Option(False, "--yes", help="Skip confirmation prompt")
