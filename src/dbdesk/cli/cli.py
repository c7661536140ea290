"""CLI application for the dbdesk database workspace."""

import typer

from dbdesk.cli.commands.browse import complete, schema_show, tables_list
from dbdesk.cli.commands.edit import apply, edit
from dbdesk.cli.common.context import build_desk_context
from dbdesk.cli.common.options import CatalogOpt, ProfileOpt, VerboseOpt, WarehouseOpt

app = typer.Typer(
    help="dbdesk - browse, complete and edit tables on a SQL warehouse",
    no_args_is_help=True,
)


@app.callback()
def _init(
    ctx: typer.Context,
    profile: str | None = ProfileOpt,
    warehouse: str = WarehouseOpt,
    catalog: str = CatalogOpt,
    verbose: bool = VerboseOpt,
):
    """Connect to the workspace once per invocation."""
    ctx.obj = build_desk_context(
        profile, warehouse=warehouse, catalog=catalog, verbose=verbose
    )


app.command("tables")(tables_list)
app.command("schema")(schema_show)
app.command("complete")(complete)
app.command("edit")(edit)
app.command("apply")(apply)


if __name__ == "__main__":
    app()
