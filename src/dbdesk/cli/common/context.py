"""Application context management for the CLI."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Coroutine, TypeVar

from databricks.sdk import WorkspaceClient
from databricks.sdk.errors import DatabricksError

from dbdesk.cli.common.exits import ExitCode, die, exit_from_exc
from dbdesk.cli.common.log_setup import setup_logging
from dbdesk.core.adapters.databricks_sql import DatabricksSqlBackend
from dbdesk.core.backend import WorkspaceBackend
from dbdesk.core.auth import (
    AuthError,
    WarehouseNotFound,
    connection_id_for,
    get_client,
    resolve_warehouse_id,
)
from dbdesk.core.completion import CompletionResolver
from dbdesk.core.models import TableDescriptor
from dbdesk.core.schema_service import SchemaService
from dbdesk.core.settings import load_settings
from dbdesk.core.workspace import WorkspaceState

T = TypeVar("T")


@dataclass
class DeskAppContext:
    """Everything one CLI invocation needs: client, backend and workspace state."""

    profile: str | None
    client: WorkspaceClient
    connection_id: str
    backend: WorkspaceBackend
    state: WorkspaceState
    schemas: SchemaService
    resolver: CompletionResolver

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        """Drive one coroutine on a fresh event loop."""
        return asyncio.run(coro)

    def list_tables(self) -> list[TableDescriptor]:
        return self.run(self.backend.list_tables(self.connection_id))

    def close(self) -> None:
        """Drop cached state for the connection."""
        self.state.disconnect(self.connection_id)


def build_desk_context(
    profile: str | None,
    *,
    warehouse: str,
    catalog: str,
    verbose: bool = False,
) -> DeskAppContext:
    """
    Build the application context: settings, client, backend and workspace state.

    Args:
        profile: Optional Databricks profile name used for authentication.
        warehouse: SQL warehouse name or id.
        catalog: Catalog to browse and edit.
        verbose: Enable debug logging.

    Returns:
        DeskAppContext ready for commands.
    """
    settings = load_settings()
    setup_logging(settings.log_level, verbose=verbose)

    try:
        client = get_client(profile)
    except AuthError as exc:
        die(str(exc))

    try:
        warehouse_id = resolve_warehouse_id(client, warehouse)
    except WarehouseNotFound as exc:
        exit_from_exc(exc, message=str(exc), code=ExitCode.USAGE)
    except DatabricksError as exc:
        exit_from_exc(exc, message=f"Could not list SQL warehouses: {exc}")

    backend = DatabricksSqlBackend(
        client,
        warehouse_id=warehouse_id,
        catalog=catalog,
        default_schema=settings.default_schema,
        statement_timeout=settings.commit_timeout,
    )
    state = WorkspaceState(settings=settings)
    return DeskAppContext(
        profile=profile,
        client=client,
        connection_id=connection_id_for(profile, warehouse_id, catalog),
        backend=backend,
        state=state,
        schemas=SchemaService(
            state.cache, backend, default_schema=settings.default_schema
        ),
        resolver=CompletionResolver(default_schema=settings.default_schema),
    )
