from __future__ import annotations

import asyncio
import json
import logging
import math
from typing import Any, Mapping

from databricks.sdk import WorkspaceClient
from databricks.sdk.errors import DatabricksError
from databricks.sdk.service.sql import (
    ExecuteStatementRequestOnWaitTimeout,
    StatementParameterListItem,
    StatementState,
)

from dbdesk.core.backend import StatementTimedOut
from dbdesk.core.models import (
    ColumnDescriptor,
    MutationResult,
    TableDescriptor,
    TableSchema,
    strip_delimiters,
)

logger = logging.getLogger(__name__)

# The statement API accepts waits of 5 to 50 seconds before it cancels
_MIN_WAIT_SECONDS = 5
_MAX_WAIT_SECONDS = 50


def quote_identifier(name: str) -> str:
    """Quote one identifier part with backticks."""
    return "`" + name.replace("`", "``") + "`"


def quote_table_name(full_name: str) -> str:
    """Quote every part of a dotted table name."""
    return ".".join(quote_identifier(part) for part in full_name.split("."))


def _param(name: str, value: Any) -> StatementParameterListItem:
    """Build a typed statement parameter; None becomes SQL NULL."""
    if value is None:
        return StatementParameterListItem(name=name)
    if isinstance(value, bool):
        return StatementParameterListItem(
            name=name, value="true" if value else "false", type="BOOLEAN"
        )
    if isinstance(value, int):
        return StatementParameterListItem(name=name, value=str(value), type="BIGINT")
    if isinstance(value, float):
        return StatementParameterListItem(name=name, value=repr(value), type="DOUBLE")
    if isinstance(value, (dict, list)):
        return StatementParameterListItem(name=name, value=json.dumps(value), type="STRING")
    return StatementParameterListItem(name=name, value=str(value), type="STRING")


def build_insert(
    full_name: str, new_data: Mapping[str, Any]
) -> tuple[str, list[StatementParameterListItem]]:
    """Return a parameterised INSERT for one row."""
    columns = list(new_data)
    params = [_param(f"p{i}", new_data[c]) for i, c in enumerate(columns)]
    sql = (
        f"INSERT INTO {quote_table_name(full_name)} "
        f"({', '.join(quote_identifier(c) for c in columns)}) "
        f"VALUES ({', '.join(f':p{i}' for i in range(len(columns)))})"
    )
    return sql, params


def _where(primary_key: Mapping[str, Any]) -> tuple[str, list[StatementParameterListItem]]:
    # <=> is null-safe equality
    parts = []
    params = []
    for i, (column, value) in enumerate(primary_key.items()):
        parts.append(f"{quote_identifier(column)} <=> :k{i}")
        params.append(_param(f"k{i}", value))
    return " AND ".join(parts), params


def build_update(
    full_name: str, primary_key: Mapping[str, Any], new_data: Mapping[str, Any]
) -> tuple[str, list[StatementParameterListItem]]:
    """Return a parameterised UPDATE of the row identified by primary_key."""
    columns = list(new_data)
    assignments = ", ".join(
        f"{quote_identifier(c)} = :p{i}" for i, c in enumerate(columns)
    )
    params = [_param(f"p{i}", new_data[c]) for i, c in enumerate(columns)]
    where, where_params = _where(primary_key)
    sql = f"UPDATE {quote_table_name(full_name)} SET {assignments} WHERE {where}"
    return sql, params + where_params


def build_delete(
    full_name: str, primary_key: Mapping[str, Any]
) -> tuple[str, list[StatementParameterListItem]]:
    """Return a parameterised DELETE of the row identified by primary_key."""
    where, params = _where(primary_key)
    return f"DELETE FROM {quote_table_name(full_name)} WHERE {where}", params


class DatabricksSqlBackend:
    """Workspace backend over Unity Catalog metadata and a SQL warehouse."""

    def __init__(
        self,
        client: WorkspaceClient,
        *,
        warehouse_id: str,
        catalog: str,
        default_schema: str = "default",
        statement_timeout: float | None = None,
    ) -> None:
        self.client = client
        self.warehouse_id = warehouse_id
        self.catalog = catalog
        self.default_schema = default_schema
        self.statement_timeout = statement_timeout

    @property
    def wait_timeout(self) -> str:
        """Server-side limit after which a mutation is cancelled, e.g. `20s`."""
        seconds = self.statement_timeout or _MAX_WAIT_SECONDS
        seconds = min(max(math.ceil(seconds), _MIN_WAIT_SECONDS), _MAX_WAIT_SECONDS)
        return f"{seconds}s"

    def full_name(self, table_name: str) -> str:
        """Expand `name`, `schema.name` or `catalog.schema.name` to a 3-part name."""
        parts = [strip_delimiters(p) for p in table_name.split(".")]
        if len(parts) == 1:
            return f"{self.catalog}.{self.default_schema}.{parts[0]}"
        if len(parts) == 2:
            return f"{self.catalog}.{parts[0]}.{parts[1]}"
        return ".".join(parts)

    # -- metadata -----------------------------------------------------------

    def _list_tables(self) -> list[TableDescriptor]:
        out: list[TableDescriptor] = []
        for s in self.client.schemas.list(catalog_name=self.catalog):
            schema_name = getattr(s, "name", None)
            if not schema_name or schema_name == "information_schema":
                continue
            for t in self.client.tables.list(
                catalog_name=self.catalog, schema_name=schema_name
            ):
                name = getattr(t, "name", None)
                if not name:
                    continue
                table_type = getattr(t, "table_type", None)
                out.append(
                    TableDescriptor(
                        name=name,
                        schema=getattr(t, "schema_name", None) or schema_name,
                        table_type=getattr(table_type, "value", None)
                        or (str(table_type) if table_type else None),
                    )
                )
        return out

    def _fetch_table_schema(self, table_name: str) -> TableSchema | None:
        full_name = self.full_name(table_name)
        try:
            info = self.client.tables.get(full_name=full_name)
        except DatabricksError as exc:
            logger.warning("Could not load table %s: %s", full_name, exc)
            return None

        pk_columns: set[str] = set()
        for constraint in getattr(info, "table_constraints", None) or []:
            pk = getattr(constraint, "primary_key_constraint", None)
            if pk:
                pk_columns.update(getattr(pk, "child_columns", None) or [])

        columns = []
        for c in getattr(info, "columns", None) or []:
            name = getattr(c, "name", None)
            if not name:
                continue
            nullable = getattr(c, "nullable", None)
            columns.append(
                ColumnDescriptor(
                    name=name,
                    data_type=getattr(c, "type_text", None)
                    or str(getattr(c, "type_name", "") or ""),
                    nullable=True if nullable is None else bool(nullable),
                    is_primary_key=name in pk_columns,
                )
            )
        return TableSchema(table_name=table_name, columns=tuple(columns))

    async def list_tables(self, connection_id: str) -> list[TableDescriptor]:
        """List every table in the configured catalog."""
        return await asyncio.to_thread(self._list_tables)

    async def fetch_table_schema(
        self, connection_id: str, table_name: str
    ) -> TableSchema | None:
        """Read column metadata and primary key from Unity Catalog."""
        return await asyncio.to_thread(self._fetch_table_schema, table_name)

    # -- mutations ----------------------------------------------------------

    def _execute(
        self, sql: str, params: list[StatementParameterListItem]
    ) -> MutationResult | None:
        """
        Run one DML statement and wait for it, cancelling it at the time limit.

        Raises:
            StatementTimedOut: If the warehouse cancelled the statement.
        """
        logger.debug("Executing on %s: %s", self.warehouse_id, sql)
        try:
            resp = self.client.statement_execution.execute_statement(
                statement=sql,
                warehouse_id=self.warehouse_id,
                catalog=self.catalog,
                parameters=params,
                wait_timeout=self.wait_timeout,
                on_wait_timeout=ExecuteStatementRequestOnWaitTimeout.CANCEL,
            )
        except DatabricksError as exc:
            logger.warning("Statement failed: %s", exc)
            return None

        status = getattr(resp, "status", None)
        state = getattr(status, "state", None)
        if state == StatementState.CANCELED:
            raise StatementTimedOut(f"statement cancelled after {self.wait_timeout}")
        if state != StatementState.SUCCEEDED:
            error = getattr(getattr(status, "error", None), "message", None)
            logger.warning("Statement ended in state %s: %s", state, error)
            return None

        return MutationResult(affected_rows=_affected_rows(resp))

    async def apply_insert(
        self, connection_id: str, table_name: str, new_data: Mapping[str, Any]
    ) -> MutationResult | None:
        if not new_data:
            return None
        sql, params = build_insert(self.full_name(table_name), new_data)
        return await asyncio.to_thread(self._execute, sql, params)

    async def apply_update(
        self,
        connection_id: str,
        table_name: str,
        primary_key: Mapping[str, Any],
        new_data: Mapping[str, Any],
    ) -> MutationResult | None:
        # Never touch an unkeyed row set
        if not primary_key or not new_data:
            return None
        sql, params = build_update(self.full_name(table_name), primary_key, new_data)
        return await asyncio.to_thread(self._execute, sql, params)

    async def apply_delete(
        self, connection_id: str, table_name: str, primary_key: Mapping[str, Any]
    ) -> MutationResult | None:
        if not primary_key:
            return None
        sql, params = build_delete(self.full_name(table_name), primary_key)
        return await asyncio.to_thread(self._execute, sql, params)


def _affected_rows(resp: Any) -> int | None:
    """Read `num_affected_rows` from a DML statement response, if present."""
    data = getattr(getattr(resp, "result", None), "data_array", None)
    if not data or not data[0]:
        return None
    try:
        return int(data[0][0])
    except (TypeError, ValueError):
        return None
