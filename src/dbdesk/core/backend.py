"""Remote backend interface consumed by the workspace engine.

The engine never talks to a database directly. Schema discovery and row
mutations go through this request/response boundary. By convention a
mutation that returns None has failed; any non-None result is a success.
A mutation cancelled at its time limit raises StatementTimedOut.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol

from dbdesk.core.models import MutationResult, TableDescriptor, TableSchema


class SchemaBackend(Protocol):
    """Interface for table discovery and schema fetches."""

    async def list_tables(self, connection_id: str) -> list[TableDescriptor]:
        """Return every table visible on the connection."""
        ...

    async def fetch_table_schema(
        self, connection_id: str, table_name: str
    ) -> TableSchema | None:
        """Return the schema of one table, or None if it cannot be fetched."""
        ...


class MutationBackend(Protocol):
    """Interface for applying single-row mutations."""

    async def apply_insert(
        self,
        connection_id: str,
        table_name: str,
        new_data: Mapping[str, Any],
    ) -> MutationResult | None:
        """Insert one row."""
        ...

    async def apply_update(
        self,
        connection_id: str,
        table_name: str,
        primary_key: Mapping[str, Any],
        new_data: Mapping[str, Any],
    ) -> MutationResult | None:
        """Update the row identified by primary_key."""
        ...

    async def apply_delete(
        self,
        connection_id: str,
        table_name: str,
        primary_key: Mapping[str, Any],
    ) -> MutationResult | None:
        """Delete the row identified by primary_key."""
        ...


class WorkspaceBackend(SchemaBackend, MutationBackend, Protocol):
    """Full remote surface used by the CLI shell."""


class StatementTimedOut(Exception):
    """
    A mutation hit its time limit and was cancelled by the remote store.

    The statement did not take effect, so the change can be retried.
    """
