"""Schema fetching with cache fill-through.

The service is the only writer of the schema cache: on a miss (or an
expired entry) it fetches the schema through the backend and stores the
fresh snapshot. Fetch failures are logged and reported as None so a cold
or unreachable backend degrades to "no schema shown".
"""

from __future__ import annotations

import logging
from typing import Iterable

from dbdesk.core.backend import SchemaBackend
from dbdesk.core.completion import SchemaLookup, resolve_table
from dbdesk.core.models import DEFAULT_SCHEMA, TableDescriptor, TableSchema
from dbdesk.core.schema_cache import SchemaCache
from dbdesk.core.sql_context import extract_table_references

logger = logging.getLogger(__name__)


class SchemaService:
    """Read-through access to table schemas for one client instance."""

    def __init__(
        self,
        cache: SchemaCache,
        backend: SchemaBackend,
        *,
        default_schema: str = DEFAULT_SCHEMA,
    ) -> None:
        self.cache = cache
        self.backend = backend
        self.default_schema = default_schema

    def cache_key(self, table: TableDescriptor | str) -> str:
        """Return the cache key used for a table (its display name)."""
        if isinstance(table, TableDescriptor):
            return table.display_name(self.default_schema)
        return table

    async def _fetch(self, connection_id: str, table_name: str) -> TableSchema | None:
        try:
            schema = await self.backend.fetch_table_schema(connection_id, table_name)
        except Exception as e:  # noqa: BLE001
            logger.warning("Schema fetch for %s failed: %s", table_name, e)
            return None
        if schema is None:
            logger.warning("Schema for %s is not available", table_name)
            return None
        self.cache.put(connection_id, table_name, schema)
        return schema

    async def ensure(
        self, connection_id: str, table: TableDescriptor | str
    ) -> TableSchema | None:
        """Return a fresh schema from the cache, fetching it on a miss."""
        key = self.cache_key(table)
        cached = self.cache.get(connection_id, key)
        if cached is not None:
            return cached
        if self.cache.has_entry(connection_id, key):
            logger.debug("Schema for %s expired, refetching", key)
        return await self._fetch(connection_id, key)

    async def refresh(
        self, connection_id: str, table: TableDescriptor | str
    ) -> TableSchema | None:
        """Fetch a schema regardless of the cache and store it."""
        return await self._fetch(connection_id, self.cache_key(table))

    async def ensure_many(
        self, connection_id: str, tables: Iterable[TableDescriptor | str]
    ) -> dict[str, TableSchema]:
        """Warm several tables, one fetch at a time; return those that resolved."""
        out: dict[str, TableSchema] = {}
        for table in tables:
            schema = await self.ensure(connection_id, table)
            if schema is not None:
                out[self.cache_key(table)] = schema
        return out

    async def prefetch_referenced(
        self,
        connection_id: str,
        sql: str,
        known_tables: Iterable[TableDescriptor],
    ) -> dict[str, TableSchema]:
        """Warm the cache for every known table referenced after FROM/JOIN."""
        tables = list(known_tables)
        wanted: list[TableDescriptor] = []
        for name in extract_table_references(sql):
            table = resolve_table(name, tables, default_schema=self.default_schema)
            if table is not None and table not in wanted:
                wanted.append(table)
        return await self.ensure_many(connection_id, wanted)

    def lookup_for(self, connection_id: str) -> SchemaLookup:
        """Return the read-only schema lookup used by the completion resolver."""

        def lookup(table_name: str) -> TableSchema | None:
            return self.cache.get(connection_id, table_name)

        return lookup
