"""Time-to-live cache of table schemas per connection.

Expiry is checked lazily when an entry is read. Expired entries stay in
the store until they are overwritten or cleared, but are never returned.
A `put` always replaces the whole snapshot for a table; column lists
from different fetches are never merged.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from dbdesk.core.models import TableSchema
from dbdesk.core.settings import DEFAULT_SCHEMA_CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class _CacheEntry:
    schema: TableSchema
    fetched_at: float


class SchemaCache:
    """Keyed store of (connection, table) -> TableSchema with lazy expiry."""

    def __init__(
        self,
        ttl: float = DEFAULT_SCHEMA_CACHE_TTL_SECONDS,
        clock: Clock = time.monotonic,
    ) -> None:
        """
        Create an empty cache.

        Args:
            ttl: Entry lifetime in seconds.
            clock: Monotonic time source, injectable for tests.
        """
        if ttl < 0:
            raise ValueError("ttl must be >= 0")
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, dict[str, _CacheEntry]] = {}

    def _is_fresh(self, entry: _CacheEntry) -> bool:
        return self._clock() - entry.fetched_at <= self.ttl

    def put(self, connection_id: str, table_name: str, schema: TableSchema) -> None:
        """Insert or overwrite the snapshot for a table, stamped with now."""
        self._entries.setdefault(connection_id, {})[table_name] = _CacheEntry(
            schema=schema, fetched_at=self._clock()
        )
        logger.debug("Cached schema for %s on %s", table_name, connection_id)

    def get(self, connection_id: str, table_name: str) -> TableSchema | None:
        """Return the cached schema, or None if missing or expired."""
        entry = self._entries.get(connection_id, {}).get(table_name)
        if entry is None or not self._is_fresh(entry):
            return None
        return entry.schema

    def get_all(self, connection_id: str) -> dict[str, TableSchema]:
        """Return every non-expired schema cached for a connection."""
        return {
            name: entry.schema
            for name, entry in self._entries.get(connection_id, {}).items()
            if self._is_fresh(entry)
        }

    def is_expired(self, connection_id: str, table_name: str) -> bool:
        """
        True when no fresh entry exists.

        Combine with `has_entry` to tell "never fetched" apart from
        "fetched but stale".
        """
        entry = self._entries.get(connection_id, {}).get(table_name)
        if entry is None:
            return True
        return not self._is_fresh(entry)

    def has_entry(self, connection_id: str, table_name: str) -> bool:
        """True when a snapshot is stored, fresh or not."""
        return table_name in self._entries.get(connection_id, {})

    def peek_stale(self, connection_id: str, table_name: str) -> TableSchema | None:
        """Return the stored snapshot even when expired (show-while-refreshing)."""
        entry = self._entries.get(connection_id, {}).get(table_name)
        return entry.schema if entry else None

    def clear(self, connection_id: str) -> None:
        """Evict all entries of one connection."""
        self._entries.pop(connection_id, None)

    def clear_all(self) -> None:
        """Evict every entry."""
        self._entries.clear()
