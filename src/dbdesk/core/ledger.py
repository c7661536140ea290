"""Pending edit ledger: uncommitted row mutations keyed by primary key.

Each row has at most one staged slot, identified by the canonical
serialization of its primary key. Staging the same row again replaces the
slot in place (last write wins). Slot order is the order in which a row
was first staged, and is the order in which a commit replays the ledger.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterator, Mapping

from dbdesk.core.values import CellValue, normalize_row


class ChangeType(str, Enum):
    """Kind of a staged row mutation."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


def canonical_key(primary_key: Mapping[str, Any]) -> str:
    """
    Return the stable serialized form of a primary-key mapping.

    Column order in the mapping does not affect the key.
    """
    return json.dumps(
        normalize_row(dict(primary_key)),
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )


@dataclass(frozen=True)
class PendingChange:
    """
    A row mutation recorded locally but not yet applied remotely.

    Attributes:
        type: insert, update or delete.
        table_name: Table the row belongs to.
        primary_key: Primary-key column -> value; its canonical form is the ledger key.
        new_data: Column -> value to write (insert/update).
        original_data: Row values before the edit, for diff rendering.
        id: Unique change id.
    """

    type: ChangeType
    table_name: str
    primary_key: Mapping[str, Any]
    new_data: Mapping[str, Any] | None = None
    original_data: Mapping[str, Any] | None = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", ChangeType(self.type))
        object.__setattr__(self, "primary_key", normalize_row(dict(self.primary_key)))
        if self.new_data is not None:
            object.__setattr__(self, "new_data", normalize_row(dict(self.new_data)))
        if self.original_data is not None:
            object.__setattr__(
                self, "original_data", normalize_row(dict(self.original_data))
            )

    @property
    def key(self) -> str:
        return canonical_key(self.primary_key)

    def changed_columns(self) -> dict[str, tuple[CellValue, CellValue]]:
        """Column -> (before, after) for columns whose value differs."""
        before = self.original_data or {}
        out: dict[str, tuple[CellValue, CellValue]] = {}
        for column, value in (self.new_data or {}).items():
            old = CellValue.from_raw(before.get(column))
            new = CellValue.from_raw(value)
            if column not in before or old != new:
                out[column] = (old, new)
        return out


class PendingEditLedger:
    """
    In-memory set of staged changes, at most one per canonical key.

    The key is the primary key alone, without the table name, so rows of
    different tables with equal key values share one slot. Keep one ledger
    per table when editing several tables at once.
    """

    def __init__(self) -> None:
        self._changes: dict[str, PendingChange] = {}
        self._order: list[str] = []

    def stage(self, change: PendingChange) -> str:
        """
        Set or overwrite the slot for the change's primary key.

        Returns:
            The canonical key of the slot.
        """
        key = change.key
        if key not in self._changes:
            self._order.append(key)
        self._changes[key] = change
        return key

    def stage_cell_edit(
        self,
        table_name: str,
        primary_key: Mapping[str, Any],
        column: str,
        value: Any,
        *,
        original_row: Mapping[str, Any] | None = None,
    ) -> str:
        """
        Stage a single edited cell, merged into any existing slot of the row.

        An existing insert stays an insert; an existing delete is replaced
        by an update. Repeated edits of one cell keep only the last value.
        A slot holding a change for another table is overwritten, not merged.
        """
        raw = CellValue.from_raw(value).to_raw()
        existing = self._changes.get(canonical_key(primary_key))

        if (
            existing is not None
            and existing.table_name == table_name
            and existing.type is not ChangeType.DELETE
        ):
            merged = dict(existing.new_data or {})
            merged[column] = raw
            return self.stage(replace(existing, new_data=merged))

        return self.stage(
            PendingChange(
                type=ChangeType.UPDATE,
                table_name=table_name,
                primary_key=primary_key,
                new_data={column: raw},
                original_data=original_row,
            )
        )

    def unstage(self, key: str) -> None:
        """Remove one slot; unknown keys are ignored."""
        if self._changes.pop(key, None) is not None:
            self._order.remove(key)

    def clear(self) -> None:
        self._changes.clear()
        self._order.clear()

    def get(self, key: str) -> PendingChange | None:
        return self._changes.get(key)

    def contains(self, key: str) -> bool:
        return key in self._changes

    def keys(self) -> list[str]:
        return list(self._order)

    def entries(self) -> list[PendingChange]:
        """Snapshot of staged changes in first-staged order."""
        return [self._changes[k] for k in self._order]

    def items(self) -> list[tuple[str, PendingChange]]:
        return [(k, self._changes[k]) for k in self._order]

    @property
    def is_dirty(self) -> bool:
        return bool(self._changes)

    def __len__(self) -> int:
        return len(self._changes)

    def __iter__(self) -> Iterator[PendingChange]:
        return iter(self.entries())

    def __contains__(self, key: object) -> bool:
        return key in self._changes
