"""Commit coordination: replay staged edits against the remote store.

Changes are applied one at a time, in ledger order, each awaited before
the next starts. A change leaves the live ledger as soon as it succeeds;
failures stay staged untouched so the user can retry or discard them.
Commits are best-effort, never all-or-nothing, and never retried
automatically.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Optional

from dbdesk.core.backend import MutationBackend, StatementTimedOut
from dbdesk.core.ledger import ChangeType, PendingChange, PendingEditLedger
from dbdesk.core.models import MutationResult

logger = logging.getLogger(__name__)

ApplyOne = Callable[[PendingChange], Awaitable[Optional[MutationResult]]]


class OutcomeStatus(str, Enum):
    """
    Result of applying one staged change.

    Values:
        APPLIED: The backend returned a result; the slot was removed.
        REJECTED: The backend returned None.
        ERROR: The call raised.
        TIMED_OUT: The remote store cancelled the mutation at its time limit;
            nothing was written and the change can be retried.
        STILL_RUNNING: The client stopped waiting; the mutation may still
            complete remotely, so check the row before retrying.
    """

    APPLIED = "APPLIED"
    REJECTED = "REJECTED"
    ERROR = "ERROR"
    TIMED_OUT = "TIMED_OUT"
    STILL_RUNNING = "STILL_RUNNING"


@dataclass(frozen=True)
class ChangeOutcome:
    """Outcome of one change within a commit."""

    key: str
    change: PendingChange
    status: OutcomeStatus
    error: str | None = None
    affected_rows: int | None = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.APPLIED


@dataclass(frozen=True)
class CommitResult:
    """Aggregate result of a commit."""

    succeeded: int = 0
    failed: int = 0
    outcomes: tuple[ChangeOutcome, ...] = field(default_factory=tuple)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed


async def _apply(
    apply_one: ApplyOne, change: PendingChange, timeout: float | None
) -> MutationResult | None:
    if timeout:
        return await asyncio.wait_for(apply_one(change), timeout=timeout)
    return await apply_one(change)


async def commit(
    ledger: PendingEditLedger,
    apply_one: ApplyOne,
    *,
    timeout: float | None = None,
) -> CommitResult:
    """
    Apply every staged change sequentially and prune the successful ones.

    Args:
        ledger: Live ledger; a snapshot of its entries is replayed.
        apply_one: Coroutine function applying one change remotely.
        timeout: Optional per-change wait limit in seconds. Backends that
            cancel statements themselves should be given a shorter limit.

    Returns:
        CommitResult with success/failure counts and per-change outcomes.
    """
    outcomes: list[ChangeOutcome] = []

    for key, change in ledger.items():
        try:
            result = await _apply(apply_one, change, timeout)
        except StatementTimedOut as e:
            logger.warning("Timed out applying %s on %s: %s", change.type.value, change.table_name, e)
            outcomes.append(
                ChangeOutcome(key=key, change=change, status=OutcomeStatus.TIMED_OUT, error=str(e))
            )
            continue
        except asyncio.TimeoutError:
            logger.warning(
                "Stopped waiting for %s on %s after %ss; it may still be applied",
                change.type.value,
                change.table_name,
                timeout,
            )
            outcomes.append(
                ChangeOutcome(
                    key=key,
                    change=change,
                    status=OutcomeStatus.STILL_RUNNING,
                    error=f"no response after {timeout}s; may still be applied",
                )
            )
            continue
        except Exception as e:  # noqa: BLE001
            logger.warning(
                "Error applying %s on %s: %s", change.type.value, change.table_name, e
            )
            outcomes.append(
                ChangeOutcome(key=key, change=change, status=OutcomeStatus.ERROR, error=str(e))
            )
            continue

        if result is None:
            outcomes.append(
                ChangeOutcome(
                    key=key,
                    change=change,
                    status=OutcomeStatus.REJECTED,
                    error="backend reported failure",
                )
            )
            continue

        # Only drop the slot if it still holds the change we applied
        if ledger.get(key) is change:
            ledger.unstage(key)
        outcomes.append(
            ChangeOutcome(
                key=key,
                change=change,
                status=OutcomeStatus.APPLIED,
                affected_rows=getattr(result, "affected_rows", None),
            )
        )

    succeeded = sum(1 for o in outcomes if o.ok)
    return CommitResult(
        succeeded=succeeded,
        failed=len(outcomes) - succeeded,
        outcomes=tuple(outcomes),
    )


def backend_applier(backend: MutationBackend, connection_id: str) -> ApplyOne:
    """Return an `apply_one` that dispatches a change onto the backend by type."""

    async def apply_one(change: PendingChange) -> MutationResult | None:
        if change.type is ChangeType.INSERT:
            return await backend.apply_insert(
                connection_id, change.table_name, dict(change.new_data or {})
            )
        if change.type is ChangeType.UPDATE:
            return await backend.apply_update(
                connection_id,
                change.table_name,
                dict(change.primary_key),
                dict(change.new_data or {}),
            )
        if change.type is ChangeType.DELETE:
            return await backend.apply_delete(
                connection_id, change.table_name, dict(change.primary_key)
            )
        raise ValueError(f"Unsupported change type: {change.type}")

    return apply_one


async def commit_changes(
    ledger: PendingEditLedger,
    backend: MutationBackend,
    connection_id: str,
    *,
    timeout: float | None = None,
) -> CommitResult:
    """Commit the ledger through the standard backend mutation interface."""
    return await commit(ledger, backend_applier(backend, connection_id), timeout=timeout)


def commit_summary(result: CommitResult) -> str:
    """Render the user-facing notification text for a commit."""
    if result.total == 0:
        return "No pending changes."
    if result.succeeded > 0:
        text = f"Successfully applied {result.succeeded} change(s)."
        if result.failed > 0:
            text += f" {result.failed} failed."
        return text
    return f"Failed to apply {result.failed} change(s)."
