"""Environment-driven settings for the workspace engine.

All values come from `DBDESK_*` environment variables. Missing or
malformed values fall back to defaults so a typo never prevents the
client from starting.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum

from dbdesk.core.models import DEFAULT_SCHEMA

SCHEMA_CACHE_TTL_ENV = "DBDESK_SCHEMA_CACHE_TTL"
COMMIT_TIMEOUT_ENV = "DBDESK_COMMIT_TIMEOUT"
COMMIT_MODE_ENV = "DBDESK_COMMIT_MODE"
DEFAULT_SCHEMA_ENV = "DBDESK_DEFAULT_SCHEMA"
LOG_LEVEL_ENV = "DBDESK_LOG_LEVEL"

DEFAULT_SCHEMA_CACHE_TTL_SECONDS = 15 * 60
DEFAULT_LOG_LEVEL = "WARNING"


class CommitMode(str, Enum):
    """
    How staged edits reach the remote store.

    Values:
        STAGED: Edits wait in the ledger until the user commits.
        IMMEDIATE: Every staging action is committed right away.
    """

    STAGED = "staged"
    IMMEDIATE = "immediate"


@dataclass(frozen=True)
class WorkspaceSettings:
    """Resolved configuration for one client instance."""

    schema_cache_ttl: float = DEFAULT_SCHEMA_CACHE_TTL_SECONDS
    commit_timeout: float | None = None
    commit_mode: CommitMode = CommitMode.STAGED
    default_schema: str = DEFAULT_SCHEMA
    log_level: str = DEFAULT_LOG_LEVEL


def _seconds_from_env(name: str, default: float) -> float:
    """Return a non-negative number of seconds from the environment."""
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return max(float(raw), 0.0)
    except ValueError:
        return default


def _commit_mode_from_env() -> CommitMode:
    raw = os.getenv(COMMIT_MODE_ENV, "").strip().lower()
    try:
        return CommitMode(raw)
    except ValueError:
        return CommitMode.STAGED


def load_settings() -> WorkspaceSettings:
    """Build settings from `DBDESK_*` environment variables."""
    timeout = _seconds_from_env(COMMIT_TIMEOUT_ENV, 0.0)
    default_schema = os.getenv(DEFAULT_SCHEMA_ENV, "").strip() or DEFAULT_SCHEMA
    log_level = os.getenv(LOG_LEVEL_ENV, "").strip().upper() or DEFAULT_LOG_LEVEL
    return WorkspaceSettings(
        schema_cache_ttl=_seconds_from_env(
            SCHEMA_CACHE_TTL_ENV, DEFAULT_SCHEMA_CACHE_TTL_SECONDS
        ),
        commit_timeout=timeout or None,
        commit_mode=_commit_mode_from_env(),
        default_schema=default_schema,
        log_level=log_level,
    )
