"""Workspace state owned by the application shell.

One WorkspaceState is created at startup and handed to whatever needs
the schema cache or the pending edit ledger. There is no module-level
instance; disconnecting or resetting goes through this object.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from dbdesk.core.ledger import PendingEditLedger
from dbdesk.core.schema_cache import Clock, SchemaCache
from dbdesk.core.settings import CommitMode, WorkspaceSettings

logger = logging.getLogger(__name__)


@dataclass
class WorkspaceState:
    """Schema cache, edit ledger and commit mode of one client instance."""

    settings: WorkspaceSettings = field(default_factory=WorkspaceSettings)
    clock: Clock = time.monotonic
    cache: SchemaCache = field(init=False)
    ledger: PendingEditLedger = field(init=False)
    commit_mode: CommitMode = field(init=False)

    def __post_init__(self) -> None:
        self.cache = SchemaCache(ttl=self.settings.schema_cache_ttl, clock=self.clock)
        self.ledger = PendingEditLedger()
        self.commit_mode = self.settings.commit_mode

    def disconnect(self, connection_id: str) -> None:
        """Drop everything tied to a connection that is going away."""
        dropped = len(self.ledger)
        self.cache.clear(connection_id)
        self.ledger.clear()
        if dropped:
            logger.info("Discarded %d pending change(s) on disconnect", dropped)

    def reset(self) -> None:
        """Return to the freshly started state."""
        self.cache.clear_all()
        self.ledger.clear()
        self.commit_mode = self.settings.commit_mode
