"""Connection helpers for Databricks.

Creates a WorkspaceClient from the unified Databricks configuration and
resolves the SQL warehouse a session runs its statements on.
"""

from __future__ import annotations

from databricks.sdk import WorkspaceClient
from databricks.sdk.core import Config


class AuthError(RuntimeError):
    """Raised when a Databricks client cannot be configured."""


class WarehouseNotFound(LookupError):
    """Raised when a SQL warehouse name or id does not exist."""


def _sanitize_host(host: str | None) -> str | None:
    """Drop query strings (e.g. `?o=123`) and trailing slashes from a host URL."""
    if not host:
        return host
    return host.split("?", 1)[0].rstrip("/")


def get_client(profile: str | None = None) -> WorkspaceClient:
    """
    Create a WorkspaceClient for a profile from ~/.databrickscfg (or env vars).

    Raises:
        AuthError: If the configuration cannot be resolved.
    """
    try:
        cfg = Config(profile=profile) if profile else Config()
    except ValueError as exc:
        raise AuthError(f"Databricks authentication failed: {exc}") from exc
    cfg.host = _sanitize_host(cfg.host)
    return WorkspaceClient(config=cfg)


def resolve_warehouse_id(client: WorkspaceClient, warehouse: str) -> str:
    """
    Map a warehouse name or id to its id.

    An exact id match wins over a case-insensitive name match.
    """
    by_name: list[str] = []
    for w in client.warehouses.list():
        wid = getattr(w, "id", None)
        if not wid:
            continue
        if wid == warehouse:
            return wid
        if (getattr(w, "name", None) or "").lower() == warehouse.lower():
            by_name.append(wid)
    if len(by_name) == 1:
        return by_name[0]
    if by_name:
        raise WarehouseNotFound(f"Warehouse name '{warehouse}' is ambiguous.")
    raise WarehouseNotFound(f"Warehouse '{warehouse}' does not exist.")


def connection_id_for(profile: str | None, warehouse_id: str, catalog: str) -> str:
    """Build the connection identity used to key caches: `profile@warehouse/catalog`."""
    return f"{profile or 'default'}@{warehouse_id}/{catalog}"
