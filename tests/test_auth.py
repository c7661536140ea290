from types import SimpleNamespace

import pytest

from dbdesk.core.auth import (
    WarehouseNotFound,
    _sanitize_host,
    connection_id_for,
    resolve_warehouse_id,
)


def _client(*warehouses):
    return SimpleNamespace(
        warehouses=SimpleNamespace(
            list=lambda: [SimpleNamespace(id=i, name=n) for i, n in warehouses]
        )
    )


def test_sanitize_host():
    assert _sanitize_host("https://adb.net/?o=123") == "https://adb.net"
    assert _sanitize_host(None) is None


def test_resolve_warehouse_by_id_or_name():
    client = _client(("abc", "Shared"), ("def", "Analytics"))

    assert resolve_warehouse_id(client, "def") == "def"
    assert resolve_warehouse_id(client, "shared") == "abc"


def test_resolve_warehouse_errors():
    client = _client(("abc", "Same"), ("def", "same"))

    with pytest.raises(WarehouseNotFound, match="ambiguous"):
        resolve_warehouse_id(client, "same")
    with pytest.raises(WarehouseNotFound, match="does not exist"):
        resolve_warehouse_id(client, "nope")


def test_connection_id_for():
    assert connection_id_for(None, "wh", "main") == "default@wh/main"
    assert connection_id_for("dev", "wh", "main") == "dev@wh/main"
