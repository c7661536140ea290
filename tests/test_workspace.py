from dbdesk.core.ledger import ChangeType, PendingChange
from dbdesk.core.settings import CommitMode, WorkspaceSettings
from dbdesk.core.workspace import WorkspaceState


def test_state_is_built_from_settings(clock):
    state = WorkspaceState(
        WorkspaceSettings(schema_cache_ttl=5, commit_mode=CommitMode.IMMEDIATE), clock=clock
    )

    assert state.cache.ttl == 5
    assert state.commit_mode is CommitMode.IMMEDIATE
    assert len(state.ledger) == 0


def test_instances_do_not_share_state(clock, users_schema):
    a = WorkspaceState(clock=clock)
    b = WorkspaceState(clock=clock)

    a.cache.put("conn", "users", users_schema)
    a.ledger.stage(PendingChange(type=ChangeType.DELETE, table_name="users", primary_key={"id": 1}))

    assert b.cache.get("conn", "users") is None
    assert len(b.ledger) == 0


def test_disconnect_drops_connection_cache_and_ledger(clock, users_schema):
    state = WorkspaceState(clock=clock)
    state.cache.put("conn", "users", users_schema)
    state.cache.put("other", "users", users_schema)
    state.ledger.stage(PendingChange(type=ChangeType.DELETE, table_name="users", primary_key={"id": 1}))

    state.disconnect("conn")

    assert state.cache.get("conn", "users") is None
    assert state.cache.get("other", "users") is users_schema
    assert state.ledger.is_dirty is False


def test_reset_restores_configured_commit_mode(clock, users_schema):
    state = WorkspaceState(clock=clock)
    state.commit_mode = CommitMode.IMMEDIATE
    state.cache.put("conn", "users", users_schema)

    state.reset()

    assert state.commit_mode is CommitMode.STAGED
    assert state.cache.get("conn", "users") is None
