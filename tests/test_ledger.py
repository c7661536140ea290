import pytest

from dbdesk.core.ledger import ChangeType, PendingChange, PendingEditLedger, canonical_key


def _update(pk: dict, **data) -> PendingChange:
    return PendingChange(type=ChangeType.UPDATE, table_name="users", primary_key=pk, new_data=data)


def test_canonical_key_ignores_mapping_order():
    assert canonical_key({"a": 1, "b": "x"}) == canonical_key({"b": "x", "a": 1})
    assert canonical_key({"id": 1}) != canonical_key({"id": "1"})


def test_staging_same_primary_key_twice_keeps_only_second_change():
    ledger = PendingEditLedger()
    first = _update({"id": 1}, name="Alice")
    second = _update({"id": 1}, name="Alicia")

    ledger.stage(first)
    ledger.stage(second)

    assert len(ledger) == 1
    assert ledger.entries() == [second]


def test_entries_follow_first_staged_order_even_after_overwrite():
    ledger = PendingEditLedger()
    ledger.stage(_update({"id": 10}, name="a"))
    ledger.stage(_update({"id": 2}, name="b"))
    ledger.stage(_update({"id": 10}, name="c"))

    assert [c.primary_key["id"] for c in ledger.entries()] == [10, 2]
    assert ledger.entries()[0].new_data == {"name": "c"}


def test_unstage_is_idempotent_and_clear_empties():
    ledger = PendingEditLedger()
    key = ledger.stage(_update({"id": 1}, name="a"))
    ledger.stage(_update({"id": 2}, name="b"))

    ledger.unstage(key)
    ledger.unstage(key)
    ledger.unstage("not-a-key")

    assert len(ledger) == 1
    assert key not in ledger

    ledger.clear()
    assert ledger.is_dirty is False
    assert ledger.entries() == []
    assert ledger.keys() == []


def test_stage_cell_edit_merges_columns_of_one_row():
    ledger = PendingEditLedger()
    ledger.stage_cell_edit("users", {"id": 1}, "name", "Alice", original_row={"id": 1, "name": "Al", "age": 3})
    ledger.stage_cell_edit("users", {"id": 1}, "age", 4)
    ledger.stage_cell_edit("users", {"id": 1}, "name", "Alicia")

    (change,) = ledger.entries()
    assert change.type is ChangeType.UPDATE
    assert change.new_data == {"name": "Alicia", "age": 4}
    assert change.original_data == {"id": 1, "name": "Al", "age": 3}


def test_stage_cell_edit_keeps_insert_and_replaces_delete():
    ledger = PendingEditLedger()
    ledger.stage(
        PendingChange(type="insert", table_name="users", primary_key={"id": 5}, new_data={"id": 5})
    )
    ledger.stage_cell_edit("users", {"id": 5}, "name", "new")
    ledger.stage(PendingChange(type=ChangeType.DELETE, table_name="users", primary_key={"id": 6}))
    ledger.stage_cell_edit("users", {"id": 6}, "name", None)

    inserted, updated = ledger.entries()
    assert inserted.type is ChangeType.INSERT
    assert inserted.new_data == {"id": 5, "name": "new"}
    assert updated.type is ChangeType.UPDATE
    assert updated.new_data == {"name": None}


def test_null_and_empty_string_are_distinct_values():
    ledger = PendingEditLedger()
    ledger.stage_cell_edit("users", {"id": 1}, "name", None)
    ledger.stage_cell_edit("users", {"id": 2}, "name", "")

    values = [c.new_data["name"] for c in ledger.entries()]
    assert values == [None, ""]


def test_changed_columns_reports_before_and_after():
    change = PendingChange(
        type=ChangeType.UPDATE,
        table_name="users",
        primary_key={"id": 1},
        new_data={"name": None, "age": 3},
        original_data={"name": "", "age": 3},
    )

    diff = change.changed_columns()
    assert list(diff) == ["name"]
    before, after = diff["name"]
    assert before.to_raw() == ""
    assert after.is_null


def test_invalid_change_type_and_values_are_rejected():
    with pytest.raises(ValueError):
        PendingChange(type="upsert", table_name="t", primary_key={"id": 1})
    with pytest.raises(TypeError):
        PendingChange(type="update", table_name="t", primary_key={"id": object()})


def test_change_ids_are_unique():
    assert _update({"id": 1}).id != _update({"id": 1}).id


def test_cell_edit_for_another_table_replaces_slot_instead_of_merging():
    ledger = PendingEditLedger()
    ledger.stage_cell_edit("users", {"id": 1}, "name", "Alicia")
    ledger.stage_cell_edit("orders", {"id": 1}, "total", 5)

    (change,) = ledger.entries()
    assert change.table_name == "orders"
    assert change.type is ChangeType.UPDATE
    assert change.new_data == {"total": 5}
