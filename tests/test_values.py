import pytest

from dbdesk.core.values import (
    CellValue,
    ValueKind,
    is_numeric_type,
    normalize_row,
    parse_cell_input,
)


def test_from_raw_classifies_bool_before_number():
    assert CellValue.from_raw(True).kind is ValueKind.BOOLEAN
    assert CellValue.from_raw(1).kind is ValueKind.NUMBER
    assert CellValue.from_raw(None).is_null
    assert CellValue.from_raw({"a": [1]}).kind is ValueKind.STRUCTURED


def test_from_raw_rejects_non_json_values():
    with pytest.raises(TypeError):
        CellValue.from_raw(object())
    with pytest.raises(TypeError):
        CellValue.from_raw({"a": object()})


def test_null_and_empty_string_display_differently():
    assert CellValue.null().display() == "NULL"
    assert CellValue.string("").display() == ""
    assert CellValue.null() != CellValue.string("")


@pytest.mark.parametrize(
    "data_type, expected",
    [("BIGINT", True), ("decimal(10,2)", True), ("integer", True), ("text", False), ("STRING", False)],
)
def test_numeric_type_detection(data_type, expected):
    assert is_numeric_type(data_type) is expected


def test_parse_numbers():
    assert parse_cell_input("42", "bigint") == CellValue.number(42)
    assert parse_cell_input(" 1.5 ", "double") == CellValue.number(1.5)
    assert parse_cell_input("", "int").is_null
    with pytest.raises(ValueError, match="Not a number"):
        parse_cell_input("abc", "int")
    with pytest.raises(ValueError):
        parse_cell_input("nan", "double")


def test_parse_booleans():
    assert parse_cell_input("Yes", "boolean") == CellValue.boolean(True)
    assert parse_cell_input("0", "BOOLEAN") == CellValue.boolean(False)
    with pytest.raises(ValueError, match="Not a boolean"):
        parse_cell_input("maybe", "boolean")


def test_parse_structured_and_text():
    assert parse_cell_input('{"a": 1}', "struct<a:int>").to_raw() == {"a": 1}
    with pytest.raises(ValueError, match="Invalid JSON"):
        parse_cell_input("{", "json")
    assert parse_cell_input("", "text") == CellValue.string("")


def test_set_null_wins_over_text():
    assert parse_cell_input("ignored", "text", set_null=True).is_null


def test_normalize_row_returns_plain_values():
    assert normalize_row({"a": (1, 2), "b": None}) == {"a": [1, 2], "b": None}
    assert normalize_row(None) == {}
