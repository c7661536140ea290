import pytest

from dbdesk.core.sql_context import (
    DefaultContext,
    HeuristicContextDetector,
    MemberAccessContext,
    TablePositionContext,
    extract_aliases,
    extract_table_references,
)

detector = HeuristicContextDetector()


def test_member_access_after_dot():
    ctx = detector.detect("SELECT users.")

    assert isinstance(ctx, MemberAccessContext)
    assert ctx.reference == "users"
    assert ctx.partial == ""


def test_member_access_with_partial_and_delimiters():
    ctx = detector.detect('SELECT "app"."orders".to')

    assert isinstance(ctx, MemberAccessContext)
    assert ctx.reference == "app.orders"
    assert ctx.partial == "to"


def test_member_access_collects_aliases_from_text_after_cursor():
    ctx = detector.detect("SELECT u.", " FROM users u WHERE u.id = 1")

    assert isinstance(ctx, MemberAccessContext)
    assert ctx.aliases == {"u": "users"}


@pytest.mark.parametrize("keyword", ["FROM", "join", "INTO", "Update", "TABLE"])
def test_table_position_after_keyword(keyword: str):
    ctx = detector.detect(f"x {keyword} us")

    assert isinstance(ctx, TablePositionContext)
    assert ctx.keyword == keyword.upper()
    assert ctx.partial == "us"


def test_table_position_requires_whitespace_after_keyword():
    assert isinstance(detector.detect("SELECT * FROM"), DefaultContext)
    assert isinstance(detector.detect("SELECT * FROM "), TablePositionContext)


def test_dot_after_table_keyword_is_member_access_tagged_with_keyword():
    ctx = detector.detect("SELECT * FROM app.ord")

    assert isinstance(ctx, MemberAccessContext)
    assert ctx.reference == "app"
    assert ctx.partial == "ord"
    assert ctx.keyword == "FROM"

    assert detector.detect("UPDATE users.").keyword == "UPDATE"
    assert detector.detect("SELECT users.").keyword == ""
    assert detector.detect("SELECT * FROM app.orders.").keyword == ""


def test_default_context_lists_referenced_tables():
    ctx = detector.detect("SELECT * FROM users JOIN [orders] o ON o.user_id = users.id WHERE na")

    assert isinstance(ctx, DefaultContext)
    assert ctx.partial == "na"
    assert ctx.referenced_tables == ("users", "orders")


def test_extract_table_references_dedupes_case_insensitively():
    sql = "SELECT * FROM Users u JOIN `app`.`orders` JOIN users"

    assert extract_table_references(sql) == ["Users", "app.orders"]


def test_extract_aliases_skips_clause_keywords():
    sql = "SELECT * FROM users WHERE id = 1; SELECT * FROM orders AS o JOIN items i ON 1=1"

    assert extract_aliases(sql) == {"o": "orders", "i": "items"}
