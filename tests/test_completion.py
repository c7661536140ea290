from dbdesk.core.completion import (
    SQL_KEYWORDS,
    CompletionKind,
    CompletionResolver,
    resolve_completions,
    resolve_table,
)
from dbdesk.core.models import ColumnDescriptor, TableDescriptor, TableSchema


def _schema(name: str, *columns: str) -> TableSchema:
    return TableSchema(
        table_name=name,
        columns=tuple(ColumnDescriptor(name=c, data_type="text") for c in columns),
    )


def _lookup(schemas: dict[str, TableSchema]):
    return schemas.get


PUBLIC_ORDERS = TableDescriptor(name="orders", schema="public", table_type="BASE TABLE")
APP_ORDERS = TableDescriptor(name="orders", schema="app", table_type="VIEW")


def test_member_access_returns_only_columns(users_table, users_schema):
    candidates = resolve_completions("SELECT users.", [users_table], _lookup({"users": users_schema}))

    assert [c.label for c in candidates] == ["id", "name"]
    assert {c.kind for c in candidates} == {CompletionKind.FIELD}


def test_member_access_through_alias_has_no_keywords_or_tables(users_table, users_schema):
    resolver = CompletionResolver()
    candidates = resolver.resolve(
        "SELECT u.",
        [users_table],
        _lookup({"users": users_schema}),
        text_after_cursor=" FROM users u",
    )

    assert [c.label for c in candidates] == ["id", "name"]
    assert all(c.kind is CompletionKind.FIELD for c in candidates)


def test_column_candidates_carry_type_and_key_metadata(users_table, users_schema):
    by_label = {
        c.label: c
        for c in resolve_completions("SELECT users.", [users_table], _lookup({"users": users_schema}))
    }

    assert by_label["id"].detail == "integer (PK)"
    assert by_label["id"].documentation == "NOT NULL | Primary Key"
    assert by_label["name"].detail == "text"
    assert by_label["name"].documentation == "Nullable"


def test_cold_cache_contributes_no_columns(users_table):
    assert resolve_completions("SELECT users.", [users_table], _lookup({})) == []


def test_unknown_reference_falls_back_to_direct_cache_lookup():
    cached = _schema("audit", "ts")

    candidates = resolve_completions("SELECT audit.", [], _lookup({"audit": cached}))

    assert [c.label for c in candidates] == ["ts"]


def test_qualified_cache_key_is_used_as_fallback():
    table = TableDescriptor(name="events", schema="public")
    candidates = resolve_completions(
        "SELECT events.", [table], _lookup({"public.events": _schema("events", "kind")})
    )

    assert [c.label for c in candidates] == ["kind"]


def test_same_name_in_two_schemas_resolves_distinctly():
    tables = [PUBLIC_ORDERS, APP_ORDERS]
    lookup = _lookup(
        {
            "orders": _schema("orders", "public_col"),
            "app.orders": _schema("app.orders", "app_col"),
        }
    )

    bare = resolve_completions("SELECT orders.", tables, lookup)
    qualified = resolve_completions("SELECT app.orders.", tables, lookup)

    assert [c.label for c in bare] == ["public_col"]
    assert [c.label for c in qualified] == ["app_col"]


def test_ambiguous_bare_name_yields_nothing():
    sales_orders = TableDescriptor(name="orders", schema="sales")
    tables = [APP_ORDERS, sales_orders]
    lookup = _lookup(
        {
            "orders": _schema("orders", "stray"),
            "app.orders": _schema("app.orders", "a"),
            "sales.orders": _schema("sales.orders", "s"),
        }
    )

    assert resolve_table("orders", tables) is None
    assert resolve_completions("SELECT orders.", tables, lookup) == []


def test_resolve_table_prefers_unique_bare_name_and_ignores_case():
    tables = [TableDescriptor(name="Users", schema="crm")]

    assert resolve_table("`users`", tables) == tables[0]
    assert resolve_table("CRM.USERS", tables) == tables[0]
    assert resolve_table("", tables) is None


def test_table_position_lists_display_names(users_table):
    tables = [users_table, APP_ORDERS, TableDescriptor(name="tmp")]

    candidates = resolve_completions("SELECT * FROM us", tables, _lookup({}))

    assert [c.label for c in candidates] == ["users", "app.orders", "tmp"]
    assert all(c.kind is CompletionKind.TABLE for c in candidates)
    assert candidates[0].detail == "BASE TABLE"
    assert candidates[0].documentation == "Schema: public"
    assert candidates[1].detail == "VIEW"
    assert candidates[2].detail == "TABLE"
    assert candidates[2].documentation is None


def test_schema_qualified_table_position_lists_tables_of_that_schema():
    tables = [PUBLIC_ORDERS, APP_ORDERS, TableDescriptor(name="items", schema="app")]

    candidates = resolve_completions("SELECT * FROM app.", tables, _lookup({}))

    assert [c.label for c in candidates] == ["orders", "items"]


def test_default_context_has_keywords_tables_and_referenced_columns(users_table, users_schema):
    tables = [users_table, PUBLIC_ORDERS]

    candidates = resolve_completions(
        "SELECT * FROM users WHERE ", tables, _lookup({"users": users_schema})
    )

    keywords = [c for c in candidates if c.kind is CompletionKind.KEYWORD]
    table_labels = [c.label for c in candidates if c.kind is CompletionKind.TABLE]
    fields = [c for c in candidates if c.kind is CompletionKind.FIELD]

    assert len(keywords) == len(SQL_KEYWORDS)
    assert table_labels == ["users", "orders"]
    assert [(f.label, f.detail) for f in fields] == [("id", "users.id"), ("name", "users.name")]


def test_default_context_ignores_references_to_unknown_tables(users_table):
    candidates = resolve_completions(
        "SELECT * FROM ghosts WHERE ", [users_table], _lookup({"ghosts": _schema("ghosts", "boo")})
    )

    assert not [c for c in candidates if c.kind is CompletionKind.FIELD]


def test_default_context_is_never_empty():
    candidates = resolve_completions("", [], _lookup({}))

    assert len(candidates) == len(SQL_KEYWORDS)


def test_prefix_filter_keeps_matching_candidates_sorted_by_kind(users_table, users_schema):
    resolver = CompletionResolver()

    candidates = resolver.resolve(
        "SELECT * FROM users WHERE na",
        [users_table],
        _lookup({"users": users_schema}),
        filter_prefix=True,
    )

    assert [c.label for c in candidates] == ["name"]
    assert candidates[0].kind is CompletionKind.FIELD


def test_tables_needed_follows_context(users_table):
    resolver = CompletionResolver()
    tables = [users_table, PUBLIC_ORDERS]

    assert resolver.tables_needed("SELECT u.", tables, text_after_cursor=" FROM users u") == [
        users_table
    ]
    assert resolver.tables_needed("SELECT * FROM orders JOIN users ON ", tables) == [
        PUBLIC_ORDERS,
        users_table,
    ]
    assert resolver.tables_needed("SELECT * FROM ", tables) == []


def test_custom_default_schema_changes_display_names():
    resolver = CompletionResolver(default_schema="default")
    tables = [TableDescriptor(name="t", schema="default"), TableDescriptor(name="t2", schema="public")]

    candidates = resolver.resolve("SELECT * FROM ", tables, _lookup({}))

    assert [c.label for c in candidates] == ["t", "public.t2"]


def test_dot_after_table_keyword_lists_columns_of_known_table(users_table, users_schema):
    lookup = _lookup({"users": users_schema})

    from_users = resolve_completions("SELECT * FROM users.", [users_table], lookup)
    update_users = resolve_completions("UPDATE users.", [users_table], lookup)

    assert [c.label for c in from_users] == ["id", "name"]
    assert [c.label for c in update_users] == ["id", "name"]
    assert all(c.kind is CompletionKind.FIELD for c in from_users + update_users)


def test_table_named_like_a_schema_wins_over_schema_listing():
    app_table = TableDescriptor(name="app", schema="public")
    tables = [app_table, APP_ORDERS]

    candidates = resolve_completions(
        "SELECT * FROM app.", tables, _lookup({"app": _schema("app", "setting")})
    )

    assert [c.label for c in candidates] == ["setting"]


def test_tables_needed_skips_schema_qualifier():
    resolver = CompletionResolver()

    assert resolver.tables_needed("SELECT * FROM app.", [PUBLIC_ORDERS, APP_ORDERS]) == []
