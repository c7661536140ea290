"""SQL completion candidates backed by the table directory and schema cache.

The resolver turns a completion context (see `sql_context`) into a flat
list of candidates that any editor widget can render. It never raises for
unknown or ambiguous tables, or for a cold cache: those sources simply
contribute no candidates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional, Sequence

from dbdesk.core.models import (
    DEFAULT_SCHEMA,
    ColumnDescriptor,
    TableDescriptor,
    TableSchema,
    strip_delimiters,
)
from dbdesk.core.sql_context import (
    CompletionContext,
    ContextDetector,
    DefaultContext,
    HeuristicContextDetector,
    MemberAccessContext,
    TablePositionContext,
)

logger = logging.getLogger(__name__)

SchemaLookup = Callable[[str], Optional[TableSchema]]

SQL_KEYWORDS: tuple[str, ...] = (
    # DML
    "SELECT", "FROM", "WHERE", "AND", "OR", "NOT", "IN", "LIKE", "BETWEEN",
    "IS", "NULL", "AS", "ORDER", "BY", "ASC", "DESC", "LIMIT", "OFFSET",
    "GROUP", "HAVING", "DISTINCT", "ALL", "UNION", "INTERSECT", "EXCEPT",
    # Joins
    "JOIN", "INNER", "LEFT", "RIGHT", "FULL", "OUTER", "CROSS", "ON", "USING",
    "INSERT", "INTO", "VALUES", "UPDATE", "SET", "DELETE",
    # DDL
    "CREATE", "ALTER", "DROP", "TABLE", "INDEX", "VIEW", "DATABASE", "SCHEMA",
    "PRIMARY", "KEY", "FOREIGN", "REFERENCES", "CONSTRAINT", "UNIQUE",
    "DEFAULT", "AUTO_INCREMENT", "CHECK", "CASCADE", "RESTRICT",
    # Types
    "INT", "INTEGER", "BIGINT", "SMALLINT", "TINYINT", "DECIMAL", "NUMERIC",
    "FLOAT", "REAL", "DOUBLE", "PRECISION", "VARCHAR", "CHAR", "TEXT", "BLOB",
    "DATE", "TIME", "TIMESTAMP", "DATETIME", "BOOLEAN", "BOOL", "JSON", "UUID",
    # Aggregates
    "COUNT", "SUM", "AVG", "MIN", "MAX", "COALESCE", "NULLIF",
    "CASE", "WHEN", "THEN", "ELSE", "END", "IF", "IFNULL",
    # String and date functions
    "CAST", "CONVERT", "CONCAT", "LENGTH", "SUBSTRING", "SUBSTR", "TRIM",
    "LTRIM", "RTRIM", "UPPER", "LOWER", "REPLACE", "REVERSE",
    "NOW", "CURRENT_DATE", "CURRENT_TIME", "CURRENT_TIMESTAMP",
    "DATE_ADD", "DATE_SUB", "DATEDIFF", "EXTRACT", "YEAR", "MONTH", "DAY",
    # Transactions
    "BEGIN", "COMMIT", "ROLLBACK", "TRANSACTION", "SAVEPOINT",
    "EXISTS", "ANY", "SOME", "WITH", "RECURSIVE",
    # Window functions
    "OVER", "PARTITION", "ROW_NUMBER", "RANK", "DENSE_RANK",
    "LAG", "LEAD", "FIRST_VALUE", "LAST_VALUE", "NTILE",
    "TRUNCATE", "EXPLAIN", "ANALYZE", "GRANT", "REVOKE", "TOP",
)  # fmt: skip


class CompletionKind(str, Enum):
    """Kind of a completion candidate, mapped onto editor item kinds."""

    FIELD = "field"
    TABLE = "table"
    KEYWORD = "keyword"


_SORT_PREFIX = {
    CompletionKind.FIELD: "0",
    CompletionKind.TABLE: "1",
    CompletionKind.KEYWORD: "2",
}


@dataclass(frozen=True)
class CompletionCandidate:
    """One suggested insertion for the editor."""

    label: str
    kind: CompletionKind
    insert_text: str
    detail: str | None = None
    documentation: str | None = None

    @property
    def sort_text(self) -> str:
        return f"{_SORT_PREFIX[self.kind]}{self.label.lower()}"


def _column_candidate(column: ColumnDescriptor) -> CompletionCandidate:
    detail = column.data_type + (" (PK)" if column.is_primary_key else "")
    documentation = "Nullable" if column.nullable else "NOT NULL"
    if column.is_primary_key:
        documentation += " | Primary Key"
    return CompletionCandidate(
        label=column.name,
        kind=CompletionKind.FIELD,
        insert_text=column.name,
        detail=detail,
        documentation=documentation,
    )


def _table_candidate(
    table: TableDescriptor, label: str, *, default_type: str = "TABLE"
) -> CompletionCandidate:
    return CompletionCandidate(
        label=label,
        kind=CompletionKind.TABLE,
        insert_text=label,
        detail=table.table_type or default_type,
        documentation=f"Schema: {table.schema}" if table.schema else None,
    )


def _unique(matches: list[TableDescriptor]) -> TableDescriptor | None:
    distinct = list(dict.fromkeys(matches))
    return distinct[0] if len(distinct) == 1 else None


def resolve_table(
    reference: str,
    known_tables: Iterable[TableDescriptor],
    *,
    default_schema: str = DEFAULT_SCHEMA,
) -> TableDescriptor | None:
    """
    Resolve a table reference against the table directory.

    Matching is case-insensitive and ignores delimiters. A bare-name match
    wins only when exactly one table carries that name; otherwise the
    display name and then the fully qualified name are tried. Ambiguous
    references resolve to None.
    """
    ref = strip_delimiters(reference).lower()
    if not ref:
        return None
    tables = list(known_tables)

    for key in (
        lambda t: t.name.lower(),
        lambda t: t.display_name(default_schema).lower(),
        lambda t: t.qualified_name.lower(),
    ):
        found = _unique([t for t in tables if key(t) == ref])
        if found is not None:
            return found
    return None


def _is_known_name(reference: str, tables: Sequence[TableDescriptor], default_schema: str) -> bool:
    ref = strip_delimiters(reference).lower()
    return any(
        ref in (t.name.lower(), t.display_name(default_schema).lower(), t.qualified_name.lower())
        for t in tables
    )


class CompletionResolver:
    """Produce completion candidates for the text before the cursor."""

    def __init__(
        self,
        detector: ContextDetector | None = None,
        *,
        default_schema: str = DEFAULT_SCHEMA,
        keywords: Sequence[str] = SQL_KEYWORDS,
    ) -> None:
        self.detector = detector or HeuristicContextDetector()
        self.default_schema = default_schema
        self.keywords = tuple(keywords)

    def columns_for(
        self,
        reference: str,
        known_tables: Sequence[TableDescriptor],
        schema_lookup: SchemaLookup,
    ) -> list[ColumnDescriptor]:
        """
        Return cached columns for a table reference, or [] when unavailable.

        A reference that is not in the directory at all is looked up in the
        cache directly; an ambiguous one contributes nothing.
        """
        table = resolve_table(reference, known_tables, default_schema=self.default_schema)
        if table is None:
            if _is_known_name(reference, known_tables, self.default_schema):
                logger.debug("Ambiguous table reference %r", reference)
                return []
            schema = schema_lookup(strip_delimiters(reference))
            return list(schema.columns) if schema else []

        for key in dict.fromkeys(
            (table.display_name(self.default_schema), table.qualified_name)
        ):
            schema = schema_lookup(key)
            if schema is not None:
                return list(schema.columns)

        logger.debug("No cached schema for %s", table.qualified_name)
        return []

    def _member_candidates(
        self,
        ctx: MemberAccessContext,
        known_tables: Sequence[TableDescriptor],
        schema_lookup: SchemaLookup,
    ) -> list[CompletionCandidate]:
        reference = ctx.aliases.get(ctx.reference.lower(), ctx.reference)
        if ctx.keyword and not _is_known_name(reference, known_tables, self.default_schema):
            want = strip_delimiters(reference).lower()
            if any((t.schema or "").lower() == want for t in known_tables):
                # `FROM app.` with no table named app lists the tables of schema app
                return self._table_candidates(
                    TablePositionContext(
                        keyword=ctx.keyword,
                        partial=ctx.partial,
                        qualifier=strip_delimiters(reference),
                    ),
                    known_tables,
                )
        columns = self.columns_for(reference, known_tables, schema_lookup)
        return [_column_candidate(c) for c in columns]

    def _table_candidates(
        self, ctx: TablePositionContext, known_tables: Sequence[TableDescriptor]
    ) -> list[CompletionCandidate]:
        if ctx.qualifier:
            want = ctx.qualifier.lower()
            return [
                _table_candidate(t, t.name)
                for t in known_tables
                if (t.schema or "").lower() == want
            ]
        return [
            _table_candidate(t, t.display_name(self.default_schema))
            for t in known_tables
        ]

    def _default_candidates(
        self,
        ctx: DefaultContext,
        known_tables: Sequence[TableDescriptor],
        schema_lookup: SchemaLookup,
    ) -> list[CompletionCandidate]:
        out: list[CompletionCandidate] = [
            CompletionCandidate(label=k, kind=CompletionKind.KEYWORD, insert_text=k)
            for k in self.keywords
        ]
        out.extend(
            _table_candidate(t, t.display_name(self.default_schema), default_type="Table")
            for t in known_tables
        )

        for table_name in ctx.referenced_tables:
            if resolve_table(table_name, known_tables, default_schema=self.default_schema) is None:
                continue
            for col in self.columns_for(table_name, known_tables, schema_lookup):
                out.append(
                    CompletionCandidate(
                        label=col.name,
                        kind=CompletionKind.FIELD,
                        insert_text=col.name,
                        detail=f"{table_name}.{col.name}",
                    )
                )
        return out

    def tables_needed(
        self,
        text_before_cursor: str,
        known_tables: Iterable[TableDescriptor],
        *,
        text_after_cursor: str = "",
    ) -> list[TableDescriptor]:
        """Tables whose columns a resolve at this position would read (for cache warm-up)."""
        tables = list(known_tables)
        ctx = self.detector.detect(text_before_cursor, text_after_cursor)
        if isinstance(ctx, MemberAccessContext):
            refs: tuple[str, ...] = (ctx.aliases.get(ctx.reference.lower(), ctx.reference),)
        elif isinstance(ctx, DefaultContext):
            refs = ctx.referenced_tables
        else:
            return []

        needed: list[TableDescriptor] = []
        for ref in refs:
            table = resolve_table(ref, tables, default_schema=self.default_schema)
            if table is not None and table not in needed:
                needed.append(table)
        return needed

    def resolve_context(
        self,
        ctx: CompletionContext,
        known_tables: Sequence[TableDescriptor],
        schema_lookup: SchemaLookup,
    ) -> list[CompletionCandidate]:
        """Build candidates for an already detected context."""
        if isinstance(ctx, MemberAccessContext):
            return self._member_candidates(ctx, known_tables, schema_lookup)
        if isinstance(ctx, TablePositionContext):
            return self._table_candidates(ctx, known_tables)
        return self._default_candidates(ctx, known_tables, schema_lookup)

    def resolve(
        self,
        text_before_cursor: str,
        known_tables: Iterable[TableDescriptor],
        schema_lookup: SchemaLookup,
        *,
        text_after_cursor: str = "",
        filter_prefix: bool = False,
    ) -> list[CompletionCandidate]:
        """
        Return completion candidates for the cursor position.

        Args:
            text_before_cursor: Statement text up to the cursor.
            known_tables: Table directory of the active connection.
            schema_lookup: Read-only cache accessor, table name -> schema.
            text_after_cursor: Remaining text, used to find aliases.
            filter_prefix: Keep only candidates starting with the partial word.

        Returns:
            Candidates in context order; never raises for unknown tables.
        """
        tables = list(known_tables)
        ctx = self.detector.detect(text_before_cursor, text_after_cursor)
        candidates = self.resolve_context(ctx, tables, schema_lookup)

        if filter_prefix and ctx.partial:
            want = ctx.partial.lower()
            candidates = [
                c
                for c in candidates
                if c.label.lower().startswith(want)
                or c.label.lower().rsplit(".", 1)[-1].startswith(want)
            ]
            candidates.sort(key=lambda c: c.sort_text)
        return candidates


def resolve_completions(
    text_before_cursor: str,
    known_tables: Iterable[TableDescriptor],
    schema_lookup: SchemaLookup,
) -> list[CompletionCandidate]:
    """Shortcut for `CompletionResolver().resolve(...)` with default settings."""
    return CompletionResolver().resolve(text_before_cursor, known_tables, schema_lookup)
