"""SQL completion context detection.

This module decides *where* the cursor sits in a statement (after a
`table.`, after a table keyword, or anywhere else) using lightweight
regular-expression heuristics rather than a SQL grammar. Detection sits
behind the ContextDetector interface so a real tokenizer can replace the
heuristics without touching candidate generation.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Union

from dbdesk.core.models import strip_delimiters

TABLE_KEYWORDS = ("FROM", "JOIN", "INTO", "UPDATE", "TABLE")

_IDENT = r"[`\"\[]?\w+[`\"\]]?"
_QUALIFIED_IDENT = rf"{_IDENT}(?:\.{_IDENT})?"

_MEMBER_ACCESS_RX = re.compile(rf"({_QUALIFIED_IDENT})\.\s*(\w*)$")
_TABLE_POSITION_RX = re.compile(
    rf"\b({'|'.join(TABLE_KEYWORDS)})\s+(\w*)$", re.IGNORECASE
)
_QUALIFIED_TABLE_POSITION_RX = re.compile(
    rf"\b({'|'.join(TABLE_KEYWORDS)})\s+({_IDENT})\.(\w*)$", re.IGNORECASE
)
_TABLE_REFERENCE_RX = re.compile(rf"\b(?:FROM|JOIN)\s+({_QUALIFIED_IDENT})", re.IGNORECASE)
_ALIAS_RX = re.compile(
    rf"\b(?:FROM|JOIN|UPDATE)\s+({_QUALIFIED_IDENT})(?:\s+AS)?\s+({_IDENT})",
    re.IGNORECASE,
)
_PARTIAL_WORD_RX = re.compile(r"(\w*)$")

# Words that may follow a table reference but are never aliases
_NON_ALIAS_WORDS = {
    "where",
    "on",
    "using",
    "join",
    "inner",
    "left",
    "right",
    "full",
    "outer",
    "cross",
    "natural",
    "group",
    "order",
    "having",
    "limit",
    "offset",
    "union",
    "intersect",
    "except",
    "set",
    "values",
    "select",
    "window",
    "as",
}


@dataclass(frozen=True)
class MemberAccessContext:
    """Cursor follows `<reference>.`, optionally with a partial column name."""

    reference: str
    partial: str = ""
    aliases: dict[str, str] = field(default_factory=dict)
    # set for `FROM x.`, where x may name a schema rather than a table
    keyword: str = ""


@dataclass(frozen=True)
class TablePositionContext:
    """Cursor follows a keyword that expects a table identifier."""

    keyword: str
    partial: str = ""
    qualifier: str = ""


@dataclass(frozen=True)
class DefaultContext:
    """Anything else: keywords, tables and columns of referenced tables."""

    partial: str = ""
    referenced_tables: tuple[str, ...] = ()


CompletionContext = Union[MemberAccessContext, TablePositionContext, DefaultContext]


def extract_table_references(sql: str) -> list[str]:
    """
    Return table names that follow FROM/JOIN anywhere in the text.

    Names are delimiter-stripped and returned in first-seen order
    without duplicates. This is a best-effort scan, not a parser.
    """
    seen: dict[str, None] = {}
    for match in _TABLE_REFERENCE_RX.finditer(sql):
        name = strip_delimiters(match.group(1))
        if name and name.lower() not in (n.lower() for n in seen):
            seen[name] = None
    return list(seen)


def extract_aliases(sql: str) -> dict[str, str]:
    """Map lower-cased alias -> table reference for `FROM t [AS] a` clauses."""
    aliases: dict[str, str] = {}
    for match in _ALIAS_RX.finditer(sql):
        table = strip_delimiters(match.group(1))
        alias = strip_delimiters(match.group(2))
        if not alias or alias.lower() in _NON_ALIAS_WORDS:
            continue
        if alias.lower() == table.lower():
            continue
        aliases[alias.lower()] = table
    return aliases


class ContextDetector(ABC):
    """
    Abstract base class for completion context detection.

    A detector looks at the text before the cursor (and optionally the
    text after it) and classifies the completion position.
    """

    @abstractmethod
    def detect(self, text_before_cursor: str, text_after_cursor: str = "") -> CompletionContext:
        """
        Classify the completion position.

        Args:
            text_before_cursor: Statement text from its start up to the cursor.
            text_after_cursor: Remaining statement text, used for alias lookup.

        Returns:
            One of MemberAccessContext, TablePositionContext or DefaultContext.
        """
        ...


class HeuristicContextDetector(ContextDetector):
    """Regex-based detector; first matching rule wins."""

    def detect(self, text_before_cursor: str, text_after_cursor: str = "") -> CompletionContext:
        member = _MEMBER_ACCESS_RX.search(text_before_cursor)
        if member:
            after_keyword = _QUALIFIED_TABLE_POSITION_RX.search(text_before_cursor)
            return MemberAccessContext(
                reference=strip_delimiters(member.group(1)),
                partial=member.group(2),
                aliases=extract_aliases(text_before_cursor + text_after_cursor),
                keyword=after_keyword.group(1).upper() if after_keyword else "",
            )

        table_pos = _TABLE_POSITION_RX.search(text_before_cursor)
        if table_pos:
            return TablePositionContext(
                keyword=table_pos.group(1).upper(),
                partial=table_pos.group(2),
            )

        partial = _PARTIAL_WORD_RX.search(text_before_cursor)
        return DefaultContext(
            partial=partial.group(1) if partial else "",
            referenced_tables=tuple(extract_table_references(text_before_cursor)),
        )
