"""Typed cell values for grid editing.

A cell holds exactly one of: NULL, a boolean, a number, a string or a
structured (JSON-like) document. NULL is a state of its own and is never
the same thing as an empty string, so the grid can offer a "set to NULL"
toggle that round-trips through editing.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ValueKind(str, Enum):
    """Enumeration of the supported cell value kinds."""

    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    STRUCTURED = "structured"


_NUMERIC_TYPES = (
    "int",
    "integer",
    "bigint",
    "smallint",
    "tinyint",
    "decimal",
    "numeric",
    "float",
    "real",
    "double",
    "serial",
    "bigserial",
    "long",
    "short",
    "byte",
)
_BOOLEAN_TYPES = ("bool", "boolean")
_STRUCTURED_TYPES = ("json", "jsonb", "struct", "array", "map", "variant")

_TRUE_WORDS = {"true", "t", "1", "yes", "y"}
_FALSE_WORDS = {"false", "f", "0", "no", "n"}


@dataclass(frozen=True)
class CellValue:
    """A single tagged cell value."""

    kind: ValueKind
    payload: Any = None

    @classmethod
    def null(cls) -> CellValue:
        return cls(ValueKind.NULL)

    @classmethod
    def boolean(cls, value: bool) -> CellValue:
        return cls(ValueKind.BOOLEAN, bool(value))

    @classmethod
    def number(cls, value: int | float) -> CellValue:
        return cls(ValueKind.NUMBER, value)

    @classmethod
    def string(cls, value: str) -> CellValue:
        return cls(ValueKind.STRING, value)

    @classmethod
    def structured(cls, value: dict | list) -> CellValue:
        return cls(ValueKind.STRUCTURED, value)

    @classmethod
    def from_raw(cls, raw: Any) -> CellValue:
        """
        Classify a plain Python value.

        Args:
            raw: None, bool, int, float, str, or a JSON-like dict/list.

        Returns:
            The matching CellValue.

        Raises:
            TypeError: If the value is not JSON-like.
        """
        if isinstance(raw, CellValue):
            return raw
        if raw is None:
            return cls.null()
        # bool is a subclass of int, so it must be checked first
        if isinstance(raw, bool):
            return cls.boolean(raw)
        if isinstance(raw, (int, float)):
            return cls.number(raw)
        if isinstance(raw, str):
            return cls.string(raw)
        if isinstance(raw, (dict, list, tuple)):
            try:
                json.dumps(raw)
            except (TypeError, ValueError) as exc:
                raise TypeError(f"Unsupported structured cell value: {exc}") from exc
            return cls.structured(list(raw) if isinstance(raw, tuple) else raw)
        raise TypeError(f"Unsupported cell value type: {type(raw).__name__}")

    @property
    def is_null(self) -> bool:
        return self.kind is ValueKind.NULL

    def to_raw(self) -> Any:
        """Return the plain Python value (None for NULL)."""
        if self.kind is ValueKind.NULL:
            return None
        return self.payload

    def display(self) -> str:
        """Render the value for a grid cell or a pending-change summary."""
        if self.kind is ValueKind.NULL:
            return "NULL"
        if self.kind is ValueKind.BOOLEAN:
            return "true" if self.payload else "false"
        if self.kind is ValueKind.STRUCTURED:
            return json.dumps(self.payload, separators=(",", ":"))
        return str(self.payload)


def _type_matches(data_type: str, families: tuple[str, ...]) -> bool:
    base = data_type.strip().lower().split("(", 1)[0].split("<", 1)[0].strip()
    return any(base == f or base.startswith(f) for f in families)


def is_numeric_type(data_type: str) -> bool:
    return _type_matches(data_type, _NUMERIC_TYPES)


def is_boolean_type(data_type: str) -> bool:
    return _type_matches(data_type, _BOOLEAN_TYPES)


def is_structured_type(data_type: str) -> bool:
    return _type_matches(data_type, _STRUCTURED_TYPES)


def parse_cell_input(text: str, data_type: str, *, set_null: bool = False) -> CellValue:
    """
    Convert text typed into a grid cell into a CellValue for the column type.

    Args:
        text: Raw text from the editor.
        data_type: Column data type as reported by the backend.
        set_null: True when the user toggled the cell to NULL.

    Returns:
        The parsed CellValue.

    Raises:
        ValueError: If the text cannot be parsed for the column type.
    """
    if set_null:
        return CellValue.null()

    if is_numeric_type(data_type):
        stripped = text.strip()
        if not stripped:
            # Numeric inputs have no empty-string state
            return CellValue.null()
        try:
            return CellValue.number(int(stripped))
        except ValueError:
            pass
        try:
            number = float(stripped)
        except ValueError as exc:
            raise ValueError(f"Not a number: {text!r}") from exc
        if math.isnan(number) or math.isinf(number):
            raise ValueError(f"Not a finite number: {text!r}")
        return CellValue.number(number)

    if is_boolean_type(data_type):
        word = text.strip().lower()
        if word in _TRUE_WORDS:
            return CellValue.boolean(True)
        if word in _FALSE_WORDS:
            return CellValue.boolean(False)
        raise ValueError(f"Not a boolean: {text!r}")

    if is_structured_type(data_type):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON: {exc.msg}") from exc
        return CellValue.from_raw(parsed)

    return CellValue.string(text)


def normalize_row(data: dict[str, Any] | None) -> dict[str, Any]:
    """Validate a column -> value mapping and return plain JSON-like values."""
    if not data:
        return {}
    return {str(k): CellValue.from_raw(v).to_raw() for k, v in data.items()}
