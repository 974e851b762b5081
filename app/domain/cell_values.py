"""
app/domain/cell_values.py

Representation-agnostic cell value model.

Every spreadsheet cell is classified into one of four kinds before any
consumer touches it, and the two coercions used across the codebase are
defined here explicitly:

    absent   – None, a missing key, or the empty string
    boolean  – True / False
    number   – int or float (NaN and infinities are treated as absent)
    text     – any other value, kept as its string form

``to_number`` never raises: text that is not a decimal number coerces to
``0.0``. ``to_text`` gives the grouping key used by the pivot engine.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping


class CellKind(str, Enum):
    ABSENT = "absent"
    BOOLEAN = "boolean"
    NUMBER = "number"
    TEXT = "text"


@dataclass(frozen=True)
class CellValue:
    """
    One classified cell.
    """

    kind: CellKind
    raw: Any = None

    @classmethod
    def of(cls, value: Any) -> "CellValue":
        if value is None:
            return cls(CellKind.ABSENT)
        if isinstance(value, bool):
            return cls(CellKind.BOOLEAN, value)
        if isinstance(value, (int, float)):
            if isinstance(value, float) and not math.isfinite(value):
                return cls(CellKind.ABSENT)
            return cls(CellKind.NUMBER, value)
        if isinstance(value, str) and value == "":
            return cls(CellKind.ABSENT)
        return cls(CellKind.TEXT, value if isinstance(value, str) else str(value))

    @property
    def is_absent(self) -> bool:
        return self.kind is CellKind.ABSENT

    def to_number(self) -> float:
        if self.kind is CellKind.NUMBER:
            return float(self.raw)
        if self.kind is CellKind.BOOLEAN:
            return 1.0 if self.raw else 0.0
        if self.kind is CellKind.TEXT:
            parsed = parse_decimal(self.raw)
            return parsed if parsed is not None else 0.0
        return 0.0

    def to_text(self) -> str:
        if self.kind is CellKind.ABSENT:
            return ""
        if self.kind is CellKind.BOOLEAN:
            return "true" if self.raw else "false"
        if self.kind is CellKind.NUMBER:
            return format_number(self.raw)
        return self.raw


def parse_decimal(text: str) -> float | None:
    """
    Parse *text* as a finite decimal number.

    Whitespace-only text parses as ``0.0``. Returns ``None`` when the text
    is not a number.
    """

    stripped = text.strip()
    if not stripped:
        return 0.0
    if "_" in stripped:
        return None
    try:
        parsed = float(stripped)
    except ValueError:
        return None
    if not math.isfinite(parsed):
        return None
    return parsed


def format_number(value: int | float) -> str:
    """Integral floats render without a trailing ``.0``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def is_missing(value: Any) -> bool:
    return CellValue.of(value).is_absent


def to_number(value: Any) -> float:
    return CellValue.of(value).to_number()


def to_text(value: Any) -> str:
    return CellValue.of(value).to_text()


def column_value(record: Mapping[str, Any], column: str) -> Any:
    """
    Read *column* from *record*; an unmapped (blank) column reads as absent.
    """

    if not column:
        return None
    return record.get(column)


def column_number(record: Mapping[str, Any], column: str) -> float:
    return to_number(column_value(record, column))
