"""
Tagged field values.

Every field read from a record is normalized into one of four value types so
that filtering, sorting and cursor encoding compare values by type instead of
by runtime type checks scattered across the stages.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar

from listdata.core.config import EpochUnit
from listdata.domain.enums import DataType

# Sort rank per type so that mixed-type columns still order deterministically.
_TYPE_RANK = {
    DataType.BOOLEAN: 0,
    DataType.NUMBER: 1,
    DataType.TIMESTAMP: 1,
    DataType.STRING: 2,
}


@dataclass(frozen=True, slots=True)
class StringValue:
    value: str
    type: ClassVar[DataType] = DataType.STRING

    def sort_key(self) -> tuple:
        return (_TYPE_RANK[self.type], self.value.casefold(), self.value)

    def as_text(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class NumberValue:
    """Integers stay exact; everything else is a finite float."""

    value: int | float
    type: ClassVar[DataType] = DataType.NUMBER

    def sort_key(self) -> tuple:
        return (_TYPE_RANK[self.type], self.value)

    def as_text(self) -> str:
        if isinstance(self.value, int):
            return str(self.value)
        if self.value.is_integer():
            return str(int(self.value))
        return repr(self.value)


@dataclass(frozen=True, slots=True)
class BoolValue:
    value: bool
    type: ClassVar[DataType] = DataType.BOOLEAN

    def sort_key(self) -> tuple:
        return (_TYPE_RANK[self.type], int(self.value))

    def as_text(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True, slots=True)
class TimestampValue:
    """Point in time stored as epoch milliseconds."""

    value: float
    type: ClassVar[DataType] = DataType.TIMESTAMP

    def sort_key(self) -> tuple:
        return (_TYPE_RANK[self.type], self.value)

    def as_text(self) -> str:
        return datetime.fromtimestamp(self.value / 1000, tz=UTC).isoformat()


FieldValue = StringValue | NumberValue | BoolValue | TimestampValue


def parse_timestamp(raw: Any, epoch_unit: EpochUnit = EpochUnit.MILLISECONDS) -> float | None:
    """
    Normalize a timestamp representation to epoch milliseconds.

    Accepts datetime/date objects, numeric epochs (in ``epoch_unit``) and
    ISO-8601 strings. Naive datetimes are taken as UTC. Returns None when the
    value cannot be read as a timestamp.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, datetime):
        if raw.tzinfo is None:
            raw = raw.replace(tzinfo=UTC)
        return raw.timestamp() * 1000
    if isinstance(raw, date):
        return datetime.combine(raw, time.min, tzinfo=UTC).timestamp() * 1000
    if isinstance(raw, int | float | Decimal):
        number = float(raw)
        if not math.isfinite(number):
            return None
        return number * 1000 if epoch_unit == EpochUnit.SECONDS else number
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        try:
            return parse_timestamp(datetime.fromisoformat(text), epoch_unit)
        except ValueError:
            pass
        try:
            return parse_timestamp(float(text), epoch_unit)
        except ValueError:
            return None
    return None


def parse_number(raw: Any) -> int | float | None:
    """
    Read a number from numeric or numeric-string input; bools are not numbers.

    Integers (and integer strings) are returned unchanged so ids beyond 2**53
    keep their identity; other inputs become finite floats.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        text = raw.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            raw = float(text)
        except ValueError:
            return None
    if isinstance(raw, float | Decimal):
        number = float(raw)
        return number if math.isfinite(number) else None
    return None


def parse_bool(raw: Any) -> bool | None:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        text = raw.strip().lower()
        if text in ("true", "1", "yes"):
            return True
        if text in ("false", "0", "no"):
            return False
    return None


def to_field_value(
    raw: Any,
    declared_type: DataType | None = None,
    epoch_unit: EpochUnit = EpochUnit.MILLISECONDS,
) -> FieldValue | None:
    """
    Convert a raw Python value into a tagged field value.

    With a declared type the raw value is coerced to that type (None when it
    does not fit). Without one the type is inferred from the Python type;
    values of unsupported types (lists, dicts, objects) yield None.
    """
    if raw is None:
        return None
    if isinstance(raw, Enum):
        raw = raw.value

    if declared_type == DataType.TIMESTAMP:
        millis = parse_timestamp(raw, epoch_unit)
        return TimestampValue(millis) if millis is not None else None
    if declared_type == DataType.NUMBER:
        number = parse_number(raw)
        return NumberValue(number) if number is not None else None
    if declared_type == DataType.BOOLEAN:
        flag = parse_bool(raw)
        return BoolValue(flag) if flag is not None else None
    if declared_type == DataType.STRING:
        if isinstance(raw, str):
            return StringValue(raw)
        inferred = to_field_value(raw, None, epoch_unit)
        return StringValue(inferred.as_text()) if inferred is not None else None

    if isinstance(raw, bool):
        return BoolValue(raw)
    if isinstance(raw, int | float | Decimal):
        number = parse_number(raw)
        return NumberValue(number) if number is not None else None
    if isinstance(raw, datetime | date):
        return TimestampValue(parse_timestamp(raw, epoch_unit))
    if isinstance(raw, str):
        return StringValue(raw)
    return None


def sort_key_to_json(key: tuple | None) -> list | None:
    """Encode a sort key for a cursor payload."""
    return list(key) if key is not None else None


def sort_key_from_json(data: Any) -> tuple | None:
    """Decode a sort key from a cursor payload."""
    if data is None:
        return None
    if not isinstance(data, list) or not data:
        raise ValueError("sort key must be a non-empty list")
    for part in data:
        if isinstance(part, bool) or not isinstance(part, int | float | str):
            raise ValueError("sort key parts must be numbers or strings")
    return tuple(data)
