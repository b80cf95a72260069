"""
Field access over heterogeneous records.

An accessor resolves a named field on a record to a tagged value. Two
implementations are provided:

- PathAccessor: reads dicts, dataclasses, pydantic models and plain objects
  using dot-notation paths (``address.city``).
- FieldMapAccessor: an explicit per-entity adapter mapping field names to
  getter callables with declared types.

Unknown fields are reported with ``found=False``; a present field holding
None is reported as ``found=True, value=None``. What to do with either case
is decided by the stage that asked.
"""

from __future__ import annotations

import dataclasses
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping
from typing import Any, NamedTuple

from pydantic import BaseModel

from listdata.core.config import EpochUnit
from listdata.domain.enums import DataType
from listdata.engine.values import FieldValue, StringValue, to_field_value

_MISSING = object()


class FieldLookup(NamedTuple):
    value: FieldValue | None
    found: bool

    @property
    def type(self) -> DataType | None:
        return self.value.type if self.value is not None else None


NOT_FOUND = FieldLookup(None, False)


class FieldAccessor(ABC):
    """Resolves named fields on records to tagged values."""

    @abstractmethod
    def get(self, record: Any, field: str) -> FieldLookup:
        """Resolve ``field`` on ``record``."""

    @abstractmethod
    def field_names(self, record: Any) -> list[str]:
        """Top-level field names available on ``record``, in declaration order."""

    def declared_type(self, field: str) -> DataType | None:
        """Declared type of ``field`` if the accessor knows it up front."""
        return None

    def string_fields(self, record: Any) -> list[str]:
        """Fields of ``record`` currently holding string values."""
        names = []
        for name in self.field_names(record):
            if isinstance(self.get(record, name).value, StringValue):
                names.append(name)
        return names


class PathAccessor(FieldAccessor):
    """
    Reflection-based accessor for mapping-like and attribute-based records.

    Args:
        timestamp_fields: Paths whose values are timestamps; numbers and
            strings found there are normalized to epoch milliseconds.
        epoch_unit: Unit of numeric timestamps.
    """

    def __init__(
        self,
        timestamp_fields: Iterable[str] = (),
        epoch_unit: EpochUnit = EpochUnit.MILLISECONDS,
    ) -> None:
        self._timestamp_fields = frozenset(timestamp_fields)
        self._epoch_unit = epoch_unit

    def declared_type(self, field: str) -> DataType | None:
        return DataType.TIMESTAMP if field in self._timestamp_fields else None

    def get(self, record: Any, field: str) -> FieldLookup:
        current = record
        for part in field.split("."):
            if current is None:
                # A null intermediate means the leaf is absent, not null.
                return NOT_FOUND
            current = self._read(current, part)
            if current is _MISSING:
                return NOT_FOUND

        if current is None:
            return FieldLookup(None, True)
        value = to_field_value(current, self.declared_type(field), self._epoch_unit)
        return FieldLookup(value, True)

    def field_names(self, record: Any) -> list[str]:
        if isinstance(record, Mapping):
            return [str(key) for key in record.keys()]
        if isinstance(record, BaseModel):
            return list(type(record).model_fields)
        if dataclasses.is_dataclass(record) and not isinstance(record, type):
            return [f.name for f in dataclasses.fields(record)]
        if hasattr(record, "__dict__"):
            return [name for name in vars(record) if not name.startswith("_")]
        return []

    @staticmethod
    def _read(container: Any, name: str) -> Any:
        if isinstance(container, Mapping):
            return container.get(name, _MISSING)
        if name.startswith("_"):
            return _MISSING
        value = getattr(container, name, _MISSING)
        if callable(value) and not isinstance(value, type):
            # Methods are not fields.
            return _MISSING
        return value


class FieldMapAccessor(FieldAccessor):
    """
    Explicit per-entity accessor.

    Example:
        >>> accessor = FieldMapAccessor(
        ...     {
        ...         "name": (lambda p: p.name, DataType.STRING),
        ...         "price": (lambda p: p.price_cents / 100, DataType.NUMBER),
        ...         "created_at": (lambda p: p.date_created, DataType.TIMESTAMP),
        ...     }
        ... )

    Only the mapped fields exist; everything else is reported as unknown.
    A getter that cannot read a record (attribute, key or index lookup
    fails) reports the field as unknown for that record.
    """

    def __init__(
        self,
        getters: Mapping[str, tuple[Callable[[Any], Any], DataType]],
        epoch_unit: EpochUnit = EpochUnit.MILLISECONDS,
    ) -> None:
        self._getters = dict(getters)
        self._epoch_unit = epoch_unit

    @property
    def declared_types(self) -> dict[str, DataType]:
        return {name: data_type for name, (_, data_type) in self._getters.items()}

    def declared_type(self, field: str) -> DataType | None:
        entry = self._getters.get(field)
        return entry[1] if entry else None

    def get(self, record: Any, field: str) -> FieldLookup:
        entry = self._getters.get(field)
        if entry is None:
            return NOT_FOUND
        getter, data_type = entry
        try:
            raw = getter(record)
        except (AttributeError, KeyError, IndexError, TypeError):
            # Heterogeneous collections: the getter does not apply to this record
            return NOT_FOUND
        if raw is None:
            return FieldLookup(None, True)
        return FieldLookup(to_field_value(raw, data_type, self._epoch_unit), True)

    def field_names(self, record: Any) -> list[str]:
        return list(self._getters)

    def string_fields(self, record: Any) -> list[str]:
        return [name for name, (_, t) in self._getters.items() if t == DataType.STRING]
