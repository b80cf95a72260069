"""
Filter evaluation.

Conditions are compiled once per request (regex patterns, coerced operands
per value type) and then evaluated against each record in a single pass.
A condition on a field the record does not have, or that holds null, does
not match; under the FAIL_LOUD policy an unresolvable field raises instead.
"""

import logging
import re
from collections.abc import Sequence
from typing import Any

from listdata.core.config import EpochUnit
from listdata.core.errors import UnknownFieldError
from listdata.domain.enums import DataType, FilterLogic, FilterOperator, UnknownFieldPolicy
from listdata.engine.accessor import FieldAccessor
from listdata.engine.values import (
    FieldValue,
    StringValue,
    parse_number,
    to_field_value,
)
from listdata.schemas.filter import FilterCondition, FilterRequest

logger = logging.getLogger(__name__)

TEXT_OPERATORS = frozenset(
    {
        FilterOperator.CONTAINS,
        FilterOperator.STARTS_WITH,
        FilterOperator.ENDS_WITH,
        FilterOperator.REGEX,
    }
)


class _CompiledCondition:
    """A condition with its operands prepared for repeated evaluation."""

    def __init__(self, condition: FilterCondition, epoch_unit: EpochUnit) -> None:
        self.condition = condition
        self.field = condition.field
        self.operator = condition.operator
        self.case_sensitive = condition.case_sensitive
        self._epoch_unit = epoch_unit
        self._operands: dict[DataType, list[FieldValue | None]] = {}

        self.pattern: re.Pattern[str] | None = None
        if self.operator == FilterOperator.REGEX:
            flags = 0 if self.case_sensitive else re.IGNORECASE
            self.pattern = re.compile(condition.value, flags)

        self.text: str = ""
        if self.operator in TEXT_OPERATORS and self.operator != FilterOperator.REGEX:
            self.text = self._fold(_as_text(condition.value))

    def _fold(self, text: str) -> str:
        return text if self.case_sensitive else text.casefold()

    def operands(self, data_type: DataType) -> list[FieldValue | None]:
        """Filter values coerced to ``data_type``; None where coercion fails."""
        cached = self._operands.get(data_type)
        if cached is None:
            raw = self.condition.value
            raw_values = list(raw) if isinstance(raw, list | tuple | set | frozenset) else [raw]
            cached = [to_field_value(v, data_type, self._epoch_unit) for v in raw_values]
            self._operands[data_type] = cached
        return cached

    def matches(self, value: FieldValue) -> bool:
        operator = self.operator

        if operator in TEXT_OPERATORS:
            text = self._fold(value.as_text())
            if operator == FilterOperator.CONTAINS:
                return self.text in text
            if operator == FilterOperator.STARTS_WITH:
                return text.startswith(self.text)
            if operator == FilterOperator.ENDS_WITH:
                return text.endswith(self.text)
            return self.pattern.search(value.as_text()) is not None

        if operator in (FilterOperator.EQUALS, FilterOperator.IN):
            return any(self._equal(value, op) for op in self.operands(value.type))
        if operator in (FilterOperator.NOT_EQUALS, FilterOperator.NOT_IN):
            return not any(self._equal(value, op) for op in self.operands(value.type))

        number = _ordinal(value)
        if number is None:
            return False
        bounds = [_ordinal(op) if op is not None else None for op in self._ordered_operands(value)]
        if any(b is None for b in bounds):
            return False

        if operator == FilterOperator.GT:
            return number > bounds[0]
        if operator == FilterOperator.GTE:
            return number >= bounds[0]
        if operator == FilterOperator.LT:
            return number < bounds[0]
        if operator == FilterOperator.LTE:
            return number <= bounds[0]
        if operator == FilterOperator.BETWEEN:
            low, high = bounds
            return low <= number <= high
        return False

    def _ordered_operands(self, value: FieldValue) -> list[FieldValue | None]:
        # Numeric strings compare as numbers against numeric operands.
        data_type = DataType.NUMBER if isinstance(value, StringValue) else value.type
        return self.operands(data_type)

    def _equal(self, value: FieldValue, operand: FieldValue | None) -> bool:
        if operand is None:
            return False
        if isinstance(value, StringValue):
            return self._fold(value.value) == self._fold(operand.value)
        return value.value == operand.value


def _as_text(raw: Any) -> str:
    value = to_field_value(raw)
    return value.as_text() if value is not None else str(raw)


def _ordinal(value: FieldValue) -> int | float | None:
    if value.type in (DataType.NUMBER, DataType.TIMESTAMP):
        return value.value
    if isinstance(value, StringValue):
        return parse_number(value.value)
    return None


def compile_conditions(
    filters: FilterRequest, epoch_unit: EpochUnit = EpochUnit.MILLISECONDS
) -> list[_CompiledCondition]:
    return [_CompiledCondition(condition, epoch_unit) for condition in filters.filters]


def evaluate_filters(
    record: Any,
    conditions: Sequence[_CompiledCondition],
    accessor: FieldAccessor,
    logic: FilterLogic = FilterLogic.AND,
    policy: UnknownFieldPolicy = UnknownFieldPolicy.FAIL_CLOSED,
) -> bool:
    """
    Evaluate compiled conditions against a single record.

    No conditions means the record is included.
    """
    if not conditions:
        return True

    results = (_evaluate(record, condition, accessor, policy) for condition in conditions)
    if logic == FilterLogic.OR:
        return any(results)
    return all(results)


def _evaluate(
    record: Any,
    condition: _CompiledCondition,
    accessor: FieldAccessor,
    policy: UnknownFieldPolicy,
) -> bool:
    lookup = accessor.get(record, condition.field)
    if not lookup.found:
        if policy == UnknownFieldPolicy.FAIL_LOUD:
            raise UnknownFieldError(
                f"Unknown filter field '{condition.field}'",
                details={"field": condition.field, "stage": "filter"},
            )
        return False
    if lookup.value is None:
        return False
    return condition.matches(lookup.value)


def apply_filters(
    records: Sequence[Any],
    filters: FilterRequest | None,
    accessor: FieldAccessor,
    policy: UnknownFieldPolicy = UnknownFieldPolicy.FAIL_CLOSED,
    epoch_unit: EpochUnit = EpochUnit.MILLISECONDS,
) -> list[Any]:
    """
    Return the records satisfying the filter request, in input order.

    Args:
        records: Input collection
        filters: Filter request (None or empty means no filtering)
        accessor: Field accessor for the record type
        policy: Unknown-field policy
        epoch_unit: Unit for numeric timestamp operands

    Raises:
        UnknownFieldError: Under FAIL_LOUD when a field cannot be resolved
    """
    if filters is None or not filters.filters:
        return list(records)

    conditions = compile_conditions(filters, epoch_unit)
    matched = [
        record
        for record in records
        if evaluate_filters(record, conditions, accessor, filters.logic, policy)
    ]
    logger.debug(
        "Filters applied",
        extra={
            "conditions": len(conditions),
            "logic": filters.logic.value,
            "input_count": len(records),
            "matched_count": len(matched),
        },
    )
    return matched
