"""
List request validation.

Checks that a list request is structurally usable before any record is
touched:
- Every condition, sort and search field names a non-empty path
- Operator value shapes are respected (BETWEEN takes two bounds, IN a list)
- Ordered operators receive comparable values; REGEX patterns compile
- Operators are allowed for fields whose type the accessor declares
- Pagination limits and pages are in range

Failures raise ConfigurationError with a JSONPath-like location so that
callers can point at the offending part of the request. Because validation
happens first, an invalid request never yields a partial result.
"""

import logging
import re
from datetime import date
from typing import Any

from listdata.core.config import Settings
from listdata.core.errors import ConfigurationError
from listdata.domain.enums import (
    ALLOWED_OPERATORS,
    FilterOperator,
    PaginationMode,
)
from listdata.engine.accessor import FieldAccessor
from listdata.engine.values import parse_number, parse_timestamp
from listdata.schemas.filter import FilterCondition, FilterRequest
from listdata.schemas.pagination import PaginationRequest
from listdata.schemas.search import SearchRequest
from listdata.schemas.sort import SortRequest

logger = logging.getLogger(__name__)

LIST_OPERATORS = frozenset({FilterOperator.IN, FilterOperator.NOT_IN})
RANGE_OPERATORS = frozenset({FilterOperator.BETWEEN})
ORDERING_OPERATORS = frozenset(
    {FilterOperator.GT, FilterOperator.GTE, FilterOperator.LT, FilterOperator.LTE}
)


def validate_filter_request(filters: FilterRequest, accessor: FieldAccessor) -> None:
    """
    Validate every condition of a filter request.

    Args:
        filters: Filter request to validate
        accessor: Field accessor; its declared types restrict operators

    Raises:
        ConfigurationError: If any condition is unusable
    """
    for i, condition in enumerate(filters.filters):
        _validate_condition(condition, accessor, path=f"$.filters[{i}]")


def _validate_condition(condition: FilterCondition, accessor: FieldAccessor, path: str) -> None:
    if not condition.field or not condition.field.strip():
        raise ConfigurationError(f"Filter condition missing 'field' at {path}", details={"path": path})

    operator = condition.operator
    declared = accessor.declared_type(condition.field)
    if declared is not None and operator not in ALLOWED_OPERATORS[declared]:
        raise ConfigurationError(
            f"Operator '{operator.value}' not allowed for field '{condition.field}' at {path}",
            details={
                "path": path,
                "field": condition.field,
                "operator": operator.value,
                "data_type": declared.value,
                "allowed_operators": sorted(op.value for op in ALLOWED_OPERATORS[declared]),
            },
        )

    value = condition.value
    if value is None:
        raise ConfigurationError(
            f"Operator '{operator.value}' requires a value for field '{condition.field}' at {path}",
            details={"path": path, "field": condition.field},
        )

    if operator in RANGE_OPERATORS:
        if not isinstance(value, list | tuple) or len(value) != 2:
            raise ConfigurationError(
                f"Operator '{operator.value}' requires exactly 2 values for "
                f"field '{condition.field}' at {path}",
                details={"path": path, "field": condition.field, "value": value},
            )
        for bound in value:
            _check_ordered_value(condition, bound, path)
        return

    if operator in LIST_OPERATORS:
        if not isinstance(value, list | tuple | set | frozenset):
            raise ConfigurationError(
                f"Operator '{operator.value}' requires a list for field '{condition.field}' at {path}",
                details={"path": path, "field": condition.field, "value": value},
            )
        for item in value:
            _check_scalar(condition, item, path)
        return

    if isinstance(value, list | tuple | set | frozenset | dict):
        raise ConfigurationError(
            f"Operator '{operator.value}' requires a single value for "
            f"field '{condition.field}' at {path}",
            details={"path": path, "field": condition.field, "value": value},
        )

    if operator in ORDERING_OPERATORS:
        _check_ordered_value(condition, value, path)
    elif operator == FilterOperator.REGEX:
        if not isinstance(value, str):
            raise ConfigurationError(
                f"Operator 'REGEX' requires a string pattern at {path}",
                details={"path": path, "field": condition.field, "value": value},
            )
        try:
            re.compile(value)
        except re.error as e:
            raise ConfigurationError(
                f"Invalid regular expression for field '{condition.field}' at {path}: {e}",
                details={"path": path, "field": condition.field, "pattern": value},
            ) from e
    else:
        _check_scalar(condition, value, path)


def _check_scalar(condition: FilterCondition, value: Any, path: str) -> None:
    if isinstance(value, str | int | float | bool | date):
        return
    raise ConfigurationError(
        f"Unsupported value type '{type(value).__name__}' for field '{condition.field}' at {path}",
        details={"path": path, "field": condition.field, "type": type(value).__name__},
    )


def _check_ordered_value(condition: FilterCondition, value: Any, path: str) -> None:
    """Ordered comparisons need a number or a timestamp."""
    if isinstance(value, bool) or value is None:
        comparable = False
    else:
        comparable = parse_number(value) is not None or parse_timestamp(value) is not None
    if not comparable:
        raise ConfigurationError(
            f"Operator '{condition.operator.value}' requires numeric or timestamp values for "
            f"field '{condition.field}' at {path}",
            details={"path": path, "field": condition.field, "value": value},
        )


def validate_sort_request(sort: SortRequest) -> None:
    """Sort fields must name a field; duplicates are rejected as ambiguous."""
    seen: set[str] = set()
    for i, sort_field in enumerate(sort.fields):
        path = f"$.sort.fields[{i}]"
        if not sort_field.field or not sort_field.field.strip():
            raise ConfigurationError(f"Sort field missing 'field' at {path}", details={"path": path})
        if sort_field.field in seen:
            raise ConfigurationError(
                f"Duplicate sort field '{sort_field.field}' at {path}",
                details={"path": path, "field": sort_field.field},
            )
        seen.add(sort_field.field)


def validate_search_request(search: SearchRequest) -> None:
    options = search.options
    if options.max_results < 0:
        raise ConfigurationError(
            "Search max_results cannot be negative",
            details={"path": "$.search.options.max_results", "value": options.max_results},
        )
    for i, field in enumerate(options.search_fields):
        if not field or not field.strip():
            raise ConfigurationError(
                f"Search field missing at $.search.options.search_fields[{i}]",
                details={"path": f"$.search.options.search_fields[{i}]"},
            )
    for field, weight in options.field_weights.items():
        if weight <= 0:
            raise ConfigurationError(
                f"Search weight for field '{field}' must be positive",
                details={"path": "$.search.options.field_weights", "field": field, "weight": weight},
            )


def validate_pagination_request(pagination: PaginationRequest) -> None:
    if pagination.limit < 0:
        raise ConfigurationError(
            "Pagination limit cannot be negative",
            details={"path": "$.pagination.limit", "limit": pagination.limit},
        )
    if pagination.mode == PaginationMode.OFFSET and pagination.page < 1:
        raise ConfigurationError(
            "Page number must be at least 1",
            details={"path": "$.pagination.page", "page": pagination.page},
        )


def effective_limit(pagination: PaginationRequest, settings: Settings) -> int:
    """
    Resolve the page size for a request.

    0 selects the default page size; anything above the maximum is clamped.
    """
    if pagination.limit == 0:
        return settings.default_page_size
    if pagination.limit > settings.max_page_size:
        logger.debug(
            "Clamping pagination limit",
            extra={"requested_limit": pagination.limit, "max_page_size": settings.max_page_size},
        )
        return settings.max_page_size
    return pagination.limit
