"""
Domain enums for list requests.

These enums are shared by the request schemas and the engine stages so that
operator and type handling is checked against a closed set of values.
"""

from enum import Enum


class DataType(str, Enum):
    """Coarse type tag attached to every resolved field value."""

    STRING = "STRING"
    NUMBER = "NUMBER"
    BOOLEAN = "BOOLEAN"
    TIMESTAMP = "TIMESTAMP"


class FilterOperator(str, Enum):
    """Supported operators for filter conditions."""

    EQUALS = "EQUALS"
    NOT_EQUALS = "NOT_EQUALS"
    CONTAINS = "CONTAINS"  # String contains
    STARTS_WITH = "STARTS_WITH"  # String starts with
    ENDS_WITH = "ENDS_WITH"  # String ends with
    REGEX = "REGEX"  # Regular expression search
    IN = "IN"  # In list
    NOT_IN = "NOT_IN"  # Not in list
    GT = "GT"  # Greater than
    GTE = "GTE"  # Greater than or equal
    LT = "LT"  # Less than
    LTE = "LTE"  # Less than or equal
    BETWEEN = "BETWEEN"  # Inclusive range, exactly two bounds


class FilterLogic(str, Enum):
    """How the conditions of a filter request are combined."""

    AND = "AND"
    OR = "OR"


class SortDirection(str, Enum):
    """Sort direction for a sort field."""

    ASC = "ASC"
    DESC = "DESC"


class PaginationMode(str, Enum):
    """Pagination method."""

    OFFSET = "OFFSET"
    CURSOR = "CURSOR"


class CursorDirection(str, Enum):
    """Direction for cursor-based pagination."""

    NEXT = "NEXT"
    PREV = "PREV"


class UnknownFieldPolicy(str, Enum):
    """
    What a stage does when a field cannot be resolved on a record.

    FAIL_CLOSED treats the record as a non-match (filters) or as a null value
    (sorting). FAIL_LOUD raises UnknownFieldError.
    """

    FAIL_CLOSED = "FAIL_CLOSED"
    FAIL_LOUD = "FAIL_LOUD"


# Operators accepted for each declared field type.
STRING_OPERATORS = frozenset(
    {
        FilterOperator.EQUALS,
        FilterOperator.NOT_EQUALS,
        FilterOperator.CONTAINS,
        FilterOperator.STARTS_WITH,
        FilterOperator.ENDS_WITH,
        FilterOperator.REGEX,
        FilterOperator.IN,
        FilterOperator.NOT_IN,
    }
)

ORDERED_OPERATORS = frozenset(
    {
        FilterOperator.EQUALS,
        FilterOperator.NOT_EQUALS,
        FilterOperator.GT,
        FilterOperator.GTE,
        FilterOperator.LT,
        FilterOperator.LTE,
        FilterOperator.BETWEEN,
        FilterOperator.IN,
        FilterOperator.NOT_IN,
    }
)

BOOLEAN_OPERATORS = frozenset({FilterOperator.EQUALS, FilterOperator.NOT_EQUALS})

ALLOWED_OPERATORS: dict[DataType, frozenset[FilterOperator]] = {
    DataType.STRING: STRING_OPERATORS,
    DataType.NUMBER: ORDERED_OPERATORS,
    DataType.TIMESTAMP: ORDERED_OPERATORS,
    DataType.BOOLEAN: BOOLEAN_OPERATORS,
}

# Reserved sort field that orders by search relevance.
RELEVANCE_FIELD = "_score"
