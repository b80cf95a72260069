"""
Typed exceptions for the list-query engine.

Every invalid configuration is reported through one of these exceptions so
that callers (the CRUD use-case layer) can decide on user-facing messaging.
The HTTP status mapping at the bottom is a convenience for API adapters.
"""

from typing import Any


class ListDataError(Exception):
    """Base exception for all list-query engine errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(ListDataError):
    """
    Raised when a list request is malformed.

    Examples:
    - BETWEEN condition supplied with other than two bounds
    - Negative pagination limit or page below 1
    - Invalid regular expression in a REGEX condition
    - Operator not allowed for the declared field type

    HTTP Status: 400 Bad Request
    """

    pass


class InvalidCursorError(ConfigurationError):
    """
    Raised when a cursor token cannot be used.

    Examples:
    - Token is not valid base64/JSON
    - Token version is unsupported
    - Token was issued for a different sort order

    HTTP Status: 400 Bad Request
    """

    pass


class UnknownFieldError(ListDataError):
    """
    Raised when a field cannot be resolved on a record and the
    unknown-field policy for that stage is FAIL_LOUD.

    HTTP Status: 400 Bad Request
    """

    pass


class ConversionError(ListDataError):
    """
    Raised when a processed record cannot be converted back to the
    caller's expected type.

    HTTP Status: 500 Internal Server Error
    """

    pass


# HTTP Status Code Mapping
ERROR_STATUS_MAP = {
    ConfigurationError: 400,
    InvalidCursorError: 400,
    UnknownFieldError: 400,
    ConversionError: 500,
}


def get_status_code(error: Exception) -> int:
    """
    Get the HTTP status code for a given exception.

    Args:
        error: The exception instance

    Returns:
        HTTP status code (defaults to 500 for unknown errors)
    """
    return ERROR_STATUS_MAP.get(type(error), 500)
