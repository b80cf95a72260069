"""
listdata: generic list-query processing for in-memory record collections.

Typed filtering, free-text search with relevance scoring and highlighting,
multi-field sorting, and offset or cursor pagination behind a single
processor entry point.
"""

from listdata.core.errors import (
    ConfigurationError,
    ConversionError,
    InvalidCursorError,
    ListDataError,
    UnknownFieldError,
)
from listdata.engine.accessor import FieldAccessor, FieldMapAccessor, PathAccessor
from listdata.engine.processor import ListDataProcessor

__all__ = [
    "ConfigurationError",
    "ConversionError",
    "FieldAccessor",
    "FieldMapAccessor",
    "InvalidCursorError",
    "ListDataError",
    "ListDataProcessor",
    "PathAccessor",
    "UnknownFieldError",
]
