"""
Pydantic schemas for list requests and responses.

Re-exported here for convenient imports.
"""

from .filter import FilterCondition as FilterCondition
from .filter import FilterRequest as FilterRequest
from .pagination import CursorPaginationResponse as CursorPaginationResponse
from .pagination import OffsetPaginationResponse as OffsetPaginationResponse
from .pagination import PaginationRequest as PaginationRequest
from .result import ListResult as ListResult
from .search import SearchMetrics as SearchMetrics
from .search import SearchOptions as SearchOptions
from .search import SearchRequest as SearchRequest
from .search import SearchResult as SearchResult
from .sort import SortField as SortField
from .sort import SortRequest as SortRequest
