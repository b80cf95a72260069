"""List result schema returned by the processor."""

from pydantic import BaseModel, ConfigDict, Field

from listdata.schemas.pagination import CursorPaginationResponse, OffsetPaginationResponse
from listdata.schemas.search import SearchMetrics, SearchResult


class ListResult[T](BaseModel):
    """
    Processed page of records.

    ``search_results[i]`` describes ``items[i]``; it is empty when search is
    disabled.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    items: list[T]
    search_results: list[SearchResult] = Field(default_factory=list)
    pagination: OffsetPaginationResponse | CursorPaginationResponse
    search_metrics: SearchMetrics | None = None
