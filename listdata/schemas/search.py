"""Search request and result schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SearchOptions(BaseModel):
    search_fields: list[str] = Field(default_factory=list)
    max_results: int = 0
    field_weights: dict[str, float] = Field(default_factory=dict)
    enable_highlighting: bool = True
    enable_fuzzy: bool = False


class SearchRequest(BaseModel):
    """Free-text query; an empty query disables the search stage."""

    query: str = ""
    options: SearchOptions = Field(default_factory=SearchOptions)


class SearchResult(BaseModel):
    """Relevance data for the item at the same index of a list result."""

    score: float
    highlights: list[str] = Field(default_factory=list)
    matched_fields: list[str] = Field(default_factory=list)


class SearchMetrics(BaseModel):
    total_results: int
    query_time_ms: float
    top_terms: list[str] = Field(default_factory=list)
    field_match_counts: dict[str, int] = Field(default_factory=dict)
