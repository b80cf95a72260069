"""Filter request schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from listdata.domain.enums import FilterLogic, FilterOperator


class FilterCondition(BaseModel):
    """A single typed condition evaluated against one field of each record."""

    field: str
    operator: FilterOperator
    value: Any = None
    case_sensitive: bool = False


class FilterRequest(BaseModel):
    """Ordered conditions; an empty list means no filtering."""

    filters: list[FilterCondition] = Field(default_factory=list)
    logic: FilterLogic = FilterLogic.AND
