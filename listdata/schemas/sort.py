"""Sort request schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from listdata.domain.enums import SortDirection


class SortField(BaseModel):
    field: str
    direction: SortDirection = SortDirection.ASC


class SortRequest(BaseModel):
    """Earlier fields take precedence as primary/secondary/... keys."""

    fields: list[SortField] = Field(default_factory=list)
