"""Offset and keyset/cursor pagination schemas."""

from __future__ import annotations

from pydantic import BaseModel

from listdata.domain.enums import CursorDirection, PaginationMode


class PaginationRequest(BaseModel):
    """
    Pagination input.

    ``limit == 0`` selects the default page size and limits above the
    configured maximum are clamped. ``page`` is used in OFFSET mode,
    ``token`` and ``direction`` in CURSOR mode (no token starts at the
    beginning). ``direction`` picks the side of the token boundary to read;
    when unset the direction the token was issued for is used.
    """

    mode: PaginationMode = PaginationMode.OFFSET
    limit: int = 0
    page: int = 1
    token: str | None = None
    direction: CursorDirection | None = None


class OffsetPaginationResponse(BaseModel):
    total_items: int
    current_page: int
    total_pages: int
    has_next: bool
    has_prev: bool
    limit: int


class CursorPaginationResponse(BaseModel):
    """Response metadata for keyset-paginated data."""

    next_cursor: str | None = None
    prev_cursor: str | None = None
    has_next: bool
    has_prev: bool
    total_items: int
    limit: int
