"""Offset and keyset/cursor pagination over an already-sorted sequence."""

import bisect
import logging
import math
from collections.abc import Sequence

from listdata.core.errors import InvalidCursorError
from listdata.domain.enums import CursorDirection, SortDirection
from listdata.engine.cursor import CursorPosition, decode_cursor, encode_cursor
from listdata.engine.sorting import SortKey, key_ordering
from listdata.schemas.pagination import CursorPaginationResponse, OffsetPaginationResponse

logger = logging.getLogger(__name__)


def paginate_offset(
    total_items: int, page: int, limit: int
) -> tuple[int, int, OffsetPaginationResponse]:
    """
    Compute the slice for an offset page.

    A page past the end yields an empty slice rather than an error.

    Returns:
        Tuple of (start, end, response)
    """
    offset = (page - 1) * limit
    start = min(offset, total_items)
    end = min(offset + limit, total_items)
    total_pages = math.ceil(total_items / limit) if total_items else 0

    response = OffsetPaginationResponse(
        total_items=total_items,
        current_page=page,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
        limit=limit,
    )
    return start, end, response


def is_seekable(keys: Sequence[SortKey], directions: Sequence[SortDirection]) -> bool:
    """
    Keys can be used for keyset seeks only when they order records totally.

    ``keys`` must already be sorted; duplicates show up as equal neighbours.
    """
    if not keys or not directions:
        return False
    ordering = key_ordering(directions)
    return all(ordering(keys[i]) != ordering(keys[i + 1]) for i in range(len(keys) - 1))


def paginate_cursor(
    keys: Sequence[SortKey],
    directions: Sequence[SortDirection],
    signature: tuple[tuple[str, str], ...],
    token: str | None,
    limit: int,
    seekable: bool,
    direction: CursorDirection | None = None,
) -> tuple[int, int, CursorPaginationResponse]:
    """
    Compute the slice for a cursor page.

    Args:
        keys: Composite sort keys of the sorted sequence
        directions: Direction per key component
        signature: Sort signature the tokens must carry
        token: Cursor from a previous response (None starts at the beginning)
        limit: Page size
        seekable: Whether ``keys`` order records totally; otherwise the
            positions stored in tokens are used
        direction: Side of the token boundary to return; defaults to the
            direction the token was issued for

    Returns:
        Tuple of (start, end, response)

    Raises:
        InvalidCursorError: If the token is malformed or was issued for a
            different sort order
    """
    total = len(keys)

    if not token:
        start, end = 0, min(limit, total)
    else:
        cursor = decode_cursor(token)
        if cursor.signature != signature:
            raise InvalidCursorError(
                "Cursor was issued for a different sort order",
                details={
                    "cursor_sort": [list(entry) for entry in cursor.signature],
                    "request_sort": [list(entry) for entry in signature],
                },
            )
        boundary = _resolve_boundary(cursor, keys, directions, seekable)
        if (direction or cursor.direction) == CursorDirection.NEXT:
            start = boundary
            end = min(start + limit, total)
        else:
            end = boundary
            start = max(0, end - limit)

    has_next = end < total
    has_prev = start > 0
    next_cursor = None
    prev_cursor = None

    if has_next and end > start:
        next_cursor = encode_cursor(
            CursorPosition(
                signature=signature,
                after=keys[end - 1] if seekable else None,
                position=end,
                direction=CursorDirection.NEXT,
            )
        )
    if has_prev and end > start:
        prev_cursor = encode_cursor(
            CursorPosition(
                signature=signature,
                after=keys[start] if seekable else None,
                position=start,
                direction=CursorDirection.PREV,
            )
        )

    response = CursorPaginationResponse(
        next_cursor=next_cursor,
        prev_cursor=prev_cursor,
        has_next=has_next,
        has_prev=has_prev,
        total_items=total,
        limit=limit,
    )
    return start, end, response


def _resolve_boundary(
    cursor: CursorPosition,
    keys: Sequence[SortKey],
    directions: Sequence[SortDirection],
    seekable: bool,
) -> int:
    """
    Gap in the current sequence where the token's page boundary falls.

    NEXT tokens mark the gap after their boundary item, PREV tokens the gap
    before it. The requested direction then reads forwards or backwards
    from that gap.
    """
    if seekable and cursor.after is not None and len(cursor.after) == len(directions):
        ordering = key_ordering(directions)
        target = ordering(cursor.after)
        if cursor.direction == CursorDirection.NEXT:
            return bisect.bisect_right(keys, target, key=ordering)
        return bisect.bisect_left(keys, target, key=ordering)

    logger.debug("Resolving cursor by position", extra={"position": cursor.position})
    return min(cursor.position, len(keys))
