"""
Multi-key stable sorting.

Records are ordered by composite keys built from the requested sort fields.
Nulls sort last in both directions, remaining ties keep input order. The
composite keys are returned alongside the ordering so that cursor pagination
can seek into the sorted sequence with the same comparison.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Any

from listdata.core.errors import ConfigurationError, UnknownFieldError
from listdata.domain.enums import RELEVANCE_FIELD, SortDirection, UnknownFieldPolicy
from listdata.engine.accessor import FieldAccessor
from listdata.engine.values import NumberValue
from listdata.schemas.sort import SortRequest

logger = logging.getLogger(__name__)

SortKey = tuple[tuple | None, ...]


@dataclass
class SortOutcome:
    """
    Result of sorting.

    ``order[i]`` is the input index of the record at output position ``i``;
    ``keys[i]`` is that record's composite key.
    """

    order: list[int]
    keys: list[SortKey] = field(default_factory=list)
    directions: list[SortDirection] = field(default_factory=list)
    signature: tuple[tuple[str, str], ...] = ()
    tiebreaker_applied: bool = False


def compare_keys(left: SortKey, right: SortKey, directions: Sequence[SortDirection]) -> int:
    """Three-way comparison of composite keys; nulls last regardless of direction."""
    for a, b, direction in zip(left, right, directions, strict=False):
        if a == b:
            continue
        if a is None:
            return 1
        if b is None:
            return -1
        result = -1 if a < b else 1
        return -result if direction == SortDirection.DESC else result
    return 0


def key_ordering(directions: Sequence[SortDirection]):
    """Key function wrapper usable with sorted() and bisect."""
    return cmp_to_key(lambda a, b: compare_keys(a, b, directions))


def sort_records(
    records: Sequence[Any],
    sort: SortRequest | None,
    accessor: FieldAccessor,
    scores: Sequence[float] | None = None,
    tiebreaker: str | None = None,
    policy: UnknownFieldPolicy = UnknownFieldPolicy.FAIL_LOUD,
) -> SortOutcome:
    """
    Order records by the sort request.

    Args:
        records: Records to order
        sort: Sort request; empty falls back to relevance when ``scores`` is
            given, otherwise input order is kept
        accessor: Field accessor for the record type
        scores: Relevance scores aligned with ``records`` when search is active
        tiebreaker: Unique field appended ascending as the final key when every
            record carries it (used by cursor pagination)
        policy: Unknown-field policy; FAIL_LOUD raises UnknownFieldError

    Raises:
        UnknownFieldError: Sort field missing on a record under FAIL_LOUD
        ConfigurationError: Relevance sort requested without an active search
    """
    specs: list[tuple[str, SortDirection]] = []
    if sort is not None and sort.fields:
        specs = [(f.field, f.direction) for f in sort.fields]
    elif scores is not None:
        specs = [(RELEVANCE_FIELD, SortDirection.DESC)]

    if not specs:
        return SortOutcome(order=list(range(len(records))))

    if any(name == RELEVANCE_FIELD for name, _ in specs) and scores is None:
        raise ConfigurationError(
            f"Sorting by '{RELEVANCE_FIELD}' requires an active search query",
            details={"field": RELEVANCE_FIELD},
        )

    signature = tuple((name, direction.value) for name, direction in specs)
    directions = [direction for _, direction in specs]
    columns = [
        _column(records, name, accessor, scores, policy) for name, _ in specs
    ]

    tiebreaker_applied = False
    if tiebreaker:
        tie_column = _column(records, tiebreaker, accessor, None, UnknownFieldPolicy.FAIL_CLOSED)
        if all(part is not None for part in tie_column):
            columns.append(tie_column)
            directions.append(SortDirection.ASC)
            tiebreaker_applied = True
        else:
            logger.debug(
                "Cursor tiebreaker missing on some records; falling back to positional cursors",
                extra={"tiebreaker": tiebreaker},
            )

    keys: list[SortKey] = [tuple(column[i] for column in columns) for i in range(len(records))]
    ordering = key_ordering(directions)
    order = sorted(range(len(records)), key=lambda i: ordering(keys[i]))

    return SortOutcome(
        order=order,
        keys=[keys[i] for i in order],
        directions=directions,
        signature=signature,
        tiebreaker_applied=tiebreaker_applied,
    )


def _column(
    records: Sequence[Any],
    name: str,
    accessor: FieldAccessor,
    scores: Sequence[float] | None,
    policy: UnknownFieldPolicy,
) -> list[tuple | None]:
    if name == RELEVANCE_FIELD:
        return [NumberValue(float(score)).sort_key() for score in scores]

    column: list[tuple | None] = []
    missing = 0
    for record in records:
        lookup = accessor.get(record, name)
        if not lookup.found:
            if policy == UnknownFieldPolicy.FAIL_LOUD:
                raise UnknownFieldError(
                    f"Unknown sort field '{name}'",
                    details={"field": name, "stage": "sort"},
                )
            missing += 1
        column.append(lookup.value.sort_key() if lookup.value is not None else None)

    if missing:
        logger.warning(
            "Sort field '%s' missing on %d record(s); sorting them last", name, missing
        )
    return column
