"""
List request processor.

The processor is the single entry point of the engine. It validates the whole
request up front, then runs the fixed pipeline

    filter -> search -> sort -> paginate -> convert

where each stage only sees the previous stage's output. It keeps no state
between calls beyond its read-only configuration, so one instance can be
shared across request-handling threads as long as callers do not mutate the
input collection during a call.

Example:
    >>> processor = ListDataProcessor(PathAccessor(timestamp_fields=["created_at"]))
    >>> result = processor.process(
    ...     products,
    ...     pagination={"mode": "OFFSET", "page": 1, "limit": 20},
    ...     filters={"filters": [{"field": "active", "operator": "EQUALS", "value": True}]},
    ...     sort={"fields": [{"field": "name", "direction": "ASC"}]},
    ...     search={"query": "apple", "options": {"search_fields": ["name"]}},
    ... )
"""

import logging
import time
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from listdata.core.config import Settings
from listdata.core.config import settings as default_settings
from listdata.core.errors import ConfigurationError, ConversionError, ListDataError
from listdata.core.observability import metrics
from listdata.core.telemetry import get_tracer
from listdata.domain.enums import PaginationMode
from listdata.engine.accessor import FieldAccessor, PathAccessor
from listdata.engine.filters import apply_filters
from listdata.engine.pagination import is_seekable, paginate_cursor, paginate_offset
from listdata.engine.search import HighlightConfig, apply_search
from listdata.engine.sorting import sort_records
from listdata.engine.validator import (
    effective_limit,
    validate_filter_request,
    validate_pagination_request,
    validate_search_request,
    validate_sort_request,
)
from listdata.schemas.filter import FilterRequest
from listdata.schemas.pagination import PaginationRequest
from listdata.schemas.result import ListResult
from listdata.schemas.search import SearchRequest
from listdata.schemas.sort import SortRequest

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class ListDataProcessor:
    """
    Applies filtering, search, sorting and pagination to in-memory records.

    Args:
        accessor: Field accessor for the record type (defaults to a
            PathAccessor using the configured epoch unit)
        settings: Engine settings (defaults to the environment-loaded settings)
    """

    def __init__(
        self,
        accessor: FieldAccessor | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self.accessor = accessor or PathAccessor(epoch_unit=self.settings.timestamp_epoch_unit)
        self._tracer = get_tracer()

    def process(
        self,
        records: Sequence[Any],
        pagination: PaginationRequest | Mapping[str, Any] | None = None,
        filters: FilterRequest | Mapping[str, Any] | None = None,
        sort: SortRequest | Mapping[str, Any] | None = None,
        search: SearchRequest | Mapping[str, Any] | None = None,
        *,
        converter: Callable[[Any], Any] | None = None,
        output_type: type | None = None,
    ) -> ListResult:
        """
        Process a list request.

        Args:
            records: Materialized collection to query
            pagination: Offset or cursor pagination (defaults to the first
                offset page with the default page size)
            filters: Typed filter conditions
            sort: Sort fields
            search: Free-text search
            converter: Applied to every returned item to produce the
                caller's record type
            output_type: When given, every returned item must be an instance

        Returns:
            ListResult with items, index-aligned search results and
            pagination metadata

        Raises:
            ConfigurationError: Malformed request (including bad cursors)
            UnknownFieldError: Unresolvable field under a FAIL_LOUD policy
            ConversionError: Returned items cannot be converted
        """
        started = time.perf_counter()
        mode = "unknown"
        try:
            pagination_req = _as_model(PaginationRequest, pagination, "pagination")
            filter_req = _as_model(FilterRequest, filters, "filters")
            sort_req = _as_model(SortRequest, sort, "sort")
            search_req = _as_model(SearchRequest, search, "search")

            if pagination_req is None:
                pagination_req = PaginationRequest()
            mode = pagination_req.mode.value.lower()

            validate_pagination_request(pagination_req)
            if filter_req is not None:
                validate_filter_request(filter_req, self.accessor)
            if sort_req is not None:
                validate_sort_request(sort_req)
            if search_req is not None:
                validate_search_request(search_req)

            result = self._run(
                list(records),
                pagination_req,
                filter_req,
                sort_req,
                search_req,
                converter,
                output_type,
            )
        except ListDataError as e:
            self._record_request("error", mode)
            logger.info(
                "List request rejected",
                extra={"error_type": type(e).__name__, "error": e.message, "details": e.details},
            )
            raise

        self._record_request("success", mode)
        if self.settings.metrics_enabled:
            metrics.result_items.observe(len(result.items))
        logger.debug(
            "List request processed",
            extra={
                "input_count": len(records),
                "returned_count": len(result.items),
                "mode": mode,
                "duration_ms": round((time.perf_counter() - started) * 1000, 3),
            },
        )
        return result

    def _run(
        self,
        records: list[Any],
        pagination: PaginationRequest,
        filters: FilterRequest | None,
        sort: SortRequest | None,
        search: SearchRequest | None,
        converter: Callable[[Any], Any] | None,
        output_type: type | None,
    ) -> ListResult:
        settings = self.settings
        limit = effective_limit(pagination, settings)

        with self._stage("filter"):
            filtered = apply_filters(
                records,
                filters,
                self.accessor,
                policy=settings.filter_unknown_field_policy,
                epoch_unit=settings.timestamp_epoch_unit,
            )

        with self._stage("search"):
            outcome = apply_search(
                filtered,
                search,
                self.accessor,
                fuzzy_threshold=settings.fuzzy_threshold,
                highlight=HighlightConfig(
                    context=settings.highlight_context,
                    pre_tag=settings.highlight_pre_tag,
                    post_tag=settings.highlight_post_tag,
                ),
            )
        if outcome.active and settings.metrics_enabled:
            metrics.search_queries_total.inc()

        cursor_mode = pagination.mode == PaginationMode.CURSOR
        with self._stage("sort"):
            ordered = sort_records(
                outcome.records,
                sort,
                self.accessor,
                scores=[r.score for r in outcome.results] if outcome.active else None,
                tiebreaker=settings.cursor_tiebreaker_field if cursor_mode else None,
                policy=settings.sort_unknown_field_policy,
            )
        items = [outcome.records[i] for i in ordered.order]
        results = [outcome.results[i] for i in ordered.order] if outcome.active else []

        with self._stage("paginate"):
            if cursor_mode:
                seekable = ordered.tiebreaker_applied and is_seekable(
                    ordered.keys, ordered.directions
                )
                start, end, page_info = paginate_cursor(
                    ordered.keys or [()] * len(items),
                    ordered.directions,
                    ordered.signature,
                    pagination.token,
                    limit,
                    seekable,
                    pagination.direction,
                )
            else:
                start, end, page_info = paginate_offset(len(items), pagination.page, limit)

        page_items = items[start:end]
        with self._stage("convert"):
            page_items = _convert(page_items, converter, output_type)

        return ListResult(
            items=page_items,
            search_results=results[start:end],
            pagination=page_info,
            search_metrics=outcome.metrics,
        )

    @contextmanager
    def _stage(self, name: str) -> Iterator[None]:
        started = time.perf_counter()
        try:
            with self._tracer.start_as_current_span(f"listdata.{name}"):
                yield
        finally:
            if self.settings.metrics_enabled:
                metrics.stage_duration_seconds.labels(stage=name).observe(
                    time.perf_counter() - started
                )

    def _record_request(self, status: str, mode: str) -> None:
        if self.settings.metrics_enabled:
            metrics.requests_total.labels(status=status, mode=mode).inc()


def _as_model(model: type[M], value: M | Mapping[str, Any] | None, name: str) -> M | None:
    """Accept a schema instance or a plain mapping for a request part."""
    if value is None or isinstance(value, model):
        return value
    try:
        return model.model_validate(value)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid {name} request",
            details={"path": f"$.{name}", "errors": e.errors(include_url=False)},
        ) from e


def _convert(
    items: list[Any],
    converter: Callable[[Any], Any] | None,
    output_type: type | None,
) -> list[Any]:
    converted = []
    for index, item in enumerate(items):
        if converter is not None:
            try:
                item = converter(item)
            except Exception as e:
                raise ConversionError(
                    f"Failed to convert item at index {index}: {e}",
                    details={"index": index, "source_type": type(item).__name__},
                ) from e
        if output_type is not None and not isinstance(item, output_type):
            raise ConversionError(
                f"Item at index {index} is {type(item).__name__}, expected {output_type.__name__}",
                details={"index": index, "expected_type": output_type.__name__},
            )
        converted.append(item)
    return converted
