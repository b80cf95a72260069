"""
CLI: Run a list request against records loaded from a JSON file.

Usage:
    listdata-query records.json
    listdata-query records.json --request request.json
    listdata-query records.json --request - < request.json

The records file must hold a JSON array of objects. The request file is a
JSON object with any of the keys ``pagination``, ``filters``, ``sort`` and
``search``, shaped like the corresponding request schemas. The processed
result is printed to stdout as JSON.

Exit codes:
    0  Success
    1  Request rejected by the engine
    2  Unreadable input files
"""

from __future__ import annotations

import argparse
import json
import sys
import uuid
from pathlib import Path
from typing import Any

from listdata.core.config import settings
from listdata.core.errors import ListDataError, get_status_code
from listdata.core.observability import (
    configure_structured_logging,
    get_logger,
    set_correlation_id,
)
from listdata.core.telemetry import init_telemetry, shutdown_telemetry
from listdata.engine.accessor import PathAccessor
from listdata.engine.processor import ListDataProcessor

logger = get_logger(__name__)

REQUEST_KEYS = ("pagination", "filters", "sort", "search")


def _load_json(source: str) -> Any:
    if source == "-":
        return json.load(sys.stdin)
    return json.loads(Path(source).read_text(encoding="utf-8"))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="listdata-query",
        description="Filter, search, sort and paginate records from a JSON file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("records", help="Path to a JSON array of records")
    parser.add_argument(
        "--request",
        "-r",
        default=None,
        help="Path to a JSON list request ('-' reads stdin)",
    )
    parser.add_argument(
        "--timestamp-field",
        action="append",
        default=[],
        dest="timestamp_fields",
        help="Field holding timestamps (repeatable)",
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="Indentation of the JSON output (default: 2)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    configure_structured_logging(settings.log_level, structured=settings.structured_logs)
    set_correlation_id(str(uuid.uuid4()))
    init_telemetry()

    try:
        try:
            records = _load_json(args.records)
            request = _load_json(args.request) if args.request else {}
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to read input: %s", e)
            return 2

        if not isinstance(records, list):
            logger.error("Records file must contain a JSON array")
            return 2
        if not isinstance(request, dict):
            logger.error("Request file must contain a JSON object")
            return 2

        unknown = sorted(set(request) - set(REQUEST_KEYS))
        if unknown:
            logger.warning("Ignoring unknown request keys: %s", ", ".join(unknown))

        processor = ListDataProcessor(
            PathAccessor(
                timestamp_fields=args.timestamp_fields,
                epoch_unit=settings.timestamp_epoch_unit,
            )
        )
        try:
            result = processor.process(records, **{k: request.get(k) for k in REQUEST_KEYS})
        except ListDataError as e:
            error = {
                "error": type(e).__name__,
                "message": e.message,
                "details": e.details,
                "status_code": get_status_code(e),
            }
            print(json.dumps(error, indent=args.indent, default=str), file=sys.stderr)
            return 1

        print(result.model_dump_json(indent=args.indent))
        return 0
    finally:
        shutdown_telemetry()


if __name__ == "__main__":
    sys.exit(main())
