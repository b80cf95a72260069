"""
Opaque cursor tokens for keyset pagination.

A token is the URL-safe base64 encoding of a canonical JSON payload:

    {
        "v": 1,                      # payload version
        "sort": [["name", "ASC"]],   # sort signature the token was issued for
        "after": [[2, "elm", "Elm"], [1, 3.0]] | null,  # boundary composite key
        "position": 2,               # boundary index, fallback when keys can't seek
        "direction": "NEXT"
    }

Canonical JSON (sorted keys, no whitespace) makes tokens byte-for-byte
stable across identical queries.
"""

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any

from listdata.core.errors import InvalidCursorError
from listdata.domain.enums import CursorDirection
from listdata.engine.values import sort_key_from_json, sort_key_to_json

CURSOR_VERSION = 1


@dataclass(frozen=True)
class CursorPosition:
    signature: tuple[tuple[str, str], ...]
    after: tuple[tuple | None, ...] | None
    position: int
    direction: CursorDirection = CursorDirection.NEXT


def canonicalize_json(obj: Any) -> Any:
    """
    Produce a deterministic representation of a JSON-compatible object.

    Dictionary keys are sorted recursively; list order is preserved.

    Example:
        >>> canonicalize_json({"z": 1, "a": {"c": 2, "b": 3}})
        {'a': {'b': 3, 'c': 2}, 'z': 1}
    """
    if isinstance(obj, dict):
        return {k: canonicalize_json(v) for k, v in sorted(obj.items())}
    if isinstance(obj, list | tuple):
        return [canonicalize_json(item) for item in obj]
    return obj


def to_canonical_json_string(obj: Any) -> str:
    """Serialize with sorted keys and no extra whitespace."""
    return json.dumps(
        canonicalize_json(obj), sort_keys=True, separators=(",", ":"), ensure_ascii=False
    )


def encode_cursor(cursor: CursorPosition) -> str:
    """
    Encode a cursor position into an opaque token.

    Args:
        cursor: Boundary of the page the token continues from

    Returns:
        URL-safe base64 cursor string
    """
    payload = {
        "v": CURSOR_VERSION,
        "sort": [list(entry) for entry in cursor.signature],
        "after": (
            [sort_key_to_json(part) for part in cursor.after] if cursor.after is not None else None
        ),
        "position": cursor.position,
        "direction": cursor.direction.value,
    }
    json_str = to_canonical_json_string(payload)
    return base64.urlsafe_b64encode(json_str.encode("utf-8")).decode("ascii")


def decode_cursor(token: str) -> CursorPosition:
    """
    Decode a cursor token.

    Raises:
        InvalidCursorError: If the token is malformed or from another version
    """
    try:
        json_str = base64.urlsafe_b64decode(token.encode("ascii")).decode("utf-8")
        payload = json.loads(json_str)
        if not isinstance(payload, dict):
            raise ValueError("payload must be an object")
        if payload.get("v") != CURSOR_VERSION:
            raise ValueError(f"unsupported cursor version {payload.get('v')!r}")

        signature = tuple(_signature_entry(entry) for entry in payload["sort"])
        raw_after = payload["after"]
        after = (
            tuple(sort_key_from_json(part) for part in raw_after) if raw_after is not None else None
        )
        position = payload["position"]
        if isinstance(position, bool) or not isinstance(position, int) or position < 0:
            raise ValueError("position must be a non-negative integer")
        direction = CursorDirection(payload["direction"])
    except (KeyError, TypeError, ValueError, UnicodeError, binascii.Error) as e:
        raise InvalidCursorError(f"Invalid cursor: {e}", details={"token": token}) from e

    return CursorPosition(signature=signature, after=after, position=position, direction=direction)


def _signature_entry(entry: Any) -> tuple[str, str]:
    if not isinstance(entry, list) or len(entry) != 2 or not all(isinstance(p, str) for p in entry):
        raise ValueError("sort signature entries must be [field, direction] pairs")
    return entry[0], entry[1]
