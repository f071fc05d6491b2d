"""
Deterministic structural hashing used for index keys and equality checks.

Values are first rendered into a canonical string (mapping keys sorted, lists
kept in order, type-tagged forms for values that would otherwise stringify
identically) and then hashed with 32-bit FNV-1a. The result is rendered as a
fixed-width lowercase hex string so index keys stay uniform.

Hash equality is only a fast path. Collisions are possible, so callers that
need exact answers must re-verify candidates (``Collection`` does).
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

_FNV_OFFSET_BASIS = 0x811C9DC5
_FNV_PRIME = 0x01000193
_UNSUPPORTED = json.dumps("<unsupported>")


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _format_float(value: float) -> str:
    if math.isnan(value):
        return _quote("NaN")
    if math.isinf(value):
        return _quote("Infinity" if value > 0 else "-Infinity")
    if value.is_integer() and abs(value) < 2**53:
        return str(int(value))
    return repr(value)


def stable_stringify(value: Any) -> str:
    """
    Render ``value`` as a canonical string independent of key order.

    Unsupported objects (functions, arbitrary class instances) collapse to one
    fixed placeholder, so they never distinguish two otherwise equal values.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, str):
        return _quote(value)
    if isinstance(value, Decimal):
        return _quote(f"decimal:{value}")
    if isinstance(value, (bytes, bytearray)):
        return _quote(f"bytes:{bytes(value).hex()}")
    if isinstance(value, UUID):
        return _quote(f"uuid:{value}")
    if isinstance(value, (datetime, date)):
        return '{"$date":' + _quote(value.isoformat()) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(stable_stringify(item) for item in value) + "]"
    if isinstance(value, (set, frozenset)):
        items = sorted(stable_stringify(item) for item in value)
        return '{"$set":[' + ",".join(items) + "]}"
    if isinstance(value, Mapping):
        keys = sorted(value, key=str)
        return (
            "{"
            + ",".join(f"{_quote(str(key))}:{stable_stringify(value[key])}" for key in keys)
            + "}"
        )
    return _UNSUPPORTED


def fnv1a(text: str) -> str:
    """
    Hash ``text`` with 32-bit FNV-1a and return 8 lowercase hex digits.

    The hash runs over UTF-16 code units so keys match those produced by
    JavaScript clients sharing the same persisted snapshots.
    """
    encoded = text.encode("utf-16-le")
    value = _FNV_OFFSET_BASIS
    for index in range(0, len(encoded), 2):
        value ^= encoded[index] | (encoded[index + 1] << 8)
        value = (value * _FNV_PRIME) & 0xFFFFFFFF
    return f"{value:08x}"


def structural_hash(value: Any) -> str:
    """Return the fixed-width structural hash of ``value``."""
    return fnv1a(stable_stringify(value))
