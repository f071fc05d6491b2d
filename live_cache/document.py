"""
Stored record wrapper and identifier generation.

Identifiers follow the ObjectId layout (12 bytes rendered as 24 hex chars):

* 4 bytes: Unix timestamp in seconds
* 5 bytes: random value fixed for the process lifetime
* 3 bytes: caller supplied counter modulo ``2**24``

Uniqueness relies on the owning collection incrementing its counter for every
insertion; identifiers are not globally unique across processes that happen to
draw the same process value.
"""

from __future__ import annotations

import random
import time
from collections.abc import Mapping
from typing import Any

from .exceptions import ReservedFieldError

ID_FIELD = "_id"
"""Reserved model field carrying the document identifier."""

PROCESS_ID = random.getrandbits(40)
_COUNTER_MODULO = 1 << 24


def generate_id(counter: int) -> str:
    """
    Build a 24-character lowercase hex identifier.

    Parameters
    ----------
    counter:
        Non-negative counter maintained by the caller. Only the low 24 bits
        are used, so the segment wraps to zero after ``0xffffff``.
    """
    timestamp = int(time.time()) & 0xFFFFFFFF
    return f"{timestamp:08x}{PROCESS_ID:010x}{counter % _COUNTER_MODULO:06x}"


def _now_ms() -> int:
    return int(time.time() * 1000)


class Document:
    """
    One stored record plus its identifier and last-modified timestamp.

    Documents are created by :class:`live_cache.collection.Collection` and
    mutated in place through :meth:`update_data`. The identifier never
    changes after construction.
    """

    __slots__ = ("_id", "_data", "updated_at")

    def __init__(
        self,
        data: Mapping[str, Any],
        counter: int = 0,
        *,
        doc_id: str | None = None,
    ) -> None:
        payload = dict(data)
        if ID_FIELD in payload:
            raise ReservedFieldError(
                f"Document payload must not contain the reserved {ID_FIELD!r} field."
            )
        self._id = doc_id if doc_id is not None else generate_id(counter)
        self._data = payload
        self.updated_at = _now_ms()

    @property
    def id(self) -> str:
        """Return the immutable document identifier."""
        return self._id

    @property
    def data(self) -> dict[str, Any]:
        """Return the live payload mapping (not a copy)."""
        return self._data

    def update_data(self, data: Mapping[str, Any]) -> None:
        """Merge ``data`` into the payload and refresh ``updated_at``."""
        if ID_FIELD in data:
            raise ReservedFieldError(
                f"Document updates must not contain the reserved {ID_FIELD!r} field."
            )
        self._data = {**self._data, **data}
        self.updated_at = _now_ms()

    def to_data(self) -> dict[str, Any]:
        """Return a shallow copy of the payload without the identifier."""
        return dict(self._data)

    def to_model(self) -> dict[str, Any]:
        """Return the payload plus the identifier under ``_id``."""
        return {ID_FIELD: self._id, **self._data}

    def __repr__(self) -> str:
        return f"Document(id={self._id!r}, data={self._data!r})"
