"""
Storage manager contract used by :class:`live_cache.controller.Controller`.

The controller depends on this abstract async surface rather than a specific
backend, so persistence can be a no-op, process memory, a directory of JSON
files, or Redis without changing controller code.

Persistence is an optimization, not a correctness requirement. Implementations
must therefore absorb their own failures: ``get`` resolves to ``None`` and
``set``/``delete`` degrade to no-ops instead of raising.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from copy import deepcopy
from typing import Any

DEFAULT_PREFIX = "live-cache:"


class StorageManager(ABC):
    """
    Async key/value persistence namespaced by ``prefix``.

    Controllers store their full snapshot (a list of model projections) under
    ``key(controller.name)``; :class:`live_cache.transactions.Transactions`
    stores serialized collections under transaction names.
    """

    def __init__(self, prefix: str = DEFAULT_PREFIX) -> None:
        self.prefix = prefix

    def key(self, name: str) -> str:
        """Return the namespaced storage key for ``name``."""
        return f"{self.prefix}{name}"

    @abstractmethod
    async def get(self, name: str) -> Any | None:
        """Return the stored value for ``name`` or ``None``."""

    @abstractmethod
    async def set(self, name: str, value: Any) -> None:
        """Persist ``value`` under ``name`` (best effort)."""

    @abstractmethod
    async def delete(self, name: str) -> None:
        """Remove the value stored under ``name`` if any."""

    @abstractmethod
    async def get_params(self) -> list[str]:
        """Return stored names (key suffixes) under this manager's prefix."""


class DefaultStorageManager(StorageManager):
    """
    No-op storage manager.

    Useful where persistence is not wanted: tests, ephemeral caches.
    """

    async def get(self, name: str) -> Any | None:
        return None

    async def set(self, name: str, value: Any) -> None:
        return None

    async def delete(self, name: str) -> None:
        return None

    async def get_params(self) -> list[str]:
        return []


class MemoryStorageManager(StorageManager):
    """
    Process-local storage manager backed by a dictionary.

    Values are deep copied on write and read so callers can never mutate the
    stored snapshot by accident.
    """

    def __init__(self, prefix: str = DEFAULT_PREFIX) -> None:
        super().__init__(prefix)
        self._values: dict[str, Any] = {}

    async def get(self, name: str) -> Any | None:
        return deepcopy(self._values.get(self.key(name)))

    async def set(self, name: str, value: Any) -> None:
        self._values[self.key(name)] = deepcopy(value)

    async def delete(self, name: str) -> None:
        self._values.pop(self.key(name), None)

    async def get_params(self) -> list[str]:
        return [
            key[len(self.prefix):] for key in self._values if key.startswith(self.prefix)
        ]
