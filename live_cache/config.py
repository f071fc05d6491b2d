"""
Configuration models for controllers and built-in storage backends.

The configuration classes are explicit and validated at construction time so
wiring mistakes surface when a controller is built rather than on the first
fetch or commit.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .storage import DEFAULT_PREFIX

if TYPE_CHECKING:  # pragma: no cover - typing-only imports
    from .controller import AbortSignal
    from .invalidator import Invalidator
    from .storage import StorageManager

DEFAULT_DIRECTORY = ".live-cache"
"""Default directory used by file-backed storage."""

Fetcher = Callable[[Any, "AbortSignal"], Awaitable[Any]]
"""Fetch strategy: ``async (where, signal) -> record | (records, total)``."""


@dataclass(slots=True)
class ControllerOptions:
    """
    Option bundle accepted by :class:`live_cache.controller.Controller`.

    Parameters
    ----------
    storage_manager:
        Snapshot persistence backend. Defaults to a no-op manager.
    page_size:
        Pagination hint; becomes the controller's initial ``limit``.
    invalidator:
        External trigger bound to ``Controller.invalidate``. Defaults to a
        no-op invalidator.
    fetcher:
        Optional fetch strategy used instead of overriding
        ``Controller.fetch`` in a subclass.
    """

    storage_manager: "StorageManager | None" = None
    page_size: int = 10
    invalidator: "Invalidator | None" = None
    fetcher: Fetcher | None = None

    def __post_init__(self) -> None:
        """Validate values that affect controller behavior."""
        if int(self.page_size) <= 0:
            raise ValueError("ControllerOptions.page_size must be >= 1.")
        if self.fetcher is not None and not callable(self.fetcher):
            raise ValueError("ControllerOptions.fetcher must be callable.")


@dataclass(frozen=True, slots=True)
class FileStorageConfig:
    """
    Settings for :class:`live_cache.persistence.FileStorageManager`.

    Parameters
    ----------
    directory:
        Directory holding one JSON file per stored key.
    prefix:
        Key namespace prefix shared with other storage managers.
    fsync:
        If true, force file data and directory entries to disk on writes.
    """

    directory: str = DEFAULT_DIRECTORY
    prefix: str = DEFAULT_PREFIX
    fsync: bool = True

    def __post_init__(self) -> None:
        """Validate the directory setting."""
        if not str(self.directory).strip():
            raise ValueError("FileStorageConfig.directory must be non-empty.")
