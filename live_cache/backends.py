"""
Storage backend factory helpers for easy backend switching.

This module gives application developers a uniform way to pick a storage
manager by name without rewriting controller bootstrap logic.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from .config import DEFAULT_DIRECTORY, FileStorageConfig
from .exceptions import BackendConfigurationError, BackendNotAvailableError
from .persistence import FileStorageManager
from .storage import DEFAULT_PREFIX, DefaultStorageManager, MemoryStorageManager, StorageManager


class StorageBackend(str, Enum):
    """
    Built-in backend names supported by the factory helpers.

    NONE
        No-op persistence.
    MEMORY
        In-process dictionary.
    FILE
        One JSON file per key in a local directory.
    REDIS
        Redis server, provided by the optional ``live_cache_redis`` plugin.
    """

    NONE = "none"
    MEMORY = "memory"
    FILE = "file"
    REDIS = "redis"


def _normalize_backend(backend: str | StorageBackend) -> StorageBackend:
    """
    Normalize backend name into :class:`StorageBackend` enum value.
    """
    if isinstance(backend, StorageBackend):
        return backend
    lowered = str(backend).strip().lower()
    try:
        return StorageBackend(lowered)
    except ValueError as exc:
        valid = ", ".join(item.value for item in StorageBackend)
        raise BackendConfigurationError(
            f"Unknown backend {backend!r}. Supported values: {valid}."
        ) from exc


def _reject_unknown(backend: StorageBackend, options: dict[str, Any]) -> None:
    if options:
        unknown = ", ".join(sorted(str(key) for key in options))
        raise BackendConfigurationError(
            f"{backend.value.capitalize()} backend does not accept options: {unknown}."
        )


def available_backends() -> tuple[str, ...]:
    """
    Return backend names available in the current environment.

    The Redis backend appears only when the optional plugin dependencies are
    installed.
    """
    backends = [StorageBackend.NONE.value, StorageBackend.MEMORY.value, StorageBackend.FILE.value]
    try:
        __import__("live_cache_redis")
    except ImportError:
        pass
    else:
        backends.append(StorageBackend.REDIS.value)
    return tuple(backends)


def create_storage_manager(
    backend: str | StorageBackend = StorageBackend.NONE,
    **backend_options: Any,
) -> StorageManager:
    """
    Create a storage manager from a short backend name.

    Parameters
    ----------
    backend:
        Backend selector string (``"none"``, ``"memory"``, ``"file"`` or
        ``"redis"``).
    backend_options:
        Backend-specific options. All backends accept ``prefix``.

        File options:
            ``directory`` (str), ``fsync`` (bool) or a ready ``config``.
        Redis options:
            ``redis_url`` (str), ``redis_client`` or a ready plugin ``config``.
    """
    selected = _normalize_backend(backend)
    if selected is StorageBackend.NONE:
        prefix = str(backend_options.pop("prefix", DEFAULT_PREFIX))
        _reject_unknown(selected, backend_options)
        return DefaultStorageManager(prefix)
    if selected is StorageBackend.MEMORY:
        prefix = str(backend_options.pop("prefix", DEFAULT_PREFIX))
        _reject_unknown(selected, backend_options)
        return MemoryStorageManager(prefix)
    if selected is StorageBackend.FILE:
        config = backend_options.pop("config", None)
        if config is None:
            config = FileStorageConfig(
                directory=str(backend_options.pop("directory", DEFAULT_DIRECTORY)),
                prefix=str(backend_options.pop("prefix", DEFAULT_PREFIX)),
                fsync=bool(backend_options.pop("fsync", True)),
            )
        _reject_unknown(selected, backend_options)
        return FileStorageManager(config)
    if selected is StorageBackend.REDIS:
        try:
            from live_cache_redis import DEFAULT_REDIS_URL, RedisStorageConfig, RedisStorageManager
        except ImportError as exc:
            raise BackendNotAvailableError(
                "Redis backend requires the optional 'live-cache[redis]' dependencies."
            ) from exc

        config = backend_options.pop("config", None)
        redis_client = backend_options.pop("redis_client", None)
        if config is None:
            config = RedisStorageConfig(
                redis_url=str(backend_options.pop("redis_url", DEFAULT_REDIS_URL)),
                prefix=str(backend_options.pop("prefix", DEFAULT_PREFIX)),
            )
        _reject_unknown(selected, backend_options)
        return RedisStorageManager(config=config, redis_client=redis_client)
    raise BackendConfigurationError(f"Unhandled backend: {selected!r}")
