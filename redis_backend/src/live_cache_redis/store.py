"""
Redis-backed storage manager implementation.

The manager implements the core ``StorageManager`` contract and can be
injected into :class:`live_cache.controller.Controller` or
:class:`live_cache.transactions.Transactions`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from live_cache.storage import DEFAULT_PREFIX, StorageManager
from redis.asyncio import Redis
from redis.exceptions import RedisError

_LOGGER = logging.getLogger(__name__)

DEFAULT_REDIS_URL = "redis://127.0.0.1:6379/0"

_GLOB_SPECIALS = "\\*?[]"


@dataclass(slots=True)
class RedisStorageConfig:
    """
    Configuration for :class:`RedisStorageManager`.

    Parameters
    ----------
    redis_url:
        Redis connection URL used when a client is not directly supplied.
    prefix:
        Prefix for all redis keys created by this manager.
    """

    redis_url: str = DEFAULT_REDIS_URL
    prefix: str = DEFAULT_PREFIX

    def __post_init__(self) -> None:
        """Validate connection settings."""
        if not self.redis_url.strip():
            raise ValueError("RedisStorageConfig.redis_url must be non-empty.")


def _escape_glob(text: str) -> str:
    return "".join(f"\\{char}" if char in _GLOB_SPECIALS else char for char in text)


class RedisStorageManager(StorageManager):
    """
    Store JSON-encoded values in Redis strings under ``<prefix><name>``.

    Notes
    -----
    Redis failures are logged and absorbed: ``get`` returns ``None`` and
    writes become no-ops, so controller commits never fail on persistence.
    """

    def __init__(
        self,
        *,
        config: RedisStorageConfig | None = None,
        redis_client: Redis | None = None,
    ) -> None:
        self.config = config or RedisStorageConfig()
        super().__init__(self.config.prefix)
        self._owns_client = redis_client is None
        self._redis = redis_client or Redis.from_url(self.config.redis_url)

    # ------------------------------------------------------------------ #
    # Serialization helpers
    # ------------------------------------------------------------------ #

    def _encode(self, value: Any) -> str:
        return json.dumps(value, separators=(",", ":"), sort_keys=True)

    def _decode(self, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, bytes):
            return json.loads(value.decode("utf-8"))
        return json.loads(str(value))

    def _decode_text(self, value: bytes | str) -> str:
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    # ------------------------------------------------------------------ #
    # StorageManager API
    # ------------------------------------------------------------------ #

    async def get(self, name: str) -> Any | None:
        try:
            return self._decode(await self._redis.get(self.key(name)))
        except (RedisError, OSError, ValueError) as exc:
            _LOGGER.warning("Redis storage read failed name=%s error=%s", name, exc)
            return None

    async def set(self, name: str, value: Any) -> None:
        try:
            await self._redis.set(self.key(name), self._encode(value))
        except (RedisError, OSError, TypeError, ValueError) as exc:
            _LOGGER.warning("Redis storage write failed name=%s error=%s", name, exc)

    async def delete(self, name: str) -> None:
        try:
            await self._redis.delete(self.key(name))
        except (RedisError, OSError) as exc:
            _LOGGER.warning("Redis storage delete failed name=%s error=%s", name, exc)

    async def get_params(self) -> list[str]:
        pattern = f"{_escape_glob(self.prefix)}*"
        try:
            keys = [self._decode_text(key) async for key in self._redis.scan_iter(match=pattern)]
        except (RedisError, OSError) as exc:
            _LOGGER.warning("Redis storage listing failed prefix=%s error=%s", self.prefix, exc)
            return []
        return [key[len(self.prefix):] for key in keys if key.startswith(self.prefix)]

    async def aclose(self) -> None:
        """Close the Redis connection pool when this manager created it."""
        if self._owns_client:
            await self._redis.aclose()
