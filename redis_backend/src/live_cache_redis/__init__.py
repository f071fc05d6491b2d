"""
Redis storage plugin for live-cache.

This package is intentionally separate from the core library so users can opt
into Redis-backed snapshot persistence only when needed:

    from live_cache import Controller, ControllerOptions
    from live_cache_redis import RedisStorageConfig, RedisStorageManager

    manager = RedisStorageManager(
        config=RedisStorageConfig(redis_url="redis://127.0.0.1:6379/0", prefix="orders:"),
    )
    controller = OrdersController("orders", ControllerOptions(storage_manager=manager))

Users can either import this package directly or use the core backend factory:

    from live_cache import create_storage_manager
    manager = create_storage_manager("redis", redis_url="redis://127.0.0.1:6379/0")
"""

from .store import DEFAULT_REDIS_URL, RedisStorageConfig, RedisStorageManager

__all__ = ["DEFAULT_REDIS_URL", "RedisStorageConfig", "RedisStorageManager"]
