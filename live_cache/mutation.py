"""
Loading/error state for async controller methods.

Example::

    class PostsController(Controller):
        @with_mutation()
        async def create_post(self, payload):
            created = await api.create_post(payload)
            self.collection.insert_one(created)
            await self.commit()
            return created

    # PostsController.create_post.loading / PostsController.create_post.error
"""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable
from typing import Any


def with_mutation() -> Callable[[Callable[..., Awaitable[Any]]], Callable[..., Awaitable[Any]]]:
    """
    Decorate an async function so its wrapper exposes ``loading`` and ``error``.

    ``loading`` is true while a call is running. ``error`` holds the last
    failure and is cleared when a new call starts; failures are re-raised.
    The state lives on the wrapper, so it is shared by all instances.
    """

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            wrapper.loading = True  # type: ignore[attr-defined]
            wrapper.error = None  # type: ignore[attr-defined]
            try:
                return await func(*args, **kwargs)
            except Exception as exc:
                wrapper.error = exc  # type: ignore[attr-defined]
                raise
            finally:
                wrapper.loading = False  # type: ignore[attr-defined]

        wrapper.loading = False  # type: ignore[attr-defined]
        wrapper.error = None  # type: ignore[attr-defined]
        return wrapper

    return decorator
