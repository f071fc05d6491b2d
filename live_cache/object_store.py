"""
Name-keyed registry of controllers.

The registry is an explicit object: applications create one and pass it to
the code that needs it. :func:`get_default_object_store` offers a
process-lifetime instance for convenience, but nothing in the library reaches
for it implicitly.
"""

from __future__ import annotations

import asyncio
import logging
import weakref

from .controller import Controller
from .exceptions import ControllerNotRegisteredError

_LOGGER = logging.getLogger(__name__)


class ObjectStore:
    """
    Registry of controllers keyed by ``controller.name``.

    Besides lookup, the store collapses concurrent initialise requests for the
    same controller into one in-flight task (see :meth:`initialise_once`).
    """

    def __init__(self) -> None:
        self._controllers: dict[str, Controller] = {}
        self._initialising: weakref.WeakKeyDictionary[Controller, asyncio.Task[None]] = (
            weakref.WeakKeyDictionary()
        )

    def register(self, controller: Controller) -> None:
        """Register ``controller``, replacing any previous one with its name."""
        self._controllers[controller.name] = controller

    def get(self, name: str) -> Controller:
        """
        Return the controller registered under ``name``.

        Raises
        ------
        ControllerNotRegisteredError
            When no controller with that name was registered.
        """
        controller = self._controllers.get(name)
        if controller is None:
            raise ControllerNotRegisteredError(f"Controller with name {name!r} is not registered.")
        return controller

    def remove(self, name: str) -> None:
        """Remove the controller registered under ``name`` if any."""
        self._controllers.pop(name, None)

    def names(self) -> list[str]:
        """Return registered controller names in registration order."""
        return list(self._controllers)

    def initialise_once(self, name: str) -> asyncio.Task[None]:
        """
        Start ``initialise()`` for ``name`` unless it is already in flight.

        Concurrent callers receive the same task. The slot is released when
        the task settles, so a later call starts a fresh initialise. Must be
        called from code running inside an event loop.
        """
        controller = self.get(name)
        existing = self._initialising.get(controller)
        if existing is not None:
            return existing

        task = asyncio.get_running_loop().create_task(controller.initialise())
        self._initialising[controller] = task

        def release(done: asyncio.Task[None]) -> None:
            if self._initialising.get(controller) is done:
                del self._initialising[controller]

        task.add_done_callback(release)
        _LOGGER.debug("Initialise started name=%s", name)
        return task

    async def initialise(self) -> None:
        """Initialise every registered controller concurrently."""
        tasks = [self.initialise_once(name) for name in self.names()]
        if tasks:
            await asyncio.gather(*tasks)

    def __contains__(self, name: object) -> bool:
        return name in self._controllers

    def __len__(self) -> int:
        return len(self._controllers)


_default_store: ObjectStore | None = None


def get_default_object_store() -> ObjectStore:
    """Return the process-lifetime default store, creating it on first use."""
    global _default_store
    if _default_store is None:
        _default_store = ObjectStore()
    return _default_store


def create_object_store() -> ObjectStore:
    """Create a new, independent store."""
    return ObjectStore()
