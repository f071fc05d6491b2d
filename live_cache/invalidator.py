"""
External invalidation triggers bound to a controller.

An invalidator owns some outside mechanism (a timer, a socket, an application
event) and calls back into ``Controller.invalidate`` when cached data should
be revalidated. The controller binds its callback at construction; firing
before that is a wiring mistake and raises :class:`InvalidatorNotBoundError`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from .exceptions import InvalidatorNotBoundError, OperationNotImplementedError

_LOGGER = logging.getLogger(__name__)

InvalidateCallback = Callable[..., Any]


def _unbound(*data: Any) -> Any:
    raise InvalidatorNotBoundError("The invalidator needs to be bound from the controller.")


class Invalidator:
    """
    Base class for invalidation triggers.

    Subclasses implement :meth:`register_invalidation` and
    :meth:`unregister_invalidation` and call :meth:`trigger` whenever their
    mechanism fires.
    """

    def __init__(self) -> None:
        self._callback: InvalidateCallback = _unbound

    @property
    def is_bound(self) -> bool:
        """Return ``True`` once a controller callback has been bound."""
        return self._callback is not _unbound

    def bind(self, callback: InvalidateCallback) -> None:
        """Store the controller callback invoked by :meth:`trigger`."""
        self._callback = callback

    def trigger(self, *data: Any) -> Any:
        """Invoke the bound callback with optional payload records."""
        return self._callback(*data)

    def register_invalidation(self) -> None:
        """Start the external trigger mechanism."""
        raise OperationNotImplementedError(
            f"{type(self).__name__} does not implement register_invalidation()."
        )

    def unregister_invalidation(self) -> None:
        """Stop the external trigger mechanism."""
        raise OperationNotImplementedError(
            f"{type(self).__name__} does not implement unregister_invalidation()."
        )


class DefaultInvalidator(Invalidator):
    """Invalidator that never fires."""

    def register_invalidation(self) -> None:
        return None

    def unregister_invalidation(self) -> None:
        return None


class TimeoutInvalidator(Invalidator):
    """
    Fire the bound callback periodically on the running event loop.

    Parameters
    ----------
    interval_seconds:
        Delay between triggers. ``0`` disables the periodic timer, which is
        useful together with ``immediate`` for a one-shot revalidation.
    immediate:
        If true, trigger once synchronously when registration starts.
    """

    def __init__(self, interval_seconds: float = 0, *, immediate: bool = True) -> None:
        super().__init__()
        if interval_seconds < 0:
            raise ValueError("TimeoutInvalidator.interval_seconds must be >= 0.")
        self.interval_seconds = float(interval_seconds)
        self.immediate = bool(immediate)
        self._handle: asyncio.TimerHandle | None = None
        self._registered = False

    @property
    def is_registered(self) -> bool:
        """Return ``True`` while the trigger is active."""
        return self._registered

    def register_invalidation(self) -> None:
        """
        Start triggering; calling it again while active is a no-op.

        Must be called from code running inside an event loop when
        ``interval_seconds`` is positive.
        """
        if self._registered:
            return
        self._registered = True
        if self.immediate:
            self.trigger()
        if self.interval_seconds > 0:
            self._schedule()
        _LOGGER.debug("Timeout invalidator registered interval=%s", self.interval_seconds)

    def unregister_invalidation(self) -> None:
        """Stop triggering and cancel the pending timer."""
        self._registered = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        _LOGGER.debug("Timeout invalidator unregistered")

    def _schedule(self) -> None:
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.interval_seconds, self._fire)

    def _fire(self) -> None:
        self._handle = None
        if not self._registered:
            return
        try:
            self.trigger()
        except Exception:
            _LOGGER.exception("Timeout invalidator callback failed")
        if self._registered:
            self._schedule()
