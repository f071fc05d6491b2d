"""
Push invalidation over a websocket connection.

This module needs the optional ``live-cache[websocket]`` dependencies and is
therefore not imported by :mod:`live_cache` itself:

    from live_cache.websocket import WebsocketInvalidator

    invalidator = WebsocketInvalidator(
        "ws://127.0.0.1:8765/changes",
        message_parser=json.loads,
    )
    controller = UsersController("users", ControllerOptions(invalidator=invalidator))
    controller.invalidator.register_invalidation()

Every received message fires the bound controller callback. With a
``message_parser`` the parsed records are forwarded as callback arguments; a
parser returning ``None`` drops the message.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Any

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import WebSocketException

from .invalidator import Invalidator

_LOGGER = logging.getLogger(__name__)

MessageParser = Callable[[str | bytes], Any]


class WebsocketInvalidator(Invalidator):
    """
    Trigger the bound callback for messages received from a websocket server.

    Parameters
    ----------
    url:
        ``ws://`` or ``wss://`` endpoint publishing change notifications.
    subprotocols:
        Optional subprotocols offered during the handshake.
    message_parser:
        Converts a raw message into one record, a list of records (each
        becomes a callback argument) or ``None`` to ignore the message.
        Without a parser the callback fires with no arguments.
    reconnect:
        If true, reconnect after the connection closes or fails.
    reconnect_interval_seconds:
        Delay before each reconnect attempt.
    on_open, on_close, on_error:
        Optional hooks. ``on_open`` receives the connection, ``on_close``
        receives nothing and ``on_error`` receives the raised exception.
    """

    def __init__(
        self,
        url: str,
        *,
        subprotocols: Sequence[str] | None = None,
        message_parser: MessageParser | None = None,
        reconnect: bool = True,
        reconnect_interval_seconds: float = 1.0,
        on_open: Callable[[ClientConnection], None] | None = None,
        on_close: Callable[[], None] | None = None,
        on_error: Callable[[BaseException], None] | None = None,
    ) -> None:
        super().__init__()
        if not url.strip():
            raise ValueError("WebsocketInvalidator.url must be non-empty.")
        if reconnect_interval_seconds < 0:
            raise ValueError("WebsocketInvalidator.reconnect_interval_seconds must be >= 0.")
        self.url = url
        self.subprotocols = list(subprotocols) if subprotocols else None
        self.message_parser = message_parser
        self.reconnect = bool(reconnect)
        self.reconnect_interval_seconds = float(reconnect_interval_seconds)
        self.on_open = on_open
        self.on_close = on_close
        self.on_error = on_error

        self._active = False
        self._task: asyncio.Task[None] | None = None
        self._connection: ClientConnection | None = None

    @property
    def is_connected(self) -> bool:
        """Return ``True`` while a websocket connection is open."""
        return self._connection is not None

    @property
    def is_registered(self) -> bool:
        """Return ``True`` while the receive loop is running."""
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #

    def register_invalidation(self) -> None:
        """
        Start the receive loop; calling it again while running is a no-op.

        Must be called from code running inside an event loop.
        """
        if self.is_registered:
            return
        self._active = True
        self._task = asyncio.get_running_loop().create_task(self._run())
        _LOGGER.debug("Websocket invalidator registered url=%s", self.url)

    def unregister_invalidation(self) -> None:
        """Stop reconnecting and cancel the receive loop."""
        self._active = False
        if self._task is not None:
            self._task.cancel()
        _LOGGER.debug("Websocket invalidator unregistered url=%s", self.url)

    async def aclose(self) -> None:
        """Unregister and wait until the connection is closed."""
        task = self._task
        self.unregister_invalidation()
        self._task = None
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    # ------------------------------------------------------------------ #
    # Receive loop
    # ------------------------------------------------------------------ #

    async def _run(self) -> None:
        while self._active:
            opened = False
            try:
                async with connect(self.url, subprotocols=self.subprotocols) as connection:
                    self._connection = connection
                    opened = True
                    self._call_hook(self.on_open, connection)
                    async for message in connection:
                        self._dispatch(message)
            except (OSError, TimeoutError, WebSocketException) as exc:
                _LOGGER.warning("Websocket invalidator connection failed url=%s error=%s", self.url, exc)
                self._call_hook(self.on_error, exc)
            finally:
                self._connection = None

            if opened:
                self._call_hook(self.on_close)
            if not (self.reconnect and self._active):
                break
            await asyncio.sleep(self.reconnect_interval_seconds)

    def _dispatch(self, message: str | bytes) -> None:
        try:
            if self.message_parser is None:
                self.trigger()
                return
            parsed = self.message_parser(message)
            if parsed is None:
                return
            if isinstance(parsed, list):
                self.trigger(*parsed)
            else:
                self.trigger(parsed)
        except Exception:
            _LOGGER.exception("Websocket invalidator message handling failed url=%s", self.url)

    def _call_hook(self, hook: Callable[..., None] | None, *args: Any) -> None:
        if hook is None:
            return
        try:
            hook(*args)
        except Exception:
            _LOGGER.exception("Websocket invalidator hook failed url=%s", self.url)
