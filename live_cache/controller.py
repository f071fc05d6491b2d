"""
Controller: hydration, persistence and subscriber fan-out for one collection.

A controller wraps a :class:`live_cache.collection.Collection` with:

* hydration (:meth:`Controller.initialise`) in priority order memory, then
  persisted snapshot, then the remote fetch operation
* persistence (:meth:`Controller.commit` writes the full snapshot through the
  configured :class:`live_cache.storage.StorageManager`)
* subscriptions (:meth:`Controller.subscribe`)
* invalidation hooks (:meth:`Controller.invalidate`, :meth:`Controller.revalidate`)

The intended mutation pattern is:

1. mutate ``controller.collection`` (insert/update/delete)
2. ``await controller.commit()`` so storage persists and subscribers update

Typical usage::

    class UsersController(Controller):
        async def fetch(self, where, signal):
            rows = await api.list_users()
            signal.raise_if_aborted()
            return rows, len(rows)

        def invalidate(self, *data):
            self.revalidate(replace=True)

    users = UsersController("users", ControllerOptions(storage_manager=manager))
    await users.initialise()

Concurrent commits are not ordered against each other: each commit publishes
whatever full snapshot it computed, so when two mutation flows race the last
persisted write wins.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any

from .collection import Collection, Where
from .config import ControllerOptions
from .document import Document
from .exceptions import FetchAbortedError, OperationNotImplementedError
from .invalidator import DefaultInvalidator
from .storage import DefaultStorageManager

_LOGGER = logging.getLogger(__name__)

Subscriber = Callable[[list[dict[str, Any]]], None]


class AbortSignal:
    """
    Cooperative cancellation token handed to fetch operations.

    Fetch implementations check :attr:`aborted` or call
    :meth:`raise_if_aborted` at their own suspension points, or register a
    callback to cancel transport work they started.
    """

    def __init__(self) -> None:
        self._aborted = False
        self.reason: Any = None
        self._callbacks: list[Callable[[Any], None]] = []

    @property
    def aborted(self) -> bool:
        """Return ``True`` once :meth:`abort` has been called."""
        return self._aborted

    def abort(self, reason: Any = None) -> None:
        """Mark the signal aborted and run registered callbacks once."""
        if self._aborted:
            return
        self._aborted = True
        self.reason = reason
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback(reason)
            except Exception:
                _LOGGER.exception("Abort callback failed")

    def add_callback(self, callback: Callable[[Any], None]) -> None:
        """Run ``callback(reason)`` on abort, immediately if already aborted."""
        if self._aborted:
            callback(self.reason)
            return
        self._callbacks.append(callback)

    def raise_if_aborted(self) -> None:
        """Raise :class:`FetchAbortedError` when the signal was aborted."""
        if self._aborted:
            raise FetchAbortedError(self.reason or "Fetch aborted.")


def _normalize_fetch_result(result: Any) -> tuple[list[Mapping[str, Any]], int]:
    if isinstance(result, Mapping):
        return [result], 1
    if isinstance(result, (list, tuple)):
        if (
            len(result) == 2
            and isinstance(result[0], (list, tuple))
            and isinstance(result[1], int)
            and not isinstance(result[1], bool)
        ):
            return list(result[0]), int(result[1])
        return list(result), len(result)
    raise TypeError(f"Unsupported fetch result type: {type(result).__name__}.")


class Controller:
    """
    Orchestrates one collection's hydration, persistence and publication.

    Parameters
    ----------
    name:
        Stable controller name; also the collection name and storage key.
    options:
        Storage manager, invalidator, page size and optional fetch strategy.

    State
    -----
    ``total`` is ``-1`` until the first initialise completes, ``loading`` is
    true only while a fetch is in flight, and ``error`` holds the last fetch
    failure (cleared on the next attempt).
    """

    def __init__(self, name: str, options: ControllerOptions | None = None) -> None:
        options = options or ControllerOptions()
        self.name = name
        self.collection = Collection(name)
        self.storage_manager = options.storage_manager or DefaultStorageManager()
        self.invalidator = options.invalidator or DefaultInvalidator()
        self.page_size = int(options.page_size)
        self._fetcher = options.fetcher

        self.loading = False
        self.error: BaseException | None = None
        self.total = -1
        self.page = 0
        self.limit = self.page_size
        self.initialised = False
        self.signal = AbortSignal()

        self._subscribers: dict[Subscriber, None] = {}
        self._background: set[asyncio.Task[None]] = set()
        self.invalidator.bind(self.invalidate)

    # ------------------------------------------------------------------ #
    # Abstract operations
    # ------------------------------------------------------------------ #

    async def fetch(self, where: Where, signal: AbortSignal) -> Any:
        """
        Load records from the remote source.

        Return a single record, a ``(records, total)`` pair, or a list of
        records. Override in a subclass or pass ``fetcher`` in the options.
        """
        if self._fetcher is not None:
            return await self._fetcher(where, signal)
        raise OperationNotImplementedError(
            f"{type(self).__name__} must implement fetch() or configure a fetcher."
        )

    def invalidate(self, *data: Any) -> Any:
        """
        Revalidate cached data; called by the bound invalidator.

        Common implementations abort and refetch (``self.revalidate()``),
        refetch after a TTL, or patch the collection from pushed ``data``.
        """
        raise OperationNotImplementedError(f"{type(self).__name__} must implement invalidate().")

    # ------------------------------------------------------------------ #
    # Hydration
    # ------------------------------------------------------------------ #

    async def initialise(self, where: Where = None) -> None:
        """
        Hydrate the collection for ``where``.

        Resolution order:

        1. documents already in memory for ``where``: no fetch
        2. a persisted snapshot with documents for ``where``: no fetch
        3. the fetch operation

        Every path ends with :meth:`commit`. Fetch failures are stored on
        :attr:`error` and never raised from here.
        """
        signal = self.signal
        in_memory = self.collection.find(where)
        if in_memory:
            self.total = len(in_memory)
            self.initialised = True
            await self.commit()
            return

        stored = await self.storage_manager.get(self.name)
        if stored:
            restored = self._restore_from_storage(stored, where)
            if restored:
                _LOGGER.debug(
                    "Controller hydrated from storage name=%s documents=%s",
                    self.name,
                    len(restored),
                )
                self.total = len(restored)
                self.initialised = True
                await self.commit()
                return

        if await self._fetch_into_collection(where, signal):
            self.initialised = True

    async def update(self, where: Where = None, *, replace: bool = False) -> None:
        """
        Fetch unconditionally, insert the results and commit.

        Unlike :meth:`initialise` this skips the memory and storage checks.
        Fetched records are inserted as new documents; pass ``replace=True``
        to clear the collection first once the fetch succeeded.
        """
        await self._fetch_into_collection(where, self.signal, replace=replace)

    def revalidate(self, where: Where = None, *, replace: bool = False) -> asyncio.Task[None]:
        """
        Abort in-flight work and schedule :meth:`update` in the background.

        Must be called from code running inside an event loop. The returned
        task can be awaited by callers that need the refreshed state.
        """
        self.abort()
        task = asyncio.get_running_loop().create_task(self.update(where, replace=replace))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    def _restore_from_storage(self, stored: Any, where: Where) -> list[Document]:
        scratch = Collection(self.name)
        try:
            scratch.insert_models(stored)
        except (TypeError, ValueError) as exc:
            _LOGGER.warning(
                "Ignoring malformed persisted snapshot name=%s error=%s", self.name, exc
            )
            return []
        subset = scratch.find(where)
        return self.collection.insert_models(doc.to_model() for doc in subset)

    async def _fetch_into_collection(
        self,
        where: Where,
        signal: AbortSignal,
        *,
        replace: bool = False,
    ) -> bool:
        succeeded = False
        self.loading = True
        self.error = None
        try:
            result = await self.fetch(where, signal)
            if signal.aborted:
                _LOGGER.debug("Discarding aborted fetch result name=%s", self.name)
            else:
                records, total = _normalize_fetch_result(result)
                if replace:
                    self.collection.clear()
                self.collection.insert_many(records)
                self.total = total
                succeeded = True
        except FetchAbortedError:
            _LOGGER.debug("Fetch aborted name=%s", self.name)
        except OperationNotImplementedError:
            raise
        except Exception as exc:
            _LOGGER.warning("Fetch failed name=%s error=%r", self.name, exc)
            self.error = exc
        finally:
            self.loading = False
            await self.commit()
        return succeeded

    # ------------------------------------------------------------------ #
    # Publication
    # ------------------------------------------------------------------ #

    def snapshot(self) -> list[dict[str, Any]]:
        """Return model projections of every stored document."""
        return [doc.to_model() for doc in self.collection.find()]

    def subscribe(self, callback: Subscriber) -> Callable[[], bool]:
        """
        Register ``callback`` for full snapshots delivered on every commit.

        Returns an unsubscribe function that reports whether the callback was
        still registered.
        """
        self._subscribers[callback] = None

        def unsubscribe() -> bool:
            if callback not in self._subscribers:
                return False
            del self._subscribers[callback]
            return True

        return unsubscribe

    async def commit(self) -> None:
        """
        Persist the full snapshot, then notify every subscriber with it.

        Call after any local mutation of :attr:`collection`. Persisting first
        means a subscriber that re-reads storage sees the delivered snapshot.
        """
        models = self.snapshot()
        await self.storage_manager.set(self.name, models)
        self._notify(models)

    def _notify(self, models: list[dict[str, Any]]) -> None:
        for callback in list(self._subscribers):
            try:
                callback(models)
            except Exception:
                _LOGGER.exception("Subscriber callback failed name=%s", self.name)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def abort(self) -> None:
        """
        Signal cancellation of in-flight fetch work and install a new signal.

        Cancellation is cooperative: fetch implementations must observe the
        signal. Results of a fetch whose signal was aborted are discarded.
        """
        self.signal.abort("Controller aborted in-flight work.")
        self.signal = AbortSignal()

    async def reset(self) -> None:
        """
        Abort in-flight fetches, delete the persisted snapshot, clear memory
        and publish ``[]``.
        """
        self.abort()
        await self.storage_manager.delete(self.name)
        self.collection.clear()
        self.total = 0
        self.page = 0
        self.limit = self.page_size
        self.error = None
        self.loading = False
        self._notify([])

    async def next_page(self, where: Where = None) -> None:
        """Advance :attr:`page` and fetch it."""
        self.page += 1
        await self.update(where)

    async def previous_page(self, where: Where = None) -> None:
        """Step :attr:`page` back (not below zero) and fetch it."""
        self.page = max(0, self.page - 1)
        await self.update(where)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.name!r}, total={self.total}, "
            f"loading={self.loading}, error={self.error!r})"
        )
