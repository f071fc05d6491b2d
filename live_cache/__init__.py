"""
live_cache
==========

Indexed in-memory document collections with snapshot persistence and
subscriber fan-out for Python applications.

The package provides a small, pragmatic API for caching server-backed
resources in a process:

* :class:`live_cache.collection.Collection` - indexed document store with
  deterministic identifiers and structural-hash lookups
* :class:`live_cache.controller.Controller` - hydration (memory, then stored
  snapshot, then remote fetch), commit/publish, abort and reset
* :class:`live_cache.object_store.ObjectStore` - name-keyed controller
  registry with deduplicated concurrent initialisation
* :class:`live_cache.storage.StorageManager` - pluggable async persistence
* :class:`live_cache.invalidator.Invalidator` - pluggable revalidation trigger

Supporting features:

* no-op, in-memory and JSON-file storage managers
* Redis storage manager via the optional ``live_cache_redis`` plugin
* periodic revalidation with :class:`live_cache.invalidator.TimeoutInvalidator`
* best-effort single collection save/rollback with
  :class:`live_cache.transactions.Transactions`
* ``loading``/``error`` state for async methods with
  :func:`live_cache.mutation.with_mutation`

Backend switching can be done with one parameter:

    from live_cache import create_storage_manager

    manager = create_storage_manager("memory")
    manager = create_storage_manager("file", directory="/var/cache/app")
    manager = create_storage_manager("redis", redis_url="redis://127.0.0.1:6379/0")

Typical usage::

    from live_cache import Controller, ControllerOptions, create_object_store

    class TodosController(Controller):
        async def fetch(self, where, signal):
            rows = await api.list_todos()
            return rows, len(rows)

    store = create_object_store()
    store.register(TodosController("todos", ControllerOptions(storage_manager=manager)))
    await store.initialise_once("todos")

    todos = store.get("todos")
    todos.collection.find_one_and_update({"id": 1}, {"done": True})
    await todos.commit()
"""

from .backends import StorageBackend, available_backends, create_storage_manager
from .collection import Collection
from .config import ControllerOptions, FileStorageConfig
from .controller import AbortSignal, Controller
from .document import ID_FIELD, Document, generate_id
from .exceptions import (
    BackendConfigurationError,
    BackendNotAvailableError,
    ControllerNotRegisteredError,
    FetchAbortedError,
    InvalidatorNotBoundError,
    LiveCacheError,
    OperationNotImplementedError,
    ReservedFieldError,
    TransactionNotFoundError,
)
from .hashing import structural_hash
from .invalidator import DefaultInvalidator, Invalidator, TimeoutInvalidator
from .mutation import with_mutation
from .object_store import ObjectStore, create_object_store, get_default_object_store
from .persistence import FileStorageManager
from .storage import DefaultStorageManager, MemoryStorageManager, StorageManager
from .transactions import Transactions

__all__ = [
    "AbortSignal",
    "BackendConfigurationError",
    "BackendNotAvailableError",
    "Collection",
    "Controller",
    "ControllerNotRegisteredError",
    "ControllerOptions",
    "DefaultInvalidator",
    "DefaultStorageManager",
    "Document",
    "FetchAbortedError",
    "FileStorageConfig",
    "FileStorageManager",
    "ID_FIELD",
    "Invalidator",
    "InvalidatorNotBoundError",
    "LiveCacheError",
    "MemoryStorageManager",
    "ObjectStore",
    "OperationNotImplementedError",
    "ReservedFieldError",
    "StorageBackend",
    "StorageManager",
    "TimeoutInvalidator",
    "TransactionNotFoundError",
    "Transactions",
    "available_backends",
    "create_object_store",
    "create_storage_manager",
    "generate_id",
    "get_default_object_store",
    "structural_hash",
    "with_mutation",
]
