"""
FastAPI application serving a cached todo list through a live-cache controller.

The "remote" todo source is an in-process dictionary standing in for an
upstream API, so the example runs without network dependencies. Restart the
app with a persistent backend (``LIVE_CACHE_BACKEND=file``) to see the
controller hydrate from the stored snapshot instead of fetching.

Environment variables:

* ``LIVE_CACHE_BACKEND``: ``none``, ``memory``, ``file`` or ``redis``
* ``LIVE_CACHE_DIR``: directory for the file backend
* ``LIVE_CACHE_REDIS_URL``: connection URL for the redis backend
* ``LIVE_CACHE_PREFIX``: storage key prefix
* ``LIVE_CACHE_REVALIDATE_SECONDS``: periodic revalidation interval (0 disables)
"""

from __future__ import annotations

import argparse
import logging
import os
from typing import Any

import uvicorn
from fastapi import FastAPI, HTTPException
from live_cache import (
    AbortSignal,
    Controller,
    ControllerOptions,
    DefaultInvalidator,
    Invalidator,
    ObjectStore,
    TimeoutInvalidator,
    create_object_store,
    create_storage_manager,
)
from live_cache.storage import StorageManager

app = FastAPI(title="live-cache FastAPI example", version="0.1.0")
_LOGGER = logging.getLogger(__name__)

_REMOTE_TODOS: list[dict[str, Any]] = [
    {"id": 1, "title": "Write the release notes", "done": False},
    {"id": 2, "title": "Review the storage backends", "done": True},
    {"id": 3, "title": "Ship the example app", "done": False},
]

_store: ObjectStore | None = None
_TODOS = "todos"


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, "").strip()
    return value if value else default


def _parse_float(name: str, default: float) -> float:
    raw = _get_env(name, str(default))
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"Environment variable {name} must be a number.") from exc


class TodosController(Controller):
    """Controller caching the remote todo list."""

    async def fetch(self, where: Any, signal: AbortSignal) -> Any:
        signal.raise_if_aborted()
        rows = [dict(row) for row in _REMOTE_TODOS]
        return rows, len(rows)

    def invalidate(self, *data: Any) -> Any:
        return self.revalidate(replace=True)


def _build_storage_manager() -> StorageManager:
    backend = _get_env("LIVE_CACHE_BACKEND", "memory").lower()
    options: dict[str, Any] = {"prefix": _get_env("LIVE_CACHE_PREFIX", "live-cache-example:")}
    if backend == "file":
        options["directory"] = _get_env("LIVE_CACHE_DIR", ".live-cache")
    elif backend == "redis":
        options["redis_url"] = _get_env("LIVE_CACHE_REDIS_URL", "redis://127.0.0.1:6379/0")
    elif backend not in {"none", "memory"}:
        raise RuntimeError("LIVE_CACHE_BACKEND must be none, memory, file or redis.")
    return create_storage_manager(backend, **options)


def _build_invalidator() -> Invalidator:
    interval = _parse_float("LIVE_CACHE_REVALIDATE_SECONDS", 0.0)
    if interval <= 0:
        return DefaultInvalidator()
    return TimeoutInvalidator(interval, immediate=False)


def _build_store() -> ObjectStore:
    store = create_object_store()
    store.register(
        TodosController(
            _TODOS,
            ControllerOptions(
                storage_manager=_build_storage_manager(),
                invalidator=_build_invalidator(),
            ),
        )
    )
    return store


def _require_store() -> ObjectStore:
    if _store is None:
        raise HTTPException(status_code=503, detail="Object store not started.")
    return _store


async def _todos() -> Controller:
    store = _require_store()
    await store.initialise_once(_TODOS)
    return store.get(_TODOS)


def _state(controller: Controller) -> dict[str, Any]:
    return {
        "name": controller.name,
        "total": controller.total,
        "loading": controller.loading,
        "error": None if controller.error is None else repr(controller.error),
        "initialised": controller.initialised,
        "documents": len(controller.collection),
    }


@app.on_event("startup")
async def on_startup() -> None:
    global _store
    if _store is not None:
        return
    _store = _build_store()
    for name in _store.names():
        _store.get(name).invalidator.register_invalidation()
    _LOGGER.info("live-cache example started controllers=%s", _store.names())


@app.on_event("shutdown")
async def on_shutdown() -> None:
    global _store
    store = _store
    if store is None:
        return
    try:
        for name in store.names():
            controller = store.get(name)
            controller.invalidator.unregister_invalidation()
            controller.abort()
    finally:
        _store = None


@app.get("/")
def root() -> dict[str, Any]:
    store = _require_store()
    return {"message": "live-cache example is running.", "controllers": store.names()}


@app.get("/healthz")
def healthz() -> dict[str, Any]:
    store = _require_store()
    return {"controllers": [_state(store.get(name)) for name in store.names()]}


@app.get("/todos")
async def list_todos(done: bool | None = None) -> dict[str, Any]:
    controller = await _todos()
    where = None if done is None else {"done": done}
    return {
        "items": [doc.to_model() for doc in controller.collection.find(where)],
        "total": controller.total,
    }


@app.get("/todos/{doc_id}")
async def get_todo(doc_id: str) -> dict[str, Any]:
    controller = await _todos()
    doc = controller.collection.find_one(doc_id)
    if doc is None:
        raise HTTPException(status_code=404, detail="Todo not found.")
    return doc.to_model()


@app.post("/todos")
async def create_todo(payload: dict[str, Any]) -> dict[str, Any]:
    if "title" not in payload:
        raise HTTPException(status_code=400, detail="Payload must include 'title'.")
    if "_id" in payload:
        raise HTTPException(status_code=400, detail="Payload must not include '_id'.")
    controller = await _todos()
    doc = controller.collection.insert_one({"done": False, **payload})
    await controller.commit()
    return doc.to_model()


@app.patch("/todos/{doc_id}")
async def update_todo(doc_id: str, payload: dict[str, Any]) -> dict[str, Any]:
    if "_id" in payload:
        raise HTTPException(status_code=400, detail="Payload must not include '_id'.")
    controller = await _todos()
    if controller.collection.find_one(doc_id) is None:
        raise HTTPException(status_code=404, detail="Todo not found.")
    doc = controller.collection.find_one_and_update(doc_id, payload)
    await controller.commit()
    return doc.to_model()


@app.delete("/todos/{doc_id}")
async def delete_todo(doc_id: str) -> dict[str, Any]:
    controller = await _todos()
    removed = controller.collection.delete_one(doc_id)
    if removed:
        await controller.commit()
    return {"removed": removed}


@app.post("/todos/invalidate")
async def invalidate_todos() -> dict[str, Any]:
    controller = await _todos()
    await controller.invalidator.trigger()
    return _state(controller)


@app.post("/todos/reset")
async def reset_todos() -> dict[str, Any]:
    controller = _require_store().get(_TODOS)
    await controller.reset()
    return _state(controller)


def main(port: int) -> int:
    logging.basicConfig(level=logging.INFO)
    host = _get_env("LIVE_CACHE_API_HOST", "127.0.0.1")
    uvicorn.run("live_cache_example.fastapi_app:app", host=host, port=port, reload=False)
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run the live-cache FastAPI example.")
    parser.add_argument("--port", type=int, default=8000, help="The port number to use")
    args = parser.parse_args()
    raise SystemExit(main(args.port))
