"""
Standalone controller process used by integration tests.

The script builds one controller backed by a :class:`FileStorageManager`,
prints a single JSON ``ready`` event to stdout, and then accepts
line-delimited JSON commands through stdin.

Why this exists
---------------
Snapshot persistence only matters across restarts. Running separate Python
interpreters against one storage directory exercises hydration the way a
restarted service sees it, rather than sharing objects inside one process.

Protocol
--------
Input command shape::

    {"cmd": "<name>", "...": "..."}

Output response shape::

    {"ok": true, "result": ...}
    {"ok": false, "error": "..."}
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

# Ensure local package imports work when this script is launched via subprocess.
REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from live_cache import (  # noqa: E402
    AbortSignal,
    Controller,
    ControllerOptions,
    FileStorageConfig,
    FileStorageManager,
)

REMOTE_ROWS: list[dict[str, Any]] = [
    {"sku": "A-1", "name": "Anvil", "stock": 3},
    {"sku": "B-2", "name": "Bellows", "stock": 0},
]


class InventoryController(Controller):
    """Controller serving fixed remote rows and counting fetches."""

    def __init__(self, name: str, options: ControllerOptions) -> None:
        super().__init__(name, options)
        self.fetch_count = 0

    async def fetch(self, where: Any, signal: AbortSignal) -> Any:
        self.fetch_count += 1
        signal.raise_if_aborted()
        rows = [dict(row) for row in REMOTE_ROWS]
        return rows, len(rows)

    def invalidate(self, *data: Any) -> Any:
        return self.revalidate(replace=True)


def emit(payload: dict[str, Any]) -> None:
    """Emit one JSON line to stdout and flush immediately."""
    print(json.dumps(payload, separators=(",", ":"), sort_keys=True), flush=True)


def build_parser() -> argparse.ArgumentParser:
    """Create and configure CLI argument parser for process startup."""
    parser = argparse.ArgumentParser(description="Integration helper controller process")
    parser.add_argument("--directory", required=True, help="Storage directory")
    parser.add_argument("--name", default="inventory", help="Controller name")
    parser.add_argument("--prefix", default="it:", help="Storage key prefix")
    return parser


async def handle_command(
    *,
    controller: InventoryController,
    command: dict[str, Any],
    published: list[list[dict[str, Any]]],
) -> tuple[bool, Any]:
    """
    Execute one JSON command against the running controller.

    Returns
    -------
    tuple[bool, Any]
        Pair of ``(ok, result_or_error_message)``.
    """
    cmd = str(command.get("cmd", "")).strip()
    if not cmd:
        return False, "Missing command name in 'cmd' field."

    if cmd == "ping":
        return True, "pong"
    if cmd == "initialise":
        await controller.initialise(command.get("where"))
        return True, controller.total
    if cmd == "insert":
        doc = controller.collection.insert_one(command["value"])
        return True, doc.to_model()
    if cmd == "update":
        doc = controller.collection.find_one_and_update(command.get("where"), command.get("value"))
        return True, None if doc is None else doc.to_model()
    if cmd == "delete":
        return True, controller.collection.delete_one(command.get("where"))
    if cmd == "commit":
        await controller.commit()
        return True, None
    if cmd == "reset":
        await controller.reset()
        return True, None
    if cmd == "snapshot":
        return True, controller.snapshot()
    if cmd == "published":
        return True, list(published)
    if cmd == "state":
        return True, {
            "fetch_count": controller.fetch_count,
            "total": controller.total,
            "initialised": controller.initialised,
            "error": None if controller.error is None else repr(controller.error),
        }

    if cmd == "stop":
        return True, "__stop__"
    return False, f"Unknown command {cmd!r}"


async def serve(controller: InventoryController) -> None:
    """Read commands from stdin until ``stop`` or end of input."""
    published: list[list[dict[str, Any]]] = []
    controller.subscribe(published.append)
    emit({"event": "ready", "name": controller.name})

    while True:
        raw_line = await asyncio.to_thread(sys.stdin.readline)
        if raw_line == "":
            break
        line = raw_line.strip()
        if not line:
            continue
        try:
            command = json.loads(line)
            if not isinstance(command, dict):
                raise ValueError("Command must be a JSON object.")
            ok, result = await handle_command(
                controller=controller,
                command=command,
                published=published,
            )
            if ok and result == "__stop__":
                emit({"ok": True, "result": None})
                break
            if ok:
                emit({"ok": True, "result": result})
            else:
                emit({"ok": False, "error": result})
        except Exception as exc:  # noqa: BLE001 - command loop must stay alive for tests
            emit({"ok": False, "error": str(exc)})


def run() -> int:
    """Run helper process lifecycle and command loop."""
    args = build_parser().parse_args()

    try:
        manager = FileStorageManager(
            FileStorageConfig(directory=args.directory, prefix=args.prefix, fsync=False)
        )
        controller = InventoryController(args.name, ControllerOptions(storage_manager=manager))
    except Exception as exc:  # noqa: BLE001 - entrypoint should return clear startup error
        emit({"ok": False, "error": f"startup failed: {exc}"})
        return 1

    asyncio.run(serve(controller))
    return 0


if __name__ == "__main__":
    raise SystemExit(run())
