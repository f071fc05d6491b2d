"""
Runnable walkthrough of controller hydration and persistence.

The demo builds two controllers sharing one storage manager and shows:

* fetch on a cold start (nothing in memory or storage)
* commit persisting the snapshot before subscribers fire
* a second controller hydrating from storage without fetching
* save/rollback of a collection with transactions
* reset clearing memory and storage

Run after installing the example extras:

    live-cache-demo --backend file --directory /tmp/live-cache-demo
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from live_cache import (
    AbortSignal,
    Controller,
    ControllerOptions,
    Transactions,
    create_storage_manager,
)
from live_cache.exceptions import BackendNotAvailableError


class ProductsController(Controller):
    """Controller counting how often the remote source is hit."""

    fetch_count = 0

    async def fetch(self, where: Any, signal: AbortSignal) -> Any:
        type(self).fetch_count += 1
        await asyncio.sleep(0.05)
        signal.raise_if_aborted()
        rows = [
            {"sku": "A-1", "name": "Anvil", "stock": 3},
            {"sku": "B-2", "name": "Bellows", "stock": 0},
        ]
        return rows, len(rows)

    def invalidate(self, *data: Any) -> Any:
        return self.revalidate(replace=True)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="live-cache example")
    parser.add_argument("--backend", choices=("memory", "file", "redis"), default="memory")
    parser.add_argument("--directory", default=".live-cache-demo")
    parser.add_argument("--redis-url", default="redis://127.0.0.1:6379/0")
    parser.add_argument("--prefix", default="live-cache-demo:")
    return parser


def _print_step(title: str, payload: Any) -> None:
    print(f"\n== {title}")
    print(json.dumps(payload, indent=2, sort_keys=True, default=str))


async def _run(args: argparse.Namespace) -> int:
    options: dict[str, Any] = {"prefix": args.prefix}
    if args.backend == "file":
        options["directory"] = args.directory
    elif args.backend == "redis":
        options["redis_url"] = args.redis_url
    try:
        manager = create_storage_manager(args.backend, **options)
    except BackendNotAvailableError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    first = ProductsController("products", ControllerOptions(storage_manager=manager))
    await first.reset()
    first.subscribe(lambda models: _print_step("subscriber received", models))
    await first.initialise()
    _print_step("cold start", {"fetches": ProductsController.fetch_count, "total": first.total})

    first.collection.find_one_and_update({"sku": "B-2"}, {"stock": 12})
    await first.commit()

    second = ProductsController("products", ControllerOptions(storage_manager=manager))
    await second.initialise()
    _print_step(
        "warm start from storage",
        {
            "fetches": ProductsController.fetch_count,
            "restocked": second.collection.find_one({"sku": "B-2"}).to_model(),
        },
    )

    transactions = Transactions(manager)
    saved = await transactions.add(second.collection)
    second.collection.delete_one({"sku": "A-1"})
    restored = await transactions.rollback(saved, second.name)
    _print_step("rollback", {"before": len(second.collection), "restored": len(restored)})

    await second.reset()
    _print_step("after reset", {"stored": await manager.get("products"), "total": second.total})
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
