"""
Best-effort save/rollback of a single collection's serialized state.

Typical usage::

    transactions = Transactions(MemoryStorageManager(prefix="txn:"))
    saved = await transactions.add(controller.collection)
    try:
        await risky_mutations(controller)
    except Exception:
        restored = await transactions.rollback(saved, controller.name)
        controller.collection.hydrate(restored.serialize())
        await controller.commit()
    else:
        await transactions.finish(controller.name)

This is not ACID: there is no isolation, and nothing spans more than one
collection.
"""

from __future__ import annotations

import logging
import time

from .collection import Collection
from .exceptions import TransactionNotFoundError
from .storage import StorageManager

_LOGGER = logging.getLogger(__name__)


def _transaction_prefix(name: str) -> str:
    return f"transaction::{name}::"


class Transactions:
    """
    Transaction snapshots stored through a :class:`StorageManager`.

    Parameters
    ----------
    storage_manager:
        Backend storing serialized collections as strings.
    """

    def __init__(self, storage_manager: StorageManager) -> None:
        self.storage_manager = storage_manager

    async def add(self, collection: Collection) -> str:
        """Save ``collection`` and return the transaction name."""
        transaction_name = f"{_transaction_prefix(collection.name)}{int(time.time() * 1000)}"
        await self.storage_manager.set(transaction_name, collection.serialize())
        _LOGGER.debug("Transaction saved name=%s", transaction_name)
        return transaction_name

    async def get(self, transaction_name: str, name: str) -> Collection:
        """
        Load a saved transaction as a new collection called ``name``.

        Raises
        ------
        TransactionNotFoundError
            When nothing is stored under ``transaction_name``.
        """
        serialized = await self.storage_manager.get(transaction_name)
        if not serialized:
            raise TransactionNotFoundError(f"Transaction {transaction_name!r} not found.")
        return Collection.deserialize(name, serialized)

    async def rollback(self, transaction_name: str, name: str) -> Collection:
        """Load a saved transaction and delete it from storage."""
        collection = await self.get(transaction_name, name)
        await self.storage_manager.delete(transaction_name)
        _LOGGER.debug("Transaction rolled back name=%s", transaction_name)
        return collection

    async def finish(self, name: str) -> None:
        """Delete every saved transaction for the collection ``name``."""
        prefix = _transaction_prefix(name)
        for param in await self.storage_manager.get_params():
            if param.startswith(prefix):
                await self.storage_manager.delete(param)
