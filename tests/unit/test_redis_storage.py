"""
Unit tests for the Redis storage plugin using a mocked async client.
"""

from __future__ import annotations

import unittest
from collections.abc import AsyncIterator
from unittest import mock

from live_cache import Controller, ControllerOptions
from live_cache_redis import RedisStorageConfig, RedisStorageManager
from redis.exceptions import ConnectionError as RedisConnectionError


async def _iterate(keys: list[bytes]) -> AsyncIterator[bytes]:
    for key in keys:
        yield key


class RedisStorageManagerTest(unittest.IsolatedAsyncioTestCase):
    """Key layout, encoding and failure absorption."""

    def setUp(self) -> None:
        self.client = mock.AsyncMock()
        self.manager = RedisStorageManager(
            config=RedisStorageConfig(prefix="app:"),
            redis_client=self.client,
        )

    async def test_set_encodes_json(self) -> None:
        await self.manager.set("items", [{"id": 1, "_id": "x"}])

        self.client.set.assert_awaited_once_with("app:items", '[{"_id":"x","id":1}]')

    async def test_get_decodes_bytes(self) -> None:
        self.client.get.return_value = b'[{"_id":"x","id":1}]'

        self.assertEqual([{"_id": "x", "id": 1}], await self.manager.get("items"))
        self.client.get.assert_awaited_once_with("app:items")

    async def test_get_missing(self) -> None:
        self.client.get.return_value = None
        self.assertIsNone(await self.manager.get("items"))

    async def test_delete(self) -> None:
        await self.manager.delete("items")
        self.client.delete.assert_awaited_once_with("app:items")

    async def test_failures_are_absorbed(self) -> None:
        self.client.get.side_effect = RedisConnectionError("down")
        self.client.set.side_effect = RedisConnectionError("down")
        self.client.delete.side_effect = RedisConnectionError("down")

        with self.assertLogs("live_cache_redis.store", level="WARNING"):
            self.assertIsNone(await self.manager.get("items"))
            await self.manager.set("items", [])
            await self.manager.delete("items")

    async def test_corrupt_value_reads_as_missing(self) -> None:
        self.client.get.return_value = b"{not json"
        with self.assertLogs("live_cache_redis.store", level="WARNING"):
            self.assertIsNone(await self.manager.get("items"))

    async def test_get_params_strips_prefix(self) -> None:
        self.client.scan_iter = mock.MagicMock(
            return_value=_iterate([b"app:items", b"app:transaction::items::1"])
        )

        self.assertEqual(["items", "transaction::items::1"], await self.manager.get_params())
        self.client.scan_iter.assert_called_once_with(match="app:*")

    async def test_get_params_escapes_glob_characters(self) -> None:
        manager = RedisStorageManager(
            config=RedisStorageConfig(prefix="a*[b]:"),
            redis_client=self.client,
        )
        self.client.scan_iter = mock.MagicMock(return_value=_iterate([]))

        self.assertEqual([], await manager.get_params())
        self.client.scan_iter.assert_called_once_with(match="a\\*\\[b\\]:*")

    async def test_supplied_client_is_not_closed(self) -> None:
        await self.manager.aclose()
        self.client.aclose.assert_not_awaited()

    async def test_controller_round_trip(self) -> None:
        stored: dict[str, str] = {}

        async def fake_set(key: str, value: str) -> None:
            stored[key] = value

        async def fake_get(key: str) -> str | None:
            return stored.get(key)

        self.client.set.side_effect = fake_set
        self.client.get.side_effect = fake_get
        writer = Controller("items", ControllerOptions(storage_manager=self.manager))
        writer.collection.insert_one({"id": 1})
        await writer.commit()

        async def unused_fetch(where: object, signal: object) -> object:
            raise AssertionError("fetch must not run when storage has data")

        reader = Controller(
            "items",
            ControllerOptions(storage_manager=self.manager, fetcher=unused_fetch),
        )
        await reader.initialise()

        self.assertEqual(writer.snapshot(), reader.snapshot())
        self.assertIsNone(reader.error)


class RedisStorageConfigTest(unittest.TestCase):
    """Configuration validation."""

    def test_empty_url_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            RedisStorageConfig(redis_url=" ")


if __name__ == "__main__":
    unittest.main()
