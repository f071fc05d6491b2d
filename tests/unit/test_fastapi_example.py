"""
Unit tests for the FastAPI example application.
"""

from __future__ import annotations

import os
import unittest
from unittest import mock

from fastapi.testclient import TestClient
from live_cache_example import fastapi_app


class FastAPIExampleTest(unittest.TestCase):
    """Routes served through the todos controller."""

    def setUp(self) -> None:
        patcher = mock.patch.dict(
            os.environ,
            {"LIVE_CACHE_BACKEND": "memory", "LIVE_CACHE_REVALIDATE_SECONDS": "0"},
        )
        patcher.start()
        self.addCleanup(patcher.stop)
        self.client = TestClient(fastapi_app.app)
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)

    def test_root_and_health(self) -> None:
        self.assertEqual(["todos"], self.client.get("/").json()["controllers"])

        state = self.client.get("/healthz").json()["controllers"][0]
        self.assertEqual("todos", state["name"])
        self.assertEqual(-1, state["total"])

    def test_list_and_filter(self) -> None:
        listed = self.client.get("/todos").json()
        self.assertEqual(3, len(listed["items"]))
        self.assertEqual(3, listed["total"])
        self.assertTrue(all("_id" in item for item in listed["items"]))

        done = self.client.get("/todos", params={"done": "true"}).json()
        self.assertEqual([2], [item["id"] for item in done["items"]])

    def test_crud_flow(self) -> None:
        created = self.client.post("/todos", json={"title": "Write tests"}).json()
        self.assertFalse(created["done"])

        fetched = self.client.get(f"/todos/{created['_id']}").json()
        self.assertEqual(created, fetched)

        patched = self.client.patch(f"/todos/{created['_id']}", json={"done": True}).json()
        self.assertTrue(patched["done"])
        self.assertEqual(created["_id"], patched["_id"])

        self.assertEqual({"removed": True}, self.client.delete(f"/todos/{created['_id']}").json())
        self.assertEqual({"removed": False}, self.client.delete(f"/todos/{created['_id']}").json())
        self.assertEqual(404, self.client.get(f"/todos/{created['_id']}").status_code)

    def test_payload_validation(self) -> None:
        self.assertEqual(400, self.client.post("/todos", json={"done": True}).status_code)
        self.assertEqual(
            400,
            self.client.post("/todos", json={"title": "x", "_id": "y"}).status_code,
        )
        self.assertEqual(404, self.client.patch("/todos/missing", json={"done": True}).status_code)

    def test_invalidate_replaces_local_changes(self) -> None:
        self.client.post("/todos", json={"title": "Local only"})
        self.assertEqual(4, len(self.client.get("/todos").json()["items"]))

        state = self.client.post("/todos/invalidate").json()

        self.assertEqual(3, state["documents"])
        self.assertIsNone(state["error"])

    def test_reset(self) -> None:
        self.client.get("/todos")

        state = self.client.post("/todos/reset").json()

        self.assertEqual(0, state["documents"])
        self.assertEqual(0, state["total"])


if __name__ == "__main__":
    unittest.main()
