"""
Unit tests for the mutation state decorator.
"""

from __future__ import annotations

import unittest
from typing import Any

from live_cache import Controller, with_mutation


class PostsController(Controller):
    """Controller with a decorated mutation."""

    observed_loading: bool | None = None

    @with_mutation()
    async def create_post(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Insert ``payload`` and commit."""
        type(self).observed_loading = type(self).create_post.loading
        if payload.get("fail"):
            raise RuntimeError("rejected")
        doc = self.collection.insert_one(payload)
        await self.commit()
        return doc.to_model()


class WithMutationTest(unittest.IsolatedAsyncioTestCase):
    """Loading and error bookkeeping."""

    async def test_success_tracks_loading(self) -> None:
        controller = PostsController("posts")

        created = await controller.create_post({"title": "hello"})

        self.assertEqual("hello", created["title"])
        self.assertTrue(PostsController.observed_loading)
        self.assertFalse(PostsController.create_post.loading)
        self.assertIsNone(PostsController.create_post.error)

    async def test_failure_is_recorded_and_reraised(self) -> None:
        controller = PostsController("posts")

        with self.assertRaises(RuntimeError):
            await controller.create_post({"fail": True})
        self.assertIsInstance(PostsController.create_post.error, RuntimeError)
        self.assertFalse(PostsController.create_post.loading)

        await controller.create_post({"title": "retry"})
        self.assertIsNone(PostsController.create_post.error)

    def test_wrapper_keeps_metadata(self) -> None:
        self.assertEqual("create_post", PostsController.create_post.__name__)
        self.assertEqual("Insert ``payload`` and commit.", PostsController.create_post.__doc__)


if __name__ == "__main__":
    unittest.main()
