"""
Unit tests for identifier generation and the document wrapper.
"""

from __future__ import annotations

import time
import unittest
from unittest import mock

from live_cache.document import PROCESS_ID, Document, generate_id
from live_cache.exceptions import ReservedFieldError


class GenerateIdTest(unittest.TestCase):
    """Identifier layout and counter handling."""

    def test_identifier_is_24_lowercase_hex_chars(self) -> None:
        for counter in (0, 1, 255, 0xFFFFFF, 10**9):
            self.assertRegex(generate_id(counter), r"^[0-9a-f]{24}$")

    def test_segments(self) -> None:
        before = int(time.time())
        doc_id = generate_id(5)
        after = int(time.time())

        self.assertTrue(before <= int(doc_id[:8], 16) <= after)
        self.assertEqual(f"{PROCESS_ID:010x}", doc_id[8:18])
        self.assertEqual("000005", doc_id[18:])

    def test_counter_wraps_modulo_2_pow_24(self) -> None:
        self.assertEqual("ffffff", generate_id(0xFFFFFF)[18:])
        self.assertEqual("000000", generate_id(0x1000000)[18:])
        self.assertEqual("000001", generate_id(0x1000001)[18:])


class DocumentTest(unittest.TestCase):
    """Payload projections and in-place updates."""

    def test_model_and_data_projections(self) -> None:
        doc = Document({"id": 1, "label": "one"}, doc_id="abc")

        self.assertEqual("abc", doc.id)
        self.assertEqual({"id": 1, "label": "one"}, doc.to_data())
        self.assertEqual({"_id": "abc", "id": 1, "label": "one"}, doc.to_model())

    def test_to_data_returns_a_copy(self) -> None:
        doc = Document({"id": 1})
        doc.to_data()["id"] = 99
        self.assertEqual(1, doc.data["id"])

    def test_payload_is_copied_on_construction(self) -> None:
        payload = {"id": 1}
        doc = Document(payload)
        payload["id"] = 2
        self.assertEqual(1, doc.data["id"])

    def test_update_merges_and_refreshes_timestamp(self) -> None:
        with mock.patch("live_cache.document._now_ms", return_value=1000):
            doc = Document({"id": 1, "label": "one"})
        with mock.patch("live_cache.document._now_ms", return_value=2000):
            doc.update_data({"label": "uno", "extra": True})

        self.assertEqual({"id": 1, "label": "uno", "extra": True}, doc.to_data())
        self.assertEqual(2000, doc.updated_at)

    def test_reserved_field_is_rejected(self) -> None:
        with self.assertRaises(ReservedFieldError):
            Document({"_id": "x", "id": 1})
        doc = Document({"id": 1})
        with self.assertRaises(ValueError):
            doc.update_data({"_id": "y"})

    def test_generated_identifier_uses_counter(self) -> None:
        doc = Document({"id": 1}, 7)
        self.assertEqual("000007", doc.id[18:])


if __name__ == "__main__":
    unittest.main()
