"""
Unit tests for canonical stringification and structural hashing.
"""

from __future__ import annotations

import re
import unittest
from datetime import date, datetime
from decimal import Decimal

from live_cache.hashing import fnv1a, stable_stringify, structural_hash


class StableStringifyTest(unittest.TestCase):
    """Canonical rendering rules."""

    def test_mapping_keys_are_sorted(self) -> None:
        self.assertEqual('{"a":1,"b":[true,null]}', stable_stringify({"b": [True, None], "a": 1}))

    def test_bool_and_int_render_differently(self) -> None:
        self.assertEqual("true", stable_stringify(True))
        self.assertEqual("1", stable_stringify(1))

    def test_integral_float_renders_like_int(self) -> None:
        self.assertEqual("1", stable_stringify(1.0))
        self.assertEqual("0.5", stable_stringify(0.5))
        self.assertEqual('"NaN"', stable_stringify(float("nan")))
        self.assertEqual('"-Infinity"', stable_stringify(float("-inf")))

    def test_dates_are_tagged(self) -> None:
        moment = datetime(2024, 1, 2, 3, 4, 5)
        self.assertEqual('{"$date":"2024-01-02T03:04:05"}', stable_stringify(moment))
        self.assertNotEqual(stable_stringify(moment), stable_stringify(moment.isoformat()))
        self.assertEqual('{"$date":"2024-01-02"}', stable_stringify(date(2024, 1, 2)))

    def test_tagged_scalar_types(self) -> None:
        self.assertEqual('"decimal:1.50"', stable_stringify(Decimal("1.50")))
        self.assertEqual('"bytes:6162"', stable_stringify(b"ab"))
        self.assertEqual(stable_stringify({3, 1, 2}), stable_stringify(frozenset({2, 3, 1})))

    def test_unsupported_values_share_placeholder(self) -> None:
        self.assertEqual(stable_stringify(lambda: 1), stable_stringify(object()))

    def test_non_ascii_text_is_kept(self) -> None:
        self.assertEqual('"café"', stable_stringify("café"))


class StructuralHashTest(unittest.TestCase):
    """FNV-1a hashing over canonical strings."""

    def test_known_fnv1a_vectors(self) -> None:
        self.assertEqual("811c9dc5", fnv1a(""))
        self.assertEqual("e40c292c", fnv1a("a"))

    def test_hash_is_fixed_width_hex(self) -> None:
        for value in (None, 0, "x", [1, 2], {"a": {"b": 1}}, 3.25):
            self.assertRegex(structural_hash(value), re.compile(r"^[0-9a-f]{8}$"))

    def test_hash_ignores_key_insertion_order(self) -> None:
        left = {"id": 1, "label": "one", "tags": ["a", "b"]}
        right = {"tags": ["a", "b"], "label": "one", "id": 1}
        self.assertEqual(structural_hash(left), structural_hash(right))

    def test_hash_respects_list_order(self) -> None:
        self.assertNotEqual(structural_hash([1, 2]), structural_hash([2, 1]))

    def test_hash_distinguishes_type_categories(self) -> None:
        self.assertNotEqual(structural_hash(True), structural_hash(1))
        self.assertNotEqual(structural_hash("1"), structural_hash(1))


if __name__ == "__main__":
    unittest.main()
