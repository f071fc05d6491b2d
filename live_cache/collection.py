"""
Indexed in-memory document store.

A :class:`Collection` owns an insertion-ordered primary mapping from
identifier to :class:`live_cache.document.Document` plus a secondary index
from structural hash to the identifiers carrying that value. Every stored
document is indexed once per payload field (``{field: value}``) and once for
its whole payload, and the index is updated synchronously on every insert,
update and delete so it is never observably stale.

Index hits are only candidates: every candidate is re-verified against the
query before it is returned. Lookups fall back to a linear scan when the index
yields nothing, and ``find`` always scans for multi-field queries, since
documents carrying extra fields are absent from the whole-payload entry.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from .document import ID_FIELD, Document, generate_id
from .hashing import structural_hash

_LOGGER = logging.getLogger(__name__)

Where = str | Mapping[str, Any] | None
"""Query selector: an identifier, a partial-field mapping, or ``None``."""


def _exact_equal(left: Any, right: Any) -> bool:
    if left is right:
        return True
    if isinstance(left, float) and isinstance(right, float):
        if math.isnan(left) and math.isnan(right):
            return True
    return bool(left == right)


class Collection:
    """
    Indexed store of documents for one logical entity type.

    Parameters
    ----------
    name:
        Stable collection name, shared with the owning controller.
    equals:
        Optional exact comparison used to verify hash-matched candidates.
        Defaults to ``==`` (with ``NaN`` treated as equal to itself).
    """

    def __init__(self, name: str, *, equals: Callable[[Any, Any], bool] | None = None) -> None:
        self.name = name
        self._equals = equals or _exact_equal
        self._documents: dict[str, Document] = {}
        self._indexes: dict[str, list[str]] = {}
        self._counter = 0

    @property
    def counter(self) -> int:
        """Return the identifier counter (reset only by :meth:`clear`)."""
        return self._counter

    def clear(self) -> None:
        """Drop all documents and index entries and reset the counter."""
        self._documents = {}
        self._indexes = {}
        self._counter = 0

    # ------------------------------------------------------------------ #
    # Index maintenance
    # ------------------------------------------------------------------ #

    def _index_keys(self, doc: Document) -> list[str]:
        keys = [structural_hash({field: value}) for field, value in doc.data.items()]
        keys.append(structural_hash(doc.data))
        return keys

    def _add_to_indexes(self, doc: Document) -> None:
        for key in self._index_keys(doc):
            ids = self._indexes.setdefault(key, [])
            if doc.id not in ids:
                ids.append(doc.id)

    def _remove_from_indexes(self, doc: Document) -> None:
        for key in self._index_keys(doc):
            ids = self._indexes.get(key)
            if ids is None:
                continue
            if doc.id in ids:
                ids.remove(doc.id)
            if not ids:
                del self._indexes[key]

    def _matches(self, doc: Document, where: Mapping[str, Any]) -> bool:
        model = doc.to_model()
        for field, expected in where.items():
            if field not in model:
                return False
            actual = model[field]
            if structural_hash(actual) != structural_hash(expected):
                return False
            if not self._equals(actual, expected):
                return False
        return True

    def _next_id(self) -> str:
        # Restored identifiers may share a timestamp and counter segment.
        while True:
            self._counter += 1
            doc_id = generate_id(self._counter)
            if doc_id not in self._documents:
                return doc_id

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def find_one(self, where: Where) -> Document | None:
        """
        Return the first document matching ``where`` or ``None``.

        A string selects by identifier. A mapping is looked up through the
        index first and verified; on a miss every document is scanned. An
        empty mapping places no constraint and yields the first document.
        """
        if isinstance(where, str):
            return self._documents.get(where)
        if not where:
            return next(iter(self._documents.values()), None)

        ids = self._indexes.get(structural_hash(where))
        if ids:
            doc = self._documents.get(ids[0])
            if doc is not None and self._matches(doc, where):
                return doc

        for doc in self._documents.values():
            if self._matches(doc, where):
                return doc
        return None

    def find(self, where: Where = None) -> list[Document]:
        """
        Return every document matching ``where``.

        ``None`` or an empty mapping returns all documents; a string returns
        zero or one document by identifier.

        Only single-field selectors are answered from the index: per-field
        entries cover every document holding that value, while the
        whole-payload entry misses documents with extra fields.
        Scans return insertion order; index hits list documents in the order
        they were last indexed.
        """
        if isinstance(where, str):
            doc = self._documents.get(where)
            return [doc] if doc is not None else []
        if not where:
            return list(self._documents.values())

        if len(where) == 1:
            ids = self._indexes.get(structural_hash(where))
            if ids:
                candidates = [
                    doc
                    for doc in (self._documents.get(doc_id) for doc_id in ids)
                    if doc is not None and self._matches(doc, where)
                ]
                if candidates:
                    return candidates

        return [doc for doc in self._documents.values() if self._matches(doc, where)]

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    def insert_one(self, data: Mapping[str, Any]) -> Document:
        """Store ``data`` as a new document and index it."""
        doc = Document(data, doc_id=self._next_id())
        self._documents[doc.id] = doc
        self._add_to_indexes(doc)
        return doc

    def insert_many(self, data: Iterable[Mapping[str, Any]]) -> list[Document]:
        """Insert each record in order; the counter advances per record."""
        return [self.insert_one(item) for item in data]

    def insert_models(self, models: Iterable[Mapping[str, Any]]) -> list[Document]:
        """
        Insert model projections while keeping their persisted identifiers.

        Models without an ``_id`` receive a generated one. A model whose
        identifier is already stored replaces the existing document.
        """
        inserted: list[Document] = []
        for model in models:
            if not isinstance(model, Mapping):
                raise TypeError(f"Model must be a mapping, got {type(model).__name__}.")
            payload = {field: value for field, value in model.items() if field != ID_FIELD}
            raw_id = model.get(ID_FIELD)
            doc_id = str(raw_id) if raw_id is not None else self._next_id()

            existing = self._documents.pop(doc_id, None)
            if existing is not None:
                self._remove_from_indexes(existing)

            doc = Document(payload, doc_id=doc_id)
            self._documents[doc_id] = doc
            self._add_to_indexes(doc)
            inserted.append(doc)
        return inserted

    def find_one_and_update(
        self,
        where: Where,
        update: Mapping[str, Any] | None,
    ) -> Document | None:
        """
        Merge ``update`` into the first document matching ``where``.

        When nothing matches, ``update`` alone is inserted as a new record;
        the ``where`` fields are not merged into it. A falsy ``update``
        returns the matched document (or ``None``) untouched.
        """
        doc = self.find_one(where)
        if not update:
            return doc
        if doc is None:
            return self.insert_one(update)

        self._remove_from_indexes(doc)
        try:
            doc.update_data(update)
        finally:
            self._add_to_indexes(doc)
        return doc

    def delete_one(self, where: Where) -> bool:
        """Remove the first document matching ``where``; return whether one existed."""
        doc = self.find_one(where)
        if doc is None:
            return False
        self._remove_from_indexes(doc)
        del self._documents[doc.id]
        return True

    # ------------------------------------------------------------------ #
    # Serialization
    # ------------------------------------------------------------------ #

    def serialize(self) -> str:
        """Encode ``{"counter": n, "documents": [models...]}`` as JSON."""
        payload = {
            "counter": self._counter,
            "documents": [doc.to_model() for doc in self._documents.values()],
        }
        return json.dumps(payload, separators=(",", ":"), sort_keys=True)

    def dehydrate(self) -> str:
        """Alias of :meth:`serialize` for storage call sites."""
        return self.serialize()

    def hydrate(self, serialized: str) -> None:
        """
        Replace this collection's contents with a serialized snapshot.

        Persisted identifiers are kept. Malformed input is logged and leaves
        the collection empty; this method never raises for bad data.
        """
        self.clear()
        try:
            data = json.loads(serialized)
            if not isinstance(data, Mapping):
                raise ValueError("Serialized collection must be a JSON object.")
            documents = data.get("documents") or []
            if not isinstance(documents, list):
                raise ValueError("Serialized 'documents' must be a JSON array.")
            self._counter = int(data.get("counter") or 0)
            self.insert_models(documents)
        except (TypeError, ValueError) as exc:
            _LOGGER.warning("Failed to hydrate collection name=%s error=%s", self.name, exc)
            self.clear()

    @classmethod
    def deserialize(cls, name: str, serialized: str) -> "Collection":
        """Build a new collection from :meth:`serialize` output (never raises)."""
        collection = cls(name)
        collection.hydrate(serialized)
        return collection

    @staticmethod
    def hash(value: Any) -> str:
        """Return the structural hash used for index keys."""
        return structural_hash(value)

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._documents

    def __repr__(self) -> str:
        return f"Collection(name={self.name!r}, documents={len(self._documents)})"
