from __future__ import annotations

import copy
import threading
from typing import Any, Dict, List, Literal, Optional, Tuple

from bson import ObjectId

from socialgraph.store.base import (
    Document,
    DocumentCollection,
    Filter,
    StoreContext,
    StoreError,
    UniqueViolation,
    Update,
    UPDATE_OPERATORS,
)


def _value_matches(actual: Any, expected: Any) -> bool:
    if isinstance(expected, dict) and "$in" in expected:
        candidates = list(expected["$in"] or [])
        if isinstance(actual, list):
            return any(a in candidates for a in actual)
        return actual in candidates
    if isinstance(actual, list) and not isinstance(expected, list):
        return expected in actual
    return actual == expected


def matches(doc: Document, filter: Filter | None) -> bool:
    if not filter:
        return True
    return all(_value_matches(doc.get(key), expected) for key, expected in filter.items())


def apply_update(doc: Document, update: Update) -> None:
    unknown = set(update) - set(UPDATE_OPERATORS)
    if unknown:
        raise StoreError(f"unsupported update operators: {sorted(unknown)}")

    for key, value in update.get("$set", {}).items():
        doc[key] = copy.deepcopy(value)

    for key, value in update.get("$push", {}).items():
        doc.setdefault(key, []).append(value)

    for key, value in update.get("$addToSet", {}).items():
        values = doc.setdefault(key, [])
        if value not in values:
            values.append(value)

    for key, value in update.get("$pull", {}).items():
        if key in doc and isinstance(doc[key], list):
            doc[key] = [v for v in doc[key] if v != value]


class InMemoryCollection(DocumentCollection):
    """
    Thread-safe in-process collection.

    Documents are copied on the way in and out so callers never hold
    live references into the store.
    """

    def __init__(self, name: str, *, unique_fields: Tuple[str, ...] = ()) -> None:
        self.name = name
        self.unique_fields = tuple(unique_fields)
        self._docs: Dict[ObjectId, Document] = {}
        self._lock = threading.Lock()
        self._faults: Dict[str, int] = {}

    # -------------------- Fault injection --------------------

    def fail_on(self, operation: str, *, times: int = 1) -> None:
        """
        Make the next ``times`` calls to ``operation`` raise StoreError.
        """
        with self._lock:
            self._faults[operation] = self._faults.get(operation, 0) + times

    def _maybe_fail(self, operation: str) -> None:
        remaining = self._faults.get(operation, 0)
        if remaining:
            self._faults[operation] = remaining - 1
            raise StoreError(f"{self.name}.{operation} failed (injected)")

    # -------------------- Writes --------------------

    def _check_unique(self, candidate: Document) -> None:
        for key in self.unique_fields:
            value = candidate.get(key)
            if value is None:
                continue
            for doc_id, doc in self._docs.items():
                if doc_id != candidate["_id"] and doc.get(key) == value:
                    raise UniqueViolation(
                        f"duplicate key in {self.name}: {key}={value!r}"
                    )

    def _apply(self, doc_id: ObjectId, update: Update) -> Document:
        updated = copy.deepcopy(self._docs[doc_id])
        apply_update(updated, update)
        self._check_unique(updated)
        self._docs[doc_id] = updated
        return updated

    def _matching_ids(self, filter: Filter) -> List[ObjectId]:
        return [doc_id for doc_id, doc in self._docs.items() if matches(doc, filter)]

    def insert_one(self, doc: Document) -> ObjectId:
        with self._lock:
            self._maybe_fail("insert_one")
            stored = copy.deepcopy(doc)
            doc_id = stored.setdefault("_id", ObjectId())
            if doc_id in self._docs:
                raise UniqueViolation(f"duplicate key in {self.name}: {doc_id}")
            self._check_unique(stored)
            self._docs[doc_id] = stored
            return doc_id

    def delete_one(self, filter: Filter) -> int:
        with self._lock:
            self._maybe_fail("delete_one")
            for doc_id in self._matching_ids(filter)[:1]:
                del self._docs[doc_id]
                return 1
            return 0

    def delete_many(self, filter: Filter) -> int:
        with self._lock:
            self._maybe_fail("delete_many")
            doomed = self._matching_ids(filter)
            for doc_id in doomed:
                del self._docs[doc_id]
            return len(doomed)

    def update_one(self, filter: Filter, update: Update) -> int:
        with self._lock:
            self._maybe_fail("update_one")
            for doc_id in self._matching_ids(filter)[:1]:
                self._apply(doc_id, update)
                return 1
            return 0

    def update_many(self, filter: Filter, update: Update) -> int:
        with self._lock:
            self._maybe_fail("update_many")
            targets = self._matching_ids(filter)
            for doc_id in targets:
                self._apply(doc_id, update)
            return len(targets)

    def find_one_and_update(
        self,
        filter: Filter,
        update: Update,
        *,
        return_document: Literal["before", "after"] = "after",
    ) -> Optional[Document]:
        with self._lock:
            self._maybe_fail("find_one_and_update")
            for doc_id in self._matching_ids(filter)[:1]:
                before = copy.deepcopy(self._docs[doc_id])
                after = self._apply(doc_id, update)
                return before if return_document == "before" else copy.deepcopy(after)
            return None

    # -------------------- Reads --------------------

    def find_one(self, filter: Filter) -> Optional[Document]:
        with self._lock:
            self._maybe_fail("find_one")
            for doc in self._docs.values():
                if matches(doc, filter):
                    return copy.deepcopy(doc)
            return None

    def find(self, filter: Filter | None = None) -> List[Document]:
        with self._lock:
            self._maybe_fail("find")
            return [copy.deepcopy(doc) for doc in self._docs.values() if matches(doc, filter)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._docs)


class InMemoryStore(StoreContext):
    """
    Store context over three in-memory collections.
    """

    def __init__(
        self,
        *,
        users_collection: str = "Users",
        posts_collection: str = "Posts",
        comments_collection: str = "Comments",
    ) -> None:
        super().__init__(
            users=InMemoryCollection(users_collection, unique_fields=("email",)),
            posts=InMemoryCollection(posts_collection),
            comments=InMemoryCollection(comments_collection),
        )
