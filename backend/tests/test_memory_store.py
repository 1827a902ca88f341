import threading

import pytest
from bson import ObjectId

from socialgraph.store.base import StoreError, UniqueViolation
from socialgraph.store.memory_store import InMemoryCollection


def _collection_with(*docs) -> InMemoryCollection:
    col = InMemoryCollection("Things")
    for doc in docs:
        col.insert_one(doc)
    return col


def test_equality_filter_matches_array_membership_and_in():
    x, y, z = ObjectId(), ObjectId(), ObjectId()
    col = _collection_with(
        {"_id": x, "tags": [y]},
        {"_id": y, "tags": []},
        {"_id": z, "tags": [x, y]},
    )

    assert {d["_id"] for d in col.find({"tags": y})} == {x, z}
    assert {d["_id"] for d in col.find({"_id": {"$in": [x, y]}})} == {x, y}
    assert {d["_id"] for d in col.find({"tags": {"$in": [x]}})} == {z}
    assert len(col.find()) == 3


def test_update_operators():
    doc_id, a, b = ObjectId(), ObjectId(), ObjectId()
    col = _collection_with({"_id": doc_id, "name": "n", "refs": [a]})

    col.update_one({"_id": doc_id}, {"$addToSet": {"refs": a}})
    col.update_one({"_id": doc_id}, {"$push": {"refs": b}})
    col.update_one({"_id": doc_id}, {"$set": {"name": "m"}})
    assert col.find_one({"_id": doc_id}) == {"_id": doc_id, "name": "m", "refs": [a, b]}

    assert col.update_many({"refs": a}, {"$pull": {"refs": a}}) == 1
    assert col.find_one({"_id": doc_id})["refs"] == [b]

    with pytest.raises(StoreError):
        col.update_one({"_id": doc_id}, {"$inc": {"count": 1}})


def test_find_one_and_update_returns_requested_version():
    doc_id = ObjectId()
    col = _collection_with({"_id": doc_id, "text": "old"})

    before = col.find_one_and_update(
        {"_id": doc_id}, {"$set": {"text": "mid"}}, return_document="before"
    )
    after = col.find_one_and_update({"_id": doc_id}, {"$set": {"text": "new"}})

    assert before["text"] == "old"
    assert after["text"] == "new"
    assert col.find_one_and_update({"_id": ObjectId()}, {"$set": {"text": "x"}}) is None


def test_reads_return_copies():
    doc_id = ObjectId()
    col = _collection_with({"_id": doc_id, "refs": []})

    col.find_one({"_id": doc_id})["refs"].append("leak")

    assert col.find_one({"_id": doc_id})["refs"] == []


def test_fail_on_raises_once_then_recovers():
    col = _collection_with({"_id": ObjectId(), "refs": []})
    col.fail_on("delete_many")

    with pytest.raises(StoreError):
        col.delete_many({})
    assert col.delete_many({}) == 1
    assert len(col) == 0


def test_unique_fields_reject_inserts_and_updates():
    col = InMemoryCollection("Users", unique_fields=("email",))
    first = col.insert_one({"_id": ObjectId(), "email": "a@x"})
    second = col.insert_one({"_id": ObjectId(), "email": "b@x"})

    with pytest.raises(UniqueViolation):
        col.insert_one({"_id": ObjectId(), "email": "a@x"})
    with pytest.raises(UniqueViolation):
        col.find_one_and_update({"_id": second}, {"$set": {"email": "a@x"}})

    # rewriting a document's own value is not a collision
    col.update_one({"_id": first}, {"$set": {"email": "a@x", "name": "A"}})

    assert len(col) == 2
    assert col.find_one({"_id": second})["email"] == "b@x"


def test_len_waits_for_the_collection_lock():
    col = _collection_with({"_id": ObjectId()})
    sizes = []

    with col._lock:
        reader = threading.Thread(target=lambda: sizes.append(len(col)))
        reader.start()
        reader.join(timeout=0.2)
        assert reader.is_alive()

    reader.join(timeout=5)
    assert sizes == [1]
