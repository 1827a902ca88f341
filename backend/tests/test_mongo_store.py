from __future__ import annotations

import copy
from contextlib import contextmanager
from types import SimpleNamespace

import pytest
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, OperationFailure

from socialgraph.config.settings import CascadeConfig
from socialgraph.graph.errors import ConflictError, WriteRejectedError
from socialgraph.graph.graph_mutator import GraphMutator
from socialgraph.store.base import StoreError, UniqueViolation
from socialgraph.store.memory_store import apply_update, matches
from socialgraph.store.mongo_store import MongoStore


class FakeCollection:
    def __init__(self, name: str) -> None:
        self.name = name
        self.docs: dict = {}
        self.unique: list = []
        self.sessions: list = []
        self.return_documents: list = []
        self.fail_with: Exception | None = None

    def _enter(self, session) -> None:
        self.sessions.append(session)
        if self.fail_with is not None:
            exc, self.fail_with = self.fail_with, None
            raise exc

    def _matching(self, filter):
        return [d for d in self.docs.values() if matches(d, filter)]

    def create_index(self, key, unique=False, session=None):
        if unique:
            self.unique.append(key)
        return f"{key}_1"

    def insert_one(self, doc, session=None):
        self._enter(session)
        for key in self.unique:
            if any(d.get(key) == doc.get(key) for d in self.docs.values()):
                raise DuplicateKeyError("E11000 duplicate key", code=11000)
        self.docs[doc["_id"]] = copy.deepcopy(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    def find_one(self, filter, session=None):
        self._enter(session)
        found = self._matching(filter)
        return copy.deepcopy(found[0]) if found else None

    def find(self, filter, session=None):
        self._enter(session)
        return iter(copy.deepcopy(self._matching(filter)))

    def delete_one(self, filter, session=None):
        self._enter(session)
        found = self._matching(filter)[:1]
        for doc in found:
            del self.docs[doc["_id"]]
        return SimpleNamespace(deleted_count=len(found))

    def delete_many(self, filter, session=None):
        self._enter(session)
        found = self._matching(filter)
        for doc in found:
            del self.docs[doc["_id"]]
        return SimpleNamespace(deleted_count=len(found))

    def update_one(self, filter, update, session=None):
        self._enter(session)
        found = self._matching(filter)[:1]
        for doc in found:
            apply_update(doc, update)
        return SimpleNamespace(matched_count=len(found))

    def update_many(self, filter, update, session=None):
        self._enter(session)
        found = self._matching(filter)
        for doc in found:
            apply_update(doc, update)
        return SimpleNamespace(matched_count=len(found))

    def find_one_and_update(self, filter, update, session=None, return_document=None):
        self._enter(session)
        self.return_documents.append(return_document)
        found = self._matching(filter)
        if not found:
            return None
        before = copy.deepcopy(found[0])
        apply_update(found[0], update)
        return copy.deepcopy(found[0]) if return_document == ReturnDocument.AFTER else before


class FakeSession:
    def __init__(self, client: "FakeClient") -> None:
        self.client = client

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def _commit(self) -> None:
        self.client.commits += 1
        if self.client.commit_error is not None:
            raise self.client.commit_error

    @contextmanager
    def start_transaction(self):
        yield
        self._commit()

    def with_transaction(self, callback):
        result = callback(self)
        self._commit()
        return result


class FakeClient:
    def __init__(self, *, hello=None, hello_error=None) -> None:
        self.collections: dict = {}
        self.commits = 0
        self.commit_error: Exception | None = None
        self.closed = False

        def _command(name):
            if hello_error is not None:
                raise hello_error
            return hello if hello is not None else {"setName": "rs0"}

        self.admin = SimpleNamespace(command=_command)

    def __getitem__(self, database):
        client = self

        class _Database:
            def __getitem__(self, name):
                return client.collections.setdefault(name, FakeCollection(name))

        return _Database()

    def start_session(self):
        return FakeSession(self)

    def close(self) -> None:
        self.closed = True


def _store(client: FakeClient) -> MongoStore:
    return MongoStore(url="mongodb://fake", database="test", client=client)


def test_transaction_support_follows_server_topology():
    assert _store(FakeClient(hello={"setName": "rs0"})).supports_transactions
    assert _store(FakeClient(hello={"msg": "isdbgrid"})).supports_transactions
    assert not _store(FakeClient(hello={"isWritablePrimary": True})).supports_transactions
    assert not _store(
        FakeClient(hello_error=OperationFailure("hello not allowed"))
    ).supports_transactions


def test_unique_email_index_is_created():
    client = FakeClient()
    _store(client)

    assert client.collections["Users"].unique == ["email"]


def test_collection_calls_map_results_and_return_document():
    client = FakeClient(hello={})
    store = _store(client)
    doc_id = store.posts.insert_one({"_id": ObjectId(), "content": "a", "likes": []})

    after = store.posts.find_one_and_update({"_id": doc_id}, {"$set": {"content": "b"}})
    before = store.posts.find_one_and_update(
        {"_id": doc_id}, {"$set": {"content": "c"}}, return_document="before"
    )

    assert after["content"] == "b"
    assert before["content"] == "b"
    assert client.collections["Posts"].return_documents == [
        ReturnDocument.AFTER,
        ReturnDocument.BEFORE,
    ]
    assert store.posts.update_many({}, {"$addToSet": {"likes": doc_id}}) == 1
    assert [d["_id"] for d in store.posts.find()] == [doc_id]
    assert store.posts.delete_many({"_id": doc_id}) == 1
    assert store.posts.delete_one({"_id": doc_id}) == 0


def test_pymongo_errors_become_store_errors():
    client = FakeClient(hello={})
    store = _store(client)
    posts = client.collections["Posts"]

    posts.fail_with = OperationFailure("boom")
    with pytest.raises(StoreError):
        store.posts.find_one({})

    store.users.insert_one({"_id": ObjectId(), "email": "a@x"})
    with pytest.raises(UniqueViolation):
        store.users.insert_one({"_id": ObjectId(), "email": "a@x"})


def test_plans_share_one_session_and_release_it():
    client = FakeClient()
    store = _store(client)
    mutator = GraphMutator(store=store, config=CascadeConfig(use_transactions=True))
    user = mutator.create_user(name="A", password="p", email="a@x")

    mutator.create_post(content="hi", author=user.id)

    # insert into Posts and link-back into Users ran under one session
    post_session = client.collections["Posts"].sessions[-1]
    assert isinstance(post_session, FakeSession)
    assert client.collections["Users"].sessions[-1] is post_session
    assert client.commits == 2
    assert store.current_session() is None


def test_commit_failure_is_a_write_rejection():
    client = FakeClient()
    store = _store(client)
    mutator = GraphMutator(store=store, config=CascadeConfig(use_transactions=True))
    client.commit_error = OperationFailure("commit failed")

    with pytest.raises(WriteRejectedError):
        mutator.create_user(name="A", password="p", email="a@x")
    assert store.current_session() is None


def test_transaction_block_wraps_commit_failure():
    client = FakeClient()
    store = _store(client)
    client.commit_error = OperationFailure("commit failed")

    with pytest.raises(StoreError):
        with store.transaction():
            store.posts.insert_one({"_id": ObjectId()})
    assert store.current_session() is None


def test_duplicate_email_in_transaction_is_a_conflict(monkeypatch):
    store = _store(FakeClient())
    mutator = GraphMutator(store=store, config=CascadeConfig(use_transactions=True))
    mutator.create_user(name="A", password="p", email="a@x")
    monkeypatch.setattr(mutator, "_ensure_email_free", lambda email, **kwargs: None)

    with pytest.raises(ConflictError):
        mutator.create_user(name="B", password="p", email="a@x")


def test_close_closes_client():
    client = FakeClient()
    _store(client).close()

    assert client.closed
