from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Literal, Optional, TypeVar

from bson import ObjectId
from pymongo import MongoClient, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, OperationFailure, PyMongoError

from socialgraph.store.base import (
    Document,
    DocumentCollection,
    Filter,
    StoreContext,
    StoreError,
    UniqueViolation,
    Update,
)

T = TypeVar("T")


class MongoCollection(DocumentCollection):
    """
    DocumentCollection backed by a pymongo collection.

    Calls join the session of the enclosing ``MongoStore.transaction()``
    when one is active on the current thread.
    """

    def __init__(self, collection: Collection, store: "MongoStore") -> None:
        self.name = collection.name
        self._collection = collection
        self._store = store

    def _call(self, operation: str, *args: Any, **kwargs: Any) -> Any:
        try:
            method = getattr(self._collection, operation)
            return method(*args, session=self._store.current_session(), **kwargs)
        except DuplicateKeyError as exc:
            raise UniqueViolation(f"{self.name}.{operation} failed: {exc}") from exc
        except PyMongoError as exc:
            raise StoreError(f"{self.name}.{operation} failed: {exc}") from exc

    def insert_one(self, doc: Document) -> ObjectId:
        return self._call("insert_one", doc).inserted_id

    def find_one(self, filter: Filter) -> Optional[Document]:
        return self._call("find_one", filter)

    def find(self, filter: Filter | None = None) -> List[Document]:
        return list(self._call("find", filter or {}))

    def delete_one(self, filter: Filter) -> int:
        return self._call("delete_one", filter).deleted_count

    def delete_many(self, filter: Filter) -> int:
        return self._call("delete_many", filter).deleted_count

    def update_one(self, filter: Filter, update: Update) -> int:
        return self._call("update_one", filter, update).matched_count

    def update_many(self, filter: Filter, update: Update) -> int:
        return self._call("update_many", filter, update).matched_count

    def find_one_and_update(
        self,
        filter: Filter,
        update: Update,
        *,
        return_document: Literal["before", "after"] = "after",
    ) -> Optional[Document]:
        return self._call(
            "find_one_and_update",
            filter,
            update,
            return_document=(
                ReturnDocument.AFTER if return_document == "after" else ReturnDocument.BEFORE
            ),
        )


class MongoStore(StoreContext):
    """
    Store context over a MongoDB database.

    Multi-document transactions are only available on replica sets
    and sharded clusters; ``supports_transactions`` is probed once at
    construction.
    """

    def __init__(
        self,
        *,
        url: str,
        database: str,
        users_collection: str = "Users",
        posts_collection: str = "Posts",
        comments_collection: str = "Comments",
        client: MongoClient | None = None,
    ) -> None:
        self._client = client or MongoClient(url)
        self._local = threading.local()
        db = self._client[database]
        super().__init__(
            users=MongoCollection(db[users_collection], self),
            posts=MongoCollection(db[posts_collection], self),
            comments=MongoCollection(db[comments_collection], self),
        )
        self.users._call("create_index", "email", unique=True)
        self.supports_transactions = self._probe_transactions()
        logging.getLogger("socialgraph.startup").info(
            "[startup] mongo database=%s transactions=%s",
            database,
            self.supports_transactions,
        )

    def _probe_transactions(self) -> bool:
        try:
            hello = self._client.admin.command("hello")
        except OperationFailure:
            return False
        except PyMongoError as exc:
            raise StoreError(f"cannot reach mongo: {exc}") from exc
        return "setName" in hello or hello.get("msg") == "isdbgrid"

    def current_session(self):
        return getattr(self._local, "session", None)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if not self.supports_transactions or self.current_session() is not None:
            yield
            return

        # Commit happens on exit, outside any collection call.
        try:
            with self._client.start_session() as session:
                with session.start_transaction():
                    self._local.session = session
                    try:
                        yield
                    finally:
                        self._local.session = None
        except PyMongoError as exc:
            raise StoreError(f"transaction failed: {exc}") from exc

    def run_in_transaction(self, callback: Callable[[], T]) -> T:
        """
        Run ``callback`` through ``ClientSession.with_transaction``, which
        retries transient errors and unknown commit results.
        """
        if not self.supports_transactions or self.current_session() is not None:
            return callback()

        def _body(session) -> T:
            self._local.session = session
            try:
                return callback()
            finally:
                self._local.session = None

        try:
            with self._client.start_session() as session:
                return session.with_transaction(_body)
        except PyMongoError as exc:
            raise StoreError(f"transaction failed: {exc}") from exc

    def close(self) -> None:
        self._client.close()
