from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Literal, Optional, TypeVar

from bson import ObjectId

USERS = "users"
POSTS = "posts"
COMMENTS = "comments"

COLLECTIONS = (USERS, POSTS, COMMENTS)

Document = Dict[str, Any]
Filter = Dict[str, Any]
Update = Dict[str, Dict[str, Any]]

UPDATE_OPERATORS = ("$set", "$push", "$addToSet", "$pull")

T = TypeVar("T")


class StoreError(Exception):
    """
    Raised by a collection when the backing store fails a call.
    """


class UniqueViolation(StoreError):
    """
    A write would give two documents the same value in a unique field.
    """


class DocumentCollection(ABC):
    """
    Minimal document-collection contract.

    Filters use MongoDB syntax restricted to equality (which also
    matches array membership) and ``$in``. Updates accept
    ``$set``, ``$push``, ``$addToSet`` and ``$pull``. Every call is
    atomic for a single document only.
    """

    name: str

    @abstractmethod
    def insert_one(self, doc: Document) -> ObjectId:
        ...

    @abstractmethod
    def find_one(self, filter: Filter) -> Optional[Document]:
        ...

    @abstractmethod
    def find(self, filter: Filter | None = None) -> List[Document]:
        ...

    @abstractmethod
    def delete_one(self, filter: Filter) -> int:
        ...

    @abstractmethod
    def delete_many(self, filter: Filter) -> int:
        ...

    @abstractmethod
    def update_one(self, filter: Filter, update: Update) -> int:
        ...

    @abstractmethod
    def update_many(self, filter: Filter, update: Update) -> int:
        ...

    @abstractmethod
    def find_one_and_update(
        self,
        filter: Filter,
        update: Update,
        *,
        return_document: Literal["before", "after"] = "after",
    ) -> Optional[Document]:
        ...


class StoreContext:
    """
    Explicit handle on the three collections.

    Built once by the host application and passed to every operation,
    so tests can swap in their own collections.
    """

    supports_transactions: bool = False

    def __init__(
        self,
        *,
        users: DocumentCollection,
        posts: DocumentCollection,
        comments: DocumentCollection,
    ) -> None:
        self.users = users
        self.posts = posts
        self.comments = comments

    def collection(self, name: str) -> DocumentCollection:
        if name == USERS:
            return self.users
        if name == POSTS:
            return self.posts
        if name == COMMENTS:
            return self.comments
        raise KeyError(f"unknown collection: {name}")

    @contextmanager
    def transaction(self) -> Iterator[None]:
        # Stores without multi-document transactions run the block as is.
        yield

    def run_in_transaction(self, callback: Callable[[], T]) -> T:
        """
        Run ``callback`` as one unit of work and return its result.
        """
        with self.transaction():
            return callback()

    def close(self) -> None:
        pass
