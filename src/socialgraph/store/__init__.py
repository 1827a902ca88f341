"""
Document store layer for socialgraph.

Three independent collections (users, posts, comments) behind one
explicit ``StoreContext``. Integrity across collections is maintained
by the graph layer, not here.
"""

from socialgraph.config.settings import StoreConfig
from socialgraph.store.base import DocumentCollection, StoreContext, StoreError
from socialgraph.store.memory_store import InMemoryCollection, InMemoryStore


def build_store(config: StoreConfig) -> StoreContext:
    if config.backend == "memory":
        return InMemoryStore(
            users_collection=config.users_collection,
            posts_collection=config.posts_collection,
            comments_collection=config.comments_collection,
        )
    if config.backend == "mongo":
        if not config.mongo_url:
            raise ValueError("mongo backend requires a mongo_url")
        from socialgraph.store.mongo_store import MongoStore

        return MongoStore(
            url=config.mongo_url,
            database=config.database,
            users_collection=config.users_collection,
            posts_collection=config.posts_collection,
            comments_collection=config.comments_collection,
        )
    raise ValueError(f"unknown store backend: {config.backend}")


__all__ = [
    "DocumentCollection",
    "StoreContext",
    "StoreError",
    "InMemoryCollection",
    "InMemoryStore",
    "build_store",
]
