from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

# ---------------------------------------------------------------------
# Document store
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class StoreConfig:
    """
    Selects and addresses the document store holding the three
    collections.
    """

    backend: Literal["memory", "mongo"] = "memory"
    mongo_url: str | None = None
    database: str = "socialgraph"
    users_collection: str = "Users"
    posts_collection: str = "Posts"
    comments_collection: str = "Comments"


# ---------------------------------------------------------------------
# Cascade execution
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class CascadeConfig:
    """
    Controls how compensating writes are issued after a primary write.
    """

    mode: Literal["sequential", "parallel"] = "sequential"
    max_workers: int = 4
    use_transactions: bool = True


# ---------------------------------------------------------------------
# Root configuration object
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class SocialGraphConfig:
    """
    Root configuration object for socialgraph.

    Constructed once by the host application and passed explicitly
    to the store factory, the mutator and the cascade executor.
    """

    store: StoreConfig = field(default_factory=StoreConfig)
    cascade: CascadeConfig = field(default_factory=CascadeConfig)
