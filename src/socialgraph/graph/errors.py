from __future__ import annotations

from typing import Any


class GraphError(Exception):
    """
    Base class for failures surfaced by a graph mutation.
    """

    def __init__(self, message: str, *, entity: str | None = None, entity_id: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.entity = entity
        self.entity_id = entity_id


class NotFoundError(GraphError):
    """A referenced entity does not exist."""


class ConflictError(GraphError):
    """The write would break a uniqueness rule (email, like)."""


class WriteRejectedError(GraphError):
    """The store refused or failed the primary write."""
