from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from socialgraph.config.settings import CascadeConfig
from socialgraph.graph.cascade_executor import CascadeExecutor, CascadeResult
from socialgraph.graph.cascade_planner import CascadePlanner
from socialgraph.graph.errors import ConflictError, NotFoundError, WriteRejectedError
from socialgraph.graph.graph_schema import Comment, Post, User, to_object_id
from socialgraph.store.base import (
    COMMENTS,
    POSTS,
    USERS,
    DocumentCollection,
    StoreContext,
    StoreError,
    UniqueViolation,
)
from socialgraph.utils.encoding import encode_password


class GraphMutator:
    """
    Consistency-preserving mutations over users, posts and comments.

    Every mutation performs its primary write, then the compensating
    writes that keep forward and backward references in step. Plans
    come from ``CascadePlanner`` and run through ``CascadeExecutor``.
    """

    def __init__(
        self,
        *,
        store: StoreContext,
        config: CascadeConfig | None = None,
    ) -> None:
        self.store = store
        self.config = config or CascadeConfig()
        self.planner = CascadePlanner(store)
        self.executor = CascadeExecutor(store=store, config=self.config)
        self.logger = logging.getLogger("socialgraph.mutation")

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def create_user(self, *, name: str, password: str, email: str) -> User:
        self._ensure_email_free(email)
        user = User.create(name=name, password=password, email=email)
        self.executor.execute(self.planner.plan_create_user(user))
        self.logger.info("created user %s", user.id)
        return user

    def update_user(
        self,
        user_id: Any,
        *,
        name: Optional[str] = None,
        password: Optional[str] = None,
        email: Optional[str] = None,
    ) -> User:
        user_id = to_object_id(user_id)
        changes: Dict[str, Any] = {}
        if name is not None:
            changes["name"] = name
        if password is not None:
            changes["password"] = encode_password(password)
        if email is not None:
            self._require(self.store.users, USERS, user_id)
            self._ensure_email_free(email, owner_id=user_id)
            changes["email"] = email

        doc = self._update_fields(self.store.users, USERS, user_id, changes)
        return User.from_document(doc)

    def delete_user(self, user_id: Any) -> CascadeResult:
        return self._execute_delete(USERS, user_id)

    # ------------------------------------------------------------------
    # Posts
    # ------------------------------------------------------------------

    def create_post(self, *, content: str, author: Any) -> Post:
        author = to_object_id(author)
        self._require(self.store.users, USERS, author)
        post = Post.create(content=content, author=author)
        self.executor.execute(self.planner.plan_create_post(post))
        self.logger.info("created post %s by %s", post.id, author)
        return post

    def update_post(self, post_id: Any, *, content: Optional[str] = None) -> Post:
        post_id = to_object_id(post_id)
        changes = {"content": content} if content is not None else {}
        doc = self._update_fields(self.store.posts, POSTS, post_id, changes)
        return Post.from_document(doc)

    def delete_post(self, post_id: Any) -> CascadeResult:
        return self._execute_delete(POSTS, post_id)

    # ------------------------------------------------------------------
    # Likes
    # ------------------------------------------------------------------

    def add_like_to_post(self, post_id: Any, user_id: Any) -> Post:
        post_id, user_id = to_object_id(post_id), to_object_id(user_id)
        post = self._require(self.store.posts, POSTS, post_id)
        self._require(self.store.users, USERS, user_id)

        if user_id in (post.get("likes") or []):
            raise ConflictError(
                f"user {user_id} already likes post {post_id}",
                entity=POSTS,
                entity_id=post_id,
            )

        result = self.executor.execute(self.planner.plan_add_like(post_id, user_id))
        return Post.from_document(result.primary_result)

    def remove_like_from_post(self, post_id: Any, user_id: Any) -> Post:
        post_id, user_id = to_object_id(post_id), to_object_id(user_id)
        self._require(self.store.posts, POSTS, post_id)
        self._require(self.store.users, USERS, user_id)

        # Removing a like that is not there is a no-op, not an error.
        result = self.executor.execute(self.planner.plan_remove_like(post_id, user_id))
        return Post.from_document(result.primary_result)

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def create_comment(self, *, text: str, author: Any, post: Any) -> Comment:
        author, post = to_object_id(author), to_object_id(post)
        self._require(self.store.users, USERS, author)
        self._require(self.store.posts, POSTS, post)
        comment = Comment.create(text=text, author=author, post=post)
        self.executor.execute(self.planner.plan_create_comment(comment))
        self.logger.info("created comment %s on %s by %s", comment.id, post, author)
        return comment

    def update_comment(self, comment_id: Any, *, text: Optional[str] = None) -> Comment:
        comment_id = to_object_id(comment_id)
        changes = {"text": text} if text is not None else {}
        doc = self._update_fields(self.store.comments, COMMENTS, comment_id, changes)
        return Comment.from_document(doc)

    def delete_comment(self, comment_id: Any) -> CascadeResult:
        return self._execute_delete(COMMENTS, comment_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _execute_delete(self, kind: str, entity_id: Any) -> CascadeResult:
        try:
            plan = self.planner.plan_delete(kind, entity_id)
        except StoreError as exc:
            raise WriteRejectedError(
                f"could not plan delete of {kind[:-1]} {entity_id}: {exc}",
                entity=kind,
                entity_id=entity_id,
            ) from exc
        result = self.executor.execute(plan)
        if not result.ok:
            self.logger.warning(
                "delete %s %s left %d compensation(s) unapplied",
                kind[:-1],
                plan.entity_id,
                len(result.failed),
            )
        return result

    def _ensure_email_free(self, email: str, *, owner_id=None) -> None:
        existing = self._read(self.store.users, USERS, {"email": email})
        if existing is not None and existing["_id"] != owner_id:
            raise ConflictError(
                f"email {email} is already in use",
                entity=USERS,
                entity_id=existing["_id"],
            )

    def _require(self, collection: DocumentCollection, kind: str, entity_id) -> Dict[str, Any]:
        doc = self._read(collection, kind, {"_id": entity_id})
        if doc is None:
            raise NotFoundError(
                f"{kind[:-1]} {entity_id} not found",
                entity=kind,
                entity_id=entity_id,
            )
        return doc

    def _update_fields(
        self,
        collection: DocumentCollection,
        kind: str,
        entity_id,
        changes: Dict[str, Any],
    ) -> Dict[str, Any]:
        if not changes:
            return self._require(collection, kind, entity_id)

        try:
            doc = collection.find_one_and_update(
                {"_id": entity_id},
                {"$set": changes},
                return_document="after",
            )
        except UniqueViolation as exc:
            raise ConflictError(
                f"could not update {kind[:-1]} {entity_id}: {exc}",
                entity=kind,
                entity_id=entity_id,
            ) from exc
        except StoreError as exc:
            raise WriteRejectedError(
                f"could not update {kind[:-1]} {entity_id}: {exc}",
                entity=kind,
                entity_id=entity_id,
            ) from exc

        if doc is None:
            raise NotFoundError(
                f"{kind[:-1]} {entity_id} not found",
                entity=kind,
                entity_id=entity_id,
            )
        self.logger.info("updated %s %s fields=%s", kind[:-1], entity_id, sorted(changes))
        return doc

    @staticmethod
    def _read(collection: DocumentCollection, kind: str, filter: Dict[str, Any]):
        try:
            return collection.find_one(filter)
        except StoreError as exc:
            raise WriteRejectedError(
                f"could not read {kind}: {exc}", entity=kind
            ) from exc
