from __future__ import annotations

from typing import Any, Dict, List, Optional

from bson import ObjectId

from socialgraph.graph.graph_schema import Comment, Post, User, to_object_id
from socialgraph.store.base import DocumentCollection, StoreContext


class GraphQueryEngine:
    """
    Read side of the graph.

    Reference sets are resolved by looking the stored ids up in their
    collection. Ids that no longer resolve are left out of the result.
    """

    def __init__(self, store: StoreContext) -> None:
        self.store = store

    # -------------------- Collections --------------------

    def list_users(self) -> List[User]:
        return [User.from_document(d) for d in self.store.users.find()]

    def list_posts(self) -> List[Post]:
        return [Post.from_document(d) for d in self.store.posts.find()]

    def list_comments(self) -> List[Comment]:
        return [Comment.from_document(d) for d in self.store.comments.find()]

    def get_user(self, user_id: Any) -> Optional[User]:
        doc = self.store.users.find_one({"_id": to_object_id(user_id)})
        return User.from_document(doc) if doc else None

    def get_post(self, post_id: Any) -> Optional[Post]:
        doc = self.store.posts.find_one({"_id": to_object_id(post_id)})
        return Post.from_document(doc) if doc else None

    def get_comment(self, comment_id: Any) -> Optional[Comment]:
        doc = self.store.comments.find_one({"_id": to_object_id(comment_id)})
        return Comment.from_document(doc) if doc else None

    # -------------------- User fields --------------------

    def user_posts(self, user: User) -> List[Post]:
        return [Post.from_document(d) for d in self._resolve(self.store.posts, user.posts)]

    def user_comments(self, user: User) -> List[Comment]:
        return [
            Comment.from_document(d)
            for d in self._resolve(self.store.comments, user.comments)
        ]

    def user_liked_posts(self, user: User) -> List[Post]:
        return [
            Post.from_document(d)
            for d in self._resolve(self.store.posts, user.liked_posts)
        ]

    # -------------------- Post fields --------------------

    def post_author(self, post: Post) -> Optional[User]:
        doc = self.store.users.find_one({"_id": post.author})
        return User.from_document(doc) if doc else None

    def post_comments(self, post: Post) -> List[Comment]:
        return [
            Comment.from_document(d)
            for d in self._resolve(self.store.comments, post.comments)
        ]

    def post_likes(self, post: Post) -> List[User]:
        return [User.from_document(d) for d in self._resolve(self.store.users, post.likes)]

    # -------------------- Comment fields --------------------

    def comment_author(self, comment: Comment) -> Optional[User]:
        doc = self.store.users.find_one({"_id": comment.author})
        return User.from_document(doc) if doc else None

    def comment_post(self, comment: Comment) -> Optional[Post]:
        doc = self.store.posts.find_one({"_id": comment.post})
        return Post.from_document(doc) if doc else None

    # -------------------- Helpers --------------------

    @staticmethod
    def _resolve(
        collection: DocumentCollection, ids: List[ObjectId]
    ) -> List[Dict[str, Any]]:
        if not ids:
            return []
        found = {d["_id"]: d for d in collection.find({"_id": {"$in": list(ids)}})}
        # keep the order of the reference set
        return [found[i] for i in ids if i in found]
