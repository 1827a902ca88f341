from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from bson import ObjectId

from socialgraph.graph.graph_schema import Comment, Post, User, to_object_id
from socialgraph.store.base import COMMENTS, POSTS, USERS, StoreContext

StepOperation = Literal["insert_one", "delete_one", "delete_many", "pull", "add_to_set"]


# ---------------------------------------------------------------------
# Plan data
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class CascadeStep:
    """
    One write against one collection, described as data.

    ``pull`` and ``add_to_set`` remove or add ``value`` in the array
    ``field`` of every document matching ``filter``. Every step is safe
    to apply more than once.
    """

    collection: str
    operation: StepOperation
    filter: Dict[str, Any] = field(default_factory=dict)
    field: Optional[str] = None
    value: Any = None
    description: str = ""

    def describe(self) -> str:
        if self.description:
            return self.description
        return f"{self.operation} {self.collection} {self.field or ''}".strip()


@dataclass(frozen=True)
class CascadePlan:
    """
    Primary write plus the ordered compensations that keep references
    consistent with it.
    """

    kind: str
    entity_id: ObjectId
    primary: CascadeStep
    compensations: List[CascadeStep]
    # The primary write must match a document or the mutation fails.
    require_match: bool = False

    @property
    def steps(self) -> List[CascadeStep]:
        return [self.primary, *self.compensations]


# ---------------------------------------------------------------------
# Planner
# ---------------------------------------------------------------------


class CascadePlanner:
    """
    Computes the full list of writes for a mutation before any of
    them runs.

    Reads happen here, against the current store snapshot. Compensations
    address references by the id being added or removed and by the
    field that holds it, never by a copy of the deleted document, so a
    plan can be replayed after a partial failure.
    """

    def __init__(self, store: StoreContext) -> None:
        self.store = store

    def plan_delete(self, kind: str, entity_id: Any) -> CascadePlan:
        if kind == USERS:
            return self.plan_delete_user(entity_id)
        if kind == POSTS:
            return self.plan_delete_post(entity_id)
        if kind == COMMENTS:
            return self.plan_delete_comment(entity_id)
        raise ValueError(f"unknown entity kind: {kind}")

    # -------------------- Creates --------------------

    def plan_create_user(self, user: User) -> CascadePlan:
        return CascadePlan(
            kind=USERS,
            entity_id=user.id,
            primary=CascadeStep(
                USERS, "insert_one", value=user.to_document(), description="insert user"
            ),
            compensations=[],
        )

    def plan_create_post(self, post: Post) -> CascadePlan:
        return CascadePlan(
            kind=POSTS,
            entity_id=post.id,
            primary=CascadeStep(
                POSTS, "insert_one", value=post.to_document(), description="insert post"
            ),
            compensations=[
                CascadeStep(
                    USERS,
                    "add_to_set",
                    {"_id": post.author},
                    "posts",
                    post.id,
                    "link post to author",
                ),
            ],
        )

    def plan_create_comment(self, comment: Comment) -> CascadePlan:
        return CascadePlan(
            kind=COMMENTS,
            entity_id=comment.id,
            primary=CascadeStep(
                COMMENTS,
                "insert_one",
                value=comment.to_document(),
                description="insert comment",
            ),
            compensations=[
                CascadeStep(
                    USERS,
                    "add_to_set",
                    {"_id": comment.author},
                    "comments",
                    comment.id,
                    "link comment to author",
                ),
                CascadeStep(
                    POSTS,
                    "add_to_set",
                    {"_id": comment.post},
                    "comments",
                    comment.id,
                    "link comment to post",
                ),
            ],
        )

    # -------------------- Likes --------------------

    def plan_add_like(self, post_id: Any, user_id: Any) -> CascadePlan:
        post_id, user_id = to_object_id(post_id), to_object_id(user_id)
        return CascadePlan(
            kind=POSTS,
            entity_id=post_id,
            primary=CascadeStep(
                POSTS, "add_to_set", {"_id": post_id}, "likes", user_id, "add like"
            ),
            compensations=[
                CascadeStep(
                    USERS,
                    "add_to_set",
                    {"_id": user_id},
                    "likedPosts",
                    post_id,
                    "record liked post",
                ),
            ],
            require_match=True,
        )

    def plan_remove_like(self, post_id: Any, user_id: Any) -> CascadePlan:
        post_id, user_id = to_object_id(post_id), to_object_id(user_id)
        return CascadePlan(
            kind=POSTS,
            entity_id=post_id,
            primary=CascadeStep(
                POSTS, "pull", {"_id": post_id}, "likes", user_id, "remove like"
            ),
            compensations=[
                CascadeStep(
                    USERS,
                    "pull",
                    {"_id": user_id},
                    "likedPosts",
                    post_id,
                    "forget liked post",
                ),
            ],
            require_match=True,
        )

    # -------------------- Deletes --------------------

    def plan_delete_comment(self, comment_id: Any) -> CascadePlan:
        comment_id = to_object_id(comment_id)
        return CascadePlan(
            kind=COMMENTS,
            entity_id=comment_id,
            primary=CascadeStep(
                COMMENTS, "delete_one", {"_id": comment_id}, description="delete comment"
            ),
            compensations=self._unlink_comments([comment_id]),
        )

    def plan_delete_post(self, post_id: Any) -> CascadePlan:
        post_id = to_object_id(post_id)
        return CascadePlan(
            kind=POSTS,
            entity_id=post_id,
            primary=CascadeStep(
                POSTS, "delete_one", {"_id": post_id}, description="delete post"
            ),
            compensations=self._post_compensations(post_id),
        )

    def plan_delete_user(self, user_id: Any) -> CascadePlan:
        user_id = to_object_id(user_id)
        user = self.store.users.find_one({"_id": user_id})

        authored_posts = self._ids(self.store.posts.find({"author": user_id}))
        if user is not None:
            authored_posts = _merge(authored_posts, user.get("posts") or [])

        authored_comments = self._ids(self.store.comments.find({"author": user_id}))
        if user is not None:
            authored_comments = _merge(authored_comments, user.get("comments") or [])

        steps: List[CascadeStep] = []

        # 1) authored posts, each with its own cascade
        for post_id in authored_posts:
            steps.append(
                CascadeStep(
                    POSTS, "delete_one", {"_id": post_id}, description="delete authored post"
                )
            )
            steps.extend(self._post_compensations(post_id))

        # 2) likes given by the user
        steps.append(
            CascadeStep(
                POSTS, "pull", {"likes": user_id}, "likes", user_id, "strip user from likes"
            )
        )

        # 3) authored comments
        steps.append(
            CascadeStep(
                COMMENTS,
                "delete_many",
                {"author": user_id},
                description="delete authored comments",
            )
        )

        # 4) authored comment ids left on posts
        for comment_id in authored_comments:
            steps.append(
                CascadeStep(
                    POSTS,
                    "pull",
                    {"comments": comment_id},
                    "comments",
                    comment_id,
                    "strip authored comment from post",
                )
            )

        return CascadePlan(
            kind=USERS,
            entity_id=user_id,
            primary=CascadeStep(
                USERS, "delete_one", {"_id": user_id}, description="delete user"
            ),
            compensations=steps,
        )

    # -------------------- Helpers --------------------

    def _post_compensations(self, post_id: ObjectId) -> List[CascadeStep]:
        post = self.store.posts.find_one({"_id": post_id})
        comment_ids = self._ids(self.store.comments.find({"post": post_id}))
        if post is not None:
            comment_ids = _merge(comment_ids, post.get("comments") or [])

        steps = [
            CascadeStep(
                USERS, "pull", {"posts": post_id}, "posts", post_id, "unlink post from author"
            ),
            CascadeStep(
                USERS,
                "pull",
                {"likedPosts": post_id},
                "likedPosts",
                post_id,
                "unlink post from likers",
            ),
            CascadeStep(
                COMMENTS, "delete_many", {"post": post_id}, description="delete post comments"
            ),
        ]
        for comment_id in comment_ids:
            steps.append(
                CascadeStep(
                    USERS,
                    "pull",
                    {"comments": comment_id},
                    "comments",
                    comment_id,
                    "unlink post comment from author",
                )
            )
        return steps

    def _unlink_comments(self, comment_ids: List[ObjectId]) -> List[CascadeStep]:
        steps: List[CascadeStep] = []
        for comment_id in comment_ids:
            steps.append(
                CascadeStep(
                    USERS,
                    "pull",
                    {"comments": comment_id},
                    "comments",
                    comment_id,
                    "unlink comment from author",
                )
            )
            steps.append(
                CascadeStep(
                    POSTS,
                    "pull",
                    {"comments": comment_id},
                    "comments",
                    comment_id,
                    "unlink comment from post",
                )
            )
        return steps

    @staticmethod
    def _ids(docs: List[Dict[str, Any]]) -> List[ObjectId]:
        return [doc["_id"] for doc in docs]


def _merge(first: List[ObjectId], second: List[ObjectId]) -> List[ObjectId]:
    merged = list(first)
    for item in second:
        if item not in merged:
            merged.append(item)
    return merged
