from typing import List, Dict, Any, Optional
from pydantic import BaseModel, Field

from socialgraph.graph.graph_schema import User, Post, Comment
from socialgraph.graph.cascade_executor import CascadeResult


def _ids(values) -> List[str]:
    return [str(v) for v in values]


# ---------------- Requests ----------------


class CreateUserRequest(BaseModel):
    name: str
    password: str
    email: str


class UpdateUserRequest(BaseModel):
    name: Optional[str] = None
    password: Optional[str] = None
    email: Optional[str] = None


class CreatePostRequest(BaseModel):
    content: str
    author: str = Field(..., description="Id of the authoring user")


class UpdatePostRequest(BaseModel):
    content: Optional[str] = None


class CreateCommentRequest(BaseModel):
    text: str
    author: str = Field(..., description="Id of the commenting user")
    post: str = Field(..., description="Id of the post being commented on")


class UpdateCommentRequest(BaseModel):
    text: Optional[str] = None


# ---------------- Entities ----------------


class UserResponse(BaseModel):
    id: str
    name: str
    password: str
    email: str
    posts: List[str]
    comments: List[str]
    liked_posts: List[str]

    @classmethod
    def from_entity(cls, user: User) -> "UserResponse":
        return cls(
            id=str(user.id),
            name=user.name,
            password=user.password,
            email=user.email,
            posts=_ids(user.posts),
            comments=_ids(user.comments),
            liked_posts=_ids(user.liked_posts),
        )


class PostResponse(BaseModel):
    id: str
    content: str
    author: str
    comments: List[str]
    likes: List[str]

    @classmethod
    def from_entity(cls, post: Post) -> "PostResponse":
        return cls(
            id=str(post.id),
            content=post.content,
            author=str(post.author),
            comments=_ids(post.comments),
            likes=_ids(post.likes),
        )


class CommentResponse(BaseModel):
    id: str
    text: str
    author: str
    post: str

    @classmethod
    def from_entity(cls, comment: Comment) -> "CommentResponse":
        return cls(
            id=str(comment.id),
            text=comment.text,
            author=str(comment.author),
            post=str(comment.post),
        )


# ---------------- Cascades ----------------


class FailedStepResponse(BaseModel):
    collection: str
    operation: str
    description: str
    error: str


class CascadeResultResponse(BaseModel):
    ok: bool
    status: str
    kind: str
    entity_id: str
    applied: int
    failed_steps: List[FailedStepResponse]

    @classmethod
    def from_result(cls, result: CascadeResult) -> "CascadeResultResponse":
        return cls(**result.to_dict())


# ---------------- Graph ----------------


class GraphStatsResponse(BaseModel):
    users: int
    posts: int
    comments: int
    references: int


class ViolationResponse(BaseModel):
    source_kind: str
    source_id: str
    relation: str
    target_kind: str
    target_id: str
    reason: str


class AuditResponse(BaseModel):
    ok: bool
    nodes: int
    edges: int
    dangling: List[ViolationResponse]
    asymmetric: List[ViolationResponse]
    metadata: Dict[str, Any] = {}
