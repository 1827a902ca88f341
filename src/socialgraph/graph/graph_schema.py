from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from bson import ObjectId

from socialgraph.utils.encoding import encode_password


def to_object_id(value: Any) -> ObjectId:
    """
    Coerce an id-shaped value into an ObjectId.

    Malformed strings raise ``bson.errors.InvalidId``; nothing else
    is checked here.
    """
    if isinstance(value, ObjectId):
        return value
    return ObjectId(value)


def _ids(doc: Dict[str, Any], key: str) -> List[ObjectId]:
    return list(doc.get(key) or [])


@dataclass(frozen=True)
class User:
    """
    Account that authors posts and comments and likes posts.
    """

    id: ObjectId
    name: str
    password: str
    email: str
    posts: List[ObjectId] = field(default_factory=list)
    comments: List[ObjectId] = field(default_factory=list)
    liked_posts: List[ObjectId] = field(default_factory=list)

    @staticmethod
    def create(*, name: str, password: str, email: str) -> "User":
        return User(
            id=ObjectId(),
            name=name,
            password=encode_password(password),
            email=email,
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "name": self.name,
            "password": self.password,
            "email": self.email,
            "posts": list(self.posts),
            "comments": list(self.comments),
            "likedPosts": list(self.liked_posts),
        }

    @staticmethod
    def from_document(doc: Dict[str, Any]) -> "User":
        return User(
            id=doc["_id"],
            name=doc.get("name", ""),
            password=doc.get("password", ""),
            email=doc.get("email", ""),
            posts=_ids(doc, "posts"),
            comments=_ids(doc, "comments"),
            liked_posts=_ids(doc, "likedPosts"),
        )


@dataclass(frozen=True)
class Post:
    """
    Content authored by exactly one user.
    """

    id: ObjectId
    content: str
    author: ObjectId
    comments: List[ObjectId] = field(default_factory=list)
    likes: List[ObjectId] = field(default_factory=list)

    @staticmethod
    def create(*, content: str, author: ObjectId) -> "Post":
        return Post(id=ObjectId(), content=content, author=author)

    def to_document(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "content": self.content,
            "author": self.author,
            "comments": list(self.comments),
            "likes": list(self.likes),
        }

    @staticmethod
    def from_document(doc: Dict[str, Any]) -> "Post":
        return Post(
            id=doc["_id"],
            content=doc.get("content", ""),
            author=doc.get("author"),
            comments=_ids(doc, "comments"),
            likes=_ids(doc, "likes"),
        )


@dataclass(frozen=True)
class Comment:
    """
    Text attached to one post, written by one user.
    """

    id: ObjectId
    text: str
    author: ObjectId
    post: ObjectId

    @staticmethod
    def create(*, text: str, author: ObjectId, post: ObjectId) -> "Comment":
        return Comment(id=ObjectId(), text=text, author=author, post=post)

    def to_document(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "text": self.text,
            "author": self.author,
            "post": self.post,
        }

    @staticmethod
    def from_document(doc: Dict[str, Any]) -> "Comment":
        return Comment(
            id=doc["_id"],
            text=doc.get("text", ""),
            author=doc.get("author"),
            post=doc.get("post"),
        )
