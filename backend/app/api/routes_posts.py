from typing import List, Optional

from fastapi import APIRouter, Depends

from backend.app.api.schemas import (
    CreatePostRequest,
    UpdatePostRequest,
    UserResponse,
    PostResponse,
    CommentResponse,
    CascadeResultResponse,
)
from backend.app.dependencies import get_mutator, get_query_engine
from socialgraph.graph.errors import NotFoundError
from socialgraph.graph.graph_mutator import GraphMutator
from socialgraph.graph.graph_query import GraphQueryEngine
from socialgraph.store.base import POSTS

router = APIRouter()


def _load_post(post_id: str, engine: GraphQueryEngine):
    post = engine.get_post(post_id)
    if post is None:
        raise NotFoundError(f"post {post_id} not found", entity=POSTS, entity_id=post_id)
    return post


# ---------------- Queries ----------------


@router.get("/", response_model=List[PostResponse])
def list_posts(engine: GraphQueryEngine = Depends(get_query_engine)):
    return [PostResponse.from_entity(p) for p in engine.list_posts()]


@router.get("/{post_id}", response_model=PostResponse)
def get_post(post_id: str, engine: GraphQueryEngine = Depends(get_query_engine)):
    return PostResponse.from_entity(_load_post(post_id, engine))


@router.get("/{post_id}/author", response_model=Optional[UserResponse])
def post_author(post_id: str, engine: GraphQueryEngine = Depends(get_query_engine)):
    author = engine.post_author(_load_post(post_id, engine))
    return UserResponse.from_entity(author) if author else None


@router.get("/{post_id}/comments", response_model=List[CommentResponse])
def post_comments(post_id: str, engine: GraphQueryEngine = Depends(get_query_engine)):
    post = _load_post(post_id, engine)
    return [CommentResponse.from_entity(c) for c in engine.post_comments(post)]


@router.get("/{post_id}/likes", response_model=List[UserResponse])
def post_likes(post_id: str, engine: GraphQueryEngine = Depends(get_query_engine)):
    post = _load_post(post_id, engine)
    return [UserResponse.from_entity(u) for u in engine.post_likes(post)]


# ---------------- Mutations ----------------


@router.post("/", response_model=PostResponse, status_code=201)
def create_post(
    request: CreatePostRequest,
    mutator: GraphMutator = Depends(get_mutator),
):
    post = mutator.create_post(content=request.content, author=request.author)
    return PostResponse.from_entity(post)


@router.patch("/{post_id}", response_model=PostResponse)
def update_post(
    post_id: str,
    request: UpdatePostRequest,
    mutator: GraphMutator = Depends(get_mutator),
):
    return PostResponse.from_entity(mutator.update_post(post_id, content=request.content))


@router.delete("/{post_id}", response_model=CascadeResultResponse)
def delete_post(post_id: str, mutator: GraphMutator = Depends(get_mutator)):
    return CascadeResultResponse.from_result(mutator.delete_post(post_id))


@router.post("/{post_id}/likes/{user_id}", response_model=PostResponse)
def add_like(post_id: str, user_id: str, mutator: GraphMutator = Depends(get_mutator)):
    return PostResponse.from_entity(mutator.add_like_to_post(post_id, user_id))


@router.delete("/{post_id}/likes/{user_id}", response_model=PostResponse)
def remove_like(post_id: str, user_id: str, mutator: GraphMutator = Depends(get_mutator)):
    return PostResponse.from_entity(mutator.remove_like_from_post(post_id, user_id))
