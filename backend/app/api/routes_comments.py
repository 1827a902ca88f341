from typing import List, Optional

from fastapi import APIRouter, Depends

from backend.app.api.schemas import (
    CreateCommentRequest,
    UpdateCommentRequest,
    UserResponse,
    PostResponse,
    CommentResponse,
    CascadeResultResponse,
)
from backend.app.dependencies import get_mutator, get_query_engine
from socialgraph.graph.errors import NotFoundError
from socialgraph.graph.graph_mutator import GraphMutator
from socialgraph.graph.graph_query import GraphQueryEngine
from socialgraph.store.base import COMMENTS

router = APIRouter()


def _load_comment(comment_id: str, engine: GraphQueryEngine):
    comment = engine.get_comment(comment_id)
    if comment is None:
        raise NotFoundError(
            f"comment {comment_id} not found", entity=COMMENTS, entity_id=comment_id
        )
    return comment


@router.get("/", response_model=List[CommentResponse])
def list_comments(engine: GraphQueryEngine = Depends(get_query_engine)):
    return [CommentResponse.from_entity(c) for c in engine.list_comments()]


@router.get("/{comment_id}", response_model=CommentResponse)
def get_comment(comment_id: str, engine: GraphQueryEngine = Depends(get_query_engine)):
    return CommentResponse.from_entity(_load_comment(comment_id, engine))


@router.get("/{comment_id}/author", response_model=Optional[UserResponse])
def comment_author(comment_id: str, engine: GraphQueryEngine = Depends(get_query_engine)):
    author = engine.comment_author(_load_comment(comment_id, engine))
    return UserResponse.from_entity(author) if author else None


@router.get("/{comment_id}/post", response_model=Optional[PostResponse])
def comment_post(comment_id: str, engine: GraphQueryEngine = Depends(get_query_engine)):
    post = engine.comment_post(_load_comment(comment_id, engine))
    return PostResponse.from_entity(post) if post else None


@router.post("/", response_model=CommentResponse, status_code=201)
def create_comment(
    request: CreateCommentRequest,
    mutator: GraphMutator = Depends(get_mutator),
):
    comment = mutator.create_comment(
        text=request.text,
        author=request.author,
        post=request.post,
    )
    return CommentResponse.from_entity(comment)


@router.patch("/{comment_id}", response_model=CommentResponse)
def update_comment(
    comment_id: str,
    request: UpdateCommentRequest,
    mutator: GraphMutator = Depends(get_mutator),
):
    return CommentResponse.from_entity(mutator.update_comment(comment_id, text=request.text))


@router.delete("/{comment_id}", response_model=CascadeResultResponse)
def delete_comment(comment_id: str, mutator: GraphMutator = Depends(get_mutator)):
    return CascadeResultResponse.from_result(mutator.delete_comment(comment_id))
