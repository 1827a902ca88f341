from typing import List

from fastapi import APIRouter, Depends

from backend.app.api.schemas import (
    CreateUserRequest,
    UpdateUserRequest,
    UserResponse,
    PostResponse,
    CommentResponse,
    CascadeResultResponse,
)
from backend.app.dependencies import get_mutator, get_query_engine
from socialgraph.graph.errors import NotFoundError
from socialgraph.graph.graph_mutator import GraphMutator
from socialgraph.graph.graph_query import GraphQueryEngine
from socialgraph.store.base import USERS

router = APIRouter()


def _load_user(user_id: str, engine: GraphQueryEngine):
    user = engine.get_user(user_id)
    if user is None:
        raise NotFoundError(f"user {user_id} not found", entity=USERS, entity_id=user_id)
    return user


# ---------------- Queries ----------------


@router.get("/", response_model=List[UserResponse])
def list_users(engine: GraphQueryEngine = Depends(get_query_engine)):
    return [UserResponse.from_entity(u) for u in engine.list_users()]


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: str, engine: GraphQueryEngine = Depends(get_query_engine)):
    return UserResponse.from_entity(_load_user(user_id, engine))


@router.get("/{user_id}/posts", response_model=List[PostResponse])
def user_posts(user_id: str, engine: GraphQueryEngine = Depends(get_query_engine)):
    user = _load_user(user_id, engine)
    return [PostResponse.from_entity(p) for p in engine.user_posts(user)]


@router.get("/{user_id}/comments", response_model=List[CommentResponse])
def user_comments(user_id: str, engine: GraphQueryEngine = Depends(get_query_engine)):
    user = _load_user(user_id, engine)
    return [CommentResponse.from_entity(c) for c in engine.user_comments(user)]


@router.get("/{user_id}/liked-posts", response_model=List[PostResponse])
def user_liked_posts(user_id: str, engine: GraphQueryEngine = Depends(get_query_engine)):
    user = _load_user(user_id, engine)
    return [PostResponse.from_entity(p) for p in engine.user_liked_posts(user)]


# ---------------- Mutations ----------------


@router.post("/", response_model=UserResponse, status_code=201)
def create_user(
    request: CreateUserRequest,
    mutator: GraphMutator = Depends(get_mutator),
):
    user = mutator.create_user(
        name=request.name,
        password=request.password,
        email=request.email,
    )
    return UserResponse.from_entity(user)


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: str,
    request: UpdateUserRequest,
    mutator: GraphMutator = Depends(get_mutator),
):
    user = mutator.update_user(
        user_id,
        name=request.name,
        password=request.password,
        email=request.email,
    )
    return UserResponse.from_entity(user)


@router.delete("/{user_id}", response_model=CascadeResultResponse)
def delete_user(user_id: str, mutator: GraphMutator = Depends(get_mutator)):
    return CascadeResultResponse.from_result(mutator.delete_user(user_id))
