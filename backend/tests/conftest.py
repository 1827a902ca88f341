from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from contextlib import asynccontextmanager

from backend.app.main import create_app
from backend.app.config import AppConfig
from backend.app.dependencies import get_store

from socialgraph.config.settings import CascadeConfig
from socialgraph.graph.graph_audit import GraphAuditor
from socialgraph.graph.graph_mutator import GraphMutator
from socialgraph.graph.graph_query import GraphQueryEngine
from socialgraph.store.memory_store import InMemoryStore


@pytest.fixture()
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture()
def mutator(store: InMemoryStore) -> GraphMutator:
    return GraphMutator(store=store, config=CascadeConfig())


@pytest.fixture()
def engine(store: InMemoryStore) -> GraphQueryEngine:
    return GraphQueryEngine(store)


@pytest.fixture()
def auditor(store: InMemoryStore) -> GraphAuditor:
    return GraphAuditor(store)


@pytest.fixture()
def seeded(mutator: GraphMutator):
    """
    User A with post P; user B commented on P and liked it.
    """
    a = mutator.create_user(name="A", password="pa", email="a@x")
    b = mutator.create_user(name="B", password="pb", email="b@x")
    p = mutator.create_post(content="post by A", author=a.id)
    c = mutator.create_comment(text="comment by B", author=b.id, post=p.id)
    mutator.add_like_to_post(p.id, b.id)
    return {"a": a, "b": b, "p": p, "c": c}


@pytest.fixture()
def client(store: InMemoryStore):
    @asynccontextmanager
    async def _no_lifespan(_: FastAPI):
        yield

    app = create_app(AppConfig())
    app.router.lifespan_context = _no_lifespan

    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
