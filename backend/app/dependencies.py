from functools import lru_cache
import logging
import time

from fastapi import Depends

from socialgraph.store import StoreContext, build_store
from socialgraph.graph.graph_mutator import GraphMutator
from socialgraph.graph.graph_query import GraphQueryEngine
from socialgraph.graph.graph_audit import GraphAuditor

from backend.app.config import AppConfig


@lru_cache
def get_config() -> AppConfig:
    return AppConfig()


@lru_cache
def get_store() -> StoreContext:
    logger = logging.getLogger("socialgraph.startup")
    t0 = time.perf_counter()
    config = get_config()
    store = build_store(config.socialgraph.store)
    logger.info(
        "[startup] %s store ready in %.3fs",
        config.socialgraph.store.backend,
        time.perf_counter() - t0,
    )
    return store


def get_mutator(
    store: StoreContext = Depends(get_store),
    config: AppConfig = Depends(get_config),
) -> GraphMutator:
    return GraphMutator(store=store, config=config.socialgraph.cascade)


def get_query_engine(store: StoreContext = Depends(get_store)) -> GraphQueryEngine:
    return GraphQueryEngine(store)


def get_auditor(store: StoreContext = Depends(get_store)) -> GraphAuditor:
    return GraphAuditor(store)
