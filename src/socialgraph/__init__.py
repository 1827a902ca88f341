"""
socialgraph
===========

A small social-graph engine: users author posts, posts collect comments
and likes. The three entity kinds live in independent document
collections linked by stored ids, and every mutation keeps the forward
and backward references consistent through planned compensating writes.

Public API:
- StoreContext / InMemoryStore
- GraphMutator
- GraphQueryEngine
- GraphAuditor
"""

from socialgraph.store import StoreContext, InMemoryStore, build_store
from socialgraph.graph.graph_mutator import GraphMutator
from socialgraph.graph.graph_query import GraphQueryEngine
from socialgraph.graph.graph_audit import GraphAuditor

__all__ = [
    "StoreContext",
    "InMemoryStore",
    "build_store",
    "GraphMutator",
    "GraphQueryEngine",
    "GraphAuditor",
]

__version__ = "0.1.0"
