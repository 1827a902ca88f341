"""
Graph subsystem for socialgraph.

Users, posts and comments live in three independent collections linked
only by stored ids. This package keeps those links consistent:
- cascade planning (every write computed as data up front)
- cascade execution (primary write first, compensations after)
- mutation and query entry points
- read-only integrity audit
"""

from socialgraph.graph.graph_schema import User, Post, Comment, to_object_id
from socialgraph.graph.errors import (
    GraphError,
    NotFoundError,
    ConflictError,
    WriteRejectedError,
)
from socialgraph.graph.cascade_planner import CascadePlanner, CascadePlan, CascadeStep
from socialgraph.graph.cascade_executor import CascadeExecutor, CascadeResult, FailedStep
from socialgraph.graph.graph_mutator import GraphMutator
from socialgraph.graph.graph_query import GraphQueryEngine
from socialgraph.graph.graph_audit import GraphAuditor, AuditReport

__all__ = [
    "User",
    "Post",
    "Comment",
    "to_object_id",
    "GraphError",
    "NotFoundError",
    "ConflictError",
    "WriteRejectedError",
    "CascadePlanner",
    "CascadePlan",
    "CascadeStep",
    "CascadeExecutor",
    "CascadeResult",
    "FailedStep",
    "GraphMutator",
    "GraphQueryEngine",
    "GraphAuditor",
    "AuditReport",
]
