from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

import networkx as nx

from socialgraph.store.base import COMMENTS, POSTS, USERS, StoreContext

NodeKey = Tuple[str, object]

# (forward relation, its source kind, backward relation) pairs that
# must mirror each other.
MIRRORED_RELATIONS = (
    ("posts", USERS, "author"),
    ("author", POSTS, "posts"),
    ("comments", USERS, "author"),
    ("author", COMMENTS, "comments"),
    ("comments", POSTS, "post"),
    ("post", COMMENTS, "comments"),
    ("likedPosts", USERS, "likes"),
    ("likes", POSTS, "likedPosts"),
)

REFERENCE_FIELDS = {
    USERS: (("posts", POSTS), ("comments", COMMENTS), ("likedPosts", POSTS)),
    POSTS: (("author", USERS), ("comments", COMMENTS), ("likes", USERS)),
    COMMENTS: (("author", USERS), ("post", POSTS)),
}


@dataclass(frozen=True)
class Violation:
    source_kind: str
    source_id: str
    relation: str
    target_kind: str
    target_id: str
    reason: str


@dataclass
class AuditReport:
    """
    Reference integrity findings for one store snapshot.
    """

    nodes: int = 0
    edges: int = 0
    dangling: List[Violation] = field(default_factory=list)
    asymmetric: List[Violation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.dangling and not self.asymmetric

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "nodes": self.nodes,
            "edges": self.edges,
            "dangling": [v.__dict__ for v in self.dangling],
            "asymmetric": [v.__dict__ for v in self.asymmetric],
        }


class GraphAuditor:
    """
    Builds a reference graph over the three collections and reports
    every reference that dangles or is not mirrored on the other side.

    Detection only; nothing is written back.
    """

    def __init__(self, store: StoreContext) -> None:
        self.store = store

    def build_graph(self) -> nx.MultiDiGraph:
        g = nx.MultiDiGraph()

        snapshot = {
            USERS: self.store.users.find(),
            POSTS: self.store.posts.find(),
            COMMENTS: self.store.comments.find(),
        }

        for kind, docs in snapshot.items():
            for doc in docs:
                g.add_node((kind, doc["_id"]), kind=kind, present=True)

        for kind, docs in snapshot.items():
            for doc in docs:
                for relation, target_kind in REFERENCE_FIELDS[kind]:
                    value = doc.get(relation)
                    targets = value if isinstance(value, list) else [value]
                    for target in targets:
                        if target is None:
                            continue
                        node = (target_kind, target)
                        if node not in g:
                            g.add_node(node, kind=target_kind, present=False)
                        g.add_edge((kind, doc["_id"]), node, key=relation)
        return g

    def audit(self) -> AuditReport:
        g = self.build_graph()
        report = AuditReport(nodes=g.number_of_nodes(), edges=g.number_of_edges())

        for source, target, relation in g.edges(keys=True):
            source_kind, source_id = source
            target_kind, target_id = target

            if not g.nodes[target]["present"]:
                report.dangling.append(
                    Violation(
                        source_kind,
                        str(source_id),
                        relation,
                        target_kind,
                        str(target_id),
                        "target does not exist",
                    )
                )
                continue

            backward = _backward_relation(relation, source_kind)
            if backward is not None and not g.has_edge(target, source, key=backward):
                report.asymmetric.append(
                    Violation(
                        source_kind,
                        str(source_id),
                        relation,
                        target_kind,
                        str(target_id),
                        f"missing {target_kind}.{backward}",
                    )
                )

        return report


def _backward_relation(relation: str, source_kind: str):
    for forward, kind, backward in MIRRORED_RELATIONS:
        if forward == relation and kind == source_kind:
            return backward
    return None
