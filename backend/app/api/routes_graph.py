from fastapi import APIRouter, Depends

from backend.app.api.schemas import AuditResponse, GraphStatsResponse
from backend.app.dependencies import get_auditor, get_config
from socialgraph.store.base import COMMENTS, POSTS, USERS

router = APIRouter()


@router.get("/stats", response_model=GraphStatsResponse)
def graph_stats(auditor=Depends(get_auditor)):
    graph = auditor.build_graph()
    counts = {USERS: 0, POSTS: 0, COMMENTS: 0}
    for _, data in graph.nodes(data=True):
        if data.get("present"):
            counts[data["kind"]] += 1
    return GraphStatsResponse(
        users=counts[USERS],
        posts=counts[POSTS],
        comments=counts[COMMENTS],
        references=graph.number_of_edges(),
    )


@router.get("/audit", response_model=AuditResponse)
def graph_audit(auditor=Depends(get_auditor), config=Depends(get_config)):
    report = auditor.audit()
    return AuditResponse(
        **report.to_dict(),
        metadata={"store": config.socialgraph.store.backend},
    )
