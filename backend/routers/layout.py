from typing import Optional

from fastapi import APIRouter, HTTPException, Query

import db
from analytics.view import ViewContext, compute_layout, render_view

router = APIRouter()


@router.get("/api/graphs/{graph_id}/layout")
def graph_layout(
    graph_id: str,
    expanded: list[str] = Query([]),
    selected: Optional[str] = None,
    hovered:  Optional[str] = None,
):
    graph = db.get_graph(graph_id)
    ctx   = ViewContext(expanded=set(expanded), selected_id=selected, hovered_id=hovered)
    return render_view(graph, ctx)


@router.get("/api/graphs/{graph_id}/edges/{source}/{target}")
def edge_summary(graph_id: str, source: str, target: str, expanded: list[str] = Query([])):
    graph = db.get_graph(graph_id)
    edge  = compute_layout(graph, set(expanded)).deps.get(source, target)
    if edge is None:
        raise HTTPException(status_code=404, detail=f"No visible dependency {source} -> {target}")
    return {**edge.to_dict(), **edge.summary()}
