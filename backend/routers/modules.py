from fastapi import APIRouter, HTTPException, Query

import db
from analytics.details import module_details
from analytics.view import module_rows

router = APIRouter()


@router.get("/api/graphs/{graph_id}/modules")
def list_modules(graph_id: str, expanded: list[str] = Query([])):
    graph = db.get_graph(graph_id)
    return {"modules": module_rows(graph.snapshot, set(expanded))}


@router.get("/api/graphs/{graph_id}/modules/{module_path}")
def get_module(graph_id: str, module_path: str):
    graph  = db.get_graph(graph_id)
    result = module_details(graph, module_path)
    if result is None:
        raise HTTPException(status_code=404, detail=f"Selection not found: {module_path}")
    return result
