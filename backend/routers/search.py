from fastapi import APIRouter, Query

import db
from analytics.object_index import SEARCH_DISPLAY_LIMIT, search_objects

router = APIRouter()


@router.get("/api/graphs/{graph_id}/search")
def search(graph_id: str, q: str = "", limit: int = Query(SEARCH_DISPLAY_LIMIT, ge=1, le=500)):
    graph  = db.get_graph(graph_id)
    result = search_objects(graph.index.search_entries, q, limit)
    return {"query": q, **result.to_dict()}
