from fastapi import APIRouter

import db
from analytics.module_tree import tree_problems
from queries.snapshot import fetch_snapshot_list

router = APIRouter()


@router.get("/api/graphs")
def list_graphs():
    return {"graphs": fetch_snapshot_list(db.DATA_DIR)}


@router.get("/api/graphs/{graph_id}/overview")
def graph_overview(graph_id: str):
    graph    = db.get_graph(graph_id)
    snapshot = graph.snapshot
    return {
        "graph_id":          graph_id,
        "module_count":      len(snapshot.modules),
        "object_count":      len(snapshot.objects),
        "constructor_count": len(snapshot.constructors),
        "invoker_count":     len(snapshot.invokers),
        "decorator_count":   len(snapshot.decorators),
        "edge_count":        len(snapshot.edges),
        "root_modules":      list(snapshot.root_modules),
        "problems":          tree_problems(snapshot),
        "repaired_cycles":   graph.repaired_cycles,
    }
