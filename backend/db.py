"""
Snapshot I/O helpers shared across queries and routers.
No analysis logic lives here — only loading and caching.
"""
import logging
import os
from pathlib import Path

from fastapi import HTTPException

from analytics.context import GraphContext, build_graph_context
from queries.snapshot import read_snapshot

logger = logging.getLogger(__name__)

DATA_DIR = Path(os.environ.get("HIVE_DATA_DIR") or Path(__file__).parent.parent / "data")

_GRAPH_CACHE: dict[str, GraphContext] = {}


def snapshot_path(graph_id: str) -> Path:
    return DATA_DIR / f"{graph_id}.json"


def get_graph(graph_id: str) -> GraphContext:
    """Load (once) and return the derived context for one snapshot."""
    path = snapshot_path(graph_id)
    cached = _GRAPH_CACHE.get(graph_id)
    if cached is not None:
        return cached
    if not path.exists():
        raise HTTPException(
            status_code=404,
            detail=f"Graph '{graph_id}' not found. Expected a snapshot at data/{graph_id}.json",
        )
    try:
        snapshot = read_snapshot(path)
    except (OSError, ValueError) as e:
        logger.warning("Failed to load graph %s: %s", graph_id, e)
        raise HTTPException(status_code=422, detail=f"Failed to load graph: {e}") from e

    graph = build_graph_context(snapshot, graph_id=graph_id)
    logger.info(
        "Loaded graph %s: %d modules, %d objects, %d edges",
        graph_id, len(snapshot.modules), len(snapshot.objects), len(snapshot.edges),
    )
    _GRAPH_CACHE[graph_id] = graph
    return graph


def clear_graph_cache() -> None:
    _GRAPH_CACHE.clear()
