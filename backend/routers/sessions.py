"""
View sessions: one in-memory ViewContext + ViewHistory per exploring client.

Every command returns the full render payload so the client never has to
merge partial state. Handlers are coroutines, so commands run one at a
time on the event loop and never interleave on a shared ViewContext.
"""
import logging
import os
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

import db
from analytics import view
from analytics.history import ViewHistory
from analytics.view import ViewContext
from model import Signature

logger = logging.getLogger(__name__)

router = APIRouter()


@dataclass
class ViewSession:
    id: str
    graph_id: str
    ctx: ViewContext = field(default_factory=ViewContext)
    history: ViewHistory = field(default_factory=ViewHistory)
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())


# Least recently used sessions are dropped once the store is full
MAX_SESSIONS = int(os.environ.get("HIVE_MAX_SESSIONS", "256"))

_sessions: "OrderedDict[str, ViewSession]" = OrderedDict()


def get_sessions_store() -> dict[str, ViewSession]:
    return _sessions


def _get_session(session_id: str) -> ViewSession:
    session = _sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    _sessions.move_to_end(session_id)
    return session


def _evict_overflow() -> None:
    while len(_sessions) >= max(MAX_SESSIONS, 1):
        evicted, _ = _sessions.popitem(last=False)
        logger.info("Evicted session %s (store limit %d)", evicted, MAX_SESSIONS)


def _payload(session: ViewSession, changed: Optional[bool] = None) -> dict:
    graph  = db.get_graph(session.graph_id)
    result = {"session_id": session.id, **view.render_view(graph, session.ctx, session.history)}
    if changed is not None:
        result["changed"] = changed
    return result


# ── Request bodies ───────────────────────────────────────────────────────────

class SessionCreateRequest(BaseModel):
    expanded: list[str]      = []
    selected: Optional[str]  = None


class PathRequest(BaseModel):
    path: str


class SignatureRequest(BaseModel):
    signature: str


class NodeRequest(BaseModel):
    node_id: Optional[str] = None


class CameraRequest(BaseModel):
    x:    float
    y:    float
    zoom: Optional[float] = None


# ── Lifecycle ────────────────────────────────────────────────────────────────

@router.post("/api/graphs/{graph_id}/sessions")
async def create_session(graph_id: str, req: Optional[SessionCreateRequest] = None):
    graph = db.get_graph(graph_id)
    req   = req or SessionCreateRequest()
    session = ViewSession(id=uuid.uuid4().hex, graph_id=graph_id)
    session.ctx.expanded = {p for p in req.expanded if p in graph.modules}
    session.ctx.selected_id = req.selected
    _evict_overflow()
    _sessions[session.id] = session
    logger.info("Created session %s for graph %s", session.id, graph_id)
    return _payload(session)


@router.get("/api/sessions")
async def list_sessions():
    return {"sessions": [
        {"id": s.id, "graph_id": s.graph_id, "created_at": s.created_at, "history": len(s.history)}
        for s in _sessions.values()
    ]}


@router.get("/api/sessions/{session_id}")
async def get_session(session_id: str):
    return _payload(_get_session(session_id))


@router.delete("/api/sessions/{session_id}")
async def delete_session(session_id: str):
    _get_session(session_id)
    del _sessions[session_id]
    return {"session_id": session_id, "status": "deleted"}


# ── Commands ─────────────────────────────────────────────────────────────────

@router.post("/api/sessions/{session_id}/expand")
async def cmd_expand(session_id: str, req: PathRequest):
    s = _get_session(session_id)
    return _payload(s, view.expand(db.get_graph(s.graph_id), s.ctx, req.path))


@router.post("/api/sessions/{session_id}/collapse")
async def cmd_collapse(session_id: str, req: PathRequest):
    s = _get_session(session_id)
    return _payload(s, view.collapse(s.ctx, req.path))


@router.post("/api/sessions/{session_id}/toggle")
async def cmd_toggle(session_id: str, req: PathRequest):
    s = _get_session(session_id)
    return _payload(s, view.toggle(db.get_graph(s.graph_id), s.ctx, req.path))


@router.post("/api/sessions/{session_id}/open")
async def cmd_open(session_id: str, req: PathRequest):
    s = _get_session(session_id)
    return _payload(s, view.open_module(db.get_graph(s.graph_id), s.ctx, s.history, req.path))


@router.post("/api/sessions/{session_id}/activate")
async def cmd_activate(session_id: str, req: PathRequest):
    s = _get_session(session_id)
    return _payload(s, view.activate(db.get_graph(s.graph_id), s.ctx, s.history, req.path))


@router.post("/api/sessions/{session_id}/focus")
async def cmd_focus(session_id: str, req: PathRequest):
    s = _get_session(session_id)
    return _payload(s, view.focus_path(db.get_graph(s.graph_id), s.ctx, s.history, req.path))


@router.post("/api/sessions/{session_id}/focus-signature")
async def cmd_focus_signature(session_id: str, req: SignatureRequest):
    s = _get_session(session_id)
    graph = db.get_graph(s.graph_id)
    return _payload(s, view.focus_signature(graph, s.ctx, s.history, Signature.parse(req.signature)))


@router.post("/api/sessions/{session_id}/select")
async def cmd_select(session_id: str, req: NodeRequest):
    s = _get_session(session_id)
    view.select(s.ctx, req.node_id)
    return _payload(s)


@router.post("/api/sessions/{session_id}/hover")
async def cmd_hover(session_id: str, req: NodeRequest):
    s = _get_session(session_id)
    view.hover(s.ctx, req.node_id)
    return _payload(s)


@router.post("/api/sessions/{session_id}/camera")
async def cmd_camera(session_id: str, req: CameraRequest):
    s = _get_session(session_id)
    view.set_camera(s.ctx, req.x, req.y, req.zoom)
    return _payload(s)


@router.post("/api/sessions/{session_id}/expand-all")
async def cmd_expand_all(session_id: str):
    s = _get_session(session_id)
    view.expand_all(db.get_graph(s.graph_id), s.ctx)
    return _payload(s)


@router.post("/api/sessions/{session_id}/collapse-all")
async def cmd_collapse_all(session_id: str):
    s = _get_session(session_id)
    view.collapse_all(s.ctx)
    return _payload(s)


@router.post("/api/sessions/{session_id}/reset-view")
async def cmd_reset_view(session_id: str):
    s = _get_session(session_id)
    view.reset_view(s.ctx)
    return _payload(s)


@router.post("/api/sessions/{session_id}/push-history")
async def cmd_push_history(session_id: str):
    s = _get_session(session_id)
    return _payload(s, view.push_history(s.ctx, s.history))


@router.post("/api/sessions/{session_id}/back")
async def cmd_back(session_id: str):
    s = _get_session(session_id)
    return _payload(s, view.go_back(s.ctx, s.history))
