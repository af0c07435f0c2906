"""
View state and navigation.

ViewContext is the only mutable state of an exploring user: the expansion
set, the selection / hover, and the camera. Every function here takes it
explicitly. Each render recomputes layout, visibility and dependency
aggregation from scratch; nothing derived from the expansion set is kept
between calls.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from analytics.context import GraphContext
from analytics.history import (
    DEFAULT_ZOOM,
    Camera,
    ViewHistory,
    ViewSnapshot,
    clamp_zoom,
)
from analytics.module_deps import VisibleDeps, aggregate_visible_deps
from analytics.module_tree import ancestor_chain, display_name
from analytics.object_index import pick_provider_modules
from analytics.tree_layout import NodePosition, TreeLayout, layout_tree
from analytics.visibility import VisibilityResolver
from model import ROOT_KEY, GraphSnapshot, Signature, node_id

FOCUS_ZOOM          = 1.02
EXPAND_ZOOM_FACTOR  = 0.92
EXPAND_ALL_FACTOR   = 1.05
COLLAPSE_ALL_FACTOR = 0.95
X_SPACING           = 40
Y_SPACING           = 14


@dataclass
class ViewContext:
    expanded: set[str] = field(default_factory=set)
    selected_id: str | None = None
    hovered_id: str | None = None
    camera: Camera = field(default_factory=Camera)

    def capture(self) -> ViewSnapshot:
        return ViewSnapshot(
            selected_id=self.selected_id,
            expanded=frozenset(self.expanded),
            camera=self.camera,
        )

    def to_dict(self) -> dict:
        return {
            "expanded":    sorted(self.expanded),
            "selected_id": self.selected_id,
            "hovered_id":  self.hovered_id,
            "camera":      self.camera.to_dict(),
        }


@dataclass
class LayoutPass:
    layout: TreeLayout
    resolver: VisibilityResolver
    deps: VisibleDeps


def compute_layout(graph: GraphContext, expanded: set[str]) -> LayoutPass:
    """One full rebuild: tree layout, then visibility, then aggregation."""
    layout   = layout_tree(graph.modules, expanded)
    resolver = VisibilityResolver(graph.modules, layout.positions)
    deps     = aggregate_visible_deps(graph.module_deps, resolver)
    return LayoutPass(layout=layout, resolver=resolver, deps=deps)


def world_position(pos: NodePosition) -> tuple[float, float]:
    return pos.depth * X_SPACING, -pos.center * Y_SPACING


# ── Navigation commands ──────────────────────────────────────────────────────

def select(ctx: ViewContext, nid: str | None) -> None:
    ctx.selected_id = nid or None


def hover(ctx: ViewContext, nid: str | None) -> None:
    ctx.hovered_id = nid or None


def set_camera(ctx: ViewContext, x: float, y: float, zoom: float | None = None) -> None:
    ctx.camera = Camera(x=x, y=y, zoom=clamp_zoom(zoom if zoom is not None else ctx.camera.zoom))


def _zoom_to(ctx: ViewContext, zoom: float) -> None:
    ctx.camera = Camera(x=ctx.camera.x, y=ctx.camera.y, zoom=clamp_zoom(zoom))


def reset_view(ctx: ViewContext) -> None:
    ctx.camera = Camera()


def expand(graph: GraphContext, ctx: ViewContext, path: str) -> bool:
    if not path or path == ROOT_KEY or path not in graph.modules:
        return False
    ctx.expanded.add(path)
    return True


def collapse(ctx: ViewContext, path: str) -> bool:
    if path not in ctx.expanded:
        return False
    ctx.expanded.discard(path)
    return True


def toggle(graph: GraphContext, ctx: ViewContext, path: str) -> bool:
    """Flip *path* open/closed; returns whether anything changed."""
    if not path or path == ROOT_KEY:
        return False
    if path in ctx.expanded:
        ctx.expanded.discard(path)
        _zoom_to(ctx, DEFAULT_ZOOM)
        return True
    if not expand(graph, ctx, path):
        return False
    _zoom_to(ctx, DEFAULT_ZOOM * EXPAND_ZOOM_FACTOR)
    return True


def expand_path(graph: GraphContext, ctx: ViewContext, path: str) -> None:
    """Open *path* and all of its ancestors."""
    if not path or path == ROOT_KEY:
        return
    ctx.expanded.update(p for p in ancestor_chain(graph.modules, path) if p in graph.modules)


def expand_all(graph: GraphContext, ctx: ViewContext) -> None:
    ctx.expanded.update(graph.module_order)
    _zoom_to(ctx, ctx.camera.zoom * EXPAND_ALL_FACTOR)


def collapse_all(ctx: ViewContext) -> None:
    ctx.expanded.clear()
    _zoom_to(ctx, ctx.camera.zoom * COLLAPSE_ALL_FACTOR)


def focus(graph: GraphContext, ctx: ViewContext, path: str) -> bool:
    """Center the camera on a visible module and select it."""
    if not path:
        return False
    layout = layout_tree(graph.modules, ctx.expanded)
    pos = layout.positions.get(path)
    if pos is None:
        return False
    x, y = world_position(pos)
    ctx.camera = Camera(x=x, y=y, zoom=clamp_zoom(FOCUS_ZOOM))
    ctx.selected_id = node_id(path)
    return True


def push_history(ctx: ViewContext, history: ViewHistory) -> bool:
    return history.push(ctx.capture())


def focus_path(graph: GraphContext, ctx: ViewContext, history: ViewHistory, path: str) -> bool:
    """Reveal *path* by opening its ancestors, then focus it."""
    if not path:
        return False
    push_history(ctx, history)
    expand_path(graph, ctx, path)
    return focus(graph, ctx, path)


def focus_signature(
    graph: GraphContext,
    ctx: ViewContext,
    history: ViewHistory,
    signature: Signature | None,
) -> bool:
    """Jump to the first module providing the object with *signature*."""
    modules = pick_provider_modules(graph.index.lookup(signature))
    if not modules:
        return False
    return focus_path(graph, ctx, history, modules[0])


def activate(graph: GraphContext, ctx: ViewContext, history: ViewHistory, path: str) -> bool:
    """Sidebar row click: toggle a package, open a leaf, then focus it."""
    if path not in graph.modules:
        return False
    push_history(ctx, history)
    if graph.modules[path].children:
        toggle(graph, ctx, path)
    else:
        ctx.expanded.add(path)
    return focus(graph, ctx, path)


def open_module(graph: GraphContext, ctx: ViewContext, history: ViewHistory, path: str) -> bool:
    """Node double click: toggle and focus."""
    if path != ROOT_KEY and path not in graph.modules:
        return False
    push_history(ctx, history)
    toggle(graph, ctx, path)
    return focus(graph, ctx, path)


def restore_view_state(ctx: ViewContext, history: ViewHistory, snapshot: ViewSnapshot) -> None:
    with history.lock():
        ctx.expanded = set(snapshot.expanded)
        ctx.selected_id = snapshot.selected_id or None
        camera = snapshot.camera
        ctx.camera = Camera(x=camera.x or 0.0, y=camera.y or 0.0, zoom=camera.zoom or DEFAULT_ZOOM)


def go_back(ctx: ViewContext, history: ViewHistory) -> bool:
    snapshot = history.pop()
    if snapshot is None:
        return False
    restore_view_state(ctx, history, snapshot)
    return True


# ── Render payload ───────────────────────────────────────────────────────────

def module_rows(snapshot: GraphSnapshot, expanded: set[str]) -> list[dict]:
    """Sidebar tree rows in snapshot order; children only under open modules."""
    rows: list[dict] = []
    open_paths: set[str] = set()
    # (path, depth); depth None marks the end of path's subtree
    stack: list[tuple[str, int | None]] = [(r, 0) for r in reversed(snapshot.root_modules)]
    while stack:
        path, depth = stack.pop()
        if depth is None:
            open_paths.discard(path)
            continue
        module = snapshot.modules.get(path)
        if module is None or path in open_paths:
            continue
        has_children = bool(module.children)
        is_open = path in expanded
        rows.append({
            "path":         path,
            "depth":        depth,
            "title":        display_name(path),
            "description":  module.description,
            "has_children": has_children,
            "is_open":      is_open,
            "badge":        ("▾" if is_open else "▸") if has_children else "•",
        })
        if has_children and is_open:
            open_paths.add(path)
            stack.append((path, None))
            stack.extend((child, depth + 1) for child in reversed(module.children))
    return rows


def render_view(graph: GraphContext, ctx: ViewContext, history: ViewHistory | None = None) -> dict:
    """Everything the frontend needs to draw the current state."""
    lp = compute_layout(graph, ctx.expanded)
    selected = ctx.selected_id
    focus_id = selected or ctx.hovered_id

    connected: set[str] = set()
    if selected:
        for parent, child in lp.layout.edges:
            if selected in (node_id(parent), node_id(child)):
                connected.update((node_id(parent), node_id(child)))

    nodes = []
    for path, pos in lp.layout.positions.items():
        nid = node_id(path)
        x, y = world_position(pos)
        nodes.append({
            "id":           nid,
            "module_path":  path,
            "label":        display_name(path),
            "depth":        pos.depth,
            "center":       pos.center,
            "x":            x,
            "y":            y,
            "has_children": path == ROOT_KEY or bool(graph.snapshot.children_of(path)),
            "expanded":     path in ctx.expanded,
            "selected":     nid == selected,
            "connected":    nid in connected and nid != selected,
        })

    tree_edges = [
        {
            "from":        node_id(parent),
            "to":          node_id(child),
            "highlighted": focus_id in (node_id(parent), node_id(child)),
        }
        for parent, child in lp.layout.edges
    ]

    dependency_edges = []
    for edge in lp.deps.edges():
        if edge.source not in graph.modules or edge.target not in graph.modules:
            continue
        d = edge.to_dict()
        d["active"] = focus_id in (node_id(edge.source), node_id(edge.target))
        dependency_edges.append(d)

    return {
        "graph_id":         graph.graph_id,
        "view":             ctx.to_dict(),
        "nodes":            nodes,
        "tree_edges":       tree_edges,
        "dependency_edges": dependency_edges,
        "modules":          module_rows(graph.snapshot, ctx.expanded),
        "can_go_back":      history.can_go_back if history is not None else False,
    }
