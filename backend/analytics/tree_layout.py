"""
Tree layout — pure functions only.

Places every visible module on a (depth, center) grid. Depth grows by one
per tree level; the center axis is measured in "rows", where a collapsed
module takes one row and an expanded one takes one row plus the rows of
all its visible children. Parents sit at the midpoint of their children's
combined span, and the top-level modules are centered around the synthetic
root at (0, 0).

Collapsed descendants are absent from the output, not merely hidden.
"""
from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass, field

from model import ROOT_KEY, Module


@dataclass(frozen=True)
class NodePosition:
    depth: int
    center: float

    def to_dict(self) -> dict:
        return {"depth": self.depth, "center": self.center}


@dataclass
class TreeLayout:
    positions: dict[str, NodePosition] = field(default_factory=dict)
    edges: list[tuple[str, str]] = field(default_factory=list)

    @property
    def visible(self) -> set[str]:
        return set(self.positions)

    def is_visible(self, module_path: str) -> bool:
        return module_path in self.positions

    def to_dict(self) -> dict:
        return {
            "positions": {p: pos.to_dict() for p, pos in self.positions.items()},
            "edges":     [list(e) for e in self.edges],
        }


def find_roots(modules: dict[str, Module]) -> list[str]:
    """Modules whose parent is empty or unknown, sorted."""
    return sorted(
        path for path, m in modules.items()
        if not m.parent or m.parent not in modules
    )


def _children(modules: dict[str, Module], path: str) -> list[str]:
    module = modules.get(path)
    if module is None:
        return []
    return sorted(c for c in module.children if c in modules and c != path)


def _subtree_sizes(
    modules: dict[str, Module],
    expanded: Collection[str],
    roots: list[str],
) -> dict[str, int]:
    """
    Rows taken by every module reachable from *roots* through expanded
    modules, in one post-order walk with an explicit stack.

    ``open_paths`` holds the modules whose walk has started but not finished,
    which is exactly the ancestor chain of the module on top of the stack.
    Children on that chain are ignored, so a malformed child list cannot
    loop. A module listed under two parents is sized once.
    """
    sizes: dict[str, int] = {}
    open_paths: set[str] = set()

    for root in roots:
        stack: list[tuple[str, bool]] = [(root, False)]
        while stack:
            path, finished = stack.pop()
            if finished:
                open_paths.discard(path)
                children = [c for c in _children(modules, path) if c not in open_paths]
                sizes[path] = 1 + sum(sizes.get(c, 1) for c in children)
                continue
            if path in sizes or path in open_paths:
                continue
            if path not in expanded:
                sizes[path] = 1
                continue
            open_paths.add(path)
            stack.append((path, True))
            children = [c for c in _children(modules, path) if c not in open_paths]
            for child in reversed(children):
                stack.append((child, False))
    return sizes


def subtree_size(modules: dict[str, Module], expanded: Collection[str], path: str) -> int:
    """
    Rows taken by *path*: 1 when collapsed or childless, otherwise 1 plus the
    sizes of its children. Children already on the current ancestor chain are
    ignored.
    """
    return _subtree_sizes(modules, expanded, [path])[path]


def layout_tree(modules: dict[str, Module], expanded: Collection[str]) -> TreeLayout:
    """
    Compute positions for the synthetic root and every visible module, plus
    the structural (parent, child) edges that were descended into.

    Both passes use explicit stacks, so a degenerate chain of any depth lays
    out without hitting the interpreter's recursion limit.
    """
    layout = TreeLayout()
    layout.positions[ROOT_KEY] = NodePosition(depth=0, center=0.0)

    roots = find_roots(modules)
    sizes = _subtree_sizes(modules, expanded, roots)

    # (path, parent, depth, center); parent None marks the end of path's subtree
    stack: list[tuple[str, str | None, int, float]] = []
    cursor = -sum(sizes.get(r, 1) for r in roots) / 2
    pending = []
    for root in roots:
        size = sizes.get(root, 1)
        pending.append((root, ROOT_KEY, 1, cursor + size / 2))
        cursor += size
    stack.extend(reversed(pending))

    open_paths: set[str] = set()
    while stack:
        path, parent, depth, center = stack.pop()
        if parent is None:
            open_paths.discard(path)
            continue
        if path in layout.positions:
            # listed under two parents; the first placement wins
            continue
        layout.edges.append((parent, path))
        layout.positions[path] = NodePosition(depth=depth, center=center)
        if path not in expanded:
            continue
        open_paths.add(path)
        stack.append((path, None, depth, center))
        children = [c for c in _children(modules, path) if c not in open_paths]
        child_sizes = [sizes.get(c, 1) for c in children]
        cursor = center - sum(child_sizes) / 2
        pending = []
        for child, size in zip(children, child_sizes):
            pending.append((child, path, depth + 1, cursor + size / 2))
            cursor += size
        stack.extend(reversed(pending))

    return layout
