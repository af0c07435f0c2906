"""
Module tree structure — pure functions only.

Builds the parent -> child module tree as a networkx DiGraph, checks the
forest invariant, and repairs parent-pointer cycles at load time so every
ancestor walk terminates.
"""
from __future__ import annotations

import logging

import networkx as nx

from model import ROOT_KEY, GraphSnapshot, Module

logger = logging.getLogger(__name__)


def display_name(path: str) -> str:
    """Last dotted segment of a module path."""
    if not path or path == ROOT_KEY:
        return "root"
    return path.split(".")[-1] or path


def build_tree_graph(modules: dict[str, Module]) -> nx.DiGraph:
    """Directed parent -> child graph from the modules' child lists."""
    G = nx.DiGraph()
    G.add_nodes_from(modules)
    for path, module in modules.items():
        for child in module.children:
            if child in modules and child != path:
                G.add_edge(path, child)
    return G


def _parent_graph(modules: dict[str, Module]) -> nx.DiGraph:
    G = nx.DiGraph()
    G.add_nodes_from(modules)
    for path, module in modules.items():
        if module.parent in modules:
            G.add_edge(path, module.parent)
    return G


def find_parent_cycles(modules: dict[str, Module]) -> list[list[str]]:
    """
    Cycles in the parent pointers, each as a sorted member list.

    Every module has at most one parent, so cycles are disjoint and a module
    that names itself as parent is a cycle of one.
    """
    cycles = [sorted(c) for c in nx.simple_cycles(_parent_graph(modules))]
    return sorted(cycles)


def repair_parent_cycles(snapshot: GraphSnapshot) -> list[list[str]]:
    """
    Detach the smallest member of every parent cycle so it becomes a root.

    Mutates *snapshot*; only called while the snapshot is being loaded.
    Returns the cycles that were broken.
    """
    cycles = find_parent_cycles(snapshot.modules)
    for cycle in cycles:
        head = snapshot.modules[cycle[0]]
        old_parent = snapshot.modules.get(head.parent)
        logger.warning(
            "Module parent cycle %s; detaching %s from %s",
            " -> ".join(cycle), head.path, head.parent,
        )
        head.parent = ""
        if old_parent is not None:
            old_parent.children = [c for c in old_parent.children if c != head.path]
        if head.path not in snapshot.root_modules:
            snapshot.root_modules.append(head.path)
    return cycles


def ancestor_chain(modules: dict[str, Module], path: str) -> list[str]:
    """*path* followed by its ancestors up to (not including) the synthetic root."""
    chain: list[str] = []
    seen: set[str] = set()
    current = path
    while current and current != ROOT_KEY and current not in seen:
        seen.add(current)
        chain.append(current)
        module = modules.get(current)
        if module is None:
            break
        current = module.parent
    return chain


def collect_subtree(tree: nx.DiGraph, path: str) -> set[str]:
    """The module itself plus every descendant."""
    if not path:
        return set()
    if path not in tree:
        return {path}
    return {path} | nx.descendants(tree, path)


def tree_problems(snapshot: GraphSnapshot) -> list[dict]:
    """
    Report (without repairing) inconsistencies between parent pointers and
    child lists. Used by the CLI and the overview endpoint.
    """
    modules  = snapshot.modules
    problems = []

    for path, module in sorted(modules.items()):
        if module.parent and module.parent not in modules:
            problems.append({
                "kind":   "dangling_parent",
                "module": path,
                "detail": f"parent '{module.parent}' is not a known module",
            })
        elif module.parent in modules and path not in modules[module.parent].children:
            problems.append({
                "kind":   "missing_from_parent",
                "module": path,
                "detail": f"not listed among the children of '{module.parent}'",
            })
        for child in module.children:
            if child not in modules:
                problems.append({
                    "kind":   "dangling_child",
                    "module": path,
                    "detail": f"child '{child}' is not a known module",
                })
            elif modules[child].parent != path:
                problems.append({
                    "kind":   "parent_mismatch",
                    "module": child,
                    "detail": f"listed under '{path}' but its parent is "
                              f"'{modules[child].parent or '(none)'}'",
                })

    for cycle in find_parent_cycles(modules):
        problems.append({
            "kind":   "cycle",
            "module": cycle[0],
            "detail": "parent cycle through " + ", ".join(cycle),
        })
    return problems
