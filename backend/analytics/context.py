"""
Per-snapshot derived data, built once when a snapshot is loaded.
"""
from __future__ import annotations

from dataclasses import dataclass, field

import networkx as nx

from analytics.module_deps import ModuleDeps, build_module_deps
from analytics.module_tree import build_tree_graph, repair_parent_cycles
from analytics.object_index import ObjectIndex, build_object_index
from model import GraphSnapshot


@dataclass
class GraphContext:
    graph_id: str
    snapshot: GraphSnapshot
    tree: nx.DiGraph
    index: ObjectIndex
    module_deps: ModuleDeps
    module_order: list[str] = field(default_factory=list)
    repaired_cycles: list[list[str]] = field(default_factory=list)

    @property
    def modules(self):
        return self.snapshot.modules


def build_graph_context(snapshot: GraphSnapshot, graph_id: str = "") -> GraphContext:
    """Repair the module tree, then build the index and the dependency pre-pass."""
    cycles = repair_parent_cycles(snapshot)
    return GraphContext(
        graph_id=graph_id,
        snapshot=snapshot,
        tree=build_tree_graph(snapshot.modules),
        index=build_object_index(snapshot),
        module_deps=build_module_deps(snapshot),
        module_order=sorted(snapshot.modules),
        repaired_cycles=cycles,
    )
