"""
Module dependency aggregation — pure functions only.

Raw edges connect objects, constructors, invokers and decorators. They are
folded twice:

  1. once per snapshot into module -> module adjacency (consumer depends on
     provider), remembering which object labels justify each pair;
  2. once per layout pass through a VisibilityResolver, so a dependency
     between two hidden descendants surfaces between their nearest visible
     ancestors. Pairs that collapse onto the same visible edge merge their
     label sets.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from analytics.object_index import format_object
from analytics.visibility import VisibilityResolver
from model import ROOT_KEY, GraphSnapshot

EDGE_TOOLTIP_MAX = 8

_AGGREGATED_KINDS = frozenset({"depends", "invokes"})


@dataclass
class ModuleDeps:
    """
    deps:        {consumer_module: {provider_module, ...}}, one key per module
    dep_objects: {consumer_module: {provider_module: {object label, ...}}}
    """

    deps: dict[str, set[str]] = field(default_factory=dict)
    dep_objects: dict[str, dict[str, set[str]]] = field(default_factory=dict)


def edge_key(source: str, target: str) -> str:
    return f"{source}->{target}"


def curve_bias(key: str) -> int:
    """Deterministic bend direction (+1 / -1) for a dependency edge key."""
    h = 0
    for ch in key:
        h = (h * 31 + ord(ch)) % 97
    return 1 if h % 2 == 0 else -1


@dataclass(frozen=True)
class DependencyEdge:
    source: str
    target: str
    labels: tuple[str, ...] = ()

    @property
    def key(self) -> str:
        return edge_key(self.source, self.target)

    @property
    def bend(self) -> int:
        return curve_bias(self.key)

    def summary(self, max_items: int = EDGE_TOOLTIP_MAX) -> dict:
        """
        Tooltip content: header, the first *max_items* labels, then a
        "+N more" line when labels were cut ("" otherwise).
        """
        shown = list(self.labels[:max_items])
        extra = len(self.labels) - len(shown)
        return {
            "header":  f"{self.source} depends on {self.target}",
            "objects": shown,
            "extra":   extra,
            "more":    f"+{extra} more" if extra else "",
        }

    def to_dict(self) -> dict:
        return {
            "from":    self.source,
            "to":      self.target,
            "key":     self.key,
            "objects": list(self.labels),
            "bend":    self.bend,
        }


@dataclass
class VisibleDeps:
    """
    deps:   {visible_consumer: {visible_provider, ...}}
    labels: {"consumer->provider": sorted unique object labels}
    """

    deps: dict[str, set[str]] = field(default_factory=dict)
    labels: dict[str, list[str]] = field(default_factory=dict)

    def get(self, source: str, target: str) -> DependencyEdge | None:
        if target not in self.deps.get(source, ()):
            return None
        return DependencyEdge(source, target, tuple(self.labels.get(edge_key(source, target), [])))

    def edges(self) -> list[DependencyEdge]:
        return [
            DependencyEdge(src, dst, tuple(self.labels.get(edge_key(src, dst), [])))
            for src in sorted(self.deps)
            for dst in sorted(self.deps[src])
        ]

    def to_dict(self) -> dict:
        return {
            "deps":   {src: sorted(self.deps[src]) for src in sorted(self.deps)},
            "labels": dict(self.labels),
        }


def build_module_deps(snapshot: GraphSnapshot) -> ModuleDeps:
    """
    Fold raw ``depends`` / ``invokes`` edges into module adjacency.

    An edge runs from the thing provided to the thing that uses it, so the
    edge's ``to`` side is the consumer module. Edges whose endpoints do not
    resolve to two different known modules are dropped.
    """
    modules = snapshot.modules
    result = ModuleDeps(deps={path: set() for path in modules})

    for edge in snapshot.edges:
        if edge.kind not in _AGGREGATED_KINDS:
            continue
        provider = snapshot.module_for_node_id(edge.from_id)
        consumer = snapshot.module_for_node_id(edge.to_id)
        if not provider or not consumer or provider == consumer:
            continue
        if provider not in modules or consumer not in modules:
            continue
        result.deps[consumer].add(provider)
        labels = result.dep_objects.setdefault(consumer, {}).setdefault(provider, set())
        obj = snapshot.objects.get(edge.from_id)
        if obj is not None:
            labels.add(format_object(obj))

    return result


def aggregate_visible_deps(module_deps: ModuleDeps, resolver: VisibilityResolver) -> VisibleDeps:
    """
    Project module adjacency onto the currently visible modules.

    Self-loops and anything that resolves to the synthetic root are dropped.
    If nothing survives, fall back to the label-free module adjacency.
    """
    visible: dict[str, set[str]] = {}
    labels_by_edge: dict[str, set[str]] = {}

    for consumer, providers in module_deps.dep_objects.items():
        src = resolver.resolve(consumer)
        if src == ROOT_KEY:
            continue
        for provider, labels in providers.items():
            dst = resolver.resolve(provider)
            if dst == ROOT_KEY or dst == src:
                continue
            visible.setdefault(src, set()).add(dst)
            labels_by_edge.setdefault(edge_key(src, dst), set()).update(labels)

    if not visible:
        for consumer, providers in module_deps.deps.items():
            src = resolver.resolve(consumer)
            if src == ROOT_KEY:
                continue
            for provider in providers:
                dst = resolver.resolve(provider)
                if dst == ROOT_KEY or dst == src:
                    continue
                visible.setdefault(src, set()).add(dst)

    return VisibleDeps(
        deps=visible,
        labels={key: sorted(labels_by_edge[key]) for key in sorted(labels_by_edge)},
    )
