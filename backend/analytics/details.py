"""
Per-module dependency detail — pure functions only.

Everything is computed over the selected module's whole subtree: a
collapsed package answers for all of its descendants.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from analytics.context import GraphContext
from analytics.module_tree import collect_subtree, display_name
from analytics.object_index import (
    format_object,
    is_private_object,
    label_sort_key,
    pick_provider_modules,
    provider_modules_for_object,
    signature_for_ref,
)
from model import ROOT_KEY, GraphObject, ObjectRef, Signature


@dataclass
class ObjectInfo:
    label: str
    signature: Signature
    providers: list[str] = field(default_factory=list)
    module_path: str = ""
    is_private: bool = False
    optional: bool = False

    @property
    def resolved(self) -> bool:
        return bool(self.module_path)

    def to_dict(self) -> dict:
        return {
            "label":       self.label,
            "signature":   str(self.signature),
            "providers":   list(self.providers),
            "module_path": self.module_path,
            "is_private":  self.is_private,
            "optional":    self.optional,
            "resolved":    self.resolved,
        }


def object_info_from_object(graph: GraphContext, obj: GraphObject) -> ObjectInfo:
    providers = provider_modules_for_object(graph.snapshot, obj)
    return ObjectInfo(
        label=format_object(obj),
        signature=obj.signature,
        providers=providers,
        module_path=providers[0] if providers else obj.module_path,
        is_private=is_private_object(graph.snapshot, obj),
    )


def object_info_from_ref(graph: GraphContext, ref: ObjectRef) -> ObjectInfo:
    signature = signature_for_ref(ref)
    entries   = graph.index.lookup(signature)
    providers = pick_provider_modules(entries)
    return ObjectInfo(
        label=format_object(ref),
        signature=signature,
        providers=providers,
        module_path=providers[0] if providers else "",
        is_private=bool(entries) and all(e.is_private for e in entries),
        optional=ref.optional,
    )


def provided_objects(graph: GraphContext, subtree: set[str]) -> list[ObjectInfo]:
    """Objects owned inside *subtree* that something actually provides."""
    items: dict[tuple[Signature, str], ObjectInfo] = {}
    for obj in graph.snapshot.objects.values():
        if obj.module_path not in subtree or not obj.provided_by:
            continue
        info = object_info_from_object(graph, obj)
        items[(info.signature, info.module_path)] = info
    return sorted(items.values(), key=lambda i: label_sort_key(i.label))


def dependency_objects(graph: GraphContext, subtree: set[str]) -> list[ObjectInfo]:
    """
    Inputs of every constructor / invoker / decorator inside *subtree*,
    merged by signature. A merged input is optional only if every reference
    to it is optional.
    """
    items: dict[Signature, ObjectInfo] = {}
    for provider in graph.snapshot.providers():
        if provider.module_path not in subtree:
            continue
        for ref in provider.inputs:
            info = object_info_from_ref(graph, ref)
            existing = items.get(info.signature)
            if existing is None:
                items[info.signature] = info
                continue
            existing.providers = sorted(set(existing.providers) | set(info.providers))
            if not existing.module_path and existing.providers:
                existing.module_path = existing.providers[0]
            existing.optional = existing.optional and info.optional
    return sorted(items.values(), key=lambda i: label_sort_key(i.label))


def dependent_modules(graph: GraphContext, subtree: set[str]) -> list[str]:
    """Known modules outside *subtree* that consume something provided inside it."""
    snapshot = graph.snapshot
    dependents: set[str] = set()
    for obj in snapshot.objects.values():
        if obj.module_path not in subtree or not obj.provided_by:
            continue
        for consumer_id in obj.consumed_by:
            consumer = snapshot.module_for_node_id(consumer_id)
            if not consumer or consumer == ROOT_KEY or consumer in subtree:
                continue
            if consumer in snapshot.modules:
                dependents.add(consumer)
    return sorted(dependents)


def module_details(graph: GraphContext, module_path: str) -> dict | None:
    """
    Detail panel content for one module, or None when the module is unknown.
    The synthetic root has no detail of its own.
    """
    if module_path == ROOT_KEY:
        return {"module": ROOT_KEY, "root": True, "title": "Root", "summary": "All modules"}
    module = graph.modules.get(module_path)
    if module is None:
        return None

    subtree = collect_subtree(graph.tree, module_path)
    return {
        "module":      module_path,
        "root":        False,
        "title":       display_name(module_path),
        "description": module.description,
        "depends_on":  [i.to_dict() for i in dependency_objects(graph, subtree)],
        "provides":    [i.to_dict() for i in provided_objects(graph, subtree)],
        "dependents":  dependent_modules(graph, subtree),
    }
