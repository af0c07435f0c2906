"""
Graph snapshot data model.

A snapshot is the immutable input for one session: the module tree, the
objects that modules provide and consume, the constructors / invokers /
decorators that reference them, and raw node-to-node edges.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple

ROOT_KEY      = "__root__"
MODULE_PREFIX = "module:"


def node_id(module_path: str) -> str:
    return f"{MODULE_PREFIX}{module_path}"


def module_path_from_node_id(nid: str | None) -> str:
    """Inverse of node_id(); returns "" for anything that is not a module node."""
    if not nid or not nid.startswith(MODULE_PREFIX):
        return ""
    return nid[len(MODULE_PREFIX):]


def _escape_field(value: str) -> str:
    return value.replace("\\", "\\\\").replace("|", "\\|")


def _split_fields(raw: str) -> list[str]:
    """Split on unescaped "|"; "\\x" stands for a literal x."""
    fields: list[str] = []
    current: list[str] = []
    chars = iter(raw)
    for ch in chars:
        if ch == "\\":
            current.append(next(chars, "\\"))
        elif ch == "|":
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
    fields.append("".join(current))
    return fields


class Signature(NamedTuple):
    """
    Identity of a logical object: the same (type, name, group) is the same object.

    The wire form is ``type|name|group`` with "\\" and "|" inside a field
    escaped by a backslash, so every field may contain either character.
    """

    type:  str
    name:  str = ""
    group: str = ""

    def __str__(self) -> str:
        return "|".join(_escape_field(f) for f in self)

    @classmethod
    def parse(cls, raw: str | None) -> Signature | None:
        """Inverse of str(); None unless *raw* holds exactly three fields."""
        if not raw:
            return None
        fields = _split_fields(raw)
        if len(fields) != 3:
            return None
        return cls(*fields)


@dataclass
class Module:
    """A node in the module namespace tree."""

    path: str
    parent: str = ""
    children: list[str] = field(default_factory=list)
    description: str = ""


@dataclass(frozen=True)
class ObjectRef:
    """An input reference from a constructor, invoker or decorator."""

    type: str = ""
    name: str = ""
    group: str = ""
    optional: bool = False


@dataclass
class Provider:
    """A constructor, invoker or decorator."""

    id: str
    kind: str  # "constructor", "invoker", "decorator"
    module_path: str = ""
    inputs: list[ObjectRef] = field(default_factory=list)
    exported: bool = False


@dataclass
class GraphObject:
    id: str
    type: str = ""
    name: str = ""
    group: str = ""
    module_path: str = ""
    provided_by: list[str] = field(default_factory=list)
    consumed_by: list[str] = field(default_factory=list)
    exported: bool | None = None  # None when the snapshot does not say

    @property
    def signature(self) -> Signature:
        return Signature(self.type, self.name, self.group)


@dataclass(frozen=True)
class RawEdge:
    from_id: str
    to_id: str
    kind: str


@dataclass
class GraphSnapshot:
    """Complete graph as loaded from one snapshot document."""

    modules: dict[str, Module] = field(default_factory=dict)
    root_modules: list[str] = field(default_factory=list)
    objects: dict[str, GraphObject] = field(default_factory=dict)
    constructors: dict[str, Provider] = field(default_factory=dict)
    invokers: dict[str, Provider] = field(default_factory=dict)
    decorators: dict[str, Provider] = field(default_factory=dict)
    edges: list[RawEdge] = field(default_factory=list)

    def parent_of(self, module_path: str) -> str:
        module = self.modules.get(module_path)
        return module.parent if module else ""

    def children_of(self, module_path: str) -> list[str]:
        module = self.modules.get(module_path)
        return module.children if module else []

    def module_for_node_id(self, nid: str | None) -> str:
        """Owning module of any graph node id, or "" when it cannot be resolved."""
        if not nid:
            return ""
        if nid.startswith(MODULE_PREFIX):
            return module_path_from_node_id(nid)
        for table in (self.constructors, self.invokers, self.decorators):
            if nid in table:
                return table[nid].module_path
        if nid in self.objects:
            return self.objects[nid].module_path
        return ""

    def providers(self):
        """All constructors, invokers and decorators, in that order."""
        yield from self.constructors.values()
        yield from self.invokers.values()
        yield from self.decorators.values()
