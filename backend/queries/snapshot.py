"""
Graph snapshot queries — I/O and parsing only.

Turns the snapshot JSON document into the model. Malformed entries are
skipped rather than raised: partial graphs are normal while the source data
is still being authored.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path

from model import GraphObject, GraphSnapshot, Module, ObjectRef, Provider, RawEdge

logger = logging.getLogger(__name__)

_PROVIDER_TABLES = (
    ("constructors", "constructor"),
    ("invokers",     "invoker"),
    ("decorators",   "decorator"),
)


def _str(value) -> str:
    return value if isinstance(value, str) else ""


def _str_list(value) -> list[str]:
    if not isinstance(value, list):
        return []
    seen: set[str] = set()
    out = []
    for v in value:
        if isinstance(v, str) and v and v not in seen:
            seen.add(v)
            out.append(v)
    return out


def _exported_flag(raw: dict) -> bool | None:
    for key in ("exported", "Exported"):
        if isinstance(raw.get(key), bool):
            return raw[key]
    return None


def _parse_modules(raw) -> dict[str, Module]:
    modules: dict[str, Module] = {}
    if not isinstance(raw, dict):
        return modules
    for path, info in raw.items():
        if not path or not isinstance(info, dict):
            logger.debug("Skipping malformed module entry %r", path)
            continue
        modules[path] = Module(
            path=path,
            parent=_str(info.get("parent")),
            children=_str_list(info.get("children")),
            description=_str(info.get("description")),
        )
    return modules


def _parse_refs(raw) -> list[ObjectRef]:
    if not isinstance(raw, list):
        return []
    return [
        ObjectRef(
            type=_str(r.get("type")),
            name=_str(r.get("name")),
            group=_str(r.get("group")),
            optional=bool(r.get("optional")),
        )
        for r in raw
        if isinstance(r, dict)
    ]


def _parse_providers(raw, kind: str) -> dict[str, Provider]:
    providers: dict[str, Provider] = {}
    if not isinstance(raw, dict):
        return providers
    for pid, info in raw.items():
        if not isinstance(info, dict):
            logger.debug("Skipping malformed %s %r", kind, pid)
            continue
        providers[pid] = Provider(
            id=pid,
            kind=kind,
            module_path=_str(info.get("modulePath")),
            inputs=_parse_refs(info.get("inputs")),
            exported=bool(info.get("exported") or info.get("Exported")),
        )
    return providers


def _parse_objects(raw) -> dict[str, GraphObject]:
    objects: dict[str, GraphObject] = {}
    if not isinstance(raw, dict):
        return objects
    for oid, info in raw.items():
        if not isinstance(info, dict):
            logger.debug("Skipping malformed object %r", oid)
            continue
        objects[oid] = GraphObject(
            id=_str(info.get("id")) or oid,
            type=_str(info.get("type")),
            name=_str(info.get("name")),
            group=_str(info.get("group")),
            module_path=_str(info.get("modulePath")),
            provided_by=_str_list(info.get("providedBy")),
            consumed_by=_str_list(info.get("consumedBy")),
            exported=_exported_flag(info),
        )
    return objects


def _parse_edges(raw) -> list[RawEdge]:
    if not isinstance(raw, list):
        return []
    edges = []
    for e in raw:
        if not isinstance(e, dict):
            continue
        src, dst = _str(e.get("from")), _str(e.get("to"))
        if not src or not dst:
            logger.debug("Skipping edge with missing endpoint: %r", e)
            continue
        edges.append(RawEdge(from_id=src, to_id=dst, kind=_str(e.get("kind"))))
    return edges


def parse_snapshot(data: dict) -> GraphSnapshot:
    """Build a GraphSnapshot from the decoded JSON document."""
    modules = _parse_modules(data.get("modules"))

    roots = [p for p in _str_list(data.get("rootModules")) if p in modules]
    if not roots and "rootModules" not in data:
        roots = sorted(
            p for p, m in modules.items()
            if not m.parent or m.parent not in modules
        )

    snapshot = GraphSnapshot(
        modules=modules,
        root_modules=roots,
        objects=_parse_objects(data.get("objects")),
        edges=_parse_edges(data.get("edges")),
    )
    for key, kind in _PROVIDER_TABLES:
        setattr(snapshot, key, _parse_providers(data.get(key), kind))
    return snapshot


def read_snapshot(path: Path) -> GraphSnapshot:
    """
    Read and parse one snapshot file.

    Raises OSError / ValueError when the file is missing, is not JSON, or is
    not a JSON object. Callers decide whether that is fatal.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return parse_snapshot(data)


def fetch_snapshot_list(data_dir: Path) -> list[dict]:
    """Scan data_dir for *.json snapshots and return basic stats for each."""
    graphs = []
    for json_file in sorted(data_dir.glob("*.json")):
        try:
            snapshot = read_snapshot(json_file)
        except (OSError, ValueError) as e:
            logger.debug("Skipping unreadable snapshot %s: %s", json_file, e)
            continue
        graphs.append({
            "id":           json_file.stem,
            "name":         json_file.stem,
            "module_count": len(snapshot.modules),
            "object_count": len(snapshot.objects),
            "edge_count":   len(snapshot.edges),
            "path":         str(json_file),
        })
    return graphs
