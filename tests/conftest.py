"""
Shared fixtures and builders for hive-explorer tests.

Snapshots are built in memory from plain dicts shaped like the JSON
documents in data/. No server and no files are needed except by the API
tests, which write snapshots to tmp_path.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from analytics.context import build_graph_context  # noqa: E402
from queries.snapshot import parse_snapshot        # noqa: E402


# --------------------------------------------------------------------------
# Builders
# --------------------------------------------------------------------------

def module(parent: str = "", children: list[str] | None = None, description: str = "") -> dict:
    return {"parent": parent, "children": list(children or []), "description": description}


def make_snapshot_data(
    modules: dict,
    objects: dict | None = None,
    constructors: dict | None = None,
    invokers: dict | None = None,
    decorators: dict | None = None,
    edges: list | None = None,
    root_modules: list[str] | None = None,
) -> dict:
    data = {
        "modules":      modules,
        "objects":      objects or {},
        "constructors": constructors or {},
        "invokers":     invokers or {},
        "decorators":   decorators or {},
        "edges":        edges or [],
    }
    if root_modules is not None:
        data["rootModules"] = root_modules
    return data


def make_snapshot(modules: dict, **kwargs):
    return parse_snapshot(make_snapshot_data(modules, **kwargs))


def make_graph(modules: dict, **kwargs):
    return build_graph_context(make_snapshot(modules, **kwargs), graph_id="test")


def make_module_tree(depth: int, branching: int, prefix: str = "m") -> dict:
    """
    Complete tree of module dicts: one root *prefix* and *depth* further
    levels, each module having *branching* children.
    """
    modules: dict[str, dict] = {}

    def build(path: str, parent: str, level: int) -> None:
        children = [f"{path}.{i}" for i in range(branching)] if level < depth else []
        modules[path] = module(parent, children)
        for child in children:
            build(child, path, level + 1)

    build(prefix, "", 0)
    return modules


def make_module_chain(length: int, prefix: str = "n") -> dict:
    """A single line of *length* modules, each the only child of the previous one."""
    names = [f"{prefix}{i}" for i in range(length)]
    modules: dict[str, dict] = {}
    for i, name in enumerate(names):
        parent   = names[i - 1] if i else ""
        children = [names[i + 1]] if i + 1 < length else []
        modules[name] = module(parent, children)
    return modules


def e2e_data() -> dict:
    """
    pkg with children pkg.a and pkg.b. Service{name:"X"} is provided in
    pkg.a and consumed by a constructor in pkg.b.
    """
    return make_snapshot_data(
        modules={
            "pkg":   module("", ["pkg.a", "pkg.b"]),
            "pkg.a": module("pkg"),
            "pkg.b": module("pkg"),
        },
        objects={
            "obj:svc": {
                "id": "obj:svc", "type": "Service", "name": "X", "modulePath": "pkg.a",
                "providedBy": ["ctor:a.NewService"], "consumedBy": ["ctor:b.NewClient"],
            },
        },
        constructors={
            "ctor:a.NewService": {"modulePath": "pkg.a", "inputs": [], "exported": True},
            "ctor:b.NewClient":  {"modulePath": "pkg.b", "inputs": [{"type": "Service", "name": "X"}]},
        },
        edges=[{"from": "obj:svc", "to": "ctor:b.NewClient", "kind": "depends"}],
        root_modules=["pkg"],
    )


# --------------------------------------------------------------------------
# Fixtures
# --------------------------------------------------------------------------

@pytest.fixture
def e2e_graph():
    return build_graph_context(parse_snapshot(e2e_data()), graph_id="e2e")


@pytest.fixture
def deep_tree():
    """Depth 4, branching 3: 1 + 3 + 9 + 27 + 81 modules."""
    return make_snapshot(make_module_tree(depth=4, branching=3))
