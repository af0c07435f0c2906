"""
Offline snapshot inspection.

Loads one graph snapshot, reports tree problems, lays the module tree out
for a given expansion set, and writes the result as JSON:

  - module / object / edge counts
  - tree problems (dangling parents and children, mismatches, cycles)
  - visible modules with their (depth, center) positions
  - visible dependency edges with their object labels
  - optional object search

Usage:
    python3 inspect_graph.py data/demo.json
    python3 inspect_graph.py data/demo.json --expand pkg --expand pkg.a
    python3 inspect_graph.py data/demo.json --expand-all --out layout.json
    python3 inspect_graph.py data/demo.json --search service
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

BACKEND = Path(__file__).parent
sys.path.insert(0, str(BACKEND))

from analytics.context import build_graph_context       # noqa: E402
from analytics.module_tree import tree_problems         # noqa: E402
from analytics.object_index import search_objects       # noqa: E402
from analytics.view import ViewContext, compute_layout  # noqa: E402
from queries.snapshot import read_snapshot              # noqa: E402

logger = logging.getLogger(__name__)


def build_report(path: Path, expanded: list[str], expand_all: bool = False, query: str | None = None) -> dict:
    snapshot = read_snapshot(path)
    problems = tree_problems(snapshot)
    graph    = build_graph_context(snapshot, graph_id=path.stem)

    ctx = ViewContext(expanded={p for p in expanded if p in graph.modules})
    if expand_all:
        ctx.expanded.update(graph.module_order)
    lp = compute_layout(graph, ctx.expanded)

    report: dict = {
        "graph_id":        graph.graph_id,
        "module_count":    len(snapshot.modules),
        "object_count":    len(snapshot.objects),
        "edge_count":      len(snapshot.edges),
        "problems":        problems,
        "repaired_cycles": graph.repaired_cycles,
        "expanded":        sorted(ctx.expanded),
        "layout":          lp.layout.to_dict(),
        "dependencies":    [e.to_dict() for e in lp.deps.edges()],
    }
    if query is not None:
        report["search"] = search_objects(graph.index.search_entries, query).to_dict()
    return report


# ── CLI ───────────────────────────────────────────────────────────────────────

def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Inspect a module graph snapshot.")
    parser.add_argument("snapshot", help="Path to a snapshot .json file")
    parser.add_argument("--expand", action="append", default=[], metavar="MODULE",
                        help="Expand a module (repeatable)")
    parser.add_argument("--expand-all", action="store_true",
                        help="Expand every module")
    parser.add_argument("--search", default=None, metavar="QUERY",
                        help="Also run an object search")
    parser.add_argument("--out", default=None,
                        help="Write the JSON report here instead of stdout")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s %(levelname)s %(message)s",
    )

    path = Path(args.snapshot)
    try:
        report = build_report(path, args.expand, args.expand_all, args.search)
    except (OSError, ValueError) as e:
        print(f"Failed to load graph: {e}", file=sys.stderr)
        return 1

    print(f"{report['graph_id']}: {report['module_count']} modules, "
          f"{report['object_count']} objects, {report['edge_count']} edges", file=sys.stderr)
    for problem in report["problems"]:
        print(f"  [{problem['kind']}] {problem['module']}: {problem['detail']}", file=sys.stderr)
    print(f"{len(report['layout']['positions']) - 1} visible modules, "
          f"{len(report['dependencies'])} dependency edges", file=sys.stderr)

    text = json.dumps(report, indent=2)
    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text)
        print(f"Wrote {out_path}", file=sys.stderr)
    else:
        print(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
