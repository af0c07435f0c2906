"""
Tests for analytics/tree_layout.py.
"""
from analytics.tree_layout import NodePosition, find_roots, layout_tree, subtree_size
from conftest import make_module_chain, make_snapshot, module
from model import ROOT_KEY


def count_descendants(modules, path) -> int:
    return sum(1 + count_descendants(modules, c) for c in modules[path].children)


class TestSubtreeSize:
    def test_collapsed_is_one(self, deep_tree):
        assert subtree_size(deep_tree.modules, set(), "m") == 1

    def test_fully_expanded_matches_descendant_count(self, deep_tree):
        expanded = set(deep_tree.modules)
        for path in deep_tree.modules:
            assert subtree_size(deep_tree.modules, expanded, path) == 1 + count_descendants(deep_tree.modules, path)
        assert subtree_size(deep_tree.modules, expanded, "m") == 1 + 3 + 9 + 27 + 81

    def test_partially_expanded(self, deep_tree):
        assert subtree_size(deep_tree.modules, {"m", "m.0"}, "m") == 1 + (1 + 3) + 1 + 1

    def test_cyclic_child_lists_terminate(self):
        snap = make_snapshot({"a": module("", ["b"]), "b": module("a", ["a"])})
        assert subtree_size(snap.modules, {"a", "b"}, "a") == 2


class TestLayout:
    def test_collapsed_tree(self, deep_tree):
        layout = layout_tree(deep_tree.modules, set())
        assert layout.positions == {
            ROOT_KEY: NodePosition(0, 0.0),
            "m":      NodePosition(1, 0.0),
        }
        assert layout.edges == [(ROOT_KEY, "m")]

    def test_roots_centered_around_origin(self):
        snap = make_snapshot({"b": module(), "a": module()})
        layout = layout_tree(snap.modules, set())
        assert find_roots(snap.modules) == ["a", "b"]
        assert layout.positions["a"] == NodePosition(1, -0.5)
        assert layout.positions["b"] == NodePosition(1, 0.5)

    def test_children_stacked_by_subtree_size(self, deep_tree):
        layout = layout_tree(deep_tree.modules, {"m", "m.0"})
        pos = layout.positions
        assert pos["m"] == NodePosition(1, 0.0)
        assert pos["m.0"] == NodePosition(2, -1.0)
        assert pos["m.1"] == NodePosition(2, 1.5)
        assert pos["m.2"] == NodePosition(2, 2.5)
        assert [pos[f"m.0.{i}"].center for i in range(3)] == [-2.0, -1.0, 0.0]
        assert all(pos[f"m.0.{i}"].depth == 3 for i in range(3))

    def test_collapsed_descendants_absent(self, deep_tree):
        layout = layout_tree(deep_tree.modules, {"m.0", "m.0.1"})
        assert set(layout.positions) == {ROOT_KEY, "m"}

    def test_tree_edges_only_for_recursed_children(self, deep_tree):
        layout = layout_tree(deep_tree.modules, {"m"})
        assert layout.edges == [(ROOT_KEY, "m"), ("m", "m.0"), ("m", "m.1"), ("m", "m.2")]

    def test_depth_increases_by_one_per_level(self, deep_tree):
        layout = layout_tree(deep_tree.modules, set(deep_tree.modules))
        for path, pos in layout.positions.items():
            if path != ROOT_KEY:
                assert pos.depth == path.count(".") + 1

    def test_no_overlap_when_fully_expanded(self, deep_tree):
        layout = layout_tree(deep_tree.modules, set(deep_tree.modules))
        for depth in range(1, 6):
            centers = [p.center for p in layout.positions.values() if p.depth == depth]
            assert len(centers) == len(set(centers))

    def test_child_order_does_not_matter(self):
        a = make_snapshot({"p": module("", ["p.z", "p.a"]), "p.z": module("p"), "p.a": module("p")})
        b = make_snapshot({"p": module("", ["p.a", "p.z"]), "p.z": module("p"), "p.a": module("p")})
        assert layout_tree(a.modules, {"p"}).to_dict() == layout_tree(b.modules, {"p"}).to_dict()

    def test_dangling_children_skipped(self):
        snap = make_snapshot({"p": module("", ["p.a", "ghost"]), "p.a": module("p")})
        layout = layout_tree(snap.modules, {"p"})
        assert set(layout.positions) == {ROOT_KEY, "p", "p.a"}
        assert layout.positions["p.a"] == NodePosition(2, 0.0)


class TestDeepChain:
    LENGTH = 1500

    def test_subtree_size_of_deep_chain(self):
        snap = make_snapshot(make_module_chain(self.LENGTH))
        assert subtree_size(snap.modules, set(snap.modules), "n0") == self.LENGTH

    def test_fully_expanded_deep_chain(self):
        snap = make_snapshot(make_module_chain(self.LENGTH))
        layout = layout_tree(snap.modules, set(snap.modules))
        assert len(layout.positions) == self.LENGTH + 1
        assert layout.positions[f"n{self.LENGTH - 1}"] == NodePosition(self.LENGTH, 0.0)
        assert layout.edges[:2] == [(ROOT_KEY, "n0"), ("n0", "n1")]
        assert len(layout.edges) == self.LENGTH

    def test_partially_expanded_deep_chain_stops_at_first_collapsed(self):
        snap = make_snapshot(make_module_chain(self.LENGTH))
        expanded = set(snap.modules) - {"n1200"}
        layout = layout_tree(snap.modules, expanded)
        assert "n1200" in layout.positions
        assert "n1201" not in layout.positions
