"""Tests for the hierarchy model and treemap tiling."""

from __future__ import annotations

import itertools

import pytest

from vizscene.layout import TreeNode, hierarchy, slice_dice, treemap


def leaves(*values: float) -> TreeNode:
    return TreeNode("root", children=[TreeNode(f"n{i}", value=v) for i, v in enumerate(values)])


def rect(node: TreeNode) -> tuple[float, float, float, float]:
    return node.x0, node.y0, node.x1, node.y1


def overlap(a: TreeNode, b: TreeNode) -> float:
    w = min(a.x1, b.x1) - max(a.x0, b.x0)
    h = min(a.y1, b.y1) - max(a.y0, b.y0)
    return max(0.0, w) * max(0.0, h)


class TestHierarchy:
    """Tests for TreeNode and hierarchy()."""

    def test_internal_value_is_sum_of_children(self) -> None:
        root = hierarchy(
            {
                "name": "root",
                "children": [
                    {"name": "a", "children": [{"name": "a1", "value": "10"}, {"name": "a2", "value": 5}]},
                    {"name": "b", "value": 2.5},
                ],
            }
        )
        assert root.value == 17.5
        assert root.children[0].value == 15
        assert [leaf.name for leaf in root.leaves()] == ["a1", "a2", "b"]

    def test_missing_leaf_value_is_zero(self) -> None:
        root = hierarchy({"name": "r", "children": [{"name": "x"}, {"name": "y", "value": ""}]})
        assert root.value == 0

    def test_negative_leaf_value_raises(self) -> None:
        with pytest.raises(ValueError):
            TreeNode("bad", value=-1)

    def test_explicit_internal_value_must_match(self) -> None:
        with pytest.raises(ValueError):
            TreeNode("r", value=10, children=[TreeNode("a", value=3)])

    def test_depth_and_ancestors(self) -> None:
        root = hierarchy({"name": "r", "children": [{"name": "a", "children": [{"name": "x", "value": 1}]}]})
        (leaf,) = root.leaves()
        assert leaf.depth == 2
        assert [n.name for n in leaf.ancestors()] == ["x", "a", "r"]

    def test_sort_descending_by_default(self) -> None:
        root = leaves(1, 5, 3).sort()
        assert [c.value for c in root.children] == [5, 3, 1]


class TestSquarify:
    """Tests for the squarified treemap layout."""

    def test_sixty_forty_in_square(self) -> None:
        root = treemap(leaves(60, 40), 100, 100)
        big, small = root.children
        assert rect(big) == (0, 0, 100, 60)
        assert rect(small) == (0, 60, 100, 100)

    def test_root_covers_canvas(self) -> None:
        root = treemap(leaves(6, 6, 4, 3, 2, 2, 1), 600, 400)
        assert rect(root) == (0, 0, 600, 400)

    def test_areas_are_proportional(self) -> None:
        root = treemap(leaves(6, 6, 4, 3, 2, 2, 1), 600, 400)
        for leaf in root.leaves():
            assert leaf.area == pytest.approx(leaf.value * 10000, rel=0.05)
        assert sum(leaf.area for leaf in root.leaves()) == 240000

    def test_tiles_do_not_overlap(self) -> None:
        root = treemap(leaves(6, 6, 4, 3, 2, 2, 1), 600, 400)
        for a, b in itertools.combinations(root.leaves(), 2):
            assert overlap(a, b) == 0

    def test_tiles_stay_inside_parent(self) -> None:
        root = treemap(leaves(6, 6, 4, 3, 2, 2, 1), 600, 400)
        for leaf in root.leaves():
            assert 0 <= leaf.x0 <= leaf.x1 <= 600
            assert 0 <= leaf.y0 <= leaf.y1 <= 400

    def test_coordinates_are_whole_pixels(self) -> None:
        root = treemap(leaves(7, 5, 3, 1), 333, 217)
        for node in root.descendants():
            assert all(float(v).is_integer() for v in rect(node))

    def test_unrounded_layout_keeps_fractions(self) -> None:
        root = treemap(leaves(1, 1, 1), 100, 10, round=False)
        widths = sorted(leaf.width for leaf in root.leaves())
        assert widths == pytest.approx([100 / 3] * 3)

    def test_zero_value_gets_zero_area(self) -> None:
        root = treemap(leaves(5, 0, 5), 100, 100)
        zero = next(c for c in root.children if c.value == 0)
        assert zero.area == 0
        assert sum(c.area for c in root.children) == 10000

    def test_nested_children_fill_parent(self) -> None:
        root = hierarchy(
            {
                "name": "r",
                "children": [
                    {"name": "a", "children": [{"name": "a1", "value": 3}, {"name": "a2", "value": 1}]},
                    {"name": "b", "value": 4},
                ],
            }
        )
        treemap(root, 200, 100)
        a = next(c for c in root.children if c.name == "a")
        assert sum(leaf.area for leaf in a.children) == a.area

    def test_padding_separates_siblings(self) -> None:
        root = treemap(leaves(1, 1), 102, 50, padding=2)
        left, right = sorted(root.children, key=lambda n: n.x0)
        assert right.x0 - left.x1 == 2

    def test_slice_dice_tile(self) -> None:
        root = treemap(leaves(1, 3), 100, 40, tile=slice_dice)
        first, second = sorted(root.children, key=lambda n: n.x0)
        assert (first.x0, first.x1) == (0, 75)
        assert (second.x0, second.x1) == (75, 100)
        assert first.value == 3
        assert first.height == 40
