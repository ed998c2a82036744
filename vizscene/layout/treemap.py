"""Squarified treemap partitioning of a value-weighted hierarchy."""

from __future__ import annotations

import math
from collections.abc import Callable, Iterator, Sequence
from functools import partial
from typing import Any

from ..core.logging_config import get_logger

logger = get_logger(__name__)

PHI = (1 + math.sqrt(5)) / 2


class TreeNode:
    """Node of a value-weighted tree.

    A leaf's value is its own (missing means 0); an internal node's value is
    always the sum of its children's values. Rectangle bounds are assigned by
    ``treemap``.

    Raises:
        ValueError: If a leaf value is negative, or an explicit internal value
            disagrees with the sum of its children
    """

    def __init__(
        self,
        name: Any,
        value: float | None = None,
        children: Sequence[TreeNode] | None = None,
        data: dict[str, Any] | None = None,
    ):
        self.name = name
        self.data = data if data is not None else {}
        self.children: list[TreeNode] = list(children or [])
        self.parent: TreeNode | None = None
        for child in self.children:
            child.parent = self

        if self.children:
            total = math.fsum(c.value for c in self.children)
            if value is not None and not math.isclose(value, total, rel_tol=1e-9, abs_tol=1e-9):
                raise ValueError(f"Node {name!r} has value {value} but its children sum to {total}")
            self.value = total
        else:
            self.value = 0.0 if value is None else float(value)
            if self.value < 0 or math.isnan(self.value):
                raise ValueError(f"Node {name!r} has invalid value {value!r}")

        self.x0 = self.y0 = self.x1 = self.y1 = 0.0

    @property
    def depth(self) -> int:
        depth, node = 0, self.parent
        while node is not None:
            depth, node = depth + 1, node.parent
        return depth

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0

    @property
    def area(self) -> float:
        return self.width * self.height

    def descendants(self) -> Iterator[TreeNode]:
        """Pre-order traversal starting with this node."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def leaves(self) -> list[TreeNode]:
        return [n for n in self.descendants() if n.is_leaf]

    def ancestors(self) -> Iterator[TreeNode]:
        node: TreeNode | None = self
        while node is not None:
            yield node
            node = node.parent

    def sort(self, key: Callable[[TreeNode], Any] | None = None) -> TreeNode:
        """Sort every child list in place (default: descending value)."""
        key = key or (lambda n: -n.value)
        for node in self.descendants():
            node.children.sort(key=key)
        return self

    def __repr__(self) -> str:
        return f"TreeNode({self.name!r}, value={self.value}, children={len(self.children)})"


def hierarchy(
    data: dict[str, Any],
    value: str | Callable[[dict[str, Any]], Any] = "value",
    children: str = "children",
    name: str = "name",
) -> TreeNode:
    """Build a TreeNode tree from nested mappings.

    Args:
        data: Root mapping; nested mappings live under ``children``
        value: Leaf value key or accessor; numeric strings are accepted
        children: Key holding child mappings
        name: Key holding the display name

    Returns:
        Root TreeNode with internal values summed from the leaves
    """
    kids = data.get(children) if isinstance(data, dict) else None
    if kids:
        nodes = [hierarchy(k, value, children, name) for k in kids]
        return TreeNode(data.get(name), children=nodes, data=data)
    raw = value(data) if callable(value) else data.get(value)
    if raw is None or raw == "":
        raw = 0
    return TreeNode(data.get(name), value=float(raw), data=data)


Tile = Callable[[TreeNode, float, float, float, float], None]


def dice_tile(parent: TreeNode, x0: float, y0: float, x1: float, y1: float) -> None:
    """Split horizontally, children left to right by value."""
    _split(parent.children, parent.value, x0, y0, x1, y1, horizontal=True)


def slice_tile(parent: TreeNode, x0: float, y0: float, x1: float, y1: float) -> None:
    """Split vertically, children top to bottom by value."""
    _split(parent.children, parent.value, x0, y0, x1, y1, horizontal=False)


def slice_dice(parent: TreeNode, x0: float, y0: float, x1: float, y1: float) -> None:
    """Alternate dice and slice by depth."""
    (slice_tile if parent.depth & 1 else dice_tile)(parent, x0, y0, x1, y1)


def _split(
    nodes: Sequence[TreeNode],
    total: float,
    x0: float,
    y0: float,
    x1: float,
    y1: float,
    horizontal: bool,
) -> None:
    if not nodes:
        return
    start, stop = (x0, x1) if horizontal else (y0, y1)
    k = (stop - start) / total if total else 0.0
    pos = start
    last = len(nodes) - 1
    for i, node in enumerate(nodes):
        end = stop if i == last and total else pos + node.value * k
        if horizontal:
            node.x0, node.x1, node.y0, node.y1 = pos, end, y0, y1
        else:
            node.x0, node.x1, node.y0, node.y1 = x0, x1, pos, end
        pos = end


def squarify(
    parent: TreeNode,
    x0: float,
    y0: float,
    x1: float,
    y1: float,
    ratio: float = PHI,
) -> None:
    """Lay children out in rows whose tiles stay close to ``ratio`` aspect.

    Children are consumed in order, so sort them by descending value first.
    Each row grows while adding the next child does not worsen the row's
    worst aspect ratio; the final row takes the remaining space exactly.
    """
    ratio = max(ratio, 1.0)
    nodes = parent.children
    n = len(nodes)
    value = parent.value
    i0 = i1 = 0
    while i0 < n:
        dx, dy = x1 - x0, y1 - y0

        # next non-empty node
        sum_value = nodes[i1].value
        i1 += 1
        while not sum_value and i1 < n:
            sum_value = nodes[i1].value
            i1 += 1

        if dx > 0 and dy > 0 and value > 0:
            min_value = max_value = sum_value
            alpha = max(dy / dx, dx / dy) / (value * ratio)
            beta = sum_value * sum_value * alpha
            min_ratio = _worst(min_value, max_value, beta)
            while i1 < n:
                node_value = nodes[i1].value
                sum_value += node_value
                min_value = min(min_value, node_value)
                max_value = max(max_value, node_value)
                beta = sum_value * sum_value * alpha
                new_ratio = _worst(min_value, max_value, beta)
                if new_ratio > min_ratio:
                    sum_value -= node_value
                    break
                min_ratio = new_ratio
                i1 += 1
        else:
            # degenerate space or nothing left to weigh: remaining nodes collapse
            sum_value = math.fsum(node.value for node in nodes[i0:])
            i1 = n

        row = nodes[i0:i1]
        final = i1 >= n or sum_value >= value
        if dx < dy:
            edge = y1 if final or not value else y0 + dy * sum_value / value
            _split(row, sum_value, x0, y0, x1, edge, horizontal=True)
            y0 = edge
        else:
            edge = x1 if final or not value else x0 + dx * sum_value / value
            _split(row, sum_value, x0, y0, edge, y1, horizontal=False)
            x0 = edge
        value -= sum_value
        i0 = i1


def _worst(min_value: float, max_value: float, beta: float) -> float:
    if min_value <= 0 or beta <= 0:
        return math.inf
    return max(max_value / beta, beta / min_value)


def _round(v: float) -> float:
    return float(math.floor(v + 0.5))


def treemap(
    root: TreeNode,
    width: float,
    height: float,
    *,
    tile: Tile | None = None,
    ratio: float = PHI,
    padding: float = 0.0,
    round: bool = True,
) -> TreeNode:
    """Assign rectangles to every node of ``root`` within ``width`` x ``height``.

    Args:
        root: Tree to lay out; children are sorted by descending value
        width: Layout width
        height: Layout height
        tile: Tiling function (default: squarified with ``ratio``)
        ratio: Target aspect ratio for squarified rows
        padding: Gap between sibling tiles
        round: Snap all coordinates to whole pixels after layout

    Returns:
        The same root, with ``x0, y0, x1, y1`` set on every node
    """
    tile = tile or partial(squarify, ratio=ratio)
    root.sort()
    root.x0, root.y0, root.x1, root.y1 = 0.0, 0.0, float(width), float(height)

    half = padding / 2
    for node in root.descendants():
        p = 0.0 if node is root else half
        x0, y0, x1, y1 = node.x0 + p, node.y0 + p, node.x1 - p, node.y1 - p
        if x1 < x0:
            x0 = x1 = (x0 + x1) / 2
        if y1 < y0:
            y0 = y1 = (y0 + y1) / 2
        node.x0, node.y0, node.x1, node.y1 = x0, y0, x1, y1
        if node.children:
            x0, y0, x1, y1 = x0 - half, y0 - half, x1 + half, y1 + half
            tile(node, x0, y0, x1, y1)

    if round:
        for node in root.descendants():
            node.x0, node.y0 = _round(node.x0), _round(node.y0)
            node.x1, node.y1 = _round(node.x1), _round(node.y1)

    logger.debug(
        "Treemap laid out",
        extra={"leaves": len(root.leaves()), "width": width, "height": height},
    )
    return root
