"""Barnes-Hut quadtree for many-body forces.

Each cell aggregates the summed strength of the points below it and their
strength-weighted centre. A cell far enough away (``width / distance < theta``)
acts as a single charge instead of being opened.
"""

from __future__ import annotations

import math
from collections.abc import Callable

import numpy as np


class _Cell:
    __slots__ = ("x0", "y0", "size", "children", "indices", "value", "cx", "cy")

    def __init__(self, x0: float, y0: float, size: float):
        self.x0 = x0
        self.y0 = y0
        self.size = size
        self.children: list[_Cell] = []
        self.indices: list[int] = []
        self.value = 0.0
        self.cx = 0.0
        self.cy = 0.0


class QuadTree:
    """Quadtree over a fixed set of weighted points.

    Args:
        xs: Point x coordinates
        ys: Point y coordinates
        weights: Per-point strength (negative repels)
        theta: Opening criterion; 0 degrades to the exact all-pairs sum
        distance_min: Minimum distance used when two points nearly coincide
        distance_max: Interactions beyond this distance are ignored
    """

    def __init__(
        self,
        xs: np.ndarray,
        ys: np.ndarray,
        weights: np.ndarray,
        theta: float = 0.9,
        distance_min: float = 1.0,
        distance_max: float = math.inf,
    ):
        self.xs = np.asarray(xs, dtype=float)
        self.ys = np.asarray(ys, dtype=float)
        self.weights = np.asarray(weights, dtype=float)
        self.theta2 = theta * theta
        self.distance_min2 = distance_min * distance_min
        self.distance_max2 = distance_max * distance_max
        self.root = self._build()

    def __len__(self) -> int:
        return len(self.xs)

    def _build(self) -> _Cell:
        if len(self.xs) == 0:
            return _Cell(0.0, 0.0, 1.0)
        x0, x1 = float(self.xs.min()), float(self.xs.max())
        y0, y1 = float(self.ys.min()), float(self.ys.max())
        size = max(x1 - x0, y1 - y0, 1e-9)
        root = _Cell(x0, y0, size)
        self._fill(root, list(range(len(self.xs))))
        return root

    def _fill(self, cell: _Cell, indices: list[int]) -> None:
        xs, ys = self.xs, self.ys
        first = indices[0]
        coincident = all(xs[i] == xs[first] and ys[i] == ys[first] for i in indices)
        if len(indices) == 1 or coincident or cell.size < 1e-9:
            cell.indices = indices
        else:
            half = cell.size / 2
            mx, my = cell.x0 + half, cell.y0 + half
            quadrants: list[list[int]] = [[], [], [], []]
            for i in indices:
                quadrants[(xs[i] >= mx) + 2 * (ys[i] >= my)].append(i)
            for q, members in enumerate(quadrants):
                if not members:
                    continue
                child = _Cell(mx if q & 1 else cell.x0, my if q & 2 else cell.y0, half)
                self._fill(child, members)
                cell.children.append(child)

        # strength sum and |strength|-weighted centre
        if cell.children:
            parts = [(c.value, abs(c.value), c.cx, c.cy) for c in cell.children]
        else:
            parts = [(self.weights[i], abs(self.weights[i]), xs[i], ys[i]) for i in cell.indices]
        total = sum(p[1] for p in parts)
        cell.value = float(sum(p[0] for p in parts))
        if total > 0:
            cell.cx = float(sum(p[1] * p[2] for p in parts) / total)
            cell.cy = float(sum(p[1] * p[3] for p in parts) / total)
        else:
            cell.cx = float(sum(p[2] for p in parts) / len(parts))
            cell.cy = float(sum(p[3] for p in parts) / len(parts))

    def force_on(self, i: int, alpha: float, jiggle: Callable[[], float]) -> tuple[float, float]:
        """Velocity increment on point ``i`` from every other point."""
        x, y = self.xs[i], self.ys[i]
        dvx = dvy = 0.0
        stack = [self.root]
        while stack:
            cell = stack.pop()
            if not cell.value:
                continue
            dx, dy = cell.cx - x, cell.cy - y
            l = dx * dx + dy * dy

            if cell.children:
                if cell.size * cell.size < self.theta2 * l:
                    if l < self.distance_max2:
                        if l < self.distance_min2:
                            l = math.sqrt(self.distance_min2 * l)
                        dvx += dx * cell.value * alpha / l
                        dvy += dy * cell.value * alpha / l
                else:
                    stack.extend(cell.children)
                continue

            for j in cell.indices:
                if j == i:
                    continue
                dx, dy = self.xs[j] - x, self.ys[j] - y
                if dx == 0:
                    dx = jiggle()
                if dy == 0:
                    dy = jiggle()
                l = dx * dx + dy * dy
                if l >= self.distance_max2:
                    continue
                if l < self.distance_min2:
                    l = math.sqrt(self.distance_min2 * l)
                w = self.weights[j] * alpha / l
                dvx += dx * w
                dvy += dy * w
        return dvx, dvy
