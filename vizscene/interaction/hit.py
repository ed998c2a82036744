from __future__ import annotations

import math
from collections.abc import Sequence

from ..scene.primitives import Circle, Mark, Path, Point, Rect, Scene

STROKE_TOLERANCE = 3.0


def _in_rect(mark: Rect, x: float, y: float) -> bool:
    x0, x1 = sorted((mark.x, mark.x + mark.width))
    y0, y1 = sorted((mark.y, mark.y + mark.height))
    return x0 <= x <= x1 and y0 <= y <= y1


def _in_circle(mark: Circle, x: float, y: float) -> bool:
    return math.hypot(x - mark.cx, y - mark.cy) <= mark.r


def point_in_rings(rings: Sequence[Sequence[Point]], x: float, y: float) -> bool:
    """Even-odd rule over all rings, so holes are excluded."""
    inside = False
    for ring in rings:
        n = len(ring)
        j = n - 1
        for i in range(n):
            xi, yi = ring[i]
            xj, yj = ring[j]
            if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
                inside = not inside
            j = i
    return inside


def _segment_distance(p: Point, a: Point, b: Point) -> float:
    (px, py), (ax, ay), (bx, by) = p, a, b
    dx, dy = bx - ax, by - ay
    length2 = dx * dx + dy * dy
    t = 0.0 if length2 == 0 else max(0.0, min(1.0, ((px - ax) * dx + (py - ay) * dy) / length2))
    return math.hypot(px - (ax + t * dx), py - (ay + t * dy))


def _near_lines(lines: Sequence[Sequence[Point]], x: float, y: float, tolerance: float) -> bool:
    for line in lines:
        for a, b in zip(line, line[1:]):
            if _segment_distance((x, y), a, b) <= tolerance:
                return True
    return False


def contains(mark: Mark, x: float, y: float, tolerance: float = STROKE_TOLERANCE) -> bool:
    """Whether a point (in the mark's own coordinates) falls on the mark."""
    if isinstance(mark, Rect):
        return _in_rect(mark, x, y)
    if isinstance(mark, Circle):
        return _in_circle(mark, x, y)
    if isinstance(mark, Path):
        if mark.closed:
            return point_in_rings(mark.subpaths, x, y)
        return _near_lines(mark.subpaths, x, y, tolerance)
    return False


def hit_test(scene: Scene, point: Point) -> Mark | None:
    """Topmost interactive mark under ``point``, or None."""
    x, y = point
    hit = None
    for mark, (ox, oy) in scene.walk():
        if mark.mark_id is not None and contains(mark, x - ox, y - oy):
            hit = mark
    return hit
