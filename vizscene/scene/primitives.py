"""Retained-mode draw commands.

A Scene is an ordered tree of immutable marks; later marks paint over
earlier ones. Marks with a ``mark_id`` are interactive and can be found by
hit testing; ``datum`` carries the record the mark was drawn from.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Union

Point = tuple[float, float]


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float
    attrs: dict[str, Any] = field(default_factory=dict)
    mark_id: str | None = None
    datum: Any = None


@dataclass(frozen=True)
class Circle:
    cx: float
    cy: float
    r: float
    attrs: dict[str, Any] = field(default_factory=dict)
    mark_id: str | None = None
    datum: Any = None


@dataclass(frozen=True)
class Line:
    x1: float
    y1: float
    x2: float
    y2: float
    attrs: dict[str, Any] = field(default_factory=dict)
    mark_id: str | None = None
    datum: Any = None


@dataclass(frozen=True)
class Path:
    """SVG path data plus the same outline as point lists.

    ``d`` is what vector backends draw; ``subpaths`` (flattened arcs included)
    feed raster backends and hit testing.
    """

    d: str
    subpaths: tuple[tuple[Point, ...], ...] = ()
    closed: bool = True
    attrs: dict[str, Any] = field(default_factory=dict)
    mark_id: str | None = None
    datum: Any = None


@dataclass(frozen=True)
class Text:
    x: float
    y: float
    text: str
    anchor: str = "start"
    rotate: float = 0.0
    attrs: dict[str, Any] = field(default_factory=dict)
    mark_id: str | None = None
    datum: Any = None


@dataclass(frozen=True)
class Group:
    children: tuple[Mark, ...] = ()
    translate: Point = (0.0, 0.0)
    attrs: dict[str, Any] = field(default_factory=dict)
    mark_id: str | None = None
    datum: Any = None


Mark = Union[Rect, Circle, Line, Path, Text, Group]


@dataclass(frozen=True)
class Tooltip:
    """Overlay box anchored at a screen point."""

    x: float
    y: float
    lines: tuple[str, ...]
    attrs: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Marker:
    """Arrowhead definition referenced by paths through ``marker-end``."""

    id: str
    d: str
    fill: str
    view_box: tuple[float, float, float, float] = (0, -5, 10, 10)
    ref_x: float = 15
    ref_y: float = -0.5
    size: float = 6


@dataclass(frozen=True)
class Scene:
    width: float
    height: float
    children: tuple[Mark, ...] = ()
    view_box: tuple[float, float, float, float] | None = None
    title: str | None = None
    description: str | None = None
    defs: tuple[Marker, ...] = ()
    attrs: dict[str, Any] = field(default_factory=dict)

    @property
    def box(self) -> tuple[float, float, float, float]:
        return self.view_box or (0.0, 0.0, self.width, self.height)

    def walk(self) -> Iterator[tuple[Mark, Point]]:
        """Every leaf mark in paint order with its accumulated group offset."""
        stack: list[tuple[Mark, Point]] = [(m, (0.0, 0.0)) for m in reversed(self.children)]
        while stack:
            mark, (ox, oy) = stack.pop()
            if isinstance(mark, Group):
                offset = (ox + mark.translate[0], oy + mark.translate[1])
                stack.extend((child, offset) for child in reversed(mark.children))
            else:
                yield mark, (ox, oy)

    def find(self, mark_id: str) -> Mark | None:
        for mark, _ in self.walk():
            if mark.mark_id == mark_id:
                return mark
        return None

    def count(self, kind: type) -> int:
        return sum(1 for mark, _ in self.walk() if isinstance(mark, kind))
