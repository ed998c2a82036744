from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from ..geo.projection import fmt
from ..scales import BandScale
from .primitives import Group, Line, Path, Text

TICK_SIZE = 6
TICK_PADDING = 3


def _positions(
    scale: Any,
    count: int,
    tick_values: Sequence[Any] | None,
    tick_format: Callable[[Any], str] | None,
) -> list[tuple[float, str]]:
    values = list(tick_values) if tick_values is not None else list(scale.ticks(count))
    if tick_format is None:
        tick_format = scale.tick_format(count) if hasattr(scale, "tick_format") else str
    if isinstance(scale, BandScale):
        offset = scale.bandwidth() / 2
        return [(scale(v) + offset, tick_format(v)) for v in values if scale(v) is not None]
    return [(scale(v), tick_format(v)) for v in values]


def _extent(scale: Any) -> tuple[float, float]:
    r0, r1 = scale.range
    return min(r0, r1), max(r0, r1)


def axis_bottom(
    scale: Any,
    y: float,
    *,
    count: int = 10,
    tick_values: Sequence[Any] | None = None,
    tick_format: Callable[[Any], str] | None = None,
    tick_size: float = TICK_SIZE,
    mark_id: str | None = None,
) -> Group:
    """Horizontal axis below a plot: domain line, tick marks and labels.

    Args:
        scale: Any scale with ``range`` and ``ticks``; band axes label each category
        y: Vertical position of the axis line
        count: Approximate tick count for continuous scales
        tick_values: Explicit tick values instead of ``scale.ticks``
        tick_format: Label formatter (default: the scale's own)
        tick_size: Tick mark length
        mark_id: Identifier for the axis group

    Returns:
        Group translated to ``(0, y)``
    """
    r0, r1 = _extent(scale)
    children: list[Any] = [
        Path(
            d=f"M{fmt(r0)},{fmt(tick_size)}V0H{fmt(r1)}V{fmt(tick_size)}",
            subpaths=(((r0, tick_size), (r0, 0.0), (r1, 0.0), (r1, tick_size)),),
            closed=False,
            attrs={"class": "domain", "stroke": "currentColor", "fill": "none"},
        )
    ]
    for pos, label in _positions(scale, count, tick_values, tick_format):
        children.append(
            Group(
                translate=(pos, 0.0),
                attrs={"class": "tick"},
                children=(
                    Line(0.0, 0.0, 0.0, tick_size, attrs={"stroke": "currentColor"}),
                    Text(0.0, tick_size + TICK_PADDING, label, anchor="middle", attrs={"dy": "0.71em"}),
                ),
            )
        )
    return Group(children=tuple(children), translate=(0.0, y), attrs={"id": mark_id or "x-axis"})


def axis_left(
    scale: Any,
    x: float,
    *,
    count: int = 10,
    tick_values: Sequence[Any] | None = None,
    tick_format: Callable[[Any], str] | None = None,
    tick_size: float = TICK_SIZE,
    mark_id: str | None = None,
) -> Group:
    """Vertical axis left of a plot; see ``axis_bottom``."""
    r0, r1 = _extent(scale)
    children: list[Any] = [
        Path(
            d=f"M{fmt(-tick_size)},{fmt(r0)}H0V{fmt(r1)}H{fmt(-tick_size)}",
            subpaths=(((-tick_size, r0), (0.0, r0), (0.0, r1), (-tick_size, r1)),),
            closed=False,
            attrs={"class": "domain", "stroke": "currentColor", "fill": "none"},
        )
    ]
    for pos, label in _positions(scale, count, tick_values, tick_format):
        children.append(
            Group(
                translate=(0.0, pos),
                attrs={"class": "tick"},
                children=(
                    Line(-tick_size, 0.0, 0.0, 0.0, attrs={"stroke": "currentColor"}),
                    Text(-(tick_size + TICK_PADDING), 0.0, label, anchor="end", attrs={"dy": "0.32em"}),
                ),
            )
        )
    return Group(children=tuple(children), translate=(x, 0.0), attrs={"id": mark_id or "y-axis"})
