"""Legend builders: categorical swatches, quantize buckets, sequential bins."""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence

from ..scales import QuantizeScale, SequentialColorScale
from .primitives import Group, Rect, Text

LEGEND_TEXT = {"font-size": "10px", "font-weight": "500", "fill": "#000"}


def swatch_legend(
    items: Sequence[tuple[str, str]],
    *,
    x: float = 0.0,
    y: float = 0.0,
    swatch: float = 15,
    gap: float = 5,
    columns: int = 1,
    column_width: float = 160,
    row_height: float | None = None,
    anchor: str = "start",
    fill_opacity: float | None = None,
) -> Group:
    """Colour swatch per ``(label, colour)`` pair, laid out in a grid.

    With ``anchor="end"`` labels sit left of their swatch, for legends pinned
    to the right edge of a chart.
    """
    row_height = row_height if row_height is not None else swatch + gap
    cells = []
    for i, (label, color) in enumerate(items):
        rect_attrs = {"fill": color, "class": "legend-item"}
        if fill_opacity is not None:
            rect_attrs["fill-opacity"] = fill_opacity
        label_x = swatch + 4 if anchor == "start" else -5
        cells.append(
            Group(
                translate=((i % columns) * column_width, (i // columns) * row_height),
                children=(
                    Rect(0.0, 0.0, swatch, swatch, attrs=rect_attrs),
                    Text(label_x, swatch / 2 + 3, label, anchor=anchor, attrs=dict(LEGEND_TEXT)),
                ),
            )
        )
    return Group(children=tuple(cells), translate=(x, y), attrs={"id": "legend", "class": "legend"})


def _half_up(v: float) -> int:
    return math.floor(v + 0.5)


def percent_range(lo: float, hi: float) -> str:
    return f"{_half_up(lo)}% - {_half_up(hi)}%"


def quantize_legend(
    scale: QuantizeScale,
    *,
    x: float = 0.0,
    y: float = 0.0,
    item_width: float = 70,
    height: float = 15,
    label: Callable[[float, float], str] = percent_range,
) -> Group:
    """One swatch per bucket, labelled with the bucket bounds from ``invert_extent``."""
    children = []
    for i, color in enumerate(scale.range):
        lo, hi = scale.invert_extent(color)
        children.append(Rect(item_width * i, 0.0, item_width, height, attrs={"fill": color}))
        children.append(Text(item_width * i + 14, height + 10, label(lo, hi), attrs=dict(LEGEND_TEXT)))
    return Group(children=tuple(children), translate=(x, y), attrs={"id": "legend", "class": "legend"})


def sequential_legend(
    scale: SequentialColorScale,
    bins: int = 11,
    *,
    x: float = 0.0,
    y: float = 0.0,
    item_width: float = 40,
    height: float = 20,
) -> Group:
    """``bins`` evenly spaced samples of the domain, each labelled ``>= value``."""
    children = []
    for i, value in enumerate(scale.quantiles(bins)):
        value = _half_up(value * 100) / 100
        children.append(Rect(item_width * i, 0.0, item_width, height, attrs={"fill": scale(value)}))
        children.append(
            Text(item_width * i, height * 1.5, f"≥ {value:g}", attrs={"font-size": "9px", "fill": "#aaa"})
        )
    return Group(children=tuple(children), translate=(x, y), attrs={"id": "legend"})
