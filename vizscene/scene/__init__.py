"""Scene building: marks, axes, legends and the per-chart builders.

Usage:
    from vizscene.scene import build_chart

    chart = build_chart("heatmap", series)
    for mark, offset in chart.scene.walk():
        ...

``ChartInstance`` (pointer handling and live simulations) lives in
``vizscene.scene.instance``.
"""

from __future__ import annotations

from .axes import axis_bottom, axis_left
from .charts import (
    BUILDERS,
    ChartScene,
    bar_chart,
    build_chart,
    choropleth,
    default_config,
    heatmap,
    network,
    scatter_plot,
    treemap_chart,
)
from .legend import quantize_legend, sequential_legend, swatch_legend
from .primitives import Circle, Group, Line, Mark, Marker, Path, Rect, Scene, Text, Tooltip

__all__ = [
    "BUILDERS",
    "ChartScene",
    "Circle",
    "Group",
    "Line",
    "Mark",
    "Marker",
    "Path",
    "Rect",
    "Scene",
    "Text",
    "Tooltip",
    "axis_bottom",
    "axis_left",
    "bar_chart",
    "build_chart",
    "choropleth",
    "default_config",
    "heatmap",
    "network",
    "quantize_legend",
    "scatter_plot",
    "sequential_legend",
    "swatch_legend",
    "treemap_chart",
]
