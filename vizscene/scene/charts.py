"""Chart builders: dataset + configuration -> scene.

Each builder validates its configuration, derives scales or a layout,
and returns a ``ChartScene`` holding the scene plus the handles the
interaction layer needs (tooltip content, simulation, drag targets).

Usage:
    from vizscene.scene.charts import build_chart

    chart = build_chart("bar", series)
    chart.scene  # -> Scene
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Hashable, Sequence
from dataclasses import replace
from datetime import datetime
from typing import Any

from ..core.config import ChartConfig, Margins, SimulationOptions
from ..core.enums import ChartType
from ..core.errors import EmptyDomainError
from ..core.logging_config import get_logger
from ..datasets import (
    MONTHS,
    CountyDataset,
    CyclistRecord,
    EducationRecord,
    GdpPoint,
    GdpSeries,
    TemperatureRecord,
    TemperatureSeries,
)
from ..geo import Projection, extract_mesh, extract_regions, geo_path, identity, interior_borders
from ..geo import project_lines, project_region
from ..layout.force import ForceSimulation, SimulationParams, TickSnapshot
from ..layout.treemap import TreeNode, treemap
from ..scales import extent, make_scale, palette
from .axes import axis_bottom, axis_left
from .legend import quantize_legend, sequential_legend, swatch_legend
from .primitives import Circle, Group, Mark, Marker, Path, Rect, Scene, Text

logger = get_logger(__name__)

ContentFn = Callable[[Any], Sequence[str]]

UNKNOWN_FILL = "#ccc"

DEFAULT_CONFIGS: dict[ChartType, ChartConfig] = {
    ChartType.BAR: ChartConfig(width=875, height=450, title="United States GDP"),
    ChartType.SCATTER: ChartConfig(width=875, height=450, title="Doping in Professional Bicycle Racing"),
    ChartType.HEATMAP: ChartConfig(
        width=1000,
        height=550,
        margins=Margins(top=40, right=40, bottom=80, left=70),
        color_palette="RdYlBu",
        legend_bucket_count=11,
        title="Monthly Global Land-Surface Temperature",
    ),
    ChartType.CHOROPLETH: ChartConfig(
        width=975,
        height=610,
        margins=Margins(0, 0, 0, 0),
        color_palette="greens",
        legend_bucket_count=7,
        title="United States Educational Attainment",
    ),
    ChartType.NETWORK: ChartConfig(
        width=928,
        height=600,
        margins=Margins(0, 0, 0, 0),
        color_palette="category10",
        simulation=SimulationOptions(charge_strength=-400),
        title="A view of patent-related lawsuits in the mobile communications industry, circa 2011.",
    ),
    ChartType.TREEMAP: ChartConfig(
        width=975,
        height=610,
        margins=Margins(0, 0, 0, 0),
        color_palette="category20",
        title="Kickstarter Pledges",
    ),
}


def default_config(chart_type: ChartType | str, dataset: Any = None) -> ChartConfig:
    """Stock configuration for a chart; the heatmap widens with its dataset."""
    chart_type = ChartType(chart_type)
    config = DEFAULT_CONFIGS[chart_type]
    if chart_type is ChartType.HEATMAP and isinstance(dataset, TemperatureSeries) and dataset.records:
        config = replace(config, width=max(config.width, len(dataset.records) / 2 * 1.05))
    return config


class ChartScene:
    """A built chart: the scene on screen plus its live handles.

    For network charts the scene is rebuilt from every simulation snapshot,
    so ``scene`` always reflects the latest tick.
    """

    def __init__(
        self,
        chart: ChartType,
        scene: Scene,
        scales: dict[str, Any],
        tooltip: ContentFn,
        *,
        simulation: ForceSimulation | None = None,
        drag_target: Callable[[Mark], Hashable | None] | None = None,
        rebuild: Callable[[TickSnapshot], Scene] | None = None,
    ):
        self.chart = chart
        self.scene = scene
        self.scales = scales
        self.tooltip = tooltip
        self.simulation = simulation
        self.drag_target = drag_target
        self._rebuild = rebuild
        self._unsubscribe = None
        if simulation is not None and rebuild is not None:
            self._unsubscribe = simulation.on_tick(self._on_tick)

    def _on_tick(self, snapshot: TickSnapshot) -> None:
        self.scene = self._rebuild(snapshot)

    def refresh(self) -> Scene:
        """Rebuild from the simulation's current state without ticking."""
        if self.simulation is not None and self._rebuild is not None:
            self.scene = self._rebuild(self.simulation.snapshot())
        return self.scene

    def dispose(self) -> None:
        """Stop the simulation (if any) and detach from it."""
        if self.simulation is not None:
            self.simulation.stop()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None


def _config(chart_type: ChartType, config: ChartConfig | None, dataset: Any = None) -> ChartConfig:
    return (config or default_config(chart_type, dataset)).validate()


def _colors(config: ChartConfig, default: str, k: int | None = None) -> tuple[str, ...]:
    return palette(config.color_palette or default, k)


def _half_up(v: float) -> int:
    return math.floor(v + 0.5)


# -- bar --------------------------------------------------------------


def gdp_tooltip(point: GdpPoint) -> list[str]:
    quarter = (point.date.month - 1) // 3 + 1
    return [f"{point.date.year} Q{quarter}", f"${point.value:,.2f} Billion"]


def bar_chart(series: GdpSeries, config: ChartConfig | None = None) -> ChartScene:
    """Time-series bar chart (quarterly GDP)."""
    cfg = _config(ChartType.BAR, config)
    if not series.points:
        raise EmptyDomainError("GDP series has no data points")
    m, w, h = cfg.margins, cfg.width, cfg.height

    x = make_scale("time", (series.from_date, series.to_date), (m.left, w - m.right))
    y_domain = cfg.domain_override or (0, extent(series.points, key=lambda p: p.value)[1])
    y = make_scale("linear", y_domain, (h - m.bottom, m.top))

    fill = cfg.color_palette[0] if isinstance(cfg.color_palette, tuple) else "rgb(0,122,255)"
    bar_width = cfg.inner_width / len(series.points) * (1 - cfg.padding_fraction)
    baseline = y(0)
    bars = []
    for i, point in enumerate(series.points):
        top = y(point.value)
        bars.append(
            Rect(
                x(point.date) - bar_width / 2,
                min(top, baseline),
                bar_width,
                abs(baseline - top),
                attrs={"class": "bar", "fill": fill, "data-date": point.label, "data-gdp": point.value},
                mark_id=f"bar-{i}",
                datum=point,
            )
        )

    description = f"From {series.from_date:%B %Y} to {series.to_date:%B %Y}"
    scene = Scene(
        width=w,
        height=h,
        title=cfg.title,
        description=" ".join(filter(None, [description, series.description])),
        children=(
            Text(-h + m.bottom * 2.5, m.left + 20, series.name, rotate=-90),
            axis_bottom(x, h - m.bottom),
            axis_left(y, m.left),
            Group(children=tuple(bars), attrs={"id": "bars"}),
        ),
    )
    logger.debug("Built bar chart", extra={"bars": len(bars)})
    return ChartScene(ChartType.BAR, scene, {"x": x, "y": y}, gdp_tooltip)


# -- scatter ----------------------------------------------------------


def cyclist_tooltip(record: CyclistRecord) -> list[str]:
    lines = [f"{record.name} ({record.nationality})", f"Year: {record.year}", f"Time: {record.time}"]
    lines.append(f"Doping allegations: {record.doping}" if record.doping else "No doping allegations")
    return lines


def minutes_seconds(seconds: float) -> str:
    total = int(round(seconds))
    return f"{total // 60:02d}:{total % 60:02d}"


def scatter_plot(records: Sequence[CyclistRecord], config: ChartConfig | None = None) -> ChartScene:
    """Race times by year, coloured by doping allegation."""
    cfg = _config(ChartType.SCATTER, config)
    m, w, h = cfg.margins, cfg.width, cfg.height

    year_lo, year_hi = extent(records, key=lambda r: r.year)
    x = make_scale("time", (datetime(year_lo, 1, 1), datetime(year_hi, 1, 1)), (m.left, w - m.right))
    if cfg.domain_override:
        y_domain = cfg.domain_override
    else:
        fastest, slowest = extent(records, key=lambda r: r.seconds)
        y_domain = (slowest, fastest)
    y = make_scale("linear", y_domain, (h - m.bottom, m.top))

    custom = isinstance(cfg.color_palette, tuple) and len(cfg.color_palette) >= 2
    clean, doped = cfg.color_palette[:2] if custom else ("green", "red")
    dots = []
    for i, r in enumerate(records):
        color = doped if r.doping else clean
        dots.append(
            Circle(
                x(datetime(r.year, 1, 1)),
                y(r.seconds),
                5,
                attrs={"class": "dot", "fill": color, "stroke": color, "data-xvalue": r.year, "data-yvalue": r.seconds},
                mark_id=f"dot-{i}",
                datum=r,
            )
        )

    legend = swatch_legend(
        [("No doping allegations", clean), ("Doping allegations", doped)],
        x=w - m.right,
        y=m.top,
        swatch=20,
        row_height=25,
        anchor="end",
        fill_opacity=0.5,
    )
    scene = Scene(
        width=w,
        height=h,
        title=cfg.title,
        description=f"{len(records)} Fastest times up Alpe d'Huez",
        children=(
            Text(-h / 2, 25, "Time in minutes", rotate=-90),
            axis_bottom(x, h - m.bottom),
            axis_left(y, m.left, tick_format=minutes_seconds),
            Group(children=tuple(dots), attrs={"id": "dots"}),
            legend,
        ),
    )
    return ChartScene(ChartType.SCATTER, scene, {"x": x, "y": y}, cyclist_tooltip)


# -- heatmap ----------------------------------------------------------


def temperature_tooltip(record: TemperatureRecord) -> list[str]:
    sign = "+" if record.variance > 0 else ""
    return [
        f"{MONTHS[record.month]} {record.year}",
        f"{record.temp} °C",
        f"{sign}{_half_up(record.variance * 100) / 100} °C",
    ]


def heatmap(series: TemperatureSeries, config: ChartConfig | None = None) -> ChartScene:
    """Year x month grid coloured by absolute temperature."""
    cfg = _config(ChartType.HEATMAP, config, series)
    if not series.records:
        raise EmptyDomainError("temperature series has no records")
    m, w, h = cfg.margins, cfg.width, cfg.height

    years = sorted({r.year for r in series.records})
    months = sorted({r.month for r in series.records}, reverse=True)
    x = make_scale("band", years, (m.left, w - m.right), padding=cfg.padding_fraction)
    y = make_scale("band", months, (h - m.bottom, m.top), padding=cfg.padding_fraction)

    if cfg.domain_override:
        color_domain = cfg.domain_override
    else:
        coldest, hottest = extent(series.records, key=lambda r: r.temp)
        color_domain = (hottest, coldest)
    color = make_scale("sequential", color_domain, cfg.color_palette or "RdYlBu")

    cells = [
        Rect(
            x(r.year),
            y(r.month),
            x.bandwidth(),
            y.bandwidth(),
            attrs={
                "class": "cell",
                "fill": color(r.temp),
                "data-month": r.month,
                "data-year": r.year,
                "data-temp": r.temp,
            },
            mark_id=f"cell-{r.year}-{r.month}",
            datum=r,
        )
        for r in series.records
    ]

    legend_height = 20
    scene = Scene(
        width=w,
        height=h,
        title=cfg.title,
        description=f"{years[0]} - {years[-1]}: base temperature {series.base_temperature}°C",
        children=(
            axis_bottom(x, h - m.bottom, tick_values=[yr for yr in years if yr % 10 == 0], tick_format=str),
            axis_left(y, m.left, tick_format=lambda month: MONTHS[month]),
            Group(children=tuple(cells), attrs={"id": "map", "class": "map"}),
            sequential_legend(color, cfg.legend_bucket_count or 11, x=m.left, y=h - 2 * legend_height),
        ),
    )
    logger.debug("Built heatmap", extra={"cells": len(cells), "years": len(years)})
    return ChartScene(ChartType.HEATMAP, scene, {"x": x, "y": y, "color": color}, temperature_tooltip)


# -- choropleth -------------------------------------------------------


def county_tooltip(datum: Any) -> list[str]:
    if isinstance(datum, EducationRecord):
        return [f"{datum.area_name}, {datum.state}: {datum.bachelors_or_higher:g}%"]
    return [f"County {getattr(datum, 'id', datum)}: no data"]


def choropleth(
    dataset: CountyDataset,
    config: ChartConfig | None = None,
    projection: Projection | None = None,
) -> ChartScene:
    """Counties filled by education bucket, with interior state borders.

    Args:
        dataset: Counties topology plus per-county values
        config: Chart configuration
        projection: Projection for the topology (default: identity, for
            pre-projected topologies)
    """
    cfg = _config(ChartType.CHOROPLETH, config)
    by_fips = {r.fips: r for r in dataset.education}
    domain = cfg.domain_override or extent(dataset.education, key=lambda r: r.bachelors_or_higher)
    k = cfg.legend_bucket_count or 7
    colors = _colors(cfg, "greens", k)
    color = make_scale("quantize", domain, colors)

    regions = extract_regions(dataset.topology, dataset.regions_key)
    borders = extract_mesh(dataset.topology, dataset.borders_key, interior_borders)
    project = projection or identity()

    counties = []
    for region in regions:
        rings = project_region(region, project)
        record = by_fips.get(region.id)
        counties.append(
            Path(
                geo_path(rings),
                subpaths=rings,
                attrs={
                    "class": "county",
                    "fill": color(record.bachelors_or_higher) if record else UNKNOWN_FILL,
                    "data-fips": region.id,
                    "data-education": record.bachelors_or_higher if record else None,
                },
                mark_id=f"county-{region.id}",
                datum=record or region,
            )
        )

    lines = project_lines(borders, project)
    border_path = Path(
        geo_path(lines, closed=False),
        subpaths=lines,
        closed=False,
        attrs={
            "fill": "none",
            "stroke": "white",
            "stroke-linecap": "round",
            "stroke-linejoin": "round",
            "pointer-events": "none",
        },
    )
    scene = Scene(
        width=cfg.width,
        height=cfg.height,
        title=cfg.title,
        description="Percentage of adults age 25 and older with a bachelor's degree or higher (2010-2014)",
        children=(
            quantize_legend(color, x=400, y=10),
            Group(children=tuple(counties), attrs={"id": "counties"}),
            border_path,
        ),
    )
    logger.debug("Built choropleth", extra={"regions": len(regions), "border_lines": len(lines)})
    return ChartScene(ChartType.CHOROPLETH, scene, {"color": color}, county_tooltip)


# -- network ----------------------------------------------------------


def _unique(values: Sequence[Any]) -> list[Any]:
    return list(dict.fromkeys(values))


def network_tooltip(links: Sequence[dict[str, Any]]) -> ContentFn:
    """Content function listing a node's outgoing and incoming links."""

    def content(node_id: Hashable) -> list[str]:
        targets = ", ".join(f"{l['target']} ({l.get('type')})" for l in links if l["source"] == node_id)
        sources = ", ".join(f"{l['source']} ({l.get('type')})" for l in links if l["target"] == node_id)
        return [f"Targets: {targets}", f"Sources: {sources}"]

    return content


def _node_target(mark: Mark) -> Hashable | None:
    if isinstance(mark, Circle) and mark.mark_id is not None and mark.mark_id.startswith("node-"):
        return mark.datum
    return None


def network(
    links: Sequence[dict[str, Any]],
    config: ChartConfig | None = None,
    params: SimulationParams | None = None,
) -> ChartScene:
    """Force-directed graph of typed links, drawn as arcs with arrowheads.

    The returned chart owns a fresh simulation that has not ticked yet; drive
    it with ``run_until_settled`` or a ``FrameScheduler``. The scene follows
    every tick.
    """
    cfg = _config(ChartType.NETWORK, config)
    if not links:
        raise EmptyDomainError("network has no links")
    w, h = cfg.width, cfg.height

    types = _unique([l.get("type") for l in links])
    color = make_scale("ordinal", types, _colors(cfg, "category10"))
    simulation = ForceSimulation.from_records(list(links), params or SimulationParams.from_options(cfg.simulation))
    markers = tuple(Marker(id=f"arrow-{t}", d="M0,-5L10,0L0,5", fill=color(t)) for t in types)
    legend = swatch_legend([(str(t), color(t)) for t in types], x=-w / 2 + 30, y=-h / 2 + 30)

    def build(snapshot: TickSnapshot) -> Scene:
        arcs = tuple(
            Path(
                g.path(arc=True),
                subpaths=(tuple(g.arc_points()),),
                closed=False,
                attrs={
                    "fill": "none",
                    "stroke": color(g.data.get("type")),
                    "stroke-width": 1.5,
                    "marker-end": f"url(#arrow-{g.data.get('type')})",
                },
                datum=g.data,
            )
            for g in snapshot.links
        )
        label = {"dy": "0.31em"}
        nodes = tuple(
            Group(
                translate=pos,
                children=(
                    Circle(0.0, 0.0, 4, attrs={"stroke": "white", "stroke-width": 1.5}, mark_id=f"node-{node_id}", datum=node_id),
                    Text(8, 0.0, str(node_id), attrs={**label, "fill": "none", "stroke": "white", "stroke-width": 3}),
                    Text(8, 0.0, str(node_id), attrs=label),
                ),
            )
            for node_id, pos in snapshot.positions.items()
        )
        return Scene(
            width=w,
            height=h,
            view_box=(-w / 2, -h / 2, w, h),
            title=cfg.title,
            defs=markers,
            children=(
                Group(children=arcs, attrs={"id": "links"}),
                Group(children=nodes, attrs={"id": "nodes"}),
                legend,
            ),
        )

    logger.debug("Built network", extra={"nodes": len(simulation.nodes), "links": len(links), "types": len(types)})
    return ChartScene(
        ChartType.NETWORK,
        build(simulation.snapshot()),
        {"color": color},
        network_tooltip(links),
        simulation=simulation,
        drag_target=_node_target,
        rebuild=build,
    )


# -- treemap ----------------------------------------------------------


def _category(leaf: TreeNode) -> Any:
    return leaf.data.get("category") or (leaf.parent.name if leaf.parent is not None else None)


def treemap_tooltip(leaf: TreeNode) -> list[str]:
    return [
        f"Name: {leaf.name}",
        f"Category: {_category(leaf)}",
        f"Value: {leaf.data.get('value', leaf.value)}",
    ]


def tile_label(leaf: TreeNode) -> list[str]:
    """Tile text lines: the name split before capitalised words, then the value."""
    words = [w for w in re.split(r"(?=[A-Z][^A-Z])", str(leaf.name or "")) if w]
    return words + [str(leaf.data.get("value", leaf.value))]


def treemap_chart(root: TreeNode, config: ChartConfig | None = None) -> ChartScene:
    """Squarified treemap of the leaves, coloured by category, legend below."""
    cfg = _config(ChartType.TREEMAP, config)
    if not root.children or root.value <= 0:
        raise EmptyDomainError("hierarchy has no positive values to lay out")
    w, h = cfg.width, cfg.height

    treemap(root, w, h, padding=0)
    leaves = root.leaves()
    categories = _unique([_category(leaf) for leaf in leaves])
    color = make_scale("ordinal", categories, _colors(cfg, "category20"))

    tiles = []
    for i, leaf in enumerate(leaves):
        category = _category(leaf)
        lines = tile_label(leaf)
        texts = tuple(
            Text(3, (j == len(lines) - 1) * 3 + 11 + j * 9, line, attrs={"font-size": "10px"})
            for j, line in enumerate(lines)
        )
        tiles.append(
            Group(
                translate=(leaf.x0, leaf.y0),
                attrs={"class": "group"},
                children=(
                    Rect(
                        0.0,
                        0.0,
                        leaf.width,
                        leaf.height,
                        attrs={
                            "class": "tile",
                            "fill": color(category),
                            "stroke": "white",
                            "data-name": leaf.name,
                            "data-category": category,
                            "data-value": leaf.data.get("value", leaf.value),
                        },
                        mark_id=f"tile-{i}",
                        datum=leaf,
                    ),
                    *texts,
                ),
            )
        )

    columns, row_height = 5, 40
    rows = math.ceil(len(categories) / columns)
    legend = swatch_legend(
        [(str(c), color(c)) for c in categories],
        x=0,
        y=h + 20,
        swatch=20,
        columns=columns,
        column_width=160,
        row_height=row_height,
    )
    scene = Scene(
        width=w,
        height=h + 20 + rows * row_height,
        title=cfg.title,
        children=(Group(children=tuple(tiles), attrs={"id": "tiles"}), legend),
    )
    logger.debug("Built treemap", extra={"leaves": len(leaves), "categories": len(categories)})
    return ChartScene(ChartType.TREEMAP, scene, {"color": color}, treemap_tooltip)


BUILDERS: dict[ChartType, Callable[..., ChartScene]] = {
    ChartType.BAR: bar_chart,
    ChartType.SCATTER: scatter_plot,
    ChartType.HEATMAP: heatmap,
    ChartType.CHOROPLETH: choropleth,
    ChartType.NETWORK: network,
    ChartType.TREEMAP: treemap_chart,
}


def build_chart(chart_type: ChartType | str, dataset: Any, config: ChartConfig | None = None) -> ChartScene:
    """Build any chart type from its parsed dataset."""
    return BUILDERS[ChartType(chart_type)](dataset, config)
