from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path

import typer

from .. import __version__
from ..core.config import get_settings, load_chart_config
from ..core.enums import ChartType, OutputFormat, SimulationStatus
from ..core.errors import VizError, describe_error
from ..core.logging_config import get_logger, setup_logging
from ..data.fetch import KNOWN_SOURCES
from ..datasets import DEFAULT_SOURCES, TREEMAP_SOURCES, load_dataset
from ..layout.force import ForceSimulation, SimulationParams
from ..render.raster import RasterRenderer
from ..render.svg import SceneRenderer, write_text
from ..scene.charts import default_config
from ..scene.instance import ChartInstance
from . import output as cli_output

app = typer.Typer(help="vizscene CLI: render interactive chart scenes to SVG, HTML or PNG")

logger = get_logger(__name__)


@app.callback()
def callback(
    json_logs: bool = typer.Option(False, "--json-logs", help="Output logs in JSON format (also enabled by VIZ_JSON_LOGS)"),
    log_level: str | None = typer.Option(
        None, "--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR; default: VIZ_LOG_LEVEL)"
    ),
) -> None:
    """Configure global CLI options."""
    settings = get_settings()
    json_logs = json_logs or settings.json_logs
    log_level = log_level or settings.log_level
    setup_logging(json_output=json_logs, log_level=log_level, log_dir=settings.log_dir)
    logger.debug("CLI initialized", extra={"json_logs": json_logs, "log_level": log_level})


@app.command()
def version() -> None:
    """Print version."""
    typer.echo(__version__)


@app.command()
def sources() -> None:
    """List the named public datasets and which chart uses each by default."""
    defaults = {name: chart.value for chart, name in DEFAULT_SOURCES.items()}
    cli_output.chart("Known sources:")
    for name, url in KNOWN_SOURCES.items():
        suffix = f" (default for {defaults[name]})" if name in defaults else ""
        cli_output.plain(f"  {name}{suffix}: {url}")


def _parse_point(value: str) -> tuple[float, float]:
    try:
        x, y = (float(part) for part in value.split(","))
    except ValueError:
        raise typer.BadParameter(f"expected X,Y but got {value!r}") from None
    return x, y


@app.command()
def render(
    chart: ChartType = typer.Argument(..., case_sensitive=False, help="Chart type"),  # noqa: B008
    source: str | None = typer.Option(
        None, help="Known source name, URL or JSON file (default: the chart's public dataset)"
    ),
    topology: str | None = typer.Option(None, help="Choropleth topology source (default: counties)"),
    config: str | None = typer.Option(None, help="Chart options YAML file"),
    format: OutputFormat = typer.Option(  # noqa: B008
        OutputFormat.SVG, "--format", case_sensitive=False, help="Output format: svg, html or png"
    ),
    output: str | None = typer.Option(None, help="Output path (default: <VIZ_OUTPUT_DIR>/<chart>.<format>)"),
    hover: str | None = typer.Option(None, help="Pointer position X,Y whose tooltip is drawn into the output"),
    max_ticks: int = typer.Option(1000, min=1, help="Tick cap for force layouts"),
) -> None:
    """Load a dataset, build the chart scene and write it out."""
    settings = get_settings()
    out_path = Path(output) if output else Path(settings.output_dir) / f"{chart.value}.{format.value}"

    logger.info("Rendering chart", extra={"chart": chart.value, "format": format.value, "output": str(out_path)})
    try:
        dataset = load_dataset(chart, source, topology)
        chart_config = default_config(chart, dataset)
        if chart is ChartType.TREEMAP and (source or DEFAULT_SOURCES[chart]) in TREEMAP_SOURCES:
            title, _ = TREEMAP_SOURCES[source or DEFAULT_SOURCES[chart]]
            chart_config = replace(chart_config, title=title)
        if config:
            chart_config = load_chart_config(config, base=chart_config)

        instance = ChartInstance()
        built = instance.load(chart, dataset, chart_config)
        if built.simulation is not None:
            ticks = built.simulation.run_until_settled(max_ticks)
            logger.info(f"Force layout ran {ticks} ticks", extra={"status": built.simulation.status.value})
            if built.simulation.status is not SimulationStatus.STOPPED:
                cli_output.warning(f"Force layout did not settle within {max_ticks} ticks; writing current positions")
        if hover:
            x, y = _parse_point(hover)
            instance.handle_pointer("move", x, y)
        scene, tooltip = instance.scene, instance.overlay()
        instance.unload()

        if format is OutputFormat.PNG:
            result = RasterRenderer(output_dir=out_path.parent).render(scene, out_path.stem, tooltip)
            if "path" not in result:
                cli_output.error(f"Failed to write {out_path}")
                raise typer.Exit(code=1)
        else:
            renderer = SceneRenderer()
            content = renderer.render_html(scene, tooltip) if format is OutputFormat.HTML else renderer.render_svg(
                scene, tooltip
            )
            write_text(out_path, content)
    except VizError as e:
        cli_output.error(describe_error(e, chart.value)["message"])
        raise typer.Exit(code=1) from e

    cli_output.success(f"{chart.value.capitalize()} chart written to {out_path}")
    if tooltip is not None:
        cli_output.plain(f"  Tooltip: {' | '.join(tooltip.lines)}")


@app.command()
def simulate(
    source: str | None = typer.Option(None, help="Link dataset (default: patent suits)"),
    ticks: int = typer.Option(300, min=1, help="Maximum ticks to run"),
    charge: float | None = typer.Option(None, help="Charge strength (default: -400)"),
    link_distance: float | None = typer.Option(None, help="Target link distance"),
    seed: int = typer.Option(0, help="Jiggle seed"),
) -> None:
    """Run the force layout headless and print final node positions as JSON."""
    try:
        links = load_dataset(ChartType.NETWORK, source)
        params = SimulationParams.from_options(
            default_config(ChartType.NETWORK).simulation,
            seed=seed,
        )
        overrides = {k: v for k, v in {"charge_strength": charge, "link_distance": link_distance}.items() if v is not None}
        sim = ForceSimulation.from_records(links, replace(params, **overrides))
        count = sim.run_until_settled(ticks)
    except VizError as e:
        cli_output.error(describe_error(e, ChartType.NETWORK.value)["message"])
        raise typer.Exit(code=1) from e

    snapshot = sim.snapshot()
    logger.info("Simulation finished", extra={"ticks": count, "status": snapshot.status.value})
    payload = {
        "ticks": count,
        "status": snapshot.status.value,
        "alpha": snapshot.alpha,
        "positions": {str(k): [round(x, 3), round(y, 3)] for k, (x, y) in snapshot.positions.items()},
    }
    typer.echo(json.dumps(payload, indent=2))
