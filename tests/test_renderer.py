"""Tests for the SVG/HTML and PNG scene renderers."""
from __future__ import annotations

import base64
from pathlib import Path

import pytest

from vizscene.render import RasterRenderer, SceneRenderer, write_text
from vizscene.render.raster import to_color
from vizscene.render.svg import element, tooltip_box
from vizscene.scene.primitives import Circle, Group, Marker, Path as PathMark, Rect, Scene, Text, Tooltip


def sample_scene(**kwargs) -> Scene:
    return Scene(
        200,
        100,
        title="Sample <chart>",
        description="Two bars",
        children=(
            Group(
                translate=(10, 5),
                attrs={"id": "bars"},
                children=(
                    Rect(0, 0, 20, 50, attrs={"class": "bar", "fill": "steelblue", "data-gdp": 243.1}, mark_id="bar-0"),
                    Rect(30, 10, 20, 40, attrs={"class": "bar", "fill": "steelblue"}, mark_id="bar-1"),
                ),
            ),
            Circle(100, 50, 5, attrs={"fill": "red"}),
            Text(-50, 20, "GDP", rotate=-90),
            Text(100, 90, "Year", anchor="middle"),
        ),
        **kwargs,
    )


def test_renderer_instantiation() -> None:
    """Test that SceneRenderer can be instantiated."""
    renderer = SceneRenderer()
    assert renderer.env is not None


def test_element_tree() -> None:
    tree = element(Group(translate=(1.5, 0), children=(Rect(0, 0, 1, 2, mark_id="r"),)))
    assert tree["tag"] == "g"
    assert tree["attrs"] == {"transform": "translate(1.5,0)"}
    assert tree["children"][0]["attrs"] == {"data-mark": "r", "x": "0", "y": "0", "width": "1", "height": "2"}


def test_element_drops_missing_attributes() -> None:
    tree = element(Rect(0, 0, 1, 1, attrs={"data-value": None, "visible": True}))
    assert "data-value" not in tree["attrs"]
    assert tree["attrs"]["visible"] == "true"


def test_render_svg_basic() -> None:
    """Test SVG rendering with groups, text and escaping."""
    svg = SceneRenderer().render_svg(sample_scene())

    assert svg.lstrip().startswith("<svg")
    assert 'viewBox="0 0 200 100"' in svg
    assert '<title id="title">Sample &lt;chart&gt;</title>' in svg
    assert '<desc id="description">Two bars</desc>' in svg
    assert '<g transform="translate(10,5)" id="bars">' in svg
    assert 'data-gdp="243.1"' in svg
    assert 'transform="rotate(-90)"' in svg
    assert 'text-anchor="middle"' in svg
    assert ">Year</text>" in svg
    assert svg.count('class="bar"') == 2
    assert 'id="tooltip"' not in svg


def test_render_svg_markers() -> None:
    scene = sample_scene(defs=(Marker(id="arrow-suit", d="M0,-5L10,0L0,5", fill="#1f77b4"),))
    svg = SceneRenderer().render_svg(scene)
    assert '<marker id="arrow-suit" viewBox="0 -5 10 10" refX="15" refY="-0.5"' in svg
    assert 'orient="auto"' in svg


def test_render_svg_with_tooltip() -> None:
    tooltip = Tooltip(60, 20, ("2000 Q1", "$10,031.00 Billion"))
    svg = SceneRenderer().render_svg(sample_scene(), tooltip)
    assert '<g id="tooltip" transform="translate(60,20)"' in svg
    assert ">$10,031.00 Billion</tspan>" in svg


def test_tooltip_box_grows_with_text() -> None:
    short = tooltip_box(Tooltip(0, 0, ("a",)))
    long = tooltip_box(Tooltip(0, 0, ("a much longer line", "second")))
    assert float(long["width"]) > float(short["width"])
    assert float(long["height"]) > float(short["height"])


def test_render_html_offsets_tooltip_by_view_box() -> None:
    scene = sample_scene(view_box=(-100, -50, 200, 100))
    html = SceneRenderer().render_html(scene, Tooltip(-90, -40, ("Targets: HTC (suit)",)))

    assert "<!DOCTYPE html>" in html
    assert '<h1 id="title">Sample &lt;chart&gt;</h1>' in html
    assert '<h2 id="description">Two bars</h2>' in html
    assert 'style="left: 10px; top: 10px"' in html
    assert "<svg" in html and "&lt;svg" not in html
    assert "Generated by vizscene" in html


def test_missing_template_raises(tmp_path: Path) -> None:
    renderer = SceneRenderer(templates_dir=tmp_path)
    with pytest.raises(RuntimeError, match="Template not found"):
        renderer.render_svg(sample_scene())


def test_write_text_creates_parents(tmp_path: Path) -> None:
    out = tmp_path / "nested" / "chart.svg"
    write_text(out, "<svg/>")
    assert out.read_text(encoding="utf-8") == "<svg/>"


def test_to_color() -> None:
    assert to_color("rgb(255, 0, 51)") == (1.0, 0.0, 0.2, 1.0)
    assert to_color("rgba(0,0,0,0.5)")[3] == 0.5
    assert to_color("none") == "none"
    assert to_color("currentColor") == "black"
    assert to_color("#ccc") == "#ccc"
    assert to_color(None, "white") == "white"
    assert to_color("not-a-colour") == "black"


def test_raster_render_writes_png(tmp_path: Path) -> None:
    """Test PNG output to disk and as base64."""
    arc = PathMark(
        "M0,0L50,50",
        subpaths=(((0.0, 0.0), (50.0, 50.0)),),
        closed=False,
        attrs={"stroke": "#1f77b4", "stroke-width": 1.5, "marker-end": "url(#arrow-suit)"},
    )
    scene = Scene(
        200,
        100,
        defs=(Marker(id="arrow-suit", d="M0,-5L10,0L0,5", fill="#1f77b4"),),
        children=sample_scene().children + (arc,),
    )
    result = RasterRenderer(output_dir=tmp_path).render(scene, "sample", Tooltip(10, 10, ("hello",)))

    assert result["path"] == str(tmp_path / "sample.png")
    assert (tmp_path / "sample.png").exists()
    assert base64.b64decode(result["base64"])[:8] == b"\x89PNG\r\n\x1a\n"


def test_raster_without_output_dir_returns_base64_only() -> None:
    result = RasterRenderer().render(sample_scene(), "memory")
    assert "path" not in result
    assert result["base64"]
