from __future__ import annotations

import math
from dataclasses import replace
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, TemplateNotFound
from markupsafe import Markup

from .. import __version__
from ..core.logging_config import get_logger
from ..geo.projection import fmt
from ..scene.primitives import Circle, Group, Line, Mark, Rect, Scene, Text, Tooltip
from ..scene.primitives import Path as PathMark

logger = get_logger(__name__)

TOOLTIP_LINE_HEIGHT = 14
TOOLTIP_CHAR_WIDTH = 6.5
TOOLTIP_PADDING = 6


def _value(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return fmt(value) if math.isfinite(value) else None
    return str(value)


def _attrs(base: dict[str, Any], extra: dict[str, Any]) -> dict[str, str]:
    merged = {**base, **extra}
    return {k: v for k, v in ((k, _value(v)) for k, v in merged.items()) if v is not None}


def _translate(x: float, y: float) -> str | None:
    if x == 0 and y == 0:
        return None
    return f"translate({fmt(x)},{fmt(y)})"


def element(mark: Mark) -> dict[str, Any]:
    """Convert a mark into a ``{tag, attrs, text, children}`` tree for the SVG template."""
    base: dict[str, Any] = {"data-mark": mark.mark_id} if mark.mark_id is not None else {}
    if isinstance(mark, Group):
        base["transform"] = _translate(*mark.translate)
        return {
            "tag": "g",
            "attrs": _attrs(base, mark.attrs),
            "text": None,
            "children": [element(child) for child in mark.children],
        }
    if isinstance(mark, Rect):
        geometry = {"x": mark.x, "y": mark.y, "width": mark.width, "height": mark.height}
        return {"tag": "rect", "attrs": _attrs({**base, **geometry}, mark.attrs), "text": None, "children": []}
    if isinstance(mark, Circle):
        geometry = {"cx": mark.cx, "cy": mark.cy, "r": mark.r}
        return {"tag": "circle", "attrs": _attrs({**base, **geometry}, mark.attrs), "text": None, "children": []}
    if isinstance(mark, Line):
        geometry = {"x1": mark.x1, "y1": mark.y1, "x2": mark.x2, "y2": mark.y2}
        return {"tag": "line", "attrs": _attrs({**base, **geometry}, mark.attrs), "text": None, "children": []}
    if isinstance(mark, PathMark):
        return {"tag": "path", "attrs": _attrs({**base, "d": mark.d}, mark.attrs), "text": None, "children": []}
    if isinstance(mark, Text):
        geometry = {
            "x": mark.x,
            "y": mark.y,
            "text-anchor": mark.anchor if mark.anchor != "start" else None,
            "transform": f"rotate({fmt(mark.rotate)})" if mark.rotate else None,
        }
        return {"tag": "text", "attrs": _attrs({**base, **geometry}, mark.attrs), "text": mark.text, "children": []}
    raise TypeError(f"Cannot render mark {mark!r}")


def tooltip_box(tooltip: Tooltip) -> dict[str, Any]:
    """Overlay geometry: box size grows with the longest line."""
    longest = max((len(line) for line in tooltip.lines), default=0)
    return {
        "x": fmt(tooltip.x),
        "y": fmt(tooltip.y),
        "width": fmt(longest * TOOLTIP_CHAR_WIDTH + 2 * TOOLTIP_PADDING),
        "height": fmt(len(tooltip.lines) * TOOLTIP_LINE_HEIGHT + TOOLTIP_PADDING),
        "padding": TOOLTIP_PADDING,
        "lines": tooltip.lines,
    }


class SceneRenderer:
    """Renders scenes to SVG and standalone HTML using Jinja2 templates."""

    def __init__(self, templates_dir: Path | None = None):
        if templates_dir is None:
            templates_dir = Path(__file__).parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=lambda name: name is not None and name.endswith((".svg.j2", ".html.j2")),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def _context(self, scene: Scene, tooltip: Tooltip | None) -> dict[str, Any]:
        return {
            "width": fmt(scene.width),
            "height": fmt(scene.height),
            "view_box": " ".join(fmt(v) for v in scene.box),
            "title": scene.title,
            "description": scene.description,
            "attrs": _attrs({}, scene.attrs),
            "markers": [
                {
                    "id": m.id,
                    "d": m.d,
                    "fill": m.fill,
                    "view_box": " ".join(fmt(v) for v in m.view_box),
                    "ref_x": fmt(m.ref_x),
                    "ref_y": fmt(m.ref_y),
                    "size": fmt(m.size),
                }
                for m in scene.defs
            ],
            "elements": [element(mark) for mark in scene.children],
            "tooltip": tooltip_box(tooltip) if tooltip is not None else None,
            "version": __version__,
        }

    def _render(self, name: str, context: dict[str, Any]) -> str:
        try:
            template = self.env.get_template(name)
            logger.debug(f"Rendering {name}", extra={"title": context.get("title")})
            return template.render(**context)
        except TemplateNotFound as e:
            logger.error("Template not found", extra={"error": str(e)})
            raise RuntimeError(
                f"Template not found: {e}. Ensure vizscene/render/templates/{name} exists."
            ) from e

    def render_svg(self, scene: Scene, tooltip: Tooltip | None = None) -> str:
        """Render a scene (and optionally its tooltip overlay) as an SVG document.

        Raises:
            RuntimeError: If the SVG template is missing
        """
        return self._render("scene.svg.j2", self._context(scene, tooltip))

    def render_html(self, scene: Scene, tooltip: Tooltip | None = None) -> str:
        """Render a standalone HTML page embedding the SVG, with the tooltip as a div.

        Raises:
            RuntimeError: If a template is missing
        """
        if tooltip is not None:
            # the div is positioned in page pixels, not viewBox units
            x0, y0 = scene.box[:2]
            tooltip = replace(tooltip, x=tooltip.x - x0, y=tooltip.y - y0)
        context = self._context(scene, tooltip)
        context["svg"] = Markup(self.render_svg(scene))
        return self._render("chart.html.j2", context)


def write_text(path: str | Path, content: str) -> None:
    """Write text content to file."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content, encoding="utf-8")
