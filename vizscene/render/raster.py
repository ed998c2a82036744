"""PNG rendering of scenes with matplotlib."""

from __future__ import annotations

import base64
import math
import re
from io import BytesIO
from pathlib import Path
from typing import Any

import matplotlib
import matplotlib.pyplot as plt
import numpy as np
from matplotlib import patheffects
from matplotlib.colors import is_color_like
from matplotlib.patches import Circle as CirclePatch
from matplotlib.patches import PathPatch, Polygon, Rectangle
from matplotlib.path import Path as MplPath

from ..core.logging_config import get_logger
from ..scene.primitives import Circle, Line, Marker, Rect, Scene, Text, Tooltip
from ..scene.primitives import Path as PathMark

# Use non-interactive backend for server environments
matplotlib.use("Agg")

logger = get_logger(__name__)

_RGB = re.compile(r"rgba?\(\s*([\d.]+)\s*,\s*([\d.]+)\s*,\s*([\d.]+)\s*(?:,\s*([\d.]+)\s*)?\)")
_MARKER_REF = re.compile(r"url\(#(.+)\)")

HALIGN = {"start": "left", "middle": "center", "end": "right"}


def to_color(value: Any, default: Any = "black") -> Any:
    """SVG paint value -> matplotlib colour (``"none"`` stays ``"none"``)."""
    if value is None:
        return default
    text = str(value).strip()
    if text == "none":
        return "none"
    if text == "currentColor":
        return "black"
    match = _RGB.fullmatch(text)
    if match:
        r, g, b, a = match.groups()
        return (float(r) / 255, float(g) / 255, float(b) / 255, float(a) if a is not None else 1.0)
    if is_color_like(text):
        return text
    logger.warning(f"Unrecognised colour {text!r}; using {default!r}")
    return default


def _px(value: Any, default: float) -> float:
    if value is None:
        return default
    text = str(value)
    return float(text[:-2]) if text.endswith("px") else float(text)


class RasterRenderer:
    """Rasterize scenes to PNG using matplotlib.

    Scene units map 1:1 to output pixels at the configured DPI.
    """

    def __init__(self, output_dir: Path | None = None, dpi: int = 100):
        """Initialize the renderer.

        Args:
            output_dir: Optional directory to save PNGs. If None, images are only returned as base64.
            dpi: Resolution for images (default: 100)
        """
        self.output_dir = output_dir
        self.dpi = dpi
        if output_dir:
            output_dir.mkdir(parents=True, exist_ok=True)

    def _points(self, px: float) -> float:
        return px * 72 / self.dpi

    def draw(self, scene: Scene, tooltip: Tooltip | None = None) -> plt.Figure:
        """Draw a scene onto a new figure (y axis pointing down, like SVG)."""
        x0, y0, w, h = scene.box
        fig = plt.figure(figsize=(scene.width / self.dpi, scene.height / self.dpi), dpi=self.dpi)
        ax = fig.add_axes((0, 0, 1, 1))
        ax.set_xlim(x0, x0 + w)
        ax.set_ylim(y0 + h, y0)
        ax.set_axis_off()

        markers = {m.id: m for m in scene.defs}
        for mark, (ox, oy) in scene.walk():
            attrs = mark.attrs
            if attrs.get("visibility") == "hidden":
                continue
            if isinstance(mark, Rect):
                ax.add_patch(
                    Rectangle(
                        (mark.x + ox, mark.y + oy),
                        mark.width,
                        mark.height,
                        facecolor=to_color(attrs.get("fill")),
                        edgecolor=to_color(attrs.get("stroke"), "none"),
                        linewidth=self._points(_px(attrs.get("stroke-width"), 1)),
                        alpha=attrs.get("fill-opacity"),
                    )
                )
            elif isinstance(mark, Circle):
                ax.add_patch(
                    CirclePatch(
                        (mark.cx + ox, mark.cy + oy),
                        mark.r,
                        facecolor=to_color(attrs.get("fill")),
                        edgecolor=to_color(attrs.get("stroke"), "none"),
                        linewidth=self._points(_px(attrs.get("stroke-width"), 1)),
                        alpha=attrs.get("fill-opacity"),
                    )
                )
            elif isinstance(mark, Line):
                ax.plot(
                    [mark.x1 + ox, mark.x2 + ox],
                    [mark.y1 + oy, mark.y2 + oy],
                    color=to_color(attrs.get("stroke")),
                    linewidth=self._points(_px(attrs.get("stroke-width"), 1)),
                )
            elif isinstance(mark, PathMark):
                self._draw_path(ax, mark, ox, oy, markers)
            elif isinstance(mark, Text):
                self._draw_text(ax, mark, ox, oy)

        if tooltip is not None:
            self._draw_tooltip(ax, tooltip)
        return fig

    def _draw_path(self, ax: Any, mark: PathMark, ox: float, oy: float, markers: dict[str, Marker]) -> None:
        attrs = mark.attrs
        stroke = to_color(attrs.get("stroke"), "none")
        width = _px(attrs.get("stroke-width"), 1)
        if mark.closed:
            vertices: list[tuple[float, float]] = []
            codes: list[int] = []
            for ring in mark.subpaths:
                if len(ring) < 2:
                    continue
                vertices.extend((x + ox, y + oy) for x, y in ring)
                vertices.append((0.0, 0.0))
                codes.extend([MplPath.MOVETO] + [MplPath.LINETO] * (len(ring) - 1) + [MplPath.CLOSEPOLY])
            if vertices:
                ax.add_patch(
                    PathPatch(
                        MplPath(vertices, codes),
                        facecolor=to_color(attrs.get("fill")),
                        edgecolor=stroke,
                        linewidth=self._points(width),
                    )
                )
            return

        if stroke == "none":
            return
        for line in mark.subpaths:
            if len(line) < 2:
                continue
            xs, ys = zip(*((x + ox, y + oy) for x, y in line))
            ax.plot(xs, ys, color=stroke, linewidth=self._points(width), solid_capstyle="round")

        ref = _MARKER_REF.fullmatch(str(attrs.get("marker-end", "")))
        if ref and ref.group(1) in markers and mark.subpaths and len(mark.subpaths[-1]) >= 2:
            self._draw_arrow(ax, mark.subpaths[-1], ox, oy, markers[ref.group(1)], width)

    def _draw_arrow(
        self,
        ax: Any,
        line: tuple[tuple[float, float], ...],
        ox: float,
        oy: float,
        marker: Marker,
        stroke_width: float,
    ) -> None:
        (ax_, ay), (bx, by) = line[-2], line[-1]
        dx, dy = bx - ax_, by - ay
        norm = math.hypot(dx, dy)
        if norm == 0:
            return
        ux, uy = dx / norm, dy / norm
        # marker units scale with stroke width; the viewBox is 10 units wide
        unit = marker.size / marker.view_box[2] * stroke_width
        tip = np.array([bx + ox, by + oy]) - np.array([ux, uy]) * (marker.ref_x - 10) * unit
        base = tip - np.array([ux, uy]) * 10 * unit
        normal = np.array([-uy, ux]) * 5 * unit
        ax.add_patch(Polygon([tip, base + normal, base - normal], closed=True, facecolor=to_color(marker.fill)))

    def _draw_text(self, ax: Any, mark: Text, ox: float, oy: float) -> None:
        attrs = mark.attrs
        x, y = mark.x, mark.y
        if mark.rotate:
            # the text's own coordinates are in the rotated frame
            a = math.radians(mark.rotate)
            x, y = x * math.cos(a) - y * math.sin(a), x * math.sin(a) + y * math.cos(a)
        dy = str(attrs.get("dy", ""))
        valign = "top" if dy == "0.71em" else "center" if dy in ("0.31em", "0.32em") else "baseline"
        size = self._points(_px(attrs.get("font-size"), 10))
        fill = to_color(attrs.get("fill"))
        effects = None
        if attrs.get("stroke") is not None:
            effects = [
                patheffects.Stroke(
                    linewidth=self._points(_px(attrs.get("stroke-width"), 1)),
                    foreground=to_color(attrs.get("stroke")),
                )
            ]
            if fill == "none":
                fill = (0, 0, 0, 0)
            else:
                effects.append(patheffects.Normal())
        ax.text(
            x + ox,
            y + oy,
            mark.text,
            ha=HALIGN.get(mark.anchor, "left"),
            va=valign,
            rotation=-mark.rotate,
            rotation_mode="anchor",
            fontsize=size,
            color=fill,
            path_effects=effects,
        )

    def _draw_tooltip(self, ax: Any, tooltip: Tooltip) -> None:
        ax.text(
            tooltip.x,
            tooltip.y,
            "\n".join(tooltip.lines),
            ha="left",
            va="top",
            fontsize=self._points(12),
            bbox={"boxstyle": "round,pad=0.4", "facecolor": "white", "edgecolor": "#999", "alpha": 0.9},
        )

    def render(self, scene: Scene, filename: str = "chart", tooltip: Tooltip | None = None) -> dict[str, str]:
        """Draw and save a scene.

        Returns:
            Dict with 'path' (if output_dir set) and 'base64' keys
        """
        return self._save_chart(self.draw(scene, tooltip), filename)

    def _save_chart(self, fig: plt.Figure, filename: str) -> dict[str, str]:
        """Save chart to file and/or encode as base64.

        Args:
            fig: Matplotlib figure to save
            filename: Base filename (without extension)

        Returns:
            Dict with 'path' and/or 'base64' keys
        """
        result = {}

        if self.output_dir:
            filepath = self.output_dir / f"{filename}.png"
            try:
                fig.savefig(filepath, dpi=self.dpi, format="png")
                result["path"] = str(filepath)
                logger.debug(f"Chart saved to {filepath}")
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to save chart to {filepath}: {e}")

        try:
            buffer = BytesIO()
            fig.savefig(buffer, dpi=self.dpi, format="png")
            buffer.seek(0)
            result["base64"] = base64.b64encode(buffer.read()).decode("utf-8")
            buffer.close()
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to generate base64 for chart: {e}")

        plt.close(fig)
        return result
