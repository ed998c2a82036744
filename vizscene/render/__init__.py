"""Scene backends: SVG/HTML through Jinja2 templates, PNG through matplotlib."""

from __future__ import annotations

from .raster import RasterRenderer
from .svg import SceneRenderer, write_text

__all__ = ["RasterRenderer", "SceneRenderer", "write_text"]
