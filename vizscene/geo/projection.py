"""Projections from longitude/latitude (or pre-projected) coordinates to screen
space, plus SVG path generation for projected rings and lines."""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from ..core.errors import EmptyDomainError
from .topology import MultiLineString, Point, Region

Projection = Callable[[float, float], Point]
ProjectionFactory = Callable[..., Projection]

MERCATOR_MAX_LAT = 85.05112878


def identity(
    scale: float = 1.0,
    translate: tuple[float, float] = (0.0, 0.0),
    reflect_y: bool = False,
) -> Projection:
    """Projection for data that is already in screen coordinates."""
    tx, ty = translate
    sy = -scale if reflect_y else scale

    def project(x: float, y: float) -> Point:
        return x * scale + tx, y * sy + ty

    return project


def equirectangular(
    scale: float = 152.63,
    translate: tuple[float, float] = (480.0, 250.0),
    center: tuple[float, float] = (0.0, 0.0),
) -> Projection:
    tx, ty = translate
    lon0, lat0 = center

    def project(lon: float, lat: float) -> Point:
        x = math.radians(lon - lon0)
        y = math.radians(lat - lat0)
        return x * scale + tx, -y * scale + ty

    return project


def mercator(
    scale: float = 961 / math.tau,
    translate: tuple[float, float] = (480.0, 250.0),
    center: tuple[float, float] = (0.0, 0.0),
) -> Projection:
    """Spherical Mercator; latitudes are clamped to the usual web-map limit."""
    tx, ty = translate
    lon0, lat0 = center
    y0 = math.log(math.tan(math.pi / 4 + math.radians(lat0) / 2))

    def project(lon: float, lat: float) -> Point:
        lat = max(-MERCATOR_MAX_LAT, min(MERCATOR_MAX_LAT, lat))
        x = math.radians(lon - lon0)
        y = math.log(math.tan(math.pi / 4 + math.radians(lat) / 2)) - y0
        return x * scale + tx, -y * scale + ty

    return project


PROJECTIONS: dict[str, ProjectionFactory] = {
    "identity": identity,
    "equirectangular": equirectangular,
    "mercator": mercator,
}


def _points(geometry: Any) -> Iterable[Point]:
    if isinstance(geometry, Region):
        for ring in geometry.rings:
            yield from ring
    elif isinstance(geometry, MultiLineString):
        for line in geometry.lines:
            yield from line
    else:
        for line in geometry:
            yield from line


def bounds(geometries: Iterable[Any]) -> tuple[Point, Point]:
    """``((x0, y0), (x1, y1))`` covering every point of the given geometries.

    Accepts Regions, MultiLineStrings or plain sequences of point lists.

    Raises:
        EmptyDomainError: If the geometries hold no points
    """
    x0 = y0 = math.inf
    x1 = y1 = -math.inf
    for geometry in geometries:
        for x, y in _points(geometry):
            x0, x1 = min(x0, x), max(x1, x)
            y0, y1 = min(y0, y), max(y1, y)
    if x0 > x1:
        raise EmptyDomainError("cannot compute bounds of empty geometry")
    return (x0, y0), (x1, y1)


def fit_extent(
    factory: ProjectionFactory,
    geometries: Sequence[Any],
    width: float,
    height: float,
    padding: float = 0.0,
    **options: Any,
) -> Projection:
    """Scale and translate a projection so the geometries fill the box.

    The box is ``[padding, width - padding] x [padding, height - padding]``;
    the aspect ratio of the geometry is preserved and it is centred along the
    slack dimension.
    """
    raw = factory(scale=1.0, translate=(0.0, 0.0), **options)
    projected = [[[raw(x, y) for x, y in _points(g)]] for g in geometries]
    (bx0, by0), (bx1, by1) = bounds(projected)
    w, h = width - 2 * padding, height - 2 * padding
    candidates = []
    if bx1 > bx0:
        candidates.append(w / (bx1 - bx0))
    if by1 > by0:
        candidates.append(h / (by1 - by0))
    k = min(candidates) if candidates else 1.0
    tx = padding + (w - k * (bx1 + bx0)) / 2
    ty = padding + (h - k * (by1 + by0)) / 2
    return factory(scale=k, translate=(tx, ty), **options)


def project_region(region: Region, projection: Projection) -> tuple[tuple[Point, ...], ...]:
    """All rings of a region in screen space, polygons flattened in order."""
    return tuple(tuple(projection(x, y) for x, y in ring) for ring in region.rings)


def project_lines(mesh: MultiLineString, projection: Projection) -> tuple[tuple[Point, ...], ...]:
    return tuple(tuple(projection(x, y) for x, y in line) for line in mesh.lines)


def fmt(value: float) -> str:
    """Compact fixed-point number for path data (at most 3 decimals)."""
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def geo_path(lines: Iterable[Sequence[Point]], closed: bool = True) -> str:
    """SVG path data for projected rings (``closed``) or open lines.

    Output depends only on the input coordinates, so the same geometry always
    yields the same string.
    """
    parts = []
    for line in lines:
        if not line:
            continue
        points = list(line)
        if closed and len(points) > 1 and points[0] == points[-1]:
            points.pop()
        head, *rest = points
        segment = f"M{fmt(head[0])},{fmt(head[1])}"
        if rest:
            segment += "L" + "L".join(f"{fmt(x)},{fmt(y)}" for x, y in rest)
        if closed:
            segment += "Z"
        parts.append(segment)
    return "".join(parts)
