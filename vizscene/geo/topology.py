"""Shared-arc topology decoding.

A topology stores every boundary segment ("arc") once. Geometries reference
arcs by index; a negative index ``i`` means arc ``~i`` traversed backwards.
Regions are rebuilt by concatenating their referenced arcs, so two regions
that share a border reference the same arc and stay pixel-identical after
projection.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from ..core.errors import MalformedTopologyError
from ..core.logging_config import get_logger

logger = get_logger(__name__)

Point = tuple[float, float]
Ring = tuple[Point, ...]
Polygon = tuple[Ring, ...]

POLYGONAL = {"Polygon", "MultiPolygon"}
# nesting depth of arc index lists per geometry type
ARC_DEPTH = {"LineString": 1, "MultiLineString": 2, "Polygon": 2, "MultiPolygon": 3}


@dataclass(frozen=True)
class Geometry:
    """One geometry record of a topology object, arcs kept as signed indices."""

    type: str | None
    arcs: Any = None
    id: Any = None
    properties: dict[str, Any] = field(default_factory=dict)
    geometries: tuple[Geometry, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Geometry:
        if not isinstance(data, dict):
            raise MalformedTopologyError(f"geometry must be an object, got {type(data).__name__}")
        gtype = data.get("type")
        children = ()
        if gtype == "GeometryCollection":
            children = tuple(cls.from_dict(g) for g in data.get("geometries") or ())
        return cls(
            type=gtype,
            arcs=data.get("arcs"),
            id=data.get("id"),
            properties=dict(data.get("properties") or {}),
            geometries=children,
        )

    def __eq__(self, other: object) -> bool:
        return self is other

    def __hash__(self) -> int:
        return id(self)


@dataclass(frozen=True)
class Region:
    """A polygonal area: a list of polygons, each an outer ring plus holes."""

    id: Any
    properties: dict[str, Any]
    polygons: tuple[Polygon, ...]
    geometry: Geometry | None = None

    @property
    def rings(self) -> Iterator[Ring]:
        for polygon in self.polygons:
            yield from polygon


@dataclass(frozen=True)
class MultiLineString:
    lines: tuple[tuple[Point, ...], ...]
    arcs: tuple[int, ...] = ()


class Topology:
    """Decoded arc table plus the raw geometry objects that reference it."""

    def __init__(self, arcs: Sequence[Sequence[Point]], objects: dict[str, Any], bbox: Any = None):
        self.arcs: tuple[tuple[Point, ...], ...] = tuple(tuple(a) for a in arcs)
        self._objects = objects
        self._parsed: dict[str, Geometry] = {}
        self.bbox = bbox

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Topology:
        """Decode a TopoJSON-shaped mapping.

        Quantized topologies (with a ``transform``) store arcs delta-encoded;
        each arc is decoded exactly once here.

        Raises:
            MalformedTopologyError: If arcs or points are not well-formed
        """
        if not isinstance(payload, dict) or "arcs" not in payload or "objects" not in payload:
            raise MalformedTopologyError("topology must contain 'arcs' and 'objects'")
        transform = payload.get("transform")
        if transform:
            kx, ky = transform["scale"]
            tx, ty = transform["translate"]
        decoded: list[tuple[Point, ...]] = []
        for index, raw in enumerate(payload["arcs"]):
            if not raw:
                raise MalformedTopologyError("arc has no points", arc_index=index)
            x = y = 0.0
            points: list[Point] = []
            for p in raw:
                if not isinstance(p, (list, tuple)) or len(p) < 2:
                    raise MalformedTopologyError(f"arc point {p!r} is not a coordinate pair", arc_index=index)
                try:
                    px, py = float(p[0]), float(p[1])
                except (TypeError, ValueError) as e:
                    raise MalformedTopologyError(f"arc point {p!r} is not numeric", arc_index=index) from e
                if transform:
                    x += px
                    y += py
                    points.append((x * kx + tx, y * ky + ty))
                else:
                    points.append((px, py))
            decoded.append(tuple(points))
        logger.debug("Decoded topology", extra={"arcs": len(decoded), "quantized": bool(transform)})
        return cls(decoded, payload["objects"], payload.get("bbox"))

    @property
    def object_keys(self) -> list[str]:
        return list(self._objects)

    def object(self, key: str) -> Geometry:
        if key not in self._parsed:
            if key not in self._objects:
                raise MalformedTopologyError(f"topology has no object {key!r}")
            self._parsed[key] = Geometry.from_dict(self._objects[key])
        return self._parsed[key]

    def arc(self, index: int, region_id: Any = None) -> tuple[Point, ...]:
        """Points of a signed arc reference, reversed when ``index < 0``."""
        j = ~index if index < 0 else index
        if not 0 <= j < len(self.arcs):
            raise MalformedTopologyError("arc index out of range", region_id=region_id, arc_index=index)
        points = self.arcs[j]
        return tuple(reversed(points)) if index < 0 else points

    def line(self, refs: Sequence[int], region_id: Any = None) -> list[Point]:
        points: list[Point] = []
        for i in refs:
            if not isinstance(i, int):
                raise MalformedTopologyError(f"arc reference {i!r} is not an integer", region_id=region_id)
            arc = self.arc(i, region_id)
            if points:
                points.pop()
            points.extend(arc)
        return points

    def ring(self, refs: Sequence[int], region_id: Any = None) -> Ring:
        points = self.line(refs, region_id)
        if not points:
            raise MalformedTopologyError("ring references no arcs", region_id=region_id)
        while len(points) < 4:
            points.append(points[0])
        return tuple(points)


def _leaves(geometry: Geometry) -> Iterator[Geometry]:
    if geometry.type == "GeometryCollection":
        for child in geometry.geometries:
            yield from _leaves(child)
    else:
        yield geometry


def _polygons(topology: Topology, geometry: Geometry) -> tuple[Polygon, ...]:
    if geometry.type is None:
        return ()
    if geometry.type not in POLYGONAL:
        raise MalformedTopologyError(f"geometry type {geometry.type!r} is not polygonal", region_id=geometry.id)
    arcs = geometry.arcs or []
    polys = [arcs] if geometry.type == "Polygon" else arcs
    return tuple(tuple(topology.ring(refs, geometry.id) for refs in polygon) for polygon in polys)


def extract_regions(topology: Topology, object_key: str) -> list[Region]:
    """Rebuild every polygonal geometry of an object as a Region.

    Raises:
        MalformedTopologyError: On unknown objects, dangling arc references or
            non-polygonal geometries
    """
    regions = [
        Region(id=g.id, properties=g.properties, polygons=_polygons(topology, g), geometry=g)
        for g in _leaves(topology.object(object_key))
    ]
    logger.debug("Extracted regions", extra={"object": object_key, "regions": len(regions)})
    return regions


MeshFilter = Callable[[Geometry, Geometry], bool]


def interior_borders(a: Geometry, b: Geometry) -> bool:
    """Arcs shared by two different geometries."""
    return a is not b


def exterior_borders(a: Geometry, b: Geometry) -> bool:
    """Arcs owned by a single geometry (the outer boundary)."""
    return a is b


def _walk_refs(arcs: Any, depth: int) -> Iterator[int]:
    if depth == 1:
        yield from arcs or ()
        return
    for sub in arcs or ():
        yield from _walk_refs(sub, depth - 1)


def mesh_arcs(topology: Topology, object_key: str, filter: MeshFilter | None = None) -> list[int]:
    """Signed arc references selected for the mesh, each arc at most once.

    Arcs are grouped by the geometries that reference them. Without a filter
    every referenced arc is kept; with one, an arc is kept when
    ``filter(first_owner, last_owner)`` holds (both are the same geometry for
    arcs with a single owner).
    """
    owners: dict[int, list[tuple[int, Geometry]]] = {}
    for geometry in _leaves(topology.object(object_key)):
        depth = ARC_DEPTH.get(geometry.type or "")
        if depth is None:
            continue
        for i in _walk_refs(geometry.arcs, depth):
            j = ~i if i < 0 else i
            if not 0 <= j < len(topology.arcs):
                raise MalformedTopologyError("arc index out of range", region_id=geometry.id, arc_index=i)
            owners.setdefault(j, []).append((i, geometry))

    selected = []
    for j in sorted(owners):
        refs = owners[j]
        if filter is None or filter(refs[0][1], refs[-1][1]):
            selected.append(refs[0][0])
    return selected


def _stitch(lines: list[list[Point]]) -> list[list[Point]]:
    by_start: dict[Point, list[Point]] = {}
    by_end: dict[Point, list[Point]] = {}
    closed: list[list[Point]] = []
    for line in lines:
        start, end = line[0], line[-1]
        f = by_end.pop(start, None)
        if f is not None:
            by_start.pop(f[0], None)
        g = by_start.pop(end, None)
        if g is not None:
            by_end.pop(g[-1], None)
        merged = list(line)
        if f is not None:
            merged = f + merged[1:]
        if g is not None and g is not f:
            merged = merged + g[1:]
        if len(merged) > 1 and merged[0] == merged[-1]:
            closed.append(merged)
        else:
            by_start[merged[0]] = merged
            by_end[merged[-1]] = merged
    return closed + list(by_start.values())


def extract_mesh(
    topology: Topology,
    object_key: str,
    filter: MeshFilter | None = None,
    *,
    stitch: bool = True,
) -> MultiLineString:
    """Border lines of an object as a MultiLineString.

    Args:
        topology: Decoded topology
        object_key: Object whose geometries own the arcs
        filter: Owner predicate, e.g. ``interior_borders``
        stitch: Join selected arcs that meet end-to-start into longer lines

    Returns:
        MultiLineString of the selected arcs (deterministic order)
    """
    refs = mesh_arcs(topology, object_key, filter)
    lines = [list(topology.arc(i)) for i in refs]
    if stitch:
        lines = _stitch(lines)
    logger.debug("Extracted mesh", extra={"object": object_key, "arcs": len(refs), "lines": len(lines)})
    return MultiLineString(lines=tuple(tuple(line) for line in lines), arcs=tuple(refs))
