"""Geometry projector: shared-arc topologies to screen-space paths.

Usage:
    from vizscene.geo import Topology, extract_regions, extract_mesh, interior_borders

    topo = Topology.from_dict(payload)
    counties = extract_regions(topo, "counties")
    borders = extract_mesh(topo, "states", interior_borders)
"""

from __future__ import annotations

from .projection import (
    PROJECTIONS,
    Projection,
    bounds,
    equirectangular,
    fit_extent,
    geo_path,
    identity,
    mercator,
    project_lines,
    project_region,
)
from .topology import (
    Geometry,
    MultiLineString,
    Region,
    Topology,
    exterior_borders,
    extract_mesh,
    extract_regions,
    interior_borders,
    mesh_arcs,
)

__all__ = [
    "Geometry",
    "MultiLineString",
    "PROJECTIONS",
    "Projection",
    "Region",
    "Topology",
    "bounds",
    "equirectangular",
    "exterior_borders",
    "extract_mesh",
    "extract_regions",
    "fit_extent",
    "geo_path",
    "identity",
    "interior_borders",
    "mercator",
    "mesh_arcs",
    "project_lines",
    "project_region",
]
