"""Tests for shared-arc topology decoding, regions and meshes."""

from __future__ import annotations

import pytest

from vizscene.core.errors import EmptyDomainError, MalformedTopologyError
from vizscene.geo import (
    Topology,
    bounds,
    exterior_borders,
    extract_mesh,
    extract_regions,
    fit_extent,
    geo_path,
    identity,
    interior_borders,
    mercator,
    mesh_arcs,
    project_lines,
    project_region,
)
from vizscene.geo.projection import fmt


def two_squares() -> dict:
    """Two unit squares side by side sharing the x=1 edge (arc 0)."""
    return {
        "type": "Topology",
        "arcs": [
            [[1, 0], [1, 1]],
            [[1, 1], [0, 1], [0, 0], [1, 0]],
            [[1, 0], [2, 0], [2, 1], [1, 1]],
        ],
        "objects": {
            "states": {
                "type": "GeometryCollection",
                "geometries": [
                    {"type": "Polygon", "id": "L", "arcs": [[1, 0]], "properties": {"name": "Left"}},
                    {"type": "Polygon", "id": "R", "arcs": [[2, -1]]},
                ],
            }
        },
    }


class TestDecoding:
    """Tests for Topology.from_dict."""

    def test_plain_arcs(self) -> None:
        topo = Topology.from_dict(two_squares())
        assert topo.arcs[0] == ((1.0, 0.0), (1.0, 1.0))
        assert topo.object_keys == ["states"]

    def test_quantized_arcs_are_delta_decoded(self) -> None:
        topo = Topology.from_dict(
            {
                "transform": {"scale": [2, 3], "translate": [10, 20]},
                "arcs": [[[0, 0], [1, 0], [0, 1]]],
                "objects": {},
            }
        )
        assert topo.arcs[0] == ((10.0, 20.0), (12.0, 20.0), (12.0, 23.0))

    def test_negative_index_reverses_arc(self) -> None:
        topo = Topology.from_dict(two_squares())
        assert topo.arc(-1) == ((1.0, 1.0), (1.0, 0.0))

    def test_missing_keys_raise(self) -> None:
        with pytest.raises(MalformedTopologyError):
            Topology.from_dict({"arcs": []})

    def test_empty_arc_raises_with_index(self) -> None:
        payload = two_squares()
        payload["arcs"].append([])
        with pytest.raises(MalformedTopologyError) as exc_info:
            Topology.from_dict(payload)
        assert exc_info.value.arc_index == 3

    def test_non_numeric_point_raises(self) -> None:
        with pytest.raises(MalformedTopologyError):
            Topology.from_dict({"arcs": [[["a", "b"]]], "objects": {}})

    def test_unknown_object_raises(self) -> None:
        topo = Topology.from_dict(two_squares())
        with pytest.raises(MalformedTopologyError):
            topo.object("counties")


class TestRegions:
    """Tests for extract_regions."""

    def test_rings_are_closed(self) -> None:
        regions = extract_regions(Topology.from_dict(two_squares()), "states")
        assert [r.id for r in regions] == ["L", "R"]
        for region in regions:
            (ring,) = region.rings
            assert ring[0] == ring[-1]
            assert len(ring) == 5

    def test_shared_edge_points_are_identical(self) -> None:
        left, right = extract_regions(Topology.from_dict(two_squares()), "states")
        (lring,) = left.rings
        (rring,) = right.rings
        assert (1.0, 0.0) in lring and (1.0, 0.0) in rring
        assert (1.0, 1.0) in lring and (1.0, 1.0) in rring

    def test_properties_are_kept(self) -> None:
        left, _ = extract_regions(Topology.from_dict(two_squares()), "states")
        assert left.properties == {"name": "Left"}

    def test_dangling_arc_reference_names_region(self) -> None:
        payload = two_squares()
        payload["objects"]["states"]["geometries"][1]["arcs"] = [[2, 7]]
        with pytest.raises(MalformedTopologyError) as exc_info:
            extract_regions(Topology.from_dict(payload), "states")
        assert exc_info.value.region_id == "R"
        assert exc_info.value.arc_index == 7

    def test_null_geometry_yields_empty_region(self) -> None:
        payload = two_squares()
        payload["objects"]["states"]["geometries"].append({"type": None, "id": "X"})
        regions = extract_regions(Topology.from_dict(payload), "states")
        assert regions[-1].id == "X"
        assert regions[-1].polygons == ()

    def test_line_geometry_is_not_a_region(self) -> None:
        payload = two_squares()
        payload["objects"]["states"] = {"type": "LineString", "arcs": [0]}
        with pytest.raises(MalformedTopologyError):
            extract_regions(Topology.from_dict(payload), "states")

    def test_multipolygon(self) -> None:
        payload = two_squares()
        payload["objects"]["both"] = {"type": "MultiPolygon", "id": "B", "arcs": [[[1, 0]], [[2, -1]]]}
        (region,) = extract_regions(Topology.from_dict(payload), "both")
        assert len(region.polygons) == 2


class TestMesh:
    """Tests for mesh_arcs and extract_mesh."""

    def test_interior_mesh_is_the_shared_arc(self) -> None:
        topo = Topology.from_dict(two_squares())
        assert mesh_arcs(topo, "states", interior_borders) == [0]
        mesh = extract_mesh(topo, "states", interior_borders)
        assert mesh.lines == (((1.0, 0.0), (1.0, 1.0)),)

    def test_exterior_mesh_is_stitched_into_one_ring(self) -> None:
        topo = Topology.from_dict(two_squares())
        assert mesh_arcs(topo, "states", exterior_borders) == [1, 2]
        mesh = extract_mesh(topo, "states", exterior_borders)
        assert len(mesh.lines) == 1
        line = mesh.lines[0]
        assert line[0] == line[-1]
        assert len(line) == 7

    def test_unstitched_mesh_keeps_one_line_per_arc(self) -> None:
        topo = Topology.from_dict(two_squares())
        mesh = extract_mesh(topo, "states", exterior_borders, stitch=False)
        assert len(mesh.lines) == 2

    def test_every_arc_appears_at_most_once(self) -> None:
        topo = Topology.from_dict(two_squares())
        refs = mesh_arcs(topo, "states")
        indices = [~i if i < 0 else i for i in refs]
        assert sorted(indices) == [0, 1, 2]
        assert len(indices) == len(set(indices))

    def test_out_of_range_arc_raises(self) -> None:
        payload = two_squares()
        payload["objects"]["states"]["geometries"][0]["arcs"] = [[1, 9]]
        with pytest.raises(MalformedTopologyError):
            mesh_arcs(Topology.from_dict(payload), "states")


class TestProjection:
    """Tests for projections and path output."""

    def test_identity_projection(self) -> None:
        project = identity(scale=2, translate=(10, 5))
        assert project(1, 1) == (12, 7)

    def test_identity_reflect_y(self) -> None:
        assert identity(reflect_y=True)(3, 4) == (3, -4)

    def test_mercator_origin_at_translate(self) -> None:
        project = mercator(translate=(480, 250))
        assert project(0, 0) == pytest.approx((480, 250))
        x, y = project(10, 10)
        assert x > 480 and y < 250

    def test_bounds(self) -> None:
        regions = extract_regions(Topology.from_dict(two_squares()), "states")
        assert bounds(regions) == ((0.0, 0.0), (2.0, 1.0))

    def test_bounds_of_nothing_raises(self) -> None:
        with pytest.raises(EmptyDomainError):
            bounds([])

    def test_fit_extent_fills_box(self) -> None:
        regions = extract_regions(Topology.from_dict(two_squares()), "states")
        project = fit_extent(identity, regions, 200, 200, padding=10)
        (x0, y0), (x1, y1) = bounds([project_region(r, project) for r in regions])
        assert (x0, x1) == pytest.approx((10, 190))
        assert (y0 + y1) / 2 == pytest.approx(100)

    def test_project_region_and_lines(self) -> None:
        topo = Topology.from_dict(two_squares())
        left, _ = extract_regions(topo, "states")
        rings = project_region(left, identity(scale=10))
        assert rings[0][0] == (10.0, 10.0)
        lines = project_lines(extract_mesh(topo, "states", interior_borders), identity(scale=10))
        assert lines == (((10.0, 0.0), (10.0, 10.0)),)

    def test_fmt(self) -> None:
        assert fmt(1.0) == "1"
        assert fmt(1.23456) == "1.235"
        assert fmt(-0.0001) == "0"
        assert fmt(0.5) == "0.5"

    def test_geo_path_closed_ring(self) -> None:
        ring = ((0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 0.0))
        assert geo_path([ring]) == "M0,0L1,0L1,1Z"

    def test_geo_path_open_line(self) -> None:
        assert geo_path([((0.0, 0.0), (2.5, 1.0))], closed=False) == "M0,0L2.5,1"

    def test_geo_path_is_deterministic(self) -> None:
        regions = extract_regions(Topology.from_dict(two_squares()), "states")
        first = [geo_path(project_region(r, identity())) for r in regions]
        second = [geo_path(project_region(r, identity())) for r in regions]
        assert first == second
