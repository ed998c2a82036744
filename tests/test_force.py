"""Tests for the force-directed layout."""

from __future__ import annotations

import math

import numpy as np
import pytest

from vizscene.core.config import SimulationOptions
from vizscene.core.enums import SimulationStatus
from vizscene.core.errors import DataSourceError, UnstableSimulationError
from vizscene.layout import ForceSimulation, LinkGeometry, QuadTree, SimulationParams


def pair(**params) -> ForceSimulation:
    return ForceSimulation.from_records([{"source": "a", "target": "b"}], SimulationParams(**params))


def distance(sim: ForceSimulation, a: str, b: str) -> float:
    na, nb = sim.node(a), sim.node(b)
    return math.hypot(na.x - nb.x, na.y - nb.y)


class TestConstruction:
    """Tests for building simulations."""

    def test_nodes_from_link_endpoints_in_order(self) -> None:
        sim = ForceSimulation.from_records(
            [{"source": "x", "target": "y"}, {"source": "z", "target": "x", "type": "suit"}]
        )
        assert [n.id for n in sim.nodes] == ["x", "y", "z"]
        assert sim.links[1].data == {"type": "suit"}

    def test_initial_positions_are_distinct_and_finite(self) -> None:
        sim = ForceSimulation(list(range(20)))
        points = {(round(n.x, 6), round(n.y, 6)) for n in sim.nodes}
        assert len(points) == 20
        assert all(math.isfinite(n.x) and math.isfinite(n.y) for n in sim.nodes)

    def test_unknown_link_endpoint_raises(self) -> None:
        with pytest.raises(DataSourceError):
            ForceSimulation(["a"], [{"source": "a", "target": "missing"}])

    def test_duplicate_node_raises(self) -> None:
        with pytest.raises(DataSourceError):
            ForceSimulation(["a", "a"])

    def test_link_strength_defaults_to_inverse_min_degree(self) -> None:
        sim = ForceSimulation.from_records(
            [{"source": "hub", "target": "a"}, {"source": "hub", "target": "b"}]
        )
        assert sim.links[0].strength == 1.0
        assert sim.links[0].bias == pytest.approx(2 / 3)

    def test_params_from_chart_options(self) -> None:
        params = SimulationParams.from_options(SimulationOptions(charge_strength=-400, decay_rate=0.05))
        assert params.charge_strength == -400
        assert params.decay == 0.05
        assert params.link_distance == 30


class TestStepping:
    """Tests for tick(), status and settling."""

    def test_two_linked_nodes_settle_at_link_distance(self) -> None:
        sim = pair(charge_strength=0, centering_strength=0)
        sim.run_until_settled()
        assert sim.status is SimulationStatus.STOPPED
        assert distance(sim, "a", "b") == pytest.approx(30, abs=0.5)

    def test_alpha_reaches_minimum_in_about_300_ticks(self) -> None:
        sim = pair()
        ticks = sim.run_until_settled()
        assert 295 <= ticks <= 305
        assert sim.alpha < sim.params.alpha_min

    def test_alpha_decreases_every_tick(self) -> None:
        sim = pair()
        alphas = [sim.tick().alpha for _ in range(5)]
        assert alphas == sorted(alphas, reverse=True)

    def test_status_is_settling_while_cooling(self) -> None:
        sim = pair()
        sim.tick()
        assert sim.status is SimulationStatus.SETTLING

    def test_max_ticks_caps_run(self) -> None:
        sim = pair()
        assert sim.run_until_settled(max_ticks=10) == 10
        assert sim.status is SimulationStatus.SETTLING

    def test_charge_pushes_nodes_apart(self) -> None:
        sim = ForceSimulation(["a", "b"], params=SimulationParams(centering_strength=0))
        before = distance(sim, "a", "b")
        for _ in range(20):
            sim.tick()
        assert distance(sim, "a", "b") > before

    def test_centering_pulls_toward_origin(self) -> None:
        sim = ForceSimulation(["a"], params=SimulationParams(charge_strength=0))
        node = sim.node("a")
        node.x, node.y = 100.0, 0.0
        sim.tick()
        assert node.x < 100.0

    def test_same_seed_same_layout(self) -> None:
        records = [{"source": i, "target": (i + 1) % 6} for i in range(6)]
        first = ForceSimulation.from_records(records)
        second = ForceSimulation.from_records(records)
        first.run_until_settled()
        second.run_until_settled()
        assert first.snapshot().positions == second.snapshot().positions

    def test_barnes_hut_layout_stays_finite(self) -> None:
        sim = ForceSimulation(list(range(150)), params=SimulationParams(barnes_hut_threshold=100))
        for _ in range(5):
            snapshot = sim.tick()
        assert all(math.isfinite(x) and math.isfinite(y) for x, y in snapshot.positions.values())


class TestListeners:
    """Tests for tick listeners and cancellation."""

    def test_listener_receives_snapshots(self) -> None:
        sim = pair()
        seen = []
        sim.on_tick(seen.append)
        sim.tick()
        sim.tick()
        assert [s.tick for s in seen] == [1, 2]
        assert set(seen[0].positions) == {"a", "b"}
        assert seen[0].links[0].source == "a"

    def test_unsubscribe(self) -> None:
        sim = pair()
        seen = []
        unsubscribe = sim.on_tick(seen.append)
        sim.tick()
        unsubscribe()
        sim.tick()
        assert len(seen) == 1

    def test_stop_prevents_further_snapshots(self) -> None:
        sim = pair()
        seen = []
        sim.on_tick(seen.append)
        sim.tick()
        sim.stop()
        assert sim.tick() is None
        assert len(seen) == 1
        assert sim.status is SimulationStatus.STOPPED
        assert sim.cancelled

    def test_stop_is_idempotent(self) -> None:
        sim = pair()
        sim.stop()
        sim.stop()
        assert sim.cancelled

    def test_restart_after_cancel_is_ignored(self) -> None:
        sim = pair()
        sim.stop()
        sim.restart()
        assert sim.status is SimulationStatus.STOPPED
        assert sim.tick() is None

    def test_restart_after_natural_stop(self) -> None:
        sim = pair()
        sim.run_until_settled()
        sim.restart()
        assert sim.status is SimulationStatus.RUNNING
        assert sim.tick() is not None


class TestDrag:
    """Tests for pinning nodes while dragging."""

    def test_pinned_node_holds_position(self) -> None:
        sim = pair()
        sim.drag_start("a", 5.0, -5.0)
        sim.tick()
        node = sim.node("a")
        assert (node.x, node.y) == (5.0, -5.0)
        assert (node.vx, node.vy) == (0.0, 0.0)

    def test_drag_reheats(self) -> None:
        sim = pair()
        sim.run_until_settled()
        sim.drag_start("a")
        assert sim.status is SimulationStatus.RUNNING
        before = sim.alpha
        sim.tick()
        assert sim.alpha > before
        assert sim.status is SimulationStatus.RUNNING

    def test_drag_move_and_end(self) -> None:
        sim = pair()
        sim.drag_start("a")
        sim.drag_move("a", 42.0, 7.0)
        sim.tick()
        assert (sim.node("a").x, sim.node("a").y) == (42.0, 7.0)
        sim.drag_end("a")
        assert sim.node("a").fx is None
        assert sim.alpha_target == 0.0

    def test_drag_on_cancelled_simulation_moves_node_only(self) -> None:
        sim = pair()
        sim.stop()
        sim.drag_start("a", 1.0, 2.0)
        sim.drag_move("a", 3.0, 4.0)
        assert (sim.node("a").x, sim.node("a").y) == (3.0, 4.0)
        assert sim.status is SimulationStatus.STOPPED
        assert sim.tick() is None


class TestNonFinite:
    """Tests for recovery from non-finite positions."""

    def test_single_bad_node_is_reset(self) -> None:
        sim = ForceSimulation(["a", "b", "c"])
        sim.node("b").vx = math.inf
        sim.tick()
        assert math.isfinite(sim.node("b").x)
        assert sim.node("b").vx == 0.0

    def test_all_nodes_bad_twice_raises(self) -> None:
        sim = ForceSimulation(["a", "b"], params=SimulationParams(charge_strength=0, centering_strength=0))
        for node in sim.nodes:
            node.vx = math.nan
        sim.tick()
        for node in sim.nodes:
            node.vx = math.nan
        with pytest.raises(UnstableSimulationError):
            sim.tick()


class TestLinkGeometry:
    """Tests for link path output."""

    def test_arc_path(self) -> None:
        link = LinkGeometry("a", "b", 0.0, 0.0, 30.0, 40.0)
        assert link.length == 50.0
        assert link.path() == "M0,0A50,50 0 0,1 30,40"
        assert link.path(arc=False) == "M0,0L30,40"

    def test_arc_points_start_and_end_on_nodes(self) -> None:
        link = LinkGeometry("a", "b", 0.0, 0.0, 30.0, 40.0)
        points = link.arc_points(8)
        assert len(points) == 9
        assert points[0] == pytest.approx((0.0, 0.0), abs=1e-9)
        assert points[-1] == pytest.approx((30.0, 40.0), abs=1e-9)


class TestQuadTree:
    """Tests for the Barnes-Hut approximation."""

    def test_theta_zero_matches_exact_sum(self) -> None:
        rng = np.random.default_rng(7)
        xs, ys = rng.uniform(-100, 100, 40), rng.uniform(-100, 100, 40)
        weights = np.full(40, -30.0)
        tree = QuadTree(xs, ys, weights, theta=0.0)
        for i in (0, 17, 39):
            dx, dy = xs - xs[i], ys - ys[i]
            l = dx * dx + dy * dy
            l[i] = 1.0
            w = np.where(np.arange(40) == i, 0.0, weights * 0.5 / l)
            expected = ((dx * w).sum(), (dy * w).sum())
            assert tree.force_on(i, 0.5, lambda: 0.0) == pytest.approx(expected)

    def test_approximation_is_close(self) -> None:
        rng = np.random.default_rng(3)
        xs, ys = rng.uniform(-100, 100, 200), rng.uniform(-100, 100, 200)
        weights = np.full(200, -30.0)
        edge = int(np.argmax(xs))
        exact = QuadTree(xs, ys, weights, theta=0.0).force_on(edge, 1.0, lambda: 0.0)
        approx = QuadTree(xs, ys, weights, theta=0.9).force_on(edge, 1.0, lambda: 0.0)
        scale = math.hypot(*exact)
        assert math.hypot(approx[0] - exact[0], approx[1] - exact[1]) < 0.2 * scale
