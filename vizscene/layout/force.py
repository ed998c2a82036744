"""Force-directed graph layout.

A ``ForceSimulation`` owns its nodes and links and advances one explicit step
per ``tick()``. Each step cools the temperature ``alpha`` toward its target,
applies link springs, many-body repulsion and a weak pull toward the origin
to the node velocities, then damps and integrates. Listeners receive a
``TickSnapshot`` after every step; that snapshot is the only output.

Usage:
    sim = ForceSimulation.from_records(links, SimulationParams(charge_strength=-400))
    sim.on_tick(redraw)
    sim.run_until_settled()
"""

from __future__ import annotations

import math
from collections.abc import Callable, Hashable, Iterable, Sequence
from dataclasses import dataclass, field, replace
from typing import Any

import numpy as np

from ..core.config import SimulationOptions
from ..core.enums import SimulationStatus
from ..core.errors import DataSourceError, UnstableSimulationError
from ..core.logging_config import get_logger
from ..geo.projection import fmt
from .quadtree import QuadTree

logger = get_logger(__name__)

INITIAL_RADIUS = 10.0
INITIAL_ANGLE = math.pi * (3 - math.sqrt(5))
REHEAT_TARGET = 0.3


@dataclass
class SimulationNode:
    id: Hashable
    x: float = math.nan
    y: float = math.nan
    vx: float = 0.0
    vy: float = 0.0
    fx: float | None = None
    fy: float | None = None
    index: int = 0
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def pinned(self) -> bool:
        return self.fx is not None or self.fy is not None


@dataclass
class SimulationLink:
    source: SimulationNode
    target: SimulationNode
    distance: float | None = None
    strength: float | None = None
    bias: float = 0.5
    index: int = 0
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SimulationParams:
    charge_strength: float = -30.0
    link_distance: float = 30.0
    link_strength: float | None = None
    centering_strength: float = 0.1
    velocity_decay: float = 0.4
    alpha: float = 1.0
    alpha_min: float = 0.001
    alpha_decay: float | None = None
    alpha_target: float = 0.0
    theta: float = 0.9
    distance_min: float = 1.0
    barnes_hut_threshold: int = 128
    seed: int | None = 0

    @property
    def decay(self) -> float:
        """Per-tick alpha decay; defaults to reaching ``alpha_min`` in ~300 ticks."""
        if self.alpha_decay is not None:
            return self.alpha_decay
        return 1 - self.alpha_min ** (1 / 300)

    @classmethod
    def from_options(cls, options: SimulationOptions | None, **defaults: Any) -> SimulationParams:
        """Apply chart-level simulation options over the given defaults."""
        params = cls(**defaults)
        if options is None:
            return params
        overrides: dict[str, Any] = {}
        if options.charge_strength is not None:
            overrides["charge_strength"] = options.charge_strength
        if options.link_distance is not None:
            overrides["link_distance"] = options.link_distance
        if options.decay_rate is not None:
            overrides["alpha_decay"] = options.decay_rate
        return replace(params, **overrides)


@dataclass(frozen=True)
class LinkGeometry:
    source: Hashable
    target: Hashable
    x1: float
    y1: float
    x2: float
    y2: float
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def length(self) -> float:
        return math.hypot(self.x2 - self.x1, self.y2 - self.y1)

    def path(self, arc: bool = True) -> str:
        """SVG path data: a clockwise arc of radius ``length`` or a straight line."""
        start = f"M{fmt(self.x1)},{fmt(self.y1)}"
        if arc:
            r = fmt(self.length)
            return f"{start}A{r},{r} 0 0,1 {fmt(self.x2)},{fmt(self.y2)}"
        return f"{start}L{fmt(self.x2)},{fmt(self.y2)}"

    def arc_points(self, segments: int = 16) -> list[tuple[float, float]]:
        """Points along the arc drawn by ``path()``, for raster backends and hit tests."""
        x1, y1, x2, y2 = self.x1, self.y1, self.x2, self.y2
        r = self.length
        if r == 0:
            return [(x1, y1), (x2, y2)]
        # equal radius and chord: the centre forms an equilateral triangle
        mx, my = (x1 + x2) / 2, (y1 + y2) / 2
        h = r * math.sqrt(3) / 2
        cx, cy = mx - (y2 - y1) / r * h, my + (x2 - x1) / r * h
        a0 = math.atan2(y1 - cy, x1 - cx)
        a1 = math.atan2(y2 - cy, x2 - cx)
        if a1 < a0:
            a1 += math.tau
        return [
            (cx + r * math.cos(a0 + (a1 - a0) * k / segments), cy + r * math.sin(a0 + (a1 - a0) * k / segments))
            for k in range(segments + 1)
        ]


@dataclass(frozen=True)
class TickSnapshot:
    tick: int
    alpha: float
    status: SimulationStatus
    positions: dict[Hashable, tuple[float, float]]
    links: tuple[LinkGeometry, ...]


TickListener = Callable[[TickSnapshot], None]


class ForceSimulation:
    """Steppable force layout over one node/link set.

    Args:
        nodes: Nodes (or bare ids) in layout order; ids must be unique
        links: ``SimulationLink`` objects or mappings with ``source``/``target``
            ids plus any extra keys, kept as the link's ``data``
        params: Simulation parameters

    Raises:
        DataSourceError: On duplicate node ids or links to unknown nodes
    """

    def __init__(
        self,
        nodes: Iterable[SimulationNode | Hashable],
        links: Iterable[SimulationLink | dict[str, Any]] = (),
        params: SimulationParams | None = None,
    ):
        self.params = params or SimulationParams()
        self.nodes: list[SimulationNode] = []
        self._by_id: dict[Hashable, SimulationNode] = {}
        for i, node in enumerate(nodes):
            if not isinstance(node, SimulationNode):
                node = SimulationNode(id=node)
            if node.id in self._by_id:
                raise DataSourceError(f"Duplicate node id {node.id!r}")
            node.index = i
            self.nodes.append(node)
            self._by_id[node.id] = node

        self.links: list[SimulationLink] = [self._resolve(link, i) for i, link in enumerate(links)]
        self._rng = np.random.default_rng(self.params.seed)
        self.alpha = self.params.alpha
        self.alpha_target = self.params.alpha_target
        self.ticks = 0
        self._status = SimulationStatus.RUNNING
        self._cancelled = False
        self._all_reset_last_tick = False
        self._listeners: list[TickListener] = []

        self._initialize_nodes()
        self._initialize_links()
        logger.debug(
            "Simulation created",
            extra={"nodes": len(self.nodes), "links": len(self.links), "decay": self.params.decay},
        )

    @classmethod
    def from_records(
        cls,
        records: Sequence[dict[str, Any]],
        params: SimulationParams | None = None,
    ) -> ForceSimulation:
        """Build nodes from the distinct link endpoints, in encounter order."""
        ids: dict[Hashable, None] = {}
        for record in records:
            ids.setdefault(record["source"], None)
            ids.setdefault(record["target"], None)
        return cls(list(ids), records, params)

    def _resolve(self, link: SimulationLink | dict[str, Any], index: int) -> SimulationLink:
        if isinstance(link, SimulationLink):
            link.index = index
            return link
        data = dict(link)
        try:
            source = self._by_id[data.pop("source")]
            target = self._by_id[data.pop("target")]
        except KeyError as e:
            raise DataSourceError(f"Link {index} references unknown node {e.args[0]!r}") from e
        return SimulationLink(
            source=source,
            target=target,
            distance=data.pop("distance", None),
            strength=data.pop("strength", None),
            index=index,
            data=data,
        )

    def _initialize_nodes(self) -> None:
        for i, node in enumerate(self.nodes):
            if node.fx is not None:
                node.x = node.fx
            if node.fy is not None:
                node.y = node.fy
            if not (math.isfinite(node.x) and math.isfinite(node.y)):
                radius = INITIAL_RADIUS * math.sqrt(0.5 + i)
                angle = i * INITIAL_ANGLE
                node.x = radius * math.cos(angle)
                node.y = radius * math.sin(angle)
            if not (math.isfinite(node.vx) and math.isfinite(node.vy)):
                node.vx = node.vy = 0.0

    def _initialize_links(self) -> None:
        count = [0] * len(self.nodes)
        for link in self.links:
            count[link.source.index] += 1
            count[link.target.index] += 1
        for link in self.links:
            s, t = count[link.source.index], count[link.target.index]
            link.bias = s / (s + t)
            if link.strength is None:
                link.strength = (
                    self.params.link_strength if self.params.link_strength is not None else 1 / min(s, t)
                )
            if link.distance is None:
                link.distance = self.params.link_distance

    # -- lifecycle -----------------------------------------------------

    @property
    def status(self) -> SimulationStatus:
        return self._status

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def node(self, node_id: Hashable) -> SimulationNode:
        return self._by_id[node_id]

    def on_tick(self, listener: TickListener) -> Callable[[], None]:
        """Register a snapshot listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def restart(self) -> None:
        """Resume ticking after a natural stop. Cancelled simulations stay stopped."""
        if self._cancelled:
            logger.debug("Ignoring restart of a cancelled simulation")
            return
        self._status = SimulationStatus.RUNNING

    def stop(self) -> None:
        """Cancel the simulation. Idempotent; no snapshot is emitted afterwards."""
        if self._cancelled:
            return
        self._cancelled = True
        self._status = SimulationStatus.STOPPED
        logger.debug("Simulation cancelled", extra={"ticks": self.ticks, "alpha": self.alpha})

    # -- stepping ------------------------------------------------------

    def tick(self) -> TickSnapshot | None:
        """Advance one step and notify listeners.

        Returns:
            The emitted snapshot, or None if the simulation is stopped

        Raises:
            UnstableSimulationError: If every node went non-finite on two
                consecutive ticks
        """
        if self._status is SimulationStatus.STOPPED:
            return None

        p = self.params
        self.alpha += (self.alpha_target - self.alpha) * p.decay
        alpha = self.alpha

        x = np.array([n.x for n in self.nodes], dtype=float)
        y = np.array([n.y for n in self.nodes], dtype=float)
        vx = np.array([n.vx for n in self.nodes], dtype=float)
        vy = np.array([n.vy for n in self.nodes], dtype=float)

        self._apply_links(x, y, vx, vy, alpha)
        if p.charge_strength:
            self._apply_charge(x, y, vx, vy, alpha)
        if p.centering_strength:
            vx += -x * p.centering_strength * alpha
            vy += -y * p.centering_strength * alpha

        keep = 1 - p.velocity_decay
        for i, node in enumerate(self.nodes):
            if node.fx is None:
                vx[i] *= keep
                x[i] += vx[i]
            else:
                x[i], vx[i] = node.fx, 0.0
            if node.fy is None:
                vy[i] *= keep
                y[i] += vy[i]
            else:
                y[i], vy[i] = node.fy, 0.0

        self._reset_non_finite(x, y, vx, vy)
        for i, node in enumerate(self.nodes):
            node.x, node.y = float(x[i]), float(y[i])
            node.vx, node.vy = float(vx[i]), float(vy[i])

        self.ticks += 1
        if self.alpha < p.alpha_min:
            self._status = SimulationStatus.STOPPED
            logger.debug("Simulation settled", extra={"ticks": self.ticks, "alpha": self.alpha})
        elif self.alpha_target > 0:
            self._status = SimulationStatus.RUNNING
        else:
            self._status = SimulationStatus.SETTLING

        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
        return snapshot

    def run_until_settled(self, max_ticks: int = 1000) -> int:
        """Tick until stopped or ``max_ticks`` is reached; returns ticks run."""
        count = 0
        while self._status is not SimulationStatus.STOPPED and count < max_ticks:
            self.tick()
            count += 1
        return count

    def snapshot(self) -> TickSnapshot:
        """Current node positions and link geometry, without advancing."""
        return TickSnapshot(
            tick=self.ticks,
            alpha=self.alpha,
            status=self._status,
            positions={n.id: (n.x, n.y) for n in self.nodes},
            links=tuple(
                LinkGeometry(
                    source=link.source.id,
                    target=link.target.id,
                    x1=link.source.x,
                    y1=link.source.y,
                    x2=link.target.x,
                    y2=link.target.y,
                    data=link.data,
                )
                for link in self.links
            ),
        )

    def _jiggle(self) -> float:
        return (self._rng.random() - 0.5) * 1e-6

    def _apply_links(self, x: np.ndarray, y: np.ndarray, vx: np.ndarray, vy: np.ndarray, alpha: float) -> None:
        for link in self.links:
            s, t = link.source.index, link.target.index
            dx = x[t] + vx[t] - x[s] - vx[s] or self._jiggle()
            dy = y[t] + vy[t] - y[s] - vy[s] or self._jiggle()
            l = math.sqrt(dx * dx + dy * dy)
            l = (l - link.distance) / l * alpha * link.strength
            dx, dy = dx * l, dy * l
            b = link.bias
            vx[t] -= dx * b
            vy[t] -= dy * b
            vx[s] += dx * (1 - b)
            vy[s] += dy * (1 - b)

    def _apply_charge(self, x: np.ndarray, y: np.ndarray, vx: np.ndarray, vy: np.ndarray, alpha: float) -> None:
        p = self.params
        n = len(self.nodes)
        if n < 2:
            return
        strengths = np.full(n, p.charge_strength, dtype=float)
        if n > p.barnes_hut_threshold:
            tree = QuadTree(x, y, strengths, theta=p.theta, distance_min=p.distance_min)
            for i in range(n):
                dvx, dvy = tree.force_on(i, alpha, self._jiggle)
                vx[i] += dvx
                vy[i] += dvy
            return

        # [i, j] is the offset from node i to node j
        dx = x[np.newaxis, :] - x[:, np.newaxis]
        dy = y[np.newaxis, :] - y[:, np.newaxis]
        off = ~np.eye(n, dtype=bool)
        for d in (dx, dy):
            coincident = (d == 0) & off
            if coincident.any():
                d[coincident] = (self._rng.random(int(coincident.sum())) - 0.5) * 1e-6
        l = dx * dx + dy * dy
        l[~off] = 1.0
        dmin2 = p.distance_min * p.distance_min
        l = np.where(l < dmin2, np.sqrt(dmin2 * l), l)
        w = np.where(off, strengths[np.newaxis, :] * alpha / l, 0.0)
        vx += (dx * w).sum(axis=1)
        vy += (dy * w).sum(axis=1)

    def _reset_non_finite(self, x: np.ndarray, y: np.ndarray, vx: np.ndarray, vy: np.ndarray) -> None:
        bad = ~(np.isfinite(x) & np.isfinite(y) & np.isfinite(vx) & np.isfinite(vy))
        if not bad.any():
            self._all_reset_last_tick = False
            return
        all_bad = bool(bad.all())
        if all_bad and self._all_reset_last_tick:
            raise UnstableSimulationError(
                f"All {len(self.nodes)} nodes are non-finite after resetting them on the previous tick"
            )
        for i in np.flatnonzero(bad):
            node = self.nodes[i]
            logger.warning(
                f"Node {node.id!r} went non-finite; resetting near the origin",
                extra={"node": str(node.id), "tick": self.ticks},
            )
            x[i] = node.fx if node.fx is not None and math.isfinite(node.fx) else self._rng.uniform(-1.0, 1.0)
            y[i] = node.fy if node.fy is not None and math.isfinite(node.fy) else self._rng.uniform(-1.0, 1.0)
            vx[i] = vy[i] = 0.0
        self._all_reset_last_tick = all_bad

    # -- drag ----------------------------------------------------------

    def drag_start(self, node_id: Hashable, x: float | None = None, y: float | None = None) -> None:
        """Pin a node at the pointer and reheat, unless the simulation was cancelled."""
        node = self.node(node_id)
        node.fx = node.x if x is None else x
        node.fy = node.y if y is None else y
        if self._cancelled:
            node.x, node.y = node.fx, node.fy
            return
        self.alpha_target = REHEAT_TARGET
        self.restart()
        logger.debug("Drag started", extra={"node": str(node_id)})

    def drag_move(self, node_id: Hashable, x: float, y: float) -> None:
        node = self.node(node_id)
        node.fx, node.fy = x, y
        if self._cancelled:
            node.x, node.y = x, y
            node.vx = node.vy = 0.0

    def drag_end(self, node_id: Hashable) -> None:
        """Release the pin; the layout cools down again unless already cancelled."""
        node = self.node(node_id)
        node.fx = node.fy = None
        if not self._cancelled:
            self.alpha_target = 0.0
        logger.debug("Drag ended", extra={"node": str(node_id)})
