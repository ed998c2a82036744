"""A chart on screen: scene, live simulation, and pointer handling.

``ChartInstance`` is what a host embeds. It owns at most one chart at a
time; loading another chart cancels the previous chart's simulation so
no stale tick ever reaches the new scene.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from ..core.config import ChartConfig
from ..core.enums import ChartType
from ..core.logging_config import get_logger
from ..interaction import DragMachine, HoverMachine, PointerRouter, Showing
from ..interaction.hover import HoverState
from ..layout.scheduler import FrameScheduler
from .charts import ChartScene, build_chart
from .primitives import Scene, Tooltip

logger = get_logger(__name__)


class ChartInstance:
    """Host-facing handle for one interactive chart.

    Args:
        on_overlay: Called with the new tooltip (or None) whenever it changes
        frame_interval: Seconds between simulation frames when driven by
            ``start``
    """

    def __init__(
        self,
        on_overlay: Callable[[Tooltip | None], None] | None = None,
        frame_interval: float | None = None,
    ):
        self.on_overlay = on_overlay
        self.frame_interval = frame_interval
        self.chart: ChartScene | None = None
        self.router: PointerRouter | None = None
        self.scheduler: FrameScheduler | None = None

    @property
    def scene(self) -> Scene | None:
        return self.chart.scene if self.chart is not None else None

    def load(self, chart_type: ChartType | str, dataset: Any, config: ChartConfig | None = None) -> ChartScene:
        """Build and show a chart, replacing (and cancelling) the current one."""
        self.unload()
        chart = build_chart(chart_type, dataset, config)
        hover = HoverMachine(chart.tooltip)
        drag = DragMachine(chart.simulation) if chart.simulation is not None else None
        self.chart = chart
        self.router = PointerRouter(
            scene=lambda: chart.scene,
            hover=hover,
            drag=drag,
            drag_target=chart.drag_target,
            on_overlay=self._overlay_changed,
        )
        if chart.simulation is not None:
            kwargs = {} if self.frame_interval is None else {"frame_interval": self.frame_interval}
            self.scheduler = FrameScheduler(chart.simulation, **kwargs)
        logger.info(f"Loaded {chart.chart.value} chart", extra={"chart": chart.chart.value})
        return chart

    def unload(self) -> None:
        """Cancel the current chart's simulation and drop its handlers."""
        if self.chart is None:
            return
        self.chart.dispose()
        self.chart = None
        self.router = None
        self.scheduler = None

    def start(self) -> asyncio.Task[int] | None:
        """Drive the simulation on the running event loop, one tick per frame."""
        if self.scheduler is None:
            return None
        return self.scheduler.start()

    def _overlay_changed(self, state: HoverState) -> None:
        if self.on_overlay is not None:
            self.on_overlay(_tooltip(state))

    def overlay(self) -> Tooltip | None:
        """The tooltip currently showing, if any."""
        if self.router is None:
            return None
        return _tooltip(self.router.hover.state)

    def handle_pointer(self, kind: str, x: float = 0.0, y: float = 0.0) -> bool:
        """Route a raw pointer event (``move``, ``down``, ``up`` or ``leave``).

        Returns:
            True if the tooltip changed

        Raises:
            ValueError: On an unknown event kind
        """
        if self.router is None:
            return False
        if kind == "move":
            return self.router.pointer_move(x, y)
        if kind == "down":
            changed = self.router.pointer_down(x, y)
            # a drag reheats the layout; resume frames if they had ended
            if self.scheduler is not None and self.router.drag is not None and self.router.drag.dragging is not None:
                self._wake()
            return changed
        if kind == "up":
            return self.router.pointer_up(x, y)
        if kind == "leave":
            return self.router.pointer_leave()
        raise ValueError(f"Unknown pointer event {kind!r}")

    def _wake(self) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return
        self.scheduler.wake()


def _tooltip(state: HoverState) -> Tooltip | None:
    if not isinstance(state, Showing):
        return None
    x, y = state.anchor
    return Tooltip(x, y, tuple(state.content), attrs={"id": "tooltip"})
