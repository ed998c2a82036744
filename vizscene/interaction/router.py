from __future__ import annotations

from collections.abc import Callable, Hashable

from ..core.logging_config import get_logger
from ..scene.primitives import Mark, Scene
from .drag import DragEnd, DragMachine, DragMove, DragStart
from .hit import hit_test
from .hover import HoverMachine, HoverState, PointerEnter, PointerLeave, PointerMove, Showing

logger = get_logger(__name__)

OverlayListener = Callable[[HoverState], None]
DragTarget = Callable[[Mark], Hashable | None]


class PointerRouter:
    """Single entry point for raw pointer input from the host.

    Coordinates are in scene units. Every event is hit-tested against the
    current scene and turned into hover and drag transitions; the overlay
    listener hears about the tooltip only when its state actually changes.

    Args:
        scene: Returns the scene currently on screen (it changes per tick
            for network charts)
        hover: Hover machine holding the chart's tooltip state
        drag: Drag machine, for charts with a force layout
        drag_target: Maps a hit mark to the node id it drags, or None
        on_overlay: Called with the new hover state after each change
    """

    def __init__(
        self,
        scene: Callable[[], Scene],
        hover: HoverMachine,
        drag: DragMachine | None = None,
        drag_target: DragTarget | None = None,
        on_overlay: OverlayListener | None = None,
    ):
        self.scene = scene
        self.hover = hover
        self.drag = drag
        self.drag_target = drag_target
        self.on_overlay = on_overlay

    def _notify(self, changed: bool) -> bool:
        if changed and self.on_overlay is not None:
            self.on_overlay(self.hover.state)
        return changed

    def _hover_at(self, point: tuple[float, float]) -> bool:
        hit = hit_test(self.scene(), point)
        state = self.hover.state
        if hit is None:
            event = PointerLeave()
        elif isinstance(state, Showing) and state.mark_id == hit.mark_id:
            event = PointerMove(point)
        else:
            event = PointerEnter(hit.mark_id, point, hit.datum)
        return self.hover.dispatch(event)

    def pointer_move(self, x: float, y: float) -> bool:
        """Returns True if the tooltip changed."""
        if self.drag is not None and self.drag.dragging is not None:
            self.drag.dispatch(DragMove((x, y)))
        return self._notify(self._hover_at((x, y)))

    def pointer_down(self, x: float, y: float) -> bool:
        if self.drag is None or self.drag_target is None:
            return False
        hit = hit_test(self.scene(), (x, y))
        node_id = self.drag_target(hit) if hit is not None else None
        if node_id is None:
            return False
        self.drag.dispatch(DragStart(node_id, (x, y)))
        logger.debug("Pointer drag started", extra={"node": str(node_id)})
        return self._notify(self.hover.suppress(hit.mark_id))

    def pointer_up(self, x: float, y: float) -> bool:
        if self.drag is not None and self.drag.dragging is not None:
            self.drag.dispatch(DragEnd())
        self.hover.suppress(None)
        return self._notify(self._hover_at((x, y)))

    def pointer_leave(self) -> bool:
        if self.drag is not None and self.drag.dragging is not None:
            self.drag.dispatch(DragEnd())
        self.hover.suppress(None)
        return self._notify(self.hover.dispatch(PointerLeave()))
