"""Hover/tooltip state machine.

``transition`` is a pure function of (state, event); the machine only keeps
the current state. Entering a new mark while a tooltip is showing swaps the
content directly, with no intermediate Idle state.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Sequence
from dataclasses import dataclass
from typing import Any, Union

Point = tuple[float, float]
ContentFn = Callable[[Any], Sequence[str]]

TOOLTIP_OFFSET: Point = (10.0, -28.0)


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Showing:
    mark_id: Hashable
    content: tuple[str, ...]
    anchor: Point
    datum: Any = None


HoverState = Union[Idle, Showing]


@dataclass(frozen=True)
class PointerEnter:
    mark_id: Hashable
    point: Point
    datum: Any = None


@dataclass(frozen=True)
class PointerMove:
    point: Point


@dataclass(frozen=True)
class PointerLeave:
    mark_id: Hashable | None = None


HoverEvent = Union[PointerEnter, PointerMove, PointerLeave]


def anchor_for(point: Point) -> Point:
    return point[0] + TOOLTIP_OFFSET[0], point[1] + TOOLTIP_OFFSET[1]


def transition(
    state: HoverState,
    event: HoverEvent,
    content: ContentFn,
    suppressed: Hashable | None = None,
) -> HoverState:
    """Next hover state.

    Args:
        state: Current state
        event: Pointer event
        content: Chart-supplied ``datum -> lines`` function
        suppressed: Mark whose tooltip must not show (the node being dragged)

    Returns:
        The new state; ``state`` itself when nothing changes
    """
    if isinstance(event, PointerEnter):
        if event.mark_id == suppressed:
            return Idle()
        if isinstance(state, Showing) and state.mark_id == event.mark_id:
            return Showing(state.mark_id, state.content, anchor_for(event.point), state.datum)
        return Showing(event.mark_id, tuple(content(event.datum)), anchor_for(event.point), event.datum)

    if isinstance(event, PointerMove):
        if isinstance(state, Showing):
            if state.mark_id == suppressed:
                return Idle()
            return Showing(state.mark_id, state.content, anchor_for(event.point), state.datum)
        return state

    if isinstance(event, PointerLeave):
        if isinstance(state, Showing) and (event.mark_id is None or event.mark_id == state.mark_id):
            return Idle()
        return state

    raise TypeError(f"Unknown hover event {event!r}")


class HoverMachine:
    """Holds one chart's hover state; exactly one tooltip at a time."""

    def __init__(self, content: ContentFn):
        self.content = content
        self.state: HoverState = Idle()
        self.suppressed: Hashable | None = None

    def dispatch(self, event: HoverEvent) -> bool:
        """Apply an event; returns True if the state changed."""
        new = transition(self.state, event, self.content, self.suppressed)
        changed = new != self.state
        self.state = new
        return changed

    def suppress(self, mark_id: Hashable | None) -> bool:
        """Hide (and keep hidden) the tooltip of one mark; None lifts it."""
        self.suppressed = mark_id
        if mark_id is not None and isinstance(self.state, Showing) and self.state.mark_id == mark_id:
            self.state = Idle()
            return True
        return False
