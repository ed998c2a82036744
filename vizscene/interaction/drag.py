"""Drag-to-pin state machine for force layout nodes."""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass
from typing import Union

from ..layout.force import ForceSimulation

Point = tuple[float, float]


@dataclass(frozen=True)
class DragIdle:
    pass


@dataclass(frozen=True)
class Dragging:
    node_id: Hashable


DragState = Union[DragIdle, Dragging]


@dataclass(frozen=True)
class DragStart:
    node_id: Hashable
    point: Point


@dataclass(frozen=True)
class DragMove:
    point: Point


@dataclass(frozen=True)
class DragEnd:
    pass


DragEvent = Union[DragStart, DragMove, DragEnd]


def transition(state: DragState, event: DragEvent) -> DragState:
    if isinstance(event, DragStart):
        return state if isinstance(state, Dragging) else Dragging(event.node_id)
    if isinstance(event, DragEnd):
        return DragIdle()
    return state


class DragMachine:
    """Applies drag transitions to the simulation that owns the nodes.

    Starting a drag pins the node at the pointer and reheats the layout;
    moving updates the pin; ending releases it and lets the layout cool.
    """

    def __init__(self, simulation: ForceSimulation):
        self.simulation = simulation
        self.state: DragState = DragIdle()

    @property
    def dragging(self) -> Hashable | None:
        return self.state.node_id if isinstance(self.state, Dragging) else None

    def dispatch(self, event: DragEvent) -> DragState:
        previous = self.state
        self.state = transition(previous, event)
        sim = self.simulation

        if isinstance(event, DragStart) and isinstance(previous, DragIdle):
            sim.drag_start(event.node_id, *event.point)
        elif isinstance(event, DragMove) and isinstance(previous, Dragging):
            sim.drag_move(previous.node_id, *event.point)
        elif isinstance(event, DragEnd) and isinstance(previous, Dragging):
            sim.drag_end(previous.node_id)
        return self.state
