"""Pointer interaction: hover tooltips, drag-to-pin and hit testing."""

from __future__ import annotations

from .drag import DragEnd, DragIdle, DragMachine, DragMove, Dragging, DragStart
from .hit import hit_test, point_in_rings
from .hover import (
    TOOLTIP_OFFSET,
    HoverMachine,
    Idle,
    PointerEnter,
    PointerLeave,
    PointerMove,
    Showing,
    anchor_for,
    transition,
)
from .router import PointerRouter

__all__ = [
    "DragEnd",
    "DragIdle",
    "DragMachine",
    "DragMove",
    "DragStart",
    "Dragging",
    "HoverMachine",
    "Idle",
    "PointerEnter",
    "PointerLeave",
    "PointerMove",
    "PointerRouter",
    "Showing",
    "TOOLTIP_OFFSET",
    "anchor_for",
    "hit_test",
    "point_in_rings",
    "transition",
]
