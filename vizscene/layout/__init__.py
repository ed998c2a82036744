"""Layout algorithms: force-directed graphs and squarified treemaps."""

from __future__ import annotations

from .force import (
    ForceSimulation,
    LinkGeometry,
    SimulationLink,
    SimulationNode,
    SimulationParams,
    TickSnapshot,
)
from .quadtree import QuadTree
from .scheduler import FrameScheduler, drive
from .treemap import TreeNode, hierarchy, slice_dice, squarify, treemap

__all__ = [
    "ForceSimulation",
    "FrameScheduler",
    "LinkGeometry",
    "QuadTree",
    "SimulationLink",
    "SimulationNode",
    "SimulationParams",
    "TickSnapshot",
    "TreeNode",
    "drive",
    "hierarchy",
    "slice_dice",
    "squarify",
    "treemap",
]
