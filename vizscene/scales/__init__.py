"""Scale engine: domain -> range mappings and axis ticks.

Main Components:
    - LinearScale / TimeScale: continuous mappings with nice ticks
    - BandScale / OrdinalScale: discrete positions and categorical colours
    - SequentialColorScale / QuantizeScale: continuous and bucketed colour
    - make_scale: kind-driven factory that guards degenerate domains

Usage:
    from vizscene.scales import make_scale, extent

    y = make_scale("linear", extent(values), (height, 0)).nice()
    for tick in y.ticks(10):
        ...
"""

from __future__ import annotations

from .color import (
    CATEGORY10,
    CATEGORY20,
    QuantizeScale,
    SequentialColorScale,
    interpolator,
    palette,
)
from .continuous import LinearScale, TimeScale, extent, pad_degenerate_domain
from .discrete import BandScale, OrdinalScale
from .factory import Scale, make_scale
from .ticks import TickSequence, linear_ticks, time_ticks

__all__ = [
    "BandScale",
    "CATEGORY10",
    "CATEGORY20",
    "LinearScale",
    "OrdinalScale",
    "QuantizeScale",
    "Scale",
    "SequentialColorScale",
    "TickSequence",
    "TimeScale",
    "extent",
    "interpolator",
    "linear_ticks",
    "make_scale",
    "pad_degenerate_domain",
    "palette",
    "time_ticks",
]
