"""Colour scales and palettes.

Categorical palettes are fixed hex lists; continuous schemes are sampled from
matplotlib colormaps so any registered colormap name can be configured.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Callable, Sequence

import matplotlib
import numpy as np
from matplotlib.colors import LinearSegmentedColormap, to_hex

from ..core.enums import ScaleKind
from ..core.errors import DegenerateDomainError, EmptyDomainError

CATEGORY10: tuple[str, ...] = (
    "#1f77b4",
    "#ff7f0e",
    "#2ca02c",
    "#d62728",
    "#9467bd",
    "#8c564b",
    "#e377c2",
    "#7f7f7f",
    "#bcbd22",
    "#17becf",
)

# category10 followed by its light variants
CATEGORY20: tuple[str, ...] = CATEGORY10 + (
    "#aec7e8",
    "#ffbb78",
    "#98df8a",
    "#ff9896",
    "#c5b0d5",
    "#c49c94",
    "#f7b6d2",
    "#c7c7c7",
    "#dbdb8d",
    "#9edae5",
)

GREENS7: tuple[str, ...] = (
    "#edf8e9",
    "#c7e9c0",
    "#a1d99b",
    "#74c476",
    "#41ab5d",
    "#238b45",
    "#005a32",
)

CATEGORICAL: dict[str, tuple[str, ...]] = {
    "category10": CATEGORY10,
    "category20": CATEGORY20,
}

Interpolator = Callable[[float], str]


def _colormap(name: str) -> matplotlib.colors.Colormap:
    try:
        return matplotlib.colormaps[name]
    except KeyError:
        # d3-style lowercase scheme names ("greens", "rdylbu")
        for registered in matplotlib.colormaps:
            if registered.lower() == name.lower():
                return matplotlib.colormaps[registered]
        raise


def palette(name: str | Sequence[str], k: int | None = None) -> tuple[str, ...]:
    """Resolve a palette name (or explicit colour list) to ``k`` hex colours.

    Categorical palettes are returned as-is (truncated to ``k`` if given).
    Any other name is looked up as a matplotlib colormap and sampled at ``k``
    evenly spaced points, skipping the near-white low end.

    Raises:
        KeyError: If the name is neither a categorical palette nor a colormap
    """
    if not isinstance(name, str):
        colors = tuple(name)
        return colors[:k] if k else colors
    if name == "greens" and k in (None, 7):
        return GREENS7
    if name in CATEGORICAL:
        colors = CATEGORICAL[name]
        return colors[:k] if k else colors
    cmap = _colormap(name)
    k = k or 9
    return tuple(to_hex(cmap(x)) for x in np.linspace(0.15, 1.0, k))


def interpolator(name: str | Sequence[str]) -> Interpolator:
    """Continuous ``t in [0, 1] -> colour`` from a colormap name or colour stops."""
    if isinstance(name, str):
        cmap = _colormap(name)
    else:
        cmap = LinearSegmentedColormap.from_list("stops", list(name))

    def interpolate(t: float) -> str:
        return to_hex(cmap(min(1.0, max(0.0, float(t)))))

    return interpolate


class SequentialColorScale:
    """Maps a continuous domain onto an interpolator, clamped to its ends."""

    kind = ScaleKind.SEQUENTIAL

    def __init__(self, domain: tuple[float, float], interpolator: Interpolator):
        d0, d1 = float(domain[0]), float(domain[1])
        if d0 == d1:
            raise DegenerateDomainError((d0, d1))
        self._domain = (d0, d1)
        self.interpolator = interpolator

    @property
    def domain(self) -> tuple[float, float]:
        return self._domain

    def __call__(self, value: float) -> str:
        d0, d1 = self._domain
        return self.interpolator((float(value) - d0) / (d1 - d0))

    def quantiles(self, count: int) -> list[float]:
        """``count`` values evenly spaced from d0 to d1, for legend bins."""
        d0, d1 = self._domain
        if count == 1:
            return [d0]
        return [d0 + (d1 - d0) * i / (count - 1) for i in range(count)]


class QuantizeScale:
    """Splits ``[d0, d1]`` into K equal-width buckets, one per colour.

    ``scale(v)`` returns the colour of v's bucket and ``invert_extent``
    recovers the ``(lo, hi)`` bounds that produced a colour.
    """

    kind = ScaleKind.QUANTIZE

    def __init__(self, domain: tuple[float, float], colors: Sequence[str]):
        if not colors:
            raise EmptyDomainError("quantize scale needs at least one colour")
        colors = tuple(colors)
        if len(set(colors)) != len(colors):
            raise ValueError("quantize colours must be distinct to be invertible")
        x0, x1 = float(domain[0]), float(domain[1])
        if x0 == x1:
            raise DegenerateDomainError((x0, x1))
        if x1 < x0:
            x0, x1 = x1, x0
        self._domain = (x0, x1)
        self._range = colors
        n = len(colors) - 1
        self._thresholds = [((i + 1) * x1 - (i - n) * x0) / (n + 1) for i in range(n)]

    @property
    def domain(self) -> tuple[float, float]:
        return self._domain

    @property
    def range(self) -> tuple[str, ...]:
        return self._range

    def thresholds(self) -> list[float]:
        return list(self._thresholds)

    def __call__(self, value: float) -> str:
        return self._range[bisect_right(self._thresholds, float(value))]

    def invert_extent(self, color: str) -> tuple[float, float]:
        """Bounds ``(lo, hi)`` of the bucket mapped to ``color``.

        Raises:
            ValueError: If the colour is not in the range
        """
        i = self._range.index(color)
        n = len(self._thresholds)
        x0, x1 = self._domain
        lo = x0 if i == 0 else self._thresholds[i - 1]
        hi = x1 if i >= n else self._thresholds[i]
        return lo, hi
