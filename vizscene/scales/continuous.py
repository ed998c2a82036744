"""Continuous scales: linear numbers and time."""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta, timezone
from typing import Any

from ..core.enums import ScaleKind
from ..core.errors import DegenerateDomainError, EmptyDomainError
from .ticks import (
    TickSequence,
    as_utc,
    linear_ticks,
    nice_extent,
    nice_time_extent,
    number_tick_format,
    time_tick_format,
    time_ticks,
)


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def extent(values: Iterable[Any], key: Callable[[Any], Any] | None = None) -> tuple[Any, Any]:
    """Return ``(min, max)`` of the values, ignoring ``None`` and NaN.

    Raises:
        EmptyDomainError: If no usable value remains
    """
    lo = hi = None
    for item in values:
        v = key(item) if key is not None else item
        if _is_missing(v):
            continue
        if lo is None or v < lo:
            lo = v
        if hi is None or v > hi:
            hi = v
    if lo is None:
        raise EmptyDomainError("cannot compute the extent of an empty dataset")
    return lo, hi


def _interpolate(a: float, b: float, t: float) -> float:
    # a*(1-t) + b*t reproduces a at t=0 and b at t=1 exactly
    return a * (1 - t) + b * t


class LinearScale:
    """Continuous linear mapping ``domain -> range``.

    Both endpoints map exactly: ``scale(d0) == r0`` and ``scale(d1) == r1``.
    """

    kind = ScaleKind.LINEAR

    def __init__(
        self,
        domain: tuple[float, float],
        range: tuple[float, float] = (0.0, 1.0),
        *,
        clamp: bool = False,
    ):
        d0, d1 = domain
        if d0 == d1:
            raise DegenerateDomainError((d0, d1))
        self._domain = (d0, d1)
        self._range = (float(range[0]), float(range[1]))
        self.clamp = clamp
        self._d0, self._d1 = self._to_number(d0), self._to_number(d1)

    @property
    def domain(self) -> tuple[Any, Any]:
        return self._domain

    @property
    def range(self) -> tuple[float, float]:
        return self._range

    def _to_number(self, value: Any) -> float:
        return float(value)

    def _from_number(self, value: float) -> Any:
        return value

    def normalize(self, value: Any) -> float:
        """Position of ``value`` in the domain, 0 at d0 and 1 at d1."""
        t = (self._to_number(value) - self._d0) / (self._d1 - self._d0)
        if self.clamp:
            t = max(0.0, min(1.0, t))
        return t

    def __call__(self, value: Any) -> float:
        r0, r1 = self._range
        return _interpolate(r0, r1, self.normalize(value))

    def invert(self, value: float) -> Any:
        r0, r1 = self._range
        if r0 == r1:
            raise DegenerateDomainError((r0, r1))
        t = (value - r0) / (r1 - r0)
        if self.clamp:
            t = max(0.0, min(1.0, t))
        return self._from_number(_interpolate(self._d0, self._d1, t))

    def ticks(self, count: int = 10) -> TickSequence:
        return linear_ticks(self._d0, self._d1, count)

    def tick_format(self, count: int = 10) -> Callable[[Any], str]:
        return number_tick_format(self._d0, self._d1, count)

    def nice(self, count: int = 10) -> LinearScale:
        """A new scale whose domain is extended to round tick values."""
        return type(self)(nice_extent(self._d0, self._d1, count), self._range, clamp=self.clamp)

    def with_range(self, range: tuple[float, float]) -> LinearScale:
        return type(self)(self._domain, range, clamp=self.clamp)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(domain={self._domain!r}, range={self._range!r})"


class TimeScale(LinearScale):
    """Linear scale over datetimes; naive datetimes are treated as UTC."""

    kind = ScaleKind.TIME

    def __init__(
        self,
        domain: tuple[datetime, datetime],
        range: tuple[float, float] = (0.0, 1.0),
        *,
        clamp: bool = False,
    ):
        self._naive = domain[0].tzinfo is None
        super().__init__(domain, range, clamp=clamp)

    def _to_number(self, value: datetime) -> float:
        return as_utc(value).timestamp()

    def _from_number(self, value: float) -> datetime:
        dt = datetime.fromtimestamp(value, tz=timezone.utc)
        return dt.replace(tzinfo=None) if self._naive else dt

    def ticks(self, count: int = 10) -> TickSequence:
        return time_ticks(self._domain[0], self._domain[1], count)

    def tick_format(self, count: int = 10) -> Callable[[datetime], str]:
        return time_tick_format

    def nice(self, count: int = 10) -> TimeScale:
        return TimeScale(nice_time_extent(self._domain[0], self._domain[1], count), self._range, clamp=self.clamp)


def pad_degenerate_domain(domain: tuple[Any, Any]) -> tuple[Any, Any]:
    """Widen a zero-span domain to the minimal usable span.

    Numbers get ``±0.5`` and datetimes ``±1 day`` around the single value.
    """
    value = domain[0]
    if isinstance(value, datetime):
        return value - timedelta(days=1), value + timedelta(days=1)
    return value - 0.5, value + 0.5
