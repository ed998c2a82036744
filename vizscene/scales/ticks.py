"""Tick generation for axes.

Linear ticks use a power-of-ten step with a 1/2/5/10 factor so the tick count
lands close to the requested count. Time ticks pick a calendar interval
(seconds through years) whose duration best matches ``span / count``.
"""

from __future__ import annotations

import math
from bisect import bisect_right
from collections.abc import Callable, Iterator
from datetime import datetime, timedelta, timezone
from typing import Generic, TypeVar

T = TypeVar("T")

_E10 = math.sqrt(50)
_E5 = math.sqrt(10)
_E2 = math.sqrt(2)


class TickSequence(Generic[T]):
    """A lazy, finite, restartable sequence of tick values.

    Each call to ``iter()`` regenerates the ticks from scratch, so the same
    sequence can be walked by several axes or re-walked after a re-render.
    """

    def __init__(self, factory: Callable[[], Iterator[T]]):
        self._factory = factory

    def __iter__(self) -> Iterator[T]:
        return self._factory()

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __repr__(self) -> str:
        return f"TickSequence({list(self)!r})"


def _tick_spec(start: float, stop: float, count: float) -> tuple[int, int, float]:
    step = (stop - start) / max(0.0, count)
    power = math.floor(math.log10(step))
    error = step / 10.0**power
    if error >= _E10:
        factor = 10
    elif error >= _E5:
        factor = 5
    elif error >= _E2:
        factor = 2
    else:
        factor = 1

    if power < 0:
        inc = 10.0 ** (-power) / factor
        i1 = round(start * inc)
        i2 = round(stop * inc)
        if i1 / inc < start:
            i1 += 1
        if i2 / inc > stop:
            i2 -= 1
        inc = -inc
    else:
        inc = 10.0**power * factor
        i1 = round(start / inc)
        i2 = round(stop / inc)
        if i1 * inc < start:
            i1 += 1
        if i2 * inc > stop:
            i2 -= 1

    if i2 < i1 and 0.5 <= count < 2:
        return _tick_spec(start, stop, count * 2)
    return i1, i2, inc


def tick_increment(start: float, stop: float, count: float) -> float:
    """Signed tick increment; negative values mean ``1 / -inc``."""
    if stop == start or not count > 0:
        return 0.0
    return _tick_spec(start, stop, count)[2]


def tick_step(start: float, stop: float, count: float) -> float:
    """Tick step as a plain positive (or negative for reversed extent) number."""
    reverse = stop < start
    inc = tick_increment(stop, start, count) if reverse else tick_increment(start, stop, count)
    step = -1.0 / inc if inc < 0 else inc
    return -step if reverse else step


def _linear_values(start: float, stop: float, count: float) -> Iterator[float]:
    if not count > 0:
        return
    if start == stop:
        yield float(start)
        return
    reverse = stop < start
    lo, hi = (stop, start) if reverse else (start, stop)
    i1, i2, inc = _tick_spec(lo, hi, count)
    if not i2 >= i1:
        return
    n = i2 - i1 + 1
    for i in range(n):
        k = i2 - i if reverse else i1 + i
        yield k / -inc if inc < 0 else k * inc


def linear_ticks(start: float, stop: float, count: float = 10) -> TickSequence[float]:
    """Nicely-rounded ticks covering ``[start, stop]``."""
    return TickSequence(lambda: _linear_values(start, stop, count))


def nice_extent(start: float, stop: float, count: float = 10) -> tuple[float, float]:
    """Extend an extent outward to whole tick steps."""
    reverse = stop < start
    if reverse:
        start, stop = stop, start
    prestep = None
    for _ in range(10):
        step = tick_increment(start, stop, count)
        if step == prestep:
            break
        if step > 0:
            start = math.floor(start / step) * step
            stop = math.ceil(stop / step) * step
        elif step < 0:
            start = math.ceil(start * step) / step
            stop = math.floor(stop * step) / step
        else:
            break
        prestep = step
    return (stop, start) if reverse else (start, stop)


def number_tick_format(start: float, stop: float, count: float = 10) -> Callable[[float], str]:
    """Formatter with just enough decimals for the tick step, comma-grouped."""
    step = abs(tick_step(start, stop, count)) if start != stop else 1.0
    decimals = max(0, -math.floor(math.log10(step))) if step > 0 else 0

    def fmt(value: float) -> str:
        return f"{value:,.{decimals}f}"

    return fmt


# --- time ---------------------------------------------------------------

SECOND = 1.0
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE
DAY = 24 * HOUR
WEEK = 7 * DAY
MONTH = 30 * DAY
YEAR = 365 * DAY

# (unit, step, approximate duration in seconds)
TIME_INTERVALS: tuple[tuple[str, int, float], ...] = (
    ("second", 1, SECOND),
    ("second", 5, 5 * SECOND),
    ("second", 15, 15 * SECOND),
    ("second", 30, 30 * SECOND),
    ("minute", 1, MINUTE),
    ("minute", 5, 5 * MINUTE),
    ("minute", 15, 15 * MINUTE),
    ("minute", 30, 30 * MINUTE),
    ("hour", 1, HOUR),
    ("hour", 3, 3 * HOUR),
    ("hour", 6, 6 * HOUR),
    ("hour", 12, 12 * HOUR),
    ("day", 1, DAY),
    ("day", 2, 2 * DAY),
    ("week", 1, WEEK),
    ("month", 1, MONTH),
    ("month", 3, 3 * MONTH),
    ("year", 1, YEAR),
)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _floor_unit(dt: datetime, unit: str) -> datetime:
    if unit == "second":
        return dt.replace(microsecond=0)
    if unit == "minute":
        return dt.replace(second=0, microsecond=0)
    if unit == "hour":
        return dt.replace(minute=0, second=0, microsecond=0)
    day = dt.replace(hour=0, minute=0, second=0, microsecond=0)
    if unit == "day":
        return day
    if unit == "week":
        # Sunday-based weeks
        return day - timedelta(days=(day.weekday() + 1) % 7)
    if unit == "month":
        return day.replace(day=1)
    if unit == "year":
        return day.replace(month=1, day=1)
    raise ValueError(f"Unknown time unit: {unit}")


def _offset_unit(dt: datetime, unit: str, n: int = 1) -> datetime:
    if unit == "second":
        return dt + timedelta(seconds=n)
    if unit == "minute":
        return dt + timedelta(minutes=n)
    if unit == "hour":
        return dt + timedelta(hours=n)
    if unit == "day":
        return dt + timedelta(days=n)
    if unit == "week":
        return dt + timedelta(weeks=n)
    if unit == "month":
        months = dt.year * 12 + (dt.month - 1) + n
        return dt.replace(year=months // 12, month=months % 12 + 1)
    if unit == "year":
        return dt.replace(year=dt.year + n)
    raise ValueError(f"Unknown time unit: {unit}")


def _aligned(dt: datetime, unit: str, step: int) -> bool:
    if step <= 1:
        return True
    if unit == "second":
        return dt.second % step == 0
    if unit == "minute":
        return dt.minute % step == 0
    if unit == "hour":
        return dt.hour % step == 0
    if unit == "day":
        return (dt.day - 1) % step == 0
    if unit == "month":
        return (dt.month - 1) % step == 0
    if unit == "year":
        return dt.year % step == 0
    return True


def time_interval(start: datetime, stop: datetime, count: float) -> tuple[str, int]:
    """Choose the calendar interval (unit, step) for roughly ``count`` ticks."""
    span = abs((as_utc(stop) - as_utc(start)).total_seconds())
    target = span / count if count > 0 else span
    durations = [d for _, _, d in TIME_INTERVALS]
    i = bisect_right(durations, target)
    if i == len(TIME_INTERVALS):
        lo = min(as_utc(start), as_utc(stop))
        hi = max(as_utc(start), as_utc(stop))
        years = tick_step(lo.year + lo.timetuple().tm_yday / 366, hi.year + hi.timetuple().tm_yday / 366, count)
        return "year", max(1, int(round(abs(years))))
    if i == 0:
        return "second", 1
    prev, nxt = TIME_INTERVALS[i - 1], TIME_INTERVALS[i]
    unit, step, _ = prev if target / prev[2] < nxt[2] / target else nxt
    return unit, step


def _time_values(start: datetime, stop: datetime, count: float) -> Iterator[datetime]:
    naive = start.tzinfo is None
    lo, hi = as_utc(start), as_utc(stop)
    reverse = hi < lo
    if reverse:
        lo, hi = hi, lo
    unit, step = time_interval(lo, hi, count)

    values: list[datetime] = []
    t = _floor_unit(lo, unit)
    if t < lo:
        t = _offset_unit(t, unit)
    while t <= hi:
        if _aligned(t, unit, step):
            values.append(t.replace(tzinfo=None) if naive else t)
        t = _offset_unit(t, unit)
    if reverse:
        values.reverse()
    yield from values


def time_ticks(start: datetime, stop: datetime, count: float = 10) -> TickSequence[datetime]:
    """Calendar-aligned ticks between two datetimes."""
    return TickSequence(lambda: _time_values(start, stop, count))


def nice_time_extent(start: datetime, stop: datetime, count: float = 10) -> tuple[datetime, datetime]:
    """Extend a time extent outward to the chosen interval's boundaries."""
    naive = start.tzinfo is None
    lo, hi = as_utc(start), as_utc(stop)
    reverse = hi < lo
    if reverse:
        lo, hi = hi, lo
    unit, step = time_interval(lo, hi, count)
    floor = _floor_unit(lo, unit)
    while not _aligned(floor, unit, step):
        floor = _offset_unit(floor, unit, -1)
    ceil = _floor_unit(hi, unit)
    if ceil < hi:
        ceil = _offset_unit(ceil, unit)
    while not _aligned(ceil, unit, step):
        ceil = _offset_unit(ceil, unit)
    if naive:
        floor, ceil = floor.replace(tzinfo=None), ceil.replace(tzinfo=None)
    return (ceil, floor) if reverse else (floor, ceil)


def time_tick_format(value: datetime) -> str:
    """Multi-scale date label: the coarsest unit at which ``value`` is aligned."""
    if value.microsecond:
        return f".{value.microsecond // 1000:03d}"
    if value.second:
        return value.strftime(":%S")
    if value.minute:
        return value.strftime("%I:%M")
    if value.hour:
        return value.strftime("%I %p")
    if value.day != 1:
        if value.weekday() != 6:
            return value.strftime("%a %d")
        return value.strftime("%b %d")
    if value.month != 1:
        return value.strftime("%B")
    return value.strftime("%Y")
