"""Discrete scales: band positions and ordinal categories."""

from __future__ import annotations

import math
from collections.abc import Hashable, Iterable, Sequence
from typing import Any

from ..core.enums import ScaleKind
from ..core.errors import EmptyDomainError


def _unique(values: Iterable[Hashable]) -> tuple[Hashable, ...]:
    seen: dict[Hashable, None] = {}
    for v in values:
        seen.setdefault(v, None)
    return tuple(seen)


class BandScale:
    """Evenly partitions a range into one slot per category.

    ``scale(v)`` is the leading edge of v's slot and ``bandwidth()`` the slot
    width left after inner padding. A reversed range (``r0 > r1``) lays the
    first category at ``r0``'s end.
    """

    kind = ScaleKind.BAND

    def __init__(
        self,
        domain: Iterable[Hashable],
        range: tuple[float, float] = (0.0, 1.0),
        *,
        padding: float = 0.0,
        padding_inner: float | None = None,
        padding_outer: float | None = None,
        align: float = 0.5,
        round: bool = False,
    ):
        self._domain = _unique(domain)
        if not self._domain:
            raise EmptyDomainError("band scale needs at least one category")
        self._range = (float(range[0]), float(range[1]))
        self.padding_inner = padding if padding_inner is None else padding_inner
        self.padding_outer = padding if padding_outer is None else padding_outer
        self.align = max(0.0, min(1.0, align))
        self.round = round
        self._layout()

    def _layout(self) -> None:
        n = len(self._domain)
        r0, r1 = self._range
        reverse = r1 < r0
        start, stop = (r1, r0) if reverse else (r0, r1)
        pi, po = self.padding_inner, self.padding_outer

        step = (stop - start) / max(1.0, n - pi + po * 2)
        if self.round:
            step = math.floor(step)
        start += (stop - start - step * (n - pi)) * self.align
        bandwidth = step * (1 - pi)
        if self.round:
            start = float(round(start))
            bandwidth = float(round(bandwidth))

        values = [start + step * i for i in range(n)]
        if reverse:
            values.reverse()
        self._step = step
        self._bandwidth = bandwidth
        self._positions = dict(zip(self._domain, values))

    @property
    def domain(self) -> tuple[Hashable, ...]:
        return self._domain

    @property
    def range(self) -> tuple[float, float]:
        return self._range

    def __call__(self, value: Hashable) -> float | None:
        return self._positions.get(value)

    def bandwidth(self) -> float:
        return self._bandwidth

    def step(self) -> float:
        return self._step

    def center(self, value: Hashable) -> float | None:
        pos = self(value)
        return None if pos is None else pos + self._bandwidth / 2

    def ticks(self, count: int | None = None) -> tuple[Hashable, ...]:
        """Band axes tick every category."""
        return self._domain

    def __repr__(self) -> str:
        return f"BandScale(n={len(self._domain)}, range={self._range!r}, bandwidth={self._bandwidth!r})"


class OrdinalScale:
    """Maps categories to palette entries, cycling when the palette is short.

    With ``implicit=True`` unseen categories are appended to the domain in
    encounter order; otherwise they map to ``unknown``.
    """

    kind = ScaleKind.ORDINAL

    def __init__(
        self,
        domain: Iterable[Hashable] = (),
        range: Sequence[Any] = (),
        *,
        implicit: bool = False,
        unknown: Any = None,
    ):
        if not range:
            raise EmptyDomainError("ordinal scale needs a non-empty range")
        self._range = tuple(range)
        self._index: dict[Hashable, int] = {}
        for v in domain:
            self._index.setdefault(v, len(self._index))
        self.implicit = implicit
        self.unknown = unknown

    @property
    def domain(self) -> tuple[Hashable, ...]:
        return tuple(self._index)

    @property
    def range(self) -> tuple[Any, ...]:
        return self._range

    def __call__(self, value: Hashable) -> Any:
        i = self._index.get(value)
        if i is None:
            if not self.implicit:
                return self.unknown
            i = self._index[value] = len(self._index)
        return self._range[i % len(self._range)]

    def __repr__(self) -> str:
        return f"OrdinalScale(domain={self.domain!r})"
