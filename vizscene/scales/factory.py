from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Union

from ..core.enums import ScaleKind
from ..core.errors import EmptyDomainError
from ..core.logging_config import get_logger
from .color import QuantizeScale, SequentialColorScale, interpolator, palette
from .continuous import LinearScale, TimeScale, pad_degenerate_domain
from .discrete import BandScale, OrdinalScale

logger = get_logger(__name__)

Scale = Union[LinearScale, TimeScale, BandScale, OrdinalScale, SequentialColorScale, QuantizeScale]


def make_scale(
    kind: ScaleKind | str,
    domain: Sequence[Any],
    range: Any = (0.0, 1.0),
    **options: Any,
) -> Scale:
    """Build a scale of the given kind.

    Args:
        kind: One of the ScaleKind values
        domain: ``[min, max]`` for continuous kinds, categories for band/ordinal
        range: Output extent; for colour kinds a palette name, colour list or
            (sequential) colormap name
        **options: Kind-specific options (``padding``, ``clamp``, ``implicit`` ...)

    Returns:
        The constructed scale

    Raises:
        EmptyDomainError: If the domain is empty (ordinal scales excepted,
            they may grow their domain implicitly)

    Notes:
        A continuous or quantized domain that collapsed to a single value is
        widened with ``pad_degenerate_domain`` and logged, so a one-record
        dataset still renders instead of dividing by zero.
    """
    kind = ScaleKind(kind)

    if kind is not ScaleKind.ORDINAL and len(domain) == 0:
        raise EmptyDomainError(f"{kind.value} scale needs a non-empty domain")

    if kind in (ScaleKind.LINEAR, ScaleKind.TIME, ScaleKind.SEQUENTIAL):
        lo, hi = _continuous_domain(kind, domain)
        if kind is ScaleKind.LINEAR:
            return LinearScale((lo, hi), tuple(range), **options)
        if kind is ScaleKind.TIME:
            return TimeScale((lo, hi), tuple(range), **options)
        return SequentialColorScale((lo, hi), interpolator(range))

    if kind is ScaleKind.BAND:
        return BandScale(domain, tuple(range), **options)

    if kind is ScaleKind.ORDINAL:
        colors = palette(range) if isinstance(range, str) else tuple(range)
        return OrdinalScale(domain, colors, **options)

    # quantize
    k = options.pop("k", None)
    colors = palette(range, k) if isinstance(range, str) else tuple(range)
    return QuantizeScale(_continuous_domain(kind, domain), colors)


def _continuous_domain(kind: ScaleKind, domain: Sequence[Any]) -> tuple[Any, Any]:
    lo, hi = domain[0], domain[-1]
    if lo != hi:
        return lo, hi
    padded = pad_degenerate_domain((lo, hi))
    logger.warning(
        f"Degenerate {kind.value} domain {lo!r}; substituting {padded!r}",
        extra={"scale": kind.value},
    )
    return padded
