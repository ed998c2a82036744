"""Tests for continuous, discrete and time scales."""

from __future__ import annotations

import math
from datetime import datetime

import pytest

from vizscene.core.errors import DegenerateDomainError, EmptyDomainError
from vizscene.scales import (
    BandScale,
    LinearScale,
    OrdinalScale,
    TimeScale,
    extent,
    linear_ticks,
    make_scale,
)
from vizscene.scales.ticks import nice_extent, number_tick_format


class TestExtent:
    """Tests for extent()."""

    def test_min_and_max(self) -> None:
        assert extent([3, 1, 4, 1, 5]) == (1, 5)

    def test_missing_values_are_ignored(self) -> None:
        assert extent([None, 2.0, math.nan, -1.0]) == (-1.0, 2.0)

    def test_key_accessor(self) -> None:
        rows = [{"v": 10}, {"v": -3}]
        assert extent(rows, key=lambda r: r["v"]) == (-3, 10)

    def test_empty_raises(self) -> None:
        with pytest.raises(EmptyDomainError):
            extent([])

    def test_all_missing_raises(self) -> None:
        with pytest.raises(EmptyDomainError):
            extent([None, math.nan])


class TestLinearScale:
    """Tests for LinearScale."""

    def test_endpoints_map_exactly(self) -> None:
        scale = LinearScale((0.1, 0.7), (20.0, 330.0))
        assert scale(0.1) == 20.0
        assert scale(0.7) == 330.0

    def test_reversed_range(self) -> None:
        y = LinearScale((0, 100), (400, 40))
        assert y(0) == 400
        assert y(100) == 40
        assert y(50) == pytest.approx(220)

    def test_invert_round_trips(self) -> None:
        scale = LinearScale((0, 10), (0, 500))
        assert scale.invert(scale(7.5)) == pytest.approx(7.5)

    def test_clamp(self) -> None:
        scale = LinearScale((0, 10), (0, 100), clamp=True)
        assert scale(20) == 100
        assert scale(-5) == 0

    def test_extrapolates_without_clamp(self) -> None:
        scale = LinearScale((0, 10), (0, 100))
        assert scale(20) == pytest.approx(200)

    def test_zero_span_domain_raises(self) -> None:
        with pytest.raises(DegenerateDomainError):
            LinearScale((5, 5), (0, 100))

    def test_ticks_are_nicely_rounded(self) -> None:
        ticks = list(LinearScale((0, 1)).ticks(10))
        assert ticks == [0.0, 0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0]

    def test_ticks_stay_inside_domain(self) -> None:
        ticks = list(linear_ticks(0.3, 9.7, 10))
        assert ticks == [1, 2, 3, 4, 5, 6, 7, 8, 9]

    def test_ticks_can_be_iterated_twice(self) -> None:
        ticks = linear_ticks(0, 10, 5)
        assert list(ticks) == list(ticks)
        assert len(ticks) == 6

    def test_nice_extends_domain(self) -> None:
        assert nice_extent(0.3, 9.7, 10) == (0.0, 10.0)
        scale = LinearScale((0.3, 9.7), (0, 100)).nice()
        assert scale.domain == (0.0, 10.0)

    def test_tick_format_uses_step_precision(self) -> None:
        assert number_tick_format(0, 1000, 10)(1000) == "1,000"
        assert number_tick_format(0, 1, 10)(0.5) == "0.5"


class TestTimeScale:
    """Tests for TimeScale."""

    def test_maps_datetimes_linearly(self) -> None:
        x = TimeScale((datetime(2000, 1, 1), datetime(2010, 1, 1)), (0, 100))
        assert x(datetime(2000, 1, 1)) == 0
        assert x(datetime(2010, 1, 1)) == 100
        assert 49 < x(datetime(2005, 1, 1)) < 51

    def test_invert_returns_naive_datetime(self) -> None:
        x = TimeScale((datetime(2000, 1, 1), datetime(2010, 1, 1)), (0, 100))
        value = x.invert(0)
        assert value == datetime(2000, 1, 1)
        assert value.tzinfo is None

    def test_yearly_ticks(self) -> None:
        x = TimeScale((datetime(2000, 1, 1), datetime(2010, 1, 1)), (0, 100))
        ticks = list(x.ticks(10))
        assert ticks[0] == datetime(2000, 1, 1)
        assert ticks[-1] == datetime(2010, 1, 1)
        assert len(ticks) == 11
        assert x.tick_format()(ticks[0]) == "2000"


class TestBandScale:
    """Tests for BandScale."""

    def test_three_categories_over_300(self) -> None:
        band = BandScale(["2020", "2021", "2022"], (0, 300))
        assert band.bandwidth() == 100
        assert band("2020") == 0
        assert band("2021") == 100
        assert band("2022") == 200

    def test_unknown_category_is_none(self) -> None:
        band = BandScale(["a", "b"], (0, 100))
        assert band("c") is None
        assert band.center("c") is None

    def test_inner_padding_shrinks_bandwidth(self) -> None:
        band = BandScale(["a", "b", "c"], (0, 300), padding=0.1)
        assert band.bandwidth() < band.step()
        assert band("a") >= 0
        assert band("c") + band.bandwidth() <= 300

    def test_reversed_range_puts_first_category_at_bottom(self) -> None:
        band = BandScale([0, 1, 2], (300, 0))
        assert band(0) == 200
        assert band(2) == 0

    def test_duplicates_collapse(self) -> None:
        band = BandScale(["a", "a", "b"], (0, 100))
        assert band.domain == ("a", "b")
        assert band.bandwidth() == 50

    def test_empty_domain_raises(self) -> None:
        with pytest.raises(EmptyDomainError):
            BandScale([], (0, 100))


class TestOrdinalScale:
    """Tests for OrdinalScale."""

    def test_cycles_short_palette(self) -> None:
        scale = OrdinalScale(["a", "b", "c"], ("red", "blue"))
        assert scale("a") == "red"
        assert scale("b") == "blue"
        assert scale("c") == "red"

    def test_unknown_maps_to_unknown_value(self) -> None:
        scale = OrdinalScale(["a"], ("red",), unknown="#ccc")
        assert scale("zzz") == "#ccc"

    def test_implicit_domain_grows(self) -> None:
        scale = OrdinalScale([], ("red", "blue"), implicit=True)
        assert scale("x") == "red"
        assert scale("y") == "blue"
        assert scale.domain == ("x", "y")


class TestMakeScale:
    """Tests for the scale factory."""

    def test_degenerate_linear_domain_is_padded(self) -> None:
        scale = make_scale("linear", (5, 5), (0, 100))
        assert scale.domain == (4.5, 5.5)
        assert scale(5) == pytest.approx(50)

    def test_degenerate_time_domain_is_padded(self) -> None:
        day = datetime(2020, 6, 1)
        scale = make_scale("time", (day, day), (0, 100))
        assert scale(day) == pytest.approx(50)

    @pytest.mark.parametrize(
        ("kind", "output"),
        [
            ("linear", (0, 100)),
            ("time", (0, 100)),
            ("sequential", "RdYlBu"),
            ("quantize", ("#a", "#b", "#c")),
            ("band", (0, 100)),
        ],
    )
    def test_empty_domain_raises(self, kind: str, output: object) -> None:
        with pytest.raises(EmptyDomainError):
            make_scale(kind, [], output)

    def test_ordinal_may_start_empty(self) -> None:
        scale = make_scale("ordinal", [], ["red", "blue"], implicit=True)
        assert scale("x") == "red"

    def test_band_kind(self) -> None:
        scale = make_scale("band", ["x", "y"], (0, 10))
        assert isinstance(scale, BandScale)

    def test_ordinal_palette_name(self) -> None:
        scale = make_scale("ordinal", ["a", "b"], "category10")
        assert scale("a") == "#1f77b4"

    def test_unknown_kind_raises(self) -> None:
        with pytest.raises(ValueError):
            make_scale("logarithmic", (1, 10))
