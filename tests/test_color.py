"""Tests for colour palettes and colour scales."""

from __future__ import annotations

import pytest

from vizscene.core.errors import DegenerateDomainError, EmptyDomainError
from vizscene.scales import CATEGORY10, QuantizeScale, SequentialColorScale, interpolator, make_scale, palette
from vizscene.scales.color import GREENS7

SEVEN = ("#000001", "#000002", "#000003", "#000004", "#000005", "#000006", "#000007")


class TestPalette:
    """Tests for palette()."""

    def test_greens_seven(self) -> None:
        assert palette("greens", 7) == GREENS7

    def test_categorical_truncates(self) -> None:
        assert palette("category10", 3) == CATEGORY10[:3]

    def test_explicit_colours_pass_through(self) -> None:
        assert palette(["red", "blue"]) == ("red", "blue")

    def test_colormap_is_sampled(self) -> None:
        colors = palette("viridis", 5)
        assert len(colors) == 5
        assert all(c.startswith("#") and len(c) == 7 for c in colors)
        assert len(set(colors)) == 5

    def test_unknown_name_raises(self) -> None:
        with pytest.raises(KeyError):
            palette("not-a-palette", 3)


class TestSequentialColorScale:
    """Tests for SequentialColorScale."""

    def test_endpoints(self) -> None:
        scale = SequentialColorScale((0, 10), interpolator(["#000000", "#ffffff"]))
        assert scale(0) == "#000000"
        assert scale(10) == "#ffffff"

    def test_clamps_outside_domain(self) -> None:
        scale = SequentialColorScale((0, 10), interpolator(["#000000", "#ffffff"]))
        assert scale(20) == "#ffffff"
        assert scale(-5) == "#000000"

    def test_reversed_domain(self) -> None:
        scale = SequentialColorScale((10, 0), interpolator(["#000000", "#ffffff"]))
        assert scale(10) == "#000000"
        assert scale(0) == "#ffffff"

    def test_quantiles(self) -> None:
        scale = SequentialColorScale((0, 10), interpolator("RdYlBu"))
        assert scale.quantiles(11) == pytest.approx([float(i) for i in range(11)])
        assert scale.quantiles(1) == [0.0]


class TestQuantizeScale:
    """Tests for QuantizeScale."""

    def test_equal_width_thresholds(self) -> None:
        scale = QuantizeScale((0, 70), SEVEN)
        assert scale.thresholds() == pytest.approx([10, 20, 30, 40, 50, 60])

    def test_buckets(self) -> None:
        scale = QuantizeScale((0, 70), SEVEN)
        assert scale(0) == SEVEN[0]
        assert scale(15) == SEVEN[1]
        assert scale(70) == SEVEN[6]

    def test_threshold_value_belongs_to_upper_bucket(self) -> None:
        scale = QuantizeScale((0, 70), SEVEN)
        assert scale(10) == SEVEN[1]

    def test_out_of_domain_values_clamp_to_end_buckets(self) -> None:
        scale = QuantizeScale((0, 70), SEVEN)
        assert scale(-100) == SEVEN[0]
        assert scale(1000) == SEVEN[6]

    def test_invert_extent(self) -> None:
        scale = QuantizeScale((0, 70), SEVEN)
        assert scale.invert_extent(SEVEN[0]) == pytest.approx((0, 10))
        assert scale.invert_extent(SEVEN[3]) == pytest.approx((30, 40))
        assert scale.invert_extent(SEVEN[6]) == pytest.approx((60, 70))

    def test_invert_extent_covers_every_value(self) -> None:
        scale = QuantizeScale((2.6, 75.1), GREENS7)
        for value in (2.6, 10.0, 33.3, 50.0, 75.1):
            lo, hi = scale.invert_extent(scale(value))
            assert lo <= value <= hi

    def test_reversed_domain_is_normalized(self) -> None:
        scale = QuantizeScale((70, 0), SEVEN)
        assert scale.domain == (0.0, 70.0)
        assert scale(15) == SEVEN[1]

    def test_unknown_colour_raises(self) -> None:
        scale = QuantizeScale((0, 70), SEVEN)
        with pytest.raises(ValueError):
            scale.invert_extent("#ffffff")

    def test_duplicate_colours_rejected(self) -> None:
        with pytest.raises(ValueError):
            QuantizeScale((0, 1), ("red", "red"))

    def test_empty_range_raises(self) -> None:
        with pytest.raises(EmptyDomainError):
            QuantizeScale((0, 1), ())

    def test_collapsed_domain_raises(self) -> None:
        with pytest.raises(DegenerateDomainError):
            QuantizeScale((5, 5), SEVEN)

    def test_factory_pads_collapsed_domain(self) -> None:
        """Test that a single-valued dataset still gets distinct, containing buckets."""
        colors = SEVEN[:3]
        scale = make_scale("quantize", (5.0, 5.0), colors)
        assert scale.domain == (4.5, 5.5)
        assert len(set(scale.thresholds())) == 2
        lo, hi = scale.invert_extent(scale(5.0))
        assert lo < 5.0 < hi
        assert scale(5.0) == colors[1]

    def test_factory_builds_quantize_from_palette_name(self) -> None:
        scale = make_scale("quantize", (0, 70), "greens", k=7)
        assert scale.range == GREENS7
