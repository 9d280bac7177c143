"""Unit tests for report number formatting."""

from __future__ import annotations

import math
import sys

import pytest

from perflog.utils import format_number, round_to_sig_figs


@pytest.mark.unit
@pytest.mark.core
class TestRoundToSigFigs:
    """Test significant-figure rounding."""

    @pytest.mark.parametrize("figures", [1, 3, 4, 10])
    def test_zero_unchanged(self, figures: int) -> None:
        """Zero is returned as-is for any figure count."""
        assert round_to_sig_figs(0, figures) == 0
        assert round_to_sig_figs(0.0, figures) == 0.0

    def test_reduces_integer_digits(self) -> None:
        """Large values lose trailing digits."""
        assert round_to_sig_figs(1234, 2) == 1200

    def test_small_fraction(self) -> None:
        """Values below one keep the requested figures after leading zeros."""
        assert round_to_sig_figs(0.0056789, 3) == 0.00568

    def test_typical_frame_values(self) -> None:
        """Frame times and rates round to exact decimal doubles."""
        assert round_to_sig_figs(16.6666, 4) == 16.67
        assert round_to_sig_figs(1000 / 19, 4) == 52.63
        assert round_to_sig_figs(100 * 2 / 3, 3) == 66.7

    def test_negative_values(self) -> None:
        """Sign is preserved."""
        assert round_to_sig_figs(-1234.5, 3) == -1230
        assert round_to_sig_figs(-0.012345, 2) == -0.012

    def test_exact_powers_of_ten(self) -> None:
        """Powers of ten stay unchanged."""
        assert round_to_sig_figs(1000, 4) == 1000
        assert round_to_sig_figs(0.001, 3) == 0.001

    def test_already_short_value_unchanged(self) -> None:
        """Values with fewer figures than requested are unchanged."""
        assert round_to_sig_figs(2.5, 4) == 2.5
        assert round_to_sig_figs(60, 4) == 60

    def test_half_rounds_to_even(self) -> None:
        """Ties at the shifted decade round to the even integer."""
        assert round_to_sig_figs(125, 2) == 120
        assert round_to_sig_figs(135, 2) == 140

    def test_non_finite_unchanged(self) -> None:
        """Infinity and NaN pass through without raising."""
        assert round_to_sig_figs(math.inf, 4) == math.inf
        assert round_to_sig_figs(-math.inf, 4) == -math.inf
        assert math.isnan(round_to_sig_figs(math.nan, 4))

    def test_non_positive_figures_unchanged(self) -> None:
        """A figure count below one leaves the value alone."""
        assert round_to_sig_figs(1234.5678, 0) == 1234.5678

    def test_subnormal_values(self) -> None:
        """Values far below the normal range round without overflow."""
        assert round_to_sig_figs(1e-320, 4) == 1e-320
        assert round_to_sig_figs(5.56e-306, 3) == 5.56e-306
        assert round_to_sig_figs(5e-324, 4) == 5e-324

    def test_values_near_float_max(self) -> None:
        """A result that would overflow keeps the original value."""
        assert round_to_sig_figs(sys.float_info.max, 4) == sys.float_info.max
        assert round_to_sig_figs(1.7e308, 4) == 1.7e308
        assert round_to_sig_figs(-sys.float_info.max, 2) == -sys.float_info.max

    def test_carry_into_next_decade(self) -> None:
        assert round_to_sig_figs(9.9996, 4) == 10.0
        assert round_to_sig_figs(999.96, 4) == 1000.0


@pytest.mark.unit
@pytest.mark.core
class TestFormatNumber:
    """Test float rendering for report text."""

    def test_integral_values_drop_fraction(self) -> None:
        assert format_number(120.0) == "120"
        assert format_number(0.0) == "0"
        assert format_number(-0.0) == "0"
        assert format_number(1200) == "1200"

    def test_fractional_values_use_shortest_repr(self) -> None:
        assert format_number(16.67) == "16.67"
        assert format_number(0.00568) == "0.00568"
        assert format_number(1.5) == "1.5"

    def test_sentinels_for_non_finite(self) -> None:
        """Non-finite values render as explicit sentinel text."""
        assert format_number(math.inf) == "Infinity"
        assert format_number(-math.inf) == "-Infinity"
        assert format_number(math.nan) == "NaN"

    def test_sentinels_parse_back(self) -> None:
        """Sentinel text is accepted by float()."""
        assert float(format_number(math.inf)) == math.inf
        assert float(format_number(-math.inf)) == -math.inf
        assert math.isnan(float(format_number(math.nan)))
