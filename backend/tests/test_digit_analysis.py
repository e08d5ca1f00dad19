"""Tests for last-digit distribution analysis."""

import random

import pytest

from edgecore.analysis import analyze_digits, digit_counts, digit_pct, digit_stats, price_change, share_pct


class TestAnalyzeDigits:
    """Tests for analyze_digits."""

    def test_percentages_sum_to_100(self, make_ticks):
        """Test percentages over a non-empty window sum to ~100."""
        rng = random.Random(3)
        ticks = make_ticks([rng.randrange(10) for _ in range(777)])
        result = analyze_digits("R_75", ticks, window=1000)

        assert result.total == 777
        assert sum(result.counts) == 777
        assert sum(result.percentages) == pytest.approx(100.0, abs=0.1)

    def test_window_limits_ticks(self, make_ticks):
        """Test only the last `window` ticks are counted."""
        ticks = make_ticks([1] * 50 + [2] * 10)
        result = analyze_digits("R_75", ticks, window=10)

        assert result.total == 10
        assert result.counts[2] == 10
        assert result.percentages[2] == 100.0
        assert result.hot_digit == 2

    def test_cold_and_hot_ties_resolve_low(self, make_ticks):
        """Test ties pick the lowest digit."""
        ticks = make_ticks(list(range(10)) * 3)
        result = analyze_digits("R_75", ticks)
        assert result.cold_digit == 0
        assert result.hot_digit == 0

    def test_even_and_over5(self, make_ticks):
        """Test even share and share of digits >= 5."""
        ticks = make_ticks([0, 2, 5, 7])
        result = analyze_digits("R_75", ticks)
        assert result.even_pct == 50.0
        assert result.over5_pct == 50.0

    def test_empty(self):
        """Test an empty window yields zeros, not an error."""
        result = analyze_digits("NOPE", [], window=1000)
        assert result.total == 0
        assert result.counts == [0] * 10
        assert result.percentages == [0.0] * 10
        assert result.to_dict()["market"] == "NOPE"


class TestDigitHelpers:
    """Tests for the smaller digit helpers."""

    def test_digit_counts_length(self, make_ticks):
        """Test the histogram always has ten bins."""
        assert list(digit_counts(make_ticks([9, 9]))) == [0] * 9 + [2]
        assert len(digit_counts([])) == 10

    def test_digit_pct_empty_is_uniform(self):
        """Test an empty window reads as 10%."""
        assert digit_pct([], 9, 1000) == 10.0

    def test_share_pct_default(self, make_ticks):
        """Test share_pct default for empty windows and window clipping."""
        assert share_pct([], lambda t: True, 100) == 50.0
        ticks = make_ticks([1, 1, 2, 2])
        assert share_pct(ticks, lambda t: t.is_even, 2) == 100.0

    def test_price_change(self, make_ticks):
        """Test price change against the tick `lookback - 1` back."""
        ticks = make_ticks([0] * 10, prices=[100.0 + i for i in range(10)])
        assert price_change(ticks, 10) == 9.0
        assert price_change(ticks, 5) == 4.0
        assert price_change(ticks[:4], 5) is None


class TestDigitStats:
    """Tests for digit_stats."""

    def test_windows(self, make_ticks):
        """Test 100/1000 windows and derived percentages."""
        ticks = make_ticks([0] * 1000 + [5] * 100)
        stats = digit_stats(ticks)

        assert sum(stats.counts100) == 100
        assert stats.counts100[5] == 100
        assert sum(stats.counts1000) == 1000
        assert stats.digit_pcts[5] == pytest.approx(10.0)
        assert stats.over5_pct == 100.0
        assert stats.under5_pct == 0.0
        assert stats.odd_pct == 100.0
        assert stats.total_ticks == 1100
        assert stats.last20_digits == [5] * 20

    def test_empty(self):
        """Test stats for no ticks."""
        stats = digit_stats([])
        assert stats.total_ticks == 0
        assert stats.price_change10 == 0.0
        assert stats.last20_digits == []
