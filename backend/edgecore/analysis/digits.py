"""Last-digit distribution analysis.

Counts are built with ``np.bincount`` over the digits of the most recent
ticks; cold/hot digits use ``argmin``/``argmax`` so ties resolve to the
lowest digit.
"""

from typing import Callable, Sequence

import numpy as np

from edgecore.models import DigitAnalysis, DigitStats, Tick


def recent(ticks: Sequence[Tick], window: int) -> Sequence[Tick]:
    """Last ``window`` ticks (all of them if fewer, none if window <= 0)."""
    if window <= 0:
        return ticks[:0]
    return ticks[-window:]


def digit_counts(ticks: Sequence[Tick]) -> np.ndarray:
    """Histogram of last digits, always length 10."""
    digits = np.fromiter((t.last_digit for t in ticks), dtype=np.int64, count=len(ticks))
    return np.bincount(digits, minlength=10)


def digit_pct(ticks: Sequence[Tick], digit: int, window: int) -> float:
    """Share of ``digit`` over the last ``window`` ticks, in percent.

    An empty window reads as the uniform 10%.
    """
    window_ticks = recent(ticks, window)
    if not window_ticks:
        return 10.0
    hits = sum(1 for t in window_ticks if t.last_digit == digit)
    return hits / len(window_ticks) * 100


def share_pct(
    ticks: Sequence[Tick],
    predicate: Callable[[Tick], bool],
    window: int,
    default: float = 50.0,
) -> float:
    """Percentage of the last ``window`` ticks matching ``predicate``."""
    window_ticks = recent(ticks, window)
    if not window_ticks:
        return default
    hits = sum(1 for t in window_ticks if predicate(t))
    return hits / len(window_ticks) * 100


def price_change(ticks: Sequence[Tick], lookback: int) -> float | None:
    """Absolute move between the latest tick and the one ``lookback - 1`` back.

    Returns None with fewer than ``lookback`` ticks.
    """
    if lookback <= 0 or len(ticks) < lookback:
        return None
    return abs(ticks[-1].price - ticks[-lookback].price)


def analyze_digits(market: str, ticks: Sequence[Tick], window: int = 1000) -> DigitAnalysis:
    """
    Digit distribution over the last ``window`` ticks.

    Args:
        market: Instrument symbol (echoed back)
        ticks: Instrument history, oldest first
        window: Number of most recent ticks to analyze

    Returns:
        DigitAnalysis with counts, 2-decimal percentages, cold/hot digits,
        even share and share of digits >= 5
    """
    window_ticks = recent(ticks, window)
    counts = digit_counts(window_ticks)
    total = len(window_ticks)
    divisor = total or 1

    percentages = [round(float(c) / divisor * 100, 2) for c in counts]
    even = int(counts[0::2].sum())
    over5 = int(counts[5:].sum())

    return DigitAnalysis(
        market=market,
        window=window,
        total=total,
        counts=[int(c) for c in counts],
        percentages=percentages,
        cold_digit=int(np.argmin(counts)),
        hot_digit=int(np.argmax(counts)),
        even_pct=round(even / divisor * 100, 2),
        over5_pct=round(over5 / divisor * 100, 2),
    )


def digit_stats(ticks: Sequence[Tick]) -> DigitStats:
    """Per-tick digit summary over the 100/1000 most recent ticks."""
    last100 = recent(ticks, 100)
    last1000 = recent(ticks, 1000)

    counts100 = digit_counts(last100)
    counts1000 = digit_counts(last1000)
    total100 = len(last100) or 1
    total1000 = len(last1000) or 1

    even100 = int(counts100[0::2].sum())
    over5_100 = int(counts100[5:].sum())
    change = price_change(ticks, 10)

    return DigitStats(
        counts100=[int(c) for c in counts100],
        counts1000=[int(c) for c in counts1000],
        digit_pcts=[float(c) / total1000 * 100 for c in counts1000],
        even_pct=even100 / total100 * 100,
        odd_pct=(total100 - even100) / total100 * 100,
        over5_pct=over5_100 / total100 * 100,
        under5_pct=(total100 - over5_100) / total100 * 100,
        price_change10=change if change is not None else 0.0,
        total_ticks=len(ticks),
        last20_digits=[t.last_digit for t in recent(ticks, 20)],
    )
