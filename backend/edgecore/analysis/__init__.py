"""Tick distribution analysis."""

from edgecore.analysis.digits import (
    analyze_digits,
    digit_counts,
    digit_pct,
    digit_stats,
    price_change,
    recent,
    share_pct,
)

__all__ = [
    "analyze_digits",
    "digit_counts",
    "digit_pct",
    "digit_stats",
    "price_change",
    "recent",
    "share_pct",
]
