"""Data models."""

from edgecore.models.tick import Tick, format_quote, last_digit
from edgecore.models.indicators import IndicatorState, NEUTRAL_RSI
from edgecore.models.signal import (
    EvenOdd,
    MatchesDiffers,
    Momentum,
    OverUnder,
    ReadinessTier,
    RiseFall,
    SignalState,
    Trend,
)
from edgecore.models.digits import DigitAnalysis, DigitStats
from edgecore.models.snapshot import MarketSnapshot
from edgecore.models.config import ReadinessThresholds, SignalThresholds

__all__ = [
    "Tick",
    "format_quote",
    "last_digit",
    "IndicatorState",
    "NEUTRAL_RSI",
    "EvenOdd",
    "MatchesDiffers",
    "Momentum",
    "OverUnder",
    "ReadinessTier",
    "RiseFall",
    "SignalState",
    "Trend",
    "DigitAnalysis",
    "DigitStats",
    "MarketSnapshot",
    "ReadinessThresholds",
    "SignalThresholds",
]
