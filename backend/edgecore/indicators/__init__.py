"""Technical indicators (pure math, no I/O)."""

from edgecore.indicators.indicators import (
    DEFAULT_EMA_PERIODS,
    DEFAULT_RSI_PERIOD,
    IndicatorCalculator,
    ema,
    rsi,
)

__all__ = [
    "DEFAULT_EMA_PERIODS",
    "DEFAULT_RSI_PERIOD",
    "IndicatorCalculator",
    "ema",
    "rsi",
]
