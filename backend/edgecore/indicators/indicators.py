"""Technical indicators for signal generation.

Both indicators are recomputed from the full tick history on every tick.
Sums are accumulated left to right in float64 (no pairwise ``np.sum``),
so values are bit-for-bit those of the plain recurrences.
"""

from typing import Sequence

import numpy as np

from edgecore.models import IndicatorState, NEUTRAL_RSI

DEFAULT_EMA_PERIODS = (5, 10, 20, 50, 200)
DEFAULT_RSI_PERIOD = 14


def ema(prices: Sequence[float], period: int) -> float:
    """
    Calculate the Exponential Moving Average at the latest price.

    Seeded with the simple average of the first ``period`` prices, then
    ``ema = price * k + ema * (1 - k)`` with ``k = 2 / (period + 1)``.

    Args:
        prices: Price sequence, oldest first
        period: EMA period

    Returns:
        EMA value. With fewer than ``period`` prices, the latest price
        (or 0.0 when there are none).
    """
    if period <= 0:
        raise ValueError(f"EMA period must be positive, got {period}")

    if len(prices) < period:
        return float(prices[-1]) if len(prices) else 0.0

    multiplier = 2 / (period + 1)

    # Plain loop: builtin sum() compensates float error on 3.12+
    total = 0.0
    for i in range(period):
        total += float(prices[i])
    value = total / period

    for i in range(period, len(prices)):
        value = float(prices[i]) * multiplier + value * (1 - multiplier)

    return value


def rsi(prices: Sequence[float], period: int = DEFAULT_RSI_PERIOD) -> float:
    """
    Calculate a simple (non-Wilder) Relative Strength Index.

    Gains and losses over the last ``period`` price changes are each
    averaged over ``period`` (zero entries included), not smoothed.

    Args:
        prices: Price sequence, oldest first
        period: RSI period

    Returns:
        RSI in [0, 100]. 50.0 with fewer than ``period + 1`` prices,
        100.0 when there were no losses.
    """
    if period <= 0:
        raise ValueError(f"RSI period must be positive, got {period}")

    if len(prices) < period + 1:
        return NEUTRAL_RSI

    # Only the last `period` changes are used, so only the last
    # `period + 1` prices are needed.
    arr = np.asarray(prices[-(period + 1):], dtype=np.float64)
    changes = np.diff(arr)

    gains = 0.0
    losses = 0.0
    for change in changes.tolist():
        if change > 0:
            gains += change
        elif change < 0:
            losses += -change

    avg_gain = gains / period
    avg_loss = losses / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return 100 - (100 / (1 + rs))


# =============================================================================
# IndicatorCalculator class
# =============================================================================

class IndicatorCalculator:
    """Calculator for all indicators carried in an instrument snapshot."""

    def __init__(
        self,
        ema_periods: Sequence[int] = DEFAULT_EMA_PERIODS,
        rsi_period: int = DEFAULT_RSI_PERIOD,
    ):
        self.ema_periods = tuple(ema_periods)
        self.rsi_period = rsi_period

    def calculate(self, prices: Sequence[float]) -> IndicatorState:
        """
        Calculate indicator state over the full price history.

        Args:
            prices: Every retained price for the instrument, oldest first

        Returns:
            IndicatorState with one EMA per configured period and the RSI
        """
        return IndicatorState(
            ema={period: ema(prices, period) for period in self.ema_periods},
            rsi=rsi(prices, self.rsi_period),
        )
