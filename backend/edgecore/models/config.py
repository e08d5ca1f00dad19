"""Signal and readiness threshold models.

The numbers below are product-tuned values carried over from the live
dashboard. They are configuration, not derived quantities.
"""

from __future__ import annotations

from pydantic import BaseModel


class SignalThresholds(BaseModel):
    """Thresholds for the per-tick categorical signals."""

    # Indicator periods
    ema_periods: tuple[int, ...] = (5, 10, 20, 50, 200)
    rsi_period: int = 14

    # Window sizes (in ticks)
    digit_window: int = 20
    rise_fall_min_ticks: int = 20
    digit_min_ticks: int = 10

    # Rise/Fall
    rise_rsi_low: float = 50.0
    rise_rsi_high: float = 70.0
    fall_rsi_low: float = 30.0
    fall_rsi_high: float = 50.0
    rsi_flat_low: float = 45.0
    rsi_flat_high: float = 55.0

    # Even/Odd
    dominance_count: int = 14
    even_rsi_low: float = 40.0
    even_rsi_high: float = 55.0
    odd_rsi_low: float = 45.0
    odd_rsi_high: float = 65.0

    # Over/Under
    over_rsi: float = 55.0
    under_rsi: float = 45.0

    # Momentum buckets
    momentum_high: float = 60.0
    momentum_low: float = 40.0

    # Matches/Differs
    volatility_window: int = 10
    high_volatility: float = 0.5

    # Greenlight checklists
    greenlight_even_count: int = 13
    greenlight_odd_count: int = 7
    greenlight_ema_band: float = 0.001  # price vs ema20, as a ratio


class ReadinessThresholds(BaseModel):
    """Thresholds for the bot readiness profiles."""

    frequency_window: int = 1000
    cold_pct: float = 9.0
    hot_pct: float = 11.5
    rsi_extreme_low: float = 32.0
    rsi_extreme_high: float = 64.0
    price_move_lookback: int = 10
    price_move_min: float = 0.04
    window_start_hour: int = 9  # UTC, inclusive
    window_end_hour: int = 17  # UTC, exclusive

    # firebias
    firebias_window: int = 100
    firebias_move_min: float = 0.02
    firebias_start_hour: int = 8
    firebias_end_hour: int = 18

    # underbeast
    underbeast_rsi_low: float = 45.0
    underbeast_rsi_high: float = 55.0
    underbeast_move_lookback: int = 5
    underbeast_move_min: float = 0.015

    # evenstreak
    evenstreak_rsi_low: float = 48.0
    evenstreak_rsi_high: float = 52.0

    # firebias / underbeast / evenstreak share the wide trading window
    wide_start_hour: int = 7
    wide_end_hour: int = 19

    bias_pct: float = 50.0

    # Tier cut-offs (met-condition counts)
    ready_count: int = 3
    near_count: int = 2
