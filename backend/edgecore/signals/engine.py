"""Signal engine: threshold rules over indicators and recent ticks.

This module is pure business logic with no I/O dependencies. Every rule
table is ordered and first-match-wins; the engine keeps no state between
calls, so the same inputs always give the same SignalState.
"""

from collections import Counter
from datetime import datetime, timezone
from typing import Sequence

from edgecore.models import (
    EvenOdd,
    IndicatorState,
    MatchesDiffers,
    Momentum,
    OverUnder,
    ReadinessThresholds,
    RiseFall,
    SignalState,
    SignalThresholds,
    Tick,
    Trend,
)
from edgecore.signals.readiness import (
    Condition,
    ReadinessContext,
    ReadinessEvaluator,
    ReadinessResult,
    build_bot_evaluators,
)


# =============================================================================
# Streaks (scan backward from the newest tick until the pattern breaks)
# =============================================================================

def even_streak(ticks: Sequence[Tick]) -> int:
    count = 0
    for tick in reversed(ticks):
        if not tick.is_even:
            break
        count += 1
    return count


def odd_streak(ticks: Sequence[Tick]) -> int:
    count = 0
    for tick in reversed(ticks):
        if tick.is_even:
            break
        count += 1
    return count


def rise_streak(ticks: Sequence[Tick]) -> int:
    """Consecutive strictly rising prices ending at the newest tick."""
    count = 0
    for i in range(len(ticks) - 1, 0, -1):
        if ticks[i].price <= ticks[i - 1].price:
            break
        count += 1
    return count


def trend_of(indicators: IndicatorState) -> Trend:
    ema20 = indicators.ema_for(20)
    ema50 = indicators.ema_for(50)
    ema200 = indicators.ema_for(200)
    if ema20 > ema50 > ema200:
        return Trend.BULL
    if ema20 < ema50 < ema200:
        return Trend.BEAR
    return Trend.FLAT


class SignalEngine:
    """Evaluate categorical signals for one instrument at a time."""

    def __init__(
        self,
        thresholds: SignalThresholds | None = None,
        readiness: ReadinessThresholds | None = None,
    ):
        self.thresholds = thresholds or SignalThresholds()
        self.readiness = readiness or ReadinessThresholds()
        self._bots = build_bot_evaluators(self.readiness)
        self._greenlight_even = ReadinessEvaluator(self._greenlight_even_conditions())
        self._greenlight_odd = ReadinessEvaluator(self._greenlight_odd_conditions())

    # -------------------------------------------------------------------------
    # Rule tables
    # -------------------------------------------------------------------------

    def rise_fall(
        self,
        indicators: IndicatorState,
        tick_count: int,
        price: float | None,
    ) -> RiseFall:
        th = self.thresholds
        if tick_count < th.rise_fall_min_ticks or price is None:
            return RiseFall.SCANNING

        rsi = indicators.rsi
        ema50 = indicators.ema_for(50)
        trend = trend_of(indicators)

        if trend == Trend.BULL and th.rise_rsi_low < rsi < th.rise_rsi_high and price > ema50:
            return RiseFall.RISE
        if trend == Trend.BEAR and th.fall_rsi_low < rsi < th.fall_rsi_high and price < ema50:
            return RiseFall.FALL
        if th.rsi_flat_low <= rsi <= th.rsi_flat_high:
            return RiseFall.FLAT
        return RiseFall.NEUTRAL

    def even_odd(self, last: Sequence[Tick], rsi: float) -> tuple[EvenOdd, int, int]:
        """Parity signal over the recent slice. Returns (signal, even, odd)."""
        th = self.thresholds
        if len(last) < th.digit_min_ticks:
            return EvenOdd.WAITING, 0, 0

        even = sum(1 for t in last if t.is_even)
        odd = len(last) - even

        if even >= th.dominance_count and th.even_rsi_low <= rsi <= th.even_rsi_high:
            signal = EvenOdd.EVEN
        elif odd >= th.dominance_count and th.odd_rsi_low <= rsi <= th.odd_rsi_high:
            signal = EvenOdd.ODD
        elif th.rsi_flat_low <= rsi <= th.rsi_flat_high:
            signal = EvenOdd.NO_TRADE
        else:
            signal = EvenOdd.NEUTRAL
        return signal, even, odd

    def over_under(self, last: Sequence[Tick], rsi: float) -> tuple[OverUnder, int, int]:
        """Digit-half signal over the recent slice. Returns (signal, low, high)."""
        th = self.thresholds
        if len(last) < th.digit_min_ticks:
            return OverUnder.SCANNING, 0, 0

        low = sum(1 for t in last if t.is_low)
        high = len(last) - low

        if low >= th.dominance_count and rsi > th.over_rsi:
            signal = OverUnder.OVER
        elif high >= th.dominance_count and rsi < th.under_rsi:
            signal = OverUnder.UNDER
        else:
            signal = OverUnder.NEUTRAL
        return signal, low, high

    def momentum(self, rsi: float) -> Momentum:
        if rsi > self.thresholds.momentum_high:
            return Momentum.STRONG_UP
        if rsi < self.thresholds.momentum_low:
            return Momentum.STRONG_DOWN
        return Momentum.NEUTRAL

    def matches_differs(self, ticks: Sequence[Tick], rsi: float) -> MatchesDiffers:
        th = self.thresholds
        last = ticks[-th.digit_window:]
        has_repeats = any(n >= 2 for n in Counter(t.last_digit for t in last).values())

        prices = [t.price for t in ticks[-th.volatility_window:]]
        volatility = max(prices) - min(prices) if len(prices) > 1 else 0.0
        high_vol = volatility > th.high_volatility

        if has_repeats and th.rsi_flat_low <= rsi <= th.rsi_flat_high and not high_vol:
            return MatchesDiffers.MATCHES
        if high_vol and (rsi > th.momentum_high or rsi < th.momentum_low):
            return MatchesDiffers.DIFFERS
        return MatchesDiffers.ANALYZING

    # -------------------------------------------------------------------------
    # Greenlight checklists
    # -------------------------------------------------------------------------

    def _recent_even(self, ctx: ReadinessContext) -> int:
        return sum(1 for t in ctx.ticks[-self.thresholds.digit_window:] if t.is_even)

    def _greenlight_even_conditions(self) -> list[Condition]:
        th = self.thresholds

        def near_ema20(ctx: ReadinessContext) -> bool:
            return ctx.price is not None and ctx.price <= ctx.indicators.ema_for(20) * (1 + th.greenlight_ema_band)

        return [
            Condition("even_dominance", lambda ctx: self._recent_even(ctx) >= th.greenlight_even_count),
            Condition("rsi_band", lambda ctx: th.even_rsi_low <= ctx.rsi <= th.even_rsi_high),
            Condition("near_ema20", near_ema20),
            Condition(
                "ema5_above_ema10",
                lambda ctx: ctx.indicators.ema_for(5) > ctx.indicators.ema_for(10),
            ),
        ]

    def _greenlight_odd_conditions(self) -> list[Condition]:
        th = self.thresholds
        return [
            Condition("odd_dominance", lambda ctx: self._recent_even(ctx) <= th.greenlight_odd_count),
            Condition("rsi_band", lambda ctx: th.odd_rsi_low <= ctx.rsi <= th.odd_rsi_high),
            Condition(
                "ema5_below_ema10",
                lambda ctx: ctx.indicators.ema_for(5) < ctx.indicators.ema_for(10),
            ),
        ]

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def _context(
        self,
        indicators: IndicatorState,
        ticks: Sequence[Tick],
        price: float | None,
        now: datetime | None,
    ) -> ReadinessContext:
        if price is None and ticks:
            price = ticks[-1].price
        return ReadinessContext(
            ticks=ticks,
            indicators=indicators,
            price=price,
            now=now or datetime.now(timezone.utc),
        )

    def evaluate_bots(
        self,
        indicators: IndicatorState,
        ticks: Sequence[Tick],
        price: float | None = None,
        now: datetime | None = None,
    ) -> dict[str, ReadinessResult]:
        """Readiness result for every registered bot profile."""
        ctx = self._context(indicators, ticks, price, now)
        return {name: ev.evaluate(ctx, profile=name) for name, ev in self._bots.items()}

    def evaluate_checklists(
        self,
        indicators: IndicatorState,
        ticks: Sequence[Tick],
        price: float | None = None,
        now: datetime | None = None,
    ) -> dict[str, ReadinessResult]:
        """Even/odd greenlight checklists."""
        ctx = self._context(indicators, ticks, price, now)
        return {
            "greenlight_even": self._greenlight_even.evaluate(ctx, profile="greenlight_even"),
            "greenlight_odd": self._greenlight_odd.evaluate(ctx, profile="greenlight_odd"),
        }

    def evaluate(
        self,
        indicators: IndicatorState,
        ticks: Sequence[Tick],
        price: float | None = None,
        now: datetime | None = None,
    ) -> SignalState:
        """
        Evaluate every signal for one instrument.

        Args:
            indicators: Freshly computed indicator state
            ticks: Instrument history, oldest first
            price: Current price (defaults to the newest tick's price)
            now: Evaluation time for hour-of-day rules (defaults to UTC now)

        Returns:
            SignalState
        """
        ctx = self._context(indicators, ticks, price, now)
        rsi = indicators.rsi
        last = ticks[-self.thresholds.digit_window:]

        rise_fall = self.rise_fall(indicators, len(ticks), ctx.price)
        eo_signal, even, odd = self.even_odd(last, rsi)
        ou_signal, low, high = self.over_under(last, rsi)

        return SignalState(
            rise_fall=rise_fall,
            even_odd=eo_signal,
            even_count=even,
            odd_count=odd,
            over_under=ou_signal,
            low_count=low,
            high_count=high,
            even_streak=even_streak(ticks),
            odd_streak=odd_streak(ticks),
            rise_streak=rise_streak(ticks),
            trend=trend_of(indicators),
            momentum=self.momentum(rsi),
            matches_differs=self.matches_differs(ticks, rsi),
            greenlight=rise_fall in (RiseFall.RISE, RiseFall.FALL),
            greenlight_even=self._greenlight_even.evaluate(ctx).all_met,
            greenlight_odd=self._greenlight_odd.evaluate(ctx).all_met,
            bot_scores={name: ev.evaluate(ctx, profile=name).met for name, ev in self._bots.items()},
        )
