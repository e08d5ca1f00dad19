"""Boolean-condition-count readiness checks.

Every threshold readiness check in the system has the same shape: an
ordered list of named boolean conditions, scored by how many hold. This
module provides that evaluator once, plus a registry of named bot
profiles built on it.

Usage:
    @register_profile("my_bot")
    def my_bot(thresholds: ReadinessThresholds) -> list[Condition]:
        ...

    evaluator = ReadinessEvaluator(build_profile("my_bot", thresholds))
    result = evaluator.evaluate(context, profile="my_bot")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Sequence

from edgecore.analysis import digit_pct, price_change, share_pct
from edgecore.models import IndicatorState, ReadinessThresholds, ReadinessTier, Tick

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReadinessContext:
    """Inputs every condition may read."""

    ticks: Sequence[Tick]
    indicators: IndicatorState
    price: float | None
    now: datetime

    @property
    def rsi(self) -> float:
        return self.indicators.rsi

    @property
    def utc_hour(self) -> int:
        if self.now.tzinfo is None:
            return self.now.hour
        return self.now.astimezone(timezone.utc).hour


@dataclass(frozen=True, slots=True)
class Condition:
    """A named boolean check over a ReadinessContext."""

    name: str
    check: Callable[[ReadinessContext], bool]


@dataclass(slots=True)
class ReadinessResult:
    """Outcome of evaluating one condition list."""

    profile: str
    conditions: dict[str, bool]
    met: int
    tier: ReadinessTier

    @property
    def total(self) -> int:
        return len(self.conditions)

    @property
    def all_met(self) -> bool:
        return self.met == self.total

    def to_dict(self) -> dict:
        return {
            "profile": self.profile,
            "conditions": dict(self.conditions),
            "met": self.met,
            "total": self.total,
            "tier": self.tier.value,
        }


class ReadinessEvaluator:
    """Score an ordered condition list and map the count to a tier."""

    def __init__(
        self,
        conditions: Sequence[Condition],
        ready_count: int = 3,
        near_count: int = 2,
    ):
        self.conditions = tuple(conditions)
        self.ready_count = ready_count
        self.near_count = near_count

    def tier_for(self, met: int) -> ReadinessTier:
        if met >= self.ready_count:
            return ReadinessTier.READY
        if met >= self.near_count:
            return ReadinessTier.NEAR
        return ReadinessTier.MONITORING

    def evaluate(self, context: ReadinessContext, profile: str = "") -> ReadinessResult:
        results = {c.name: bool(c.check(context)) for c in self.conditions}
        met = sum(results.values())
        return ReadinessResult(
            profile=profile,
            conditions=results,
            met=met,
            tier=self.tier_for(met),
        )


# =============================================================================
# Profile registry
# =============================================================================

ProfileFactory = Callable[[ReadinessThresholds], list[Condition]]

_PROFILES: dict[str, ProfileFactory] = {}


def register_profile(name: str):
    """Decorator to register a condition-list factory under a profile name.

    Raises:
        ValueError: If a profile with the same name is already registered.
    """

    def decorator(factory: ProfileFactory) -> ProfileFactory:
        if name in _PROFILES:
            raise ValueError(f"Readiness profile '{name}' is already registered")
        _PROFILES[name] = factory
        logger.debug(f"Registered readiness profile: {name}")
        return factory

    return decorator


def build_profile(name: str, thresholds: ReadinessThresholds | None = None) -> list[Condition]:
    """Build the condition list for a registered profile.

    Raises:
        KeyError: If no profile is registered under the given name.
    """
    factory = _PROFILES.get(name)
    if factory is None:
        available = ", ".join(sorted(_PROFILES)) or "(none)"
        raise KeyError(f"Unknown readiness profile '{name}'. Available: {available}")
    return factory(thresholds or ReadinessThresholds())


def list_profiles() -> list[str]:
    """Registered profile names, in registration order."""
    return list(_PROFILES)


# -----------------------------------------------------------------------------
# Shared condition builders
# -----------------------------------------------------------------------------

def price_moving(lookback: int, minimum: float) -> Condition:
    def check(ctx: ReadinessContext) -> bool:
        change = price_change(ctx.ticks, lookback)
        return change is not None and change >= minimum

    return Condition("price_moving", check)


def trading_window(start_hour: int, end_hour: int) -> Condition:
    return Condition("trading_window", lambda ctx: start_hour <= ctx.utc_hour < end_hour)


def news_clear() -> Condition:
    # No news feed is wired in; the slot keeps the five-condition shape.
    return Condition("news_clear", lambda ctx: True)


# -----------------------------------------------------------------------------
# Bot profiles
# -----------------------------------------------------------------------------

DIGIT_PROFILES: dict[str, int] = {
    "nuclear9": 9,
    "zerokiller": 0,
    "mirror8": 8,
    "onestreak": 1,
}


def _digit_profile(digit: int) -> ProfileFactory:
    def factory(th: ReadinessThresholds) -> list[Condition]:
        def digit_extreme(ctx: ReadinessContext) -> bool:
            pct = digit_pct(ctx.ticks, digit, th.frequency_window)
            return pct <= th.cold_pct or pct >= th.hot_pct

        return [
            Condition("digit_extreme", digit_extreme),
            Condition(
                "rsi_extreme",
                lambda ctx: ctx.rsi <= th.rsi_extreme_low or ctx.rsi >= th.rsi_extreme_high,
            ),
            price_moving(th.price_move_lookback, th.price_move_min),
            trading_window(th.window_start_hour, th.window_end_hour),
            news_clear(),
        ]

    return factory


for _name, _digit in DIGIT_PROFILES.items():
    register_profile(_name)(_digit_profile(_digit))


@register_profile("firebias")
def firebias(th: ReadinessThresholds) -> list[Condition]:
    def high_digit_bias(ctx: ReadinessContext) -> bool:
        pct = share_pct(ctx.ticks, lambda t: t.last_digit >= 5, th.firebias_window)
        return pct >= th.bias_pct or pct <= th.bias_pct

    return [
        Condition("high_digit_bias", high_digit_bias),
        Condition("rsi_off_center", lambda ctx: ctx.rsi > 50 or ctx.rsi < 50),
        price_moving(th.price_move_lookback, th.firebias_move_min),
        trading_window(th.firebias_start_hour, th.firebias_end_hour),
        news_clear(),
    ]


@register_profile("underbeast")
def underbeast(th: ReadinessThresholds) -> list[Condition]:
    def low_digit_bias(ctx: ReadinessContext) -> bool:
        pct = share_pct(ctx.ticks, lambda t: t.is_low, th.frequency_window)
        return pct >= th.bias_pct or pct <= th.bias_pct

    return [
        Condition("low_digit_bias", low_digit_bias),
        Condition(
            "rsi_outside_band",
            lambda ctx: ctx.rsi < th.underbeast_rsi_low or ctx.rsi > th.underbeast_rsi_high,
        ),
        price_moving(th.underbeast_move_lookback, th.underbeast_move_min),
        trading_window(th.wide_start_hour, th.wide_end_hour),
        news_clear(),
    ]


@register_profile("evenstreak")
def evenstreak(th: ReadinessThresholds) -> list[Condition]:
    def even_bias(ctx: ReadinessContext) -> bool:
        pct = share_pct(ctx.ticks, lambda t: t.is_even, th.frequency_window)
        return pct >= th.bias_pct or pct < th.bias_pct

    return [
        Condition("even_bias", even_bias),
        # Vacuously true with fewer than two ticks
        Condition("last_two_even", lambda ctx: all(t.is_even for t in ctx.ticks[-2:])),
        Condition(
            "rsi_outside_band",
            lambda ctx: ctx.rsi < th.evenstreak_rsi_low or ctx.rsi > th.evenstreak_rsi_high,
        ),
        trading_window(th.wide_start_hour, th.wide_end_hour),
        news_clear(),
    ]


def build_bot_evaluators(
    thresholds: ReadinessThresholds | None = None,
) -> dict[str, ReadinessEvaluator]:
    """One evaluator per registered profile."""
    th = thresholds or ReadinessThresholds()
    return {
        name: ReadinessEvaluator(
            build_profile(name, th),
            ready_count=th.ready_count,
            near_count=th.near_count,
        )
        for name in list_profiles()
    }
