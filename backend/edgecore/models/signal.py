"""Signal state models."""

from dataclasses import dataclass, field
from enum import Enum


class RiseFall(str, Enum):
    """Price direction signal."""

    RISE = "RISE"
    FALL = "FALL"
    FLAT = "FLAT"
    NEUTRAL = "NEUTRAL"
    SCANNING = "SCANNING"  # Not enough ticks yet


class EvenOdd(str, Enum):
    """Last-digit parity signal."""

    EVEN = "EVEN"
    ODD = "ODD"
    NEUTRAL = "NEUTRAL"
    NO_TRADE = "NO_TRADE"
    WAITING = "WAITING"  # Not enough ticks yet


class OverUnder(str, Enum):
    """Last-digit half signal (0-4 vs 5-9)."""

    OVER = "OVER"
    UNDER = "UNDER"
    NEUTRAL = "NEUTRAL"
    SCANNING = "SCANNING"


class Trend(str, Enum):
    """EMA stack alignment."""

    BULL = "BULL"
    BEAR = "BEAR"
    FLAT = "FLAT"


class Momentum(str, Enum):
    """RSI momentum bucket."""

    STRONG_UP = "STRONG_UP"
    STRONG_DOWN = "STRONG_DOWN"
    NEUTRAL = "NEUTRAL"


class MatchesDiffers(str, Enum):
    """Digit repetition signal."""

    MATCHES = "MATCHES"
    DIFFERS = "DIFFERS"
    ANALYZING = "ANALYZING"


class ReadinessTier(str, Enum):
    """Readiness tier from a boolean-condition count."""

    READY = "READY"
    NEAR = "NEAR"
    MONITORING = "MONITORING"


@dataclass(slots=True)
class SignalState:
    """Categorical signals for one instrument.

    A pure function of indicator state, tick window, price and time;
    discarded and rebuilt on every tick.
    """

    rise_fall: RiseFall = RiseFall.SCANNING
    even_odd: EvenOdd = EvenOdd.WAITING
    even_count: int = 0
    odd_count: int = 0
    over_under: OverUnder = OverUnder.SCANNING
    low_count: int = 0
    high_count: int = 0
    even_streak: int = 0
    odd_streak: int = 0
    rise_streak: int = 0
    trend: Trend = Trend.FLAT
    momentum: Momentum = Momentum.NEUTRAL
    matches_differs: MatchesDiffers = MatchesDiffers.ANALYZING
    greenlight: bool = False
    greenlight_even: bool = False
    greenlight_odd: bool = False
    bot_scores: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "rise_fall": self.rise_fall.value,
            "even_odd": self.even_odd.value,
            "even_count": self.even_count,
            "odd_count": self.odd_count,
            "over_under": self.over_under.value,
            "low_count": self.low_count,
            "high_count": self.high_count,
            "even_streak": self.even_streak,
            "odd_streak": self.odd_streak,
            "rise_streak": self.rise_streak,
            "trend": self.trend.value,
            "momentum": self.momentum.value,
            "matches_differs": self.matches_differs.value,
            "greenlight": self.greenlight,
            "greenlight_even": self.greenlight_even,
            "greenlight_odd": self.greenlight_odd,
            "bot_scores": dict(self.bot_scores),
        }
