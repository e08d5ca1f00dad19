"""Digit distribution models."""

from dataclasses import dataclass, field


@dataclass(slots=True)
class DigitAnalysis:
    """Digit distribution over the last ``window`` ticks of one instrument."""

    market: str
    window: int
    total: int = 0
    counts: list[int] = field(default_factory=lambda: [0] * 10)
    percentages: list[float] = field(default_factory=lambda: [0.0] * 10)
    cold_digit: int = 0  # Least frequent (lowest digit on ties)
    hot_digit: int = 0  # Most frequent (lowest digit on ties)
    even_pct: float = 0.0
    over5_pct: float = 0.0  # Digits >= 5

    def to_dict(self) -> dict:
        return {
            "market": self.market,
            "window": self.window,
            "total": self.total,
            "counts": list(self.counts),
            "percentages": list(self.percentages),
            "cold_digit": self.cold_digit,
            "hot_digit": self.hot_digit,
            "even_pct": self.even_pct,
            "over5_pct": self.over5_pct,
        }


@dataclass(slots=True)
class DigitStats:
    """Per-tick digit summary carried alongside indicators and signals."""

    counts100: list[int] = field(default_factory=lambda: [0] * 10)
    counts1000: list[int] = field(default_factory=lambda: [0] * 10)
    digit_pcts: list[float] = field(default_factory=lambda: [0.0] * 10)
    even_pct: float = 0.0
    odd_pct: float = 0.0
    over5_pct: float = 0.0
    under5_pct: float = 0.0
    price_change10: float = 0.0
    total_ticks: int = 0
    last20_digits: list[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "counts100": list(self.counts100),
            "counts1000": list(self.counts1000),
            "digit_pcts": list(self.digit_pcts),
            "even_pct": self.even_pct,
            "odd_pct": self.odd_pct,
            "over5_pct": self.over5_pct,
            "under5_pct": self.under5_pct,
            "price_change10": self.price_change10,
            "total_ticks": self.total_ticks,
            "last20_digits": list(self.last20_digits),
        }
