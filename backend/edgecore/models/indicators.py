"""Indicator state model."""

from dataclasses import dataclass, field

NEUTRAL_RSI = 50.0


@dataclass(slots=True)
class IndicatorState:
    """EMA values keyed by period plus the current RSI.

    Rebuilt from the full history window on every tick; an empty state
    (no EMAs, RSI 50) is the neutral default for unknown instruments.
    """

    ema: dict[int, float] = field(default_factory=dict)
    rsi: float = NEUTRAL_RSI

    def ema_for(self, period: int) -> float:
        """Get the EMA for a period (0.0 if it was not computed)."""
        return self.ema.get(period, 0.0)

    def to_dict(self) -> dict:
        data = {f"ema{period}": value for period, value in sorted(self.ema.items())}
        data["rsi"] = self.rsi
        return data
