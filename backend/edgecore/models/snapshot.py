"""Combined per-instrument snapshot."""

from dataclasses import dataclass, field

from edgecore.models.digits import DigitStats
from edgecore.models.indicators import IndicatorState
from edgecore.models.signal import SignalState
from edgecore.models.tick import Tick


@dataclass(slots=True)
class MarketSnapshot:
    """Latest computed state for one instrument.

    This is the unit that is both published to subscribers and cached for
    point-in-time queries. ``tick`` is None when the instrument has no
    history yet.
    """

    instrument: str
    tick: Tick | None = None
    indicators: IndicatorState = field(default_factory=IndicatorState)
    signals: SignalState = field(default_factory=SignalState)
    stats: DigitStats = field(default_factory=DigitStats)
    last_update_ms: int | None = None

    @property
    def price(self) -> float | None:
        return self.tick.price if self.tick else None

    def to_dict(self) -> dict:
        """Serialize as the tick message payload."""
        return {
            "instrument": self.instrument,
            "price": self.price,
            "digit": self.tick.last_digit if self.tick else None,
            "epoch": self.tick.epoch if self.tick else None,
            "indicators": self.indicators.to_dict(),
            "signals": self.signals.to_dict(),
            "stats": self.stats.to_dict(),
        }
