"""Tick ingestion: feed frames in, published market snapshots out.

Each good tick runs append -> indicators -> signals -> publish
synchronously, under the instrument's lock, so subscribers and point
queries never see a window whose indicators lag behind it.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Sequence

import orjson
from picows import ws_connect

from derivedge.clients import ConnectionState, DERIV_WS_URL, DerivTickWebSocket
from derivedge.services.broadcaster import Broadcaster, utc_now
from derivedge.storage import HistoryStore
from edgecore.analysis import digit_stats
from edgecore.indicators import IndicatorCalculator
from edgecore.models import MarketSnapshot, Tick
from edgecore.signals import SignalEngine

logger = logging.getLogger(__name__)


def parse_tick_message(message: dict[str, Any], decimals: int = 2) -> Tick:
    """
    Build a Tick from a decoded Deriv ``tick`` message.

    Args:
        message: Decoded JSON object
        decimals: Precision used when the quote arrives as a number

    Returns:
        Tick

    Raises:
        ValueError: If the message is not a tick or lacks usable fields
    """
    if not isinstance(message, dict) or message.get("msg_type") != "tick":
        raise ValueError(f"Not a tick message: {str(message)[:80]}")

    body = message.get("tick")
    if not isinstance(body, dict):
        raise ValueError("Tick message has no tick object")

    symbol = body.get("symbol")
    quote = body.get("quote")
    epoch = body.get("epoch")
    if not symbol or quote is None or epoch is None:
        raise ValueError(f"Tick missing fields: {body}")

    try:
        return Tick.from_quote(str(symbol), quote, epoch, decimals)
    except TypeError as e:
        raise ValueError(str(e)) from e


class TickIngestor:
    """Turn feed messages into per-instrument snapshots."""

    def __init__(
        self,
        store: HistoryStore,
        broadcaster: Broadcaster,
        markets: Sequence[str],
        calculator: IndicatorCalculator | None = None,
        engine: SignalEngine | None = None,
        quote_decimals: int = 2,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.broadcaster = broadcaster
        self.markets = [m.upper() for m in markets]
        self._market_set = set(self.markets)
        self.engine = engine or SignalEngine()
        self.calculator = calculator or IndicatorCalculator(
            ema_periods=self.engine.thresholds.ema_periods,
            rsi_period=self.engine.thresholds.rsi_period,
        )
        self.quote_decimals = quote_decimals
        self._clock = clock
        self.feed: DerivTickWebSocket | None = None

        self.tick_count = 0
        self.malformed_count = 0
        self.ignored_count = 0
        self.error_count = 0

        # Neutral defaults so every configured market is queryable at once
        for market in self.markets:
            self.broadcaster.update(self.compute_snapshot(market))

    # ------------------------------------------------------------------
    # Feed lifecycle
    # ------------------------------------------------------------------

    def create_feed(
        self,
        url: str = DERIV_WS_URL,
        reconnect_delay: float = 3.0,
        connect=ws_connect,
    ) -> DerivTickWebSocket:
        """Attach the upstream feed that drives ``handle_message``."""
        self.feed = DerivTickWebSocket(
            symbols=self.markets,
            on_message=self.handle_message,
            url=url,
            reconnect_delay=reconnect_delay,
            connect=connect,
        )
        return self.feed

    async def start(self) -> None:
        if self.feed:
            await self.feed.start()

    async def stop(self) -> None:
        if self.feed:
            await self.feed.stop()

    # ------------------------------------------------------------------
    # Ingest path
    # ------------------------------------------------------------------

    def handle_message(self, raw: str | bytes) -> MarketSnapshot | None:
        """Process one raw feed frame. Never raises."""
        try:
            message = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            self.malformed_count += 1
            logger.debug(f"Discarding unparseable frame: {e}")
            return None

        if isinstance(message, dict) and "error" in message:
            self.malformed_count += 1
            error = message["error"]
            detail = error.get("message", error) if isinstance(error, dict) else error
            logger.warning(f"Deriv feed error: {detail}")
            return None

        try:
            tick = parse_tick_message(message, self.quote_decimals)
        except ValueError as e:
            self.malformed_count += 1
            logger.debug(f"Discarding malformed frame: {e}")
            return None

        if tick.instrument not in self._market_set:
            self.ignored_count += 1
            logger.debug(f"Ignoring tick for unconfigured market {tick.instrument}")
            return None

        try:
            return self.process_tick(tick)
        except Exception as e:
            self.error_count += 1
            logger.error(f"Failed to process tick for {tick.instrument}: {e}")
            return None

    def process_tick(self, tick: Tick) -> MarketSnapshot:
        """Append, recompute and publish one tick atomically per instrument."""
        with self.store.lock(tick.instrument):
            self.store.append(tick.instrument, tick)
            snapshot = self.compute_snapshot(tick.instrument)
            self.broadcaster.publish(snapshot)
        self.tick_count += 1
        return snapshot

    def compute_snapshot(self, instrument: str) -> MarketSnapshot:
        """
        Build a snapshot from the instrument's current window.

        Nothing is appended or published. Unknown or empty instruments get
        neutral defaults (RSI 50, SCANNING/WAITING signals).
        """
        ticks = self.store.snapshot(instrument)
        now = self._clock()
        indicators = self.calculator.calculate([t.price for t in ticks])
        signals = self.engine.evaluate(indicators, ticks, now=now)
        return MarketSnapshot(
            instrument=instrument,
            tick=ticks[-1] if ticks else None,
            indicators=indicators,
            signals=signals,
            stats=digit_stats(ticks),
            last_update_ms=int(now.timestamp() * 1000) if ticks else None,
        )

    def reset(self, instrument: str) -> MarketSnapshot:
        """Clear one instrument's history and refresh its cached snapshot."""
        if instrument not in self.store.instruments():
            return self.compute_snapshot(instrument)
        with self.store.lock(instrument):
            self.store.reset(instrument)
            snapshot = self.compute_snapshot(instrument)
            self.broadcaster.update(snapshot)
        return snapshot

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def is_configured(self, instrument: str) -> bool:
        return instrument in self._market_set

    def status(self) -> dict[str, Any]:
        if self.feed is None:
            state = "DISABLED"
            attempts = connections = 0
        else:
            state = self.feed.state.value
            attempts = self.feed.connect_attempts
            connections = self.feed.connections

        return {
            "feed": state,
            "connected": state == ConnectionState.CONNECTED.value,
            "connect_attempts": attempts,
            "connections": connections,
            "markets": list(self.markets),
            "history": {m: self.store.size(m) for m in self.markets},
            "tick_count": self.tick_count,
            "malformed_count": self.malformed_count,
            "ignored_count": self.ignored_count,
            "error_count": self.error_count,
        }
