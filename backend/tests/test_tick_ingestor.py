"""Tests for tick parsing and the ingest path."""

import logging
from unittest.mock import patch

import orjson
import pytest

from derivedge.services import Broadcaster, TickIngestor, parse_tick_message
from derivedge.storage import HistoryStore
from edgecore.models import EvenOdd, RiseFall


def tick_frame(symbol="R_75", quote="1234.56", epoch=1700000000) -> str:
    return orjson.dumps(
        {"msg_type": "tick", "tick": {"symbol": symbol, "quote": quote, "epoch": epoch}}
    ).decode()


@pytest.fixture
def ingestor(noon):
    return TickIngestor(
        store=HistoryStore(capacity=100),
        broadcaster=Broadcaster(),
        markets=["R_75", "R_10"],
        clock=lambda: noon,
    )


class TestParseTickMessage:
    """Tests for parse_tick_message."""

    def test_valid(self):
        """Test a well-formed tick message."""
        tick = parse_tick_message(orjson.loads(tick_frame()))
        assert tick.instrument == "R_75"
        assert tick.price == 1234.56
        assert tick.last_digit == 6
        assert tick.epoch == 1700000000

    def test_numeric_quote(self):
        """Test numeric quotes use the configured precision."""
        message = {"msg_type": "tick", "tick": {"symbol": "R_75", "quote": 1234.5, "epoch": 1}}
        assert parse_tick_message(message).last_digit == 0
        assert parse_tick_message(message, decimals=1).last_digit == 5

    @pytest.mark.parametrize(
        "message",
        [
            {"msg_type": "ohlc", "tick": {}},
            {"msg_type": "tick"},
            {"msg_type": "tick", "tick": "oops"},
            {"msg_type": "tick", "tick": {"symbol": "R_75", "epoch": 1}},
            {"msg_type": "tick", "tick": {"symbol": "R_75", "quote": "1.2x", "epoch": 1}},
            {"msg_type": "tick", "tick": {"symbol": "R_75", "quote": "12.34", "epoch": "soon"}},
            {"msg_type": "tick", "tick": {"symbol": "R_75", "quote": {"v": 1}, "epoch": 1}},
            ["not", "a", "dict"],
        ],
    )
    def test_malformed(self, message):
        """Test malformed messages raise ValueError."""
        with pytest.raises(ValueError):
            parse_tick_message(message)


class TestTickIngestor:
    """Tests for TickIngestor."""

    def test_defaults_for_configured_markets(self, ingestor):
        """Test configured markets are cached with neutral snapshots at start."""
        assert ingestor.broadcaster.prices() == {"R_75": None, "R_10": None}
        snap = ingestor.broadcaster.latest("R_75")
        assert snap.indicators.rsi == 50.0
        assert snap.signals.rise_fall == RiseFall.SCANNING
        assert snap.signals.even_odd == EvenOdd.WAITING

    def test_handle_valid_tick(self, ingestor, noon):
        """Test a good frame is appended, computed and cached."""
        snap = ingestor.handle_message(tick_frame(quote="1234.57"))

        assert snap is not None
        assert snap.tick.last_digit == 7
        assert ingestor.store.size("R_75") == 1
        assert ingestor.broadcaster.latest("R_75") is snap
        assert ingestor.broadcaster.last_update() == {"R_75": int(noon.timestamp() * 1000)}
        assert ingestor.tick_count == 1

    def test_indicators_follow_history(self, ingestor):
        """Test indicators are computed over the whole retained window."""
        for i in range(20):
            ingestor.handle_message(tick_frame(quote=f"{1000 + i}.00", epoch=i))
        snap = ingestor.broadcaster.latest("R_75")
        assert snap.indicators.rsi == 100.0
        assert snap.indicators.ema_for(5) == pytest.approx(1017.0)
        assert snap.stats.total_ticks == 20

    def test_invalid_json_counted(self, ingestor):
        """Test unparseable frames are discarded and counted."""
        assert ingestor.handle_message("{not json") is None
        assert ingestor.malformed_count == 1
        assert ingestor.store.size("R_75") == 0

    def test_missing_fields_counted(self, ingestor):
        """Test frames without usable fields are counted as malformed."""
        ingestor.handle_message('{"msg_type": "tick", "tick": {"symbol": "R_75"}}')
        ingestor.handle_message('{"msg_type": "tick", "tick": {"symbol": "R_75", "quote": "1.2a", "epoch": 1}}')
        assert ingestor.malformed_count == 2

    def test_error_payload_logged(self, ingestor, caplog):
        """Test feed error payloads are logged at warning and counted."""
        frame = '{"msg_type": "tick", "error": {"code": "InvalidSymbol", "message": "Symbol X is invalid"}}'
        with caplog.at_level(logging.WARNING):
            assert ingestor.handle_message(frame) is None
        assert ingestor.malformed_count == 1
        assert "Symbol X is invalid" in caplog.text

    def test_unconfigured_market_ignored(self, ingestor):
        """Test ticks for markets not configured are counted and dropped."""
        assert ingestor.handle_message(tick_frame(symbol="R_50")) is None
        assert ingestor.ignored_count == 1
        assert ingestor.store.size("R_50") == 0

    def test_ingestion_continues_after_bad_frames(self, ingestor):
        """Test malformed frames never stop later ticks."""
        ingestor.handle_message("garbage")
        ingestor.handle_message(tick_frame(symbol="R_50"))
        ingestor.handle_message(tick_frame())
        assert ingestor.tick_count == 1
        assert ingestor.store.size("R_75") == 1

    def test_processing_error_does_not_escape(self, ingestor):
        """Test an exception while computing is logged, not raised."""
        with patch.object(ingestor.engine, "evaluate", side_effect=RuntimeError("boom")):
            assert ingestor.handle_message(tick_frame()) is None
        assert ingestor.error_count == 1

    @pytest.mark.asyncio
    async def test_publishes_to_subscribers(self, ingestor):
        """Test each tick reaches subscribers after the init snapshot."""
        sub = ingestor.broadcaster.subscribe()
        ingestor.handle_message(tick_frame(quote="1234.51"))

        init = orjson.loads(await sub.get())
        tick = orjson.loads(await sub.get())
        assert init["type"] == "init"
        assert tick["type"] == "tick"
        assert tick["data"]["digit"] == 1
        assert tick["data"]["signals"]["rise_fall"] == "SCANNING"

    def test_compute_snapshot_unknown_market(self, ingestor):
        """Test unknown markets get neutral defaults without being stored."""
        snap = ingestor.compute_snapshot("NOPE")
        assert snap.tick is None
        assert snap.price is None
        assert snap.indicators.rsi == 50.0
        assert snap.last_update_ms is None
        assert "NOPE" not in ingestor.store.instruments()

    def test_reset(self, ingestor):
        """Test reset clears history and refreshes the cached snapshot."""
        ingestor.handle_message(tick_frame())
        ingestor.handle_message(tick_frame(symbol="R_10"))

        ingestor.reset("R_75")

        assert ingestor.store.size("R_75") == 0
        assert ingestor.store.size("R_10") == 1
        assert ingestor.broadcaster.latest("R_75").price is None
        assert ingestor.broadcaster.latest("R_10").price == 1234.56

    def test_status_without_feed(self, ingestor):
        """Test status reports a disabled feed and counters."""
        ingestor.handle_message("bad")
        status = ingestor.status()
        assert status["feed"] == "DISABLED"
        assert status["connected"] is False
        assert status["markets"] == ["R_75", "R_10"]
        assert status["malformed_count"] == 1
        assert status["history"] == {"R_75": 0, "R_10": 0}

    @pytest.mark.asyncio
    async def test_fan_out_until_unsubscribe(self, ingestor):
        """Test N ticks reach M subscribers, and a leaver stops after its last tick."""
        subs = [ingestor.broadcaster.subscribe() for _ in range(3)]
        received: dict[int, list[dict]] = {i: [] for i in range(3)}

        for n in range(6):
            ingestor.handle_message(tick_frame(quote=f"{1000 + n}.5{n}", epoch=1700000000 + n))
            for i, sub in enumerate(subs):
                while sub.pending:
                    raw = await sub.get()
                    if raw is None:
                        break
                    received[i].append(orjson.loads(raw))
            if n == 1:
                ingestor.broadcaster.unsubscribe(subs[1])

        all_epochs = [1700000000 + n for n in range(6)]
        for i in (0, 2):
            assert [m["type"] for m in received[i]] == ["init"] + ["tick"] * 6
            assert [m["data"]["epoch"] for m in received[i][1:]] == all_epochs
            assert [m["data"]["digit"] for m in received[i][1:]] == list(range(6))

        assert [m["type"] for m in received[1]] == ["init", "tick", "tick"]
        assert [m["data"]["epoch"] for m in received[1][1:]] == all_epochs[:2]
        assert subs[1].closed
        assert ingestor.broadcaster.subscriber_count == 2
