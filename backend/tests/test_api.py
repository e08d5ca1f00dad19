"""Tests for the HTTP and WebSocket surface."""

import orjson
import pytest
from fastapi.testclient import TestClient

from derivedge.config import Settings
from derivedge.main import create_app


def tick_frame(symbol: str, quote: str, epoch: int) -> str:
    return orjson.dumps(
        {"msg_type": "tick", "tick": {"symbol": symbol, "quote": quote, "epoch": epoch}}
    ).decode()


@pytest.fixture
def client():
    settings = Settings(feed_enabled=False, markets=["R_75", "R_10"], history_capacity=500)
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
def fed_client(client):
    """Client whose R_75 history holds 30 ticks."""
    ingestor = client.app.state.ingestor
    for i in range(30):
        ingestor.handle_message(tick_frame("R_75", f"{1000 + i * 0.1:.2f}", 1700000000 + i))
    return client


class TestServiceEndpoints:
    """Tests for root, health and status."""

    def test_root(self, client):
        """Test service info."""
        body = client.get("/").json()
        assert body["name"] == "DerivEdge"
        assert body["markets"] == ["R_75", "R_10"]

    def test_health(self, client):
        """Test liveness."""
        assert client.get("/health").json() == {"status": "healthy"}

    def test_status(self, client):
        """Test feed state and counters."""
        body = client.get("/api/status").json()
        assert body["feed"] == "DISABLED"
        assert body["subscribers"] == 0
        assert body["tick_count"] == 0


class TestQueryEndpoints:
    """Tests for the point-in-time queries."""

    def test_prices_before_ticks(self, client):
        """Test configured markets are present with no price yet."""
        body = client.get("/api/prices").json()
        assert body == {"prices": {"R_75": None, "R_10": None}, "last_update": {}}

    def test_prices_after_ticks(self, fed_client):
        """Test the latest price and a per-market update time."""
        fed_client.app.state.ingestor.handle_message(tick_frame("R_10", "512.34", 1700000100))
        body = fed_client.get("/api/prices").json()
        assert body["prices"]["R_75"] == pytest.approx(1002.9)
        assert body["prices"]["R_10"] == pytest.approx(512.34)
        assert set(body["last_update"]) == {"R_75", "R_10"}
        assert all(isinstance(ms, int) for ms in body["last_update"].values())

    def test_prices_update_time_is_per_market(self, fed_client):
        """Test markets without ticks have no update time."""
        body = fed_client.get("/api/prices").json()
        assert list(body["last_update"]) == ["R_75"]

    def test_ticks(self, fed_client):
        """Test recent ticks, market upper-cased, limit honoured."""
        body = fed_client.get("/api/ticks/r_75", params={"limit": 5}).json()
        assert body["market"] == "R_75"
        assert body["count"] == 5
        assert [t["epoch"] for t in body["ticks"]] == [1700000000 + i for i in range(25, 30)]

    def test_ticks_limit_validated(self, client):
        """Test limit must be positive."""
        assert client.get("/api/ticks/R_75", params={"limit": 0}).status_code == 422

    def test_stats(self, fed_client):
        """Test indicators, stats and signals for a market."""
        body = fed_client.get("/api/stats/R_75").json()
        assert body["market"] == "R_75"
        assert body["indicators"]["rsi"] == 100.0
        assert body["stats"]["total_ticks"] == 30
        assert body["signals"]["rise_streak"] == 29

    def test_stats_unknown_market(self, client):
        """Test unknown markets get neutral defaults, not an error."""
        response = client.get("/api/stats/nope")
        assert response.status_code == 200
        body = response.json()
        assert body["market"] == "NOPE"
        assert body["indicators"]["rsi"] == 50.0
        assert body["signals"]["rise_fall"] == "SCANNING"
        assert body["signals"]["even_odd"] == "WAITING"

    def test_signals(self, fed_client):
        """Test signals for every market with a millisecond timestamp."""
        body = fed_client.get("/api/signals").json()
        assert set(body["signals"]) == {"R_75", "R_10"}
        assert body["signals"]["R_75"]["rise_fall"] != "SCANNING"
        assert body["timestamp"] > 1_600_000_000_000

    def test_digit_analysis(self, fed_client):
        """Test digit distribution over a window."""
        body = fed_client.get("/api/digit-analysis/R_75", params={"window": 10}).json()
        assert body["total"] == 10
        assert sum(body["counts"]) == 10
        assert sum(body["percentages"]) == pytest.approx(100.0, abs=0.1)

    def test_digit_analysis_empty(self, client):
        """Test an empty market yields zeros."""
        body = client.get("/api/digit-analysis/R_10").json()
        assert body["total"] == 0

    def test_bots(self, fed_client):
        """Test readiness for every bot profile on the default market."""
        body = fed_client.get("/api/bots").json()
        assert body["market"] == "R_75"
        assert "nuclear9" in body["bots"]
        assert body["bots"]["nuclear9"]["total"] == 5
        assert body["bots"]["nuclear9"]["tier"] in ("READY", "NEAR", "MONITORING")
        assert set(body["checklists"]) == {"greenlight_even", "greenlight_odd"}

    def test_reset(self, fed_client):
        """Test resetting one market's tracker."""
        body = fed_client.post("/api/tracker/r_75/reset").json()
        assert body == {"market": "R_75", "cleared": True, "size": 0}
        assert fed_client.get("/api/prices").json()["prices"]["R_75"] is None


class TestTemplateEndpoints:
    """Tests for the template generators."""

    def test_pinescript(self, client):
        """Test script generation."""
        response = client.post("/api/pinescript", json={"strategy": "even-odd", "market": "R_75"})
        assert response.status_code == 200
        assert "//@version=5" in response.json()["script"]

    def test_pinescript_unknown(self, client):
        """Test unknown strategies."""
        body = client.post("/api/pinescript", json={"strategy": "x", "market": "R_75"}).json()
        assert body == {"script": "// Strategy not found"}

    def test_pinescript_missing_fields(self, client):
        """Test presence validation."""
        assert client.post("/api/pinescript", json={"market": "R_75"}).status_code == 422

    def test_dbot_xml(self, client):
        """Test bot workspace generation."""
        payload = {"bot_type": "nuclear9", "digit": 9, "market": "R_75"}
        body = client.post("/api/dbot-xml", json=payload).json()
        assert "DIGITMATCH" in body["xml"]
        assert '<field name="PREDICTION">9</field>' in body["xml"]

    def test_dbot_xml_validation(self, client):
        """Test missing fields and out-of-range digits are rejected."""
        assert client.post("/api/dbot-xml", json={"digit": 9}).status_code == 422
        payload = {"bot_type": "x", "digit": 10, "market": "R_75"}
        assert client.post("/api/dbot-xml", json=payload).status_code == 422


class TestWebSocket:
    """Tests for /ws."""

    def test_init_then_pong(self, fed_client):
        """Test the init snapshot arrives first and ping is answered."""
        with fed_client.websocket_connect("/ws") as ws:
            init = ws.receive_json()
            assert init["type"] == "init"
            assert init["data"]["prices"]["R_75"] == pytest.approx(1002.9)
            assert set(init["data"]["last_update"]) == {"R_75"}

            ws.send_json({"type": "ping"})
            assert ws.receive_json()["type"] == "pong"

            ws.send_text("not json")
            assert ws.receive_json()["data"]["message"] == "Invalid JSON"

            ws.send_json({"type": "snapshot"})
            assert ws.receive_json()["type"] == "init"

    def test_binary_frame_answered_with_error(self, client):
        """Test a binary frame gets an error reply and the socket stays usable."""
        with client.websocket_connect("/ws") as ws:
            assert ws.receive_json()["type"] == "init"

            ws.send_bytes(b'{"type": "ping"}')
            reply = ws.receive_json()
            assert reply["type"] == "error"
            assert reply["data"]["message"] == "Binary frames are not supported"

            ws.send_json({"type": "ping"})
            assert ws.receive_json()["type"] == "pong"
