"""REST API routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Request
from pydantic import BaseModel, Field

from derivedge.config import Settings
from derivedge.services import Broadcaster, TickIngestor, dbot_xml, pine_script
from derivedge.services.broadcaster import now_ms
from edgecore.analysis import analyze_digits
from edgecore.models import MarketSnapshot

logger = logging.getLogger(__name__)

router = APIRouter()


# Request models
class PineScriptRequest(BaseModel):
    """Pine Script generation request."""

    strategy: str  # "rise-fall", "even-odd", "over-under"
    market: str
    params: dict[str, float] = {}


class DBotXmlRequest(BaseModel):
    """DBot workspace generation request."""

    bot_type: str
    digit: int = Field(ge=0, le=9)
    market: str
    stake: float = Field(default=1, gt=0)
    take_profit: float = Field(default=12, ge=0)
    stop_loss: float = Field(default=7, ge=0)


# Response models
class TickItem(BaseModel):
    instrument: str
    price: float
    digit: int
    epoch: int


class TicksResponse(BaseModel):
    market: str
    ticks: list[TickItem]
    count: int


class PricesResponse(BaseModel):
    prices: dict[str, Optional[float]]
    last_update: dict[str, int] = {}  # instrument -> epoch ms


class ResetResponse(BaseModel):
    market: str
    cleared: bool
    size: int


# Dependencies: service objects live on app.state (created in the lifespan)
def get_ingestor(request: Request) -> TickIngestor:
    return request.app.state.ingestor


def get_broadcaster(request: Request) -> Broadcaster:
    return request.app.state.broadcaster


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _market(market: str) -> str:
    return market.strip().upper()


def _current(ingestor: TickIngestor, broadcaster: Broadcaster, market: str) -> MarketSnapshot:
    """Cached snapshot, or a freshly computed neutral one for unknown markets."""
    return broadcaster.latest(market) or ingestor.compute_snapshot(market)


@router.get("/status")
async def get_status(
    ingestor: TickIngestor = Depends(get_ingestor),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    """Feed state, ingest counters and subscriber count."""
    return {
        "status": "running",
        **ingestor.status(),
        "subscribers": broadcaster.subscriber_count,
        "dropped_subscribers": broadcaster.dropped_count,
        "last_update": broadcaster.last_update(),
    }


@router.get("/prices", response_model=PricesResponse)
async def get_prices(broadcaster: Broadcaster = Depends(get_broadcaster)):
    """Latest price per instrument."""
    return PricesResponse(prices=broadcaster.prices(), last_update=broadcaster.last_update())


@router.get("/ticks/{market}", response_model=TicksResponse)
async def get_ticks(
    market: str = Path(..., description="Instrument symbol, e.g. R_75"),
    limit: int = Query(100, ge=1, le=5000, description="Maximum ticks to return"),
    ingestor: TickIngestor = Depends(get_ingestor),
):
    """Most recent ticks for an instrument, oldest first."""
    market = _market(market)
    ticks = ingestor.store.snapshot(market, limit)
    return TicksResponse(
        market=market,
        ticks=[TickItem(**t.to_dict()) for t in ticks],
        count=len(ticks),
    )


@router.get("/stats/{market}")
async def get_stats(
    market: str,
    ingestor: TickIngestor = Depends(get_ingestor),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    """Indicators, digit stats and signals for one instrument."""
    market = _market(market)
    snapshot = _current(ingestor, broadcaster, market)
    return {
        "market": market,
        "price": snapshot.price,
        "indicators": snapshot.indicators.to_dict(),
        "stats": snapshot.stats.to_dict(),
        "signals": snapshot.signals.to_dict(),
    }


@router.get("/signals")
async def get_signals(broadcaster: Broadcaster = Depends(get_broadcaster)):
    """Signals and prices for every instrument."""
    view = broadcaster.snapshot()
    return {
        "signals": view["signals"],
        "prices": view["prices"],
        "timestamp": now_ms(),
    }


@router.get("/digit-analysis/{market}")
async def get_digit_analysis(
    market: str,
    window: int = Query(1000, ge=1, le=5000, description="Number of recent ticks"),
    ingestor: TickIngestor = Depends(get_ingestor),
):
    """Digit distribution over the last ``window`` ticks."""
    market = _market(market)
    return analyze_digits(market, ingestor.store.snapshot(market, window), window).to_dict()


@router.get("/bots")
async def get_bots(
    market: Optional[str] = Query(None, description="Instrument (defaults to bot_market)"),
    ingestor: TickIngestor = Depends(get_ingestor),
    settings: Settings = Depends(get_app_settings),
):
    """Readiness of every bot profile and the greenlight checklists."""
    market = _market(market or settings.bot_market)
    ticks = ingestor.store.snapshot(market)
    indicators = ingestor.calculator.calculate([t.price for t in ticks])
    bots = ingestor.engine.evaluate_bots(indicators, ticks)
    checklists = ingestor.engine.evaluate_checklists(indicators, ticks)
    return {
        "market": market,
        "bots": {name: result.to_dict() for name, result in bots.items()},
        "checklists": {name: result.to_dict() for name, result in checklists.items()},
    }


@router.post("/tracker/{market}/reset", response_model=ResetResponse)
async def reset_tracker(market: str, ingestor: TickIngestor = Depends(get_ingestor)):
    """Clear one instrument's tick history."""
    market = _market(market)
    ingestor.reset(market)
    logger.info(f"Tracker reset requested for {market}")
    return ResetResponse(market=market, cleared=True, size=ingestor.store.size(market))


@router.post("/pinescript")
async def generate_pinescript(request: PineScriptRequest):
    """Generate a TradingView Pine Script for a strategy."""
    return {"script": pine_script(request.strategy, request.market, request.params)}


@router.post("/dbot-xml")
async def generate_dbot_xml(request: DBotXmlRequest):
    """Generate a Deriv DBot workspace XML."""
    return {
        "xml": dbot_xml(
            bot_type=request.bot_type,
            digit=request.digit,
            market=request.market,
            stake=request.stake,
            take_profit=request.take_profit,
            stop_loss=request.stop_loss,
        )
    }
