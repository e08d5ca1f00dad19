"""Main application entry point."""

import logging
from contextlib import asynccontextmanager

# Configure logging FIRST, before any other imports
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)

# Reduce noise from third-party libraries (must be set before importing them)
logging.getLogger("asyncio").setLevel(logging.WARNING)
logging.getLogger("picows").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

# Try to use uvloop for better performance (Unix only)
try:
    import uvloop
    uvloop.install()
    _UVLOOP_ENABLED = True
except ImportError:
    _UVLOOP_ENABLED = False

from derivedge import __version__
from derivedge.api import router, stream_endpoint, websocket_endpoint
from derivedge.config import Settings, get_settings
from derivedge.services import Broadcaster, TickIngestor
from derivedge.storage import HistoryStore
from edgecore.indicators import IndicatorCalculator
from edgecore.signals import SignalEngine

logger = logging.getLogger(__name__)


def build_services(settings: Settings) -> tuple[HistoryStore, Broadcaster, TickIngestor]:
    """Construct the store, broadcaster and ingestor for one app instance."""
    store = HistoryStore(capacity=settings.history_capacity)
    broadcaster = Broadcaster(queue_size=settings.subscriber_queue_size)
    engine = SignalEngine(settings.signals, settings.readiness)
    calculator = IndicatorCalculator(
        ema_periods=settings.signals.ema_periods,
        rsi_period=settings.signals.rsi_period,
    )
    ingestor = TickIngestor(
        store=store,
        broadcaster=broadcaster,
        markets=settings.markets,
        calculator=calculator,
        engine=engine,
        quote_decimals=settings.quote_decimals,
    )
    if settings.feed_enabled:
        ingestor.create_feed(
            url=settings.deriv_ws_url,
            reconnect_delay=settings.reconnect_delay,
        )
    return store, broadcaster, ingestor


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings: Settings = app.state.settings

    logger.info("Starting DerivEdge tick server...")
    logger.info(f"Event loop: {'uvloop' if _UVLOOP_ENABLED else 'asyncio'}")
    logger.info(f"Markets: {', '.join(settings.markets)}")

    store, broadcaster, ingestor = build_services(settings)
    app.state.store = store
    app.state.broadcaster = broadcaster
    app.state.ingestor = ingestor

    try:
        await ingestor.start()
        if settings.feed_enabled:
            logger.info("Deriv feed started")
        else:
            logger.info("Deriv feed disabled")
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        await ingestor.stop()
        raise

    yield

    # Shutdown
    logger.info("Shutting down...")
    await ingestor.stop()
    broadcaster.close_all()
    logger.info("Shutdown complete")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create a FastAPI app bound to the given settings."""
    settings = settings or get_settings()

    # orjson for faster JSON serialization
    app = FastAPI(
        title="DerivEdge",
        description="Real-time Deriv tick indicators and signals",
        version=__version__,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # REST routes
    app.include_router(router, prefix="/api")

    # Push transports
    app.get("/api/stream")(stream_endpoint)
    app.websocket("/ws")(websocket_endpoint)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "DerivEdge",
            "version": __version__,
            "docs": "/docs",
            "event_loop": "uvloop" if _UVLOOP_ENABLED else "asyncio",
            "markets": settings.markets,
        }

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()


def main():
    """Run the application."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "derivedge.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
