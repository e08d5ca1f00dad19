"""API endpoints."""

from derivedge.api.routes import router
from derivedge.api.websocket import stream_endpoint, websocket_endpoint

__all__ = [
    "router",
    "stream_endpoint",
    "websocket_endpoint",
]
