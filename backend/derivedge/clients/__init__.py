"""Upstream market data clients."""

from derivedge.clients.deriv_ws import (
    ConnectionState,
    DERIV_WS_URL,
    DerivTickListener,
    DerivTickWebSocket,
    subscribe_frame,
)

__all__ = [
    "ConnectionState",
    "DERIV_WS_URL",
    "DerivTickListener",
    "DerivTickWebSocket",
    "subscribe_frame",
]
