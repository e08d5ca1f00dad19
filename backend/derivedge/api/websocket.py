"""Push transports: WebSocket (/ws) and Server-Sent Events (/api/stream).

Both drain a Broadcaster subscription. The first message is always the
``init`` snapshot, followed by one ``tick`` message per processed tick.

Message format:
{
    "type": "tick",
    "data": {...},
    "timestamp": "2024-01-01T00:00:00+00:00"
}
"""

import asyncio
import logging
from typing import AsyncIterator

import orjson
from fastapi import Request, WebSocket, WebSocketDisconnect
from fastapi.responses import StreamingResponse

from derivedge.services import Broadcaster, Subscription, WebSocketMessage

logger = logging.getLogger(__name__)


def handle_client_message(message: dict, broadcaster: Broadcaster) -> WebSocketMessage:
    """Build the reply to one client message."""
    msg_type = message.get("type", "") if isinstance(message, dict) else ""

    if msg_type == "ping":
        return WebSocketMessage.build("pong")
    if msg_type == "snapshot":
        return WebSocketMessage.build("init", broadcaster.snapshot())
    return WebSocketMessage.build("error", {"message": f"Unknown message type: {msg_type}"})


async def _send_loop(websocket: WebSocket, sub: Subscription, send_timeout: float) -> None:
    """Write queued messages to the socket until the subscription closes."""
    async for message in sub:
        await asyncio.wait_for(websocket.send_text(message), timeout=send_timeout)


async def _receive_loop(
    websocket: WebSocket,
    sub: Subscription,
    broadcaster: Broadcaster,
    idle_timeout: float,
) -> None:
    """Answer client messages; replies go through the same queue as ticks."""
    while True:
        try:
            frame = await asyncio.wait_for(websocket.receive(), timeout=idle_timeout)
        except asyncio.TimeoutError:
            # Keep-alive for idle clients
            sub.offer(WebSocketMessage.build("ping").to_json())
            continue

        if frame["type"] == "websocket.disconnect":
            raise WebSocketDisconnect(frame.get("code", 1000))

        data = frame.get("text")
        if data is None:
            reply = WebSocketMessage.build("error", {"message": "Binary frames are not supported"})
            sub.offer(reply.to_json())
            continue

        try:
            message = orjson.loads(data)
        except orjson.JSONDecodeError:
            reply = WebSocketMessage.build("error", {"message": "Invalid JSON"})
        else:
            reply = handle_client_message(message, broadcaster)
        sub.offer(reply.to_json())


async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for real-time updates.

    Messages sent to clients:
    - init: Cross-instrument snapshot (prices, indicators, stats, signals)
    - tick: One instrument's snapshot after a tick
    - pong: Reply to a client ``{"type": "ping"}``
    - ping: Keep-alive after ``ws_idle_timeout`` seconds of client silence
    """
    broadcaster: Broadcaster = websocket.app.state.broadcaster
    settings = websocket.app.state.settings

    await websocket.accept()
    sub = broadcaster.subscribe()

    sender = asyncio.create_task(_send_loop(websocket, sub, settings.subscriber_send_timeout))
    receiver = asyncio.create_task(
        _receive_loop(websocket, sub, broadcaster, settings.ws_idle_timeout)
    )

    client_gone = False
    try:
        done, _ = await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            exc = task.exception()
            if isinstance(exc, WebSocketDisconnect):
                client_gone = True
            elif isinstance(exc, asyncio.TimeoutError):
                logger.warning(f"Subscriber {sub.id} send timed out, dropping")
            elif exc is not None:
                logger.error(f"WebSocket error: {exc}")
    finally:
        for task in (sender, receiver):
            task.cancel()
        await asyncio.gather(sender, receiver, return_exceptions=True)
        broadcaster.unsubscribe(sub)

    # Dropped on our side (overflow or failed send)
    if not client_gone:
        try:
            await websocket.close()
        except RuntimeError as e:
            logger.debug(f"WebSocket already closed: {e}")


async def sse_events(sub: Subscription, idle_timeout: float) -> AsyncIterator[str]:
    """Format a subscription as an SSE stream, with comment keep-alives."""
    while True:
        try:
            message = await asyncio.wait_for(sub.get(), timeout=idle_timeout)
        except asyncio.TimeoutError:
            yield ": keep-alive\n\n"
            continue
        if message is None:
            return
        yield f"data: {message}\n\n"


async def stream_endpoint(request: Request):
    """Server-Sent Events stream carrying the same messages as /ws."""
    broadcaster: Broadcaster = request.app.state.broadcaster
    settings = request.app.state.settings
    sub = broadcaster.subscribe()

    async def events() -> AsyncIterator[str]:
        try:
            async for chunk in sse_events(sub, settings.ws_idle_timeout):
                if await request.is_disconnected():
                    break
                yield chunk
        finally:
            broadcaster.unsubscribe(sub)

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
