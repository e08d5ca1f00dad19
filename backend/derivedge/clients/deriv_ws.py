"""Deriv WebSocket client for real-time tick data using picows."""

import asyncio
import enum
import logging
from typing import Awaitable, Callable, Sequence

import orjson
from picows import WSCloseCode, WSFrame, WSListener, WSMsgType, WSTransport, ws_connect

logger = logging.getLogger(__name__)

# Raw text frame handler (synchronous, runs on the event loop thread)
MessageHandler = Callable[[str], None]
Connector = Callable[..., Awaitable[tuple]]

DERIV_WS_URL = "wss://ws.binaryws.com/websockets/v3?app_id=1089"


class ConnectionState(str, enum.Enum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"


def subscribe_frame(symbol: str) -> bytes:
    """Tick subscription request for one symbol."""
    return orjson.dumps({"ticks": symbol, "subscribe": 1})


class DerivTickListener(WSListener):
    """picows listener for the Deriv tick stream."""

    def __init__(
        self,
        symbols: Sequence[str],
        on_message: MessageHandler,
        on_connected: Callable[[], None],
        on_disconnected: Callable[[], None],
    ):
        self._symbols = list(symbols)
        self._on_message = on_message
        self._on_connected = on_connected
        self._on_disconnected = on_disconnected
        self._transport: WSTransport | None = None

    def on_ws_connected(self, transport: WSTransport):
        """Called when WebSocket connection is established."""
        self._transport = transport
        logger.info("picows: Deriv WebSocket connected")
        self._on_connected()

        for symbol in self._symbols:
            transport.send(WSMsgType.TEXT, subscribe_frame(symbol))
        logger.info(f"Subscribed to tick streams: {self._symbols}")

    def on_ws_disconnected(self, transport: WSTransport):
        """Called when WebSocket is disconnected."""
        logger.info("picows: Deriv WebSocket disconnected")
        self._transport = None
        self._on_disconnected()

    def on_ws_frame(self, transport: WSTransport, frame: WSFrame):
        """Called when a new frame is received."""
        if frame.msg_type == WSMsgType.TEXT:
            self._dispatch(frame.get_payload_as_utf8_text())
        elif frame.msg_type == WSMsgType.PING:
            transport.send_pong(frame.get_payload_as_bytes())
        elif frame.msg_type == WSMsgType.CLOSE:
            transport.disconnect()

    def _dispatch(self, payload: str) -> None:
        # Handler errors must not reach picows; the connection stays up.
        try:
            self._on_message(payload)
        except Exception as e:
            logger.error(f"Tick handler error: {e}")

    def disconnect(self) -> None:
        """Disconnect the WebSocket."""
        if self._transport:
            self._transport.send_close(WSCloseCode.OK)
            self._transport.disconnect()


class DerivTickWebSocket:
    """
    Reconnect-forever client for the Deriv v3 tick stream.

    State machine::

        DISCONNECTED -> CONNECTING -> CONNECTED
             ^                           |
             +------ close / error ------+   (sleep reconnect_delay, retry)

    The delay is fixed; there is no backoff growth and no retry limit.
    Every (re)connect subscribes all configured symbols again.
    """

    def __init__(
        self,
        symbols: Sequence[str],
        on_message: MessageHandler,
        url: str = DERIV_WS_URL,
        reconnect_delay: float = 3.0,
        connect: Connector = ws_connect,
    ):
        self.url = url
        self.symbols = list(symbols)
        self.reconnect_delay = reconnect_delay
        self._on_message = on_message
        self._connect = connect

        self._state = ConnectionState.DISCONNECTED
        self._running = False
        self._task: asyncio.Task | None = None
        self._listener: DerivTickListener | None = None
        self._disconnected = asyncio.Event()

        self.connect_attempts = 0
        self.connections = 0

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the connection loop in a background task."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the loop and close the connection."""
        self._running = False
        if self._listener:
            self._listener.disconnect()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._state = ConnectionState.DISCONNECTED

    def _on_connected(self) -> None:
        self._state = ConnectionState.CONNECTED
        self.connections += 1
        self._disconnected.clear()

    def _on_disconnected(self) -> None:
        self._state = ConnectionState.DISCONNECTED
        self._disconnected.set()

    async def _run(self) -> None:
        """Main WebSocket loop with fixed-delay reconnection."""
        while self._running:
            try:
                await self._connect_and_process()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"picows Deriv feed error: {e}")

            self._state = ConnectionState.DISCONNECTED
            if self._running:
                logger.info(f"Reconnecting Deriv WS in {self.reconnect_delay} seconds...")
                await asyncio.sleep(self.reconnect_delay)

    async def _connect_and_process(self) -> None:
        """Connect to WebSocket and wait for disconnection."""
        self._disconnected.clear()
        self._state = ConnectionState.CONNECTING
        self.connect_attempts += 1

        def listener_factory():
            self._listener = DerivTickListener(
                symbols=self.symbols,
                on_message=self._on_message,
                on_connected=self._on_connected,
                on_disconnected=self._on_disconnected,
            )
            return self._listener

        logger.info(f"Connecting to {self.url}")
        await self._connect(
            listener_factory,
            self.url,
            enable_auto_ping=True,
            auto_ping_idle_timeout=30,
            auto_ping_reply_timeout=10,
        )

        # Wait until disconnected
        await self._disconnected.wait()
