"""Fan-out of market snapshots to live subscribers.

Each subscriber owns a bounded ``asyncio.Queue`` of pre-serialized
messages. ``publish`` serializes a snapshot once and offers it to every
queue with ``put_nowait``; it never awaits, so the ingest path cannot be
slowed down by a client. A subscriber whose queue is full is closed and
dropped. Transports (``/ws``, ``/api/stream``) drain their subscription
at their own pace.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from datetime import datetime, timezone
from typing import Any

import orjson
from pydantic import BaseModel

from edgecore.models import MarketSnapshot

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 256


def _orjson_dumps(obj: Any) -> str:
    """Serialize object to JSON string using orjson."""
    return orjson.dumps(obj, default=str).decode("utf-8")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def now_ms() -> int:
    return int(time.time() * 1000)


class WebSocketMessage(BaseModel):
    """Message envelope shared by every push transport."""

    type: str  # "init", "tick", "pong", "ping", "error"
    data: dict[str, Any]
    timestamp: datetime

    def to_json(self) -> str:
        """Serialize to JSON string using orjson for performance."""
        return _orjson_dumps(self.model_dump())

    @classmethod
    def build(cls, type: str, data: dict[str, Any] | None = None) -> "WebSocketMessage":
        return cls(type=type, data=data or {}, timestamp=utc_now())


class Subscription:
    """One subscriber's bounded message queue.

    Iterating a subscription yields serialized messages until it is
    closed.
    """

    def __init__(self, sub_id: int, queue_size: int = DEFAULT_QUEUE_SIZE):
        self.id = sub_id
        # One extra slot so the close sentinel always fits
        self._queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=queue_size + 1)
        self._capacity = queue_size
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def offer(self, message: str) -> bool:
        """Enqueue without waiting. False if closed or full."""
        if self._closed or self._queue.qsize() >= self._capacity:
            return False
        self._queue.put_nowait(message)
        return True

    def close(self) -> None:
        """Close the subscription. Pending messages are discarded."""
        if self._closed:
            return
        self._closed = True
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(None)

    async def get(self) -> str | None:
        """Next message, or None once closed."""
        if self._closed and self._queue.empty():
            return None
        return await self._queue.get()

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> str:
        message = await self.get()
        if message is None:
            raise StopAsyncIteration
        return message


class Broadcaster:
    """Cache the latest snapshot per instrument and fan it out."""

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE):
        self.queue_size = queue_size
        self._subscribers: dict[int, Subscription] = {}
        self._snapshots: dict[str, MarketSnapshot] = {}
        self._ids = itertools.count(1)
        self.dropped_count = 0

    # ------------------------------------------------------------------
    # Subscribers
    # ------------------------------------------------------------------

    def subscribe(self) -> Subscription:
        """Register a subscriber. Its first message is the ``init`` snapshot."""
        sub = Subscription(next(self._ids), self.queue_size)
        sub.offer(WebSocketMessage.build("init", self.snapshot()).to_json())
        self._subscribers[sub.id] = sub
        logger.info(f"Subscriber {sub.id} added. Total subscribers: {len(self._subscribers)}")
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        """Remove a subscriber. Safe to call more than once."""
        removed = self._subscribers.pop(sub.id, None)
        sub.close()
        if removed is not None:
            logger.info(f"Subscriber {sub.id} removed. Total subscribers: {len(self._subscribers)}")

    def close_all(self) -> None:
        for sub in list(self._subscribers.values()):
            self.unsubscribe(sub)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def update(self, snapshot: MarketSnapshot) -> None:
        """Cache a snapshot without notifying subscribers."""
        self._snapshots[snapshot.instrument] = snapshot

    def publish(self, snapshot: MarketSnapshot) -> int:
        """
        Cache a snapshot and push one ``tick`` message to every subscriber.

        Args:
            snapshot: Freshly computed instrument state

        Returns:
            Number of subscribers the message was delivered to
        """
        self.update(snapshot)
        if not self._subscribers:
            return 0

        message = WebSocketMessage.build("tick", snapshot.to_dict()).to_json()
        delivered = 0
        for sub in list(self._subscribers.values()):
            if sub.offer(message):
                delivered += 1
            else:
                logger.warning(f"Subscriber {sub.id} queue full, dropping")
                self.dropped_count += 1
                self.unsubscribe(sub)
        return delivered

    def latest(self, instrument: str) -> MarketSnapshot | None:
        return self._snapshots.get(instrument)

    def prices(self) -> dict[str, float | None]:
        return {inst: snap.price for inst, snap in self._snapshots.items()}

    def last_update(self) -> dict[str, int]:
        """Epoch milliseconds of each instrument's latest tick update."""
        return {
            inst: snap.last_update_ms
            for inst, snap in self._snapshots.items()
            if snap.last_update_ms is not None
        }

    def snapshot(self) -> dict[str, Any]:
        """Cross-instrument view sent to new subscribers."""
        return {
            "prices": self.prices(),
            "indicators": {i: s.indicators.to_dict() for i, s in self._snapshots.items()},
            "stats": {i: s.stats.to_dict() for i, s in self._snapshots.items()},
            "signals": {i: s.signals.to_dict() for i, s in self._snapshots.items()},
            "last_update": self.last_update(),
        }
