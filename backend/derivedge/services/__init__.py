"""Business logic services."""

from derivedge.services.broadcaster import Broadcaster, Subscription, WebSocketMessage
from derivedge.services.tick_ingestor import TickIngestor, parse_tick_message
from derivedge.services.templates import dbot_xml, pine_script

__all__ = [
    "Broadcaster",
    "Subscription",
    "WebSocketMessage",
    "TickIngestor",
    "parse_tick_message",
    "dbot_xml",
    "pine_script",
]
