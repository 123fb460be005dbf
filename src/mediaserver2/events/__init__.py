"""
Event System

Change notifications flow from protocol endpoints to the transports that
relay them to remote clients through this event bus.
"""

from .event_bus import DomainEvent, EventBus
from .server_events import ObjectUpdated

__all__ = [
    "DomainEvent",
    "EventBus",
    "ObjectUpdated",
]
