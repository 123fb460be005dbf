"""
Event Bus - fan-out of change notifications.

Endpoints publish events here; transports subscribe to relay them to
remote clients.
"""

import asyncio
import logging
import weakref
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T', bound='DomainEvent')


@dataclass
class DomainEvent:
    """Base class for all events."""


class EventBus:
    """
    Routes events to the handlers subscribed to their type or a base type.

    Handlers are held through weak references; subscribers keep their
    handlers alive for as long as they want to receive events.
    """

    def __init__(self) -> None:
        self._handlers: Dict[Type[DomainEvent], List[weakref.ref]] = {}

    def subscribe(
        self,
        event_type: Type[T],
        handler: Callable[[T], Any]
    ) -> None:
        """
        Subscribe to events of a specific type.

        Args:
            event_type: The event class to subscribe to
            handler: The handler function/method
        """
        if hasattr(handler, '__self__'):
            ref = weakref.WeakMethod(handler)
        else:
            ref = weakref.ref(handler)
        self._handlers.setdefault(event_type, []).append(ref)

    def unsubscribe(self, event_type: Type[DomainEvent], handler: Callable) -> None:
        """Unsubscribe a handler; dead references are dropped on the way."""
        if event_type in self._handlers:
            self._handlers[event_type] = [
                ref for ref in self._handlers[event_type]
                if ref() is not None and ref() != handler
            ]

    async def publish(self, event: DomainEvent) -> None:
        """Deliver an event to every live subscriber concurrently."""
        handlers = []
        for event_type in type(event).__mro__:
            for ref in self._handlers.get(event_type, []):
                handler = ref()
                if handler is not None:
                    handlers.append(handler)

        if handlers:
            await asyncio.gather(*(self._safe_handle(handler, event) for handler in handlers))

    async def _safe_handle(self, handler: Callable, event: DomainEvent) -> None:
        """Safely handle an event, logging handler failures."""
        try:
            result = handler(event)
            if asyncio.iscoroutine(result):
                await result
        except Exception:
            logger.exception(f"Error in event handler {handler}")

    def clear(self) -> None:
        """Drop all handlers."""
        self._handlers.clear()
