"""Hook system for provider add/remove notifications."""

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class RegistryEvent(Enum):
    """Events observers of the provider registry can hook into."""
    PROVIDER_ADDED = "provider_added"
    PROVIDER_REMOVED = "provider_removed"


@dataclass
class HookContext:
    """Context passed to hook handlers."""
    event: RegistryEvent
    data: Dict[str, Any]
    error: Optional[Exception] = None


class RegistryHooks:
    """Manages registry hooks and event handling."""

    def __init__(self) -> None:
        """Initialize hook system."""
        self._hooks: Dict[RegistryEvent, List[Callable]] = {
            event: [] for event in RegistryEvent
        }

    def register(self, event: RegistryEvent, handler: Callable) -> None:
        """Register a handler for a specific event.

        Args:
            event: The event to handle
            handler: Function to call when event occurs
        """
        self._hooks[event].append(handler)

    def unregister(self, event: RegistryEvent, handler: Callable) -> None:
        """Unregister a handler for a specific event."""
        if handler in self._hooks[event]:
            self._hooks[event].remove(handler)

    async def emit(self, event: RegistryEvent, **data) -> HookContext:
        """Emit an event to all registered handlers.

        A failing handler does not stop the others; the first error is
        reported back through the returned context.

        Returns:
            HookContext with event information
        """
        context = HookContext(event=event, data=data)

        for handler in self._hooks[event]:
            try:
                if inspect.iscoroutinefunction(handler):
                    await handler(context)
                else:
                    handler(context)
            except Exception as e:
                logger.debug(f"Hook {getattr(handler, '__name__', handler)} failed on {event.value}: {e}")
                if context.error is None:
                    context.error = e

        return context

    def clear(self, event: Optional[RegistryEvent] = None) -> None:
        """Clear all handlers or handlers for a specific event."""
        if event:
            self._hooks[event].clear()
        else:
            for handlers in self._hooks.values():
                handlers.clear()
