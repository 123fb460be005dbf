"""
Server Events - Notifications raised by protocol endpoints.
"""

from dataclasses import dataclass

from .event_bus import DomainEvent


@dataclass(kw_only=True)
class ObjectUpdated(DomainEvent):
    """Change notification for one object of an endpoint.

    Raised when a child item is added or removed, a child item changes, or
    the object's own properties change. A child container that changes
    raises the notification on itself, not on its parent.
    """
    endpoint_name: str
    object_id: str
