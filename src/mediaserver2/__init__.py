"""MediaServer2 bridge

Publishes content backends as MediaServer2 endpoints: hierarchical
containers and items with a fixed property schema.
"""

__version__ = "0.1.0"

from .core import ListType, MediaServerBridge, Property, ROOT_ID
from .events import EventBus, ObjectUpdated
from .exceptions import (
    BackendError,
    BackendUnavailable,
    InvalidIdentifier,
    MediaServer2Error,
    OperationNotPermitted,
    UnknownProperty,
)
from .models import MediaKind, MediaNode, MetadataKey
from .providers import Backend, ProviderManager, ProviderRegistry
from .server import Endpoint, EndpointTable

__all__ = [
    "ListType",
    "MediaServerBridge",
    "Property",
    "ROOT_ID",
    "EventBus",
    "ObjectUpdated",
    "BackendError",
    "BackendUnavailable",
    "InvalidIdentifier",
    "MediaServer2Error",
    "OperationNotPermitted",
    "UnknownProperty",
    "MediaKind",
    "MediaNode",
    "MetadataKey",
    "Backend",
    "ProviderManager",
    "ProviderRegistry",
    "Endpoint",
    "EndpointTable",
]
