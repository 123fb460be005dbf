"""Bridge core: schema, identifiers, projection and listings."""

from .bridge import MediaServerBridge
from .listing import ListType
from .properties import PropertyProjector, parse_filter
from .schema import ROOT_ID, Property

__all__ = [
    "MediaServerBridge",
    "ListType",
    "PropertyProjector",
    "parse_filter",
    "ROOT_ID",
    "Property",
]
