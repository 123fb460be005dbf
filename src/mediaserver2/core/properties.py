"""Projection of backend nodes onto the fixed property schema."""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..exceptions import UnknownProperty
from ..models.media import MediaKind, MediaNode, MetadataKey
from . import identifiers
from .schema import (
    ALL_PROPERTIES,
    COUNT_UNKNOWN,
    FALLBACK_TITLE,
    ROOT_ID,
    Property,
    PropertyType,
    is_wildcard,
    unknown_value,
)

logger = logging.getLogger(__name__)

PropertyMap = Dict[Property, Any]
FieldFilter = Sequence[Union[str, Property]]

# Schema properties filled from backend metadata
PROPERTY_KEYS: Dict[Property, MetadataKey] = {
    Property.PATH: MetadataKey.ID,
    Property.DISPLAY_NAME: MetadataKey.TITLE,
    Property.DATE: MetadataKey.PUBLICATION_DATE,
    Property.ALBUM: MetadataKey.ALBUM,
    Property.ARTIST: MetadataKey.ARTIST,
    Property.GENRE: MetadataKey.GENRE,
    Property.MIME_TYPE: MetadataKey.MIME,
    Property.URLS: MetadataKey.URL,
    Property.BITRATE: MetadataKey.BITRATE,
    Property.DURATION: MetadataKey.DURATION,
    Property.HEIGHT: MetadataKey.HEIGHT,
    Property.WIDTH: MetadataKey.WIDTH,
    Property.SIZE: MetadataKey.SIZE,
    Property.SAMPLE_RATE: MetadataKey.SAMPLE_RATE,
    Property.BITS_PER_SAMPLE: MetadataKey.BITS_PER_SAMPLE,
}

# Derived properties that still need a backend key to be computed
DERIVED_KEYS: Dict[Property, MetadataKey] = {
    Property.CHILD_COUNT: MetadataKey.CHILDCOUNT,
    Property.ITEM_COUNT: MetadataKey.CHILDCOUNT,
    Property.CONTAINER_COUNT: MetadataKey.CHILDCOUNT,
}


def check_filter(names: FieldFilter) -> Optional[str]:
    """Return the first name of an explicit filter that is not in the schema."""
    if is_wildcard(names):
        return None
    for name in names:
        if isinstance(name, Property):
            continue
        try:
            Property.lookup(name)
        except KeyError:
            return name
    return None


def parse_filter(names: FieldFilter) -> Tuple[Property, ...]:
    """Turn a client filter into schema properties, expanding the wildcard.

    Raises:
        UnknownProperty: If the filter names a field outside the schema
    """
    wrong = check_filter(names)
    if wrong is not None:
        raise UnknownProperty(wrong)
    if is_wildcard(names):
        return ALL_PROPERTIES
    return tuple(name if isinstance(name, Property) else Property.lookup(name) for name in names)


def backend_keys(properties: Iterable[Property]) -> List[MetadataKey]:
    """Metadata keys to request from a backend to project ``properties``."""
    keys: List[MetadataKey] = []
    for prop in properties:
        key = PROPERTY_KEYS.get(prop) or DERIVED_KEYS.get(prop)
        if key is not None and key is not MetadataKey.ID and key not in keys:
            keys.append(key)
    return keys


def _coerce(prop: Property, value: Any) -> Any:
    wire_type = prop.wire_type
    if wire_type is PropertyType.STRING_LIST:
        return [str(v) for v in value] if isinstance(value, (list, tuple)) else [str(value)]
    if wire_type in (PropertyType.INT, PropertyType.INT64, PropertyType.UINT):
        return int(value)
    if wire_type is PropertyType.BOOLEAN:
        return bool(value)
    return str(value)


class PropertyProjector:
    """Builds property maps for the nodes of one backend.

    Every requested property ends up in the map exactly once: either with
    the backend-supplied value or with its schema placeholder. A missing
    field never fails the request.
    """

    def __init__(self, searchable: bool = False) -> None:
        self.searchable = searchable

    def project(self, node: MediaNode, fields: FieldFilter) -> PropertyMap:
        """Project ``node`` onto the properties named by ``fields``.

        Raises:
            UnknownProperty: If ``fields`` names a field outside the schema
        """
        properties = parse_filter(fields)
        return {prop: self.value_of(node, prop) for prop in properties}

    def value_of(self, node: MediaNode, prop: Property) -> Any:
        """Value of one property for ``node``, or its placeholder."""
        if prop is Property.PATH:
            return identifiers.encode(node)
        if prop is Property.PARENT:
            if node.is_root:
                return ROOT_ID
            return node.parent_id if node.parent_id is not None else unknown_value(prop)
        if prop is Property.DISPLAY_NAME:
            return node.title or FALLBACK_TITLE
        if prop is Property.TYPE:
            return self.type_of(node)
        if prop in (Property.CHILD_COUNT, Property.ITEM_COUNT, Property.CONTAINER_COUNT):
            # The backend cannot split items from containers without a full
            # enumeration, so all three report the child count.
            return self.child_count(node)
        if prop is Property.SEARCHABLE:
            # Search is only offered at the root level
            return node.is_root and self.searchable

        key = PROPERTY_KEYS.get(prop)
        if key is None or not node.has(key):
            return unknown_value(prop)
        try:
            return _coerce(prop, node.get(key))
        except (TypeError, ValueError, OverflowError):
            logger.debug(f"Discarding malformed {prop.value} value {node.get(key)!r}")
            return unknown_value(prop)

    @staticmethod
    def type_of(node: MediaNode) -> str:
        return node.kind.value if isinstance(node.kind, MediaKind) else MediaKind.UNKNOWN.value

    @staticmethod
    def child_count(node: MediaNode) -> int:
        if not node.is_container:
            return 0
        try:
            count = int(node.childcount)
        except (TypeError, ValueError, OverflowError):
            return COUNT_UNKNOWN
        return count if count >= 0 else COUNT_UNKNOWN
