"""Fixed MediaServer2 property schema.

Property names, their wire types, the interfaces they belong to and the
placeholder values used when a backend cannot supply a field.
"""

from enum import Enum
from typing import Any, Dict, Sequence, Tuple

ROOT_ID = "0"
WILDCARD = "*"

UNKNOWN_STR = ""
UNKNOWN_INT = -1
COUNT_UNKNOWN = 2**31 - 1
FALLBACK_TITLE = "Unknown"

MEDIA_OBJECT_IFACE = "org.gnome.UPnP.MediaObject2"
MEDIA_CONTAINER_IFACE = "org.gnome.UPnP.MediaContainer2"
MEDIA_ITEM_IFACE = "org.gnome.UPnP.MediaItem2"


class PropertyType(Enum):
    """Wire types of schema properties."""
    STRING = "s"
    OBJECT_PATH = "o"
    INT = "i"
    INT64 = "x"
    UINT = "u"
    BOOLEAN = "b"
    STRING_LIST = "as"


class Property(str, Enum):
    """Closed set of properties exposed for every object."""
    PATH = "Path"
    PARENT = "Parent"
    DISPLAY_NAME = "DisplayName"
    TYPE = "Type"
    CHILD_COUNT = "ChildCount"
    ITEM_COUNT = "ItemCount"
    CONTAINER_COUNT = "ContainerCount"
    SEARCHABLE = "Searchable"
    URLS = "URLs"
    MIME_TYPE = "MIMEType"
    SIZE = "Size"
    ARTIST = "Artist"
    ALBUM = "Album"
    DATE = "Date"
    GENRE = "Genre"
    DLNA_PROFILE = "DLNAProfile"
    DURATION = "Duration"
    BITRATE = "Bitrate"
    SAMPLE_RATE = "SampleRate"
    BITS_PER_SAMPLE = "BitsPerSample"
    WIDTH = "Width"
    HEIGHT = "Height"
    COLOR_DEPTH = "ColorDepth"
    PIXEL_WIDTH = "PixelWidth"
    PIXEL_HEIGHT = "PixelHeight"
    THUMBNAIL = "Thumbnail"
    ALBUM_ART = "AlbumArt"

    @classmethod
    def lookup(cls, name: str) -> "Property":
        """Return the property with the given wire name.

        Raises:
            KeyError: If the name is not part of the schema
        """
        return _BY_NAME[name]

    @property
    def wire_type(self) -> PropertyType:
        return PROPERTY_TYPES[self]


_BY_NAME: Dict[str, Property] = {prop.value: prop for prop in Property}

PROPERTY_TYPES: Dict[Property, PropertyType] = {
    Property.PATH: PropertyType.OBJECT_PATH,
    Property.PARENT: PropertyType.OBJECT_PATH,
    Property.DISPLAY_NAME: PropertyType.STRING,
    Property.TYPE: PropertyType.STRING,
    Property.CHILD_COUNT: PropertyType.UINT,
    Property.ITEM_COUNT: PropertyType.UINT,
    Property.CONTAINER_COUNT: PropertyType.UINT,
    Property.SEARCHABLE: PropertyType.BOOLEAN,
    Property.URLS: PropertyType.STRING_LIST,
    Property.MIME_TYPE: PropertyType.STRING,
    Property.SIZE: PropertyType.INT64,
    Property.ARTIST: PropertyType.STRING,
    Property.ALBUM: PropertyType.STRING,
    Property.DATE: PropertyType.STRING,
    Property.GENRE: PropertyType.STRING,
    Property.DLNA_PROFILE: PropertyType.STRING,
    Property.DURATION: PropertyType.INT,
    Property.BITRATE: PropertyType.INT,
    Property.SAMPLE_RATE: PropertyType.INT,
    Property.BITS_PER_SAMPLE: PropertyType.INT,
    Property.WIDTH: PropertyType.INT,
    Property.HEIGHT: PropertyType.INT,
    Property.COLOR_DEPTH: PropertyType.INT,
    Property.PIXEL_WIDTH: PropertyType.INT,
    Property.PIXEL_HEIGHT: PropertyType.INT,
    Property.THUMBNAIL: PropertyType.OBJECT_PATH,
    Property.ALBUM_ART: PropertyType.OBJECT_PATH,
}

OBJECT_PROPERTIES: Tuple[Property, ...] = (
    Property.PARENT,
    Property.TYPE,
    Property.PATH,
    Property.DISPLAY_NAME,
)

CONTAINER_PROPERTIES: Tuple[Property, ...] = (
    Property.CHILD_COUNT,
    Property.ITEM_COUNT,
    Property.CONTAINER_COUNT,
    Property.SEARCHABLE,
)

ITEM_PROPERTIES: Tuple[Property, ...] = (
    Property.URLS,
    Property.MIME_TYPE,
    Property.SIZE,
    Property.ARTIST,
    Property.ALBUM,
    Property.DATE,
    Property.GENRE,
    Property.DLNA_PROFILE,
    Property.DURATION,
    Property.BITRATE,
    Property.SAMPLE_RATE,
    Property.BITS_PER_SAMPLE,
    Property.WIDTH,
    Property.HEIGHT,
    Property.COLOR_DEPTH,
    Property.PIXEL_WIDTH,
    Property.PIXEL_HEIGHT,
    Property.THUMBNAIL,
    Property.ALBUM_ART,
)

# Wildcard expansion order
ALL_PROPERTIES: Tuple[Property, ...] = tuple(Property)

INTERFACE_PROPERTIES: Dict[str, Tuple[Property, ...]] = {
    MEDIA_OBJECT_IFACE: OBJECT_PROPERTIES,
    MEDIA_CONTAINER_IFACE: CONTAINER_PROPERTIES,
    MEDIA_ITEM_IFACE: ITEM_PROPERTIES,
}


def is_wildcard(names: Sequence[Any]) -> bool:
    """A filter is the wildcard when its first element is ``*``."""
    return bool(names) and names[0] == WILDCARD


def unknown_value(prop: Property) -> Any:
    """Return the placeholder for a property the backend cannot supply."""
    wire_type = prop.wire_type
    if wire_type is PropertyType.STRING_LIST:
        return [UNKNOWN_STR]
    if wire_type in (PropertyType.INT, PropertyType.INT64, PropertyType.UINT):
        return UNKNOWN_INT
    if wire_type is PropertyType.BOOLEAN:
        return False
    return UNKNOWN_STR
