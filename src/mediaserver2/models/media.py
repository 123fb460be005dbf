"""Media node model shared by backends and the bridge."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class MediaKind(Enum):
    """Kinds of media nodes a backend can expose."""
    CONTAINER = "container"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    UNKNOWN = "unknown"

    @classmethod
    def from_mime(cls, mime: Optional[str]) -> "MediaKind":
        """Classify an item by the major part of its MIME type."""
        if not mime:
            return cls.UNKNOWN
        major = mime.split("/", 1)[0]
        try:
            kind = cls(major)
        except ValueError:
            return cls.UNKNOWN
        return kind if kind is not cls.CONTAINER else cls.UNKNOWN


class MetadataKey(Enum):
    """Metadata fields a backend may supply for a node."""
    ID = "id"
    TITLE = "title"
    URL = "url"
    MIME = "mime"
    ALBUM = "album"
    ARTIST = "artist"
    GENRE = "genre"
    PUBLICATION_DATE = "publication-date"
    DURATION = "duration"
    BITRATE = "bitrate"
    WIDTH = "width"
    HEIGHT = "height"
    SIZE = "size"
    SAMPLE_RATE = "sample-rate"
    BITS_PER_SAMPLE = "bits-per-sample"
    CHILDCOUNT = "childcount"


@dataclass(slots=True)
class MediaNode:
    """A container or item owned by a backend.

    Only ``source_id`` is mandatory. A node without ``id`` is the root of
    its backend. ``parent_id`` is not backend data: the bridge tags it with
    the identifier of the enclosing container so that projecting the
    parent property never requires another lookup.
    """

    source_id: str
    id: Optional[str] = None
    kind: MediaKind = MediaKind.UNKNOWN
    metadata: Dict[MetadataKey, Any] = field(default_factory=dict)
    parent_id: Optional[str] = None

    @classmethod
    def root(cls, source_id: str) -> "MediaNode":
        """Create the synthetic root container of a backend."""
        return cls(source_id=source_id, kind=MediaKind.CONTAINER)

    @property
    def is_root(self) -> bool:
        return self.id is None

    @property
    def is_container(self) -> bool:
        return self.kind is MediaKind.CONTAINER

    @property
    def title(self) -> Optional[str]:
        return self.metadata.get(MetadataKey.TITLE)

    @title.setter
    def title(self, value: Optional[str]) -> None:
        self.set(MetadataKey.TITLE, value)

    @property
    def childcount(self) -> Optional[int]:
        return self.metadata.get(MetadataKey.CHILDCOUNT)

    def has(self, key: MetadataKey) -> bool:
        """Check whether the backend supplied a value for a key."""
        if key is MetadataKey.ID:
            return self.id is not None
        return self.metadata.get(key) is not None

    def get(self, key: MetadataKey, default: Any = None) -> Any:
        if key is MetadataKey.ID:
            return self.id
        value = self.metadata.get(key)
        return default if value is None else value

    def set(self, key: MetadataKey, value: Any) -> None:
        """Set a metadata value; ``None`` removes it."""
        if key is MetadataKey.ID:
            self.id = value
        elif value is None:
            self.metadata.pop(key, None)
        else:
            self.metadata[key] = value

    def update(self, values: Dict[MetadataKey, Any]) -> None:
        for key, value in values.items():
            self.set(key, value)
