"""Local directory tree backend.

Directories are containers and files are items classified by MIME type.
Audio and video tags are read with mutagen. Node ids are POSIX paths
relative to the configured root directory.
"""

import asyncio
import logging
import mimetypes
import os
from pathlib import Path
from typing import Any, Collection, Dict, List, Optional

from mutagen import File as MutagenFile
from mutagen import MutagenError

from ...exceptions import BackendError, ConfigurationError
from ...models.media import MediaKind, MediaNode, MetadataKey
from ..base import COMMON_CONFIG_PROPERTIES, Backend, BackendInfo, SupportedOps

logger = logging.getLogger(__name__)

# Easy tag names mutagen exposes for every supported format
_TAG_KEYS = {
    "title": MetadataKey.TITLE,
    "artist": MetadataKey.ARTIST,
    "album": MetadataKey.ALBUM,
    "genre": MetadataKey.GENRE,
    "date": MetadataKey.PUBLICATION_DATE,
}

_INFO_KEYS = {
    "length": MetadataKey.DURATION,
    "bitrate": MetadataKey.BITRATE,
    "sample_rate": MetadataKey.SAMPLE_RATE,
    "bits_per_sample": MetadataKey.BITS_PER_SAMPLE,
}

_TAGGED_KEYS = frozenset(_TAG_KEYS.values()) | frozenset(_INFO_KEYS.values())


def read_tags(path: Path) -> Dict[MetadataKey, Any]:
    """Read tag and stream metadata of a media file.

    Unreadable or untagged files yield an empty mapping.
    """
    try:
        media = MutagenFile(path, easy=True)
    except (MutagenError, OSError) as e:
        logger.debug(f"Cannot read tags from {path}: {e}")
        return {}
    if media is None:
        return {}

    values: Dict[MetadataKey, Any] = {}
    tags = media.tags or {}
    for tag, key in _TAG_KEYS.items():
        try:
            tag_values = tags.get(tag)
        except (KeyError, ValueError):
            tag_values = None
        if tag_values:
            value = str(tag_values[0]).strip()
            if value:
                values[key] = value

    info = getattr(media, "info", None)
    for attr, key in _INFO_KEYS.items():
        value = getattr(info, attr, None)
        if value:
            values[key] = int(round(value))

    return values


class FilesystemBackend(Backend):
    """Exposes a directory tree."""

    plugin_name = "filesystem"
    default_name = "Filesystem"

    config_schema = {
        "type": "object",
        "properties": {
            **COMMON_CONFIG_PROPERTIES,
            "root": {"type": "string", "minLength": 1},
            "show_hidden": {"type": "boolean"},
            "searchable": {"type": "boolean"},
        },
        "required": ["root"],
        "additionalProperties": False,
    }

    def __init__(self, config: Optional[Dict[str, Any]] = None, source_id: Optional[str] = None) -> None:
        super().__init__(config, source_id)
        self.root = Path(self.config.get("root", ".")).expanduser()
        self.show_hidden = bool(self.config.get("show_hidden", False))
        self.searchable = bool(self.config.get("searchable", True))

    @property
    def info(self) -> BackendInfo:
        return BackendInfo(
            name="filesystem",
            version="1.0.0",
            description="Local directory tree with tags read by mutagen",
        )

    def initialize(self) -> None:
        if not self.root.is_dir():
            raise ConfigurationError(f"{self.root} is not a directory")
        self.root = self.root.resolve()
        logger.debug(f"{self.source_id}: serving {self.root}")

    def supported_operations(self) -> SupportedOps:
        ops = SupportedOps.RESOLVE | SupportedOps.BROWSE
        if self.searchable:
            ops |= SupportedOps.SEARCH
        return ops

    def _path_for(self, node: MediaNode) -> Path:
        if node.is_root:
            return self.root
        path = (self.root / node.id).resolve()
        if path != self.root and self.root not in path.parents:
            raise BackendError(f"{node.id} is outside {self.root}")
        return path

    def _visible(self, path: Path) -> bool:
        return self.show_hidden or not path.name.startswith(".")

    def _entries(self, directory: Path) -> List[Path]:
        entries = [p for p in directory.iterdir() if self._visible(p)]
        return sorted(entries, key=lambda p: (not p.is_dir(), p.name.lower(), p.name))

    def _describe(self, path: Path, keys: Collection[MetadataKey]) -> MediaNode:
        """Build the node for a path with the requested metadata."""
        if path == self.root:
            node = MediaNode.root(self.source_id)
            node.title = self.name
        else:
            node = MediaNode(source_id=self.source_id, id=path.relative_to(self.root).as_posix())

        if path.is_dir():
            node.kind = MediaKind.CONTAINER
            if not node.is_root:
                node.title = path.name
            if MetadataKey.CHILDCOUNT in keys:
                try:
                    node.set(MetadataKey.CHILDCOUNT, len(self._entries(path)))
                except OSError as e:
                    logger.debug(f"Cannot count entries of {path}: {e}")
            return node

        mime, _ = mimetypes.guess_type(path.name)
        node.kind = MediaKind.from_mime(mime)
        node.title = path.stem
        node.set(MetadataKey.MIME, mime)
        node.set(MetadataKey.URL, path.as_uri())
        if MetadataKey.SIZE in keys:
            try:
                node.set(MetadataKey.SIZE, path.stat().st_size)
            except OSError as e:
                # Dangling links and vanished files have no size
                logger.debug(f"Cannot stat {path}: {e}")

        if node.kind in (MediaKind.AUDIO, MediaKind.VIDEO) and _TAGGED_KEYS.intersection(keys):
            node.update(read_tags(path))
        return node

    def _children(self, node: MediaNode, keys: Collection[MetadataKey]) -> List[MediaNode]:
        path = self._path_for(node)
        if not path.is_dir():
            raise BackendError(f"{node.id} is not a container")
        return [self._describe(child, keys) for child in self._entries(path)]

    def _matches(self, query: str, keys: Collection[MetadataKey]) -> List[MediaNode]:
        needle = query.lower()
        search_keys = set(keys) | {MetadataKey.TITLE}
        matches = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = sorted(d for d in dirnames if self.show_hidden or not d.startswith("."))
            directory = Path(dirpath)
            for name in dirnames + sorted(filenames):
                path = directory / name
                if not self._visible(path):
                    continue
                node = self._describe(path, search_keys)
                if needle in name.lower() or needle in (node.title or "").lower():
                    matches.append(node)
        return matches

    async def fetch_node(self, node: MediaNode, keys: Collection[MetadataKey]) -> MediaNode:
        path = self._path_for(node)
        if not path.exists():
            raise BackendError(f"{node.id} does not exist")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._describe, path, keys)

    async def fetch_children(self, node: MediaNode, keys: Collection[MetadataKey]) -> List[MediaNode]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._children, node, keys)

    async def fetch_matches(self, query: str, keys: Collection[MetadataKey]) -> List[MediaNode]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._matches, query, keys)
