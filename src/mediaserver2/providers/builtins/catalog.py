"""Static catalog backend.

Serves a tree declared inline in the configuration::

    {
      "name": "Radio",
      "searchable": true,
      "children": [
        {"title": "Jazz", "children": [
          {"id": "kcsm", "title": "KCSM", "mime": "audio/mpeg",
           "url": "http://example.org/kcsm", "metadata": {"bitrate": 128000}}
        ]}
      ]
    }

Entries without an ``id`` are numbered by their position in the tree.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Collection, Dict, List, Optional

from ...exceptions import BackendError, ConfigurationError
from ...models.media import MediaKind, MediaNode, MetadataKey
from ..base import COMMON_CONFIG_PROPERTIES, Backend, BackendInfo, SupportedOps

logger = logging.getLogger(__name__)

ENTRY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "title": {"type": "string"},
        "type": {"enum": [kind.value for kind in MediaKind]},
        "mime": {"type": "string"},
        "url": {"type": ["string", "array"], "items": {"type": "string"}},
        "metadata": {"type": "object"},
        "children": {"type": "array", "items": {"$ref": "#/definitions/entry"}},
    },
    "required": ["title"],
    "additionalProperties": False,
}


@dataclass
class CatalogEntry:
    """One node of the declared tree."""
    id: str
    kind: MediaKind
    metadata: Dict[MetadataKey, Any] = field(default_factory=dict)
    children: List["CatalogEntry"] = field(default_factory=list)


def _parse_metadata(raw: Dict[str, Any], where: str) -> Dict[MetadataKey, Any]:
    metadata = {}
    for name, value in raw.items():
        try:
            key = MetadataKey(name)
        except ValueError:
            raise ConfigurationError(f"Unknown metadata key {name!r} in {where}") from None
        if key in (MetadataKey.ID, MetadataKey.CHILDCOUNT):
            raise ConfigurationError(f"Metadata key {name!r} cannot be declared in {where}")
        metadata[key] = value
    return metadata


class CatalogBackend(Backend):
    """Serves a fixed tree of containers and items."""

    plugin_name = "catalog"
    default_name = "Catalog"

    config_schema = {
        "type": "object",
        "properties": {
            **COMMON_CONFIG_PROPERTIES,
            "searchable": {"type": "boolean"},
            "children": {"type": "array", "items": {"$ref": "#/definitions/entry"}},
        },
        "additionalProperties": False,
        "definitions": {"entry": ENTRY_SCHEMA},
    }

    def __init__(self, config: Optional[Dict[str, Any]] = None, source_id: Optional[str] = None) -> None:
        super().__init__(config, source_id)
        self.searchable = bool(self.config.get("searchable", False))
        self._root = CatalogEntry(id="", kind=MediaKind.CONTAINER)
        self._entries: Dict[str, CatalogEntry] = {}

    @property
    def info(self) -> BackendInfo:
        return BackendInfo(
            name="catalog",
            version="1.0.0",
            description="Static tree declared in the configuration",
        )

    def initialize(self) -> None:
        self._entries = {}
        self._root.children = self._build(self.config.get("children", []), prefix="")
        logger.debug(f"{self.source_id}: {len(self._entries)} catalog entries")

    def supported_operations(self) -> SupportedOps:
        ops = SupportedOps.RESOLVE | SupportedOps.BROWSE
        if self.searchable:
            ops |= SupportedOps.SEARCH
        return ops

    def _build(self, raw_entries: List[Dict[str, Any]], prefix: str) -> List[CatalogEntry]:
        entries = []
        for position, raw in enumerate(raw_entries, start=1):
            entry_id = raw.get("id") or f"{prefix}{position}"
            if entry_id in self._entries:
                raise ConfigurationError(f"Duplicate catalog id {entry_id!r}")

            metadata = _parse_metadata(raw.get("metadata", {}), entry_id)
            metadata[MetadataKey.TITLE] = raw["title"]
            if "mime" in raw:
                metadata[MetadataKey.MIME] = raw["mime"]
            if "url" in raw:
                metadata[MetadataKey.URL] = raw["url"]

            if "type" in raw:
                kind = MediaKind(raw["type"])
            elif "children" in raw:
                kind = MediaKind.CONTAINER
            else:
                kind = MediaKind.from_mime(raw.get("mime"))

            entry = CatalogEntry(id=entry_id, kind=kind, metadata=metadata)
            self._entries[entry_id] = entry
            entry.children = self._build(raw.get("children", []), prefix=f"{entry_id}/")
            entries.append(entry)
        return entries

    def _lookup(self, node: MediaNode) -> CatalogEntry:
        if node.is_root:
            return self._root
        entry = self._entries.get(node.id)
        if entry is None:
            raise BackendError(f"No catalog entry {node.id!r}")
        return entry

    def _node(self, entry: CatalogEntry, keys: Collection[MetadataKey]) -> MediaNode:
        if entry is self._root:
            node = MediaNode.root(self.source_id)
        else:
            node = MediaNode(source_id=self.source_id, id=entry.id, kind=entry.kind)
        node.update({key: value for key, value in entry.metadata.items() if key in keys})
        node.title = entry.metadata.get(MetadataKey.TITLE)
        if node.is_container and MetadataKey.CHILDCOUNT in keys:
            node.set(MetadataKey.CHILDCOUNT, len(entry.children))
        return node

    async def fetch_node(self, node: MediaNode, keys: Collection[MetadataKey]) -> MediaNode:
        return self._node(self._lookup(node), keys)

    async def fetch_children(self, node: MediaNode, keys: Collection[MetadataKey]) -> List[MediaNode]:
        entry = self._lookup(node)
        if entry.kind is not MediaKind.CONTAINER:
            raise BackendError(f"{node.id} is not a container")
        return [self._node(child, keys) for child in entry.children]

    async def fetch_matches(self, query: str, keys: Collection[MetadataKey]) -> List[MediaNode]:
        needle = query.lower()
        return [
            self._node(entry, keys)
            for entry in self._entries.values()
            if needle in str(entry.metadata.get(MetadataKey.TITLE, "")).lower()
        ]
