"""Shared fixtures: an in-memory backend that records every call made to it."""

from dataclasses import replace
from typing import Collection, Dict, List, Optional

import pytest

from mediaserver2.exceptions import BackendError
from mediaserver2.models.media import MediaKind, MediaNode, MetadataKey
from mediaserver2.providers.base import Backend, BackendInfo, SupportedOps

SOURCE_ID = "fake-source"


def container(node_id: str, title: Optional[str] = None, childcount: Optional[int] = None) -> MediaNode:
    node = MediaNode(source_id=SOURCE_ID, id=node_id, kind=MediaKind.CONTAINER)
    node.title = title
    node.set(MetadataKey.CHILDCOUNT, childcount)
    return node


def item(node_id: str, title: Optional[str] = None, kind: MediaKind = MediaKind.AUDIO,
         **metadata) -> MediaNode:
    node = MediaNode(source_id=SOURCE_ID, id=node_id, kind=kind)
    node.title = title
    node.update({MetadataKey[name.upper()]: value for name, value in metadata.items()})
    return node


class FakeBackend(Backend):
    """Serves a fixed tree and counts every primitive invocation."""

    plugin_name = "fake"
    default_name = "Fake"

    def __init__(self, children: Optional[Dict[Optional[str], List[MediaNode]]] = None,
                 source_id: str = SOURCE_ID, name: str = "Fake Source", searchable: bool = False,
                 matches: Optional[List[MediaNode]] = None, ops: Optional[SupportedOps] = None) -> None:
        super().__init__({"name": name}, source_id=source_id)
        self.children = children or {}
        self.matches = matches or []
        self.searchable = searchable
        self.ops = ops
        self.fail_with: Optional[Exception] = None
        self.calls: List[tuple] = []
        self.operations = []
        self.delivered = 0
        self.cleaned_up = False

    @property
    def info(self) -> BackendInfo:
        return BackendInfo(name="fake", version="1.0.0", description="In-memory test backend")

    def cleanup(self) -> None:
        self.cleaned_up = True

    def supported_operations(self) -> SupportedOps:
        if self.ops is not None:
            return self.ops
        ops = SupportedOps.RESOLVE | SupportedOps.BROWSE
        if self.searchable:
            ops |= SupportedOps.SEARCH
        return ops

    @staticmethod
    def _copy(node: MediaNode) -> MediaNode:
        return replace(node, metadata=dict(node.metadata))

    def _find(self, node_id: str) -> MediaNode:
        for nodes in self.children.values():
            for node in nodes:
                if node.id == node_id:
                    return node
        raise BackendError(f"No node {node_id}")

    async def fetch_node(self, node: MediaNode, keys: Collection[MetadataKey]) -> MediaNode:
        if self.fail_with is not None:
            raise self.fail_with
        if node.is_root:
            root = MediaNode.root(self.source_id)
            root.set(MetadataKey.CHILDCOUNT, len(self.children.get(None, [])))
            return root
        return self._copy(self._find(node.id))

    async def fetch_children(self, node: MediaNode, keys: Collection[MetadataKey]) -> List[MediaNode]:
        if self.fail_with is not None:
            raise self.fail_with
        return [self._copy(child) for child in self.children.get(node.id, [])]

    async def fetch_matches(self, query: str, keys: Collection[MetadataKey]) -> List[MediaNode]:
        return [self._copy(match) for match in self.matches]

    def _counting(self, callback):
        def deliver(node, remaining, error):
            self.delivered += 1
            callback(node, remaining, error)
        return deliver

    def resolve(self, node, keys, callback):
        self.calls.append(("resolve", node.id, tuple(keys)))
        return super().resolve(node, keys, callback)

    def browse(self, node, keys, skip, count, callback):
        self.calls.append(("browse", node.id, skip, count))
        operation = super().browse(node, keys, skip, count, self._counting(callback))
        self.operations.append(operation)
        return operation

    def search(self, query, keys, skip, count, callback):
        self.calls.append(("search", query, skip, count))
        operation = super().search(query, keys, skip, count, self._counting(callback))
        self.operations.append(operation)
        return operation


@pytest.fixture
def tree():
    """Root with [containerA, itemB, itemC]; containerA holds one item."""
    return {
        None: [
            container("a", "containerA", childcount=1),
            item("b", "itemB", mime="audio/mpeg", url="http://example.org/b.mp3", bitrate=128000),
            item("c", "itemC", mime="video/mp4"),
        ],
        "a": [item("a/d", "itemD", mime="image/png")],
    }


@pytest.fixture
def backend(tree):
    return FakeBackend(tree)


@pytest.fixture
def searchable_backend(tree):
    return FakeBackend(tree, searchable=True, matches=[tree[None][1], tree[None][2]])
