"""Tests for the static catalog backend."""

import pytest

from mediaserver2.core.bridge import MediaServerBridge
from mediaserver2.core.listing import ListType
from mediaserver2.core.schema import ROOT_ID, Property
from mediaserver2.exceptions import BackendError, ConfigurationError
from mediaserver2.models.media import MediaKind, MediaNode, MetadataKey
from mediaserver2.providers.builtins import CatalogBackend

RADIO = {
    "name": "Radio",
    "searchable": True,
    "children": [
        {"title": "Jazz", "children": [
            {"id": "kcsm", "title": "KCSM", "mime": "audio/mpeg",
             "url": "http://example.org/kcsm", "metadata": {"bitrate": 128000, "genre": "Jazz"}},
            {"title": "Jazz24", "mime": "audio/aac"},
        ]},
        {"title": "Playlists", "type": "container"},
        {"title": "Station logo", "mime": "image/png", "metadata": {"width": 64, "height": 64}},
    ],
}


@pytest.fixture
def catalog():
    backend = CatalogBackend(RADIO, source_id="grl-radio")
    backend.initialize()
    return backend


class TestCatalogBuild:
    """Test building the tree from configuration."""

    def test_positional_ids(self, catalog):
        assert sorted(catalog._entries) == ["1", "1/2", "2", "3", "kcsm"]

    def test_kinds(self, catalog):
        assert catalog._entries["1"].kind is MediaKind.CONTAINER
        assert catalog._entries["2"].kind is MediaKind.CONTAINER
        assert catalog._entries["3"].kind is MediaKind.IMAGE
        assert catalog._entries["kcsm"].kind is MediaKind.AUDIO

    def test_duplicate_ids_are_rejected(self):
        backend = CatalogBackend({"children": [{"id": "x", "title": "A"}, {"id": "x", "title": "B"}]})
        with pytest.raises(ConfigurationError, match="Duplicate"):
            backend.initialize()

    def test_unknown_metadata_key_is_rejected(self):
        backend = CatalogBackend({"children": [{"title": "A", "metadata": {"colour": "red"}}]})
        with pytest.raises(ConfigurationError, match="colour"):
            backend.initialize()

    def test_childcount_cannot_be_declared(self):
        backend = CatalogBackend({"children": [{"title": "A", "metadata": {"childcount": 3}}]})
        with pytest.raises(ConfigurationError):
            backend.initialize()

    def test_search_is_opt_in(self):
        assert not CatalogBackend({}).supports_search()
        assert CatalogBackend({"searchable": True}).supports_search()


class TestCatalogPrimitives:
    """Test node lookups."""

    @pytest.mark.asyncio
    async def test_root_node(self, catalog):
        root = await catalog.fetch_node(MediaNode.root("grl-radio"), [MetadataKey.CHILDCOUNT])
        assert root.is_root
        assert root.childcount == 3

    @pytest.mark.asyncio
    async def test_metadata_is_filtered_by_keys(self, catalog):
        node = await catalog.fetch_node(MediaNode(source_id="grl-radio", id="kcsm"), [MetadataKey.BITRATE])

        assert node.get(MetadataKey.BITRATE) == 128000
        assert node.title == "KCSM"
        assert not node.has(MetadataKey.GENRE)

    @pytest.mark.asyncio
    async def test_unknown_id(self, catalog):
        with pytest.raises(BackendError):
            await catalog.fetch_node(MediaNode(source_id="grl-radio", id="nope"), [])

    @pytest.mark.asyncio
    async def test_children_of_item(self, catalog):
        with pytest.raises(BackendError):
            await catalog.fetch_children(MediaNode(source_id="grl-radio", id="kcsm"), [])

    @pytest.mark.asyncio
    async def test_search_in_preorder(self, catalog):
        matches = await catalog.fetch_matches("JAZZ", [])
        assert [m.id for m in matches] == ["1", "1/2"]


class TestCatalogThroughBridge:
    """Test the catalog behind the bridge."""

    @pytest.mark.asyncio
    async def test_browse(self, catalog):
        bridge = MediaServerBridge(catalog)

        root = await bridge.get_properties(ROOT_ID, ["DisplayName", "ChildCount"])
        folders = await bridge.list_children(ROOT_ID, ListType.CONTAINERS, 0, 0, ["Path", "DisplayName"])
        stations = await bridge.list_children(folders[0][Property.PATH], ListType.ITEMS, 0, 0,
                                              ["DisplayName", "URLs", "Bitrate"])

        assert root == {Property.DISPLAY_NAME: "Radio", Property.CHILD_COUNT: 3}
        assert [f[Property.DISPLAY_NAME] for f in folders] == ["Jazz", "Playlists"]
        assert stations[0] == {
            Property.DISPLAY_NAME: "KCSM",
            Property.URLS: ["http://example.org/kcsm"],
            Property.BITRATE: 128000,
        }
        assert stations[1][Property.DISPLAY_NAME] == "Jazz24"

    @pytest.mark.asyncio
    async def test_image_dimensions(self, catalog):
        bridge = MediaServerBridge(catalog)
        logo = await bridge.list_children(ROOT_ID, ListType.ITEMS, 0, 0, ["Type", "Width", "Height"])
        assert logo == [{Property.TYPE: "image", Property.WIDTH: 64, Property.HEIGHT: 64}]

    @pytest.mark.asyncio
    async def test_search(self, catalog):
        bridge = MediaServerBridge(catalog)
        results = await bridge.search_objects(ROOT_ID, "kcsm", 0, 0, ["DisplayName", "Type"])
        assert results == [{Property.DISPLAY_NAME: "KCSM", Property.TYPE: "audio"}]
