"""Tests for the filesystem backend."""

from types import SimpleNamespace

import pytest

from mediaserver2.core.bridge import MediaServerBridge
from mediaserver2.core.listing import ListType
from mediaserver2.core.schema import ROOT_ID, UNKNOWN_INT, Property
from mediaserver2.exceptions import BackendError, ConfigurationError
from mediaserver2.models.media import MediaKind, MediaNode, MetadataKey
from mediaserver2.providers.base import SupportedOps
from mediaserver2.providers.builtins import filesystem
from mediaserver2.providers.builtins.filesystem import FilesystemBackend, read_tags


@pytest.fixture
def library(tmp_path):
    root = tmp_path / "library"
    (root / "Albums" / "Blue").mkdir(parents=True)
    (root / "Empty").mkdir()
    (root / "Albums" / "Blue" / "01 River.mp3").write_bytes(b"\x00" * 64)
    (root / "cover.jpg").write_bytes(b"\xff\xd8\xff" + b"\x00" * 29)
    (root / "notes.txt").write_text("liner notes")
    (root / ".hidden").write_text("secret")
    return root


@pytest.fixture
def fake_tags(monkeypatch):
    """Replace mutagen with canned tags for every file."""
    media = SimpleNamespace(
        tags={"title": ["River"], "artist": ["Joni"], "album": ["Blue"], "date": ["1971"]},
        info=SimpleNamespace(length=243.6, bitrate=320000, sample_rate=44100),
    )
    monkeypatch.setattr(filesystem, "MutagenFile", lambda path, easy=True: media)
    return media


@pytest.fixture
def backend(library):
    fs = FilesystemBackend({"root": str(library), "name": "Music"}, source_id="grl-filesystem")
    fs.initialize()
    return fs


class TestReadTags:
    """Test mutagen tag extraction."""

    def test_tags_and_stream_info(self, tmp_path, fake_tags):
        values = read_tags(tmp_path / "song.mp3")

        assert values == {
            MetadataKey.TITLE: "River",
            MetadataKey.ARTIST: "Joni",
            MetadataKey.ALBUM: "Blue",
            MetadataKey.PUBLICATION_DATE: "1971",
            MetadataKey.DURATION: 244,
            MetadataKey.BITRATE: 320000,
            MetadataKey.SAMPLE_RATE: 44100,
        }

    def test_unrecognized_file(self, tmp_path, monkeypatch):
        monkeypatch.setattr(filesystem, "MutagenFile", lambda path, easy=True: None)
        assert read_tags(tmp_path / "x.mp3") == {}

    def test_unreadable_file(self, tmp_path):
        assert read_tags(tmp_path / "missing.mp3") == {}


class TestFilesystemBackend:
    """Test the backend primitives."""

    def test_missing_root_fails_initialization(self, tmp_path):
        fs = FilesystemBackend({"root": str(tmp_path / "nope")})
        with pytest.raises(ConfigurationError):
            fs.initialize()

    def test_search_can_be_disabled(self, library):
        fs = FilesystemBackend({"root": str(library), "searchable": False})
        assert not fs.supports_search()
        assert fs.supported_operations() == SupportedOps.RESOLVE | SupportedOps.BROWSE

    def test_names(self, library):
        fs = FilesystemBackend({"root": str(library)})
        assert fs.source_id == "filesystem"
        assert fs.name == "Filesystem"

    @pytest.mark.asyncio
    async def test_children_of_root(self, backend):
        children = await backend.fetch_children(MediaNode.root(backend.source_id), [MetadataKey.CHILDCOUNT])

        assert [(c.id, c.kind) for c in children] == [
            ("Albums", MediaKind.CONTAINER),
            ("Empty", MediaKind.CONTAINER),
            ("cover.jpg", MediaKind.IMAGE),
            ("notes.txt", MediaKind.UNKNOWN),
        ]
        assert children[0].childcount == 1
        assert children[1].childcount == 0

    @pytest.mark.asyncio
    async def test_hidden_files_can_be_shown(self, library):
        fs = FilesystemBackend({"root": str(library), "show_hidden": True})
        fs.initialize()
        children = await fs.fetch_children(MediaNode.root(fs.source_id), [])
        assert ".hidden" in [c.id for c in children]

    @pytest.mark.asyncio
    async def test_item_metadata(self, backend, library):
        node = MediaNode(source_id=backend.source_id, id="cover.jpg", kind=MediaKind.IMAGE)

        resolved = await backend.fetch_node(node, [MetadataKey.SIZE, MetadataKey.URL])

        assert resolved.title == "cover"
        assert resolved.get(MetadataKey.MIME) == "image/jpeg"
        assert resolved.get(MetadataKey.SIZE) == 32
        assert resolved.get(MetadataKey.URL) == (library / "cover.jpg").resolve().as_uri()

    @pytest.mark.asyncio
    async def test_audio_tags_are_read(self, backend, fake_tags):
        node = MediaNode(source_id=backend.source_id, id="Albums/Blue/01 River.mp3", kind=MediaKind.AUDIO)

        resolved = await backend.fetch_node(node, [MetadataKey.TITLE, MetadataKey.ARTIST])

        assert resolved.kind is MediaKind.AUDIO
        assert resolved.title == "River"
        assert resolved.get(MetadataKey.ARTIST) == "Joni"

    @pytest.mark.asyncio
    async def test_paths_outside_root_are_rejected(self, backend):
        node = MediaNode(source_id=backend.source_id, id="../outside", kind=MediaKind.CONTAINER)
        with pytest.raises(BackendError):
            await backend.fetch_node(node, [])

    @pytest.mark.asyncio
    async def test_missing_node(self, backend):
        node = MediaNode(source_id=backend.source_id, id="gone.mp3", kind=MediaKind.AUDIO)
        with pytest.raises(BackendError):
            await backend.fetch_node(node, [])

    @pytest.mark.asyncio
    async def test_search_names_and_titles(self, backend, fake_tags):
        matches = await backend.fetch_matches("river", [])
        assert [m.id for m in matches] == ["Albums/Blue/01 River.mp3"]

        matches = await backend.fetch_matches("BLUE", [])
        assert [m.id for m in matches] == ["Albums/Blue"]


class TestFilesystemThroughBridge:
    """Test the backend behind the bridge."""

    @pytest.mark.asyncio
    async def test_browse_tree(self, backend):
        bridge = MediaServerBridge(backend)

        root = await bridge.get_properties(ROOT_ID, ["DisplayName", "ChildCount", "Searchable"])
        albums = await bridge.list_children(ROOT_ID, ListType.CONTAINERS, 0, 1, ["Path", "DisplayName"])
        items = await bridge.list_children(ROOT_ID, ListType.ITEMS, 0, 0, ["DisplayName", "Type", "MIMEType"])

        assert root == {Property.DISPLAY_NAME: "Music", Property.CHILD_COUNT: 4, Property.SEARCHABLE: True}
        assert albums[0][Property.DISPLAY_NAME] == "Albums"
        assert [(i[Property.DISPLAY_NAME], i[Property.TYPE]) for i in items] == [
            ("cover", "image"),
            ("notes", "unknown"),
        ]

        blue = await bridge.list_children(albums[0][Property.PATH], ListType.ALL, 0, 0, ["DisplayName", "Parent"])
        assert blue == [{Property.DISPLAY_NAME: "Blue", Property.PARENT: albums[0][Property.PATH]}]

    @pytest.mark.asyncio
    async def test_dangling_link_does_not_fail_listing(self, backend, library):
        (library / "gone.mp3").symlink_to(library / "missing.mp3")
        bridge = MediaServerBridge(backend)

        items = await bridge.list_children(ROOT_ID, ListType.ITEMS, 0, 0, ["*"])

        by_name = {props[Property.DISPLAY_NAME]: props for props in items}
        assert by_name["cover"][Property.SIZE] == 32
        assert by_name["gone"][Property.SIZE] == UNKNOWN_INT
