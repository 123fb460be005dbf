"""Tests for object identifier encoding and decoding."""

import pytest

from mediaserver2.core import identifiers
from mediaserver2.core.schema import ROOT_ID
from mediaserver2.exceptions import InvalidIdentifier
from mediaserver2.models.media import MediaKind, MediaNode


class TestEncode:
    """Test identifier encoding."""

    def test_root_encodes_to_sentinel(self):
        assert identifiers.encode(MediaNode.root("src")) == ROOT_ID

    def test_node_token_is_deterministic(self):
        node = MediaNode(source_id="src", id="album/track 1.mp3", kind=MediaKind.AUDIO, parent_id=ROOT_ID)
        assert identifiers.encode(node) == identifiers.encode(node)

    def test_token_embeds_kind_and_parent(self):
        node = MediaNode(source_id="src", id="x", kind=MediaKind.VIDEO, parent_id=ROOT_ID)
        token = identifiers.encode(node)
        assert token.startswith("grl://video/src/x")
        assert "parent=0" in token

    def test_node_without_parent_has_no_query(self):
        node = MediaNode(source_id="src", id="x", kind=MediaKind.IMAGE)
        assert "?" not in identifiers.encode(node)


class TestDecode:
    """Test identifier decoding."""

    def test_root_decodes_to_root_with_itself_as_parent(self):
        node = identifiers.decode(ROOT_ID, "src")
        assert node.is_root
        assert node.is_container
        assert node.source_id == "src"
        assert node.parent_id == ROOT_ID

    def test_round_trip_keeps_reference_and_parent(self):
        parent = identifiers.encode(
            MediaNode(source_id="my:src", id="dir/with spaces", kind=MediaKind.CONTAINER, parent_id=ROOT_ID)
        )
        node = MediaNode(source_id="my:src", id="dir/with spaces/song?.ogg", kind=MediaKind.AUDIO,
                         parent_id=parent)

        decoded = identifiers.decode(identifiers.encode(node), "my:src")

        assert decoded.id == node.id
        assert decoded.kind is MediaKind.AUDIO
        assert decoded.source_id == "my:src"
        assert decoded.parent_id == parent

    @pytest.mark.parametrize("token", [
        "",
        "garbage",
        "http://audio/src/x",
        "grl://nonsense/src/x",
        "grl://audio/src",
        "grl://audio/src/",
        "grl://audio/src/x/extra",
        "grl://audio/src/x#frag",
    ])
    def test_malformed_tokens_are_rejected(self, token):
        with pytest.raises(InvalidIdentifier):
            identifiers.decode(token, "src")

    def test_token_of_another_source_is_rejected(self):
        token = identifiers.encode(MediaNode(source_id="other", id="x", kind=MediaKind.AUDIO))
        with pytest.raises(InvalidIdentifier, match="other"):
            identifiers.decode(token, "src")

    def test_invalid_identifier_kind(self):
        with pytest.raises(InvalidIdentifier) as exc_info:
            identifiers.decode("garbage", "src")
        assert exc_info.value.kind == "InvalidIdentifier"
