"""Conversion between protocol object identifiers and backend nodes.

A non-root identifier is a self-describing token::

    grl://<kind>/<source id>/<quoted node id>?parent=<quoted parent identifier>

It embeds everything needed to rebuild a node reference, so the bridge
keeps no lookup table. The parent identifier is carried along so that the
Parent property of a decoded node can be projected without re-deriving it.
"""

from urllib.parse import parse_qsl, quote, unquote, urlencode, urlsplit

from ..exceptions import InvalidIdentifier
from ..models.media import MediaKind, MediaNode
from .schema import ROOT_ID

SCHEME = "grl"


def encode(node: MediaNode) -> str:
    """Return the identifier for a node.

    The root of a backend always maps to the root sentinel.
    """
    if node.is_root:
        return ROOT_ID

    token = f"{SCHEME}://{node.kind.value}/{quote(node.source_id, safe='')}/{quote(node.id, safe='')}"
    if node.parent_id is not None:
        token += "?" + urlencode({"parent": node.parent_id})
    return token


def decode(identifier: str, source_id: str) -> MediaNode:
    """Rebuild a node reference from an identifier.

    Args:
        identifier: Identifier previously produced by :func:`encode`, or the
            root sentinel
        source_id: Native id of the backend the identifier is addressed to

    Returns:
        A node tagged with its parent identifier

    Raises:
        InvalidIdentifier: If the token is malformed or belongs to another backend
    """
    if identifier == ROOT_ID:
        node = MediaNode.root(source_id)
        node.parent_id = ROOT_ID
        return node

    try:
        parts = urlsplit(identifier)
        query = dict(parse_qsl(parts.query, keep_blank_values=True, strict_parsing=bool(parts.query)))
    except ValueError as e:
        raise InvalidIdentifier(f"Malformed identifier {identifier!r}: {e}") from e

    if parts.scheme != SCHEME or parts.fragment:
        raise InvalidIdentifier(f"Malformed identifier {identifier!r}")

    try:
        kind = MediaKind(parts.netloc)
    except ValueError:
        raise InvalidIdentifier(f"Unknown media kind in identifier {identifier!r}") from None

    segments = parts.path.split("/")
    if len(segments) != 3 or segments[0] != "" or not segments[1] or not segments[2]:
        raise InvalidIdentifier(f"Malformed identifier {identifier!r}")

    token_source = unquote(segments[1])
    if token_source != source_id:
        raise InvalidIdentifier(
            f"Identifier {identifier!r} belongs to source {token_source!r}, not {source_id!r}"
        )

    return MediaNode(
        source_id=source_id,
        id=unquote(segments[2]),
        kind=kind,
        parent_id=query.get("parent"),
    )
