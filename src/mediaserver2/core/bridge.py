"""Bridge entry points installed on every backend endpoint.

``get_properties``, ``list_children`` and ``search_objects`` decode the
target identifier, drive the backend's asynchronous primitives and return
projected property maps. Input errors are reported before the backend is
contacted; backend failures surface as :class:`BackendError` and never
come with partial results.
"""

import logging
from typing import List

from ..exceptions import BackendError, MediaServer2Error, OperationNotPermitted
from ..models.config import MAX_LIMIT
from ..providers.base import Backend
from . import identifiers
from .adapter import ResolveRequest, wait_for_result
from .listing import ListingSession, ListType, compute_window
from .properties import FieldFilter, PropertyMap, PropertyProjector, backend_keys, parse_filter
from .schema import ROOT_ID

logger = logging.getLogger(__name__)


class MediaServerBridge:
    """Serves property and listing requests for one backend."""

    def __init__(self, backend: Backend, limit: int = MAX_LIMIT) -> None:
        self.backend = backend
        self.limit = limit
        self.projector = PropertyProjector(searchable=backend.supports_search())

    async def get_properties(self, object_id: str, fields: FieldFilter) -> PropertyMap:
        """Return the requested properties of one object.

        Raises:
            UnknownProperty: If ``fields`` names a field outside the schema
            InvalidIdentifier: If ``object_id`` cannot be decoded
            BackendError: If the backend fails to resolve the object
        """
        properties = parse_filter(fields)
        node = identifiers.decode(object_id, self.backend.source_id)
        keys = backend_keys(properties)

        request = ResolveRequest()
        if keys:
            logger.debug(f"{self.backend.source_id}: resolving {object_id} for {[k.value for k in keys]}")
            try:
                self.backend.resolve(node, keys, request.on_resolved)
            except MediaServer2Error:
                raise
            except Exception as e:
                raise BackendError(str(e)) from e
        else:
            request.on_resolved(node, None)

        await wait_for_result(request)

        resolved = request.node or node
        if resolved.parent_id is None:
            resolved.parent_id = node.parent_id
        # Root containers without a title are named after their backend
        if resolved.is_root and not resolved.title:
            resolved.title = self.backend.name

        return self.projector.project(resolved, properties)

    async def list_children(self, object_id: str, list_type: ListType, offset: int, max_count: int,
                            fields: FieldFilter) -> List[PropertyMap]:
        """List one page of the children of a container.

        Args:
            object_id: Identifier of the container
            list_type: Which children to return
            offset: Number of matching children to skip
            max_count: Maximum number of children, 0 for as many as allowed
            fields: Properties to return for each child
        """
        properties = parse_filter(fields)
        node = identifiers.decode(object_id, self.backend.source_id)

        window = compute_window(list_type, offset, max_count, self.limit)
        if window is None:
            return []

        session = ListingSession(
            list_type,
            window,
            project=lambda child: self.projector.project(child, properties),
            parent_id=object_id,
        )
        logger.debug(
            f"{self.backend.source_id}: browsing {object_id} ({list_type.value}) "
            f"skip={window.skip} count={window.count}"
        )
        try:
            operation = self.backend.browse(node, backend_keys(properties), window.skip,
                                            window.count, session.on_node)
        except MediaServer2Error:
            raise
        except Exception as e:
            raise BackendError(str(e)) from e
        session.attach(operation)

        await wait_for_result(session)
        return session.results

    async def search_objects(self, object_id: str, query: str, offset: int, max_count: int,
                             fields: FieldFilter) -> List[PropertyMap]:
        """Search the backend; only allowed on the root container.

        Raises:
            OperationNotPermitted: If ``object_id`` is not the root
        """
        properties = parse_filter(fields)
        if object_id != ROOT_ID:
            raise OperationNotPermitted("search is only allowed in root container")

        window = compute_window(ListType.ALL, offset, max_count, self.limit)
        if window is None:
            return []

        session = ListingSession(
            ListType.ALL,
            window,
            project=lambda match: self.projector.project(match, properties),
            parent_id=object_id,
        )
        logger.debug(f"{self.backend.source_id}: searching {query!r} skip={window.skip} count={window.count}")
        try:
            operation = self.backend.search(query, backend_keys(properties), window.skip,
                                            window.count, session.on_node)
        except MediaServer2Error:
            raise
        except Exception as e:
            raise BackendError(str(e)) from e
        session.attach(operation)

        await wait_for_result(session)
        return session.results
