"""Paginated, type-filtered listings over streaming backend enumerations.

Backends can skip natively only over the untyped sequence of children.
Listings restricted to containers or items therefore enumerate from the
start and consume the requested offset by discarding matching nodes.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..models.media import MediaNode
from ..providers.base import Operation
from .adapter import PendingRequest, RequestState

logger = logging.getLogger(__name__)


class ListType(Enum):
    """Subsets of children a listing can return."""
    ALL = "children"
    CONTAINERS = "containers"
    ITEMS = "items"

    def matches(self, node: MediaNode) -> bool:
        if self is ListType.CONTAINERS:
            return node.is_container
        if self is ListType.ITEMS:
            return not node.is_container
        return True


@dataclass(frozen=True, slots=True)
class EnumerationWindow:
    """Slice of the backend enumeration a listing asks for."""
    skip: int
    count: int
    offset_to_skip: int


def compute_window(list_type: ListType, offset: int, max_count: int, limit: int) -> Optional[EnumerationWindow]:
    """Work out what to request from the backend.

    Args:
        list_type: Subset of children requested
        offset: Number of matching nodes to skip
        max_count: Requested number of nodes, 0 for as many as allowed
        limit: Global cap on nodes returned by one listing

    Returns:
        The window to enumerate, or None when the offset is beyond the cap
    """
    if offset < 0 or max_count < 0:
        raise ValueError("offset and count must be non-negative")
    if offset >= limit:
        return None

    if list_type is ListType.ALL:
        available = limit - offset
        count = available if max_count == 0 else min(max(max_count, 1), available)
        return EnumerationWindow(skip=offset, count=count, offset_to_skip=0)

    count = limit if max_count == 0 else max_count
    return EnumerationWindow(skip=0, count=count, offset_to_skip=offset)


class ListingSession(PendingRequest):
    """Transient state of one in-flight listing or search.

    The session is the callback target of a backend enumeration. It filters
    nodes by type, skips the pending offset, projects each accepted node and
    cancels the upstream operation once its quota is used up. Callbacks that
    arrive after the session finished are ignored.
    """

    def __init__(
        self,
        list_type: ListType,
        window: EnumerationWindow,
        project: Callable[[MediaNode], Dict[Any, Any]],
        parent_id: Optional[str] = None,
    ) -> None:
        super().__init__()
        self.list_type = list_type
        self.parent_id = parent_id
        self.offset_to_skip = window.offset_to_skip
        self.quota = window.count
        self.results: List[Dict[Any, Any]] = []
        self.operation: Optional[Operation] = None
        self._project = project

    @classmethod
    def empty(cls, list_type: ListType) -> "ListingSession":
        """A session that is already done with no results."""
        session = cls(list_type, EnumerationWindow(0, 0, 0), project=lambda node: {})
        session.finish()
        return session

    def attach(self, operation: Operation) -> None:
        """Remember the upstream operation so it can be cancelled."""
        self.operation = operation
        if self.finished and not operation.done():
            operation.cancel()

    def on_node(self, node: Optional[MediaNode], remaining: int, error: Optional[BaseException]) -> None:
        """Browse/search callback handed to the backend."""
        if self.finished:
            return

        if error is not None:
            self.results = []
            self.fail(error)
            return

        if node is not None and self.list_type.matches(node):
            if self.offset_to_skip > 0:
                self.offset_to_skip -= 1
            elif self.quota > 0:
                self.state = RequestState.COLLECTING
                if self.parent_id is not None:
                    node.parent_id = self.parent_id
                try:
                    projected = self._project(node)
                except Exception as e:
                    logger.debug(f"Cannot project {node.id}: {e}")
                    self.results = []
                    self.fail(e)
                    if self.operation is not None:
                        self.operation.cancel()
                    return
                self.results.append(projected)
                self.quota -= 1

        if remaining <= 0:
            self.finish()
        elif self.quota <= 0:
            logger.debug(f"Listing quota exhausted with {remaining} nodes left upstream")
            self.finish()
            if self.operation is not None:
                self.operation.cancel()
