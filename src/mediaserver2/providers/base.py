"""Base backend interface for media providers.

A backend exposes its catalog through three asynchronous primitives:
``resolve`` (one node, one callback), ``browse`` and ``search`` (a stream of
node callbacks, each carrying the number of nodes still to come). Every
primitive returns an :class:`Operation` handle that can cancel the work.
Callbacks are always delivered on the running asyncio event loop.
"""

import asyncio
import itertools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Flag, auto
from typing import Any, Callable, Collection, Dict, List, Optional

from ..exceptions import BackendUnavailable
from ..models.media import MediaNode, MetadataKey

logger = logging.getLogger(__name__)

ResolveCallback = Callable[[Optional[MediaNode], Optional[BaseException]], None]
BrowseCallback = Callable[[Optional[MediaNode], int, Optional[BaseException]], None]

_operation_ids = itertools.count(1)

# Config keys every backend accepts on top of its own
COMMON_CONFIG_PROPERTIES: Dict[str, Any] = {
    "name": {"type": "string", "minLength": 1},
    "source_id": {"type": "string", "minLength": 1},
}


class SupportedOps(Flag):
    """Operations a backend implements."""
    NONE = 0
    RESOLVE = auto()
    BROWSE = auto()
    SEARCH = auto()


@dataclass(slots=True)
class BackendInfo:
    """Information about a backend plugin."""
    name: str
    version: str
    description: str
    author: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Backend name is required")
        if not self.version:
            raise ValueError("Backend version is required")


class Operation:
    """Handle on an in-flight backend operation."""

    def __init__(self, task: Optional["asyncio.Task[None]"] = None) -> None:
        self.operation_id = next(_operation_ids)
        self._task = task
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def done(self) -> bool:
        return self._task is None or self._task.done()

    def cancel(self) -> None:
        """Stop the operation; no further callbacks are delivered."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.debug(f"Cancelled operation {self.operation_id}")


class Backend(ABC):
    """Base class for all content backends.

    Subclasses provide ``plugin_name`` and implement :meth:`fetch_node` and
    :meth:`fetch_children`; backends that can search override
    :meth:`fetch_matches` and report ``SupportedOps.SEARCH``. Backends with a
    truly incremental source may override :meth:`browse` and :meth:`search`
    directly as long as they keep the callback contract.
    """

    plugin_name: str = ""
    default_name: str = ""

    # JSON schema for one config entry of this plugin
    config_schema: Dict[str, Any] = {"type": "object", "properties": COMMON_CONFIG_PROPERTIES}

    def __init__(self, config: Optional[Dict[str, Any]] = None, source_id: Optional[str] = None) -> None:
        self.config = config or {}
        self.source_id = source_id or self.config.get("source_id") or self.plugin_name
        self.name = self.config.get("name") or self.default_name or self.source_id
        self.enabled = True

    @property
    @abstractmethod
    def info(self) -> BackendInfo:
        """Return backend information."""
        pass

    def initialize(self) -> None:
        """Prepare the backend before it is registered."""
        pass

    def cleanup(self) -> None:
        """Release resources when the backend goes away."""
        pass

    def supported_operations(self) -> SupportedOps:
        return SupportedOps.RESOLVE | SupportedOps.BROWSE

    def supports_search(self) -> bool:
        return bool(self.supported_operations() & SupportedOps.SEARCH)

    def native_id(self, node: MediaNode) -> Optional[str]:
        """Backend-local id of a node; ``None`` for the root."""
        return node.id

    # ------------------------------------------------------------------
    # Work performed by concrete backends
    # ------------------------------------------------------------------

    @abstractmethod
    async def fetch_node(self, node: MediaNode, keys: Collection[MetadataKey]) -> MediaNode:
        """Fill in the requested metadata of a node."""
        pass

    @abstractmethod
    async def fetch_children(self, node: MediaNode, keys: Collection[MetadataKey]) -> List[MediaNode]:
        """Return the children of a container in a stable order."""
        pass

    async def fetch_matches(self, query: str, keys: Collection[MetadataKey]) -> List[MediaNode]:
        """Return the nodes matching a search query in a stable order."""
        raise BackendUnavailable(f"{self.source_id} does not support search")

    # ------------------------------------------------------------------
    # Asynchronous primitives
    # ------------------------------------------------------------------

    def resolve(self, node: MediaNode, keys: Collection[MetadataKey],
                callback: ResolveCallback) -> Operation:
        """Resolve metadata of one node, reporting through ``callback``."""
        operation = Operation()

        async def run() -> None:
            try:
                resolved = await self.fetch_node(node, keys)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.debug(f"{self.source_id}: resolve failed: {e}")
                self._deliver(callback, None, e)
                return
            try:
                callback(resolved, None)
            except Exception as e:
                logger.error(f"{self.source_id}: resolve callback raised: {e}")
                self._deliver(callback, None, e)

        operation._task = asyncio.get_running_loop().create_task(run())
        return operation

    def browse(self, node: MediaNode, keys: Collection[MetadataKey], skip: int, count: int,
               callback: BrowseCallback) -> Operation:
        """Stream up to ``count`` children of ``node`` after skipping ``skip``."""
        return self._stream(lambda: self.fetch_children(node, keys), skip, count, callback)

    def search(self, query: str, keys: Collection[MetadataKey], skip: int, count: int,
               callback: BrowseCallback) -> Operation:
        """Stream up to ``count`` search matches after skipping ``skip``."""
        if not self.supports_search():
            raise BackendUnavailable(f"{self.source_id} does not support search")
        return self._stream(lambda: self.fetch_matches(query, keys), skip, count, callback)

    def _deliver(self, callback: Callable[..., None], *args: Any) -> None:
        """Report a failure; a callback that raises again is only logged."""
        try:
            callback(*args)
        except Exception:
            logger.exception(f"{self.source_id}: failure callback raised")

    def _stream(self, producer: Callable[[], Any], skip: int, count: int,
                callback: BrowseCallback) -> Operation:
        operation = Operation()

        async def run() -> None:
            try:
                nodes = await producer()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.debug(f"{self.source_id}: enumeration failed: {e}")
                self._deliver(callback, None, 0, e)
                return

            window = nodes[skip:skip + count] if count > 0 else []
            try:
                if not window:
                    callback(None, 0, None)
                    return

                remaining = len(window)
                for child in window:
                    remaining -= 1
                    callback(child, remaining, None)
                    if remaining:
                        # Let other callbacks, including a cancellation, run in between
                        await asyncio.sleep(0)
            except Exception as e:
                logger.error(f"{self.source_id}: enumeration callback raised: {e}")
                self._deliver(callback, None, 0, e)

        operation._task = asyncio.get_running_loop().create_task(run())
        return operation
