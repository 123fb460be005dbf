"""Bridge between backend callbacks and request handlers.

A protocol handler starts an asynchronous backend operation, then suspends
on :func:`wait_for_result` until the request's completion flag is set by a
callback. Everything runs on one asyncio event loop: the wait yields to the
loop, which keeps delivering callbacks of this and other in-flight
operations. No threads are involved.
"""

import asyncio
import logging
from enum import Enum
from typing import Optional

from ..exceptions import BackendError
from ..models.media import MediaNode

logger = logging.getLogger(__name__)


class RequestState(Enum):
    """Lifecycle of a pending bridge request."""
    PENDING = "pending"
    COLLECTING = "collecting"
    DONE = "done"
    FAILED = "failed"


class PendingRequest:
    """State shared between a waiting handler and backend callbacks."""

    def __init__(self) -> None:
        self.state = RequestState.PENDING
        self.error: Optional[BaseException] = None
        self._completed = asyncio.Event()

    @property
    def completed(self) -> bool:
        return self._completed.is_set()

    @property
    def finished(self) -> bool:
        return self.state in (RequestState.DONE, RequestState.FAILED)

    def finish(self) -> None:
        self.state = RequestState.DONE
        self._completed.set()

    def fail(self, error: BaseException) -> None:
        self.state = RequestState.FAILED
        self.error = error
        self._completed.set()

    async def wait(self) -> None:
        await self._completed.wait()


class ResolveRequest(PendingRequest):
    """Pending resolution of a single node."""

    def __init__(self) -> None:
        super().__init__()
        self.node: Optional[MediaNode] = None

    def on_resolved(self, node: Optional[MediaNode], error: Optional[BaseException]) -> None:
        """Resolve callback handed to the backend."""
        if self.finished:
            return
        if error is not None:
            self.fail(error)
            return
        self.node = node
        self.finish()


async def wait_for_result(request: PendingRequest) -> None:
    """Suspend the caller until ``request`` completes.

    Raises:
        BackendError: If the backend reported an error for the request
    """
    await request.wait()
    if request.state is RequestState.FAILED:
        error = request.error
        logger.debug(f"Backend operation failed: {error}")
        if isinstance(error, BackendError):
            raise error
        raise BackendError(str(error) or error.__class__.__name__) from error
