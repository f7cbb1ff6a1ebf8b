"""Request correlation for the JSON-RPC client.

Maps outstanding request ids to the futures their callers are awaiting.
Each id is handed out once and resolved at most once; anything that
arrives for an id that is no longer pending is dropped.
"""

import asyncio
import itertools
from dataclasses import dataclass, field

from mcp_client.protocol import JsonRpcResponse
from shared.logging import get_logger

logger = get_logger(__name__)


@dataclass
class PendingCall:
    """A request waiting for its response."""
    id: int
    method: str
    future: asyncio.Future = field(repr=False)


class RequestCorrelator:
    """
    Pending-request table shared by callers and the stdout reader.

    Ids start at 1 and only ever increase. Callers register() before
    writing their request so a fast reply always finds its slot.
    """

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._pending: dict[int, PendingCall] = {}
        self._lock = asyncio.Lock()

    def next_id(self) -> int:
        """Hand out the next request id."""
        return next(self._ids)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def register(self, request_id: int, method: str = "") -> PendingCall:
        """
        Create the completion slot for a request.

        Raises:
            ValueError: If the id is already pending
        """
        async with self._lock:
            if request_id in self._pending:
                raise ValueError(f"Request id {request_id} is already pending")
            call = PendingCall(
                id=request_id,
                method=method,
                future=asyncio.get_running_loop().create_future()
            )
            self._pending[request_id] = call
            return call

    async def resolve(self, request_id: int, response: JsonRpcResponse) -> bool:
        """
        Deliver a response to its waiting caller.

        Returns:
            True if delivered, False if the id was unknown, expired or
            already resolved
        """
        async with self._lock:
            call = self._pending.pop(request_id, None)

        if call is None or call.future.done():
            return False

        call.future.set_result(response)
        return True

    async def discard(self, request_id: int) -> None:
        """Forget a request whose caller stopped waiting."""
        async with self._lock:
            call = self._pending.pop(request_id, None)

        if call is not None and not call.future.done():
            call.future.cancel()

    async def fail_all(self, exc: BaseException) -> int:
        """
        Reject every outstanding request with the same error.

        Returns:
            Number of requests that were failed
        """
        async with self._lock:
            calls = list(self._pending.values())
            self._pending.clear()

        failed = 0
        for call in calls:
            if not call.future.done():
                call.future.set_exception(exc)
                failed += 1

        if failed:
            logger.debug("Failed pending requests", count=failed, error=str(exc))
        return failed
