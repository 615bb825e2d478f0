import asyncio
import functools
import logging
from typing import Awaitable, Callable, Dict, Hashable, TypeVar

logger = logging.getLogger("capkeo")

T = TypeVar("T")


class FetchGuard:
    """
    One in-flight request per key.

    The map holds the running task itself: a second caller for the same key awaits
    that task instead of starting another request. Registration happens before the
    first suspension point, so callers issued in the same tick still share one task.
    """

    def __init__(self):
        self._in_flight: Dict[Hashable, asyncio.Task] = {}

    def is_in_flight(self, key: Hashable) -> bool:
        return key in self._in_flight

    async def run(self, key: Hashable, factory: Callable[[], Awaitable[T]]) -> T:
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._in_flight[key] = task
            task.add_done_callback(functools.partial(self._release, key))
            return await asyncio.shield(task)
        return await self.join(key)

    async def join(self, key: Hashable):
        """Wait for the request running under `key`. The key must be in flight."""
        logger.debug(f"Joining in-flight request {key}")
        # A cancelled caller must not cancel the request other callers share
        return await asyncio.shield(self._in_flight[key])

    def _release(self, key: Hashable, task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        if not task.cancelled():
            # Mark the exception retrieved; callers still get it from their await
            task.exception()

    def forget_all(self) -> None:
        """Stop sharing requests started before a reset; they finish on their own."""
        self._in_flight.clear()
