"""In-flight request registry for deduplicating concurrent loads."""

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


class InFlightRegistry(Generic[K, T]):
    """Maps an entity id to the task currently loading it.

    Concurrent callers for the same id await the same task, so N callers
    produce one network round-trip. Entries are dropped when their task
    finishes, whether it succeeded or failed.
    """

    def __init__(self, name: str):
        self.name = name
        self._pending: dict[K, asyncio.Task] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._pending

    def __len__(self) -> int:
        return len(self._pending)

    def get(self, key: K) -> Optional[asyncio.Task]:
        return self._pending.get(key)

    async def run(
        self,
        key: K,
        factory: Callable[[], Awaitable[T]],
        dedupe: bool = True,
    ) -> T:
        """Await the shared load for ``key``, starting one if needed.

        Args:
            key: Entity id
            factory: Creates the load coroutine when no shared one exists
            dedupe: When False, always start a fresh load. The fresh load
                    still becomes the shared one for later callers.

        Returns:
            The load result, identical for every caller sharing the task
        """
        if dedupe:
            existing = self._pending.get(key)
            if existing is not None:
                logger.debug(f"Joining in-flight {self.name} request for {key}")
                return await asyncio.shield(existing)

        task = asyncio.ensure_future(factory())
        self._pending[key] = task
        task.add_done_callback(lambda done: self._discard(key, done))
        return await asyncio.shield(task)

    def _discard(self, key: K, task: asyncio.Task) -> None:
        # A forced load may have replaced this entry already
        if self._pending.get(key) is task:
            del self._pending[key]
