"""In-flight request registry.

Concurrent callers asking for the same logical load share one asyncio task
instead of starting duplicate network work.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any


logger = logging.getLogger(__name__)


class InFlightRegistry:
    """Tracks at most one pending task per key.

    Only touched from the event loop thread, so no locking is needed.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task] = {}

    def start(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
    ) -> asyncio.Task:
        """Return the pending task for key, starting one if there is none.

        The task is removed from the registry as soon as it settles,
        whether it succeeded, failed or was cancelled.

        Args:
            key: Logical load name
            factory: Produces the awaitable to run; called only on a miss

        Returns:
            The shared task
        """
        task = self._tasks.get(key)
        if task is not None:
            logger.debug("Joining in-flight load %s", key)
            return task

        task = asyncio.ensure_future(factory())
        self._tasks[key] = task
        task.add_done_callback(lambda done: self._forget(key, done))
        return task

    async def run(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Await the shared result for key.

        Cancelling one caller does not cancel the shared task.
        """
        return await asyncio.shield(self.start(key, factory))

    def _forget(self, key: str, task: asyncio.Task) -> None:
        # A clear() followed by a new load may have replaced the entry
        if self._tasks.get(key) is task:
            del self._tasks[key]

    def is_pending(self, key: str) -> bool:
        """Check if a load for key is in flight."""
        return key in self._tasks

    def clear(self) -> None:
        """Forget every pending task without cancelling it."""
        self._tasks.clear()

    def __len__(self) -> int:
        return len(self._tasks)
