"""Per-key request coalescing.

At most one computation runs per key. Callers arriving while it is in
flight await the same task and receive the same result or exception.

The computation runs as its own task and every caller awaits it through
``asyncio.shield``: a caller that is cancelled or times out stops waiting,
but the computation keeps running so its result still reaches the cache.
No lock is held while the computation is awaited, and unrelated keys
never block each other.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """Coalesces concurrent calls for the same key into one task.

    Must be used from a single event loop.
    """

    def __init__(self) -> None:
        self._inflight: dict[str, asyncio.Task[T]] = {}

    def __len__(self) -> int:
        return len(self._inflight)

    def in_flight(self, key: str) -> bool:
        return key in self._inflight

    async def do(self, key: str, fn: Callable[[], Awaitable[T]]) -> tuple[T, bool]:
        """Run ``fn`` for ``key`` unless a run is already in flight.

        Returns:
            Tuple of (result, shared). ``shared`` is True when this caller
            joined a computation started by another caller.
        """
        task = self._inflight.get(key)
        shared = task is not None

        if task is None:
            task = asyncio.ensure_future(fn())
            self._inflight[key] = task
            task.add_done_callback(lambda t, k=key: self._forget(k, t))

        return await asyncio.shield(task), shared

    def _forget(self, key: str, task: asyncio.Task[T]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

        # Retrieve the exception so an unobserved failure is not reported
        # as "exception was never retrieved" after all waiters gave up.
        if not task.cancelled() and task.exception() is not None:
            logger.debug(f"Single-flight computation for {key} failed: {task.exception()!r}")

    async def wait_all(self) -> None:
        """Wait for every in-flight computation to settle."""
        tasks = list(self._inflight.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
