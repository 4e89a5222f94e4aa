"""Event bus for publication events.

Provides pub/sub for publication state changes:
- InMemoryEventBus: for single-instance deployments
- RedisPubSubEventBus: for multi-instance deployments (see redis_bus)

Handlers run in a background task, so invalidation is asynchronous
relative to the publish call.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from blockcache.events.schemas import PublicationStateChange

logger = logging.getLogger(__name__)


EventHandler = Callable[[PublicationStateChange], Awaitable[object]]


class EventBus(ABC):
    """Abstract event bus interface."""

    @abstractmethod
    async def publish(self, event: PublicationStateChange) -> None:
        """Publish an event to the bus."""
        pass

    @abstractmethod
    async def subscribe(self, handler: EventHandler) -> None:
        """Subscribe a handler to receive events."""
        pass

    @abstractmethod
    async def start(self) -> None:
        """Start the event bus."""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Stop the event bus."""
        pass


async def dispatch(handlers: list[EventHandler], event: PublicationStateChange) -> None:
    """Run every handler for an event; a failing handler does not stop the rest."""
    for handler in handlers:
        try:
            await handler(event)
        except Exception:
            logger.exception(f"Error in event handler for {event.event_id}")


class InMemoryEventBus(EventBus):
    """In-memory event bus using asyncio.Queue.

    Suitable for single-instance deployments. Events are processed
    in FIFO order.
    """

    def __init__(self, max_size: int = 10000):
        self._queue: asyncio.Queue[PublicationStateChange] = asyncio.Queue(maxsize=max_size)
        self._handlers: list[EventHandler] = []
        self._running = False
        self._task: asyncio.Task[None] | None = None

    async def publish(self, event: PublicationStateChange) -> None:
        """Publish an event to the queue.

        Non-blocking if queue has space, blocks if queue is full.
        """
        await self._queue.put(event)

    async def subscribe(self, handler: EventHandler) -> None:
        """Subscribe a handler to receive events."""
        self._handlers.append(handler)

    async def start(self) -> None:
        """Start processing events."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._process_loop())

    async def stop(self) -> None:
        """Stop processing events."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _process_loop(self) -> None:
        """Main event processing loop."""
        while self._running:
            try:
                # Wait for event with timeout to allow graceful shutdown
                event = await asyncio.wait_for(self._queue.get(), timeout=1.0)
            except TimeoutError:
                continue
            except asyncio.CancelledError:
                break

            try:
                await dispatch(self._handlers, event)
            finally:
                self._queue.task_done()

    @property
    def pending_count(self) -> int:
        """Number of events waiting to be processed."""
        return self._queue.qsize()

    async def drain(self) -> None:
        """Wait for all pending events to be processed."""
        await self._queue.join()
