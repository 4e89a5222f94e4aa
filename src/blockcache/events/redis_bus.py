"""Redis Pub/Sub event bus for multi-instance deployments.

Every instance subscribes to one channel. A publication event published
by any instance (or by the content-management side directly) reaches the
handlers of all instances, so each purges its own cache.

Example:
    bus = RedisPubSubEventBus(create_redis_client(url))
    await bus.subscribe(listener.handle_event)
    await bus.start()

    await bus.publish(PublicationStateChange(...))
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, cast

import orjson

from blockcache.events.bus import EventBus, EventHandler, dispatch
from blockcache.events.schemas import PublicationStateChange

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from redis.asyncio.client import PubSub

logger = logging.getLogger(__name__)

# Pub/Sub channel name
PUBLICATION_CHANNEL = "blockcache:publication"


class RedisPubSubEventBus(EventBus):
    """Receives and publishes publication events via Redis Pub/Sub.

    Delivery is at-most-once: events published while an instance is not
    subscribed are not replayed. Redelivery is the event source's concern.
    """

    def __init__(
        self,
        client: Redis,
        channel: str = PUBLICATION_CHANNEL,
        owns_client: bool = False,
    ):
        self.client = client
        self.channel = channel
        self.owns_client = owns_client
        self._handlers: list[EventHandler] = []
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._pubsub: PubSub | None = None

    async def subscribe(self, handler: EventHandler) -> None:
        """Register a handler for publication events."""
        self._handlers.append(handler)
        handler_name = getattr(handler, "__name__", handler.__class__.__name__)
        logger.info(f"Registered publication handler: {handler_name}")

    async def start(self) -> None:
        """Start listening for publication events."""
        if self._running:
            return

        self._pubsub = self.client.pubsub()
        await self._pubsub.subscribe(self.channel)

        self._running = True
        self._task = asyncio.create_task(self._listen_loop())
        logger.info(f"Started publication listener on channel {self.channel}")

    async def stop(self) -> None:
        """Stop listening for publication events."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._pubsub:
            await self._pubsub.unsubscribe(self.channel)
            await self._pubsub.aclose()
            self._pubsub = None

        if self.owns_client:
            await self.client.aclose()

        logger.info("Stopped publication listener")

    async def _listen_loop(self) -> None:
        """Main loop for receiving publication events."""
        while self._running and self._pubsub:
            try:
                message = await self._pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=1.0,
                )

                if message is None:
                    continue

                if message["type"] == "message":
                    await self._handle_message(message["data"])

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in publication listener: {e}")
                await asyncio.sleep(1)

    async def _handle_message(self, data: bytes) -> None:
        """Decode an incoming message and dispatch it."""
        try:
            event = PublicationStateChange.from_bytes(data)
        except (orjson.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Failed to parse publication event: {e}")
            return

        logger.debug(f"Received {event.event_type.value} for content {event.content_id}")
        await dispatch(self._handlers, event)

    async def publish(self, event: PublicationStateChange) -> None:
        """Publish an event to all instances."""
        count = cast(int, await self.client.publish(self.channel, event.to_bytes()))
        logger.debug(
            f"Published {event.event_type.value} for content {event.content_id} "
            f"to {count} subscribers"
        )
