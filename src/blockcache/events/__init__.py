"""Publication events for blockcache.

Content publish/unpublish transitions arrive as PublicationStateChange
events on an event bus and drive cache invalidation.
"""

from blockcache.events.bus import EventBus, EventHandler, InMemoryEventBus
from blockcache.events.redis_bus import PUBLICATION_CHANNEL, RedisPubSubEventBus
from blockcache.events.schemas import PublicationEventType, PublicationStateChange

__all__ = [
    # Event types
    "PublicationEventType",
    "PublicationStateChange",
    # Bus
    "EventBus",
    "EventHandler",
    "InMemoryEventBus",
    "RedisPubSubEventBus",
    "PUBLICATION_CHANNEL",
]
