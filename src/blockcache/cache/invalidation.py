"""Cache invalidation driven by publication events.

When content is published or unpublished, cached renders of the block
types it uses may be stale. The listener maps each event to prefix groups
and deletes them from the store:

- ``affected_block_types`` given: purge each block type's prefix group
- ``affected_block_types`` is None: purge the whole store
- empty set: nothing to purge

Invalidation runs on the event bus task, after the publish call returns;
a stale render may be served briefly, never beyond one TTL.

Example:
    listener = InvalidationListener(store)
    await listener.attach(bus)
"""

from __future__ import annotations

import logging

from blockcache.cache.keys import CacheKeys
from blockcache.cache.store import CacheStore
from blockcache.core.errors import StoreUnavailableError
from blockcache.events.bus import EventBus
from blockcache.events.schemas import PublicationStateChange
from blockcache.observability.metrics import record_invalidation

logger = logging.getLogger(__name__)


class InvalidationListener:
    """Purges cached renders affected by publication state changes.

    Handling is idempotent: purging an already-clean prefix is a no-op.
    Store failures are logged and dropped; redelivery belongs to the event
    source.
    """

    def __init__(self, store: CacheStore) -> None:
        self.store = store
        self.events_handled = 0
        self.entries_removed = 0

    async def attach(self, bus: EventBus) -> None:
        """Subscribe to publication events on a bus."""
        await bus.subscribe(self.handle_event)

    async def handle_event(self, event: PublicationStateChange) -> int:
        """Invalidate the cache for one event. Returns entries removed."""
        reason = event.event_type.value

        try:
            if event.invalidates_everything:
                removed = await self.store.clear()
                logger.info(
                    f"Invalidated all {removed} cached renders after {reason} "
                    f"of content {event.content_id}"
                )
            else:
                block_types = sorted(event.affected_block_types or ())
                removed = 0
                for block_type in block_types:
                    removed += await self.store.delete_by_prefix(
                        CacheKeys.prefix_group(block_type)
                    )
                logger.debug(
                    f"Invalidated {removed} cached renders for "
                    f"{len(block_types)} block types after {reason} "
                    f"of content {event.content_id}"
                )
        except StoreUnavailableError as e:
            logger.error(f"Invalidation for event {event.event_id} failed: {e}")
            return 0

        self.events_handled += 1
        self.entries_removed += removed
        record_invalidation(reason, removed)
        return removed
