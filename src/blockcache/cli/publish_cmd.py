"""CLI command for publishing publication events.

Every instance subscribed to the Redis channel purges the affected block
types. Without --block-type the event invalidates every cached render.

Usage:
    blockcache publish published post-42 --block-type core/latest-posts
    blockcache publish unpublished page-7
"""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console

from blockcache.cache.redis import create_redis_client
from blockcache.config import Settings
from blockcache.events.redis_bus import RedisPubSubEventBus
from blockcache.events.schemas import PublicationEventType, PublicationStateChange


def publish(
    event_type: PublicationEventType = typer.Argument(..., help="published or unpublished"),
    content_id: str = typer.Argument(..., help="Identifier of the content that changed"),
    block_types: list[str] | None = typer.Option(
        None,
        "--block-type",
        "-b",
        help="Affected block type (repeatable); omit to invalidate everything",
    ),
    redis_url: str | None = typer.Option(
        None,
        "--redis-url",
        help="Redis URL (defaults to BLOCKCACHE_REDIS_URL)",
    ),
) -> None:
    """Publish a publication state change on the invalidation channel."""
    settings = Settings()
    event = PublicationStateChange(
        event_type=event_type,
        content_id=content_id,
        affected_block_types=frozenset(block_types) if block_types else None,
    )

    asyncio.run(_publish(event, redis_url or settings.redis_url, settings.invalidation_channel))

    console = Console()
    scope = ", ".join(sorted(event.affected_block_types or ())) or "all block types"
    console.print(f"[green]Published[/green] {event_type.value} {content_id} ({scope})")


async def _publish(event: PublicationStateChange, redis_url: str, channel: str) -> None:
    bus = RedisPubSubEventBus(create_redis_client(redis_url), channel=channel)
    try:
        await bus.publish(event)
    finally:
        await bus.client.aclose()
