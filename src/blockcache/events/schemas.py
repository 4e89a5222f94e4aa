"""Publication event schemas.

A PublicationStateChange is emitted by the content-management side when
content is published or unpublished. It names the block types the content
uses; when it cannot say, ``affected_block_types`` is None and consumers
treat every cached render as affected.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

import orjson


class PublicationEventType(str, Enum):
    """Publication state transition."""

    PUBLISHED = "published"
    UNPUBLISHED = "unpublished"


@dataclass(frozen=True, slots=True)
class PublicationStateChange:
    """Event for content publication state changes."""

    event_type: PublicationEventType
    content_id: str
    affected_block_types: frozenset[str] | None = None
    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if self.affected_block_types is not None and not isinstance(
            self.affected_block_types, frozenset
        ):
            object.__setattr__(self, "affected_block_types", frozenset(self.affected_block_types))

    @property
    def invalidates_everything(self) -> bool:
        return self.affected_block_types is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "content_id": self.content_id,
            "affected_block_types": (
                sorted(self.affected_block_types)
                if self.affected_block_types is not None
                else None
            ),
            "event_id": self.event_id,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_bytes(self) -> bytes:
        """Serialize to JSON bytes."""
        return orjson.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PublicationStateChange":
        block_types = data.get("affected_block_types")
        kwargs: dict[str, Any] = {}
        if data.get("event_id"):
            kwargs["event_id"] = data["event_id"]
        if data.get("timestamp"):
            kwargs["timestamp"] = datetime.fromisoformat(data["timestamp"])
        return cls(
            event_type=PublicationEventType(data["event_type"]),
            content_id=str(data["content_id"]),
            affected_block_types=frozenset(block_types) if block_types is not None else None,
            **kwargs,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "PublicationStateChange":
        """Deserialize from JSON bytes."""
        return cls.from_dict(orjson.loads(data))
