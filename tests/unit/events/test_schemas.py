"""Tests for publication event schemas."""

import orjson

from blockcache.events.schemas import PublicationEventType, PublicationStateChange


class TestPublicationStateChange:
    """Test event construction and serialization."""

    def test_block_types_normalized_to_frozenset(self) -> None:
        """Any iterable of block types becomes a frozenset."""
        event = PublicationStateChange(
            event_type=PublicationEventType.PUBLISHED,
            content_id="1",
            affected_block_types={"core/a", "core/b"},  # type: ignore[arg-type]
        )
        assert event.affected_block_types == frozenset({"core/a", "core/b"})
        assert not event.invalidates_everything

    def test_absent_block_types_means_everything(self) -> None:
        """No block types means the whole cache is affected."""
        event = PublicationStateChange(PublicationEventType.UNPUBLISHED, "1")
        assert event.invalidates_everything

    def test_bytes_roundtrip(self) -> None:
        """Serialized events decode to an equal event."""
        event = PublicationStateChange(
            event_type=PublicationEventType.PUBLISHED,
            content_id="post-9",
            affected_block_types=frozenset({"core/latest-posts"}),
        )
        restored = PublicationStateChange.from_bytes(event.to_bytes())

        assert restored == event

    def test_wire_format(self) -> None:
        """Wire format uses plain JSON fields and null for 'everything'."""
        event = PublicationStateChange(PublicationEventType.UNPUBLISHED, "page-3")
        data = orjson.loads(event.to_bytes())

        assert data["event_type"] == "unpublished"
        assert data["content_id"] == "page-3"
        assert data["affected_block_types"] is None

    def test_from_dict_minimal(self) -> None:
        """Producers may omit event_id, timestamp and block types."""
        event = PublicationStateChange.from_dict(
            {"event_type": "published", "content_id": 17}
        )
        assert event.content_id == "17"
        assert event.event_id
        assert event.invalidates_everything
