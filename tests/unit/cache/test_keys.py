"""Tests for cache key generation."""

import base64

from blockcache.cache.keys import CacheKeys, decode_block_type, encode_block_type


class TestCacheKeys:
    """Test cache key generation."""

    def test_render_key(self) -> None:
        """Render key has correct format."""
        key = CacheKeys.render("core/paragraph", "abc123")
        encoded = base64.urlsafe_b64encode(b"core/paragraph").decode("ascii").rstrip("=")
        assert key == f"blockcache:render:{encoded}:abc123"

    def test_prefix_group(self) -> None:
        """Prefix group ends right before the digest."""
        prefix = CacheKeys.prefix_group("core/paragraph")
        assert CacheKeys.render("core/paragraph", "abc123") == f"{prefix}abc123"
        assert prefix.endswith(":")

    def test_prefix_group_does_not_match_longer_block_type(self) -> None:
        """A block type's prefix group never covers another block type."""
        short = CacheKeys.prefix_group("core/post")
        longer_key = CacheKeys.render("core/post-title", "abc")
        assert not longer_key.startswith(short)

    def test_all_entries_prefix(self) -> None:
        """Every render key starts with the all-entries prefix."""
        assert CacheKeys.render("x", "d").startswith(CacheKeys.all_entries())

    def test_block_type_encoding_roundtrip(self) -> None:
        """Block types with colons and unicode survive encoding."""
        block_type = "acme:blocks/héro"
        encoded = encode_block_type(block_type)
        assert ":" not in encoded
        assert decode_block_type(encoded) == block_type

    def test_parse_valid_key(self) -> None:
        """Valid key is parsed correctly."""
        key = CacheKeys.render("core/heading", "deadbeef")
        result = CacheKeys.parse_key(key)
        assert result is not None
        assert result["prefix"] == "blockcache"
        assert result["block_type"] == "core/heading"
        assert result["digest"] == "deadbeef"

    def test_parse_invalid_key_returns_none(self) -> None:
        """Invalid key returns None."""
        assert CacheKeys.parse_key("invalid") is None
        assert CacheKeys.parse_key("other:render:abc:def") is None
        assert CacheKeys.parse_key("blockcache:other:abc:def") is None
