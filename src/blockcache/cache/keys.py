"""Cache key schema for blockcache.

Key format: {prefix}:render:{block_type_b64}:{digest}

Where:
- prefix: "blockcache" (namespace within a shared store)
- block_type_b64: Base64URL encoded block type identifier, unpadded
- digest: SHA-256 hex digest of the canonical request

The prefix group of a block type is everything up to and including the
colon after block_type_b64. Base64URL never emits ":", so one block type's
prefix group can never match another block type's keys.
"""

from __future__ import annotations

import base64


def encode_block_type(block_type: str) -> str:
    """Base64URL encode a block type identifier without padding."""
    return base64.urlsafe_b64encode(block_type.encode("utf-8")).decode("ascii").rstrip("=")


def decode_block_type(block_type_b64: str) -> str:
    """Reverse of ``encode_block_type``."""
    padding = "=" * (-len(block_type_b64) % 4)
    return base64.urlsafe_b64decode(block_type_b64 + padding).decode("utf-8")


class CacheKeys:
    """Cache key generator following consistent naming convention."""

    PREFIX = "blockcache"
    RENDER = "render"

    @classmethod
    def render(cls, block_type: str, digest: str) -> str:
        """Key for one rendered request."""
        return f"{cls.prefix_group(block_type)}{digest}"

    @classmethod
    def prefix_group(cls, block_type: str) -> str:
        """Prefix shared by every rendered entry of a block type."""
        return f"{cls.PREFIX}:{cls.RENDER}:{encode_block_type(block_type)}:"

    @classmethod
    def all_entries(cls) -> str:
        """Prefix shared by every rendered entry."""
        return f"{cls.PREFIX}:{cls.RENDER}:"

    @classmethod
    def parse_key(cls, key: str) -> dict[str, str] | None:
        """Parse a cache key into its components.

        Returns None if the key doesn't match the expected format.
        """
        parts = key.split(":")
        if len(parts) != 4 or parts[0] != cls.PREFIX or parts[1] != cls.RENDER:
            return None

        try:
            block_type = decode_block_type(parts[2])
        except ValueError:
            return None

        return {
            "prefix": parts[0],
            "block_type": block_type,
            "block_type_b64": parts[2],
            "digest": parts[3],
        }
