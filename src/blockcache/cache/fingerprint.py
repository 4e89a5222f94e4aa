"""Deterministic cache keys for render requests.

The request is serialized to canonical JSON (keys sorted at every level)
and hashed with SHA-256. Attribute insertion order never affects the key.
Lists and tuples are both JSON arrays and fingerprint alike.
"""

from __future__ import annotations

import base64
import hashlib
from typing import Any

import orjson

from blockcache.cache.keys import CacheKeys
from blockcache.core.request import RenderRequest, thaw, validate_request

ORJSON_OPTIONS = orjson.OPT_SORT_KEYS | orjson.OPT_UTC_Z


def _content_payload(content: str | bytes | None) -> Any:
    # Tag bytes so that "abc" and b"abc" produce different fingerprints
    if isinstance(content, bytes):
        return {"bytes": base64.b64encode(content).decode("ascii")}
    return content


def canonical_bytes(request: RenderRequest) -> bytes:
    """Return canonical JSON bytes for an already-validated request."""
    payload = {
        "block_type": request.block_type,
        "attributes": dict(request.attributes),
        "content": _content_payload(request.content),
    }
    return orjson.dumps(payload, default=thaw, option=ORJSON_OPTIONS)


def fingerprint(request: RenderRequest) -> str:
    """Derive the cache key for a request.

    Raises:
        InvalidInputError: The request cannot be canonicalized
    """
    validate_request(request)
    digest = hashlib.sha256(canonical_bytes(request)).hexdigest()
    return CacheKeys.render(request.block_type, digest)
