"""Core types for blockcache: render requests and errors."""

from blockcache.core.errors import (
    BlockCacheError,
    InvalidInputError,
    RenderFailedError,
    StoreUnavailableError,
)
from blockcache.core.request import RenderedValue, RenderRequest, validate_request

__all__ = [
    "RenderRequest",
    "RenderedValue",
    "validate_request",
    "BlockCacheError",
    "InvalidInputError",
    "RenderFailedError",
    "StoreUnavailableError",
]
