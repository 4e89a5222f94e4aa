"""Error taxonomy for the render cache."""

from __future__ import annotations


class BlockCacheError(Exception):
    """Base class for all render cache errors."""


class InvalidInputError(BlockCacheError):
    """Raised when a RenderRequest cannot be canonicalized.

    Invalid requests are rejected before fingerprinting and never reach
    the cache.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid render request: {reason}")


class RenderFailedError(BlockCacheError):
    """Raised when the renderer fails for a cache key.

    The same error is delivered to every caller waiting on the key.
    """

    def __init__(self, key: str, cause: BaseException) -> None:
        self.key = key
        self.cause = cause
        super().__init__(f"Render failed for {key}: {type(cause).__name__}: {cause}")


class StoreUnavailableError(BlockCacheError):
    """Raised when the cache store backend cannot be reached."""

    def __init__(self, backend: str, cause: BaseException | None = None) -> None:
        self.backend = backend
        self.cause = cause
        message = f"Cache store unavailable: {backend}"
        if cause is not None:
            message += f" ({cause})"
        super().__init__(message)
