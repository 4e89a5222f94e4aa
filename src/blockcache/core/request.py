"""Render requests: the inputs of a cacheable render.

A RenderRequest names a block type, carries its attribute mapping and an
optional raw content payload. Requests are immutable once constructed:
attribute mappings are frozen recursively, lists become tuples.

Attribute values are limited to JSON values (None, bool, int, finite
float, str, sequences and string-keyed mappings), so that two requests
share a fingerprint only when their attributes are equal.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

import orjson

from blockcache.core.errors import InvalidInputError

RenderedValue = str | bytes

_SCALARS = (str, int, type(None))


def freeze(value: Any) -> Any:
    """Return a read-only deep copy of mappings and lists in ``value``."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, list | tuple):
        return tuple(freeze(v) for v in value)
    return value


def thaw(value: Any) -> dict[str, Any]:
    """orjson ``default`` hook turning frozen mappings back into dicts."""
    if isinstance(value, MappingProxyType):
        return dict(value)
    raise TypeError(f"Type is not JSON serializable: {type(value).__name__}")


def _check_value(path: str, value: Any) -> None:
    if isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidInputError(f"attribute {path!r} is not a finite number: {value}")
    elif isinstance(value, Mapping):
        for key, item in value.items():
            if not isinstance(key, str):
                raise InvalidInputError(f"attribute {path!r} has non-string key {key!r}")
            _check_value(f"{path}.{key}", item)
    elif isinstance(value, tuple):
        for i, item in enumerate(value):
            _check_value(f"{path}[{i}]", item)
    elif not isinstance(value, _SCALARS):
        raise InvalidInputError(
            f"attribute {path!r} is not serializable: {type(value).__name__}"
        )


@dataclass(frozen=True, slots=True)
class RenderRequest:
    """A renderable unit plus the inputs that determine its output."""

    block_type: str
    attributes: Mapping[str, Any] = field(default_factory=dict)
    content: str | bytes | None = None

    def __post_init__(self) -> None:
        # Detach from the caller's containers so later mutation cannot change the key
        object.__setattr__(self, "attributes", freeze(self.attributes))

    def validate(self) -> None:
        """Check that the request can be canonicalized.

        Raises:
            InvalidInputError: block type is empty, an attribute key is not
                a string, or an attribute value is not a finite JSON value.
        """
        if not isinstance(self.block_type, str) or not self.block_type:
            raise InvalidInputError("block_type must be a non-empty string")

        if self.content is not None and not isinstance(self.content, str | bytes):
            raise InvalidInputError(
                f"content must be str, bytes or None, got {type(self.content).__name__}"
            )

        for name, value in self.attributes.items():
            if not isinstance(name, str):
                raise InvalidInputError(f"attribute name {name!r} is not a string")
            _check_value(name, value)
            try:
                orjson.dumps(value, default=thaw)
            except orjson.JSONEncodeError as e:
                # Integers outside the 64-bit range
                raise InvalidInputError(f"attribute {name!r} is not serializable: {e}") from e


def validate_request(request: RenderRequest) -> RenderRequest:
    """Validate a request and return it, for use in call chains."""
    if not isinstance(request, RenderRequest):
        raise InvalidInputError(f"expected RenderRequest, got {type(request).__name__}")
    request.validate()
    return request
