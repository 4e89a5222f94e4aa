"""Shared fixtures for cache tests."""

from __future__ import annotations

import pytest

from blockcache.cache.memory import MemoryCacheStore
from tests.helpers import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> MemoryCacheStore:
    """Unbounded memory store on a fake clock."""
    return MemoryCacheStore(clock=clock)
