"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from graphcopy.copier import get_default_engine


class FakeRedis:
    """In-memory Redis mock for testing."""

    def __init__(self):
        self._data: dict[str, Any] = {}
        self.ttls: dict[str, int | None] = {}
        self.closed = False
        self.fail_with: Exception | None = None

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def set(self, key: str, value: Any, ex: int | None = None) -> bool:
        """Set a string value the way redis-py encodes it."""
        self._maybe_fail()
        if isinstance(value, bytes):
            stored = value
        else:
            stored = str(value).encode()
        self._data[key] = stored
        self.ttls[key] = ex
        return True

    async def get(self, key: str) -> bytes | None:
        """Get a string value."""
        self._maybe_fail()
        return self._data.get(key)

    async def delete(self, *keys: str) -> int:
        """Delete keys."""
        self._maybe_fail()
        removed = 0
        for key in keys:
            if self._data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def expire(self, key: str, seconds: int) -> bool:
        """Set expiration on a key."""
        self._maybe_fail()
        if key not in self._data:
            return False
        self.ttls[key] = seconds
        return True

    async def aclose(self) -> None:
        self.closed = True

    def dump_string(self, key: str) -> bytes | None:
        """Dump contents of a string (test helper)."""
        return self._data.get(key)


@pytest.fixture
def fake_redis() -> FakeRedis:
    """Provide a fake Redis instance."""
    return FakeRedis()


@pytest.fixture
def fresh_default_engine():
    """Rebuild the shared engine around a test that registers converters on it."""
    get_default_engine.cache_clear()
    yield get_default_engine()
    get_default_engine.cache_clear()
