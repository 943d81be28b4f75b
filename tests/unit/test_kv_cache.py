"""Tests for KeyValueCache."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import List

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from graphcopy.dynamic import DynamicValue
from graphcopy.exceptions import CacheOperationError
from graphcopy.kv_cache import CacheSettings, KeyValueCache, encode_cache_value


@dataclass
class Session:
    user_id: int = field(default=0, metadata={"json": "userId"})
    roles: List[str] = field(default_factory=list)


class TestCacheSettings:
    """Tests for CacheSettings.from_env."""

    def test_defaults(self, monkeypatch) -> None:
        """Unset variables fall back to the defaults."""
        for name in (
            "GRAPHCOPY_REDIS_URL",
            "GRAPHCOPY_CACHE_TTL_SECONDS",
            "GRAPHCOPY_CACHE_BACKGROUND_TIMEOUT_SECONDS",
        ):
            monkeypatch.delenv(name, raising=False)
        assert CacheSettings.from_env() == CacheSettings("redis://localhost:6379/0", 3600, 5)

    def test_environment_overrides(self, monkeypatch) -> None:
        """Variables override the defaults."""
        monkeypatch.setenv("GRAPHCOPY_REDIS_URL", "redis://cache:6379/0")
        monkeypatch.setenv("GRAPHCOPY_CACHE_TTL_SECONDS", "60")
        monkeypatch.setenv("GRAPHCOPY_CACHE_BACKGROUND_TIMEOUT_SECONDS", "2")
        assert CacheSettings.from_env() == CacheSettings("redis://cache:6379/0", 60, 2)


class TestEncodeCacheValue:
    """Tests for the stored representation."""

    def test_scalars(self) -> None:
        """Strings verbatim, numbers as-is, booleans as 1/0."""
        assert encode_cache_value("plain") == "plain"
        assert encode_cache_value(7) == 7
        assert encode_cache_value(1.5) == 1.5
        assert encode_cache_value(True) == "1"
        assert encode_cache_value(False) == "0"

    def test_structures_are_json(self) -> None:
        """Dataclasses and dynamic values use the JSON encoding."""
        assert encode_cache_value(Session(user_id=3, roles=["a"])) == b'{"userId":3,"roles":["a"]}'
        assert encode_cache_value(DynamicValue({"k": 1})) == b'{"k":1}'


class TestKeyValueCache:
    """Tests for KeyValueCache operations."""

    @pytest.mark.asyncio
    async def test_set_and_get_string(self, fake_redis) -> None:
        """Raw values come back as strings."""
        cache = KeyValueCache(fake_redis, CacheSettings(ttl_seconds=30))
        await cache.set("greeting", "hello")
        assert await cache.get("greeting") == "hello"
        assert fake_redis.ttls["greeting"] == 30

    @pytest.mark.asyncio
    async def test_explicit_ttl_and_no_expiry(self, fake_redis) -> None:
        """A ttl of 0 stores without expiry."""
        cache = KeyValueCache(fake_redis)
        await cache.set("a", 1, ttl=10)
        await cache.set("b", 1, ttl=0)
        assert fake_redis.ttls == {"a": 10, "b": None}

    @pytest.mark.asyncio
    async def test_missing_key_returns_none(self, fake_redis) -> None:
        """Misses are not errors."""
        cache = KeyValueCache(fake_redis)
        assert await cache.get("missing") is None
        assert await cache.get("missing", into=Session) is None

    @pytest.mark.asyncio
    async def test_get_into_type(self, fake_redis) -> None:
        """Stored JSON decodes into a new dataclass."""
        cache = KeyValueCache(fake_redis)
        await cache.set("session", Session(user_id=3, roles=["admin"]))
        assert await cache.get("session", into=Session) == Session(user_id=3, roles=["admin"])

    @pytest.mark.asyncio
    async def test_get_into_instance(self, fake_redis) -> None:
        """Stored JSON populates an existing instance."""
        cache = KeyValueCache(fake_redis)
        await cache.set("session", Session(user_id=3))
        target = Session(roles=["kept"])
        result = await cache.get("session", into=target)
        assert result is target
        assert target == Session(user_id=3, roles=[])

    @pytest.mark.asyncio
    async def test_get_into_annotation(self, fake_redis) -> None:
        """Non-dataclass annotations decode as well."""
        cache = KeyValueCache(fake_redis)
        await cache.set("ids", [1, 2])
        assert await cache.get("ids", into=List[int]) == [1, 2]

    @pytest.mark.asyncio
    async def test_corrupt_payload_raises(self, fake_redis) -> None:
        """Undecodable payloads surface as CacheOperationError."""
        cache = KeyValueCache(fake_redis)
        await cache.set("session", "not json")
        with pytest.raises(CacheOperationError):
            await cache.get("session", into=Session)

    @pytest.mark.asyncio
    async def test_delete_and_refresh_ttl(self, fake_redis) -> None:
        """delete removes the key and refresh_ttl resets its expiry."""
        cache = KeyValueCache(fake_redis, CacheSettings(ttl_seconds=30))
        await cache.set("k", "v", ttl=5)
        await cache.refresh_ttl("k")
        assert fake_redis.ttls["k"] == 30
        await cache.delete("k")
        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_redis_errors_are_wrapped(self, fake_redis) -> None:
        """Client failures surface as CacheOperationError with the original attached."""
        fake_redis.fail_with = RedisConnectionError("down")
        cache = KeyValueCache(fake_redis)
        with pytest.raises(CacheOperationError) as excinfo:
            await cache.set("k", "v")
        assert excinfo.value.operation == "set"
        assert isinstance(excinfo.value.original, RedisConnectionError)

    @pytest.mark.asyncio
    async def test_background_operations(self, fake_redis) -> None:
        """Background set and delete complete without being awaited by the caller."""
        cache = KeyValueCache(fake_redis)
        cache.set_in_background("k", {"a": 1})
        await cache.drain()
        assert fake_redis.dump_string("k") == b'{"a":1}'
        cache.delete_in_background("k")
        await cache.drain()
        assert fake_redis.dump_string("k") is None

    @pytest.mark.asyncio
    async def test_background_failures_are_logged(self, fake_redis, caplog) -> None:
        """Background failures never propagate."""
        fake_redis.fail_with = RedisConnectionError("down")
        cache = KeyValueCache(fake_redis)
        task = cache.set_in_background("k", "v")
        await asyncio.wait_for(task, timeout=1)
        assert "Background cache set failed" in caplog.text

    @pytest.mark.asyncio
    async def test_close_releases_client(self, fake_redis) -> None:
        """close drains pending work and closes the client."""
        cache = KeyValueCache(fake_redis)
        cache.set_in_background("k", "v")
        await cache.close()
        assert fake_redis.closed is True
        assert fake_redis.dump_string("k") == b"v"
