from __future__ import annotations

"""
Async key/value cache on top of Redis.

Strings are stored verbatim, numbers as-is and booleans as ``"1"``/``"0"``.
Everything else goes through the same JSON encoding as dynamic values, so a
dataclass cached here can be read back into a dataclass with ``get(key,
into=...)``.
"""


import asyncio
import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Optional, Set, Union

import redis.asyncio
from redis.exceptions import RedisError

from .codec import decode_into, decode_value, to_json_value
from .config import env_seconds, env_str
from .dynamic import dumps_json, loads_json
from .exceptions import CacheOperationError, ConversionError
from .typeinfo import is_dataclass_instance, new_instance

logger = logging.getLogger(__name__)

REDIS_URL_ENV = "GRAPHCOPY_REDIS_URL"
CACHE_TTL_ENV = "GRAPHCOPY_CACHE_TTL_SECONDS"
BACKGROUND_TIMEOUT_ENV = "GRAPHCOPY_CACHE_BACKGROUND_TIMEOUT_SECONDS"

DEFAULT_REDIS_URL = "redis://localhost:6379/0"
DEFAULT_TTL_SECONDS = 3600
DEFAULT_BACKGROUND_TIMEOUT_SECONDS = 5

REDIS_ERRORS = (RedisError, asyncio.TimeoutError, OSError)


@dataclass(frozen=True)
class CacheSettings:
    redis_url: str = DEFAULT_REDIS_URL
    ttl_seconds: int = DEFAULT_TTL_SECONDS
    background_timeout_seconds: int = DEFAULT_BACKGROUND_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> "CacheSettings":
        return cls(
            redis_url=str(env_str(REDIS_URL_ENV, or_value=DEFAULT_REDIS_URL)),
            ttl_seconds=int(env_seconds(CACHE_TTL_ENV, or_value=DEFAULT_TTL_SECONDS)),
            background_timeout_seconds=int(
                env_seconds(BACKGROUND_TIMEOUT_ENV, or_value=DEFAULT_BACKGROUND_TIMEOUT_SECONDS)
            ),
        )


def encode_cache_value(value: Any) -> Union[str, int, float, bytes]:
    """Return the form ``value`` is stored in."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return value
    return dumps_json(to_json_value(value))


def _as_text(raw: Union[str, bytes]) -> str:
    if isinstance(raw, bytes):
        return raw.decode("utf-8")
    return raw


class KeyValueCache:
    """Typed get/set/delete over an async Redis client."""

    def __init__(self, client: Any, settings: Optional[CacheSettings] = None) -> None:
        self._client = client
        self.settings = settings or CacheSettings()
        self._background: Set[asyncio.Task] = set()

    @classmethod
    def from_settings(cls, settings: Optional[CacheSettings] = None) -> "KeyValueCache":
        settings = settings or CacheSettings.from_env()
        client = redis.asyncio.Redis.from_url(settings.redis_url)
        return cls(client, settings)

    def _ttl(self, ttl: Optional[int]) -> Optional[int]:
        seconds = self.settings.ttl_seconds if ttl is None else ttl
        return seconds if seconds > 0 else None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store ``value`` under ``key``; a ``ttl`` of 0 stores without expiry."""
        try:
            payload = encode_cache_value(value)
        except ConversionError as exc:
            raise CacheOperationError("set", f"key={key}", exc) from exc
        try:
            await self._client.set(key, payload, ex=self._ttl(ttl))
        except REDIS_ERRORS as exc:
            raise CacheOperationError("set", f"key={key}", exc) from exc
        logger.debug("Cached key %s", key)

    async def get(self, key: str, into: Any = None) -> Any:
        """
        Return the value stored under ``key``, or ``None`` when it is missing.

        Without ``into`` the raw string is returned. ``into`` may be a type
        (dataclass, list or scalar annotation) to decode into, or a dataclass
        instance to populate in place.
        """
        try:
            raw = await self._client.get(key)
        except REDIS_ERRORS as exc:
            raise CacheOperationError("get", f"key={key}", exc) from exc
        if raw is None:
            return None
        text = _as_text(raw)
        if into is None:
            return text

        try:
            payload = loads_json(text)
            if is_dataclass_instance(into):
                return decode_into(into, payload)
            if dataclasses.is_dataclass(into):
                return decode_into(new_instance(into), payload)
            return decode_value(payload, into)
        except ConversionError as exc:
            raise CacheOperationError("get", f"key={key}", exc) from exc

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except REDIS_ERRORS as exc:
            raise CacheOperationError("delete", f"key={key}", exc) from exc

    async def refresh_ttl(self, key: str, ttl: Optional[int] = None) -> None:
        seconds = self.settings.ttl_seconds if ttl is None else ttl
        try:
            await self._client.expire(key, seconds)
        except REDIS_ERRORS as exc:
            raise CacheOperationError("expire", f"key={key}", exc) from exc

    def set_in_background(self, key: str, value: Any, ttl: Optional[int] = None) -> asyncio.Task:
        """Schedule ``set`` without waiting for it; failures are logged."""
        return self._spawn("set", key, self.set(key, value, ttl))

    def delete_in_background(self, key: str) -> asyncio.Task:
        """Schedule ``delete`` without waiting for it; failures are logged."""
        return self._spawn("delete", key, self.delete(key))

    def _spawn(self, operation: str, key: str, coro: Any) -> asyncio.Task:
        task = asyncio.create_task(self._run_bounded(operation, key, coro))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def _run_bounded(self, operation: str, key: str, coro: Any) -> None:
        try:
            await asyncio.wait_for(coro, timeout=self.settings.background_timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("Background cache %s timed out for key %s", operation, key)
        except CacheOperationError as exc:
            logger.warning("Background cache %s failed for key %s: %s", operation, key, exc)

    async def drain(self) -> None:
        """Wait for every scheduled background operation to finish."""
        if self._background:
            await asyncio.gather(*list(self._background))

    async def close(self) -> None:
        await self.drain()
        await self._client.aclose()


__all__ = [
    "CacheSettings",
    "KeyValueCache",
    "encode_cache_value",
]
