"""Durable key-value stores.

Collections are persisted as one JSON string per key:
- MemoryKeyValueStore: process memory, lost on restart (tests, local runs)
- RedisKeyValueStore: Redis strings
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from redis.asyncio import Redis


class KeyValueStore(Protocol):
    """Minimal async string store."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """In-process key-value store."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class RedisKeyValueStore:
    """Redis-backed key-value store."""

    def __init__(self, redis: Redis) -> None:
        self.redis = redis

    async def get(self, key: str) -> str | None:
        raw = await self.redis.get(key)
        if raw is None:
            return None
        # Redis returns bytes with decode_responses=False
        return raw.decode() if isinstance(raw, bytes) else str(raw)

    async def set(self, key: str, value: str) -> None:
        await self.redis.set(key, value)

    async def remove(self, key: str) -> None:
        await self.redis.delete(key)


def storage_key(prefix: str, name: str) -> str:
    """Namespaced key for a collection, e.g. ``situation_monitor_signals``."""
    return f"{prefix}_{name}"
