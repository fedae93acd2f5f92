"""Storage layer: key-value stores and JSON-persisted collections."""

from sitmon.storage.kv import KeyValueStore, MemoryKeyValueStore, RedisKeyValueStore, storage_key
from sitmon.storage.repository import JsonCollection

__all__ = [
    "JsonCollection",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "RedisKeyValueStore",
    "storage_key",
]
