"""Key-value store backends for session records and caches."""

from .base import KeyValueStore
from .memory_store import InMemoryKeyValueStore
from .redis_store import RedisKeyValueStore

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "RedisKeyValueStore",
]
