"""Redis-backed key-value store."""

from __future__ import annotations

import logging
from typing import Iterator, Optional, Set

import redis

from querydesk_backend.app.services.errors import StoreError
from querydesk_backend.app.services.kv.base import KeyValueStore

logger = logging.getLogger(__name__)


class RedisKeyValueStore(KeyValueStore):
    """Key-value store on a single Redis instance.

    Every key is stored as ``{key_prefix}{key}``; callers always see unprefixed
    keys. Redis errors are raised as ``StoreError``.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        *,
        password: Optional[str] = None,
        socket_timeout: float = 30.0,
        socket_connect_timeout: float = 10.0,
        key_prefix: str = "",
        client: Optional[redis.Redis] = None,
    ):
        """Initialize the store.

        Args:
            url: Redis connection URL
            password: Redis password (overrides the one in ``url``)
            socket_timeout: Read/write timeout in seconds
            socket_connect_timeout: Connect timeout in seconds
            key_prefix: Prefix applied to every key
            client: Pre-built client, mainly for tests
        """
        self.key_prefix = key_prefix
        if client is None:
            client = redis.Redis.from_url(
                url,
                password=password,
                socket_timeout=socket_timeout,
                socket_connect_timeout=socket_connect_timeout,
                decode_responses=True,
            )
        self.client = client

    def _k(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    def _strip(self, key: str) -> str:
        if self.key_prefix and key.startswith(self.key_prefix):
            return key[len(self.key_prefix):]
        return key

    def get(self, key: str) -> Optional[str]:
        try:
            return self.client.get(self._k(key))
        except redis.RedisError as e:
            raise StoreError(f"Failed to read '{key}': {e}") from e

    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        try:
            self.client.set(self._k(key), value, ex=ttl_seconds)
        except redis.RedisError as e:
            raise StoreError(f"Failed to write '{key}': {e}") from e

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            return int(self.client.delete(*(self._k(k) for k in keys)))
        except redis.RedisError as e:
            raise StoreError(f"Failed to delete {len(keys)} key(s): {e}") from e

    def expire(self, key: str, ttl_seconds: int) -> bool:
        try:
            return bool(self.client.expire(self._k(key), ttl_seconds))
        except redis.RedisError as e:
            raise StoreError(f"Failed to refresh TTL of '{key}': {e}") from e

    def scan(self, pattern: str) -> Iterator[str]:
        try:
            for key in self.client.scan_iter(match=self._k(pattern), count=500):
                yield self._strip(key)
        except redis.RedisError as e:
            raise StoreError(f"Failed to scan '{pattern}': {e}") from e

    def add_to_set(self, key: str, member: str, ttl_seconds: Optional[int] = None) -> None:
        try:
            pipe = self.client.pipeline()
            pipe.sadd(self._k(key), member)
            if ttl_seconds is not None:
                pipe.expire(self._k(key), ttl_seconds)
            pipe.execute()
        except redis.RedisError as e:
            raise StoreError(f"Failed to update set '{key}': {e}") from e

    def set_members(self, key: str) -> Set[str]:
        try:
            return set(self.client.smembers(self._k(key)))
        except redis.RedisError as e:
            raise StoreError(f"Failed to read set '{key}': {e}") from e

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError as e:
            logger.warning("Redis ping failed: %s", e)
            return False

    def close(self) -> None:
        self.client.close()
