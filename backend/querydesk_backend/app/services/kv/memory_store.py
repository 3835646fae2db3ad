"""In-process key-value store for tests and single-process development."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta
from fnmatch import fnmatchcase
from typing import Dict, Iterator, Optional, Set, Tuple, Union

from querydesk_backend.app.core.clock import Clock, utc_now
from querydesk_backend.app.services.kv.base import KeyValueStore

_Value = Union[str, Set[str]]


class InMemoryKeyValueStore(KeyValueStore):
    """
    Dictionary-backed store with Redis-like TTL semantics.

    Expiry is evaluated lazily against the injected clock, so tests can move
    time forward without sleeping.
    """

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock
        self._data: Dict[str, Tuple[_Value, Optional[datetime]]] = {}
        self._lock = threading.Lock()

    def _expires_at(self, ttl_seconds: Optional[int]) -> Optional[datetime]:
        if ttl_seconds is None:
            return None
        return self._clock() + timedelta(seconds=ttl_seconds)

    def _live(self, key: str) -> Optional[_Value]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            del self._data[key]
            return None
        return value

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._live(key)
        if isinstance(value, set):
            raise TypeError(f"Key '{key}' holds a set")
        return value

    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        with self._lock:
            self._data[key] = (value, self._expires_at(ttl_seconds))

    def delete(self, *keys: str) -> int:
        removed = 0
        with self._lock:
            for key in keys:
                if self._live(key) is not None:
                    removed += 1
                self._data.pop(key, None)
        return removed

    def expire(self, key: str, ttl_seconds: int) -> bool:
        with self._lock:
            value = self._live(key)
            if value is None:
                return False
            self._data[key] = (value, self._expires_at(ttl_seconds))
            return True

    def scan(self, pattern: str) -> Iterator[str]:
        with self._lock:
            keys = [k for k in list(self._data) if self._live(k) is not None]
        for key in keys:
            if fnmatchcase(key, pattern):
                yield key

    def add_to_set(self, key: str, member: str, ttl_seconds: Optional[int] = None) -> None:
        with self._lock:
            value = self._live(key)
            members = set(value) if isinstance(value, set) else set()
            members.add(member)
            expires_at = self._expires_at(ttl_seconds)
            if ttl_seconds is None and key in self._data:
                expires_at = self._data[key][1]
            self._data[key] = (members, expires_at)

    def set_members(self, key: str) -> Set[str]:
        with self._lock:
            value = self._live(key)
        return set(value) if isinstance(value, set) else set()

    def ping(self) -> bool:
        return True

    def ttl(self, key: str) -> Optional[float]:
        """Remaining lifetime of ``key`` in seconds (None if persistent or absent)."""
        with self._lock:
            if self._live(key) is None:
                return None
            expires_at = self._data[key][1]
        if expires_at is None:
            return None
        return (expires_at - self._clock()).total_seconds()
