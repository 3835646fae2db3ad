"""Abstract base class for the key-value store backing sessions and caches."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator, Optional, Set


class KeyValueStore(ABC):
    """
    Abstract key-value store.

    Values are text (JSON documents, schema descriptions). TTLs are in seconds;
    ``None`` means the key never expires.

    Implementations:
    - Redis (production)
    - In-process dictionary (tests, single-process development)
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Return the value stored under ``key``.

        Returns:
            The value, or None if the key is absent or expired
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        """Store ``value`` under ``key``, replacing any previous value and TTL."""
        pass

    @abstractmethod
    def delete(self, *keys: str) -> int:
        """
        Delete keys in one batch.

        Returns:
            Number of keys that existed
        """
        pass

    @abstractmethod
    def expire(self, key: str, ttl_seconds: int) -> bool:
        """
        Reset the TTL of an existing key.

        Returns:
            True if the key exists
        """
        pass

    @abstractmethod
    def scan(self, pattern: str) -> Iterator[str]:
        """Iterate keys matching a glob-style ``pattern`` without blocking the store."""
        pass

    @abstractmethod
    def add_to_set(self, key: str, member: str, ttl_seconds: Optional[int] = None) -> None:
        """Add ``member`` to the set at ``key`` and refresh the set's TTL."""
        pass

    @abstractmethod
    def set_members(self, key: str) -> Set[str]:
        """Return all members of the set at ``key`` (empty if absent)."""
        pass

    @abstractmethod
    def ping(self) -> bool:
        """Return True if the store is reachable."""
        pass

    def close(self) -> None:
        """Release connections held by the store."""
        return None
