"""
Injected key/value cache with per-entry expiry.

Expiry is checked lazily against the injected clock on read; when full,
the least recently written entry is evicted.
"""
from abc import ABC, abstractmethod
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Any, Optional, Tuple

from hrdash.core.constants import DEFAULT_EMPLOYEE_CACHE_TTL_SECONDS


class Cache(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        ...

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


class InMemoryTTLCache(Cache):
    def __init__(
        self,
        clock,
        default_ttl_seconds: float = DEFAULT_EMPLOYEE_CACHE_TTL_SECONDS,
        max_entries: int = 256,
    ):
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self._clock = clock
        self._default_ttl = default_ttl_seconds
        self._max_entries = max_entries
        self._entries: "OrderedDict[str, Tuple[datetime, Any]]" = OrderedDict()

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock.now() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        self._entries.pop(key, None)
        self._entries[key] = (self._clock.now() + timedelta(seconds=ttl), value)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
