"""Read-through cache for employee reads."""

from __future__ import annotations

import time
from typing import Any, Callable, Protocol, runtime_checkable
from uuid import UUID

from hr_payroll.config import Settings, get_settings

EMPLOYEE_LIST_KEY = "employee:list"


def employee_key(employee_id: UUID) -> str:
    return f"employee:{employee_id}"


@runtime_checkable
class EmployeeCache(Protocol):
    """Protocol for the cache collaborator (in-process, Redis, ...)."""

    def get(self, key: str) -> Any | None:
        ...

    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        ...

    def delete(self, *keys: str) -> None:
        ...


class InMemoryEmployeeCache:
    """Process-local TTL cache.

    Entries expire after ``ttl`` seconds; ``delete`` is the invalidation hook
    called after every employee or compensation mutation.
    """

    def __init__(self, ttl: int = 3600, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> InMemoryEmployeeCache:
        """Build a cache whose TTL comes from EMPLOYEE_CACHE_TTL."""
        return cls(ttl=(settings or get_settings()).employee_cache_ttl)

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        self._entries[key] = (self._clock() + (ttl or self.ttl), value)

    def delete(self, *keys: str) -> None:
        for key in keys:
            self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
