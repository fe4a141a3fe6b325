"""Expiring in-memory cache for drive-time lookups."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Hashable, Optional

DEFAULT_TTL_SECONDS = 600.0


@dataclass(slots=True)
class _Entry:
    value: int
    stored_at: float


class DriveTimeCache:
    """Key-value store whose entries expire a fixed time after they were written.

    Expiry is based on age, not on access: reading an entry never extends its
    life. Writes are plain upserts, so two lookups racing on the same key just
    store the same value twice.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic) -> None:
        if ttl_seconds <= 0:
            raise ValueError("Cache TTL must be positive.")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, _Entry] = {}

    def get(self, key: Hashable) -> Optional[int]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at >= self.ttl_seconds:
            self._entries.pop(key, None)
            return None
        return entry.value

    def set(self, key: Hashable, value: int) -> None:
        self._entries[key] = _Entry(value=value, stored_at=self._clock())

    def purge_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now - entry.stored_at >= self.ttl_seconds]
        for key in expired:
            self._entries.pop(key, None)
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
