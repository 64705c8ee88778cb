import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from portfolio.core.config import settings


@dataclass
class CacheEntry:
    data: list[Any]
    fetched_at: float


class ResourceCache:
    """
    Per-kind list cache with a fixed TTL.

    Entries are never evicted on expiry: a stale entry stays readable so callers
    can fall back to it when a refresh fails.
    """

    def __init__(
        self,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = settings.CLIENT_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, kind: str) -> CacheEntry | None:
        return self._entries.get(kind)

    def is_fresh(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.fetched_at < self.ttl_seconds

    def fresh(self, kind: str) -> list[Any] | None:
        entry = self._entries.get(kind)
        if entry is not None and self.is_fresh(entry):
            return entry.data
        return None

    def stale(self, kind: str) -> list[Any] | None:
        entry = self._entries.get(kind)
        return entry.data if entry is not None else None

    def put(self, kind: str, data: list[Any]) -> None:
        self._entries[kind] = CacheEntry(data=data, fetched_at=self._clock())

    def invalidate(self, kind: str | None = None) -> None:
        if kind is None:
            self._entries.clear()
        else:
            self._entries.pop(kind, None)
