"""Ephemeral TTL cache for async task results.

Entries carry their insertion time and expire ``ttl_seconds`` later. Expired
entries are invisible to ``get`` and removed by ``evict_expired``, which an
external reaper thread (``start_reaper``) calls periodically. Nothing is
persisted: a process restart loses every entry.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    value: V
    inserted_at: float


class TaskResultCache(Generic[V]):
    """Thread-safe, size-bounded TTL cache."""

    def __init__(
        self,
        ttl_seconds: float = 1800.0,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry[V]]" = OrderedDict()
        self._lock = threading.Lock()
        self._reaper: Optional[threading.Thread] = None
        self._stop = threading.Event()

    def _expired(self, entry: CacheEntry[V], now: float) -> bool:
        return now - entry.inserted_at >= self.ttl_seconds

    def put(self, key: str, value: V) -> None:
        """Insert or replace ``key``; replacing resets its TTL."""
        with self._lock:
            now = self._clock()
            self._entries.pop(key, None)
            if len(self._entries) >= self.max_entries:
                self._evict_locked(now)
            while len(self._entries) >= self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Task cache full; dropped oldest entry {evicted}")
            self._entries[key] = CacheEntry(value=value, inserted_at=now)

    def get(self, key: str) -> Optional[V]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or self._expired(entry, self._clock()):
                return None
            return entry.value

    def _evict_locked(self, now: float) -> int:
        expired = [k for k, e in self._entries.items() if self._expired(e, now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def evict_expired(self) -> int:
        """Remove expired entries and return how many were removed."""
        with self._lock:
            removed = self._evict_locked(self._clock())
        if removed:
            logger.debug(f"Evicted {removed} expired task results")
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: Any) -> bool:
        return self.get(key) is not None

    # ------------------------------------------------------------------
    # Reaper
    # ------------------------------------------------------------------

    def start_reaper(self, interval_seconds: float = 60.0) -> None:
        """Run ``evict_expired`` every ``interval_seconds`` on a daemon thread."""
        if self._reaper is not None and self._reaper.is_alive():
            return
        self._stop.clear()

        def _run() -> None:
            while not self._stop.wait(interval_seconds):
                self.evict_expired()

        self._reaper = threading.Thread(target=_run, name="task-cache-reaper", daemon=True)
        self._reaper.start()

    def stop_reaper(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._reaper is not None:
            self._reaper.join(timeout)
            self._reaper = None
