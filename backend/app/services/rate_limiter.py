"""
In-memory, per-identifier rate limiter.

A fixed-capacity least-recently-used table of (count, expires_at) entries.
Expiry is lazy: an entry whose window has elapsed reads as count 0 and is
replaced on the next increment. There is no background sweep.

Defaults: 50 requests per identifier per 15 minutes, 500 identifiers tracked.

Single-process only. Counts are lost on restart and are not shared between
workers.
"""

import time
from collections import OrderedDict
from dataclasses import dataclass
from threading import Lock
from typing import Callable

DEFAULT_MAX_ENTRIES = 500
DEFAULT_WINDOW_SECONDS = 15 * 60
DEFAULT_LIMIT = 50


@dataclass
class _Entry:
    count: int
    expires_at: float


class RateLimiter:
    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        limit: int = DEFAULT_LIMIT,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self.window_seconds = window_seconds
        self.limit = limit
        self._clock = clock
        self._entries: "OrderedDict[str, _Entry]" = OrderedDict()
        self._lock = Lock()

    def _live_entry(self, identifier: str, now: float) -> _Entry | None:
        """Return the entry if present and unexpired, refreshing its recency."""
        entry = self._entries.get(identifier)
        if entry is None:
            return None
        if entry.expires_at <= now:
            del self._entries[identifier]
            return None
        self._entries.move_to_end(identifier)
        return entry

    def count(self, identifier: str) -> int:
        """Requests recorded for identifier in the current window."""
        with self._lock:
            entry = self._live_entry(identifier, self._clock())
            return entry.count if entry else 0

    def allow(self, identifier: str) -> bool:
        """True if identifier is below the limit. Does not record anything."""
        return self.count(identifier) < self.limit

    def check_and_increment(self, identifier: str) -> bool:
        """
        Record one request for identifier if it is under the limit.

        Returns False (and records nothing) when the identifier has already
        made `limit` requests in its current window. The window starts at the
        first request and is not extended by later ones.
        """
        with self._lock:
            now = self._clock()
            entry = self._live_entry(identifier, now)

            if entry is not None and entry.count >= self.limit:
                return False

            if entry is None:
                self._entries[identifier] = _Entry(count=1, expires_at=now + self.window_seconds)
                while len(self._entries) > self.max_entries:
                    self._entries.popitem(last=False)
            else:
                entry.count += 1
            return True

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
