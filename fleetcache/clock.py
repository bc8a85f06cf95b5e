"""
fleetcache/clock.py - Injectable time source

All timestamps in the cache protocol (lastReadTime, cacheTime, evictionTime,
processedTime) are epoch milliseconds taken from a Clock.
"""

from __future__ import annotations

import threading
import time
from typing import Protocol


class Clock(Protocol):
    def now_millis(self) -> int: ...


class SystemClock:
    """Wall clock"""

    def now_millis(self) -> int:
        return int(time.time() * 1000)


class ManualClock:
    """Clock that only moves when told to

    Example:
        clock = ManualClock(1000)
        clock.advance(5)
        clock.now_millis()  # 1005
    """

    def __init__(self, start: int = 0):
        self._now = start
        self._lock = threading.Lock()

    def now_millis(self) -> int:
        with self._lock:
            return self._now

    def advance(self, millis: int) -> int:
        with self._lock:
            self._now += millis
            return self._now

    def set(self, millis: int) -> None:
        with self._lock:
            self._now = millis
