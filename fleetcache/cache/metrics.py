"""
fleetcache/cache/metrics.py - On-demand refresh timings

Wraps the three phases of an on-demand refresh (read from the compute API,
transform into cache records, store the snapshot) and keeps per-phase call
counts and total durations.

Example:
    metrics = OnDemandMetrics("azure:ServerGroup")
    server_group = metrics.read_data(lambda: client.get_server_group(rg, name))
    print(metrics.stats)
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

READ = "read"
TRANSFORM = "transform"
STORE = "store"


@dataclass
class PhaseStats:
    count: int = 0
    failures: int = 0
    total_seconds: float = 0.0


class OnDemandMetrics:
    def __init__(self, name: str):
        self.name = name
        self._phases = {phase: PhaseStats() for phase in (READ, TRANSFORM, STORE)}
        self._lock = threading.Lock()

    def read_data(self, fn: Callable[[], T]) -> T:
        return self._timed(READ, fn)

    def transform_data(self, fn: Callable[[], T]) -> T:
        return self._timed(TRANSFORM, fn)

    def on_demand_store(self, fn: Callable[[], T]) -> T:
        return self._timed(STORE, fn)

    @property
    def stats(self) -> dict[str, Any]:
        with self._lock:
            return {
                phase: {
                    "count": s.count,
                    "failures": s.failures,
                    "total_seconds": s.total_seconds,
                }
                for phase, s in self._phases.items()
            }

    def _timed(self, phase: str, fn: Callable[[], T]) -> T:
        start = time.monotonic()
        failed = False
        try:
            return fn()
        except Exception:
            failed = True
            raise
        finally:
            elapsed = time.monotonic() - start
            with self._lock:
                stats = self._phases[phase]
                stats.count += 1
                stats.total_seconds += elapsed
                if failed:
                    stats.failures += 1
            logger.debug("%s %s took %.3fs", self.name, phase, elapsed)
