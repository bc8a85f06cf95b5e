"""
fleetcache/cache/evictions.py - Eviction tombstones

When an on-demand refresh finds a server group gone it records an eviction
marker. A later scan consults the marker before trusting an on-demand
snapshot for the same key.
"""

from __future__ import annotations

import logging

from fleetcache.clock import Clock, SystemClock
from fleetcache.config import settings

from .keys import Namespace
from .store import ProviderCache
from .types import EvictionMarker

logger = logging.getLogger(__name__)


class EvictionTracker:
    def __init__(
        self,
        store: ProviderCache,
        clock: Clock | None = None,
        ttl_seconds: int = settings.EVICTION_TTL_SECONDS,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._ttl_seconds = ttl_seconds

    def get(self, key: str) -> EvictionMarker | None:
        data = self._store.get(Namespace.EVICTIONS.value, key)
        if data is None:
            return None
        try:
            return EvictionMarker.from_cache_data(data)
        except (KeyError, TypeError, ValueError):
            logger.warning("Ignoring malformed eviction marker %s", key)
            return None

    def has_been_evicted(self, key: str, last_read_time: int) -> bool:
        """True iff a marker exists that is newer than ``last_read_time``"""
        marker = self.get(key)
        return marker is not None and marker.eviction_time > last_read_time

    def record_eviction(self, key: str) -> EvictionMarker:
        marker = EvictionMarker(id=key, eviction_time=self._clock.now_millis())
        self._store.put_cache_data(Namespace.EVICTIONS.value, marker.to_cache_data(self._ttl_seconds))
        return marker
