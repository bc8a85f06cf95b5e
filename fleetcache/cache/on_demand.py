"""
fleetcache/cache/on_demand.py - On-demand snapshot access

Reads and writes OnDemandEntry records in the ``onDemand`` namespace.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from fleetcache.config import settings

from .keys import Namespace
from .store import ProviderCache
from .types import CacheData, OnDemandEntry

logger = logging.getLogger(__name__)

NAMESPACE = Namespace.ON_DEMAND.value


class OnDemandStore:
    def __init__(self, store: ProviderCache, ttl_seconds: int = settings.ON_DEMAND_TTL_SECONDS):
        self._store = store
        self._ttl_seconds = ttl_seconds

    def get_all(self, keys: Iterable[str]) -> dict[str, OnDemandEntry]:
        """Batch read; missing and unreadable entries are left out"""
        entries = {}
        for data in self._store.get_all(NAMESPACE, keys):
            entry = self._to_entry(data)
            if entry is not None:
                entries[entry.id] = entry
        return entries

    def put(self, entry: OnDemandEntry) -> None:
        self._store.put_cache_data(NAMESPACE, self.to_cache_data(entry))

    def evict(self, keys: Iterable[str]) -> None:
        self._store.evict_deleted_items(NAMESPACE, list(keys))

    def identifiers(self) -> list[str]:
        return self._store.get_identifiers(NAMESPACE)

    def to_cache_data(self, entry: OnDemandEntry) -> CacheData:
        return entry.to_cache_data(self._ttl_seconds)

    @staticmethod
    def _to_entry(data: CacheData) -> OnDemandEntry | None:
        try:
            return OnDemandEntry.from_cache_data(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring malformed on-demand record %s: %s", data.id, e)
            return None
