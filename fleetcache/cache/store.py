"""
fleetcache/cache/store.py - Namespaced key/value store with TTL

ProviderCache is the store interface the caching agent uses. InMemoryProviderCache
implements it with per-record expiry driven by a Clock, and can persist its
contents to a msgpack file so on-demand snapshots survive a restart.

Example:
    store = InMemoryProviderCache()
    store.put_cache_data("onDemand", CacheData("azure:serverGroups:...", ttl_seconds=600))
    store.get_identifiers("onDemand")
"""

from __future__ import annotations

import logging
import os
from collections.abc import Collection, Iterable
from dataclasses import dataclass
from pathlib import Path
from threading import RLock
from typing import Any, Protocol

from fleetcache.clock import Clock, SystemClock

from .serialization import pack, record_from_dict, record_to_dict, unpack
from .types import NO_EXPIRY, CacheData, CacheResult

logger = logging.getLogger(__name__)

FILE_FORMAT_VERSION = 1


class ProviderCache(Protocol):
    def get(self, namespace: str, key: str) -> CacheData | None: ...

    def get_all(self, namespace: str, keys: Iterable[str]) -> list[CacheData]: ...

    def get_identifiers(self, namespace: str) -> list[str]: ...

    def put_cache_data(self, namespace: str, data: CacheData) -> None: ...

    def evict_deleted_items(self, namespace: str, keys: Iterable[str]) -> None: ...

    def put_cache_result(self, result: CacheResult, authoritative: Collection[str] = ()) -> None: ...


@dataclass
class _StoredRecord:
    data: CacheData
    expires_at: int | None  # epoch millis, None = never

    def is_expired(self, now: int) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class InMemoryProviderCache:
    """Thread-safe in-memory ProviderCache

    Every read returns a copy, so callers can mutate results without touching
    the stored state. Single-key operations are atomic; there are no
    cross-key transactions.
    """

    def __init__(self, clock: Clock | None = None):
        self._clock = clock or SystemClock()
        self._namespaces: dict[str, dict[str, _StoredRecord]] = {}
        self._lock = RLock()
        self._hits = 0
        self._misses = 0

    def get(self, namespace: str, key: str) -> CacheData | None:
        with self._lock:
            stored = self._live(str(namespace), key)
            if stored is None:
                self._misses += 1
                return None
            self._hits += 1
            return stored.data.copy()

    def get_all(self, namespace: str, keys: Iterable[str]) -> list[CacheData]:
        with self._lock:
            results = []
            for key in keys:
                stored = self._live(str(namespace), key)
                if stored is not None:
                    results.append(stored.data.copy())
            return results

    def get_identifiers(self, namespace: str) -> list[str]:
        with self._lock:
            records = self._namespaces.get(str(namespace), {})
            return [key for key in list(records) if self._live(str(namespace), key) is not None]

    def put_cache_data(self, namespace: str, data: CacheData) -> None:
        with self._lock:
            expires_at = None
            if data.ttl_seconds != NO_EXPIRY:
                expires_at = self._clock.now_millis() + data.ttl_seconds * 1000
            self._namespaces.setdefault(str(namespace), {})[data.id] = _StoredRecord(data.copy(), expires_at)

    def evict_deleted_items(self, namespace: str, keys: Iterable[str]) -> None:
        with self._lock:
            records = self._namespaces.get(str(namespace))
            if not records:
                return
            for key in keys:
                records.pop(key, None)

    def put_cache_result(self, result: CacheResult, authoritative: Collection[str] = ()) -> None:
        """Write a CacheResult

        For namespaces listed in ``authoritative`` the result is the complete
        set: ids present in the store but absent from the result are evicted.
        """
        with self._lock:
            for namespace in authoritative:
                ns = str(namespace)
                keep = {record.id for record in result.records(ns)}
                stale = [key for key in self._namespaces.get(ns, {}) if key not in keep]
                self.evict_deleted_items(ns, stale)

            for namespace, records in result.cache_results.items():
                for record in records:
                    self.put_cache_data(namespace, record)

            for namespace, keys in result.evictions.items():
                self.evict_deleted_items(namespace, keys)

    def clear_expired(self) -> int:
        """Remove expired records

        Returns:
            Number of records removed
        """
        with self._lock:
            now = self._clock.now_millis()
            removed = 0
            for records in self._namespaces.values():
                expired = [key for key, stored in records.items() if stored.is_expired(now)]
                for key in expired:
                    del records[key]
                removed += len(expired)
            return removed

    @property
    def stats(self) -> dict[str, Any]:
        with self._lock:
            total_requests = self._hits + self._misses
            return {
                "namespaces": {ns: len(records) for ns, records in self._namespaces.items()},
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": self._hits / total_requests if total_requests > 0 else 0.0,
            }

    def save_to_file(self, filepath: Path) -> None:
        """Write all live records (with their absolute expiry) to a msgpack file"""
        with self._lock:
            now = self._clock.now_millis()
            payload = {
                "version": FILE_FORMAT_VERSION,
                "namespaces": {
                    ns: [
                        {"record": record_to_dict(stored.data), "expiresAt": stored.expires_at}
                        for stored in records.values()
                        if not stored.is_expired(now)
                    ]
                    for ns, records in self._namespaces.items()
                },
            }

        os.makedirs(filepath.parent, exist_ok=True)
        with open(filepath, "wb") as f:
            f.write(pack(payload))

    def load_from_file(self, filepath: Path) -> int:
        """Load records written by save_to_file, skipping ones that expired since

        Returns:
            Number of records loaded
        """
        with open(filepath, "rb") as f:
            payload = unpack(f.read())

        if payload.get("version") != FILE_FORMAT_VERSION:
            logger.warning("Ignoring cache file %s with version %s", filepath, payload.get("version"))
            return 0

        loaded = 0
        with self._lock:
            now = self._clock.now_millis()
            for ns, entries in payload.get("namespaces", {}).items():
                for entry in entries:
                    stored = _StoredRecord(record_from_dict(entry["record"]), entry.get("expiresAt"))
                    if stored.is_expired(now):
                        continue
                    self._namespaces.setdefault(ns, {})[stored.data.id] = stored
                    loaded += 1

        logger.debug("Loaded %d records from %s", loaded, filepath)
        return loaded

    def _live(self, namespace: str, key: str) -> _StoredRecord | None:
        records = self._namespaces.get(namespace)
        if not records:
            return None
        stored = records.get(key)
        if stored is None:
            return None
        if stored.is_expired(self._clock.now_millis()):
            del records[key]
            return None
        return stored

    def __repr__(self) -> str:
        stats = self.stats
        return f"InMemoryProviderCache(namespaces={stats['namespaces']}, hit_rate={stats['hit_rate']:.1%})"
