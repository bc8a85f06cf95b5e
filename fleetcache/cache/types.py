"""
fleetcache/cache/types.py - Cache records and results

CacheData is the generic record every namespace stores. OnDemandEntry and
EvictionMarker are typed views over the records of the ``onDemand`` and
``evictions`` namespaces.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .keys import Namespace
from .merge import merge_cache_data

NO_EXPIRY = -1


@dataclass
class CacheData:
    """One cached entity

    Attributes:
        id: Cache key
        attributes: Attribute name -> value
        relationships: Namespace -> ids of related entities
        ttl_seconds: Store lifetime, NO_EXPIRY for none
    """

    id: str
    attributes: dict[str, Any] = field(default_factory=dict)
    relationships: dict[str, set[str]] = field(default_factory=dict)
    ttl_seconds: int = NO_EXPIRY

    def add_relationship(self, namespace: str | Namespace, *ids: str) -> None:
        if not ids:
            return
        self.relationships.setdefault(str(namespace), set()).update(ids)

    def related(self, namespace: str | Namespace) -> frozenset[str]:
        return frozenset(self.relationships.get(str(namespace), ()))

    def copy(self) -> CacheData:
        return CacheData(
            id=self.id,
            attributes=dict(self.attributes),
            relationships={ns: set(ids) for ns, ids in self.relationships.items()},
            ttl_seconds=self.ttl_seconds,
        )


class CacheDataMap:
    """Index of CacheData by id

    Records are only created through ``get_or_create``; lookups never
    create anything.
    """

    def __init__(self, records: Iterable[CacheData] | None = None):
        self._records: dict[str, CacheData] = {}
        if records:
            self.merge(records)

    def get_or_create(self, id: str) -> CacheData:
        record = self._records.get(id)
        if record is None:
            record = self._records[id] = CacheData(id)
        return record

    def get(self, id: str) -> CacheData | None:
        return self._records.get(id)

    def merge(self, records: Iterable[CacheData] | None) -> CacheDataMap:
        merge_cache_data(self._records, records)
        return self

    def values(self) -> list[CacheData]:
        return list(self._records.values())

    def ids(self) -> set[str]:
        return set(self._records)

    def __getitem__(self, id: str) -> CacheData:
        return self._records[id]

    def __contains__(self, id: object) -> bool:
        return id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[CacheData]:
        return iter(list(self._records.values()))

    def __repr__(self) -> str:
        return f"CacheDataMap(records={len(self._records)})"


@dataclass
class CacheResult:
    """Records to write and ids to evict, per namespace"""

    cache_results: dict[str, list[CacheData]] = field(default_factory=dict)
    evictions: dict[str, list[str]] = field(default_factory=dict)

    def records(self, namespace: str | Namespace) -> list[CacheData]:
        return self.cache_results.get(str(namespace), [])

    def is_empty(self) -> bool:
        return not any(self.cache_results.values())


class OnDemandType(str, Enum):
    SERVER_GROUP = "ServerGroup"


@dataclass
class OnDemandResult:
    source_agent_type: str
    cache_result: CacheResult = field(default_factory=CacheResult)
    evictions: dict[str, list[str]] = field(default_factory=dict)


class Authority(str, Enum):
    """Whether an agent's result is the complete truth for a namespace"""

    AUTHORITATIVE = "authoritative"
    INFORMATIVE = "informative"


@dataclass(frozen=True)
class AgentDataType:
    namespace: str
    authority: Authority


@dataclass
class OnDemandEntry:
    """Snapshot of one server group's graph, written by an on-demand refresh

    Attributes:
        id: Server group key
        cache_time: lastReadTime of the resource at capture (epoch millis)
        cache_results: Serialized entity graph
        processed_count: How many scans consumed this entry
        processed_time: When a scan last consumed it
    """

    id: str
    cache_time: int
    cache_results: bytes
    processed_count: int = 0
    processed_time: int | None = None

    def to_cache_data(self, ttl_seconds: int) -> CacheData:
        return CacheData(
            id=self.id,
            attributes={
                "cacheTime": self.cache_time,
                "cacheResults": self.cache_results,
                "processedCount": self.processed_count,
                "processedTime": self.processed_time,
            },
            ttl_seconds=ttl_seconds,
        )

    @classmethod
    def from_cache_data(cls, data: CacheData) -> OnDemandEntry:
        """Typed view of a stored record

        Raises:
            KeyError, TypeError, ValueError: the record is not an on-demand entry
        """
        attributes = data.attributes
        cache_results = attributes["cacheResults"]
        if not isinstance(cache_results, (bytes, bytearray)):
            raise TypeError(f"cacheResults must be bytes, got {type(cache_results).__name__}")

        processed_time = attributes.get("processedTime")
        return cls(
            id=data.id,
            cache_time=int(attributes["cacheTime"]),
            cache_results=bytes(cache_results),
            processed_count=int(attributes.get("processedCount") or 0),
            processed_time=int(processed_time) if processed_time is not None else None,
        )


@dataclass(frozen=True)
class EvictionMarker:
    """Tombstone: the server group was confirmed gone at ``eviction_time``"""

    id: str
    eviction_time: int

    def to_cache_data(self, ttl_seconds: int) -> CacheData:
        return CacheData(
            id=self.id,
            attributes={"evictionTime": self.eviction_time},
            ttl_seconds=ttl_seconds,
        )

    @classmethod
    def from_cache_data(cls, data: CacheData) -> EvictionMarker:
        return cls(id=data.id, eviction_time=int(data.attributes["evictionTime"]))
