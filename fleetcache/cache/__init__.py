"""
fleetcache/cache - Cache records, store access and reconciliation building blocks

Classes:
    - Keys, Namespace: key derivation
    - CacheData, CacheDataMap, CacheResult: records and results
    - EntityGraphBuilder: resource -> entity graph
    - EvictionTracker, OnDemandStore: tombstones and on-demand snapshots
    - InMemoryProviderCache: TTL store
"""

from .builder import EntityGraph, EntityGraphBuilder
from .evictions import EvictionTracker
from .keys import GRAPH_NAMESPACES, Keys, Namespace
from .merge import merge_cache_data
from .metrics import OnDemandMetrics
from .on_demand import OnDemandStore
from .serialization import decode_graph, encode_graph
from .store import InMemoryProviderCache, ProviderCache
from .types import (
    AgentDataType,
    Authority,
    CacheData,
    CacheDataMap,
    CacheResult,
    EvictionMarker,
    OnDemandEntry,
    OnDemandResult,
    OnDemandType,
)

__all__ = [
    # Keys
    "GRAPH_NAMESPACES",
    "Keys",
    "Namespace",
    # Records
    "AgentDataType",
    "Authority",
    "CacheData",
    "CacheDataMap",
    "CacheResult",
    "EvictionMarker",
    "OnDemandEntry",
    "OnDemandResult",
    "OnDemandType",
    "merge_cache_data",
    "decode_graph",
    "encode_graph",
    # Graph
    "EntityGraph",
    "EntityGraphBuilder",
    # Store
    "EvictionTracker",
    "InMemoryProviderCache",
    "OnDemandMetrics",
    "OnDemandStore",
    "ProviderCache",
]
