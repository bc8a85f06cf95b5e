"""
fleetcache/agent.py - Server group caching agent

Keeps the applications / clusters / serverGroups / instances namespaces of one
account+region in sync with the compute API through two independent writers:

- ``load_data``: periodic full scan. Per server group it either trusts a newer
  on-demand snapshot or builds the graph from the scan itself.
- ``handle``: targeted refresh of a single server group. Writes an on-demand
  snapshot, or an eviction marker when the server group is gone.

The writers never lock each other out. Conflicts are resolved only by
comparing the timestamps captured at read time (``last_read_time``,
``cache_time``, ``eviction_time``).

Example:
    agent = ServerGroupCachingAgent(AgentConfig("my-acct", "eastus"), client, store)

    result = agent.load_data()
    store.put_cache_result(result, authoritative=agent.authoritative_namespaces)

    agent.handle({"serverGroupName": "app-v001", "account": "my-acct", "region": "eastus"})
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

from fleetcache.cache.builder import EntityGraph, EntityGraphBuilder
from fleetcache.cache.evictions import EvictionTracker
from fleetcache.cache.keys import GRAPH_NAMESPACES, Keys, Namespace
from fleetcache.cache.metrics import OnDemandMetrics
from fleetcache.cache.on_demand import OnDemandStore
from fleetcache.cache.serialization import decode_graph, encode_graph
from fleetcache.cache.store import ProviderCache
from fleetcache.cache.types import (
    AgentDataType,
    Authority,
    CacheData,
    CacheResult,
    OnDemandEntry,
    OnDemandResult,
    OnDemandType,
)
from fleetcache.clock import Clock, SystemClock
from fleetcache.compute.client import ComputeClient
from fleetcache.compute.names import get_app_name, get_resource_group_name
from fleetcache.compute.types import InstanceDescription, ServerGroupDescription
from fleetcache.config import AgentConfig
from fleetcache.exceptions import SnapshotDecodeError

logger = logging.getLogger(__name__)

REQUIRED_REQUEST_KEYS = ("serverGroupName", "account", "region")


@dataclass
class _ResourceOutcome:
    """Graph chosen for one server group during a scan"""

    key: str
    results: Mapping[str, Iterable[CacheData]]
    consumed: bool = False
    corrupt: bool = False
    superseded: bool = False


class ServerGroupCachingAgent:
    """Caching agent for the server groups of one account/region"""

    on_demand_type = OnDemandType.SERVER_GROUP

    provided_data_types = (
        AgentDataType(Namespace.SERVER_GROUPS.value, Authority.AUTHORITATIVE),
        AgentDataType(Namespace.APPLICATIONS.value, Authority.INFORMATIVE),
        AgentDataType(Namespace.CLUSTERS.value, Authority.INFORMATIVE),
        AgentDataType(Namespace.INSTANCES.value, Authority.INFORMATIVE),
    )

    def __init__(
        self,
        config: AgentConfig,
        compute_client: ComputeClient,
        store: ProviderCache,
        clock: Clock | None = None,
    ):
        self.config = config
        self.account = config.account
        self.region = config.region
        self.provider = config.provider

        self._client = compute_client
        self._clock = clock or SystemClock()
        self._builder = EntityGraphBuilder(self.account, self.region, provider=self.provider)
        self._on_demand = OnDemandStore(store, ttl_seconds=config.on_demand_ttl_seconds)
        self._evictions = EvictionTracker(store, clock=self._clock, ttl_seconds=config.on_demand_ttl_seconds)
        self.metrics = OnDemandMetrics(f"{self.provider}:{self.on_demand_type.value}")

    @property
    def agent_type(self) -> str:
        return f"{self.account}/{self.region}/{type(self).__name__}"

    @property
    def authoritative_namespaces(self) -> list[str]:
        return [t.namespace for t in self.provided_data_types if t.authority == Authority.AUTHORITATIVE]

    def handles(self, on_demand_type: OnDemandType, cloud_provider: str) -> bool:
        return on_demand_type == self.on_demand_type and cloud_provider == self.provider

    # =========================================================================
    # Periodic scan
    # =========================================================================

    def load_data(self) -> CacheResult:
        """Full scan of the scope

        Returns:
            CacheResult with the four graph namespaces, the on-demand records
            that were considered (consumed ones stamped as processed) and the
            on-demand ids to evict
        """
        start = self._clock.now_millis()

        server_groups = self._client.list_server_groups(self.region)
        keys = [self._builder.server_group_key(sg.name) for sg in server_groups]
        entries = self._on_demand.get_all(keys)

        evictions, usable = self.parse_on_demand_cache(entries, start)
        result, consumed = self._reconcile(server_groups, usable, evictions)

        logger.info("Caching %d applications in %s", len(result.records(Namespace.APPLICATIONS)), self.agent_type)
        logger.info("Caching %d clusters in %s", len(result.records(Namespace.CLUSTERS)), self.agent_type)
        logger.info("Caching %d server groups in %s", len(result.records(Namespace.SERVER_GROUPS)), self.agent_type)
        logger.info("Caching %d instances in %s", len(result.records(Namespace.INSTANCES)), self.agent_type)

        processed_time = self._clock.now_millis()
        for record in result.records(Namespace.ON_DEMAND):
            if record.id in consumed:
                record.attributes["processedTime"] = processed_time
                record.attributes["processedCount"] = (record.attributes.get("processedCount") or 0) + 1

        return result

    @staticmethod
    def parse_on_demand_cache(
        entries: Mapping[str, OnDemandEntry],
        start: int,
    ) -> tuple[list[str], dict[str, OnDemandEntry]]:
        """Split on-demand entries into ids to evict and candidates

        An entry that a previous scan already consumed and that predates this
        scan has nothing left to contribute.
        """
        evictions = []
        usable = {}
        for key, entry in entries.items():
            if entry.processed_count > 0 and entry.cache_time < start:
                evictions.append(key)
            else:
                usable[key] = entry
        return evictions, usable

    def _reconcile(
        self,
        server_groups: list[ServerGroupDescription],
        on_demand_entries: Mapping[str, OnDemandEntry],
        evictions: Iterable[str],
    ) -> tuple[CacheResult, set[str]]:
        if self.config.max_workers > 1 and len(server_groups) > 1:
            workers = min(self.config.max_workers, len(server_groups))
            with ThreadPoolExecutor(max_workers=workers) as executor:
                outcomes = list(executor.map(lambda sg: self._resolve(sg, on_demand_entries), server_groups))
        else:
            outcomes = [self._resolve(sg, on_demand_entries) for sg in server_groups]

        # merged in input order so parallelism does not change the result
        graph = EntityGraph()
        for outcome in outcomes:
            graph.merge_results(outcome.results)

        consumed = {o.key for o in outcomes if o.consumed}
        corrupt = {o.key for o in outcomes if o.corrupt}
        # lastReadTime only grows, so a snapshot the scan already caught up
        # with can never be used again
        superseded = {o.key for o in outcomes if o.superseded}

        on_demand_evictions = list(evictions)
        on_demand_evictions.extend(sorted(superseded))
        if self.config.evict_corrupt_on_demand:
            on_demand_evictions.extend(sorted(corrupt))

        on_demand_records = [
            self._on_demand.to_cache_data(entry)
            for key, entry in on_demand_entries.items()
            if key not in corrupt and key not in superseded
        ]

        cache_results = graph.as_cache_results()
        cache_results[Namespace.ON_DEMAND.value] = on_demand_records
        result = CacheResult(
            cache_results=cache_results,
            evictions={Namespace.ON_DEMAND.value: on_demand_evictions},
        )
        return result, consumed

    def _resolve(
        self,
        server_group: ServerGroupDescription,
        on_demand_entries: Mapping[str, OnDemandEntry],
    ) -> _ResourceOutcome:
        key = self._builder.server_group_key(server_group.name)
        entry = on_demand_entries.get(key)

        if entry is not None and self._is_usable(entry, server_group):
            try:
                results = decode_graph(entry.cache_results, key=key)
            except SnapshotDecodeError as e:
                logger.warning("Ignoring on-demand cache value, building from scan instead: %s", e)
                return _ResourceOutcome(key, self._build_fresh(server_group).as_cache_results(), corrupt=True)

            logger.info("Using onDemand cache value (id: %s, cacheTime: %d)", key, entry.cache_time)
            return _ResourceOutcome(key, results, consumed=True)

        superseded = entry is not None and entry.cache_time <= server_group.last_read_time
        return _ResourceOutcome(key, self._build_fresh(server_group).as_cache_results(), superseded=superseded)

    def _is_usable(self, entry: OnDemandEntry, server_group: ServerGroupDescription) -> bool:
        return entry.cache_time > server_group.last_read_time and not self._evictions.has_been_evicted(
            entry.id, server_group.last_read_time
        )

    def _build_fresh(self, server_group: ServerGroupDescription) -> EntityGraph:
        resource_group = (
            server_group.resource_group or get_resource_group_name(server_group.app_name, self.region) or ""
        )
        instances = self._client.list_server_group_instances(resource_group, server_group.name)
        return self._builder.build(server_group, instances)

    # =========================================================================
    # On-demand refresh
    # =========================================================================

    def valid_keys(self, data: Mapping[str, Any]) -> bool:
        return (
            all(key in data for key in REQUIRED_REQUEST_KEYS)
            and data["account"] == self.account
            and data["region"] == self.region
        )

    def handle(self, data: Mapping[str, Any]) -> OnDemandResult | None:
        """Refresh one server group

        Returns:
            None when the request is out of scope or the lookup failed (nothing
            was written); otherwise the built graph and the evictions to apply
        """
        if not self.valid_keys(data):
            return None

        name = str(data["serverGroupName"])
        key = self._builder.server_group_key(name)
        resource_group = get_resource_group_name(get_app_name(name), self.region)
        if resource_group is None:
            logger.info("handle->Unexpected error retrieving resource group name for %s", name)
            return OnDemandResult(source_agent_type=self.agent_type)

        try:
            server_group, instances = self.metrics.read_data(lambda: self._read(resource_group, name))
        except Exception as e:
            logger.error("handle->Unexpected exception refreshing %s: %s", key, e)
            return None

        cache_result = self.metrics.transform_data(lambda: self._graph_result(server_group, instances))

        if server_group is None or cache_result.is_empty():
            # gone: drop any snapshot and leave a tombstone so the next scan
            # does not bring it back from a stale one
            self._on_demand.evict([key])
            self._evictions.record_eviction(key)
        else:
            entry = OnDemandEntry(
                id=key,
                cache_time=server_group.last_read_time,
                cache_results=encode_graph({ns.value: cache_result.records(ns) for ns in GRAPH_NAMESPACES}),
            )
            self.metrics.on_demand_store(lambda: self._on_demand.put(entry))

        evictions = {} if server_group is not None else {Namespace.SERVER_GROUPS.value: [key]}

        logger.info("onDemand cache refresh (data: %s, evictions: %s)", dict(data), evictions)
        return OnDemandResult(source_agent_type=self.agent_type, cache_result=cache_result, evictions=evictions)

    def _read(
        self, resource_group: str, name: str
    ) -> tuple[ServerGroupDescription | None, list[InstanceDescription]]:
        server_group = self._client.get_server_group(resource_group, name)
        if server_group is None:
            return None, []
        return server_group, self._client.list_server_group_instances(resource_group, name)

    def _graph_result(
        self,
        server_group: ServerGroupDescription | None,
        instances: Iterable[InstanceDescription],
    ) -> CacheResult:
        graph = EntityGraph()
        if server_group is not None:
            self._builder.build(server_group, instances, graph=graph)
        return CacheResult(cache_results=graph.as_cache_results())

    def pending_on_demand_requests(self) -> list[dict[str, Any]]:
        """On-demand entries of this account/region awaiting or after processing"""
        keys = []
        for key in self._on_demand.identifiers():
            details = Keys.parse(key, provider=self.provider)
            if (
                details is not None
                and details["type"] == Namespace.SERVER_GROUPS.value
                and details["account"] == self.account
                and details["region"] == self.region
            ):
                keys.append(key)

        return [
            {
                "id": entry.id,
                "details": Keys.parse(entry.id, provider=self.provider),
                "cacheTime": entry.cache_time,
                "processedCount": entry.processed_count,
                "processedTime": entry.processed_time,
            }
            for entry in self._on_demand.get_all(keys).values()
        ]
