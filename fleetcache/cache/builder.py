"""
fleetcache/cache/builder.py - Entity graph construction

Turns one server group and its instances into cache records across the
applications, clusters, serverGroups and instances namespaces, with the
cross references recorded on both sides.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from fleetcache.compute.types import InstanceDescription, ServerGroupDescription
from fleetcache.config import settings

from .keys import GRAPH_NAMESPACES, Keys, Namespace
from .types import CacheData, CacheDataMap


@dataclass
class EntityGraph:
    """The four namespaces produced for one or more server groups"""

    applications: CacheDataMap = field(default_factory=CacheDataMap)
    clusters: CacheDataMap = field(default_factory=CacheDataMap)
    server_groups: CacheDataMap = field(default_factory=CacheDataMap)
    instances: CacheDataMap = field(default_factory=CacheDataMap)

    def namespace(self, namespace: str | Namespace) -> CacheDataMap:
        return {
            Namespace.APPLICATIONS.value: self.applications,
            Namespace.CLUSTERS.value: self.clusters,
            Namespace.SERVER_GROUPS.value: self.server_groups,
            Namespace.INSTANCES.value: self.instances,
        }[str(namespace)]

    def is_empty(self) -> bool:
        return not any(len(self.namespace(ns)) for ns in GRAPH_NAMESPACES)

    def merge(self, other: EntityGraph) -> EntityGraph:
        return self.merge_results(other.as_cache_results())

    def merge_results(self, results: Mapping[str, Iterable[CacheData]]) -> EntityGraph:
        """Merge namespace -> records (e.g. a decoded snapshot) into this graph

        Namespaces outside the graph are ignored.
        """
        for ns in GRAPH_NAMESPACES:
            self.namespace(ns).merge(results.get(ns.value))
        return self

    def as_cache_results(self) -> dict[str, list[CacheData]]:
        return {ns.value: self.namespace(ns).values() for ns in GRAPH_NAMESPACES}


class EntityGraphBuilder:
    """Builds the entity graph of a server group

    Example:
        builder = EntityGraphBuilder("my-acct", "eastus")
        graph = builder.build(server_group, instances)
    """

    def __init__(self, account: str, region: str, provider: str = settings.DEFAULT_PROVIDER):
        self.account = account
        self.region = region
        self.provider = provider

    def build(
        self,
        server_group: ServerGroupDescription,
        instances: Iterable[InstanceDescription] = (),
        graph: EntityGraph | None = None,
    ) -> EntityGraph:
        graph = graph if graph is not None else EntityGraph()

        server_group_key = self.server_group_key(server_group.name)
        app_key = Keys.application(server_group.app_name, provider=self.provider)
        cluster_key = Keys.cluster(
            server_group.app_name, server_group.cluster_name, self.account, provider=self.provider
        )
        load_balancer_keys = []
        if server_group.load_balancer_name:
            load_balancer_keys.append(
                Keys.load_balancer(
                    server_group.app_name,
                    server_group.cluster_name,
                    server_group.load_balancer_name,
                    self.region,
                    self.account,
                    provider=self.provider,
                )
            )

        application = graph.applications.get_or_create(app_key)
        application.attributes["name"] = server_group.app_name
        application.add_relationship(Namespace.CLUSTERS, cluster_key)
        application.add_relationship(Namespace.SERVER_GROUPS, server_group_key)
        application.add_relationship(Namespace.LOAD_BALANCERS, *load_balancer_keys)

        cluster = graph.clusters.get_or_create(cluster_key)
        cluster.attributes["name"] = server_group.cluster_name
        cluster.attributes["accountName"] = self.account
        cluster.add_relationship(Namespace.APPLICATIONS, app_key)
        cluster.add_relationship(Namespace.SERVER_GROUPS, server_group_key)
        cluster.add_relationship(Namespace.LOAD_BALANCERS, *load_balancer_keys)

        record = graph.server_groups.get_or_create(server_group_key)
        record.attributes["serverGroup"] = server_group.to_dict()
        record.add_relationship(Namespace.APPLICATIONS, app_key)
        record.add_relationship(Namespace.CLUSTERS, cluster_key)
        record.add_relationship(Namespace.LOAD_BALANCERS, *load_balancer_keys)

        for instance in instances:
            instance_key = Keys.instance(
                server_group.name, instance.name, self.region, self.account, provider=self.provider
            )
            instance_record = graph.instances.get_or_create(instance_key)
            instance_record.attributes["instance"] = instance.to_dict()
            instance_record.add_relationship(Namespace.SERVER_GROUPS, server_group_key)
            record.add_relationship(Namespace.INSTANCES, instance_key)

        return graph

    def server_group_key(self, name: str) -> str:
        return Keys.server_group(name, self.region, self.account, provider=self.provider)
