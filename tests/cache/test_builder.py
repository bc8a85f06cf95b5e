"""
tests/cache/test_builder.py - EntityGraphBuilder
"""

from fleetcache.cache.builder import EntityGraph, EntityGraphBuilder
from fleetcache.cache.keys import Namespace

APP = "azure:applications:app"
CLUSTER = "azure:clusters:app:app:my-acct"
SG = "azure:serverGroups:app-v001:eastus:my-acct"
LB = "azure:loadBalancers:app:app:app-lb:eastus:my-acct"


def build(server_group, instances=()):
    return EntityGraphBuilder("my-acct", "eastus").build(server_group, instances)


class TestEntityGraphBuilder:
    def test_application_record(self, make_server_group):
        graph = build(make_server_group())

        application = graph.applications[APP]
        assert application.attributes == {"name": "app"}
        assert application.related(Namespace.CLUSTERS) == {CLUSTER}
        assert application.related(Namespace.SERVER_GROUPS) == {SG}
        assert application.related(Namespace.LOAD_BALANCERS) == {LB}

    def test_cluster_record(self, make_server_group):
        graph = build(make_server_group())

        cluster = graph.clusters[CLUSTER]
        assert cluster.attributes == {"name": "app", "accountName": "my-acct"}
        assert cluster.related(Namespace.APPLICATIONS) == {APP}
        assert cluster.related(Namespace.SERVER_GROUPS) == {SG}
        assert cluster.related(Namespace.LOAD_BALANCERS) == {LB}

    def test_server_group_record(self, make_server_group, make_instance):
        server_group = make_server_group()
        graph = build(server_group, [make_instance("i-1"), make_instance("i-2")])

        record = graph.server_groups[SG]
        assert record.attributes["serverGroup"] == server_group.to_dict()
        assert record.related(Namespace.APPLICATIONS) == {APP}
        assert record.related(Namespace.CLUSTERS) == {CLUSTER}
        assert record.related(Namespace.LOAD_BALANCERS) == {LB}
        assert record.related(Namespace.INSTANCES) == {
            "azure:instances:app-v001:i-1:eastus:my-acct",
            "azure:instances:app-v001:i-2:eastus:my-acct",
        }

    def test_instance_records(self, make_server_group, make_instance):
        instance = make_instance("i-1")
        graph = build(make_server_group(), [instance])

        record = graph.instances["azure:instances:app-v001:i-1:eastus:my-acct"]
        assert record.attributes == {"instance": instance.to_dict()}
        assert record.related(Namespace.SERVER_GROUPS) == {SG}

    def test_no_instances(self, make_server_group):
        graph = build(make_server_group())

        assert len(graph.instances) == 0
        assert Namespace.INSTANCES.value not in graph.server_groups[SG].relationships

    def test_no_load_balancer(self, make_server_group):
        graph = build(make_server_group(load_balancer_name=""))

        assert graph.applications[APP].related(Namespace.LOAD_BALANCERS) == frozenset()
        assert Namespace.LOAD_BALANCERS.value not in graph.server_groups[SG].relationships

    def test_build_into_existing_graph(self, make_server_group):
        builder = EntityGraphBuilder("my-acct", "eastus")
        graph = builder.build(make_server_group("app-v001"))
        builder.build(make_server_group("app-v002"), graph=graph)

        assert len(graph.applications) == 1
        assert len(graph.server_groups) == 2
        assert len(graph.applications[APP].related(Namespace.SERVER_GROUPS)) == 2


class TestEntityGraph:
    def test_empty(self):
        assert EntityGraph().is_empty()

    def test_not_empty(self, make_server_group):
        assert not build(make_server_group()).is_empty()

    def test_merge(self, make_server_group):
        graph = build(make_server_group("app-v001"))

        graph.merge(build(make_server_group("app-v002")))

        assert graph.applications[APP].related(Namespace.SERVER_GROUPS) == {
            SG,
            "azure:serverGroups:app-v002:eastus:my-acct",
        }

    def test_merge_results_ignores_other_namespaces(self, make_server_group):
        graph = EntityGraph()

        graph.merge_results({**build(make_server_group()).as_cache_results(), "onDemand": []})

        assert set(graph.as_cache_results()) == {"applications", "clusters", "serverGroups", "instances"}
