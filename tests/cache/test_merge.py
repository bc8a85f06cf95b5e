"""
tests/cache/test_merge.py - merge engine and CacheDataMap
"""

import copy

from fleetcache.cache.merge import merge_cache_data
from fleetcache.cache.types import CacheData, CacheDataMap


def record(id, attributes=None, **relationships):
    data = CacheData(id, attributes=dict(attributes or {}))
    for namespace, ids in relationships.items():
        data.add_relationship(namespace, *ids)
    return data


class TestMergeCacheData:
    def test_inserts_unknown_ids(self):
        existing = {}
        incoming = [record("a", {"name": "a"}, clusters=["c1"])]

        merge_cache_data(existing, incoming)

        assert existing["a"] == incoming[0]

    def test_inserted_record_is_a_copy(self):
        existing = {}
        incoming = record("a", clusters=["c1"])

        merge_cache_data(existing, [incoming])
        existing["a"].add_relationship("clusters", "c2")

        assert incoming.related("clusters") == {"c1"}

    def test_attributes_last_write_wins(self):
        existing = {"a": record("a", {"name": "old", "keep": 1})}

        merge_cache_data(existing, [record("a", {"name": "new"})])

        assert existing["a"].attributes == {"name": "new", "keep": 1}

    def test_relationships_are_unioned(self):
        existing = {"a": record("a", clusters=["c1"], serverGroups=["s1"])}

        merge_cache_data(existing, [record("a", clusters=["c2"], instances=["i1"])])

        assert existing["a"].related("clusters") == {"c1", "c2"}
        assert existing["a"].related("serverGroups") == {"s1"}
        assert existing["a"].related("instances") == {"i1"}

    def test_idempotent(self):
        """merge(merge(A, B), B) == merge(A, B)"""
        a = {"x": record("x", {"v": 1}, clusters=["c1"])}
        b = [record("x", {"v": 2}, clusters=["c2"]), record("y", {"v": 3}, instances=["i1"])]

        once = merge_cache_data(copy.deepcopy(a), b)
        twice = merge_cache_data(merge_cache_data(copy.deepcopy(a), b), b)

        assert once == twice

    def test_relationships_never_shrink(self):
        merged = {"x": record("x", clusters=["c1", "c2"])}

        for incoming in ([record("x", clusters=["c3"])], [record("x")], [record("x", clusters=[])]):
            before = set(merged["x"].related("clusters"))
            merge_cache_data(merged, incoming)
            assert before <= merged["x"].related("clusters")

    def test_none_incoming(self):
        existing = {"a": record("a")}

        assert merge_cache_data(existing, None) == {"a": record("a")}


class TestCacheDataMap:
    def test_get_or_create(self):
        records = CacheDataMap()

        first = records.get_or_create("a")
        second = records.get_or_create("a")

        assert first is second
        assert len(records) == 1

    def test_lookup_does_not_create(self):
        records = CacheDataMap()

        assert records.get("a") is None
        assert "a" not in records
        assert len(records) == 0

    def test_merge(self):
        records = CacheDataMap([record("a", clusters=["c1"])])

        records.merge([record("a", clusters=["c2"]), record("b")])

        assert records.ids() == {"a", "b"}
        assert records["a"].related("clusters") == {"c1", "c2"}


class TestCacheData:
    def test_add_relationship_without_ids_is_noop(self):
        data = CacheData("a")

        data.add_relationship("loadBalancers")

        assert data.relationships == {}

    def test_related_of_missing_namespace(self):
        data = CacheData("a")

        assert data.related("clusters") == frozenset()
        assert data.relationships == {}
