"""
fleetcache/cache/keys.py - Namespaces and cache key derivation

Keys are pure functions of an identity tuple, so the same logical resource
always maps to the same key. Segments are joined with ``:``; names must not
contain it.

Example:
    Keys.server_group("app-v001", "eastus", "my-acct")
    # "azure:serverGroups:app-v001:eastus:my-acct"
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from fleetcache.compute.names import parse_server_group_name
from fleetcache.config import settings


class Namespace(str, Enum):
    """Store namespaces (also the second key segment)"""

    APPLICATIONS = "applications"
    CLUSTERS = "clusters"
    SERVER_GROUPS = "serverGroups"
    INSTANCES = "instances"
    LOAD_BALANCERS = "loadBalancers"
    ON_DEMAND = "onDemand"
    EVICTIONS = "evictions"

    @property
    def ns(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


# namespaces an entity graph is made of
GRAPH_NAMESPACES: tuple[Namespace, ...] = (
    Namespace.APPLICATIONS,
    Namespace.CLUSTERS,
    Namespace.SERVER_GROUPS,
    Namespace.INSTANCES,
)

_KEY_FIELDS: dict[str, tuple[str, ...]] = {
    Namespace.APPLICATIONS.value: ("application",),
    Namespace.CLUSTERS.value: ("application", "cluster", "account"),
    Namespace.SERVER_GROUPS.value: ("serverGroup", "region", "account"),
    Namespace.INSTANCES.value: ("serverGroup", "name", "region", "account"),
    Namespace.LOAD_BALANCERS.value: ("application", "cluster", "loadBalancer", "region", "account"),
}

SEPARATOR = ":"


class Keys:
    @staticmethod
    def application(app: str, provider: str = settings.DEFAULT_PROVIDER) -> str:
        return _join(provider, Namespace.APPLICATIONS, app.lower())

    @staticmethod
    def cluster(app: str, cluster: str, account: str, provider: str = settings.DEFAULT_PROVIDER) -> str:
        return _join(provider, Namespace.CLUSTERS, app.lower(), cluster, account)

    @staticmethod
    def server_group(name: str, region: str, account: str, provider: str = settings.DEFAULT_PROVIDER) -> str:
        return _join(provider, Namespace.SERVER_GROUPS, name, region, account)

    @staticmethod
    def instance(
        server_group: str,
        name: str,
        region: str,
        account: str,
        provider: str = settings.DEFAULT_PROVIDER,
    ) -> str:
        return _join(provider, Namespace.INSTANCES, server_group, name, region, account)

    @staticmethod
    def load_balancer(
        app: str,
        cluster: str,
        name: str,
        region: str,
        account: str,
        provider: str = settings.DEFAULT_PROVIDER,
    ) -> str:
        return _join(provider, Namespace.LOAD_BALANCERS, app.lower(), cluster, name, region, account)

    @staticmethod
    def parse(key: str, provider: str | None = None) -> dict[str, Any] | None:
        """Decompose a key into its fields

        Args:
            key: Cache key
            provider: When given, keys of other providers are rejected

        Returns:
            Dict with ``provider``, ``type`` and the type's fields, or None if
            the key is malformed or of an unknown type
        """
        parts = key.split(SEPARATOR)
        if len(parts) < 2:
            return None

        key_provider, key_type, values = parts[0], parts[1], parts[2:]
        if provider is not None and key_provider != provider:
            return None

        fields = _KEY_FIELDS.get(key_type)
        if fields is None or len(fields) != len(values):
            return None

        result: dict[str, Any] = {"provider": key_provider, "type": key_type}
        result.update(zip(fields, values))

        if key_type == Namespace.SERVER_GROUPS.value:
            names = parse_server_group_name(result["serverGroup"])
            result.update(
                {
                    "application": names.app,
                    "cluster": names.cluster,
                    "stack": names.stack,
                    "detail": names.detail,
                    "sequence": names.sequence,
                }
            )

        return result


def _join(provider: str, namespace: Namespace, *values: str) -> str:
    return SEPARATOR.join((provider, namespace.value, *values))
