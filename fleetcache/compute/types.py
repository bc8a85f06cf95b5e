"""
fleetcache/compute/types.py - Resource dataclasses

Standardized, immutable descriptions of what the compute client reads.
Provider-specific fields that have no dedicated attribute go into ``extensions``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class InstanceDescription:
    """One instance of a server group"""

    name: str
    instance_id: str = ""
    zone: str = ""
    health_state: str = ""
    lifecycle_state: str = ""
    launch_time: int | None = None
    extensions: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "instanceId": self.instance_id,
            "zone": self.zone,
            "healthState": self.health_state,
            "lifecycleState": self.lifecycle_state,
            "launchTime": self.launch_time,
            "extensions": dict(self.extensions),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InstanceDescription:
        return cls(
            name=data["name"],
            instance_id=data.get("instanceId", ""),
            zone=data.get("zone", ""),
            health_state=data.get("healthState", ""),
            lifecycle_state=data.get("lifecycleState", ""),
            launch_time=data.get("launchTime"),
            extensions=dict(data.get("extensions") or {}),
        )


@dataclass(frozen=True)
class ServerGroupDescription:
    """A server group as read from the compute API

    ``last_read_time`` is stamped by the client at fetch time (epoch millis)
    and must increase for successive reads of the same server group.
    """

    name: str
    account: str
    region: str
    app_name: str
    cluster_name: str
    last_read_time: int
    load_balancer_name: str = ""
    resource_group: str = ""
    extensions: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "account": self.account,
            "region": self.region,
            "appName": self.app_name,
            "clusterName": self.cluster_name,
            "lastReadTime": self.last_read_time,
            "loadBalancerName": self.load_balancer_name,
            "resourceGroup": self.resource_group,
            "extensions": dict(self.extensions),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ServerGroupDescription:
        return cls(
            name=data["name"],
            account=data["account"],
            region=data["region"],
            app_name=data["appName"],
            cluster_name=data["clusterName"],
            last_read_time=data["lastReadTime"],
            load_balancer_name=data.get("loadBalancerName", ""),
            resource_group=data.get("resourceGroup", ""),
            extensions=dict(data.get("extensions") or {}),
        )
