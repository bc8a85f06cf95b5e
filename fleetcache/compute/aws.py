"""
fleetcache/compute/aws.py - Auto Scaling groups as server groups

Implements ComputeClient on top of the ``autoscaling`` API. AWS has no
resource groups, so the ``resource_group`` argument is accepted and ignored.

Example:
    client = AutoScalingComputeClient.from_config(boto3.Session(), AgentConfig("prod", "us-east-1"))
    groups = client.list_server_groups("us-east-1")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from botocore.config import Config
from botocore.exceptions import ClientError

from fleetcache.clock import Clock, SystemClock
from fleetcache.config import AgentConfig, settings
from fleetcache.exceptions import ComputeClientError

from .names import parse_server_group_name
from .types import InstanceDescription, ServerGroupDescription

if TYPE_CHECKING:
    from boto3 import Session

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 5
CONNECT_TIMEOUT = 10  # seconds
READ_TIMEOUT = 30  # seconds


def get_client(session: "Session", region: str, max_workers: int = settings.SCAN_MAX_WORKERS) -> Any:
    """autoscaling client with adaptive retries

    The connection pool holds one connection per scan worker, so parallel
    instance lookups do not queue for a connection.
    """
    config = Config(
        retries={"max_attempts": MAX_ATTEMPTS, "mode": "adaptive"},
        connect_timeout=CONNECT_TIMEOUT,
        read_timeout=READ_TIMEOUT,
        max_pool_connections=max_workers,
    )
    return session.client("autoscaling", region_name=region, config=config)


class AutoScalingComputeClient:
    """Reads Auto Scaling groups for one account/region"""

    def __init__(
        self,
        session: "Session",
        account_name: str,
        region: str,
        clock: Clock | None = None,
        max_workers: int = settings.SCAN_MAX_WORKERS,
    ):
        self._account_name = account_name
        self._region = region
        self._clock = clock or SystemClock()
        self._client = get_client(session, region, max_workers=max_workers)

    @classmethod
    def from_config(
        cls, session: "Session", config: AgentConfig, clock: Clock | None = None
    ) -> AutoScalingComputeClient:
        """Client for an agent's scope, pooled for its scan workers"""
        return cls(session, config.account, config.region, clock=clock, max_workers=config.max_workers)

    def list_server_groups(self, region: str) -> list[ServerGroupDescription]:
        if region != self._region:
            logger.warning("client for %s asked to list %s", self._region, region)
            return []

        server_groups = []
        try:
            paginator = self._client.get_paginator("describe_auto_scaling_groups")
            for page in paginator.paginate():
                for data in page.get("AutoScalingGroups", []):
                    server_groups.append(self._to_server_group(data))
        except ClientError as e:
            raise ComputeClientError.from_client_error("describe_auto_scaling_groups", e) from e

        return server_groups

    def get_server_group(self, resource_group: str, name: str) -> ServerGroupDescription | None:
        data = self._describe(name)
        if data is None:
            return None
        return self._to_server_group(data)

    def list_server_group_instances(self, resource_group: str, name: str) -> list[InstanceDescription]:
        data = self._describe(name)
        if data is None:
            return []
        return [self._to_instance(instance) for instance in data.get("Instances", [])]

    def _describe(self, name: str) -> dict[str, Any] | None:
        try:
            response = self._client.describe_auto_scaling_groups(AutoScalingGroupNames=[name])
        except ClientError as e:
            raise ComputeClientError.from_client_error("describe_auto_scaling_groups", e) from e

        groups = response.get("AutoScalingGroups", [])
        return groups[0] if groups else None

    def _to_server_group(self, data: dict[str, Any]) -> ServerGroupDescription:
        name = data.get("AutoScalingGroupName", "")
        parsed = parse_server_group_name(name)

        tags = {}
        for tag in data.get("Tags", []):
            key = tag.get("Key", "")
            if not key.startswith("aws:"):
                tags[key] = tag.get("Value", "")

        # classic ELB name wins over target group
        load_balancer_name = ""
        if data.get("LoadBalancerNames"):
            load_balancer_name = data["LoadBalancerNames"][0]
        elif data.get("TargetGroupARNs"):
            load_balancer_name = data["TargetGroupARNs"][0].rsplit("/", 2)[-2]

        created_time = data.get("CreatedTime")

        return ServerGroupDescription(
            name=name,
            account=self._account_name,
            region=self._region,
            app_name=parsed.app,
            cluster_name=parsed.cluster,
            last_read_time=self._clock.now_millis(),
            load_balancer_name=load_balancer_name,
            extensions={
                "minSize": data.get("MinSize", 0),
                "maxSize": data.get("MaxSize", 0),
                "desiredCapacity": data.get("DesiredCapacity", 0),
                "createdTime": created_time.isoformat() if created_time else None,
                "tags": tags,
            },
        )

    @staticmethod
    def _to_instance(data: dict[str, Any]) -> InstanceDescription:
        instance_id = data.get("InstanceId", "")
        return InstanceDescription(
            name=instance_id,
            instance_id=instance_id,
            zone=data.get("AvailabilityZone", ""),
            health_state=data.get("HealthStatus", ""),
            lifecycle_state=data.get("LifecycleState", ""),
            extensions={
                "instanceType": data.get("InstanceType", ""),
                "protectedFromScaleIn": data.get("ProtectedFromScaleIn", False),
            },
        )
