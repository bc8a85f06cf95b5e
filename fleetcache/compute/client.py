"""
fleetcache/compute/client.py - Compute client interface

The caching agent only depends on this protocol. ``AutoScalingComputeClient``
(fleetcache.compute.aws) is the boto3 implementation; tests use fakes.
"""

from __future__ import annotations

from typing import Protocol

from .types import InstanceDescription, ServerGroupDescription


class ComputeClient(Protocol):
    def list_server_groups(self, region: str) -> list[ServerGroupDescription]:
        """All server groups of the scope, each stamped with ``last_read_time``"""
        ...

    def get_server_group(self, resource_group: str, name: str) -> ServerGroupDescription | None:
        """One server group, None when it does not exist

        Raises:
            ComputeClientError: the lookup itself failed
        """
        ...

    def list_server_group_instances(self, resource_group: str, name: str) -> list[InstanceDescription]: ...
