"""
fleetcache/compute - Compute collaborator

Classes:
    - ComputeClient: protocol the caching agent reads resources through
    - AutoScalingComputeClient: boto3 implementation (imported lazily)
    - ServerGroupDescription, InstanceDescription: resource types
"""

from .client import ComputeClient
from .names import ServerGroupName, get_app_name, get_resource_group_name, parse_server_group_name
from .types import InstanceDescription, ServerGroupDescription

__all__ = [
    "ComputeClient",
    "AutoScalingComputeClient",
    "InstanceDescription",
    "ServerGroupDescription",
    "ServerGroupName",
    "get_app_name",
    "get_resource_group_name",
    "parse_server_group_name",
]


def __getattr__(name: str):
    """Lazy import - boto3 is only loaded when the AWS client is used"""
    if name == "AutoScalingComputeClient":
        from .aws import AutoScalingComputeClient

        return AutoScalingComputeClient

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
