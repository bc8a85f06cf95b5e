"""
tests/conftest.py - shared pytest fixtures

Provides a manual clock, an in-memory store, a fake compute client and a
configured caching agent.

Usage:
    def test_something(agent, compute_client, make_server_group):
        compute_client.add(make_server_group("app-v001", last_read_time=1000))
        result = agent.load_data()
"""

import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# add the project root to sys.path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from fleetcache.agent import ServerGroupCachingAgent  # noqa: E402
from fleetcache.cache.store import InMemoryProviderCache  # noqa: E402
from fleetcache.clock import ManualClock  # noqa: E402
from fleetcache.compute.types import InstanceDescription, ServerGroupDescription  # noqa: E402
from fleetcache.config import AgentConfig  # noqa: E402

ACCOUNT = "my-acct"
REGION = "eastus"


# =============================================================================
# Environment
# =============================================================================


@pytest.fixture(autouse=True)
def setup_test_environment():
    """AWS credentials for anything that builds a boto3 client"""
    os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

    yield


# =============================================================================
# Fakes
# =============================================================================


class FakeComputeClient:
    """In-memory ComputeClient that records the calls it receives"""

    def __init__(self):
        self.server_groups: Dict[str, ServerGroupDescription] = {}
        self.instances: Dict[str, List[InstanceDescription]] = {}
        self.get_error: Optional[Exception] = None
        self.get_calls: List[tuple] = []
        self.instance_calls: List[tuple] = []

    def add(self, server_group: ServerGroupDescription, instances: Optional[List[InstanceDescription]] = None):
        self.server_groups[server_group.name] = server_group
        self.instances[server_group.name] = list(instances or [])

    def remove(self, name: str) -> None:
        self.server_groups.pop(name, None)
        self.instances.pop(name, None)

    def list_server_groups(self, region: str) -> List[ServerGroupDescription]:
        return list(self.server_groups.values())

    def get_server_group(self, resource_group: str, name: str) -> Optional[ServerGroupDescription]:
        self.get_calls.append((resource_group, name))
        if self.get_error is not None:
            raise self.get_error
        return self.server_groups.get(name)

    def list_server_group_instances(self, resource_group: str, name: str) -> List[InstanceDescription]:
        self.instance_calls.append((resource_group, name))
        return list(self.instances.get(name, []))


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def clock():
    return ManualClock(1000)


@pytest.fixture
def store(clock):
    return InMemoryProviderCache(clock=clock)


@pytest.fixture
def compute_client():
    return FakeComputeClient()


@pytest.fixture
def agent_config():
    return AgentConfig(account=ACCOUNT, region=REGION, max_workers=1)


@pytest.fixture
def agent(agent_config, compute_client, store, clock):
    return ServerGroupCachingAgent(agent_config, compute_client, store, clock=clock)


@pytest.fixture
def make_server_group():
    """Factory for ServerGroupDescription in the default scope"""

    def _make(
        name: str = "app-v001",
        last_read_time: int = 1000,
        load_balancer_name: str = "app-lb",
        **extensions,
    ) -> ServerGroupDescription:
        app, _, _ = name.partition("-")
        cluster = name.rsplit("-v", 1)[0]
        return ServerGroupDescription(
            name=name,
            account=ACCOUNT,
            region=REGION,
            app_name=app,
            cluster_name=cluster,
            last_read_time=last_read_time,
            load_balancer_name=load_balancer_name,
            extensions=extensions,
        )

    return _make


@pytest.fixture
def make_instance():
    def _make(name: str, health_state: str = "Healthy") -> InstanceDescription:
        return InstanceDescription(name=name, instance_id=name, zone="1", health_state=health_state)

    return _make
