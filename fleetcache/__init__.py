"""
fleetcache - Reconciled cache of compute fleet state

Usage:
    from fleetcache import AgentConfig, ServerGroupCachingAgent
    from fleetcache.cache import InMemoryProviderCache

    store = InMemoryProviderCache()
    agent = ServerGroupCachingAgent(AgentConfig("my-acct", "eastus"), compute_client, store)
    store.put_cache_result(agent.load_data(), authoritative=agent.authoritative_namespaces)
"""

from .agent import ServerGroupCachingAgent
from .config import AgentConfig, LogConfig, configure_logging, settings

__version__ = "0.1.0"

__all__ = [
    "AgentConfig",
    "LogConfig",
    "ServerGroupCachingAgent",
    "configure_logging",
    "settings",
]
