"""
fleetcache/compute/names.py - Server group naming convention

Server groups are named ``{app}[-{stack}[-{detail}]]-v{NNN}``. The cluster is
the name without the version suffix; the application is the first segment.

Example:
    parse_server_group_name("web-prod-canary-v003")
    # ServerGroupName(app="web", stack="prod", detail="canary",
    #                 cluster="web-prod-canary", sequence=3)
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_SEQUENCE_PATTERN = re.compile(r"^(?P<cluster>.+?)-v(?P<sequence>\d{3,})$")


@dataclass(frozen=True)
class ServerGroupName:
    app: str
    cluster: str
    stack: str = ""
    detail: str = ""
    sequence: int | None = None


def parse_server_group_name(name: str) -> ServerGroupName:
    match = _SEQUENCE_PATTERN.match(name)
    if match:
        cluster = match.group("cluster")
        sequence: int | None = int(match.group("sequence"))
    else:
        cluster = name
        sequence = None

    app, _, rest = cluster.partition("-")
    stack, _, detail = rest.partition("-")
    return ServerGroupName(app=app, cluster=cluster, stack=stack, detail=detail, sequence=sequence)


def get_app_name(resource_name: str | None) -> str | None:
    """Application segment of a resource name, None if there is none"""
    if not resource_name:
        return None
    app = resource_name.split("-", 1)[0]
    return app or None


def get_resource_group_name(app_name: str | None, region: str | None) -> str | None:
    """Resource group holding an application's resources in a region

    Returns None when either part is missing.
    """
    if not app_name or not region:
        return None
    return f"{app_name}-{region}"
