"""
fleetcache/cache/merge.py - Merge engine

Combines record sets describing the same logical entities. Attributes are
last-write-wins per key; relationships are unioned per namespace, so a merge
never removes a relationship.
"""

from __future__ import annotations

from collections.abc import Iterable, MutableMapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types import CacheData


def merge_cache_data(
    existing: MutableMapping[str, CacheData],
    incoming: Iterable[CacheData] | None,
) -> MutableMapping[str, CacheData]:
    """Merge ``incoming`` records into ``existing`` (in place)

    Unknown ids are inserted as copies, so later merges never write through
    to the caller's records. Merging the same records twice is a no-op.

    Returns:
        ``existing``
    """
    for record in incoming or ():
        current = existing.get(record.id)
        if current is None:
            existing[record.id] = record.copy()
            continue

        current.attributes.update(record.attributes)
        for namespace, ids in record.relationships.items():
            current.add_relationship(namespace, *ids)

    return existing
