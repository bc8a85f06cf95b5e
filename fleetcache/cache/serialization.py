"""
fleetcache/cache/serialization.py - msgpack encoding of cache records

Wire format of a graph:
    {namespace: [{"id": str, "attributes": {...}, "relationships": {ns: [ids]}, "ttl": int}]}

Relationship sets are written as sorted lists and read back as sets, so a
round trip preserves set equality.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any

import msgpack
from msgpack.exceptions import UnpackException

from fleetcache.exceptions import SnapshotDecodeError

from .types import NO_EXPIRY, CacheData


def _default(obj: Any) -> Any:
    if isinstance(obj, (set, frozenset)):
        return sorted(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, tuple):
        return list(obj)
    raise TypeError(f"cannot serialize {type(obj).__name__}")


def record_to_dict(record: CacheData) -> dict[str, Any]:
    return {
        "id": record.id,
        "attributes": record.attributes,
        "relationships": {ns: sorted(ids) for ns, ids in record.relationships.items()},
        "ttl": record.ttl_seconds,
    }


def record_from_dict(data: Any) -> CacheData:
    if not isinstance(data, dict):
        raise TypeError(f"record must be a map, got {type(data).__name__}")

    record_id = data["id"]
    attributes = data.get("attributes") or {}
    relationships = data.get("relationships") or {}
    if not isinstance(record_id, str):
        raise TypeError("record id must be a string")
    if not isinstance(attributes, dict) or not isinstance(relationships, dict):
        raise TypeError(f"malformed record {record_id}")

    return CacheData(
        id=record_id,
        attributes=dict(attributes),
        relationships={ns: set(ids) for ns, ids in relationships.items()},
        ttl_seconds=int(data.get("ttl", NO_EXPIRY)),
    )


def pack(obj: Any) -> bytes:
    return msgpack.packb(obj, use_bin_type=True, default=_default)


def unpack(payload: bytes) -> Any:
    # attribute maps may be keyed by non-strings (e.g. port numbers)
    return msgpack.unpackb(payload, raw=False, strict_map_key=False)


def encode_graph(results: Mapping[str, Iterable[CacheData]]) -> bytes:
    """Serialize namespace -> records"""
    return pack({str(ns): [record_to_dict(r) for r in records] for ns, records in results.items()})


def decode_graph(payload: bytes, key: str | None = None) -> dict[str, list[CacheData]]:
    """Inverse of encode_graph

    Raises:
        SnapshotDecodeError: payload is not a valid encoded graph
    """
    try:
        data = unpack(payload)
    except (ValueError, TypeError, UnpackException) as e:
        raise SnapshotDecodeError("invalid msgpack payload", key=key, cause=e) from e

    if not isinstance(data, dict):
        raise SnapshotDecodeError(f"expected a map, got {type(data).__name__}", key=key)

    try:
        return {ns: [record_from_dict(r) for r in records] for ns, records in data.items()}
    except (KeyError, TypeError, ValueError) as e:
        raise SnapshotDecodeError("malformed record", key=key, cause=e) from e
