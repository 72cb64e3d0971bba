from __future__ import annotations

from typing import Any, Dict, Optional, Tuple, cast

import msgpack

from shared_http_cache._core._headers import Headers
from shared_http_cache._core.models import CacheEntry


def pack(entry: CacheEntry, deleted_at: Optional[float] = None) -> bytes:
    return cast(
        bytes,
        msgpack.packb(
            {
                "key": entry.key,
                "integrity": entry.integrity,
                "time": entry.stored_time,
                "size": entry.size,
                "metadata": {
                    "headers": entry.headers.to_dict(),
                },
                "deleted_at": deleted_at,
            }
        ),
    )


def unpack(value: Optional[bytes]) -> Optional[Tuple[CacheEntry, Optional[float]]]:
    """
    Decode an index record into the entry and its soft-deletion time.

    Undecodable records yield None.
    """
    if value is None:
        return None

    try:
        data: Dict[str, Any] = msgpack.unpackb(value)
    except (ValueError, msgpack.UnpackException):
        return None

    if not isinstance(data, dict) or "key" not in data:
        return None

    entry = CacheEntry(
        key=data["key"],
        headers=Headers(data.get("metadata", {}).get("headers", {})),
        stored_time=data["time"],
        integrity=data.get("integrity"),
        size=data.get("size", 0),
    )
    return entry, data.get("deleted_at")
