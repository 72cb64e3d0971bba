from __future__ import annotations

import time
import typing as tp

from shared_http_cache._core._headers import Headers
from shared_http_cache._core._storages._base import AsyncBaseStorage, VerifyStats
from shared_http_cache._core.models import CacheEntry
from shared_http_cache._exceptions import IntegrityError, StorageError
from shared_http_cache._utils import check_integrity, compute_integrity, normalize_integrity


class AsyncInMemoryStorage(AsyncBaseStorage):
    """
    A simple in-memory storage.

    Behaves like `AsyncFileStorage` without touching the disk; everything is
    lost with the instance.

    :param algorithm: Digest algorithm for content written without an integrity value, defaults to "sha512"
    :type algorithm: str, optional
    """

    def __init__(self, algorithm: str = "sha512") -> None:
        self._algorithm = algorithm
        self._entries: tp.Dict[str, tp.Tuple[CacheEntry, tp.Optional[float]]] = {}
        self._content: tp.Dict[str, bytes] = {}

    async def info_by_key(self, key: str) -> tp.Optional[CacheEntry]:
        record = self._entries.get(key)
        if record is None or record[1] is not None:
            return None
        return record[0]

    async def read_by_key(self, key: str) -> bytes:
        entry = await self.info_by_key(key)
        if entry is None or entry.integrity is None:
            raise StorageError(f"No entry is stored under the key {key!r}")
        content = self._content.get(entry.integrity)
        if content is None:
            raise StorageError(f"The content of the entry stored under the key {key!r} is missing")
        return content

    async def read_by_digest(self, integrity: str) -> tp.Optional[bytes]:
        return self._content.get(normalize_integrity(integrity))

    async def write(
        self,
        key: str,
        content: bytes,
        headers: Headers,
        integrity: tp.Optional[str] = None,
        algorithm: tp.Optional[str] = None,
    ) -> CacheEntry:
        if integrity is not None:
            if not check_integrity(content, integrity):
                raise IntegrityError(f"The content written under the key {key!r} does not match {integrity!r}")
            integrity = normalize_integrity(integrity)
        else:
            integrity = compute_integrity(content, algorithm or self._algorithm)

        self._content.setdefault(integrity, bytes(content))
        entry = CacheEntry(
            key=key,
            headers=headers,
            stored_time=time.time(),
            integrity=integrity,
            size=len(content),
        )
        self._entries[key] = (entry, None)
        return entry

    async def remove_entry(self, key: str, fully: bool = False) -> None:
        if fully:
            self._entries.pop(key, None)
            return

        record = self._entries.get(key)
        if record is not None and record[1] is None:
            self._entries[key] = (record[0], time.time())

    async def remove_content(self, integrity: str) -> None:
        self._content.pop(normalize_integrity(integrity), None)

    async def list(self) -> tp.Dict[str, CacheEntry]:
        return {key: entry for key, (entry, deleted_at) in self._entries.items() if deleted_at is None}

    async def verify(self) -> VerifyStats:
        started = time.monotonic()
        stats = VerifyStats(total_entries=len(self._entries))
        referenced: tp.Set[str] = set()

        for key, (entry, deleted_at) in list(self._entries.items()):
            if deleted_at is not None or entry.integrity is None:
                stats.rejected_entries += 1
                del self._entries[key]
                continue

            content = self._content.get(entry.integrity)
            if content is None:
                stats.missing_content += 1
                stats.rejected_entries += 1
                del self._entries[key]
            elif entry.integrity not in referenced and not check_integrity(content, entry.integrity):
                stats.bad_content_count += 1
                stats.rejected_entries += 1
                del self._entries[key]
                del self._content[entry.integrity]
            else:
                referenced.add(entry.integrity)

        for integrity, content in list(self._content.items()):
            if integrity not in referenced:
                stats.reclaimed_count += 1
                stats.reclaimed_size += len(content)
                del self._content[integrity]
            else:
                stats.verified_content += 1
                stats.kept_size += len(content)

        stats.run_time = time.monotonic() - started
        return stats
