from __future__ import annotations

import base64
import hashlib
import logging
import time
import typing as tp
import uuid
from pathlib import Path

import anyio

from shared_http_cache._core._headers import Headers
from shared_http_cache._core._storages._base import AsyncBaseStorage, VerifyStats
from shared_http_cache._core._storages._packing import pack, unpack
from shared_http_cache._core.models import CacheEntry
from shared_http_cache._exceptions import IntegrityError, StorageError
from shared_http_cache._utils import (
    check_integrity,
    compute_integrity,
    ensure_cache_dict,
    normalize_integrity,
    parse_integrity,
)

logger = logging.getLogger("shared_http_cache.storages")

INDEX_DIRECTORY = "index"
CONTENT_DIRECTORY = "content"
TMP_DIRECTORY = "tmp"


class AsyncFileStorage(AsyncBaseStorage):
    """
    A content-addressed directory store.

    Layout under `base_path`::

        index/<xx>/<sha256 of key>      msgpack record per key
        content/<algo>/<xx>/<hex>       bytes, named by their digest
        tmp/                            staging area for atomic writes

    :param base_path: Directory holding the cache, defaults to ".cache"
    :type base_path: tp.Optional[Path], optional
    :param algorithm: Digest algorithm for content written without an integrity value, defaults to "sha512"
    :type algorithm: str, optional
    """

    def __init__(
        self,
        base_path: tp.Optional[tp.Union[str, Path]] = None,
        algorithm: str = "sha512",
    ) -> None:
        self._base_path = Path(base_path) if base_path is not None else Path(".cache")
        self._algorithm = algorithm
        self._initialized = False

    @property
    def base_path(self) -> Path:
        return self._base_path

    def _ensure_directory(self) -> Path:
        if not self._initialized:
            ensure_cache_dict(self._base_path)
            self._initialized = True
        return self._base_path

    def _index_path(self, key: str) -> anyio.Path:
        hashed = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return anyio.Path(self._ensure_directory() / INDEX_DIRECTORY / hashed[:2] / hashed[2:])

    def _content_path(self, integrity: str) -> anyio.Path:
        algorithm, digest = parse_integrity(integrity)
        hexdigest = digest.hex()
        return anyio.Path(self._ensure_directory() / CONTENT_DIRECTORY / algorithm / hexdigest[:2] / hexdigest[2:])

    async def _atomic_write(self, target: anyio.Path, data: bytes) -> None:
        staging = anyio.Path(self._ensure_directory() / TMP_DIRECTORY / uuid.uuid4().hex)
        await staging.parent.mkdir(parents=True, exist_ok=True)
        await target.parent.mkdir(parents=True, exist_ok=True)
        try:
            await staging.write_bytes(data)
            await staging.replace(target)
        finally:
            await staging.unlink(missing_ok=True)

    async def _read_record(self, path: anyio.Path) -> tp.Optional[tp.Tuple[CacheEntry, tp.Optional[float]]]:
        try:
            data = await path.read_bytes()
        except FileNotFoundError:
            return None
        return unpack(data)

    async def info_by_key(self, key: str) -> tp.Optional[CacheEntry]:
        record = await self._read_record(self._index_path(key))
        if record is None:
            return None
        entry, deleted_at = record
        if entry.key != key or deleted_at is not None:
            return None
        return entry

    async def read_by_key(self, key: str) -> bytes:
        entry = await self.info_by_key(key)
        if entry is None or entry.integrity is None:
            raise StorageError(f"No entry is stored under the key {key!r}")
        content = await self.read_by_digest(entry.integrity)
        if content is None:
            raise StorageError(f"The content of the entry stored under the key {key!r} is missing")
        return content

    async def read_by_digest(self, integrity: str) -> tp.Optional[bytes]:
        try:
            return await self._content_path(integrity).read_bytes()
        except FileNotFoundError:
            return None

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

        content_path = self._content_path(integrity)
        if not await content_path.exists():
            await self._atomic_write(content_path, content)

        entry = CacheEntry(
            key=key,
            headers=headers,
            stored_time=time.time(),
            integrity=integrity,
            size=len(content),
        )
        await self._atomic_write(self._index_path(key), pack(entry))
        logger.debug(f"Stored {len(content)} bytes under the key {key!r}.")
        return entry

    async def remove_entry(self, key: str, fully: bool = False) -> None:
        index_path = self._index_path(key)

        if fully:
            await index_path.unlink(missing_ok=True)
            return

        record = await self._read_record(index_path)
        if record is None:
            return
        entry, deleted_at = record
        if deleted_at is None:
            await self._atomic_write(index_path, pack(entry, deleted_at=time.time()))

    async def remove_content(self, integrity: str) -> None:
        await self._content_path(integrity).unlink(missing_ok=True)

    async def _list_files(self, directory: str) -> tp.List[anyio.Path]:
        root = anyio.Path(self._ensure_directory() / directory)
        if not await root.exists():
            return []
        return [path async for path in root.rglob("*") if await path.is_file()]

    async def list(self) -> tp.Dict[str, CacheEntry]:
        entries: tp.Dict[str, CacheEntry] = {}
        for path in await self._list_files(INDEX_DIRECTORY):
            record = await self._read_record(path)
            if record is None:
                continue
            entry, deleted_at = record
            if deleted_at is None:
                entries[entry.key] = entry
        return entries

    async def verify(self) -> VerifyStats:
        """
        Check every entry against its content and reclaim what is unused.

        Index records that are soft-deleted, undecodable, or point at missing
        or corrupt content are dropped, along with the corrupt content. Content
        files that no remaining entry references are deleted.
        """
        started = time.monotonic()
        stats = VerifyStats()
        referenced: tp.Set[str] = set()

        for path in await self._list_files(INDEX_DIRECTORY):
            stats.total_entries += 1
            record = await self._read_record(path)

            if record is None or record[1] is not None or record[0].integrity is None:
                stats.rejected_entries += 1
                await path.unlink(missing_ok=True)
                continue

            integrity = record[0].integrity
            if integrity in referenced:
                continue

            content = await self.read_by_digest(integrity)
            if content is None:
                stats.missing_content += 1
                stats.rejected_entries += 1
                await path.unlink(missing_ok=True)
            elif not check_integrity(content, integrity):
                stats.bad_content_count += 1
                stats.rejected_entries += 1
                await path.unlink(missing_ok=True)
                await self.remove_content(integrity)
            else:
                referenced.add(integrity)

        for path in await self._list_files(CONTENT_DIRECTORY):
            size = (await path.stat()).st_size
            try:
                digest = bytes.fromhex(path.parent.name + path.name)
            except ValueError:
                digest = b""
            integrity = f"{path.parent.parent.name}-{base64.b64encode(digest).decode('ascii')}"

            if not digest or integrity not in referenced:
                stats.reclaimed_count += 1
                stats.reclaimed_size += size
                await path.unlink(missing_ok=True)
                continue

            stats.verified_content += 1
            stats.kept_size += size

        stats.run_time = time.monotonic() - started
        logger.debug(f"Verified the cache at {self._base_path}: {stats}.")
        return stats
