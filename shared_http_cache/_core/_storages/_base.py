from __future__ import annotations

import abc
import typing as tp
from dataclasses import dataclass

from shared_http_cache._core._headers import Headers
from shared_http_cache._core.models import CacheEntry


@dataclass
class VerifyStats:
    """Outcome of a `verify` run over a store."""

    total_entries: int = 0
    verified_content: int = 0
    rejected_entries: int = 0
    missing_content: int = 0
    bad_content_count: int = 0
    reclaimed_count: int = 0
    reclaimed_size: int = 0
    kept_size: int = 0
    run_time: float = 0.0


class AsyncBaseStorage(abc.ABC):
    """
    Key and digest addressed persistence of responses.

    Entries are addressed by key (the normalized URL) and hold the response
    headers, the local time they were written and the integrity digest of
    their content. Content is addressed by that digest, so several keys may
    share the same bytes.
    """

    @abc.abstractmethod
    async def info_by_key(self, key: str) -> tp.Optional[CacheEntry]:
        raise NotImplementedError()

    @abc.abstractmethod
    async def read_by_key(self, key: str) -> bytes:
        """Content of the entry stored under `key`; raises `StorageError` when there is none."""
        raise NotImplementedError()

    @abc.abstractmethod
    async def read_by_digest(self, integrity: str) -> tp.Optional[bytes]:
        raise NotImplementedError()

    @abc.abstractmethod
    async def write(
        self,
        key: str,
        content: bytes,
        headers: Headers,
        integrity: tp.Optional[str] = None,
        algorithm: tp.Optional[str] = None,
    ) -> CacheEntry:
        """
        Store `content` under `key`, replacing any entry with the same key.

        When `integrity` is given the content must match it, otherwise
        `IntegrityError` is raised and nothing is written. Without it, a digest
        is computed with `algorithm`.
        """
        raise NotImplementedError()

    @abc.abstractmethod
    async def remove_entry(self, key: str, fully: bool = False) -> None:
        """
        Remove the entry stored under `key`.

        A soft removal keeps the record until the next `verify`; `fully`
        drops it right away. Content is left in place either way.
        """
        raise NotImplementedError()

    @abc.abstractmethod
    async def remove_content(self, integrity: str) -> None:
        raise NotImplementedError()

    @abc.abstractmethod
    async def list(self) -> tp.Dict[str, CacheEntry]:
        raise NotImplementedError()

    @abc.abstractmethod
    async def verify(self) -> VerifyStats:
        raise NotImplementedError()

    async def aclose(self) -> None:
        pass
