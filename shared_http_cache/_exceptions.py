from __future__ import annotations

import typing as tp

if tp.TYPE_CHECKING:  # pragma: no cover
    from shared_http_cache._core._headers import Headers
    from shared_http_cache._core.models import FailureRecord

__all__ = (
    "CacheError",
    "MalformedRequestError",
    "OnlyIfCachedError",
    "OriginStatusError",
    "ResourceGoneError",
    "TransportError",
    "CallbackError",
    "StorageError",
    "IntegrityError",
    "BatchError",
)


class CacheError(Exception): ...


class MalformedRequestError(CacheError): ...


class OnlyIfCachedError(CacheError):
    status_code = 504

    def __init__(self, message: str = "HTTP error! status: 504 Only-If-Cached") -> None:
        super().__init__(message)


class OriginStatusError(CacheError):
    def __init__(self, status_code: int, headers: Headers | None = None) -> None:
        super().__init__(f"HTTP error! status: {status_code}")
        self.status_code = status_code
        self.headers = headers


class ResourceGoneError(OriginStatusError):
    def __init__(self, headers: Headers | None = None) -> None:
        super().__init__(410, headers)


class TransportError(CacheError):
    def __init__(self, message: str, timed_out: bool = False) -> None:
        super().__init__(message)
        self.timed_out = timed_out


class CallbackError(CacheError):
    """
    Raised when a completion hook fails.

    `headers` are the headers of the response the hook was given.
    """

    def __init__(self, message: str, headers: Headers | None = None) -> None:
        super().__init__(message)
        self.headers = headers


class StorageError(CacheError):
    def __init__(self, message: str, headers: Headers | None = None) -> None:
        super().__init__(message)
        self.headers = headers


class IntegrityError(StorageError): ...


class BatchError(CacheError):
    """
    Raised by a batch fetch when at least one request failed.

    `failures` is ordered by the index of the failed request in the batch.
    """

    def __init__(self, failures: tp.List[FailureRecord]) -> None:
        super().__init__(f"{len(failures)} request(s) failed")
        self.failures = failures
