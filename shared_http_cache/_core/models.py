from __future__ import annotations

from dataclasses import dataclass, field
from typing import (
    Any,
    Awaitable,
    Callable,
    Mapping,
    Optional,
    Union,
)

from shared_http_cache._core._headers import Headers, HeadersInput
from shared_http_cache._exceptions import MalformedRequestError


@dataclass(frozen=True)
class FetchResult:
    """What a completion hook receives for one request of a batch."""

    content: bytes
    headers: Headers
    from_cache: bool
    index: int


CompletionHook = Callable[[FetchResult], Union[None, Awaitable[None]]]


@dataclass
class FetchRequest:
    """
    One item of a batch, as supplied by the caller.

    Attributes:
    ----------
    url : str
        Absolute URL of the resource. It is also the storage key once normalized.
    integrity : Optional[str]
        Subresource-Integrity string (`sha512-...`). Used to verify the written
        content and as an alternate lookup key when serving from cache.
    method : str
        HTTP method, GET when omitted.
    headers : Optional[Mapping]
        Request headers; names are matched case-insensitively.
    on_complete : Optional[CompletionHook]
        Called exactly once with a `FetchResult` when the request succeeds,
        before anything is written to storage. May be a coroutine function.
    """

    url: str
    integrity: Optional[str] = None
    method: str = "GET"
    headers: HeadersInput = None
    on_complete: Optional[CompletionHook] = None

    @classmethod
    def coerce(cls, value: Any) -> "FetchRequest":
        if isinstance(value, FetchRequest):
            return value
        if isinstance(value, Mapping):
            options = value.get("options") or {}
            if not isinstance(options, Mapping):
                raise MalformedRequestError("Request options must be a mapping")
            return cls(
                url=value.get("url"),  # type: ignore[arg-type]
                integrity=value.get("integrity"),
                method=value.get("method", options.get("method", "GET")) or "GET",
                headers=value.get("headers", options.get("headers")),
                on_complete=value.get("on_complete", value.get("callback")),
            )
        raise MalformedRequestError(f"Unsupported request descriptor: {type(value).__name__}")


@dataclass(frozen=True)
class Request:
    """
    A validated request descriptor, built once per request of a batch.

    `key` is the normalized URL used to address storage.
    """

    method: str
    url: str
    key: str
    index: int
    headers: Headers = field(default_factory=Headers)
    integrity: Optional[str] = None
    on_complete: Optional[CompletionHook] = None


@dataclass(frozen=True)
class Response:
    status_code: int
    headers: Headers = field(default_factory=Headers)
    content: bytes = b""


@dataclass(frozen=True)
class CacheEntry:
    """
    Metadata of a stored response.

    `stored_time` is the local clock reading (seconds since the epoch) taken
    when the entry was written, never a value derived from the response.
    """

    key: str
    headers: Headers
    stored_time: float
    integrity: Optional[str] = None
    size: int = 0


@dataclass(frozen=True)
class FailureRecord:
    """
    One failed request of a batch.

    `url` is the URL as the caller gave it. `headers` are the headers of the
    response the failure happened on, or None when no response was obtained.
    """

    index: int
    url: Any
    headers: Optional[Headers]
    error: Exception
