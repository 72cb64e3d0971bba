from shared_http_cache._core._headers import Headers as Headers, parse_cache_control as parse_cache_control
from shared_http_cache._core._spec import (
    AnyState as AnyState,
    CacheMiss as CacheMiss,
    CouldNotBeStored as CouldNotBeStored,
    Freshness as Freshness,
    FromCache as FromCache,
    IdleClient as IdleClient,
    InvalidateEntry as InvalidateEntry,
    NeedRevalidation as NeedRevalidation,
    NeedToBeUpdated as NeedToBeUpdated,
    State as State,
    StoreAndUse as StoreAndUse,
)
from shared_http_cache._core._storages._base import AsyncBaseStorage as AsyncBaseStorage, VerifyStats as VerifyStats
from shared_http_cache._core._storages._file import AsyncFileStorage as AsyncFileStorage
from shared_http_cache._core._storages._memory import AsyncInMemoryStorage as AsyncInMemoryStorage
from shared_http_cache._core.models import (
    CacheEntry as CacheEntry,
    FailureRecord as FailureRecord,
    FetchRequest as FetchRequest,
    FetchResult as FetchResult,
    Request as Request,
    Response as Response,
)

__all__ = (
    # States
    "AnyState",
    "IdleClient",
    "CacheMiss",
    "FromCache",
    "NeedRevalidation",
    "NeedToBeUpdated",
    "StoreAndUse",
    "CouldNotBeStored",
    "InvalidateEntry",
    "State",
    "Freshness",
    # Models
    "CacheEntry",
    "FailureRecord",
    "FetchRequest",
    "FetchResult",
    "Request",
    "Response",
    # Headers
    "Headers",
    "parse_cache_control",
    # Storages
    "AsyncBaseStorage",
    "AsyncFileStorage",
    "AsyncInMemoryStorage",
    "VerifyStats",
)
