from shared_http_cache._async_cache import AsyncCacheEngine as AsyncCacheEngine
from shared_http_cache._config import CacheConfig as CacheConfig, PersistenceMode as PersistenceMode
from shared_http_cache._core import (
    AsyncBaseStorage as AsyncBaseStorage,
    AsyncFileStorage as AsyncFileStorage,
    AsyncInMemoryStorage as AsyncInMemoryStorage,
    CacheEntry as CacheEntry,
    FailureRecord as FailureRecord,
    FetchRequest as FetchRequest,
    FetchResult as FetchResult,
    Headers as Headers,
    VerifyStats as VerifyStats,
)
from shared_http_cache._exceptions import (
    BatchError as BatchError,
    CacheError as CacheError,
    CallbackError as CallbackError,
    IntegrityError as IntegrityError,
    MalformedRequestError as MalformedRequestError,
    OnlyIfCachedError as OnlyIfCachedError,
    OriginStatusError as OriginStatusError,
    ResourceGoneError as ResourceGoneError,
    StorageError as StorageError,
    TransportError as TransportError,
)
from shared_http_cache._shared_cache import SharedHttpCache as SharedHttpCache
from shared_http_cache._transports import (
    AsyncBaseTransport as AsyncBaseTransport,
    AsyncHttpxTransport as AsyncHttpxTransport,
    MockAsyncTransport as MockAsyncTransport,
)

__all__ = (
    # Entry point
    "SharedHttpCache",
    "AsyncCacheEngine",
    # Configuration
    "CacheConfig",
    "PersistenceMode",
    # Models
    "CacheEntry",
    "FailureRecord",
    "FetchRequest",
    "FetchResult",
    "Headers",
    # Storages
    "AsyncBaseStorage",
    "AsyncFileStorage",
    "AsyncInMemoryStorage",
    "VerifyStats",
    # Transports
    "AsyncBaseTransport",
    "AsyncHttpxTransport",
    "MockAsyncTransport",
    # Errors
    "CacheError",
    "BatchError",
    "CallbackError",
    "IntegrityError",
    "MalformedRequestError",
    "OnlyIfCachedError",
    "OriginStatusError",
    "ResourceGoneError",
    "StorageError",
    "TransportError",
)
