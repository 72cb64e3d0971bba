from __future__ import annotations

import logging
import types
import typing as tp
from contextlib import AsyncExitStack

import anyio
import anyio.abc

from shared_http_cache._async_cache import AsyncCacheEngine
from shared_http_cache._config import CacheConfig
from shared_http_cache._core._headers import Headers
from shared_http_cache._core._storages._base import AsyncBaseStorage
from shared_http_cache._core._storages._file import AsyncFileStorage
from shared_http_cache._core.models import FailureRecord, FetchRequest, Request
from shared_http_cache._exceptions import BatchError, IntegrityError, MalformedRequestError
from shared_http_cache._transports import AsyncBaseTransport, AsyncHttpxTransport
from shared_http_cache._utils import get_safe_url, normalize_url, parse_integrity

if tp.TYPE_CHECKING:  # pragma: no cover
    from typing_extensions import Self

__all__ = ("SharedHttpCache", "build_request")

logger = logging.getLogger("shared_http_cache.batch")


def build_request(index: int, descriptor: tp.Any) -> Request:
    """
    Validate one batch item and turn it into a `Request`.

    Raises `MalformedRequestError` without doing any I/O when the item is
    not usable.
    """
    fetch_request = FetchRequest.coerce(descriptor)

    if not isinstance(fetch_request.url, str) or not fetch_request.url:
        raise MalformedRequestError(f"Request {index} has no URL")
    if not isinstance(fetch_request.method, str) or not fetch_request.method.strip():
        raise MalformedRequestError(f"Request {index} has an invalid method: {fetch_request.method!r}")
    if fetch_request.on_complete is not None and not callable(fetch_request.on_complete):
        raise MalformedRequestError(f"The completion hook of request {index} is not callable")

    if fetch_request.integrity is not None:
        if not isinstance(fetch_request.integrity, str):
            raise MalformedRequestError(f"The integrity of request {index} must be a string")
        try:
            parse_integrity(fetch_request.integrity)
        except IntegrityError as exc:
            raise MalformedRequestError(f"Request {index} has an invalid integrity: {exc}") from exc

    try:
        headers = Headers(fetch_request.headers)
    except (TypeError, ValueError, AttributeError) as exc:
        raise MalformedRequestError(f"Request {index} has invalid headers: {exc}") from exc

    return Request(
        method=fetch_request.method.strip().upper(),
        url=normalize_url(fetch_request.url, keep_userinfo=True),
        key=normalize_url(fetch_request.url),
        index=index,
        headers=headers,
        integrity=fetch_request.integrity,
        on_complete=fetch_request.on_complete,
    )


class SharedHttpCache:
    """
    Fetches batches of URLs through a shared HTTP cache.

    Responses are stored in `storage`, which defaults to an `AsyncFileStorage`
    rooted at `config.storage_directory`. The instance itself is the handle a
    successful `fetch` returns, so storage maintenance can follow directly::

        async with SharedHttpCache() as cache:
            await cache.fetch([{"url": "https://example.com/"}])
            await cache.storage.verify()

    When used as an async context manager, detached storage writes outlive
    the batch that started them and are awaited when the context exits.
    Otherwise every `fetch` waits for its own detached writes before
    returning.

    Args:
        config: Cache configuration. Defaults to `CacheConfig()`.
        storage: Storage backend. Overrides `config.storage_directory`.
        transport: HTTP transport. Defaults to `AsyncHttpxTransport()`.
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        storage: AsyncBaseStorage | None = None,
        transport: AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config if config is not None else CacheConfig()
        self.storage = (
            storage
            if storage is not None
            else AsyncFileStorage(self.config.storage_directory, algorithm=self.config.integrity_algorithm)
        )
        self.transport = transport if transport is not None else AsyncHttpxTransport()
        self._engine = AsyncCacheEngine(self.storage, self.transport, self.config)
        self._exit_stack: AsyncExitStack | None = None
        self._background: anyio.abc.TaskGroup | None = None

    async def fetch(self, requests: tp.Iterable[tp.Union[FetchRequest, tp.Mapping[str, tp.Any]]]) -> "Self":
        """
        Resolve every request of the batch concurrently.

        Returns the cache itself once all requests settled. If any request
        failed, raises `BatchError` whose `failures` lists every failed
        request ordered by its index in the batch; requests that succeeded
        have already been delivered to their completion hooks.
        """
        descriptors = list(requests)
        timeout = self.config.timeout_for_batch(len(descriptors))
        failures: tp.List[FailureRecord] = []

        logger.debug(f"Fetching {len(descriptors)} request(s) with a per-request timeout of {timeout} seconds.")

        async with anyio.create_task_group() as task_group:
            detached_writes = self._background if self._background is not None else task_group

            for index, descriptor in enumerate(descriptors):
                try:
                    request = build_request(index, descriptor)
                except MalformedRequestError as exc:
                    failures.append(
                        FailureRecord(
                            index=index,
                            url=_raw_url(descriptor),
                            headers=None,
                            error=exc,
                        )
                    )
                    continue
                task_group.start_soon(
                    self._run_request, request, _raw_url(descriptor), timeout, detached_writes, failures
                )

        if failures:
            failures.sort(key=lambda failure: failure.index)
            logger.debug(f"{len(failures)} of {len(descriptors)} request(s) failed.")
            raise BatchError(failures)

        return self

    async def _run_request(
        self,
        request: Request,
        url: tp.Any,
        timeout: float | None,
        task_group: anyio.abc.TaskGroup,
        failures: tp.List[FailureRecord],
    ) -> None:
        try:
            await self._engine.handle_request(request, timeout=timeout, task_group=task_group)
        except Exception as exc:
            logger.debug(f"The request for {get_safe_url(request.url)} failed: {exc}")
            failures.append(
                FailureRecord(
                    index=request.index,
                    url=url,
                    headers=getattr(exc, "headers", None),
                    error=exc,
                )
            )

    async def aclose(self) -> None:
        try:
            await self.transport.aclose()
        finally:
            await self.storage.aclose()

    async def __aenter__(self) -> "Self":
        async with AsyncExitStack() as stack:
            stack.push_async_callback(self.aclose)
            self._background = await stack.enter_async_context(anyio.create_task_group())
            self._exit_stack = stack.pop_all()
        return self

    async def __aexit__(
        self,
        exc_type: tp.Optional[tp.Type[BaseException]] = None,
        exc_value: tp.Optional[BaseException] = None,
        traceback: tp.Optional[types.TracebackType] = None,
    ) -> None:
        exit_stack, self._exit_stack, self._background = self._exit_stack, None, None
        if exit_stack is not None:
            await exit_stack.__aexit__(exc_type, exc_value, traceback)


def _raw_url(descriptor: tp.Any) -> tp.Any:
    if isinstance(descriptor, FetchRequest):
        return descriptor.url
    if isinstance(descriptor, tp.Mapping):
        return descriptor.get("url")
    return None
