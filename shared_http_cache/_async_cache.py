from __future__ import annotations

import inspect
import logging

import anyio
import anyio.abc
from typing_extensions import assert_never

from shared_http_cache._config import CacheConfig, PersistenceMode
from shared_http_cache._core._headers import Headers
from shared_http_cache._core._spec import (
    AnyState,
    CacheMiss,
    CouldNotBeStored,
    FromCache,
    IdleClient,
    InvalidateEntry,
    NeedRevalidation,
    NeedToBeUpdated,
    StoreAndUse,
)
from shared_http_cache._core._storages._base import AsyncBaseStorage
from shared_http_cache._core.models import FetchResult, Request, Response
from shared_http_cache._exceptions import CallbackError, StorageError, TransportError
from shared_http_cache._transports import AsyncBaseTransport
from shared_http_cache._utils import compute_integrity, get_safe_url, normalize_integrity

logger = logging.getLogger("shared_http_cache.engine")


class AsyncCacheEngine:
    """
    Runs one request through the caching state machine.

    The engine is independent of batching: it looks the request up in
    `storage`, talks to the origin through `transport` when needed, hands the
    result to the request's completion hook and finally persists what is
    storable.

    Args:
        storage: Content-addressed store holding the cached entries.
        transport: Performs the HTTP exchanges with the origin.
        config: Persistence behaviour. Defaults to `CacheConfig()`.
    """

    def __init__(
        self,
        storage: AsyncBaseStorage,
        transport: AsyncBaseTransport,
        config: CacheConfig | None = None,
    ) -> None:
        self.storage = storage
        self.transport = transport
        self.config = config if config is not None else CacheConfig()

    async def handle_request(
        self,
        request: Request,
        timeout: float | None = None,
        task_group: anyio.abc.TaskGroup | None = None,
    ) -> None:
        """
        Resolve `request`, raising on failure.

        `timeout` bounds every origin exchange, in seconds. Detached storage
        writes are started in `task_group`; without one they are awaited.
        """
        state: AnyState = IdleClient(request=request)

        while state:
            logger.debug(f"Handling state: {state.__class__.__name__}")
            if isinstance(state, IdleClient):
                state = await self._handle_idle_state(state)
            elif isinstance(state, CacheMiss):
                state = state.next(await self._send(state.request, timeout))
            elif isinstance(state, NeedRevalidation):
                state = state.next(await self._send(state.request, timeout))
            elif isinstance(state, FromCache):
                content = await self._read_stored_content(state)
                if content is None:
                    state = state.content_missing()
                    continue
                await self._complete(request, content, state.entry.headers, from_cache=True)
                return
            elif isinstance(state, NeedToBeUpdated):
                content = await self._read_by_key(request.key)
                state = state.next(content) if content is not None else state.content_missing()
            elif isinstance(state, StoreAndUse):
                await self._complete(state.request, state.response.content, state.response.headers, state.from_cache)
                await self._handle_store_and_use(state, task_group)
                return
            elif isinstance(state, CouldNotBeStored):
                await self._complete(state.request, state.response.content, state.response.headers, state.from_cache)
                return
            elif isinstance(state, InvalidateEntry):
                await self._handle_invalidate_entry(state)
            else:
                assert_never(state)

        raise RuntimeError("Unreachable")

    async def _handle_idle_state(self, state: IdleClient) -> AnyState:
        entry = await self.storage.info_by_key(state.request.key) if state.needs_lookup else None
        return state.next(entry)

    async def _send(self, request: Request, timeout: float | None) -> Response:
        try:
            with anyio.fail_after(timeout):
                return await self.transport.send(request.url, request.method, request.headers)
        except TimeoutError as exc:
            raise TransportError(
                f"The request to {get_safe_url(request.url)} timed out after {timeout} seconds",
                timed_out=True,
            ) from exc
        except OSError as exc:
            raise TransportError(str(exc)) from exc

    async def _read_stored_content(self, state: FromCache) -> bytes | None:
        if state.request.integrity is not None:
            content = await self.storage.read_by_digest(state.request.integrity)
            if content is not None:
                return content
        return await self._read_by_key(state.request.key)

    async def _read_by_key(self, key: str) -> bytes | None:
        try:
            return await self.storage.read_by_key(key)
        except StorageError:
            return None

    async def _complete(self, request: Request, content: bytes, headers: Headers, from_cache: bool) -> None:
        if request.on_complete is None:
            return

        result = FetchResult(content=content, headers=headers, from_cache=from_cache, index=request.index)
        try:
            outcome = request.on_complete(result)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as exc:
            raise CallbackError(f"The completion hook raised {type(exc).__name__}: {exc}", headers=headers) from exc

    async def _handle_store_and_use(self, state: StoreAndUse, task_group: anyio.abc.TaskGroup | None) -> None:
        if self.config.persistence_mode is PersistenceMode.DETACHED and task_group is not None:
            task_group.start_soon(self._store_detached, state)
            return

        try:
            await self._store(state)
        except StorageError as exc:
            exc.headers = state.response.headers
            raise
        except OSError as exc:
            raise StorageError(
                f"Failed to store the response for {get_safe_url(state.request.url)}: {exc}",
                headers=state.response.headers,
            ) from exc

    async def _store_detached(self, state: StoreAndUse) -> None:
        try:
            await self._store(state)
        except Exception:
            logger.warning(
                f"Failed to store the response for {get_safe_url(state.request.url)} in the background.",
                exc_info=True,
            )

    async def _store(self, state: StoreAndUse) -> None:
        request = state.request
        content = state.response.content

        if request.integrity is not None:
            new_integrity = normalize_integrity(request.integrity)
        else:
            new_integrity = compute_integrity(content, self.config.integrity_algorithm)

        previous_integrity = state.previous.integrity if state.previous is not None else None
        superseded = previous_integrity if previous_integrity not in (None, new_integrity) else None

        if not self.config.defer_content_removal:
            await self.storage.remove_entry(request.key, fully=True)
            if superseded is not None:
                await self._remove_unreferenced_content(superseded, request.key)

        await self.storage.write(
            request.key,
            content,
            state.response.headers,
            integrity=request.integrity,
            algorithm=self.config.integrity_algorithm,
        )

        if self.config.defer_content_removal and superseded is not None:
            await self._remove_unreferenced_content(superseded, request.key)

        logger.debug(f"Stored the response for {get_safe_url(request.url)}.")

    async def _handle_invalidate_entry(self, state: InvalidateEntry) -> None:
        logger.debug(
            f"Removing the stored response for {get_safe_url(state.request.url)} since the origin answered 410."
        )
        await self.storage.remove_entry(state.request.key, fully=True)
        if state.entry.integrity is not None:
            await self._remove_unreferenced_content(state.entry.integrity, state.request.key)
        state.next()

    async def _remove_unreferenced_content(self, integrity: str, key: str) -> None:
        entries = await self.storage.list()
        if any(entry.integrity == integrity for other, entry in entries.items() if other != key):
            logger.debug(f"Keeping the content {integrity} since other entries still refer to it.")
            return
        await self.storage.remove_content(integrity)
