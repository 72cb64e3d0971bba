from __future__ import annotations

import abc
import types
import typing as tp

import httpx

from shared_http_cache._core._headers import Headers
from shared_http_cache._core.models import Response
from shared_http_cache._exceptions import TransportError

if tp.TYPE_CHECKING:  # pragma: no cover
    from typing_extensions import Self

__all__ = ("AsyncBaseTransport", "AsyncHttpxTransport", "MockAsyncTransport")


class AsyncBaseTransport(abc.ABC):
    """
    Performs one HTTP exchange.

    Cancellation reaches the transport through the surrounding cancel scope;
    implementations only need to be cancellation-safe at their await points.
    """

    @abc.abstractmethod
    async def send(self, url: str, method: str, headers: Headers) -> Response:
        raise NotImplementedError()

    async def aclose(self) -> None:
        pass

    async def __aenter__(self) -> "Self":
        return self

    async def __aexit__(
        self,
        exc_type: tp.Optional[tp.Type[BaseException]] = None,
        exc_value: tp.Optional[BaseException] = None,
        traceback: tp.Optional[types.TracebackType] = None,
    ) -> None:
        await self.aclose()


class AsyncHttpxTransport(AsyncBaseTransport):
    """
    Sends requests with an `httpx.AsyncClient`.

    :param client: Client to send requests with. When omitted, one is created
        and closed together with the transport.
    :type client: tp.Optional[httpx.AsyncClient], optional
    """

    def __init__(self, client: tp.Optional[httpx.AsyncClient] = None) -> None:
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient()

    async def send(self, url: str, method: str, headers: Headers) -> Response:
        try:
            response = await self._client.request(method, url, headers=headers.multi_items())
        except httpx.HTTPError as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc
        except OSError as exc:
            raise TransportError(str(exc)) from exc

        return Response(
            status_code=response.status_code,
            headers=Headers(response.headers.multi_items()),
            content=response.content,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class MockAsyncTransport(AsyncBaseTransport):
    """
    Replays queued responses and records the requests it was given.
    """

    def __init__(self) -> None:
        self.mocked_responses: tp.List[Response] = []
        self.requests: tp.List[tp.Tuple[str, str, Headers]] = []

    async def send(self, url: str, method: str, headers: Headers) -> Response:
        self.requests.append((url, method, headers))
        return self.mocked_responses.pop(0)

    def add_responses(self, responses: tp.List[Response]) -> None:
        self.mocked_responses.extend(responses)
