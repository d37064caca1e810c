"""Bidirectional filter chain sitting between a client and a server."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

from loguru import logger

from tift.errors import ListenerNotSetError

type RequestListener[S] = Callable[[S], Awaitable[None] | None]
type ResponseListener[T] = Callable[[T], None]


class Forwarder[S, T](Protocol):
    """Something that can forward a request or a response to the next stage."""

    async def send(self, request: S) -> None: ...

    def respond(self, response: T) -> None: ...


type RequestFilter[S, T] = Callable[[S, Forwarder[S, T]], Awaitable[None]]
type ResponseFilter[S, T] = Callable[[T, Forwarder[S, T]], None]


@dataclass(frozen=True)
class Filters[S, T]:
    """A pair of optional interceptors making up one pipeline stage."""

    request_filter: RequestFilter[S, T] | None = None
    response_filter: ResponseFilter[S, T] | None = None


async def _pass_request(request: Any, forwarder: Forwarder[Any, Any]) -> None:
    await forwarder.send(request)


def _pass_response(response: Any, forwarder: Forwarder[Any, Any]) -> None:
    forwarder.respond(response)


@dataclass(frozen=True)
class _Stage[S, T]:
    name: str
    request_filter: RequestFilter[S, T]
    response_filter: ResponseFilter[S, T]


class _StageForwarder[S, T]:
    """Forwarder bound to the neighbours of one stage."""

    def __init__(self, chain: _Chain[S, T], index: int) -> None:
        self._chain = chain
        self._index = index

    async def send(self, request: S) -> None:
        await self._chain.request_from(self._index + 1, request)

    def respond(self, response: T) -> None:
        self._chain.response_from(self._index - 1, response)


class _Chain[S, T]:
    """Ordered stages, client edge first, shared by every proxy handle built on it."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.stages: list[_Stage[S, T]] = []
        self.request_listener: RequestListener[S] | None = None
        self.response_listener: ResponseListener[T] | None = None

    async def request_from(self, index: int, request: S) -> None:
        if index >= len(self.stages):
            await self._forward_request(request)
            return
        stage = self.stages[index]
        try:
            await stage.request_filter(request, _StageForwarder(self, index))
        except Exception:
            logger.opt(exception=True).debug("proxy.request_failed proxy={} stage={}", self.name, stage.name)
            raise

    def response_from(self, index: int, response: T) -> None:
        if index < 0:
            self._forward_response(response)
            return
        stage = self.stages[index]
        try:
            stage.response_filter(response, _StageForwarder(self, index))
        except Exception:
            logger.opt(exception=True).debug("proxy.response_failed proxy={} stage={}", self.name, stage.name)
            raise

    async def _forward_request(self, request: S) -> None:
        if self.request_listener is None:
            raise ListenerNotSetError(self.name, "Request")
        result = self.request_listener(request)
        if inspect.isawaitable(result):
            await result

    def _forward_response(self, response: T) -> None:
        if self.response_listener is None:
            raise ListenerNotSetError(self.name, "Response")
        self.response_listener(response)


class DuplexProxy[S, T]:
    """A proxy that filters both requests and responses between a client and a server.

    Requests are pushed in with `send` and leave through the request listener (the server).
    Responses are pushed in with `respond` and leave through the response listener (the client).

    Stages run in insertion order for requests. Responses run through the same stages on the
    way back, so the stage inserted last sees requests last and responses first.
    """

    def __init__(
        self,
        name: str,
        filters: Filters[S, T] | None = None,
        *,
        request_listener: RequestListener[S] | None = None,
        response_listener: ResponseListener[T] | None = None,
        _chain: _Chain[S, T] | None = None,
    ) -> None:
        self.name = name
        if _chain is None:
            _chain = _Chain(name)
            _chain.request_listener = request_listener
            _chain.response_listener = response_listener
        self._chain = _chain
        self._chain.stages.append(self._stage(name, filters or Filters()))

    @property
    def stage_names(self) -> list[str]:
        return [stage.name for stage in self._chain.stages]

    def set_request_listener(self, request_listener: RequestListener[S]) -> None:
        self._chain.request_listener = request_listener

    def set_response_listener(self, response_listener: ResponseListener[T]) -> None:
        self._chain.response_listener = response_listener

    # Client -> S -> Server
    async def send(self, request: S) -> None:
        await self._chain.request_from(0, request)

    # Server -> T -> Client
    def respond(self, response: T) -> None:
        self._chain.response_from(len(self._chain.stages) - 1, response)

    async def forward_request(self, request: S) -> None:
        """Hand a request straight to the server, bypassing every filter."""

        await self._chain.request_from(len(self._chain.stages), request)

    def forward_response(self, response: T) -> None:
        """Hand a response straight to the client, bypassing every filter."""

        self._chain.response_from(-1, response)

    def insert_proxy(self, name: str, filters: Filters[S, T]) -> DuplexProxy[S, T]:
        """Append a stage nearest the server and return a handle onto the extended chain."""

        logger.debug("proxy.insert proxy={} stage={} position={}", self._chain.name, name, len(self._chain.stages))
        return DuplexProxy(name, filters, _chain=self._chain)

    @staticmethod
    def _stage(name: str, filters: Filters[S, T]) -> _Stage[S, T]:
        return _Stage(
            name=name,
            request_filter=filters.request_filter or _pass_request,
            response_filter=filters.response_filter or _pass_response,
        )


def create_duplex_proxy[S, T](
    name: str,
    filters: Filters[S, T] | None = None,
    *,
    request_listener: RequestListener[S] | None = None,
    response_listener: ResponseListener[T] | None = None,
) -> DuplexProxy[S, T]:
    return DuplexProxy(name, filters, request_listener=request_listener, response_listener=response_listener)
