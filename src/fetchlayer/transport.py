"""Transport protocol and the default httpx-backed implementation."""

from __future__ import annotations

import asyncio
from typing import Any, Protocol

import httpx

from .config import FetchLayerSettings, load_settings
from .exceptions import RequestAbortedError
from .models import FormData, ResolvedRequest


class Transport(Protocol):
    """Issues the network call for one resolved request.

    Implementations must stop work and raise when ``request.cancel_token`` is
    cancelled.
    """

    async def send(self, request: ResolvedRequest) -> httpx.Response: ...


class HttpxTransport:
    """Asynchronous httpx transport.

    With an injected ``httpx.AsyncClient`` every send reuses that client (and its
    connection pool) and is closed by :meth:`aclose`; otherwise a short-lived
    client is opened per send.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        settings: FetchLayerSettings | None = None,
        follow_redirects: bool = True,
    ) -> None:
        self.settings = settings or load_settings()
        self._client = client
        self._client_kwargs: dict[str, Any] = {
            "follow_redirects": follow_redirects,
            "timeout": None,
            "trust_env": True,
        }

    async def send(self, request: ResolvedRequest) -> httpx.Response:
        token = request.cancel_token
        if token is None:
            return await self._send(request)
        if token.cancelled:
            raise RequestAbortedError(token.reason)

        task = asyncio.ensure_future(self._send(request))
        waiter = asyncio.ensure_future(token.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()
        task.cancel()
        raise RequestAbortedError(token.reason)

    def _build(self, client: httpx.AsyncClient, request: ResolvedRequest) -> httpx.Request:
        headers = httpx.Headers(request.headers)
        headers.setdefault("User-Agent", self.settings.user_agent)
        body = request.body
        if isinstance(body, FormData):
            return client.build_request(
                request.method,
                request.url,
                headers=headers,
                files=body.to_httpx_files(),
            )
        return client.build_request(
            request.method,
            request.url,
            headers=headers,
            content=body,
        )

    async def _send(self, request: ResolvedRequest) -> httpx.Response:
        if self._client is not None:
            return await self._client.send(self._build(self._client, request))
        async with httpx.AsyncClient(**self._client_kwargs) as client:
            return await client.send(self._build(client, request))

    async def aclose(self) -> None:
        """Close the injected client; passing a client hands its lifetime to the transport."""
        if self._client is not None:
            await self._client.aclose()
