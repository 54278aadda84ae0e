"""Request pipeline, pending responses and bound instances."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Generator, TypeVar, overload

from pydantic import TypeAdapter

from .cancellation import CancellationCoordinator
from .config import load_settings
from .exceptions import FetchLayerValidationError, ResponseError
from .materialize import build_request
from .models import Blob, BodyKind, FormData, ResolvedRequest, Response, accept_type
from .request_options import Options, build_call_options, merge_options
from .retry import default_delay, default_retry
from .security import sanitize_headers
from .transport import HttpxTransport, Transport

logger = logging.getLogger(__name__)

T = TypeVar("T")

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD")


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _identity(value: Any) -> Any:
    return value


def _classify(response: Response) -> Response:
    if response.ok:
        return response
    raise ResponseError(response)


def _default_options() -> Options:
    return Options(
        on_response=_classify,
        on_success=_identity,
        retry=default_retry,
        delay=default_delay,
        on_json=_identity,
    )


def _transport(options: Options) -> Transport:
    return options.transport if options.transport is not None else HttpxTransport()


async def _dispatch(options: Options, attempt: int) -> Response:
    settings = load_settings()
    resolved = build_request(options, default_base=settings.base_url, attempt=attempt)
    timeout = options.timeout if options.timeout is not None else settings.timeout
    if timeout is not None and timeout < 0:
        raise FetchLayerValidationError("timeout must not be negative")
    coordinator = CancellationCoordinator(timeout, options.cancel_token)
    resolved.cancel_token = coordinator.token
    return await coordinator.run(_send(options, resolved))


async def _send(options: Options, resolved: ResolvedRequest) -> Response:
    if options.on_request is not None:
        await _resolve(options.on_request(resolved))
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "dispatching %s %s attempt=%d headers=%s",
            resolved.method,
            resolved.url,
            resolved.attempt,
            sanitize_headers(dict(resolved.headers)),
        )
    raw = await _transport(options).send(resolved)
    return Response(raw, request=resolved, options=options, attempt=resolved.attempt)


async def _execute(options: Options, attempt: int = 0) -> Any:
    while True:
        dispatched: Response | None = None
        try:
            dispatched = await _dispatch(options, attempt)
            response = await _resolve((options.on_response or _classify)(dispatched))
        except ResponseError as error:
            # Failures of a request re-issued from a hook already ran their own retries.
            retry = options.retry or default_retry
            if error.response is dispatched and retry(error.response, attempt):
                wait = max(0.0, float((options.delay or default_delay)(error.response, attempt)))
                logger.debug(
                    "retrying %s %s after status %s in %.3fs (attempt %d)",
                    error.response.request.method,
                    error.response.request.url,
                    error.status_code,
                    wait,
                    attempt + 1,
                )
                await asyncio.sleep(wait)
                attempt += 1
                continue
            if options.on_failure is None:
                raise
            return await _resolve(options.on_failure(error))
        except Exception as error:
            if options.on_failure is None:
                raise
            return await _resolve(options.on_failure(error))
        return await _resolve((options.on_success or _identity)(response))


class PendingResponse:
    """The awaitable result of a request plus body decoders.

    The pipeline starts on the first ``await`` or decode call, so decoders
    called right away still set the ``accept`` header before dispatch. Every
    decoder reads its own clone of the settled response.
    """

    def __init__(self, options: Options, attempt: int = 0) -> None:
        self.options = options
        self.attempt = attempt
        self._task: asyncio.Future[Any] | None = None

    def _ensure_task(self) -> asyncio.Future[Any]:
        if self._task is None:
            self._task = asyncio.ensure_future(_execute(self.options, self.attempt))
        return self._task

    def __await__(self) -> Generator[Any, None, Response]:
        return self._ensure_task().__await__()

    def _accept(self, kind: BodyKind) -> None:
        headers = self.options.headers
        if headers is not None:
            headers["accept"] = accept_type(kind)

    async def _settled_clone(self) -> Response:
        response = await self._ensure_task()
        return response.clone()

    @overload
    def json(self) -> Awaitable[Any]: ...

    @overload
    def json(self, model: type[T]) -> Awaitable[T]: ...

    def json(self, model: Any = None) -> Awaitable[Any]:
        self._accept(BodyKind.JSON)
        return self._json(model)

    async def _json(self, model: Any) -> Any:
        parsed = await (await self._settled_clone()).json()
        transformed = await _resolve((self.options.on_json or _identity)(parsed))
        if model is None:
            return transformed
        return TypeAdapter(model).validate_python(transformed)

    def text(self) -> Awaitable[str]:
        self._accept(BodyKind.TEXT)
        return self._decode_text()

    async def _decode_text(self) -> str:
        return await (await self._settled_clone()).text()

    def blob(self) -> Awaitable[Blob]:
        self._accept(BodyKind.BLOB)
        return self._decode_blob()

    async def _decode_blob(self) -> Blob:
        return await (await self._settled_clone()).blob()

    def content(self) -> Awaitable[bytes]:
        self._accept(BodyKind.BYTES)
        return self._decode_content()

    async def _decode_content(self) -> bytes:
        return await (await self._settled_clone()).content()

    def form_data(self) -> Awaitable[FormData]:
        self._accept(BodyKind.FORM_DATA)
        return self._decode_form_data()

    async def _decode_form_data(self) -> FormData:
        return await (await self._settled_clone()).form_data()

    def void(self) -> Awaitable[None]:
        self._accept(BodyKind.VOID)
        return self._discard()

    async def _discard(self) -> None:
        await self._ensure_task()
        return None

    def __repr__(self) -> str:
        return f"<PendingResponse {self.options.method or 'GET'} {self.options.resource or ''}>"


def request(options: Options | None = None, attempt: int = 0, **kwargs: Any) -> PendingResponse:
    """Run the full pipeline for explicit options layered over the library defaults."""
    call = options or Options()
    if kwargs:
        call = merge_options(call, Options(**kwargs))
    return PendingResponse(merge_options(_default_options(), call), attempt)


class Instance:
    """Bound base options with one method per HTTP verb."""

    def __init__(self, options: Options | None = None) -> None:
        self.options = options or Options()

    def _call(
        self,
        method: str,
        resource: str | Options | None,
        options: Options | None,
        overrides: dict[str, Any],
    ) -> PendingResponse:
        if method not in HTTP_METHODS:
            raise FetchLayerValidationError(f"Unsupported HTTP method: {method}")
        call = build_call_options(method, resource, options, overrides)
        return request(merge_options(self.options, call))

    def get(self, resource: str | Options | None = None, options: Options | None = None, **kwargs: Any) -> PendingResponse:
        return self._call("GET", resource, options, kwargs)

    def post(self, resource: str | Options | None = None, options: Options | None = None, **kwargs: Any) -> PendingResponse:
        return self._call("POST", resource, options, kwargs)

    def put(self, resource: str | Options | None = None, options: Options | None = None, **kwargs: Any) -> PendingResponse:
        return self._call("PUT", resource, options, kwargs)

    def patch(self, resource: str | Options | None = None, options: Options | None = None, **kwargs: Any) -> PendingResponse:
        return self._call("PATCH", resource, options, kwargs)

    def delete(self, resource: str | Options | None = None, options: Options | None = None, **kwargs: Any) -> PendingResponse:
        return self._call("DELETE", resource, options, kwargs)

    def head(self, resource: str | Options | None = None, options: Options | None = None, **kwargs: Any) -> PendingResponse:
        return self._call("HEAD", resource, options, kwargs)

    def extend(self, options: Options | None = None, **kwargs: Any) -> Instance:
        child = options or Options()
        if kwargs:
            child = merge_options(child, Options(**kwargs))
        return Instance(merge_options(self.options, child))

    def __repr__(self) -> str:
        return f"<Instance base={self.options.base!r} resource={self.options.resource!r}>"


def create(options: Options | None = None, **kwargs: Any) -> Instance:
    """Create an instance whose verbs share ``options``."""
    base = options or Options()
    if kwargs:
        base = merge_options(base, Options(**kwargs))
    return Instance(base)
