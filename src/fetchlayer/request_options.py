"""Request options and their inheritance rules."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping, Union

import httpx

if TYPE_CHECKING:
    from .cancellation import CancelToken
    from .models import FormData, ResolvedRequest, Response
    from .transport import Transport

ParamsInput = Union[Mapping[str, Any], httpx.QueryParams, str]
HeadersInput = Union[Mapping[str, str], httpx.Headers]
Serializer = Callable[[Mapping[str, Any]], Union[httpx.QueryParams, str]]


@dataclass(frozen=True)
class Options:
    base: str | None = None
    resource: str | None = None
    headers: HeadersInput | None = None
    params: ParamsInput | None = None
    json: Any = None
    body: str | bytes | FormData | None = None
    method: str | None = None
    timeout: float | None = None
    cancel_token: CancelToken | None = None
    serialize: Serializer | None = None
    on_request: Callable[[ResolvedRequest], Awaitable[None] | None] | None = None
    on_response: Callable[[Response], Any] | None = None
    on_success: Callable[[Response], Any] | None = None
    on_failure: Callable[[Exception], Any] | None = None
    retry: Callable[[Response, int], bool] | None = None
    delay: Callable[[Response, int], float] | None = None
    on_json: Callable[[Any], Any] | None = None
    transport: Transport | None = None


_MERGED_FIELDS = {"resource", "headers", "params"}


def _coerce_param_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def serialize(params: Mapping[str, Any]) -> httpx.QueryParams:
    """Default query serializer.

    Lists and tuples expand into repeated keys; ``None`` values are dropped.
    """
    items: list[tuple[str, str]] = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            items.extend((str(key), _coerce_param_value(item)) for item in value if item is not None)
            continue
        items.append((str(key), _coerce_param_value(value)))
    return httpx.QueryParams(items)


def normalize_params(params: ParamsInput | None, serializer: Serializer | None = None) -> httpx.QueryParams:
    if params is None:
        return httpx.QueryParams()
    if isinstance(params, (httpx.QueryParams, str)):
        return httpx.QueryParams(params)
    serialized = (serializer or serialize)(params)
    return httpx.QueryParams(serialized)


def merge_headers(parent: HeadersInput | None, child: HeadersInput | None) -> httpx.Headers:
    merged = httpx.Headers(parent)
    if child:
        merged.update(child)
    return merged


def merge_options(parent: Options | None, child: Options | None) -> Options:
    """Return new options with ``child`` layered over ``parent``.

    ``resource`` is concatenated, ``headers`` and ``params`` are merged per key
    with the child winning, and every other field is taken from the child when
    set.
    """
    parent = parent or Options()
    child = child or Options()

    overrides: dict[str, Any] = {}
    for option in fields(Options):
        if option.name in _MERGED_FIELDS:
            continue
        value = getattr(child, option.name)
        overrides[option.name] = value if value is not None else getattr(parent, option.name)

    serializer = overrides["serialize"]
    params = normalize_params(parent.params, serializer).merge(normalize_params(child.params, serializer))

    return Options(
        resource=(parent.resource or "") + (child.resource or ""),
        headers=merge_headers(parent.headers, child.headers),
        params=params,
        **overrides,
    )


def build_call_options(
    method: str,
    resource: str | Options | None = None,
    options: Options | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Options:
    """Combine the positional/keyword forms accepted by verb methods into one Options."""
    if isinstance(resource, Options):
        if options is not None:
            options = merge_options(resource, options)
        else:
            options = resource
        resource = None

    call = options or Options()
    if overrides:
        call = replace(call, **overrides)
    return replace(call, method=method, resource=resource if resource is not None else call.resource)
