"""Turn merged options into a dispatch-ready request."""

from __future__ import annotations

import json as jsonlib
from typing import Any, Mapping

import httpx
from pydantic import BaseModel

from .exceptions import InvalidTargetError
from .models import ResolvedRequest
from .request_options import Options, normalize_params

JSON_CONTENT_TYPE = "application/json"
SUPPORTED_SCHEMES = frozenset({"http", "https"})


def _coerce_json_payload(payload: Any) -> Any:
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json")
    if isinstance(payload, Mapping):
        return dict(payload)
    return payload


def _is_absolute(url: httpx.URL) -> bool:
    return bool(url.scheme) and bool(url.host)


def resolve_url(resource: str | None, base: str | None = None) -> httpx.URL:
    """Resolve ``resource`` against ``base`` into an absolute http(s) URL."""
    if "\x00" in (resource or "") or "\x00" in (base or ""):
        raise InvalidTargetError("Invalid URL characters")
    try:
        target = httpx.URL(resource or "")
        if not _is_absolute(target):
            if not base:
                raise InvalidTargetError(f"Invalid URL: {resource!r} is relative and no base URL is configured")
            base_url = httpx.URL(base)
            if not _is_absolute(base_url):
                raise InvalidTargetError(f"Invalid URL: base {base!r} is not absolute")
            target = base_url.join(resource or "")
    except httpx.InvalidURL as exc:
        raise InvalidTargetError(f"Invalid URL: {exc}") from exc

    if target.scheme not in SUPPORTED_SCHEMES:
        raise InvalidTargetError(f"Unsupported URL scheme: {target.scheme}")
    return target


def append_params(url: httpx.URL, params: httpx.QueryParams) -> httpx.URL:
    """Append ``params`` to the query already present on ``url``."""
    extra = str(params)
    if not extra:
        return url
    existing = url.query.decode("ascii")
    query = f"{existing}&{extra}" if existing else extra
    return url.copy_with(query=query.encode("ascii"))


def build_request(options: Options, *, default_base: str | None = None, attempt: int = 0) -> ResolvedRequest:
    """Materialize merged options for one attempt.

    Headers are copied so hook mutations never leak into later attempts. A
    JSON payload always wins over a caller-supplied content type; multipart
    bodies never get one, the transport writes the boundary.
    """
    params = normalize_params(options.params, options.serialize)
    url = append_params(resolve_url(options.resource, options.base or default_base), params)
    headers = httpx.Headers(options.headers)
    body = options.body

    if options.json is not None:
        body = jsonlib.dumps(_coerce_json_payload(options.json))
        headers["content-type"] = JSON_CONTENT_TYPE

    return ResolvedRequest(
        method=(options.method or "GET").upper(),
        url=url,
        headers=headers,
        params=params,
        body=body,
        attempt=attempt,
    )
