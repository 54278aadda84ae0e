"""Composable asyncio request execution on top of httpx."""

from .cancellation import CancellationCoordinator, CancelToken
from .client import Instance, PendingResponse, create, request
from .config import FetchLayerSettings, load_settings
from .exceptions import (
    BodyConsumedError,
    FetchLayerError,
    FetchLayerValidationError,
    InvalidTargetError,
    RequestAbortedError,
    RequestTimeoutError,
    ResponseError,
)
from .log import setup_logging
from .materialize import build_request, resolve_url
from .models import Blob, BodyKind, FormData, ResolvedRequest, Response, UploadFile
from .request_options import Options, merge_options, serialize
from .retry import RETRYABLE_STATUS_CODES, default_delay, default_retry
from .transport import HttpxTransport, Transport
from .version import __version__

_default = create()

get = _default.get
post = _default.post
put = _default.put
patch = _default.patch
delete = _default.delete
head = _default.head

__all__ = [
    "Blob",
    "BodyConsumedError",
    "BodyKind",
    "CancelToken",
    "CancellationCoordinator",
    "FetchLayerError",
    "FetchLayerSettings",
    "FetchLayerValidationError",
    "FormData",
    "HttpxTransport",
    "Instance",
    "InvalidTargetError",
    "Options",
    "PendingResponse",
    "RETRYABLE_STATUS_CODES",
    "RequestAbortedError",
    "RequestTimeoutError",
    "ResolvedRequest",
    "Response",
    "ResponseError",
    "Transport",
    "UploadFile",
    "build_request",
    "create",
    "default_delay",
    "default_retry",
    "delete",
    "get",
    "head",
    "load_settings",
    "merge_options",
    "patch",
    "post",
    "put",
    "request",
    "resolve_url",
    "serialize",
    "setup_logging",
    "__version__",
]
