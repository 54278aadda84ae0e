"""fetchlayer exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping

from .security import parse_retry_after

if TYPE_CHECKING:
    from .models import Response


class FetchLayerError(Exception):
    """Base exception for all fetchlayer failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        headers: Mapping[str, str] | None = None,
        request_id: str | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.headers = dict(headers) if headers is not None else {}
        self.request_id = request_id
        self.retry_after = retry_after

    def __str__(self) -> str:  # pragma: no cover - simple formatting
        if self.status_code is None:
            return str(self.args[0])
        return f"{self.status_code}: {self.args[0]}"


class FetchLayerValidationError(FetchLayerError, ValueError):
    """Raised when option values are invalid."""


class ResponseError(FetchLayerError):
    """Raised when a response is classified as a failure."""

    def __init__(self, response: "Response", message: str | None = None) -> None:
        super().__init__(
            message or f"Request failed with status code {response.status_code}",
            status_code=response.status_code,
            headers=response.headers,
            request_id=response.headers.get("x-request-id"),
            retry_after=parse_retry_after(response.headers.get("retry-after")),
        )
        self.response = response


class RequestTimeoutError(FetchLayerError, TimeoutError):
    """Raised when a request exceeds its configured timeout."""

    def __init__(self, timeout: float | None = None) -> None:
        super().__init__("Request timed out")
        self.timeout = timeout


class RequestAbortedError(FetchLayerError):
    """Raised when a caller-supplied cancel token aborts a request."""

    def __init__(self, reason: object = None) -> None:
        super().__init__("Request was aborted" if reason is None else f"Request was aborted: {reason}")
        self.reason = reason


class InvalidTargetError(FetchLayerError, ValueError):
    """Raised when no absolute URL can be resolved for a request."""


class BodyConsumedError(FetchLayerError):
    """Raised when a response body is read more than once."""
