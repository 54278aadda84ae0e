"""Default retry predicate and backoff."""

from __future__ import annotations

from .config import FetchLayerSettings, load_settings
from .models import Response
from .security import parse_retry_after

RETRYABLE_STATUS_CODES = frozenset({408, 413, 429, 500, 502, 503, 504})


def default_retry(response: Response, attempt: int, *, settings: FetchLayerSettings | None = None) -> bool:
    """Retry transient statuses while ``attempt`` is below ``max_retries``."""
    cfg = settings or load_settings()
    return attempt < cfg.max_retries and response.status_code in RETRYABLE_STATUS_CODES


def default_delay(response: Response, attempt: int, *, settings: FetchLayerSettings | None = None) -> float:
    """Seconds to wait before the next attempt.

    A valid ``Retry-After`` header wins; otherwise exponential backoff
    ``retry_base_delay * 2 ** attempt`` capped at ``retry_max_delay``.
    """
    retry_after = parse_retry_after(response.headers.get("retry-after"))
    if retry_after is not None:
        return retry_after
    cfg = settings or load_settings()
    return min(cfg.retry_max_delay, cfg.retry_base_delay * (2 ** max(0, attempt)))
