"""Header redaction and Retry-After helpers."""

from __future__ import annotations

import datetime as _dt
import math
from email.utils import parsedate_to_datetime
from typing import Mapping

REDACTED = "[REDACTED]"

SENSITIVE_HEADERS = frozenset(
    {
        "authorization",
        "cookie",
        "proxy-authorization",
        "set-cookie",
        "x-api-key",
    }
)


def sanitize_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy ``headers`` for debug logging with credential values masked."""
    return {name: REDACTED if name.lower() in SENSITIVE_HEADERS else value for name, value in headers.items()}


def _http_date_delay(raw: str, now: _dt.datetime | None) -> float | None:
    try:
        when = parsedate_to_datetime(raw)
    except (ValueError, TypeError, OverflowError, IndexError):
        return None
    if when is None:
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=_dt.timezone.utc)
    reference = now or _dt.datetime.now(_dt.timezone.utc)
    return (when - reference).total_seconds()


def parse_retry_after(raw: str | None, *, now: _dt.datetime | None = None) -> float | None:
    """Seconds to wait according to a ``Retry-After`` value.

    Both delta-seconds and HTTP dates are understood; waits in the past clamp
    to ``0.0``. Blank, malformed and non-finite values give ``None``.
    """
    value = (raw or "").strip()
    if not value:
        return None
    try:
        delay: float | None = float(value)
    except ValueError:
        delay = _http_date_delay(value, now)
    if delay is None or not math.isfinite(delay):
        return None
    return max(0.0, delay)
