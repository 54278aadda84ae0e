"""Environment-backed defaults for fetchlayer."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .version import __version__

DEFAULT_USER_AGENT = f"fetchlayer/{__version__}"


def _float_env(name: str, default: float | None) -> float | None:
    try:
        value = os.getenv(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


@dataclass(frozen=True)
class FetchLayerSettings:
    """Library-wide defaults applied underneath every request."""

    base_url: str | None = None
    timeout: float | None = None
    max_retries: int = 2
    retry_base_delay: float = 0.3
    retry_max_delay: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_env(cls) -> FetchLayerSettings:
        """Create settings from environment variables (evaluated at call time)."""
        timeout = _float_env("FETCHLAYER_TIMEOUT", cls.timeout)
        if timeout is not None and timeout <= 0:
            timeout = None
        max_retries = _int_env("FETCHLAYER_MAX_RETRIES", cls.max_retries)
        return cls(
            base_url=os.getenv("FETCHLAYER_BASE_URL") or cls.base_url,
            timeout=timeout,
            max_retries=max(0, max_retries),
            retry_base_delay=_float_env("FETCHLAYER_RETRY_BASE_DELAY", cls.retry_base_delay) or 0.0,
            retry_max_delay=_float_env("FETCHLAYER_RETRY_MAX_DELAY", cls.retry_max_delay) or cls.retry_max_delay,
            user_agent=os.getenv("FETCHLAYER_USER_AGENT") or cls.user_agent,
        )


def load_settings() -> FetchLayerSettings:
    """Load settings from the environment with library defaults."""
    return FetchLayerSettings.from_env()
