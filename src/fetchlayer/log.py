"""Logging helpers for applications using fetchlayer."""

from __future__ import annotations

import logging
import os


def setup_logging(level: str | None = None) -> None:
    """Configure standard logging; ``FETCHLAYER_LOG_LEVEL`` is read when no level is given."""
    effective_level = (level or os.getenv("FETCHLAYER_LOG_LEVEL") or "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, effective_level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


__all__ = ["setup_logging"]
