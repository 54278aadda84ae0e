from __future__ import annotations

import os
from typing import Any, Callable

import httpx
import pytest

from fetchlayer import HttpxTransport


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for name in list(os.environ):
        if name.startswith("FETCHLAYER_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_transport() -> Callable[[Callable[[httpx.Request], Any]], HttpxTransport]:
    def factory(handler: Callable[[httpx.Request], Any]) -> HttpxTransport:
        return HttpxTransport(httpx.AsyncClient(transport=httpx.MockTransport(handler)))

    return factory
