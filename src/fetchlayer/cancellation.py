"""Cancellation tokens and the per-attempt timeout/cancel race."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

from .exceptions import RequestAbortedError, RequestTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancelToken:
    """Cooperative cancellation handle shared between a caller and a transport.

    Tokens are not thread-safe; cancel them from the event loop thread (use
    ``loop.call_soon_threadsafe(token.cancel)`` from other threads).
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._reason: Any = None
        self._callbacks: list[Callable[[CancelToken], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> Any:
        return self._reason

    def cancel(self, reason: Any = None) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._reason = reason
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(self)

    def add_callback(self, callback: Callable[[CancelToken], None]) -> None:
        """Run ``callback`` on cancellation, immediately if already cancelled."""
        if self._cancelled:
            callback(self)
            return
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[CancelToken], None]) -> None:
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass

    async def wait(self) -> Any:
        """Block until the token is cancelled and return the reason."""
        if self._cancelled:
            return self._reason
        waiter = asyncio.get_running_loop().create_future()

        def _wake(token: CancelToken) -> None:
            if not waiter.done():
                waiter.set_result(token.reason)

        self.add_callback(_wake)
        try:
            return await waiter
        finally:
            self.remove_callback(_wake)

    def __repr__(self) -> str:
        return f"<CancelToken cancelled={self._cancelled}>"


class CancellationCoordinator:
    """Race an attempt against its timeout and the caller's cancel token.

    The first of settle, timeout or external cancel wins; the others become
    no-ops and the timer is always cleared.
    """

    def __init__(self, timeout: float | None = None, external: CancelToken | None = None) -> None:
        self.timeout = timeout if timeout is not None and timeout > 0 else None
        self.external = external
        self.token: CancelToken | None = CancelToken() if self.timeout is not None else external
        self._timer: asyncio.TimerHandle | None = None
        self._settled: asyncio.Future[Any] | None = None

    async def run(self, awaitable: Awaitable[T]) -> T:
        if self.timeout is None and self.external is None:
            return await awaitable

        if self.external is not None and self.external.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise RequestAbortedError(self.external.reason)

        loop = asyncio.get_running_loop()
        self._settled = loop.create_future()
        task = asyncio.ensure_future(awaitable)
        task.add_done_callback(self._on_done)
        if self.timeout is not None:
            self._timer = loop.call_later(self.timeout, self._on_timeout)
        if self.external is not None:
            self.external.add_callback(self._on_external)

        try:
            return await self._settled
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            self._clear_timer()
            if self.external is not None:
                self.external.remove_callback(self._on_external)

    def _clear_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_done(self, task: asyncio.Future[Any]) -> None:
        settled = self._settled
        if settled is None or settled.done():
            if not task.cancelled():
                task.exception()
            return
        self._clear_timer()
        if task.cancelled():
            settled.cancel()
        elif task.exception() is not None:
            settled.set_exception(task.exception())  # type: ignore[arg-type]
        else:
            settled.set_result(task.result())

    def _on_timeout(self) -> None:
        self._timer = None
        if self._settled is None or self._settled.done():
            return
        logger.debug("request timed out after %ss", self.timeout)
        self._settled.set_exception(RequestTimeoutError(self.timeout))
        if self.token is not None and self.token is not self.external:
            self.token.cancel("timeout")

    def _on_external(self, external: CancelToken) -> None:
        self._clear_timer()
        if self.token is not None and self.token is not external:
            self.token.cancel(external.reason)
        if self._settled is None or self._settled.done():
            return
        logger.debug("request aborted by caller: %r", external.reason)
        self._settled.set_exception(RequestAbortedError(external.reason))
