"""Cancellable one-shot timers used by the indication components."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Protocol


class Cancellable(Protocol):
    """Handle returned by :meth:`Scheduler.call_later`."""

    def cancel(self) -> None:  # pragma: no cover - protocol
        """Prevent the callback from running if it has not fired yet."""


class Scheduler(Protocol):
    """Minimal timer interface so tests can drive time explicitly."""

    def call_later(
        self, delay: float, callback: Callable[[], None]
    ) -> Cancellable:  # pragma: no cover - protocol
        """Run *callback* once after *delay* seconds."""


class LoopScheduler:
    """Schedule callbacks on an asyncio event loop.

    The loop is resolved lazily so the scheduler can be created before the
    application starts serving.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._loop = loop
        self._logger = logger or logging.getLogger(__name__)

    def _resolve_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None or self._loop.is_closed():
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        if delay < 0:
            raise ValueError("Timer delay must not be negative")
        return self._resolve_loop().call_later(delay, self._guard(callback))

    def _guard(self, callback: Callable[[], None]) -> Callable[[], None]:
        def _run() -> None:
            try:
                callback()
            except Exception:  # pragma: no cover - defensive logging
                self._logger.exception("Scheduled indication callback failed")

        return _run


def cancel_handle(handle: Cancellable | None) -> None:
    """Cancel *handle* when present."""

    if handle is not None:
        handle.cancel()


__all__ = ["Cancellable", "Scheduler", "LoopScheduler", "cancel_handle"]
