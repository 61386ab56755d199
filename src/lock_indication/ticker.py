"""Background task emitting the periodic time tick."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable


class TimeTicker:
    """Invoke *on_tick* every *interval* seconds until closed.

    The tick keeps time-dependent charging text fresh while the indication is
    visible.
    """

    def __init__(
        self,
        on_tick: Callable[[], None],
        *,
        interval: float = 60.0,
        logger: logging.Logger | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._on_tick = on_tick
        self._interval = float(interval)
        self._logger = logger or logging.getLogger(__name__)
        self._task: asyncio.Task[None] | None = None
        self._stop_event: asyncio.Event | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @interval.setter
    def interval(self, value: float) -> None:
        if value <= 0:
            raise ValueError("interval must be positive")
        self._interval = float(value)

    @property
    def running(self) -> bool:
        return self._task is not None

    def start(self) -> None:
        """Start the background tick task."""

        if self._task is not None:
            return
        loop = asyncio.get_running_loop()
        self._stop_event = asyncio.Event()
        self._task = loop.create_task(self._run())

    async def aclose(self) -> None:
        """Stop the ticker and wait for the worker to exit."""

        task = self._task
        if task is None:
            return
        assert self._stop_event is not None
        self._stop_event.set()
        try:
            await task
        finally:
            self._task = None
            self._stop_event = None

    async def _run(self) -> None:
        assert self._stop_event is not None
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                self._tick()

    def _tick(self) -> None:
        try:
            self._on_tick()
        except Exception:
            self._logger.exception("Time tick handler raised an exception")


__all__ = ["TimeTicker"]
