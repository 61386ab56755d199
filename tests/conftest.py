from __future__ import annotations

from typing import Callable, Iterator

import pytest

from lock_indication.controller import IndicationController
from lock_indication.device import DeviceState


class ManualHandle:
    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler driven by explicit :meth:`advance` calls."""

    def __init__(self) -> None:
        self.now = 0.0
        self.handles: list[ManualHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualHandle:
        if delay < 0:
            raise ValueError("Timer delay must not be negative")
        handle = ManualHandle(self.now + delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> list[ManualHandle]:
        return [handle for handle in self.handles if not handle.cancelled]

    def advance_ms(self, millis: float) -> None:
        target = self.now + millis / 1000.0
        while True:
            due = [h for h in self.pending if h.when <= target + 1e-9]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self.handles.remove(handle)
            self.now = handle.when
            handle.callback()
        self.now = target


class RecordingDisplay:
    def __init__(self) -> None:
        self.texts: list[str] = []
        self.colors: list[tuple[int, int, int, int]] = []
        self.visibility: list[bool] = []

    def switch_indication(self, text: str) -> None:
        self.texts.append(text)

    def set_text_color(self, color: tuple[int, int, int, int]) -> None:
        self.colors.append(color)

    def set_visibility(self, visible: bool) -> None:
        self.visibility.append(visible)

    @property
    def text(self) -> str | None:
        return self.texts[-1] if self.texts else None

    @property
    def color(self) -> tuple[int, int, int, int] | None:
        return self.colors[-1] if self.colors else None


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def display() -> RecordingDisplay:
    return RecordingDisplay()


@pytest.fixture
def device() -> DeviceState:
    return DeviceState()


@pytest.fixture
def controller(
    scheduler: ManualScheduler, display: RecordingDisplay, device: DeviceState
) -> Iterator[IndicationController]:
    instance = IndicationController(
        display,
        charge_time_source=device,
        user_unlock=device,
        fingerprint_policy=device,
        bouncer=device,
        lock_icon=device,
        scheduler=scheduler,
    )
    yield instance
    instance.close()
