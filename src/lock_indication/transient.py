"""Short-lived indication storage with an auto-hide timer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from .colors import WHITE, Color
from .scheduling import Cancellable, Scheduler, cancel_handle


@dataclass(frozen=True, slots=True)
class TransientMessage:
    """Indication overriding the charging and resting text until hidden."""

    text: str | None
    color: Color = WHITE

    @property
    def active(self) -> bool:
        return bool(self.text)


class TransientMessageStore:
    """Hold at most one transient message and its pending auto-hide timer.

    ``on_change`` is invoked after every state change so the owner can
    resolve and push the new indication.  The store never renders anything
    itself and does not care whether the display is visible.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        on_change: Callable[[], None],
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._scheduler = scheduler
        self._on_change = on_change
        self._logger = logger or logging.getLogger(f"{__name__}.{type(self).__name__}")
        self._message: TransientMessage | None = None
        self._hide_handle: Cancellable | None = None

    @property
    def message(self) -> TransientMessage | None:
        return self._message

    @property
    def hide_pending(self) -> bool:
        return self._hide_handle is not None

    def show(self, text: str | None, color: Color = WHITE) -> None:
        """Replace the active message and cancel any pending auto-hide."""

        self._message = TransientMessage(text=text, color=color)
        self.cancel_hide()
        self._logger.debug("Showing transient indication %r", text)
        self._on_change()

    def hide(self) -> None:
        """Clear the active message; no-op when nothing is shown."""

        if self._message is None:
            return
        self._message = None
        self.cancel_hide()
        self._on_change()

    def hide_after(self, delay_ms: int) -> None:
        """(Re)schedule the auto-hide timer without touching the message."""

        if delay_ms < 0:
            raise ValueError("Hide delay must not be negative")
        self.cancel_hide()
        self._hide_handle = self._scheduler.call_later(delay_ms / 1000.0, self._on_hide_timeout)

    def cancel_hide(self) -> None:
        handle = self._hide_handle
        self._hide_handle = None
        cancel_handle(handle)

    def _on_hide_timeout(self) -> None:
        self._hide_handle = None
        if self._message is None:
            return
        self._logger.debug("Transient indication %r timed out", self._message.text)
        self._message = None
        self._on_change()


__all__ = ["TransientMessage", "TransientMessageStore"]
