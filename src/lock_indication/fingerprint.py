"""Routing of fingerprint feedback to the bouncer or the transient indication.

The dispatcher decides where a help or error message goes, suppresses an
error that repeats immediately on the bouncer, and keeps an error raised
while the screen was off until the screen turns back on.
"""

from __future__ import annotations

import logging
from typing import Protocol

from .colors import DEFAULT_WARNING_COLOR, Color
from .scheduling import Cancellable, Scheduler, cancel_handle
from .transient import TransientMessageStore


TRANSIENT_FP_ERROR_TIMEOUT_MS = 1300
ERROR_HIDE_DELAY_MS = 5000
FINGERPRINT_ERROR_CANCELED = 5
NO_ERROR_CODE = -1


class FingerprintPolicy(Protocol):
    """Device state consulted before any fingerprint feedback is shown."""

    def is_unlocking_with_fingerprint_allowed(self) -> bool:  # pragma: no cover - protocol
        ...

    def is_device_interactive(self) -> bool:  # pragma: no cover - protocol
        ...


class Bouncer(Protocol):
    """Secondary authentication surface that can preempt the indication."""

    def is_showing(self) -> bool:  # pragma: no cover - protocol
        ...

    def show_message(self, text: str, color: Color) -> None:  # pragma: no cover - protocol
        ...


class LockIcon(Protocol):
    def set_transient_fingerprint_error(self, active: bool) -> None:  # pragma: no cover - protocol
        ...


class FingerprintFeedbackDispatcher:
    """Apply fingerprint help/error/auth events to the indication state."""

    def __init__(
        self,
        *,
        policy: FingerprintPolicy,
        bouncer: Bouncer,
        lock_icon: LockIcon,
        transient: TransientMessageStore,
        scheduler: Scheduler,
        warning_color: Color = DEFAULT_WARNING_COLOR,
        logger: logging.Logger | None = None,
    ) -> None:
        self._policy = policy
        self._bouncer = bouncer
        self._lock_icon = lock_icon
        self._transient = transient
        self._scheduler = scheduler
        self.warning_color = warning_color
        self._logger = logger or logging.getLogger(f"{__name__}.{type(self).__name__}")
        self._last_error_code = NO_ERROR_CODE
        self._pending_screen_on_message: str | None = None
        self._clear_help_handle: Cancellable | None = None

    @property
    def last_error_code(self) -> int:
        return self._last_error_code

    @property
    def pending_screen_on_message(self) -> str | None:
        return self._pending_screen_on_message

    def on_help(self, code: int, text: str) -> None:
        if not self._policy.is_unlocking_with_fingerprint_allowed():
            self._logger.debug("Ignoring fingerprint help %d; fingerprint unlock not allowed", code)
            return
        if self._bouncer.is_showing():
            self._bouncer.show_message(text, self.warning_color)
        elif self._policy.is_device_interactive():
            self._lock_icon.set_transient_fingerprint_error(True)
            self._transient.show(text, self.warning_color)
            cancel_handle(self._clear_help_handle)
            self._clear_help_handle = self._scheduler.call_later(
                TRANSIENT_FP_ERROR_TIMEOUT_MS / 1000.0, self._on_clear_help
            )
        # A help message means another attempt happened since the last error.
        self._last_error_code = NO_ERROR_CODE

    def on_error(self, code: int, text: str) -> None:
        if not self._policy.is_unlocking_with_fingerprint_allowed():
            self._logger.debug("Ignoring fingerprint error %d; fingerprint unlock not allowed", code)
            return
        if code == FINGERPRINT_ERROR_CANCELED:
            return
        if self._bouncer.is_showing():
            # Swiping up right after an error restarts authentication on the
            # bouncer, which reports the same error again.
            if code != self._last_error_code:
                self._bouncer.show_message(text, self.warning_color)
            else:
                self._logger.debug("Suppressing repeated fingerprint error %d on bouncer", code)
        elif self._policy.is_device_interactive():
            self._show_error(text)
        else:
            self._logger.debug("Screen off; deferring fingerprint error %d until screen on", code)
            self._pending_screen_on_message = text
        self._last_error_code = code

    def on_authenticated(self, user_id: int = 0) -> None:
        del user_id
        self._last_error_code = NO_ERROR_CODE

    def on_auth_failed(self) -> None:
        self._last_error_code = NO_ERROR_CODE

    def on_screen_turned_on(self) -> None:
        message = self._pending_screen_on_message
        if message is None:
            return
        self._show_error(message)
        self._pending_screen_on_message = None

    def on_running_state_changed(self, running: bool) -> None:
        if running:
            self._pending_screen_on_message = None

    def close(self) -> None:
        handle = self._clear_help_handle
        self._clear_help_handle = None
        cancel_handle(handle)

    def _show_error(self, text: str) -> None:
        if self._clear_help_handle is not None:
            # The error replaces the help text, so its clear timer must not
            # cut the error window short.
            self.close()
            self._lock_icon.set_transient_fingerprint_error(False)
        self._transient.show(text, self.warning_color)
        # Restart the hide window even if an earlier help or error armed one.
        self._transient.cancel_hide()
        self._transient.hide_after(ERROR_HIDE_DELAY_MS)

    def _on_clear_help(self) -> None:
        self._clear_help_handle = None
        self._lock_icon.set_transient_fingerprint_error(False)
        self._transient.hide()


__all__ = [
    "Bouncer",
    "ERROR_HIDE_DELAY_MS",
    "FINGERPRINT_ERROR_CANCELED",
    "FingerprintFeedbackDispatcher",
    "FingerprintPolicy",
    "LockIcon",
    "NO_ERROR_CODE",
    "TRANSIENT_FP_ERROR_TIMEOUT_MS",
]
