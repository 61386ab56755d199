"""Composition root tying the indication components together.

:class:`IndicationController` owns the charging tracker, the transient store
and the fingerprint dispatcher.  After any of them changes state it captures a
fresh :class:`~lock_indication.resolver.ResolverInputs` snapshot, resolves it
and pushes the result to the display.  All methods must be called from the
event loop that owns the scheduler.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from .charging import BatteryStatus, ChargingState, ChargingStatusTracker
from .colors import WHITE, Color
from .config import DEFAULT_INDICATION_SETTINGS, IndicationSettings
from .events import (
    BatteryUpdate,
    FingerprintAuthFailed,
    FingerprintAuthenticated,
    FingerprintError,
    FingerprintHelp,
    FingerprintRunningChanged,
    IndicationEvent,
    ScreenTurnedOn,
    TimeTick,
    UserUnlocked,
)
from .fingerprint import Bouncer, FingerprintFeedbackDispatcher, FingerprintPolicy, LockIcon
from .resolver import ChargeTimeSource, Indication, ResolverInputs, resolve
from .scheduling import LoopScheduler, Scheduler
from .transient import TransientMessage, TransientMessageStore


class IndicationDisplay(Protocol):
    """Text view showing the resolved indication."""

    def switch_indication(self, text: str) -> None:  # pragma: no cover - protocol
        ...

    def set_text_color(self, color: Color) -> None:  # pragma: no cover - protocol
        ...

    def set_visibility(self, visible: bool) -> None:  # pragma: no cover - protocol
        ...


class UserUnlockSource(Protocol):
    def is_user_unlocked(self, user_id: int) -> bool:  # pragma: no cover - protocol
        ...


@dataclass(frozen=True, slots=True)
class IndicationStatus:
    """Read-only view of the controller state exposed through the API."""

    visible: bool
    indication: Indication | None
    transient: TransientMessage | None
    charging: ChargingState
    resting: str | None
    pending_screen_on_message: str | None
    last_error_code: int
    hide_pending: bool


class IndicationController:
    """Select and display the single lock-screen indication."""

    def __init__(
        self,
        display: IndicationDisplay,
        *,
        charge_time_source: ChargeTimeSource | None,
        user_unlock: UserUnlockSource,
        fingerprint_policy: FingerprintPolicy,
        bouncer: Bouncer,
        lock_icon: LockIcon,
        scheduler: Scheduler | None = None,
        settings: IndicationSettings = DEFAULT_INDICATION_SETTINGS,
        user_id: int = 0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._display = display
        self._charge_time_source = charge_time_source
        self._user_unlock = user_unlock
        self._user_id = user_id
        self._settings = settings
        self._logger = logger or logging.getLogger(__name__)
        self._scheduler = scheduler or LoopScheduler(logger=self._logger)
        self._visible = False
        self._resting: str | None = None
        self._last_indication: Indication | None = None
        self._last_logged_error: str | None = None
        self._charging = ChargingStatusTracker(thresholds=settings.thresholds)
        self._transient = TransientMessageStore(self._scheduler, self._update_indication)
        self._fingerprint = FingerprintFeedbackDispatcher(
            policy=fingerprint_policy,
            bouncer=bouncer,
            lock_icon=lock_icon,
            transient=self._transient,
            scheduler=self._scheduler,
            warning_color=settings.warning_color,
        )

    # ------------------------------ properties -----------------------------
    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def settings(self) -> IndicationSettings:
        return self._settings

    @property
    def last_indication(self) -> Indication | None:
        """Return the indication most recently pushed to the display."""

        return self._last_indication

    # ------------------------------ public API -----------------------------
    def set_visible(self, visible: bool) -> None:
        visible = bool(visible)
        self._visible = visible
        self._display.set_visibility(visible)
        if visible:
            self._update_indication()

    def set_resting_indication(self, text: str | None) -> None:
        """Set the indication shown when nothing else applies."""

        self._resting = text
        self._update_indication()

    def show_transient(self, text: str | None, color: Color = WHITE) -> None:
        """Show *text* until it is hidden explicitly or by a timer."""

        self._transient.show(text, color)

    def hide_transient(self) -> None:
        self._transient.hide()

    def hide_transient_after(self, delay_ms: int) -> None:
        self._transient.hide_after(delay_ms)

    def apply_settings(self, settings: IndicationSettings) -> None:
        self._settings = settings
        self._charging.thresholds = settings.thresholds
        self._fingerprint.warning_color = settings.warning_color
        self._update_indication()

    # ------------------------------- events --------------------------------
    def on_battery_update(self, status: BatteryStatus) -> None:
        self._charging.update(status)
        self._update_indication()

    def on_time_tick(self) -> None:
        if self._visible:
            self._update_indication()

    def on_user_unlocked(self) -> None:
        if self._visible:
            self._update_indication()

    def on_fingerprint_help(self, code: int, text: str) -> None:
        self._fingerprint.on_help(code, text)

    def on_fingerprint_error(self, code: int, text: str) -> None:
        self._fingerprint.on_error(code, text)

    def on_fingerprint_authenticated(self, user_id: int = 0) -> None:
        self._fingerprint.on_authenticated(user_id)

    def on_fingerprint_auth_failed(self) -> None:
        self._fingerprint.on_auth_failed()

    def on_screen_turned_on(self) -> None:
        self._fingerprint.on_screen_turned_on()

    def on_fingerprint_running_state_changed(self, running: bool) -> None:
        self._fingerprint.on_running_state_changed(running)

    def dispatch(self, event: IndicationEvent) -> None:
        """Route a monitor event to the matching handler."""

        if isinstance(event, FingerprintHelp):
            self.on_fingerprint_help(event.code, event.text)
        elif isinstance(event, FingerprintError):
            self.on_fingerprint_error(event.code, event.text)
        elif isinstance(event, FingerprintAuthenticated):
            self.on_fingerprint_authenticated(event.user_id)
        elif isinstance(event, FingerprintAuthFailed):
            self.on_fingerprint_auth_failed()
        elif isinstance(event, ScreenTurnedOn):
            self.on_screen_turned_on()
        elif isinstance(event, FingerprintRunningChanged):
            self.on_fingerprint_running_state_changed(event.running)
        elif isinstance(event, BatteryUpdate):
            self.on_battery_update(event.status)
        elif isinstance(event, UserUnlocked):
            self.on_user_unlocked()
        elif isinstance(event, TimeTick):
            self.on_time_tick()
        else:
            raise TypeError(f"Unsupported indication event: {type(event).__name__}")

    # ------------------------------ inspection -----------------------------
    def snapshot(self) -> ResolverInputs:
        """Capture the current resolver inputs."""

        return ResolverInputs(
            visible=self._visible,
            user_unlocked=self._is_user_unlocked(),
            transient=self._transient.message,
            charging=self._charging.state,
            resting=self._resting,
            show_charging_details=self._settings.show_charging_details,
            charging_details_when_charged=self._settings.charging_details_when_charged,
        )

    def status(self) -> IndicationStatus:
        return IndicationStatus(
            visible=self._visible,
            indication=self._last_indication,
            transient=self._transient.message,
            charging=self._charging.state,
            resting=self._resting,
            pending_screen_on_message=self._fingerprint.pending_screen_on_message,
            last_error_code=self._fingerprint.last_error_code,
            hide_pending=self._transient.hide_pending,
        )

    def close(self) -> None:
        """Cancel pending timers."""

        self._transient.cancel_hide()
        self._fingerprint.close()

    # ---------------------------- implementation ---------------------------
    def _is_user_unlocked(self) -> bool:
        try:
            unlocked = bool(self._user_unlock.is_user_unlocked(self._user_id))
        except Exception as exc:
            self._record_error(f"User unlock state unavailable; assuming locked: {exc}")
            return False
        self._last_logged_error = None
        return unlocked

    def _record_error(self, message: str) -> None:
        if message != self._last_logged_error:
            self._logger.warning("%s", message, exc_info=True)
            self._last_logged_error = message

    def _update_indication(self) -> None:
        indication = resolve(
            self.snapshot(),
            charge_time_source=self._charge_time_source,
            strings=self._settings.strings,
        )
        if indication is None:
            # Hidden; the next visibility change resolves again.
            return
        self._display.switch_indication(indication.text)
        self._display.set_text_color(indication.color)
        if indication != self._last_indication:
            self._logger.debug(
                "Indication now %r from %s", indication.text, indication.source.value
            )
        self._last_indication = indication


__all__ = [
    "IndicationController",
    "IndicationDisplay",
    "IndicationStatus",
    "UserUnlockSource",
]
