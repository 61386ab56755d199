"""In-process collaborators used when the service runs standalone.

:class:`IndicationView` stands in for the text view and remembers what was
pushed to it.  :class:`DeviceState` carries the device flags the controller
consults (unlock state, interactivity, bouncer, lock icon and the charge time
estimate) so they can be driven over the HTTP API.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque

from .colors import WHITE, Color, format_hex_color


@dataclass(slots=True)
class IndicationView:
    """Display sink recording the current text, colour and visibility."""

    text: str = ""
    color: Color = WHITE
    visible: bool = False
    updates: int = 0

    def switch_indication(self, text: str | None) -> None:
        self.text = text or ""
        self.updates += 1

    def set_text_color(self, color: Color) -> None:
        self.color = color

    def set_visibility(self, visible: bool) -> None:
        self.visible = bool(visible)

    def to_dict(self) -> dict[str, object]:
        return {
            "text": self.text,
            "color": format_hex_color(self.color),
            "visible": self.visible,
            "updates": self.updates,
        }


@dataclass(slots=True)
class BouncerMessage:
    text: str
    color: Color

    def to_dict(self) -> dict[str, str]:
        return {"text": self.text, "color": format_hex_color(self.color)}


@dataclass(slots=True)
class DeviceState:
    """Mutable device flags backing the controller's collaborator protocols."""

    user_unlocked: bool = True
    interactive: bool = True
    fingerprint_allowed: bool = True
    bouncer_showing: bool = False
    charge_time_remaining_ms: int | None = None
    lock_icon_error: bool = False
    bouncer_messages: Deque[BouncerMessage] = field(default_factory=lambda: deque(maxlen=20))

    # UserUnlockSource
    def is_user_unlocked(self, user_id: int) -> bool:
        del user_id
        return self.user_unlocked

    # FingerprintPolicy
    def is_unlocking_with_fingerprint_allowed(self) -> bool:
        return self.fingerprint_allowed

    def is_device_interactive(self) -> bool:
        return self.interactive

    # Bouncer
    def is_showing(self) -> bool:
        return self.bouncer_showing

    def show_message(self, text: str, color: Color) -> None:
        self.bouncer_messages.append(BouncerMessage(text=text, color=color))
        logging.getLogger(__name__).debug("Bouncer message: %s", text)

    # LockIcon
    def set_transient_fingerprint_error(self, active: bool) -> None:
        self.lock_icon_error = bool(active)

    # ChargeTimeSource
    def compute_charge_time_remaining(self) -> int:
        if self.charge_time_remaining_ms is None:
            return -1
        return self.charge_time_remaining_ms

    def to_dict(self) -> dict[str, object]:
        return {
            "user_unlocked": self.user_unlocked,
            "interactive": self.interactive,
            "fingerprint_allowed": self.fingerprint_allowed,
            "bouncer_showing": self.bouncer_showing,
            "charge_time_remaining_ms": self.charge_time_remaining_ms,
            "lock_icon_error": self.lock_icon_error,
            "bouncer_messages": [message.to_dict() for message in self.bouncer_messages],
        }


__all__ = ["BouncerMessage", "DeviceState", "IndicationView"]
