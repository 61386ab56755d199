"""Event variants accepted by :meth:`IndicationController.dispatch`."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .charging import BatteryStatus


@dataclass(frozen=True, slots=True)
class FingerprintHelp:
    code: int
    text: str


@dataclass(frozen=True, slots=True)
class FingerprintError:
    code: int
    text: str


@dataclass(frozen=True, slots=True)
class FingerprintAuthenticated:
    user_id: int = 0


@dataclass(frozen=True, slots=True)
class FingerprintAuthFailed:
    pass


@dataclass(frozen=True, slots=True)
class ScreenTurnedOn:
    pass


@dataclass(frozen=True, slots=True)
class FingerprintRunningChanged:
    running: bool


@dataclass(frozen=True, slots=True)
class BatteryUpdate:
    status: BatteryStatus


@dataclass(frozen=True, slots=True)
class UserUnlocked:
    pass


@dataclass(frozen=True, slots=True)
class TimeTick:
    pass


IndicationEvent = Union[
    FingerprintHelp,
    FingerprintError,
    FingerprintAuthenticated,
    FingerprintAuthFailed,
    ScreenTurnedOn,
    FingerprintRunningChanged,
    BatteryUpdate,
    UserUnlocked,
    TimeTick,
]


__all__ = [
    "BatteryUpdate",
    "FingerprintAuthFailed",
    "FingerprintAuthenticated",
    "FingerprintError",
    "FingerprintHelp",
    "FingerprintRunningChanged",
    "IndicationEvent",
    "ScreenTurnedOn",
    "TimeTick",
    "UserUnlocked",
]
