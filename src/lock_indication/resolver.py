"""Precedence rules selecting the single lock-screen indication.

The resolver is a pure function over a :class:`ResolverInputs` snapshot.  The
only collaborator it touches is the charge-time source, whose failures are
absorbed and reported as "no estimate" so a flaky statistics service can never
break the indication.  A failure is logged when it first appears and stays
quiet while it repeats.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Mapping, Protocol

from .charging import ChargingSpeed, ChargingState
from .colors import WHITE, Color
from .transient import TransientMessage


logger = logging.getLogger(__name__)

TIME_PLACEHOLDER = "{time}"

_MILLIS_PER_MINUTE = 60_000
_MINUTES_PER_HOUR = 60
_MINUTES_PER_DAY = 24 * _MINUTES_PER_HOUR


class ChargeTimeSource(Protocol):
    """Battery statistics collaborator estimating time until full."""

    def compute_charge_time_remaining(self) -> int:  # pragma: no cover - protocol
        """Return the remaining time in milliseconds, or ``<= 0`` when unknown."""


class IndicationSource(str, Enum):
    STORAGE_LOCKED = "storage_locked"
    TRANSIENT = "transient"
    CHARGING = "charging"
    RESTING = "resting"


@dataclass(frozen=True, slots=True)
class IndicationStrings:
    """Text catalogue for the fixed indications.

    Templates used while a charge-time estimate exists must contain the
    ``{time}`` placeholder.
    """

    storage_locked: str = "Unlock to access all features and data"
    charged: str = "Charged"
    plugged_in: str = "Charging"
    plugged_in_fast: str = "Charging rapidly"
    plugged_in_slowly: str = "Charging slowly"
    charging_time: str = "Charging ({time} until full)"
    charging_time_fast: str = "Charging rapidly ({time} until full)"
    charging_time_slowly: str = "Charging slowly ({time} until full)"

    def __post_init__(self) -> None:
        for item in fields(self):
            value = getattr(self, item.name)
            if not isinstance(value, str):
                raise ValueError(f"Indication string {item.name!r} must be text")
            if item.name.startswith("charging_time") and TIME_PLACEHOLDER not in value:
                raise ValueError(
                    f"Indication string {item.name!r} must contain the {TIME_PLACEHOLDER} placeholder"
                )

    def with_overrides(self, overrides: Mapping[str, Any]) -> "IndicationStrings":
        known = {item.name for item in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown indication strings: {', '.join(unknown)}")
        return replace(self, **dict(overrides))

    def to_dict(self) -> dict[str, str]:
        return {item.name: getattr(self, item.name) for item in fields(self)}


DEFAULT_INDICATION_STRINGS = IndicationStrings()


@dataclass(frozen=True, slots=True)
class ResolverInputs:
    """Everything the precedence rule looks at, captured in one snapshot."""

    visible: bool
    user_unlocked: bool
    transient: TransientMessage | None = None
    charging: ChargingState = field(default_factory=ChargingState)
    resting: str | None = None
    show_charging_details: bool = False
    charging_details_when_charged: bool = False


@dataclass(frozen=True, slots=True)
class Indication:
    """Resolved text and colour pushed to the display."""

    text: str
    color: Color
    source: IndicationSource


def resolve(
    inputs: ResolverInputs,
    *,
    charge_time_source: ChargeTimeSource | None = None,
    strings: IndicationStrings = DEFAULT_INDICATION_STRINGS,
) -> Indication | None:
    """Return the indication to display, or ``None`` while invisible."""

    if not inputs.visible:
        return None
    if not inputs.user_unlocked:
        return Indication(strings.storage_locked, WHITE, IndicationSource.STORAGE_LOCKED)
    transient = inputs.transient
    if transient is not None and transient.text:
        return Indication(transient.text, transient.color, IndicationSource.TRANSIENT)
    if inputs.charging.plugged_in:
        text = compute_charging_message(
            inputs.charging,
            charge_time_source=charge_time_source,
            strings=strings,
            show_details=inputs.show_charging_details,
            details_when_charged=inputs.charging_details_when_charged,
        )
        return Indication(text, WHITE, IndicationSource.CHARGING)
    return Indication(inputs.resting or "", WHITE, IndicationSource.RESTING)


def compute_charging_message(
    charging: ChargingState,
    *,
    charge_time_source: ChargeTimeSource | None,
    strings: IndicationStrings = DEFAULT_INDICATION_STRINGS,
    show_details: bool = False,
    details_when_charged: bool = False,
) -> str:
    details = _charging_details(charging) if show_details else ""
    if charging.charged:
        return strings.charged + (details if details_when_charged else "")

    remaining = _charge_time_remaining(charge_time_source)
    has_time = remaining > 0
    if charging.speed is ChargingSpeed.FAST:
        template = strings.charging_time_fast if has_time else strings.plugged_in_fast
    elif charging.speed is ChargingSpeed.SLOW:
        template = strings.charging_time_slowly if has_time else strings.plugged_in_slowly
    else:
        template = strings.charging_time if has_time else strings.plugged_in

    if has_time:
        text = template.replace(
            TIME_PLACEHOLDER, format_short_elapsed_rounding_up_to_minutes(remaining)
        )
    else:
        text = template
    return text + details


def _charging_details(charging: ChargingState) -> str:
    if charging.current == 0:
        return ""
    return f"\n{int(charging.current / 1000)}mA/h / {int(charging.voltage / 1_000_000)}V"


class _ChargeTimeErrors:
    """Remember the last logged charge-time failure so repeats stay quiet."""

    def __init__(self) -> None:
        self.last_logged_error: str | None = None

    def record(self, message: str) -> None:
        if message != self.last_logged_error:
            logger.warning("%s", message, exc_info=True)
            self.last_logged_error = message

    def clear(self) -> None:
        self.last_logged_error = None


_charge_time_errors = _ChargeTimeErrors()


def _charge_time_remaining(source: ChargeTimeSource | None) -> int:
    if source is None:
        return 0
    try:
        value = source.compute_charge_time_remaining()
    except Exception as exc:
        _charge_time_errors.record(f"Unable to compute remaining charge time: {exc}")
        return 0
    _charge_time_errors.clear()
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        # Pending or malformed answers carry no estimate.
        return 0
    if not math.isfinite(value):
        return 0
    return int(value)


def format_short_elapsed_rounding_up_to_minutes(millis: int) -> str:
    """Format a duration compactly after rounding it up to whole minutes."""

    minutes_total = max(1, -(-int(millis) // _MILLIS_PER_MINUTE))
    days, remainder = divmod(minutes_total, _MINUTES_PER_DAY)
    hours, minutes = divmod(remainder, _MINUTES_PER_HOUR)

    if days >= 2:
        days += (hours + 12) // 24
        return f"{days} days"
    if days == 1:
        if hours == 0:
            return "1 day"
        return f"1 day, {hours} hr"
    if hours >= 2:
        hours += (minutes + 30) // 60
        return f"{hours} hr"
    if hours == 1:
        if minutes == 0:
            return "1 hr"
        return f"1 hr, {minutes} min"
    return f"{minutes} min"


__all__ = [
    "ChargeTimeSource",
    "DEFAULT_INDICATION_STRINGS",
    "Indication",
    "IndicationSource",
    "IndicationStrings",
    "ResolverInputs",
    "compute_charging_message",
    "format_short_elapsed_rounding_up_to_minutes",
    "resolve",
]
