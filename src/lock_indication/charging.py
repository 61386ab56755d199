"""Battery status snapshots and charging-speed classification."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum


logger = logging.getLogger(__name__)

DEFAULT_CHARGING_VOLTAGE_MICRO_VOLT = 5_000_000
DEFAULT_SLOW_THRESHOLD_MICRO_WATT = 5_000_000
DEFAULT_FAST_THRESHOLD_MICRO_WATT = 7_500_000


class BatteryHealthStatus(str, Enum):
    UNKNOWN = "unknown"
    CHARGING = "charging"
    DISCHARGING = "discharging"
    NOT_CHARGING = "not_charging"
    FULL = "full"


class PlugType(str, Enum):
    NONE = "none"
    AC = "ac"
    USB = "usb"
    WIRELESS = "wireless"


class ChargingSpeed(str, Enum):
    NORMAL = "normal"
    SLOW = "slow"
    FAST = "fast"


@dataclass(frozen=True, slots=True)
class ChargingThresholds:
    """Charge-rate boundaries in micro-watts used to classify charging speed."""

    slow_threshold: int = DEFAULT_SLOW_THRESHOLD_MICRO_WATT
    fast_threshold: int = DEFAULT_FAST_THRESHOLD_MICRO_WATT

    def __post_init__(self) -> None:
        try:
            slow = int(self.slow_threshold)
            fast = int(self.fast_threshold)
        except (TypeError, ValueError) as exc:
            raise ValueError("Charging thresholds must be integers") from exc
        if slow <= 0 or fast <= 0:
            raise ValueError("Charging thresholds must be positive")
        if slow > fast:
            raise ValueError("Slow charging threshold must not exceed the fast threshold")
        object.__setattr__(self, "slow_threshold", slow)
        object.__setattr__(self, "fast_threshold", fast)

    def classify(self, wattage: int) -> ChargingSpeed:
        """Classify *wattage* relative to the configured thresholds."""

        if wattage <= 0:
            # Unknown rate, reported with the regular charging text.
            return ChargingSpeed.NORMAL
        if wattage < self.slow_threshold:
            return ChargingSpeed.SLOW
        if wattage > self.fast_threshold:
            return ChargingSpeed.FAST
        return ChargingSpeed.NORMAL

    def to_dict(self) -> dict[str, int]:
        return {
            "slow_threshold": int(self.slow_threshold),
            "fast_threshold": int(self.fast_threshold),
        }


DEFAULT_CHARGING_THRESHOLDS = ChargingThresholds()


@dataclass(frozen=True, slots=True)
class BatteryStatus:
    """Power snapshot delivered by the battery update source."""

    status: BatteryHealthStatus = BatteryHealthStatus.UNKNOWN
    plugged: PlugType = PlugType.NONE
    level: int = 0
    max_charging_current: int = 0
    max_charging_voltage: int = 0
    max_charging_wattage: int = 0

    @classmethod
    def from_readings(
        cls,
        *,
        status: BatteryHealthStatus,
        plugged: PlugType,
        level: int,
        max_charging_current: int = 0,
        max_charging_voltage: int = 0,
    ) -> "BatteryStatus":
        """Build a status deriving the wattage from current and voltage.

        A missing voltage falls back to the USB default of 5 V.
        """

        voltage = max_charging_voltage if max_charging_voltage > 0 else DEFAULT_CHARGING_VOLTAGE_MICRO_VOLT
        if max_charging_current > 0:
            wattage = (max_charging_current // 1000) * (voltage // 1000)
        else:
            wattage = -1
        return cls(
            status=status,
            plugged=plugged,
            level=level,
            max_charging_current=max_charging_current,
            max_charging_voltage=voltage,
            max_charging_wattage=wattage,
        )

    def is_plugged_in(self) -> bool:
        return self.plugged in (PlugType.AC, PlugType.USB, PlugType.WIRELESS)

    def is_charged(self) -> bool:
        return self.status is BatteryHealthStatus.FULL or self.level >= 100

    def charging_speed(self, thresholds: ChargingThresholds) -> ChargingSpeed:
        return thresholds.classify(self.max_charging_wattage)


@dataclass(frozen=True, slots=True)
class ChargingState:
    """Charging information consumed by the indication resolver."""

    plugged_in: bool = False
    charged: bool = False
    speed: ChargingSpeed = ChargingSpeed.NORMAL
    current: int = 0
    voltage: int = 0
    wattage: int = 0

    def to_dict(self) -> dict[str, object]:
        return {
            "plugged_in": self.plugged_in,
            "charged": self.charged,
            "speed": self.speed.value,
            "current": self.current,
            "voltage": self.voltage,
            "wattage": self.wattage,
        }


@dataclass(slots=True)
class ChargingStatusTracker:
    """Hold the latest charging snapshot derived from battery updates."""

    thresholds: ChargingThresholds = DEFAULT_CHARGING_THRESHOLDS
    state: ChargingState = field(default_factory=ChargingState)

    def update(self, status: BatteryStatus) -> ChargingState:
        charging_or_full = status.status in (
            BatteryHealthStatus.CHARGING,
            BatteryHealthStatus.FULL,
        )
        state = ChargingState(
            plugged_in=status.is_plugged_in() and charging_or_full,
            charged=status.is_charged(),
            speed=status.charging_speed(self.thresholds),
            current=int(status.max_charging_current),
            voltage=int(status.max_charging_voltage),
            wattage=int(status.max_charging_wattage),
        )
        if state != self.state:
            logger.debug(
                "Charging state changed: plugged_in=%s charged=%s speed=%s",
                state.plugged_in,
                state.charged,
                state.speed.value,
            )
        self.state = state
        return state


__all__ = [
    "BatteryHealthStatus",
    "BatteryStatus",
    "ChargingSpeed",
    "ChargingState",
    "ChargingStatusTracker",
    "ChargingThresholds",
    "DEFAULT_CHARGING_THRESHOLDS",
    "PlugType",
]
