"""Configuration management for the lock-screen indication service."""
from __future__ import annotations

import json
import math
from dataclasses import dataclass, replace
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Mapping, Sequence

from .charging import DEFAULT_CHARGING_THRESHOLDS, ChargingThresholds
from .colors import DEFAULT_WARNING_COLOR, Color, coerce_color, format_hex_color
from .resolver import DEFAULT_INDICATION_STRINGS, IndicationStrings

DEFAULT_SHOW_CHARGING_DETAILS = True
DEFAULT_CHARGING_DETAILS_WHEN_CHARGED = False
DEFAULT_TICK_INTERVAL_SECONDS = 60.0


@dataclass(frozen=True, slots=True)
class IndicationSettings:
    """User preferences and device configuration consumed by the controller."""

    thresholds: ChargingThresholds = DEFAULT_CHARGING_THRESHOLDS
    show_charging_details: bool = DEFAULT_SHOW_CHARGING_DETAILS
    charging_details_when_charged: bool = DEFAULT_CHARGING_DETAILS_WHEN_CHARGED
    warning_color: Color = DEFAULT_WARNING_COLOR
    strings: IndicationStrings = DEFAULT_INDICATION_STRINGS
    tick_interval: float = DEFAULT_TICK_INTERVAL_SECONDS

    def __post_init__(self) -> None:
        interval = float(self.tick_interval)
        if not math.isfinite(interval) or interval <= 0:
            raise ValueError("Tick interval must be a positive number of seconds")
        object.__setattr__(self, "tick_interval", interval)

    def to_dict(self) -> dict[str, object]:
        return {
            "charging": {
                "thresholds": self.thresholds.to_dict(),
                "show_details": self.show_charging_details,
                "details_when_charged": self.charging_details_when_charged,
            },
            "warning_color": format_hex_color(self.warning_color),
            "strings": self.strings.to_dict(),
            "tick_interval": self.tick_interval,
        }


DEFAULT_INDICATION_SETTINGS = IndicationSettings()


def _parse_flag(value: Any, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if math.isnan(float(value)):
            raise ValueError("Setting flags must be boolean values")
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if not text:
            return default
        if text in {"true", "1", "yes", "on", "enabled"}:
            return True
        if text in {"false", "0", "no", "off", "disabled"}:
            return False
    raise ValueError("Setting flags must be boolean values")


def _parse_thresholds(value: Any, *, default: ChargingThresholds) -> ChargingThresholds:
    if value is None:
        return default
    if isinstance(value, ChargingThresholds):
        return ChargingThresholds(value.slow_threshold, value.fast_threshold)
    if isinstance(value, Mapping):
        payload = value.get("thresholds") if "thresholds" in value else value
        if not isinstance(payload, Mapping):
            raise ValueError("Charging thresholds must provide 'slow' and 'fast' values")
        slow = payload.get("slow_threshold", payload.get("slow", default.slow_threshold))
        fast = payload.get("fast_threshold", payload.get("fast", default.fast_threshold))
    elif isinstance(value, Sequence) and not isinstance(value, str):
        items = list(value)
        if len(items) != 2:
            raise ValueError("Charging thresholds sequence must contain two values")
        slow, fast = items
    else:
        raise ValueError("Unsupported charging thresholds value")
    if isinstance(slow, bool) or isinstance(fast, bool):
        raise ValueError("Charging threshold values must be numeric")
    try:
        return ChargingThresholds(int(float(slow)), int(float(fast)))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid charging thresholds: {exc}") from exc


def _parse_warning_color(value: Any, *, default: Color) -> Color:
    if value is None:
        return default
    return coerce_color(value)


def _parse_strings(value: Any, *, default: IndicationStrings) -> IndicationStrings:
    if value is None:
        return default
    if isinstance(value, IndicationStrings):
        return value
    if not isinstance(value, Mapping):
        raise ValueError("Indication strings must be an object of text overrides")
    return default.with_overrides(value)


def _parse_tick_interval(value: Any, *, default: float) -> float:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValueError("Tick interval must be numeric")
    try:
        interval = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError("Tick interval must be numeric") from exc
    if not math.isfinite(interval) or not (1.0 <= interval <= 3600.0):
        raise ValueError("Tick interval must be between 1 and 3600 seconds")
    return interval


def parse_settings(
    payload: Mapping[str, Any], *, default: IndicationSettings = DEFAULT_INDICATION_SETTINGS
) -> IndicationSettings:
    """Merge a (possibly partial) settings payload over *default*."""

    if not isinstance(payload, Mapping):
        raise ValueError("Settings must be provided as an object")
    charging_payload = payload.get("charging")
    if charging_payload is not None and not isinstance(charging_payload, Mapping):
        raise ValueError("Charging settings must be an object")
    charging: Mapping[str, Any] = charging_payload or {}
    return IndicationSettings(
        thresholds=_parse_thresholds(charging.get("thresholds"), default=default.thresholds),
        show_charging_details=_parse_flag(
            charging.get("show_details"), default=default.show_charging_details
        ),
        charging_details_when_charged=_parse_flag(
            charging.get("details_when_charged"), default=default.charging_details_when_charged
        ),
        warning_color=_parse_warning_color(
            payload.get("warning_color"), default=default.warning_color
        ),
        strings=_parse_strings(payload.get("strings"), default=default.strings),
        tick_interval=_parse_tick_interval(
            payload.get("tick_interval"), default=default.tick_interval
        ),
    )


class ConfigManager:
    """Stores configuration state on disk with thread-safety."""

    def __init__(self, config_path: Path) -> None:
        self._path = Path(config_path)
        self._lock = Lock()
        self._ensure_parent()
        self._settings = self._load()

    def _ensure_parent(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def _load(self) -> IndicationSettings:
        if not self._path.exists():
            return DEFAULT_INDICATION_SETTINGS
        try:
            payload = json.loads(self._path.read_text())
            if not isinstance(payload, dict):
                raise ValueError("Configuration file must contain a JSON object")
            return parse_settings(payload)
        except (OSError, ValueError) as exc:
            raise RuntimeError(f"Failed to load configuration: {exc}") from exc

    def _save(self) -> None:
        payload: Dict[str, Any] = self._settings.to_dict()
        self._path.write_text(json.dumps(payload, indent=2))

    def get_settings(self) -> IndicationSettings:
        with self._lock:
            return self._settings

    def update_settings(self, data: Mapping[str, Any]) -> IndicationSettings:
        with self._lock:
            settings = parse_settings(data, default=self._settings)
            self._settings = settings
            self._save()
        return settings

    def get_charging_thresholds(self) -> ChargingThresholds:
        with self._lock:
            return self._settings.thresholds

    def set_charging_thresholds(
        self, data: Mapping[str, Any] | Sequence[object] | ChargingThresholds
    ) -> ChargingThresholds:
        with self._lock:
            thresholds = _parse_thresholds(data, default=self._settings.thresholds)
            self._settings = replace(self._settings, thresholds=thresholds)
            self._save()
        return thresholds

    def get_show_charging_details(self) -> bool:
        with self._lock:
            return self._settings.show_charging_details

    def set_show_charging_details(self, value: Any) -> bool:
        with self._lock:
            enabled = _parse_flag(value, default=self._settings.show_charging_details)
            self._settings = replace(self._settings, show_charging_details=enabled)
            self._save()
        return enabled

    def get_warning_color(self) -> Color:
        with self._lock:
            return self._settings.warning_color

    def set_warning_color(self, value: Any) -> Color:
        with self._lock:
            color = _parse_warning_color(value, default=self._settings.warning_color)
            self._settings = replace(self._settings, warning_color=color)
            self._save()
        return color


__all__ = [
    "ConfigManager",
    "IndicationSettings",
    "DEFAULT_INDICATION_SETTINGS",
    "DEFAULT_SHOW_CHARGING_DETAILS",
    "DEFAULT_CHARGING_DETAILS_WHEN_CHARGED",
    "DEFAULT_TICK_INTERVAL_SECONDS",
    "parse_settings",
]
