"""FastAPI application exposing the lock-screen indication controller."""
from __future__ import annotations

import logging
import os
from pathlib import Path

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from .charging import BatteryHealthStatus, BatteryStatus, PlugType
from .colors import WHITE, coerce_color, format_hex_color
from .config import ConfigManager
from .controller import IndicationController, IndicationStatus
from .device import DeviceState, IndicationView
from .scheduling import LoopScheduler
from .ticker import TimeTicker
from .version import APP_VERSION

CONFIG_PATH_ENV = "LOCK_INDICATION_CONFIG"


class VisibilityPayload(BaseModel):
    visible: bool


class RestingPayload(BaseModel):
    text: str | None = None


class TransientPayload(BaseModel):
    text: str
    color: str | None = None
    hide_after_ms: int | None = Field(default=None, ge=0)


class HideTransientPayload(BaseModel):
    delay_ms: int = Field(ge=0)


class BatteryPayload(BaseModel):
    status: BatteryHealthStatus = BatteryHealthStatus.UNKNOWN
    plugged: PlugType = PlugType.NONE
    level: int = Field(default=0, ge=0, le=100)
    max_charging_current: int = 0
    max_charging_voltage: int = 0
    max_charging_wattage: int | None = None


class FingerprintMessagePayload(BaseModel):
    code: int
    text: str


class FingerprintAuthenticatedPayload(BaseModel):
    user_id: int = 0


class FingerprintRunningPayload(BaseModel):
    running: bool


class DevicePayload(BaseModel):
    user_unlocked: bool | None = None
    interactive: bool | None = None
    fingerprint_allowed: bool | None = None
    bouncer_showing: bool | None = None
    charge_time_remaining_ms: int | None = None
    clear_charge_time: bool = False


class ChargingSettingsPayload(BaseModel):
    thresholds: dict[str, int] | None = None
    show_details: bool | None = None
    details_when_charged: bool | None = None


class ThresholdsPayload(BaseModel):
    slow_threshold: int
    fast_threshold: int


class ChargingDetailsPayload(BaseModel):
    enabled: bool


class WarningColorPayload(BaseModel):
    color: str


class SettingsPayload(BaseModel):
    charging: ChargingSettingsPayload | None = None
    warning_color: str | None = None
    strings: dict[str, str] | None = None
    tick_interval: float | None = None


def _battery_status_from_payload(payload: BatteryPayload) -> BatteryStatus:
    if payload.max_charging_wattage is None:
        return BatteryStatus.from_readings(
            status=payload.status,
            plugged=payload.plugged,
            level=payload.level,
            max_charging_current=payload.max_charging_current,
            max_charging_voltage=payload.max_charging_voltage,
        )
    return BatteryStatus(
        status=payload.status,
        plugged=payload.plugged,
        level=payload.level,
        max_charging_current=payload.max_charging_current,
        max_charging_voltage=payload.max_charging_voltage,
        max_charging_wattage=payload.max_charging_wattage,
    )


def _serialise_status(status: IndicationStatus, view: IndicationView) -> dict[str, object]:
    indication = status.indication
    transient = status.transient
    return {
        "visible": status.visible,
        "indication": None
        if indication is None
        else {
            "text": indication.text,
            "color": format_hex_color(indication.color),
            "source": indication.source.value,
        },
        "transient": None
        if transient is None
        else {"text": transient.text, "color": format_hex_color(transient.color)},
        "hide_pending": status.hide_pending,
        "charging": status.charging.to_dict(),
        "resting": status.resting,
        "pending_screen_on_message": status.pending_screen_on_message,
        "last_error_code": status.last_error_code,
        "display": view.to_dict(),
    }


def create_app(
    config_path: Path | str | None = None,
    *,
    device_state: DeviceState | None = None,
    view: IndicationView | None = None,
) -> FastAPI:
    app = FastAPI(title="Lock Indication", version=APP_VERSION)

    logger = logging.getLogger(__name__)

    if config_path is None:
        config_path = os.environ.get(CONFIG_PATH_ENV, "data/config.json")
    config_manager = ConfigManager(Path(config_path))
    settings = config_manager.get_settings()

    device = device_state or DeviceState()
    display = view or IndicationView()
    controller = IndicationController(
        display,
        charge_time_source=device,
        user_unlock=device,
        fingerprint_policy=device,
        bouncer=device,
        lock_icon=device,
        scheduler=LoopScheduler(logger=logger),
        settings=settings,
    )
    ticker = TimeTicker(controller.on_time_tick, interval=settings.tick_interval)

    app.state.config_manager = config_manager
    app.state.controller = controller
    app.state.device_state = device
    app.state.indication_view = display
    app.state.ticker = ticker

    def _status_payload() -> dict[str, object]:
        return _serialise_status(controller.status(), display)

    @app.on_event("startup")
    async def startup() -> None:  # pragma: no cover - framework hook
        ticker.start()
        logger.info("Lock indication service started (tick every %.0fs)", ticker.interval)

    @app.on_event("shutdown")
    async def shutdown() -> None:  # pragma: no cover - framework hook
        await ticker.aclose()
        controller.close()
        logger.info("Lock indication service stopped")

    @app.get("/api/indication")
    async def get_indication() -> dict[str, object]:
        return _status_payload()

    @app.post("/api/visibility")
    async def update_visibility(payload: VisibilityPayload) -> dict[str, object]:
        controller.set_visible(payload.visible)
        return _status_payload()

    @app.post("/api/resting")
    async def update_resting(payload: RestingPayload) -> dict[str, object]:
        controller.set_resting_indication(payload.text)
        return _status_payload()

    @app.post("/api/transient")
    async def show_transient(payload: TransientPayload) -> dict[str, object]:
        colour = WHITE
        if payload.color is not None:
            try:
                colour = coerce_color(payload.color)
            except ValueError as exc:
                raise HTTPException(status_code=400, detail=str(exc)) from exc
        controller.show_transient(payload.text, colour)
        if payload.hide_after_ms is not None:
            controller.hide_transient_after(payload.hide_after_ms)
        return _status_payload()

    @app.post("/api/transient/hide")
    async def hide_transient_after(payload: HideTransientPayload) -> dict[str, object]:
        controller.hide_transient_after(payload.delay_ms)
        return _status_payload()

    @app.delete("/api/transient")
    async def hide_transient() -> dict[str, object]:
        controller.hide_transient()
        return _status_payload()

    @app.post("/api/battery")
    async def update_battery(payload: BatteryPayload) -> dict[str, object]:
        controller.on_battery_update(_battery_status_from_payload(payload))
        return _status_payload()

    @app.post("/api/fingerprint/help")
    async def fingerprint_help(payload: FingerprintMessagePayload) -> dict[str, object]:
        controller.on_fingerprint_help(payload.code, payload.text)
        return _status_payload()

    @app.post("/api/fingerprint/error")
    async def fingerprint_error(payload: FingerprintMessagePayload) -> dict[str, object]:
        controller.on_fingerprint_error(payload.code, payload.text)
        return _status_payload()

    @app.post("/api/fingerprint/authenticated")
    async def fingerprint_authenticated(
        payload: FingerprintAuthenticatedPayload,
    ) -> dict[str, object]:
        controller.on_fingerprint_authenticated(payload.user_id)
        return _status_payload()

    @app.post("/api/fingerprint/failed")
    async def fingerprint_failed() -> dict[str, object]:
        controller.on_fingerprint_auth_failed()
        return _status_payload()

    @app.post("/api/fingerprint/running")
    async def fingerprint_running(payload: FingerprintRunningPayload) -> dict[str, object]:
        controller.on_fingerprint_running_state_changed(payload.running)
        return _status_payload()

    @app.post("/api/screen/on")
    async def screen_turned_on() -> dict[str, object]:
        controller.on_screen_turned_on()
        return _status_payload()

    @app.post("/api/user/unlocked")
    async def user_unlocked() -> dict[str, object]:
        device.user_unlocked = True
        controller.on_user_unlocked()
        return _status_payload()

    @app.get("/api/device")
    async def get_device() -> dict[str, object]:
        return device.to_dict()

    @app.post("/api/device")
    async def update_device(payload: DevicePayload) -> dict[str, object]:
        if payload.user_unlocked is not None:
            device.user_unlocked = payload.user_unlocked
        if payload.interactive is not None:
            device.interactive = payload.interactive
        if payload.fingerprint_allowed is not None:
            device.fingerprint_allowed = payload.fingerprint_allowed
        if payload.bouncer_showing is not None:
            device.bouncer_showing = payload.bouncer_showing
        if payload.clear_charge_time:
            device.charge_time_remaining_ms = None
        elif payload.charge_time_remaining_ms is not None:
            device.charge_time_remaining_ms = payload.charge_time_remaining_ms
        return device.to_dict()

    def _charging_thresholds_payload() -> dict[str, int]:
        return config_manager.get_charging_thresholds().to_dict()

    def _apply_stored_settings() -> None:
        controller.apply_settings(config_manager.get_settings())

    @app.get("/api/settings/thresholds")
    async def get_charging_thresholds() -> dict[str, int]:
        return _charging_thresholds_payload()

    @app.post("/api/settings/thresholds")
    async def update_charging_thresholds(payload: ThresholdsPayload) -> dict[str, int]:
        try:
            config_manager.set_charging_thresholds(payload.model_dump())
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        _apply_stored_settings()
        return _charging_thresholds_payload()

    @app.get("/api/settings/charging-details")
    async def get_charging_details() -> dict[str, bool]:
        return {"enabled": config_manager.get_show_charging_details()}

    @app.post("/api/settings/charging-details")
    async def update_charging_details(payload: ChargingDetailsPayload) -> dict[str, bool]:
        enabled = config_manager.set_show_charging_details(payload.enabled)
        _apply_stored_settings()
        return {"enabled": enabled}

    @app.get("/api/settings/warning-color")
    async def get_warning_color() -> dict[str, str]:
        return {"color": format_hex_color(config_manager.get_warning_color())}

    @app.post("/api/settings/warning-color")
    async def update_warning_color(payload: WarningColorPayload) -> dict[str, str]:
        try:
            color = config_manager.set_warning_color(payload.color)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        _apply_stored_settings()
        return {"color": format_hex_color(color)}

    @app.get("/api/settings")
    async def get_settings() -> dict[str, object]:
        return config_manager.get_settings().to_dict()

    @app.post("/api/settings")
    async def update_settings(payload: SettingsPayload) -> dict[str, object]:
        try:
            updated = config_manager.update_settings(payload.model_dump(exclude_none=True))
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        controller.apply_settings(updated)
        ticker.interval = updated.tick_interval
        return updated.to_dict()

    return app


__all__ = ["create_app", "CONFIG_PATH_ENV"]
