"""Integration tests for the indication controller wiring."""

from __future__ import annotations

import logging
from dataclasses import replace

import pytest

from lock_indication.charging import BatteryHealthStatus, BatteryStatus, PlugType
from lock_indication.colors import WHITE
from lock_indication.config import IndicationSettings
from lock_indication.controller import IndicationController
from lock_indication.events import (
    BatteryUpdate,
    FingerprintAuthFailed,
    FingerprintAuthenticated,
    FingerprintError,
    FingerprintHelp,
    FingerprintRunningChanged,
    ScreenTurnedOn,
    TimeTick,
    UserUnlocked,
)
from lock_indication.resolver import IndicationSource

RED = (255, 0, 0, 255)

FAST_CHARGING = BatteryStatus(
    status=BatteryHealthStatus.CHARGING,
    plugged=PlugType.AC,
    level=55,
    max_charging_current=3_000_000,
    max_charging_voltage=9_000_000,
    max_charging_wattage=27_000_000,
)


def test_nothing_rendered_while_invisible(controller, display) -> None:
    controller.set_resting_indication("Swipe up to unlock")
    controller.show_transient("Hello")

    assert display.texts == []
    assert controller.last_indication is None


def test_visibility_change_renders_immediately(controller, display) -> None:
    controller.set_resting_indication("Swipe up to unlock")

    controller.set_visible(True)

    assert display.visibility == [True]
    assert display.text == "Swipe up to unlock"
    assert display.color == WHITE


def test_transient_set_while_hidden_shows_on_visible(controller, display) -> None:
    controller.show_transient("Try again", RED)

    controller.set_visible(True)

    assert display.text == "Try again"
    assert display.color == RED


def test_hiding_keeps_state_but_stops_output(controller, display) -> None:
    controller.set_resting_indication("Resting")
    controller.set_visible(True)
    controller.set_visible(False)
    rendered = list(display.texts)

    controller.set_resting_indication("Updated")

    assert display.texts == rendered
    assert display.visibility == [True, False]
    controller.set_visible(True)
    assert display.text == "Updated"


def test_transient_auto_hides_to_resting(controller, display, scheduler) -> None:
    controller.set_resting_indication("Swipe up to unlock")
    controller.set_visible(True)

    controller.show_transient("Try again", RED)
    controller.hide_transient_after(5000)
    scheduler.advance_ms(5001)

    assert display.text == "Swipe up to unlock"
    assert display.color == WHITE


def test_show_after_show_cancels_first_timer(controller, display, scheduler) -> None:
    controller.set_resting_indication("Resting")
    controller.set_visible(True)

    controller.show_transient("A")
    controller.hide_transient_after(1000)
    controller.show_transient("B")
    scheduler.advance_ms(2000)

    assert display.text == "B"


def test_storage_locked_message_wins(controller, device, display) -> None:
    device.user_unlocked = False
    controller.set_resting_indication("Swipe up to unlock")
    controller.on_battery_update(FAST_CHARGING)
    controller.show_transient("Try again", RED)

    controller.set_visible(True)

    assert display.text == "Unlock to access all features and data"
    assert display.color == WHITE


def test_user_unlocked_refreshes_when_visible(controller, device, display) -> None:
    device.user_unlocked = False
    controller.set_resting_indication("Swipe up to unlock")
    controller.set_visible(True)

    device.user_unlocked = True
    controller.on_user_unlocked()

    assert display.text == "Swipe up to unlock"


def test_unlock_source_failure_treated_as_locked(display, device, scheduler) -> None:
    class _BrokenUnlock:
        def is_user_unlocked(self, user_id: int) -> bool:
            raise RuntimeError("user manager unavailable")

    controller = IndicationController(
        display,
        charge_time_source=device,
        user_unlock=_BrokenUnlock(),
        fingerprint_policy=device,
        bouncer=device,
        lock_icon=device,
        scheduler=scheduler,
    )
    controller.set_visible(True)

    assert display.text == "Unlock to access all features and data"


def test_battery_update_renders_charging_message(controller, device, display) -> None:
    device.charge_time_remaining_ms = 600_000
    controller.set_visible(True)

    controller.on_battery_update(FAST_CHARGING)

    assert display.text == "Charging rapidly (10 min until full)\n3000mA/h / 9V"
    assert controller.last_indication.source is IndicationSource.CHARGING


def test_time_tick_refreshes_only_when_visible(controller, device, display) -> None:
    device.charge_time_remaining_ms = 600_000
    controller.on_battery_update(FAST_CHARGING)
    controller.on_time_tick()
    assert display.texts == []

    controller.set_visible(True)
    device.charge_time_remaining_ms = 60_000
    controller.on_time_tick()

    assert display.text.startswith("Charging rapidly (1 min until full)")


def test_each_update_sets_text_then_colour(controller, display) -> None:
    controller.set_visible(True)
    controller.show_transient("A", RED)
    controller.hide_transient()

    assert len(display.texts) == len(display.colors) == 3
    assert display.colors == [WHITE, RED, WHITE]


def test_dispatch_routes_every_variant(controller, device, display, scheduler) -> None:
    controller.set_resting_indication("Resting")
    controller.set_visible(True)

    controller.dispatch(BatteryUpdate(FAST_CHARGING))
    assert controller.status().charging.plugged_in is True

    controller.dispatch(FingerprintHelp(3, "Move finger"))
    assert display.text == "Move finger"

    device.bouncer_showing = True
    controller.dispatch(FingerprintError(7, "x"))
    controller.dispatch(FingerprintError(7, "x"))
    assert [m.text for m in device.bouncer_messages] == ["x"]

    controller.dispatch(FingerprintAuthenticated(0))
    controller.dispatch(FingerprintAuthFailed())
    assert controller.status().last_error_code == -1

    device.bouncer_showing = False
    device.interactive = False
    controller.dispatch(FingerprintError(8, "later"))
    controller.dispatch(FingerprintRunningChanged(True))
    assert controller.status().pending_screen_on_message is None

    controller.dispatch(FingerprintError(8, "later"))
    device.interactive = True
    controller.dispatch(ScreenTurnedOn())
    assert display.text == "later"

    count = len(display.texts)
    controller.dispatch(TimeTick())
    controller.dispatch(UserUnlocked())
    assert len(display.texts) == count + 2


def test_dispatch_rejects_unknown_event(controller) -> None:
    with pytest.raises(TypeError):
        controller.dispatch(object())  # type: ignore[arg-type]


def test_apply_settings_updates_thresholds_and_colour(controller, device, display) -> None:
    controller.set_visible(True)
    settings = replace(
        IndicationSettings(),
        show_charging_details=False,
        warning_color=(1, 2, 3, 255),
    )

    controller.apply_settings(settings)
    controller.on_battery_update(FAST_CHARGING)
    controller.on_fingerprint_help(3, "Move finger")

    assert display.color == (1, 2, 3, 255)
    controller.hide_transient()
    assert display.text == "Charging rapidly"


def test_close_cancels_timers(controller, scheduler) -> None:
    controller.set_visible(True)
    controller.on_fingerprint_help(3, "Move finger")
    controller.hide_transient_after(5000)

    controller.close()

    assert scheduler.pending == []


def test_repeated_unlock_failure_logged_once(display, device, scheduler, caplog) -> None:
    class _FlakyUnlock:
        broken = True

        def is_user_unlocked(self, user_id: int) -> bool:
            if self.broken:
                raise RuntimeError("user manager unavailable")
            return True

    unlock = _FlakyUnlock()
    controller = IndicationController(
        display,
        charge_time_source=device,
        user_unlock=unlock,
        fingerprint_policy=device,
        bouncer=device,
        lock_icon=device,
        scheduler=scheduler,
    )

    with caplog.at_level(logging.WARNING, logger="lock_indication.controller"):
        controller.set_visible(True)
        controller.set_resting_indication("Swipe up to unlock")
        controller.on_time_tick()
        assert len(caplog.records) == 1

        unlock.broken = False
        controller.on_time_tick()
        assert display.text == "Swipe up to unlock"

        unlock.broken = True
        controller.on_time_tick()

    assert len(caplog.records) == 2
    assert display.text == "Unlock to access all features and data"
