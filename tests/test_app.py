"""Integration tests for the indication HTTP API."""

from __future__ import annotations

import time
from pathlib import Path

import pytest

pytest.importorskip("httpx")

from fastapi.testclient import TestClient

from lock_indication.app import create_app
from lock_indication.device import DeviceState


@pytest.fixture
def device() -> DeviceState:
    return DeviceState()


@pytest.fixture
def client(tmp_path: Path, device: DeviceState) -> TestClient:
    app = create_app(tmp_path / "config.json", device_state=device)
    with TestClient(app) as test_client:
        yield test_client


def _show(client: TestClient) -> None:
    client.post("/api/resting", json={"text": "Swipe up to unlock"})
    response = client.post("/api/visibility", json={"visible": True})
    assert response.status_code == 200


def test_indication_reports_resting_text(client: TestClient) -> None:
    _show(client)

    payload = client.get("/api/indication").json()

    assert payload["visible"] is True
    assert payload["indication"] == {
        "text": "Swipe up to unlock",
        "color": "#FFFFFF",
        "source": "resting",
    }
    assert payload["display"]["text"] == "Swipe up to unlock"
    assert payload["display"]["visible"] is True


def test_hidden_indication_not_rendered(client: TestClient) -> None:
    client.post("/api/resting", json={"text": "Swipe up to unlock"})

    payload = client.get("/api/indication").json()

    assert payload["visible"] is False
    assert payload["indication"] is None
    assert payload["display"]["updates"] == 0


def test_transient_overrides_and_hides(client: TestClient) -> None:
    _show(client)

    response = client.post("/api/transient", json={"text": "Try again", "color": "#FF0000"})
    assert response.status_code == 200
    payload = response.json()
    assert payload["indication"]["text"] == "Try again"
    assert payload["indication"]["color"] == "#FF0000"

    hidden = client.delete("/api/transient").json()
    assert hidden["indication"]["text"] == "Swipe up to unlock"
    assert hidden["transient"] is None


def test_transient_auto_hide_timer(client: TestClient) -> None:
    _show(client)

    payload = client.post(
        "/api/transient", json={"text": "Brief", "hide_after_ms": 30}
    ).json()
    assert payload["hide_pending"] is True

    deadline = time.monotonic() + 2.0
    while time.monotonic() < deadline:
        payload = client.get("/api/indication").json()
        if payload["transient"] is None:
            break
        time.sleep(0.02)

    assert payload["transient"] is None
    assert payload["indication"]["text"] == "Swipe up to unlock"


def test_transient_rejects_bad_colour(client: TestClient) -> None:
    response = client.post("/api/transient", json={"text": "x", "color": "red"})
    assert response.status_code == 400


def test_battery_update_with_time_estimate(client: TestClient) -> None:
    client.post("/api/device", json={"charge_time_remaining_ms": 600_000})
    client.post("/api/settings", json={"charging": {"show_details": False}})
    _show(client)

    payload = client.post(
        "/api/battery",
        json={
            "status": "charging",
            "plugged": "ac",
            "level": 40,
            "max_charging_current": 3_000_000,
            "max_charging_voltage": 9_000_000,
        },
    ).json()

    assert payload["charging"]["plugged_in"] is True
    assert payload["charging"]["speed"] == "fast"
    assert payload["indication"]["text"] == "Charging rapidly (10 min until full)"


def test_fingerprint_error_deferred_until_screen_on(client: TestClient, device: DeviceState) -> None:
    _show(client)
    client.post("/api/device", json={"interactive": False})

    deferred = client.post("/api/fingerprint/error", json={"code": 7, "text": "Try later"}).json()
    assert deferred["indication"]["text"] == "Swipe up to unlock"
    assert deferred["pending_screen_on_message"] == "Try later"

    client.post("/api/device", json={"interactive": True})
    shown = client.post("/api/screen/on").json()
    assert shown["indication"]["text"] == "Try later"
    assert shown["pending_screen_on_message"] is None
    assert shown["hide_pending"] is True


def test_bouncer_receives_deduplicated_errors(client: TestClient) -> None:
    client.post("/api/device", json={"bouncer_showing": True})

    client.post("/api/fingerprint/error", json={"code": 7, "text": "x"})
    client.post("/api/fingerprint/error", json={"code": 7, "text": "x"})
    client.post("/api/fingerprint/failed")
    client.post("/api/fingerprint/error", json={"code": 7, "text": "x"})

    device_payload = client.get("/api/device").json()
    assert [m["text"] for m in device_payload["bouncer_messages"]] == ["x", "x"]


def test_help_sets_lock_icon_flag(client: TestClient) -> None:
    _show(client)

    payload = client.post("/api/fingerprint/help", json={"code": 3, "text": "Move finger"}).json()

    assert payload["indication"]["text"] == "Move finger"
    assert client.get("/api/device").json()["lock_icon_error"] is True


def test_user_unlock_endpoint(client: TestClient) -> None:
    client.post("/api/device", json={"user_unlocked": False})
    locked = client.post("/api/visibility", json={"visible": True}).json()
    assert locked["indication"]["source"] == "storage_locked"

    unlocked = client.post("/api/user/unlocked").json()
    assert unlocked["indication"]["source"] == "resting"


def test_settings_round_trip(client: TestClient, tmp_path: Path) -> None:
    response = client.post(
        "/api/settings",
        json={"warning_color": "#112233", "strings": {"charged": "Full"}},
    )
    assert response.status_code == 200
    assert response.json()["warning_color"] == "#112233"
    assert client.get("/api/settings").json()["strings"]["charged"] == "Full"
    assert (tmp_path / "config.json").exists()


def test_settings_validation_error(client: TestClient) -> None:
    response = client.post(
        "/api/settings",
        json={"charging": {"thresholds": {"slow": 10, "fast": 5}}},
    )
    assert response.status_code == 400


def test_threshold_endpoints_reclassify_charging(client: TestClient) -> None:
    assert client.get("/api/settings/thresholds").json() == {
        "slow_threshold": 5_000_000,
        "fast_threshold": 7_500_000,
    }
    _show(client)
    battery = {
        "status": "charging",
        "plugged": "usb",
        "level": 50,
        "max_charging_current": 1_000_000,
        "max_charging_voltage": 5_000_000,
    }
    assert client.post("/api/battery", json=battery).json()["charging"]["speed"] == "normal"

    response = client.post(
        "/api/settings/thresholds", json={"slow_threshold": 1000, "fast_threshold": 2000}
    )
    assert response.status_code == 200
    assert response.json() == {"slow_threshold": 1000, "fast_threshold": 2000}

    payload = client.post("/api/battery", json=battery).json()
    assert payload["charging"]["speed"] == "fast"
    assert payload["indication"]["text"] == "Charging rapidly\n1000mA/h / 5V"
    assert client.get("/api/settings").json()["charging"]["thresholds"]["fast_threshold"] == 2000

    rejected = client.post(
        "/api/settings/thresholds", json={"slow_threshold": 10, "fast_threshold": 5}
    )
    assert rejected.status_code == 400


def test_charging_details_endpoint_toggles_details_line(client: TestClient) -> None:
    _show(client)
    client.post(
        "/api/battery",
        json={
            "status": "charging",
            "plugged": "ac",
            "level": 50,
            "max_charging_current": 1_000_000,
            "max_charging_voltage": 5_000_000,
        },
    )
    assert client.get("/api/settings/charging-details").json() == {"enabled": True}
    assert client.get("/api/indication").json()["indication"]["text"] == "Charging\n1000mA/h / 5V"

    response = client.post("/api/settings/charging-details", json={"enabled": False})
    assert response.json() == {"enabled": False}
    assert client.get("/api/indication").json()["indication"]["text"] == "Charging"


def test_warning_color_endpoint_colours_fingerprint_errors(client: TestClient) -> None:
    _show(client)

    response = client.post("/api/settings/warning-color", json={"color": "#00FF00"})
    assert response.json() == {"color": "#00FF00"}
    assert client.get("/api/settings/warning-color").json() == {"color": "#00FF00"}

    payload = client.post("/api/fingerprint/error", json={"code": 7, "text": "Try later"}).json()
    assert payload["indication"]["text"] == "Try later"
    assert payload["indication"]["color"] == "#00FF00"

    assert client.post("/api/settings/warning-color", json={"color": "green"}).status_code == 400
