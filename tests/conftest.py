"""Shared fixtures for Motion Blinds tests."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from custom_components.motion_blinds.const import BLIND_DEVICE_TYPE
from custom_components.motion_blinds.models import BlindState, DeviceInfo
from custom_components.motion_blinds.tracker import MovementTracker

BLIND_MAC = "abcdef123456"


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations):
    """Enable custom integrations for all tests."""
    yield


@pytest.fixture
def device_info() -> DeviceInfo:
    """Return a sample blind."""
    return DeviceInfo(mac=BLIND_MAC, device_type=BLIND_DEVICE_TYPE, name="Bedroom Blind")


@pytest.fixture
def blind_state() -> BlindState:
    """Return a sample reading (protocol 25 = host 75 % open)."""
    return BlindState(
        current_position=25,
        type=1,
        operation=5,
        current_angle=0,
        current_state=2,
        voltage_mode=1,
        battery_level=87,
        charging_state=0,
        wireless_mode=1,
        rssi=-64,
    )


@pytest.fixture
def mock_gateway() -> MagicMock:
    """Return a fully-mocked MotionGateway."""
    gateway = MagicMock()
    gateway.connected = True
    gateway.connect = AsyncMock()
    gateway.close = AsyncMock()
    gateway.get_device_list = AsyncMock()
    gateway.set_cover_position = AsyncMock()
    gateway.stop_cover = AsyncMock()
    gateway.get_status = AsyncMock()
    gateway.add_status_listener = MagicMock(return_value=MagicMock())
    gateway.start_status_polling = MagicMock()
    gateway.stop_status_polling = MagicMock()
    return gateway


@pytest.fixture
def tracker(mock_gateway, device_info):
    """A tracker wired to the mocked gateway, shut down after the test."""
    tracker = MovementTracker(mock_gateway, device_info)
    yield tracker
    tracker.shutdown()
