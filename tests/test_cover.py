"""Tests for the Motion blind cover entity."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from homeassistant.components.cover import CoverDeviceClass, CoverEntityFeature
from homeassistant.exceptions import HomeAssistantError

from custom_components.motion_blinds.cover import MotionBlindCover
from custom_components.motion_blinds.exceptions import MotionRequestTimeoutError
from custom_components.motion_blinds.models import BlindState
from custom_components.motion_blinds.tracker import MovementTracker

GATEWAY_MAC = "f0f0f0f0f0f0"


def _make_entity(tracker: MovementTracker, gateway: MagicMock) -> MotionBlindCover:
    return MotionBlindCover(tracker, gateway, GATEWAY_MAC)


class TestMotionBlindCoverProperties:
    """Test cover entity property delegation to the tracker."""

    def test_unique_id_and_name(self, tracker, mock_gateway):
        entity = _make_entity(tracker, mock_gateway)
        assert entity.unique_id == "abcdef123456"
        assert entity.name == "Bedroom Blind"

    def test_available_follows_gateway(self, tracker, mock_gateway):
        entity = _make_entity(tracker, mock_gateway)
        assert entity.available is True
        mock_gateway.connected = False
        assert entity.available is False

    async def test_connection_change_writes_state(self, tracker, mock_gateway):
        entity = _make_entity(tracker, mock_gateway)
        await entity.async_added_to_hass()
        on_change = mock_gateway.add_connection_listener.call_args[0][0]

        with patch.object(entity, "async_write_ha_state") as write:
            mock_gateway.connected = False
            on_change(False)

        write.assert_called_once()
        assert entity.available is False

    def test_position_from_tracker(self, tracker, mock_gateway, blind_state):
        tracker.handle_status(blind_state)
        entity = _make_entity(tracker, mock_gateway)
        assert entity.current_cover_position == 75
        assert entity.is_closed is False
        assert entity.is_opening is False
        assert entity.is_closing is False

    def test_closed(self, tracker, mock_gateway):
        tracker.handle_status(BlindState(current_position=100))
        entity = _make_entity(tracker, mock_gateway)
        assert entity.current_cover_position == 0
        assert entity.is_closed is True

    def test_should_poll_false(self, tracker, mock_gateway):
        assert _make_entity(tracker, mock_gateway).should_poll is False

    def test_supported_features(self, tracker, mock_gateway):
        features = _make_entity(tracker, mock_gateway).supported_features
        assert features & CoverEntityFeature.OPEN
        assert features & CoverEntityFeature.CLOSE
        assert features & CoverEntityFeature.STOP
        assert features & CoverEntityFeature.SET_POSITION

    def test_device_class(self, tracker, mock_gateway):
        assert _make_entity(tracker, mock_gateway).device_class == CoverDeviceClass.SHADE

    def test_device_info(self, tracker, mock_gateway):
        info = _make_entity(tracker, mock_gateway).device_info
        assert info["manufacturer"] == "Motion"
        assert ("motion_blinds", "abcdef123456") in info["identifiers"]
        assert info["via_device"] == ("motion_blinds", GATEWAY_MAC)

    def test_extra_state_attributes(self, tracker, mock_gateway, blind_state):
        tracker.handle_status(blind_state)
        attrs = _make_entity(tracker, mock_gateway).extra_state_attributes
        assert attrs == {"target_position": 75, "last_error": None}


class TestMotionBlindCoverCommands:
    """Test cover commands are routed through the tracker."""

    async def test_open_cover(self, tracker, mock_gateway):
        tracker.handle_status(BlindState(current_position=100))
        entity = _make_entity(tracker, mock_gateway)

        await entity.async_open_cover()

        mock_gateway.set_cover_position.assert_awaited_once_with(
            "abcdef123456", 0, "10000000"
        )
        assert entity.is_opening is True

    async def test_close_cover(self, tracker, mock_gateway):
        tracker.handle_status(BlindState(current_position=0))
        entity = _make_entity(tracker, mock_gateway)

        await entity.async_close_cover()

        mock_gateway.set_cover_position.assert_awaited_once_with(
            "abcdef123456", 100, "10000000"
        )
        assert entity.is_closing is True

    async def test_set_cover_position(self, tracker, mock_gateway):
        entity = _make_entity(tracker, mock_gateway)
        await entity.async_set_cover_position(position=40)
        mock_gateway.set_cover_position.assert_awaited_once_with(
            "abcdef123456", 60, "10000000"
        )

    async def test_set_cover_position_none(self, tracker, mock_gateway):
        """No-op when position kwarg is missing."""
        entity = _make_entity(tracker, mock_gateway)
        await entity.async_set_cover_position()
        mock_gateway.set_cover_position.assert_not_awaited()

    async def test_stop_cover(self, tracker, mock_gateway):
        entity = _make_entity(tracker, mock_gateway)
        await entity.async_stop_cover()
        mock_gateway.stop_cover.assert_awaited_once()

    async def test_failed_move_raises_ha_error(self, tracker, mock_gateway):
        mock_gateway.set_cover_position.side_effect = MotionRequestTimeoutError("no ack")
        entity = _make_entity(tracker, mock_gateway)

        with pytest.raises(HomeAssistantError):
            await entity.async_set_cover_position(position=80)

        assert entity.is_opening is False
        assert entity.extra_state_attributes["last_error"] == "no ack"

    async def test_failed_stop_raises_ha_error(self, tracker, mock_gateway):
        mock_gateway.stop_cover.side_effect = MotionRequestTimeoutError("no ack")
        entity = _make_entity(tracker, mock_gateway)

        with pytest.raises(HomeAssistantError):
            await entity.async_stop_cover()
