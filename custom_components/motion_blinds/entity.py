"""Base entity for the Motion Blinds integration."""

from __future__ import annotations

from homeassistant.helpers.entity import Entity

from .const import DOMAIN, MANUFACTURER
from .gateway import MotionGateway
from .tracker import MovementTracker


class MotionEntity(Entity):
    """Base class for all Motion blind entities.

    State is pushed by the blind's MovementTracker, so entities never poll.
    """

    _attr_has_entity_name = False
    _attr_should_poll = False

    def __init__(
        self,
        tracker: MovementTracker,
        gateway: MotionGateway,
        gateway_mac: str | None = None,
    ) -> None:
        """Initialise the entity."""
        self._tracker = tracker
        self._gateway = gateway
        self._gateway_mac = gateway_mac

    async def async_added_to_hass(self) -> None:
        self.async_on_remove(self._tracker.add_listener(self.async_write_ha_state))
        self.async_on_remove(
            self._gateway.add_connection_listener(self._handle_connection_change)
        )

    def _handle_connection_change(self, connected: bool) -> None:
        self.async_write_ha_state()

    @property
    def available(self) -> bool:
        return self._gateway.connected

    @property
    def device_info(self) -> dict:
        device = self._tracker.device
        info = {
            "name": device.name or device.mac,
            "identifiers": {(DOMAIN, device.mac)},
            "manufacturer": MANUFACTURER,
            "model": "Motion Blind",
            "serial_number": device.mac,
        }
        if self._gateway_mac:
            info["via_device"] = (DOMAIN, self._gateway_mac)
        return info
