"""Support for Motion blinds (roller blinds / shades)."""

from __future__ import annotations

import logging
from typing import Any

from homeassistant.components.cover import (
    ATTR_POSITION,
    CoverDeviceClass,
    CoverEntity,
    CoverEntityFeature,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import (
    DOMAIN,
    POSITION_MAX,
    POSITION_MIN,
    POSITION_STATE_DECREASING,
    POSITION_STATE_INCREASING,
)
from .entity import MotionEntity
from .exceptions import MotionError

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up Motion blinds from a config entry."""
    data = hass.data[DOMAIN][config_entry.entry_id]

    async_add_entities(
        MotionBlindCover(tracker, data.gateway, data.gateway_info.mac)
        for tracker in data.trackers.values()
    )


class MotionBlindCover(MotionEntity, CoverEntity):
    """Representation of a Motion blind."""

    _attr_device_class = CoverDeviceClass.SHADE
    _attr_supported_features = (
        CoverEntityFeature.OPEN
        | CoverEntityFeature.CLOSE
        | CoverEntityFeature.STOP
        | CoverEntityFeature.SET_POSITION
    )

    @property
    def unique_id(self) -> str:
        return self._tracker.mac

    @property
    def name(self) -> str:
        return self._tracker.device.name or self._tracker.mac

    @property
    def current_cover_position(self) -> int:
        return self._tracker.current_position

    @property
    def is_opening(self) -> bool:
        return self._tracker.position_state == POSITION_STATE_INCREASING

    @property
    def is_closing(self) -> bool:
        return self._tracker.position_state == POSITION_STATE_DECREASING

    @property
    def is_closed(self) -> bool:
        return self._tracker.current_position == POSITION_MIN

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        error = self._tracker.last_error
        return {
            "target_position": self._tracker.target_position,
            "last_error": str(error) if error is not None else None,
        }

    async def async_open_cover(self, **kwargs: Any) -> None:
        await self._async_move(POSITION_MAX)

    async def async_close_cover(self, **kwargs: Any) -> None:
        await self._async_move(POSITION_MIN)

    async def async_set_cover_position(self, **kwargs: Any) -> None:
        position = kwargs.get(ATTR_POSITION)
        if position is None:
            return
        await self._async_move(position)

    async def async_stop_cover(self, **kwargs: Any) -> None:
        try:
            await self._tracker.async_stop()
        except MotionError as exc:
            raise HomeAssistantError(
                f"Failed to stop {self.name}: {exc}"
            ) from exc

    async def _async_move(self, position: int) -> None:
        try:
            await self._tracker.async_set_target_position(position)
        except MotionError as exc:
            raise HomeAssistantError(
                f"Failed to move {self.name} to {position}%: {exc}"
            ) from exc
