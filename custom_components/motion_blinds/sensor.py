"""Battery and signal strength sensors for Motion blinds."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorEntityDescription,
    SensorStateClass,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import (
    PERCENTAGE,
    SIGNAL_STRENGTH_DECIBELS_MILLIWATT,
    EntityCategory,
)
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import DOMAIN
from .entity import MotionEntity
from .gateway import MotionGateway
from .models import BlindState
from .tracker import MovementTracker


@dataclass(frozen=True, kw_only=True)
class MotionSensorEntityDescription(SensorEntityDescription):
    """Sensor description with a getter on the latest reading."""

    value_fn: Callable[[BlindState], int | None]


ENTITY_DESCRIPTIONS: tuple[MotionSensorEntityDescription, ...] = (
    MotionSensorEntityDescription(
        key="battery",
        name="Battery",
        device_class=SensorDeviceClass.BATTERY,
        state_class=SensorStateClass.MEASUREMENT,
        native_unit_of_measurement=PERCENTAGE,
        entity_category=EntityCategory.DIAGNOSTIC,
        value_fn=lambda state: state.battery_level,
    ),
    MotionSensorEntityDescription(
        key="rssi",
        name="Signal strength",
        device_class=SensorDeviceClass.SIGNAL_STRENGTH,
        state_class=SensorStateClass.MEASUREMENT,
        native_unit_of_measurement=SIGNAL_STRENGTH_DECIBELS_MILLIWATT,
        entity_category=EntityCategory.DIAGNOSTIC,
        entity_registry_enabled_default=False,
        value_fn=lambda state: state.rssi,
    ),
)


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up Motion blind sensors from a config entry."""
    data = hass.data[DOMAIN][config_entry.entry_id]

    async_add_entities(
        MotionSensor(tracker, data.gateway, description, data.gateway_info.mac)
        for tracker in data.trackers.values()
        for description in ENTITY_DESCRIPTIONS
    )


class MotionSensor(MotionEntity, SensorEntity):
    """A diagnostic value taken from the blind's latest status reading."""

    entity_description: MotionSensorEntityDescription

    def __init__(
        self,
        tracker: MovementTracker,
        gateway: MotionGateway,
        description: MotionSensorEntityDescription,
        gateway_mac: str | None = None,
    ) -> None:
        super().__init__(tracker, gateway, gateway_mac)
        self.entity_description = description
        blind_name = tracker.device.name or tracker.mac
        self._attr_unique_id = f"{tracker.mac}_{description.key}"
        self._attr_name = f"{blind_name} {description.name}"

    @property
    def native_value(self) -> int | None:
        state = self._tracker.last_state
        if state is None:
            return None
        return self.entity_description.value_fn(state)
