"""Support for Motion Blinds gateways over the local UDP protocol."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from homeassistant import config_entries, core
from homeassistant.const import CONF_HOST, CONF_NAME
from homeassistant.helpers import device_registry as dr
from homeassistant.helpers.config_validation import config_entry_only_config_schema

from .const import (
    BLIND_DEVICE_TYPE,
    CONF_BLINDS,
    CONF_DEVICE_TYPE,
    CONF_KEY,
    CONF_POLL_INTERVAL,
    DEFAULT_POLL_INTERVAL,
    DOMAIN,
    INITIAL_STATUS_DELAY,
    MANUFACTURER,
    SETUP_RETRIES,
    SETUP_RETRY_DELAY,
)
from .exceptions import MotionConnectionError, MotionError
from .gateway import MotionGateway
from .models import DeviceInfo, GatewayInfo
from .tracker import MovementTracker

CONFIG_SCHEMA = config_entry_only_config_schema(DOMAIN)

_LOGGER = logging.getLogger(__name__)

GATEWAY_PLATFORMS = ["cover", "sensor"]


@dataclass
class MotionBlindsData:
    """Per config entry runtime objects."""

    gateway: MotionGateway
    gateway_info: GatewayInfo
    trackers: dict[str, MovementTracker] = field(default_factory=dict)


def discover_blinds(gateway_info: GatewayInfo) -> list[DeviceInfo]:
    """Blinds among the devices the gateway enumerated."""
    return [
        DeviceInfo(
            mac=device.mac,
            device_type=device.device_type,
            name=f"Blind {device.mac[-4:].upper()}",
        )
        for device in gateway_info.devices
        if device.device_type == BLIND_DEVICE_TYPE
    ]


def configured_blinds(options: dict) -> list[DeviceInfo]:
    """Blinds listed in the entry options, in place of discovery."""
    return [
        DeviceInfo(
            mac=mac,
            device_type=blind.get(CONF_DEVICE_TYPE, BLIND_DEVICE_TYPE),
            name=blind.get(CONF_NAME) or mac,
        )
        for mac, blind in (options.get(CONF_BLINDS) or {}).items()
    ]


async def async_setup(hass: core.HomeAssistant, config: dict) -> bool:
    """Set up the Motion Blinds component."""
    return True


async def async_setup_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Set up a Motion Blinds gateway from a config entry."""
    hass.data.setdefault(DOMAIN, {})

    gateway = MotionGateway(host=entry.data[CONF_HOST], key=entry.data[CONF_KEY])

    try:
        for remaining in reversed(range(SETUP_RETRIES)):
            try:
                await gateway.connect()
                gateway_info = await gateway.get_device_list()
                break
            except MotionError:
                if remaining == 0:
                    raise
                await asyncio.sleep(SETUP_RETRY_DELAY)
    except MotionConnectionError:
        _LOGGER.error(
            "Connection error: could not open a UDP socket for the gateway "
            "at %s",
            entry.data[CONF_HOST],
        )
        await gateway.close()
        return False
    except MotionError as exc:
        _LOGGER.error(
            "Gateway at %s did not answer device enumeration: %s",
            entry.data[CONF_HOST],
            exc,
        )
        await gateway.close()
        return False

    _LOGGER.info(
        "Connected to Motion gateway %s (firmware %s, protocol %s)",
        gateway_info.mac,
        gateway_info.fw_version,
        gateway_info.protocol_version,
    )

    blinds = configured_blinds(entry.options)
    if blinds:
        _LOGGER.info("Using %s configured blind(s)", len(blinds))
    else:
        blinds = discover_blinds(gateway_info)
        if not blinds:
            _LOGGER.warning("No blinds found on gateway %s", gateway_info.mac)

    data = MotionBlindsData(gateway=gateway, gateway_info=gateway_info)
    for blind in blinds:
        tracker = MovementTracker(gateway, blind)
        tracker.start()
        data.trackers[blind.mac] = tracker

    hass.data[DOMAIN][entry.entry_id] = data
    entry.async_on_unload(entry.add_update_listener(_async_update_listener))

    device_registry = dr.async_get(hass)
    _remove_stale_devices(
        device_registry, entry, {gateway_info.mac, *data.trackers}
    )

    if gateway_info.mac:
        device_registry.async_get_or_create(
            config_entry_id=entry.entry_id,
            connections={(dr.CONNECTION_NETWORK_MAC, gateway_info.mac)},
            identifiers={(DOMAIN, gateway_info.mac)},
            manufacturer=MANUFACTURER,
            name=entry.title,
            model="Motion Gateway",
            sw_version=gateway_info.fw_version,
        )

    await hass.config_entries.async_forward_entry_setups(
        entry, GATEWAY_PLATFORMS
    )

    if blinds:
        entry.async_create_background_task(
            hass,
            _async_fetch_initial_status(gateway, blinds),
            "motion_blinds_initial_status",
        )
        poll_interval = entry.options.get(CONF_POLL_INTERVAL, DEFAULT_POLL_INTERVAL)
        gateway.start_status_polling(blinds, poll_interval)
        _LOGGER.info("Status polling started (interval: %ss)", poll_interval)

    return True


def _remove_stale_devices(
    device_registry: dr.DeviceRegistry,
    entry: config_entries.ConfigEntry,
    keep: set[str],
) -> None:
    """Detach devices that are no longer set up from this entry."""
    for device in dr.async_entries_for_config_entry(device_registry, entry.entry_id):
        macs = {ident for domain, ident in device.identifiers if domain == DOMAIN}
        if macs and not macs & keep:
            _LOGGER.info("Removing device no longer present: %s", device.name)
            device_registry.async_update_device(
                device.id, remove_config_entry_id=entry.entry_id
            )


async def _async_update_listener(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> None:
    """Options changed; rebuild the blind list."""
    await hass.config_entries.async_reload(entry.entry_id)


async def _async_fetch_initial_status(
    gateway: MotionGateway, blinds: list[DeviceInfo]
) -> None:
    """Give the gateway a moment, then read every blind once."""
    await asyncio.sleep(INITIAL_STATUS_DELAY)
    for blind in blinds:
        try:
            await gateway.get_status(blind.mac, blind.device_type)
        except MotionError as exc:
            _LOGGER.warning(
                "Failed to get initial status for %s: %s", blind.name, exc
            )


async def async_unload_entry(
    hass: core.HomeAssistant,
    config_entry: config_entries.ConfigEntry,
) -> bool:
    """Unload a config entry."""
    unload_ok = await hass.config_entries.async_unload_platforms(
        config_entry, GATEWAY_PLATFORMS
    )

    if unload_ok:
        data: MotionBlindsData | None = hass.data[DOMAIN].pop(
            config_entry.entry_id, None
        )
        if data is not None:
            for tracker in data.trackers.values():
                tracker.shutdown()
            await data.gateway.close()

    return unload_ok


async def async_remove_config_entry_device(
    hass: core.HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    device_entry: dr.DeviceEntry,
) -> bool:
    """Allow removing a blind the gateway no longer reports."""
    data: MotionBlindsData | None = hass.data.get(DOMAIN, {}).get(
        config_entry.entry_id
    )
    if data is None:
        return True
    active = {data.gateway_info.mac, *data.trackers}
    return not any(
        domain == DOMAIN and ident in active
        for domain, ident in device_entry.identifiers
    )
