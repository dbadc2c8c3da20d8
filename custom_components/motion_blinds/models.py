"""Data models for Motion Blinds devices."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .const import BLIND_DEVICE_TYPE


@dataclass(frozen=True, slots=True)
class DeviceInfo:
    """A covering known to the gateway."""

    mac: str
    device_type: str = BLIND_DEVICE_TYPE
    name: str | None = None


@dataclass(frozen=True, slots=True)
class GatewayInfo:
    """Result of a GetDeviceList exchange."""

    mac: str
    device_type: str
    fw_version: str | None
    protocol_version: str | None
    token: str | None
    devices: list[DeviceInfo] = field(default_factory=list)

    @classmethod
    def from_dict(cls, response: dict[str, Any]) -> GatewayInfo:
        devices = [
            DeviceInfo(mac=d["mac"], device_type=d.get("deviceType", ""))
            for d in response.get("data") or []
            if isinstance(d, dict) and d.get("mac")
        ]
        return cls(
            mac=response.get("mac", ""),
            device_type=response.get("deviceType", ""),
            fw_version=response.get("fwVersion"),
            protocol_version=response.get("ProtocolVersion"),
            token=response.get("token"),
            devices=devices,
        )


@dataclass(frozen=True, slots=True)
class BlindState:
    """Raw status reading of one blind, in protocol units."""

    current_position: int
    type: int | None = None
    operation: int | None = None
    current_angle: int | None = None
    current_state: int | None = None
    voltage_mode: int | None = None
    battery_level: int | None = None
    charging_state: int | None = None
    wireless_mode: int | None = None
    rssi: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BlindState:
        """Build from the gateway's ``data`` object.

        Raises KeyError / TypeError / ValueError when ``currentPosition``
        is missing or not numeric.
        """
        return cls(
            current_position=int(data["currentPosition"]),
            type=data.get("type"),
            operation=data.get("operation"),
            current_angle=data.get("currentAngle"),
            current_state=data.get("currentState"),
            voltage_mode=data.get("voltageMode"),
            battery_level=data.get("batteryLevel"),
            charging_state=data.get("chargingState"),
            wireless_mode=data.get("wirelessMode"),
            rssi=data.get("RSSI"),
        )
