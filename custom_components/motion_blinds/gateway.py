"""Motion Blinds gateway API over local UDP."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any, Callable

from .const import (
    BLIND_DEVICE_TYPE,
    MSG_GET_DEVICE_LIST,
    MSG_READ_DEVICE,
    MSG_WRITE_DEVICE,
    POSITION_MAX,
    POSITION_MIN,
    UDP_PORT,
    Operation,
)
from .exceptions import MotionCommandError, MotionError
from .models import BlindState, DeviceInfo, GatewayInfo
from .transport import (
    ConnectionListener,
    MotionTransport,
    StatusListener,
    generate_msg_id,
)

_LOGGER = logging.getLogger(__name__)


class MotionGateway:
    """Async client for a Motion Blinds gateway (local mode)."""

    def __init__(
        self,
        host: str,
        key: str,
        port: int = UDP_PORT,
        transport: MotionTransport | None = None,
    ) -> None:
        self._host = host
        self._transport = transport or MotionTransport(host=host, key=key, port=port)
        self._transport.set_reconnect_callback(self.get_device_list)
        self._polling_task: asyncio.Task[None] | None = None

    @property
    def host(self) -> str:
        return self._host

    @property
    def connected(self) -> bool:
        return self._transport.connected

    def has_valid_token(self) -> bool:
        return bool(self._transport.access_token)

    def add_status_listener(
        self, mac: str, listener: StatusListener
    ) -> Callable[[], None]:
        """Subscribe to status readings of one blind."""
        return self._transport.add_status_listener(mac, listener)

    def add_connection_listener(
        self, listener: ConnectionListener
    ) -> Callable[[], None]:
        """Subscribe to socket up/down changes."""
        return self._transport.add_connection_listener(listener)

    # ------------------------------------------------------------------
    #  Connection
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        _LOGGER.debug("Trying to connect to gateway at %s", self._host)
        await self._transport.connect()

    async def close(self) -> None:
        """Stop polling and release the socket."""
        self.stop_status_polling()
        self._transport.disconnect()

    async def __aenter__(self) -> MotionGateway:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    #  Protocol messages
    # ------------------------------------------------------------------

    async def get_device_list(self) -> GatewayInfo:
        """Enumerate devices; the reply also carries a fresh session token."""
        response = await self._transport.send(
            {"msgType": MSG_GET_DEVICE_LIST, "msgID": generate_msg_id()}
        )
        info = GatewayInfo.from_dict(response)
        _LOGGER.debug(
            "Gateway %s reports %s devices", info.mac, len(info.devices)
        )
        return info

    async def read_device(
        self, mac: str, device_type: str = BLIND_DEVICE_TYPE
    ) -> BlindState:
        response = await self._transport.send(
            {
                "msgType": MSG_READ_DEVICE,
                "msgID": generate_msg_id(),
                "mac": mac,
                "deviceType": device_type,
                "AccessToken": self._transport.access_token,
            }
        )
        return self._parse_state(MSG_READ_DEVICE, mac, response)

    async def write_device(
        self,
        mac: str,
        operation: Operation,
        target_position: int | None = None,
        device_type: str = BLIND_DEVICE_TYPE,
    ) -> BlindState:
        data: dict[str, Any] = {"operation": int(operation)}
        if target_position is not None:
            data["targetPosition"] = max(
                POSITION_MIN, min(POSITION_MAX, int(target_position))
            )

        response = await self._transport.send(
            {
                "msgType": MSG_WRITE_DEVICE,
                "msgID": generate_msg_id(),
                "mac": mac,
                "deviceType": device_type,
                "AccessToken": self._transport.access_token,
                "data": data,
            }
        )
        return self._parse_state(MSG_WRITE_DEVICE, mac, response)

    @staticmethod
    def _parse_state(
        command: str, mac: str, response: dict[str, Any]
    ) -> BlindState:
        """Turn an acknowledgement into a BlindState or raise."""
        if "actionResult" in response:
            _LOGGER.error(
                "%s for %s failed: %s", command, mac, response["actionResult"]
            )
            raise MotionCommandError(
                f"Gateway rejected '{command}' for {mac}: "
                f"{response['actionResult']}"
            )
        data = response.get("data")
        try:
            return BlindState.from_dict(data)
        except (KeyError, TypeError, ValueError) as exc:
            raise MotionCommandError(
                f"Gateway answered '{command}' for {mac} without a status"
            ) from exc

    # ------------------------------------------------------------------
    #  Commands: covers (protocol units: 0 = open, 100 = closed)
    # ------------------------------------------------------------------

    async def open_cover(
        self, mac: str, device_type: str = BLIND_DEVICE_TYPE
    ) -> BlindState:
        return await self.write_device(mac, Operation.OPEN, device_type=device_type)

    async def close_cover(
        self, mac: str, device_type: str = BLIND_DEVICE_TYPE
    ) -> BlindState:
        return await self.write_device(mac, Operation.CLOSE, device_type=device_type)

    async def stop_cover(
        self, mac: str, device_type: str = BLIND_DEVICE_TYPE
    ) -> BlindState:
        return await self.write_device(mac, Operation.STOP, device_type=device_type)

    async def set_cover_position(
        self, mac: str, position: int, device_type: str = BLIND_DEVICE_TYPE
    ) -> BlindState:
        """Move to ``position`` in protocol units, passed through unchanged."""
        return await self.write_device(
            mac, Operation.CLOSE, position, device_type=device_type
        )

    async def get_status(
        self, mac: str, device_type: str = BLIND_DEVICE_TYPE
    ) -> BlindState:
        return await self.write_device(
            mac, Operation.STATUS_QUERY, device_type=device_type
        )

    # ------------------------------------------------------------------
    #  Polling
    # ------------------------------------------------------------------

    def start_status_polling(
        self, devices: Iterable[DeviceInfo], interval: float
    ) -> None:
        """Query every device's status each ``interval`` seconds."""
        self.stop_status_polling()
        self._polling_task = asyncio.get_running_loop().create_task(
            self._poll_loop(list(devices), interval)
        )

    def stop_status_polling(self) -> None:
        if self._polling_task is not None and not self._polling_task.done():
            self._polling_task.cancel()
        self._polling_task = None

    async def _poll_loop(self, devices: list[DeviceInfo], interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            await self.poll_status(devices)

    async def poll_status(self, devices: Iterable[DeviceInfo]) -> None:
        """One sequential status round; a failing device does not stop it."""
        for device in devices:
            try:
                await self.get_status(device.mac, device.device_type)
            except MotionError as exc:
                _LOGGER.debug("Failed to poll status for %s: %s", device.mac, exc)
