"""UDP transport for the Motion Blinds gateway.

Frames are plain JSON objects exchanged with the gateway on port 32100.
Responses are correlated to requests by ``msgID``; status readings found
in any inbound frame are handed to per-device listeners regardless of
whether a request was waiting for that frame. A second socket on port
32101 receives the gateway's multicast Report frames.
"""

from __future__ import annotations

import asyncio
import json
import logging
import secrets
import socket
import struct
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from .const import (
    ACK_SUFFIX,
    CONNECT_TIMEOUT,
    MULTICAST_ADDRESS,
    MULTICAST_PORT,
    RECONNECT_DELAY,
    REQUEST_TIMEOUT,
    STATUS_MESSAGE_TYPES,
    UDP_PORT,
)
from .encryptor import get_access_token
from .exceptions import (
    MotionConnectionError,
    MotionError,
    MotionParseError,
    MotionRequestTimeoutError,
)
from .models import BlindState
from .timers import TimerGroup

_LOGGER = logging.getLogger(__name__)

StatusListener = Callable[[BlindState], None]
ConnectionListener = Callable[[bool], None]


def generate_msg_id() -> str:
    """Random request identifier, uppercase hex."""
    return secrets.token_hex(8).upper()


def parse_message(data: bytes) -> dict[str, Any]:
    """Decode one inbound datagram into a message dict."""
    try:
        message = json.loads(data.decode())
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MotionParseError(f"Undecodable datagram: {exc}") from exc
    if not isinstance(message, dict):
        raise MotionParseError(f"Expected a JSON object, got {type(message).__name__}")
    return message


@dataclass(slots=True)
class PendingRequest:
    """An outstanding request waiting for its acknowledgement."""

    msg_id: str
    expected: str
    future: asyncio.Future[dict[str, Any]]


class _MotionDatagramProtocol(asyncio.DatagramProtocol):
    """Forwards socket events to the owning MotionTransport."""

    def __init__(self, owner: MotionTransport) -> None:
        self._owner = owner

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        self._owner._handle_datagram(data, addr)

    def error_received(self, exc: Exception) -> None:
        self._owner._handle_socket_error(self, exc)

    def connection_lost(self, exc: Exception | None) -> None:
        if exc is not None:
            self._owner._handle_socket_error(self, exc)


class MotionTransport:
    """Request/response messaging with the gateway over UDP."""

    def __init__(
        self,
        host: str,
        key: str,
        port: int = UDP_PORT,
        local_port: int = 0,
        multicast_address: str = MULTICAST_ADDRESS,
        report_port: int | None = MULTICAST_PORT,
        connect_timeout: float = CONNECT_TIMEOUT,
        request_timeout: float = REQUEST_TIMEOUT,
        reconnect_delay: float = RECONNECT_DELAY,
    ) -> None:
        self._host = host
        self._key = key
        self._port = port
        self._local_port = local_port
        self._multicast_address = multicast_address
        self._report_port = report_port
        self._connect_timeout = connect_timeout
        self._request_timeout = request_timeout
        self._reconnect_delay = reconnect_delay

        self._transport: asyncio.DatagramTransport | None = None
        self._protocol: _MotionDatagramProtocol | None = None
        self._report_transport: asyncio.DatagramTransport | None = None
        self._connected = False
        self._closing = False

        self._token = ""
        self._access_token = ""

        self._pending: dict[str, PendingRequest] = {}
        self._status_listeners: dict[str, list[StatusListener]] = {}
        self._connection_listeners: list[ConnectionListener] = []

        self._timers = TimerGroup()
        self._reconnect_handle: asyncio.TimerHandle | None = None
        self._reconnect_task: asyncio.Task[None] | None = None
        self._reconnect_callback: Callable[[], Awaitable[Any]] | None = None

    # ------------------------------------------------------------------
    #  Session
    # ------------------------------------------------------------------

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def token(self) -> str:
        return self._token

    @property
    def access_token(self) -> str:
        return self._access_token

    def _update_token(self, token: str) -> None:
        if token == self._token:
            return
        self._token = token
        self._access_token = get_access_token(self._key, token)
        _LOGGER.debug("Session token updated: %s", token)

    # ------------------------------------------------------------------
    #  Subscriptions
    # ------------------------------------------------------------------

    def add_status_listener(
        self, mac: str, listener: StatusListener
    ) -> Callable[[], None]:
        """Receive status readings for one device; returns an unsubscribe."""
        listeners = self._status_listeners.setdefault(mac, [])
        listeners.append(listener)

        def _remove() -> None:
            if listener in listeners:
                listeners.remove(listener)
            if not listeners:
                self._status_listeners.pop(mac, None)

        return _remove

    def add_connection_listener(
        self, listener: ConnectionListener
    ) -> Callable[[], None]:
        """Called with the new state whenever the socket opens or drops."""
        self._connection_listeners.append(listener)

        def _remove() -> None:
            if listener in self._connection_listeners:
                self._connection_listeners.remove(listener)

        return _remove

    def _set_connected(self, connected: bool) -> None:
        if connected == self._connected:
            return
        self._connected = connected
        for listener in list(self._connection_listeners):
            try:
                listener(connected)
            except Exception:
                _LOGGER.exception("Connection listener failed")

    def set_reconnect_callback(
        self, callback: Callable[[], Awaitable[Any]] | None
    ) -> None:
        """Coroutine awaited after every successful reconnection."""
        self._reconnect_callback = callback

    # ------------------------------------------------------------------
    #  Connection
    # ------------------------------------------------------------------

    def _create_socket(self, port: int | None = None) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind(("", self._local_port if port is None else port))
        except OSError:
            sock.close()
            raise
        sock.setblocking(False)

        try:
            membership = struct.pack(
                "4s4s",
                socket.inet_aton(self._multicast_address),
                socket.inet_aton("0.0.0.0"),
            )
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, membership)
            _LOGGER.debug("Joined multicast group %s", self._multicast_address)
        except OSError as exc:
            _LOGGER.debug(
                "Could not join multicast group %s: %s",
                self._multicast_address,
                exc,
            )
        return sock

    async def connect(self) -> None:
        """Bind the UDP socket; no-op when already connected."""
        if self._connected:
            return

        self._closing = False
        loop = asyncio.get_running_loop()
        try:
            sock = self._create_socket()
        except OSError as exc:
            raise MotionConnectionError(
                f"Cannot bind Motion gateway socket: {exc}"
            ) from exc

        try:
            async with asyncio.timeout(self._connect_timeout):
                transport, protocol = await loop.create_datagram_endpoint(
                    lambda: _MotionDatagramProtocol(self), sock=sock
                )
        except TimeoutError as exc:
            sock.close()
            raise MotionConnectionError(
                "Timeout binding Motion gateway socket"
            ) from exc
        except OSError as exc:
            sock.close()
            raise MotionConnectionError(
                f"Cannot bind Motion gateway socket: {exc}"
            ) from exc

        self._transport = transport
        self._protocol = protocol
        await self._open_report_listener()
        self._set_connected(True)
        _LOGGER.info("Motion gateway transport started for %s", self._host)

    async def _open_report_listener(self) -> None:
        """Listen for multicast Report frames; optional, never fatal."""
        if self._report_port is None:
            return

        try:
            sock = self._create_socket(self._report_port)
        except OSError as exc:
            _LOGGER.debug(
                "Cannot listen for gateway reports on port %s: %s",
                self._report_port,
                exc,
            )
            return

        loop = asyncio.get_running_loop()
        try:
            async with asyncio.timeout(self._connect_timeout):
                transport, _ = await loop.create_datagram_endpoint(
                    lambda: _MotionDatagramProtocol(self), sock=sock
                )
        except OSError as exc:
            sock.close()
            _LOGGER.debug(
                "Cannot listen for gateway reports on port %s: %s",
                self._report_port,
                exc,
            )
            return

        self._report_transport = transport

    def disconnect(self) -> None:
        """Cancel timers, fail pending requests and close the socket."""
        self._closing = True
        self._timers.cancel_all()
        self._reconnect_handle = None
        if self._reconnect_task is not None and not self._reconnect_task.done():
            self._reconnect_task.cancel()
        self._reconnect_task = None
        self._drop_socket()
        self._fail_pending(MotionConnectionError("Disconnected from gateway"))

    def _drop_socket(self) -> None:
        transport = self._transport
        report_transport = self._report_transport
        self._transport = None
        self._protocol = None
        self._report_transport = None
        self._set_connected(False)
        if transport is not None:
            transport.close()
        if report_transport is not None:
            report_transport.close()

    def _fail_pending(self, exc: MotionError) -> None:
        for request in list(self._pending.values()):
            if not request.future.done():
                request.future.set_exception(exc)
        self._pending.clear()

    def _handle_socket_error(
        self, protocol: _MotionDatagramProtocol, exc: Exception
    ) -> None:
        if protocol is not self._protocol:
            return  # report listener, or stale endpoint from before a reconnect
        _LOGGER.error("Socket error: %s", exc)
        self._drop_socket()
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if self._closing or self._reconnect_handle is not None:
            return
        self._reconnect_handle = self._timers.call_later(
            self._reconnect_delay, self._start_reconnect
        )

    def _start_reconnect(self) -> None:
        self._reconnect_handle = None
        self._reconnect_task = asyncio.get_running_loop().create_task(
            self._async_reconnect()
        )

    async def _async_reconnect(self) -> None:
        try:
            await self.connect()
            if self._reconnect_callback is not None:
                await self._reconnect_callback()
        except MotionError as exc:
            _LOGGER.error("Reconnection failed: %s", exc)
            self._schedule_reconnect()
        else:
            _LOGGER.info("Reconnected to Motion gateway %s", self._host)

    # ------------------------------------------------------------------
    #  Request / response
    # ------------------------------------------------------------------

    async def send(self, message: dict[str, Any]) -> dict[str, Any]:
        """Transmit ``message`` and wait for its acknowledgement."""
        if self._transport is None or not self._connected:
            raise MotionConnectionError("Not connected to gateway")

        msg_type = message["msgType"]
        msg_id = message.setdefault("msgID", generate_msg_id())
        request = PendingRequest(
            msg_id=msg_id,
            expected=msg_type + ACK_SUFFIX,
            future=asyncio.get_running_loop().create_future(),
        )
        self._pending[msg_id] = request

        frame = json.dumps(message)
        _LOGGER.debug("Sending to %s:%s: %s", self._host, self._port, frame)

        try:
            self._transport.sendto(frame.encode(), (self._host, self._port))
            async with asyncio.timeout(self._request_timeout):
                return await request.future
        except TimeoutError as exc:
            raise MotionRequestTimeoutError(
                f"Timeout waiting for response to {msg_type}"
            ) from exc
        finally:
            self._pending.pop(msg_id, None)

    def _match_pending(self, response: dict[str, Any]) -> PendingRequest | None:
        msg_type = response.get("msgType")
        msg_id = response.get("msgID")
        if msg_id is not None:
            request = self._pending.get(msg_id)
            if request is not None and request.expected == msg_type:
                return request
            return None
        # Some acknowledgements do not echo msgID; oldest waiter of that kind.
        return next(
            (r for r in self._pending.values() if r.expected == msg_type),
            None,
        )

    def _handle_datagram(self, data: bytes, addr: tuple[str, int]) -> None:
        try:
            response = parse_message(data)
        except MotionParseError as exc:
            _LOGGER.debug("Discarding datagram from %s: %s", addr, exc)
            return

        _LOGGER.debug("Response from %s: %s", addr[0], response)

        token = response.get("token")
        if token:
            self._update_token(str(token))

        msg_type = response.get("msgType")
        if not msg_type:
            return

        if msg_type in STATUS_MESSAGE_TYPES:
            self._publish_status(response)

        request = self._match_pending(response)
        if request is not None and not request.future.done():
            request.future.set_result(response)

    def _publish_status(self, response: dict[str, Any]) -> None:
        mac = response.get("mac")
        data = response.get("data")
        if not mac or not isinstance(data, dict):
            return

        listeners = self._status_listeners.get(mac)
        if not listeners:
            return

        try:
            state = BlindState.from_dict(data)
        except (KeyError, TypeError, ValueError):
            _LOGGER.debug("Ignoring status without position for %s: %s", mac, data)
            return

        for listener in list(listeners):
            try:
                listener(state)
            except Exception:
                _LOGGER.exception("Status listener for %s failed", mac)
