"""Movement tracking for a single Motion blind.

The gateway regularly reports a blind as stopped while it is still
travelling, so the position shown to the user is not a copy of the last
reading. Instead each blind runs a small state machine:

* idle: every reading is trusted as-is;
* moving: a reading within tolerance of the target completes the move,
  any other reading is only accepted when it is further along in the
  commanded direction;
* a deadline ends a move that is never confirmed, after which a fresh
  status query resynchronises the blind.

All positions handled here are host positions (0 = closed, 100 = open).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine, Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Callable

from .const import (
    MOVEMENT_TIMEOUT,
    POLL_INTERVALS,
    POSITION_MAX,
    POSITION_MIN,
    POSITION_STATE_DECREASING,
    POSITION_STATE_INCREASING,
    POSITION_STATE_STOPPED,
    POSITION_TOLERANCE,
    STOP_REFRESH_DELAY,
)
from .exceptions import MotionError, MotionMovementTimeoutError
from .gateway import MotionGateway
from .models import BlindState, DeviceInfo
from .timers import TimerGroup

_LOGGER = logging.getLogger(__name__)


def clamp_position(position: float) -> int:
    return int(max(POSITION_MIN, min(POSITION_MAX, round(position))))


def protocol_to_host(position: int) -> int:
    """Gateway units (0 = open) to host units (0 = closed)."""
    return clamp_position(POSITION_MAX - position)


def host_to_protocol(position: int) -> int:
    """Host units (0 = closed) to gateway units (0 = open)."""
    return clamp_position(POSITION_MAX - position)


def poll_schedule(intervals: Iterable[float] = POLL_INTERVALS) -> Iterator[float]:
    """Yield cumulative poll offsets, in seconds from command start."""
    elapsed = 0.0
    for interval in intervals:
        elapsed += interval
        yield elapsed


@dataclass(frozen=True, slots=True, eq=False)
class MovementCommand:
    """A move issued by the user and not yet confirmed by the blind."""

    target: int
    direction: str


class MovementTracker:
    """Displayed position, target and motion state of one blind."""

    def __init__(
        self,
        gateway: MotionGateway,
        device: DeviceInfo,
        tolerance: int = POSITION_TOLERANCE,
        movement_timeout: float = MOVEMENT_TIMEOUT,
        poll_intervals: Iterable[float] = POLL_INTERVALS,
        stop_refresh_delay: float = STOP_REFRESH_DELAY,
    ) -> None:
        self._gateway = gateway
        self._device = device
        self._tolerance = tolerance
        self._movement_timeout = movement_timeout
        self._poll_intervals = tuple(poll_intervals)
        self._stop_refresh_delay = stop_refresh_delay

        self._confirmed_position = POSITION_MIN
        self._position = POSITION_MIN
        self._target_position = POSITION_MIN
        self._position_state = POSITION_STATE_STOPPED

        self._command: MovementCommand | None = None
        self._last_state: BlindState | None = None
        self.last_error: MotionError | None = None

        # deadline + poll ticks of the active command
        self._movement_timers = TimerGroup()
        self._refresh_timers = TimerGroup()
        self._tasks: set[asyncio.Task[Any]] = set()
        self._listeners: list[Callable[[], None]] = []
        self._unsubscribe: Callable[[], None] | None = None

    # ------------------------------------------------------------------
    #  Properties
    # ------------------------------------------------------------------

    @property
    def mac(self) -> str:
        return self._device.mac

    @property
    def device(self) -> DeviceInfo:
        return self._device

    @property
    def current_position(self) -> int:
        return self._position

    @property
    def target_position(self) -> int:
        return self._target_position

    @property
    def position_state(self) -> str:
        return self._position_state

    @property
    def confirmed_position(self) -> int:
        return self._confirmed_position

    @property
    def command(self) -> MovementCommand | None:
        return self._command

    @property
    def command_in_progress(self) -> bool:
        return self._command is not None

    @property
    def last_state(self) -> BlindState | None:
        """Most recent raw reading, including battery and signal data."""
        return self._last_state

    # ------------------------------------------------------------------
    #  Wiring
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Subscribe to the gateway's readings for this blind."""
        if self._unsubscribe is None:
            self._unsubscribe = self._gateway.add_status_listener(
                self.mac, self.handle_status
            )

    def add_listener(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Call ``listener`` whenever displayed values change."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def shutdown(self) -> None:
        """Drop subscriptions, timers and in-flight status queries."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._command = None
        self._movement_timers.cancel_all()
        self._refresh_timers.cancel_all()
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    # ------------------------------------------------------------------
    #  Readings
    # ------------------------------------------------------------------

    def handle_status(self, state: BlindState) -> None:
        """Fold one gateway reading into the displayed state."""
        self._last_state = state
        position = protocol_to_host(state.current_position)
        command = self._command

        _LOGGER.debug(
            "%s gateway: position=%s%%, moving=%s, target=%s",
            self.mac,
            position,
            command is not None,
            command.target if command else None,
        )

        if command is None:
            self._confirmed_position = position
            self._position = position
            self._target_position = position
            self._position_state = POSITION_STATE_STOPPED
            self._notify()
            return

        if abs(position - command.target) <= self._tolerance:
            self._complete_command(position)
            return

        if command.direction == POSITION_STATE_INCREASING:
            progressing = position > self._position
        else:
            progressing = position < self._position

        # The gateway's own moving/stopped flag is unreliable mid-travel.
        if progressing:
            self._position = position
            _LOGGER.debug(
                "%s progress: %s%% -> %s%%", self.mac, position, command.target
            )
            self._notify()

    def _complete_command(self, position: int) -> None:
        _LOGGER.info("%s reached target: %s%%", self.mac, position)
        self._cancel_command()
        self.last_error = None
        self._confirmed_position = position
        self._position = position
        self._target_position = position
        self._position_state = POSITION_STATE_STOPPED
        self._notify()

    # ------------------------------------------------------------------
    #  Commands
    # ------------------------------------------------------------------

    async def async_set_target_position(self, position: int) -> None:
        """Move towards ``position``; raises MotionError if it cannot be sent."""
        target = clamp_position(position)
        reference = (
            self._position if self._command is not None else self._confirmed_position
        )
        within = abs(target - reference) <= self._tolerance

        if self._command is not None and within:
            _LOGGER.info(
                "%s stop requested (target=%s%%, current=%s%%)",
                self.mac,
                target,
                reference,
            )
            await self._async_stop_movement()
            return

        if within:
            _LOGGER.debug("%s already at target position", self.mac)
            self._target_position = target
            self._notify()
            return

        if self._command is not None:
            _LOGGER.info(
                "%s cancelling previous command, new target: %s%%",
                self.mac,
                target,
            )
            self._cancel_command()
            await self._async_send_stop("stop before new command")

        await self._async_start_movement(target, reference)

    async def async_stop(self) -> None:
        """Stop the blind wherever it is."""
        if self._command is not None:
            await self._async_stop_movement()
            return
        await self._gateway.stop_cover(self.mac, self._device.device_type)

    async def _async_start_movement(self, target: int, reference: int) -> None:
        direction = (
            POSITION_STATE_INCREASING
            if target > reference
            else POSITION_STATE_DECREASING
        )
        command = MovementCommand(target=target, direction=direction)
        _LOGGER.info("%s command: move to %s%%", self.mac, target)

        self._command = command
        self._target_position = target
        self._position_state = direction
        self._notify()

        self._movement_timers.call_later(
            self._movement_timeout, self._handle_movement_timeout, command
        )

        try:
            await self._gateway.set_cover_position(
                self.mac, host_to_protocol(target), self._device.device_type
            )
        except MotionError as exc:
            _LOGGER.error("%s command failed: %s", self.mac, exc)
            if self._command is command:
                self._cancel_command()
                self._position_state = POSITION_STATE_STOPPED
                self._target_position = self._position
                self._notify()
            self.last_error = exc
            raise

        # The acknowledgement itself may already have completed the move.
        if self._command is command:
            self._schedule_polling(command)

    async def _async_stop_movement(self) -> None:
        self._cancel_command()
        self._target_position = self._position
        self._position_state = POSITION_STATE_STOPPED
        self._notify()

        await self._async_send_stop("stop command")
        self._refresh_timers.call_later(
            self._stop_refresh_delay, self._request_status
        )

    async def _async_send_stop(self, label: str) -> None:
        try:
            await self._gateway.stop_cover(self.mac, self._device.device_type)
        except MotionError as exc:
            _LOGGER.debug("%s %s failed: %s", self.mac, label, exc)

    def _cancel_command(self) -> None:
        self._command = None
        self._movement_timers.cancel_all()

    def _handle_movement_timeout(self, command: MovementCommand) -> None:
        if self._command is not command:
            return

        self.last_error = MotionMovementTimeoutError(
            f"{self.mac} did not confirm target {command.target}% "
            f"within {self._movement_timeout:g}s"
        )
        _LOGGER.warning("%s", self.last_error)

        self._cancel_command()
        self._position_state = POSITION_STATE_STOPPED
        self._target_position = self._position
        self._notify()

        self._request_status()

    # ------------------------------------------------------------------
    #  Status queries
    # ------------------------------------------------------------------

    def _schedule_polling(self, command: MovementCommand) -> None:
        for offset in poll_schedule(self._poll_intervals):
            self._movement_timers.call_later(offset, self._poll_tick, command)

    def _poll_tick(self, command: MovementCommand) -> None:
        if self._command is command:
            self._request_status()

    def _request_status(self) -> None:
        self._create_task(self._async_request_status())

    async def _async_request_status(self) -> None:
        try:
            await self._gateway.get_status(self.mac, self._device.device_type)
        except MotionError as exc:
            _LOGGER.debug("%s status query failed: %s", self.mac, exc)

    def _create_task(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
