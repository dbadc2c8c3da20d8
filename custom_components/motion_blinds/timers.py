"""Scoped ownership of asyncio timer handles."""

from __future__ import annotations

import asyncio
from typing import Any, Callable


class TimerGroup:
    """A set of ``call_later`` handles that are cancelled together.

    Fired handles drop out of the group on their own, so ``len()`` is the
    number of timers still pending.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._handles: set[asyncio.TimerHandle] = set()

    def __len__(self) -> int:
        return len(self._handles)

    @property
    def active(self) -> bool:
        return bool(self._handles)

    def call_later(
        self, delay: float, callback: Callable[..., Any], *args: Any
    ) -> asyncio.TimerHandle:
        """Schedule ``callback(*args)`` after ``delay`` seconds."""
        loop = self._loop or asyncio.get_running_loop()
        handle: asyncio.TimerHandle

        def _fire() -> None:
            self._handles.discard(handle)
            callback(*args)

        handle = loop.call_later(delay, _fire)
        self._handles.add(handle)
        return handle

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()
        self._handles.discard(handle)

    def cancel_all(self) -> None:
        """Cancel every pending timer; safe to call repeatedly."""
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()
