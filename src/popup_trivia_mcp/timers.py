"""Cancellable one-shot and repeating timers on the asyncio event loop."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    @property
    def cancelled(self) -> bool: ...

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Clock abstraction the engine schedules all of its delays through."""

    def now(self) -> float: ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle: ...


class _LoopTimer:
    """Handle over an ``asyncio.TimerHandle`` that re-arms itself when repeating."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        delay: float,
        callback: Callable[[], None],
        repeat: bool,
    ) -> None:
        self._loop = loop
        self._delay = delay
        self._callback = callback
        self._repeat = repeat
        self._cancelled = False
        self._handle: asyncio.TimerHandle | None = loop.call_later(delay, self._fire)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        if self._cancelled:
            return
        if self._repeat:
            self._handle = self._loop.call_later(self._delay, self._fire)
        else:
            self._handle = None
        self._callback()


class LoopScheduler:
    """Scheduler backed by ``loop.call_later``.

    The loop is looked up at scheduling time, so one instance can be
    created before the server's loop is running.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def now(self) -> float:
        return self._get_loop().time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> _LoopTimer:
        return _LoopTimer(self._get_loop(), delay, callback, repeat=False)

    def call_every(self, interval: float, callback: Callable[[], None]) -> _LoopTimer:
        return _LoopTimer(self._get_loop(), interval, callback, repeat=True)


def cancel_all(*handles: TimerHandle | None) -> None:
    """Cancel every non-None handle."""
    for handle in handles:
        if handle is not None:
            handle.cancel()
