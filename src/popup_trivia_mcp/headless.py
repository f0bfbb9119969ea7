"""Headless embedding API — a simulated widget for running without a browser.

The widget reports ready shortly after construction and ended once it has
been playing for the video's duration. Mute state is tracked but has no
audible effect. Durations come from an optional async lookup (the YouTube
Data API in production) and fall back to a configured default.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Optional

from .player import EmbedConfig, PlayerEnded, PlayerEvent, PlayerReady
from .timers import Scheduler, TimerHandle, cancel_all

logger = logging.getLogger(__name__)

DurationLookup = Callable[[str], Awaitable[Optional[int]]]


class HeadlessWidget:
    """Tracks play position against the scheduler clock."""

    def __init__(
        self,
        config: EmbedConfig,
        emit: Callable[[PlayerEvent], None],
        scheduler: Scheduler,
        *,
        duration: float,
        load_delay: float,
    ) -> None:
        self.config = config
        self.duration = duration
        self.muted = False
        self.playing = False
        self.destroyed = False
        self._emit = emit
        self._scheduler = scheduler
        self._position = 0.0
        self._started_at: float | None = None
        self._end_timer: TimerHandle | None = None
        self.duration_task: asyncio.Task | None = None
        self._ready_timer: TimerHandle | None = scheduler.call_later(load_delay, self._ready)

    @property
    def position(self) -> float:
        if self._started_at is None:
            return self._position
        return self._position + self._scheduler.now() - self._started_at

    def _ready(self) -> None:
        self._ready_timer = None
        if not self.destroyed:
            self._emit(PlayerReady())

    def _ended(self) -> None:
        self._end_timer = None
        self._position = self.duration
        self._started_at = None
        self.playing = False
        if not self.destroyed:
            self._emit(PlayerEnded())

    def set_duration(self, seconds: float) -> None:
        self.duration = seconds
        if self.playing:
            self._arm_end()

    def _arm_end(self) -> None:
        cancel_all(self._end_timer)
        remaining = max(self.duration - self.position, 0.0)
        self._end_timer = self._scheduler.call_later(remaining, self._ended)

    def mute(self) -> None:
        self.muted = True

    def unmute(self) -> None:
        self.muted = False

    def play(self) -> None:
        if self.playing or self.destroyed:
            return
        self.playing = True
        self._started_at = self._scheduler.now()
        self._arm_end()

    def pause(self) -> None:
        if not self.playing:
            return
        self._position = self.position
        self._started_at = None
        self.playing = False
        cancel_all(self._end_timer)
        self._end_timer = None

    def destroy(self) -> None:
        self.destroyed = True
        self.playing = False
        cancel_all(self._ready_timer, self._end_timer)
        self._ready_timer = self._end_timer = None
        if self.duration_task is not None and not self.duration_task.done():
            self.duration_task.cancel()
        self.duration_task = None


class HeadlessEmbedApi:
    """EmbedApi implementation producing :class:`HeadlessWidget` instances.

    ``available`` stays False until :meth:`load` runs, mirroring a script
    tag that has not finished loading.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        default_duration: float,
        load_delay: float = 0.2,
        duration_lookup: DurationLookup | None = None,
    ) -> None:
        self._scheduler = scheduler
        self._default_duration = default_duration
        self._load_delay = load_delay
        self._duration_lookup = duration_lookup
        self._loaded = False

    @property
    def available(self) -> bool:
        return self._loaded

    def load(self) -> None:
        self._loaded = True

    def create_widget(self, config: EmbedConfig, emit: Callable[[PlayerEvent], None]) -> HeadlessWidget:
        widget = HeadlessWidget(
            config,
            emit,
            self._scheduler,
            duration=self._default_duration,
            load_delay=self._load_delay,
        )
        if self._duration_lookup is not None:
            widget.duration_task = asyncio.get_running_loop().create_task(self._apply_duration(widget))
        return widget

    async def _apply_duration(self, widget: HeadlessWidget) -> None:
        try:
            seconds = await self._duration_lookup(widget.config.video_id)
        except Exception:
            logger.warning("Duration lookup failed for %s", widget.config.video_id, exc_info=True)
            return
        if seconds and not widget.destroyed:
            logger.debug("Duration for %s: %ss", widget.config.video_id, seconds)
            widget.set_duration(float(seconds))
