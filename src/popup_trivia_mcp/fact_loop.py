"""Fact loop — reveals trivia one item at a time over resumed playback.

Two sinks are fed on every reveal: the ephemeral overlay (visible for
``overlay_visible`` seconds) and the append-only history log. The first
item appears ``first_reveal_delay`` seconds after start; the repeating
reveal timer is armed at that moment and shows one further item every
``reveal_interval`` seconds. When the cursor runs past the last item the
loop stops itself. It never wraps.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from .models.trivia import FactItem
from .player import PlayerAdapter
from .timers import Scheduler, TimerHandle, cancel_all

logger = logging.getLogger(__name__)

_session_ids = itertools.count(1)


@dataclass(frozen=True)
class LoopTimings:
    first_reveal_delay: float = 1.0
    reveal_interval: float = 10.0
    overlay_visible: float = 7.0


@dataclass
class PlaybackSessionState:
    """Display state of one session. ``history`` only ever grows."""

    cursor: int = 0
    active_item: FactItem | None = None
    overlay_visible: bool = False
    history: list[FactItem] = field(default_factory=list)


class FactLoop:
    """One playback session over one accepted verdict's items."""

    def __init__(
        self,
        items: Sequence[FactItem],
        adapter: PlayerAdapter,
        scheduler: Scheduler,
        timings: LoopTimings | None = None,
    ) -> None:
        self.items = tuple(items)
        self.session_id = next(_session_ids)
        self.state = PlaybackSessionState()
        self._adapter = adapter
        self._scheduler = scheduler
        self._timings = timings or LoopTimings()
        self._running = False
        self._finished = False
        self._first: TimerHandle | None = None
        self._reveal: TimerHandle | None = None
        self._visibility: TimerHandle | None = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def finished(self) -> bool:
        """True once every item has been revealed and the loop stopped itself."""
        return self._finished

    def start(self) -> None:
        """Unmute, resume playback and schedule the first reveal.

        Raises:
            ValueError: If there are no items to show.
            RuntimeError: If the loop was already started.
        """
        if not self.items:
            raise ValueError("FactLoop needs at least one item")
        if self._running or self._finished:
            raise RuntimeError(f"Session {self.session_id} already started")

        try:
            self._adapter.unmute()
            self._adapter.play()
        except Exception:
            logger.error("Autoplay failed for %s", self._adapter.video_id, exc_info=True)

        self.state = PlaybackSessionState()
        self._running = True
        self._first = self._scheduler.call_later(self._timings.first_reveal_delay, self._first_reveal)
        logger.info("Session %d started with %d fact(s)", self.session_id, len(self.items))

    def stop(self) -> None:
        """Cancel every timer. Safe to call repeatedly."""
        cancel_all(self._first, self._reveal, self._visibility)
        self._first = self._reveal = self._visibility = None
        if self._running:
            self._running = False
            logger.info("Session %d stopped at cursor %d", self.session_id, self.state.cursor)

    def _first_reveal(self) -> None:
        self._first = None
        if not self._running:
            return
        self._reveal = self._scheduler.call_every(self._timings.reveal_interval, self._advance)
        self._show(0)

    def _advance(self) -> None:
        if not self._running:
            return
        self._show(self.state.cursor + 1)

    def _show(self, index: int) -> None:
        self.state.cursor = index
        if index >= len(self.items):
            self._finished = True
            self.state.overlay_visible = False
            self.stop()
            return

        item = self.items[index]
        history = self.state.history
        if not history or history[-1].text != item.text:
            history.append(item)
        self.state.active_item = item
        self.state.overlay_visible = True
        logger.debug("Session %d revealed fact %d/%d", self.session_id, index + 1, len(self.items))

        cancel_all(self._visibility)
        self._visibility = self._scheduler.call_later(self._timings.overlay_visible, self._hide)

    def _hide(self) -> None:
        self._visibility = None
        if self._running:
            self.state.overlay_visible = False
