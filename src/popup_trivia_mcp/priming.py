"""Priming sequencer — muted play then pause, to bank a user-gesture token.

Browsers only allow unmuted autoplay after a media gesture. Playing muted
right after the submission, before the slow generation call returns,
captures that gesture so the later unmute + play is honoured.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from .player import PlayerAdapter
from .timers import Scheduler

logger = logging.getLogger(__name__)


class PrimingSequencer:
    """Runs the prime sequence at most once per adapter mount."""

    def __init__(self, scheduler: Scheduler, pause_after: float) -> None:
        self._scheduler = scheduler
        self._pause_after = pause_after

    def prime(self, adapter: PlayerAdapter, on_primed: Callable[[], None]) -> bool:
        """Mute and play *adapter*, then pause it and mark it primed.

        Returns False (and does nothing) when this mount was already primed
        or is being primed.
        """
        if not adapter.claim_priming():
            logger.debug("Ready fired again for %s, priming skipped", adapter.video_id)
            return False

        token = adapter.token
        adapter.mute()
        adapter.play()

        def _finish() -> None:
            if adapter.token is not token:
                return
            adapter.pause()
            adapter.mark_primed()
            on_primed()

        adapter.track(self._scheduler.call_later(self._pause_after, _finish))
        return True
