"""Orchestrator — the application state machine.

States: IDLE → GENERATING → PLAYING | ERROR; PLAYING → IDLE | ERROR;
ERROR → IDLE; GENERATING → IDLE (reset). Submitting a new identifier from
any state resets first, then enters GENERATING.

Every submission opens a new session number. Player events, priming
callbacks and generation responses carry the session they were created
for and are dropped once that session is no longer current, so a slow
response for an old video never touches a newer one.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Optional

from .classifier import Outcome, classify
from .config import ServerConfig, get_config
from .errors import (
    GENERIC_GENERATION_MESSAGE,
    ErrorCategory,
    PlaybackDisabledError,
    categorize_error,
)
from .fact_loop import FactLoop, LoopTimings
from .generation import generate_verdict
from .models.trivia import GenerationVerdict
from .player import EmbedApi, PlayerAdapter, PlayerReadiness
from .priming import PrimingSequencer
from .timers import LoopScheduler, Scheduler, TimerHandle, cancel_all
from .youtube import fetch_video_title

logger = logging.getLogger(__name__)

GenerateFn = Callable[[str, Optional[str]], Awaitable[GenerationVerdict]]
TitleFn = Callable[[str], Awaitable[Optional[str]]]


class AppState(str, Enum):
    IDLE = "IDLE"
    GENERATING = "GENERATING"
    PLAYING = "PLAYING"
    ERROR = "ERROR"


_TRANSITIONS: dict[AppState, frozenset[AppState]] = {
    AppState.IDLE: frozenset({AppState.GENERATING}),
    AppState.GENERATING: frozenset({AppState.PLAYING, AppState.ERROR, AppState.IDLE}),
    AppState.PLAYING: frozenset({AppState.IDLE, AppState.ERROR}),
    AppState.ERROR: frozenset({AppState.IDLE}),
}


class IllegalTransition(RuntimeError):
    pass


class _SessionEvents:
    """Player event handler bound to one orchestrator session."""

    def __init__(self, owner: Orchestrator, session: int) -> None:
        self._owner = owner
        self._session = session

    def on_ready(self) -> None:
        self._owner._on_ready(self._session)

    def on_ended(self) -> None:
        self._owner._on_ended(self._session)

    def on_error(self, code: int) -> None:
        self._owner._on_player_error(self._session, code)


class Orchestrator:
    """Wires submissions to the player, the generation call and the fact loop."""

    def __init__(
        self,
        embed_api: EmbedApi,
        *,
        scheduler: Scheduler | None = None,
        config: ServerConfig | None = None,
        generate: GenerateFn = generate_verdict,
        resolve_title: TitleFn = fetch_video_title,
    ) -> None:
        cfg = config or get_config()
        self._api = embed_api
        self._scheduler = scheduler or LoopScheduler()
        self._generate = generate
        self._resolve_title = resolve_title
        self._poll_interval = cfg.embed_poll_interval
        self._end_grace = cfg.end_grace
        self._timings = LoopTimings(
            first_reveal_delay=cfg.first_reveal_delay,
            reveal_interval=cfg.reveal_interval,
            overlay_visible=cfg.overlay_visible,
        )
        self._priming = PrimingSequencer(self._scheduler, cfg.prime_pause)

        self.state = AppState.IDLE
        self.video_id: str | None = None
        self.title: str | None = None
        self.verdict: GenerationVerdict | None = None
        self.warning = False
        self.error_message: str | None = None
        self.error_category: ErrorCategory | None = None
        self.adapter: PlayerAdapter | None = None
        self.fact_loop: FactLoop | None = None

        self._session = 0
        self._end_timer: TimerHandle | None = None
        self._resumed_bare = False
        self._task: asyncio.Task | None = None

    # ── transitions ──────────────────────────────────────────────────────

    def _transition(self, new: AppState) -> None:
        if new is self.state:
            return
        if new not in _TRANSITIONS[self.state]:
            raise IllegalTransition(f"{self.state.value} → {new.value}")
        logger.info("State %s → %s (video %s)", self.state.value, new.value, self.video_id)
        self.state = new

    def _teardown(self) -> None:
        """Stop the loop, cancel timers, destroy the player, discard the verdict."""
        if self.fact_loop is not None:
            self.fact_loop.stop()
            self.fact_loop = None
        cancel_all(self._end_timer)
        self._end_timer = None
        if self.adapter is not None:
            self.adapter.destroy()
            self.adapter = None
        self.verdict = None
        self.warning = False
        self._resumed_bare = False

    def _fail(self, message: str, category: ErrorCategory) -> None:
        self._teardown()
        self.error_message = message
        self.error_category = category
        self._transition(AppState.ERROR)

    # ── user actions ─────────────────────────────────────────────────────

    def submit(self, video_id: str) -> asyncio.Task:
        """Start a session for *video_id*.

        The player is mounted (and priming starts) before the generation
        request is issued. Returns the task running the generation call.
        """
        self.reset()
        self._session += 1
        session = self._session
        self.video_id = video_id
        self.error_message = None
        self.error_category = None
        self._transition(AppState.GENERATING)

        self.adapter = PlayerAdapter(
            self._api,
            self._scheduler,
            _SessionEvents(self, session),
            poll_interval=self._poll_interval,
        )
        self.adapter.mount(video_id)

        self._task = asyncio.get_running_loop().create_task(self._run_generation(session, video_id))
        return self._task

    def reset(self) -> None:
        """Return to IDLE synchronously, releasing everything the session held."""
        self._session += 1
        self._teardown()
        self.video_id = None
        self.title = None
        self.error_message = None
        self.error_category = None
        self._transition(AppState.IDLE)

    def close(self) -> None:
        """Unmount on server shutdown: reset and abandon any in-flight generation call."""
        self.reset()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    # ── generation ───────────────────────────────────────────────────────

    def _is_current(self, session: int) -> bool:
        return session == self._session

    async def _run_generation(self, session: int, video_id: str) -> None:
        try:
            title = await self._resolve_title(video_id)
        except Exception:
            logger.warning("Title lookup raised for %s", video_id, exc_info=True)
            title = None
        if not self._is_current(session):
            logger.info("Session for %s superseded before generation", video_id)
            return
        self.title = title

        try:
            verdict = await self._generate(video_id, title)
        except Exception:
            if self._is_current(session) and self.state is AppState.GENERATING:
                logger.exception("Generation failed for %s", video_id)
                self._fail(GENERIC_GENERATION_MESSAGE, ErrorCategory.GENERATION_FAILED)
            else:
                logger.info("Ignoring generation failure for superseded session (%s)", video_id)
            return

        if not self._is_current(session) or self.state is not AppState.GENERATING:
            logger.info("Discarding stale verdict for %s", video_id)
            return
        self._apply_verdict(verdict)

    def _apply_verdict(self, verdict: GenerationVerdict) -> None:
        result = classify(verdict)
        if result.outcome is Outcome.REJECT:
            logger.info("Verdict rejected %s: %s", self.video_id, result.reason)
            self._fail(result.reason or GENERIC_GENERATION_MESSAGE, ErrorCategory.VALIDATION_REJECTED)
            return

        self.warning = result.outcome is Outcome.ACCEPT_WITH_WARNING
        self.verdict = verdict
        if verdict.video_title and not self.title:
            self.title = verdict.video_title
        self._transition(AppState.PLAYING)
        self._maybe_start_loop()

    # ── player events ────────────────────────────────────────────────────

    def _on_ready(self, session: int) -> None:
        if not self._is_current(session) or self.adapter is None:
            return
        self._priming.prime(self.adapter, lambda: self._on_primed(session))

    def _on_primed(self, session: int) -> None:
        if self._is_current(session):
            self._maybe_start_loop()

    def _maybe_start_loop(self) -> None:
        """Start the fact loop once the player is primed and a verdict is held.

        Called from both sides; whichever arrives last starts the loop, and
        only one loop is ever started per session.
        """
        if self.fact_loop is not None or self.state is not AppState.PLAYING:
            return
        adapter, verdict = self.adapter, self.verdict
        if adapter is None or adapter.readiness is not PlayerReadiness.PRIMED:
            return
        if verdict is None:
            return
        if not verdict.items:
            self._resume_without_facts(adapter)
            return
        self.fact_loop = FactLoop(verdict.items, adapter, self._scheduler, self._timings)
        self.fact_loop.start()

    def _resume_without_facts(self, adapter: PlayerAdapter) -> None:
        """Accepted verdict with nothing to show: play the video on its own."""
        if self._resumed_bare:
            return
        self._resumed_bare = True
        logger.info("No facts for %s, resuming playback without overlay", self.video_id)
        adapter.unmute()
        adapter.play()

    def _on_ended(self, session: int) -> None:
        if not self._is_current(session):
            return
        if self.state is not AppState.PLAYING:
            logger.info("Video ended while %s, ignored", self.state.value)
            return
        if self.fact_loop is not None:
            self.fact_loop.stop()
        cancel_all(self._end_timer)
        self._end_timer = self._scheduler.call_later(self._end_grace, lambda: self._auto_reset(session))

    def _auto_reset(self, session: int) -> None:
        self._end_timer = None
        if self._is_current(session) and self.state is AppState.PLAYING:
            logger.info("Playback of %s finished, returning to idle", self.video_id)
            self.reset()

    def _on_player_error(self, session: int, code: int) -> None:
        if not self._is_current(session):
            return
        if self.state not in (AppState.GENERATING, AppState.PLAYING):
            return
        error = PlaybackDisabledError(code)
        category, message = categorize_error(error)
        logger.warning("Player failed for %s: %s", self.video_id, error)
        self._fail(message, category)

    # ── observation ──────────────────────────────────────────────────────

    def snapshot(self) -> dict[str, Any]:
        """JSON-ready view of everything a client renders."""
        loop = self.fact_loop
        session_state = loop.state if loop is not None else None
        active = session_state.active_item if session_state else None
        return {
            "state": self.state.value,
            "video_id": self.video_id,
            "title": self.title,
            "warning": self.warning,
            "error": self.error_message,
            "error_category": self.error_category.value if self.error_category else None,
            "primed": bool(self.adapter and self.adapter.readiness is PlayerReadiness.PRIMED),
            "overlay": {
                "visible": bool(session_state and session_state.overlay_visible),
                "fact": active.model_dump(mode="json") if active else None,
            },
            "history": [f.model_dump(mode="json") for f in session_state.history] if session_state else [],
            "cursor": session_state.cursor if session_state else 0,
            "fact_count": len(self.verdict.items) if self.verdict else 0,
        }
