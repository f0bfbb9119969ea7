"""Embedded player adapter — one widget instance behind a small event interface.

The embedding API is a process-wide capability: install it once with
:func:`init_embed_api` at startup and release it with
:func:`teardown_embed_api` at shutdown. Adapters receive it explicitly.

Widget events are the closed set :class:`PlayerReady`, :class:`PlayerEnded`
and :class:`PlayerError`. The adapter forwards them to a
:class:`PlayerEventHandler`; events from a widget that has since been
destroyed or replaced are dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, Union

from .errors import FATAL_PLAYER_CODES, ErrorCategory
from .timers import Scheduler, TimerHandle, cancel_all

logger = logging.getLogger(__name__)

# Lean-back embed: no controls, no keyboard, inline playback, no related videos.
EMBED_PARAMS: dict[str, str] = {
    "enablejsapi": "1",
    "controls": "0",
    "disablekb": "1",
    "modestbranding": "1",
    "rel": "0",
    "playsinline": "1",
}


@dataclass(frozen=True)
class PlayerReady:
    pass


@dataclass(frozen=True)
class PlayerEnded:
    pass


@dataclass(frozen=True)
class PlayerError:
    code: int


PlayerEvent = Union[PlayerReady, PlayerEnded, PlayerError]


@dataclass(frozen=True)
class EmbedConfig:
    """Everything a widget is constructed with."""

    video_id: str
    params: dict[str, str]
    pointer_events: bool = False

    @property
    def embed_url(self) -> str:
        query = "&".join(f"{k}={v}" for k, v in self.params.items())
        return f"https://www.youtube.com/embed/{self.video_id}?{query}"


class PlayerEventHandler(Protocol):
    def on_ready(self) -> None: ...

    def on_ended(self) -> None: ...

    def on_error(self, code: int) -> None: ...


class EmbedWidget(Protocol):
    def mute(self) -> None: ...

    def unmute(self) -> None: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def destroy(self) -> None: ...


class EmbedApi(Protocol):
    """The third-party embedding script, once loaded."""

    @property
    def available(self) -> bool: ...

    def create_widget(self, config: EmbedConfig, emit: Callable[[PlayerEvent], None]) -> EmbedWidget: ...


_embed_api: EmbedApi | None = None


def init_embed_api(api: EmbedApi) -> EmbedApi:
    """Install the process-wide embedding API. Later calls keep the first one."""
    global _embed_api
    if _embed_api is None:
        _embed_api = api
        logger.info("Embed API installed: %s", type(api).__name__)
    return _embed_api


def get_embed_api() -> EmbedApi:
    """Return the installed embedding API.

    Raises:
        RuntimeError: If :func:`init_embed_api` has not been called.
    """
    if _embed_api is None:
        raise RuntimeError("Embed API not initialised — call init_embed_api() at startup")
    return _embed_api


def teardown_embed_api() -> None:
    """Forget the process-wide embedding API (shutdown and tests)."""
    global _embed_api
    _embed_api = None


class PlayerReadiness(str, Enum):
    PRIMING = "priming"
    PRIMED = "primed"


class PlayerAdapter:
    """Owns exactly one embedded widget at a time.

    Each :meth:`mount` gets a fresh token; events and timers belonging to
    an older token are ignored, so a destroyed widget can never reach the
    handler.
    """

    def __init__(
        self,
        api: EmbedApi,
        scheduler: Scheduler,
        handler: PlayerEventHandler,
        *,
        poll_interval: float = 0.1,
    ) -> None:
        self._api = api
        self._scheduler = scheduler
        self._handler = handler
        self._poll_interval = poll_interval
        self._widget: EmbedWidget | None = None
        self._token: object | None = None
        self._timers: list[TimerHandle] = []
        self._poll: TimerHandle | None = None
        self._priming_claimed = False
        self.video_id: str | None = None
        self.readiness = PlayerReadiness.PRIMING

    @property
    def mounted(self) -> bool:
        return self._token is not None

    @property
    def token(self) -> object | None:
        return self._token

    def mount(self, video_id: str) -> None:
        """Replace any current widget with a fresh one for *video_id*.

        If the embedding API is not available yet, initialisation is retried
        every ``poll_interval`` seconds until it is. The embedding script
        gives no failure signal, so there is no retry cap.
        """
        self.destroy()
        self._token = token = object()
        self.video_id = video_id
        self.readiness = PlayerReadiness.PRIMING
        self._priming_claimed = False
        logger.info("Mounting player for %s", video_id)
        self._init_widget(token)

    def _init_widget(self, token: object) -> None:
        if token is not self._token:
            return
        self._poll = None
        if not self._api.available:
            logger.debug("Embed API not ready, retrying in %.2fs", self._poll_interval)
            self._poll = self._scheduler.call_later(self._poll_interval, lambda: self._init_widget(token))
            return
        config = EmbedConfig(video_id=self.video_id or "", params=dict(EMBED_PARAMS))
        widget = self._api.create_widget(config, lambda event: self._dispatch(token, event))
        if token is self._token:
            self._widget = widget
        else:
            # Destroyed while the widget was being constructed.
            self._safe_destroy(widget)

    def _dispatch(self, token: object, event: PlayerEvent) -> None:
        if token is not self._token:
            logger.debug("Dropping %s from a destroyed widget", event)
            return
        if isinstance(event, PlayerReady):
            self._handler.on_ready()
        elif isinstance(event, PlayerEnded):
            self._handler.on_ended()
        elif isinstance(event, PlayerError):
            if event.code in FATAL_PLAYER_CODES:
                self._handler.on_error(event.code)
            else:
                logger.warning(
                    "Player error %d ignored (%s)", event.code, ErrorCategory.TRANSIENT_PLATFORM_NOTICE.value,
                )

    def track(self, handle: TimerHandle) -> TimerHandle:
        """Tie *handle* to this mount; :meth:`destroy` cancels it."""
        self._timers = [t for t in self._timers if not t.cancelled]
        self._timers.append(handle)
        return handle

    def claim_priming(self) -> bool:
        """True exactly once per mount; later calls return False."""
        if self._priming_claimed or self._token is None:
            return False
        self._priming_claimed = True
        return True

    def mark_primed(self) -> None:
        if self.readiness is not PlayerReadiness.PRIMED:
            self.readiness = PlayerReadiness.PRIMED
            logger.info("Player primed for %s", self.video_id)

    def mute(self) -> None:
        self._command("mute")

    def unmute(self) -> None:
        self._command("unmute")

    def play(self) -> None:
        self._command("play")

    def pause(self) -> None:
        self._command("pause")

    def _command(self, name: str) -> None:
        if self._widget is None:
            logger.debug("Ignoring %s: no widget", name)
            return
        getattr(self._widget, name)()

    def destroy(self) -> None:
        """Release the widget and every timer of the current mount. Never raises."""
        cancel_all(self._poll, *self._timers)
        self._poll = None
        self._timers = []
        self._token = None
        widget, self._widget = self._widget, None
        if widget is not None:
            self._safe_destroy(widget)
            logger.info("Destroyed player for %s", self.video_id)

    @staticmethod
    def _safe_destroy(widget: EmbedWidget) -> None:
        try:
            widget.destroy()
        except Exception:
            logger.warning("Widget teardown failed (ignored)", exc_info=True)
