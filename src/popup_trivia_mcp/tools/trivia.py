"""Trivia player tools — submit, status, reset on a FastMCP sub-server."""

from __future__ import annotations

import logging

from fastmcp import FastMCP
from mcp.types import ToolAnnotations

from ..config import get_config
from ..errors import make_tool_error
from ..headless import HeadlessEmbedApi
from ..orchestrator import Orchestrator
from ..player import get_embed_api, init_embed_api, teardown_embed_api
from ..timers import LoopScheduler
from ..tracing import trace
from ..types import VideoRef
from ..youtube import YouTubeClient, extract_video_id

logger = logging.getLogger(__name__)
trivia_server = FastMCP("trivia")

_orchestrator: Orchestrator | None = None


def install_headless_player() -> None:
    """Install and load the headless embed API unless one is already installed."""
    try:
        get_embed_api()
        return
    except RuntimeError:
        pass
    scheduler = LoopScheduler()
    api = HeadlessEmbedApi(
        scheduler,
        default_duration=get_config().headless_default_duration,
        duration_lookup=YouTubeClient.video_duration,
    )
    init_embed_api(api)
    api.load()


def get_orchestrator() -> Orchestrator:
    """Return the process-wide orchestrator, creating it on first use."""
    global _orchestrator
    if _orchestrator is None:
        install_headless_player()
        _orchestrator = Orchestrator(get_embed_api())
    return _orchestrator


def shutdown() -> None:
    """Tear down the orchestrator and release the embed API."""
    global _orchestrator
    if _orchestrator is not None:
        _orchestrator.close()
        _orchestrator = None
    teardown_embed_api()


@trivia_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=True,
    )
)
@trace(name="trivia_submit", span_type="TOOL")
async def trivia_submit(url: VideoRef) -> dict:
    """Start lean-back playback of a music video with timed trivia pop-ups.

    The player mounts and primes immediately; trivia generation runs in the
    background. Poll ``trivia_status`` to follow the session.

    Args:
        url: YouTube video URL or video ID.

    Returns:
        Status snapshot (state GENERATING on success) or a tool error.
    """
    try:
        video_id = extract_video_id(url)
    except ValueError as exc:
        return make_tool_error(exc)

    try:
        orchestrator = get_orchestrator()
        orchestrator.submit(video_id)
        return orchestrator.snapshot()
    except Exception as exc:
        logger.exception("trivia_submit failed for %s", video_id)
        return make_tool_error(exc)


@trivia_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
@trace(name="trivia_status", span_type="TOOL")
async def trivia_status() -> dict:
    """Current state, overlay contents, fact history, warning and error.

    Returns:
        Dict with state, video_id, title, warning, error, primed, overlay,
        history, cursor and fact_count.
    """
    return get_orchestrator().snapshot()


@trivia_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=True,
        openWorldHint=False,
    )
)
@trace(name="trivia_reset", span_type="TOOL")
async def trivia_reset() -> dict:
    """Stop playback and return to idle. Also clears an error so a new video can be submitted.

    Returns:
        Status snapshot (state IDLE).
    """
    orchestrator = get_orchestrator()
    orchestrator.reset()
    return orchestrator.snapshot()
