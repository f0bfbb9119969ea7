"""Main FastMCP server — mounts the trivia player tools."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastmcp import FastMCP

from . import tracing
from .client import GeminiClient
from .tools import trivia

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(server: FastMCP):
    """Startup/shutdown hook — player capability up, clients and timers down."""
    tracing.setup()
    trivia.install_headless_player()
    yield {}
    trivia.shutdown()
    closed = await GeminiClient.close_all()
    tracing.shutdown()
    logger.info("Lifespan shutdown: closed %d client(s)", closed)


app = FastMCP(
    "popup-trivia",
    instructions=(
        "Plays a YouTube music video lean-back and pops up sourced trivia "
        "about it every ten seconds. Trivia is researched by Gemini with "
        "Google Search grounding."
    ),
    lifespan=_lifespan,
)

app.mount(trivia.trivia_server)


def main() -> None:
    """Entry-point for ``popup-trivia-mcp`` console script."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    app.run()


if __name__ == "__main__":
    main()
