"""Tests for the trivia MCP tools."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

import popup_trivia_mcp.tools.trivia as trivia_mod
from popup_trivia_mcp.config import ServerConfig
from popup_trivia_mcp.headless import HeadlessEmbedApi
from popup_trivia_mcp.models.trivia import GenerationVerdict
from popup_trivia_mcp.orchestrator import Orchestrator
from popup_trivia_mcp.player import get_embed_api, init_embed_api, teardown_embed_api
from tests.conftest import unwrap_tool

VERDICT = GenerationVerdict.model_validate(
    {"isValidMusicVideo": True, "videoTitle": "Gangnam Style", "facts": [{"text": "Filmed in Seoul."}]}
)


@pytest.fixture(autouse=True)
def _no_embed_api():
    teardown_embed_api()
    yield
    teardown_embed_api()


@pytest.fixture()
async def orchestrator(embed_api, clock):
    orch = Orchestrator(
        embed_api,
        scheduler=clock,
        config=ServerConfig(),
        generate=AsyncMock(return_value=VERDICT),
        resolve_title=AsyncMock(return_value=None),
    )
    trivia_mod._orchestrator = orch
    yield orch
    orch.close()
    trivia_mod._orchestrator = None


class TestTriviaSubmit:
    async def test_invalid_url_returns_tool_error(self, orchestrator):
        result = await unwrap_tool(trivia_mod.trivia_submit)(url="https://vimeo.com/76979871")
        assert result["category"] == "URL_INVALID"
        assert "Not a YouTube URL" in result["error"]
        assert orchestrator.state.value == "IDLE"

    async def test_starts_session(self, orchestrator, embed_api):
        result = await unwrap_tool(trivia_mod.trivia_submit)(url="https://youtu.be/9bZkp7q19f0")
        assert result["state"] == "GENERATING"
        assert result["video_id"] == "9bZkp7q19f0"
        assert embed_api.last.config.video_id == "9bZkp7q19f0"

        await orchestrator._task
        status = await unwrap_tool(trivia_mod.trivia_status)()
        assert status["state"] == "PLAYING"
        assert status["title"] == "Gangnam Style"
        assert status["fact_count"] == 1


class TestTriviaStatusAndReset:
    async def test_idle_status(self, orchestrator):
        status = await unwrap_tool(trivia_mod.trivia_status)()
        assert status["state"] == "IDLE"
        assert status["history"] == []

    async def test_reset(self, orchestrator, embed_api):
        await unwrap_tool(trivia_mod.trivia_submit)(url="9bZkp7q19f0")
        result = await unwrap_tool(trivia_mod.trivia_reset)()
        assert result["state"] == "IDLE"
        assert embed_api.last.destroyed is True


class TestLifecycle:
    def test_install_headless_player(self, clean_config):
        trivia_mod.install_headless_player()
        api = get_embed_api()
        assert isinstance(api, HeadlessEmbedApi)
        assert api.available is True

    def test_install_keeps_existing_api(self, embed_api):
        init_embed_api(embed_api)
        trivia_mod.install_headless_player()
        assert get_embed_api() is embed_api

    def test_shutdown_releases_everything(self, orchestrator, embed_api):
        init_embed_api(embed_api)
        trivia_mod.shutdown()
        assert trivia_mod._orchestrator is None
        with pytest.raises(RuntimeError):
            get_embed_api()
