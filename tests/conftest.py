"""Shared test fixtures for popup-trivia-mcp."""

from __future__ import annotations

from typing import Any

import pytest

from tests.fakes import FakeClock, FakeEmbedApi


def unwrap_tool(tool: Any) -> Any:
    """Extract the raw coroutine from a FastMCP FunctionTool, if wrapped.

    FastMCP 2.x wraps @server.tool functions in FunctionTool (not callable).
    FastMCP 3.x preserves the original function. This helper works with both.
    """
    return getattr(tool, "fn", tool)


@pytest.fixture(autouse=True)
def _set_dummy_api_key(monkeypatch):
    """Ensure tests never hit real Gemini API."""
    monkeypatch.setenv("GEMINI_API_KEY", "test-key-not-real")
    monkeypatch.delenv("YOUTUBE_API_KEY", raising=False)


@pytest.fixture(autouse=True)
def _disable_tracing(monkeypatch):
    """Disable MLflow tracing in all tests to avoid real tracking-server calls."""
    monkeypatch.setenv("GEMINI_TRACING_ENABLED", "false")


@pytest.fixture(autouse=True)
def _isolate_dotenv(tmp_path, monkeypatch):
    """Prevent tests from loading the user's real ~/.config/popup-trivia-mcp/.env."""
    monkeypatch.setattr(
        "popup_trivia_mcp.dotenv.DEFAULT_ENV_PATH",
        tmp_path / "nonexistent.env",
    )


@pytest.fixture()
def clean_config():
    """Reset the config singleton between tests."""
    import popup_trivia_mcp.config as cfg_mod

    cfg_mod._config = None
    yield
    cfg_mod._config = None


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def embed_api() -> FakeEmbedApi:
    return FakeEmbedApi()
