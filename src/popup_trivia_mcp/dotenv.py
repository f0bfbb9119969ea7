"""Shared env file for the server's own settings.

MCP hosts start the server with whatever environment they were given,
often without the Gemini key. ``~/.config/popup-trivia-mcp/.env`` fills
the gap. Only the variables :meth:`ServerConfig.from_env` reads are taken
from it (``GEMINI_*``, ``YOUTUBE_API_KEY``, ``TRIVIA_*``, ``MLFLOW_*``);
anything else in the file is ignored so it cannot leak into the process.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_ENV_PATH = Path.home() / ".config" / "popup-trivia-mcp" / ".env"

CONFIG_PREFIXES: tuple[str, ...] = ("GEMINI_", "YOUTUBE_", "TRIVIA_", "MLFLOW_")

_ASSIGNMENT = re.compile(r"^(?:export\s+)?([A-Z][A-Z0-9_]*)\s*=\s*(.*)$")
_QUOTED = re.compile(r"""^(['"])(.*)\1$""")


def read_env_file(path: Path) -> dict[str, str]:
    """Server settings assigned in *path*; empty when the file is missing."""
    if not path.is_file():
        return {}

    settings: dict[str, str] = {}
    for lineno, line in enumerate(path.read_text().splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        match = _ASSIGNMENT.match(line)
        if not match:
            logger.debug("%s:%d: not an assignment, skipped", path, lineno)
            continue
        key, value = match.groups()
        if not key.startswith(CONFIG_PREFIXES):
            logger.debug("%s:%d: %s is not a server setting, skipped", path, lineno, key)
            continue
        quoted = _QUOTED.match(value.strip())
        settings[key] = quoted.group(2) if quoted else value.strip()
    return settings


def _needs_value(key: str, current: str | None) -> bool:
    """Whether the process value of *key* should be filled from the file.

    Missing and blank values qualify, and so does a verbatim
    ``${KEY}`` / ``${KEY:-...}`` that the MCP host failed to expand.
    """
    if current is None or not current.strip():
        return True
    current = current.strip().strip("'\"")
    return current in (f"${key}", f"${{{key}}}") or current.startswith(f"${{{key}:-")


def load_env_file(path: Path | None = None) -> dict[str, str]:
    """Copy server settings from *path* into ``os.environ`` where unset.

    Args:
        path: Env file location. Defaults to :data:`DEFAULT_ENV_PATH`.

    Returns:
        The settings that were injected.
    """
    injected: dict[str, str] = {}
    for key, value in read_env_file(path or DEFAULT_ENV_PATH).items():
        if _needs_value(key, os.environ.get(key)):
            os.environ[key] = value
            injected[key] = value
    return injected
