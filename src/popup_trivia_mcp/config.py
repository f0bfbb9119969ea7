"""Server configuration via environment variables."""

from __future__ import annotations

import logging
import os

from pydantic import BaseModel, Field, field_validator

from . import dotenv

logger = logging.getLogger(__name__)


def _resolve_tracing_enabled(flag_value: str, tracking_uri: str) -> bool:
    """Derive tracing_enabled from env vars.

    - ``GEMINI_TRACING_ENABLED=false`` → always disabled (explicit opt-out).
    - Otherwise enabled when ``MLFLOW_TRACKING_URI`` is non-empty.
    """
    if flag_value.lower() == "false":
        return False
    return bool(tracking_uri)


class ServerConfig(BaseModel):
    """Runtime configuration resolved from environment.

    Timing fields are seconds. They are product-tuned values, not
    guarantees: the engine only promises "approximately, in this order".
    """

    gemini_api_key: str = Field(default="")
    default_model: str = Field(default="gemini-2.5-flash")
    default_temperature: float = Field(default=1.0)
    retry_max_attempts: int = Field(default=3)
    retry_base_delay: float = Field(default=1.0)
    retry_max_delay: float = Field(default=60.0)
    youtube_api_key: str = Field(default="")
    oembed_endpoint: str = Field(default="https://noembed.com/embed")
    title_lookup_timeout: float = Field(default=5.0)
    prime_pause: float = Field(default=0.5)
    first_reveal_delay: float = Field(default=1.0)
    overlay_visible: float = Field(default=7.0)
    reveal_interval: float = Field(default=10.0)
    end_grace: float = Field(default=2.0)
    embed_poll_interval: float = Field(default=0.1)
    headless_default_duration: float = Field(default=240.0)
    tracing_enabled: bool = Field(default=False)
    mlflow_tracking_uri: str = Field(default="")
    mlflow_experiment_name: str = Field(default="popup-trivia-mcp")

    @field_validator("retry_max_attempts")
    @classmethod
    def validate_retry_max_attempts(cls, value: int) -> int:
        if value < 1:
            raise ValueError("retry_max_attempts must be >= 1")
        return value

    @field_validator(
        "retry_base_delay",
        "retry_max_delay",
        "title_lookup_timeout",
        "prime_pause",
        "first_reveal_delay",
        "overlay_visible",
        "reveal_interval",
        "end_grace",
        "embed_poll_interval",
        "headless_default_duration",
    )
    @classmethod
    def validate_positive_seconds(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Delays and intervals must be > 0")
        return value

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Build config from environment variables."""
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            default_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
            default_temperature=float(os.getenv("GEMINI_TEMPERATURE", "1.0")),
            retry_max_attempts=int(os.getenv("GEMINI_RETRY_MAX_ATTEMPTS", "3")),
            retry_base_delay=float(os.getenv("GEMINI_RETRY_BASE_DELAY", "1.0")),
            retry_max_delay=float(os.getenv("GEMINI_RETRY_MAX_DELAY", "60.0")),
            youtube_api_key=os.getenv("YOUTUBE_API_KEY", ""),
            oembed_endpoint=os.getenv("TRIVIA_OEMBED_ENDPOINT", "https://noembed.com/embed"),
            title_lookup_timeout=float(os.getenv("TRIVIA_TITLE_TIMEOUT", "5.0")),
            prime_pause=float(os.getenv("TRIVIA_PRIME_PAUSE", "0.5")),
            first_reveal_delay=float(os.getenv("TRIVIA_FIRST_REVEAL_DELAY", "1.0")),
            overlay_visible=float(os.getenv("TRIVIA_OVERLAY_VISIBLE", "7.0")),
            reveal_interval=float(os.getenv("TRIVIA_REVEAL_INTERVAL", "10.0")),
            end_grace=float(os.getenv("TRIVIA_END_GRACE", "2.0")),
            embed_poll_interval=float(os.getenv("TRIVIA_EMBED_POLL_INTERVAL", "0.1")),
            headless_default_duration=float(os.getenv("TRIVIA_HEADLESS_DURATION", "240")),
            tracing_enabled=_resolve_tracing_enabled(
                os.getenv("GEMINI_TRACING_ENABLED", ""),
                os.getenv("MLFLOW_TRACKING_URI", ""),
            ),
            mlflow_tracking_uri=os.getenv("MLFLOW_TRACKING_URI", ""),
            mlflow_experiment_name=os.getenv("MLFLOW_EXPERIMENT_NAME", "popup-trivia-mcp"),
        )


# Singleton — initialised lazily on first access.
_config: ServerConfig | None = None


def get_config() -> ServerConfig:
    """Return the global config singleton, creating it on first access.

    Loads ``~/.config/popup-trivia-mcp/.env`` before reading env vars.
    Process environment always takes precedence over the config file.
    """
    global _config
    if _config is None:
        injected = dotenv.load_env_file()
        if injected:
            logger.info("Filled %s from %s", ", ".join(sorted(injected)), dotenv.DEFAULT_ENV_PATH)
        _config = ServerConfig.from_env()
    return _config


def update_config(**overrides: object) -> ServerConfig:
    """Patch the live config (tests and embedding callers tune timings this way)."""
    global _config
    cfg = get_config()
    data = cfg.model_dump()
    data.update({k: v for k, v in overrides.items() if v is not None})
    _config = ServerConfig(**data)
    return _config
