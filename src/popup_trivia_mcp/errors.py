"""Structured error handling — categories, user messages, and the tool error model."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

GENERIC_GENERATION_MESSAGE = (
    "Something went wrong while consulting the music spirits. Please try again."
)
FALLBACK_REJECTION_MESSAGE = "This doesn't look like a music video. Please try another!"
PLAYBACK_DISABLED_MESSAGE = "The owner of this video has disabled playback on external sites."

# Platform codes meaning "embedding disabled by the owner".
FATAL_PLAYER_CODES: frozenset[int] = frozenset({101, 150})


class ErrorCategory(str, Enum):
    """Categories of errors for diagnostics."""

    VALIDATION_REJECTED = "VALIDATION_REJECTED"
    GENERATION_FAILED = "GENERATION_FAILED"
    PLAYBACK_DISABLED = "PLAYBACK_DISABLED"
    TRANSIENT_PLATFORM_NOTICE = "TRANSIENT_PLATFORM_NOTICE"
    URL_INVALID = "URL_INVALID"
    API_QUOTA_EXCEEDED = "API_QUOTA_EXCEEDED"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN = "UNKNOWN"


class GenerationError(Exception):
    """Transport or parse failure inside the generation collaborator."""


class PlaybackDisabledError(Exception):
    """The embedded widget reported a fatal platform code."""

    def __init__(self, code: int) -> None:
        super().__init__(f"{PLAYBACK_DISABLED_MESSAGE} (code {code})")
        self.code = code


class ToolError(BaseModel):
    """Structured error returned from any tool."""

    error: str
    category: str
    hint: str
    retryable: bool = False
    retry_after_seconds: int | None = None


def categorize_error(error: Exception) -> tuple[ErrorCategory, str]:
    """Map an exception to an ErrorCategory + human-readable hint."""
    if isinstance(error, PlaybackDisabledError):
        return (ErrorCategory.PLAYBACK_DISABLED, PLAYBACK_DISABLED_MESSAGE)
    if isinstance(error, GenerationError):
        return (ErrorCategory.GENERATION_FAILED, GENERIC_GENERATION_MESSAGE)

    s = str(error).lower()
    if isinstance(error, TimeoutError) or "timeout" in s or "timed out" in s:
        return (
            ErrorCategory.NETWORK_ERROR,
            "Request timed out — try again or check connectivity",
        )
    if "429" in s or "quota" in s or "resource_exhausted" in s:
        return (
            ErrorCategory.API_QUOTA_EXCEEDED,
            "Rate limit hit — wait a minute and submit again",
        )
    if "not a youtube url" in s or "video id" in s:
        return (
            ErrorCategory.URL_INVALID,
            "Pass a youtube.com / youtu.be link or an 11-character video ID",
        )
    if "connect" in s or "network" in s:
        return (
            ErrorCategory.NETWORK_ERROR,
            "Network failure — check connectivity and try again",
        )

    return (ErrorCategory.UNKNOWN, str(error))


def make_tool_error(error: Exception) -> dict:
    """Create a serialisable ToolError dict from an exception."""
    cat, hint = categorize_error(error)
    retryable = cat in {
        ErrorCategory.API_QUOTA_EXCEEDED,
        ErrorCategory.NETWORK_ERROR,
    }
    return ToolError(
        error=str(error),
        category=cat.value,
        hint=hint,
        retryable=retryable,
        retry_after_seconds=60 if cat == ErrorCategory.API_QUOTA_EXCEEDED else None,
    ).model_dump(mode="json")
