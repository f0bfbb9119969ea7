"""Shared type aliases for tool parameters."""

from __future__ import annotations

from typing import Annotated

from pydantic import Field

VideoRef = Annotated[str, Field(
    min_length=11,
    max_length=2048,
    description="YouTube video URL (youtube.com or youtu.be) or bare 11-character video ID",
)]
