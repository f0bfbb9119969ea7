"""Generation verdict models — the payload the fact overlay plays from.

Wire names follow the JSON contract in ``prompts/trivia.py``
(``isValidMusicVideo``, ``facts`` ...); Python attributes use the
engine's vocabulary (``accepted``, ``items`` ...).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FactItem(BaseModel):
    """One sourced trivia item shown on the overlay and in the history log."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    text: str = Field(min_length=1)
    source_url: str | None = Field(default=None, alias="sourceUrl")
    source_title: str | None = Field(default=None, alias="sourceTitle")

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("fact text must not be blank")
        return value

    @field_validator("source_url", "source_title")
    @classmethod
    def empty_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None


class GenerationVerdict(BaseModel):
    """Classification plus trivia payload for one video identifier."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    accepted: bool = Field(default=False, alias="isValidMusicVideo")
    uncertain: bool = Field(default=False, alias="isMusicVideoUnsure")
    video_title: str | None = Field(default=None, alias="videoTitle")
    reason: str | None = None
    items: tuple[FactItem, ...] = Field(default=(), alias="facts")

    @field_validator("uncertain", mode="before")
    @classmethod
    def null_is_false(cls, value: object) -> object:
        return False if value is None else value

    @field_validator("items", mode="before")
    @classmethod
    def drop_blank_facts(cls, value: object) -> object:
        """Discard facts without usable text instead of failing the whole verdict."""
        if value is None:
            return ()
        if not isinstance(value, (list, tuple)):
            return value
        kept = []
        for raw in value:
            if isinstance(raw, FactItem):
                kept.append(raw)
            elif isinstance(raw, dict) and str(raw.get("text") or "").strip():
                kept.append(raw)
        return tuple(kept)
