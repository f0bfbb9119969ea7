"""Tests for the verdict and fact models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from popup_trivia_mcp.models.trivia import FactItem, GenerationVerdict


class TestFactItem:
    def test_wire_aliases(self):
        item = FactItem.model_validate(
            {"text": "Directed by Spike Jonze.", "sourceUrl": "https://en.wikipedia.org/x", "sourceTitle": "Wikipedia"}
        )
        assert item.source_url == "https://en.wikipedia.org/x"
        assert item.source_title == "Wikipedia"

    def test_blank_text_rejected(self):
        with pytest.raises(ValidationError):
            FactItem(text="   ")

    def test_empty_sources_become_none(self):
        item = FactItem(text="Released in 1991.", source_url="", source_title=" ")
        assert item.source_url is None
        assert item.source_title is None

    def test_frozen(self):
        item = FactItem(text="Released in 1991.")
        with pytest.raises(ValidationError):
            item.text = "changed"


class TestGenerationVerdict:
    def test_parses_wire_shape(self):
        verdict = GenerationVerdict.model_validate({
            "isValidMusicVideo": True,
            "isMusicVideoUnsure": False,
            "videoTitle": "Nirvana - Smells Like Teen Spirit",
            "facts": [{"text": "Filmed in Culver City."}],
        })
        assert verdict.accepted is True
        assert verdict.video_title == "Nirvana - Smells Like Teen Spirit"
        assert [f.text for f in verdict.items] == ["Filmed in Culver City."]

    def test_missing_fields_default(self):
        verdict = GenerationVerdict.model_validate({"isValidMusicVideo": False})
        assert verdict.uncertain is False
        assert verdict.items == ()
        assert verdict.reason is None

    def test_null_facts_and_unsure(self):
        verdict = GenerationVerdict.model_validate(
            {"isValidMusicVideo": True, "isMusicVideoUnsure": None, "facts": None}
        )
        assert verdict.uncertain is False
        assert verdict.items == ()

    def test_blank_facts_dropped(self):
        verdict = GenerationVerdict.model_validate({
            "isValidMusicVideo": True,
            "facts": [{"text": ""}, {"text": "  "}, {"sourceUrl": "https://x"}, {"text": "Kept."}],
        })
        assert [f.text for f in verdict.items] == ["Kept."]
