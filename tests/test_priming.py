"""Tests for the priming sequencer."""

from __future__ import annotations

import pytest

from popup_trivia_mcp.player import PlayerAdapter, PlayerReadiness
from popup_trivia_mcp.priming import PrimingSequencer


class _Handler:
    def on_ready(self):
        pass

    def on_ended(self):
        pass

    def on_error(self, code):
        pass


@pytest.fixture()
def adapter(embed_api, clock) -> PlayerAdapter:
    adapter = PlayerAdapter(embed_api, clock, _Handler())
    adapter.mount("dQw4w9WgXcQ")
    return adapter


@pytest.fixture()
def sequencer(clock) -> PrimingSequencer:
    return PrimingSequencer(clock, pause_after=0.5)


class TestPrime:
    def test_muted_play_then_pause(self, sequencer, adapter, embed_api, clock):
        primed = []
        assert sequencer.prime(adapter, lambda: primed.append(True)) is True
        assert embed_api.last.calls == ["mute", "play"]
        assert adapter.readiness is PlayerReadiness.PRIMING

        clock.advance(0.5)
        assert embed_api.last.calls == ["mute", "play", "pause"]
        assert adapter.readiness is PlayerReadiness.PRIMED
        assert primed == [True]

    def test_second_ready_is_noop(self, sequencer, adapter, embed_api, clock):
        primed = []
        sequencer.prime(adapter, lambda: primed.append(True))
        assert sequencer.prime(adapter, lambda: primed.append(True)) is False
        clock.advance(1.0)
        assert embed_api.last.calls == ["mute", "play", "pause"]
        assert primed == [True]

    def test_ready_after_primed_is_noop(self, sequencer, adapter, embed_api, clock):
        sequencer.prime(adapter, lambda: None)
        clock.advance(0.5)
        assert sequencer.prime(adapter, lambda: None) is False
        assert adapter.readiness is PlayerReadiness.PRIMED

    def test_destroy_during_pause_window(self, sequencer, adapter, clock):
        primed = []
        sequencer.prime(adapter, lambda: primed.append(True))
        adapter.destroy()
        clock.advance(1.0)
        assert primed == []
        assert adapter.readiness is PlayerReadiness.PRIMING

    def test_remount_during_pause_window(self, sequencer, adapter, embed_api, clock):
        primed = []
        sequencer.prime(adapter, lambda: primed.append(True))
        adapter.mount("9bZkp7q19f0")
        clock.advance(1.0)
        assert primed == []
        assert embed_api.last.calls == []
