"""Tests for the fact loop timing protocol and cleanup."""

from __future__ import annotations

import copy

import pytest

from popup_trivia_mcp.fact_loop import FactLoop, LoopTimings
from popup_trivia_mcp.models.trivia import FactItem
from popup_trivia_mcp.player import PlayerAdapter


class _NullHandler:
    def on_ready(self):
        pass

    def on_ended(self):
        pass

    def on_error(self, code):
        pass


def _facts(*texts: str) -> list[FactItem]:
    return [FactItem(text=t) for t in texts]


@pytest.fixture()
def adapter(clock, embed_api) -> PlayerAdapter:
    adapter = PlayerAdapter(embed_api, clock, _NullHandler())
    adapter.mount("dQw4w9WgXcQ")
    return adapter


def _loop(items, adapter, clock) -> FactLoop:
    return FactLoop(items, adapter, clock, LoopTimings())


class TestStart:
    def test_unmutes_and_resumes(self, adapter, clock, embed_api):
        loop = _loop(_facts("A"), adapter, clock)
        loop.start()
        assert embed_api.last.calls[-2:] == ["unmute", "play"]
        assert loop.state.cursor == 0
        assert loop.state.history == []
        assert loop.state.overlay_visible is False

    def test_empty_items_refused(self, adapter, clock):
        with pytest.raises(ValueError):
            _loop([], adapter, clock).start()

    def test_double_start_refused(self, adapter, clock):
        loop = _loop(_facts("A"), adapter, clock)
        loop.start()
        with pytest.raises(RuntimeError):
            loop.start()


class TestReveal:
    def test_first_reveal_after_one_second(self, adapter, clock):
        loop = _loop(_facts("A", "B"), adapter, clock)
        loop.start()
        clock.advance(0.9)
        assert loop.state.active_item is None
        clock.advance(0.1)
        assert loop.state.active_item.text == "A"
        assert loop.state.overlay_visible is True

    def test_overlay_hides_after_seven_seconds(self, adapter, clock):
        loop = _loop(_facts("A", "B"), adapter, clock)
        loop.start()
        clock.advance(1.0)
        clock.advance(6.9)
        assert loop.state.overlay_visible is True
        clock.advance(0.1)
        assert loop.state.overlay_visible is False
        assert loop.state.active_item.text == "A"

    def test_cadence_and_termination(self, adapter, clock):
        loop = _loop(_facts("A", "B", "C"), adapter, clock)
        loop.start()
        clock.advance(1.0)
        assert loop.state.cursor == 0
        clock.advance(10.0)
        assert loop.state.active_item.text == "B"
        assert loop.state.cursor == 1
        clock.advance(10.0)
        assert loop.state.active_item.text == "C"
        clock.advance(10.0)
        assert loop.finished is True
        assert loop.running is False
        assert loop.state.cursor == 3
        assert clock.pending == 0

    def test_does_not_wrap(self, adapter, clock):
        loop = _loop(_facts("A", "B"), adapter, clock)
        loop.start()
        clock.advance(300.0)
        assert [f.text for f in loop.state.history] == ["A", "B"]
        assert loop.state.cursor == 2

    def test_history_length_equals_item_count(self, adapter, clock):
        texts = [f"fact {i}" for i in range(7)]
        loop = _loop(_facts(*texts), adapter, clock)
        loop.start()
        clock.advance(1.0 + 10.0 * len(texts))
        assert [f.text for f in loop.state.history] == texts

    def test_consecutive_duplicate_not_appended(self, adapter, clock):
        loop = _loop(_facts("A", "A", "B"), adapter, clock)
        loop.start()
        clock.advance(11.0)
        assert [f.text for f in loop.state.history] == ["A"]
        assert loop.state.cursor == 1
        clock.advance(10.0)
        assert [f.text for f in loop.state.history] == ["A", "B"]

    def test_cursor_never_decreases(self, adapter, clock):
        loop = _loop(_facts("A", "B", "C"), adapter, clock)
        loop.start()
        seen = []
        for _ in range(40):
            clock.advance(1.0)
            seen.append(loop.state.cursor)
        assert seen == sorted(seen)


class TestStop:
    def test_no_mutation_after_stop(self, adapter, clock):
        loop = _loop(_facts("A", "B", "C"), adapter, clock)
        loop.start()
        clock.advance(3.0)
        loop.stop()
        before = copy.deepcopy(loop.state)
        clock.advance(1000.0)
        assert loop.state == before
        assert clock.pending == 0

    def test_stop_before_first_reveal(self, adapter, clock):
        loop = _loop(_facts("A"), adapter, clock)
        loop.start()
        loop.stop()
        clock.advance(60.0)
        assert loop.state.history == []
        assert loop.state.active_item is None

    def test_stop_is_idempotent(self, adapter, clock):
        loop = _loop(_facts("A"), adapter, clock)
        loop.start()
        loop.stop()
        loop.stop()
        assert loop.running is False
