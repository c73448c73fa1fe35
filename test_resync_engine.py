#!/usr/bin/env python3
"""Tests for bookmark driven resynchronization."""

import sys
from pathlib import Path

import pytest

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent))

from core.sync_state import SpeedDelay
from processors.resync_engine import ResyncEngine

SECOND = 1_000_000


def bookmark(engine: ResyncEngine, audio: int, subtitle: int):
    engine.bookmark_audio(audio)
    engine.bookmark_subtitle(subtitle)
    return engine.sync_bookmarks()


def test_delay_only_correction():
    engine = ResyncEngine()
    result = bookmark(engine, 61 * SECOND, 60 * SECOND)

    assert result.applied
    assert engine.state.delay == SECOND
    assert result.message == "Sub sync: corrected, total delay = 1000 ms"
    assert engine.previous.audio_time == 61 * SECOND
    assert engine.current.audio_time == 0


def test_missing_bookmark_leaves_state_alone():
    engine = ResyncEngine()
    engine.bookmark_audio(5 * SECOND)
    result = engine.sync_bookmarks()

    assert not result.applied
    assert engine.state.delay == 0
    assert result.message == "Sub sync: set bookmarks first! (delay=0 ms)"


def test_speed_fit_proposal_then_confirmation():
    # Subtitles timed for 25 fps against 24 fps media, then delayed 2.4 s
    engine = ResyncEngine()

    first = bookmark(engine, 60 * SECOND, 60 * SECOND)
    assert first.delay == 0

    second = bookmark(engine, 578_400_000, 600 * SECOND)
    assert second.proposal == SpeedDelay(delay=2_400_000, speed_index=8)
    assert second.message == 'Press "Sync subtitles" again to correct fps: 25->24 fps'
    # The delay-only correction is applied meanwhile
    assert engine.state.delay == -21_600_000
    assert engine.state.speed_index == 0
    assert engine.state.pending == second.proposal

    third = engine.sync_bookmarks()
    assert third.applied
    assert engine.state.delay == 2_400_000
    assert engine.state.speed_index == 8
    assert engine.state.pending is None
    assert third.message == "Sub sync: corrected, delay = 2400 ms / 25->24 fps"


def test_new_bookmark_discards_pending_proposal():
    engine = ResyncEngine()
    bookmark(engine, 60 * SECOND, 60 * SECOND)
    bookmark(engine, 578_400_000, 600 * SECOND)
    assert engine.state.pending is not None

    engine.bookmark_audio(700 * SECOND)
    engine.sync_bookmarks()
    assert engine.state.pending is None


def test_short_interval_gives_no_fit():
    engine = ResyncEngine()
    bookmark(engine, 10 * SECOND, 10 * SECOND)
    engine.bookmark_audio(29 * SECOND)
    engine.bookmark_subtitle(30 * SECOND)

    assert engine.compute_speed_and_delay() is None


def test_refit_needs_longer_interval_once_speed_is_set():
    engine = ResyncEngine()
    engine.state.current = SpeedDelay(0, 8)
    bookmark(engine, 60 * SECOND, 60 * SECOND)
    engine.bookmark_audio(110 * SECOND)
    engine.bookmark_subtitle(120 * SECOND)

    assert engine.compute_speed_and_delay() is None


def test_degenerate_samples_are_rejected():
    engine = ResyncEngine()
    engine.previous.audio_time = 100 * SECOND
    engine.previous.subtitle_time = 50 * SECOND
    engine.current.audio_time = 100 * SECOND
    engine.current.subtitle_time = 95 * SECOND

    assert engine.compute_speed_and_delay() is None


def test_ratio_outside_tolerance_is_rejected():
    engine = ResyncEngine()
    bookmark(engine, 60 * SECOND, 60 * SECOND)
    # Fitted speed 2.0 matches no table entry
    engine.bookmark_audio(90 * SECOND)
    engine.bookmark_subtitle(120 * SECOND)

    assert engine.compute_speed_and_delay() is None


def test_reset():
    engine = ResyncEngine()
    engine.state.current = SpeedDelay(3 * SECOND, 8)
    engine.state.pending = SpeedDelay(1, 2)
    engine.bookmark_audio(5 * SECOND)

    result = engine.reset()

    assert result.message == "Sub sync: delay reset"
    assert engine.state.current == SpeedDelay()
    assert engine.state.pending is None
    assert engine.current.audio_time == 0
    assert engine.previous.audio_time == 0


def test_set_delay_keeps_speed():
    engine = ResyncEngine()
    engine.state.current = SpeedDelay(0, 8)
    engine.set_delay(-750_000)

    assert engine.state.current == SpeedDelay(-750_000, 8)


def test_set_speed_delay():
    engine = ResyncEngine()
    result = engine.set_speed_delay(1_200_000, 8)

    assert result.applied
    assert engine.state.current == SpeedDelay(1_200_000, 8)
    with pytest.raises(IndexError):
        engine.set_speed_delay(0, 13)
