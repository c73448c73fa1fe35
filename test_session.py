#!/usr/bin/env python3
"""Tests for the subtitle session: emission, controls, triggers and export."""

import io
import sys
from pathlib import Path
from typing import List
from unittest.mock import Mock

import pytest

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent))

from core.exceptions import InvalidSelectorError, UnrecognizedFormatError, UnsupportedQueryError
from core.subtitle_formats import Cue, CueStore
from core.sync_state import SpeedDelay, SyncState
from processors.cue_emitter import CueEmitter, EmittedCue
from processors.session import (
    ControlQuery, SessionHost, SessionOptions, SubtitleSession, SyncTrigger
)
from processors.srt_exporter import SRTExporter
from utils.constants import SubtitleFormat

SRT = (b"1\n00:00:00,000 --> 00:00:01,000\nHello\n\n"
       b"2\n00:00:03,000 --> 00:00:04,000\nWorld\n")


class RecordingHost(SessionHost):

    def __init__(self):
        self.messages: List[str] = []
        self.delays: List[int] = []

    def show_message(self, message: str) -> None:
        self.messages.append(message)

    def delay_changed(self, delay: int) -> None:
        self.delays.append(delay)


def open_bytes(data: bytes, **kwargs) -> SubtitleSession:
    return SubtitleSession.open(io.BytesIO(data), **kwargs)


def spaced_store() -> CueStore:
    return CueStore([Cue(s * 1_000_000, (s + 1) * 1_000_000, f"cue {s}") for s in range(4)])


class TestExport:

    def test_delay_shifts_export_and_emission(self):
        emitted: List[EmittedCue] = []
        session = open_bytes(b"1\n00:00:00,000 --> 00:00:01,000\nHello\n\n"
                             b"2\n00:00:02,000 --> 00:00:03,000\nWorld\n\n",
                             sink=emitted.append)
        assert [(c.start, c.stop, c.text) for c in session.store] == [
            (0, 1_000_000, "Hello"),
            (2_000_000, 3_000_000, "World"),
        ]

        session.set_delay(500_000)

        assert session.export_content == (
            "1\r\n00:00:00,500 --> 00:00:01,500\r\nHello\r\n\r\n"
            "2\r\n00:00:02,500 --> 00:00:03,500\r\nWorld\r\n\r\n"
        )
        assert session.emit(10_000_000)
        assert [(c.timestamp, c.duration, c.text) for c in emitted] == [
            (500_000, 1_000_000, "Hello"),
            (2_500_000, 1_000_000, "World"),
        ]

    def test_srt_with_half_second_delay(self):
        session = open_bytes(SRT)
        session.set_delay(500_000)

        assert session.export_content == (
            "1\r\n00:00:00,500 --> 00:00:01,500\r\nHello\r\n\r\n"
            "2\r\n00:00:03,500 --> 00:00:04,500\r\nWorld\r\n\r\n"
        )

    def test_unknown_stop_uses_next_start(self):
        store = CueStore([Cue(1_000_000, -1, "A"), Cue(2_000_000, 2_500_000, "B"),
                          Cue(4_000_000, -1, "C\n")])
        content = SRTExporter.render(store, SyncState())

        assert "00:00:01,000 --> 00:00:02,000\r\nA\r\n" in content
        assert content.endswith("3\r\n00:00:04,000 --> 00:00:04,000\r\nC\r\n\r\n")

    def test_negative_times_are_clamped(self):
        store = CueStore([Cue(1_000_000, 2_000_000, "A")])
        content = SRTExporter.render(store, SyncState(SpeedDelay(-1_500_000)))
        assert content.startswith("1\r\n00:00:00,000 --> 00:00:00,500\r\n")

    def test_save_export_next_to_input(self, tmp_path):
        source = tmp_path / "movie.de.srt"
        source.write_bytes(SRT)

        session = SubtitleSession.open_file(source)
        assert session.track.language == "de"
        assert session.export_path == tmp_path / "movie.de_adjusted.srt"

        written = session.save_export()
        assert written.read_bytes().startswith(b"1\r\n00:00:00,000 --> 00:00:01,000\r\n")


class TestOpen:

    def test_track_description(self):
        session = open_bytes(SRT, options=SessionOptions(description="Commentary", language="en"))
        track = session.track

        assert track.format is SubtitleFormat.SUBRIP
        assert track.codec == "subt"
        assert track.language == "en"
        assert track.description == "Commentary"
        assert track.encoding == ""
        assert track.is_file_subtitle
        assert session.length == 4_000_000

    def test_bom_marks_utf8(self):
        session = open_bytes(b"\xef\xbb\xbf" + "1\n00:00:01,000 --> 00:00:02,000\nÜber\n".encode('utf-8'))
        assert session.track.encoding == "UTF-8"
        assert session.store[0].text == "Über"

    def test_ssa_header_and_codec(self):
        data = (b"[Script Info]\nScriptType: v4.00+\n\n[Events]\n"
                b"Dialogue: 0,0:00:01.00,0:00:02.00,Default,,0,0,0,,Hi\n")
        session = open_bytes(data)
        assert session.track.format is SubtitleFormat.ASS
        assert session.track.codec == "ssa"
        assert "[Script Info]" in session.track.header

    def test_format_override_skips_detection(self):
        session = open_bytes(b"00:01.000 --> 00:02.000\nHi\n",
                             options=SessionOptions(subtitle_format="vtt"))
        assert session.track.format is SubtitleFormat.VTT
        assert [(c.start, c.text) for c in session.store] == [(1_000_000, "Hi")]

    def test_invalid_override(self):
        with pytest.raises(InvalidSelectorError):
            open_bytes(SRT, options=SessionOptions(subtitle_format="bogus"))

    def test_unrecognized_stream(self):
        with pytest.raises(UnrecognizedFormatError):
            open_bytes(b"nothing to see here\n")

    def test_empty_stream_with_override(self):
        session = open_bytes(b"", options=SessionOptions(subtitle_format="subrip"))
        assert len(session.store) == 0
        assert session.length == 0
        assert not session.emit(1_000_000)

    def test_fps_override(self):
        session = open_bytes(b"{1}{1}25\n{25}{50}Hi\n", options=SessionOptions(fps=50.0))
        assert session.store[0].start == 500_000

    def test_source_fps_used_without_hint(self):
        session = open_bytes(b"{25}{50}Hi\n", options=SessionOptions(source_fps=50.0))
        assert session.store[0].start == 500_000

    def test_cues_are_sorted_stably(self):
        session = open_bytes(b"{50}{60}B\n{25}{30}A\n{50}{70}C\n")
        assert [c.text for c in session.store] == ["A", "B", "C"]


class TestEmission:

    def test_each_cue_emitted_once_under_increasing_horizon(self):
        emitted: List[EmittedCue] = []
        emitter = CueEmitter(spaced_store(), SyncState(), emitted.append)

        horizon = 500_000
        while emitter.emit(horizon):
            horizon += 500_000

        assert [cue.timestamp for cue in emitted] == [0, 1_000_000, 2_000_000, 3_000_000]
        assert all(cue.duration == 1_000_000 for cue in emitted)
        assert emitted[0].payload == b"cue 0"

    def test_zero_horizon_emits_next_cue(self):
        emitter = CueEmitter(spaced_store(), SyncState())
        assert [c.text for c in emitter.collect(0)] == ["cue 0"]
        assert [c.text for c in emitter.collect(0)] == ["cue 1"]

    def test_empty_text_and_negative_start_are_skipped(self):
        store = CueStore([Cue(-5, 10, "early"), Cue(0, -1, ""), Cue(5, -1, "late")])
        emitted = CueEmitter(store, SyncState()).collect(100)

        assert [(c.text, c.duration) for c in emitted] == [("late", 0)]

    def test_delay_applies_to_emission(self):
        emitter = CueEmitter(spaced_store(), SyncState(SpeedDelay(250_000)))
        emitted = emitter.collect(1_500_000)
        assert [c.timestamp for c in emitted] == [250_000, 1_250_000]

    def test_session_emit_uses_pending_horizon(self):
        emitted: List[EmittedCue] = []
        session = open_bytes(SRT, sink=emitted.append)

        session.control(ControlQuery.SET_NEXT_DEMUX_TIME, 3_500_000)
        assert session.demux()
        assert [c.text for c in emitted] == ["Hello", "World"]
        assert not session.demux()


class TestControls:

    def make_session(self) -> SubtitleSession:
        session = open_bytes(SRT)
        session.store = spaced_store()
        session.emitter = CueEmitter(session.store, session.state)
        return session

    @pytest.mark.parametrize("fraction, found, time", [
        (0.0, True, 0),
        (0.5, True, 2_000_000),
        (1.0, False, None),
    ])
    def test_position_round_trip(self, fraction, found, time):
        session = self.make_session()

        assert session.set_position(fraction) is found
        assert session.get_position() == fraction
        assert session.get_time() == time

    def test_set_time_keeps_cue_still_showing(self):
        session = self.make_session()

        assert session.control(ControlQuery.SET_TIME, 2_500_000)
        assert session.control(ControlQuery.GET_TIME) == 2_000_000

    def test_seek_past_end(self):
        session = self.make_session()

        assert not session.set_time(10_000_000)
        assert session.get_time() is None
        assert session.control(ControlQuery.GET_POSITION) == 1.0

    def test_length_query(self):
        assert self.make_session().control(ControlQuery.GET_LENGTH) == 4_000_000

    @pytest.mark.parametrize("query", [
        ControlQuery.GET_PTS_DELAY,
        ControlQuery.GET_FPS,
        ControlQuery.GET_META,
        ControlQuery.GET_ATTACHMENTS,
        ControlQuery.GET_TITLE_INFO,
        ControlQuery.HAS_UNSUPPORTED_META,
        ControlQuery.CAN_RECORD,
    ])
    def test_unsupported_queries(self, query):
        with pytest.raises(UnsupportedQueryError):
            self.make_session().control(query)


class TestTriggers:

    def test_bookmarks_default_to_last_horizon(self):
        host = RecordingHost()
        session = open_bytes(SRT, host=host)
        session.emit(5_000_000)

        session.trigger(SyncTrigger.BOOKMARK_AUDIO)
        session.trigger(SyncTrigger.BOOKMARK_SUBTITLE, now=4_000_000)

        assert session.engine.current.audio_time == 5_000_000
        assert session.engine.current.subtitle_time == 4_000_000
        assert host.messages == ["Sub sync: bookmarked audio time",
                                 "Sub sync: bookmarked subtitle time"]

    def test_sync_updates_host_and_export(self):
        host = RecordingHost()
        session = open_bytes(SRT, host=host)
        session.trigger(SyncTrigger.BOOKMARK_AUDIO, now=61_000_000)
        session.trigger(SyncTrigger.BOOKMARK_SUBTITLE, now=60_000_000)

        result = session.trigger(SyncTrigger.SYNC_BOOKMARKS)

        assert result.delay == 1_000_000
        assert host.delays == [1_000_000]
        assert "00:00:01,000 --> 00:00:02,000" in session.export_content

    def test_failed_sync_does_not_notify_delay(self):
        host = RecordingHost()
        session = open_bytes(SRT, host=host)

        result = session.trigger(SyncTrigger.SYNC_BOOKMARKS)

        assert not result.applied
        assert host.delays == []
        assert host.messages[-1].startswith("Sub sync: set bookmarks first!")

    @pytest.mark.parametrize("trigger", [SyncTrigger.SPU_DELAY, SyncTrigger.SPU_DELAU])
    def test_delay_triggers(self, trigger):
        host = RecordingHost()
        session = open_bytes(SRT, host=host)

        session.trigger(trigger, value=-250_000)

        assert session.state.delay == -250_000
        assert host.delays == [-250_000]

    def test_reset(self):
        host = RecordingHost()
        session = open_bytes(SRT, host=host)
        session.set_delay(2_000_000)

        session.trigger(SyncTrigger.SYNC_RESET)

        assert session.state.delay == 0
        assert host.messages[-1] == "Sub sync: delay reset"
        assert host.delays[-1] == 0

    def test_close(self):
        session = open_bytes(SRT)
        session.close()

        assert not session.track.is_file_subtitle
        assert not session.emit(10_000_000)

    def test_host_notified_in_order(self):
        host = Mock(spec=SessionHost)
        session = open_bytes(SRT, host=host)

        session.trigger(SyncTrigger.BOOKMARK_AUDIO, now=62_000_000)
        session.trigger(SyncTrigger.BOOKMARK_SUBTITLE, now=60_000_000)
        session.trigger(SyncTrigger.SYNC_BOOKMARKS)

        host.show_message.assert_called_with("Sub sync: corrected, total delay = 2000 ms")
        assert host.show_message.call_count == 3
        host.delay_changed.assert_called_once_with(2_000_000)

    def test_delay_trigger_without_value(self):
        session = open_bytes(SRT)
        session.set_delay(750_000)

        with pytest.raises(ValueError):
            session.trigger(SyncTrigger.SPU_DELAU)
        assert session.state.delay == 750_000

    def test_close_drops_sync_state(self):
        session = open_bytes(SRT)
        session.set_speed_delay(1_000_000, 8)
        session.trigger(SyncTrigger.BOOKMARK_AUDIO, now=5_000_000)

        session.close()

        assert session.state.current == SpeedDelay()
        assert session.state.pending is None
        assert session.engine.current.audio_time == 0
        assert session.engine.previous.audio_time == 0

    def test_speed_delay_goes_through_engine(self):
        host = Mock(spec=SessionHost)
        session = open_bytes(SRT, host=host)

        session.set_speed_delay(-1_000_000, 8)

        assert session.state.current == SpeedDelay(-1_000_000, 8)
        host.delay_changed.assert_called_once_with(-1_000_000)
        # 3 s at 25 fps on 24 fps media is 2.88 s, then 1 s earlier
        assert "00:00:01,880 --> 00:00:02,840" in session.export_content

    def test_speed_delay_before_emission_keeps_first_cue(self):
        emitted: List[EmittedCue] = []
        session = open_bytes(b"1\n00:00:00,000 --> 00:00:00,000\nStart\n", sink=emitted.append)

        session.set_speed_delay(0)
        session.emit(1_000_000)

        assert [c.text for c in emitted] == ["Start"]
