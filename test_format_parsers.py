#!/usr/bin/env python3
"""Tests for the per-dialect subtitle parsers."""

import sys
from pathlib import Path
from typing import List, Optional, Tuple

import pytest

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent))

from core.exceptions import InvalidSelectorError
from core.format_parsers import ParserContext, SubtitleFormatFactory, strtol
from core.line_buffer import LineBuffer
from utils.constants import SubtitleFormat


def parse(format_type: SubtitleFormat, text: str,
          context: Optional[ParserContext] = None) -> List[Tuple[int, int, str]]:
    store, _ = SubtitleFormatFactory.parse(format_type, LineBuffer.from_text(text), context)
    return [(cue.start, cue.stop, cue.text) for cue in store]


def test_factory_covers_every_dialect():
    formats = SubtitleFormatFactory.supported_formats()
    assert len(formats) == 19
    assert SubtitleFormat.UNKNOWN not in formats


def test_factory_rejects_unknown():
    with pytest.raises(InvalidSelectorError):
        SubtitleFormatFactory.get_parser(SubtitleFormat.UNKNOWN)


def test_strtol_bases():
    assert strtol("1000>rest") == (1000, ">rest")
    assert strtol("0x10;") == (16, ";")
    assert strtol("010") == (8, "")
    assert strtol("abc") == (0, "abc")


class TestMicroDVD:

    def test_declared_frame_rate(self):
        context = ParserContext()
        cues = parse(SubtitleFormat.MICRODVD,
                     "{1}{1}25.000\n{25}{50}Hello|World\n{100}{}Open\n", context)
        assert cues == [
            (1_000_000, 2_000_000, "Hello\nWorld"),
            (4_000_000, -1, "Open"),
        ]
        assert context.declared_fps == 25.0

    def test_declared_rate_changes_frame_length(self):
        context = ParserContext()
        parse(SubtitleFormat.MICRODVD, "{1}{1}23.976\n{24}{48}x\n", context)
        assert context.microseconds_per_frame == 41708

    def test_override_wins_over_declared_rate(self):
        context = ParserContext(microseconds_per_frame=20_000, fps_override=50.0)
        cues = parse(SubtitleFormat.MICRODVD, "{1}{1}25\n{50}{100}x\n", context)
        assert cues == [(1_000_000, 2_000_000, "x")]
        assert context.declared_fps == 0.0


class TestSubRip:

    def test_blocks(self):
        text = ("1\n00:00:01,500 --> 00:00:03,000\nHello\nWorld\n\n"
                "2\n00:00:04.250 --> 00:00:05,000\nBye\n")
        assert parse(SubtitleFormat.SUBRIP, text) == [
            (1_500_000, 3_000_000, "Hello\nWorld"),
            (4_250_000, 5_000_000, "Bye"),
        ]

    def test_reversed_timing_is_skipped(self):
        text = ("00:00:05,000 --> 00:00:04,000\nBad\n\n"
                "00:00:06,000 --> 00:00:07,000\nGood\n\n")
        assert parse(SubtitleFormat.SUBRIP, text) == [(6_000_000, 7_000_000, "Good")]


def test_subviewer():
    text = ("[INFORMATION]\n[TITLE]Movie\n[END INFORMATION]\n"
            "00:00:01.500,00:00:03.000\nHello[br]World\n\n")
    assert parse(SubtitleFormat.SUBVIEWER, text) == [
        (1_500_000, 3_000_000, "Hello\nWorld"),
    ]


def test_vtt_optional_hours():
    text = ("WEBVTT\n\n00:01.000 --> 00:02.500\nHi\n\n"
            "01:00:00.000 --> 01:00:01.000\nLate\n")
    assert parse(SubtitleFormat.VTT, text) == [
        (1_000_000, 2_500_000, "Hi"),
        (3_600_000_000, 3_601_000_000, "Late"),
    ]


def test_dvdsubtitle_discards_unclosed_block():
    text = ("{HEAD\nDISCID=\n}\n{T 00:00:01:50\nHello\nWorld\n}\n"
            "{T 00:00:05:00\nUnclosed\n")
    assert parse(SubtitleFormat.DVDSUBTITLE, text) == [
        (1_500_000, -1, "Hello\nWorld"),
    ]


def test_mpl2_deciseconds_and_italics():
    text = "[10][25]Hello|/World\n[30][]/Italic\n"
    assert parse(SubtitleFormat.MPL2, text) == [
        (1_000_000, 2_500_000, "Hello\nWorld"),
        (3_000_000, -1, "Italic"),
    ]


def test_pjs_hundredths():
    assert parse(SubtitleFormat.PJS, '100, 250,"Hello|there"\n') == [
        (1_000_000, 2_500_000, "Hello\nthere"),
    ]


def test_psb():
    assert parse(SubtitleFormat.PSB, "{0:00:01}{0:00:03}Hello|There\n") == [
        (1_000_000, 3_000_000, "Hello\nThere"),
    ]


def test_vplayer_has_no_stop():
    assert parse(SubtitleFormat.VPLAYER, "00:00:01:Hello|World\n00:00:05 Bye\n") == [
        (1_000_000, -1, "Hello\nWorld"),
        (5_000_000, -1, "Bye"),
    ]


class TestSSA:

    HEADER = ("[Script Info]\nScriptType: v4.00\n\n[Events]\n"
              "Format: Marked, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text\n")

    def test_ssa_dialogue_and_header(self):
        text = self.HEADER + "Dialogue: Marked=0,0:00:01.50,0:00:03.00,Default,,0000,0000,0000,,Hello\n"
        store, parser = SubtitleFormatFactory.parse(
            SubtitleFormat.SSA2_4, LineBuffer.from_text(text))

        assert [(c.start, c.stop, c.text) for c in store] == [
            (1_500_000, 3_000_000, "0,0,Default,,0000,0000,0000,,Hello"),
        ]
        assert parser.header == self.HEADER

    def test_ass_keeps_layer(self):
        text = ("Dialogue: 2,0:00:01.00,0:00:02.00,Default,,0,0,0,,Hi\n"
                "Dialogue: 0,0:00:03.00,0:00:04.00,Default,,0,0,0,,There\n")
        assert parse(SubtitleFormat.ASS, text) == [
            (1_000_000, 2_000_000, "0,2,Default,,0,0,0,,Hi"),
            (3_000_000, 4_000_000, "1,0,Default,,0,0,0,,There"),
        ]

    def test_ssa1_text(self):
        text = "Dialogue: Marked=0,0:00:01.00,0:00:02.00,Default,,0,0,0,,Hi\n"
        assert parse(SubtitleFormat.SSA1, text) == [
            (1_000_000, 2_000_000, ",Default,,0,0,0,,Hi"),
        ]


class TestAQT:

    def test_markers(self):
        text = "-->> 25\nHello\nWorld\n\n-->> 75\nBye\n"
        assert parse(SubtitleFormat.AQT, text) == [
            (1_000_000, -1, "Hello\nWorld"),
            (3_000_000, -1, "Bye"),
        ]

    def test_marker_without_text(self):
        assert parse(SubtitleFormat.AQT, "-->> 25\n") == []


class TestMPSub:

    def test_time_format_is_cumulative(self):
        text = "TITLE=x\nFORMAT=TIME\n\n1 2.5\nHello\n\n0.5 1\nWorld\n\n"
        assert parse(SubtitleFormat.MPSUB, text) == [
            (1_000_000, 3_500_000, "Hello"),
            (4_000_000, 5_000_000, "World"),
        ]

    def test_frame_format(self):
        context = ParserContext()
        cues = parse(SubtitleFormat.MPSUB, "FORMAT=25\n\n25 50\nHi\n\n", context)
        assert cues == [(1_000_000, 3_000_000, "Hi")]
        assert context.declared_fps == 25.0


def test_realtext():
    text = ('<window>\n'
            '<time begin="0:00:01.50" end="0:00:03.00"/>Hello\n'
            'World\n'
            '<time begin="5"/>Bye\n'
            '<clear/>\n')
    assert parse(SubtitleFormat.REALTEXT, text) == [
        (1_500_000, 3_000_000, "Hello\nWorld"),
        (5_000_000, -1, "Bye"),
    ]


class TestSAMI:

    def test_sync_blocks(self):
        text = ("<SAMI>\n<BODY>\n"
                "<SYNC Start=1000><P Class=ENCC>Hello<br>World\n"
                "<SYNC Start=2500><P Class=ENCC>&nbsp;\n"
                "</BODY>\n</SAMI>\n")
        assert parse(SubtitleFormat.SAMI, text) == [
            (1_000_000, -1, "Hello\nWorld"),
            (2_500_000, -1, " "),
        ]

    def test_two_syncs_on_one_line(self):
        text = "<SYNC Start=1000><P>A<SYNC Start=2000><P>B\n"
        assert parse(SubtitleFormat.SAMI, text) == [
            (1_000_000, -1, "A"),
            (2_000_000, -1, "B"),
        ]


class TestJacoSub:

    def test_timing_and_text_cleanup(self):
        text = ("#T100\n"
                "0:00:01.00 0:00:02.50 D Hello~World\n"
                "@150 @300 VM {comment}Bye\\nNow\n")
        assert parse(SubtitleFormat.JACOSUB, text) == [
            (1_000_000, 2_500_000, "Hello World"),
            (1_500_000, 3_000_000, "Bye\nNow"),
        ]

    def test_shift_directive(self):
        assert parse(SubtitleFormat.JACOSUB, "#S 10\n@0 @30 D Hi\n") == [
            (10_000_000, 11_000_000, "Hi"),
        ]

    def test_continuation_lines(self):
        assert parse(SubtitleFormat.JACOSUB, "@0 @30 D One\\\n two\n") == [
            (0, 1_000_000, "One two"),
        ]


def test_dks_stop_lines():
    text = ("[00:00:01]Hello[br]World\n[00:00:03]\n"
            "[00:00:05]Next\n[00:00:07]Last\n")
    assert parse(SubtitleFormat.DKS, text) == [
        (1_000_000, 3_000_000, "Hello\nWorld"),
        (5_000_000, 7_000_000, "Next"),
    ]


def test_subviewer1_triplets():
    text = "*** START SCRIPT 1.0\n[00:00:01]\nHello\n[00:00:03]\n[00:00:05]\nBye\n"
    assert parse(SubtitleFormat.SUBVIEWER1, text) == [
        (1_000_000, 3_000_000, "Hello"),
    ]
