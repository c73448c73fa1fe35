#!/usr/bin/env python3
"""Tests for subtitle format detection."""

import io
import sys
from pathlib import Path

import pytest

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent))

from core.format_detection import FormatDetector, SIGNATURES
from utils.constants import PROBE_LINE_LIMIT, SubtitleFormat


@pytest.mark.parametrize("line, expected", [
    ("<SAMI>", SubtitleFormat.SAMI),
    ("  <sami>", SubtitleFormat.SAMI),
    ("{1}{25}Hello", SubtitleFormat.MICRODVD),
    ("{100}{}Open ended", SubtitleFormat.MICRODVD),
    ("00:00:01,000 --> 00:00:02,000", SubtitleFormat.SUBRIP),
    ("00:00:01.000 --> 00:00:02.000", SubtitleFormat.SUBRIP),
    ("00:00:01 --> 00:00:02,500", SubtitleFormat.SUBRIP),
    ("00:00:01 --> 00:00:02", SubtitleFormat.SUBRIP),
    ("!: This is a Sub Station Alpha v1 script.", SubtitleFormat.SSA1),
    ("ScriptType: v4.00+", SubtitleFormat.ASS),
    ("ScriptType: v4.00", SubtitleFormat.SSA2_4),
    ("Dialogue: Marked=0,0:00:01.00,0:00:02.00,Default,,0,0,0,,Hi", SubtitleFormat.SSA2_4),
    ("Dialogue: 0,0:00:01.00,0:00:02.00,Default,,0,0,0,,Hi", SubtitleFormat.ASS),
    ("[INFORMATION]", SubtitleFormat.SUBVIEWER),
    ("0:00:01.00 0:00:02.00 D Hello", SubtitleFormat.JACOSUB),
    ("@10 @20 Hello", SubtitleFormat.JACOSUB),
    ("00:00:01:Hello", SubtitleFormat.VPLAYER),
    ("00:00:01 Hello", SubtitleFormat.VPLAYER),
    ("{T 00:00:01:00", SubtitleFormat.DVDSUBTITLE),
    ("[00:00:01]Hello", SubtitleFormat.DKS),
    ("*** START SCRIPT 1.0", SubtitleFormat.SUBVIEWER1),
    ("[10][20]Hello", SubtitleFormat.MPL2),
    ("[10][]Hello", SubtitleFormat.MPL2),
    ("FORMAT=TIME", SubtitleFormat.MPSUB),
    ("FORMAT=25", SubtitleFormat.MPSUB),
    ("-->> 100", SubtitleFormat.AQT),
    ('100,200,"Hello"', SubtitleFormat.PJS),
    ("{0:00:01}{0:00:03}Hello", SubtitleFormat.PSB),
    ('<time begin="0:00:01.00">Hello', SubtitleFormat.REALTEXT),
    ("WEBVTT", SubtitleFormat.VTT),
    ("Just some dialogue", SubtitleFormat.UNKNOWN),
])
def test_detect_line(line, expected):
    assert FormatDetector.detect_line(line) is expected


def test_signature_table_order():
    assert len(SIGNATURES) == 21
    assert SIGNATURES[0][1] is SubtitleFormat.SAMI
    assert SIGNATURES[-1][1] is SubtitleFormat.VTT


def test_detect_skips_bom_and_rewinds_after_it():
    stream = io.BytesIO(b"\xef\xbb\xbfWEBVTT\n\n00:01.000 --> 00:02.000\nHi\n")
    result = FormatDetector.detect(stream)

    assert result.format is SubtitleFormat.VTT
    assert result.unicode
    assert result.recognized
    assert stream.tell() == 3


def test_detect_without_bom_rewinds_to_start():
    stream = io.BytesIO(b"1\n00:00:01,000 --> 00:00:02,000\nHello\n")
    result = FormatDetector.detect(stream)

    assert result.format is SubtitleFormat.SUBRIP
    assert not result.unicode
    assert stream.tell() == 0


def test_unrecognized_stream_rewinds_to_start():
    stream = io.BytesIO(b"\xef\xbb\xbfhello\nworld\n")
    result = FormatDetector.detect(stream)

    assert result.format is SubtitleFormat.UNKNOWN
    assert not result.recognized
    assert stream.tell() == 0


def test_probe_window_limit():
    filler = b"text\n" * (PROBE_LINE_LIMIT - 1)
    inside = io.BytesIO(filler + b"{1}{2}x\n")
    outside = io.BytesIO(filler + b"text\n" + b"{1}{2}x\n")

    assert FormatDetector.detect(inside).format is SubtitleFormat.MICRODVD
    assert FormatDetector.detect(outside).format is SubtitleFormat.UNKNOWN


def test_skip_bom():
    with_bom = io.BytesIO(b"\xef\xbb\xbfabc")
    without_bom = io.BytesIO(b"abc")

    assert FormatDetector.skip_bom(with_bom)
    assert with_bom.tell() == 3
    assert not FormatDetector.skip_bom(without_bom)
    assert without_bom.tell() == 0
