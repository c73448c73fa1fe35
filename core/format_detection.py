"""
Subtitle format detection.

This module probes the leading lines of a subtitle stream against an
ordered table of dialect signatures. The first signature that matches a
line decides the format, so more specific signatures come before the more
general ones that would also accept their lines.
"""

import io
import re
from dataclasses import dataclass
from typing import BinaryIO, Callable, List, Tuple
from utils.constants import PROBE_LINE_LIMIT, UTF8_BOM, SubtitleFormat
from utils.logging_config import get_logger

logger = get_logger(__name__)

# A C-style decimal field: optional blanks, optional sign, digits
INT = r'\s*[+-]?\d+'

LineMatcher = Callable[[str], bool]


def _contains(needle: str, ignore_case: bool = True) -> LineMatcher:
    if ignore_case:
        needle = needle.lower()
        return lambda line: needle in line.lower()
    return lambda line: needle in line


def _starts_with(prefix: str) -> LineMatcher:
    prefix = prefix.lower()
    return lambda line: line[:len(prefix)].lower() == prefix


def _matches(*patterns: str) -> LineMatcher:
    compiled = [re.compile(p) for p in patterns]
    return lambda line: any(p.match(line) for p in compiled)


def _subrip_patterns() -> List[str]:
    """Timing spellings accepted as SubRip: both sides share a separator or omit the fraction."""
    clock = f'{INT}:{INT}:{INT}'
    with_comma = f'{clock},{INT}'
    with_dot = f'{clock}\\.{INT}'
    pairs = [
        (with_comma, with_comma), (clock, with_comma), (with_comma, clock),
        (with_dot, with_dot), (clock, with_dot), (with_dot, clock),
        (clock, clock),
    ]
    return [f'{left}\\s*-->\\s*{right}' for left, right in pairs]


SIGNATURES: List[Tuple[LineMatcher, SubtitleFormat]] = [
    (_contains('<SAMI>'), SubtitleFormat.SAMI),
    (_matches(rf'\{{{INT}\}}\{{{INT}\}}', rf'\{{{INT}\}}\{{\}}'), SubtitleFormat.MICRODVD),
    (_matches(*_subrip_patterns()), SubtitleFormat.SUBRIP),
    (_starts_with('!: This is a Sub Station Alpha v1'), SubtitleFormat.SSA1),
    (_starts_with('ScriptType: v4.00+'), SubtitleFormat.ASS),
    (_starts_with('ScriptType: v4.00'), SubtitleFormat.SSA2_4),
    (_starts_with('Dialogue: Marked'), SubtitleFormat.SSA2_4),
    (_starts_with('Dialogue:'), SubtitleFormat.ASS),
    (_contains('[INFORMATION]'), SubtitleFormat.SUBVIEWER),
    (_matches(rf'{INT}:{INT}:{INT}\.{INT}\s*{INT}:{INT}:{INT}', rf'@{INT}\s*@{INT}'),
     SubtitleFormat.JACOSUB),
    (_matches(rf'{INT}:{INT}:{INT}(?::|\s)'), SubtitleFormat.VPLAYER),
    (_matches(rf'\{{T\s*{INT}:{INT}:{INT}:{INT}'), SubtitleFormat.DVDSUBTITLE),
    (_matches(rf'\[{INT}:{INT}:{INT}\].'), SubtitleFormat.DKS),
    (_contains('*** START SCRIPT', ignore_case=False), SubtitleFormat.SUBVIEWER1),
    (_matches(rf'\[{INT}\]\[{INT}\]', rf'\[{INT}\]\[\]'), SubtitleFormat.MPL2),
    (_matches(rf'FORMAT={INT}', r'FORMAT=TIME'), SubtitleFormat.MPSUB),
    (_matches(rf'-->>\s*{INT}'), SubtitleFormat.AQT),
    (_matches(rf'{INT},{INT},'), SubtitleFormat.PJS),
    (_matches(rf'\{{{INT}:{INT}:{INT}\}}'), SubtitleFormat.PSB),
    (_contains('<time'), SubtitleFormat.REALTEXT),
    (_starts_with('WEBVTT'), SubtitleFormat.VTT),
]


@dataclass
class DetectionResult:
    """Outcome of probing a subtitle stream."""
    format: SubtitleFormat
    unicode: bool = False   # A UTF-8 BOM was found and skipped

    @property
    def recognized(self) -> bool:
        return self.format is not SubtitleFormat.UNKNOWN


class FormatDetector:
    """Detects the subtitle dialect of a binary stream."""

    @staticmethod
    def detect_line(line: str) -> SubtitleFormat:
        """
        Match a single line against the signature table.

        Args:
            line: One decoded line without its terminator

        Returns:
            The first matching format, or SubtitleFormat.UNKNOWN

        Example:
            >>> FormatDetector.detect_line("{1}{25}Hello")
            <SubtitleFormat.MICRODVD: 'microdvd'>
        """
        for matcher, format_type in SIGNATURES:
            if matcher(line):
                return format_type
        return SubtitleFormat.UNKNOWN

    @staticmethod
    def skip_bom(stream: BinaryIO) -> bool:
        """
        Consume a leading UTF-8 BOM.

        Returns:
            True if a BOM was found; otherwise the stream is left at offset 0
        """
        head = stream.read(len(UTF8_BOM))
        if head == UTF8_BOM:
            logger.debug("Detected Unicode Byte Order Mark")
            return True
        FormatDetector._rewind(stream, 0)
        return False

    @staticmethod
    def detect(stream: BinaryIO) -> DetectionResult:
        """
        Detect the dialect of ``stream``.

        Up to PROBE_LINE_LIMIT lines are read. On success the stream is
        rewound to the first byte after the BOM (or to 0); when no signature
        matches it is rewound to 0.

        Args:
            stream: Seekable binary stream positioned at its start

        Returns:
            DetectionResult with the detected format and the BOM flag
        """
        unicode = FormatDetector.skip_bom(stream)
        format_type = SubtitleFormat.UNKNOWN

        logger.debug("Autodetecting subtitle format")
        for _ in range(PROBE_LINE_LIMIT):
            raw = stream.readline()
            if not raw:
                break
            line = raw.decode('utf-8', errors='replace').rstrip('\r\n')
            format_type = FormatDetector.detect_line(line)
            if format_type is not SubtitleFormat.UNKNOWN:
                break

        if format_type is SubtitleFormat.UNKNOWN:
            FormatDetector._rewind(stream, 0)
            logger.warning("Failed to recognize subtitle type")
        else:
            FormatDetector._rewind(stream, len(UTF8_BOM) if unicode else 0)
            logger.debug(f"Detected {format_type.display_name} format")

        return DetectionResult(format_type, unicode)

    @staticmethod
    def _rewind(stream: BinaryIO, offset: int) -> None:
        try:
            stream.seek(offset)
        except (OSError, io.UnsupportedOperation, ValueError) as e:
            logger.warning(f"Failed to rewind subtitle stream: {e}")
