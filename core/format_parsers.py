"""
Text subtitle parsers.

One parser class per dialect. Every parser reads lines from a LineBuffer and
returns one Cue per parse_next() call, or None once its grammar can no
longer be matched before the end of input. Parsers that need to look at the
following line to finish a cue push that line back into the buffer.

Block based dialects run as a small state machine: MATCHING a timing line,
then ACCUMULATING text lines until the block terminator, then DONE.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple, Type
from utils.constants import (
    DEFAULT_MICROSECONDS_PER_FRAME, JACOSUB_DEFAULT_TIME_RESOLUTION,
    SAMI_TEXT_LIMIT, SubtitleFormat
)
from utils.logging_config import get_logger
from core.exceptions import InvalidSelectorError
from core.line_buffer import LineBuffer
from core.subtitle_formats import Cue, CueStore
from core.timing_utils import TimeConverter

logger = get_logger(__name__)

# A C-style decimal field. The lookahead stops the regex engine from giving
# digits back, so a field is always read in full like scanf would.
N = r'\s*([+-]?\d+)(?!\d)'
FLOAT = r'[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?'

_FLOAT_PREFIX = re.compile(r'\s*(' + FLOAT + ')')
_INT_PREFIX = re.compile(r'\s*([+-]?\d+)')
_STRTOL = re.compile(r'\s*([+-]?)(0[xX][0-9a-fA-F]+|0[0-7]*|[1-9]\d*)')


def parse_float_prefix(text: str) -> float:
    """Leading floating point number of ``text``, 0.0 when there is none."""
    match = _FLOAT_PREFIX.match(text)
    return float(match.group(1)) if match else 0.0


def parse_int_prefix(text: str) -> Optional[int]:
    """Leading integer of ``text``, None when there is none."""
    match = _INT_PREFIX.match(text)
    return int(match.group(1)) if match else None


def strtol(text: str) -> Tuple[int, str]:
    """
    Read an integer with automatic base detection (0x hex, leading 0 octal).

    Returns:
        Tuple of (value, unread remainder). The value is 0 and the text is
        returned unchanged when no digits are found.
    """
    match = _STRTOL.match(text)
    if not match:
        return 0, text
    sign, digits = match.groups()
    if digits[:2].lower() == '0x':
        value = int(digits, 16)
    elif digits.startswith('0'):
        value = int(digits, 8)
    else:
        value = int(digits)
    return (-value if sign == '-' else value), text[match.end():]


def _clock(h: str, m: str, s: str, fraction_us: int = 0) -> int:
    return TimeConverter.hms_to_microseconds(int(h), int(m), int(s), fraction_us)


class ParserState(Enum):
    """Phases of a block parser."""
    MATCHING = "matching"
    ACCUMULATING = "accumulating"
    DONE = "done"


@dataclass
class ParserContext:
    """Frame-rate settings shared by the frame based dialects."""
    microseconds_per_frame: int = DEFAULT_MICROSECONDS_PER_FRAME
    fps_override: float = 0.0   # Explicit user override, 0 when unset
    declared_fps: float = 0.0   # Frame rate announced inside the file


class SubtitleParser:
    """Base class for subtitle format parsers."""

    format: SubtitleFormat = SubtitleFormat.UNKNOWN

    def __init__(self, context: Optional[ParserContext] = None):
        self.context = context or ParserContext()
        self.header = ""

    def parse_next(self, buffer: LineBuffer, index: int) -> Optional[Cue]:
        """
        Parse the next cue.

        Args:
            buffer: Line source
            index: Number of cues produced so far

        Returns:
            The next Cue, or None at the end of input
        """
        raise NotImplementedError

    def parse_all(self, buffer: LineBuffer) -> CueStore:
        """Parse cues until the grammar reports the end of input."""
        store = CueStore()
        while True:
            cue = self.parse_next(buffer, len(store))
            if cue is None:
                break
            store.append(cue)
        logger.debug(f"Parsed {len(store)} {self.format.display_name} cues")
        return store


class LineParser(SubtitleParser):
    """Dialects with one complete cue per line."""

    pattern: re.Pattern

    def parse_next(self, buffer: LineBuffer, index: int) -> Optional[Cue]:
        while True:
            line = buffer.next_line()
            if line is None:
                return None
            match = self.pattern.match(line)
            if match:
                cue = self.build_cue(match, index)
                if cue is not None:
                    return cue

    def build_cue(self, match: re.Match, index: int) -> Optional[Cue]:
        """Turn a matching line into a cue, or None to keep scanning."""
        raise NotImplementedError


class BlockParser(SubtitleParser):
    """Dialects with a timing line followed by a block of text lines."""

    # Whether running out of input while accumulating still yields the cue
    end_of_input_completes = True

    def parse_next(self, buffer: LineBuffer, index: int) -> Optional[Cue]:
        state = ParserState.MATCHING
        cue: Optional[Cue] = None
        lines: List[str] = []

        while state is not ParserState.DONE:
            line = buffer.next_line()
            if state is ParserState.MATCHING:
                if line is None:
                    return None
                cue = self.match_timing(line)
                if cue is not None:
                    state = ParserState.ACCUMULATING
            elif line is None:
                if not self.end_of_input_completes:
                    return None
                state = ParserState.DONE
            elif self.ends_block(line, buffer):
                state = ParserState.DONE
            else:
                lines.append(line)

        cue.text = self.finish_text(lines)
        return cue

    def match_timing(self, line: str) -> Optional[Cue]:
        raise NotImplementedError

    def ends_block(self, line: str, buffer: LineBuffer) -> bool:
        """A blank line closes the block by default."""
        return line == ""

    def finish_text(self, lines: List[str]) -> str:
        return "\n".join(lines)


# ============================================================================
# FRAME AND LINE BASED DIALECTS
# ============================================================================

class MicroDVDParser(LineParser):
    """``{start}{stop}Line1|Line2`` with frame numbers."""

    format = SubtitleFormat.MICRODVD
    pattern = re.compile(rf'\{{{N}\}}\{{(?:{N})?\}}(.+)')

    def build_cue(self, match: re.Match, index: int) -> Optional[Cue]:
        start = int(match.group(1))
        stop = int(match.group(2)) if match.group(2) is not None else -1
        text = match.group(3)

        if start == 1 and stop == 1:
            # "{1}{1}23.976" declares the frame rate
            fps = parse_float_prefix(text)
            if fps > 0.0 and self.context.fps_override <= 0.0:
                self.context.declared_fps = fps
                self.context.microseconds_per_frame = TimeConverter.microseconds_per_frame(fps)
                logger.debug(f"MicroDVD file declares {fps} fps")
            return None

        frame = self.context.microseconds_per_frame
        return Cue(
            start=start * frame,
            stop=stop * frame if stop >= 0 else -1,
            text=text.replace('|', '\n'),
        )


class SSAParser(LineParser):
    """
    Sub Station Alpha ``Dialogue:`` records.

    Anything that is not a dialogue record goes to the header, which the
    decoder needs for styles. Dialogue text is rewritten to the decoder's
    ``ReadOrder,Layer,Style,...`` field layout.
    """

    format = SubtitleFormat.SSA2_4
    pattern = re.compile(
        rf'Dialogue:\s*([^,]{{1,15}}),{N}:{N}:{N}\.{N},{N}:{N}:{N}\.{N},(.+)'
    )

    def parse_next(self, buffer: LineBuffer, index: int) -> Optional[Cue]:
        while True:
            line = buffer.next_line()
            if line is None:
                return None
            match = self.pattern.match(line)
            if match:
                return self.build_cue(match, index)
            self.header += line + "\n"

    def build_cue(self, match: re.Match, index: int) -> Optional[Cue]:
        first, h1, m1, s1, c1, h2, m2, s2, c2, rest = match.groups()
        return Cue(
            start=_clock(h1, m1, s1, int(c1) * 10_000),
            stop=_clock(h2, m2, s2, int(c2) * 10_000),
            text=self.decoder_text(first, rest, index),
        )

    def decoder_text(self, first_field: str, rest: str, index: int) -> str:
        return f"{index},0,{rest}"


class SSA1Parser(SSAParser):
    format = SubtitleFormat.SSA1

    def decoder_text(self, first_field: str, rest: str, index: int) -> str:
        # SSA-1 lacks one field before the text
        return "," + rest


class ASSParser(SSAParser):
    format = SubtitleFormat.ASS

    def decoder_text(self, first_field: str, rest: str, index: int) -> str:
        layer = parse_int_prefix(first_field) or 0
        return f"{index},{layer},{rest}"


class VPlayerParser(LineParser):
    """``h:m:s:Line1|Line2`` without stop times."""

    format = SubtitleFormat.VPLAYER
    pattern = re.compile(rf'{N}:{N}:{N}.(.+)')

    def build_cue(self, match: re.Match, index: int) -> Optional[Cue]:
        h, m, s, text = match.groups()
        return Cue(start=_clock(h, m, s), stop=-1, text=text.replace('|', '\n'))


class MPL2Parser(LineParser):
    """``[start][stop] Line1|/Line2`` in deciseconds, ``/`` marks italics."""

    format = SubtitleFormat.MPL2
    pattern = re.compile(rf'\[{N}\]\[(?:{N})?\]\s*(\S.*)')

    def build_cue(self, match: re.Match, index: int) -> Optional[Cue]:
        start, stop, text = match.groups()
        text = re.sub(r'(^|\n)/+', r'\1', text.replace('|', '\n'))
        return Cue(
            start=int(start) * 100_000,
            stop=int(stop) * 100_000 if stop is not None else -1,
            text=text,
        )


class PJSParser(LineParser):
    """``start,stop,"text"`` with times in hundredths of a second."""

    format = SubtitleFormat.PJS
    pattern = re.compile(rf'{N},{N},"(.+)')

    def build_cue(self, match: re.Match, index: int) -> Optional[Cue]:
        start, stop, text = match.groups()
        if text.endswith('"'):
            text = text[:-1]
        return Cue(
            start=int(start) * 10_000,
            stop=int(stop) * 10_000,
            text=text.replace('|', '\n'),
        )


class PSBParser(LineParser):
    """PowerDivx ``{h:m:s}{h:m:s}Line1|Line2``."""

    format = SubtitleFormat.PSB
    pattern = re.compile(rf'\{{{N}:{N}:{N}\}}\{{{N}:{N}:{N}\}}(.+)')

    def build_cue(self, match: re.Match, index: int) -> Optional[Cue]:
        h1, m1, s1, h2, m2, s2, text = match.groups()
        return Cue(
            start=_clock(h1, m1, s1),
            stop=_clock(h2, m2, s2),
            text=text.replace('|', '\n'),
        )


# ============================================================================
# BLOCK BASED DIALECTS
# ============================================================================

class SubRipParser(BlockParser):
    """
    SubRip blocks::

        n
        h1:m1:s1,d1 --> h2:m2:s2,d2
        Line1
        Line2
        [empty line]

    The cue number is ignored. Timings whose start is not before their stop
    are skipped like any other non-timing line.
    """

    format = SubtitleFormat.SUBRIP
    timing_pattern = re.compile(r'\s*(\S+)\s+-->\s*(\S+)')
    value_pattern = re.compile(rf'{N}:{N}:{N}(?:[,.]{N})?')

    @classmethod
    def parse_timing_value(cls, token: str) -> Optional[int]:
        match = cls.value_pattern.match(token)
        if not match:
            return None
        h, m, s, ms = match.groups()
        return _clock(h, m, s, int(ms or 0) * 1000)

    def match_timing(self, line: str) -> Optional[Cue]:
        match = self.timing_pattern.match(line)
        if not match:
            return None
        start = self.parse_timing_value(match.group(1))
        stop = self.parse_timing_value(match.group(2))
        if start is None or stop is None or start >= stop:
            return None
        return Cue(start=start, stop=stop)


class SubViewerParser(BlockParser):
    """SubViewer v2 ``h1:m1:s1.d1,h2:m2:s2.d2`` blocks, ``[br]`` breaks lines."""

    format = SubtitleFormat.SUBVIEWER
    timing_pattern = re.compile(rf'{N}:{N}:{N}\.{N},{N}:{N}:{N}\.{N}')

    def match_timing(self, line: str) -> Optional[Cue]:
        match = self.timing_pattern.match(line)
        if not match:
            return None
        h1, m1, s1, d1, h2, m2, s2, d2 = match.groups()
        start = _clock(h1, m1, s1, int(d1) * 1000)
        stop = _clock(h2, m2, s2, int(d2) * 1000)
        if start >= stop:
            return None
        return Cue(start=start, stop=stop)

    def finish_text(self, lines: List[str]) -> str:
        return "\n".join(lines).replace('[br]', '\n')


class VTTParser(BlockParser):
    """WebVTT cues, hours are optional on both sides of the arrow."""

    format = SubtitleFormat.VTT
    timing_pattern = re.compile(
        rf'(?:{N}:)?{N}:{N}\.{N}\s*-->\s*(?:{N}:)?{N}:{N}\.{N}'
    )

    def match_timing(self, line: str) -> Optional[Cue]:
        match = self.timing_pattern.match(line)
        if not match:
            return None
        h1, m1, s1, d1, h2, m2, s2, d2 = match.groups()
        start = _clock(h1 or 0, m1, s1, int(d1) * 1000)
        stop = _clock(h2 or 0, m2, s2, int(d2) * 1000)
        if start >= stop:
            return None
        return Cue(start=start, stop=stop)


class DVDSubtitleParser(BlockParser):
    """``{T h:m:s:cs`` blocks closed by a line holding only ``}``."""

    format = SubtitleFormat.DVDSUBTITLE
    end_of_input_completes = False
    timing_pattern = re.compile(rf'\{{T\s*{N}:{N}:{N}:{N}')

    def match_timing(self, line: str) -> Optional[Cue]:
        match = self.timing_pattern.match(line)
        if not match:
            return None
        h, m, s, cs = match.groups()
        return Cue(start=_clock(h, m, s, int(cs) * 10_000), stop=-1)

    def ends_block(self, line: str, buffer: LineBuffer) -> bool:
        return line == "}"


class MPSubParser(BlockParser):
    """
    MPSub cumulative timing.

    ``FORMAT=TIME`` means values are seconds, ``FORMAT=<fps>`` means they
    are frames. Each data line holds two numbers: the wait since the end of
    the previous cue, then the duration of this one.
    """

    format = SubtitleFormat.MPSUB
    end_of_input_completes = False
    data_pattern = re.compile(rf'\s*({FLOAT})\s+({FLOAT})')

    def __init__(self, context: Optional[ParserContext] = None):
        super().__init__(context)
        self.total = 0.0    # Running time in hundredths of a second
        self.factor = 0.0   # Input unit to hundredths

    def match_timing(self, line: str) -> Optional[Cue]:
        if "FORMAT" in line:
            if line.startswith("FORMAT=TIME"):
                self.factor = 100.0
                return None
            if line.startswith("FORMAT=") and len(line) > len("FORMAT="):
                self._set_frame_format(parse_float_prefix(line[len("FORMAT="):]))
                return None

        match = self.data_pattern.match(line)
        if not match:
            return None

        self.total += float(match.group(1)) * self.factor
        start = int(10_000 * self.total)
        self.total += float(match.group(2)) * self.factor
        stop = int(10_000 * self.total)
        return Cue(start=start, stop=stop)

    def _set_frame_format(self, fps: float) -> None:
        if fps > 0.0 and self.context.fps_override <= 0.0:
            self.context.declared_fps = fps
            logger.debug(f"MPSub file declares {fps} fps")
        rate = self.context.fps_override if self.context.fps_override > 0.0 else fps
        self.factor = 100.0 / rate if rate > 0.0 else 1.0


class RealTextParser(BlockParser):
    """``<time begin="..." end="...">text`` followed by continuation lines."""

    format = SubtitleFormat.REALTEXT
    end_of_input_completes = False
    time_tag = re.compile(
        r'<time\s+begin="([^"]{1,11})"(?:\s*end="([^"]{1,11})")?[^>]*>(.*)',
        re.IGNORECASE
    )
    time_patterns = [
        (re.compile(rf'{N}:{N}:{N}\.{N}'), ('h', 'm', 's', 'f')),
        (re.compile(rf'{N}:{N}\.{N}'), ('m', 's', 'f')),
        (re.compile(rf'{N}\.{N}'), ('s', 'f')),
        (re.compile(rf'{N}:{N}'), ('m', 's')),
        (re.compile(rf'{N}'), ('s',)),
    ]

    def __init__(self, context: Optional[ParserContext] = None):
        super().__init__(context)
        self._first_text = ""

    @classmethod
    def parse_time(cls, value: str) -> int:
        """
        Parse a RealText clock value, fractions are hundredths.

        Returns:
            Microseconds, 0 for an empty value, -1 when unparseable
        """
        if value == "":
            return 0
        for pattern, names in cls.time_patterns:
            match = pattern.match(value)
            if match:
                fields = dict(zip(names, (int(g) for g in match.groups())))
                return _clock(fields.get('h', 0), fields.get('m', 0),
                              fields.get('s', 0), fields.get('f', 0) * 10_000)
        return -1

    def match_timing(self, line: str) -> Optional[Cue]:
        position = line.lower().find("<time")
        if position < 0:
            return None
        match = self.time_tag.match(line, position)
        if not match:
            return None

        begin, end, text = match.groups()
        start = self.parse_time(begin)
        stop = self.parse_time(end) if end is not None else -1
        self._first_text = text
        return Cue(start=max(start, 0), stop=stop if stop >= 0 else -1)

    def ends_block(self, line: str, buffer: LineBuffer) -> bool:
        if line == "":
            return True
        lowered = line.lower()
        if "<time" in lowered or "<clear/" in lowered:
            buffer.push_back()
            return True
        return False

    def finish_text(self, lines: List[str]) -> str:
        parts = ([self._first_text] if self._first_text else []) + lines
        return "\n".join(parts)


# ============================================================================
# DIALECTS WITH CUSTOM CONTROL FLOW
# ============================================================================

class SAMIParser(SubtitleParser):
    """
    SAMI markup scanner.

    Finds ``Start=``, then ``<P``, then ``>`` and copies characters until the
    next ``Start=`` tag. ``<br>`` becomes a newline, other tags are dropped,
    ``&nbsp;`` and tabs become spaces.
    """

    format = SubtitleFormat.SAMI

    def __init__(self, context: Optional[ParserContext] = None):
        super().__init__(context)
        # Unread text of a line holding the next Start= tag
        self._pending: Optional[str] = None

    @staticmethod
    def _search(buffer: LineBuffer, text: Optional[str], needle: str) -> Optional[str]:
        """Text following ``needle`` in ``text`` or, failing that, in the next lines."""
        lowered = needle.lower()
        if text is not None:
            position = text.lower().find(lowered)
            if position >= 0:
                return text[position + len(needle):]
        while True:
            line = buffer.next_line()
            if line is None:
                return None
            position = line.lower().find(lowered)
            if position >= 0:
                return line[position + len(needle):]

    def parse_next(self, buffer: LineBuffer, index: int) -> Optional[Cue]:
        pending, self._pending = self._pending, None
        s = self._search(buffer, pending, "Start=")
        if s is None:
            return None
        start_ms, s = strtol(s)

        s = self._search(buffer, s, "<P")
        if s is None:
            return None
        s = self._search(buffer, s, ">")
        if s is None:
            return None

        chars: List[str] = []
        while True:
            while s == "":
                s = buffer.next_line()
            if s is None:
                break

            c = ""
            if s[0] == "<":
                if s[:3].lower() == "<br":
                    c = "\n"
                elif "start=" in s.lower():
                    self._pending = s
                    break
                s = self._search(buffer, s, ">")
            elif s.startswith("&nbsp;"):
                c = " "
                s = s[6:]
            elif s[0] == "\t":
                c = " "
                s = s[1:]
            else:
                c = s[0]
                s = s[1:]

            if c and len(chars) < SAMI_TEXT_LIMIT:
                chars.append(c)

        return Cue(start=start_ms * 1000, stop=-1, text="".join(chars))


class AQTParser(SubtitleParser):
    """
    AQTitle: ``-->> frame`` marks the start of a cue.

    The text runs until the next marker, which is pushed back for the
    following call.
    """

    format = SubtitleFormat.AQT
    marker = re.compile(rf'-->>{N}')

    def parse_next(self, buffer: LineBuffer, index: int) -> Optional[Cue]:
        state = ParserState.MATCHING
        cue: Optional[Cue] = None
        lines: List[str] = []

        while state is not ParserState.DONE:
            line = buffer.next_line()
            if line is None:
                if state is ParserState.MATCHING or not lines:
                    return None
                break

            match = self.marker.match(line)
            if state is ParserState.MATCHING:
                if match:
                    frame = int(match.group(1))
                    cue = Cue(
                        start=TimeConverter.frames_to_microseconds(
                            frame, self.context.microseconds_per_frame),
                        stop=-1,
                    )
                    state = ParserState.ACCUMULATING
            elif match:
                buffer.push_back()
                state = ParserState.DONE
            else:
                lines.append(line)

        while lines and lines[-1] == "":
            lines.pop()
        cue.text = "\n".join(lines)
        return cue


class JacoSubParser(SubtitleParser):
    """
    JacoSub scripts.

    Timing lines come in a full ``h:m:s.f h:m:s.f`` and a short ``@f @f``
    spelling. ``#S``/``#SHIFT`` and ``#T``/``#TIMERES`` directives change the
    time shift and resolution for the cues that follow.
    """

    format = SubtitleFormat.JACOSUB
    full_timing = re.compile(rf'{N}:{N}:{N}\.{N}{N}:{N}:{N}\.{N}\s*(\S.*)')
    short_timing = re.compile(rf'@{N}\s*@{N}\s*(\S.*)')
    shift_value = re.compile(r'\s*([+-]?)(\d+)(?::(\d+))?(?::(\d+))?(?:\.(\d+))?')

    def __init__(self, context: Optional[ParserContext] = None):
        super().__init__(context)
        self.comment = 0
        self.time_resolution = JACOSUB_DEFAULT_TIME_RESOLUTION
        self.time_shift = 0

    def _seconds(self, clock_seconds: int, frames: int) -> int:
        fraction = (frames + self.time_shift) / self.time_resolution
        return int((clock_seconds + fraction) * 1_000_000)

    def _directive(self, line: str) -> None:
        if len(line) < 2:
            return
        kind = line[1].upper()
        long_form = len(line) > 2 and line[2].isalpha()

        if kind == 'S':
            match = self.shift_value.match(line[6 if long_form else 2:])
            if not match:
                return
            sign, *clock, frames = match.groups()
            fields = [int(v) for v in clock if v is not None]
            fields = [0] * (3 - len(fields)) + fields
            h, m, s = fields
            shift = (h * 3600 + m * 60 + s) * self.time_resolution + int(frames or 0)
            self.time_shift = -shift if sign == '-' else shift
            logger.debug(f"JacoSub time shift set to {self.time_shift} frames")
        elif kind == 'T':
            resolution = parse_int_prefix(line[8 if long_form else 2:])
            if resolution and resolution > 0:
                self.time_resolution = resolution
                logger.debug(f"JacoSub time resolution set to {resolution}")

    def parse_next(self, buffer: LineBuffer, index: int) -> Optional[Cue]:
        while True:
            line = buffer.next_line()
            if line is None:
                return None

            match = self.full_timing.match(line)
            if match:
                h1, m1, s1, f1, h2, m2, s2, f2, text = match.groups()
                start = self._seconds(int(h1) * 3600 + int(m1) * 60 + int(s1), int(f1))
                stop = self._seconds(int(h2) * 3600 + int(m2) * 60 + int(s2), int(f2))
                break

            match = self.short_timing.match(line)
            if match:
                f1, f2, text = match.groups()
                start = self._seconds(0, int(f1))
                stop = self._seconds(0, int(f2))
                break

            if line.startswith('#'):
                self._directive(line)
            # Anything else is a comment

        while text.endswith('\\'):
            continuation = buffer.next_line()
            if continuation is None:
                return None
            if continuation == "":
                break
            text += continuation

        return Cue(start=start, stop=stop, text=self.clean_text(text))

    def clean_text(self, text: str) -> str:
        """Strip the leading directive word, inline comments and escapes."""
        text = text.lstrip(' \t')
        if text and (text[0].isalpha() or text[0] == '['):
            space = text.find(' ')
            text = text[space:] if space >= 0 else ""
        text = text.lstrip(' \t')

        out: List[str] = []
        i = 0
        while i < len(text):
            c = text[i]
            nxt = text[i + 1] if i + 1 < len(text) else ""
            if c == '{':
                self.comment += 1
            elif c == '}':
                if self.comment:
                    self.comment = 0
                    if nxt == ' ':
                        i += 1
            elif c == '~':
                if not self.comment:
                    out.append(' ')
            elif c in ' \t':
                if nxt not in (' ', '\t') and not self.comment:
                    out.append(' ')
            elif c == '\\':
                if nxt == 'n':
                    out.append('\n')
                    i += 1
                elif nxt and nxt.upper() in ('C', 'F'):
                    i += 2
                elif nxt and nxt in 'BbIiUuDN':
                    i += 1
                elif nxt and nxt in '~{\\':
                    if not self.comment:
                        out.append(nxt)
                    i += 1
            elif not self.comment:
                out.append(c)
            i += 1

        return "".join(out)


class DKSParser(SubtitleParser):
    """``[h:m:s]text`` followed by a ``[h:m:s]`` line holding the stop time."""

    format = SubtitleFormat.DKS
    start_pattern = re.compile(rf'\[{N}:{N}:{N}\](.+)')
    stop_pattern = re.compile(rf'\[{N}:{N}:{N}\](.*)')

    def parse_next(self, buffer: LineBuffer, index: int) -> Optional[Cue]:
        while True:
            line = buffer.next_line()
            if line is None:
                return None
            match = self.start_pattern.match(line)
            if match:
                break

        h, m, s, text = match.groups()
        cue = Cue(start=_clock(h, m, s), stop=-1, text=text.replace('[br]', '\n'))

        following = buffer.next_line()
        if following is None:
            return None
        stop = self.stop_pattern.match(following)
        if stop:
            cue.stop = _clock(*stop.groups()[:3])
            if stop.group(4):
                # The stop marker also opens the next cue
                buffer.push_back()
        else:
            buffer.push_back()
        return cue


class SubViewer1Parser(SubtitleParser):
    """``[h:m:s]`` / text / ``[h:m:s]`` triplets."""

    format = SubtitleFormat.SUBVIEWER1
    marker = re.compile(rf'\[{N}:{N}:{N}\]')

    def parse_next(self, buffer: LineBuffer, index: int) -> Optional[Cue]:
        while True:
            line = buffer.next_line()
            if line is None:
                return None
            start = self.marker.match(line)
            if start:
                break

        text = buffer.next_line()
        if text is None:
            return None
        stop_line = buffer.next_line()
        if stop_line is None:
            return None

        stop = self.marker.match(stop_line)
        return Cue(
            start=_clock(*start.groups()),
            stop=_clock(*stop.groups()) if stop else -1,
            text=text,
        )


class SubtitleFormatFactory:
    """Factory for creating format-specific parsers."""

    _parsers: Dict[SubtitleFormat, Type[SubtitleParser]] = {
        SubtitleFormat.MICRODVD: MicroDVDParser,
        SubtitleFormat.SUBRIP: SubRipParser,
        SubtitleFormat.SUBVIEWER: SubViewerParser,
        SubtitleFormat.SSA1: SSA1Parser,
        SubtitleFormat.SSA2_4: SSAParser,
        SubtitleFormat.ASS: ASSParser,
        SubtitleFormat.VPLAYER: VPlayerParser,
        SubtitleFormat.SAMI: SAMIParser,
        SubtitleFormat.DVDSUBTITLE: DVDSubtitleParser,
        SubtitleFormat.MPL2: MPL2Parser,
        SubtitleFormat.AQT: AQTParser,
        SubtitleFormat.PJS: PJSParser,
        SubtitleFormat.MPSUB: MPSubParser,
        SubtitleFormat.JACOSUB: JacoSubParser,
        SubtitleFormat.PSB: PSBParser,
        SubtitleFormat.REALTEXT: RealTextParser,
        SubtitleFormat.DKS: DKSParser,
        SubtitleFormat.SUBVIEWER1: SubViewer1Parser,
        SubtitleFormat.VTT: VTTParser,
    }

    @classmethod
    def get_parser(cls, format_type: SubtitleFormat,
                   context: Optional[ParserContext] = None) -> SubtitleParser:
        """
        Create a fresh parser for a dialect.

        Args:
            format_type: Dialect to parse
            context: Frame-rate settings, shared with the caller

        Returns:
            Parser instance

        Raises:
            InvalidSelectorError: If no parser handles the format
        """
        parser_class = cls._parsers.get(format_type)
        if parser_class is None:
            raise InvalidSelectorError(f"No parser for format: {format_type.value}")
        return parser_class(context)

    @classmethod
    def parse(cls, format_type: SubtitleFormat, buffer: LineBuffer,
              context: Optional[ParserContext] = None) -> Tuple[CueStore, SubtitleParser]:
        """
        Parse a whole buffer.

        Returns:
            Tuple of (unsorted cue store, the parser that produced it)
        """
        parser = cls.get_parser(format_type, context)
        store = parser.parse_all(buffer)
        logger.info(f"Loaded {len(store)} subtitles")
        return store, parser

    @classmethod
    def supported_formats(cls) -> List[SubtitleFormat]:
        return list(cls._parsers)
