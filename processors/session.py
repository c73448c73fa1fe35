"""
Subtitle session: one opened text subtitle stream.

A session owns everything derived from a single file: the sorted cues, the
track description, the synchronization state, the emission cursor and the
adjusted SubRip export. The host drives it through three surfaces:

- emit()/demux() to receive cues up to the playback horizon
- control() for time, position and length queries
- trigger() for the resync bookmarks and direct delay changes

Sessions are not thread-safe. emit(), control() and trigger() must be
serialized by the caller.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, Optional
from utils.constants import AUTO_FORMAT, UNICODE_ENCODING_TAG, SubtitleFormat
from utils.file_operations import FileHandler
from utils.logging_config import get_logger
from core.exceptions import (
    EmptyStreamError, InvalidSelectorError, UnrecognizedFormatError,
    UnsupportedQueryError
)
from core.format_detection import FormatDetector
from core.format_parsers import ParserContext, SubtitleFormatFactory
from core.language_detection import LanguageDetector
from core.line_buffer import LineBuffer
from core.subtitle_formats import CueStore, SubtitleTrackInfo
from core.sync_state import SyncState
from core.timing_utils import TimeConverter
from processors.cue_emitter import CueEmitter, CueSink
from processors.resync_engine import ResyncEngine, ResyncResult
from processors.srt_exporter import SRTExporter

logger = get_logger(__name__)


class ControlQuery(Enum):
    """Queries a host may send to a session."""
    GET_LENGTH = "get-length"
    GET_TIME = "get-time"
    SET_TIME = "set-time"
    GET_POSITION = "get-position"
    SET_POSITION = "set-position"
    SET_NEXT_DEMUX_TIME = "set-next-demux-time"
    GET_PTS_DELAY = "get-pts-delay"
    GET_FPS = "get-fps"
    GET_META = "get-meta"
    GET_ATTACHMENTS = "get-attachments"
    GET_TITLE_INFO = "get-title-info"
    HAS_UNSUPPORTED_META = "has-unsupported-meta"
    CAN_RECORD = "can-record"


class SyncTrigger(Enum):
    """Host variables a session listens to, keyed by variable name."""
    BOOKMARK_AUDIO = "sub-bookmarkaudio"
    BOOKMARK_SUBTITLE = "sub-bookmarksubtitle"
    SYNC_BOOKMARKS = "sub-syncbookmarks"
    SYNC_RESET = "sub-syncreset"
    SPU_DELAY = "spu-delay"
    # Distinct host event that writes the delay the same way
    SPU_DELAU = "spu-delau"


@dataclass
class SessionOptions:
    """Options applied when opening a session."""
    subtitle_format: str = AUTO_FORMAT   # Selector name or "auto"
    fps: float = 0.0                     # Frame-rate override, 0 when unset
    source_fps: float = 0.0              # Frame rate of the media, 0 when unknown
    description: str = ""                # Track description override
    language: str = ""                   # Overrides the filename guess


class SessionHost:
    """Receiver of the notifications a session sends to its host."""

    def show_message(self, message: str) -> None:
        pass

    def delay_changed(self, delay: int) -> None:
        pass


class SubtitleSession:
    """
    An opened subtitle stream.

    Example:
        >>> session = SubtitleSession.open_file(Path("movie.srt"))
        >>> session.set_delay(500_000).delay
        500000
        >>> session.emit(10_000_000)
        True
    """

    def __init__(self, store: CueStore, track: SubtitleTrackInfo,
                 sink: Optional[CueSink] = None, host: Optional[SessionHost] = None,
                 path: Optional[Path] = None):
        self.store = store
        self.track = track
        self.host = host or SessionHost()
        self.path = path
        self.state = SyncState()
        self.engine = ResyncEngine(self.state)
        self.emitter = CueEmitter(store, self.state, sink)
        self.export_content = ""
        self.export_path = FileHandler.adjusted_export_path(path) if path else None
        self.refresh_export()

    @classmethod
    def open(cls, stream: BinaryIO, path: Optional[Path] = None,
             options: Optional[SessionOptions] = None,
             sink: Optional[CueSink] = None,
             host: Optional[SessionHost] = None) -> 'SubtitleSession':
        """
        Detect, parse and prepare a subtitle stream.

        Args:
            stream: Seekable binary stream positioned at its start
            path: Location of the stream, used for the language guess and
                the export path
            options: Format and frame-rate overrides
            sink: Callable receiving emitted cues
            host: Receiver of sync messages and delay notifications

        Returns:
            Opened session

        Raises:
            UnrecognizedFormatError: If detection finds no known dialect
            InvalidSelectorError: If the format override names no dialect
        """
        options = options or SessionOptions()

        context = ParserContext()
        if options.source_fps > 0:
            context.microseconds_per_frame = TimeConverter.microseconds_per_frame(options.source_fps)
        if options.fps > 0:
            context.fps_override = options.fps
            context.microseconds_per_frame = TimeConverter.microseconds_per_frame(options.fps)
            logger.debug(f"Override subtitle fps {options.fps}")

        format_name = options.subtitle_format or AUTO_FORMAT
        if format_name.lower() != AUTO_FORMAT:
            try:
                format_type = SubtitleFormat.from_name(format_name)
            except ValueError as e:
                raise InvalidSelectorError(str(e)) from e
            logger.debug(f"Using {format_type.display_name} format by request")
            unicode = FormatDetector.skip_bom(stream)
        else:
            detection = FormatDetector.detect(stream)
            if not detection.recognized:
                raise UnrecognizedFormatError("Failed to recognize subtitle type")
            format_type = detection.format
            unicode = detection.unicode

        try:
            buffer = LineBuffer.load(stream, 'utf-8' if unicode else None)
        except EmptyStreamError:
            logger.warning("Subtitle stream is empty")
            buffer = LineBuffer([])

        store, parser = SubtitleFormatFactory.parse(format_type, buffer, context)
        store.fix()

        language = options.language
        if not language and path is not None:
            language = LanguageDetector.language_from_filename(path) or ""

        track = SubtitleTrackInfo(
            format=format_type,
            codec="ssa" if format_type.is_ssa else "subt",
            language=language,
            description=options.description,
            encoding=UNICODE_ENCODING_TAG if unicode else "",
            header=parser.header,
        )
        logger.debug(f"Opened {track}")
        return cls(store, track, sink=sink, host=host, path=path)

    @classmethod
    def open_file(cls, path: Path, options: Optional[SessionOptions] = None,
                  sink: Optional[CueSink] = None,
                  host: Optional[SessionHost] = None) -> 'SubtitleSession':
        """Open a subtitle file from disk."""
        with open(path, 'rb') as stream:
            return cls.open(stream, path=path, options=options, sink=sink, host=host)

    def close(self) -> None:
        """Release the cues and drop every correction and bookmark."""
        self.track.is_file_subtitle = False
        self.engine.reset()
        self.store = CueStore()
        self.emitter = CueEmitter(self.store, self.state)
        self.export_content = ""

    # Emission

    def emit(self, horizon: Optional[int] = None) -> bool:
        """Emit every cue due before ``horizon``; False at end of stream."""
        return self.emitter.emit(horizon)

    demux = emit

    # Controls

    @property
    def length(self) -> int:
        return self.store.length

    def get_time(self) -> Optional[int]:
        """Adjusted start of the next cue to emit, None past the end."""
        if self.emitter.exhausted:
            return None
        return self.state.adjust(self.store[self.emitter.cursor].start)

    def set_time(self, when: int) -> bool:
        """
        Seek to ``when``.

        Returns:
            False when no cue remains after ``when``
        """
        if not self.emitter.seek(when):
            return False
        self.refresh_export()
        return True

    def get_position(self) -> float:
        """Fraction of the length reached by the cursor, 1.0 past the end."""
        if self.emitter.exhausted:
            return 1.0
        if self.length <= 0:
            return 0.0
        return self.state.adjust(self.store[self.emitter.cursor].start) / self.length

    def set_position(self, position: float) -> bool:
        return self.emitter.seek_position(position * self.length)

    def set_next_demux_time(self, when: int) -> None:
        self.emitter.set_next_horizon(when)

    def control(self, query: ControlQuery, value: Any = None) -> Any:
        """
        Answer a host control query.

        Raises:
            UnsupportedQueryError: For queries a text subtitle cannot answer
        """
        if query is ControlQuery.GET_LENGTH:
            return self.length
        if query is ControlQuery.GET_TIME:
            return self.get_time()
        if query is ControlQuery.SET_TIME:
            return self.set_time(value)
        if query is ControlQuery.GET_POSITION:
            return self.get_position()
        if query is ControlQuery.SET_POSITION:
            return self.set_position(value)
        if query is ControlQuery.SET_NEXT_DEMUX_TIME:
            self.set_next_demux_time(value)
            return None
        raise UnsupportedQueryError(f"Unsupported control query: {query.value}")

    # Resync

    def trigger(self, trigger: SyncTrigger, now: Optional[int] = None,
                value: Optional[int] = None) -> Optional[ResyncResult]:
        """
        React to a host variable change.

        Args:
            trigger: Which variable changed
            now: Current playback time, defaults to the last emission horizon
            value: New delay in microseconds for the delay triggers

        Returns:
            ResyncResult for the triggers that change the sync state

        Raises:
            ValueError: If a delay trigger carries no value
        """
        if now is None:
            now = self.emitter.last_horizon

        if trigger is SyncTrigger.BOOKMARK_AUDIO:
            self.host.show_message(self.engine.bookmark_audio(now))
            return None
        if trigger is SyncTrigger.BOOKMARK_SUBTITLE:
            self.host.show_message(self.engine.bookmark_subtitle(now))
            return None

        if trigger is SyncTrigger.SYNC_BOOKMARKS:
            result = self.engine.sync_bookmarks()
        elif trigger is SyncTrigger.SYNC_RESET:
            result = self.engine.reset()
        else:
            if value is None:
                raise ValueError(f"{trigger.value} needs a delay value")
            result = self.engine.set_delay(value)

        if result.message:
            self.host.show_message(result.message)
        if result.applied:
            self._sync_changed()
        return result

    def set_delay(self, delay: int) -> ResyncResult:
        return self.trigger(SyncTrigger.SPU_DELAY, value=delay)

    def set_speed_delay(self, delay: int, speed_index: int = 0) -> ResyncResult:
        """Apply an explicit delay and speed table index, as a confirmed sync would."""
        result = self.engine.set_speed_delay(delay, speed_index)
        self._sync_changed()
        return result

    def _sync_changed(self) -> None:
        self.host.delay_changed(self.state.delay)
        # Nothing emitted yet, the cursor is already at the first cue
        if self.emitter.cursor > 0 or self.emitter.last_horizon > 0:
            self.emitter.seek(self.emitter.last_horizon)
        self.refresh_export()

    # Export

    def refresh_export(self) -> str:
        self.export_content = SRTExporter.render(self.store, self.state)
        return self.export_content

    def save_export(self, output_path: Optional[Path] = None,
                    create_backup: bool = False) -> Path:
        """
        Write the adjusted SubRip export.

        Raises:
            ValueError: If no output path is given and the session has no path
        """
        target = output_path or self.export_path
        if target is None:
            raise ValueError("No output path for the adjusted export")
        return SRTExporter.save(self.export_content, target, create_backup)
