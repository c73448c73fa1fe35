"""
Command-line interface for the Subtitle Resync Suite.

This module provides CLI access to format detection, inspection, offset and
speed shifting, bookmark resynchronization and emission playback.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple
from utils.constants import APP_NAME, APP_VERSION, APP_DESCRIPTION
from utils.logging_config import setup_logging, get_logger
from core.exceptions import SubtitleResyncError
from core.format_detection import FormatDetector
from core.format_parsers import SubtitleFormatFactory
from core.timing_utils import TimeConverter
from processors.cue_emitter import EmittedCue
from processors.session import SessionHost, SessionOptions, SubtitleSession, SyncTrigger
from processors.timing_adjuster import TimingAdjuster

logger = get_logger(__name__)


def setup_cli_logging(verbose: bool = False, debug: bool = False,
                      use_colors: bool = True) -> logging.Logger:
    """Set up logging for CLI operations."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    return setup_logging(level=level, use_colors=use_colors)


def parse_bookmark(value: str) -> Tuple[int, int]:
    """Parse an ``AUDIO,SUBTITLE`` bookmark pair into microseconds."""
    parts = value.split(',')
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"Expected AUDIO,SUBTITLE, got: {value}")
    try:
        return (TimingAdjuster.parse_offset_string(parts[0]),
                TimingAdjuster.parse_offset_string(parts[1]))
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


class ConsoleHost(SessionHost):
    """Prints session messages to stdout."""

    def show_message(self, message: str) -> None:
        print(message)

    def delay_changed(self, delay: int) -> None:
        logger.debug(f"Delay changed to {delay // 1000} ms")


class CLIHandler:
    """Handles command-line interface operations."""

    def __init__(self):
        """Initialize the CLI handler."""
        self.adjuster = TimingAdjuster(create_backup=False)

    def create_parser(self) -> argparse.ArgumentParser:
        """
        Create the main argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog='subresync',
            description=APP_DESCRIPTION,
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Show the detected format and the first cues
  subresync info movie.sub

  # Delay by 2.5 seconds and convert 25 fps timing to 24 fps
  subresync shift movie.sub --delay 2.5s --speed 25->24

  # Resync from two bookmark pairs (audio heard, subtitle shown)
  subresync resync movie.srt --bookmark 61s,60s --bookmark 578.4s,600s --confirm
            """
        )

        parser.add_argument('--version', action='version', version=f'{APP_NAME} {APP_VERSION}')
        parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose output')
        parser.add_argument('-d', '--debug', action='store_true', help='Enable debug output')
        parser.add_argument('--no-colors', action='store_true', help='Disable colored output')

        subparsers = parser.add_subparsers(dest='command', help='Available commands')

        subparsers.add_parser('formats', help='List supported subtitle formats')

        detect_parser = subparsers.add_parser('detect', help='Detect the format of a subtitle file')
        detect_parser.add_argument('input', type=Path, help='Subtitle file')

        info_parser = subparsers.add_parser('info', help='Show subtitle file details')
        info_parser.add_argument('input', type=Path, help='Subtitle file')
        info_parser.add_argument('-n', '--count', type=int, default=5,
                                 help='Number of cues to show (default: 5)')
        self._add_open_options(info_parser)

        self._add_shift_parser(subparsers)
        self._add_resync_parser(subparsers)
        self._add_play_parser(subparsers)

        return parser

    def _add_open_options(self, parser: argparse.ArgumentParser):
        """Options controlling how a subtitle file is opened."""
        parser.add_argument('--format', default='auto',
                            help='Subtitle format selector (default: auto)')
        parser.add_argument('--fps', type=float, default=0.0,
                            help='Override the frame rate of frame based formats')

    def _add_shift_parser(self, subparsers):
        """Add shift command parser."""
        shift_parser = subparsers.add_parser(
            'shift',
            help='Write an adjusted SubRip copy with a delay and speed ratio',
            description='Apply a delay and speed ratio and export as SubRip'
        )
        shift_parser.add_argument('input', type=Path, help='Subtitle file')
        shift_parser.add_argument('--delay', default='0',
                                  help='Delay: 1500ms, 2.5s, 00:00:02,500 or plain milliseconds')
        shift_parser.add_argument('--speed', default='0',
                                  help='Speed ratio table entry, e.g. 25->24 or its index')
        shift_parser.add_argument('-o', '--output', type=Path, help='Output file path')
        shift_parser.add_argument('--backup', action='store_true',
                                  help='Back up an existing output file')
        self._add_open_options(shift_parser)

    def _add_resync_parser(self, subparsers):
        """Add resync command parser."""
        resync_parser = subparsers.add_parser(
            'resync',
            help='Resynchronize from bookmark pairs',
            description='Replay bookmark pairs through the resync engine and export'
        )
        resync_parser.add_argument('input', type=Path, help='Subtitle file')
        resync_parser.add_argument('-b', '--bookmark', type=parse_bookmark, action='append',
                                   default=[], metavar='AUDIO,SUBTITLE',
                                   help='Time a line is heard and time its subtitle shows')
        resync_parser.add_argument('--confirm', action='store_true',
                                   help='Accept a proposed speed correction')
        resync_parser.add_argument('-o', '--output', type=Path, help='Output file path')
        self._add_open_options(resync_parser)

    def _add_play_parser(self, subparsers):
        """Add play command parser."""
        play_parser = subparsers.add_parser(
            'play',
            help='Print cues as they would be emitted during playback'
        )
        play_parser.add_argument('input', type=Path, help='Subtitle file')
        play_parser.add_argument('--step', default='1s', help='Horizon step (default: 1s)')
        play_parser.add_argument('--delay', default='0', help='Delay to apply first')
        play_parser.add_argument('--until', help='Stop after this playback time')
        self._add_open_options(play_parser)

    def handle_command(self, args) -> int:
        """
        Handle the parsed command-line arguments.

        Args:
            args: Parsed arguments from argparse

        Returns:
            Exit code (0 for success, non-zero for failure)
        """
        setup_cli_logging(args.verbose, args.debug, not args.no_colors)

        if not args.command:
            logger.error("No command specified. Use --help for usage information.")
            return 1

        try:
            if args.command == 'formats':
                return self._handle_formats(args)
            elif args.command == 'detect':
                return self._handle_detect(args)
            elif args.command == 'info':
                return self._handle_info(args)
            elif args.command == 'shift':
                return self._handle_shift(args)
            elif args.command == 'resync':
                return self._handle_resync(args)
            elif args.command == 'play':
                return self._handle_play(args)
            else:
                logger.error(f"Unknown command: {args.command}")
                return 1

        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 1
        except (SubtitleResyncError, ValueError, OSError) as e:
            logger.error(str(e))
            return 1
        except Exception as e:
            logger.error(f"Unexpected error: {e}")
            if args.debug:
                import traceback
                traceback.print_exc()
            return 1

    def _options(self, args) -> SessionOptions:
        return SessionOptions(subtitle_format=args.format, fps=args.fps)

    def _open(self, args, host: Optional[SessionHost] = None, sink=None) -> Optional[SubtitleSession]:
        if not args.input.exists():
            logger.error(f"Input file not found: {args.input}")
            return None
        return SubtitleSession.open_file(args.input, self._options(args), sink=sink, host=host)

    def _handle_formats(self, args) -> int:
        """Handle formats command."""
        for format_type in SubtitleFormatFactory.supported_formats():
            print(f"  {format_type.value:<12} {format_type.display_name}")
        return 0

    def _handle_detect(self, args) -> int:
        """Handle detect command."""
        if not args.input.exists():
            logger.error(f"Input file not found: {args.input}")
            return 1

        with open(args.input, 'rb') as stream:
            result = FormatDetector.detect(stream)

        if not result.recognized:
            print(f"{args.input.name}: unknown format")
            return 1

        bom = " (UTF-8 BOM)" if result.unicode else ""
        print(f"{args.input.name}: {result.format.display_name} [{result.format.value}]{bom}")
        return 0

    def _handle_info(self, args) -> int:
        """Handle info command."""
        session = self._open(args)
        if session is None:
            return 1

        track = session.track
        print(f"File: {args.input}")
        print(f"Format: {track.format.display_name}")
        print(f"Cues: {len(session.store)}")
        print(f"Length: {TimeConverter.format_duration(session.length)}")
        print(f"Codec: {track.codec}")
        if track.language:
            print(f"Language: {track.language}")
        if track.encoding:
            print(f"Encoding: {track.encoding}")

        for cue in list(session.store)[:max(args.count, 0)]:
            text = cue.text.replace('\n', ' | ')
            print(f"  {cue.format_time_range()}  {text}")
        return 0

    def _handle_shift(self, args) -> int:
        """Handle shift command."""
        if not args.input.exists():
            logger.error(f"Input file not found: {args.input}")
            return 1

        delay = TimingAdjuster.parse_offset_string(args.delay)
        speed_index = TimingAdjuster.parse_speed(args.speed)

        self.adjuster.create_backup = args.backup
        target = self.adjuster.adjust_file(
            input_path=args.input,
            delay=delay,
            speed_index=speed_index,
            output_path=args.output,
            options=self._options(args),
            host=ConsoleHost(),
        )
        print(f"Wrote {target}")
        return 0

    def _handle_resync(self, args) -> int:
        """Handle resync command."""
        if not args.bookmark:
            logger.error("At least one --bookmark is required")
            return 1

        session = self._open(args, host=ConsoleHost())
        if session is None:
            return 1

        for audio_time, subtitle_time in args.bookmark:
            session.trigger(SyncTrigger.BOOKMARK_AUDIO, now=audio_time)
            session.trigger(SyncTrigger.BOOKMARK_SUBTITLE, now=subtitle_time)
            session.trigger(SyncTrigger.SYNC_BOOKMARKS)

        if args.confirm and session.state.pending is not None:
            session.trigger(SyncTrigger.SYNC_BOOKMARKS)

        print(f"Final correction: {session.state.describe()}")
        target = session.save_export(args.output)
        print(f"Wrote {target}")
        return 0

    def _handle_play(self, args) -> int:
        """Handle play command."""
        step = TimingAdjuster.parse_offset_string(args.step)
        if step <= 0:
            logger.error("Step must be positive")
            return 1
        until = TimingAdjuster.parse_offset_string(args.until) if args.until else None

        emitted: List[EmittedCue] = []
        session = self._open(args, host=ConsoleHost(), sink=emitted.append)
        if session is None:
            return 1
        session.set_speed_delay(TimingAdjuster.parse_offset_string(args.delay))

        horizon = step
        while until is None or horizon <= until:
            if not session.emit(horizon):
                break
            for cue in emitted:
                text = cue.text.replace('\n', ' | ')
                print(f"[{TimeConverter.milliseconds_to_readable(horizon // 1000)}] "
                      f"{TimeConverter.microseconds_to_srt(cue.timestamp)} "
                      f"+{cue.duration // 1000}ms  {text}")
            emitted.clear()
            horizon += step
        return 0


def main():
    """Main entry point for CLI."""
    cli = CLIHandler()
    parser = cli.create_parser()
    args = parser.parse_args()

    exit_code = cli.handle_command(args)
    sys.exit(exit_code)


if __name__ == '__main__':
    main()
