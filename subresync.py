#!/usr/bin/env python3
"""
Subtitle Resync Suite - Main Application Entry Point
====================================================

Loads text subtitles in any of the supported legacy dialects and brings
them back in sync with playback:
- Format detection and parsing of 19 text subtitle dialects
- Fixed delay and frame-rate speed correction
- Bookmark based resynchronization with speed fitting
- Adjusted SubRip export

Usage:
    python subresync.py formats
    python subresync.py info movie.sub
    python subresync.py shift movie.sub --delay=-2.5s --speed 25->24
    python subresync.py resync movie.srt --bookmark 61s,60s
    python subresync.py play movie.srt --step 500ms

    # Help
    python subresync.py --help
    python subresync.py <command> --help
"""

import sys
import traceback
from pathlib import Path

# Add the current directory to Python path for imports
sys.path.insert(0, str(Path(__file__).parent))

from ui.cli import CLIHandler


def main():
    """
    Main application entry point.

    Parses the command line and dispatches to the CLI handler.
    """
    debug_mode = '--debug' in sys.argv or '-d' in sys.argv

    cli_handler = CLIHandler()
    cli_parser = cli_handler.create_parser()

    try:
        args = cli_parser.parse_args()
        exit_code = cli_handler.handle_command(args)
        sys.exit(exit_code)
    except SystemExit:
        # argparse calls sys.exit() for --help, --version, etc.
        raise
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if debug_mode:
            traceback.print_exc()
        sys.exit(1)


if __name__ == '__main__':
    main()
