"""Exceptions raised by the subtitle resync core."""


class SubtitleResyncError(Exception):
    """Base exception for all subtitle resync errors."""
    pass


class UnrecognizedFormatError(SubtitleResyncError):
    """No known subtitle dialect matched the probed lines."""
    pass


class EmptyStreamError(SubtitleResyncError):
    """The input stream did not contain a single line."""
    pass


class UnsupportedQueryError(SubtitleResyncError):
    """The session does not answer the requested control query."""
    pass


class InvalidSelectorError(SubtitleResyncError, ValueError):
    """A format selector name does not name a known dialect."""
    pass
