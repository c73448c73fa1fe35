"""
User interface modules.

This package contains user interface components:
- Command-line interface (CLI)
- Console reporting of resync messages
"""

from .cli import CLIHandler, ConsoleHost

__all__ = [
    'CLIHandler',
    'ConsoleHost',
]
