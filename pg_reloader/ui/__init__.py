"""
UI module - operator-facing output.
"""

from .console import ReloaderConsole

__all__ = ["ReloaderConsole"]
