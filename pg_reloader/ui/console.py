"""
ReloaderConsole - Rich-based operator output.

Writes to stderr so test runner output on stdout stays clean.
"""

from typing import Optional

from rich.console import Console


class ReloaderConsole:
    """
    Rich console for pg_reloader messages.

    Levels:
    - warning(): always shown unless quiet
    - info(): shown unless quiet
    - debug(): shown only when verbose
    """

    def __init__(
        self,
        verbose: bool = False,
        quiet: bool = False,
        console: Optional[Console] = None,
    ):
        self.verbose = verbose and not quiet
        self.quiet = quiet
        self.console = console or Console(stderr=True)

    def print(self, *args, **kwargs):
        """Print to console."""
        if self.quiet:
            return
        self.console.print(*args, **kwargs)

    def info(self, message: str):
        self.print(f"[cyan]pg_reloader:[/] {message}")

    def debug(self, message: str):
        if not self.verbose:
            return
        self.print(f"[dim]pg_reloader:[/] {message}")

    def warning(self, message: str):
        self.print(f"[bold yellow]pg_reloader warning:[/] {message}")
