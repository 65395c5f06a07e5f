"""Rich Console factory and theme for dotsnapshot output.

Consoles render into a StringIO buffer so renderers keep a
``format_result() -> str`` contract. In non-TTY environments (tests, pipes)
Rich disables color codes on its own.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

DOTSNAPSHOT_THEME = Theme(
    {
        "ds.ok": "bold green",
        "ds.error": "bold red",
        "ds.warning": "bold yellow",
        "ds.op": "bold cyan",
        "ds.key": "dim",
        "ds.name": "bold blue",
        "ds.path": "dim",
        "ds.reused": "magenta",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=DOTSNAPSHOT_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()
