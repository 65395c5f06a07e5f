"""Rich/JSON output helpers.

The CLI renders ServiceResult for humans (Rich tables and status lines) or
machines (--json). The formatter layer picks the output mode.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from dotsnapshot.services.result import ServiceResult


class OutputSettings(BaseModel):
    """Output flags taken from the CLI root."""

    model_config = {"frozen": True}

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    """Format a ServiceResult for display.

    JSON mode dumps the whole envelope; quiet mode prints one status line;
    otherwise the op-specific Rich renderer is used.
    """
    from dotsnapshot.output.renderers import render_quiet, render_result

    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2)
    if settings.quiet:
        return render_quiet(result)
    return render_result(result, verbose=settings.verbose)
