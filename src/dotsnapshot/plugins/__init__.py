"""Extension layer — snapshot plugins discovered via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
INVARIANT: Plugin discovery failures are warnings, never errors.
"""

from dotsnapshot.plugins.base import Plugin
from dotsnapshot.plugins.hookspecs import hookimpl
from dotsnapshot.plugins.manager import PluginManager

__all__ = ["Plugin", "PluginManager", "hookimpl"]
