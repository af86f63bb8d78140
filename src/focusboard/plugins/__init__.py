"""Extension layer — plugin system via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
INVARIANT: Plugin failures are warnings, never errors.
"""

from focusboard.plugins.event_bus import EventBus
from focusboard.plugins.manager import PluginManager

__all__ = ["EventBus", "PluginManager"]
