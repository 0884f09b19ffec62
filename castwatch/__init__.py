"""
CastWatch - Cast device monitoring agent.

Discovers cast devices on the local network and logs their status and
media metadata as it changes.
"""

__version__ = "0.1.0"

from .app import CastWatch
from .config import Config, load_config, ConfigError

__all__ = [
    "__version__",
    "CastWatch",
    "Config",
    "load_config",
    "ConfigError",
]
