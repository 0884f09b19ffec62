"""
Cast transport module.

pychromecast-backed implementations of the discovery and device collaborators.
"""

from .convert import (
    cast_info_to_device_info,
    metadata_from_cast,
    to_media_status_snapshot,
    to_status_snapshot,
)
from .device import ChromecastDevice
from .discovery import ChromecastDiscovery, scan

__all__ = [
    "ChromecastDevice",
    "ChromecastDiscovery",
    "scan",
    "cast_info_to_device_info",
    "metadata_from_cast",
    "to_media_status_snapshot",
    "to_status_snapshot",
]
