"""Device lifecycle and event-listener module."""

from .base import (
    ConnectionEventListener,
    DeviceHandle,
    DeviceIOError,
    DiscoveryObserver,
    DiscoverySource,
    SpontaneousEventListener,
)
from .coordinator import DiscoveryCoordinator
from .formatter import (
    format_media_status,
    format_metadata,
    format_status,
    render_fields,
)
from .listener import DeviceListener
from .timer import DEFAULT_POLL_INTERVAL_SECONDS, PollTimer
from .types import (
    ConnectionEvent,
    DeviceInfo,
    EventType,
    GenericMetadata,
    ListenerState,
    MediaItem,
    MediaStatusSnapshot,
    Metadata,
    MetadataKind,
    MovieMetadata,
    MusicTrackMetadata,
    PhotoMetadata,
    PollingState,
    SpontaneousEvent,
    StatusSnapshot,
    TvShowMetadata,
)

__all__ = [
    # Collaborator contracts
    "ConnectionEventListener",
    "DeviceHandle",
    "DeviceIOError",
    "DiscoveryObserver",
    "DiscoverySource",
    "SpontaneousEventListener",
    # Core
    "DiscoveryCoordinator",
    "DeviceListener",
    "PollTimer",
    "DEFAULT_POLL_INTERVAL_SECONDS",
    # Formatting
    "format_media_status",
    "format_metadata",
    "format_status",
    "render_fields",
    # Types
    "ConnectionEvent",
    "DeviceInfo",
    "EventType",
    "GenericMetadata",
    "ListenerState",
    "MediaItem",
    "MediaStatusSnapshot",
    "Metadata",
    "MetadataKind",
    "MovieMetadata",
    "MusicTrackMetadata",
    "PhotoMetadata",
    "PollingState",
    "SpontaneousEvent",
    "StatusSnapshot",
    "TvShowMetadata",
]
