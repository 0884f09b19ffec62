"""
Monitoring types and enumerations.

Snapshots are transient, read-only views produced per push event or per
poll tick. They are never stored beyond the formatting call.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Optional, Union


class ListenerState(Enum):
    """DeviceListener lifecycle: UNINITIALIZED -> ACTIVE -> DESTROYED."""

    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    DESTROYED = "destroyed"  # Terminal


class PollingState(Enum):
    """Polling timer state, orthogonal to ListenerState."""

    STOPPED = "stopped"
    RUNNING = "running"


class EventType(Enum):
    """Push event type tags."""

    RECEIVER_STATUS = "receiver_status"
    MEDIA_STATUS = "media_status"
    LAUNCH_ERROR = "launch_error"
    LOAD_FAILED = "load_failed"
    UNKNOWN = "unknown"


class MetadataKind(Enum):
    """Media metadata variants."""

    GENERIC = 0
    MOVIE = 1
    TV_SHOW = 2
    MUSIC_TRACK = 3
    PHOTO = 4


@dataclass(frozen=True)
class StatusSnapshot:
    """Device status at a point in time."""

    app_name: Optional[str] = None  # Running application, None when nothing runs
    volume: Optional[float] = None  # 0.0 - 1.0
    is_idle_screen: bool = False  # Backdrop/idle app counts as "not running"

    @property
    def has_running_app(self) -> bool:
        """True if a non-idle application is running."""
        return bool(self.app_name) and not self.is_idle_screen


@dataclass(frozen=True)
class GenericMetadata:
    kind: ClassVar[MetadataKind] = MetadataKind.GENERIC

    artist: Optional[str] = None
    title: Optional[str] = None
    subtitle: Optional[str] = None
    images: tuple[str, ...] = ()


@dataclass(frozen=True)
class MovieMetadata:
    kind: ClassVar[MetadataKind] = MetadataKind.MOVIE

    title: Optional[str] = None
    subtitle: Optional[str] = None
    studio: Optional[str] = None
    release_date: Optional[str] = None
    images: tuple[str, ...] = ()


@dataclass(frozen=True)
class TvShowMetadata:
    kind: ClassVar[MetadataKind] = MetadataKind.TV_SHOW

    series_title: Optional[str] = None
    season: Optional[int] = None
    episode: Optional[int] = None
    title: Optional[str] = None
    broadcast_date: Optional[str] = None
    release_date: Optional[str] = None
    images: tuple[str, ...] = ()


@dataclass(frozen=True)
class MusicTrackMetadata:
    kind: ClassVar[MetadataKind] = MetadataKind.MUSIC_TRACK

    artist: Optional[str] = None
    title: Optional[str] = None
    album_name: Optional[str] = None
    album_artist: Optional[str] = None
    composer: Optional[str] = None
    disc_number: Optional[int] = None
    track_number: Optional[int] = None
    release_date: Optional[str] = None
    images: tuple[str, ...] = ()


@dataclass(frozen=True)
class PhotoMetadata:
    kind: ClassVar[MetadataKind] = MetadataKind.PHOTO

    artist: Optional[str] = None
    title: Optional[str] = None
    creation_date: Optional[str] = None
    height: Optional[int] = None
    width: Optional[int] = None
    location_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


Metadata = Union[
    GenericMetadata,
    MovieMetadata,
    TvShowMetadata,
    MusicTrackMetadata,
    PhotoMetadata,
]

METADATA_CLASSES: dict[MetadataKind, type] = {
    MetadataKind.GENERIC: GenericMetadata,
    MetadataKind.MOVIE: MovieMetadata,
    MetadataKind.TV_SHOW: TvShowMetadata,
    MetadataKind.MUSIC_TRACK: MusicTrackMetadata,
    MetadataKind.PHOTO: PhotoMetadata,
}


@dataclass(frozen=True)
class MediaItem:
    """The item loaded on the media session."""

    content_id: Optional[str] = None
    duration: Optional[float] = None  # Seconds
    metadata: Optional[Metadata] = None


@dataclass(frozen=True)
class MediaStatusSnapshot:
    """Playback state at a point in time."""

    volume: Optional[float] = None
    current_time: Optional[float] = None  # Seconds
    player_state: Optional[str] = None
    media: Optional[MediaItem] = None  # None when nothing is loaded


@dataclass(frozen=True)
class SpontaneousEvent:
    """Push event delivered by the transport outside the polling loop."""

    type: EventType
    payload: Any = None


@dataclass(frozen=True)
class ConnectionEvent:
    """Connection state change of a device socket."""

    connected: bool
    detail: str = ""  # Transport-specific status text


@dataclass
class DeviceInfo:
    """
    Descriptive information about a discovered device.

    Used by one-shot scans (``castwatch --discover``).
    """

    name: str
    host: str
    port: int
    uuid: str = ""
    model_name: str = ""
    manufacturer: str = ""
    cast_type: str = ""

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "host": self.host,
            "port": self.port,
            "uuid": self.uuid,
            "model": self.model_name,
            "manufacturer": self.manufacturer,
            "cast_type": self.cast_type,
        }
