"""
pychromecast status conversion.

Turns pychromecast ``CastStatus``, ``MediaStatus``, ``ConnectionStatus`` and
``CastInfo`` objects into castwatch snapshot types. Inputs are read by
attribute only, so any object with the same shape converts.
"""

import logging
from typing import Any, Optional

from pychromecast.config import APP_BACKDROP
from pychromecast.socket_client import CONNECTION_STATUS_CONNECTED

from castwatch.monitor.types import (
    DeviceInfo,
    GenericMetadata,
    MediaItem,
    MediaStatusSnapshot,
    Metadata,
    MetadataKind,
    MovieMetadata,
    MusicTrackMetadata,
    PhotoMetadata,
    StatusSnapshot,
    TvShowMetadata,
)

logger = logging.getLogger(__name__)


def _int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _images(raw: Any) -> tuple[str, ...]:
    """Extract image URLs from a cast ``images`` list of ``{"url": ...}`` dicts."""
    if not isinstance(raw, list):
        return ()
    urls = []
    for image in raw:
        url = image.get("url") if isinstance(image, dict) else getattr(image, "url", None)
        if url:
            urls.append(str(url))
    return tuple(urls)


def metadata_from_cast(metadata_type: Any, data: Optional[dict]) -> Optional[Metadata]:
    """
    Build a metadata variant from a cast ``media.metadata`` dictionary.

    Args:
        metadata_type: Cast metadataType (0=generic, 1=movie, 2=tv show,
            3=music track, 4=photo)
        data: Raw metadata dictionary

    Returns:
        Metadata variant, or None for unknown types
    """
    data = data if isinstance(data, dict) else {}
    try:
        kind = MetadataKind(_int(metadata_type))
    except ValueError:
        logger.debug(f"Unknown metadata type: {metadata_type}")
        return None

    if kind == MetadataKind.GENERIC:
        return GenericMetadata(
            artist=_str(data.get("artist")),
            title=_str(data.get("title")),
            subtitle=_str(data.get("subtitle")),
            images=_images(data.get("images")),
        )
    if kind == MetadataKind.MOVIE:
        return MovieMetadata(
            title=_str(data.get("title")),
            subtitle=_str(data.get("subtitle")),
            studio=_str(data.get("studio")),
            release_date=_str(data.get("releaseDate")),
            images=_images(data.get("images")),
        )
    if kind == MetadataKind.TV_SHOW:
        return TvShowMetadata(
            series_title=_str(data.get("seriesTitle")),
            season=_int(data.get("season")),
            episode=_int(data.get("episode")),
            title=_str(data.get("title")),
            broadcast_date=_str(data.get("originalAirdate") or data.get("broadcastDate")),
            release_date=_str(data.get("releaseDate")),
            images=_images(data.get("images")),
        )
    if kind == MetadataKind.MUSIC_TRACK:
        return MusicTrackMetadata(
            artist=_str(data.get("artist")),
            title=_str(data.get("title")),
            album_name=_str(data.get("albumName")),
            album_artist=_str(data.get("albumArtist")),
            composer=_str(data.get("composer")),
            disc_number=_int(data.get("discNumber")),
            track_number=_int(data.get("trackNumber")),
            release_date=_str(data.get("releaseDate")),
            images=_images(data.get("images")),
        )
    return PhotoMetadata(
        artist=_str(data.get("artist")),
        title=_str(data.get("title")),
        creation_date=_str(data.get("creationDateTime")),
        height=_int(data.get("height")),
        width=_int(data.get("width")),
        location_name=_str(data.get("location")),
        latitude=_float(data.get("latitude")),
        longitude=_float(data.get("longitude")),
    )


def to_status_snapshot(status: Any) -> StatusSnapshot:
    """Convert a pychromecast ``CastStatus``."""
    app_id = getattr(status, "app_id", None)
    return StatusSnapshot(
        app_name=_str(getattr(status, "display_name", None)),
        volume=_float(getattr(status, "volume_level", None)),
        is_idle_screen=app_id == APP_BACKDROP,
    )


def has_media_session(status: Any) -> bool:
    """True if a pychromecast ``MediaStatus`` belongs to a live media session."""
    return getattr(status, "media_session_id", None) is not None


def to_media_status_snapshot(status: Any) -> MediaStatusSnapshot:
    """
    Convert a pychromecast ``MediaStatus``.

    The media item is None when nothing is loaded (no content id and no
    metadata).
    """
    raw_metadata = getattr(status, "media_metadata", None) or {}
    content_id = _str(getattr(status, "content_id", None))

    media: Optional[MediaItem] = None
    if content_id is not None or raw_metadata:
        media = MediaItem(
            content_id=content_id,
            duration=_float(getattr(status, "duration", None)),
            metadata=metadata_from_cast(raw_metadata.get("metadataType"), raw_metadata),
        )

    return MediaStatusSnapshot(
        volume=_float(getattr(status, "volume_level", None)),
        current_time=_float(getattr(status, "current_time", None)),
        player_state=_str(getattr(status, "player_state", None)),
        media=media,
    )


def is_connected(connection_status: Any) -> bool:
    """True if a pychromecast ``ConnectionStatus`` reports a live socket."""
    return getattr(connection_status, "status", None) == CONNECTION_STATUS_CONNECTED


def cast_info_to_device_info(cast_info: Any) -> DeviceInfo:
    """Convert a pychromecast ``CastInfo``."""
    uuid = getattr(cast_info, "uuid", None)
    host = str(getattr(cast_info, "host", "") or "")
    return DeviceInfo(
        name=getattr(cast_info, "friendly_name", None) or f"Unknown ({host})",
        host=host,
        port=_int(getattr(cast_info, "port", None)) or 8009,
        uuid=str(uuid) if uuid else "",
        model_name=getattr(cast_info, "model_name", None) or "",
        manufacturer=getattr(cast_info, "manufacturer", None) or "",
        cast_type=getattr(cast_info, "cast_type", None) or "",
    )
