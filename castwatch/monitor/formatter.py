"""
Status and media-status formatting.

Pure, stateless functions that turn snapshots into flat, ordered field
dictionaries for logging. Formatting never raises: every accessor is
null-safe and absent values are kept as None.
"""

from typing import Any, Optional

from .types import MediaStatusSnapshot, MetadataKind, StatusSnapshot


ABSENT = "-"

Fields = dict[str, Any]

# (label, attribute) pairs reported per metadata variant, in output order
METADATA_FIELDS: dict[MetadataKind, tuple[tuple[str, str], ...]] = {
    MetadataKind.GENERIC: (
        ("artist", "artist"),
        ("title", "title"),
        ("subtitle", "subtitle"),
        ("images", "images"),
    ),
    MetadataKind.MOVIE: (
        ("title", "title"),
        ("subtitle", "subtitle"),
        ("studio", "studio"),
        ("release_date", "release_date"),
        ("images", "images"),
    ),
    MetadataKind.TV_SHOW: (
        ("series_title", "series_title"),
        ("season", "season"),
        ("episode", "episode"),
        ("title", "title"),
        ("broadcast_date", "broadcast_date"),
        ("release_date", "release_date"),
        ("images", "images"),
    ),
    MetadataKind.MUSIC_TRACK: (
        ("artist", "artist"),
        ("title", "title"),
        ("album_name", "album_name"),
        ("album_artist", "album_artist"),
        ("composer", "composer"),
        ("disc", "disc_number"),
        ("track", "track_number"),
        ("release_date", "release_date"),
        ("images", "images"),
    ),
    MetadataKind.PHOTO: (
        ("artist", "artist"),
        ("title", "title"),
        ("creation_date", "creation_date"),
        ("height", "height"),
        ("width", "width"),
        ("location_name", "location_name"),
        ("latitude", "latitude"),
        ("longitude", "longitude"),
    ),
}


def whole_seconds(value: Any) -> Optional[int]:
    """Truncate a seconds value to an int, None if absent or not numeric."""
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def format_status(status: Optional[StatusSnapshot]) -> Fields:
    """
    Format a device status snapshot.

    Returns:
        ``{"app": <name or None>, "volume": <level or None>}``, plus
        ``"idle": True`` when the running app is the idle screen
    """
    fields: Fields = {
        "app": getattr(status, "app_name", None) or None,
        "volume": getattr(status, "volume", None),
    }
    if fields["app"] and getattr(status, "is_idle_screen", False):
        fields["idle"] = True
    return fields


def format_metadata(metadata: Any) -> Fields:
    """
    Format the fields of one metadata variant.

    Unknown variants (and None) produce no fields.
    """
    kind = getattr(metadata, "kind", None)
    layout = METADATA_FIELDS.get(kind) if isinstance(kind, MetadataKind) else None
    if not layout:
        return {}

    fields: Fields = {}
    for label, attr in layout:
        value = getattr(metadata, attr, None)
        if attr == "images":
            value = list(value) if isinstance(value, (list, tuple)) else []
        fields[label] = value
    return fields


def format_media_status(media_status: Optional[MediaStatusSnapshot]) -> Fields:
    """
    Format a media status snapshot.

    Position and duration are truncated to whole seconds. When no media item
    is loaded, duration is None and no metadata fields are added.
    """
    media = getattr(media_status, "media", None)
    fields: Fields = {
        "volume": getattr(media_status, "volume", None),
        "current_time": whole_seconds(getattr(media_status, "current_time", None)),
        "duration": whole_seconds(getattr(media, "duration", None)),
    }
    if media is None:
        fields["media"] = None
        return fields

    fields.update(format_metadata(getattr(media, "metadata", None)))
    return fields


def render_value(value: Any) -> str:
    """Render a single field value for a log line."""
    if value is None:
        return ABSENT
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(render_value(v) for v in value) + "]"
    return str(value)


def render_fields(fields: Fields) -> str:
    """Render fields as ``key=value`` pairs separated by spaces."""
    return " ".join(f"{key}={render_value(value)}" for key, value in fields.items())
