"""
Canonical tag set derived from a remote track record
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from ..netease.models import TrackDetail


# The service's home timezone; publish timestamps are midnight CST for most albums
SERVICE_TIMEZONE = timezone(timedelta(hours=8), name="CST")

DEFAULT_MAX_ARTISTS = 5


@dataclass(frozen=True)
class CanonicalTags:
    """Normalized fields written into an audio file"""
    title: str
    album: str
    year: int
    artist: str
    disc: str
    track: int

    def as_vorbis_comments(self) -> dict:
        """Comment fields for FLAC, in writing order"""
        return {
            'TITLE': self.title,
            'ALBUM': self.album,
            'DATE': str(self.year),
            'ARTIST': self.artist,
            'TRACKNUMBER': str(self.track),
        }


def release_year(publish_time_ms: int) -> int:
    """Calendar year of a millisecond timestamp in the service timezone"""
    return datetime.fromtimestamp(publish_time_ms / 1000, tz=SERVICE_TIMEZONE).year


def join_artists(names, max_artists: int = DEFAULT_MAX_ARTISTS) -> str:
    """First `max_artists` names in order, joined by ", " (duplicates kept)"""
    return ", ".join(names[:max_artists])


def parse_track_detail(detail: TrackDetail, max_artists: int = DEFAULT_MAX_ARTISTS) -> CanonicalTags:
    """
    Derive canonical tags from a track record

    Pure function of its input. Malformed records are not handled here.

    Args:
        detail: Remote track record
        max_artists: Upper bound on joined artist names

    Returns:
        CanonicalTags
    """
    return CanonicalTags(
        title=detail.name,
        album=detail.album_name,
        year=release_year(detail.publish_time),
        artist=join_artists(detail.artist_names, max_artists),
        disc=detail.disc,
        track=detail.track,
    )
