"""
Data models for NetEase Cloud Music API records

Only the handful of fields the sync pipeline consumes are modelled:

- ContainerKind: the two audio containers the pipeline knows how to tag
- ResourceStatus: whether a track's audio resource can be downloaded at all
- TrackDetail: one `/song/detail` song record
- DownloadInfo: one `/song/url` entry
- LyricsPayload: one `/lyric` response

Every model is built through a `from_api_data()` factory. TrackDetail is
strict (a malformed record raises KeyError/TypeError to the caller); the
other factories fall back to defaults because the API omits fields freely.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union


TrackId = Union[int, str]


class ContainerKind(Enum):
    """
    Supported audio containers

    Each member carries (extension, mime type, magic-byte prefix). The MP3
    prefix is only the tag header; bare MPEG frames are recognised by
    `utils.validation.detect_container` through the frame sync bits.
    """
    MP3 = ("mp3", "audio/mpeg", b"ID3")
    FLAC = ("flac", "audio/flac", b"fLaC")

    def __init__(self, extension: str, mime: str, signature: bytes):
        self.extension = extension
        self.mime = mime
        self.signature = signature

    @property
    def suffix(self) -> str:
        return f".{self.extension}"

    @classmethod
    def from_extension(cls, extension: Optional[str]) -> Optional['ContainerKind']:
        """Match an extension such as "flac", ".MP3" (None if unsupported)"""
        if not extension:
            return None
        extension = extension.lower().lstrip('.')
        for kind in cls:
            if kind.extension == extension:
                return kind
        return None

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> Optional['ContainerKind']:
        return cls.from_extension(Path(str(path)).suffix)

    @classmethod
    def from_declared(cls, declared_type: Optional[str], url: Optional[str] = None) -> 'ContainerKind':
        """
        Select the container for a download

        The declared type from the API wins; otherwise the URL suffix is
        used (query strings stripped). Anything unrecognised is treated as
        MP3, which is what the service serves for lossy bitrates.

        Args:
            declared_type: `type` field of the download info ("mp3", "flac")
            url: Download URL

        Returns:
            Selected container kind
        """
        kind = cls.from_extension(declared_type)
        if kind is None and url:
            kind = cls.from_extension(Path(url.split('?', 1)[0]).suffix)
        return kind or cls.MP3


class ResourceStatus(Enum):
    """
    Availability of a track's audio resource

    Values:
        AVAILABLE: Full track can be downloaded
        UNAVAILABLE: No resource (usually licensing); terminal skip
        TRIAL_ONLY: Only a preview clip is served; terminal skip
    """
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    TRIAL_ONLY = "trial_only"

    @property
    def is_skip(self) -> bool:
        return self is not ResourceStatus.AVAILABLE


@dataclass(frozen=True)
class TrackDetail:
    """Remote track record, immutable once fetched"""
    id: TrackId
    name: str
    album_name: str
    publish_time: int
    artist_names: List[str]
    disc: str
    track: int
    cover_url: str

    @classmethod
    def from_api_data(cls, data: Dict[str, Any]) -> 'TrackDetail':
        """
        Create TrackDetail from a `/song/detail` song record

        Raises:
            KeyError, TypeError: If nested fields are missing
        """
        album = data['al']
        return cls(
            id=data.get('id', ''),
            name=data['name'],
            album_name=album['name'],
            publish_time=int(data['publishTime'] or 0),
            artist_names=[artist['name'] for artist in data['ar']],
            disc=str(data['cd']) if data['cd'] is not None else '',
            track=int(data['no'] or 0),
            cover_url=album['picUrl'],
        )


@dataclass(frozen=True)
class DownloadInfo:
    """Download resource for one track at one bitrate"""
    id: TrackId
    url: Optional[str]
    code: int
    declared_type: Optional[str] = None
    bitrate: int = 0
    size: int = 0
    free_trial_info: Optional[Dict[str, Any]] = None

    @classmethod
    def from_api_data(cls, data: Dict[str, Any]) -> 'DownloadInfo':
        """Create DownloadInfo from one `/song/url` data entry"""
        return cls(
            id=data.get('id', ''),
            url=data.get('url'),
            code=int(data.get('code') or 0),
            declared_type=data.get('type'),
            bitrate=int(data.get('br') or 0),
            size=int(data.get('size') or 0),
            free_trial_info=data.get('freeTrialInfo'),
        )

    @property
    def status(self) -> ResourceStatus:
        if self.code != 200 or not self.url:
            return ResourceStatus.UNAVAILABLE
        if self.free_trial_info:
            return ResourceStatus.TRIAL_ONLY
        return ResourceStatus.AVAILABLE

    @property
    def container(self) -> ContainerKind:
        return ContainerKind.from_declared(self.declared_type, self.url)


@dataclass(frozen=True)
class LyricsPayload:
    """
    Lyrics response for one track

    Attributes:
        lyric: Primary LRC text
        translated_lyric: Translated LRC text (may be empty)
        no_lyrics: Track is flagged as instrumental / without lyrics
        uncollected: Lyrics have not been collected by the service yet
    """
    lyric: str = ""
    translated_lyric: str = ""
    no_lyrics: bool = False
    uncollected: bool = False

    @classmethod
    def from_api_data(cls, data: Dict[str, Any]) -> 'LyricsPayload':
        """Create LyricsPayload from a `/lyric` response body"""
        lrc = data.get('lrc') or {}
        tlyric = data.get('tlyric') or {}
        return cls(
            lyric=lrc.get('lyric') or "",
            translated_lyric=tlyric.get('lyric') or "",
            no_lyrics=bool(data.get('nolyric')),
            uncollected=bool(data.get('uncollected')),
        )

    @property
    def is_absent(self) -> bool:
        return self.no_lyrics or self.uncollected or not self.lyric.strip()
