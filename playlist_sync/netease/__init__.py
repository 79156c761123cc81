"""
NetEase Cloud Music API package
Data models for API records and the HTTP client
"""

from .models import (
    ContainerKind,
    ResourceStatus,
    TrackDetail,
    DownloadInfo,
    LyricsPayload,
    TrackId
)
from .client import NeteaseClient

__all__ = [
    'ContainerKind',
    'ResourceStatus',
    'TrackDetail',
    'DownloadInfo',
    'LyricsPayload',
    'TrackId',
    'NeteaseClient',
]
