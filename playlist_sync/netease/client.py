"""
NetEase Cloud Music API client

Thin requests-based wrapper around a self-hosted NetEase Cloud Music API
server. The server speaks plain JSON over GET; every response body carries a
numeric `code` that is 200 on success.

Session Handling:
    The session cookie is never stored on the client. Each call receives a
    SessionContext and the cookie is appended as the `cookie` query
    parameter, which is how the API server expects authenticated calls.

Rate Limiting:
    A minimum interval between requests (`api.min_request_interval`) is
    enforced on top of the download loop's own pause between tracks.

Timeouts:
    Every request uses the same fixed timeout (`api.request_timeout`).
    There is no per-call cancellation beyond that.
"""

import os
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import requests

from ..config.auth import SessionContext
from ..config.settings import get_settings, Settings
from ..exceptions import ApiError, DownloadError
from ..utils.helpers import format_file_size
from ..utils.logger import get_logger
from .models import DownloadInfo, LyricsPayload, TrackDetail, TrackId


class NeteaseClient:
    """
    Client for the NetEase Cloud Music API server

    Responsibilities:
    - Cellphone login returning the session cookie
    - Playlist track-ID listing
    - Track detail, download URL and lyrics lookups
    - Streaming binary downloads (audio and cover art)
    """

    CHUNK_SIZE = 64 * 1024

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize API client

        Args:
            settings: Settings to use, defaults to the global instance
        """
        self.settings = settings or get_settings()
        self.logger = get_logger(__name__)

        self.base_url = self.settings.api.endpoint.rstrip('/')
        self.timeout = self.settings.api.request_timeout
        self.min_request_interval = self.settings.api.min_request_interval
        self.last_request_time = 0.0

        self.http = requests.Session()
        self.http.headers.update({'User-Agent': self.settings.api.user_agent})

    def _rate_limit(self) -> None:
        """Sleep so consecutive requests are at least `min_request_interval` apart"""
        current_time = time.time()
        time_since_last = current_time - self.last_request_time

        if time_since_last < self.min_request_interval:
            time.sleep(self.min_request_interval - time_since_last)

        self.last_request_time = time.time()

    def _request(
        self,
        path: str,
        session: Optional[SessionContext] = None,
        **params: Any
    ) -> Dict[str, Any]:
        """
        Perform a rate-limited GET against the API server

        Args:
            path: Endpoint path, e.g. "/song/detail"
            session: Session whose cookie is attached, None for anonymous calls
            **params: Query parameters

        Returns:
            Decoded JSON body

        Raises:
            ApiError: On transport errors, non-JSON bodies or `code != 200`
        """
        if session is not None and not session.is_anonymous:
            params['cookie'] = session.cookie

        url = f"{self.base_url}{path}"
        self._rate_limit()
        self.logger.debug(f"GET {path} {sorted(k for k in params if k != 'cookie')}")

        try:
            response = self.http.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise ApiError(f"Request to {path} failed: {e}", details={'path': path}) from e
        except ValueError as e:
            raise ApiError(f"Invalid JSON from {path}", details={'path': path}) from e

        code = data.get('code')
        if code != 200:
            raise ApiError(
                f"API returned code {code} for {path}",
                code=code,
                details={'path': path, 'message': data.get('message') or data.get('msg')}
            )

        return data

    def login_cellphone(self, phone: str, md5_password: str) -> str:
        """
        Log in with phone number and MD5 password hash

        Returns:
            Session cookie string

        Raises:
            ApiError: If the server rejects the login
        """
        data = self._request('/login/cellphone', phone=phone, md5_password=md5_password)
        cookie = data.get('cookie') or ""
        self.logger.debug("Login succeeded")
        return cookie

    def get_playlist_track_ids(self, session: SessionContext, playlist_id: TrackId) -> List[TrackId]:
        """
        Get the ordered track IDs of a playlist

        Returns:
            Track IDs in playlist order
        """
        data = self._request('/playlist/detail', session, id=playlist_id)
        try:
            track_ids = data['playlist']['trackIds']
        except (KeyError, TypeError) as e:
            raise ApiError(
                f"Malformed playlist response for {playlist_id}",
                details={'playlist_id': playlist_id}
            ) from e

        return [entry['id'] for entry in track_ids]

    def get_track_detail(self, session: SessionContext, track_id: TrackId) -> TrackDetail:
        """
        Get detail record of one track

        Raises:
            ApiError: If the song is missing from the response
        """
        data = self._request('/song/detail', session, ids=track_id)
        songs = data.get('songs') or []
        if not songs:
            raise ApiError(f"No detail returned for track {track_id}", details={'track_id': track_id})

        return TrackDetail.from_api_data(songs[0])

    def get_download_info(self, session: SessionContext, track_id: TrackId, bitrate: int) -> DownloadInfo:
        """
        Get download URL and availability of one track

        A non-200 `code` inside the entry is not an error here; it is
        reported through `DownloadInfo.status`.
        """
        data = self._request('/song/url', session, id=track_id, br=bitrate)
        entries = data.get('data') or []
        if not entries:
            raise ApiError(f"No download info returned for track {track_id}", details={'track_id': track_id})

        return DownloadInfo.from_api_data(entries[0])

    def get_lyrics(self, session: SessionContext, track_id: TrackId) -> LyricsPayload:
        """Get primary and translated lyrics of one track"""
        data = self._request('/lyric', session, id=track_id)
        return LyricsPayload.from_api_data(data)

    def download_file(self, url: str, destination: Union[str, Path]) -> Path:
        """
        Stream a binary resource to disk

        Data is written to `<destination>.part` and renamed into place once
        complete, so a partial download never sits at the final path.

        Args:
            url: Resource URL
            destination: Target file path

        Returns:
            Destination path

        Raises:
            DownloadError: On network errors or an empty body
        """
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        part_path = destination.with_name(destination.name + '.part')

        self._rate_limit()
        try:
            with self.http.get(url, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                written = 0
                with open(part_path, 'wb') as f:
                    for chunk in response.iter_content(chunk_size=self.CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
                            written += len(chunk)

            if written == 0:
                raise DownloadError(f"Empty response body from {url}", details={'url': url})

            os.replace(part_path, destination)
        except requests.RequestException as e:
            raise DownloadError(f"Download failed: {e}", details={'url': url}) from e
        finally:
            if part_path.exists():
                part_path.unlink()

        self.logger.debug(f"Downloaded {format_file_size(written)} to {destination.name}")
        return destination

