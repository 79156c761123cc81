"""
Playlist synchronization orchestrator

Runs one synchronization of the configured playlist:

1. Obtain a session (stored cookie or fresh login)           setup-fatal
2. Fetch the playlist's track IDs                             setup-fatal
3. Diff them against the ledger
4. Drain the pending IDs through the download queue
5. Prepend the synced IDs to the ledger

Setup-fatal errors (AuthError, PlaylistFetchError) abort the run before any
file is touched. Per-track failures never escape the download queue; they
only show up as dropped or pending tracks in the summary.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..audio.metadata import MetadataEmbedder
from ..config.auth import SessionContext, SessionManager
from ..config.settings import get_settings, Settings
from ..exceptions import ConfigError, PlaylistFetchError, PlaylistSyncError
from ..lyrics.processor import LyricsProcessor
from ..netease.client import NeteaseClient
from ..netease.models import TrackId
from ..utils.logger import get_logger, OperationLogger
from .ledger import SyncLedger
from .queue import DownloadQueue, QueueResult


@dataclass
class SyncResult:
    """
    Result of one synchronization run

    Attributes:
        playlist_id: Playlist that was synchronized
        remote_count: Track IDs in the remote playlist
        pending_before: IDs missing locally when the run started
        queue: Download queue outcome (None for dry runs and no-op runs)
        pending_ids: IDs that were pending (filled for dry runs)
        dry_run: Whether downloads were skipped
        total_time: Wall-clock duration in seconds
    """
    playlist_id: str
    remote_count: int = 0
    pending_before: int = 0
    queue: Optional[QueueResult] = None
    pending_ids: List[TrackId] = field(default_factory=list)
    dry_run: bool = False
    total_time: Optional[float] = None

    @property
    def has_changes(self) -> bool:
        return self.pending_before > 0

    @property
    def summary(self) -> str:
        """
        Human-readable summary

        Returns:
            e.g. "3 of 12 synced, 9 pending" or "Playlist is already up to date"
        """
        if not self.has_changes:
            return "Playlist is already up to date"
        if self.dry_run or self.queue is None:
            return f"{self.pending_before} tracks pending"
        return self.queue.summary


class PlaylistSynchronizer:
    """
    Coordinates session, API client, ledger and download queue

    All collaborators can be injected; by default they are created from the
    given settings.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[NeteaseClient] = None,
        session_manager: Optional[SessionManager] = None,
        ledger: Optional[SyncLedger] = None,
        embedder: Optional[MetadataEmbedder] = None,
        lyrics_processor: Optional[LyricsProcessor] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.settings = settings or get_settings()
        self.logger = get_logger(__name__)

        self.client = client or NeteaseClient(self.settings)
        self.session_manager = session_manager or SessionManager(self.settings)
        self.ledger = ledger or SyncLedger(self.settings.get_ledger_path())
        self.embedder = embedder or MetadataEmbedder(self.settings)
        self.lyrics_processor = lyrics_processor or LyricsProcessor(self.settings)
        self.sleep = sleep

    def _playlist_id(self) -> str:
        playlist_id = self.settings.account.playlist_id
        if not playlist_id:
            raise ConfigError(
                "No playlist configured (account.playlist_id or NETEASE_PLAYLIST_ID)",
                details={'section': 'account', 'field': 'playlist_id'}
            )
        return str(playlist_id)

    def _fetch_remote_ids(self, session: SessionContext, playlist_id: str) -> List[TrackId]:
        try:
            track_ids = self.client.get_playlist_track_ids(session, playlist_id)
        except PlaylistSyncError as e:
            raise PlaylistFetchError(
                f"Cannot read playlist {playlist_id}: {e}",
                details={'playlist_id': playlist_id}
            ) from e

        self.logger.info(f"Remote playlist {playlist_id} has {len(track_ids)} tracks")
        return track_ids

    def _prepare(self):
        playlist_id = self._playlist_id()
        session = self.session_manager.get_session(self.client)
        self.logger.console_info("🔑 Logged in")

        remote_ids = self._fetch_remote_ids(session, playlist_id)
        pending = self.ledger.pending(remote_ids)
        return playlist_id, session, remote_ids, pending

    def check_status(self) -> Dict[str, Any]:
        """
        Compare remote playlist and ledger without downloading

        Returns:
            Dictionary with playlist_id, remote, synced and pending counts and
            the pending IDs in remote order
        """
        playlist_id, _session, remote_ids, pending = self._prepare()
        return {
            'playlist_id': playlist_id,
            'remote': len(remote_ids),
            'synced': len(remote_ids) - len(pending),
            'pending': len(pending),
            'pending_ids': pending,
        }

    def run(self, dry_run: bool = False) -> SyncResult:
        """
        Perform one synchronization run

        Args:
            dry_run: Only report pending IDs, download nothing

        Returns:
            SyncResult

        Raises:
            ConfigError: If no playlist is configured
            AuthError: If no session can be obtained
            PlaylistFetchError: If the playlist cannot be read
            LedgerError: If the ledger cannot be read or written
        """
        start_time = time.time()
        playlist_id, session, remote_ids, pending = self._prepare()

        result = SyncResult(
            playlist_id=playlist_id,
            remote_count=len(remote_ids),
            pending_before=len(pending),
            dry_run=dry_run,
        )

        if not pending or dry_run:
            result.pending_ids = pending
            result.total_time = time.time() - start_time
            return result

        operation = OperationLogger(self.logger, "Playlist sync")
        operation.start(f"⏬ Syncing {len(pending)} new tracks from playlist {playlist_id}")

        queue = DownloadQueue(
            client=self.client,
            session=session,
            settings=self.settings,
            embedder=self.embedder,
            lyrics_processor=self.lyrics_processor,
            sleep=self.sleep,
            progress=lambda done, total, track_id: operation.progress(f"synced {track_id}", done, total),
        )

        try:
            result.queue = queue.drain(pending)
        except Exception as e:
            operation.error(str(e), e)
            raise

        self.ledger.commit(result.queue.synced)
        result.total_time = time.time() - start_time
        operation.complete(f"✅ {result.summary}")
        return result


def get_synchronizer(settings: Optional[Settings] = None) -> PlaylistSynchronizer:
    """Create a synchronizer wired from the given (or global) settings"""
    return PlaylistSynchronizer(settings or get_settings())
