"""
Bounded-retry download queue

Drains the pending track IDs of one run. Each iteration pops one candidate
from the end of the work list and runs the full per-track pipeline:

    detail -> download info -> (skip?) -> cover + audio download
    -> tag embedding -> lyric sidecar -> move into output directory
    -> signature check

Outcomes:
    downloaded  quota -1, ID recorded as synced
    skipped     resource unavailable or preview-only; quota -1, recorded as
                synced, nothing downloaded
    failed      any exception in the pipeline; the candidate goes back on the
                end of the work list until its retry budget is spent, then it
                is dropped with a warning and stays pending for the next run

Retry budget (`download.retry_scope`):
    candidate   every candidate may fail `download.retry_limit` times
    run         one failure counter shared by all candidates; when it reaches
                the limit the failing candidate is dropped and the counter
                starts again from zero

Every iteration ends with the configured pause (`download.sleep_time_ms`).
Only one track is in flight at any time.
"""

import shutil
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from ..audio.metadata import MetadataEmbedder
from ..audio.tags import parse_track_detail
from ..config.auth import SessionContext
from ..config.settings import Settings
from ..exceptions import CorruptedFileError
from ..lyrics.processor import LyricsProcessor, LYRICS_EXTENSION
from ..netease.models import ResourceStatus, TrackId
from ..utils.helpers import build_track_filename, remove_quietly
from ..utils.logger import get_logger
from ..utils.validation import validate_container


RETRY_SCOPE_CANDIDATE = "candidate"
RETRY_SCOPE_RUN = "run"


class CandidateOutcome(Enum):
    """Result of processing one candidate once"""
    DOWNLOADED = "downloaded"
    SKIPPED_UNAVAILABLE = "skipped_unavailable"
    SKIPPED_TRIAL = "skipped_trial"

    @property
    def is_skip(self) -> bool:
        return self is not CandidateOutcome.DOWNLOADED


_SKIP_OUTCOMES = {
    ResourceStatus.UNAVAILABLE: CandidateOutcome.SKIPPED_UNAVAILABLE,
    ResourceStatus.TRIAL_ONLY: CandidateOutcome.SKIPPED_TRIAL,
}


@dataclass
class DownloadCandidate:
    """A pending track ID and how often it has failed in this run"""
    track_id: TrackId
    failures: int = 0


@dataclass
class QueueResult:
    """
    Outcome of draining the queue

    Attributes:
        total: Number of candidates the run started with
        synced: IDs to record in the ledger, newest first (includes skips)
        downloaded: IDs whose audio file was written
        skipped: IDs skipped for licensing or preview-only resources
        dropped: IDs abandoned after exhausting the retry budget
        remaining: IDs still queued when the quota ran out
        failures: Failure count per attempted ID
        iterations: Loop iterations executed (one pause each)
    """
    total: int = 0
    synced: List[TrackId] = field(default_factory=list)
    downloaded: List[TrackId] = field(default_factory=list)
    skipped: List[TrackId] = field(default_factory=list)
    dropped: List[TrackId] = field(default_factory=list)
    remaining: List[TrackId] = field(default_factory=list)
    failures: Dict[TrackId, int] = field(default_factory=dict)
    iterations: int = 0

    @property
    def pending(self) -> int:
        return self.total - len(self.synced)

    @property
    def summary(self) -> str:
        return f"{len(self.synced)} of {self.total} synced, {self.pending} pending"


class DownloadQueue:
    """
    Work loop turning pending track IDs into tagged audio files

    Collaborators are passed in explicitly so the loop can be driven with
    fakes: the API client, the session, the embedder, the lyrics processor
    and the sleep function.
    """

    def __init__(
        self,
        client,
        session: SessionContext,
        settings: Settings,
        embedder: MetadataEmbedder,
        lyrics_processor: LyricsProcessor,
        sleep: Callable[[float], None] = time.sleep,
        progress: Optional[Callable[[int, int, str], None]] = None
    ):
        """
        Initialize the queue

        Args:
            client: API client (NeteaseClient or compatible)
            session: Session passed to every remote call
            settings: Settings providing limits, paths and naming
            embedder: Tag/cover writer
            lyrics_processor: Sidecar writer
            sleep: Pause function, seconds
            progress: Optional callback (completed, quota, message)
        """
        self.client = client
        self.session = session
        self.settings = settings
        self.embedder = embedder
        self.lyrics_processor = lyrics_processor
        self.sleep = sleep
        self.progress = progress
        self.logger = get_logger(__name__)

        download = settings.download
        self.limit = download.limit
        self.retry_limit = max(1, download.retry_limit)
        self.retry_scope = download.retry_scope
        self.sleep_seconds = max(0, download.sleep_time_ms) / 1000
        self.bitrate = download.bitrate
        self.lyrics_enabled = lyrics_processor.enabled

        self.temp_directory = settings.get_temp_directory()
        self.cover_directory = settings.get_cover_directory()
        self.output_directory = settings.get_output_directory()

    def drain(self, track_ids: Iterable[TrackId]) -> QueueResult:
        """
        Process candidates until the quota is used up or the list is empty

        Args:
            track_ids: Pending IDs in remote order; the last one is processed first

        Returns:
            QueueResult
        """
        candidates = [DownloadCandidate(track_id) for track_id in track_ids]
        result = QueueResult(total=len(candidates))

        quota = len(candidates) if self.limit <= 0 else min(self.limit, len(candidates))
        target = quota
        run_failures = 0

        self.logger.info(
            f"Draining {len(candidates)} candidates (quota {quota}, retry limit "
            f"{self.retry_limit} per {self.retry_scope})"
        )

        while quota > 0 and candidates:
            candidate = candidates.pop()
            result.iterations += 1
            self.logger.debug(
                f"Processing {candidate.track_id}: {len(candidates)} queued, {quota} left this run"
            )

            try:
                outcome = self._process_candidate(candidate.track_id)
            except Exception as e:
                candidate.failures += 1
                run_failures += 1
                result.failures[candidate.track_id] = candidate.failures
                self.logger.error(
                    f"🚫 Download of {candidate.track_id} failed "
                    f"(attempt {candidate.failures}/{self.retry_limit}): {e}"
                )

                if self._budget_exhausted(candidate, run_failures):
                    result.dropped.append(candidate.track_id)
                    self.logger.warning(
                        f"⚠️ Giving up on track {candidate.track_id} after "
                        f"{candidate.failures} failed attempts, check it manually"
                    )
                    if self.retry_scope == RETRY_SCOPE_RUN:
                        run_failures = 0
                else:
                    candidates.append(candidate)
            else:
                quota -= 1
                result.synced.insert(0, candidate.track_id)
                if outcome.is_skip:
                    result.skipped.append(candidate.track_id)
                else:
                    result.downloaded.append(candidate.track_id)

                if self.progress:
                    self.progress(target - quota, target, str(candidate.track_id))

            self.sleep(self.sleep_seconds)

        result.remaining = [candidate.track_id for candidate in candidates]
        self.logger.info(f"Queue drained: {result.summary}")
        return result

    def _budget_exhausted(self, candidate: DownloadCandidate, run_failures: int) -> bool:
        if self.retry_scope == RETRY_SCOPE_RUN:
            return run_failures >= self.retry_limit
        return candidate.failures >= self.retry_limit

    def _process_candidate(self, track_id: TrackId) -> CandidateOutcome:
        """
        Run the per-track pipeline once

        Raises:
            Exception: Anything raised by a collaborator; the caller turns it
                into a retry
        """
        detail = self.client.get_track_detail(self.session, track_id)
        tags = parse_track_detail(detail, self.settings.metadata.max_artists)

        info = self.client.get_download_info(self.session, track_id, self.bitrate)
        if info.status.is_skip:
            outcome = _SKIP_OUTCOMES[info.status]
            self.logger.warning(
                f"⚠️ {tags.artist} - {tags.title} cannot be downloaded "
                f"({info.status.value}, code {info.code}), skipped"
            )
            return outcome

        container = info.container
        naming = self.settings.naming
        base_name = build_track_filename(
            naming.track_format,
            artist=tags.artist,
            title=tags.title,
            album=tags.album,
            max_length=naming.max_filename_length,
            replace_spaces=naming.replace_spaces
        )

        temp_audio = self.temp_directory / f"{track_id}{container.suffix}"
        temp_lyrics = self.temp_directory / f"{track_id}{LYRICS_EXTENSION}"
        temp_cover = self.cover_directory / f"{track_id}.jpg"
        final_audio = self.output_directory / f"{base_name}{container.suffix}"
        final_lyrics = self.output_directory / f"{base_name}{LYRICS_EXTENSION}"

        try:
            cover_path = None
            if detail.cover_url:
                cover_path = self.client.download_file(detail.cover_url, temp_cover)
            self.client.download_file(info.url, temp_audio)

            self.embedder.embed(temp_audio, cover_path, tags, container)

            lyrics_path = None
            if self.lyrics_enabled:
                payload = self.client.get_lyrics(self.session, track_id)
                lyrics_path = self.lyrics_processor.save_lyrics_file(payload, temp_lyrics)

            self.output_directory.mkdir(parents=True, exist_ok=True)
            shutil.move(str(temp_audio), str(final_audio))
            if lyrics_path:
                shutil.move(str(lyrics_path), str(final_lyrics))

            try:
                validate_container(final_audio, container)
            except CorruptedFileError:
                remove_quietly(final_audio)
                remove_quietly(final_lyrics if lyrics_path else None)
                raise
        finally:
            for leftover in (temp_cover, temp_audio, temp_lyrics):
                remove_quietly(leftover)

        self.logger.console_info(f"🎉 {Path(final_audio).name} downloaded")
        return CandidateOutcome.DOWNLOADED
