"""
Synced-ID ledger

The ledger is the only state that outlives a run: a JSON array of track IDs
that were downloaded or deliberately skipped. New IDs are prepended, so the
file reads newest first, and the whole array is rewritten on every commit.

IDs are compared by their string form, so 1901371647 and "1901371647" are
the same track.
"""

import json
import os
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..config.settings import get_settings, Settings
from ..exceptions import LedgerError
from ..netease.models import TrackId
from ..utils.logger import get_logger


def _key(track_id: TrackId) -> str:
    return str(track_id)


class SyncLedger:
    """
    Persisted list of already-synced track IDs

    Single-process use only; concurrent writers would overwrite each other.
    """

    def __init__(self, path: Union[str, Path]):
        """
        Initialize ledger

        Args:
            path: JSON file holding the ID array
        """
        self.path = Path(path)
        self.logger = get_logger(__name__)

    def _ensure_file(self) -> None:
        if not self.path.exists():
            self.logger.debug(f"Ledger missing, creating {self.path}")
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._write([])

    def load(self) -> List[TrackId]:
        """
        Load synced IDs, newest first

        Raises:
            LedgerError: If the file is not valid JSON or not an array
        """
        self._ensure_file()

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise LedgerError(f"Cannot read ledger {self.path}: {e}", details={'path': str(self.path)}) from e

        if not isinstance(data, list):
            raise LedgerError(
                f"Ledger {self.path} must contain a JSON array",
                details={'path': str(self.path), 'found': type(data).__name__}
            )

        return data

    @staticmethod
    def diff(remote_ids: Iterable[TrackId], local_ids: Iterable[TrackId]) -> List[TrackId]:
        """
        IDs present remotely but not locally

        Remote order and remote duplicates are preserved. Pure: neither input
        is modified.

        Args:
            remote_ids: Playlist track IDs in playlist order
            local_ids: Already-synced IDs

        Returns:
            Pending IDs in remote order
        """
        synced = {_key(track_id) for track_id in local_ids}
        return [track_id for track_id in remote_ids if _key(track_id) not in synced]

    def pending(self, remote_ids: Iterable[TrackId]) -> List[TrackId]:
        """Diff remote IDs against the stored ledger"""
        return self.diff(remote_ids, self.load())

    def commit(self, new_ids: Iterable[TrackId]) -> List[TrackId]:
        """
        Prepend newly synced IDs and rewrite the ledger

        Duplicates are collapsed, keeping the first (newest) occurrence.

        Args:
            new_ids: IDs synced in this run, newest first

        Returns:
            Full ledger content as written
        """
        new_ids = list(new_ids)
        existing = self.load()

        seen = set()
        merged = []
        for track_id in new_ids + existing:
            key = _key(track_id)
            if key in seen:
                continue
            seen.add(key)
            merged.append(track_id)

        self._write(merged)
        self.logger.debug(f"Ledger updated: {len(new_ids)} new, {len(merged)} total")
        return merged

    def _write(self, ids: List[TrackId]) -> None:
        tmp_path = self.path.with_name(self.path.name + '.tmp')
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(ids, f)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise LedgerError(f"Cannot write ledger {self.path}: {e}", details={'path': str(self.path)}) from e


def get_sync_ledger(settings: Optional[Settings] = None) -> SyncLedger:
    """Create a ledger bound to the configured ledger file"""
    settings = settings or get_settings()
    return SyncLedger(settings.get_ledger_path())
