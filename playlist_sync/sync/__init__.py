"""
Synchronization package
Ledger of synced IDs, the bounded-retry download queue and the run orchestrator
"""

from .ledger import SyncLedger, get_sync_ledger
from .queue import DownloadQueue, DownloadCandidate, CandidateOutcome, QueueResult
from .synchronizer import PlaylistSynchronizer, SyncResult, get_synchronizer

__all__ = [
    'SyncLedger',
    'get_sync_ledger',
    'DownloadQueue',
    'DownloadCandidate',
    'CandidateOutcome',
    'QueueResult',
    'PlaylistSynchronizer',
    'SyncResult',
    'get_synchronizer',
]
