# tests/test_ledger.py
"""Test the synced-ID ledger"""

import json
import pytest

from playlist_sync.exceptions import LedgerError
from playlist_sync.sync.ledger import SyncLedger, get_sync_ledger


@pytest.fixture
def ledger(temp_dir):
    return SyncLedger(temp_dir / 'data' / 'playlist.json')


class TestDiff:
    """Test pending-ID computation"""

    def test_preserves_remote_order(self):
        assert SyncLedger.diff([5, 3, 9, 1], [3]) == [5, 9, 1]

    def test_compares_string_form(self):
        assert SyncLedger.diff([1901371647, 2], ['1901371647']) == [2]
        assert SyncLedger.diff(['7'], [7]) == []

    def test_remote_duplicates_kept(self):
        assert SyncLedger.diff([1, 2, 1], []) == [1, 2, 1]

    def test_inputs_not_modified(self):
        remote, local = [1, 2, 3], [2]
        SyncLedger.diff(remote, local)
        assert remote == [1, 2, 3]
        assert local == [2]

    def test_everything_synced(self):
        assert SyncLedger.diff([1, 2], [2, 1, 0]) == []

    def test_idempotent(self):
        """Diffing the pending IDs again changes nothing"""
        remote, local = [4, 1, 7, 1, 9], ['7', 9]
        pending = SyncLedger.diff(remote, local)

        assert SyncLedger.diff(pending, local) == pending
        assert SyncLedger.diff(remote, local) == pending


class TestLedgerFile:
    """Test load and commit"""

    def test_missing_file_created_empty(self, ledger):
        assert ledger.load() == []
        assert json.loads(ledger.path.read_text(encoding='utf-8')) == []

    def test_commit_prepends(self, ledger):
        ledger.commit([3, 4])
        ledger.commit([1, 2])
        assert ledger.load() == [1, 2, 3, 4]

    def test_commit_collapses_duplicates(self, ledger):
        """The newest occurrence of an ID wins"""
        ledger.commit([3, 4])
        merged = ledger.commit([4, '3', 5])

        assert merged == [4, '3', 5]
        assert ledger.load() == merged

    def test_commit_nothing(self, ledger):
        ledger.commit([1])
        assert ledger.commit([]) == [1]

    def test_no_temp_file_left(self, ledger):
        ledger.commit([1])
        assert [p.name for p in ledger.path.parent.iterdir()] == ['playlist.json']

    def test_pending(self, ledger):
        ledger.commit([2])
        assert ledger.pending([1, 2, 3]) == [1, 3]

    def test_commit_of_pending_leaves_nothing_pending(self, ledger):
        """Committing what was pending makes the same remote list fully synced"""
        remote = [5, 3, 9, 3, 1]
        ledger.commit([3])

        ledger.commit(ledger.pending(remote))

        assert ledger.pending(remote) == []
        assert sorted(ledger.load()) == [1, 3, 5, 9]

    def test_invalid_json(self, ledger):
        ledger.path.parent.mkdir(parents=True)
        ledger.path.write_text('{not json', encoding='utf-8')
        with pytest.raises(LedgerError):
            ledger.load()

    def test_not_an_array(self, ledger):
        ledger.path.parent.mkdir(parents=True)
        ledger.path.write_text('{"ids": []}', encoding='utf-8')
        with pytest.raises(LedgerError) as exc_info:
            ledger.load()
        assert exc_info.value.details['found'] == 'dict'

    def test_bound_to_settings(self, settings):
        assert get_sync_ledger(settings).path == settings.get_ledger_path()
