# tests/test_synchronizer.py
"""Test the playlist synchronization orchestrator"""

import pytest
from unittest.mock import Mock

from playlist_sync.exceptions import ApiError, AuthError, ConfigError, PlaylistFetchError
from playlist_sync.netease.models import DownloadInfo, LyricsPayload, TrackDetail
from playlist_sync.sync.ledger import SyncLedger
from playlist_sync.sync.queue import QueueResult
from playlist_sync.sync.synchronizer import PlaylistSynchronizer, SyncResult


@pytest.fixture
def client(mock_client, sample_song_data):
    mock_client.get_playlist_track_ids.return_value = [1, 2, 3]
    mock_client.get_track_detail.side_effect = lambda session, track_id: TrackDetail.from_api_data(
        dict(sample_song_data, id=track_id, name=f'Song {track_id}')
    )
    mock_client.get_download_info.side_effect = lambda session, track_id, bitrate: DownloadInfo.from_api_data(
        {'id': track_id, 'url': f'http://x/{track_id}.mp3', 'code': 200, 'type': 'mp3'}
    )
    mock_client.get_lyrics.return_value = LyricsPayload(no_lyrics=True)
    return mock_client


@pytest.fixture
def session_manager(session):
    manager = Mock()
    manager.get_session.return_value = session
    return manager


@pytest.fixture
def ledger(settings):
    ledger = SyncLedger(settings.get_ledger_path())
    ledger.commit([1])
    return ledger


@pytest.fixture
def synchronizer(settings, client, session_manager, ledger):
    return PlaylistSynchronizer(
        settings=settings,
        client=client,
        session_manager=session_manager,
        ledger=ledger,
        sleep=lambda seconds: None,
    )


class TestSyncRun:
    """Test full runs"""

    def test_run_downloads_pending_and_updates_ledger(self, synchronizer, ledger, client, session):
        result = synchronizer.run()

        assert result.playlist_id == '24381616'
        assert result.remote_count == 3
        assert result.pending_before == 2
        assert result.queue.synced == [2, 3]
        assert ledger.load() == [2, 3, 1]
        assert result.summary == "2 of 2 synced, 0 pending"
        assert result.total_time is not None

        client.get_playlist_track_ids.assert_called_once_with(session, '24381616')

    def test_second_run_is_noop(self, synchronizer, client):
        synchronizer.run()
        client.get_track_detail.reset_mock()

        result = synchronizer.run()

        assert not result.has_changes
        assert result.queue is None
        assert result.summary == "Playlist is already up to date"
        client.get_track_detail.assert_not_called()

    def test_dry_run_downloads_nothing(self, synchronizer, ledger, client):
        result = synchronizer.run(dry_run=True)

        assert result.dry_run
        assert result.pending_ids == [2, 3]
        assert result.summary == "2 tracks pending"
        assert ledger.load() == [1]
        client.download_file.assert_not_called()

    def test_dropped_tracks_stay_pending(self, synchronizer, ledger, client, sample_song_data):
        def get_track_detail(session, track_id):
            if track_id == 3:
                raise ApiError("detail unavailable")
            return TrackDetail.from_api_data(dict(sample_song_data, id=track_id))

        client.get_track_detail.side_effect = get_track_detail

        result = synchronizer.run()

        assert result.queue.dropped == [3]
        assert ledger.load() == [2, 1]
        assert synchronizer.check_status()['pending_ids'] == [3]


class TestSetupFailures:
    """Test errors that abort a run before any download"""

    def test_missing_playlist_id(self, settings_factory, client, session_manager):
        settings = settings_factory(account={'playlist_id': ''})
        synchronizer = PlaylistSynchronizer(settings=settings, client=client, session_manager=session_manager)

        with pytest.raises(ConfigError):
            synchronizer.run()
        session_manager.get_session.assert_not_called()

    def test_auth_error_propagates(self, synchronizer, session_manager, client):
        session_manager.get_session.side_effect = AuthError("no credentials")

        with pytest.raises(AuthError):
            synchronizer.run()
        client.get_playlist_track_ids.assert_not_called()

    def test_playlist_fetch_error(self, synchronizer, client, ledger):
        client.get_playlist_track_ids.side_effect = ApiError("API returned code 404", code=404)

        with pytest.raises(PlaylistFetchError) as exc_info:
            synchronizer.run()

        assert exc_info.value.details == {'playlist_id': '24381616'}
        assert ledger.load() == [1]


class TestStatus:
    """Test status reporting"""

    def test_check_status(self, synchronizer, client):
        info = synchronizer.check_status()

        assert info == {
            'playlist_id': '24381616',
            'remote': 3,
            'synced': 1,
            'pending': 2,
            'pending_ids': [2, 3],
        }
        client.download_file.assert_not_called()

    def test_sync_result_summary(self):
        queue = QueueResult(total=5, synced=[1, 2])
        result = SyncResult(playlist_id='1', pending_before=5, queue=queue)
        assert result.summary == "2 of 5 synced, 3 pending"
