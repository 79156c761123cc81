# tests/test_client.py
"""Test the API client against a mocked HTTP session"""

import pytest
import requests
from unittest.mock import MagicMock

from playlist_sync.exceptions import ApiError, DownloadError
from playlist_sync.netease.client import NeteaseClient
from playlist_sync.netease.models import ResourceStatus


def json_response(body):
    response = MagicMock()
    response.json.return_value = body
    return response


def stream_response(chunks):
    response = MagicMock()
    response.__enter__.return_value = response
    response.iter_content.return_value = chunks
    return response


@pytest.fixture
def client(settings_factory):
    settings = settings_factory(api={'endpoint': 'http://api.local/', 'min_request_interval': 0})
    client = NeteaseClient(settings)
    client.http = MagicMock()
    return client


class TestRequests:
    """Test JSON endpoints"""

    def test_cookie_and_params(self, client, session):
        client.http.get.return_value = json_response({'code': 200, 'playlist': {'trackIds': [{'id': 5}, {'id': 9}]}})

        assert client.get_playlist_track_ids(session, '24381616') == [5, 9]

        args, kwargs = client.http.get.call_args
        assert args[0] == 'http://api.local/playlist/detail'
        assert kwargs['params'] == {'id': '24381616', 'cookie': 'MUSIC_U=abc'}
        assert kwargs['timeout'] == 3.0

    def test_non_200_code(self, client, session):
        client.http.get.return_value = json_response({'code': 404, 'message': 'not found'})

        with pytest.raises(ApiError) as exc_info:
            client.get_playlist_track_ids(session, '1')
        assert exc_info.value.code == 404

    def test_transport_error(self, client, session):
        client.http.get.side_effect = requests.ConnectionError("refused")
        with pytest.raises(ApiError):
            client.get_lyrics(session, 1)

    def test_invalid_json(self, client, session):
        response = json_response(None)
        response.json.side_effect = ValueError("no json")
        client.http.get.return_value = response
        with pytest.raises(ApiError):
            client.get_lyrics(session, 1)

    def test_malformed_playlist(self, client, session):
        client.http.get.return_value = json_response({'code': 200, 'playlist': None})
        with pytest.raises(ApiError):
            client.get_playlist_track_ids(session, '1')

    def test_track_detail(self, client, session, sample_song_data):
        client.http.get.return_value = json_response({'code': 200, 'songs': [sample_song_data]})

        detail = client.get_track_detail(session, 1901371647)

        assert detail.name == '孤勇者'
        assert client.http.get.call_args[1]['params']['ids'] == 1901371647

    def test_missing_track_detail(self, client, session):
        client.http.get.return_value = json_response({'code': 200, 'songs': []})
        with pytest.raises(ApiError):
            client.get_track_detail(session, 1)

    def test_download_info(self, client, session):
        client.http.get.return_value = json_response({
            'code': 200,
            'data': [{'id': 1, 'url': None, 'code': 404}]
        })

        info = client.get_download_info(session, 1, 320000)

        assert info.status is ResourceStatus.UNAVAILABLE
        assert client.http.get.call_args[1]['params'] == {'id': 1, 'br': 320000, 'cookie': 'MUSIC_U=abc'}

    def test_login(self, client):
        client.http.get.return_value = json_response({'code': 200, 'cookie': 'MUSIC_U=new'})

        assert client.login_cellphone('13800000000', 'hash') == 'MUSIC_U=new'
        assert 'cookie' not in client.http.get.call_args[1]['params']


class TestDownloadFile:
    """Test streaming downloads"""

    def test_writes_destination(self, client, temp_dir):
        client.http.get.return_value = stream_response([b'ID3', b'', b'rest'])
        destination = temp_dir / 'nested' / 'track.mp3'

        assert client.download_file('http://cdn/track.mp3', destination) == destination
        assert destination.read_bytes() == b'ID3rest'
        assert not (temp_dir / 'nested' / 'track.mp3.part').exists()

    def test_empty_body(self, client, temp_dir):
        client.http.get.return_value = stream_response([])
        destination = temp_dir / 'dl' / 'track.mp3'

        with pytest.raises(DownloadError):
            client.download_file('http://cdn/track.mp3', destination)
        assert list(destination.parent.iterdir()) == []

    def test_http_error_leaves_nothing(self, client, temp_dir):
        response = stream_response([b'data'])
        response.raise_for_status.side_effect = requests.HTTPError("403")
        client.http.get.return_value = response
        destination = temp_dir / 'dl' / 'track.mp3'

        with pytest.raises(DownloadError):
            client.download_file('http://cdn/track.mp3', destination)
        assert list(destination.parent.iterdir()) == []
