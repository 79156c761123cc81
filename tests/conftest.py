"""Test configuration and fixtures"""

import pytest
import tempfile
import yaml
from pathlib import Path
from unittest.mock import Mock

from PIL import Image

from playlist_sync.config.settings import Settings


def _streaminfo_block() -> bytes:
    """34-byte STREAMINFO body: 4096-sample blocks, 44.1 kHz, stereo, 16 bit"""
    return (
        (4096).to_bytes(2, 'big')
        + (4096).to_bytes(2, 'big')
        + bytes(3)
        + bytes(3)
        + ((44100 << 44) | (1 << 41) | (15 << 36)).to_bytes(8, 'big')
        + bytes(16)
    )


AUDIO_FRAMES = b'\xff\xf8\x69\x08' + bytes(60)


def build_flac(extra_blocks=()) -> bytes:
    """
    Minimal FLAC stream: marker, STREAMINFO, optional extra blocks, frames

    Args:
        extra_blocks: (block_type, body) pairs placed after STREAMINFO
    """
    blocks = [(0, _streaminfo_block())] + list(extra_blocks)
    data = b'fLaC'
    for index, (block_type, body) in enumerate(blocks):
        last = 0x80 if index == len(blocks) - 1 else 0
        data += bytes([block_type | last]) + len(body).to_bytes(3, 'big') + body
    return data + AUDIO_FRAMES


MP3_BYTES = b'\xff\xfb\x90\x64' + bytes(2048)


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def settings_factory(temp_dir):
    """
    Build Settings from a YAML file inside the temporary directory

    All storage paths point into temp_dir; overrides are merged per section.
    """
    def factory(**overrides):
        config = {
            'account': {'playlist_id': '24381616'},
            'download': {
                'limit': 20,
                'sleep_time_ms': 0,
                'retry_limit': 3,
                'temp_directory': str(temp_dir / 'temp'),
                'cover_directory': str(temp_dir / 'covers'),
                'output_directory': str(temp_dir / 'music'),
            },
            'logging': {'console_output': False, 'file': ''},
            'storage': {'data_directory': str(temp_dir / 'data')},
        }
        for section, values in overrides.items():
            config.setdefault(section, {}).update(values)

        config_path = temp_dir / 'config.yaml'
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(config, f)
        return Settings(str(config_path))

    return factory


@pytest.fixture
def settings(settings_factory):
    """Settings with default test overrides"""
    return settings_factory()


@pytest.fixture
def sample_song_data():
    """`/song/detail` song record"""
    return {
        'id': 1901371647,
        'name': '孤勇者',
        'al': {
            'id': 149253116,
            'name': '孤勇者',
            'picUrl': 'https://p1.music.126.net/cover.jpg',
        },
        'ar': [{'id': 5781, 'name': '陈奕迅'}],
        # 2021-11-08 00:00:00 UTC+8
        'publishTime': 1636300800000,
        'cd': '01',
        'no': 1,
    }


@pytest.fixture
def mp3_file(temp_dir):
    """Tagless MP3 file starting with an MPEG frame header"""
    path = temp_dir / 'track.mp3'
    path.write_bytes(MP3_BYTES)
    return path


@pytest.fixture
def flac_file(temp_dir):
    """Minimal FLAC file with STREAMINFO only"""
    path = temp_dir / 'track.flac'
    path.write_bytes(build_flac())
    return path


@pytest.fixture
def cover_file(temp_dir):
    """Small JPEG cover image"""
    path = temp_dir / 'cover.jpg'
    Image.new('RGB', (4, 4), color=(200, 30, 30)).save(path, 'JPEG')
    return path


@pytest.fixture
def session():
    """Session context stand-in"""
    from playlist_sync.config.auth import SessionContext
    return SessionContext(cookie='MUSIC_U=abc')


@pytest.fixture
def mock_client():
    """API client mock; download_file writes a playable MP3 header"""
    client = Mock()

    def download_file(url, destination):
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(MP3_BYTES)
        return destination

    client.download_file.side_effect = download_file
    return client


@pytest.fixture
def flac_builder():
    """Factory for minimal FLAC streams (see build_flac)"""
    return build_flac


@pytest.fixture
def audio_frames():
    """Frame bytes appended after the metadata of built FLAC streams"""
    return AUDIO_FRAMES
