"""Integration tests"""

import logging
import pytest
import yaml
from click.testing import CliRunner
from unittest.mock import patch

from playlist_sync import __version__
from playlist_sync.config import settings as settings_module
from playlist_sync.exceptions import AuthError
from playlist_sync.main import cli
from playlist_sync.sync.queue import QueueResult
from playlist_sync.sync.synchronizer import SyncResult
from playlist_sync.utils.logger import ConsoleMessageFilter, get_current_log_file, parse_size, setup_logging


@pytest.fixture(autouse=True)
def isolated_globals(monkeypatch):
    """Keep settings reloaded by the CLI from leaking between tests"""
    monkeypatch.setattr(settings_module, 'settings', None)
    yield
    setup_logging(console_output=False)


@pytest.fixture
def config_file(settings_factory, temp_dir):
    settings_factory()
    return str(temp_dir / 'config.yaml')


class TestSettings:
    """Test configuration loading"""

    def test_yaml_values_applied(self, settings_factory, temp_dir):
        settings = settings_factory(download={'limit': 5}, naming={'track_format': '{title}'})

        assert settings.download.limit == 5
        assert settings.naming.track_format == '{title}'
        assert settings.get_ledger_path() == temp_dir / 'data' / 'playlist.json'
        assert settings.get_cookie_path() == temp_dir / 'data' / 'cookie.txt'
        assert settings.get_temp_directory().is_dir()

    def test_unknown_keys_ignored(self, settings_factory):
        settings = settings_factory(download={'no_such_key': 1}, nonsense={'a': 1})
        assert not hasattr(settings.download, 'no_such_key')

    def test_environment_overrides_file(self, settings_factory, monkeypatch):
        monkeypatch.setenv('NETEASE_PLAYLIST_ID', '999')
        monkeypatch.setenv('NETEASE_PHONE', '13800000000')

        settings = settings_factory()

        assert settings.account.playlist_id == '999'
        assert settings.account.phone == '13800000000'

    def test_validation(self, settings_factory):
        assert settings_factory().validate()
        assert not settings_factory(download={'retry_scope': 'forever'}).validate()
        assert not settings_factory(download={'retry_limit': 0}).validate()
        assert not settings_factory(account={'playlist_id': ''}).validate()
        assert not settings_factory(metadata={'id3_version': '2.2'}).validate()

    def test_save_config_blanks_credentials(self, settings_factory, temp_dir):
        settings = settings_factory(account={'phone': '13800000000', 'md5_password': 'hash'})
        path = temp_dir / 'saved' / 'config.yaml'

        settings.save_config(str(path))

        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        assert data['account']['phone'] == ''
        assert data['account']['md5_password'] == ''
        assert data['account']['playlist_id'] == '24381616'
        assert data['download']['retry_limit'] == 3


class TestLogging:
    """Test logger configuration"""

    def test_file_logging(self, temp_dir):
        log_file = temp_dir / 'logs' / 'sync.log'
        setup_logging(level="DEBUG", log_file=str(log_file), console_output=False)

        logging.getLogger('playlist_sync.test').debug("written to file")

        assert get_current_log_file() == log_file
        assert "written to file" in log_file.read_text(encoding='utf-8')

    def test_no_file_handler(self):
        setup_logging(console_output=False)
        assert get_current_log_file() is None

    def test_console_filter(self):
        """Only warnings and explicitly marked records reach the console"""
        console_filter = ConsoleMessageFilter()

        def record(name, level, **extra):
            rec = logging.LogRecord(name, level, __file__, 1, "msg", None, None)
            rec.__dict__.update(extra)
            return rec

        assert console_filter.filter(record('playlist_sync.sync.queue', logging.WARNING))
        assert console_filter.filter(record('playlist_sync.sync.queue', logging.INFO, console_output=True))
        assert not console_filter.filter(record('playlist_sync.sync.queue', logging.INFO))
        assert not console_filter.filter(record('playlist_sync.console', logging.INFO))

    def test_parse_size(self):
        assert parse_size("10MB") == 10 * 1024 ** 2
        assert parse_size("500 kb") == 500 * 1024
        with pytest.raises(ValueError):
            parse_size("ten megabytes")


class TestCli:
    """Test command-line entry points"""

    def test_version(self):
        result = CliRunner().invoke(cli, ['--version'])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_config_show(self, config_file):
        result = CliRunner().invoke(cli, ['--config', config_file, 'config', 'show'])

        assert result.exit_code == 0
        assert 'Playlist: 24381616' in result.output
        assert 'Retry limit: 3 per candidate' in result.output

    def test_config_init(self, config_file, temp_dir):
        target = temp_dir / 'written.yaml'
        result = CliRunner().invoke(cli, ['--config', config_file, 'config', 'init', '--path', str(target)])

        assert result.exit_code == 0
        assert target.exists()

    @patch('playlist_sync.main.get_synchronizer')
    def test_sync_dry_run(self, mock_get_synchronizer, config_file):
        mock_get_synchronizer.return_value.run.return_value = SyncResult(
            playlist_id='24381616', remote_count=3, pending_before=2, pending_ids=[5, 6], dry_run=True
        )

        result = CliRunner().invoke(cli, ['--config', config_file, 'sync', '--dry-run'])

        assert result.exit_code == 0
        assert '2 tracks pending' in result.output
        assert '1. 5' in result.output
        mock_get_synchronizer.return_value.run.assert_called_once_with(dry_run=True)

    @patch('playlist_sync.main.get_synchronizer')
    def test_sync_summary(self, mock_get_synchronizer, config_file):
        queue = QueueResult(total=3, synced=[1, 2], downloaded=[2], skipped=[1], dropped=[3])
        mock_get_synchronizer.return_value.run.return_value = SyncResult(
            playlist_id='24381616', remote_count=3, pending_before=3, queue=queue, total_time=4.0
        )

        result = CliRunner().invoke(cli, ['--config', config_file, 'sync', '--limit', '3', '--no-lyrics'])

        assert result.exit_code == 0
        assert '2 of 3 synced, 1 pending' in result.output
        assert 'Gave up on: 3' in result.output

        settings = mock_get_synchronizer.call_args[0][0]
        assert settings.download.limit == 3
        assert settings.lyrics.enabled is False

    def test_sync_negative_limit(self, config_file):
        result = CliRunner().invoke(cli, ['--config', config_file, 'sync', '--limit', '-1'])
        assert result.exit_code == 1

    @patch('playlist_sync.main.get_synchronizer')
    def test_setup_error_exits_with_one(self, mock_get_synchronizer, config_file):
        mock_get_synchronizer.return_value.run.side_effect = AuthError("No stored cookie and no credentials configured")

        result = CliRunner().invoke(cli, ['--config', config_file, 'sync'])

        assert result.exit_code == 1
        assert 'No stored cookie' in result.output

    @patch('playlist_sync.main.get_synchronizer')
    def test_interrupt_exits_with_130(self, mock_get_synchronizer, config_file):
        mock_get_synchronizer.return_value.run.side_effect = KeyboardInterrupt

        result = CliRunner().invoke(cli, ['--config', config_file, 'sync'])

        assert result.exit_code == 130

    def test_logout_clears_cookie(self, config_file, temp_dir):
        cookie = temp_dir / 'data' / 'cookie.txt'
        cookie.write_text('MUSIC_U=stored', encoding='utf-8')

        result = CliRunner().invoke(cli, ['--config', config_file, 'logout'])

        assert result.exit_code == 0
        assert cookie.read_text(encoding='utf-8') == ''
