"""
Configuration management for Playlist-Sync

This module handles loading, validation, and management of application settings
from YAML files and environment variables. Settings are grouped into dataclass
sections:
- API server location and request behaviour
- Account credentials and the playlist to mirror
- Download pacing, retry budget and storage paths
- Lyrics and tag embedding preferences
- File naming, logging and local state storage

Credentials (phone number, password hash) can be provided through environment
variables or a .env file so they never have to live in the YAML file.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass
from dotenv import load_dotenv

# Load environment variables from .env file if present
load_dotenv()


@dataclass
class ApiConfig:
    """
    NetEase Cloud Music API server settings

    The application talks to a self-hosted API server; `endpoint` is its base URL.
    Every request uses the same fixed timeout.
    """
    endpoint: str = "http://localhost:3000"
    request_timeout: float = 3.0
    user_agent: str = "Playlist-Sync/0.4"
    min_request_interval: float = 0.1


@dataclass
class AccountConfig:
    """Login credentials and the playlist to synchronize"""
    phone: str = ""
    md5_password: str = ""
    playlist_id: str = ""


@dataclass
class DownloadConfig:
    """
    Download loop configuration

    Controls how many tracks one run may sync, how long to pause between
    tracks, how failures are retried and where files are staged and stored.
    """
    limit: int = 20
    sleep_time_ms: int = 3000
    retry_limit: int = 3
    retry_scope: str = "candidate"  # candidate, run
    bitrate: int = 320000
    temp_directory: str = "~/.playlist-sync/temp"
    cover_directory: str = "~/.playlist-sync/covers"
    output_directory: str = "~/Music/Playlist Sync"


@dataclass
class LyricsConfig:
    """Lyrics sidecar preferences"""
    enabled: bool = True
    include_translation: bool = True


@dataclass
class MetadataConfig:
    """
    Tag embedding configuration

    `max_artists` bounds the joined artist string so filenames built from it
    stay reasonably short.
    """
    id3_version: str = "2.3"
    max_artists: int = 5
    vendor_string: str = "Playlist-Sync"


@dataclass
class NamingConfig:
    """
    File naming configuration

    `track_format` accepts the {artist}, {title} and {album} placeholders.
    """
    track_format: str = "{artist} - {title}"
    max_filename_length: int = 200
    replace_spaces: bool = False


@dataclass
class LoggingConfig:
    """Logging configuration and output settings"""
    level: str = "INFO"
    file: str = ""
    max_size: str = "10MB"
    backup_count: int = 3
    console_output: bool = True
    colored_output: bool = True


@dataclass
class StorageConfig:
    """
    Local state storage

    Relative file names are resolved inside `data_directory`.
    """
    data_directory: str = "~/.playlist-sync/"
    save_cookie: bool = True
    cookie_file: str = "cookie.txt"
    ledger_file: str = "playlist.json"


class Settings:
    """
    Main settings class that manages all configuration

    Loads settings from the first YAML file found, then applies environment
    variable overrides and creates the working directories.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize settings from config file or environment variables

        Args:
            config_path: Path to custom config file, if None uses default locations
        """
        self.config_path = config_path
        self.config_dir = Path.home() / ".playlist-sync"

        self.api = ApiConfig()
        self.account = AccountConfig()
        self.download = DownloadConfig()
        self.lyrics = LyricsConfig()
        self.metadata = MetadataConfig()
        self.naming = NamingConfig()
        self.logging = LoggingConfig()
        self.storage = StorageConfig()

        # Load configuration from various sources in order of precedence
        self._load_config()
        self._load_environment_variables()
        self._create_directories()

    def _sections(self) -> Dict[str, Any]:
        return {
            'api': self.api,
            'account': self.account,
            'download': self.download,
            'lyrics': self.lyrics,
            'metadata': self.metadata,
            'naming': self.naming,
            'logging': self.logging,
            'storage': self.storage,
        }

    def _load_config(self) -> None:
        """
        Load configuration from YAML file

        Searches the explicit path first, then the user config directory and
        the working directory. The first file found wins.
        """
        config_paths = [
            self.config_path,
            self.config_dir / "config.yaml",
            Path("config/config.yaml"),
            Path("config.yaml")
        ]

        config_data = {}
        for path in config_paths:
            if path and Path(path).exists():
                try:
                    with open(path, 'r', encoding='utf-8') as f:
                        config_data = yaml.safe_load(f) or {}
                    break
                except Exception as e:
                    print(f"Warning: Failed to load config from {path}: {e}")

        self._apply_config(config_data)

    def _apply_config(self, config_data: Dict[str, Any]) -> None:
        """
        Apply configuration data to dataclass instances

        Only keys that exist on the matching dataclass are applied; unknown
        sections and keys are ignored.

        Args:
            config_data: Dictionary containing configuration sections
        """
        config_mapping = self._sections()

        for section_name, section_data in config_data.items():
            if section_name in config_mapping and isinstance(section_data, dict):
                config_obj = config_mapping[section_name]
                for key, value in section_data.items():
                    if hasattr(config_obj, key):
                        setattr(config_obj, key, value)

    def _load_environment_variables(self) -> None:
        """
        Load sensitive configuration from environment variables

        Environment variables take precedence over file-based configuration.
        """
        env_mappings = {
            'NETEASE_API_ENDPOINT': lambda v: setattr(self.api, 'endpoint', v),
            'NETEASE_PHONE': lambda v: setattr(self.account, 'phone', v),
            'NETEASE_MD5_PASSWORD': lambda v: setattr(self.account, 'md5_password', v),
            'NETEASE_PLAYLIST_ID': lambda v: setattr(self.account, 'playlist_id', v),
            'PLAYLIST_SYNC_OUTPUT_DIR': lambda v: setattr(self.download, 'output_directory', v),
        }

        for env_var, setter in env_mappings.items():
            value = os.getenv(env_var)
            if value:
                setter(value)

    def _create_directories(self) -> None:
        """
        Create directories the sync run writes into

        Permission problems are reported as warnings; the run itself fails
        later with a clearer error if a directory is really unusable.
        """
        directories = [
            self.get_data_directory(),
            self.get_temp_directory(),
            self.get_cover_directory(),
            self.get_output_directory(),
        ]

        for directory in directories:
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except Exception as e:
                print(f"Warning: Failed to create directory {directory}: {e}")

    def get_output_directory(self) -> Path:
        """Get the expanded final music directory"""
        return Path(self.download.output_directory).expanduser()

    def get_temp_directory(self) -> Path:
        """Get the expanded staging directory for audio downloads"""
        return Path(self.download.temp_directory).expanduser()

    def get_cover_directory(self) -> Path:
        """Get the expanded staging directory for cover images"""
        return Path(self.download.cover_directory).expanduser()

    def get_data_directory(self) -> Path:
        """Get the expanded directory holding the cookie and ledger files"""
        return Path(self.storage.data_directory).expanduser()

    def _resolve_data_file(self, name: str) -> Path:
        path = Path(name).expanduser()
        if path.is_absolute():
            return path
        return self.get_data_directory() / path

    def get_cookie_path(self) -> Path:
        """
        Get the session cookie file path

        Returns:
            Absolute path of the cookie file
        """
        return self._resolve_data_file(self.storage.cookie_file)

    def get_ledger_path(self) -> Path:
        """
        Get the synced-ID ledger file path

        Returns:
            Absolute path of the JSON ledger
        """
        return self._resolve_data_file(self.storage.ledger_file)

    def save_config(self, path: Optional[str] = None) -> None:
        """
        Save current configuration to file

        Credentials are blanked out before writing.

        Args:
            path: Custom path to save config, defaults to user config directory

        Raises:
            Exception: If the configuration cannot be saved
        """
        if not path:
            path = self.config_dir / "config.yaml"
        else:
            path = Path(path)

        config_data = {
            name: self._dataclass_to_dict(section)
            for name, section in self._sections().items()
        }

        config_data['account']['phone'] = ""
        config_data['account']['md5_password'] = ""

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                yaml.dump(config_data, f, default_flow_style=False, indent=2)
        except Exception as e:
            raise Exception(f"Failed to save config to {path}: {e}")

    def _dataclass_to_dict(self, obj) -> Dict[str, Any]:
        """Convert dataclass to dictionary"""
        result = {}
        for key, value in obj.__dict__.items():
            result[key] = value
        return result

    def validate(self) -> bool:
        """
        Validate current configuration

        Returns:
            True if configuration is valid, False otherwise
        """
        errors = []

        if not self.account.playlist_id:
            errors.append("account.playlist_id is required")

        if self.download.retry_limit < 1:
            errors.append(f"download.retry_limit must be at least 1: {self.download.retry_limit}")

        if self.download.retry_scope not in ['candidate', 'run']:
            errors.append(f"Invalid retry scope: {self.download.retry_scope}")

        if self.download.sleep_time_ms < 0:
            errors.append(f"download.sleep_time_ms cannot be negative: {self.download.sleep_time_ms}")

        if self.metadata.id3_version not in ['2.3', '2.4']:
            errors.append(f"Invalid ID3 version: {self.metadata.id3_version}")

        if self.metadata.max_artists < 1:
            errors.append(f"metadata.max_artists must be at least 1: {self.metadata.max_artists}")

        if errors:
            print("Configuration validation errors:")
            for error in errors:
                print(f"  - {error}")
            return False

        return True

    def __str__(self) -> str:
        """String summary of key configuration values"""
        sections = [
            f"Playlist: {self.account.playlist_id or '-'}",
            f"Output: {self.download.output_directory}",
            f"Limit: {self.download.limit}",
            f"Lyrics: {'enabled' if self.lyrics.enabled else 'disabled'}",
        ]
        return f"Settings({', '.join(sections)})"


# Global settings instance, created on first access
settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the global settings instance

    Returns:
        The global Settings instance
    """
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings(config_path: Optional[str] = None) -> Settings:
    """
    Reload settings from configuration files

    Args:
        config_path: Optional path to specific config file

    Returns:
        New Settings instance with reloaded configuration
    """
    global settings
    settings = Settings(config_path)
    return settings
