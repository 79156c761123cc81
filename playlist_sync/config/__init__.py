"""
Configuration package for Playlist-Sync

Provides application settings and session handling:

    settings = get_settings()
    session = get_session_manager().get_session(client)

Configuration Sources (highest precedence first):
1. Environment variables (credentials, API endpoint, output directory)
2. YAML configuration files
3. Dataclass default values
"""

from .settings import get_settings, reload_settings, Settings

from .auth import get_session_manager, reset_session_manager, SessionManager, SessionContext

__all__ = [
    # Settings management
    'get_settings',
    'reload_settings',
    'Settings',

    # Session management
    'get_session_manager',
    'reset_session_manager',
    'SessionManager',
    'SessionContext',
]
