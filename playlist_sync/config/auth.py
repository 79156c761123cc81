"""
Session handling for the NetEase Cloud Music API

The API server authenticates requests through a cookie string returned by the
cellphone login endpoint. The cookie is wrapped in a SessionContext that is
passed explicitly to every remote call, and is optionally kept in a plain
text file so later runs can skip the login round-trip.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .settings import get_settings, Settings
from ..exceptions import AuthError
from ..utils.logger import get_logger


@dataclass(frozen=True)
class SessionContext:
    """
    Authenticated session passed to every remote call

    Attributes:
        cookie: Raw cookie string issued by the login endpoint
    """
    cookie: str

    @property
    def is_anonymous(self) -> bool:
        return not self.cookie


class SessionManager:
    """
    Loads, persists and obtains session cookies

    Token storage follows a simple layout: one text file holding the raw
    cookie, created empty if it does not exist yet. An empty file means
    "log in again".
    """

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize session manager

        Args:
            settings: Settings to use, defaults to the global instance
        """
        self.settings = settings or get_settings()
        self.logger = get_logger(__name__)
        self.cookie_path = self.settings.get_cookie_path()
        self.save_cookie = self.settings.storage.save_cookie

    def _ensure_cookie_file(self) -> Path:
        if not self.cookie_path.exists():
            self.logger.warning(f"Cookie file missing, creating {self.cookie_path}")
            self.cookie_path.parent.mkdir(parents=True, exist_ok=True)
            self.cookie_path.write_text("", encoding='utf-8')
        return self.cookie_path

    def load_cookie(self) -> Optional[str]:
        """
        Load the stored cookie

        Returns:
            Stored cookie string, or None when cookie persistence is off or
            nothing has been stored yet
        """
        if not self.save_cookie:
            return None

        self.logger.debug("Loading cookie from local storage")
        cookie = self._ensure_cookie_file().read_text(encoding='utf-8').strip()
        if not cookie:
            return None

        self.logger.debug("Cookie loaded from local storage")
        return cookie

    def store_cookie(self, cookie: str) -> None:
        """
        Persist cookie for later runs

        Args:
            cookie: Cookie string to store
        """
        if not self.save_cookie:
            return

        self.logger.debug(f"Saving cookie to {self.cookie_path}")
        self._ensure_cookie_file().write_text(cookie, encoding='utf-8')

    def clear(self) -> None:
        """Forget the stored cookie (next run logs in again)"""
        if self.cookie_path.exists():
            self.cookie_path.write_text("", encoding='utf-8')
            self.logger.info("Stored cookie cleared")

    def get_session(self, client) -> SessionContext:
        """
        Get an authenticated session, logging in when needed

        Args:
            client: API client exposing `login_cellphone(phone, md5_password)`

        Returns:
            SessionContext for subsequent API calls

        Raises:
            AuthError: If no stored cookie exists and login fails
        """
        cookie = self.load_cookie()
        if cookie:
            return SessionContext(cookie=cookie)

        account = self.settings.account
        if not account.phone or not account.md5_password:
            raise AuthError(
                "No stored cookie and no credentials configured",
                details={'cookie_file': str(self.cookie_path)}
            )

        self.logger.debug("Logging in to obtain a new cookie")
        try:
            cookie = client.login_cellphone(account.phone, account.md5_password)
        except Exception as e:
            self.logger.error(f"Login failed: {e}")
            raise AuthError(f"Login failed: {e}", details={'original_error': str(e)}) from e

        if not cookie:
            raise AuthError("Login succeeded but no cookie was returned")

        self.store_cookie(cookie)
        return SessionContext(cookie=cookie)


# Global session manager instance
_session_manager: Optional[SessionManager] = None


def get_session_manager() -> SessionManager:
    """Get global session manager instance"""
    global _session_manager
    if not _session_manager:
        _session_manager = SessionManager()
    return _session_manager


def reset_session_manager() -> None:
    """Reset the global session manager (used after config reloads)"""
    global _session_manager
    _session_manager = None
