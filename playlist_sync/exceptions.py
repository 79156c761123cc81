"""
Exception classes for playlist-sync.

Exception Hierarchy:
    PlaylistSyncError (base)
        ConfigError - Configuration file issues
        AuthError - Login / session cookie issues (setup-fatal)
        PlaylistFetchError - Playlist could not be read (setup-fatal)
        ApiError - Remote API reported an error for a single call
        DownloadError - Audio or cover download issues
        EmbedError - Tag embedding issues
            CorruptedFileError - Final file signature does not match its container
        LedgerError - Synced-ID ledger issues

Setup-fatal errors abort the run. Everything raised while a single track is
being processed is caught by the download queue and turned into a retry.
"""

from typing import Any, Dict, Optional


class PlaylistSyncError(Exception):
    """
    Base exception for all playlist-sync errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (track ID, URL, path).
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(PlaylistSyncError):
    """
    Raised when the configuration is unusable.

    This is a CRITICAL error that should stop program execution.

    Example:
        raise ConfigError(
            "Missing playlist id",
            details={'section': 'account', 'field': 'playlist_id'}
        )
    """
    pass


class AuthError(PlaylistSyncError):
    """
    Raised when no usable session cookie can be obtained.

    This is a CRITICAL error: without a session every later request would
    fail, so the run is aborted after logging.
    """
    pass


class PlaylistFetchError(PlaylistSyncError):
    """Raised when the remote playlist cannot be read. Aborts the run."""
    pass


class ApiError(PlaylistSyncError):
    """
    Raised when the API server answers with a non-200 code.

    Attributes:
        code: The `code` field of the API response, if any.
    """

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, details)
        self.code = code


class DownloadError(PlaylistSyncError):
    """Raised when an audio or cover payload cannot be fetched."""
    pass


class EmbedError(PlaylistSyncError):
    """
    Raised when tags or cover art cannot be written into an audio file.

    Common causes:
        - Unsupported container
        - Truncated or non-FLAC stream during block rewriting
        - mutagen failing to save ID3 frames
    """
    pass


class CorruptedFileError(EmbedError):
    """
    Raised when a finished file's magic bytes do not match the expected container.

    Treated like any other per-track failure: the candidate is retried until
    its retry budget runs out.
    """
    pass


class LedgerError(PlaylistSyncError):
    """Raised when the synced-ID ledger cannot be read or written."""
    pass
