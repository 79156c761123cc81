"""
Utility functions and helpers for Playlist-Sync
Common functions for file naming, directories and display formatting
"""

import re
import unicodedata
from pathlib import Path
from typing import Union


RESERVED_NAMES = {
    'CON', 'PRN', 'AUX', 'NUL',
    'COM1', 'COM2', 'COM3', 'COM4', 'COM5', 'COM6', 'COM7', 'COM8', 'COM9',
    'LPT1', 'LPT2', 'LPT3', 'LPT4', 'LPT5', 'LPT6', 'LPT7', 'LPT8', 'LPT9'
}


def sanitize_filename(filename: str, max_length: int = 200, replace_spaces: bool = False) -> str:
    """
    Sanitize filename for cross-platform compatibility

    Titles on the service are frequently CJK, so the string is composed (NFC)
    rather than decomposed: decomposing would split Hangul syllables and
    kana with voicing marks into fragments.

    Args:
        filename: Original filename
        max_length: Maximum filename length
        replace_spaces: Whether to replace spaces with underscores

    Returns:
        Sanitized filename, "unknown" if nothing usable is left
    """
    if not filename:
        return "unknown"

    filename = filename.strip().strip('"\'').strip()
    if not filename:
        return "unknown"

    filename = unicodedata.normalize('NFC', filename)

    # Characters not allowed in Windows filenames plus control characters
    filename = re.sub(r'[<>:"/\\|?*\x00-\x1f\x7f-\x9f]', '', filename)

    # Emoji and other symbols that cause path issues on some filesystems
    filename = re.sub(r'[^\w\s\-_.,()[\]{}!@#$%^&+=\'’]', '', filename, flags=re.UNICODE)

    filename = re.sub(r'\s+', ' ', filename)

    if replace_spaces:
        filename = filename.replace(' ', '_')

    filename = filename.strip(' .')

    name_part = filename.split('.')[0].upper()
    if name_part in RESERVED_NAMES:
        filename = f"_{filename}"

    if len(filename) > max_length:
        filename = filename[:max_length]

    filename = filename.rstrip(' .')

    if not filename or filename in ['.', '..']:
        filename = "unknown"

    return filename


def build_track_filename(
    template: str,
    artist: str,
    title: str,
    album: str = "",
    max_length: int = 200,
    replace_spaces: bool = False
) -> str:
    """
    Render a naming template into a filesystem-safe base name (no extension)

    Args:
        template: Format string using {artist}, {title} and {album}
        artist: Joined artist string
        title: Track title
        album: Album name

    Returns:
        Sanitized base name
    """
    try:
        name = template.format(artist=artist, title=title, album=album)
    except (KeyError, IndexError, ValueError):
        # Unknown placeholder in a user template
        name = f"{artist} - {title}"

    return sanitize_filename(name, max_length=max_length, replace_spaces=replace_spaces)


def remove_quietly(path: Union[str, Path, None]) -> bool:
    """
    Delete a file if it exists

    Args:
        path: File to delete (None is accepted and ignored)

    Returns:
        True if a file was removed
    """
    if path is None:
        return False

    path_obj = Path(path)
    if path_obj.exists():
        path_obj.unlink()
        return True
    return False


def format_duration(seconds: Union[int, float]) -> str:
    """
    Format duration in seconds to human readable format

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration string (e.g., "3:45", "1:23:45")
    """
    seconds = max(0, int(seconds))
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)

    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human readable format

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "3.5 MB")
    """
    if size_bytes == 0:
        return "0 B"

    size_names = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    size = float(size_bytes)

    while size >= 1024 and i < len(size_names) - 1:
        size /= 1024
        i += 1

    if i == 0:
        return f"{size_bytes} B"
    return f"{size:.1f} {size_names[i]}"
