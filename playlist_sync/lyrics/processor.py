"""
Lyrics sidecar generation

Turns a LyricsPayload into the merged LRC stream and writes it next to the
audio file. Tracks without lyrics never get an empty sidecar: the caller is
told "no lyrics" through a None return instead.
"""

from pathlib import Path
from typing import Optional, Union

from ..config.settings import get_settings, Settings
from ..netease.models import LyricsPayload
from ..utils.logger import get_logger
from .merger import merge_lyrics


LYRICS_EXTENSION = ".lrc"


class LyricsProcessor:
    """
    Builds and saves merged LRC sidecars

    Configuration:
        lyrics.enabled: whether the download loop fetches lyrics at all
        lyrics.include_translation: whether translated lines are merged in
    """

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize lyrics processor

        Args:
            settings: Settings to use, defaults to the global instance
        """
        self.settings = settings or get_settings()
        self.logger = get_logger(__name__)

        self.enabled = self.settings.lyrics.enabled
        self.include_translation = self.settings.lyrics.include_translation

    def build_lyric_stream(self, payload: LyricsPayload) -> Optional[str]:
        """
        Build the merged lyric stream

        Args:
            payload: Lyrics response for one track

        Returns:
            Newline-joined LRC text, or None when the track has no usable lyrics
        """
        if payload.is_absent:
            return None

        translated = payload.translated_lyric if self.include_translation else None
        lines = merge_lyrics(payload.lyric, translated)
        if not lines:
            return None

        return "\n".join(lines)

    def save_lyrics_file(self, payload: LyricsPayload, path: Union[str, Path]) -> Optional[Path]:
        """
        Write the merged stream to a sidecar file

        Args:
            payload: Lyrics response for one track
            path: Target file path

        Returns:
            Written path, or None if there were no lyrics to write
        """
        stream = self.build_lyric_stream(payload)
        if stream is None:
            self.logger.debug(f"No lyrics for {Path(path).stem}")
            return None

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(stream)

        self.logger.debug(f"Saved lyrics: {path.name}")
        return path

