"""
Lyrics package
Bilingual LRC merging and sidecar writing
"""

from .merger import LyricLine, parse_lyric_line, merge_lyrics, FAR_FUTURE_TIMESTAMP
from .processor import LyricsProcessor, LYRICS_EXTENSION

__all__ = [
    'LyricLine',
    'parse_lyric_line',
    'merge_lyrics',
    'FAR_FUTURE_TIMESTAMP',
    'LyricsProcessor',
    'LYRICS_EXTENSION',
]
