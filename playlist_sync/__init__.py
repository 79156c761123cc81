"""
Playlist-Sync: keep a local music folder in step with a NetEase Cloud Music playlist

Each run compares the remote playlist with a local ledger of already-synced
track IDs, downloads audio and cover art for the new tracks, embeds tags
(ID3v2 for MP3, Vorbis comments and picture blocks for FLAC), optionally
writes a merged original/translated `.lrc` sidecar and finally records the
synced IDs so the next run only picks up what is still missing.

## Package layout

**Configuration (`playlist_sync/config/`)**
- YAML + environment settings split into dataclass sections
- Session cookie persistence and cellphone login

**Remote API (`playlist_sync/netease/`)**
- Thin requests client for the NetEase Cloud Music API server
- Data models for track details, download info and lyrics payloads

**Audio (`playlist_sync/audio/`)**
- Track detail to canonical tag normalization
- Per-container tag embedding (ID3 frames, FLAC block rewriting)

**Lyrics (`playlist_sync/lyrics/`)**
- Timed lyric parsing and bilingual merge
- `.lrc` sidecar generation

**Synchronization (`playlist_sync/sync/`)**
- Ledger of synced IDs
- Bounded-retry download queue
- Full-run orchestration

**Utilities (`playlist_sync/utils/`)**
- Logging, filename helpers and file signature validation
"""

__version__ = "0.4.0"
__author__ = "Playlist-Sync Team"
__license__ = "MIT"

__all__ = ["__version__", "__author__", "__license__"]
