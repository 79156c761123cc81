"""
Audio package
Canonical tag derivation and container-specific metadata embedding
"""

from .tags import CanonicalTags, parse_track_detail
from .metadata import MetadataEmbedder

__all__ = [
    'CanonicalTags',
    'parse_track_detail',
    'MetadataEmbedder',
]
