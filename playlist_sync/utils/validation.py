"""
File validation helpers

Containers are identified from their leading bytes, never from the file
name, so a file that was renamed or truncated during download is caught
before it is recorded as synced.
"""

from pathlib import Path
from typing import Optional, Union

from ..exceptions import CorruptedFileError
from ..netease.models import ContainerKind


HEADER_SIZE = 10


def detect_container(header: bytes) -> Optional[ContainerKind]:
    """
    Detect container kind from leading bytes

    Args:
        header: First bytes of the file (at least 4)

    Returns:
        ContainerKind, or None if the bytes match no supported container
    """
    if len(header) < 4:
        return None

    if header.startswith(ContainerKind.FLAC.signature):
        return ContainerKind.FLAC

    # MP3: ID3v2 tag or a bare MPEG audio frame (11 sync bits set)
    if header.startswith(ContainerKind.MP3.signature):
        return ContainerKind.MP3
    if header[0] == 0xFF and (header[1] & 0xE0) == 0xE0:
        return ContainerKind.MP3

    return None


def detect_file_container(file_path: Union[str, Path]) -> Optional[ContainerKind]:
    """Read a file header and detect its container"""
    with open(file_path, 'rb') as f:
        header = f.read(HEADER_SIZE)
    return detect_container(header)


def validate_container(file_path: Union[str, Path], expected: ContainerKind) -> None:
    """
    Check that a finished file really is the expected container

    Args:
        file_path: File to check
        expected: Container the file was produced as

    Raises:
        CorruptedFileError: If the file is missing or its signature mismatches
    """
    path = Path(file_path)
    if not path.exists():
        raise CorruptedFileError(
            f"File missing after move: {path.name}",
            details={'path': str(path)}
        )

    detected = detect_file_container(path)
    if detected is not expected:
        raise CorruptedFileError(
            f"File type check failed for {path.name}: expected {expected.extension}, "
            f"found {detected.extension if detected else 'unknown'}",
            details={'path': str(path), 'expected': expected.mime}
        )
