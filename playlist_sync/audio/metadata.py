"""
Metadata embedding for downloaded audio files

Writes the canonical tag set and the cover image into an audio file. The
container is resolved once and dispatched to the matching strategy:

MP3 (ID3v2):
    Frames are replaced in place through mutagen's ID3 implementation:
    TIT2 (title), TALB (album), TDRC (year), TPE1 (artist), TPOS (disc),
    TRCK (track) and a single front-cover APIC frame. The tag is saved as
    ID3v2.3 by default (`metadata.id3_version`), the most widely readable
    variant.

FLAC (metadata blocks):
    The file is rewritten as a stream. The original is moved aside to
    `<name>.orig`, its metadata blocks are read one by one, any existing
    PICTURE and VORBIS_COMMENT blocks are dropped, and a new PICTURE block
    and a new VORBIS_COMMENT block are appended after the kept blocks. The
    comment block carries the last-block flag. Audio frames are copied
    verbatim. The aside copy is removed on every exit path.

    Block layout (big-endian):
        1 bit   last-metadata-block flag
        7 bits  block type (4 = VORBIS_COMMENT, 6 = PICTURE)
        24 bits body length
"""

import shutil
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, List, Optional, Tuple, Union

from PIL import Image, UnidentifiedImageError
from mutagen.flac import Picture, VCFLACDict
from mutagen.id3 import ID3, ID3NoHeaderError, TIT2, TALB, TDRC, TPE1, TPOS, TRCK, APIC

from ..config.settings import get_settings, Settings
from ..exceptions import EmbedError
from ..netease.models import ContainerKind
from ..utils.logger import get_logger
from .tags import CanonicalTags


FLAC_MARKER = b"fLaC"
BLOCK_VORBIS_COMMENT = 4
BLOCK_PICTURE = 6
MAX_BLOCK_LENGTH = (1 << 24) - 1
LAST_BLOCK_FLAG = 0x80

FRONT_COVER = 3
DEFAULT_COVER_MIME = "image/jpeg"


@dataclass(frozen=True)
class CoverImage:
    """Cover bytes plus the properties a FLAC PICTURE block records"""
    data: bytes
    mime: str
    width: int = 0
    height: int = 0
    depth: int = 0


def flac_block_header(block_type: int, length: int, last: bool) -> bytes:
    """
    Encode a FLAC metadata block header

    Raises:
        EmbedError: If the body does not fit the 24-bit length field
    """
    if length > MAX_BLOCK_LENGTH:
        raise EmbedError(
            f"FLAC metadata block too large: {length} bytes",
            details={'block_type': block_type, 'max_length': MAX_BLOCK_LENGTH}
        )
    flag = LAST_BLOCK_FLAG if last else 0
    return bytes([block_type | flag]) + length.to_bytes(3, 'big')


def read_flac_blocks(stream: BinaryIO) -> List[Tuple[int, bytes]]:
    """
    Read all metadata blocks of a FLAC stream

    The stream is left positioned at the first audio frame.

    Returns:
        (block type, body) pairs in file order

    Raises:
        EmbedError: If the stream is not FLAC or a block is truncated
    """
    if stream.read(4) != FLAC_MARKER:
        raise EmbedError("Not a FLAC stream: missing fLaC marker")

    blocks = []
    while True:
        header = stream.read(4)
        if len(header) < 4:
            raise EmbedError("Truncated FLAC metadata block header")

        last = bool(header[0] & LAST_BLOCK_FLAG)
        block_type = header[0] & 0x7F
        length = int.from_bytes(header[1:4], 'big')

        body = stream.read(length)
        if len(body) < length:
            raise EmbedError(
                f"Truncated FLAC metadata block (type {block_type})",
                details={'expected': length, 'read': len(body)}
            )

        blocks.append((block_type, body))
        if last:
            return blocks


class MetadataEmbedder:
    """
    Writes CanonicalTags and cover art into MP3 and FLAC files

    Usage:
        embedder = MetadataEmbedder(settings)
        embedder.embed(audio_path, cover_path, tags, ContainerKind.FLAC)
    """

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize embedder from metadata settings

        Args:
            settings: Settings to use, defaults to the global instance
        """
        self.settings = settings or get_settings()
        self.logger = get_logger(__name__)

        self.id3_version = self.settings.metadata.id3_version
        self.vendor_string = self.settings.metadata.vendor_string

        self._strategies = {
            ContainerKind.MP3: self._embed_mp3_metadata,
            ContainerKind.FLAC: self._embed_flac_metadata,
        }

    def embed(
        self,
        audio_path: Union[str, Path],
        cover_path: Optional[Union[str, Path]],
        tags: CanonicalTags,
        container: Optional[ContainerKind] = None
    ) -> None:
        """
        Embed tags and cover image into an audio file

        Args:
            audio_path: File to tag (modified in place)
            cover_path: Cover image file, None to skip the picture
            tags: Canonical tag set
            container: Container kind, resolved from the file suffix if None

        Raises:
            EmbedError: If the container is unsupported or writing fails
        """
        audio_path = Path(audio_path)
        kind = container or ContainerKind.from_path(audio_path)
        strategy = self._strategies.get(kind)
        if strategy is None:
            raise EmbedError(
                f"Unsupported container: {audio_path.suffix or audio_path.name}",
                details={'path': str(audio_path)}
            )

        cover = self._load_cover(cover_path) if cover_path else None

        try:
            strategy(audio_path, tags, cover)
        except EmbedError:
            raise
        except Exception as e:
            raise EmbedError(
                f"Failed to embed {kind.extension} metadata: {e}",
                details={'path': str(audio_path)}
            ) from e

        self.logger.debug(f"{kind.name} metadata embedded: {audio_path.name}")

    def _load_cover(self, cover_path: Union[str, Path]) -> CoverImage:
        """
        Read cover bytes and detect mime type and dimensions with Pillow

        Unrecognised image data is still embedded, declared as JPEG.
        """
        try:
            data = Path(cover_path).read_bytes()
        except OSError as e:
            raise EmbedError(f"Cannot read cover image: {e}", details={'path': str(cover_path)}) from e

        try:
            with Image.open(BytesIO(data)) as img:
                mime = Image.MIME.get(img.format, DEFAULT_COVER_MIME)
                width, height = img.size
                depth = 8 * len(img.getbands())
        except (UnidentifiedImageError, OSError):
            self.logger.debug(f"Cover format not recognised, assuming {DEFAULT_COVER_MIME}")
            mime, width, height, depth = DEFAULT_COVER_MIME, 0, 0, 0

        return CoverImage(data=data, mime=mime, width=width, height=height, depth=depth)

    def _embed_mp3_metadata(self, file_path: Path, tags: CanonicalTags, cover: Optional[CoverImage]) -> None:
        """Replace the standard ID3 frames and the front cover"""
        try:
            id3 = ID3(file_path)
        except ID3NoHeaderError:
            id3 = ID3()

        # encoding=3 is UTF-8; for v2.3 output mutagen downgrades it to UTF-16
        id3.setall('TIT2', [TIT2(encoding=3, text=tags.title)])
        id3.setall('TALB', [TALB(encoding=3, text=tags.album)])
        id3.setall('TDRC', [TDRC(encoding=3, text=str(tags.year))])
        id3.setall('TPE1', [TPE1(encoding=3, text=tags.artist)])
        id3.setall('TPOS', [TPOS(encoding=3, text=tags.disc)])
        id3.setall('TRCK', [TRCK(encoding=3, text=str(tags.track))])

        id3.delall('APIC')
        if cover:
            id3.add(APIC(encoding=3, mime=cover.mime, type=FRONT_COVER, desc='Cover', data=cover.data))

        if self.id3_version == "2.4":
            id3.save(file_path, v2_version=4)
        else:
            # TDRC becomes TYER; v2.3 has no TDRC frame
            id3.update_to_v23()
            id3.save(file_path, v2_version=3)

    def _build_picture_block(self, cover: CoverImage) -> bytes:
        picture = Picture()
        picture.type = FRONT_COVER
        picture.mime = cover.mime
        picture.desc = ''
        picture.width = cover.width
        picture.height = cover.height
        picture.depth = cover.depth
        picture.data = cover.data
        return picture.write()

    def _build_comment_block(self, tags: CanonicalTags) -> bytes:
        comments = VCFLACDict()
        comments.vendor = self.vendor_string
        for key, value in tags.as_vorbis_comments().items():
            comments.append((key, value))
        return comments.write(framing=False)

    def _embed_flac_metadata(self, file_path: Path, tags: CanonicalTags, cover: Optional[CoverImage]) -> None:
        """Rewrite the FLAC metadata blocks through an aside copy"""
        aside_path = file_path.with_name(file_path.name + '.orig')
        shutil.move(str(file_path), str(aside_path))

        try:
            with open(aside_path, 'rb') as src, open(file_path, 'wb') as dst:
                blocks = read_flac_blocks(src)

                dst.write(FLAC_MARKER)
                for block_type, body in blocks:
                    if block_type in (BLOCK_VORBIS_COMMENT, BLOCK_PICTURE):
                        continue
                    dst.write(flac_block_header(block_type, len(body), last=False))
                    dst.write(body)

                if cover:
                    picture = self._build_picture_block(cover)
                    dst.write(flac_block_header(BLOCK_PICTURE, len(picture), last=False))
                    dst.write(picture)

                comment = self._build_comment_block(tags)
                dst.write(flac_block_header(BLOCK_VORBIS_COMMENT, len(comment), last=True))
                dst.write(comment)

                shutil.copyfileobj(src, dst)
        except BaseException:
            # Put the untouched original back in place of the half-written file
            if file_path.exists():
                file_path.unlink()
            shutil.move(str(aside_path), str(file_path))
            raise
        finally:
            if aside_path.exists():
                aside_path.unlink()

