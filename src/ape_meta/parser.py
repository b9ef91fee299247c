"""
Monkey's Audio metadata parser.

Ties the pieces together: read the two byte windows, check the
signature, decode the header, locate and decode the APEv2 tag, then
normalize values into a Metadata record. A parser holds configuration
only; every call returns a freshly built record.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO

from ape_meta.apetag import ApeTag, TagItems, read_tag
from ape_meta.config import ParserConfig
from ape_meta.errors import ApeReadError, TagHeaderError, UnsupportedContainerError
from ape_meta.header import AudioHeader, decode_header
from ape_meta.metadata import Metadata
from ape_meta.normalize import TagNormalizer
from ape_meta.pictures import extract_pictures
from ape_meta.reader import HEADER_WINDOW_SIZE, ByteRangeSource, FileSource, read_windows
from ape_meta.signature import can_decode

logger = logging.getLogger(__name__)


class ApeParser:
    """
    Reads metadata from Monkey's Audio (.ape) files.

    Instances are cheap and keep no per-file state, but are not meant to
    be shared between threads.
    """

    def __init__(self, config: ParserConfig | None = None, fetch_images: bool | None = None):
        self.config = config if config is not None else ParserConfig()
        if fetch_images is not None:
            self.config = self.config.model_copy(update={"fetch_images": fetch_images})

    @staticmethod
    def can_parse(source: ByteRangeSource) -> bool:
        """Signature check only; never raises for unreadable or short sources."""
        try:
            header = source.read(0, HEADER_WINDOW_SIZE)
        except ApeReadError:
            return False
        return len(header) >= HEADER_WINDOW_SIZE and can_decode(header)

    def parse(self, source: ByteRangeSource) -> Metadata:
        """
        Parse a byte range source into a Metadata record.

        Raises:
            UnsupportedContainerError: If the signature or version check fails
            ApeReadError: If the source cannot be read far enough
        """
        windows = read_windows(source, self.config.tail_window_size)
        if not can_decode(windows.header):
            raise UnsupportedContainerError("Not a Monkey's Audio file (bad magic or version)")

        header = decode_header(windows.header, windows.file_size)

        tag = self._read_tag(windows.tail)
        return self._build_metadata(header, tag, windows.file_size)

    def parse_file(self, file: Path | str | BinaryIO) -> Metadata:
        """Parse a path or open binary file object."""
        with FileSource(file) as source:
            return self.parse(source)

    def read_items(self, source: ByteRangeSource) -> TagItems:
        """Decoded tag items without building a Metadata record.

        Empty when the tag is missing or its header is truncated, as in parse().
        """
        windows = read_windows(source, self.config.tail_window_size)
        if not can_decode(windows.header):
            raise UnsupportedContainerError("Not a Monkey's Audio file (bad magic or version)")
        tag = self._read_tag(windows.tail)
        return tag.items if tag is not None else TagItems()

    def _read_tag(self, tail: bytes) -> ApeTag | None:
        try:
            return read_tag(tail, self.config.tag_scan_margin)
        except TagHeaderError as e:
            logger.warning(f"Ignoring APEv2 tag: {e}")
            return None

    def _build_metadata(self, header: AudioHeader, tag: ApeTag | None, file_size: int) -> Metadata:
        items = tag.items if tag is not None else None
        values = TagNormalizer(items)
        track = values.track

        pictures = extract_pictures(items) if self.config.fetch_images and items else []

        return Metadata(
            size=file_size,
            duration=header.duration,
            bitrate=header.bitrate * 1000,
            sample_rate=header.sample_rate,
            version=header.version,
            channels=header.channels,
            bits_per_sample=header.bits_per_sample,
            title=values.text("title"),
            artist=values.text("artist"),
            album=values.text("album"),
            genres=values.genres,
            year=values.year,
            total_discs=values.total_discs,
            track_number=track.number,
            track_total=track.total,
            disc_number=values.disc_number,
            lyric=values.lyric,
            languages=values.text("language"),
            comment=values.text("comment"),
            file_checksum=tag.checksum if tag is not None else None,
            pictures=pictures,
        )


def parse_file(file: Path | str | BinaryIO, fetch_images: bool = False) -> Metadata:
    """Parse a single file with default settings."""
    return ApeParser(fetch_images=fetch_images).parse_file(file)
