"""
Byte window reading for APE files.

The decoder never streams: it reads the fixed-size leading header window
and one bounded trailing window, then works on those buffers only.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Protocol

from ape_meta.errors import HeaderTooShortError, SourceReadError

logger = logging.getLogger(__name__)

HEADER_WINDOW_SIZE = 76
TAIL_WINDOW_SIZE = 1024 * 128


class ByteRangeSource(Protocol):
    """Anything that can report its length and read a byte range."""

    def size(self) -> int: ...

    def read(self, offset: int, length: int) -> bytes: ...


class BytesSource:
    """In-memory byte range source."""

    def __init__(self, data: bytes):
        self._data = bytes(data)

    def size(self) -> int:
        return len(self._data)

    def read(self, offset: int, length: int) -> bytes:
        return self._data[offset : offset + length]


class FileSource:
    """
    Byte range source over a binary file.

    Accepts a path (opened and closed by this object) or an already open
    binary file object (left open for the caller to close).
    """

    def __init__(self, file: Path | str | BinaryIO):
        if isinstance(file, (str, Path)):
            self.path: Path | None = Path(file)
            try:
                self._fh: BinaryIO = open(self.path, "rb")
            except OSError as e:
                raise SourceReadError(f"Cannot open {self.path}: {e}") from e
            self._owned = True
        else:
            self.path = None
            self._fh = file
            self._owned = False

    def size(self) -> int:
        try:
            self._fh.seek(0, io.SEEK_END)
            return self._fh.tell()
        except OSError as e:
            raise SourceReadError(f"Cannot determine file size: {e}") from e

    def read(self, offset: int, length: int) -> bytes:
        try:
            self._fh.seek(offset)
            return self._fh.read(length)
        except OSError as e:
            raise SourceReadError(f"Cannot read {length} bytes at offset {offset}: {e}") from e

    def close(self) -> None:
        if self._owned:
            self._fh.close()

    def __enter__(self) -> FileSource:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@dataclass(frozen=True)
class ByteWindows:
    """Leading header window, trailing window and total file size."""

    header: bytes
    tail: bytes
    file_size: int


def read_windows(source: ByteRangeSource, tail_size: int = TAIL_WINDOW_SIZE) -> ByteWindows:
    """
    Read the header window and the trailing window from a source.

    The trailing window covers the last min(tail_size, file_size) bytes.

    Raises:
        HeaderTooShortError: If fewer than 76 header bytes could be read
        SourceReadError: If the source cannot be read
    """
    file_size = source.size()

    header = source.read(0, HEADER_WINDOW_SIZE)
    if len(header) < HEADER_WINDOW_SIZE:
        raise HeaderTooShortError(
            f"Expected {HEADER_WINDOW_SIZE} header bytes, got {len(header)}"
        )

    read_size = min(tail_size, file_size)
    tail = source.read(file_size - read_size, read_size)
    if len(tail) < read_size:
        raise SourceReadError(f"Short read of trailing window: {len(tail)} of {read_size} bytes")

    logger.debug(f"Read windows: file_size={file_size}, tail={len(tail)} bytes")
    return ByteWindows(header=header, tail=tail, file_size=file_size)
