"""Magic signature and minimum version check for Monkey's Audio files."""

from __future__ import annotations

import struct

MAGIC = b"MAC "
MIN_VERSION = 3900


def can_decode(header: bytes) -> bool:
    """
    Return True if the leading bytes look like a decodable APE file.

    Requires the "MAC " magic at offset 0 and a little-endian 16-bit
    version >= 3900 at offset 4. Never raises; a short buffer is simply
    not decodable.
    """
    if len(header) < 6 or header[:4] != MAGIC:
        return False
    (version,) = struct.unpack_from("<H", header, 4)
    return version >= MIN_VERSION


## Tests


def test_can_decode_accepts_current_version():
    assert can_decode(b"MAC " + struct.pack("<H", 3990) + b"\x00" * 70)


def test_can_decode_rejects_old_version():
    assert not can_decode(b"MAC " + struct.pack("<H", 3899) + b"\x00" * 70)


def test_can_decode_rejects_short_buffer():
    assert not can_decode(b"MAC")
    assert not can_decode(b"")
