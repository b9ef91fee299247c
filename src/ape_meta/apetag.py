"""
APEv2 tag location and item decoding.

The tag sits near the end of the file. Its header starts with the
8-byte "APETAGEX" preamble, the item count lives at +12 and the item
list starts at +32. Each item is:

    u32 value size | u32 flags | key bytes | 0x00 | value bytes

References:
    https://wiki.hydrogenaudio.org/index.php?title=APEv2_specification
    https://wiki.hydrogenaudio.org/index.php?title=APE_key
"""

from __future__ import annotations

import logging
import struct
from collections.abc import Iterator
from dataclasses import dataclass, field

from ape_meta.errors import TagHeaderError

logger = logging.getLogger(__name__)

TAG_SIGNATURE = b"APETAGEX"
TAG_HEADER_SIZE = 32
ITEM_PREFIX_SIZE = 8
MIN_KEY_LENGTH = 3
COVER_ART_PREFIX = "cover art"

# Backward scan starts this many bytes before the end of the window, so a
# signature inside the last 160 bytes is never reported.
DEFAULT_SCAN_MARGIN = 160

CHECKSUM_START = 36
CHECKSUM_END = 52


@dataclass(frozen=True)
class DecodedText:
    """Result of a best-effort UTF-8 decode.

    lossy is True when invalid sequences were replaced with U+FFFD.
    """

    text: str
    lossy: bool = False


def decode_text(raw: bytes) -> DecodedText:
    """Decode UTF-8, substituting replacement characters for invalid input."""
    text = raw.decode("utf-8", errors="replace")
    return DecodedText(text=text, lossy=text.encode("utf-8") != raw)


@dataclass(frozen=True)
class TextValue:
    """Textual tag value."""

    text: str
    lossy: bool = False


@dataclass(frozen=True)
class BinaryValue:
    """Binary tag value (embedded cover art payload)."""

    data: bytes


TagValue = TextValue | BinaryValue


@dataclass
class TagItems:
    """
    Decoded tag items keyed by lowercase key.

    Typed accessors return None when the key is missing or holds the
    other kind of value.
    """

    values: dict[str, TagValue] = field(default_factory=dict)

    def text(self, key: str) -> str | None:
        value = self.values.get(key)
        return value.text if isinstance(value, TextValue) else None

    def binary(self, key: str) -> bytes | None:
        value = self.values.get(key)
        return value.data if isinstance(value, BinaryValue) else None

    def get(self, key: str) -> TagValue | None:
        return self.values.get(key)

    def keys(self) -> list[str]:
        return list(self.values)

    def items(self) -> Iterator[tuple[str, TagValue]]:
        yield from self.values.items()

    def __contains__(self, key: object) -> bool:
        return key in self.values

    def __len__(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class ApeTag:
    """A located and decoded APEv2 tag."""

    offset: int
    item_count: int
    items: TagItems
    checksum: str | None = None


def locate_tag(window: bytes, scan_margin: int = DEFAULT_SCAN_MARGIN) -> int | None:
    """
    Find the APEv2 signature by scanning the trailing window backward.

    The scan starts at len(window) - scan_margin and walks down to 0,
    returning the first (highest) match. Returns None when nothing
    matches or the window is shorter than the margin.
    """
    start = len(window) - scan_margin
    if start < 0:
        return None
    # rfind's end bound is exclusive over the whole match
    offset = window.rfind(TAG_SIGNATURE, 0, start + len(TAG_SIGNATURE))
    return offset if offset != -1 else None


def decode_items(window: bytes, offset: int) -> tuple[int, TagItems]:
    """
    Decode the item list of the tag whose signature is at offset.

    Decoding stops early, keeping what was decoded so far, when a key has
    no terminator or a value runs past the end of the window.

    Returns:
        Tuple of (declared item count, decoded items)

    Raises:
        TagHeaderError: If fewer than 32 bytes remain after offset
    """
    if offset < 0 or offset + TAG_HEADER_SIZE > len(window):
        raise TagHeaderError("APEv2 tag header is too short")

    (item_count,) = struct.unpack_from("<I", window, offset + 12)
    items = TagItems()
    pos = offset + TAG_HEADER_SIZE

    for _ in range(item_count):
        if pos + ITEM_PREFIX_SIZE > len(window):
            break

        (value_size,) = struct.unpack_from("<I", window, pos)
        key_start = pos + ITEM_PREFIX_SIZE
        key_end = window.find(b"\x00", key_start)
        if key_end == -1:
            logger.warning(f"Unterminated tag key at offset {key_start}; stopping")
            break

        value_start = key_end + 1
        value_end = value_start + value_size
        if value_end > len(window):
            logger.warning(
                f"Tag item at offset {pos} declares {value_size} bytes past end of window; stopping"
            )
            break

        raw_key = window[key_start:key_end]
        if len(raw_key) < MIN_KEY_LENGTH:
            logger.debug(f"Skipping tag item with short key at offset {key_start}")
            pos = value_end
            continue

        key = decode_text(raw_key).text.lower()

        if key.startswith(COVER_ART_PREFIX):
            # Payload follows a NUL-terminated description, when present
            desc_end = window.find(b"\x00", value_start, value_end)
            data_start = desc_end + 1 if desc_end != -1 else value_start
            items.values[key] = BinaryValue(data=window[data_start:value_end])
        else:
            decoded = decode_text(window[value_start:value_end])
            if decoded.lossy:
                logger.warning(f"Tag item '{key}' is not valid UTF-8; invalid bytes replaced")
            items.values[key] = TextValue(text=decoded.text, lossy=decoded.lossy)

        pos = value_end

    logger.debug(f"Decoded {len(items)} of {item_count} declared tag items")
    return item_count, items


def read_checksum(window: bytes, offset: int) -> str | None:
    """Hex string of the 16 bytes at offset+36 .. offset+52, if in bounds."""
    start = offset + CHECKSUM_START
    end = offset + CHECKSUM_END
    if offset < 0 or end > len(window):
        return None
    return window[start:end].hex()


def read_tag(window: bytes, scan_margin: int = DEFAULT_SCAN_MARGIN) -> ApeTag | None:
    """
    Locate and decode the APEv2 tag in the trailing window.

    Returns None when no signature is found.

    Raises:
        TagHeaderError: If the signature is found but its header is truncated
    """
    offset = locate_tag(window, scan_margin)
    if offset is None:
        logger.debug("No APEv2 tag signature in trailing window")
        return None

    item_count, items = decode_items(window, offset)
    return ApeTag(
        offset=offset,
        item_count=item_count,
        items=items,
        checksum=read_checksum(window, offset),
    )
