"""
Embedded cover art extraction.

APEv2 stores pictures as binary items whose key starts with "Cover Art",
e.g. "Cover Art (Front)". The MIME type is sniffed from the payload's
magic bytes and the role is taken from the key text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from ape_meta.apetag import COVER_ART_PREFIX, BinaryValue, TagItems

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/jpeg"
MIN_SNIFF_LENGTH = 8

IMAGE_SIGNATURES: list[tuple[bytes, str]] = [
    (b"\x42\x4d", "image/bmp"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"\x47\x49\x46\x38", "image/gif"),
    (b"\x89\x50\x4e\x47", "image/png"),
    (b"\x52\x49\x46\x46", "image/webp"),
]

MIME_EXTENSIONS = {
    "image/bmp": "bmp",
    "image/jpeg": "jpg",
    "image/gif": "gif",
    "image/png": "png",
    "image/webp": "webp",
}


class PictureRole(StrEnum):
    """Semantic role of an embedded picture."""

    COVER_FRONT = "cover_front"
    COVER_BACK = "cover_back"
    OTHER = "other"


@dataclass(frozen=True)
class Picture:
    """An embedded picture and its classification."""

    data: bytes
    mime_type: str
    role: PictureRole

    @property
    def extension(self) -> str:
        return MIME_EXTENSIONS.get(self.mime_type, "bin")


def sniff_mime_type(data: bytes) -> str | None:
    """MIME type from magic bytes; None if the payload is under 8 bytes.

    Unrecognized payloads are reported as JPEG.
    """
    if len(data) < MIN_SNIFF_LENGTH:
        return None
    for magic, mime_type in IMAGE_SIGNATURES:
        if data.startswith(magic):
            return mime_type
    return DEFAULT_MIME_TYPE


def classify_role(key: str) -> PictureRole:
    """Role from the item key: "front" wins over "back", else other."""
    key = key.lower()
    if "front" in key:
        return PictureRole.COVER_FRONT
    if "back" in key:
        return PictureRole.COVER_BACK
    return PictureRole.OTHER


def extract_pictures(items: TagItems) -> list[Picture]:
    """Collect every binary "cover art" item as a classified Picture."""
    pictures: list[Picture] = []
    for key, value in items.items():
        if not key.startswith(COVER_ART_PREFIX) or not isinstance(value, BinaryValue):
            continue
        mime_type = sniff_mime_type(value.data) or DEFAULT_MIME_TYPE
        pictures.append(Picture(data=value.data, mime_type=mime_type, role=classify_role(key)))
        logger.debug(f"Found picture '{key}': {mime_type}, {len(value.data)} bytes")
    return pictures
