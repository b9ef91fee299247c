"""
Monkey's Audio header decoding.

Two fixed layouts exist. Files with version <= 3970 use the old
descriptor-less header; newer files carry an APE_DESCRIPTOR followed by
the APE_HEADER, so audio properties sit further into the file.

References:
    https://www.monkeysaudio.com/developers.html
"""

from __future__ import annotations

import logging
import math
import struct
from dataclasses import dataclass
from datetime import timedelta
from enum import StrEnum

from ape_meta.errors import HeaderTooShortError
from ape_meta.reader import HEADER_WINDOW_SIZE

logger = logging.getLogger(__name__)

OLD_LAYOUT_MAX_VERSION = 3970


class HeaderLayout(StrEnum):
    """Header byte layout selected by the version field."""

    OLD = "old"
    NEW = "new"


@dataclass(frozen=True)
class AudioHeader:
    """Audio properties decoded from the file header."""

    version: str
    layout: HeaderLayout
    sample_rate: int
    channels: int
    duration: timedelta
    bitrate: int  # kbps
    bits_per_sample: int | None = None
    compression_level: int | None = None


def compute_duration_seconds(
    sample_rate: int,
    total_frames: int,
    blocks_per_frame: int,
    final_frame_blocks: int,
) -> float:
    """Duration in seconds; zero when sample rate or frame count is non-positive."""
    if sample_rate <= 0 or total_frames <= 0:
        return 0.0
    total_samples = (total_frames - 1) * blocks_per_frame + final_frame_blocks
    return total_samples / sample_rate


def seconds_to_timedelta(seconds: float) -> timedelta:
    """Whole seconds plus the millisecond remainder rounded half up."""
    whole = math.trunc(seconds)
    millis = math.floor((seconds - whole) * 1000 + 0.5)
    return timedelta(seconds=whole, milliseconds=millis)


def compute_bitrate_kbps(file_size: int, duration_seconds: float) -> int:
    """Average bitrate over the whole file in kbps, or 0 without a duration."""
    if duration_seconds <= 0:
        return 0
    return math.floor((file_size * 8) / (duration_seconds * 1000) + 0.5)


def _format_version(raw: int) -> str:
    # 3990 -> "3.99", 4000 -> "4.0"
    return str(raw / 1000)


def _decode_old(header: bytes, file_size: int) -> AudioHeader:
    version, compression_level = struct.unpack_from("<HH", header, 4)
    (channels,) = struct.unpack_from("<H", header, 10)
    (sample_rate,) = struct.unpack_from("<I", header, 12)
    total_frames, final_frame_blocks = struct.unpack_from("<II", header, 24)

    # The old layout has no blocks-per-frame field at these offsets;
    # final_frame_blocks stands in for it.
    seconds = compute_duration_seconds(
        sample_rate, total_frames, final_frame_blocks, final_frame_blocks
    )
    return AudioHeader(
        version=_format_version(version),
        layout=HeaderLayout.OLD,
        sample_rate=sample_rate,
        channels=channels,
        duration=seconds_to_timedelta(seconds),
        bitrate=compute_bitrate_kbps(file_size, seconds),
        compression_level=compression_level,
    )


def _decode_new(header: bytes, file_size: int) -> AudioHeader:
    (version,) = struct.unpack_from("<I", header, 4)
    blocks_per_frame, final_frame_blocks, total_frames = struct.unpack_from("<III", header, 56)
    bits_per_sample, channels = struct.unpack_from("<HH", header, 68)
    (sample_rate,) = struct.unpack_from("<I", header, 72)

    seconds = compute_duration_seconds(
        sample_rate, total_frames, blocks_per_frame, final_frame_blocks
    )
    return AudioHeader(
        version=_format_version(version),
        layout=HeaderLayout.NEW,
        sample_rate=sample_rate,
        channels=channels,
        duration=seconds_to_timedelta(seconds),
        bitrate=compute_bitrate_kbps(file_size, seconds),
        bits_per_sample=bits_per_sample,
    )


def decode_header(header: bytes, file_size: int) -> AudioHeader:
    """
    Decode the leading 76-byte window into an AudioHeader.

    Args:
        header: First bytes of the file (at least 76)
        file_size: Total file size, used for the bitrate

    Raises:
        HeaderTooShortError: If the window is shorter than 76 bytes
    """
    if len(header) < HEADER_WINDOW_SIZE:
        raise HeaderTooShortError(
            f"Header window needs {HEADER_WINDOW_SIZE} bytes, got {len(header)}"
        )

    (version,) = struct.unpack_from("<H", header, 4)
    if version <= OLD_LAYOUT_MAX_VERSION:
        decoded = _decode_old(header, file_size)
    else:
        decoded = _decode_new(header, file_size)

    logger.debug(
        f"Decoded {decoded.layout} header: version={decoded.version}, "
        f"rate={decoded.sample_rate}, channels={decoded.channels}, duration={decoded.duration}"
    )
    return decoded
