"""Tests for header decoding, duration and bitrate."""

from __future__ import annotations

from datetime import timedelta

import pytest
from ape_builders import build_new_header, build_old_header

from ape_meta.errors import HeaderTooShortError
from ape_meta.header import (
    HeaderLayout,
    compute_bitrate_kbps,
    compute_duration_seconds,
    decode_header,
    seconds_to_timedelta,
)


def test_old_layout_fields():
    header = decode_header(build_old_header(), file_size=10_000)

    assert header.layout == HeaderLayout.OLD
    assert header.version == "3.95"
    assert header.sample_rate == 44100
    assert header.channels == 2
    assert header.compression_level == 2000
    assert header.bits_per_sample is None


def test_old_layout_duration_uses_final_frame_blocks():
    # (5 - 1) * 1000 + 1000 = 5000 samples at 44.1 kHz
    header = decode_header(build_old_header(), file_size=10_000)
    assert header.duration == timedelta(milliseconds=113)


def test_new_layout_fields():
    header = decode_header(build_new_header(), file_size=10_000)

    assert header.layout == HeaderLayout.NEW
    assert header.version == "3.99"
    assert header.sample_rate == 48000
    assert header.channels == 1
    assert header.bits_per_sample == 24
    assert header.compression_level is None
    # 3 * 73728 + 18816 = 240000 samples = 5 s
    assert header.duration == timedelta(seconds=5)
    assert header.bitrate == 16


def test_layout_boundary_at_3970():
    assert decode_header(build_old_header(version=3970), 1).layout == HeaderLayout.OLD
    assert decode_header(build_new_header(version=3971), 1).layout == HeaderLayout.NEW


def test_new_layout_version_4000():
    assert decode_header(build_new_header(version=4000), 1).version == "4.0"


@pytest.mark.parametrize(
    "sample_rate,total_frames",
    [(0, 5), (44100, 0), (0, 0)],
)
def test_zero_rate_or_frames_gives_zero_duration_and_bitrate(sample_rate, total_frames):
    header = decode_header(
        build_old_header(sample_rate=sample_rate, total_frames=total_frames),
        file_size=10_000,
    )
    assert header.duration == timedelta(0)
    assert header.bitrate == 0


def test_short_header_raises():
    with pytest.raises(HeaderTooShortError):
        decode_header(build_new_header()[:60], file_size=60)


def test_compute_duration_seconds():
    assert compute_duration_seconds(44100, 1, 1000, 44100) == 1.0
    assert compute_duration_seconds(-1, 5, 1, 1) == 0.0


def test_seconds_to_timedelta_rounds_half_up():
    # 62.5 ms is exact in binary floating point
    assert seconds_to_timedelta(0.0625) == timedelta(milliseconds=63)
    assert seconds_to_timedelta(2.0) == timedelta(seconds=2)


def test_compute_bitrate_kbps():
    assert compute_bitrate_kbps(1_000_000, 8.0) == 1000
    assert compute_bitrate_kbps(1_000_000, 0.0) == 0
