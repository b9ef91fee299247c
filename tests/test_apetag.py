"""Tests for APEv2 tag location and item decoding."""

from __future__ import annotations

import struct

import pytest
from ape_builders import (
    PNG_BYTES,
    build_ape_file,
    build_cover_item,
    build_id3v1,
    build_item,
    build_tag,
    filler_item,
)

from ape_meta.apetag import (
    BinaryValue,
    TagItems,
    TextValue,
    decode_items,
    decode_text,
    locate_tag,
    read_checksum,
    read_tag,
)
from ape_meta.errors import TagHeaderError

SIG = b"APETAGEX"


def _tag_header(item_count: int) -> bytes:
    return SIG + struct.pack("<IIII", 2000, item_count, 0, 0) + b"\x00" * 8


# =============================================================================
# Locator
# =============================================================================


class TestLocateTag:
    def test_finds_signature_at_scan_start(self):
        window = b"\x00" * 40 + SIG + b"\x00" * 152
        assert len(window) - 160 == 40
        assert locate_tag(window) == 40

    def test_ignores_signature_in_last_160_bytes(self):
        window = b"\x00" * 300 + SIG + b"\x00" * 100
        assert locate_tag(window) is None

    def test_returns_highest_match(self):
        window = b"\x00" * 10 + SIG + b"\x00" * 50 + SIG + b"\x00" * 300
        assert locate_tag(window) == 68

    def test_short_window_is_absent(self):
        assert locate_tag(SIG + b"\x00" * 100) is None
        assert locate_tag(b"") is None

    def test_window_of_exactly_margin(self):
        window = SIG + b"\x00" * 152
        assert locate_tag(window) == 0

    def test_custom_scan_margin_reaches_end(self):
        window = b"\x00" * 300 + SIG + b"\x00" * 100
        assert locate_tag(window, scan_margin=8) == 300

    def test_real_layout_finds_header_not_footer(self):
        tag = build_tag([build_item("Title", "Song"), filler_item()])
        data = build_ape_file(tag=tag)
        assert locate_tag(data) == len(data) - len(tag)

    def test_id3v1_trailer_exposes_footer_first(self):
        # Footer lands exactly at the scan start and wins over the header
        tag = build_tag([build_item("Title", "Song"), filler_item()])
        data = build_ape_file(tag=tag, trailer=build_id3v1())
        assert locate_tag(data) == len(data) - 128 - 32

    def test_small_tag_header_is_out_of_reach(self):
        tag = build_tag([build_item("Title", "Song")])
        assert locate_tag(build_ape_file(tag=tag)) is None


# =============================================================================
# Item decoding
# =============================================================================


class TestDecodeItems:
    def test_decodes_text_items_with_lowercase_keys(self):
        window = build_tag([build_item("TITLE", "Song"), build_item("Artist", "Band")])
        count, items = decode_items(window, 0)

        assert count == 2
        assert items.text("title") == "Song"
        assert items.text("artist") == "Band"
        assert "TITLE" not in items

    def test_cover_art_is_binary_after_description(self):
        window = build_tag([build_cover_item("Cover Art (Front)", PNG_BYTES)])
        _, items = decode_items(window, 0)

        value = items.get("cover art (front)")
        assert isinstance(value, BinaryValue)
        assert value.data == PNG_BYTES
        assert items.text("cover art (front)") is None

    def test_cover_art_without_description_keeps_whole_value(self):
        payload = b"\xff\xd8\xff\xe0" + b"\x01" * 12
        window = build_tag([build_item("Cover Art (Back)", payload)])
        _, items = decode_items(window, 0)

        assert items.binary("cover art (back)") == payload

    def test_short_key_is_skipped(self):
        window = build_tag([build_item("ab", "x"), build_item("Title", "Song")])
        _, items = decode_items(window, 0)

        assert items.keys() == ["title"]

    def test_value_past_end_stops_decoding(self):
        broken = struct.pack("<II", 1000, 0) + b"Album\x00short"
        window = _tag_header(3) + build_item("Title", "Song") + broken
        _, items = decode_items(window, 0)

        assert items.keys() == ["title"]

    def test_unterminated_key_stops_decoding(self):
        window = _tag_header(2) + build_item("Title", "Song") + struct.pack("<II", 1, 0) + b"Artist"
        _, items = decode_items(window, 0)

        assert items.keys() == ["title"]

    def test_item_count_limits_decoding(self):
        window = build_tag(
            [build_item("Title", "Song"), build_item("Artist", "Band")], item_count=1
        )
        count, items = decode_items(window, 0)

        assert count == 1
        assert items.keys() == ["title"]

    def test_item_count_read_at_offset_12(self):
        # Only +12 holds the count; +16 carries an unrelated large value
        header = SIG + struct.pack("<IIII", 2000, 1, 99, 0) + b"\x00" * 8
        window = header + build_item("Title", "Song") + build_item("Artist", "Band")
        count, items = decode_items(window, 0)

        assert count == 1
        assert items.keys() == ["title"]

    def test_declared_count_below_items_present(self):
        window = build_tag(
            [build_item("Title", "Song"), build_item("Artist", "Band"), build_item("Album", "LP")],
            item_count=2,
        )
        count, items = decode_items(window, 0)

        assert count == 2
        assert items.keys() == ["title", "artist"]

    def test_declared_count_above_items_present_keeps_decoded(self):
        # Decoding runs into the footer, whose "APET" prefix reads as an oversized value
        window = build_tag([build_item("Title", "Song")], item_count=5)
        count, items = decode_items(window, 0)

        assert count == 5
        assert items.keys() == ["title"]

    def test_later_duplicate_key_wins(self):
        window = build_tag([build_item("Title", "Old"), build_item("title", "New")])
        _, items = decode_items(window, 0)

        assert items.text("title") == "New"
        assert len(items) == 1

    def test_invalid_utf8_is_replaced(self):
        window = build_tag([build_item("Title", b"ab\xffcd")])
        _, items = decode_items(window, 0)

        value = items.get("title")
        assert value == TextValue(text="ab�cd", lossy=True)

    def test_truncated_header_raises(self):
        window = b"\x00" * 40 + SIG + b"\x00" * 10
        with pytest.raises(TagHeaderError):
            decode_items(window, 40)


# =============================================================================
# Text decoding and checksum
# =============================================================================


def test_decode_text_valid_utf8():
    decoded = decode_text("Björk".encode())
    assert decoded.text == "Björk"
    assert decoded.lossy is False


def test_decode_text_reports_lossy():
    decoded = decode_text(b"\xc3")
    assert decoded.text == "�"
    assert decoded.lossy is True


def test_read_checksum_in_bounds():
    window = bytes(range(100))
    assert read_checksum(window, 10) == bytes(range(46, 62)).hex()


def test_read_checksum_out_of_bounds():
    window = bytes(60)
    assert read_checksum(window, 10) is None
    assert read_checksum(window, -1) is None


def test_read_tag_absent():
    assert read_tag(build_ape_file()) is None


def test_read_tag_found():
    tag = build_tag([build_item("Title", "Song"), filler_item()])
    data = build_ape_file(tag=tag)
    result = read_tag(data)

    assert result is not None
    assert result.items.text("title") == "Song"
    assert result.checksum == data[result.offset + 36 : result.offset + 52].hex()
    assert len(result.checksum) == 32


def test_tag_items_accessors():
    items = TagItems({"title": TextValue("Song"), "cover art (front)": BinaryValue(b"\x89PNG")})

    assert items.text("title") == "Song"
    assert items.binary("title") is None
    assert items.binary("cover art (front)") == b"\x89PNG"
    assert items.text("missing") is None
    assert dict(items.items())["title"] == TextValue("Song")
