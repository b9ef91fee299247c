"""
Coercion of raw APEv2 text values into typed metadata fields.

All functions accept None and never raise; unparseable input falls back
to 0 or None.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

from ape_meta.apetag import TagItems

_INT_PATTERN = re.compile(r"\s*[+-]?[0-9]+\s*")
_YEAR_SEPARATORS = ("-", "/")


def parse_int(raw: str | None) -> int | None:
    """Parse a whole decimal integer, or None."""
    if raw is None or not _INT_PATTERN.fullmatch(raw):
        return None
    return int(raw)


@dataclass(frozen=True)
class NumberPair:
    """An "N/M" pair such as a track or disc position."""

    number: int = 0
    total: int = 0


def parse_number_pair(raw: str | None) -> NumberPair:
    """
    Split "N/M" into (N, M).

    Missing or unparseable segments become 0.
    """
    if raw is None:
        return NumberPair()
    parts = raw.split("/")
    number = parse_int(parts[0]) or 0
    total = (parse_int(parts[1]) or 0) if len(parts) > 1 else 0
    return NumberPair(number=number, total=total)


def parse_year(raw: str | None) -> date | None:
    """
    Extract a year from "YYYY-MM-DD", "YYYY/MM" or "YYYY".

    Returns January 1 of that year, or None for empty, unparseable or
    out-of-range input.
    """
    if not raw:
        return None

    year: int | None = None
    for sep in _YEAR_SEPARATORS:
        if sep in raw:
            year = parse_int(raw.split(sep)[0])
            if year is not None:
                break
    if year is None:
        year = parse_int(raw)

    if year is None or not (date.min.year <= year <= date.max.year):
        return None
    return date(year, 1, 1)


class TagNormalizer:
    """
    Typed accessors over decoded tag items.

    Each property reads a fixed key and applies its coercion, so the
    aggregator never touches raw values directly.
    """

    def __init__(self, items: TagItems | None):
        self.items = items if items is not None else TagItems()

    def text(self, key: str) -> str | None:
        return self.items.text(key)

    @property
    def track(self) -> NumberPair:
        return parse_number_pair(self.text("track"))

    @property
    def disc_number(self) -> int:
        # "discnumber" holds the position; "disc" is read as the total
        return parse_number_pair(self.text("discnumber")).number

    @property
    def total_discs(self) -> int:
        return parse_int(self.text("disc")) or 0

    @property
    def year(self) -> date | None:
        return parse_year(self.text("year"))

    @property
    def genres(self) -> list[str]:
        genre = self.text("genre")
        return [genre] if genre is not None else []

    @property
    def lyric(self) -> str | None:
        lyrics = self.text("lyrics")
        if lyrics is not None:
            return lyrics
        return self.text("unsyncedlyrics")


## Tests


def test_parse_number_pair():
    assert parse_number_pair("3/12") == NumberPair(3, 12)
    assert parse_number_pair("5") == NumberPair(5, 0)
    assert parse_number_pair(None) == NumberPair(0, 0)
    assert parse_number_pair("x/7") == NumberPair(0, 7)
    assert parse_number_pair("4/y") == NumberPair(4, 0)


def test_parse_year_formats():
    assert parse_year("1998-05-01") == date(1998, 1, 1)
    assert parse_year("1998/05") == date(1998, 1, 1)
    assert parse_year("1998") == date(1998, 1, 1)


def test_parse_year_rejects_garbage():
    assert parse_year("") is None
    assert parse_year("abc") is None
    assert parse_year(None) is None
    assert parse_year("0") is None


def test_parse_int():
    assert parse_int("42") == 42
    assert parse_int(" 7 ") == 7
    assert parse_int("1_000") is None
    assert parse_int("٤٢") is None
    assert parse_int("") is None
