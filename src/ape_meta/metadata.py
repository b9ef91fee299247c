"""Aggregate metadata record produced by a parse."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any

from ape_meta.pictures import Picture


@dataclass(frozen=True)
class Metadata:
    """
    Metadata for one Monkey's Audio file.

    Header-derived fields are always present. Tag-derived fields are None,
    0 or empty when the file carries no readable APEv2 tag.
    """

    size: int
    duration: timedelta
    bitrate: int  # bits per second
    sample_rate: int
    version: str
    channels: int
    bits_per_sample: int | None = None

    title: str | None = None
    artist: str | None = None
    album: str | None = None
    genres: list[str] = field(default_factory=list)
    year: date | None = None
    total_discs: int = 0
    track_number: int = 0
    track_total: int = 0
    disc_number: int = 0
    lyric: str | None = None
    languages: str | None = None
    comment: str | None = None
    file_checksum: str | None = None
    pictures: list[Picture] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe representation; picture payloads are summarized."""
        return {
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "genres": list(self.genres),
            "year": self.year.year if self.year else None,
            "track_number": self.track_number,
            "track_total": self.track_total,
            "disc_number": self.disc_number,
            "total_discs": self.total_discs,
            "duration_s": self.duration.total_seconds(),
            "bitrate": self.bitrate,
            "sample_rate": self.sample_rate,
            "channels": self.channels,
            "bits_per_sample": self.bits_per_sample,
            "version": self.version,
            "size": self.size,
            "lyric": self.lyric,
            "languages": self.languages,
            "comment": self.comment,
            "file_checksum": self.file_checksum,
            "pictures": [
                {"mime_type": p.mime_type, "role": str(p.role), "size": len(p.data)}
                for p in self.pictures
            ],
        }
