"""Pytest configuration and shared fixtures for ape-meta tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from ape_builders import PNG_BYTES, build_ape_file, build_cover_item, build_item, build_tag

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def ape_path(tmp_path: Path) -> Path:
    """A tagged new-layout APE file with a front cover on disk."""
    tag = build_tag(
        [
            build_item("Title", "Song"),
            build_item("Artist", "Band"),
            build_item("Track", "3/12"),
            build_cover_item("Cover Art (Front)", PNG_BYTES),
        ]
    )
    path = tmp_path / "song.ape"
    path.write_bytes(build_ape_file(tag=tag))
    return path


@pytest.fixture
def not_ape_path(tmp_path: Path) -> Path:
    """A file that is not Monkey's Audio."""
    path = tmp_path / "song.flac"
    path.write_bytes(b"fLaC" + b"\x00" * 200)
    return path
