"""Path-safe logging for ape-meta.

Log records that carry file paths are rewritten so that logs show a
short relative path (or a hash) instead of the full location of a
user's music library.
"""

from __future__ import annotations

import hashlib
import logging
import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler


def hash_path(file_path: Path | str, length: int = 12) -> str:
    """Hash a file path for logging.

    Args:
        file_path: Path to hash
        length: Length of hash to return

    Returns:
        Truncated SHA256 hash of the path
    """
    return hashlib.sha256(str(file_path).encode()).hexdigest()[:length]


def relativize_path(file_path: Path | str, library_root: Path | str | None = None) -> str:
    """Convert path to relative form for safe logging.

    If library_root is provided, returns path relative to it.
    Otherwise, returns just the filename with parent directory.
    """
    path = Path(file_path)

    if library_root:
        try:
            return str(path.relative_to(Path(library_root)))
        except ValueError:
            pass

    if path.parent.name:
        return f"{path.parent.name}/{path.name}"
    return path.name


def safe_path(
    file_path: Path | str,
    library_root: Path | str | None = None,
    use_hash: bool = False,
) -> str:
    """Get a safe representation of a path for logging."""
    if use_hash:
        return f"file:{hash_path(file_path)}"
    return relativize_path(file_path, library_root)


@lru_cache(maxsize=1)
def _get_library_root() -> Path | None:
    """Get library root from environment."""
    root = os.environ.get("APE_META_LIBRARY_ROOT")
    return Path(root) if root else None


class SafeLogFormatter(logging.Formatter):
    """Log formatter that shortens or hashes Path arguments."""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        hash_paths: bool = False,
    ):
        super().__init__(fmt, datefmt)
        self.hash_paths = hash_paths
        self._library_root = _get_library_root()

    def format(self, record: logging.LogRecord) -> str:
        # Copy so other handlers still see the original record
        record = logging.makeLogRecord(record.__dict__)
        if record.args:
            record.args = self._sanitize_args(record.args)
        return super().format(record)

    def _sanitize_args(self, args: tuple[Any, ...] | Mapping[str, Any]) -> tuple[Any, ...]:
        if isinstance(args, Mapping):
            return tuple(self._sanitize_value(v) for v in args.values())
        return tuple(self._sanitize_value(arg) for arg in args)

    def _sanitize_value(self, value: Any) -> Any:
        if isinstance(value, Path):
            return safe_path(value, self._library_root, use_hash=self.hash_paths)
        return value


def configure_rich_logging(
    level: int = logging.WARNING,
    format_string: str = "%(message)s",
    hash_paths: bool = False,
    show_time: bool = True,
    show_path: bool = False,
) -> Console:
    """Configure root logging through a Rich handler writing to stderr.

    Returns:
        The Console used for logging, so CLI output can share it
    """
    console = Console(stderr=True)
    handler = RichHandler(
        console=console,
        show_time=show_time,
        show_path=show_path,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(SafeLogFormatter(fmt=format_string, hash_paths=hash_paths))

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if isinstance(existing, RichHandler):
            root_logger.removeHandler(existing)
    root_logger.setLevel(level)
    root_logger.addHandler(handler)
    return console


## Tests


def test_hash_path():
    path1 = Path("/home/user/music/song.ape")
    path3 = Path("/home/user/music/other.ape")

    assert len(hash_path(path1)) == 12
    assert hash_path(path1) == hash_path(Path("/home/user/music/song.ape"))
    assert hash_path(path1) != hash_path(path3)


def test_relativize_path():
    path = Path("/home/user/music/artist/album/song.ape")

    assert relativize_path(path, "/home/user/music") == "artist/album/song.ape"
    assert relativize_path(path) == "album/song.ape"


def test_safe_log_formatter_hashes_paths():
    formatter = SafeLogFormatter(fmt="%(message)s", hash_paths=True)

    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg="Parsing %s",
        args=(Path("/home/user/music/song.ape"),),
        exc_info=None,
    )

    formatted = formatter.format(record)
    assert formatted.startswith("Parsing file:")
    assert "song.ape" not in formatted
