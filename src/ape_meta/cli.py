"""CLI for ape-meta using Typer and Rich."""

from __future__ import annotations

import json
import logging
import sys
from datetime import timedelta
from enum import StrEnum
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

from ape_meta.apetag import BinaryValue, TextValue
from ape_meta.config import Config
from ape_meta.console import (
    make_progress,
    print_error,
    print_json,
    print_success,
    print_warning,
    set_console,
)
from ape_meta.console import (
    print as cprint,
)
from ape_meta.errors import ApeMetaError, UnsupportedContainerError
from ape_meta.metadata import Metadata
from ape_meta.parser import ApeParser
from ape_meta.reader import FileSource
from ape_meta.safe_logging import configure_rich_logging

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = ("*.ape",)


class OutputFormat(StrEnum):
    """Output format for CLI commands."""

    TEXT = "text"
    JSON = "json"


class ExitCode:
    """Standard exit codes for CLI commands."""

    SUCCESS = 0
    ERROR = 1
    NO_RESULTS = 2


app = typer.Typer(
    name="apemeta",
    help="Read tags, audio properties and cover art from Monkey's Audio files",
    no_args_is_help=True,
    add_completion=False,
)


class AppState:
    """Global application state passed between commands."""

    config: Config
    output_format: OutputFormat
    verbose: int


state = AppState()


def _collect_audio_files(paths: list[Path]) -> list[Path]:
    """Collect audio files from paths (files or directories).

    Recursively searches directories for .ape files.
    """
    audio_files: list[Path] = []
    for path in paths:
        if path.is_dir():
            for ext in AUDIO_EXTENSIONS:
                audio_files.extend(sorted(path.rglob(ext)))
        else:
            audio_files.append(path)
    return audio_files


def _format_duration(metadata: Metadata) -> str:
    total_ms = metadata.duration // timedelta(milliseconds=1)
    minutes, rem_ms = divmod(total_ms, 60_000)
    return f"{minutes}:{rem_ms // 1000:02d}.{rem_ms % 1000:03d}"


def _metadata_table(path: Path, metadata: Metadata) -> Table:
    table = Table(title=path.name, show_header=False, title_justify="left")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    track = f"{metadata.track_number}/{metadata.track_total}" if metadata.track_number else None
    rows: list[tuple[str, Any]] = [
        ("Title", metadata.title),
        ("Artist", metadata.artist),
        ("Album", metadata.album),
        ("Genre", ", ".join(metadata.genres) or None),
        ("Year", metadata.year.year if metadata.year else None),
        ("Track", track),
        ("Disc", metadata.disc_number or None),
        ("Total discs", metadata.total_discs or None),
        ("Duration", _format_duration(metadata)),
        ("Bitrate", f"{metadata.bitrate // 1000} kbps"),
        ("Sample rate", f"{metadata.sample_rate} Hz"),
        ("Channels", metadata.channels),
        ("Bits per sample", metadata.bits_per_sample),
        ("Version", metadata.version),
        ("Size", f"{metadata.size} bytes"),
        ("Language", metadata.languages),
        ("Comment", metadata.comment),
        ("Checksum", metadata.file_checksum or "unavailable"),
    ]
    for label, value in rows:
        if value is not None:
            table.add_row(label, str(value))
    for picture in metadata.pictures:
        table.add_row("Picture", f"{picture.role} {picture.mime_type} ({len(picture.data)} bytes)")
    return table


@app.callback()
def main(
    config_path: Annotated[
        Path | None,
        typer.Option("--config", help="Path to configuration TOML file", exists=True),
    ] = None,
    output: Annotated[
        OutputFormat,
        typer.Option("--output", "-o", help="Output format"),
    ] = OutputFormat.TEXT,
    verbose: Annotated[
        int,
        typer.Option("--verbose", "-v", count=True, help="Increase verbosity"),
    ] = 0,
    images: Annotated[
        bool | None,
        typer.Option("--images/--no-images", help="Extract embedded cover art"),
    ] = None,
    scan_margin: Annotated[
        int | None,
        typer.Option(help="Bytes before end of tail window where the tag scan starts", min=8),
    ] = None,
) -> None:
    """ape-meta: Monkey's Audio metadata reader."""
    cfg = Config.load(config_path)

    # CLI > Env > Config File > Defaults
    if images is not None:
        cfg.parser.fetch_images = images
    if scan_margin is not None:
        cfg.parser.tag_scan_margin = scan_margin

    if verbose > 0:
        log_level = logging.DEBUG if verbose >= 2 else logging.INFO
    else:
        level_str = cfg.logging.level.upper()
        log_level = getattr(logging, level_str, logging.WARNING)

    configure_rich_logging(
        level=log_level,
        format_string=cfg.logging.format,
        hash_paths=cfg.logging.hash_paths,
        show_time=verbose > 0,
    )
    set_console(Console())

    if config_path:
        logger.info("Loaded config from %s", config_path)
    logger.debug(f"Logging configured: level={logging.getLevelName(log_level)}")

    state.config = cfg
    state.output_format = output
    state.verbose = verbose


@app.command()
def info(
    paths: Annotated[
        list[Path],
        typer.Argument(help="APE files or directories to read", exists=True),
    ],
) -> None:
    """Show tags and audio properties of APE files.

    Examples:
        apemeta info album/01.ape
        apemeta -o json --images info /music/albums/
    """
    files = _collect_audio_files(paths)
    if not files:
        print_warning("No .ape files found")
        sys.exit(ExitCode.NO_RESULTS)

    parser = ApeParser(state.config.parser)
    results: list[tuple[Path, Metadata]] = []
    unsupported = 0
    errors = 0

    with make_progress() as progress:
        task = progress.add_task("Reading files...", total=len(files))
        for path in files:
            logger.info("Parsing %s", path)
            try:
                results.append((path, parser.parse_file(path)))
            except UnsupportedContainerError:
                logger.warning("Not a Monkey's Audio file: %s", path)
                unsupported += 1
            except ApeMetaError as e:
                logger.error("Failed to read %s: %s", path, e)
                errors += 1
            progress.update(task, advance=1)

    if state.output_format == OutputFormat.JSON:
        payload = [{"file": str(path), **metadata.to_dict()} for path, metadata in results]
        print_json(json.dumps(payload))
    else:
        for path, metadata in results:
            cprint(_metadata_table(path, metadata))
        if unsupported:
            print_warning(f"{unsupported} file(s) skipped: not Monkey's Audio")
        if errors:
            print_error(f"{errors} file(s) could not be read")

    if errors:
        sys.exit(ExitCode.ERROR)
    sys.exit(ExitCode.SUCCESS if results and not unsupported else ExitCode.NO_RESULTS)


@app.command()
def check(
    paths: Annotated[
        list[Path],
        typer.Argument(help="Files or directories to check", exists=True),
    ],
) -> None:
    """Report whether each file is a decodable Monkey's Audio file."""
    files = _collect_audio_files(paths)
    verdicts: dict[str, bool] = {}
    for path in files:
        try:
            with FileSource(path) as source:
                verdicts[str(path)] = ApeParser.can_parse(source)
        except ApeMetaError as e:
            logger.error("Failed to open %s: %s", path, e)
            verdicts[str(path)] = False

    if state.output_format == OutputFormat.JSON:
        print_json(json.dumps(verdicts))
    else:
        for name, ok in verdicts.items():
            if ok:
                print_success(f"✓ {name}")
            else:
                cprint(f"[yellow]✗ {name}[/yellow]")

    sys.exit(ExitCode.SUCCESS if verdicts and all(verdicts.values()) else ExitCode.NO_RESULTS)


@app.command()
def tags(
    path: Annotated[Path, typer.Argument(help="APE file", exists=True, dir_okay=False)],
) -> None:
    """Dump the raw APEv2 tag items of a file."""
    parser = ApeParser(state.config.parser)
    try:
        with FileSource(path) as source:
            items = parser.read_items(source)
    except ApeMetaError as e:
        print_error(str(e))
        sys.exit(ExitCode.ERROR)

    dump: dict[str, str] = {}
    for key, value in items.items():
        if isinstance(value, BinaryValue):
            dump[key] = f"<binary, {len(value.data)} bytes>"
        elif isinstance(value, TextValue):
            dump[key] = value.text

    if state.output_format == OutputFormat.JSON:
        print_json(json.dumps(dump))
    elif not dump:
        print_warning("No APEv2 tag items")
    else:
        table = Table("Key", "Value", title=path.name, title_justify="left")
        for key, text in dump.items():
            table.add_row(key, text)
        cprint(table)

    sys.exit(ExitCode.SUCCESS if dump else ExitCode.NO_RESULTS)


@app.command("extract-art")
def extract_art(
    path: Annotated[Path, typer.Argument(help="APE file", exists=True, dir_okay=False)],
    dest: Annotated[Path, typer.Option("--dest", "-d", help="Output directory")] = Path("."),
) -> None:
    """Write embedded cover art to image files.

    Files are named <stem>.<role>.<n>.<ext>; bytes are written as stored.
    """
    parser = ApeParser(state.config.parser, fetch_images=True)
    try:
        metadata = parser.parse_file(path)
    except ApeMetaError as e:
        print_error(str(e))
        sys.exit(ExitCode.ERROR)

    if not metadata.pictures:
        print_warning(f"No embedded pictures in {path.name}")
        sys.exit(ExitCode.NO_RESULTS)

    dest.mkdir(parents=True, exist_ok=True)
    for n, picture in enumerate(metadata.pictures, start=1):
        out = dest / f"{path.stem}.{picture.role}.{n}.{picture.extension}"
        out.write_bytes(picture.data)
        logger.info("Wrote %s", out)
        print_success(f"Wrote {out.name} ({picture.mime_type}, {len(picture.data)} bytes)")

    sys.exit(ExitCode.SUCCESS)
